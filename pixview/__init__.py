"""Image viewer building blocks: converters, key bindings, captions, wrapping, progress and MD5."""

__version__ = "0.1.0"