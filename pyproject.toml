[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "pixview"
version = "0.1.0"
description = "Building blocks for an image viewer: external converters, key bindings, captions, text wrapping, progress output and MD5"
requires-python = ">=3.10"
dependencies = []
keywords = ["image", "viewer", "key bindings", "captions", "dcraw", "imagemagick", "md5"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Operating System :: POSIX",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Multimedia :: Graphics :: Viewers",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["pixview"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
