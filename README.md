# pixview

Building blocks for an image viewer, written in plain Python with no
third-party dependencies. The package handles conversion of hard-to-read
files through external tools, key bindings and keyboard input, caption
files, word wrapping, progress output, and MD5 digests.

## Installation

```
pip install .
```

To run the tests:

```
pip install .[test]
pytest
```

## Modules

### `pixview.converters`

This module turns files into something an image decoder can read. It runs
external programs to do so:

- `is_raw(filename)` runs `dcraw -i` and returns True if dcraw recognises
  the file as a camera RAW image.
- `convert_raw(filename, timeout, cache, quiet)` extracts the embedded
  preview with `dcraw -c -e` into a temporary file.
- `convert_magick(filename, timeout, cache, quiet)` converts the file to PNG
  with ImageMagick's `convert`. ImageMagick gets a private scratch directory,
  which is removed afterwards, unless `MAGICK_TMPDIR` is already set. When
  the timeout expires, the process group is killed.
- `fetch_url(url, keep, output_dir, cache, insecure)` downloads a URL into a
  new file. The file goes to the temporary directory, or to `output_dir`
  (default: the current directory) when `keep` is true. `insecure` turns
  off certificate checks. Otherwise `CURL_CA_BUNDLE` is used as the CA file
  if it is set.

Each function returns the path of the new file, or None if the conversion
failed or took too long. A `ConversionCache` maps an original name to its
converted path (`get`, `set`, `forget`, `paths`), so that no file is
converted twice. `temp_name_for(filename, directory)` gives the temporary
name prefix, shortened to fit a file name.

### `pixview.keys`

`KeyMap()` starts from the built-in table of bindings, such as `next_img`,
`prev_img`, `zoom_in`, `quit` and `action_0` to `action_9`.

- `load_config(lines)` applies lines of the form `action key1 [key2 [key3]]`.
  A line that starts with `#` is a comment.
- `load_default_config(environ)` reads `$XDG_CONFIG_HOME/pixview/keys` or
  `$HOME/.config/pixview/keys`. If neither file can be read, it falls back
  to `/etc/pixview/keys`.
- `is_pressed(action, state, keysym, button)` checks one action.
- `match(state, keysym, button)` returns the action that a key triggers.

`parse_key_spec("C-S-Left")` returns `(modifier state, keysym)`. The
modifier prefixes are `C-` (Control), `S-` (Shift), `1-` (Mod1) and `4-`
(Mod4). `Modifier` holds the masks. A `KeyBinding` holds up to three keys
and one mouse button.

Example of a keys file:

```
# action   key1   key2     key3
next_img   n      C-space
quit       q
```

### `pixview.keyinput`

- `StdinDecoder().feed(char)` turns terminal characters into
  `(state, keysym)` pairs. `ESC x` counts as Alt+x, and `ESC [ A` to `D`
  are the arrow keys. An empty string raises `EOFError`.
- `CaptionEditor(image_path, caption_path, text)` edits a caption key by
  key through `handle(state, keysym)`:
  - Return saves the caption.
  - Control+Return inserts a newline.
  - Escape reverts to the stored caption.
  - BackSpace deletes the last character.
- `ReloadDelay(seconds, maximum)` raises or lowers a reload delay one second
  at a time, with `increase()` and `decrease()`. The delay never goes below
  one second or above `maximum`.

### `pixview.captions`

Captions are text files named `<image name>.txt`. They live in the
directory `caption_path`, below the image's own directory.

- `caption_filename(image_path, caption_path, create_dir)` returns the
  caption file's path.
- `read_caption` returns the caption, or `""` when there is none.
- `write_caption` stores the caption, creating the directory if needed.

### `pixview.wrapping`

`wrap_string(text, wrap_width, measure)` splits text at newlines. It then
wraps each line to `wrap_width`, using `measure(text) -> width` to size the
text. A single word wider than the limit gets a line of its own.

### `pixview.status`

`StatusReporter(total, stream)` writes one character per processed file.
The characters are grouped in tens, and a count and percentage line follows
every fifty. `mark_error()` notes that an error message broke the line, and
`finish()` ends the line.

### `pixview.md5`

`MD5` is a self-contained MD5 implementation with a hashlib-like interface:
`update`, `digest`, `hexdigest` and `copy`. `md5_hex(data)` hashes bytes, or
a string encoded as UTF-8, in one call.

```python
from pixview.md5 import md5_hex

md5_hex("abc")  # '900150983cd24fb0d6963f7d28e17f72'
```

## What this package does not do

pixview has none of the following:

- a command-line program;
- an image decoder of its own;
- a window or slideshow display;
- image listings;
- index or thumbnail sheets.

The converters produce files for some other decoder to open. The key,
caption and input modules provide the logic that a viewer would call.