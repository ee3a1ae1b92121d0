import pytest

from pixview.captions import read_caption, write_caption
from pixview.keyinput import CaptionEditor, ReloadDelay, StdinDecoder
from pixview.keys import KEYSYMS, NO_SYMBOL, KeyMap, Modifier


def test_space_return_and_backspace():
    decoder = StdinDecoder()
    assert decoder.feed(" ") == (0, KEYSYMS["space"])
    assert decoder.feed("\n") == (0, KEYSYMS["Return"])
    assert decoder.feed("\x7f") == (0, KEYSYMS["BackSpace"])
    assert decoder.feed("\b") == (0, KEYSYMS["BackSpace"])


def test_plain_letter():
    assert StdinDecoder().feed("q") == (0, ord("q"))


@pytest.mark.parametrize(
    "final, name", [("A", "Up"), ("B", "Down"), ("C", "Right"), ("D", "Left")]
)
def test_arrow_sequences(final, name):
    decoder = StdinDecoder()
    assert decoder.feed("\x1b") is None
    assert decoder.feed("[") is None
    assert decoder.feed(final) == (0, KEYSYMS[name])


def test_escape_prefix_means_alt():
    decoder = StdinDecoder()
    assert decoder.feed("\x1b") is None
    assert decoder.feed("n") == (int(Modifier.MOD1), ord("n"))
    assert decoder.feed("n") == (0, ord("n"))


def test_unknown_character_gives_nothing():
    assert StdinDecoder().feed("é") is None


def test_end_of_input():
    with pytest.raises(EOFError):
        StdinDecoder().feed("")


def test_more_than_one_character_rejected():
    with pytest.raises(ValueError):
        StdinDecoder().feed("ab")


def test_decoded_arrow_triggers_next_image():
    decoder = StdinDecoder()
    decoder.feed("\x1b")
    decoder.feed("[")
    state, keysym = decoder.feed("C")
    assert KeyMap().match(state, keysym) == "next_img"


def test_caption_typing_and_saving(tmp_path):
    image = str(tmp_path / "photo.png")
    editor = CaptionEditor(image, "captions", "")
    for char in "hi":
        assert editor.handle(0, ord(char)) is True
    assert editor.text == "hi"
    editor.handle(0, KEYSYMS["BackSpace"])
    assert editor.text == "h"
    editor.handle(int(Modifier.CONTROL), KEYSYMS["Return"])
    assert editor.text == "h\n"
    assert editor.active is True
    editor.handle(0, KEYSYMS["Return"])
    assert editor.active is False
    assert read_caption(image, "captions") == "h\n"
    assert editor.saved_path == f"{tmp_path}/captions/photo.png.txt"


def test_caption_escape_reverts(tmp_path):
    image = str(tmp_path / "photo.png")
    write_caption(image, "captions", "stored")
    editor = CaptionEditor(image, "captions", "stored")
    editor.handle(0, ord("x"))
    assert editor.text == "storedx"
    editor.handle(0, KEYSYMS["Escape"])
    assert editor.active is False
    assert editor.text == "stored"
    assert read_caption(image, "captions") == "stored"


def test_caption_ignores_no_symbol_and_inactive(tmp_path):
    editor = CaptionEditor(str(tmp_path / "a.png"), "captions", "abc")
    assert editor.handle(0, NO_SYMBOL) is False
    assert editor.handle(0, KEYSYMS["Up"]) is True
    assert editor.text == "abc"
    editor.handle(0, KEYSYMS["Escape"])
    assert editor.handle(0, ord("z")) is False
    assert editor.text == ""


def test_reload_delay_bounds():
    delay = ReloadDelay(1, 3)
    assert delay.decrease() is False
    assert delay.seconds == 1
    assert delay.increase() is True
    assert delay.increase() is True
    assert delay.seconds == 3
    assert delay.increase() is False
    assert delay.seconds == 3
    assert delay.decrease() is True
    assert delay.seconds == 2