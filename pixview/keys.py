"""Key bindings: defaults, configuration file parsing and matching."""

from __future__ import annotations

import logging
import os
import string
from dataclasses import dataclass, field
from enum import IntFlag
from typing import Iterable, Iterator, Mapping

_log = logging.getLogger(__name__)

NO_SYMBOL = 0
SYSTEM_KEYS_FILE = "/etc/pixview/keys"


class Modifier(IntFlag):
    """Modifier key masks, with the values the X server uses."""

    NONE = 0
    SHIFT = 1
    CONTROL = 4
    MOD1 = 8
    MOD4 = 64


_ASCII_NAMES = {
    "space": 0x20, "exclam": 0x21, "quotedbl": 0x22, "numbersign": 0x23,
    "dollar": 0x24, "percent": 0x25, "ampersand": 0x26, "apostrophe": 0x27,
    "parenleft": 0x28, "parenright": 0x29, "asterisk": 0x2A, "plus": 0x2B,
    "comma": 0x2C, "minus": 0x2D, "period": 0x2E, "slash": 0x2F,
    "colon": 0x3A, "semicolon": 0x3B, "less": 0x3C, "equal": 0x3D,
    "greater": 0x3E, "question": 0x3F, "at": 0x40, "bracketleft": 0x5B,
    "backslash": 0x5C, "bracketright": 0x5D, "asciicircum": 0x5E,
    "underscore": 0x5F, "grave": 0x60, "braceleft": 0x7B, "bar": 0x7C,
    "braceright": 0x7D, "asciitilde": 0x7E,
}

_SPECIAL_NAMES = {
    "BackSpace": 0xFF08, "Tab": 0xFF09, "Linefeed": 0xFF0A, "Return": 0xFF0D,
    "Escape": 0xFF1B, "Delete": 0xFFFF, "Insert": 0xFF63,
    "Home": 0xFF50, "Left": 0xFF51, "Up": 0xFF52, "Right": 0xFF53,
    "Down": 0xFF54, "Prior": 0xFF55, "Page_Up": 0xFF55, "Next": 0xFF56,
    "Page_Down": 0xFF56, "End": 0xFF57,
    "KP_Enter": 0xFF8D, "KP_Home": 0xFF95, "KP_Left": 0xFF96, "KP_Up": 0xFF97,
    "KP_Right": 0xFF98, "KP_Down": 0xFF99, "KP_Prior": 0xFF9A,
    "KP_Page_Up": 0xFF9A, "KP_Next": 0xFF9B, "KP_Page_Down": 0xFF9B,
    "KP_End": 0xFF9C, "KP_Begin": 0xFF9D, "KP_Insert": 0xFF9E,
    "KP_Delete": 0xFF9F, "KP_Multiply": 0xFFAA, "KP_Add": 0xFFAB,
    "KP_Separator": 0xFFAC, "KP_Subtract": 0xFFAD, "KP_Decimal": 0xFFAE,
    "KP_Divide": 0xFFAF,
}

KEYSYMS: dict[str, int] = {
    **_ASCII_NAMES,
    **{ch: ord(ch) for ch in string.digits + string.ascii_letters},
    **{f"KP_{digit}": 0xFFB0 + digit for digit in range(10)},
    **{f"F{number}": 0xFFBE + number - 1 for number in range(1, 13)},
    **_SPECIAL_NAMES,
}


def _string_to_keysym(name: str) -> int:
    if name in KEYSYMS:
        return KEYSYMS[name]
    hexdigits = set(string.hexdigits)
    if name.startswith("0x") and len(name) > 2 and set(name[2:]) <= hexdigits:
        return int(name[2:], 16)
    if name.startswith("U") and len(name) > 1 and set(name[1:]) <= hexdigits:
        value = int(name[1:], 16)
        if 0x20 <= value <= 0x7E or 0xA0 <= value <= 0xFF:
            return value
        return 0x01000000 | value
    return NO_SYMBOL


def _ignores_shift(keysym: int) -> bool:
    """Printable, non-space characters already carry their shift state."""
    return 0x21 <= keysym <= 0x7E


_MODIFIER_PREFIXES = {
    "C": Modifier.CONTROL,
    "S": Modifier.SHIFT,
    "1": Modifier.MOD1,
    "4": Modifier.MOD4,
}


def parse_key_spec(spec: str) -> tuple[int, int]:
    """Parse a key such as ``C-S-Left`` into ``(modifier state, keysym)``.

    An empty spec gives ``(0, 0)``. Unknown modifiers and key names are
    logged and ignored; an unknown key name yields keysym 0.
    """
    if not spec:
        return 0, NO_SYMBOL
    mod = Modifier.NONE
    cur = spec
    while len(cur) > 1 and cur[1] == "-":
        prefix = _MODIFIER_PREFIXES.get(cur[0])
        if prefix is None:
            _log.warning('keys: invalid modifier %s in "%s"', cur[0], spec)
        else:
            mod |= prefix
        cur = cur[2:]

    keysym = _string_to_keysym(cur)
    if _ignores_shift(keysym):
        mod &= ~Modifier.SHIFT
    if keysym == NO_SYMBOL:
        _log.warning("keys: Invalid keysym: %s", cur)
    return int(mod), keysym


@dataclass
class KeyBinding:
    """Up to three key combinations plus a mouse button bound to one action."""

    name: str
    keysyms: list[int] = field(default_factory=lambda: [0, 0, 0])
    keystates: list[int] = field(default_factory=lambda: [0, 0, 0])
    state: int = 0
    button: int = 0

    def matches(self, state: int, keysym: int, button: int = 0) -> bool:
        """Return True if the key (or, with keysym 0, the button) triggers this binding."""
        if keysym != NO_SYMBOL:
            for bound_sym, bound_state in zip(self.keysyms, self.keystates):
                if bound_sym == keysym and bound_state == state:
                    return True
                if bound_sym == 0:
                    return False
            return False
        return self.state == state and self.button == button


_C = int(Modifier.CONTROL)
_M1 = int(Modifier.MOD1)
_K = KEYSYMS

_DEFAULTS: tuple[tuple[str, tuple[int, int, int, int, int, int]], ...] = (
    ("menu_close", (0, _K["Escape"], 0, 0, 0, 0)),
    ("menu_parent", (0, _K["Left"], 0, 0, 0, 0)),
    ("menu_down", (0, _K["Down"], 0, 0, 0, 0)),
    ("menu_up", (0, _K["Up"], 0, 0, 0, 0)),
    ("menu_child", (0, _K["Right"], 0, 0, 0, 0)),
    ("menu_select", (0, _K["Return"], 0, _K["space"], 0, 0)),
    ("scroll_left", (0, _K["KP_Left"], _C, _K["Left"], 0, 0)),
    ("scroll_right", (0, _K["KP_Right"], _C, _K["Right"], 0, 0)),
    ("scroll_down", (0, _K["KP_Down"], _C, _K["Down"], 0, 0)),
    ("scroll_up", (0, _K["KP_Up"], _C, _K["Up"], 0, 0)),
    ("scroll_left_page", (_M1, _K["Left"], 0, 0, 0, 0)),
    ("scroll_right_page", (_M1, _K["Right"], 0, 0, 0, 0)),
    ("scroll_down_page", (_M1, _K["Down"], 0, 0, 0, 0)),
    ("scroll_up_page", (_M1, _K["Up"], 0, 0, 0, 0)),
    ("prev_img", (0, _K["Left"], 0, _K["p"], 0, _K["BackSpace"])),
    ("next_img", (0, _K["Right"], 0, _K["n"], 0, _K["space"])),
    ("jump_back", (0, _K["Page_Up"], 0, _K["KP_Page_Up"], 0, 0)),
    ("jump_fwd", (0, _K["Page_Down"], 0, _K["KP_Page_Down"], 0, 0)),
    ("prev_dir", (0, _K["bracketleft"], 0, 0, 0, 0)),
    ("next_dir", (0, _K["bracketright"], 0, 0, 0, 0)),
    ("jump_random", (0, _K["z"], 0, 0, 0, 0)),
    ("quit", (0, _K["Escape"], 0, _K["q"], 0, 0)),
    ("close", (0, _K["x"], 0, 0, 0, 0)),
    ("remove", (0, _K["Delete"], 0, 0, 0, 0)),
    ("delete", (_C, _K["Delete"], 0, 0, 0, 0)),
    ("jump_first", (0, _K["Home"], 0, _K["KP_Home"], 0, 0)),
    ("jump_last", (0, _K["End"], 0, _K["KP_End"], 0, 0)),
    ("action_0", (0, _K["Return"], 0, _K["0"], 0, _K["KP_0"])),
    *(
        (f"action_{digit}", (0, _K[str(digit)], 0, _K[f"KP_{digit}"], 0, 0))
        for digit in range(1, 10)
    ),
    ("zoom_in", (0, _K["Up"], 0, _K["KP_Add"], 0, 0)),
    ("zoom_out", (0, _K["Down"], 0, _K["KP_Subtract"], 0, 0)),
    ("zoom_default", (0, _K["KP_Multiply"], 0, _K["asterisk"], 0, 0)),
    ("zoom_fit", (0, _K["KP_Divide"], 0, _K["slash"], 0, 0)),
    ("zoom_fill", (0, _K["exclam"], 0, 0, 0, 0)),
    ("size_to_image", (0, _K["w"], 0, 0, 0, 0)),
    ("render", (0, _K["KP_Begin"], 0, _K["R"], 0, 0)),
    ("toggle_actions", (0, _K["a"], 0, 0, 0, 0)),
    ("toggle_aliasing", (0, _K["A"], 0, 0, 0, 0)),
    ("toggle_auto_zoom", (0, _K["Z"], 0, 0, 0, 0)),
    ("toggle_filenames", (0, _K["d"], 0, 0, 0, 0)),
    ("toggle_info", (0, _K["i"], 0, 0, 0, 0)),
    ("toggle_pointer", (0, _K["o"], 0, 0, 0, 0)),
    ("toggle_caption", (0, _K["c"], 0, 0, 0, 0)),
    ("toggle_pause", (0, _K["h"], 0, 0, 0, 0)),
    ("toggle_menu", (0, _K["m"], 0, 0, 0, 0)),
    ("toggle_fullscreen", (0, _K["f"], 0, 0, 0, 0)),
    ("reload_image", (0, _K["r"], 0, 0, 0, 0)),
    ("save_image", (0, _K["s"], 0, 0, 0, 0)),
    ("save_filelist", (0, _K["L"], 0, 0, 0, 0)),
    ("orient_1", (0, _K["greater"], 0, 0, 0, 0)),
    ("orient_3", (0, _K["less"], 0, 0, 0, 0)),
    ("flip", (0, _K["underscore"], 0, 0, 0, 0)),
    ("mirror", (0, _K["bar"], 0, 0, 0, 0)),
    ("reload_minus", (0, _K["minus"], 0, 0, 0, 0)),
    ("reload_plus", (0, _K["plus"], 0, 0, 0, 0)),
    ("toggle_keep_vp", (0, _K["k"], 0, 0, 0, 0)),
    ("toggle_fixed_geometry", (0, _K["g"], 0, 0, 0, 0)),
    ("pan", (0, 0, 0, 0, 0, 0)),
    ("zoom", (0, 0, 0, 0, 0, 0)),
    ("blur", (0, 0, 0, 0, 0, 0)),
    ("rotate", (0, 0, 0, 0, 0, 0)),
)

# The order in which the main key handler tests the actions.
_GENERIC_ORDER = (
    "next_img", "prev_img",
    "scroll_right", "scroll_left", "scroll_down", "scroll_up",
    "scroll_right_page", "scroll_left_page", "scroll_down_page", "scroll_up_page",
    "jump_back", "jump_fwd", "next_dir", "prev_dir",
    "quit", "delete", "remove", "jump_first", "jump_last",
    *(f"action_{digit}" for digit in range(10)),
    "zoom_in", "zoom_out", "zoom_default", "zoom_fit", "zoom_fill",
    "render", "toggle_actions", "toggle_aliasing", "toggle_auto_zoom",
    "toggle_filenames", "toggle_info", "toggle_pointer", "jump_random",
    "toggle_caption", "reload_image", "toggle_pause", "save_image",
    "save_filelist", "size_to_image", "toggle_menu", "close",
    "orient_1", "orient_3", "flip", "mirror", "toggle_fullscreen",
    "reload_plus", "reload_minus", "toggle_keep_vp", "toggle_fixed_geometry",
)

_FIELD_WIDTH = 31


def _scan_fields(line: str) -> list[str]:
    """Split a line the way four width-limited string conversions would."""
    fields: list[str] = []
    for token in line.split():
        fields.extend(token[start:start + _FIELD_WIDTH] for start in range(0, len(token), _FIELD_WIDTH))
        if len(fields) >= 4:
            break
    return fields[:4]


class KeyMap:
    """The table of key bindings, starting from the built-in defaults."""

    def __init__(self) -> None:
        self._bindings: dict[str, KeyBinding] = {}
        for name, (s0, y0, s1, y1, s2, y2) in _DEFAULTS:
            self._bindings[name] = KeyBinding(
                name=name, keysyms=[y0, y1, y2], keystates=[s0, s1, s2]
            )

    def __iter__(self) -> Iterator[KeyBinding]:
        return iter(self._bindings.values())

    def __len__(self) -> int:
        return len(self._bindings)

    def binding(self, action: str) -> KeyBinding:
        """Return the binding of ``action``; raise KeyError for unknown actions."""
        try:
            return self._bindings[action]
        except KeyError:
            raise KeyError(action) from None

    def load_config(self, lines: Iterable[str]) -> None:
        """Apply ``action key1 [key2 [key3]]`` lines; ``#`` starts a comment line."""
        for line in lines:
            if line.startswith("#"):
                continue
            fields = _scan_fields(line)
            if not fields:
                continue
            action, *specs = fields
            specs += [""] * (3 - len(specs))
            try:
                binding = self.binding(action)
            except KeyError:
                _log.warning("keys: Invalid action: %s", action)
                continue
            for index, spec in enumerate(specs):
                state, keysym = parse_key_spec(spec)
                binding.keysyms[index] = keysym
                if spec:
                    binding.keystates[index] = state

    def load_default_config(self, environ: Mapping[str, str] | None = None) -> str | None:
        """Load the user's key file, or the system one if the user has none.

        The user file is ``$XDG_CONFIG_HOME/pixview/keys`` or
        ``$HOME/.config/pixview/keys``. Returns the path loaded, or None.
        """
        env = os.environ if environ is None else environ
        confhome = env.get("XDG_CONFIG_HOME")
        home = env.get("HOME")
        if confhome:
            user_path = f"{confhome}/pixview/keys"
        elif home:
            user_path = f"{home}/.config/pixview/keys"
        else:
            return None

        for path in (user_path, SYSTEM_KEYS_FILE):
            try:
                with open(path, encoding="utf-8", errors="replace") as handle:
                    self.load_config(handle)
            except OSError:
                continue
            return path
        return None

    def is_pressed(self, action: str, state: int, keysym: int, button: int = 0) -> bool:
        """Return True if the key or button triggers ``action``."""
        return self.binding(action).matches(state, keysym, button)

    def match(self, state: int, keysym: int, button: int = 0) -> str | None:
        """Return the action the main key handler runs for this key, or None.

        Menu navigation and mouse-only actions are not considered.
        """
        for action in _GENERIC_ORDER:
            if self._bindings[action].matches(state, keysym, button):
                return action
        return None