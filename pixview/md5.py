"""A self-contained MD5 message digest (RFC 1321)."""

from __future__ import annotations

import math
import struct

_INITIAL_STATE = (0x67452301, 0xEFCDAB89, 0x98BADCFE, 0x10325476)
_MASK = 0xFFFFFFFF
_BLOCK = 64

_SINE_TABLE = tuple(int(abs(math.sin(i)) * 2**32) & _MASK for i in range(1, 65))

_SHIFTS = (
    (7, 12, 17, 22),
    (5, 9, 14, 20),
    (4, 11, 16, 23),
    (6, 10, 15, 21),
)


def _rotate_left(value: int, count: int) -> int:
    value &= _MASK
    return ((value << count) | (value >> (32 - count))) & _MASK


def _mix(step: int, b: int, c: int, d: int) -> tuple[int, int]:
    """Return the round function value and message word index for a step."""
    rnd = step // 16
    if rnd == 0:
        return (b & c) | (~b & d), step
    if rnd == 1:
        return (b & d) | (c & ~d), (5 * step + 1) % 16
    if rnd == 2:
        return b ^ c ^ d, (3 * step + 5) % 16
    return c ^ (b | (~d & _MASK)), (7 * step) % 16


def _compress(state: tuple[int, int, int, int], block: bytes) -> tuple[int, int, int, int]:
    words = struct.unpack("<16I", block)
    a, b, c, d = state
    for step in range(64):
        value, index = _mix(step, b, c, d)
        total = (a + value + words[index] + _SINE_TABLE[step]) & _MASK
        shift = _SHIFTS[step // 16][step % 4]
        a, d, c, b = d, c, b, (b + _rotate_left(total, shift)) & _MASK
    return (
        (state[0] + a) & _MASK,
        (state[1] + b) & _MASK,
        (state[2] + c) & _MASK,
        (state[3] + d) & _MASK,
    )


class MD5:
    """Incremental MD5 hasher with a hashlib-like interface."""

    name = "md5"
    digest_size = 16
    block_size = _BLOCK

    def __init__(self, data: bytes = b"") -> None:
        self._state = _INITIAL_STATE
        self._pending = b""
        self._length = 0
        if data:
            self.update(data)

    def update(self, data: bytes) -> None:
        """Feed more bytes into the digest."""
        if isinstance(data, str):
            raise TypeError("Strings must be encoded before hashing")
        chunk = bytes(data)
        self._length += len(chunk)
        buffer = self._pending + chunk
        full = len(buffer) - len(buffer) % _BLOCK
        state = self._state
        for start in range(0, full, _BLOCK):
            state = _compress(state, buffer[start:start + _BLOCK])
        self._state = state
        self._pending = buffer[full:]

    def digest(self) -> bytes:
        """Return the 16-byte digest of everything fed so far."""
        bit_length = (self._length * 8) & 0xFFFFFFFFFFFFFFFF
        padding = b"\x80" + b"\x00" * ((55 - self._length) % _BLOCK)
        tail = self._pending + padding + struct.pack("<Q", bit_length)
        state = self._state
        for start in range(0, len(tail), _BLOCK):
            state = _compress(state, tail[start:start + _BLOCK])
        return struct.pack("<4I", *state)

    def hexdigest(self) -> str:
        """Return the digest as a lower-case hexadecimal string."""
        return self.digest().hex()

    def copy(self) -> "MD5":
        """Return an independent hasher with the same state."""
        clone = MD5()
        clone._state = self._state
        clone._pending = self._pending
        clone._length = self._length
        return clone


def md5_hex(data: bytes | str) -> str:
    """Return the hexadecimal MD5 of bytes, or of a string encoded as UTF-8."""
    if isinstance(data, str):
        data = data.encode("utf-8")
    return MD5(data).hexdigest()