"""Decoder for PC keyboard scan codes (set 1) into characters."""

from __future__ import annotations

from enum import IntFlag
from typing import Iterable

KBSTATP = 0x64
KBS_DIB = 0x01
KBDATAP = 0x60

NO = 0

KEY_HOME = 0xE0
KEY_END = 0xE1
KEY_UP = 0xE2
KEY_DN = 0xE3
KEY_LF = 0xE4
KEY_RT = 0xE5
KEY_PGUP = 0xE6
KEY_PGDN = 0xE7
KEY_INS = 0xE8
KEY_DEL = 0xE9


class Modifier(IntFlag):
    """Shift, lock and escape state kept between scan codes."""

    NONE = 0
    SHIFT = 1 << 0
    CTL = 1 << 1
    ALT = 1 << 2
    CAPSLOCK = 1 << 3
    NUMLOCK = 1 << 4
    SCROLLLOCK = 1 << 5
    E0ESC = 1 << 6


def ctrl(ch: str) -> int:
    """Code produced by Control plus the given key."""
    return (ord(ch) - ord("@")) & 0xFF


_SHIFTCODE = {
    0x1D: Modifier.CTL,
    0x2A: Modifier.SHIFT,
    0x36: Modifier.SHIFT,
    0x38: Modifier.ALT,
    0x9D: Modifier.CTL,
    0xB8: Modifier.ALT,
}

_TOGGLECODE = {
    0x3A: Modifier.CAPSLOCK,
    0x45: Modifier.NUMLOCK,
    0x46: Modifier.SCROLLLOCK,
}

_SPECIAL = {
    0xC8: KEY_UP, 0xD0: KEY_DN,
    0xC9: KEY_PGUP, 0xD1: KEY_PGDN,
    0xCB: KEY_LF, 0xCD: KEY_RT,
    0x97: KEY_HOME, 0xCF: KEY_END,
    0xD2: KEY_INS, 0xD3: KEY_DEL,
}

_KEYPAD = (
    "\x00" * 7 + "7"
    + "89-456+1"
    + "230." + "\x00" * 4
)


def _table(prefix: list[int], extras: dict[int, int]) -> tuple[int, ...]:
    table = prefix + [NO] * (256 - len(prefix))
    for code, value in {**_SPECIAL, **extras}.items():
        table[code] = value
    return tuple(table)


_NORMALMAP = _table(
    [ord(c) for c in (
        "\x00\x1b1234567890-=\b\t"
        "qwertyuiop[]\n\x00as"
        "dfghjkl;'`\x00\\zxcv"
        "bnm,./\x00*\x00 " + "\x00" * 6
        + _KEYPAD
    )],
    {0x9C: ord("\n"), 0xB5: ord("/")},
)

_SHIFTMAP = _table(
    [ord(c) for c in (
        "\x00\x1b!@#$%^&*()_+\b\t"
        "QWERTYUIOP{}\n\x00AS"
        "DFGHJKL:\"~\x00|ZXCV"
        "BNM<>?\x00*\x00 " + "\x00" * 6
        + _KEYPAD
    )],
    {0x9C: ord("\n"), 0xB5: ord("/")},
)

_CTLMAP = _table(
    [NO] * 16
    + [ctrl(c) for c in "QWERTYUIOP"] + [NO, NO, ord("\r"), NO, ctrl("A"), ctrl("S")]
    + [ctrl(c) for c in "DFGHJKL"] + [NO, NO, NO, NO]
    + [ctrl(c) for c in "\\ZXCV"]
    + [ctrl("B"), ctrl("N"), ctrl("M"), NO, NO, ctrl("/"), NO, NO],
    {0x9C: ord("\r"), 0xB5: ctrl("/")},
)

_CHARCODE = (_NORMALMAP, _SHIFTMAP, _CTLMAP, _CTLMAP)


class KeyboardDecoder:
    """Turns a stream of scan codes into character codes."""

    def __init__(self) -> None:
        self.state = Modifier.NONE

    def decode(self, data: int) -> int:
        """Decode one scan code; 0 means it produced no character."""
        if not 0 <= data <= 0xFF:
            raise ValueError(f"scan code out of range: {data}")

        if data == 0xE0:
            self.state |= Modifier.E0ESC
            return 0
        if data & 0x80:
            # Key released.
            if not self.state & Modifier.E0ESC:
                data &= 0x7F
            self.state &= ~(_SHIFTCODE.get(data, Modifier.NONE) | Modifier.E0ESC)
            return 0
        if self.state & Modifier.E0ESC:
            data |= 0x80
            self.state &= ~Modifier.E0ESC

        self.state |= _SHIFTCODE.get(data, Modifier.NONE)
        self.state ^= _TOGGLECODE.get(data, Modifier.NONE)
        c = _CHARCODE[self.state & (Modifier.CTL | Modifier.SHIFT)][data]
        if self.state & Modifier.CAPSLOCK:
            if ord("a") <= c <= ord("z"):
                c += ord("A") - ord("a")
            elif ord("A") <= c <= ord("Z"):
                c += ord("a") - ord("A")
        return c

    def feed(self, scancodes: Iterable[int]) -> list[int]:
        """Decode many scan codes, keeping only those that produce a character."""
        return [c for c in map(self.decode, scancodes) if c]