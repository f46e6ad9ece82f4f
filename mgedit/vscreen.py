"""Virtual screen image: lines of characters as they should appear."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Union

CNONE = 0
CTEXT = 1
CMODE = 2

VFCHG = 0x0001
VFHBAD = 0x0002
VFEXT = 0x0004

Char = Union[str, int]


def _byte(c: Char) -> int:
    if isinstance(c, str):
        c = ord(c)
    return c & 0xFF


def _is_ctrl(c: int) -> bool:
    return c < 0x20 or c == 0x7F


def _ctrl_char(c: int) -> int:
    return c ^ 0x40


def _is_printable(c: int) -> bool:
    return 0x20 <= c < 0x7F


def _octal(c: int) -> str:
    return "\\" + format(c, "o")


def _next_tabstop(col: int, tabwidth: int) -> int:
    if tabwidth < 1:
        raise ValueError(f"tab width must be positive, not {tabwidth}")
    return ((col + tabwidth) // tabwidth) * tabwidth


def display_width(text: str, tabwidth: int = 8) -> int:
    """Return the column reached after displaying ``text`` from column 0."""
    col = 0
    for ch in text:
        c = _byte(ch)
        if c == 0x09:
            col = _next_tabstop(col, tabwidth)
        elif _is_ctrl(c):
            col += 2
        elif _is_printable(c):
            col += 1
        else:
            col += len(_octal(c))
    return col


@dataclass
class Video:
    """One screen line together with its redisplay bookkeeping."""

    text: list[str] = field(default_factory=list)
    hash: int = 0
    flag: int = 0
    color: int = CNONE
    cost: int = 0


class VirtualScreen:
    """The virtual and physical screen images plus the virtual cursor.

    ``nrow`` counts the echo line, so each image holds ``nrow - 1`` lines.
    """

    def __init__(self, nrow: int, ncol: int) -> None:
        self.nrow = 0
        self.ncol = 0
        self.row = 0
        self.col = 0
        self.virtual: list[Video] = []
        self.physical: list[Video] = []
        self.blanks = Video(color=CTEXT)
        self.resize(nrow, ncol, force=True)

    def resize(self, nrow: int, ncol: int, force: bool = False) -> None:
        """Change the screen size, keeping what text still fits."""
        if nrow < 1 or ncol < 1:
            raise ValueError(f"invalid screen size {nrow}x{ncol}")
        if not force and nrow == self.nrow and ncol == self.ncol:
            return
        rows = nrow - 1
        for images in (self.virtual, self.physical):
            del images[rows:]
            images.extend(Video() for _ in range(rows - len(images)))
            for video in images:
                video.text = (video.text + [" "] * ncol)[:ncol]
        self.blanks.text = [" "] * ncol
        self.nrow = nrow
        self.ncol = ncol

    def move(self, row: int, col: int) -> None:
        """Move the virtual cursor; no range checking is done."""
        self.row = row
        self.col = col

    def putc(self, c: Char, tabwidth: int = 8) -> None:
        """Put one character, expanding tabs, control and non-printing bytes."""
        c = _byte(c)
        text = self.virtual[self.row].text
        if self.col >= self.ncol:
            text[self.ncol - 1] = "$"
        elif c == 0x09:
            target = _next_tabstop(self.col, tabwidth)
            while True:
                self.putc(" ", tabwidth)
                if not (self.col < self.ncol and self.col < target):
                    break
        elif _is_ctrl(c):
            self.putc("^", tabwidth)
            self.putc(_ctrl_char(c), tabwidth)
        elif _is_printable(c):
            text[self.col] = chr(c)
            self.col += 1
        else:
            self.puts(_octal(c), tabwidth)

    def pute(self, c: Char, tabwidth: int, lbound: int) -> None:
        """Put one character of a line scrolled left by ``lbound`` columns."""
        c = _byte(c)
        text = self.virtual[self.row].text
        if self.col >= self.ncol:
            text[self.ncol - 1] = "$"
        elif c == 0x09:
            target = _next_tabstop(self.col + lbound, tabwidth)
            while True:
                self.pute(" ", tabwidth, lbound)
                if not (self.col + lbound < target and self.col < self.ncol):
                    break
        elif _is_ctrl(c):
            self.pute("^", tabwidth, lbound)
            self.pute(_ctrl_char(c), tabwidth, lbound)
        elif _is_printable(c):
            if self.col >= 0:
                text[self.col] = chr(c)
            self.col += 1
        else:
            for ch in _octal(c):
                self.pute(ch, tabwidth, lbound)

    def puts(self, s: str, tabwidth: int = 8) -> int:
        """Put a string and return how many characters it held."""
        for ch in s:
            self.putc(ch, tabwidth)
        return len(s)

    def eeol(self) -> None:
        """Blank the current line from the cursor to the right margin."""
        text = self.virtual[self.row].text
        for col in range(max(self.col, 0), self.ncol):
            text[col] = " "
        self.col = max(self.col, self.ncol)

    def line(self, row: int) -> str:
        """Return the text of a virtual screen line."""
        return "".join(self.virtual[row].text)