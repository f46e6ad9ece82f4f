"""Mode line layout and the display options that shape it."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Callable, Optional

from .vscreen import CMODE, VFCHG, VFHBAD, VirtualScreen

_NAME_COLUMN_END = 27
_NUMBERS_COLUMN_END = 35
_NUMBER_FIELD_SIZE = 21


@dataclass
class DisplayOptions:
    """Switches for what the mode line shows.

    Every toggle marks the screen as garbage so it is fully redrawn.
    """

    line_numbers: bool = True
    column_numbers: bool = True
    show_time: bool = False
    garbage: bool = True
    clock: Callable[[], time.struct_time] = field(default=time.localtime, repr=False)

    @staticmethod
    def _toggled(current: bool, n: Optional[int]) -> bool:
        return (not current) if n is None else n > 0

    def toggle_line_numbers(self, n: Optional[int] = None) -> bool:
        """Flip line numbers, or set them on when ``n > 0`` if ``n`` is given."""
        self.line_numbers = self._toggled(self.line_numbers, n)
        self.garbage = True
        return self.line_numbers

    def toggle_column_numbers(self, n: Optional[int] = None) -> bool:
        """Flip column numbers, or set them on when ``n > 0`` if ``n`` is given."""
        self.column_numbers = self._toggled(self.column_numbers, n)
        self.garbage = True
        return self.column_numbers

    def toggle_time(self, n: Optional[int] = None) -> bool:
        """Flip the clock, or set it on when ``n > 0`` if ``n`` is given."""
        self.show_time = self._toggled(self.show_time, n)
        self.garbage = True
        return self.show_time


@dataclass
class ModelineInfo:
    """What a window's mode line describes."""

    buffer_name: str = ""
    readonly: bool = False
    changed: bool = False
    modes: tuple[str, ...] = ("fundamental",)
    dotline: int = 1
    colpos: int = 0
    macro_def: bool = False
    global_wd: bool = False
    tabwidth: int = 8


def _pad(screen: VirtualScreen, n: int, target: int, tabwidth: int) -> int:
    while n < target:
        screen.putc(" ", tabwidth)
        n += 1
    return n


def _status_flags(info: ModelineInfo) -> str:
    if info.readonly:
        return "%*" if info.changed else "%%"
    return "**" if info.changed else "--"


def _number_field(info: ModelineInfo, options: DisplayOptions) -> str:
    if options.line_numbers and options.column_numbers:
        return f"({info.dotline},{info.colpos})  "
    if options.line_numbers:
        return f"L{info.dotline}  "
    if options.column_numbers:
        return f"C{info.colpos}  "
    return ""


def render_modeline(
    screen: VirtualScreen,
    row: int,
    info: ModelineInfo,
    options: DisplayOptions,
    color: int = CMODE,
) -> str:
    """Draw the mode line into virtual screen ``row`` and return its text."""
    if not info.modes:
        raise ValueError("a buffer needs at least one mode")
    tw = info.tabwidth
    video = screen.virtual[row]
    video.color = color
    video.flag |= VFCHG | VFHBAD
    screen.move(row, 0)

    screen.puts("-:" + _status_flags(info) + "- ", tw)
    n = 6
    if info.buffer_name:
        n += screen.puts(info.buffer_name, tw)
        n += screen.puts("  ", tw)
    n = _pad(screen, n, _NAME_COLUMN_END, tw)

    numbers = _number_field(info, options)
    if numbers and len(numbers) < _NUMBER_FIELD_SIZE:
        n += screen.puts(numbers, tw)
    n = _pad(screen, n, _NUMBERS_COLUMN_END, tw)

    screen.putc("(", tw)
    n += 1
    for index, mode in enumerate(info.modes):
        if index:
            screen.putc(" ", tw)
            n += 1
        screen.puts(mode[:1].upper(), tw)
        n += screen.puts(mode[1:], tw) + 1
    if info.macro_def:
        n += screen.puts(" def", tw)
    if info.global_wd:
        n += screen.puts(" gwd", tw)
    screen.putc(")", tw)
    n += 1

    if options.show_time:
        n += screen.puts(time.strftime("  %H:%M", options.clock()), tw)

    _pad(screen, n, screen.ncol, tw)
    return screen.line(row)