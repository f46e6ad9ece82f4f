"""Bring a terminal in line with the virtual screen at minimal cost."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence

from .vscreen import CNONE, CTEXT, VFCHG, VFHBAD, Video, VirtualScreen


@dataclass
class TerminalCosts:
    """Approximate output costs of the terminal's line operations."""

    insert_line: int = 5
    delete_line: int = 5
    erase_eol: int = 3


@dataclass
class _Score:
    itrace: int = 0
    jtrace: int = 0
    cost: int = 0


class Terminal:
    """An in-memory terminal that applies redisplay output to a cell grid."""

    def __init__(self, nrow: int, ncol: int) -> None:
        self.nrow = nrow
        self.ncol = ncol
        self.cells = [[" "] * ncol for _ in range(nrow)]
        self.row = 0
        self.col = 0
        self.hue = CNONE
        self.written = 0
        self.flushes = 0
        self.ops: list[tuple] = []

    def _blank(self) -> list[str]:
        return [" "] * self.ncol

    def move(self, row: int, col: int) -> None:
        self.row = row
        self.col = col

    def putc(self, ch: str) -> None:
        if 0 <= self.row < self.nrow and 0 <= self.col < self.ncol:
            self.cells[self.row][self.col] = ch
        self.col += 1
        self.written += 1

    def write(self, text: Sequence[str]) -> None:
        for ch in text:
            self.putc(ch)

    def erase_eol(self) -> None:
        if 0 <= self.row < self.nrow:
            for col in range(max(self.col, 0), self.ncol):
                self.cells[self.row][col] = " "

    def erase_page(self) -> None:
        self.ops.append(("erase_page",))
        self.erase_eol()
        for row in range(max(self.row + 1, 0), self.nrow):
            self.cells[row] = self._blank()

    def set_color(self, color: int) -> None:
        self.hue = color

    def insert_lines(self, row: int, bot: int, n: int) -> None:
        """Open ``n`` blank lines at ``row``, pushing lines off at ``bot``."""
        self.ops.append(("insert", row, bot, n))
        region = self.cells[row:bot + 1]
        n = min(n, len(region))
        self.cells[row:bot + 1] = [self._blank() for _ in range(n)] + region[:len(region) - n]

    def delete_lines(self, row: int, bot: int, n: int) -> None:
        """Remove ``n`` lines at ``row``, opening blank lines at ``bot``."""
        self.ops.append(("delete", row, bot, n))
        region = self.cells[row:bot + 1]
        n = min(n, len(region))
        self.cells[row:bot + 1] = region[n:] + [self._blank() for _ in range(n)]

    def flush(self) -> None:
        self.flushes += 1

    def text(self, row: int) -> str:
        return "".join(self.cells[row])


class Redisplay:
    """Updates a terminal from a virtual screen, tracking the physical image."""

    def __init__(self, screen: VirtualScreen, terminal: Terminal,
                 costs: Optional[TerminalCosts] = None) -> None:
        self.screen = screen
        self.terminal = terminal
        self.costs = costs or TerminalCosts()
        self.score: list[list[_Score]] = []

    def compute_hash(self, video: Video) -> None:
        """Recompute a line's hash and redraw cost if they are marked stale."""
        if not video.flag & VFHBAD:
            return
        ncol = self.screen.ncol
        text = video.text
        end = ncol
        while end and text[end - 1] == " ":
            end -= 1
        video.cost = end + min(ncol - end, self.costs.erase_eol)
        h = 0
        for ch in reversed(text[:end]):
            h = (h * 33 + ord(ch)) & 0xFFFFFFFF
        video.hash = h
        video.flag &= ~VFHBAD

    def _copy(self, new: Video, old: Video) -> None:
        new.flag &= ~VFCHG
        old.flag = new.flag
        old.hash = new.hash
        old.cost = new.cost
        old.color = new.color
        old.text[:] = new.text

    @staticmethod
    def _same(a: Video, b: Video) -> bool:
        return a.color == b.color and a.hash == b.hash

    def update_line(self, row: int, new: Video, old: Video) -> None:
        """Make terminal ``row`` show ``new`` given that it shows ``old``."""
        term = self.terminal
        ncol = self.screen.ncol
        vt, pt = new.text, old.text
        if new.color != old.color:
            term.move(row, 0)
            term.set_color(new.color)
            term.write(vt[:ncol])
            term.set_color(CTEXT)
            return
        left = 0
        while left < ncol and vt[left] == pt[left]:
            left += 1
        if left == ncol:
            return
        right = ncol
        nonblank = False
        while vt[right - 1] == pt[right - 1]:
            right -= 1
            if vt[right] != " ":
                nonblank = True
        stop = right
        if not nonblank and new.color == CTEXT:
            while stop != left and vt[stop - 1] == " ":
                stop -= 1
            if right - stop <= self.costs.erase_eol:
                stop = right
        term.move(row, left)
        term.set_color(new.color)
        term.write(vt[left:stop])
        if stop != right:
            term.erase_eol()

    def set_scores(self, offs: int, size: int) -> None:
        """Fill the insert/delete/redraw cost matrix for rows offs..offs+size-1."""
        virt = self.screen.virtual
        phys = self.screen.physical
        ins, dele = self.costs.insert_line, self.costs.delete_line
        score = [[_Score() for _ in range(size + 1)] for _ in range(size + 1)]
        total = 0
        for j in range(1, size + 1):
            total += ins + virt[offs + j - 1].cost
            score[0][j] = _Score(0, j - 1, total)
        total = 0
        for i in range(1, size + 1):
            total += dele
            score[i][0] = _Score(i - 1, 0, total)
        for i in range(1, size + 1):
            old = phys[offs + i - 1]
            for j in range(1, size + 1):
                new = virt[offs + j - 1]
                best = _Score(i - 1, j, score[i - 1][j].cost)
                if j != size:
                    best.cost += dele
                cost = score[i][j - 1].cost + new.cost
                if i != size:
                    cost += ins
                if cost < best.cost:
                    best = _Score(i, j - 1, cost)
                cost = score[i - 1][j - 1].cost
                if not self._same(old, new):
                    cost += new.cost
                if cost < best.cost:
                    best = _Score(i - 1, j - 1, cost)
                score[i][j] = best
        self.score = score

    def traceback(self, offs: int, size: int, i: int, j: int) -> None:
        """Replay the cheapest path through the cost matrix onto the terminal."""
        if i == 0 and j == 0:
            return
        score = self.score
        term = self.terminal
        virt = self.screen.virtual
        itrace, jtrace = score[i][j].itrace, score[i][j].jtrace
        if itrace == i:
            ninsl = 0 if i == size else 1
            ndraw = 1
            while itrace != 0 or jtrace != 0:
                step = score[itrace][jtrace]
                if step.itrace != itrace:
                    break
                jtrace = step.jtrace
                if i != size:
                    ninsl += 1
                ndraw += 1
            self.traceback(offs, size, itrace, jtrace)
            if ninsl:
                term.set_color(CTEXT)
                term.insert_lines(offs + j - ninsl, offs + size - 1, ninsl)
            for back in range(ndraw, 0, -1):
                k = offs + j - back
                self.update_line(k, virt[k], self.screen.blanks)
            return
        if jtrace == j:
            ndell = 0 if j == size else 1
            while itrace != 0 or jtrace != 0:
                step = score[itrace][jtrace]
                if step.jtrace != jtrace:
                    break
                itrace = step.itrace
                if j != size:
                    ndell += 1
            if ndell:
                term.set_color(CTEXT)
                term.delete_lines(offs + i - ndell, offs + size - 1, ndell)
            self.traceback(offs, size, itrace, jtrace)
            return
        self.traceback(offs, size, itrace, jtrace)
        k = offs + j - 1
        self.update_line(k, virt[k], self.screen.physical[offs + i - 1])

    def _hard_update(self, rows: int) -> None:
        virt, phys = self.screen.virtual, self.screen.physical
        for i in range(rows):
            self.compute_hash(virt[i])
            self.compute_hash(phys[i])
        offs = 0
        while offs != rows and self._same(virt[offs], phys[offs]):
            self.update_line(offs, virt[offs], phys[offs])
            self._copy(virt[offs], phys[offs])
            offs += 1
        if offs == rows:
            return
        size = rows
        while size != offs and self._same(virt[size - 1], phys[size - 1]):
            self.update_line(size - 1, virt[size - 1], phys[size - 1])
            self._copy(virt[size - 1], phys[size - 1])
            size -= 1
        size -= offs
        if size == 0:
            raise RuntimeError("illegal screen size in update")
        self.set_scores(offs, size)
        self.traceback(offs, size, size, size)
        for i in range(size):
            self._copy(virt[offs + i], phys[offs + i])

    def refresh(self, cursor_row: int, cursor_col: int,
                garbage: bool = False, hard: bool = False) -> None:
        """Update the terminal, then place its cursor.

        ``garbage`` redraws everything from a cleared page; ``hard`` uses
        line insertion and deletion; otherwise only changed lines are drawn.
        """
        screen, term = self.screen, self.terminal
        rows = screen.nrow - 1
        virt, phys = screen.virtual, screen.physical
        if garbage:
            term.hue = CNONE
            term.move(0, 0)
            term.erase_page()
            for i in range(rows):
                self.update_line(i, virt[i], screen.blanks)
                self._copy(virt[i], phys[i])
        elif hard:
            self._hard_update(rows)
        else:
            for i in range(rows):
                if virt[i].flag & VFCHG:
                    self.update_line(i, virt[i], phys[i])
                    self._copy(virt[i], phys[i])
        term.move(cursor_row, cursor_col)
        term.flush()