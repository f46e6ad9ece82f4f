"""Echo line: prompts, answers, messages and one-line input with completion."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Callable, Iterable, Iterator, Optional, Sequence, Union

Key = Union[str, int]
Completer = Callable[[str], Iterable[str]]

_HUGE = 1000
_TAB = 0x09
_LF = 0x0A
_CR = 0x0D
_SPACE = 0x20
_NEWLINE = "\n"

_KEY_LEFT = "\x1b[D"
_KEY_RIGHT = "\x1b[C"

MSG_NO_MATCH = " [No match]"
MSG_AMBIGUOUS = " [Ambiguous. Ctrl-G to cancel]"
MSG_TOO_LONG = "Line too long. Press Control-g to escape."

_KEY_NAMES = {
    0x20: "SPC",
    0x09: "TAB",
    0x0A: "LFD",
    0x0D: "RET",
    0x1B: "ESC",
    0x7F: "DEL",
}


def _code(key: Key) -> int:
    if isinstance(key, str):
        if len(key) != 1:
            raise ValueError(f"a key is one character, not {key!r}")
        return ord(key)
    return key


def _ctrl(ch: str) -> int:
    return ord(ch) ^ 0x40


def _is_ctrl(c: int) -> bool:
    return (c & 0xFF) < 0x20 or c == 0x7F


def _is_word(ch: str) -> bool:
    return ch.isalnum() or ch == "_"


def _key_name(key: Key) -> str:
    c = _code(key)
    if c in _KEY_NAMES:
        return _KEY_NAMES[c]
    if c < 0x20:
        return "C-" + chr(c ^ 0x40).lower()
    return chr(c)


class Answer(enum.Enum):
    """The reply to a question asked on the echo line."""

    YES = "yes"
    NO = "no"
    REVERT = "revert"
    ABORT = "abort"


@dataclass(frozen=True)
class CompletionResult:
    """The outcome of completing typed text against a list of names.

    ``extra`` is how many characters were added; -1 marks an exact match
    confirmed with return.
    """

    matched: bool
    text: str
    extra: int
    message: Optional[str] = None


class EchoLine:
    """The echo line of a screen ``ncol`` columns wide."""

    def __init__(self, ncol: int) -> None:
        self.ncol = ncol
        self._chars: list[str] = []
        self.present = False

    @property
    def col(self) -> int:
        return len(self._chars)

    @property
    def text(self) -> str:
        return "".join(self._chars)

    def _putc(self, ch: Key) -> None:
        c = _code(ch)
        if self.col + 2 < self.ncol:
            if _is_ctrl(c):
                self._putc("^")
                c ^= 0x40
            self._chars.append(chr(c))

    def put(self, text: str) -> str:
        """Append ``text``, showing control characters as ``^X``; return the line."""
        for ch in text:
            self._putc(ch)
        self.present = True
        return self.text

    def clear(self) -> None:
        """Erase the echo line."""
        self._chars.clear()
        self.present = False


def format_message(
    fmt: str,
    args: Sequence[object] = (),
    keyname: Optional[Callable[[Key], str]] = None,
) -> str:
    """Format an echo-line message.

    ``%c`` names a key, ``%k`` names each key of a key sequence (given as an
    argument), ``%d`` and ``%ld`` print decimals, ``%o`` octal, ``%p`` a
    pointer-like hex number and ``%s`` a string; anything else after ``%``
    is copied as is.
    """
    keyname = keyname or _key_name
    values: Iterator[object] = iter(args)

    def arg() -> object:
        try:
            return next(values)
        except StopIteration:
            raise ValueError(f"not enough arguments for {fmt!r}") from None

    out: list[str] = []
    i = 0
    while i < len(fmt):
        ch = fmt[i]
        i += 1
        if ch != "%":
            out.append(ch)
            continue
        if i >= len(fmt):
            break
        spec = fmt[i]
        i += 1
        if spec == "c":
            out.append(keyname(arg()))  # type: ignore[arg-type]
        elif spec == "k":
            out.append(" ".join(keyname(k) for k in arg()))  # type: ignore[union-attr]
        elif spec == "d":
            out.append(str(int(arg())))  # type: ignore[call-overload]
        elif spec == "o":
            value = int(arg())  # type: ignore[call-overload]
            out.append(("-" if value < 0 else "") + format(abs(value), "o"))
        elif spec == "p":
            out.append(f"{int(arg()):#x}")  # type: ignore[call-overload]
        elif spec == "s":
            out.append(str(arg()))
        elif spec == "l":
            if i >= len(fmt):
                break
            spec = fmt[i]
            i += 1
            if spec == "d":
                out.append(str(int(arg())))  # type: ignore[call-overload]
            else:
                out.append(spec)
        else:
            out.append(spec)
    return "".join(out)


def parse_yorn(key: Key) -> Optional[Answer]:
    """Interpret a key typed to a y-or-n question; None means ask again."""
    c = _code(key)
    if c in (ord("y"), ord("Y"), _SPACE):
        return Answer.YES
    if c in (ord("n"), ord("N"), _CR):
        return Answer.NO
    if c == _ctrl("G"):
        return Answer.ABORT
    return None


def parse_ynr(key: Key) -> Optional[Answer]:
    """Interpret a key typed to a y, n or r question; None means ask again."""
    c = _code(key)
    if c in (ord("r"), ord("R")):
        return Answer.REVERT
    return parse_yorn(c)


def parse_yesno(text: Optional[str]) -> Optional[Answer]:
    """Interpret a typed yes-or-no reply; None input aborts, other text re-asks."""
    if text is None:
        return Answer.ABORT
    lowered = text.lower()
    if lowered == "yes":
        return Answer.YES
    if lowered == "no":
        return Answer.NO
    return None


def common_extra(name1: str, name2: str, pos: int, word_only: bool = False) -> int:
    """Return how many characters from ``pos`` both names share.

    With ``word_only`` the run stops just after the first non-word character.
    """
    i = pos
    while True:
        a = name1[i] if i < len(name1) else ""
        b = name2[i] if i < len(name2) else ""
        if a != b or a == "":
            break
        i += 1
        if word_only and not _is_word(a):
            break
    return i - pos


def complete(candidates: Iterable[str], text: str, key: Key) -> CompletionResult:
    """Complete ``text`` against ``candidates`` for a space, tab or return key."""
    c = _code(key)
    if c == _SPACE:
        word_only = True
    elif c in (_TAB, _CR):
        word_only = False
    else:
        raise ValueError(f"cannot complete on key {key!r}")
    pos = len(text)
    nhits = 0
    nxtra = _HUGE
    best = ""
    for name in candidates:
        if not name.startswith(text):
            continue
        if nhits == 0:
            best = name
        nhits += 1
        if len(name) == pos:
            nxtra = -1
        else:
            nxtra = min(nxtra, common_extra(name, best, pos, word_only))
            best = name
    if nhits == 0:
        return CompletionResult(False, text, 0, MSG_NO_MATCH)
    if nhits > 1 and nxtra == 0:
        return CompletionResult(True, text, 0, MSG_AMBIGUOUS)
    if nxtra < 0 and nhits > 1 and c == _SPACE:
        nxtra = 1
    added = best[pos:pos + nxtra] if nxtra > 0 else ""
    extra = 0 if nxtra < 0 and c != _CR else nxtra
    return CompletionResult(True, text + added, extra)


def completion_columns(
    candidates: Iterable[str], prefix: str, ncol: int, preflen: int = 0
) -> list[str]:
    """Lay out the sorted names matching ``prefix`` in columns ``ncol`` wide.

    The first ``preflen`` characters of every name are not shown.
    """
    matches = [name for name in sorted(candidates) if name.startswith(prefix)]
    maxwidth = max((len(name) for name in matches), default=0) + 1 - preflen
    linesize = max(ncol, maxwidth) + 1
    lines: list[str] = []
    line = ""
    width = 0
    for name in matches:
        if width + maxwidth > ncol:
            lines.append(line)
            line = ""
            width = 0
        line = (line + name[preflen:])[:linesize - 1]
        width += maxwidth
        if len(line) < width < linesize:
            line = line.ljust(width)
    if width > 0:
        lines.append(line)
    return lines


class LineEditor:
    """Reads one line of input key by key, with Emacs-style editing.

    ``feed`` returns True once input is finished; ``result`` then holds the
    text, or None if the input was aborted.
    """

    def __init__(
        self,
        initial: str = "",
        max_len: Optional[int] = None,
        kill_text: str = "",
        allow_empty: bool = False,
        completer: Optional[Completer] = None,
    ) -> None:
        self._buf = list(initial)
        self.cursor = len(self._buf)
        self.max_len = max_len
        self.kill_text = kill_text
        self.allow_empty = allow_empty
        self.completer = completer
        self.done = False
        self.result: Optional[str] = None
        self.message: Optional[str] = None
        self.completions: Optional[list[str]] = None
        self._listed = False
        self._quote = False
        self._esc = 0
        self._ml = 0
        self._mr = 0

    def text(self) -> str:
        """Return the text typed so far."""
        return "".join(self._buf)

    def _insert(self, c: int) -> bool:
        if self.max_len is not None and len(self._buf) + 1 >= self.max_len:
            self.message = MSG_TOO_LONG
            return False
        self._buf.insert(self.cursor, chr(c))
        self.cursor += 1
        return True

    def _abort(self) -> bool:
        self.done = True
        self.result = None
        return True

    def _tab(self) -> None:
        assert self.completer is not None
        text = self.text()
        candidates = list(self.completer(text))
        if self._listed:
            self.completions = sorted(n for n in candidates if n.startswith(text))
            return
        res = complete(candidates, text, _TAB)
        self.message = res.message
        if res.matched:
            self._listed = True
            self._buf = list(res.text)
            self.cursor = len(self._buf)

    def _finish(self) -> bool:
        if not self._buf and not self.allow_empty:
            return self._abort()
        if self.completer is not None:
            text = self.text()
            res = complete(list(self.completer(text)), text, _CR)
            self.message = res.message
            if not res.matched:
                return False
            if res.extra > 0:
                self._buf = list(res.text)
        self.done = True
        self.result = self.text()
        return True

    def _escape(self, c: int) -> Optional[int]:
        match = 0
        if self._ml == self._esc and self._ml < len(_KEY_LEFT) and c == ord(_KEY_LEFT[self._ml]):
            match += 1
            self._ml += 1
            if self._ml == len(_KEY_LEFT):
                c = _ctrl("B")
                self._esc = 0
        if self._mr == self._esc and self._mr < len(_KEY_RIGHT) and c == ord(_KEY_RIGHT[self._mr]):
            match += 1
            self._mr += 1
            if self._mr == len(_KEY_RIGHT):
                c = _ctrl("F")
                self._esc = 0
        if not match:
            self._esc = 0
            return None
        if self._esc > 0:
            self._esc += 1
            return None
        return c

    def _kill_back(self, start: int) -> None:
        del self._buf[start:self.cursor]
        self.cursor = start

    def feed(self, key: Key) -> bool:
        """Process one key; return True when the input is finished."""
        if self.done:
            raise RuntimeError("input already finished")
        c = _code(key)
        if self._quote:
            self._quote = False
            self._insert(c)
            return False
        if self.completer is not None and c == _TAB:
            self._tab()
            return False
        self._listed = False
        if self._esc > 0:
            escaped = self._escape(c)
            if escaped is None:
                return False
            c = escaped

        buf = self._buf
        if c == _ctrl("A"):
            self.cursor = 0
        elif c == _ctrl("D"):
            if self.cursor != len(buf):
                del buf[self.cursor]
        elif c == _ctrl("E"):
            self.cursor = len(buf)
        elif c == _ctrl("B"):
            self.cursor = max(self.cursor - 1, 0)
        elif c == _ctrl("F"):
            self.cursor = min(self.cursor + 1, len(buf))
        elif c == _ctrl("Y"):
            for ch in self.kill_text:
                if ch == _NEWLINE or not self._insert(ord(ch)):
                    break
        elif c == _ctrl("K"):
            self.kill_text = "".join(buf[self.cursor:])
            del buf[self.cursor:]
        elif c == _ctrl("["):
            self._ml = self._mr = self._esc = 1
        elif c in (_LF, _CR):
            return self._finish()
        elif c == _ctrl("G"):
            return self._abort()
        elif c in (_ctrl("H"), _ctrl("?")):
            if self.cursor:
                self._kill_back(self.cursor - 1)
        elif c in (_ctrl("X"), _ctrl("U")):
            self._kill_back(0)
        elif c == _ctrl("W"):
            i = self.cursor
            while i > 0 and not _is_word(buf[i - 1]):
                i -= 1
            while i > 0 and _is_word(buf[i - 1]):
                i -= 1
            self._kill_back(i)
        elif c in (_ctrl("\\"), _ctrl("Q")):
            self._quote = True
        else:
            self._insert(c)
        return False