"""Key bindings and the startup-file command interpreter."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable, Iterable, Mapping, Optional, Union

from .funmap import FunctionMap

Key = Union[str, int]
Target = Union[Callable[..., object], "Keymap", None]

MAXKEY = 8
KFIRST = 256
INT_MAX = 2**31 - 1
INT_MIN = -(2**31)

GLOBAL_SET = "global-set-key"
GLOBAL_UNSET = "global-unset-key"
LOCAL_SET = "local-set-key"
LOCAL_UNSET = "local-unset-key"
DEFINE_KEY = "define-key"
_BIND_NAMES = (GLOBAL_SET, GLOBAL_UNSET, LOCAL_SET, LOCAL_UNSET, DEFINE_KEY)
_UNSET_NAMES = (GLOBAL_UNSET, LOCAL_UNSET)

_BINDARG = 0
_BINDNO = 1
_BINDNEXT = 2
_BINDDO = 3

_NUMBER = re.compile(r"-?[0-9]+")


class ExtendError(Exception):
    """A command line could not be interpreted or run."""

    def __init__(self, message: str, lineno: Optional[int] = None) -> None:
        super().__init__(message)
        self.message = message
        self.lineno = lineno

    def __str__(self) -> str:
        if self.lineno is None:
            return self.message
        return f"line {self.lineno}: {self.message}"


def _ctrl(c: int) -> int:
    return c ^ 0x40


def _ascii_upper(ch: str) -> str:
    return chr(ord(ch) - 32) if "a" <= ch <= "z" else ch


def _codes(keys: Union[Key, Iterable[Key]]) -> list[int]:
    if isinstance(keys, int):
        return [keys]
    return [ord(k) if isinstance(k, str) else k for k in keys]


class Keymap:
    """Bindings from key codes to commands or to nested prefix keymaps."""

    def __init__(self, name: str = "", default: Target = None) -> None:
        self.name = name
        self.default = default
        self._bindings: dict[int, Target] = {}

    def bind(self, keys: Union[Key, Iterable[Key]], target: Target) -> None:
        """Bind a key sequence, turning earlier keys into prefix keymaps."""
        codes = _codes(keys)
        if not codes:
            raise ValueError("empty key sequence")
        current = self
        for c in codes[:-1]:
            entry = current._bindings.get(c)
            if not isinstance(entry, Keymap):
                entry = Keymap()
                current._bindings[c] = entry
            current = entry
        current._bindings[codes[-1]] = target

    def unbind(self, keys: Union[Key, Iterable[Key]]) -> bool:
        """Remove a key sequence's binding; return whether one was removed."""
        codes = _codes(keys)
        if not codes:
            raise ValueError("empty key sequence")
        current = self
        for c in codes[:-1]:
            entry = current._bindings.get(c)
            if not isinstance(entry, Keymap):
                return False
            current = entry
        return current._bindings.pop(codes[-1], None) is not None

    def lookup(self, keys: Union[Key, Iterable[Key]]) -> Target:
        """Return what a key sequence is bound to, or the innermost default.

        None is returned when the sequence runs on past a command.
        """
        codes = _codes(keys)
        if not codes:
            raise ValueError("empty key sequence")
        current = self
        for c in codes[:-1]:
            entry = current._bindings.get(c)
            if not isinstance(entry, Keymap):
                return None
            current = entry
        return current._bindings.get(codes[-1], current.default)

    def __len__(self) -> int:
        return len(self._bindings)


def skip_white(s: str) -> str:
    """Drop leading blanks; a line that then starts a comment becomes empty."""
    s = s.lstrip(" \t")
    if s[:1] in (";", "#") and s:
        return ""
    return s


def parse_token(s: str) -> int:
    """Return the index where the token at the start of ``s`` ends.

    A quoted token ends at its closing quote, which a backslash can escape.
    """
    if not s:
        return 0
    if s[0] != '"':
        i = 0
        while i < len(s) and s[i] not in " \t()":
            i += 1
        return i
    i = 0
    while True:
        if s[i] == "\\":
            i += 1
        i += 1
        if i >= len(s):
            return len(s)
        if s[i] == '"':
            return i


def parse_key_string(s: str, newline: str = "\n") -> list[int]:
    """Convert ``^X`` and backslash escapes in a key description to key codes."""
    keys: list[int] = []
    i = 0
    while i < len(s) and len(keys) < MAXKEY:
        ch = s[i]
        if ch == "^" and i + 1 < len(s):
            i += 1
            keys.append(_ctrl(ord(_ascii_upper(s[i]))))
        elif ch == "\\" and i + 1 < len(s):
            i += 1
            e = s[i]
            if e in "tT":
                keys.append(0x09)
            elif e in "nN":
                keys.append(ord(newline[0]))
            elif e in "rR":
                keys.append(0x0D)
            elif e in "eE":
                keys.append(_ctrl(ord("[")))
            else:
                keys.append(ord(e))
        else:
            keys.append(ord(ch))
        i += 1
    return keys


def parse_quoted(s: str) -> list[int]:
    """Decode the body of a quoted string, up to its closing quote, into codes."""
    n = len(s)

    def at(k: int) -> str:
        return s[k] if k < n else "\0"

    codes: list[int] = []
    i = 0
    while i < n and s[i] != '"':
        if s[i] != "\\":
            c = ord(s[i])
            i += 1
        else:
            i += 1
            e = at(i)
            if e in "tT":
                c = 0x09
            elif e in "nN":
                c = 0x0A
            elif e in "rR":
                c = 0x0D
            elif e in "eE":
                c = _ctrl(ord("["))
            elif e == "^":
                i += 1
                if at(i) == "\\":
                    i += 1
                c = _ctrl(ord(_ascii_upper(at(i))) & 0xFF)
            elif e in "01234567":
                c = int(e)
                for _ in range(2):
                    if at(i + 1) in "01234567" and at(i + 1) != "\0":
                        i += 1
                        c = c * 8 + int(s[i])
                    else:
                        break
            elif e in "fF":
                i += 1
                c = ord(at(i)) - ord("0")
                if "0" <= at(i + 1) <= "9":
                    i += 1
                    c = c * 10 + int(s[i])
                c += KFIRST
            else:
                c = ord(e) & 0xFF
            i += 1
        codes.append(c)
    return codes


def _text(codes: Iterable[int]) -> str:
    return "".join(chr(c & 0xFF) for c in codes)


@dataclass(frozen=True)
class ParsedLine:
    """A command line split into its command name, count and arguments.

    Each argument is ``(text, quoted)``; a quoted argument keeps its raw,
    still escaped body.
    """

    name: str
    count: Optional[int] = None
    args: tuple[tuple[str, bool], ...] = ()


def parse_line(line: str) -> Optional[ParsedLine]:
    """Split a command line; blank and comment lines give None."""
    funcp = skip_white(line)
    if not funcp:
        return None
    if funcp[0] == "(":
        raise ExtendError("parenthesized expressions are not supported")
    end = parse_token(funcp)
    name = funcp[:end]
    rest = skip_white(funcp[end + 1:]) if end < len(funcp) else ""
    count = None
    if rest and (rest[0] == "-" or "0" <= rest[0] <= "9"):
        end = parse_token(rest)
        number, rest = rest[:end], rest[end:]
        if rest or not _NUMBER.fullmatch(number):
            raise ExtendError(f"bad numeric argument: {number}{rest}")
        count = int(number)
        if count >= INT_MAX or count <= INT_MIN:
            raise ExtendError(f"numeric argument out of range: {number}")
    args: list[tuple[str, bool]] = []
    while rest:
        argp = skip_white(rest)
        if not argp:
            break
        end = parse_token(argp)
        token, rest = argp[:end], argp[end:]
        if token.startswith('"'):
            args.append((token[1:], True))
            rest = rest[1:]
        else:
            if end == 0:
                raise ExtendError(f"unexpected character {argp[0]!r}")
            if token.startswith("'"):
                token = token[1:]
            args.append((token, False))
    return ParsedLine(name, count, tuple(args))


class Interpreter:
    """Runs startup-file and eval-expression lines against a function map."""

    def __init__(
        self,
        functions: FunctionMap,
        keymaps: Optional[Mapping[str, Keymap]] = None,
        global_map: Optional[Keymap] = None,
        local_map: Optional[Keymap] = None,
    ) -> None:
        self.functions = functions
        self.keymaps: dict[str, Keymap] = dict(keymaps or {})
        self.global_map = global_map if global_map is not None else Keymap("fundamental")
        self.local_map = local_map

    def _local(self) -> Keymap:
        if self.local_map is None:
            raise ExtendError("No local keymap")
        return self.local_map

    def _bind(self, keymap: Keymap, fname: Optional[str], keys: list[int]) -> bool:
        if not keys:
            raise ExtendError("Bad args to set key")
        if fname is None:
            keymap.unbind(keys)
            return True
        target: Target = self.functions.name_function(fname)
        if target is None:
            target = self.keymaps.get(fname)
            if target is None:
                raise ExtendError(f"[No match: {fname}]")
        keymap.bind(keys, target)
        return True

    def _run(self, parsed: ParsedLine) -> object:
        name = parsed.name
        keymap: Optional[Keymap] = None
        func = None
        if name in (GLOBAL_SET, GLOBAL_UNSET):
            mode, keymap = _BINDARG, self.global_map
        elif name in (LOCAL_SET, LOCAL_UNSET):
            mode, keymap = _BINDARG, self._local()
        elif name == DEFINE_KEY:
            mode = _BINDNEXT
        else:
            func = self.functions.name_function(name)
            if func is None:
                raise ExtendError(f"Unknown function: {name}")
            mode = _BINDNO

        keys: list[int] = []
        values: list[str] = []
        for raw, quoted in parsed.args:
            if quoted and mode == _BINDARG:
                keys = parse_quoted(raw)
                if len(keys) > MAXKEY:
                    raise ExtendError("key sequence too long")
                mode = _BINDDO
                continue
            value = _text(parse_quoted(raw)) if quoted else raw
            if mode == _BINDARG:
                mode = _BINDNO
            if mode == _BINDNEXT:
                found = self.keymaps.get(value)
                if found is None:
                    raise ExtendError(f"No such mode: {value}")
                keymap = found
                mode = _BINDARG
            else:
                values.append(value)

        if mode in (_BINDARG, _BINDNEXT):
            raise ExtendError("Bad args to set key")
        unset = name in _UNSET_NAMES
        if mode == _BINDDO:
            assert keymap is not None
            if unset:
                return self._bind(keymap, None, keys)
            if not values:
                raise ExtendError("Bad args to set key")
            return self._bind(keymap, values[-1], keys)
        if name in _BIND_NAMES:
            assert keymap is not None
            if not values:
                raise ExtendError("Bad args to set key")
            keys = [ord(ch) & 0xFF for ch in values[0]]
            if unset:
                return self._bind(keymap, None, keys)
            if len(values) < 2:
                raise ExtendError("Bad args to set key")
            return self._bind(keymap, values[1], keys)
        assert func is not None
        return func(parsed.count, *values)

    def execute_line(self, line: str, lnum: int = 1) -> object:
        """Run one command line and return what the command returned.

        Blank and comment lines return True.
        """
        try:
            parsed = parse_line(line)
            if parsed is None:
                return True
            return self._run(parsed)
        except ExtendError as exc:
            raise ExtendError(exc.message, lnum) from None

    def load(self, lines: Iterable[str]) -> int:
        """Run every line in turn, stopping at the first error; return the count."""
        count = 0
        for lnum, line in enumerate(lines, 1):
            self.execute_line(line.rstrip("\n"), lnum)
            count = lnum
        return count