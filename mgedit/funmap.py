"""Registry mapping command names to the functions that implement them."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Iterator, Optional

Command = Callable[..., object]


@dataclass(frozen=True)
class _Entry:
    func: Optional[Command]
    name: str
    nparams: int


class FunctionMap:
    """Named commands, searched from the most recently added one.

    A name may be registered with ``None`` as its function; such names
    stand for prefix keymaps rather than commands.
    """

    def __init__(self) -> None:
        self._entries: list[_Entry] = []

    def _newest_first(self) -> Iterator[_Entry]:
        return reversed(self._entries)

    def add(self, func: Optional[Command], name: str, nparams: int) -> None:
        """Register ``func`` under ``name``, shadowing earlier entries."""
        self._entries.append(_Entry(func, name, nparams))

    def name_function(self, name: str) -> Optional[Command]:
        """Return the function registered under ``name``, or None."""
        for entry in self._newest_first():
            if entry.name == name:
                return entry.func
        return None

    def function_name(self, func: Command) -> Optional[str]:
        """Return the name under which ``func`` was most recently registered."""
        for entry in self._newest_first():
            if entry.func is func:
                return entry.name
        return None

    def complete(self, prefix: str) -> list[str]:
        """Return every registered name starting with ``prefix``, oldest first."""
        return [entry.name for entry in self._entries if entry.name.startswith(prefix)]

    def numparams(self, func: Command) -> int:
        """Return the parameter count recorded for ``func``, or 0 if unknown."""
        for entry in self._newest_first():
            if entry.func is func:
                return entry.nparams
        return 0

    def __contains__(self, name: object) -> bool:
        return any(entry.name == name for entry in self._entries)

    def __len__(self) -> int:
        return len(self._entries)