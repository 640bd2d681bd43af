"""Scope table used while scanning tokens."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class ScopeEntry:
    """An identifier seen by the scanner: its value and where it was found."""

    value: int
    lineno: int
    offset: int


class ScopeTable:
    """One block scope of identifiers, chained to its enclosing scope."""

    def __init__(self, prev: ScopeTable | None = None) -> None:
        self.prev = prev
        self.level = 0 if prev is None else prev.level + 1
        self._entries: dict[str, ScopeEntry] = {}

    def install(self, name: str, entry: ScopeEntry) -> None:
        """Bind a name in this scope; raise KeyError if it is already bound here."""
        if name in self._entries:
            raise KeyError(name)
        self._entries[name] = entry

    def lookup(self, name: str) -> ScopeEntry | None:
        """Find a name in this scope or the nearest enclosing one."""
        table: ScopeTable | None = self
        while table is not None:
            if name in table._entries:
                return table._entries[name]
            table = table.prev
        return None

    def set_value(self, name: str, value: int) -> None:
        """Set the value of the visible binding; raise KeyError if there is none."""
        entry = self.lookup(name)
        if entry is None:
            raise KeyError(name)
        entry.value = value

    def __contains__(self, name: str) -> bool:
        return self.lookup(name) is not None