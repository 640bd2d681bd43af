"""Symbol entries and nested symbol tables."""

from __future__ import annotations

import itertools
from abc import ABC, abstractmethod
from enum import Enum, auto
from typing import TYPE_CHECKING, Any

from sysyc.types import Type

if TYPE_CHECKING:
    from sysyc.operand import Operand


class SymbolKind(Enum):
    """What a symbol entry stands for."""

    CONSTANT = auto()
    VARIABLE = auto()
    TEMPORARY = auto()


class SymbolEntry(ABC):
    """A named or anonymous value known to the compiler."""

    def __init__(self, type: Type, kind: SymbolKind) -> None:
        self.type = type
        self.kind = kind
        self.next: SymbolEntry | None = None

    @abstractmethod
    def __str__(self) -> str:
        """Return the IR spelling of the entry."""

    def is_constant(self) -> bool:
        return self.kind is SymbolKind.CONSTANT

    def is_temporary(self) -> bool:
        return self.kind is SymbolKind.TEMPORARY

    def is_variable(self) -> bool:
        return self.kind is SymbolKind.VARIABLE

    def set_next(self, entry: SymbolEntry) -> None:
        """Append an entry to the end of this entry's chain."""
        last = self
        while last.next is not None:
            last = last.next
        last.next = entry

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self}: {self.type}>"


class ConstantSymbolEntry(SymbolEntry):
    """A literal constant."""

    def __init__(self, type: Type, value: int) -> None:
        super().__init__(type, SymbolKind.CONSTANT)
        self.value = value

    def __str__(self) -> str:
        return str(self.value)


class IdentifierSymbolEntry(SymbolEntry):
    """A declared identifier; scope 0 is global, 1 a parameter, 2 and up local."""

    GLOBAL = 0
    PARAM = 1
    LOCAL = 2

    def __init__(self, type: Type, name: str, scope: int) -> None:
        super().__init__(type, SymbolKind.VARIABLE)
        self.name = name
        self.scope = scope
        self.addr: Operand | None = None
        self.constant = False
        self.inited = False
        self.value: Any = 0

    def __str__(self) -> str:
        return "@" + self.name

    def is_global(self) -> bool:
        return self.scope == self.GLOBAL

    def is_param(self) -> bool:
        return self.scope == self.PARAM

    def is_local(self) -> bool:
        return self.scope >= self.LOCAL

    def set_const(self) -> None:
        self.constant = True


class TemporarySymbolEntry(SymbolEntry):
    """A compiler-made temporary, numbered by a label."""

    def __init__(self, type: Type, label: int) -> None:
        super().__init__(type, SymbolKind.TEMPORARY)
        self.label = label

    def __str__(self) -> str:
        return f"%t{self.label}"


class SymbolTable:
    """One scope of identifiers, chained to its enclosing scope."""

    def __init__(self, prev: SymbolTable | None = None) -> None:
        self.prev = prev
        self.level = 0 if prev is None else prev.level + 1
        self._entries: dict[str, SymbolEntry] = {}

    def install(self, name: str, entry: SymbolEntry) -> None:
        """Bind a name in this scope, replacing any earlier binding here."""
        self._entries[name] = entry

    def lookup(self, name: str) -> SymbolEntry | None:
        """Find a name in this scope or the nearest enclosing one."""
        table: SymbolTable | None = self
        while table is not None:
            if name in table._entries:
                return table._entries[name]
            table = table.prev
        return None

    def __contains__(self, name: str) -> bool:
        return self.lookup(name) is not None


_labels = itertools.count()


def next_label() -> int:
    """Return a fresh label number, shared by temporaries and blocks."""
    return next(_labels)