"""Operands of IR instructions."""

from __future__ import annotations

from typing import Any, Iterator

from sysyc.symbols import SymbolEntry
from sysyc.types import Type


class Operand:
    """A value used by instructions, backed by a symbol entry."""

    def __init__(self, se: SymbolEntry) -> None:
        self.se = se
        self.definition: Any = None
        self.uses: list[Any] = []

    @property
    def type(self) -> Type:
        return self.se.type

    def add_use(self, inst: Any) -> None:
        self.uses.append(inst)

    def remove_use(self, inst: Any) -> None:
        """Forget one use by an instruction, if it is recorded."""
        if inst in self.uses:
            self.uses.remove(inst)

    def users_num(self) -> int:
        return len(self.uses)

    def __iter__(self) -> Iterator[Any]:
        return iter(self.uses)

    def __str__(self) -> str:
        return str(self.se)

    def __repr__(self) -> str:
        return f"<Operand {self}: {self.type}>"