"""Types of the SysY intermediate representation."""

from __future__ import annotations

from abc import ABC, abstractmethod
from enum import Enum, auto
from typing import Sequence


class TypeKind(Enum):
    """Broad category of a type."""

    INT = auto()
    VOID = auto()
    FUNC = auto()
    PTR = auto()
    BOOL = auto()


class Type(ABC):
    """Base of all types; compared by identity, printed in IR syntax."""

    def __init__(self, kind: TypeKind) -> None:
        self.kind = kind

    @abstractmethod
    def __str__(self) -> str:
        """Return the IR spelling of the type."""

    def is_int(self) -> bool:
        return self.kind is TypeKind.INT

    def is_void(self) -> bool:
        return self.kind is TypeKind.VOID

    def is_func(self) -> bool:
        return self.kind is TypeKind.FUNC

    def is_bool(self) -> bool:
        return self.kind is TypeKind.BOOL

    def equal(self, other: Type) -> bool:
        """Whether both types belong to the same kind."""
        return self.kind is other.kind

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self}>"


class IntType(Type):
    """An integer type of a given bit width."""

    def __init__(self, size: int) -> None:
        super().__init__(TypeKind.INT)
        self.size = size

    def __str__(self) -> str:
        return f"i{self.size}"


class VoidType(Type):
    """The type of functions that return nothing."""

    def __init__(self) -> None:
        super().__init__(TypeKind.VOID)

    def __str__(self) -> str:
        return "void"


class FunctionType(Type):
    """A function type: a return type and the parameter types."""

    def __init__(self, return_type: Type, params_type: Sequence[Type] = ()) -> None:
        super().__init__(TypeKind.FUNC)
        self.return_type = return_type
        self.params_type = list(params_type)

    def __str__(self) -> str:
        return f"{self.return_type}()"


class PointerType(Type):
    """A pointer to a value of another type."""

    def __init__(self, value_type: Type) -> None:
        super().__init__(TypeKind.PTR)
        self.value_type = value_type

    def __str__(self) -> str:
        return f"{self.value_type}*"


INT_TYPE: Type = IntType(32)
BOOL_TYPE: Type = IntType(1)
VOID_TYPE: Type = VoidType()