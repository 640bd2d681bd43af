"""IR instructions, kept in a circular doubly linked list per basic block."""

from __future__ import annotations

import io
from abc import ABC, abstractmethod
from enum import Enum, IntEnum, auto
from typing import Any, Iterable, TextIO

from sysyc.operand import Operand
from sysyc.symbols import SymbolEntry
from sysyc.types import VOID_TYPE


class InstType(Enum):
    """Category of an instruction."""

    DUMMY = auto()
    BINARY = auto()
    COND = auto()
    UNCOND = auto()
    RET = auto()
    LOAD = auto()
    STORE = auto()
    CMP = auto()
    ALLOCA = auto()
    GLOBAL = auto()
    CALL = auto()
    ZEXT = auto()
    XOR = auto()


class BinaryOp(IntEnum):
    """Arithmetic and logical opcodes of a binary instruction."""

    SUB = 0
    ADD = 1
    AND = 2
    OR = 3
    MUL = 4
    DIV = 5
    MOD = 6


class CmpOp(IntEnum):
    """Comparison opcodes."""

    E = 0
    NE = 1
    L = 2
    GE = 3
    G = 4
    LE = 5


_BINARY_NAMES = {
    BinaryOp.ADD: "add",
    BinaryOp.SUB: "sub",
    BinaryOp.MUL: "mul",
    BinaryOp.DIV: "sdiv",
    BinaryOp.MOD: "srem",
}

_CMP_NAMES = {
    CmpOp.E: "eq",
    CmpOp.NE: "ne",
    CmpOp.L: "slt",
    CmpOp.LE: "sle",
    CmpOp.G: "sgt",
    CmpOp.GE: "sge",
}


class Instruction(ABC):
    """Base of all instructions; a new instruction links itself to nothing."""

    def __init__(self, inst_type: InstType, insert_bb: Any = None) -> None:
        self.inst_type = inst_type
        self.opcode: int = -1
        self.prev: Instruction = self
        self.next: Instruction = self
        self.parent: Any = None
        self.operands: list[Any] = []
        self._defined: list[Operand] = []
        self._used: list[Operand] = []
        if insert_bb is not None:
            insert_bb.insert_back(self)
            self.parent = insert_bb

    def _define(self, operand: Operand) -> None:
        operand.definition = self
        self._defined.append(operand)

    def _use(self, operand: Operand) -> None:
        operand.add_use(self)
        self._used.append(operand)

    def is_cond(self) -> bool:
        return self.inst_type is InstType.COND

    def is_uncond(self) -> bool:
        return self.inst_type is InstType.UNCOND

    def erase(self) -> None:
        """Unlink from the parent block and drop the def and use records."""
        if self.parent is not None:
            self.parent.remove(self)
        for operand in self._defined:
            operand.definition = None
        for operand in self._used:
            operand.remove_use(self)
        self._defined.clear()
        self._used.clear()

    @abstractmethod
    def output(self, out: TextIO) -> None:
        """Write the instruction in IR text form."""

    def __str__(self) -> str:
        buffer = io.StringIO()
        self.output(buffer)
        return buffer.getvalue()


class DummyInstruction(Instruction):
    """Head sentinel of a block's instruction list; prints nothing."""

    def __init__(self) -> None:
        super().__init__(InstType.DUMMY, None)

    def output(self, out: TextIO) -> None:
        return None


class AllocaInstruction(Instruction):
    """Reserve stack space for a local identifier."""

    def __init__(self, dst: Operand, se: SymbolEntry, insert_bb: Any = None) -> None:
        super().__init__(InstType.ALLOCA, insert_bb)
        self.operands.append(dst)
        self._define(dst)
        self.se = se

    def output(self, out: TextIO) -> None:
        out.write(f"  {self.operands[0]} = alloca {self.se.type}, align 4\n")


class GlobalInstruction(Instruction):
    """Declare a global variable with an initial value."""

    def __init__(
        self, dst: Operand, src: Operand, se: SymbolEntry, insert_bb: Any = None
    ) -> None:
        super().__init__(InstType.GLOBAL, insert_bb)
        self.operands.append(dst)
        self._define(dst)
        self.se = se
        self.src = src

    def output(self, out: TextIO) -> None:
        out.write(f"{self.operands[0]} = global {self.se.type} {self.src}, align 4\n")


class LoadInstruction(Instruction):
    """Load a value from an address."""

    def __init__(self, dst: Operand, src_addr: Operand, insert_bb: Any = None) -> None:
        super().__init__(InstType.LOAD, insert_bb)
        self.operands.extend((dst, src_addr))
        self._define(dst)
        self._use(src_addr)

    def output(self, out: TextIO) -> None:
        dst, src = self.operands
        out.write(f"  {dst} = load {dst.type}, {src.type} {src}, align 4\n")


class StoreInstruction(Instruction):
    """Store a value to an address."""

    def __init__(self, dst_addr: Operand, src: Operand, insert_bb: Any = None) -> None:
        super().__init__(InstType.STORE, insert_bb)
        self.operands.extend((dst_addr, src))
        self._use(dst_addr)
        self._use(src)

    def output(self, out: TextIO) -> None:
        dst, src = self.operands
        out.write(f"  store {src.type} {src}, {dst.type} {dst}, align 4\n")


class BinaryInstruction(Instruction):
    """dst = src1 <op> src2."""

    SUB = BinaryOp.SUB
    ADD = BinaryOp.ADD
    AND = BinaryOp.AND
    OR = BinaryOp.OR
    MUL = BinaryOp.MUL
    DIV = BinaryOp.DIV
    MOD = BinaryOp.MOD

    def __init__(
        self,
        opcode: int,
        dst: Operand,
        src1: Operand,
        src2: Operand,
        insert_bb: Any = None,
    ) -> None:
        super().__init__(InstType.BINARY, insert_bb)
        self.opcode = opcode
        self.operands.extend((dst, src1, src2))
        self._define(dst)
        self._use(src1)
        self._use(src2)

    def output(self, out: TextIO) -> None:
        dst, src1, src2 = self.operands
        op = _BINARY_NAMES.get(self.opcode, "")
        out.write(f"  {dst} = {op} {dst.type} {src1}, {src2}\n")


class CmpInstruction(Instruction):
    """dst = icmp <op> src1, src2."""

    E = CmpOp.E
    NE = CmpOp.NE
    L = CmpOp.L
    GE = CmpOp.GE
    G = CmpOp.G
    LE = CmpOp.LE

    def __init__(
        self,
        opcode: int,
        dst: Operand,
        src1: Operand,
        src2: Operand,
        insert_bb: Any = None,
    ) -> None:
        super().__init__(InstType.CMP, insert_bb)
        self.opcode = opcode
        self.operands.extend((dst, src1, src2))
        self._define(dst)
        self._use(src1)
        self._use(src2)

    def output(self, out: TextIO) -> None:
        dst, src1, src2 = self.operands
        op = _CMP_NAMES.get(self.opcode, "")
        out.write(f"  {dst} = icmp {op} {src1.type} {src1}, {src2}\n")


class UncondBrInstruction(Instruction):
    """Jump to a block; prints nothing when the target block is empty."""

    def __init__(self, branch: Any, insert_bb: Any = None) -> None:
        super().__init__(InstType.UNCOND, insert_bb)
        self.branch = branch

    def output(self, out: TextIO) -> None:
        if not self.branch.empty():
            out.write(f"  br label %B{self.branch.no}\n")


class CondBrInstruction(Instruction):
    """Branch on a condition to one of two blocks."""

    def __init__(
        self,
        true_branch: Any,
        false_branch: Any,
        cond: Operand,
        insert_bb: Any = None,
    ) -> None:
        super().__init__(InstType.COND, insert_bb)
        self.true_branch = true_branch
        self.false_branch = false_branch
        self._use(cond)
        self.operands.append(cond)

    def output(self, out: TextIO) -> None:
        cond = self.operands[0]
        out.write(
            f"  br {cond.type} {cond}, label %B{self.true_branch.no}, "
            f"label %B{self.false_branch.no}\n"
        )


class RetInstruction(Instruction):
    """Return from a function, with or without a value."""

    def __init__(self, src: Operand | None, insert_bb: Any = None) -> None:
        super().__init__(InstType.RET, insert_bb)
        if src is not None:
            self.operands.append(src)
            self._use(src)

    def output(self, out: TextIO) -> None:
        if not self.operands:
            out.write("  ret void\n")
        else:
            value = self.operands[0]
            out.write(f"  ret {value.type} {value}\n")


class CallInstruction(Instruction):
    """Call a function; the first operand is the result, None for void calls."""

    def __init__(
        self,
        dst: Operand | None,
        func: SymbolEntry,
        params: Iterable[Operand],
        insert_bb: Any = None,
    ) -> None:
        super().__init__(InstType.CALL, insert_bb)
        self.func = func
        self.dst = dst
        self.operands.append(dst)
        if dst is not None:
            self._define(dst)
        for param in params:
            self.operands.append(param)
            self._use(param)

    def output(self, out: TextIO) -> None:
        ret_type = self.func.type.return_type
        out.write("  ")
        if ret_type is not VOID_TYPE:
            out.write(f"{self.operands[0]} = ")
        args = ", ".join(f"{arg.type} {arg}" for arg in self.operands[1:])
        out.write(f"call {ret_type} {self.func}({args})\n")


class ZextInstruction(Instruction):
    """Zero-extend an i1 value to i32."""

    def __init__(self, dst: Operand, src: Operand, insert_bb: Any = None) -> None:
        super().__init__(InstType.ZEXT, insert_bb)
        self.operands.extend((dst, src))
        self._define(dst)
        self._use(src)

    def output(self, out: TextIO) -> None:
        dst, src = self.operands
        out.write(f"  {dst} = zext i1 {src} to i32\n")


class XorInstruction(Instruction):
    """Logical negation of an i1 value."""

    def __init__(self, dst: Operand, src: Operand, insert_bb: Any = None) -> None:
        super().__init__(InstType.XOR, insert_bb)
        self.operands.extend((dst, src))
        self._define(dst)
        self._use(src)

    def output(self, out: TextIO) -> None:
        dst, src = self.operands
        out.write(f"  {dst} = xor i1 {src}, true\n")