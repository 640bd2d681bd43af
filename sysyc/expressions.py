"""Syntax-tree nodes for expressions, with type checking and IR generation."""

from __future__ import annotations

import itertools
from abc import ABC, abstractmethod
from enum import IntEnum
from typing import Iterator, TextIO

from sysyc.blocks import BasicBlock, IRBuilder
from sysyc.instructions import (
    BinaryInstruction,
    CallInstruction,
    CmpInstruction,
    CondBrInstruction,
    Instruction,
    LoadInstruction,
    XorInstruction,
    ZextInstruction,
)
from sysyc.operand import Operand
from sysyc.symbols import (
    ConstantSymbolEntry,
    IdentifierSymbolEntry,
    SymbolEntry,
    TemporarySymbolEntry,
    next_label,
)
from sysyc.types import BOOL_TYPE, INT_TYPE, Type


class TypeCheckError(Exception):
    """A semantic error found while checking a program."""


def _indent(level: int) -> str:
    return " " * max(level, 1)


class Node(ABC):
    """Base of all syntax-tree nodes; nodes can be chained through ``next``."""

    _counter = itertools.count()
    builder: IRBuilder | None = None

    def __init__(self) -> None:
        self.seq = next(Node._counter)
        self.next: Node | None = None
        self.true_list: list[Instruction] = []
        self.false_list: list[Instruction] = []

    @classmethod
    def set_ir_builder(cls, builder: IRBuilder | None) -> None:
        """Set the builder shared by every node during code generation."""
        Node.builder = builder

    @staticmethod
    def _builder() -> IRBuilder:
        if Node.builder is None:
            raise RuntimeError("no IR builder has been set")
        return Node.builder

    def set_next(self, node: Node) -> None:
        """Append a node to the end of this node's chain."""
        last = self
        while last.next is not None:
            last = last.next
        last.next = node

    def chain(self) -> Iterator[Node]:
        """Iterate over this node and the nodes chained after it."""
        node: Node | None = self
        while node is not None:
            yield node
            node = node.next

    @staticmethod
    def _back_patch(insts: list[Instruction], bb: BasicBlock) -> None:
        """Point the true side of each branch at a block."""
        for inst in insts:
            if inst.is_cond():
                inst.true_branch = bb
            elif inst.is_uncond():
                inst.branch = bb

    @staticmethod
    def _back_patch_false(insts: list[Instruction], bb: BasicBlock) -> None:
        """Point the false side of each branch at a block."""
        for inst in insts:
            if inst.is_cond():
                inst.false_branch = bb
            elif inst.is_uncond():
                inst.branch = bb

    @staticmethod
    def _merge(
        first: list[Instruction], second: list[Instruction]
    ) -> list[Instruction]:
        return [*first, *second]

    @abstractmethod
    def output(self, out: TextIO, level: int) -> None:
        """Write the subtree as indented text."""

    @abstractmethod
    def type_check(self, ret_type: Type | None = None) -> None:
        """Check the subtree; raise TypeCheckError on a semantic error."""

    @abstractmethod
    def gen_code(self) -> None:
        """Emit IR for the subtree through the shared builder."""


class ExprNode(Node):
    """An expression; its result is held in ``dst``."""

    def __init__(self, se: SymbolEntry) -> None:
        super().__init__()
        self.symbol_entry = se
        self.type: Type | None = None
        self.dst = Operand(se)

    def int_to_bool(self) -> None:
        """Give the expression a fresh i1 temporary as its result."""
        self.symbol_entry = TemporarySymbolEntry(BOOL_TYPE, next_label())
        self.dst = Operand(self.symbol_entry)


class UnaryOp(IntEnum):
    ADD = 0
    SUB = 1
    NOT = 2


_UNARY_NAMES = {UnaryOp.ADD: "add", UnaryOp.SUB: "sub", UnaryOp.NOT: "not"}


class UnaryExpr(ExprNode):
    """A unary plus, minus or logical not."""

    ADD = UnaryOp.ADD
    SUB = UnaryOp.SUB
    NOT = UnaryOp.NOT

    def __init__(self, se: SymbolEntry, op: int, expr: ExprNode) -> None:
        super().__init__(se)
        self.op = UnaryOp(op)
        self.expr = expr

    def output(self, out: TextIO, level: int) -> None:
        out.write(f"{_indent(level)}UnaryExpr\top: {_UNARY_NAMES[self.op]}\n")
        self.expr.output(out, level + 4)

    def type_check(self, ret_type: Type | None = None) -> None:
        return None

    def gen_code(self) -> None:
        bb = self._builder().insert_bb
        if self.op is UnaryOp.NOT:
            self.expr.gen_code()
            src = self.expr.dst
            if not src.type.is_bool():
                flag = Operand(TemporarySymbolEntry(BOOL_TYPE, next_label()))
                zero = Operand(ConstantSymbolEntry(INT_TYPE, 0))
                CmpInstruction(CmpInstruction.NE, flag, src, zero, bb)
                src = flag
            XorInstruction(self.dst, src, bb)
            return
        self.expr.gen_code()
        src2 = self.expr.dst
        if src2.type is BOOL_TYPE:
            widened = Operand(TemporarySymbolEntry(INT_TYPE, next_label()))
            ZextInstruction(widened, self.expr.dst, bb)
            self.expr.dst = widened
            src2 = widened
        opcode = BinaryInstruction.ADD if self.op is UnaryOp.ADD else BinaryInstruction.SUB
        src1 = Operand(ConstantSymbolEntry(INT_TYPE, 0))
        BinaryInstruction(opcode, self.dst, src1, src2, bb)


class CallExpr(ExprNode):
    """A function call; arguments are chained through ``next``."""

    def __init__(self, se: SymbolEntry, param: ExprNode | None = None) -> None:
        super().__init__(se)
        self.param = param
        given = sum(1 for _ in param.chain()) if param is not None else 0
        expected = len(se.type.params_type)
        self.type = se.type.return_type
        if given != expected:
            raise TypeCheckError(
                f"function '{se}' takes {expected} parameters "
                f"but {given} were given"
            )

    def _arguments(self) -> Iterator[Node]:
        return self.param.chain() if self.param is not None else iter(())

    def output(self, out: TextIO, level: int) -> None:
        se = self.symbol_entry
        if se is None:
            return
        out.write(
            f"{_indent(level)}CallExpr\tfunction name: {se}\t"
            f"scope: {se.scope}\ttype: {se.type}\n"
        )
        for arg in self._arguments():
            arg.output(out, level + 4)

    def type_check(self, ret_type: Type | None = None) -> None:
        return None

    def gen_code(self) -> None:
        operands = []
        for arg in self._arguments():
            arg.gen_code()
            operands.append(arg.dst)
        bb = self._builder().insert_bb
        if not self.symbol_entry.type.is_void():
            self.dst = Operand(TemporarySymbolEntry(INT_TYPE, next_label()))
        CallInstruction(self.dst, self.symbol_entry, operands, bb)


class BinaryOp(IntEnum):
    ADD = 0
    SUB = 1
    MUL = 2
    DIV = 3
    MOD = 4
    AND = 5
    OR = 6
    LESS = 7
    GREATER = 8
    LESSEQUAL = 9
    GREATEREQUAL = 10
    EQUAL = 11
    NOTEQUAL = 12


_BINARY_NAMES = {
    BinaryOp.ADD: "add",
    BinaryOp.SUB: "sub",
    BinaryOp.MUL: "mul",
    BinaryOp.DIV: "div",
    BinaryOp.MOD: "mod",
    BinaryOp.AND: "and",
    BinaryOp.OR: "or",
    BinaryOp.LESS: "less",
    BinaryOp.GREATER: "greater",
    BinaryOp.LESSEQUAL: "less equal",
    BinaryOp.GREATEREQUAL: "greater equal",
    BinaryOp.EQUAL: "equal",
    BinaryOp.NOTEQUAL: "not equal",
}

_ARITH_OPCODES = {
    BinaryOp.ADD: BinaryInstruction.ADD,
    BinaryOp.SUB: BinaryInstruction.SUB,
    BinaryOp.MUL: BinaryInstruction.MUL,
    BinaryOp.DIV: BinaryInstruction.DIV,
    BinaryOp.MOD: BinaryInstruction.MOD,
}

_CMP_OPCODES = {
    BinaryOp.LESS: CmpInstruction.L,
    BinaryOp.LESSEQUAL: CmpInstruction.LE,
    BinaryOp.GREATER: CmpInstruction.G,
    BinaryOp.GREATEREQUAL: CmpInstruction.GE,
    BinaryOp.EQUAL: CmpInstruction.E,
    BinaryOp.NOTEQUAL: CmpInstruction.NE,
}


class BinaryExpr(ExprNode):
    """An arithmetic, logical or comparison expression."""

    ADD = BinaryOp.ADD
    SUB = BinaryOp.SUB
    MUL = BinaryOp.MUL
    DIV = BinaryOp.DIV
    MOD = BinaryOp.MOD
    AND = BinaryOp.AND
    OR = BinaryOp.OR
    LESS = BinaryOp.LESS
    GREATER = BinaryOp.GREATER
    LESSEQUAL = BinaryOp.LESSEQUAL
    GREATEREQUAL = BinaryOp.GREATEREQUAL
    EQUAL = BinaryOp.EQUAL
    NOTEQUAL = BinaryOp.NOTEQUAL

    def __init__(
        self, se: SymbolEntry, op: int, expr1: ExprNode, expr2: ExprNode
    ) -> None:
        super().__init__(se)
        self.op = BinaryOp(op)
        self.expr1 = expr1
        self.expr2 = expr2

    def output(self, out: TextIO, level: int) -> None:
        out.write(f"{_indent(level)}BinaryExpr\top: {_BINARY_NAMES[self.op]}\n")
        self.expr1.output(out, level + 4)
        self.expr2.output(out, level + 4)

    def type_check(self, ret_type: Type | None = None) -> None:
        self.expr1.type_check(ret_type)
        self.expr2.type_check(ret_type)
        type1 = self.expr1.symbol_entry.type
        type2 = self.expr2.symbol_entry.type
        if not type1.equal(type2):
            raise TypeCheckError(
                f"operand {self.expr1.symbol_entry} of type {type1} does not match "
                f"operand {self.expr2.symbol_entry} of type {type2}"
            )
        for operand in (self.expr1, self.expr2):
            if operand.type is not None and operand.type.is_void():
                raise TypeCheckError(
                    f"void expression {operand.symbol_entry} cannot be an operand"
                )
        self.symbol_entry.type = type1

    def gen_code(self) -> None:
        builder = self._builder()
        bb = builder.insert_bb
        func = bb.parent
        if self.op is BinaryOp.AND:
            true_bb = BasicBlock(func)
            true_bb.add_pred(bb)
            bb.add_succ(true_bb)
            for operand in (self.expr1, self.expr2):
                if not operand.symbol_entry.is_variable() and operand.dst.type.is_int():
                    operand.int_to_bool()
            self.expr1.gen_code()
            self._back_patch(self.expr1.true_list, true_bb)
            builder.insert_bb = true_bb
            self.expr2.gen_code()
            self.true_list = self.expr2.true_list
            self.false_list = self._merge(self.expr1.false_list, self.expr2.false_list)
        elif self.op is BinaryOp.OR:
            false_bb = BasicBlock(func)
            false_bb.add_pred(bb)
            bb.add_succ(false_bb)
            for operand in (self.expr1, self.expr2):
                if operand.dst.type.is_int():
                    operand.int_to_bool()
            self.expr1.gen_code()
            self._back_patch_false(self.expr1.false_list, false_bb)
            builder.insert_bb = false_bb
            self.expr2.gen_code()
            self.false_list = self.expr2.false_list
            self.true_list = self._merge(self.expr1.true_list, self.expr2.true_list)
        elif self.op in _ARITH_OPCODES:
            self.expr1.gen_code()
            self.expr2.gen_code()
            BinaryInstruction(
                _ARITH_OPCODES[self.op], self.dst, self.expr1.dst, self.expr2.dst, bb
            )
        else:
            self.expr1.gen_code()
            self.expr2.gen_code()
            CmpInstruction(
                _CMP_OPCODES[self.op], self.dst, self.expr1.dst, self.expr2.dst, bb
            )
            self.true_list = self._merge(self.expr1.true_list, self.expr2.true_list)
            self.false_list = self._merge(self.expr1.false_list, self.expr2.false_list)
            branch = CondBrInstruction(None, None, self.dst, bb)
            self.true_list.append(branch)
            self.false_list.append(branch)


class Constant(ExprNode):
    """An integer literal."""

    def output(self, out: TextIO, level: int) -> None:
        se = self.symbol_entry
        out.write(f"{_indent(level)}IntegerLiteral\tvalue: {se}\ttype: {se.type}\n")

    def type_check(self, ret_type: Type | None = None) -> None:
        return None

    def gen_code(self) -> None:
        return None


class Id(ExprNode):
    """A use of an identifier; its value is loaded into a fresh temporary."""

    def __init__(self, se: SymbolEntry) -> None:
        super().__init__(se)
        self.dst = Operand(TemporarySymbolEntry(se.type, next_label()))

    def output(self, out: TextIO, level: int) -> None:
        se: IdentifierSymbolEntry = self.symbol_entry
        out.write(
            f"{_indent(level)}Id\tname: {se}\tscope: {se.scope}\ttype: {se.type}\n"
        )
        if se.inited:
            out.write(f"value: {se.value}\n")

    def type_check(self, ret_type: Type | None = None) -> None:
        return None

    def gen_code(self) -> None:
        bb = self._builder().insert_bb
        LoadInstruction(self.dst, self.symbol_entry.addr, bb)