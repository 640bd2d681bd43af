"""Syntax-tree nodes for statements and the tree root."""

from __future__ import annotations

import copy
from itertools import chain, repeat
from typing import Iterator, Sequence, TextIO

from sysyc.blocks import BasicBlock, Function, IRBuilder, Unit
from sysyc.expressions import (
    Constant,
    ExprNode,
    Id,
    Node,
    TypeCheckError,
)
from sysyc.instructions import (
    AllocaInstruction,
    CmpInstruction,
    CondBrInstruction,
    GlobalInstruction,
    RetInstruction,
    StoreInstruction,
    UncondBrInstruction,
)
from sysyc.operand import Operand
from sysyc.symbols import (
    ConstantSymbolEntry,
    SymbolEntry,
    TemporarySymbolEntry,
    next_label,
)
from sysyc.types import INT_TYPE, VOID_TYPE, IntType, PointerType, Type

_RUNTIME_DECLARATIONS = (
    "declare i32 @getint()\n"
    "declare i32 @getch()\n"
    "declare void @putint(i32)\n"
    "declare void @putch(i32)\n"
)


def _indent(level: int) -> str:
    return " " * max(level, 1)


def _is_i32(t: Type) -> bool:
    return isinstance(t, IntType) and t.size == 32


def _compare_with_zero(cond: ExprNode) -> None:
    """Turn an i32 condition into an i1 one and branch on it."""
    bb = Node._builder().insert_bb
    src = cond.dst
    zero = Constant(ConstantSymbolEntry(INT_TYPE, 0))
    cond.int_to_bool()
    cmp = CmpInstruction(CmpInstruction.NE, cond.dst, src, zero.dst, bb)
    cond.true_list.append(cmp)
    cond.false_list.append(cmp)
    branch = CondBrInstruction(None, None, cond.dst, bb)
    cond.true_list.append(branch)
    cond.false_list.append(branch)


class StmtNode(Node):
    """Base of all statements."""

    ir_out: TextIO | None = None

    def __init__(self) -> None:
        super().__init__()
        self.type: Type | None = None


class ExprStmt(StmtNode):
    """An expression evaluated for its effect."""

    def __init__(self, expr: ExprNode) -> None:
        super().__init__()
        self.expr = expr

    def output(self, out: TextIO, level: int) -> None:
        out.write(f"{_indent(level)}ExprStmt\n")
        self.expr.output(out, level + 4)

    def type_check(self, ret_type: Type | None = None) -> None:
        return None

    def gen_code(self) -> None:
        self.expr.gen_code()


class BlankStmt(StmtNode):
    """An empty statement."""

    def output(self, out: TextIO, level: int) -> None:
        out.write(f"{_indent(level)}BlankStmt\n")

    def type_check(self, ret_type: Type | None = None) -> None:
        return None

    def gen_code(self) -> None:
        return None


class CompoundStmt(StmtNode):
    """A braced block of statements."""

    def __init__(self, stmt: StmtNode | None) -> None:
        super().__init__()
        self.stmt = stmt

    def output(self, out: TextIO, level: int) -> None:
        out.write(f"{_indent(level)}CompoundStmt\n")
        if self.stmt is not None:
            self.stmt.output(out, level + 4)

    def type_check(self, ret_type: Type | None = None) -> None:
        if self.stmt is not None:
            self.stmt.type_check(ret_type)

    def gen_code(self) -> None:
        if self.stmt is not None:
            self.stmt.gen_code()


class SeqNode(StmtNode):
    """Two statements in sequence."""

    def __init__(self, stmt1: StmtNode | None, stmt2: StmtNode | None) -> None:
        super().__init__()
        self.stmt1 = stmt1
        self.stmt2 = stmt2

    def output(self, out: TextIO, level: int) -> None:
        out.write(f"{_indent(level)}Sequence\n")
        for stmt in (self.stmt1, self.stmt2):
            if stmt is not None:
                stmt.output(out, level + 4)

    def type_check(self, ret_type: Type | None = None) -> None:
        for stmt in (self.stmt1, self.stmt2):
            if stmt is not None:
                stmt.type_check(ret_type)

    def gen_code(self) -> None:
        for stmt in (self.stmt1, self.stmt2):
            if stmt is not None:
                stmt.gen_code()


class AssignStmt(StmtNode):
    """Store the value of an expression into an identifier."""

    def __init__(self, lval: ExprNode, expr: ExprNode) -> None:
        super().__init__()
        self.lval = lval
        self.expr = expr

    def output(self, out: TextIO, level: int) -> None:
        out.write(f"{_indent(level)}AssignStmt\n")
        self.lval.output(out, level + 4)
        self.expr.output(out, level + 4)

    def type_check(self, ret_type: Type | None = None) -> None:
        self.expr.type_check()

    def gen_code(self) -> None:
        bb = self._builder().insert_bb
        self.expr.gen_code()
        addr = self.lval.symbol_entry.addr
        StoreInstruction(addr, self.expr.dst, bb)


class IdList(Node):
    """Identifiers declared together, with their optional initialisers."""

    def __init__(
        self,
        idlist: Sequence[Id],
        assignlist: Sequence[AssignStmt | None] = (),
    ) -> None:
        super().__init__()
        self.idlist = list(idlist)
        self.assignlist = list(assignlist)

    def initializers(self) -> Iterator[tuple[Id, AssignStmt | None]]:
        """Pair each identifier with its initialiser, or None."""
        return zip(self.idlist, chain(self.assignlist, repeat(None)))

    def output(self, out: TextIO, level: int) -> None:
        out.write(f"{_indent(level)}IdList\n")
        for ident in self.idlist:
            ident.output(out, level + 4)
        for assign in self.assignlist:
            if assign is not None:
                assign.output(out, level + 4)

    def type_check(self, ret_type: Type | None = None) -> None:
        return None

    def gen_code(self) -> None:
        return None


class DeclStmt(StmtNode):
    """A declaration of one or more identifiers."""

    def __init__(self, ids: IdList) -> None:
        super().__init__()
        self.ids = ids

    def output(self, out: TextIO, level: int) -> None:
        out.write(f"{_indent(level)}DeclStmt\n")
        self.ids.output(out, level + 4)
        if self.next is not None:
            self.next.output(out, level)

    def type_check(self, ret_type: Type | None = None) -> None:
        for _, assign in self.ids.initializers():
            if assign is not None:
                assign.type_check()

    def gen_code(self) -> None:
        for ident, assign in self.ids.initializers():
            se = ident.symbol_entry
            if se.is_global():
                self._declare_global(se, assign)
            elif se.is_local():
                self._declare_local(se, assign)

    @staticmethod
    def _declare_global(se: SymbolEntry, assign: AssignStmt | None) -> None:
        addr_se = copy.copy(se)
        addr_se.type = PointerType(se.type)
        addr = Operand(addr_se)
        se.addr = addr
        if assign is not None:
            assign.gen_code()
            src = assign.expr.dst
        else:
            src = Constant(ConstantSymbolEntry(INT_TYPE, 0)).dst
        declaration = GlobalInstruction(addr, src, se)
        if StmtNode.ir_out is not None:
            declaration.output(StmtNode.ir_out)

    @staticmethod
    def _declare_local(se: SymbolEntry, assign: AssignStmt | None) -> None:
        func = Node._builder().insert_bb.parent
        addr = Operand(TemporarySymbolEntry(PointerType(se.type), next_label()))
        func.entry.insert_front(AllocaInstruction(addr, se))
        se.addr = addr
        if assign is not None:
            se.addr = assign.lval.symbol_entry.addr
            assign.gen_code()


class IfStmt(StmtNode):
    """An if statement without an else branch."""

    def __init__(self, cond: ExprNode, then_stmt: StmtNode) -> None:
        super().__init__()
        self.cond = cond
        self.then_stmt = then_stmt

    def output(self, out: TextIO, level: int) -> None:
        out.write(f"{_indent(level)}IfStmt\n")
        self.cond.output(out, level + 4)
        self.then_stmt.output(out, level + 4)

    def type_check(self, ret_type: Type | None = None) -> None:
        self.cond.type_check(ret_type)
        if self.then_stmt is not None:
            self.then_stmt.type_check(ret_type)

    def gen_code(self) -> None:
        builder = self._builder()
        current = builder.insert_bb
        func = current.parent
        then_bb = BasicBlock(func)
        end_bb = BasicBlock(func)
        then_bb.add_pred(current)
        current.add_succ(then_bb)
        end_bb.add_pred(then_bb)
        then_bb.add_succ(end_bb)

        if _is_i32(self.cond.symbol_entry.type):
            self.cond.int_to_bool()
        self.cond.gen_code()
        self._back_patch(self.cond.true_list, then_bb)
        self._back_patch_false(self.cond.false_list, end_bb)

        builder.insert_bb = then_bb
        self.then_stmt.gen_code()
        UncondBrInstruction(end_bb, builder.insert_bb)
        builder.insert_bb = end_bb


class IfElseStmt(StmtNode):
    """An if statement with an else branch."""

    def __init__(
        self, cond: ExprNode, then_stmt: StmtNode, else_stmt: StmtNode
    ) -> None:
        super().__init__()
        self.cond = cond
        self.then_stmt = then_stmt
        self.else_stmt = else_stmt

    def output(self, out: TextIO, level: int) -> None:
        out.write(f"{_indent(level)}IfElseStmt\n")
        self.cond.output(out, level + 4)
        self.then_stmt.output(out, level + 4)
        self.else_stmt.output(out, level + 4)

    def type_check(self, ret_type: Type | None = None) -> None:
        if self.then_stmt is not None:
            self.then_stmt.type_check(ret_type)
        if self.else_stmt is not None:
            self.else_stmt.type_check(ret_type)

    def gen_code(self) -> None:
        builder = self._builder()
        current = builder.insert_bb
        func = current.parent
        then_bb = BasicBlock(func)
        else_bb = BasicBlock(func)
        end_bb = BasicBlock(func)
        for branch_bb in (then_bb, else_bb):
            branch_bb.add_pred(current)
            current.add_succ(branch_bb)
        for branch_bb in (then_bb, else_bb):
            end_bb.add_pred(branch_bb)
            branch_bb.add_succ(end_bb)

        self.cond.gen_code()
        if _is_i32(self.cond.symbol_entry.type):
            _compare_with_zero(self.cond)
        self._back_patch(self.cond.true_list, then_bb)
        self._back_patch_false(self.cond.false_list, else_bb)

        builder.insert_bb = then_bb
        self.then_stmt.gen_code()
        UncondBrInstruction(end_bb, builder.insert_bb)

        builder.insert_bb = else_bb
        self.else_stmt.gen_code()
        UncondBrInstruction(end_bb, builder.insert_bb)

        builder.insert_bb = end_bb


class WhileStmt(StmtNode):
    """A while loop."""

    def __init__(self, cond: ExprNode, stmt: StmtNode) -> None:
        super().__init__()
        self.cond = cond
        self.stmt = stmt

    def output(self, out: TextIO, level: int) -> None:
        out.write(f"{_indent(level)}WhileStmt\n")
        self.cond.output(out, level + 4)
        self.stmt.output(out, level + 4)

    def type_check(self, ret_type: Type | None = None) -> None:
        if self.stmt is not None:
            self.stmt.type_check(ret_type)

    def gen_code(self) -> None:
        builder = self._builder()
        current = builder.insert_bb
        func = current.parent
        loop_bb = BasicBlock(func)
        end_bb = BasicBlock(func)
        cond_bb = BasicBlock(func)

        jump = UncondBrInstruction(cond_bb, current)
        if StmtNode.ir_out is not None:
            jump.output(StmtNode.ir_out)
        cond_bb.add_pred(current)
        current.add_succ(cond_bb)
        loop_bb.add_pred(cond_bb)
        cond_bb.add_succ(loop_bb)
        end_bb.add_pred(loop_bb)
        loop_bb.add_succ(end_bb)
        end_bb.add_pred(cond_bb)
        cond_bb.add_succ(end_bb)

        builder.insert_bb = cond_bb
        self.cond.gen_code()
        if _is_i32(self.cond.symbol_entry.type):
            _compare_with_zero(self.cond)
        self._back_patch(self.cond.true_list, loop_bb)
        self._back_patch_false(self.cond.false_list, end_bb)

        builder.insert_bb = loop_bb
        self.stmt.gen_code()
        CondBrInstruction(cond_bb, end_bb, self.cond.dst, builder.insert_bb)
        builder.insert_bb = end_bb


class ReturnStmt(StmtNode):
    """A return statement, with or without a value."""

    def __init__(self, ret_value: ExprNode | None) -> None:
        super().__init__()
        self.ret_value = ret_value

    def output(self, out: TextIO, level: int) -> None:
        out.write(f"{_indent(level)}ReturnStmt\n")
        if self.ret_value is not None:
            self.ret_value.output(out, level + 4)

    def type_check(self, ret_type: Type | None = None) -> None:
        if ret_type is None:
            raise TypeCheckError("return statement outside a function")
        if self.ret_value is None and not ret_type.is_void():
            raise TypeCheckError(f"function of type '{ret_type}' must return a value")
        if self.ret_value is not None and ret_type.is_void():
            raise TypeCheckError("void function must not return a value")
        FunctionDef.return_seen = True

    def gen_code(self) -> None:
        bb = self._builder().insert_bb
        src = None
        if self.ret_value is not None:
            self.ret_value.gen_code()
            src = self.ret_value.dst
        RetInstruction(src, bb)


class BreakStmt(StmtNode):
    """A break statement."""

    def output(self, out: TextIO, level: int) -> None:
        out.write(f"{_indent(level)}BreakStmt\n")

    def type_check(self, ret_type: Type | None = None) -> None:
        return None

    def gen_code(self) -> None:
        return None


class ContinueStmt(StmtNode):
    """A continue statement."""

    def output(self, out: TextIO, level: int) -> None:
        out.write(f"{_indent(level)}ContinueStmt\n")

    def type_check(self, ret_type: Type | None = None) -> None:
        return None

    def gen_code(self) -> None:
        return None


class FunctionDef(StmtNode):
    """A function definition with optional parameters."""

    return_seen = False

    def __init__(
        self,
        se: SymbolEntry,
        stmt: StmtNode | None,
        ids: IdList | None = None,
    ) -> None:
        super().__init__()
        self.se = se
        self.stmt = stmt
        self.ids = ids

    def output(self, out: TextIO, level: int) -> None:
        out.write(
            f"{_indent(level)}FunctionDefine function name: {self.se}, "
            f"type: {self.se.type}\n"
        )
        if self.stmt is not None:
            self.stmt.output(out, level + 4)

    def type_check(self, ret_type: Type | None = None) -> None:
        ret = self.se.type.return_type
        if self.stmt is None and ret is not VOID_TYPE:
            raise TypeCheckError(f"non-void function '{self.se}' has no return statement")
        if self.stmt is not None:
            self.stmt.type_check(ret)
        if not FunctionDef.return_seen and ret is not VOID_TYPE:
            raise TypeCheckError(f"non-void function '{self.se}' has no return statement")

    def gen_code(self) -> None:
        builder = self._builder()
        func = Function(builder.unit, self.se)
        entry = func.entry
        builder.insert_bb = entry
        if self.ids is not None:
            for ident in self.ids.idlist:
                param = ident.symbol_entry
                addr = Operand(
                    TemporarySymbolEntry(PointerType(param.type), next_label())
                )
                value = Operand(TemporarySymbolEntry(IntType(32), next_label()))
                entry.insert_front(AllocaInstruction(addr, param))
                entry.insert_back(StoreInstruction(addr, value))
                param.addr = addr
                func.params.append(value)
        if self.stmt is not None:
            self.stmt.gen_code()


class Ast:
    """The root of a program's syntax tree."""

    def __init__(self, root: Node | None = None) -> None:
        self.root = root

    def output(self, out: TextIO) -> None:
        """Write the tree as indented text."""
        out.write("program\n")
        if self.root is not None:
            self.root.output(out, 4)

    def type_check(self) -> None:
        """Check the program; raise TypeCheckError on a semantic error."""
        FunctionDef.return_seen = False
        if self.root is not None:
            self.root.type_check()

    def gen_code(self, unit: Unit, out: TextIO) -> None:
        """Fill the unit with IR; runtime and global declarations go to out."""
        out.write(_RUNTIME_DECLARATIONS)
        Node.set_ir_builder(IRBuilder(unit))
        StmtNode.ir_out = out
        try:
            if self.root is not None:
                self.root.gen_code()
        finally:
            StmtNode.ir_out = None