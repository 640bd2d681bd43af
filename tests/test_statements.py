import io

import pytest

from sysyc.blocks import Unit
from sysyc.expressions import BinaryExpr, Constant, Id, TypeCheckError
from sysyc.instructions import (
    AllocaInstruction,
    CondBrInstruction,
    RetInstruction,
    StoreInstruction,
    UncondBrInstruction,
)
from sysyc.statements import (
    AssignStmt,
    Ast,
    BlankStmt,
    BreakStmt,
    CompoundStmt,
    ContinueStmt,
    DeclStmt,
    FunctionDef,
    IdList,
    IfElseStmt,
    IfStmt,
    ReturnStmt,
    SeqNode,
    WhileStmt,
)
from sysyc.symbols import (
    ConstantSymbolEntry,
    IdentifierSymbolEntry,
    TemporarySymbolEntry,
    next_label,
)
from sysyc.types import BOOL_TYPE, INT_TYPE, VOID_TYPE, FunctionType


def const(value, type_=INT_TYPE):
    return Constant(ConstantSymbolEntry(type_, value))


def func_se(name="main", ret=INT_TYPE):
    return IdentifierSymbolEntry(FunctionType(ret, []), name, 0)


def less(a, b):
    return BinaryExpr(
        TemporarySymbolEntry(BOOL_TYPE, next_label()), BinaryExpr.LESS, const(a), const(b)
    )


def generate(root):
    unit = Unit()
    out = io.StringIO()
    Ast(root).gen_code(unit, out)
    return unit, out.getvalue()


def test_empty_ast_output():
    out = io.StringIO()
    Ast().output(out)
    assert out.getvalue() == "program\n"


def test_function_ast_output():
    root = FunctionDef(func_se(), CompoundStmt(ReturnStmt(const(0))))
    out = io.StringIO()
    Ast(root).output(out)
    assert out.getvalue() == (
        "program\n"
        "    FunctionDefine function name: @main, type: i32()\n"
        "        CompoundStmt\n"
        "            ReturnStmt\n"
        "                IntegerLiteral\tvalue: 0\ttype: i32\n"
    )


def test_break_and_continue_output():
    out = io.StringIO()
    BreakStmt().output(out, 4)
    ContinueStmt().output(out, 4)
    assert out.getvalue() == "    BreakStmt\n    ContinueStmt\n"


def test_idlist_output():
    x = IdentifierSymbolEntry(INT_TYPE, "x", 2)
    out = io.StringIO()
    IdList([Id(x)], []).output(out, 4)
    assert out.getvalue() == "    IdList\n        Id\tname: @x\tscope: 2\ttype: i32\n"


def test_decl_output_follows_chain():
    a = IdentifierSymbolEntry(INT_TYPE, "a", 2)
    b = IdentifierSymbolEntry(INT_TYPE, "b", 2)
    first = DeclStmt(IdList([Id(a)]))
    first.set_next(DeclStmt(IdList([Id(b)])))
    out = io.StringIO()
    first.output(out, 4)
    text = out.getvalue()
    assert text.count("    DeclStmt\n") == 2
    assert "@a" in text and "@b" in text


def test_missing_return_is_rejected():
    root = FunctionDef(func_se(), CompoundStmt(BlankStmt()))
    with pytest.raises(TypeCheckError):
        Ast(root).type_check()


def test_missing_body_is_rejected_for_int_function():
    with pytest.raises(TypeCheckError):
        Ast(FunctionDef(func_se(), None)).type_check()


def test_void_function_returning_value_is_rejected():
    root = FunctionDef(func_se("f", VOID_TYPE), CompoundStmt(ReturnStmt(const(1))))
    with pytest.raises(TypeCheckError):
        Ast(root).type_check()


def test_int_function_returning_nothing_is_rejected():
    root = FunctionDef(func_se(), CompoundStmt(ReturnStmt(None)))
    with pytest.raises(TypeCheckError):
        Ast(root).type_check()


def test_type_check_state_resets_between_programs():
    Ast(FunctionDef(func_se(), CompoundStmt(ReturnStmt(const(0))))).type_check()
    with pytest.raises(TypeCheckError):
        Ast(FunctionDef(func_se("g"), CompoundStmt(BlankStmt()))).type_check()


def test_gen_code_writes_runtime_declarations():
    _, text = generate(FunctionDef(func_se(), CompoundStmt(ReturnStmt(const(0)))))
    assert text.startswith(
        "declare i32 @getint()\ndeclare i32 @getch()\n"
        "declare void @putint(i32)\ndeclare void @putch(i32)\n"
    )


def test_return_function_ir():
    unit, _ = generate(FunctionDef(func_se(), CompoundStmt(ReturnStmt(const(0)))))
    assert len(unit.funcs) == 1
    out = io.StringIO()
    unit.output(out)
    text = out.getvalue()
    assert text.startswith("define i32 @main(){\n")
    assert "  ret i32 0\n" in text
    assert text.endswith("}\n")


def test_global_declarations():
    a = IdentifierSymbolEntry(INT_TYPE, "a", 0)
    b = IdentifierSymbolEntry(INT_TYPE, "b", 0)
    decl = DeclStmt(IdList([Id(a), Id(b)], [AssignStmt(Id(a), const(5))]))
    _, text = generate(decl)
    assert "@a = global i32 5, align 4\n" in text
    assert "@b = global i32 0, align 4\n" in text
    assert str(a.addr.type) == "i32*"


def test_local_declaration_allocates_in_entry():
    x = IdentifierSymbolEntry(INT_TYPE, "x", 2)
    body = SeqNode(DeclStmt(IdList([Id(x)])), ReturnStmt(const(0)))
    unit, _ = generate(FunctionDef(func_se(), CompoundStmt(body)))
    insts = list(unit.funcs[0].entry)
    assert isinstance(insts[0], AllocaInstruction)
    assert insts[0].operands[0] is x.addr
    assert str(insts[0]) == f"  {x.addr} = alloca i32, align 4\n"
    assert isinstance(insts[-1], RetInstruction)


def test_local_declaration_with_initializer_stores_value():
    x = IdentifierSymbolEntry(INT_TYPE, "x", 2)
    decl = DeclStmt(IdList([Id(x)], [AssignStmt(Id(x), const(7))]))
    unit, _ = generate(FunctionDef(func_se(), CompoundStmt(SeqNode(decl, ReturnStmt(const(0))))))
    insts = list(unit.funcs[0].entry)
    stores = [inst for inst in insts if isinstance(inst, StoreInstruction)]
    assert len(stores) == 1
    assert str(stores[0]) == f"  store i32 7, i32* {x.addr}, align 4\n"


def test_function_parameters():
    p = IdentifierSymbolEntry(INT_TYPE, "p", 1)
    root = FunctionDef(
        func_se("f"), CompoundStmt(ReturnStmt(const(0))), IdList([Id(p)])
    )
    unit, _ = generate(root)
    func = unit.funcs[0]
    assert len(func.params) == 1
    out = io.StringIO()
    func.output(out)
    assert out.getvalue().startswith(f"define i32 @f(i32 {func.params[0]}){{\n")
    insts = list(func.entry)
    assert isinstance(insts[0], AllocaInstruction)
    assert insts[0].operands[0] is p.addr
    assert isinstance(insts[1], StoreInstruction)
    assert insts[1].operands[1] is func.params[0]


def test_if_statement_control_flow():
    root = FunctionDef(
        func_se(),
        CompoundStmt(SeqNode(IfStmt(less(1, 2), ReturnStmt(const(1))), ReturnStmt(const(0)))),
    )
    unit, _ = generate(root)
    entry, then_bb, end_bb = unit.funcs[0].blocks
    branch = list(entry)[-1]
    assert isinstance(branch, CondBrInstruction)
    assert branch.true_branch is then_bb
    assert branch.false_branch is end_bb
    assert entry.succ == [then_bb]
    assert then_bb.succ == [end_bb]
    jump = list(then_bb)[-1]
    assert isinstance(jump, UncondBrInstruction) and jump.branch is end_bb


def test_if_else_statement_control_flow():
    root = FunctionDef(
        func_se(),
        CompoundStmt(
            SeqNode(
                IfElseStmt(less(1, 2), BlankStmt(), BlankStmt()),
                ReturnStmt(const(0)),
            )
        ),
    )
    unit, _ = generate(root)
    entry, then_bb, else_bb, end_bb = unit.funcs[0].blocks
    branch = list(entry)[-1]
    assert branch.true_branch is then_bb
    assert branch.false_branch is else_bb
    assert list(then_bb)[-1].branch is end_bb
    assert list(else_bb)[-1].branch is end_bb
    assert end_bb.pred == [then_bb, else_bb]


def test_while_statement_control_flow():
    root = FunctionDef(
        func_se(),
        CompoundStmt(SeqNode(WhileStmt(less(1, 2), BlankStmt()), ReturnStmt(const(0)))),
    )
    unit, _ = generate(root)
    entry, loop_bb, end_bb, cond_bb = unit.funcs[0].blocks
    jump = list(entry)[-1]
    assert isinstance(jump, UncondBrInstruction) and jump.branch is cond_bb
    assert cond_bb.succ == [loop_bb, end_bb]
    test_branch = list(cond_bb)[-1]
    assert test_branch.true_branch is loop_bb
    assert test_branch.false_branch is end_bb
    back = list(loop_bb)[-1]
    assert isinstance(back, CondBrInstruction)
    assert back.true_branch is cond_bb and back.false_branch is end_bb