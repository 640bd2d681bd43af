import copy

from sysyc.symbols import (
    ConstantSymbolEntry,
    IdentifierSymbolEntry,
    SymbolTable,
    TemporarySymbolEntry,
    next_label,
)
from sysyc.types import INT_TYPE, VOID_TYPE, PointerType


def test_constant_entry():
    se = ConstantSymbolEntry(INT_TYPE, 5)
    assert str(se) == "5"
    assert se.is_constant()
    assert not se.is_variable() and not se.is_temporary()
    assert se.type is INT_TYPE


def test_temporary_entry():
    se = TemporarySymbolEntry(INT_TYPE, 7)
    assert str(se) == "%t7"
    assert se.is_temporary()
    assert se.label == 7


def test_identifier_entry_spelling_and_defaults():
    se = IdentifierSymbolEntry(INT_TYPE, "a", 0)
    assert str(se) == "@a"
    assert se.is_variable()
    assert se.inited is False
    assert se.addr is None
    assert se.constant is False
    se.set_const()
    assert se.constant is True


def test_identifier_scopes():
    g = IdentifierSymbolEntry(INT_TYPE, "g", 0)
    p = IdentifierSymbolEntry(INT_TYPE, "p", 1)
    l1 = IdentifierSymbolEntry(INT_TYPE, "l", 2)
    l2 = IdentifierSymbolEntry(INT_TYPE, "m", 3)
    assert (g.is_global(), g.is_param(), g.is_local()) == (True, False, False)
    assert (p.is_global(), p.is_param(), p.is_local()) == (False, True, False)
    assert l1.is_local() and l2.is_local()


def test_copy_with_new_type_leaves_original():
    se = IdentifierSymbolEntry(INT_TYPE, "x", 0)
    dup = copy.copy(se)
    dup.type = PointerType(se.type)
    assert se.type is INT_TYPE
    assert str(dup) == str(se)
    assert str(dup.type) == str(INT_TYPE) + "*"


def test_set_next_appends_to_chain_end():
    a = ConstantSymbolEntry(INT_TYPE, 1)
    b = ConstantSymbolEntry(INT_TYPE, 2)
    c = ConstantSymbolEntry(INT_TYPE, 3)
    a.set_next(b)
    a.set_next(c)
    assert a.next is b
    assert b.next is c
    assert c.next is None


def test_symbol_table_lookup_through_scopes():
    outer = SymbolTable()
    inner = SymbolTable(outer)
    a = IdentifierSymbolEntry(INT_TYPE, "a", 0)
    outer.install("a", a)
    assert inner.lookup("a") is a
    assert inner.lookup("missing") is None
    assert "a" in inner


def test_symbol_table_shadowing_and_overwrite():
    outer = SymbolTable()
    inner = SymbolTable(outer)
    a_out = IdentifierSymbolEntry(INT_TYPE, "a", 0)
    a_in = IdentifierSymbolEntry(INT_TYPE, "a", 2)
    outer.install("a", a_out)
    inner.install("a", a_in)
    assert inner.lookup("a") is a_in
    assert outer.lookup("a") is a_out
    f = IdentifierSymbolEntry(VOID_TYPE, "a", 0)
    outer.install("a", f)
    assert outer.lookup("a") is f


def test_symbol_table_levels():
    t0 = SymbolTable()
    t1 = SymbolTable(t0)
    t2 = SymbolTable(t1)
    assert (t0.level, t1.level, t2.level) == (0, 1, 2)
    assert t2.prev is t1


def test_next_label_increases_by_one():
    first = next_label()
    second = next_label()
    assert second == first + 1