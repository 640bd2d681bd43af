"""Basic blocks, functions, compilation units and the IR builder."""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from typing import Iterator, TextIO

from sysyc.instructions import DummyInstruction, Instruction
from sysyc.operand import Operand
from sysyc.symbols import SymbolEntry, next_label


class BasicBlock:
    """A straight-line run of instructions with control-flow edges."""

    def __init__(self, parent: Function) -> None:
        self.no = next_label()
        self.pred: list[BasicBlock] = []
        self.succ: list[BasicBlock] = []
        self.parent = parent
        parent.insert_block(self)
        self.head: Instruction = DummyInstruction()
        self.head.parent = self

    def insert_front(self, inst: Instruction) -> None:
        """Put an instruction at the start of the block."""
        self.insert_before(inst, self.head.next)

    def insert_back(self, inst: Instruction) -> None:
        """Put an instruction at the end of the block."""
        self.insert_before(inst, self.head)

    def insert_before(self, inst: Instruction, before: Instruction) -> None:
        """Link an instruction in front of another one of this block."""
        inst.prev = before.prev
        inst.next = before
        before.prev.next = inst
        before.prev = inst
        inst.parent = self

    def remove(self, inst: Instruction) -> None:
        """Unlink an instruction from the block."""
        inst.prev.next = inst.next
        inst.next.prev = inst.prev

    def empty(self) -> bool:
        return self.head.next is self.head

    def __iter__(self) -> Iterator[Instruction]:
        inst = self.head.next
        while inst is not self.head:
            following = inst.next
            yield inst
            inst = following

    def __reversed__(self) -> Iterator[Instruction]:
        inst = self.head.prev
        while inst is not self.head:
            preceding = inst.prev
            yield inst
            inst = preceding

    def add_succ(self, bb: BasicBlock) -> None:
        self.succ.append(bb)

    def remove_succ(self, bb: BasicBlock) -> None:
        """Drop a successor; raise ValueError if it is not one."""
        self.succ.remove(bb)

    def add_pred(self, bb: BasicBlock) -> None:
        self.pred.append(bb)

    def remove_pred(self, bb: BasicBlock) -> None:
        """Drop a predecessor; raise ValueError if it is not one."""
        self.pred.remove(bb)

    def erase(self) -> None:
        """Delete the block's instructions and detach it from the graph and function."""
        for inst in list(self):
            inst.erase()
        for bb in self.pred:
            if self in bb.succ:
                bb.succ.remove(self)
        for bb in self.succ:
            if self in bb.pred:
                bb.pred.remove(self)
        self.parent.remove(self)

    def output(self, out: TextIO) -> None:
        """Write the block's label, predecessors and instructions; nothing if empty."""
        if self.empty():
            return
        out.write(f"B{self.no}:")
        if self.pred:
            preds = ", ".join(f"%B{bb.no}" for bb in self.pred)
            out.write(" " * 31 + "\t" + f"; preds = {preds}")
        out.write("\n")
        for inst in self:
            inst.output(out)

    def __repr__(self) -> str:
        return f"<BasicBlock B{self.no}>"


class Function:
    """A function definition: its blocks, entry block and parameters."""

    def __init__(self, unit: Unit, se: SymbolEntry) -> None:
        self.blocks: list[BasicBlock] = []
        self.params: list[Operand] = []
        self.se = se
        self.parent = unit
        unit.insert_func(self)
        self.entry = BasicBlock(self)

    def insert_block(self, bb: BasicBlock) -> None:
        self.blocks.append(bb)

    def remove(self, bb: BasicBlock) -> None:
        """Drop a block; raise ValueError if it is not in this function."""
        self.blocks.remove(bb)

    def __iter__(self) -> Iterator[BasicBlock]:
        return iter(self.blocks)

    def __reversed__(self) -> Iterator[BasicBlock]:
        return reversed(self.blocks)

    def output(self, out: TextIO) -> None:
        """Write the definition, blocks in breadth-first order from the entry."""
        ret_type = self.se.type.return_type
        params = ",".join(f"i32 {param}" for param in self.params)
        out.write(f"define {ret_type} {self.se}({params}){{\n")
        seen = {self.entry}
        queue = deque([self.entry])
        while queue:
            bb = queue.popleft()
            bb.output(out)
            for succ in bb.succ:
                if succ not in seen:
                    seen.add(succ)
                    queue.append(succ)
        out.write("}\n")

    def __repr__(self) -> str:
        return f"<Function {self.se}>"


class Unit:
    """A compilation unit: the list of functions."""

    def __init__(self) -> None:
        self.funcs: list[Function] = []

    def insert_func(self, func: Function) -> None:
        self.funcs.append(func)

    def remove_func(self, func: Function) -> None:
        """Drop a function; raise ValueError if it is not in this unit."""
        self.funcs.remove(func)

    def __iter__(self) -> Iterator[Function]:
        return iter(self.funcs)

    def __reversed__(self) -> Iterator[Function]:
        return reversed(self.funcs)

    def output(self, out: TextIO) -> None:
        for func in self.funcs:
            func.output(out)


@dataclass
class IRBuilder:
    """Holds the unit being built and the block new instructions go into."""

    unit: Unit
    insert_bb: BasicBlock | None = None