# sysyc

`sysyc` is a small compiler toolkit for SysY. SysY is a C-like teaching
language with `int` and `void` types, functions, `if`/`else`, `while`, and
arithmetic, comparison and logical expressions.

You build a program's abstract syntax tree out of node objects. The toolkit
can then print the tree, check its types, and lower it to textual
intermediate code in the style of LLVM IR. That code uses `alloca`, `load`,
`store`, `icmp`, `br`, `call`, `ret`, `zext` and `xor` instructions.

The package is pure Python and needs nothing outside the standard library.

## Modules

| Module | Contents |
| --- | --- |
| `sysyc.types` | `Type` and its subclasses `IntType`, `VoidType`, `FunctionType` and `PointerType`. It also has the shared instances `INT_TYPE` (`i32`), `BOOL_TYPE` (`i1`) and `VOID_TYPE` (`void`). Pointers print as e.g. `i32*`, and function types as `i32()`. |
| `sysyc.symbols` | The symbol entries `ConstantSymbolEntry`, `IdentifierSymbolEntry` and `TemporarySymbolEntry`, which print as `5`, `@name` and `%t3`. It also has the scoped `SymbolTable` with `install` and `lookup`, and `next_label()`, which returns fresh numbers for temporaries and blocks. |
| `sysyc.scopes` | `ScopeTable` and `ScopeEntry`, a chained scope table that records the value, line and offset of identifiers. `install` raises `KeyError` if the name is already bound in that scope. `set_value` raises `KeyError` if the name is not visible. |
| `sysyc.operand` | `Operand`, an IR value backed by a symbol entry. It records its defining instruction and its users. |
| `sysyc.instructions` | The instruction classes. Each one writes its text form with `output(out)`. |
| `sysyc.blocks` | `BasicBlock`, `Function`, `Unit` and the `IRBuilder` dataclass. The builder holds the unit and the current insertion block. |
| `sysyc.expressions` | The expression nodes `Constant`, `Id`, `UnaryExpr`, `BinaryExpr` and `CallExpr`, their base classes `Node` and `ExprNode`, and `TypeCheckError`. |
| `sysyc.statements` | The statement nodes `ExprStmt`, `BlankStmt`, `CompoundStmt`, `SeqNode`, `AssignStmt`, `DeclStmt` (with `IdList`), `IfStmt`, `IfElseStmt`, `WhileStmt`, `ReturnStmt`, `BreakStmt`, `ContinueStmt` and `FunctionDef`. It also has `Ast`, the root of a program. |
| `sysyc.runtime` | `SysYRuntime`, the SysY runtime library. It provides `getint`, `getch`, `getfloat`, `getarray`, `getfarray`, `putint`, `putch`, `putfloat`, `putarray`, `putfarray` and the printf-style `putf`. It also provides the timers `starttime`, `stoptime` and `report`. |

## Example

```python
import io

from sysyc.blocks import Unit
from sysyc.expressions import Constant
from sysyc.statements import Ast, CompoundStmt, FunctionDef, ReturnStmt
from sysyc.symbols import ConstantSymbolEntry, IdentifierSymbolEntry
from sysyc.types import INT_TYPE, FunctionType

main = IdentifierSymbolEntry(FunctionType(INT_TYPE, []), "main", IdentifierSymbolEntry.GLOBAL)
body = CompoundStmt(ReturnStmt(Constant(ConstantSymbolEntry(INT_TYPE, 0))))
ast = Ast(FunctionDef(main, body))

out = io.StringIO()
ast.output(out)          # the tree as indented text, starting with "program"
ast.type_check()         # raises TypeCheckError on a semantic error
unit = Unit()
ast.gen_code(unit, out)  # runtime declarations, then the IR goes into unit
unit.output(out)         # "define i32 @main(){ ... ret i32 0 ... }"
print(out.getvalue())
```

## How it works

- **Type checking.** `Ast.type_check()` raises `TypeCheckError` in these cases:
  - a binary expression whose operands are of different kinds;
  - a binary expression with a void operand;
  - a `return` that does not fit the function's return type;
  - a `return` outside any function;
  - a non-void function that has no `return`.

  A `CallExpr` checks its argument count when it is constructed. It raises
  `TypeCheckError` at that point if the count is wrong.
- **Code generation.** `Ast.gen_code(unit, out)` first writes declarations of
  `getint`, `getch`, `putint` and `putch` to `out`. Global variable
  declarations are also written straight to `out`, as are the jumps that
  enter `while` loops. Function bodies are built into the `Unit`.
  `Unit.output(out)` then writes each function. Blocks are written in
  breadth-first order from the entry block. Each block is labelled `B<n>`,
  with a `; preds = ...` comment when it has predecessors. Empty blocks are
  skipped. Parameters are listed as `i32`.
- **Runtime.** `SysYRuntime` reads from and writes to the streams passed to
  it, and uses `sys.stdin`, `sys.stdout` and `sys.stderr` by default. Floats
  are rounded to single precision and printed in C's `%a` hexadecimal form.
  - `getint` and `getfloat` raise `EOFError` at the end of input, and
    `ValueError` when no number follows.
  - `stoptime` records an interval split into hours, minutes, seconds and
    microseconds. It raises `RuntimeError` if no timer was started.
  - `report` writes every interval and the total to the error stream.

## What it does not do

- There is no lexer or parser, so SysY source text cannot be read. Trees are
  built in code from the node classes.
- There is no command-line program.
- `break` and `continue` appear in the printed tree but generate no
  instructions.
- The intermediate code is text only. Nothing here assembles, links or runs
  it.

## Tests

The tests use pytest, which is declared under the `test` extra:

```
pip install -e .[test]
pytest
```