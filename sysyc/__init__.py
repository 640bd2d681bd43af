"""SysY compiler toolkit: syntax trees, type checking, LLVM-style IR and the runtime library."""

__version__ = "0.1.0"

__all__ = [
    "blocks",
    "expressions",
    "instructions",
    "operand",
    "runtime",
    "scopes",
    "statements",
    "symbols",
    "types",
]