"""
frontc Intermediate Representation

Basic-block IR produced from the type-checked AST:
- Operands (``Variable``, ``Constant``) and three-address instructions
- Basic blocks with a single terminator and a per-function control flow graph
- Functions and the module that owns them
- The AST to IR builder

Author: xwest
"""

from .ir_nodes import (
    Variable, Constant, Operand, IRBinaryOperator,
    Instruction, Const, BinaryOp, Call, Alloca, Load, Store, Jump, Branch, Return,
    BasicBlock, ControlFlowGraph, Function, Module
)
from .ir_builder import IRBuilder, GLOBAL_INIT_FUNCTION
from .errors import IRError, IRErrorKind

__all__ = [
    # Operands
    "Variable", "Constant", "Operand", "IRBinaryOperator",

    # Instructions
    "Instruction", "Const", "BinaryOp", "Call", "Alloca", "Load", "Store",
    "Jump", "Branch", "Return",

    # Structure
    "BasicBlock", "ControlFlowGraph", "Function", "Module",

    # Builder
    "IRBuilder", "GLOBAL_INIT_FUNCTION",

    # Error handling
    "IRError", "IRErrorKind",
]
