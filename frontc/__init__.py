"""
frontc Compiler Front End

Turns the text of one C-like translation unit into a validated, typed,
basic-block intermediate representation ready for a code generator.

Architecture:
    frontc/
    ├── lexer/           # Tokenization and lexical analysis
    ├── parser/          # Syntax analysis, AST, visitor and AST dumps
    ├── analyzer/        # Symbol table, name resolution and type checking
    ├── ir/              # Intermediate representation and AST lowering
    └── pipeline.py      # compile_source / compile_file

Author: xwest
License: MIT
"""

__version__ = "0.1.0"
__author__ = "xwest"
__license__ = "MIT"

from .lexer import Lexer
from .parser import Parser
from .analyzer import NameResolver, TypeChecker, SymbolTable
from .ir import IRBuilder
from .pipeline import CompilerOptions, CompilationResult, compile_source, compile_file

__all__ = [
    # Stages
    "Lexer",
    "Parser",
    "NameResolver",
    "TypeChecker",
    "SymbolTable",
    "IRBuilder",

    # Pipeline
    "CompilerOptions",
    "CompilationResult",
    "compile_source",
    "compile_file",

    # Version info
    "__version__",
    "__author__",
    "__license__",
]
