"""
frontc Parser Package

Recursive descent parser with precedence climbing for expressions, the AST it
produces, a tag-dispatched visitor and the AST dump formats.

Key Features:
- Both ``let``/``fn`` and C-style declarations
- Fail-fast error reporting with expected/found tokens
- Source spans on every node
- Structured (dict/JSON) and indented text AST dumps

Author: xwest
"""

from .ast_nodes import *
from .parser import Parser, Precedence, parse_string, parse_file
from .visitor import ASTVisitor, iter_children, walk
from .serializer import to_dict, to_json, to_text, format_expression, format_type_ref
from .errors import ParseError, ParseErrorKind

__all__ = [
    # Core parser
    "Parser", "Precedence", "parse_string", "parse_file",

    # AST nodes
    "AST", "ASTNode", "ASTNodeType", "SourceSpan",
    "Program", "Statement", "Declaration", "Expression", "TypeRef",
    "VariableDecl", "FunctionDecl", "Parameter", "StructDecl", "StructField",
    "ReturnStatement", "ExpressionStatement", "BlockStatement",
    "IfStatement", "WhileStatement",
    "Identifier", "IntegerLiteral", "StringLiteral", "BooleanLiteral",
    "BinaryOp", "UnaryOp", "FunctionCall", "Assignment", "IndexAccess", "MemberAccess",
    "NamedTypeRef", "PointerTypeRef", "ArrayTypeRef", "FunctionTypeRef",
    "BinaryOperator", "UnaryOperator",

    # Traversal and dumps
    "ASTVisitor", "iter_children", "walk",
    "to_dict", "to_json", "to_text", "format_expression", "format_type_ref",

    # Error handling
    "ParseError", "ParseErrorKind",
]
