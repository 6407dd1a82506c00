"""
AST serializers for diagnostics.

Two output forms:
- ``to_dict`` / ``to_json``: nested records, one key per node field
- ``to_text``: an indented tree, one node per line

plus ``format_expression``, which prints an expression back as fully
parenthesised source. None of these functions modify the tree.

Author: xwest
"""

import json
from typing import Any, Callable, Dict, List, Optional

from .ast_nodes import (
    ASTNode, ASTNodeType, Expression, TypeRef, BinaryOperator, UnaryOperator
)


# ============================================================================
# Structured form
# ============================================================================

# Node fields exported by to_dict, in output order
_FIELDS: Dict[ASTNodeType, tuple] = {
    ASTNodeType.PROGRAM: ("body",),
    ASTNodeType.VARIABLE_DECL: ("name", "is_const", "type_annotation", "initializer"),
    ASTNodeType.FUNCTION_DECL: ("name", "params", "return_type", "body"),
    ASTNodeType.PARAMETER: ("name", "type_annotation"),
    ASTNodeType.STRUCT_DECL: ("name", "fields"),
    ASTNodeType.STRUCT_FIELD: ("name", "type_annotation"),
    ASTNodeType.RETURN_STATEMENT: ("value",),
    ASTNodeType.EXPRESSION_STATEMENT: ("expression",),
    ASTNodeType.BLOCK_STATEMENT: ("statements",),
    ASTNodeType.IF_STATEMENT: ("condition", "then_branch", "else_branch"),
    ASTNodeType.WHILE_STATEMENT: ("condition", "body"),
    ASTNodeType.IDENTIFIER: ("name",),
    ASTNodeType.INTEGER_LITERAL: ("value",),
    ASTNodeType.STRING_LITERAL: ("value",),
    ASTNodeType.BOOLEAN_LITERAL: ("value",),
    ASTNodeType.BINARY_OP: ("operator", "left", "right"),
    ASTNodeType.UNARY_OP: ("operator", "operand"),
    ASTNodeType.FUNCTION_CALL: ("callee", "arguments"),
    ASTNodeType.ASSIGNMENT: ("target", "value"),
    ASTNodeType.INDEX_ACCESS: ("target", "index"),
    ASTNodeType.MEMBER_ACCESS: ("target", "member"),
    ASTNodeType.NAMED_TYPE: ("name", "is_struct"),
    ASTNodeType.POINTER_TYPE: ("pointee",),
    ASTNodeType.ARRAY_TYPE: ("element", "length"),
    ASTNodeType.FUNCTION_TYPE: ("params", "return_type"),
}


def _export(value: Any) -> Any:
    if isinstance(value, ASTNode):
        return to_dict(value)
    if isinstance(value, list):
        return [_export(item) for item in value]
    if isinstance(value, (BinaryOperator, UnaryOperator)):
        return value.value
    return value


def to_dict(node: ASTNode) -> Dict[str, Any]:
    """Convert ``node`` and its subtree into plain dicts and lists."""
    record: Dict[str, Any] = {
        "node": node.node_type.name.lower(),
        "location": f"{node.span.start.line}:{node.span.start.column}",
    }
    for field_name in _FIELDS[node.node_type]:
        record[field_name] = _export(getattr(node, field_name))
    if node.resolved_type is not None:
        record["resolved_type"] = str(node.resolved_type)
    return record


def to_json(node: ASTNode, indent: Optional[int] = 2) -> str:
    return json.dumps(to_dict(node), indent=indent)


# ============================================================================
# Expression and type formatting
# ============================================================================

def format_type_ref(type_ref: TypeRef) -> str:
    """Render a type reference the way it would be written."""
    kind = type_ref.node_type
    if kind == ASTNodeType.NAMED_TYPE:
        return f"struct {type_ref.name}" if type_ref.is_struct else type_ref.name
    if kind == ASTNodeType.POINTER_TYPE:
        return f"{format_type_ref(type_ref.pointee)}*"
    if kind == ASTNodeType.ARRAY_TYPE:
        return f"{format_type_ref(type_ref.element)}[{type_ref.length}]"
    if kind == ASTNodeType.FUNCTION_TYPE:
        params = ", ".join(format_type_ref(p) for p in type_ref.params)
        return f"fn({params}) -> {format_type_ref(type_ref.return_type)}"
    raise ValueError(f"not a type reference: {type_ref.node_type.value}")


def format_expression(expr: Expression) -> str:
    """Render an expression as fully parenthesised source, e.g. ``(x + 42)``."""
    kind = expr.node_type
    if kind == ASTNodeType.IDENTIFIER:
        return expr.name
    if kind == ASTNodeType.INTEGER_LITERAL:
        return str(expr.value)
    if kind == ASTNodeType.STRING_LITERAL:
        return json.dumps(expr.value)
    if kind == ASTNodeType.BOOLEAN_LITERAL:
        return "true" if expr.value else "false"
    if kind == ASTNodeType.BINARY_OP:
        return f"({format_expression(expr.left)} {expr.operator.value} {format_expression(expr.right)})"
    if kind == ASTNodeType.UNARY_OP:
        return f"({expr.operator.value}{format_expression(expr.operand)})"
    if kind == ASTNodeType.FUNCTION_CALL:
        args = ", ".join(format_expression(arg) for arg in expr.arguments)
        return f"{format_expression(expr.callee)}({args})"
    if kind == ASTNodeType.ASSIGNMENT:
        return f"({format_expression(expr.target)} = {format_expression(expr.value)})"
    if kind == ASTNodeType.INDEX_ACCESS:
        return f"{format_expression(expr.target)}[{format_expression(expr.index)}]"
    if kind == ASTNodeType.MEMBER_ACCESS:
        return f"{format_expression(expr.target)}.{expr.member}"
    raise ValueError(f"not an expression: {expr.node_type.value}")


# ============================================================================
# Indented text form
# ============================================================================

def _describe_variable(node) -> str:
    text = f"VariableDecl {node.name}"
    if node.is_const:
        text = f"VariableDecl const {node.name}"
    if node.type_annotation is not None:
        text += f": {format_type_ref(node.type_annotation)}"
    return text


def _describe_function(node) -> str:
    params = ", ".join(
        f"{p.name}: {format_type_ref(p.type_annotation)}" for p in node.params
    )
    text = f"FunctionDecl {node.name}({params})"
    if node.return_type is not None:
        text += f" -> {format_type_ref(node.return_type)}"
    return text


_DESCRIBE: Dict[ASTNodeType, Callable[[Any], str]] = {
    ASTNodeType.PROGRAM: lambda n: "Program",
    ASTNodeType.VARIABLE_DECL: _describe_variable,
    ASTNodeType.FUNCTION_DECL: _describe_function,
    ASTNodeType.PARAMETER: lambda n: f"Parameter {n.name}: {format_type_ref(n.type_annotation)}",
    ASTNodeType.STRUCT_DECL: lambda n: f"StructDecl {n.name}",
    ASTNodeType.STRUCT_FIELD: lambda n: f"Field {n.name}: {format_type_ref(n.type_annotation)}",
    ASTNodeType.RETURN_STATEMENT: lambda n: "Return",
    ASTNodeType.EXPRESSION_STATEMENT: lambda n: "ExpressionStatement",
    ASTNodeType.BLOCK_STATEMENT: lambda n: "Block",
    ASTNodeType.IF_STATEMENT: lambda n: "If" if n.else_branch is None else "IfElse",
    ASTNodeType.WHILE_STATEMENT: lambda n: "While",
    ASTNodeType.IDENTIFIER: lambda n: f"Identifier {n.name}",
    ASTNodeType.INTEGER_LITERAL: lambda n: f"IntegerLiteral {n.value}",
    ASTNodeType.STRING_LITERAL: lambda n: f"StringLiteral {json.dumps(n.value)}",
    ASTNodeType.BOOLEAN_LITERAL: lambda n: f"BooleanLiteral {'true' if n.value else 'false'}",
    ASTNodeType.BINARY_OP: lambda n: f"BinaryOp {n.operator.value}",
    ASTNodeType.UNARY_OP: lambda n: f"UnaryOp {n.operator.value}",
    ASTNodeType.FUNCTION_CALL: lambda n: f"FunctionCall ({len(n.arguments)} args)",
    ASTNodeType.ASSIGNMENT: lambda n: "Assignment",
    ASTNodeType.INDEX_ACCESS: lambda n: "IndexAccess",
    ASTNodeType.MEMBER_ACCESS: lambda n: f"MemberAccess .{n.member}",
    ASTNodeType.NAMED_TYPE: lambda n: f"Type {format_type_ref(n)}",
    ASTNodeType.POINTER_TYPE: lambda n: f"Type {format_type_ref(n)}",
    ASTNodeType.ARRAY_TYPE: lambda n: f"Type {format_type_ref(n)}",
    ASTNodeType.FUNCTION_TYPE: lambda n: f"Type {format_type_ref(n)}",
}


def _folds_children(node: ASTNode) -> bool:
    """Type references and parameters are folded into their owner's line."""
    return isinstance(node, TypeRef) or node.node_type in (
        ASTNodeType.VARIABLE_DECL, ASTNodeType.FUNCTION_DECL,
        ASTNodeType.PARAMETER, ASTNodeType.STRUCT_FIELD,
    )


def to_text(node: ASTNode, indent: str = "  ") -> str:
    """
    Render the tree one node per line, children indented under their parent.

    Nodes with a ``resolved_type`` get a ``: <type>`` suffix.
    """
    lines: List[str] = []
    stack = [(node, 0)]
    while stack:
        current, depth = stack.pop()
        line = _DESCRIBE[current.node_type](current)
        if current.resolved_type is not None:
            line += f" : {current.resolved_type}"
        lines.append(indent * depth + line)

        children = current.children()
        if _folds_children(current):
            children = [
                c for c in children
                if not isinstance(c, TypeRef) and c.node_type != ASTNodeType.PARAMETER
            ]
        for child in reversed(children):
            stack.append((child, depth + 1))
    return "\n".join(lines)
