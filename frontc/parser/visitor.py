"""
AST traversal for frontc.

``ASTVisitor.visit`` looks the node's ``node_type`` tag up in a fixed table
and calls the matching ``visit_*`` method. Every ``visit_*`` method defaults
to ``generic_visit``, which visits all children in source order, so a
concrete visitor only overrides the node categories it cares about.

Author: xwest
"""

from typing import Any, Dict, Iterator

from .ast_nodes import ASTNode, ASTNodeType


_DISPATCH: Dict[ASTNodeType, str] = {
    ASTNodeType.PROGRAM: "visit_program",
    ASTNodeType.VARIABLE_DECL: "visit_variable_decl",
    ASTNodeType.FUNCTION_DECL: "visit_function_decl",
    ASTNodeType.PARAMETER: "visit_parameter",
    ASTNodeType.STRUCT_DECL: "visit_struct_decl",
    ASTNodeType.STRUCT_FIELD: "visit_struct_field",
    ASTNodeType.RETURN_STATEMENT: "visit_return_statement",
    ASTNodeType.EXPRESSION_STATEMENT: "visit_expression_statement",
    ASTNodeType.BLOCK_STATEMENT: "visit_block_statement",
    ASTNodeType.IF_STATEMENT: "visit_if_statement",
    ASTNodeType.WHILE_STATEMENT: "visit_while_statement",
    ASTNodeType.IDENTIFIER: "visit_identifier",
    ASTNodeType.INTEGER_LITERAL: "visit_integer_literal",
    ASTNodeType.STRING_LITERAL: "visit_string_literal",
    ASTNodeType.BOOLEAN_LITERAL: "visit_boolean_literal",
    ASTNodeType.BINARY_OP: "visit_binary_op",
    ASTNodeType.UNARY_OP: "visit_unary_op",
    ASTNodeType.FUNCTION_CALL: "visit_function_call",
    ASTNodeType.ASSIGNMENT: "visit_assignment",
    ASTNodeType.INDEX_ACCESS: "visit_index_access",
    ASTNodeType.MEMBER_ACCESS: "visit_member_access",
    ASTNodeType.NAMED_TYPE: "visit_type_ref",
    ASTNodeType.POINTER_TYPE: "visit_type_ref",
    ASTNodeType.ARRAY_TYPE: "visit_type_ref",
    ASTNodeType.FUNCTION_TYPE: "visit_type_ref",
}


def iter_children(node: ASTNode) -> Iterator[ASTNode]:
    """Yield the direct children of ``node`` in source order."""
    yield from node.children()


def walk(node: ASTNode) -> Iterator[ASTNode]:
    """
    Yield ``node`` and all of its descendants in pre-order.

    Uses an explicit stack, so arbitrarily deep trees do not hit the
    interpreter's recursion limit.
    """
    stack = [node]
    while stack:
        current = stack.pop()
        yield current
        stack.extend(reversed(current.children()))


class ASTVisitor:
    """Base visitor with one method per node category."""

    def visit(self, node: ASTNode) -> Any:
        method = getattr(self, _DISPATCH[node.node_type])
        return method(node)

    def generic_visit(self, node: ASTNode) -> Any:
        for child in iter_children(node):
            self.visit(child)
        return None

    # Top level and declarations
    def visit_program(self, node) -> Any:
        return self.generic_visit(node)

    def visit_variable_decl(self, node) -> Any:
        return self.generic_visit(node)

    def visit_function_decl(self, node) -> Any:
        return self.generic_visit(node)

    def visit_parameter(self, node) -> Any:
        return self.generic_visit(node)

    def visit_struct_decl(self, node) -> Any:
        return self.generic_visit(node)

    def visit_struct_field(self, node) -> Any:
        return self.generic_visit(node)

    # Statements
    def visit_return_statement(self, node) -> Any:
        return self.generic_visit(node)

    def visit_expression_statement(self, node) -> Any:
        return self.generic_visit(node)

    def visit_block_statement(self, node) -> Any:
        return self.generic_visit(node)

    def visit_if_statement(self, node) -> Any:
        return self.generic_visit(node)

    def visit_while_statement(self, node) -> Any:
        return self.generic_visit(node)

    # Expressions
    def visit_identifier(self, node) -> Any:
        return self.generic_visit(node)

    def visit_integer_literal(self, node) -> Any:
        return self.generic_visit(node)

    def visit_string_literal(self, node) -> Any:
        return self.generic_visit(node)

    def visit_boolean_literal(self, node) -> Any:
        return self.generic_visit(node)

    def visit_binary_op(self, node) -> Any:
        return self.generic_visit(node)

    def visit_unary_op(self, node) -> Any:
        return self.generic_visit(node)

    def visit_function_call(self, node) -> Any:
        return self.generic_visit(node)

    def visit_assignment(self, node) -> Any:
        return self.generic_visit(node)

    def visit_index_access(self, node) -> Any:
        return self.generic_visit(node)

    def visit_member_access(self, node) -> Any:
        return self.generic_visit(node)

    # Types
    def visit_type_ref(self, node) -> Any:
        return self.generic_visit(node)
