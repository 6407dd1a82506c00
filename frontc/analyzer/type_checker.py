"""
Type checker for frontc.

Infers expression types bottom-up and checks declarations, calls, returns and
conditions against them. Uses its own ``SymbolTable`` holding concrete types
and a ``TypeRegistry`` for struct layouts.

The first problem found raises ``TypeCheckError``; there is no recovery.
On success every expression and declaration carries its ``resolved_type``.

Typing rules:
- ``+ - * / %``: identical numeric operands, result is the operand type
- ``== != < <= > >=``: identical scalar operands, result is bool
- ``&& ||`` and ``!``: bool operands, result is bool
- unary ``-``: numeric operand
- ``&e``: pointer to the type of ``e``; ``*p``: the pointee of ``p``
- calls: named function, exact argument count, exact argument types
- no implicit conversions anywhere

Author: xwest
"""

import logging
from typing import List, Optional

from ..parser.ast_nodes import (
    ASTNode, ASTNodeType, Program, Expression, TypeRef,
    VariableDecl, FunctionDecl, StructDecl,
    ReturnStatement, ExpressionStatement, BlockStatement, IfStatement, WhileStatement,
    Identifier, IntegerLiteral, StringLiteral, BooleanLiteral,
    BinaryOp, UnaryOp, FunctionCall, Assignment, IndexAccess, MemberAccess,
    UnaryOperator
)
from ..parser.visitor import ASTVisitor
from .symbol_table import SymbolTable, Symbol, SymbolKind
from .types import (
    Type, PointerType, ArrayType, FunctionType, UserDefinedType, UserTypeKind,
    VOID, BOOL, CHAR, INT, primitive_type, struct_type, TypeRegistry
)
from .errors import (
    AlreadyDefinedError, TypeCheckError, create_unknown_name_error,
    create_type_mismatch_error, create_invalid_operation_error,
    create_argument_count_error, create_argument_type_error
)

logger = logging.getLogger(__name__)


class TypeChecker(ASTVisitor):
    """
    Fail-fast type checker.

    Expression ``visit_*`` methods return the inferred ``Type``; statement
    methods return ``None``.
    """

    def __init__(self, symbol_table: Optional[SymbolTable] = None,
                 registry: Optional[TypeRegistry] = None):
        self.symbol_table = symbol_table if symbol_table is not None else SymbolTable()
        self.registry = registry if registry is not None else TypeRegistry()
        self._return_types: List[Type] = []
        self._struct_being_defined: Optional[str] = None

    def check(self, program: Program) -> Program:
        """
        Type check ``program`` and annotate it in place.

        Returns:
            The same program, with ``resolved_type`` slots filled in

        Raises:
            TypeCheckError: On the first type error
        """
        self.visit(program)
        logger.debug("type checking finished for %d top-level statements", len(program.body))
        return program

    def check_expression(self, expr: Expression) -> Type:
        """Infer the type of a single expression in the current scope."""
        return self.visit(expr)

    # ========================================================================
    # Helpers
    # ========================================================================

    @staticmethod
    def _annotate(node: ASTNode, resolved: Type) -> Type:
        node.resolved_type = resolved
        return resolved

    def _expect(self, expected: Type, actual: Type, node: ASTNode):
        if expected != actual:
            raise create_type_mismatch_error(expected, actual, node.location, node)

    def _define(self, symbol: Symbol, node: ASTNode) -> Symbol:
        try:
            return self.symbol_table.define(symbol)
        except AlreadyDefinedError as e:
            raise create_invalid_operation_error(
                f"'{symbol.name}' is already defined in this scope",
                node.location, node
            ) from e

    def resolve_type(self, type_ref: TypeRef) -> Type:
        """Turn a written type into a ``Type`` value."""
        kind = type_ref.node_type

        if kind == ASTNodeType.POINTER_TYPE:
            resolved: Type = PointerType(self.resolve_type(type_ref.pointee))
        elif kind == ASTNodeType.ARRAY_TYPE:
            resolved = ArrayType(self.resolve_type(type_ref.element), type_ref.length)
        elif kind == ASTNodeType.FUNCTION_TYPE:
            resolved = FunctionType(
                tuple(self.resolve_type(p) for p in type_ref.params),
                self.resolve_type(type_ref.return_type)
            )
        else:
            resolved = self._resolve_named_type(type_ref)

        return self._annotate(type_ref, resolved)

    def _resolve_named_type(self, type_ref) -> Type:
        name = type_ref.name
        if not type_ref.is_struct:
            primitive = primitive_type(name)
            if primitive is not None:
                return primitive

        if name == self._struct_being_defined:
            return struct_type(name)

        registered = self.registry.get(name)
        if isinstance(registered, UserDefinedType):
            return registered

        raise create_invalid_operation_error(
            f"Unknown type '{name}'", type_ref.location, type_ref
        )

    def _resolve_value_type(self, type_ref: TypeRef, what: str) -> Type:
        """Resolve a type that a variable, parameter or field will hold."""
        resolved = self.resolve_type(type_ref)
        if resolved.is_void:
            raise create_invalid_operation_error(
                f"{what} cannot have type void", type_ref.location, type_ref
            )
        return resolved

    # ========================================================================
    # Declarations
    # ========================================================================

    def visit_variable_decl(self, node: VariableDecl):
        is_mutable = not node.is_const

        if node.type_annotation is not None:
            declared = self._resolve_value_type(node.type_annotation, f"Variable '{node.name}'")
            node.resolved_symbol = self._define(
                Symbol(node.name, declared, SymbolKind.VARIABLE,
                       is_mutable=is_mutable, location=node.location),
                node
            )
            if node.initializer is not None:
                self._expect(declared, self.visit(node.initializer), node.initializer)
            self._annotate(node, declared)
            return None

        if node.initializer is None:
            raise create_invalid_operation_error(
                f"Cannot infer a type for '{node.name}' without an annotation or initializer",
                node.location, node
            )

        inferred = self.visit(node.initializer)
        if inferred.is_void:
            raise create_invalid_operation_error(
                f"Variable '{node.name}' cannot have type void", node.location, node
            )
        node.resolved_symbol = self._define(
            Symbol(node.name, inferred, SymbolKind.VARIABLE,
                   is_mutable=is_mutable, location=node.location),
            node
        )
        self._annotate(node, inferred)
        return None

    def visit_function_decl(self, node: FunctionDecl):
        param_types = []
        for param in node.params:
            param_type = self._resolve_value_type(param.type_annotation, f"Parameter '{param.name}'")
            param_types.append(param_type)

        return_type = VOID
        if node.return_type is not None:
            return_type = self.resolve_type(node.return_type)
            if isinstance(return_type, ArrayType):
                raise create_invalid_operation_error(
                    "Functions cannot return arrays", node.return_type.location, node
                )

        function_type = FunctionType(tuple(param_types), return_type)
        self._annotate(node, function_type)
        node.resolved_symbol = self._define(
            Symbol(node.name, function_type, SymbolKind.FUNCTION,
                   is_mutable=False, location=node.location),
            node
        )

        self.symbol_table.enter_scope()
        self._return_types.append(return_type)
        try:
            for param, param_type in zip(node.params, param_types):
                self._annotate(param, param_type)
                param.resolved_symbol = self._define(
                    Symbol(param.name, param_type, SymbolKind.PARAMETER, location=param.location),
                    param
                )
            for statement in node.body.statements:
                self.visit(statement)
        finally:
            self._return_types.pop()
            self.symbol_table.exit_scope()
        return None

    def visit_struct_decl(self, node: StructDecl):
        if self.registry.exists(node.name):
            raise create_invalid_operation_error(
                f"Type '{node.name}' is already defined", node.location, node
            )

        self._struct_being_defined = node.name
        try:
            fields = []
            seen = set()
            for field in node.fields:
                if field.name in seen:
                    raise create_invalid_operation_error(
                        f"Duplicate field '{field.name}' in struct '{node.name}'",
                        field.location, field
                    )
                seen.add(field.name)
                field_type = self._resolve_value_type(field.type_annotation, f"Field '{field.name}'")
                element_type = field_type
                while isinstance(element_type, ArrayType):
                    element_type = element_type.element
                if element_type == struct_type(node.name):
                    raise create_invalid_operation_error(
                        f"Struct '{node.name}' cannot contain itself", field.location, field
                    )
                fields.append((field.name, self._annotate(field, field_type)))
        finally:
            self._struct_being_defined = None

        declared = struct_type(node.name)
        self.registry.register(node.name, declared, fields)
        node.resolved_symbol = self._define(
            Symbol(node.name, declared, SymbolKind.TYPE, is_mutable=False, location=node.location),
            node
        )
        self._annotate(node, declared)
        return None

    # ========================================================================
    # Statements
    # ========================================================================

    def visit_block_statement(self, node: BlockStatement):
        self.symbol_table.enter_scope()
        try:
            for statement in node.statements:
                self.visit(statement)
        finally:
            self.symbol_table.exit_scope()
        return None

    def visit_expression_statement(self, node: ExpressionStatement):
        self.visit(node.expression)
        return None

    def visit_if_statement(self, node: IfStatement):
        self._expect(BOOL, self.visit(node.condition), node.condition)
        self.visit(node.then_branch)
        if node.else_branch is not None:
            self.visit(node.else_branch)
        return None

    def visit_while_statement(self, node: WhileStatement):
        self._expect(BOOL, self.visit(node.condition), node.condition)
        self.visit(node.body)
        return None

    def visit_return_statement(self, node: ReturnStatement):
        if not self._return_types:
            raise create_invalid_operation_error(
                "'return' outside of a function", node.location, node
            )
        expected = self._return_types[-1]

        if node.value is None:
            self._expect(expected, VOID, node)
            return None

        actual = self.visit(node.value)
        self._expect(expected, actual, node.value)
        return None

    # ========================================================================
    # Expressions
    # ========================================================================

    def visit_integer_literal(self, node: IntegerLiteral) -> Type:
        return self._annotate(node, INT)

    def visit_string_literal(self, node: StringLiteral) -> Type:
        return self._annotate(node, PointerType(CHAR))

    def visit_boolean_literal(self, node: BooleanLiteral) -> Type:
        return self._annotate(node, BOOL)

    def visit_identifier(self, node: Identifier) -> Type:
        symbol = self.symbol_table.lookup(node.name)
        if symbol is None:
            raise create_unknown_name_error(node.name, node.location, node)
        if symbol.kind == SymbolKind.TYPE:
            raise create_invalid_operation_error(
                f"'{node.name}' is a type, not a value", node.location, node
            )
        node.resolved_symbol = symbol
        return self._annotate(node, symbol.symbol_type)

    def visit_binary_op(self, node: BinaryOp) -> Type:
        left = self.visit(node.left)
        right = self.visit(node.right)
        operator = node.operator

        if operator.is_logical:
            self._expect(BOOL, left, node.left)
            self._expect(BOOL, right, node.right)
            return self._annotate(node, BOOL)

        self._expect(left, right, node.right)

        if operator.is_arithmetic:
            if not left.is_numeric:
                raise create_invalid_operation_error(
                    f"Operator '{operator.value}' cannot be applied to {left}",
                    node.location, node
                )
            return self._annotate(node, left)

        if not left.is_scalar:
            raise create_invalid_operation_error(
                f"Operator '{operator.value}' cannot compare values of type {left}",
                node.location, node
            )
        return self._annotate(node, BOOL)

    def visit_unary_op(self, node: UnaryOp) -> Type:
        operand = self.visit(node.operand)
        operator = node.operator

        if operator == UnaryOperator.NEG:
            if not operand.is_numeric:
                raise create_invalid_operation_error(
                    f"Cannot negate a value of type {operand}", node.location, node
                )
            return self._annotate(node, operand)

        if operator == UnaryOperator.NOT:
            self._expect(BOOL, operand, node.operand)
            return self._annotate(node, BOOL)

        if operator == UnaryOperator.ADDR_OF:
            if not self._is_lvalue(node.operand):
                raise create_invalid_operation_error(
                    "Cannot take the address of a temporary value", node.location, node
                )
            return self._annotate(node, PointerType(operand))

        # Dereference
        if not isinstance(operand, PointerType):
            raise create_invalid_operation_error(
                f"Cannot dereference a value of type {operand}", node.location, node
            )
        if operand.pointee.is_void:
            raise create_invalid_operation_error(
                "Cannot dereference a void pointer", node.location, node
            )
        return self._annotate(node, operand.pointee)

    def visit_function_call(self, node: FunctionCall) -> Type:
        callee = node.callee
        if not isinstance(callee, Identifier):
            raise create_invalid_operation_error(
                "Only named functions can be called", callee.location, callee
            )

        symbol = self.symbol_table.lookup(callee.name)
        if symbol is None:
            raise create_unknown_name_error(callee.name, callee.location, callee)
        if symbol.kind != SymbolKind.FUNCTION:
            raise create_invalid_operation_error(
                f"'{callee.name}' is not a function", callee.location, callee
            )
        callee.resolved_symbol = symbol
        signature = self._annotate(callee, symbol.symbol_type)

        if len(node.arguments) != len(signature.params):
            raise create_argument_count_error(
                callee.name, len(signature.params), len(node.arguments), node.location, node
            )

        for index, (argument, expected) in enumerate(zip(node.arguments, signature.params)):
            actual = self.visit(argument)
            if actual != expected:
                raise create_argument_type_error(
                    callee.name, index, expected, actual, argument.location, argument
                )

        return self._annotate(node, signature.return_type)

    def visit_assignment(self, node: Assignment) -> Type:
        target_type = self.visit(node.target)

        root = self._assigned_binding(node.target)
        if root is not None:
            symbol = root.resolved_symbol
            if symbol.kind == SymbolKind.FUNCTION:
                raise create_invalid_operation_error(
                    f"Cannot assign to function '{symbol.name}'", node.location, node
                )
            if not symbol.is_mutable:
                raise create_invalid_operation_error(
                    f"Cannot assign to constant '{symbol.name}'", node.location, node
                )
        if isinstance(target_type, ArrayType):
            raise create_invalid_operation_error(
                "Arrays cannot be assigned as a whole", node.location, node
            )

        self._expect(target_type, self.visit(node.value), node.value)
        return self._annotate(node, target_type)

    def visit_index_access(self, node: IndexAccess) -> Type:
        target_type = self.visit(node.target)
        index_type = self.visit(node.index)

        if not index_type.is_integral:
            raise create_type_mismatch_error(INT, index_type, node.index.location, node.index)

        if isinstance(target_type, ArrayType):
            return self._annotate(node, target_type.element)
        if isinstance(target_type, PointerType) and not target_type.pointee.is_void:
            return self._annotate(node, target_type.pointee)

        raise create_invalid_operation_error(
            f"Cannot index a value of type {target_type}", node.location, node
        )

    def visit_member_access(self, node: MemberAccess) -> Type:
        target_type = self.visit(node.target)

        if (not isinstance(target_type, UserDefinedType)
                or target_type.kind == UserTypeKind.ENUM):
            raise create_invalid_operation_error(
                f"Type {target_type} has no members", node.location, node
            )

        field_type = self.registry.field_type(target_type.name, node.member)
        if field_type is None:
            raise create_invalid_operation_error(
                f"{target_type} has no member '{node.member}'", node.location, node
            )
        return self._annotate(node, field_type)

    def visit_type_ref(self, node: TypeRef) -> Type:
        return self.resolve_type(node)

    @staticmethod
    def _assigned_binding(target: Expression) -> Optional[Identifier]:
        """The variable whose own storage an assignment to ``target`` writes."""
        while True:
            if isinstance(target, MemberAccess):
                target = target.target
            elif (isinstance(target, IndexAccess)
                    and isinstance(target.target.resolved_type, ArrayType)):
                target = target.target
            else:
                break
        return target if isinstance(target, Identifier) else None

    @staticmethod
    def _is_lvalue(expr: Expression) -> bool:
        if isinstance(expr, (Identifier, IndexAccess, MemberAccess)):
            return True
        return isinstance(expr, UnaryOp) and expr.operator == UnaryOperator.DEREF
