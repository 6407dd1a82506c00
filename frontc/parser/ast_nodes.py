"""
Abstract Syntax Tree node definitions for frontc.

Every node carries a ``node_type`` tag, a source span and two annotation
slots (``resolved_type`` and ``resolved_symbol``) that the analysis passes
fill in. Children are owned by exactly one parent; nodes keep no parent
pointers, so the tree has no cycles.

Author: xwest
"""

from abc import ABC, abstractmethod
from typing import List, Optional, Any
from dataclasses import dataclass
from enum import Enum

from ..lexer.tokens import SourceLocation


class ASTNodeType(Enum):
    """Enumeration of all AST node types."""

    # Top-level
    PROGRAM = "Program"

    # Declarations
    VARIABLE_DECL = "VariableDecl"
    FUNCTION_DECL = "FunctionDecl"
    PARAMETER = "Parameter"
    STRUCT_DECL = "StructDecl"
    STRUCT_FIELD = "StructField"

    # Statements
    RETURN_STATEMENT = "ReturnStatement"
    EXPRESSION_STATEMENT = "ExpressionStatement"
    BLOCK_STATEMENT = "BlockStatement"
    IF_STATEMENT = "IfStatement"
    WHILE_STATEMENT = "WhileStatement"

    # Expressions
    IDENTIFIER = "Identifier"
    INTEGER_LITERAL = "IntegerLiteral"
    STRING_LITERAL = "StringLiteral"
    BOOLEAN_LITERAL = "BooleanLiteral"
    BINARY_OP = "BinaryOp"
    UNARY_OP = "UnaryOp"
    FUNCTION_CALL = "FunctionCall"
    ASSIGNMENT = "Assignment"
    INDEX_ACCESS = "IndexAccess"
    MEMBER_ACCESS = "MemberAccess"

    # Types
    NAMED_TYPE = "NamedType"
    POINTER_TYPE = "PointerType"
    ARRAY_TYPE = "ArrayType"
    FUNCTION_TYPE = "FunctionType"


class BinaryOperator(Enum):
    ADD = "+"
    SUB = "-"
    MUL = "*"
    DIV = "/"
    MOD = "%"
    EQ = "=="
    NE = "!="
    LT = "<"
    LE = "<="
    GT = ">"
    GE = ">="
    AND = "&&"
    OR = "||"

    @property
    def is_arithmetic(self) -> bool:
        return self in _ARITHMETIC_OPERATORS

    @property
    def is_comparison(self) -> bool:
        return self in _COMPARISON_OPERATORS

    @property
    def is_logical(self) -> bool:
        return self in (BinaryOperator.AND, BinaryOperator.OR)


_ARITHMETIC_OPERATORS = frozenset({
    BinaryOperator.ADD, BinaryOperator.SUB, BinaryOperator.MUL,
    BinaryOperator.DIV, BinaryOperator.MOD,
})

_COMPARISON_OPERATORS = frozenset({
    BinaryOperator.EQ, BinaryOperator.NE, BinaryOperator.LT,
    BinaryOperator.LE, BinaryOperator.GT, BinaryOperator.GE,
})


class UnaryOperator(Enum):
    NEG = "-"
    NOT = "!"
    ADDR_OF = "&"
    DEREF = "*"


@dataclass(frozen=True)
class SourceSpan:
    """Represents a span of source code (start and end locations)."""
    start: SourceLocation
    end: SourceLocation

    def __str__(self) -> str:
        if self.start.filename == self.end.filename:
            return f"{self.start.filename}:{self.start.line}:{self.start.column}-{self.end.line}:{self.end.column}"
        return f"{self.start}-{self.end}"


class ASTNode(ABC):
    """Base class for all AST nodes."""

    def __init__(self, node_type: ASTNodeType, span: SourceSpan):
        self.node_type = node_type
        self.span = span
        # Annotation slots, written by the analysis passes
        self.resolved_type: Optional[Any] = None
        self.resolved_symbol: Optional[Any] = None

    @property
    def location(self) -> SourceLocation:
        return self.span.start

    def accept(self, visitor: Any) -> Any:
        """Hand this node to ``visitor.visit``."""
        return visitor.visit(self)

    @abstractmethod
    def children(self) -> List['ASTNode']:
        """Get all child nodes, in source order."""
        pass

    def __str__(self) -> str:
        return f"{self.node_type.value}@{self.span}"

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(span={self.span})"


# ============================================================================
# Top-level nodes
# ============================================================================

class Program(ASTNode):
    """Root AST node representing a complete translation unit."""

    def __init__(self, body: List['Statement'], span: SourceSpan):
        super().__init__(ASTNodeType.PROGRAM, span)
        self.body = body

    def children(self) -> List[ASTNode]:
        return list(self.body)


class Statement(ASTNode):
    """Base class for statements."""
    pass


class Declaration(Statement):
    """Base class for declarations. Declarations may appear wherever statements can."""
    name: str


class Expression(ASTNode):
    """Base class for expressions."""
    pass


class TypeRef(ASTNode):
    """Base class for type references written in the source."""
    pass


# ============================================================================
# Declarations
# ============================================================================

class VariableDecl(Declaration):
    """Variable declaration, ``let x: int = 1;`` or ``int x = 1;``."""

    def __init__(self, name: str, type_annotation: Optional[TypeRef],
                 initializer: Optional[Expression], span: SourceSpan,
                 is_const: bool = False):
        super().__init__(ASTNodeType.VARIABLE_DECL, span)
        self.name = name
        self.type_annotation = type_annotation
        self.initializer = initializer
        self.is_const = is_const

    def children(self) -> List[ASTNode]:
        children: List[ASTNode] = []
        if self.type_annotation:
            children.append(self.type_annotation)
        if self.initializer:
            children.append(self.initializer)
        return children

    def __repr__(self) -> str:
        return f"VariableDecl({self.name!r})"


class Parameter(Declaration):
    """Function parameter."""

    def __init__(self, name: str, type_annotation: TypeRef, span: SourceSpan):
        super().__init__(ASTNodeType.PARAMETER, span)
        self.name = name
        self.type_annotation = type_annotation

    def children(self) -> List[ASTNode]:
        return [self.type_annotation]

    def __repr__(self) -> str:
        return f"Parameter({self.name!r})"


class FunctionDecl(Declaration):
    """Function definition. A missing return type means void."""

    def __init__(self, name: str, params: List[Parameter],
                 return_type: Optional[TypeRef], body: 'BlockStatement',
                 span: SourceSpan):
        super().__init__(ASTNodeType.FUNCTION_DECL, span)
        self.name = name
        self.params = params
        self.return_type = return_type
        self.body = body

    def children(self) -> List[ASTNode]:
        children: List[ASTNode] = list(self.params)
        if self.return_type:
            children.append(self.return_type)
        children.append(self.body)
        return children

    def __repr__(self) -> str:
        return f"FunctionDecl({self.name!r}, params={len(self.params)})"


class StructField(ASTNode):
    def __init__(self, name: str, type_annotation: TypeRef, span: SourceSpan):
        super().__init__(ASTNodeType.STRUCT_FIELD, span)
        self.name = name
        self.type_annotation = type_annotation

    def children(self) -> List[ASTNode]:
        return [self.type_annotation]


class StructDecl(Declaration):
    """Struct definition with named, typed fields."""

    def __init__(self, name: str, fields: List[StructField], span: SourceSpan):
        super().__init__(ASTNodeType.STRUCT_DECL, span)
        self.name = name
        self.fields = fields

    def children(self) -> List[ASTNode]:
        return list(self.fields)

    def __repr__(self) -> str:
        return f"StructDecl({self.name!r})"


# ============================================================================
# Statements
# ============================================================================

class ReturnStatement(Statement):
    def __init__(self, value: Optional[Expression], span: SourceSpan):
        super().__init__(ASTNodeType.RETURN_STATEMENT, span)
        self.value = value

    def children(self) -> List[ASTNode]:
        return [self.value] if self.value else []


class ExpressionStatement(Statement):
    """An expression evaluated for its effect."""

    def __init__(self, expression: Expression, span: SourceSpan):
        super().__init__(ASTNodeType.EXPRESSION_STATEMENT, span)
        self.expression = expression

    def children(self) -> List[ASTNode]:
        return [self.expression]


class BlockStatement(Statement):
    """Block statement containing multiple statements."""

    def __init__(self, statements: List[Statement], span: SourceSpan):
        super().__init__(ASTNodeType.BLOCK_STATEMENT, span)
        self.statements = statements

    def children(self) -> List[ASTNode]:
        return list(self.statements)


class IfStatement(Statement):
    def __init__(self, condition: Expression, then_branch: Statement,
                 else_branch: Optional[Statement], span: SourceSpan):
        super().__init__(ASTNodeType.IF_STATEMENT, span)
        self.condition = condition
        self.then_branch = then_branch
        self.else_branch = else_branch

    def children(self) -> List[ASTNode]:
        children = [self.condition, self.then_branch]
        if self.else_branch:
            children.append(self.else_branch)
        return children


class WhileStatement(Statement):
    def __init__(self, condition: Expression, body: Statement, span: SourceSpan):
        super().__init__(ASTNodeType.WHILE_STATEMENT, span)
        self.condition = condition
        self.body = body

    def children(self) -> List[ASTNode]:
        return [self.condition, self.body]


# ============================================================================
# Expressions
# ============================================================================

class Identifier(Expression):
    def __init__(self, name: str, span: SourceSpan):
        super().__init__(ASTNodeType.IDENTIFIER, span)
        self.name = name

    def children(self) -> List[ASTNode]:
        return []

    def __repr__(self) -> str:
        return f"Identifier({self.name!r})"


class IntegerLiteral(Expression):
    def __init__(self, value: int, span: SourceSpan):
        super().__init__(ASTNodeType.INTEGER_LITERAL, span)
        self.value = value

    def children(self) -> List[ASTNode]:
        return []

    def __repr__(self) -> str:
        return f"IntegerLiteral({self.value})"


class StringLiteral(Expression):
    def __init__(self, value: str, span: SourceSpan):
        super().__init__(ASTNodeType.STRING_LITERAL, span)
        self.value = value

    def children(self) -> List[ASTNode]:
        return []

    def __repr__(self) -> str:
        return f"StringLiteral({self.value!r})"


class BooleanLiteral(Expression):
    def __init__(self, value: bool, span: SourceSpan):
        super().__init__(ASTNodeType.BOOLEAN_LITERAL, span)
        self.value = value

    def children(self) -> List[ASTNode]:
        return []

    def __repr__(self) -> str:
        return f"BooleanLiteral({self.value})"


class BinaryOp(Expression):
    def __init__(self, operator: BinaryOperator, left: Expression,
                 right: Expression, span: SourceSpan):
        super().__init__(ASTNodeType.BINARY_OP, span)
        self.operator = operator
        self.left = left
        self.right = right

    def children(self) -> List[ASTNode]:
        return [self.left, self.right]

    def __repr__(self) -> str:
        return f"BinaryOp({self.operator.name}, {self.left!r}, {self.right!r})"


class UnaryOp(Expression):
    def __init__(self, operator: UnaryOperator, operand: Expression, span: SourceSpan):
        super().__init__(ASTNodeType.UNARY_OP, span)
        self.operator = operator
        self.operand = operand

    def children(self) -> List[ASTNode]:
        return [self.operand]

    def __repr__(self) -> str:
        return f"UnaryOp({self.operator.name}, {self.operand!r})"


class FunctionCall(Expression):
    def __init__(self, callee: Expression, arguments: List[Expression], span: SourceSpan):
        super().__init__(ASTNodeType.FUNCTION_CALL, span)
        self.callee = callee
        self.arguments = arguments

    def children(self) -> List[ASTNode]:
        return [self.callee] + list(self.arguments)

    def __repr__(self) -> str:
        return f"FunctionCall({self.callee!r}, {self.arguments!r})"


class Assignment(Expression):
    """``target = value``. Right-associative; evaluates to the stored value."""

    def __init__(self, target: Expression, value: Expression, span: SourceSpan):
        super().__init__(ASTNodeType.ASSIGNMENT, span)
        self.target = target
        self.value = value

    def children(self) -> List[ASTNode]:
        return [self.target, self.value]


class IndexAccess(Expression):
    def __init__(self, target: Expression, index: Expression, span: SourceSpan):
        super().__init__(ASTNodeType.INDEX_ACCESS, span)
        self.target = target
        self.index = index

    def children(self) -> List[ASTNode]:
        return [self.target, self.index]


class MemberAccess(Expression):
    """``target.member``. The member name is not an expression of its own."""

    def __init__(self, target: Expression, member: str, span: SourceSpan):
        super().__init__(ASTNodeType.MEMBER_ACCESS, span)
        self.target = target
        self.member = member

    def children(self) -> List[ASTNode]:
        return [self.target]


# ============================================================================
# Type references
# ============================================================================

class NamedTypeRef(TypeRef):
    """``int``, ``Point`` or ``struct Point``."""

    def __init__(self, name: str, span: SourceSpan, is_struct: bool = False):
        super().__init__(ASTNodeType.NAMED_TYPE, span)
        self.name = name
        self.is_struct = is_struct

    def children(self) -> List[ASTNode]:
        return []


class PointerTypeRef(TypeRef):
    def __init__(self, pointee: TypeRef, span: SourceSpan):
        super().__init__(ASTNodeType.POINTER_TYPE, span)
        self.pointee = pointee

    def children(self) -> List[ASTNode]:
        return [self.pointee]


class ArrayTypeRef(TypeRef):
    def __init__(self, element: TypeRef, length: int, span: SourceSpan):
        super().__init__(ASTNodeType.ARRAY_TYPE, span)
        self.element = element
        self.length = length

    def children(self) -> List[ASTNode]:
        return [self.element]


class FunctionTypeRef(TypeRef):
    """``fn(int, char*) -> bool``."""

    def __init__(self, params: List[TypeRef], return_type: TypeRef, span: SourceSpan):
        super().__init__(ASTNodeType.FUNCTION_TYPE, span)
        self.params = params
        self.return_type = return_type

    def children(self) -> List[ASTNode]:
        return list(self.params) + [self.return_type]


# Alias for the main AST type
AST = Program
