"""
Semantic analysis error handling for frontc.

Covers the symbol table, the type registry, name resolution and type
checking. Name resolution errors are collected into a list by the resolver;
every other error here is raised as soon as it is found.

Author: xwest
"""

from enum import Enum
from typing import Optional, List, Any, Sequence

from ..lexer.tokens import SourceLocation
from ..lexer.errors import CompilerError


class SemanticError(CompilerError):
    """
    Base exception for semantic analysis.

    Contains detailed diagnostic information for error reporting, plus the
    AST node the error is about when there is one.
    """

    def __init__(
        self,
        message: str,
        location: Optional[SourceLocation] = None,
        node: Optional[Any] = None,
        code: Optional[str] = None,
        help_text: Optional[str] = None,
        suggestions: Optional[List[str]] = None,
        related_locations: Optional[List[SourceLocation]] = None
    ):
        super().__init__(
            message,
            location,
            code=code,
            help_text=help_text,
            suggestions=suggestions
        )
        self.node = node
        self.related_locations = related_locations or []

    def __str__(self) -> str:
        result = str(self.diagnostic)

        if self.related_locations:
            result += "Related locations:\n"
            for loc in self.related_locations:
                result += f"  --> {loc}\n"

        return result


# ============================================================================
# Symbol table and type registry
# ============================================================================

class SymbolTableError(SemanticError):
    """Misuse of the scope stack, such as leaving the global scope."""


class AlreadyDefinedError(SymbolTableError):
    """A name was defined twice in the same scope frame."""

    def __init__(self, symbol: Any, existing: Any):
        related = [existing.location] if existing.location is not None else None
        super().__init__(
            f"'{symbol.name}' is already defined in this scope",
            symbol.location,
            code="S001",
            related_locations=related
        )
        self.symbol = symbol
        self.existing = existing


class TypeRegistryError(SemanticError):
    """Duplicate or unknown entries in the type registry."""


# ============================================================================
# Name resolution
# ============================================================================

class NameErrorKind(Enum):
    UNDEFINED_VARIABLE = "N001"
    VARIABLE_ALREADY_DEFINED = "N002"
    FUNCTION_ALREADY_DEFINED = "N003"
    TYPE_ALREADY_DEFINED = "N004"
    UNDEFINED_TYPE = "N005"


class NameResolutionError(SemanticError):
    """One unresolved identifier or illegal redefinition."""

    def __init__(self, kind: NameErrorKind, name: str, message: str,
                 location: Optional[SourceLocation] = None, **kwargs):
        super().__init__(message, location, code=kind.value, **kwargs)
        self.kind = kind
        self.name = name


class NameResolutionFailed(CompilerError):
    """Raised by the pipeline when name resolution reported any errors."""

    def __init__(self, errors: Sequence[NameResolutionError]):
        self.errors = list(errors)
        first = self.errors[0]
        super().__init__(
            f"name resolution failed with {len(self.errors)} error(s)",
            first.location,
            code=first.code
        )

    def __str__(self) -> str:
        return "".join(str(error) for error in self.errors)


# ============================================================================
# Type checking
# ============================================================================

class TypeErrorKind(Enum):
    UNDEFINED_VARIABLE = "T001"
    TYPE_MISMATCH = "T002"
    INVALID_OPERATION = "T003"
    ARGUMENT_COUNT_MISMATCH = "T004"
    ARGUMENT_TYPE_MISMATCH = "T005"


class TypeCheckError(SemanticError):
    """
    The single error a type check run stops at.

    Structured fields depend on ``kind``: ``expected``/``actual`` hold types
    for mismatches and counts for argument count mismatches, ``index`` is the
    zero-based argument position, ``name`` is the offending identifier.
    """

    def __init__(self, kind: TypeErrorKind, message: str,
                 location: Optional[SourceLocation] = None,
                 expected: Any = None, actual: Any = None,
                 index: Optional[int] = None, name: Optional[str] = None,
                 **kwargs):
        super().__init__(message, location, code=kind.value, **kwargs)
        self.kind = kind
        self.expected = expected
        self.actual = actual
        self.index = index
        self.name = name


# Error code descriptions
ERROR_CODES = {
    "S001": "Symbol already defined in scope",
    "N001": "Undefined variable",
    "N002": "Variable already defined",
    "N003": "Function already defined",
    "N004": "Type already defined",
    "N005": "Undefined type",
    "T001": "Undefined variable",
    "T002": "Type mismatch",
    "T003": "Invalid operation",
    "T004": "Argument count mismatch",
    "T005": "Argument type mismatch",
}


# Helper functions for creating specific semantic errors

def create_undefined_variable_error(
    name: str,
    location: Optional[SourceLocation],
    node: Optional[Any] = None,
    similar_names: Optional[List[str]] = None
) -> NameResolutionError:
    """Create an error for a use of a name with no visible definition."""
    suggestions = [f"Did you mean '{similar}'?" for similar in (similar_names or [])[:3]]

    return NameResolutionError(
        NameErrorKind.UNDEFINED_VARIABLE,
        name,
        f"Undefined variable: '{name}'",
        location,
        node=node,
        help_text=f"'{name}' is not defined in any enclosing scope.",
        suggestions=suggestions or None
    )


def create_redefinition_error(
    kind: NameErrorKind,
    name: str,
    location: Optional[SourceLocation],
    previous: Optional[SourceLocation] = None,
    node: Optional[Any] = None
) -> NameResolutionError:
    """Create an error for a second definition of a name in one scope."""
    what = {
        NameErrorKind.FUNCTION_ALREADY_DEFINED: "Function",
        NameErrorKind.TYPE_ALREADY_DEFINED: "Type",
    }.get(kind, "Variable")

    return NameResolutionError(
        kind,
        name,
        f"{what} '{name}' is already defined in this scope",
        location,
        node=node,
        related_locations=[previous] if previous is not None else None
    )


def create_undefined_type_error(
    name: str,
    location: Optional[SourceLocation],
    node: Optional[Any] = None
) -> NameResolutionError:
    return NameResolutionError(
        NameErrorKind.UNDEFINED_TYPE,
        name,
        f"Undefined type: '{name}'",
        location,
        node=node
    )


def create_unknown_name_error(
    name: str,
    location: Optional[SourceLocation],
    node: Optional[Any] = None
) -> TypeCheckError:
    """The type checker met a name it has no type for."""
    return TypeCheckError(
        TypeErrorKind.UNDEFINED_VARIABLE,
        f"Undefined variable: '{name}'",
        location,
        name=name,
        node=node
    )


def create_type_mismatch_error(
    expected: Any,
    actual: Any,
    location: Optional[SourceLocation],
    node: Optional[Any] = None
) -> TypeCheckError:
    """Create a type mismatch error."""
    return TypeCheckError(
        TypeErrorKind.TYPE_MISMATCH,
        f"Type mismatch: expected {expected}, found {actual}",
        location,
        expected=expected,
        actual=actual,
        node=node,
        help_text=f"The expression has type '{actual}' but '{expected}' was expected."
    )


def create_invalid_operation_error(
    message: str,
    location: Optional[SourceLocation],
    node: Optional[Any] = None,
    help_text: Optional[str] = None
) -> TypeCheckError:
    return TypeCheckError(
        TypeErrorKind.INVALID_OPERATION,
        message,
        location,
        node=node,
        help_text=help_text
    )


def create_argument_count_error(
    function_name: str,
    expected: int,
    actual: int,
    location: Optional[SourceLocation],
    node: Optional[Any] = None
) -> TypeCheckError:
    """Create an error for calling a function with the wrong number of arguments."""
    return TypeCheckError(
        TypeErrorKind.ARGUMENT_COUNT_MISMATCH,
        f"Function '{function_name}' expects {expected} argument(s), got {actual}",
        location,
        expected=expected,
        actual=actual,
        name=function_name,
        node=node
    )


def create_argument_type_error(
    function_name: str,
    index: int,
    expected: Any,
    actual: Any,
    location: Optional[SourceLocation],
    node: Optional[Any] = None
) -> TypeCheckError:
    return TypeCheckError(
        TypeErrorKind.ARGUMENT_TYPE_MISMATCH,
        f"Argument {index + 1} of '{function_name}': expected {expected}, found {actual}",
        location,
        expected=expected,
        actual=actual,
        index=index,
        name=function_name,
        node=node
    )
