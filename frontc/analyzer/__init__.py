"""
frontc Semantic Analyzer Package

Implements the two semantic passes that run after parsing:
- Name resolution over a scoped symbol table (collects every error)
- Type checking with structural type equality (stops at the first error)

The type registry, struct templates and traits live alongside them.

Both passes annotate the AST in place.

Author: xwest
"""

from .types import (
    Type, PrimitiveType, PointerType, ArrayType, FunctionType,
    UserDefinedType, UnresolvedType, PrimitiveKind, UserTypeKind,
    VOID, BOOL, CHAR, INT, FLOAT, DOUBLE,
    primitive_type, pointer_to, struct_type, TypeRegistry
)
from .generics import (
    TemplateParameter, TemplateDeclaration, TemplateInstantiation, TemplateSystem,
    TraitMethod, Trait, TraitImpl, TraitEnvironment, substitute
)
from .symbol_table import SymbolTable, Symbol, SymbolKind
from .name_resolver import NameResolver
from .type_checker import TypeChecker
from .errors import (
    SemanticError, SymbolTableError, AlreadyDefinedError, TypeRegistryError,
    NameErrorKind, NameResolutionError, NameResolutionFailed,
    TypeErrorKind, TypeCheckError
)

__all__ = [
    # Passes
    "NameResolver", "TypeChecker",

    # Symbol management
    "SymbolTable", "Symbol", "SymbolKind",

    # Types
    "Type", "PrimitiveType", "PointerType", "ArrayType", "FunctionType",
    "UserDefinedType", "UnresolvedType", "PrimitiveKind", "UserTypeKind",
    "VOID", "BOOL", "CHAR", "INT", "FLOAT", "DOUBLE",
    "primitive_type", "pointer_to", "struct_type", "TypeRegistry",

    # Templates and traits
    "TemplateParameter", "TemplateDeclaration", "TemplateInstantiation", "TemplateSystem",
    "TraitMethod", "Trait", "TraitImpl", "TraitEnvironment", "substitute",

    # Error handling
    "SemanticError", "SymbolTableError", "AlreadyDefinedError", "TypeRegistryError",
    "NameErrorKind", "NameResolutionError", "NameResolutionFailed",
    "TypeErrorKind", "TypeCheckError",
]
