"""
Type representation for frontc.

Types are immutable values compared structurally: two ``PointerType(INT)``
instances are equal and hash the same. Two types are compatible exactly when
they are equal; there is no implicit widening.

Sizes and alignments follow a typical 64-bit C target. Struct and union
layouts need the field list, which lives in a ``TypeRegistry``.

Author: xwest
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Tuple

from .errors import TypeRegistryError


class PrimitiveKind(Enum):
    VOID = "void"
    BOOL = "bool"
    CHAR = "char"
    INT = "int"
    FLOAT = "float"
    DOUBLE = "double"


class UserTypeKind(Enum):
    STRUCT = "struct"
    ENUM = "enum"
    UNION = "union"


_PRIMITIVE_SIZES = {
    PrimitiveKind.VOID: 0,
    PrimitiveKind.BOOL: 1,
    PrimitiveKind.CHAR: 1,
    PrimitiveKind.INT: 4,
    PrimitiveKind.FLOAT: 4,
    PrimitiveKind.DOUBLE: 8,
}

POINTER_SIZE = 8
ENUM_SIZE = 4


class Type:
    """Base class of all types. Subclasses are frozen dataclasses."""

    def size_of(self, registry: Optional['TypeRegistry'] = None) -> int:
        raise NotImplementedError

    def alignment(self, registry: Optional['TypeRegistry'] = None) -> int:
        return max(1, self.size_of(registry))

    # Classification ---------------------------------------------------------

    def _primitive_kind(self) -> Optional[PrimitiveKind]:
        return None

    @property
    def is_void(self) -> bool:
        return self._primitive_kind() == PrimitiveKind.VOID

    @property
    def is_bool(self) -> bool:
        return self._primitive_kind() == PrimitiveKind.BOOL

    @property
    def is_integral(self) -> bool:
        return self._primitive_kind() in (PrimitiveKind.CHAR, PrimitiveKind.INT)

    @property
    def is_floating(self) -> bool:
        return self._primitive_kind() in (PrimitiveKind.FLOAT, PrimitiveKind.DOUBLE)

    @property
    def is_numeric(self) -> bool:
        """char, int, float and double; the operand types of arithmetic."""
        return self.is_integral or self.is_floating

    @property
    def is_pointer(self) -> bool:
        return isinstance(self, PointerType)

    @property
    def is_scalar(self) -> bool:
        if self.is_numeric or self.is_bool or self.is_pointer:
            return True
        return isinstance(self, UserDefinedType) and self.kind == UserTypeKind.ENUM

    @property
    def is_compound(self) -> bool:
        if isinstance(self, ArrayType):
            return True
        return isinstance(self, UserDefinedType) and self.kind != UserTypeKind.ENUM

    @property
    def is_signed(self) -> bool:
        return self._primitive_kind() in (
            PrimitiveKind.INT, PrimitiveKind.FLOAT, PrimitiveKind.DOUBLE)

    @property
    def is_unsigned(self) -> bool:
        return self._primitive_kind() in (PrimitiveKind.CHAR, PrimitiveKind.BOOL)

    @property
    def is_resolved(self) -> bool:
        return True


@dataclass(frozen=True)
class PrimitiveType(Type):
    kind: PrimitiveKind

    def size_of(self, registry: Optional['TypeRegistry'] = None) -> int:
        return _PRIMITIVE_SIZES[self.kind]

    def _primitive_kind(self) -> Optional[PrimitiveKind]:
        return self.kind

    def __str__(self) -> str:
        return self.kind.value


@dataclass(frozen=True)
class PointerType(Type):
    pointee: Type

    def size_of(self, registry: Optional['TypeRegistry'] = None) -> int:
        return POINTER_SIZE

    @property
    def is_resolved(self) -> bool:
        return self.pointee.is_resolved

    def __str__(self) -> str:
        return f"{self.pointee}*"


@dataclass(frozen=True)
class ArrayType(Type):
    element: Type
    length: int

    def size_of(self, registry: Optional['TypeRegistry'] = None) -> int:
        return self.element.size_of(registry) * self.length

    def alignment(self, registry: Optional['TypeRegistry'] = None) -> int:
        return self.element.alignment(registry)

    @property
    def is_resolved(self) -> bool:
        return self.element.is_resolved

    def __str__(self) -> str:
        return f"{self.element}[{self.length}]"


@dataclass(frozen=True)
class FunctionType(Type):
    params: Tuple[Type, ...]
    return_type: Type

    def size_of(self, registry: Optional['TypeRegistry'] = None) -> int:
        return 0

    def alignment(self, registry: Optional['TypeRegistry'] = None) -> int:
        return 1

    @property
    def is_resolved(self) -> bool:
        return self.return_type.is_resolved and all(p.is_resolved for p in self.params)

    def __str__(self) -> str:
        params = ", ".join(str(p) for p in self.params)
        return f"fn({params}) -> {self.return_type}"


@dataclass(frozen=True)
class UserDefinedType(Type):
    """A struct, enum or union, identified by name."""
    kind: UserTypeKind
    name: str

    def size_of(self, registry: Optional['TypeRegistry'] = None) -> int:
        if self.kind == UserTypeKind.ENUM:
            return ENUM_SIZE
        if registry is None:
            raise TypeRegistryError(f"size of {self} needs a type registry")
        return registry.layout_size(self)

    def alignment(self, registry: Optional['TypeRegistry'] = None) -> int:
        if self.kind == UserTypeKind.ENUM:
            return ENUM_SIZE
        if registry is None:
            raise TypeRegistryError(f"alignment of {self} needs a type registry")
        return registry.layout_alignment(self)

    def __str__(self) -> str:
        return f"{self.kind.value} {self.name}"


@dataclass(frozen=True)
class UnresolvedType(Type):
    """Placeholder for a type that is not known (yet)."""
    name: str = "?"

    def size_of(self, registry: Optional['TypeRegistry'] = None) -> int:
        raise TypeRegistryError(f"type '{self.name}' is unresolved and has no size")

    @property
    def is_resolved(self) -> bool:
        return False

    def __str__(self) -> str:
        return f"<unresolved {self.name}>"


VOID = PrimitiveType(PrimitiveKind.VOID)
BOOL = PrimitiveType(PrimitiveKind.BOOL)
CHAR = PrimitiveType(PrimitiveKind.CHAR)
INT = PrimitiveType(PrimitiveKind.INT)
FLOAT = PrimitiveType(PrimitiveKind.FLOAT)
DOUBLE = PrimitiveType(PrimitiveKind.DOUBLE)

PRIMITIVE_TYPES: Dict[str, PrimitiveType] = {
    t.kind.value: t for t in (VOID, BOOL, CHAR, INT, FLOAT, DOUBLE)
}


def primitive_type(name: str) -> Optional[PrimitiveType]:
    """Look up a builtin type by its spelling, e.g. ``"int"``."""
    return PRIMITIVE_TYPES.get(name)


def pointer_to(pointee: Type) -> PointerType:
    return PointerType(pointee)


def struct_type(name: str) -> UserDefinedType:
    return UserDefinedType(UserTypeKind.STRUCT, name)


class TypeRegistry:
    """
    Named types known to one compilation.

    Builtin primitives are registered up front. User-defined types are
    registered with their field list so that sizes and member lookups work.
    """

    def __init__(self):
        self._types: Dict[str, Type] = {}
        self._ids: Dict[str, int] = {}
        self._fields: Dict[str, List[Tuple[str, Type]]] = {}

        for name, primitive in PRIMITIVE_TYPES.items():
            self.register(name, primitive)

    def register(self, name: str, type_: Type,
                 fields: Optional[List[Tuple[str, Type]]] = None) -> int:
        """Register ``type_`` under ``name`` and return its numeric id."""
        if name in self._types:
            raise TypeRegistryError(f"type '{name}' is already registered")

        type_id = len(self._ids)
        self._types[name] = type_
        self._ids[name] = type_id
        if fields is not None:
            self._fields[name] = list(fields)
        return type_id

    def get(self, name: str) -> Optional[Type]:
        return self._types.get(name)

    def get_id(self, name: str) -> Optional[int]:
        return self._ids.get(name)

    def exists(self, name: str) -> bool:
        return name in self._types

    def struct_fields(self, name: str) -> List[Tuple[str, Type]]:
        if name not in self._fields:
            raise TypeRegistryError(f"type '{name}' has no registered fields")
        return list(self._fields[name])

    def field_type(self, name: str, field_name: str) -> Optional[Type]:
        for candidate, field_type in self._fields.get(name, []):
            if candidate == field_name:
                return field_type
        return None

    def layout_size(self, type_: UserDefinedType) -> int:
        """Struct: sum of field sizes. Union: largest field."""
        sizes = [field_type.size_of(self) for _, field_type in self.struct_fields(type_.name)]
        if type_.kind == UserTypeKind.UNION:
            return max(sizes, default=0)
        return sum(sizes)

    def layout_alignment(self, type_: UserDefinedType) -> int:
        alignments = [field_type.alignment(self) for _, field_type in self.struct_fields(type_.name)]
        return max(alignments, default=1)

    def __contains__(self, name: str) -> bool:
        return self.exists(name)

    def __len__(self) -> int:
        return len(self._types)
