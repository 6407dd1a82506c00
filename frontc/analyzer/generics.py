"""
Struct templates and traits for frontc.

``TemplateSystem`` keeps struct templates: a field list whose types may name
the template's parameters through ``UnresolvedType`` placeholders.
Instantiating a template substitutes the arguments, registers the concrete
struct (for example ``struct Pair<int, bool>``) in a ``TypeRegistry`` and
caches it, so asking for the same arguments twice yields the same type.
A specialisation replaces the field list for one exact argument list.

``TraitEnvironment`` records traits (method signatures plus super traits)
and which user-defined types implement them.

Author: xwest
"""

from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from .types import (
    Type, PointerType, ArrayType, FunctionType, UserDefinedType, UnresolvedType,
    TypeRegistry, struct_type
)
from .errors import TypeRegistryError


Fields = Tuple[Tuple[str, Type], ...]


def substitute(type_: Type, bindings: Mapping[str, Type]) -> Type:
    """Replace every ``UnresolvedType`` named in ``bindings`` inside ``type_``."""
    if isinstance(type_, UnresolvedType):
        return bindings.get(type_.name, type_)
    if isinstance(type_, PointerType):
        return PointerType(substitute(type_.pointee, bindings))
    if isinstance(type_, ArrayType):
        return ArrayType(substitute(type_.element, bindings), type_.length)
    if isinstance(type_, FunctionType):
        return FunctionType(
            tuple(substitute(param, bindings) for param in type_.params),
            substitute(type_.return_type, bindings)
        )
    return type_


# ============================================================================
# Templates
# ============================================================================

@dataclass(frozen=True)
class TemplateParameter:
    """A type parameter, optionally with a default argument."""
    name: str
    default: Optional[Type] = None


@dataclass
class TemplateDeclaration:
    name: str
    parameters: Tuple[TemplateParameter, ...]
    fields: Fields
    specializations: Dict[Tuple[Type, ...], Fields] = field(default_factory=dict)

    @property
    def placeholders(self) -> Tuple[UnresolvedType, ...]:
        """The types to use in ``fields`` for each parameter."""
        return tuple(UnresolvedType(param.name) for param in self.parameters)


@dataclass(frozen=True)
class TemplateInstantiation:
    template_name: str
    arguments: Tuple[Type, ...]
    instance_type: UserDefinedType


def instance_name(template_name: str, arguments: Sequence[Type]) -> str:
    return f"{template_name}<{', '.join(str(arg) for arg in arguments)}>"


class TemplateSystem:
    """Struct templates and their instantiations for one compilation."""

    def __init__(self, registry: Optional[TypeRegistry] = None):
        self.registry = registry if registry is not None else TypeRegistry()
        self._templates: Dict[str, TemplateDeclaration] = {}
        self._instantiations: Dict[str, TemplateInstantiation] = {}

    def define(self, template: TemplateDeclaration) -> TemplateDeclaration:
        """
        Add a template.

        Raises:
            TypeRegistryError: If the name is taken, a parameter repeats or a
                default precedes a parameter without one
        """
        if template.name in self._templates or template.name in self.registry:
            raise TypeRegistryError(f"Template '{template.name}' is already defined")

        seen = set()
        has_default = False
        for param in template.parameters:
            if param.name in seen:
                raise TypeRegistryError(
                    f"Template '{template.name}' repeats parameter '{param.name}'"
                )
            seen.add(param.name)
            if param.default is not None:
                has_default = True
            elif has_default:
                raise TypeRegistryError(
                    f"Parameter '{param.name}' of template '{template.name}' needs a default",
                    help_text="Parameters after one with a default must have defaults too."
                )

        self._templates[template.name] = template
        return template

    def has_template(self, name: str) -> bool:
        return name in self._templates

    def get_template(self, name: str) -> Optional[TemplateDeclaration]:
        return self._templates.get(name)

    def get_parameters(self, name: str) -> Optional[Tuple[TemplateParameter, ...]]:
        template = self._templates.get(name)
        return template.parameters if template is not None else None

    def _require(self, name: str) -> TemplateDeclaration:
        template = self._templates.get(name)
        if template is None:
            raise TypeRegistryError(f"Template '{name}' not found")
        return template

    def _complete_arguments(self, template: TemplateDeclaration,
                            arguments: Sequence[Type]) -> Tuple[Type, ...]:
        """Append defaults for omitted trailing arguments and check the count."""
        params = template.parameters
        completed = list(arguments)
        if len(completed) < len(params):
            completed.extend(param.default for param in params[len(completed):])

        if len(completed) != len(params) or any(arg is None for arg in completed):
            raise TypeRegistryError(
                f"Template argument count mismatch for '{template.name}': "
                f"expected {len(params)}, got {len(arguments)}"
            )

        for arg in completed:
            if not arg.is_resolved or arg.is_void:
                raise TypeRegistryError(
                    f"'{arg}' cannot be used as an argument of template '{template.name}'"
                )
        return tuple(completed)

    def instantiate(self, name: str, arguments: Sequence[Type]) -> UserDefinedType:
        """
        Get the concrete struct for ``name<arguments...>``.

        The first request registers the struct and its substituted fields in
        the registry; later requests return the cached type.

        Raises:
            TypeRegistryError: For an unknown template, a wrong argument
                count or a field type that stays unresolved
        """
        template = self._require(name)
        args = self._complete_arguments(template, arguments)
        type_name = instance_name(name, args)

        cached = self._instantiations.get(type_name)
        if cached is not None:
            return cached.instance_type

        fields = template.specializations.get(args)
        if fields is None:
            bindings = {param.name: arg for param, arg in zip(template.parameters, args)}
            fields = tuple((field_name, substitute(field_type, bindings))
                           for field_name, field_type in template.fields)

        for field_name, field_type in fields:
            if not field_type.is_resolved:
                raise TypeRegistryError(
                    f"Field '{field_name}' of {type_name} has unresolved type {field_type}"
                )

        instance = struct_type(type_name)
        self.registry.register(type_name, instance, list(fields))
        self._instantiations[type_name] = TemplateInstantiation(name, args, instance)
        return instance

    def specialize(self, name: str, arguments: Sequence[Type], fields: Fields):
        """
        Give ``name<arguments...>`` its own field list.

        Raises:
            TypeRegistryError: For an unknown template, a wrong argument count,
                or when that instance already exists
        """
        template = self._require(name)
        if len(arguments) != len(template.parameters):
            raise TypeRegistryError(
                f"Template argument count mismatch for '{name}': "
                f"expected {len(template.parameters)}, got {len(arguments)}"
            )
        args = tuple(arguments)
        if instance_name(name, args) in self._instantiations:
            raise TypeRegistryError(
                f"{instance_name(name, args)} is specialized after being instantiated"
            )
        template.specializations[args] = tuple(fields)

    def has_instantiation(self, type_name: str) -> bool:
        return type_name in self._instantiations

    def get_instantiation(self, type_name: str) -> Optional[TemplateInstantiation]:
        return self._instantiations.get(type_name)


# ============================================================================
# Traits
# ============================================================================

@dataclass(frozen=True)
class TraitMethod:
    name: str
    signature: FunctionType
    required: bool = True


@dataclass
class Trait:
    name: str
    methods: List[TraitMethod] = field(default_factory=list)
    associated_types: List[str] = field(default_factory=list)
    super_traits: List[str] = field(default_factory=list)

    def get_method(self, name: str) -> Optional[TraitMethod]:
        for method in self.methods:
            if method.name == name:
                return method
        return None


@dataclass
class TraitImpl:
    trait_name: str
    for_type: UserDefinedType
    methods: Dict[str, FunctionType] = field(default_factory=dict)


class TraitEnvironment:
    """Known traits and the implementations registered for them."""

    def __init__(self):
        self._traits: Dict[str, Trait] = {}
        self._implementations: List[TraitImpl] = []

    def register_trait(self, trait: Trait) -> Trait:
        if trait.name in self._traits:
            raise TypeRegistryError(f"Trait '{trait.name}' is already defined")
        for super_trait in trait.super_traits:
            if super_trait not in self._traits:
                raise TypeRegistryError(
                    f"Trait '{trait.name}' extends unknown trait '{super_trait}'"
                )
        self._traits[trait.name] = trait
        return trait

    def find_trait(self, name: str) -> Optional[Trait]:
        return self._traits.get(name)

    def implement_trait(self, impl: TraitImpl) -> TraitImpl:
        """
        Record that ``impl.for_type`` implements ``impl.trait_name``.

        Raises:
            TypeRegistryError: If the trait is unknown, the type already
                implements it, a super trait is not implemented yet, or the
                methods do not match the trait's signatures
        """
        trait = self._traits.get(impl.trait_name)
        if trait is None:
            raise TypeRegistryError(f"Trait '{impl.trait_name}' not found")
        target = impl.for_type
        if not isinstance(target, UserDefinedType):
            raise TypeRegistryError(f"Traits can only be implemented for named types, not {target}")
        if self.implements(target, trait.name):
            raise TypeRegistryError(f"{target} already implements '{trait.name}'")

        for super_trait in trait.super_traits:
            if not self.implements(target, super_trait):
                raise TypeRegistryError(
                    f"{target} must implement '{super_trait}' before '{trait.name}'"
                )

        for method in trait.methods:
            signature = impl.methods.get(method.name)
            if signature is None:
                if method.required:
                    raise TypeRegistryError(
                        f"{target} is missing method '{method.name}' of trait '{trait.name}'"
                    )
            elif signature != method.signature:
                raise TypeRegistryError(
                    f"Method '{method.name}' of {target} has type {signature}, "
                    f"trait '{trait.name}' requires {method.signature}"
                )

        for method_name in impl.methods:
            if trait.get_method(method_name) is None:
                raise TypeRegistryError(
                    f"'{method_name}' is not a method of trait '{trait.name}'"
                )

        self._implementations.append(impl)
        return impl

    def find_implementations_for_type(self, type_name: str) -> List[TraitImpl]:
        return [impl for impl in self._implementations if impl.for_type.name == type_name]

    def implements(self, type_: UserDefinedType, trait_name: str) -> bool:
        return any(
            impl.trait_name == trait_name and impl.for_type == type_
            for impl in self._implementations
        )
