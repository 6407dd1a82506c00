"""
Test suite for struct templates and traits.

Author: xwest
"""

import unittest

from frontc.analyzer import (
    TemplateParameter, TemplateDeclaration, TemplateSystem,
    TraitMethod, Trait, TraitImpl, TraitEnvironment, substitute,
    TypeRegistry, TypeRegistryError, UnresolvedType,
    PointerType, ArrayType, FunctionType, struct_type,
    INT, BOOL, CHAR, DOUBLE, VOID
)


A = UnresolvedType("A")
B = UnresolvedType("B")
T = UnresolvedType("T")


class TestTemplateSystem(unittest.TestCase):

    def setUp(self):
        self.registry = TypeRegistry()
        self.templates = TemplateSystem(self.registry)
        self.templates.define(TemplateDeclaration(
            "Pair",
            (TemplateParameter("A"), TemplateParameter("B")),
            (("first", A), ("second", PointerType(B))),
        ))
        self.templates.define(TemplateDeclaration(
            "Vector",
            (TemplateParameter("T", default=INT),),
            (("data", PointerType(T)), ("length", INT)),
        ))

    def test_instantiate_registers_struct(self):
        pair = self.templates.instantiate("Pair", [INT, BOOL])
        self.assertEqual(pair, struct_type("Pair<int, bool>"))
        self.assertEqual(self.registry.field_type(pair.name, "first"), INT)
        self.assertEqual(self.registry.field_type(pair.name, "second"), PointerType(BOOL))
        self.assertEqual(pair.size_of(self.registry), 12)
        self.assertTrue(self.templates.has_instantiation("Pair<int, bool>"))

        instantiation = self.templates.get_instantiation("Pair<int, bool>")
        self.assertEqual(instantiation.template_name, "Pair")
        self.assertEqual(instantiation.arguments, (INT, BOOL))

    def test_instantiations_are_cached(self):
        first = self.templates.instantiate("Pair", [CHAR, CHAR])
        registered = len(self.registry)
        self.assertEqual(self.templates.instantiate("Pair", [CHAR, CHAR]), first)
        self.assertEqual(len(self.registry), registered)

    def test_default_arguments(self):
        vector = self.templates.instantiate("Vector", [])
        self.assertEqual(vector.name, "Vector<int>")
        self.assertEqual(self.registry.field_type("Vector<int>", "data"), PointerType(INT))

    def test_argument_count_mismatch(self):
        with self.assertRaises(TypeRegistryError):
            self.templates.instantiate("Pair", [INT])
        with self.assertRaises(TypeRegistryError):
            self.templates.instantiate("Pair", [INT, INT, INT])

    def test_unknown_template(self):
        with self.assertRaises(TypeRegistryError):
            self.templates.instantiate("Map", [INT])

    def test_void_argument_rejected(self):
        with self.assertRaises(TypeRegistryError):
            self.templates.instantiate("Vector", [VOID])

    def test_duplicate_definition(self):
        with self.assertRaises(TypeRegistryError):
            self.templates.define(TemplateDeclaration("Pair", (), ()))
        with self.assertRaises(TypeRegistryError):
            self.templates.define(TemplateDeclaration("int", (), ()))

    def test_defaults_must_trail(self):
        with self.assertRaises(TypeRegistryError):
            self.templates.define(TemplateDeclaration(
                "Bad", (TemplateParameter("A", default=INT), TemplateParameter("B")), ()
            ))

    def test_unbound_field_type(self):
        self.templates.define(TemplateDeclaration(
            "Broken", (TemplateParameter("A"),), (("value", UnresolvedType("U")),)
        ))
        with self.assertRaises(TypeRegistryError):
            self.templates.instantiate("Broken", [INT])

    def test_specialization(self):
        self.templates.specialize("Vector", [BOOL], (("bits", INT), ("length", INT)))
        vector = self.templates.instantiate("Vector", [BOOL])
        self.assertEqual(self.registry.struct_fields(vector.name), [("bits", INT), ("length", INT)])

        generic = self.templates.instantiate("Vector", [DOUBLE])
        self.assertEqual(self.registry.field_type(generic.name, "data"), PointerType(DOUBLE))

    def test_specialization_after_instantiation(self):
        self.templates.instantiate("Vector", [CHAR])
        with self.assertRaises(TypeRegistryError):
            self.templates.specialize("Vector", [CHAR], (("c", CHAR),))

    def test_parameters_lookup(self):
        self.assertEqual([p.name for p in self.templates.get_parameters("Pair")], ["A", "B"])
        self.assertIsNone(self.templates.get_parameters("Missing"))

    def test_substitute_nested_types(self):
        signature = FunctionType((PointerType(A), ArrayType(B, 3)), A)
        self.assertEqual(
            substitute(signature, {"A": INT, "B": CHAR}),
            FunctionType((PointerType(INT), ArrayType(CHAR, 3)), INT)
        )
        self.assertEqual(substitute(T, {}), T)


class TestTraitEnvironment(unittest.TestCase):

    def setUp(self):
        self.point = struct_type("Point")
        self.point_ptr = PointerType(self.point)
        self.traits = TraitEnvironment()
        self.traits.register_trait(Trait("Eq", [
            TraitMethod("eq", FunctionType((self.point_ptr, self.point_ptr), BOOL)),
            TraitMethod("ne", FunctionType((self.point_ptr, self.point_ptr), BOOL), required=False),
        ]))
        self.traits.register_trait(Trait("Ord", [
            TraitMethod("lt", FunctionType((self.point_ptr, self.point_ptr), BOOL)),
        ], super_traits=["Eq"]))

    def _eq_impl(self, **methods):
        signature = FunctionType((self.point_ptr, self.point_ptr), BOOL)
        return TraitImpl("Eq", self.point, methods or {"eq": signature})

    def test_implement_and_find(self):
        self.traits.implement_trait(self._eq_impl())
        self.assertTrue(self.traits.implements(self.point, "Eq"))
        self.assertFalse(self.traits.implements(self.point, "Ord"))
        found = self.traits.find_implementations_for_type("Point")
        self.assertEqual([impl.trait_name for impl in found], ["Eq"])
        self.assertEqual(self.traits.find_implementations_for_type("Line"), [])

    def test_missing_required_method(self):
        impl = TraitImpl("Eq", self.point, {})
        with self.assertRaises(TypeRegistryError):
            self.traits.implement_trait(impl)

    def test_signature_mismatch(self):
        with self.assertRaises(TypeRegistryError):
            self.traits.implement_trait(self._eq_impl(eq=FunctionType((self.point_ptr,), BOOL)))

    def test_unknown_method(self):
        signature = FunctionType((self.point_ptr, self.point_ptr), BOOL)
        with self.assertRaises(TypeRegistryError):
            self.traits.implement_trait(self._eq_impl(eq=signature, hash=signature))

    def test_duplicate_implementation(self):
        self.traits.implement_trait(self._eq_impl())
        with self.assertRaises(TypeRegistryError):
            self.traits.implement_trait(self._eq_impl())

    def test_super_trait_required_first(self):
        lt = FunctionType((self.point_ptr, self.point_ptr), BOOL)
        with self.assertRaises(TypeRegistryError):
            self.traits.implement_trait(TraitImpl("Ord", self.point, {"lt": lt}))

        self.traits.implement_trait(self._eq_impl())
        self.traits.implement_trait(TraitImpl("Ord", self.point, {"lt": lt}))
        self.assertTrue(self.traits.implements(self.point, "Ord"))

    def test_unknown_traits(self):
        with self.assertRaises(TypeRegistryError):
            self.traits.implement_trait(TraitImpl("Hash", self.point))
        with self.assertRaises(TypeRegistryError):
            self.traits.register_trait(Trait("Show", super_traits=["Display"]))
        with self.assertRaises(TypeRegistryError):
            self.traits.register_trait(Trait("Eq"))
        self.assertIsNone(self.traits.find_trait("Hash"))
        self.assertEqual(self.traits.find_trait("Ord").super_traits, ["Eq"])

    def test_only_named_types(self):
        with self.assertRaises(TypeRegistryError):
            self.traits.implement_trait(TraitImpl("Eq", INT, {}))


if __name__ == "__main__":
    unittest.main()
