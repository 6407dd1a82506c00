"""
Test suite for the frontc name resolver.

Tests cover:
- Scoping and shadowing
- Aggregated error reporting
- Redefinition detection
- Type names

Author: xwest
"""

import unittest

from frontc.parser import parse_string, walk, Identifier
from frontc.analyzer import NameResolver, NameErrorKind, SymbolKind


class TestNameResolver(unittest.TestCase):
    """Test cases for name resolution."""

    def _resolve(self, code: str):
        program = parse_string(code)
        errors = NameResolver().resolve(program)
        return program, errors

    def _assert_clean(self, code: str):
        _, errors = self._resolve(code)
        self.assertEqual(errors, [], f"Unexpected errors: {[str(e) for e in errors]}")

    def test_resolves_declared_names(self):
        self._assert_clean("""
        fn add(a: int, b: int) -> int {
            return a + b;
        }
        let total: int = add(1, 2);
        """)

    def test_identifiers_get_resolved_symbol(self):
        program, _ = self._resolve("let x = 1; x;")
        use = [n for n in walk(program) if isinstance(n, Identifier)][0]
        self.assertIsNotNone(use.resolved_symbol)
        self.assertEqual(use.resolved_symbol.name, "x")
        self.assertEqual(use.resolved_symbol.kind, SymbolKind.VARIABLE)

    def test_collects_every_undefined_name(self):
        _, errors = self._resolve("""
        fn main() {
            a;
            let x = b + c;
        }
        """)
        self.assertEqual([e.name for e in errors], ["a", "b", "c"])
        self.assertTrue(all(e.kind == NameErrorKind.UNDEFINED_VARIABLE for e in errors))

    def test_error_positions(self):
        _, errors = self._resolve("let x = 1;\nlet y = z;")
        self.assertEqual(len(errors), 1)
        self.assertEqual(errors[0].location.line, 2)
        self.assertEqual(errors[0].location.column, 9)

    def test_block_scope_ends_at_brace(self):
        _, errors = self._resolve("{ let y = 1; } y;")
        self.assertEqual([e.name for e in errors], ["y"])

    def test_shadowing_in_nested_block(self):
        self._assert_clean("""
        let x = 1;
        fn f() {
            let x = true;
            { let x = 3; x; }
            x;
        }
        """)

    def test_variable_redefinition(self):
        _, errors = self._resolve("let x = 1; let x = 2;")
        self.assertEqual(len(errors), 1)
        self.assertEqual(errors[0].kind, NameErrorKind.VARIABLE_ALREADY_DEFINED)
        self.assertEqual(errors[0].related_locations[0].column, 1)

    def test_function_redefinition(self):
        _, errors = self._resolve("fn f() {} fn f() {}")
        self.assertEqual([e.kind for e in errors], [NameErrorKind.FUNCTION_ALREADY_DEFINED])

    def test_parameters_share_scope_with_body(self):
        _, errors = self._resolve("fn f(a: int) { let a = 1; }")
        self.assertEqual([e.kind for e in errors], [NameErrorKind.VARIABLE_ALREADY_DEFINED])

    def test_duplicate_parameters(self):
        _, errors = self._resolve("fn f(a: int, a: int) {}")
        self.assertEqual(len(errors), 1)

    def test_parameters_not_visible_outside(self):
        _, errors = self._resolve("fn f(a: int) {} a;")
        self.assertEqual([e.name for e in errors], ["a"])

    def test_recursion_resolves(self):
        self._assert_clean("fn fact(n: int) -> int { return n * fact(n - 1); }")

    def test_no_forward_references(self):
        _, errors = self._resolve("fn main() { helper(); } fn helper() {}")
        self.assertEqual([e.name for e in errors], ["helper"])

    def test_use_before_declaration(self):
        _, errors = self._resolve("x; let x = 1;")
        self.assertEqual([e.name for e in errors], ["x"])

    def test_declaration_visible_in_own_initializer(self):
        self._assert_clean("int x = x;")

    def test_control_flow_bodies(self):
        _, errors = self._resolve("""
        fn f(n: int) {
            while (n > 0) { let step = 1; n = n - step; }
            if (n == 0) { let done = true; } else { done; }
        }
        """)
        self.assertEqual([e.name for e in errors], ["done"])

    def test_suggestions_for_typos(self):
        _, errors = self._resolve("let counter = 0; countr;")
        self.assertEqual(len(errors), 1)
        self.assertIn("Did you mean 'counter'?", errors[0].diagnostic.suggestions)

    def test_struct_types(self):
        self._assert_clean("struct Point { x: int; y: int; } let p: struct Point; Point q;")

    def test_undefined_type(self):
        _, errors = self._resolve("let p: Point; let q: int*;")
        self.assertEqual([e.kind for e in errors], [NameErrorKind.UNDEFINED_TYPE])
        self.assertEqual(errors[0].name, "Point")

    def test_variable_is_not_a_type(self):
        _, errors = self._resolve("let Point = 1; let p: Point;")
        self.assertEqual([e.kind for e in errors], [NameErrorKind.UNDEFINED_TYPE])

    def test_duplicate_struct_and_fields(self):
        _, errors = self._resolve("struct S { a: int; a: int; } struct S { b: int; }")
        self.assertEqual(
            [e.kind for e in errors],
            [NameErrorKind.VARIABLE_ALREADY_DEFINED, NameErrorKind.TYPE_ALREADY_DEFINED]
        )

    def test_self_referencing_struct(self):
        self._assert_clean("struct Node { value: int; next: struct Node*; }")

    def test_resolver_is_reusable(self):
        resolver = NameResolver()
        self.assertEqual(len(resolver.resolve(parse_string("a;"))), 1)
        self.assertEqual(len(resolver.resolve(parse_string("let b = 1;"))), 0)


if __name__ == "__main__":
    unittest.main()
