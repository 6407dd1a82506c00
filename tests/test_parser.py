"""
Test suite for the frontc parser.

Tests cover:
- Expression precedence and associativity
- Both declaration syntaxes
- Statements and control flow
- Fail-fast syntax errors

Author: xwest
"""

import unittest

from frontc.lexer import Lexer, TokenType
from frontc.parser import (
    Parser, Precedence, parse_string, format_expression, format_type_ref,
    Program, VariableDecl, FunctionDecl, StructDecl, ReturnStatement,
    ExpressionStatement, BlockStatement, IfStatement, WhileStatement,
    Identifier, IntegerLiteral, StringLiteral, BooleanLiteral,
    BinaryOp, UnaryOp, FunctionCall, Assignment, IndexAccess, MemberAccess,
    NamedTypeRef, PointerTypeRef, ArrayTypeRef, FunctionTypeRef,
    BinaryOperator, UnaryOperator, ParseError, ParseErrorKind
)


def parse_expr(source: str):
    return Parser(Lexer(source)).parse_expression()


class TestExpressions(unittest.TestCase):
    """Precedence climbing."""

    def test_product_binds_tighter_than_sum(self):
        expr = parse_expr("a + b * c")
        self.assertIsInstance(expr, BinaryOp)
        self.assertEqual(expr.operator, BinaryOperator.ADD)
        self.assertIsInstance(expr.left, Identifier)
        self.assertEqual(expr.left.name, "a")
        self.assertIsInstance(expr.right, BinaryOp)
        self.assertEqual(expr.right.operator, BinaryOperator.MUL)
        self.assertEqual(expr.right.left.name, "b")
        self.assertEqual(expr.right.right.name, "c")

    def test_left_associativity(self):
        self.assertEqual(format_expression(parse_expr("a - b - c")), "((a - b) - c)")
        self.assertEqual(format_expression(parse_expr("a / b * c")), "((a / b) * c)")

    def test_precedence_ladder(self):
        cases = {
            "a == b < c": "(a == (b < c))",
            "a < b + c": "(a < (b + c))",
            "a + b % c": "(a + (b % c))",
            "a || b && c": "(a || (b && c))",
            "a && b == c": "(a && (b == c))",
            "(a + b) * c": "((a + b) * c)",
        }
        for source, expected in cases.items():
            with self.subTest(source=source):
                self.assertEqual(format_expression(parse_expr(source)), expected)

    def test_prefix_binds_tighter_than_binary(self):
        self.assertEqual(format_expression(parse_expr("-a * b")), "((-a) * b)")
        self.assertEqual(format_expression(parse_expr("!a == b")), "((!a) == b)")
        self.assertEqual(format_expression(parse_expr("*p + 1")), "((*p) + 1)")
        self.assertEqual(format_expression(parse_expr("&x")), "(&x)")

    def test_nested_prefix(self):
        expr = parse_expr("--x")
        self.assertIsInstance(expr, UnaryOp)
        self.assertEqual(expr.operator, UnaryOperator.NEG)
        self.assertIsInstance(expr.operand, UnaryOp)

    def test_call_and_index_bind_tightest(self):
        self.assertEqual(format_expression(parse_expr("-f(x)")), "(-f(x))")
        self.assertEqual(format_expression(parse_expr("a[i] + 1")), "(a[i] + 1)")
        self.assertEqual(format_expression(parse_expr("*a[0]")), "(*a[0])")

    def test_call_arguments(self):
        expr = parse_expr("add(1, x + 2, g())")
        self.assertIsInstance(expr, FunctionCall)
        self.assertEqual(expr.callee.name, "add")
        self.assertEqual(len(expr.arguments), 3)
        self.assertIsInstance(expr.arguments[2], FunctionCall)
        self.assertEqual(expr.arguments[2].arguments, [])

    def test_member_access_chain(self):
        expr = parse_expr("p.pos.x")
        self.assertIsInstance(expr, MemberAccess)
        self.assertEqual(expr.member, "x")
        self.assertIsInstance(expr.target, MemberAccess)
        self.assertEqual(format_expression(expr), "p.pos.x")

    def test_assignment_is_right_associative(self):
        expr = parse_expr("a = b = 1")
        self.assertIsInstance(expr, Assignment)
        self.assertIsInstance(expr.value, Assignment)
        self.assertEqual(format_expression(expr), "(a = (b = 1))")

    def test_assignment_binds_loosest(self):
        self.assertEqual(format_expression(parse_expr("x = a + b")), "(x = (a + b))")

    def test_literals(self):
        self.assertIsInstance(parse_expr("42"), IntegerLiteral)
        self.assertEqual(parse_expr('"hi"').value, "hi")
        self.assertIsInstance(parse_expr('"hi"'), StringLiteral)
        self.assertIs(parse_expr("true").value, True)
        self.assertIsInstance(parse_expr("false"), BooleanLiteral)

    def test_precedence_levels_ascend(self):
        levels = [
            Precedence.LOWEST, Precedence.EQUALS, Precedence.LESS_GREATER,
            Precedence.SUM, Precedence.PRODUCT, Precedence.PREFIX,
            Precedence.CALL, Precedence.INDEX,
        ]
        self.assertEqual(levels, sorted(levels))
        self.assertEqual(Precedence.SUM.next_higher(), Precedence.PRODUCT)
        self.assertEqual(Precedence.INDEX.next_higher(), Precedence.INDEX)


class TestDeclarations(unittest.TestCase):
    """Both declaration spellings."""

    def test_let_declaration(self):
        program = parse_string("let x: int = 1;")
        decl = program.body[0]
        self.assertIsInstance(decl, VariableDecl)
        self.assertEqual(decl.name, "x")
        self.assertIsInstance(decl.type_annotation, NamedTypeRef)
        self.assertEqual(decl.type_annotation.name, "int")
        self.assertIsInstance(decl.initializer, IntegerLiteral)

    def test_let_without_type_or_initializer(self):
        inferred = parse_string("let x = 1;").body[0]
        self.assertIsNone(inferred.type_annotation)
        bare = parse_string("let y: bool;").body[0]
        self.assertIsNone(bare.initializer)

    def test_c_style_declarations(self):
        program = parse_string("int x = 42; const char c = 1; int y;")
        first, second, third = program.body
        self.assertEqual((first.name, first.type_annotation.name), ("x", "int"))
        self.assertTrue(second.is_const)
        self.assertFalse(first.is_const)
        self.assertIsNone(third.initializer)

    def test_pointer_and_array_types(self):
        program = parse_string("int* p; int a[4]; let m: int[2][3];")
        pointer, array, matrix = program.body
        self.assertIsInstance(pointer.type_annotation, PointerTypeRef)
        self.assertIsInstance(array.type_annotation, ArrayTypeRef)
        self.assertEqual(array.type_annotation.length, 4)
        self.assertEqual(format_type_ref(matrix.type_annotation), "int[2][3]")

    def test_function_type(self):
        decl = parse_string("let f: fn(int, bool) -> int;").body[0]
        self.assertIsInstance(decl.type_annotation, FunctionTypeRef)
        self.assertEqual(format_type_ref(decl.type_annotation), "fn(int, bool) -> int")

    def test_fn_declaration(self):
        program = parse_string("fn add(a: int, b: int) -> int { return a + b; }")
        fn = program.body[0]
        self.assertIsInstance(fn, FunctionDecl)
        self.assertEqual(fn.name, "add")
        self.assertEqual([p.name for p in fn.params], ["a", "b"])
        self.assertEqual(fn.return_type.name, "int")
        self.assertIsInstance(fn.body, BlockStatement)
        self.assertIsInstance(fn.body.statements[0], ReturnStatement)

    def test_fn_without_return_type(self):
        fn = parse_string("fn log() { }").body[0]
        self.assertIsNone(fn.return_type)
        self.assertEqual(fn.params, [])

    def test_c_style_function(self):
        fn = parse_string("int add(int a, int b) { return a + b; }").body[0]
        self.assertIsInstance(fn, FunctionDecl)
        self.assertEqual(fn.return_type.name, "int")
        self.assertEqual([p.type_annotation.name for p in fn.params], ["int", "int"])

    def test_struct_declaration(self):
        program = parse_string("struct Point { x: int; int y; }; struct Point p;")
        struct, var = program.body
        self.assertIsInstance(struct, StructDecl)
        self.assertEqual([f.name for f in struct.fields], ["x", "y"])
        self.assertIsInstance(var, VariableDecl)
        self.assertTrue(var.type_annotation.is_struct)

    def test_user_type_declaration(self):
        var = parse_string("Point p;").body[0]
        self.assertIsInstance(var, VariableDecl)
        self.assertEqual(var.type_annotation.name, "Point")


class TestStatements(unittest.TestCase):

    def test_if_else(self):
        program = parse_string("if (x) { y = 1; } else y = 2;")
        stmt = program.body[0]
        self.assertIsInstance(stmt, IfStatement)
        self.assertIsInstance(stmt.then_branch, BlockStatement)
        self.assertIsInstance(stmt.else_branch, ExpressionStatement)

    def test_dangling_else_binds_to_nearest_if(self):
        stmt = parse_string("if (a) if (b) x; else y;").body[0]
        self.assertIsNone(stmt.else_branch)
        self.assertIsNotNone(stmt.then_branch.else_branch)

    def test_while(self):
        stmt = parse_string("while (i < 10) { i = i + 1; }").body[0]
        self.assertIsInstance(stmt, WhileStatement)
        self.assertEqual(format_expression(stmt.condition), "(i < 10)")

    def test_return_without_value(self):
        fn = parse_string("fn f() { return; }").body[0]
        self.assertIsNone(fn.body.statements[0].value)

    def test_trailing_expression_without_semicolon(self):
        program = parse_string("int a; int b; a + b")
        self.assertEqual(len(program.body), 3)
        self.assertIsInstance(program.body[2], ExpressionStatement)

    def test_empty_program(self):
        program = parse_string("   ")
        self.assertIsInstance(program, Program)
        self.assertEqual(program.body, [])

    def test_spans(self):
        program = parse_string("let x = 1;\nx = 2;")
        second = program.body[1]
        self.assertEqual(second.location.line, 2)
        self.assertEqual(second.location.column, 1)

    def test_accepts_token_list(self):
        tokens = Lexer("x;").tokenize()
        program = Parser(tokens).parse()
        self.assertEqual(len(program.body), 1)

    def test_accepts_token_list_without_eof(self):
        tokens = [t for t in Lexer("x;").tokenize() if t.type != TokenType.EOF]
        program = Parser(tokens).parse()
        self.assertEqual(len(program.body), 1)


class TestParseErrors(unittest.TestCase):
    """The first syntax error aborts parsing."""

    def _error(self, source: str) -> ParseError:
        with self.assertRaises(ParseError) as ctx:
            parse_string(source)
        return ctx.exception

    def test_missing_semicolon(self):
        error = self._error("let x = 1 let y = 2;")
        self.assertEqual(error.kind, ParseErrorKind.UNEXPECTED_TOKEN)
        self.assertEqual(error.expected, "';'")
        self.assertEqual(error.found.lexeme, "let")

    def test_expected_expression(self):
        error = self._error("let x = ;")
        self.assertEqual(error.kind, ParseErrorKind.EXPECTED_EXPRESSION)
        self.assertEqual(error.found.lexeme, ";")

    def test_expected_identifier(self):
        error = self._error("let 5 = 1;")
        self.assertEqual(error.kind, ParseErrorKind.EXPECTED_IDENTIFIER)
        self.assertEqual(error.found.type, TokenType.INTEGER)

    def test_keyword_is_not_a_name(self):
        error = self._error("let while = 1;")
        self.assertEqual(error.kind, ParseErrorKind.EXPECTED_IDENTIFIER)

    def test_unclosed_block(self):
        error = self._error("fn f() { return 1;")
        self.assertEqual(error.kind, ParseErrorKind.UNEXPECTED_TOKEN)
        self.assertEqual(error.found.type, TokenType.EOF)

    def test_unclosed_call(self):
        error = self._error("f(1, 2;")
        self.assertEqual(error.expected, "')'")

    def test_invalid_assignment_target(self):
        error = self._error("1 = x;")
        self.assertEqual(error.kind, ParseErrorKind.INVALID_ASSIGNMENT_TARGET)

    def test_error_location(self):
        error = self._error("let x = 1;\nlet y = );")
        self.assertEqual(error.location.line, 2)
        self.assertEqual(error.location.column, 9)

    def test_parse_expression_requires_full_input(self):
        with self.assertRaises(ParseError):
            parse_expr("a b")


if __name__ == "__main__":
    unittest.main()
