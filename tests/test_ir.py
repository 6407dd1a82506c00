"""
Test suite for the IR layer and the AST to IR builder.

Tests cover:
- Basic block sealing
- Control flow graph queries and validation
- Lowering of functions, locals, control flow and globals

Author: xwest
"""

import unittest

from frontc.parser import parse_string
from frontc.analyzer import TypeChecker, INT, BOOL, VOID, ArrayType, struct_type
from frontc.ir import (
    IRBuilder, IRError, IRErrorKind, GLOBAL_INIT_FUNCTION,
    Variable, Constant, IRBinaryOperator,
    Const, BinaryOp, Call, Alloca, Load, Store, Jump, Branch, Return,
    BasicBlock, ControlFlowGraph, Function, Module
)


def build(code: str) -> Module:
    program = parse_string(code)
    TypeChecker().check(program)
    return IRBuilder().build(program)


class TestBasicBlock(unittest.TestCase):

    def test_terminator_seals_block(self):
        block = BasicBlock("entry")
        block.add_instruction(Const(Variable("0"), Constant(1)))
        block.add_instruction(Return(Variable("0")))
        self.assertTrue(block.is_terminated)

        with self.assertRaises(IRError) as ctx:
            block.add_instruction(Const(Variable("1"), Constant(2)))
        self.assertEqual(ctx.exception.kind, IRErrorKind.BLOCK_ALREADY_TERMINATED)

        with self.assertRaises(IRError):
            block.add_instruction(Jump("other"))

    def test_terminator_is_last(self):
        block = BasicBlock("b")
        block.add_instruction(Const(Variable("0"), Constant(1)))
        block.add_instruction(Jump("next"))
        self.assertEqual(len(block), 2)
        self.assertEqual(list(block)[-1], Jump("next"))
        self.assertEqual(block.successors(), ["next"])

    def test_insert_rejects_terminators(self):
        block = BasicBlock("b")
        with self.assertRaises(IRError) as ctx:
            block.insert_instruction(0, Return())
        self.assertEqual(ctx.exception.kind, IRErrorKind.MISPLACED_TERMINATOR)
        self.assertEqual(block.instructions, [])

    def test_instruction_rendering(self):
        self.assertEqual(str(Const(Variable("0"), Constant("hi"))), '%0 = const "hi"')
        self.assertEqual(
            str(BinaryOp(Variable("2"), IRBinaryOperator.ADD, Variable("a"), Constant(1))),
            "%2 = add %a, 1"
        )
        self.assertEqual(str(Store(Variable("@g"), Constant(True))), "store true, @g")
        self.assertEqual(str(Alloca(Variable("x"), INT)), "%x = alloca int")
        self.assertEqual(str(Call(None, "f", (Constant(1),))), "call @f(1)")
        self.assertEqual(str(Branch(Variable("c"), "t", "f")), "br %c, t, f")
        self.assertEqual(str(Return()), "ret void")

    def test_branch_to_same_block_has_one_successor(self):
        block = BasicBlock("loop")
        block.add_instruction(Branch(Constant(True), "loop", "loop"))
        self.assertEqual(block.successors(), ["loop"])


class TestControlFlowGraph(unittest.TestCase):

    def _block(self, name, terminator=None):
        block = BasicBlock(name)
        if terminator is not None:
            block.add_instruction(terminator)
        return block

    def test_missing_entry_block(self):
        cfg = ControlFlowGraph("entry")
        cfg.add_block(self._block("other", Return()))
        with self.assertRaises(IRError) as ctx:
            cfg.validate()
        self.assertEqual(ctx.exception.kind, IRErrorKind.MISSING_ENTRY_BLOCK)

    def test_duplicate_block(self):
        cfg = ControlFlowGraph()
        cfg.add_block(self._block("entry"))
        with self.assertRaises(IRError) as ctx:
            cfg.add_block(self._block("entry"))
        self.assertEqual(ctx.exception.kind, IRErrorKind.DUPLICATE_BLOCK)

    def test_unknown_jump_target(self):
        cfg = ControlFlowGraph()
        cfg.add_block(self._block("entry", Jump("nowhere")))
        with self.assertRaises(IRError) as ctx:
            cfg.validate()
        self.assertEqual(ctx.exception.kind, IRErrorKind.UNKNOWN_BLOCK)

    def test_unterminated_reachable_block(self):
        cfg = ControlFlowGraph()
        cfg.add_block(self._block("entry", Jump("body")))
        cfg.add_block(self._block("body"))
        with self.assertRaises(IRError) as ctx:
            cfg.validate()
        self.assertEqual(ctx.exception.kind, IRErrorKind.UNTERMINATED_BLOCK)
        self.assertEqual(ctx.exception.block_name, "body")

    def test_unreachable_blocks(self):
        cfg = ControlFlowGraph()
        cfg.add_block(self._block("entry", Branch(Variable("c"), "a", "b")))
        cfg.add_block(self._block("a", Jump("b")))
        cfg.add_block(self._block("b", Return()))
        cfg.add_block(self._block("dead"))

        self.assertEqual(cfg.reachable_blocks(), ["entry", "a", "b"])
        self.assertEqual(cfg.predecessors("b"), ["entry", "a"])
        self.assertEqual(cfg.successors("entry"), ["a", "b"])
        self.assertEqual(cfg.remove_unreachable(), ["dead"])
        cfg.validate()


class TestIRBuilder(unittest.TestCase):
    """Lowering of type-checked programs."""

    def test_return_zero(self):
        module = build("int main() { return 0; }")
        main = module.get_function("main")
        self.assertIsNotNone(main)
        self.assertEqual(main.return_type, INT)
        self.assertEqual(len(main.basic_blocks), 1)

        block = main.basic_blocks[0]
        self.assertEqual(list(block), [Return(Constant(0))])
        self.assertEqual(block.instructions, [])
        self.assertIs(main.entry_block, block)
        self.assertEqual(main.cfg.entry_block, block.name)

    def test_parameters_are_spilled(self):
        module = build("int add(int a, int b) { return a + b; }")
        add = module.get_function("add")
        self.assertEqual(add.parameters, {"a": INT, "b": INT})
        self.assertEqual(list(add.entry_block), [
            Alloca(Variable("a.addr"), INT),
            Alloca(Variable("b.addr"), INT),
            Store(Variable("a.addr"), Variable("a")),
            Store(Variable("b.addr"), Variable("b")),
            Load(Variable("0"), Variable("a.addr")),
            Load(Variable("1"), Variable("b.addr")),
            BinaryOp(Variable("2"), IRBinaryOperator.ADD, Variable("0"), Variable("1")),
            Return(Variable("2")),
        ])
        self.assertEqual(
            set(add.local_variables), {"a", "b", "a.addr", "b.addr"}
        )

    def test_locals_and_shadowing(self):
        module = build("int main() { int x = 1; { int x = 2; } return x; }")
        main = module.get_function("main")
        self.assertEqual(main.local_variables, {"x": INT, "x.1": INT})
        instructions = list(main.entry_block)
        self.assertEqual(instructions[:2], [
            Alloca(Variable("x"), INT),
            Alloca(Variable("x.1"), INT),
        ])
        self.assertIn(Store(Variable("x.1"), Constant(2)), instructions)
        self.assertEqual(instructions[-2:], [
            Load(Variable("0"), Variable("x")),
            Return(Variable("0")),
        ])

    def test_void_function_gets_implicit_return(self):
        module = build("fn f() { }")
        f = module.get_function("f")
        self.assertEqual(f.return_type, VOID)
        self.assertEqual(f.entry_block.terminator, Return())

    def test_if_without_else(self):
        module = build("int abs(int x) { if (x < 0) { return -x; } return x; }")
        fn = module.get_function("abs")
        self.assertEqual([b.name for b in fn.basic_blocks], ["entry", "if.then.0", "if.end.0"])

        branch = fn.entry_block.terminator
        self.assertIsInstance(branch, Branch)
        self.assertEqual((branch.true_target, branch.false_target), ("if.then.0", "if.end.0"))

        then_block = fn.get_basic_block("if.then.0")
        self.assertIn(
            BinaryOp(Variable("3"), IRBinaryOperator.SUB, Constant(0), Variable("2")),
            then_block.instructions
        )

    def test_if_else_join(self):
        module = build("""
        fn pick(c: bool) -> int {
            let r = 0;
            if (c) { r = 1; } else { r = 2; }
            return r;
        }
        """)
        fn = module.get_function("pick")
        self.assertEqual(fn.get_basic_block("if.then.0").terminator, Jump("if.end.0"))
        self.assertEqual(fn.get_basic_block("if.else.0").terminator, Jump("if.end.0"))
        self.assertEqual(fn.cfg.predecessors("if.end.0"), ["if.then.0", "if.else.0"])

    def test_while_loop(self):
        module = build("fn countdown(n: int) { while (n > 0) { n = n - 1; } }")
        fn = module.get_function("countdown")
        self.assertEqual(
            [b.name for b in fn.basic_blocks],
            ["entry", "while.cond.0", "while.body.0", "while.end.0"]
        )
        self.assertEqual(fn.entry_block.terminator, Jump("while.cond.0"))
        self.assertEqual(fn.get_basic_block("while.body.0").terminator, Jump("while.cond.0"))
        self.assertEqual(fn.get_basic_block("while.end.0").terminator, Return())
        self.assertEqual(fn.cfg.predecessors("while.cond.0"), ["entry", "while.body.0"])

    def test_short_circuit_and(self):
        module = build("fn both(a: bool, b: bool) -> bool { return a && b; }")
        fn = module.get_function("both")
        self.assertEqual(
            [b.name for b in fn.basic_blocks], ["entry", "and.rhs.0", "and.end.0"]
        )
        self.assertEqual(fn.local_variables["and.result"], BOOL)
        branch = fn.entry_block.terminator
        self.assertEqual((branch.true_target, branch.false_target), ("and.rhs.0", "and.end.0"))

    def test_short_circuit_or(self):
        module = build("fn either(a: bool, b: bool) -> bool { return a || b; }")
        branch = module.get_function("either").entry_block.terminator
        self.assertEqual((branch.true_target, branch.false_target), ("or.end.0", "or.rhs.0"))

    def test_logical_not(self):
        module = build("fn inv(a: bool) -> bool { return !a; }")
        self.assertIn(
            BinaryOp(Variable("1"), IRBinaryOperator.EQ, Variable("0"), Constant(False)),
            module.get_function("inv").entry_block.instructions
        )

    def test_code_after_return_is_dropped(self):
        module = build("int f() { return 1; return 2; }")
        fn = module.get_function("f")
        self.assertEqual(len(fn.basic_blocks), 1)
        self.assertEqual(fn.entry_block.terminator, Return(Constant(1)))

    def test_missing_return_in_non_void_function(self):
        with self.assertRaises(IRError) as ctx:
            build("int f(int x) { if (x > 0) { return 1; } }")
        self.assertEqual(ctx.exception.kind, IRErrorKind.UNTERMINATED_BLOCK)

    def test_calls(self):
        module = build("fn g() { } int h(int n) { return n; } fn f() { g(); h(3); }")
        instructions = module.get_function("f").entry_block.instructions
        self.assertEqual(instructions, [
            Call(None, "g", ()),
            Call(Variable("0"), "h", (Constant(3),)),
        ])

    def test_string_literal_statement(self):
        module = build('fn f() { "hi"; 7; }')
        self.assertEqual(module.get_function("f").entry_block.instructions, [
            Const(Variable("0"), Constant("hi")),
            Const(Variable("1"), Constant(7)),
        ])

    def test_pointers(self):
        module = build("int f() { int x = 1; int* p = &x; *p = 2; return *p; }")
        instructions = list(module.get_function("f").entry_block)
        self.assertIn(Store(Variable("p"), Variable("x")), instructions)
        self.assertIn(Store(Variable("0"), Constant(2)), instructions)
        self.assertEqual(instructions[-3:], [
            Load(Variable("1"), Variable("p")),
            Load(Variable("2"), Variable("1")),
            Return(Variable("2")),
        ])

    def test_array_indexing(self):
        module = build("int f() { int a[4]; a[2] = 7; return 0; }")
        instructions = module.get_function("f").entry_block.instructions
        self.assertEqual(instructions, [
            Alloca(Variable("a"), ArrayType(INT, 4)),
            BinaryOp(Variable("0"), IRBinaryOperator.MUL, Constant(2), Constant(4)),
            BinaryOp(Variable("1"), IRBinaryOperator.ADD, Variable("a"), Variable("0")),
            Store(Variable("1"), Constant(7)),
        ])

    def test_struct_member_offsets(self):
        module = build("""
        struct P { x: int; y: int; }
        fn gety(p: struct P*) -> int { return (*p).y; }
        """)
        instructions = module.get_function("gety").entry_block.instructions
        self.assertIn(
            BinaryOp(Variable("1"), IRBinaryOperator.ADD, Variable("0"), Constant(4)),
            instructions
        )

    def test_member_of_returned_struct(self):
        module = build("""
        struct P { x: int; y: int; }
        fn mk() -> struct P { struct P p; p.y = 3; return p; }
        fn main() -> int { return mk().y; }
        """)
        main = module.get_function("main")
        self.assertEqual(list(main.entry_block), [
            Alloca(Variable("spill"), struct_type("P")),
            Call(Variable("0"), "mk", ()),
            Store(Variable("spill"), Variable("0")),
            BinaryOp(Variable("1"), IRBinaryOperator.ADD, Variable("spill"), Constant(4)),
            Load(Variable("2"), Variable("1")),
            Return(Variable("2")),
        ])

    def test_nested_function_keeps_outer_namesake(self):
        module = build("""
        int f() { return 1; }
        int main() { int f() { return 2; } return f(); }
        int g() { return f(); }
        """)
        self.assertEqual(list(module.functions), ["f", "main.f", "main", "g"])
        self.assertEqual(module.get_function("f").entry_block.terminator, Return(Constant(1)))
        self.assertEqual(module.get_function("main.f").entry_block.terminator, Return(Constant(2)))
        self.assertEqual(module.get_function("main").entry_block.instructions,
                         [Call(Variable("0"), "main.f", ())])
        self.assertEqual(module.get_function("g").entry_block.instructions,
                         [Call(Variable("0"), "f", ())])

    def test_sibling_nested_functions(self):
        module = build("fn main() { { fn h() { } h(); } { fn h() { } h(); } }")
        self.assertEqual(list(module.functions), ["main.h", "main.h.1", "main"])
        self.assertEqual(module.get_function("main").entry_block.instructions, [
            Call(None, "main.h", ()),
            Call(None, "main.h.1", ()),
        ])

    def test_globals_and_global_init(self):
        module = build("let g: int = 5; int counter; int main() { return g; } g = 6;")
        self.assertEqual(module.global_variables, {"g": INT, "counter": INT})
        self.assertEqual(list(module.functions), ["main", GLOBAL_INIT_FUNCTION])

        init = module.get_function(GLOBAL_INIT_FUNCTION)
        self.assertEqual(list(init.entry_block), [
            Store(Variable("@g"), Constant(5)),
            Store(Variable("@g"), Constant(6)),
            Return(),
        ])
        main = module.get_function("main")
        self.assertEqual(list(main.entry_block), [
            Load(Variable("0"), Variable("@g")),
            Return(Variable("0")),
        ])

    def test_no_global_init_without_top_level_code(self):
        module = build("int main() { return 0; }")
        self.assertIsNone(module.get_function(GLOBAL_INIT_FUNCTION))

    def test_requires_type_checked_tree(self):
        with self.assertRaises(IRError) as ctx:
            IRBuilder().build(parse_string("int main() { return 0; }"))
        self.assertEqual(ctx.exception.kind, IRErrorKind.UNTYPED_NODE)

    def test_module_rendering(self):
        text = str(build("int main() { return 0; }"))
        self.assertEqual(text.splitlines(), [
            "; Module: main",
            "define int @main() {",
            "entry:",
            "  ret 0",
            "}",
        ])

    def test_function_and_module_containers(self):
        module = Module("m")
        function = module.add_function(Function("f", VOID, {"n": INT}))
        module.add_global_variable("g", BOOL)
        self.assertIs(module.get_function("f"), function)
        self.assertEqual(function.basic_blocks, [])
        self.assertIsNone(function.entry_block)
        self.assertEqual(module.global_variables, {"g": BOOL})

        with self.assertRaises(IRError) as ctx:
            module.add_function(Function("f", INT))
        self.assertEqual(ctx.exception.kind, IRErrorKind.DUPLICATE_FUNCTION)
        self.assertIs(module.get_function("f"), function)


if __name__ == "__main__":
    unittest.main()
