"""
IR Builder for frontc.

Lowers a type-checked AST into an IR ``Module``. Each function becomes a
``Function`` whose entry block starts with the ``alloca`` of every local
slot; control flow constructs are lowered to basic blocks joined by
``jmp``/``br``. Top-level variable declarations become module globals, and
their initialisers, together with any other top-level statements, run in a
synthetic ``__global_init`` function.

The builder relies on the type checker's annotations. A node without its
``resolved_type`` (or an identifier without its ``resolved_symbol``) raises
``IRError`` instead of being guessed at.

Author: xwest
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Optional, Set

from ..parser.ast_nodes import (
    ASTNode, Program, Expression,
    VariableDecl, FunctionDecl, StructDecl,
    ReturnStatement, ExpressionStatement, BlockStatement, IfStatement, WhileStatement,
    Identifier, IntegerLiteral, StringLiteral, BooleanLiteral,
    BinaryOp as ASTBinaryOp, UnaryOp, FunctionCall, Assignment, IndexAccess, MemberAccess,
    BinaryOperator, UnaryOperator
)
from ..parser.visitor import ASTVisitor
from ..analyzer.symbol_table import Symbol, SymbolKind
from ..analyzer.types import (
    Type, ArrayType, FunctionType, UserTypeKind, BOOL, VOID, TypeRegistry
)
from .ir_nodes import (
    Variable, Constant, Operand, IRBinaryOperator,
    Const, BinaryOp, Call, Alloca, Load, Store, Jump, Branch, Return,
    BasicBlock, Function, Module
)
from .errors import create_untyped_node_error, create_unsupported_error

logger = logging.getLogger(__name__)


GLOBAL_INIT_FUNCTION = "__global_init"

_BINARY_OPERATORS = {
    BinaryOperator.ADD: IRBinaryOperator.ADD,
    BinaryOperator.SUB: IRBinaryOperator.SUB,
    BinaryOperator.MUL: IRBinaryOperator.MUL,
    BinaryOperator.DIV: IRBinaryOperator.DIV,
    BinaryOperator.MOD: IRBinaryOperator.MOD,
    BinaryOperator.EQ: IRBinaryOperator.EQ,
    BinaryOperator.NE: IRBinaryOperator.NE,
    BinaryOperator.LT: IRBinaryOperator.LT,
    BinaryOperator.LE: IRBinaryOperator.LE,
    BinaryOperator.GT: IRBinaryOperator.GT,
    BinaryOperator.GE: IRBinaryOperator.GE,
}


@dataclass
class IRGenContext:
    """State for the function currently being lowered."""
    function: Function
    current_block: Optional[BasicBlock] = None
    slots: Dict[Symbol, Variable] = field(default_factory=dict)
    used_names: Set[str] = field(default_factory=set)
    next_temp: int = 0
    next_label: int = 0
    alloca_count: int = 0


class IRBuilder(ASTVisitor):
    """
    Generates IR from a type-checked AST.

    Statement visitors return ``None``; expression visitors return the
    ``Operand`` holding the expression's value.
    """

    def __init__(self, validate: bool = True):
        self.validate = validate
        self.module: Optional[Module] = None
        self.registry = TypeRegistry()
        self.context: Optional[IRGenContext] = None
        self._global_init: Optional[IRGenContext] = None
        self._function_names: Dict[Symbol, str] = {}

    def build(self, program: Program, module_name: str = "main") -> Module:
        """
        Lower ``program`` into a new module.

        Raises:
            IRError: If the tree is not type-checked or an IR invariant breaks
        """
        self.module = Module(module_name)
        self.registry = TypeRegistry()
        self._global_init = None
        self._function_names = {}

        for item in program.body:
            if isinstance(item, FunctionDecl):
                self._generate_function(item)
            elif isinstance(item, StructDecl):
                self._generate_struct(item)
            elif isinstance(item, VariableDecl):
                self._generate_global(item)
            else:
                self._in_global_init(item)

        if self._global_init is not None:
            self.context = self._global_init
            self._finish_function()

        self.context = None
        logger.debug("built module '%s' with %d function(s)",
                     module_name, len(self.module.functions))
        return self.module

    # ========================================================================
    # Top-level items
    # ========================================================================

    def _generate_function(self, node: FunctionDecl, enclosing: Optional[str] = None):
        function_type = self._type_of(node)
        if not isinstance(function_type, FunctionType):
            raise create_untyped_node_error(repr(node), node.location)

        name = self._reserve_function_name(node, enclosing)
        self.context = self._start_function(name, function_type.return_type)
        for param, param_type in zip(node.params, function_type.params):
            self.context.function.add_parameter(param.name, param_type)
            self.context.function.add_local_variable(param.name, param_type)
            self.context.used_names.add(param.name)

        for param, param_type in zip(node.params, function_type.params):
            slot = self._declare_slot(self._symbol_of(param), param_type, f"{param.name}.addr")
            self._emit(Store(slot, Variable(param.name)))

        for statement in node.body.statements:
            self.visit(statement)

        self._finish_function()
        self.context = None

    def _reserve_function_name(self, node: FunctionDecl, enclosing: Optional[str]) -> str:
        """
        Pick the module-level name of a function.

        Top-level functions keep their own name; a nested one becomes
        ``<enclosing>.<name>`` with a numeric suffix if that is taken.
        """
        base_name = node.name if enclosing is None else f"{enclosing}.{node.name}"
        taken = set(self._function_names.values())
        name = base_name
        suffix = 1
        while name in taken:
            name = f"{base_name}.{suffix}"
            suffix += 1
        self._function_names[self._symbol_of(node)] = name
        return name

    def _function_name(self, symbol: Symbol) -> str:
        return self._function_names.get(symbol, symbol.name)

    def _generate_struct(self, node: StructDecl):
        fields = [(field_node.name, self._type_of(field_node)) for field_node in node.fields]
        self.registry.register(node.name, self._type_of(node), fields)

    def _generate_global(self, node: VariableDecl):
        self.module.add_global_variable(node.name, self._type_of(node))
        if node.initializer is None:
            return

        self.context = self._global_init_context()
        value = self.visit(node.initializer)
        self._emit(Store(Variable(f"@{node.name}"), value))
        self.context = None

    def _in_global_init(self, statement: ASTNode):
        self.context = self._global_init_context()
        self.visit(statement)
        self.context = None

    def _global_init_context(self) -> IRGenContext:
        if self._global_init is None:
            self._global_init = self._start_function(GLOBAL_INIT_FUNCTION, VOID)
        return self._global_init

    def _start_function(self, name: str, return_type: Type) -> IRGenContext:
        context = IRGenContext(Function(name, return_type))
        entry = BasicBlock(context.function.cfg.entry_block)
        context.function.add_basic_block(entry)
        context.current_block = entry
        return context

    def _finish_function(self):
        function = self.context.function
        if not self.context.current_block.is_terminated and function.return_type.is_void:
            self._emit(Return())

        removed = function.cfg.remove_unreachable()
        if self.validate:
            function.cfg.validate()

        self.module.add_function(function)
        logger.debug("lowered function '%s': %d block(s), %d dropped as unreachable",
                     function.name, len(function.cfg), len(removed))

    # ========================================================================
    # Helpers
    # ========================================================================

    def _type_of(self, node: ASTNode) -> Type:
        if node.resolved_type is None:
            raise create_untyped_node_error(repr(node), node.location)
        return node.resolved_type

    def _symbol_of(self, node: ASTNode) -> Symbol:
        if node.resolved_symbol is None or node.resolved_symbol.symbol_type is None:
            raise create_untyped_node_error(repr(node), node.location)
        return node.resolved_symbol

    def _emit(self, instruction):
        self.context.current_block.add_instruction(instruction)

    def _new_temp(self) -> Variable:
        temp = Variable(str(self.context.next_temp))
        self.context.next_temp += 1
        return temp

    def _new_label(self) -> int:
        label = self.context.next_label
        self.context.next_label += 1
        return label

    def _switch_to(self, name: str):
        self.context.current_block = self.context.function.add_basic_block(BasicBlock(name))

    def _new_slot(self, slot_type: Type, base_name: str) -> Variable:
        """Allocate a stack slot at the top of the entry block."""
        context = self.context
        name = base_name
        suffix = 1
        while name in context.used_names:
            name = f"{base_name}.{suffix}"
            suffix += 1
        context.used_names.add(name)

        slot = Variable(name)
        context.function.entry_block.insert_instruction(
            context.alloca_count, Alloca(slot, slot_type)
        )
        context.alloca_count += 1
        context.function.add_local_variable(name, slot_type)
        return slot

    def _declare_slot(self, symbol: Symbol, slot_type: Type, base_name: str) -> Variable:
        slot = self._new_slot(slot_type, base_name)
        self.context.slots[symbol] = slot
        return slot

    def _address_of(self, expr: Expression) -> Operand:
        """Operand holding the address of ``expr``; rvalues are spilled to a slot first."""
        if isinstance(expr, Identifier):
            symbol = self._symbol_of(expr)
            if symbol.kind == SymbolKind.FUNCTION:
                return Variable(f"@{self._function_name(symbol)}")
            slot = self.context.slots.get(symbol)
            if slot is not None:
                return slot
            if symbol.scope_level > 0:
                raise create_unsupported_error(
                    f"'{symbol.name}' belongs to an enclosing function", expr.location
                )
            return Variable(f"@{symbol.name}")

        if isinstance(expr, UnaryOp) and expr.operator == UnaryOperator.DEREF:
            return self.visit(expr.operand)

        if isinstance(expr, IndexAccess):
            if isinstance(self._type_of(expr.target), ArrayType):
                base = self._address_of(expr.target)
            else:
                base = self.visit(expr.target)
            index = self.visit(expr.index)
            element_size = self._type_of(expr).size_of(self.registry)

            offset = self._new_temp()
            self._emit(BinaryOp(offset, IRBinaryOperator.MUL, index, Constant(element_size)))
            address = self._new_temp()
            self._emit(BinaryOp(address, IRBinaryOperator.ADD, base, offset))
            return address

        if isinstance(expr, MemberAccess):
            base = self._address_of(expr.target)
            aggregate = self._type_of(expr.target)
            offset = 0
            if aggregate.kind != UserTypeKind.UNION:
                for field_name, field_type in self.registry.struct_fields(aggregate.name):
                    if field_name == expr.member:
                        break
                    offset += field_type.size_of(self.registry)
            if offset == 0:
                return base
            address = self._new_temp()
            self._emit(BinaryOp(address, IRBinaryOperator.ADD, base, Constant(offset)))
            return address

        # Any other value is spilled to a fresh slot
        slot = self._new_slot(self._type_of(expr), "spill")
        self._emit(Store(slot, self.visit(expr)))
        return slot

    def _load(self, address: Operand) -> Variable:
        dest = self._new_temp()
        self._emit(Load(dest, address))
        return dest

    # ========================================================================
    # Statements
    # ========================================================================

    def visit_variable_decl(self, node: VariableDecl):
        slot = self._declare_slot(self._symbol_of(node), self._type_of(node), node.name)
        if node.initializer is not None:
            self._emit(Store(slot, self.visit(node.initializer)))

    def visit_function_decl(self, node: FunctionDecl):
        # Nested functions are lowered as module-level functions
        outer = self.context
        self._generate_function(node, enclosing=outer.function.name)
        self.context = outer

    def visit_struct_decl(self, node: StructDecl):
        self._generate_struct(node)

    def visit_block_statement(self, node: BlockStatement):
        for statement in node.statements:
            self.visit(statement)

    def visit_expression_statement(self, node: ExpressionStatement):
        expression = node.expression
        if isinstance(expression, (IntegerLiteral, BooleanLiteral)):
            self._emit(Const(self._new_temp(), Constant(expression.value)))
        else:
            self.visit(expression)

    def visit_if_statement(self, node: IfStatement):
        label = self._new_label()
        then_name = f"if.then.{label}"
        else_name = f"if.else.{label}"
        end_name = f"if.end.{label}"

        condition = self.visit(node.condition)
        has_else = node.else_branch is not None
        self._emit(Branch(condition, then_name, else_name if has_else else end_name))

        self._switch_to(then_name)
        self.visit(node.then_branch)
        if not self.context.current_block.is_terminated:
            self._emit(Jump(end_name))

        if has_else:
            self._switch_to(else_name)
            self.visit(node.else_branch)
            if not self.context.current_block.is_terminated:
                self._emit(Jump(end_name))

        self._switch_to(end_name)

    def visit_while_statement(self, node: WhileStatement):
        label = self._new_label()
        cond_name = f"while.cond.{label}"
        body_name = f"while.body.{label}"
        end_name = f"while.end.{label}"

        self._emit(Jump(cond_name))

        self._switch_to(cond_name)
        condition = self.visit(node.condition)
        self._emit(Branch(condition, body_name, end_name))

        self._switch_to(body_name)
        self.visit(node.body)
        if not self.context.current_block.is_terminated:
            self._emit(Jump(cond_name))

        self._switch_to(end_name)

    def visit_return_statement(self, node: ReturnStatement):
        value = None
        if node.value is not None:
            lowered = self.visit(node.value)
            if not self._type_of(node.value).is_void:
                value = lowered
        self._emit(Return(value))

        # Anything after a return lands in a block nothing jumps to
        self._switch_to(f"after.return.{self._new_label()}")

    # ========================================================================
    # Expressions
    # ========================================================================

    def visit_integer_literal(self, node: IntegerLiteral) -> Operand:
        return Constant(node.value)

    def visit_boolean_literal(self, node: BooleanLiteral) -> Operand:
        return Constant(node.value)

    def visit_string_literal(self, node: StringLiteral) -> Operand:
        dest = self._new_temp()
        self._emit(Const(dest, Constant(node.value)))
        return dest

    def visit_identifier(self, node: Identifier) -> Operand:
        symbol = self._symbol_of(node)
        if symbol.kind == SymbolKind.FUNCTION:
            return Variable(f"@{self._function_name(symbol)}")
        return self._load(self._address_of(node))

    def visit_binary_op(self, node: ASTBinaryOp) -> Operand:
        if node.operator.is_logical:
            return self._generate_short_circuit(node)

        left = self.visit(node.left)
        right = self.visit(node.right)
        dest = self._new_temp()
        self._emit(BinaryOp(dest, _BINARY_OPERATORS[node.operator], left, right))
        return dest

    def _generate_short_circuit(self, node: ASTBinaryOp) -> Operand:
        prefix = "and" if node.operator == BinaryOperator.AND else "or"
        label = self._new_label()
        rhs_name = f"{prefix}.rhs.{label}"
        end_name = f"{prefix}.end.{label}"

        result = self._new_slot(BOOL, f"{prefix}.result")
        left = self.visit(node.left)
        self._emit(Store(result, left))
        if node.operator == BinaryOperator.AND:
            self._emit(Branch(left, rhs_name, end_name))
        else:
            self._emit(Branch(left, end_name, rhs_name))

        self._switch_to(rhs_name)
        right = self.visit(node.right)
        self._emit(Store(result, right))
        self._emit(Jump(end_name))

        self._switch_to(end_name)
        return self._load(result)

    def visit_unary_op(self, node: UnaryOp) -> Operand:
        operator = node.operator

        if operator == UnaryOperator.ADDR_OF:
            return self._address_of(node.operand)

        operand = self.visit(node.operand)
        if operator == UnaryOperator.DEREF:
            return self._load(operand)

        dest = self._new_temp()
        if operator == UnaryOperator.NEG:
            self._emit(BinaryOp(dest, IRBinaryOperator.SUB, Constant(0), operand))
        else:
            self._emit(BinaryOp(dest, IRBinaryOperator.EQ, operand, Constant(False)))
        return dest

    def visit_function_call(self, node: FunctionCall) -> Operand:
        arguments = tuple(self.visit(argument) for argument in node.arguments)
        dest = None if self._type_of(node).is_void else self._new_temp()
        self._emit(Call(dest, self._function_name(self._symbol_of(node.callee)), arguments))
        return dest if dest is not None else Constant(None)

    def visit_assignment(self, node: Assignment) -> Operand:
        address = self._address_of(node.target)
        value = self.visit(node.value)
        self._emit(Store(address, value))
        return value

    def visit_index_access(self, node: IndexAccess) -> Operand:
        return self._load(self._address_of(node))

    def visit_member_access(self, node: MemberAccess) -> Operand:
        return self._load(self._address_of(node))
