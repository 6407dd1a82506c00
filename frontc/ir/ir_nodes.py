"""
frontc Intermediate Representation (IR) Nodes

A small three-address IR organised as functions of basic blocks. Values live
in named variables (``%name`` for locals and temporaries, ``@name`` for
globals) and memory is reached through ``alloca``/``load``/``store``. The IR
is not in SSA form.

Every basic block holds its non-terminating instructions in order plus at
most one terminator (``jmp``, ``br`` or ``ret``). A function's
``ControlFlowGraph`` names its entry block, which must exist for the graph
to validate.

Author: xwest
"""

import json
from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional, Tuple, Union

from ..analyzer.types import Type
from .errors import (
    create_block_terminated_error, create_unterminated_block_error,
    create_missing_entry_error, create_duplicate_block_error,
    create_unknown_block_error, create_misplaced_terminator_error,
    create_duplicate_function_error
)


# ============================================================================
# Operands
# ============================================================================

@dataclass(frozen=True)
class Variable:
    """A named value: a local slot, a temporary or a ``@global``."""
    name: str

    @property
    def is_global(self) -> bool:
        return self.name.startswith("@")

    def __str__(self) -> str:
        return self.name if self.is_global else f"%{self.name}"


@dataclass(frozen=True)
class Constant:
    """An immediate value: int, bool or string."""
    value: Any

    def __str__(self) -> str:
        if isinstance(self.value, bool):
            return "true" if self.value else "false"
        if isinstance(self.value, str):
            return json.dumps(self.value)
        return str(self.value)


Operand = Union[Variable, Constant]


class IRBinaryOperator(Enum):
    ADD = "add"
    SUB = "sub"
    MUL = "mul"
    DIV = "div"
    MOD = "mod"
    EQ = "eq"
    NE = "ne"
    LT = "lt"
    LE = "le"
    GT = "gt"
    GE = "ge"
    AND = "and"
    OR = "or"
    XOR = "xor"
    SHL = "shl"
    SHR = "shr"


# ============================================================================
# Instructions
# ============================================================================

class Instruction:
    """Base class for IR instructions."""

    is_terminator = False

    def targets(self) -> Tuple[str, ...]:
        """Names of the blocks control may continue to."""
        return ()


@dataclass(frozen=True)
class Const(Instruction):
    """Materialise a constant into a variable."""
    dest: Variable
    value: Constant

    def __str__(self) -> str:
        return f"{self.dest} = const {self.value}"


@dataclass(frozen=True)
class BinaryOp(Instruction):
    dest: Variable
    operator: IRBinaryOperator
    left: Operand
    right: Operand

    def __str__(self) -> str:
        return f"{self.dest} = {self.operator.value} {self.left}, {self.right}"


@dataclass(frozen=True)
class Call(Instruction):
    """Call a function by name. ``dest`` is ``None`` for void calls."""
    dest: Optional[Variable]
    function: str
    arguments: Tuple[Operand, ...] = ()

    def __str__(self) -> str:
        args = ", ".join(str(arg) for arg in self.arguments)
        call = f"call @{self.function}({args})"
        return f"{self.dest} = {call}" if self.dest is not None else call


@dataclass(frozen=True)
class Alloca(Instruction):
    """Reserve a stack slot; ``dest`` holds its address."""
    dest: Variable
    allocated_type: Type

    def __str__(self) -> str:
        return f"{self.dest} = alloca {self.allocated_type}"


@dataclass(frozen=True)
class Load(Instruction):
    dest: Variable
    address: Operand

    def __str__(self) -> str:
        return f"{self.dest} = load {self.address}"


@dataclass(frozen=True)
class Store(Instruction):
    address: Operand
    value: Operand

    def __str__(self) -> str:
        return f"store {self.value}, {self.address}"


@dataclass(frozen=True)
class Jump(Instruction):
    target: str

    is_terminator = True

    def targets(self) -> Tuple[str, ...]:
        return (self.target,)

    def __str__(self) -> str:
        return f"jmp {self.target}"


@dataclass(frozen=True)
class Branch(Instruction):
    condition: Operand
    true_target: str
    false_target: str

    is_terminator = True

    def targets(self) -> Tuple[str, ...]:
        return (self.true_target, self.false_target)

    def __str__(self) -> str:
        return f"br {self.condition}, {self.true_target}, {self.false_target}"


@dataclass(frozen=True)
class Return(Instruction):
    value: Optional[Operand] = None

    is_terminator = True

    def __str__(self) -> str:
        return f"ret {self.value}" if self.value is not None else "ret void"


# ============================================================================
# Blocks and graphs
# ============================================================================

class BasicBlock:
    """
    A straight-line run of instructions ending in one terminator.

    Once the terminator is set the block is sealed: appending anything else
    raises ``IRError``.
    """

    def __init__(self, name: str):
        self.name = name
        self.instructions: List[Instruction] = []
        self.terminator: Optional[Instruction] = None

    @property
    def is_terminated(self) -> bool:
        return self.terminator is not None

    def add_instruction(self, instruction: Instruction):
        """Append ``instruction``; a terminator seals the block."""
        if self.is_terminated:
            raise create_block_terminated_error(self.name, instruction)
        if instruction.is_terminator:
            self.terminator = instruction
        else:
            self.instructions.append(instruction)

    def insert_instruction(self, index: int, instruction: Instruction):
        """Insert a non-terminating instruction at a specific position."""
        if instruction.is_terminator:
            raise create_misplaced_terminator_error(self.name, instruction)
        self.instructions.insert(index, instruction)

    def successors(self) -> List[str]:
        if self.terminator is None:
            return []
        return list(dict.fromkeys(self.terminator.targets()))

    def __len__(self) -> int:
        return len(self.instructions) + (1 if self.is_terminated else 0)

    def __iter__(self) -> Iterator[Instruction]:
        yield from self.instructions
        if self.terminator is not None:
            yield self.terminator

    def __str__(self) -> str:
        lines = [f"{self.name}:"]
        for instruction in self:
            lines.append(f"  {instruction}")
        return "\n".join(lines)


class ControlFlowGraph:
    """Basic blocks of one function, keyed by name, in insertion order."""

    def __init__(self, entry_block: str = "entry"):
        self.entry_block = entry_block
        self.blocks: Dict[str, BasicBlock] = {}

    def add_block(self, block: BasicBlock) -> BasicBlock:
        if block.name in self.blocks:
            raise create_duplicate_block_error(block.name)
        self.blocks[block.name] = block
        return block

    def get_block(self, name: str) -> Optional[BasicBlock]:
        return self.blocks.get(name)

    def successors(self, name: str) -> List[str]:
        block = self.blocks.get(name)
        return block.successors() if block is not None else []

    def predecessors(self, name: str) -> List[str]:
        return [
            block.name for block in self.blocks.values()
            if name in block.successors()
        ]

    def reachable_blocks(self) -> List[str]:
        """Names of the blocks reachable from the entry, breadth first."""
        if self.entry_block not in self.blocks:
            return []

        seen = {self.entry_block}
        order = []
        queue = deque([self.entry_block])
        while queue:
            name = queue.popleft()
            order.append(name)
            for successor in self.successors(name):
                if successor in self.blocks and successor not in seen:
                    seen.add(successor)
                    queue.append(successor)
        return order

    def remove_unreachable(self) -> List[str]:
        """Drop blocks that cannot be reached from the entry; returns their names."""
        reachable = set(self.reachable_blocks())
        removed = [name for name in self.blocks if name not in reachable]
        for name in removed:
            del self.blocks[name]
        return removed

    def validate(self):
        """
        Check the structural invariants of the graph.

        Raises:
            IRError: If the entry block is missing, a terminator targets a
                block outside the graph, or a reachable block is unterminated
        """
        if self.entry_block not in self.blocks:
            raise create_missing_entry_error(self.entry_block)

        for block in self.blocks.values():
            for target in block.successors():
                if target not in self.blocks:
                    raise create_unknown_block_error(target, block.name)

        for name in self.reachable_blocks():
            if not self.blocks[name].is_terminated:
                raise create_unterminated_block_error(name)

    def __len__(self) -> int:
        return len(self.blocks)

    def __iter__(self) -> Iterator[BasicBlock]:
        return iter(self.blocks.values())


# ============================================================================
# Functions and modules
# ============================================================================

class Function:
    """Function in IR."""

    def __init__(self, name: str, return_type: Type,
                 parameters: Optional[Dict[str, Type]] = None):
        self.name = name
        self.return_type = return_type
        self.parameters: Dict[str, Type] = dict(parameters or {})
        self.local_variables: Dict[str, Type] = {}
        self.cfg = ControlFlowGraph()

    @property
    def basic_blocks(self) -> List[BasicBlock]:
        return list(self.cfg.blocks.values())

    @property
    def entry_block(self) -> Optional[BasicBlock]:
        return self.cfg.get_block(self.cfg.entry_block)

    def add_parameter(self, name: str, param_type: Type):
        self.parameters[name] = param_type

    def add_local_variable(self, name: str, var_type: Type):
        self.local_variables[name] = var_type

    def add_basic_block(self, block: BasicBlock) -> BasicBlock:
        return self.cfg.add_block(block)

    def get_basic_block(self, name: str) -> Optional[BasicBlock]:
        return self.cfg.get_block(name)

    def __str__(self) -> str:
        params = ", ".join(f"{param_type} %{name}" for name, param_type in self.parameters.items())
        lines = [f"define {self.return_type} @{self.name}({params}) {{"]
        for block in self.cfg:
            lines.append(str(block))
        lines.append("}")
        return "\n".join(lines)


class Module:
    """Top-level IR module: one per translation unit."""

    def __init__(self, name: str):
        self.name = name
        self.functions: Dict[str, Function] = {}
        self.global_variables: Dict[str, Type] = {}

    def add_function(self, function: Function) -> Function:
        if function.name in self.functions:
            raise create_duplicate_function_error(function.name)
        self.functions[function.name] = function
        return function

    def get_function(self, name: str) -> Optional[Function]:
        return self.functions.get(name)

    def add_global_variable(self, name: str, var_type: Type):
        self.global_variables[name] = var_type

    def __str__(self) -> str:
        lines = [f"; Module: {self.name}"]

        for name, var_type in self.global_variables.items():
            lines.append(f"@{name} = global {var_type}")
        if self.global_variables:
            lines.append("")

        for function in self.functions.values():
            lines.append(str(function))
            lines.append("")

        return "\n".join(lines)
