"""
Error handling for IR construction.

IR errors signal a broken structural invariant (a block with two
terminators, a graph without its entry block) or a tree the builder cannot
lower. They are raised immediately; nothing is repaired.

Author: xwest
"""

from enum import Enum
from typing import Optional

from ..lexer.tokens import SourceLocation
from ..lexer.errors import CompilerError


class IRErrorKind(Enum):
    BLOCK_ALREADY_TERMINATED = "I001"
    UNTERMINATED_BLOCK = "I002"
    MISSING_ENTRY_BLOCK = "I003"
    DUPLICATE_BLOCK = "I004"
    UNKNOWN_BLOCK = "I005"
    UNTYPED_NODE = "I006"
    UNSUPPORTED_CONSTRUCT = "I007"
    MISPLACED_TERMINATOR = "I008"
    DUPLICATE_FUNCTION = "I009"


class IRError(CompilerError):
    """Exception raised when an IR invariant is violated."""

    def __init__(
        self,
        kind: IRErrorKind,
        message: str,
        location: Optional[SourceLocation] = None,
        block_name: Optional[str] = None,
        help_text: Optional[str] = None
    ):
        super().__init__(message, location, code=kind.value, help_text=help_text)
        self.kind = kind
        self.block_name = block_name


ERROR_CODES = {
    "I001": "Block already terminated",
    "I002": "Unterminated block",
    "I003": "Missing entry block",
    "I004": "Duplicate block",
    "I005": "Unknown block",
    "I006": "Untyped node",
    "I007": "Unsupported construct",
    "I008": "Misplaced terminator",
    "I009": "Duplicate function",
}


def create_block_terminated_error(block_name: str, instruction) -> IRError:
    return IRError(
        IRErrorKind.BLOCK_ALREADY_TERMINATED,
        f"Cannot append '{instruction}' to block '{block_name}': it already ends in a terminator",
        block_name=block_name,
        help_text="Start a new basic block after a jump, branch or return."
    )


def create_unterminated_block_error(block_name: str) -> IRError:
    return IRError(
        IRErrorKind.UNTERMINATED_BLOCK,
        f"Block '{block_name}' has no terminator",
        block_name=block_name
    )


def create_missing_entry_error(block_name: str) -> IRError:
    return IRError(
        IRErrorKind.MISSING_ENTRY_BLOCK,
        f"Entry block '{block_name}' is not part of the control flow graph",
        block_name=block_name
    )


def create_duplicate_block_error(block_name: str) -> IRError:
    return IRError(
        IRErrorKind.DUPLICATE_BLOCK,
        f"Block '{block_name}' is already part of the control flow graph",
        block_name=block_name
    )


def create_unknown_block_error(block_name: str, source_block: str) -> IRError:
    """A terminator jumps to a block the graph does not contain."""
    return IRError(
        IRErrorKind.UNKNOWN_BLOCK,
        f"Block '{source_block}' jumps to unknown block '{block_name}'",
        block_name=block_name
    )


def create_untyped_node_error(description: str, location: Optional[SourceLocation]) -> IRError:
    return IRError(
        IRErrorKind.UNTYPED_NODE,
        f"No type information for {description}",
        location,
        help_text="Run the type checker before building IR."
    )


def create_unsupported_error(message: str, location: Optional[SourceLocation]) -> IRError:
    return IRError(IRErrorKind.UNSUPPORTED_CONSTRUCT, message, location)


def create_misplaced_terminator_error(block_name: str, instruction) -> IRError:
    return IRError(
        IRErrorKind.MISPLACED_TERMINATOR,
        f"Terminator '{instruction}' can only be appended to block '{block_name}'",
        block_name=block_name
    )


def create_duplicate_function_error(function_name: str) -> IRError:
    return IRError(
        IRErrorKind.DUPLICATE_FUNCTION,
        f"Function '{function_name}' is already part of the module"
    )
