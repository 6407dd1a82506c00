"""
Error handling for the frontc parser.

Parsing is fail-fast: the first error aborts the parse and no partial AST is
returned. Every error records what the parser expected and the token it
actually found.

Author: xwest
"""

from enum import Enum
from typing import Optional, List

from ..lexer.tokens import Token, TokenType
from ..lexer.errors import CompilerError


class ParseErrorKind(Enum):
    UNEXPECTED_TOKEN = "P001"
    EXPECTED_EXPRESSION = "P002"
    EXPECTED_IDENTIFIER = "P003"
    INVALID_ASSIGNMENT_TARGET = "P004"


class ParseError(CompilerError):
    """
    Exception raised when the parser encounters a syntax error.

    ``expected`` is a human readable description (``"';'"``, ``"expression"``),
    ``found`` is the offending token.
    """

    def __init__(
        self,
        kind: ParseErrorKind,
        message: str,
        found: Token,
        expected: Optional[str] = None,
        help_text: Optional[str] = None,
        suggestions: Optional[List[str]] = None
    ):
        super().__init__(
            message,
            found.location,
            code=kind.value,
            help_text=help_text,
            suggestions=suggestions
        )
        self.kind = kind
        self.expected = expected
        self.found = found

    @property
    def token(self) -> Token:
        return self.found


def describe_token(token: Token) -> str:
    """Short description of a token for error messages."""
    if token.type == TokenType.EOF:
        return "end of input"
    if token.type == TokenType.STRING:
        return f"string {token.lexeme}"
    if token.type == TokenType.INTEGER:
        return f"integer {token.lexeme}"
    return f"'{token.lexeme}'"


# Common error codes for categorization
ERROR_CODES = {
    "P001": "Unexpected token",
    "P002": "Expected expression",
    "P003": "Expected identifier",
    "P004": "Invalid assignment target",
}


# Helper functions for creating common errors

def create_unexpected_token_error(expected: str, found: Token) -> ParseError:
    """Create an error for a token that does not fit the grammar here."""
    suggestions = None
    if expected == "';'":
        suggestions = ["Add a semicolon ';' to end the statement"]
    elif expected in ("')'", "'}'", "']'"):
        suggestions = [f"Check for a missing {expected}"]

    return ParseError(
        ParseErrorKind.UNEXPECTED_TOKEN,
        f"Expected {expected}, found {describe_token(found)}",
        found,
        expected=expected,
        suggestions=suggestions
    )


def create_expected_expression_error(found: Token) -> ParseError:
    return ParseError(
        ParseErrorKind.EXPECTED_EXPRESSION,
        f"Expected expression, found {describe_token(found)}",
        found,
        expected="expression",
        help_text="An expression starts with a literal, a name, '(' or a prefix operator."
    )


def create_expected_identifier_error(found: Token) -> ParseError:
    help_text = None
    if found.is_keyword:
        help_text = f"'{found.lexeme}' is a reserved word and cannot be used as a name."

    return ParseError(
        ParseErrorKind.EXPECTED_IDENTIFIER,
        f"Expected identifier, found {describe_token(found)}",
        found,
        expected="identifier",
        help_text=help_text
    )


def create_invalid_assignment_target_error(found: Token) -> ParseError:
    return ParseError(
        ParseErrorKind.INVALID_ASSIGNMENT_TARGET,
        "Invalid assignment target",
        found,
        expected="variable, index, member or dereference",
        help_text="Only names, a[i], a.b and *p can appear on the left of '='."
    )
