"""
Error handling for the frontc lexer.

Also home of the shared diagnostic record and the ``CompilerError`` base class
that every later stage (parser, analyzer, IR) derives its exceptions from, so a
caller can catch one type and still get source locations and error codes.

Author: xwest
"""

from enum import Enum
from typing import Optional, List
from dataclasses import dataclass
from .tokens import SourceLocation


@dataclass
class Diagnostic:
    """A single compiler diagnostic (error, warning, info)."""
    message: str
    location: Optional[SourceLocation]
    severity: str  # "error", "warning", "info", "hint"
    code: Optional[str] = None
    help_text: Optional[str] = None
    suggestions: Optional[List[str]] = None

    def __str__(self) -> str:
        severity_prefix = self.severity.upper()
        if self.code:
            severity_prefix += f"[{self.code}]"
        result = f"{severity_prefix}: {self.message}\n"
        if self.location is not None:
            result += f"  --> {self.location}\n"

        if self.help_text:
            result += f"  help: {self.help_text}\n"

        if self.suggestions:
            result += "  suggestions:\n"
            for suggestion in self.suggestions:
                result += f"    - {suggestion}\n"

        return result


class CompilerError(Exception):
    """
    Base class of every error raised by the front end.

    Wraps a ``Diagnostic`` so callers can render the error without going
    back to the source text.
    """

    def __init__(
        self,
        message: str,
        location: Optional[SourceLocation] = None,
        code: Optional[str] = None,
        help_text: Optional[str] = None,
        suggestions: Optional[List[str]] = None
    ):
        super().__init__(message)
        self.message = message
        self.diagnostic = Diagnostic(
            message=message,
            location=location,
            severity="error",
            code=code,
            help_text=help_text,
            suggestions=suggestions
        )

    @property
    def location(self) -> Optional[SourceLocation]:
        return self.diagnostic.location

    @property
    def code(self) -> Optional[str]:
        return self.diagnostic.code

    def __str__(self) -> str:
        return str(self.diagnostic)


class LexErrorKind(Enum):
    """Ways lexing can fail. Lexing stops at the first one."""
    INVALID_CHARACTER = "L001"
    UNTERMINATED_STRING = "L002"
    UNTERMINATED_COMMENT = "L003"
    INTEGER_OVERFLOW = "L004"


class LexerError(CompilerError):
    """
    Exception raised when the lexer encounters a fatal error.

    ``kind`` tells which failure happened; ``character`` is only set for
    invalid characters.
    """

    def __init__(
        self,
        kind: LexErrorKind,
        message: str,
        location: SourceLocation,
        character: Optional[str] = None,
        help_text: Optional[str] = None,
        suggestions: Optional[List[str]] = None
    ):
        super().__init__(
            message,
            location,
            code=kind.value,
            help_text=help_text,
            suggestions=suggestions
        )
        self.kind = kind
        self.character = character


def edit_distance(s1: str, s2: str) -> int:
    """Calculate Levenshtein distance between two strings."""
    if len(s1) < len(s2):
        return edit_distance(s2, s1)

    if len(s2) == 0:
        return len(s1)

    previous_row = list(range(len(s2) + 1))
    for i, c1 in enumerate(s1):
        current_row = [i + 1]
        for j, c2 in enumerate(s2):
            insertions = previous_row[j + 1] + 1
            deletions = current_row[j] + 1
            substitutions = previous_row[j] + (c1 != c2)
            current_row.append(min(insertions, deletions, substitutions))
        previous_row = current_row

    return previous_row[-1]


# Common error codes for categorization
ERROR_CODES = {
    "L001": "Invalid character",
    "L002": "Unterminated string literal",
    "L003": "Unterminated block comment",
    "L004": "Integer literal overflow",
}


# Helper functions for creating common errors
def create_invalid_character_error(char: str, location: SourceLocation) -> LexerError:
    """Create an error for an invalid character."""
    if char.isprintable():
        help_text = f"The character '{char}' is not valid in source code."
    else:
        help_text = f"Non-printable character (Unicode: U+{ord(char):04X}) is not allowed."

    return LexerError(
        LexErrorKind.INVALID_CHARACTER,
        message=f"Invalid character: '{char}'",
        location=location,
        character=char,
        help_text=help_text
    )


def create_unterminated_string_error(location: SourceLocation) -> LexerError:
    """Create an error for an unterminated string literal."""
    return LexerError(
        LexErrorKind.UNTERMINATED_STRING,
        message="Unterminated string literal",
        location=location,
        help_text='String literals must be closed with a matching " quote.',
        suggestions=['Add a closing " quote', "Check for unescaped quotes in the string"]
    )


def create_unterminated_comment_error(location: SourceLocation) -> LexerError:
    """Create an error for a block comment that never closes."""
    return LexerError(
        LexErrorKind.UNTERMINATED_COMMENT,
        message="Unterminated block comment",
        location=location,
        help_text="Block comments opened with /* must be closed with */."
    )


def create_integer_overflow_error(lexeme: str, location: SourceLocation) -> LexerError:
    """Create an error for an integer literal that does not fit in 64 bits."""
    return LexerError(
        LexErrorKind.INTEGER_OVERFLOW,
        message=f"Integer literal out of range: '{lexeme}'",
        location=location,
        help_text="Integer literals must fit in a signed 64-bit integer."
    )
