"""
Token definitions for the frontc lexer.

The token model is deliberately small: identifiers, integer and string
literals, operators, punctuation and end-of-stream. Keywords and type names
are ordinary identifiers; the parser gives them meaning by their lexeme.

Author: xwest
"""

from enum import Enum, auto
from dataclasses import dataclass
from typing import Any


class TokenType(Enum):
    """Enumeration of all token types."""

    # ========================================================================
    # Special Tokens
    # ========================================================================
    EOF = auto()                    # End of input

    # ========================================================================
    # Literals and names
    # ========================================================================
    IDENTIFIER = auto()             # x, main, int, while
    INTEGER = auto()                # 42
    STRING = auto()                 # "hello"

    # ========================================================================
    # Symbols
    # ========================================================================
    OPERATOR = auto()               # + - * / == <= && ...
    PUNCTUATION = auto()            # ( ) { } [ ] ; , : . ->


@dataclass(frozen=True)
class SourceLocation:
    """
    Represents a location in the source code.

    ``line`` and ``column`` are 1-based, ``offset`` is the 0-based character
    index into the source buffer.
    """
    filename: str
    line: int
    column: int
    offset: int

    def __str__(self) -> str:
        return f"{self.filename}:{self.line}:{self.column}"

    def __repr__(self) -> str:
        return f"SourceLocation({self.filename!r}, {self.line}, {self.column}, {self.offset})"


@dataclass(frozen=True)
class Token:
    """
    Represents a lexical token.

    Contains the token type, lexeme (raw text), semantic value
    and source location.
    """
    type: TokenType
    lexeme: str                     # Raw text from source
    value: Any                      # int for INTEGER, decoded text for STRING
    location: SourceLocation

    def __str__(self) -> str:
        if self.type == TokenType.EOF:
            return "end of input"
        if self.value is not None and self.value != self.lexeme:
            return f"{self.type.name}({self.lexeme!r} -> {self.value!r})"
        return f"{self.type.name}({self.lexeme!r})"

    def __repr__(self) -> str:
        return (f"Token({self.type.name}, {self.lexeme!r}, "
                f"{self.value!r}, {self.location!r})")

    @property
    def is_literal(self) -> bool:
        """Check if this token is a literal value."""
        return self.type in {TokenType.INTEGER, TokenType.STRING}

    @property
    def is_keyword(self) -> bool:
        """Check if this token is an identifier spelled like a keyword."""
        return self.type == TokenType.IDENTIFIER and self.lexeme in KEYWORDS

    @property
    def is_identifier(self) -> bool:
        """Check if this token is a plain (non-keyword) identifier."""
        return self.type == TokenType.IDENTIFIER and self.lexeme not in KEYWORDS

    def is_operator(self, symbol: str) -> bool:
        return self.type == TokenType.OPERATOR and self.lexeme == symbol

    def is_punctuation(self, symbol: str) -> bool:
        return self.type == TokenType.PUNCTUATION and self.lexeme == symbol


# Lookup tables used by the lexer and parser

# Reserved words. They lex as IDENTIFIER tokens but cannot name variables.
KEYWORDS = frozenset({
    "if", "else", "while", "return",
    "let", "fn", "const", "struct",
    "true", "false",
})

# Builtin type names. Not reserved, but a statement that starts with one of
# them is a C-style declaration.
PRIMITIVE_TYPE_NAMES = frozenset({
    "void", "bool", "char", "int", "float", "double",
})

OPERATORS = frozenset({
    # Comparison and logic (two characters, matched first)
    "==", "!=", "<=", ">=", "&&", "||",
    # Arithmetic
    "+", "-", "*", "/", "%",
    # Relational, assignment, unary
    "<", ">", "=", "!",
    # Bitwise
    "&", "|", "^", "~",
})

PUNCTUATION = frozenset({
    "->",
    "(", ")", "{", "}", "[", "]",
    ";", ",", ":", ".",
})

# Longest symbol first so that "==" wins over "=" and "->" over "-"
MAX_SYMBOL_LENGTH = max(len(symbol) for symbol in OPERATORS | PUNCTUATION)

INT64_MIN = -(2 ** 63)
INT64_MAX = 2 ** 63 - 1
