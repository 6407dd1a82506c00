"""
frontc Lexer Package

Lexical analyzer for the frontc language: turns source text into a lazy
stream of tokens.

Key Features:
- Six token kinds (identifier, integer, string, operator, punctuation, EOF)
- Line and block comments
- Longest-match operator recognition
- Source location tracking on every token and error

Author: xwest
"""

from .tokens import Token, TokenType, SourceLocation
from .lexer import Lexer, tokenize_string, tokenize_file
from .errors import Diagnostic, CompilerError, LexerError, LexErrorKind

__all__ = [
    "Lexer",
    "Token",
    "TokenType",
    "SourceLocation",
    "Diagnostic",
    "CompilerError",
    "LexerError",
    "LexErrorKind",
    "tokenize_string",
    "tokenize_file",
]
