"""
frontc Lexer - turns source text into tokens

Tokens are produced on demand by next(); the Lexer is also an iterator, so
the parser can pull tokens one at a time without the whole list existing
up front. tokenize() drains everything into a list when that is easier.

Lexing stops at the first error. There is no recovery mode.

Author: xwest
"""

import logging
from typing import Iterator, List

from .tokens import (
    Token, TokenType, SourceLocation, OPERATORS, PUNCTUATION,
    MAX_SYMBOL_LENGTH, INT64_MAX
)
from .errors import (
    create_invalid_character_error, create_unterminated_string_error,
    create_unterminated_comment_error, create_integer_overflow_error
)

logger = logging.getLogger(__name__)


ESCAPE_SEQUENCES = {
    'n': '\n',
    't': '\t',
    'r': '\r',
    '0': '\0',
    '\\': '\\',
    '"': '"',
}


class Lexer:
    """
    Lexical analyzer.

    Converts source code text into a stream of tokens. The source buffer is
    never modified; the lexer only moves a cursor over it.
    """

    def __init__(self, source: str, filename: str = "<input>"):
        """
        Initialize the lexer with source code.

        Args:
            source: Source code string
            filename: Name of source file for error reporting
        """
        self.source = source
        self.filename = filename
        self.pos = 0
        self.line = 1
        self.column = 1
        self._finished = False

    def __iter__(self) -> Iterator[Token]:
        return self

    def __next__(self) -> Token:
        if self._finished:
            raise StopIteration
        return self.next()

    def next(self) -> Token:
        """
        Consume and return the next token.

        Once the EOF token has been handed out, every further call returns
        another EOF token at the same position; iteration stops instead.

        Raises:
            LexerError: On the first malformed piece of input
        """
        self._skip_whitespace_and_comments()

        if self.pos >= len(self.source):
            self._finished = True
            return Token(TokenType.EOF, "", None, self._location())

        start = self._location()
        current_char = self.source[self.pos]

        if '0' <= current_char <= '9':
            return self._tokenize_number(start)

        if self._is_identifier_start(current_char):
            return self._tokenize_identifier(start)

        if current_char == '"':
            return self._tokenize_string(start)

        # Operators and punctuation, longest match first
        for length in range(MAX_SYMBOL_LENGTH, 0, -1):
            candidate = self.source[self.pos:self.pos + length]
            if len(candidate) != length:
                continue
            if candidate in PUNCTUATION:
                self._advance_by(length)
                return Token(TokenType.PUNCTUATION, candidate, None, start)
            if candidate in OPERATORS:
                self._advance_by(length)
                return Token(TokenType.OPERATOR, candidate, None, start)

        raise create_invalid_character_error(current_char, start)

    def tokenize(self) -> List[Token]:
        """
        Tokenize the rest of the source code.

        Returns:
            List of tokens ending with the EOF token
        """
        tokens = list(self)
        logger.debug("lexed %d tokens from %s", len(tokens), self.filename)
        return tokens

    def _tokenize_number(self, start: SourceLocation) -> Token:
        """Tokenize a run of decimal digits as a signed 64-bit integer."""
        begin = self.pos
        while self.pos < len(self.source) and '0' <= self.source[self.pos] <= '9':
            self._advance()

        lexeme = self.source[begin:self.pos]
        value = int(lexeme)
        if value > INT64_MAX:
            raise create_integer_overflow_error(lexeme, start)

        return Token(TokenType.INTEGER, lexeme, value, start)

    def _tokenize_identifier(self, start: SourceLocation) -> Token:
        begin = self.pos
        while self.pos < len(self.source) and self._is_identifier_continue(self.source[self.pos]):
            self._advance()

        lexeme = self.source[begin:self.pos]
        return Token(TokenType.IDENTIFIER, lexeme, lexeme, start)

    def _tokenize_string(self, start: SourceLocation) -> Token:
        """Tokenize a double-quoted string literal."""
        begin = self.pos
        self._advance()  # Skip opening quote

        value_parts = []

        while self.pos < len(self.source) and self.source[self.pos] != '"':
            if self.source[self.pos] == '\\':
                if self.pos + 1 >= len(self.source):
                    break
                self._advance()  # Skip backslash
                value_parts.append(self._handle_escape_sequence())
            else:
                value_parts.append(self.source[self.pos])
                self._advance()

        if self.pos >= len(self.source) or self.source[self.pos] != '"':
            raise create_unterminated_string_error(start)

        self._advance()  # Skip closing quote

        lexeme = self.source[begin:self.pos]
        return Token(TokenType.STRING, lexeme, ''.join(value_parts), start)

    def _handle_escape_sequence(self) -> str:
        """Decode the character after a backslash. Unknown escapes keep the character."""
        escape_char = self.source[self.pos]
        self._advance()
        return ESCAPE_SEQUENCES.get(escape_char, escape_char)

    def _is_identifier_start(self, char: str) -> bool:
        return char == '_' or ('a' <= char <= 'z') or ('A' <= char <= 'Z')

    def _is_identifier_continue(self, char: str) -> bool:
        return self._is_identifier_start(char) or ('0' <= char <= '9')

    def _skip_whitespace_and_comments(self):
        """Skip whitespace, // line comments and /* block comments */."""
        while self.pos < len(self.source):
            if self.source[self.pos].isspace():
                self._advance()
                continue

            if self.source.startswith('//', self.pos):
                while self.pos < len(self.source) and self.source[self.pos] != '\n':
                    self._advance()
                continue

            if self.source.startswith('/*', self.pos):
                start = self._location()
                self._advance_by(2)
                while self.pos < len(self.source) and not self.source.startswith('*/', self.pos):
                    self._advance()
                if self.pos >= len(self.source):
                    raise create_unterminated_comment_error(start)
                self._advance_by(2)  # Skip closing */
                continue

            break

    def _location(self) -> SourceLocation:
        return SourceLocation(self.filename, self.line, self.column, self.pos)

    def _advance(self):
        """Advance position by one character, updating line/column."""
        if self.pos < len(self.source):
            if self.source[self.pos] == '\n':
                self.line += 1
                self.column = 1
            else:
                self.column += 1
            self.pos += 1

    def _advance_by(self, count: int):
        for _ in range(count):
            self._advance()


def tokenize_string(source: str, filename: str = "<string>") -> List[Token]:
    """
    Convenience function to tokenize a source string.

    Args:
        source: Source code string
        filename: Filename for error reporting

    Returns:
        List of tokens

    Raises:
        LexerError: If lexing fails
    """
    return Lexer(source, filename).tokenize()


def tokenize_file(filepath: str) -> List[Token]:
    """
    Convenience function to tokenize a source file.

    Raises:
        LexerError: If lexing fails
        IOError: If file cannot be read
    """
    with open(filepath, 'r', encoding='utf-8') as f:
        source = f.read()

    return tokenize_string(source, filepath)
