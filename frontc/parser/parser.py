"""
frontc recursive descent parser

Statements and declarations are parsed by one procedure each; expressions
use precedence climbing over the ``Precedence`` levels below. The parser
pulls tokens on demand, so it can be fed a ``Lexer`` directly and source text
after the first syntax error is never even lexed.

Two declaration spellings are accepted side by side:

    let x: int = 1;             int x = 1;
    fn f(a: int) -> int {...}   int f(int a) {...}

Author: xwest
"""

import logging
from enum import IntEnum
from typing import Dict, Iterable, List, Optional

from ..lexer.tokens import (
    Token, TokenType, SourceLocation, PRIMITIVE_TYPE_NAMES
)
from ..lexer.lexer import Lexer
from .ast_nodes import (
    SourceSpan, Program, Statement, Expression, TypeRef,
    VariableDecl, FunctionDecl, Parameter, StructDecl, StructField,
    ReturnStatement, ExpressionStatement, BlockStatement, IfStatement, WhileStatement,
    Identifier, IntegerLiteral, StringLiteral, BooleanLiteral,
    BinaryOp, UnaryOp, FunctionCall, Assignment, IndexAccess, MemberAccess,
    NamedTypeRef, PointerTypeRef, ArrayTypeRef, FunctionTypeRef,
    BinaryOperator, UnaryOperator,
)
from .errors import (
    create_unexpected_token_error, create_expected_expression_error,
    create_expected_identifier_error, create_invalid_assignment_target_error
)

logger = logging.getLogger(__name__)


class Precedence(IntEnum):
    """Binding power of infix operators, weakest first."""
    LOWEST = 0
    ASSIGN = 1          # =
    LOGICAL_OR = 2      # ||
    LOGICAL_AND = 3     # &&
    EQUALS = 4          # == !=
    LESS_GREATER = 5    # < <= > >=
    SUM = 6             # + -
    PRODUCT = 7         # * / %
    PREFIX = 8          # -x !x &x *x
    CALL = 9            # f(x)
    INDEX = 10          # a[i] a.b

    def next_higher(self) -> 'Precedence':
        return Precedence(min(self + 1, Precedence.INDEX))


# Infix operator and postfix punctuation binding powers
PRECEDENCES: Dict[str, Precedence] = {
    "=": Precedence.ASSIGN,
    "||": Precedence.LOGICAL_OR,
    "&&": Precedence.LOGICAL_AND,
    "==": Precedence.EQUALS,
    "!=": Precedence.EQUALS,
    "<": Precedence.LESS_GREATER,
    "<=": Precedence.LESS_GREATER,
    ">": Precedence.LESS_GREATER,
    ">=": Precedence.LESS_GREATER,
    "+": Precedence.SUM,
    "-": Precedence.SUM,
    "*": Precedence.PRODUCT,
    "/": Precedence.PRODUCT,
    "%": Precedence.PRODUCT,
    "(": Precedence.CALL,
    "[": Precedence.INDEX,
    ".": Precedence.INDEX,
}

BINARY_OPERATORS: Dict[str, BinaryOperator] = {op.value: op for op in BinaryOperator}

PREFIX_OPERATORS: Dict[str, UnaryOperator] = {op.value: op for op in UnaryOperator}


class Parser:
    """
    frontc parser.

    Consumes a token sequence (a list, or a ``Lexer`` for lazy lexing) and
    builds one ``Program``. The first syntax error raises ``ParseError``.
    """

    def __init__(self, tokens: Iterable[Token], filename: str = "<input>"):
        """
        Initialize parser with a token sequence.

        Args:
            tokens: Tokens from the lexer; a trailing EOF token is optional
            filename: Used for the location of a synthesized EOF token
        """
        self.filename = filename
        self._tokens = iter(tokens)
        self._buffer: List[Token] = []
        self._eof: Optional[Token] = None
        self._previous: Optional[Token] = None

    # ========================================================================
    # Entry points
    # ========================================================================

    def parse(self) -> Program:
        """
        Parse the token stream into an AST.

        Returns:
            Program AST node representing the entire translation unit

        Raises:
            ParseError: On the first syntax error
            LexerError: If the underlying lexer fails
        """
        start = self._peek().location
        body: List[Statement] = []

        while not self._check_type(TokenType.EOF):
            if self._check_keyword("struct") and self._is_struct_definition():
                body.append(self._parse_struct_declaration())
            else:
                body.append(self._parse_statement())

        program = Program(body, SourceSpan(start, self._peek().location))
        logger.debug("parsed %d top-level statements from %s", len(body), self.filename)
        return program

    def parse_expression(self) -> Expression:
        """Parse a single expression that must span the whole input."""
        expr = self._parse_expression()
        if not self._check_type(TokenType.EOF):
            raise create_unexpected_token_error("end of input", self._peek())
        return expr

    # ========================================================================
    # Declarations
    # ========================================================================

    def _is_struct_definition(self) -> bool:
        """``struct Name {`` opens a definition; ``struct Name x`` declares a variable."""
        return self._peek(1).is_identifier and self._peek(2).is_punctuation("{")

    def _parse_struct_declaration(self) -> StructDecl:
        start = self._advance().location  # struct
        name = self._consume_identifier().lexeme
        self._consume_punctuation("{")

        fields: List[StructField] = []
        while not self._check_punctuation("}"):
            if self._check_type(TokenType.EOF):
                raise create_unexpected_token_error("'}'", self._peek())
            field_start = self._peek().location
            field_name, field_type = self._parse_name_and_type()
            self._consume_punctuation(";")
            fields.append(StructField(field_name, field_type, self._span_from(field_start)))

        self._consume_punctuation("}")
        self._match_punctuation(";")
        return StructDecl(name, fields, self._span_from(start))

    def _parse_let_declaration(self) -> VariableDecl:
        """let name [: type] [= expr] ;"""
        start = self._advance().location  # let
        name = self._consume_identifier().lexeme

        type_annotation = None
        if self._match_punctuation(":"):
            type_annotation = self._parse_type()

        initializer = None
        if self._match_operator("="):
            initializer = self._parse_expression()

        self._consume_punctuation(";")
        return VariableDecl(name, type_annotation, initializer, self._span_from(start))

    def _parse_fn_declaration(self) -> FunctionDecl:
        """fn name(params) [-> type] { stmts }"""
        start = self._advance().location  # fn
        name = self._consume_identifier().lexeme
        params = self._parse_parameter_list()

        return_type = None
        if self._match_punctuation("->"):
            return_type = self._parse_type()

        body = self._parse_block()
        return FunctionDecl(name, params, return_type, body, self._span_from(start))

    def _starts_c_declaration(self) -> bool:
        token = self._peek()
        if token.type != TokenType.IDENTIFIER:
            return False
        if token.lexeme in ("const", "struct") or token.lexeme in PRIMITIVE_TYPE_NAMES:
            return True
        # User type name followed by the declared name: "Point p;"
        return token.is_identifier and self._peek(1).is_identifier

    def _parse_c_declaration(self) -> Statement:
        """[const] type name [= expr] ;  or  type name(params) { stmts }"""
        start = self._peek().location
        is_const = self._match_keyword("const")
        declared_type = self._parse_type()
        name = self._consume_identifier().lexeme

        if self._check_punctuation("(") and not is_const:
            params = self._parse_parameter_list()
            body = self._parse_block()
            return FunctionDecl(name, params, declared_type, body, self._span_from(start))

        declared_type = self._parse_array_suffix(declared_type, start)

        initializer = None
        if self._match_operator("="):
            initializer = self._parse_expression()
        elif not self._check_punctuation(";"):
            raise create_unexpected_token_error("'=' or ';'", self._peek())

        self._consume_punctuation(";")
        return VariableDecl(name, declared_type, initializer, self._span_from(start),
                            is_const=is_const)

    def _parse_parameter_list(self) -> List[Parameter]:
        self._consume_punctuation("(")
        params: List[Parameter] = []
        if not self._check_punctuation(")"):
            while True:
                param_start = self._peek().location
                name, type_annotation = self._parse_name_and_type()
                params.append(Parameter(name, type_annotation, self._span_from(param_start)))
                if not self._match_punctuation(","):
                    break
        self._consume_punctuation(")")
        return params

    def _parse_name_and_type(self):
        """``name: type`` or C-style ``type name`` (parameters and struct fields)."""
        start = self._peek().location
        if self._peek().is_identifier and self._peek(1).is_punctuation(":"):
            name = self._advance().lexeme
            self._advance()  # :
            return name, self._parse_type()

        type_annotation = self._parse_type()
        name = self._consume_identifier().lexeme
        return name, self._parse_array_suffix(type_annotation, start)

    # ========================================================================
    # Types
    # ========================================================================

    def _parse_type(self) -> TypeRef:
        """base ('*' | '[' INT ']')*"""
        start = self._peek().location
        token = self._peek()

        if self._match_keyword("struct"):
            name = self._consume_identifier().lexeme
            base: TypeRef = NamedTypeRef(name, self._span_from(start), is_struct=True)
        elif self._match_keyword("fn"):
            self._consume_punctuation("(")
            params: List[TypeRef] = []
            if not self._check_punctuation(")"):
                params.append(self._parse_type())
                while self._match_punctuation(","):
                    params.append(self._parse_type())
            self._consume_punctuation(")")
            self._consume_punctuation("->")
            return_type = self._parse_type()
            base = FunctionTypeRef(params, return_type, self._span_from(start))
        elif token.is_identifier:
            self._advance()
            base = NamedTypeRef(token.lexeme, self._span_from(start))
        else:
            raise create_unexpected_token_error("type", token)

        while True:
            if self._match_operator("*"):
                base = PointerTypeRef(base, self._span_from(start))
            elif self._check_punctuation("["):
                base = self._parse_array_suffix(base, start)
            else:
                return base

    def _parse_array_suffix(self, element: TypeRef, start: SourceLocation) -> TypeRef:
        while self._match_punctuation("["):
            length_token = self._peek()
            if length_token.type != TokenType.INTEGER:
                raise create_unexpected_token_error("array length", length_token)
            self._advance()
            self._consume_punctuation("]")
            element = ArrayTypeRef(element, length_token.value, self._span_from(start))
        return element

    # ========================================================================
    # Statements
    # ========================================================================

    def _parse_statement(self) -> Statement:
        if self._check_punctuation("{"):
            return self._parse_block()
        if self._check_keyword("let"):
            return self._parse_let_declaration()
        if self._check_keyword("fn"):
            return self._parse_fn_declaration()
        if self._check_keyword("if"):
            return self._parse_if_statement()
        if self._check_keyword("while"):
            return self._parse_while_statement()
        if self._check_keyword("return"):
            return self._parse_return_statement()
        if self._starts_c_declaration():
            return self._parse_c_declaration()
        return self._parse_expression_statement()

    def _parse_block(self) -> BlockStatement:
        start = self._consume_punctuation("{").location
        statements: List[Statement] = []

        while not self._check_punctuation("}"):
            if self._check_type(TokenType.EOF):
                raise create_unexpected_token_error("'}'", self._peek())
            statements.append(self._parse_statement())

        self._consume_punctuation("}")
        return BlockStatement(statements, self._span_from(start))

    def _parse_if_statement(self) -> IfStatement:
        start = self._advance().location  # if
        self._consume_punctuation("(")
        condition = self._parse_expression()
        self._consume_punctuation(")")
        then_branch = self._parse_statement()

        else_branch = None
        if self._match_keyword("else"):
            else_branch = self._parse_statement()

        return IfStatement(condition, then_branch, else_branch, self._span_from(start))

    def _parse_while_statement(self) -> WhileStatement:
        start = self._advance().location  # while
        self._consume_punctuation("(")
        condition = self._parse_expression()
        self._consume_punctuation(")")
        body = self._parse_statement()
        return WhileStatement(condition, body, self._span_from(start))

    def _parse_return_statement(self) -> ReturnStatement:
        start = self._advance().location  # return
        value = None
        if not self._check_punctuation(";"):
            value = self._parse_expression()
        self._consume_punctuation(";")
        return ReturnStatement(value, self._span_from(start))

    def _parse_expression_statement(self) -> ExpressionStatement:
        start = self._peek().location
        expression = self._parse_expression()
        # The last statement of the input may leave out its semicolon
        if not self._check_type(TokenType.EOF):
            self._consume_punctuation(";")
        return ExpressionStatement(expression, self._span_from(start))

    # ========================================================================
    # Expressions
    # ========================================================================

    def _parse_expression(self, precedence: Precedence = Precedence.LOWEST) -> Expression:
        """Precedence climbing: keep folding infix operators that bind tighter than ``precedence``."""
        left = self._parse_prefix()

        while precedence < self._infix_precedence(self._peek()):
            left = self._parse_infix(left)

        return left

    def _infix_precedence(self, token: Token) -> Precedence:
        if token.type not in (TokenType.OPERATOR, TokenType.PUNCTUATION):
            return Precedence.LOWEST
        return PRECEDENCES.get(token.lexeme, Precedence.LOWEST)

    def _parse_prefix(self) -> Expression:
        token = self._peek()
        start = token.location

        if token.type == TokenType.INTEGER:
            self._advance()
            return IntegerLiteral(token.value, self._span_from(start))

        if token.type == TokenType.STRING:
            self._advance()
            return StringLiteral(token.value, self._span_from(start))

        if token.type == TokenType.IDENTIFIER:
            if token.lexeme in ("true", "false"):
                self._advance()
                return BooleanLiteral(token.lexeme == "true", self._span_from(start))
            if token.is_keyword:
                raise create_expected_expression_error(token)
            self._advance()
            return Identifier(token.lexeme, self._span_from(start))

        if token.type == TokenType.OPERATOR and token.lexeme in PREFIX_OPERATORS:
            self._advance()
            operand = self._parse_expression(Precedence.PREFIX)
            return UnaryOp(PREFIX_OPERATORS[token.lexeme], operand, self._span_from(start))

        if token.is_punctuation("("):
            self._advance()
            inner = self._parse_expression()
            self._consume_punctuation(")")
            return inner

        raise create_expected_expression_error(token)

    def _parse_infix(self, left: Expression) -> Expression:
        token = self._advance()
        start = left.span.start

        if token.lexeme == "=":
            if not self._is_assignable(left):
                raise create_invalid_assignment_target_error(token)
            # Right-associative: a = b = c is a = (b = c)
            value = self._parse_expression(Precedence.LOWEST)
            return Assignment(left, value, self._span_from(start))

        if token.lexeme == "(":
            arguments: List[Expression] = []
            if not self._check_punctuation(")"):
                arguments.append(self._parse_expression())
                while self._match_punctuation(","):
                    arguments.append(self._parse_expression())
            self._consume_punctuation(")")
            return FunctionCall(left, arguments, self._span_from(start))

        if token.lexeme == "[":
            index = self._parse_expression()
            self._consume_punctuation("]")
            return IndexAccess(left, index, self._span_from(start))

        if token.lexeme == ".":
            member = self._consume_identifier().lexeme
            return MemberAccess(left, member, self._span_from(start))

        operator = BINARY_OPERATORS[token.lexeme]
        right = self._parse_expression(PRECEDENCES[token.lexeme])
        return BinaryOp(operator, left, right, self._span_from(start))

    @staticmethod
    def _is_assignable(expr: Expression) -> bool:
        if isinstance(expr, (Identifier, IndexAccess, MemberAccess)):
            return True
        return isinstance(expr, UnaryOp) and expr.operator == UnaryOperator.DEREF

    # ========================================================================
    # Token stream helpers
    # ========================================================================

    def _peek(self, offset: int = 0) -> Token:
        """Look ``offset`` tokens ahead without consuming anything."""
        while len(self._buffer) <= offset:
            if self._eof is not None:
                self._buffer.append(self._eof)
                continue
            token = next(self._tokens, None)
            if token is None:
                location = (self._buffer[-1].location if self._buffer
                            else SourceLocation(self.filename, 1, 1, 0))
                token = Token(TokenType.EOF, "", None, location)
            if token.type == TokenType.EOF:
                self._eof = token
            self._buffer.append(token)
        return self._buffer[offset]

    def _advance(self) -> Token:
        """Consume and return current token. EOF is never consumed."""
        token = self._peek()
        if token.type != TokenType.EOF:
            self._buffer.pop(0)
        self._previous = token
        return token

    def _span_from(self, start: SourceLocation) -> SourceSpan:
        end = self._previous.location if self._previous is not None else start
        return SourceSpan(start, end)

    def _check_type(self, token_type: TokenType) -> bool:
        return self._peek().type == token_type

    def _check_punctuation(self, symbol: str) -> bool:
        return self._peek().is_punctuation(symbol)

    def _check_keyword(self, word: str) -> bool:
        token = self._peek()
        return token.type == TokenType.IDENTIFIER and token.lexeme == word

    def _match_punctuation(self, symbol: str) -> bool:
        if self._check_punctuation(symbol):
            self._advance()
            return True
        return False

    def _match_operator(self, symbol: str) -> bool:
        if self._peek().is_operator(symbol):
            self._advance()
            return True
        return False

    def _match_keyword(self, word: str) -> bool:
        if self._check_keyword(word):
            self._advance()
            return True
        return False

    def _consume_punctuation(self, symbol: str) -> Token:
        """Consume the expected punctuation or raise UnexpectedToken."""
        if self._check_punctuation(symbol):
            return self._advance()
        raise create_unexpected_token_error(f"'{symbol}'", self._peek())

    def _consume_identifier(self) -> Token:
        """Consume a non-keyword identifier or raise ExpectedIdentifier."""
        if self._peek().is_identifier:
            return self._advance()
        raise create_expected_identifier_error(self._peek())


def parse_string(source: str, filename: str = "<string>") -> Program:
    """
    Convenience function to parse a source string.

    Args:
        source: Source code string
        filename: Filename for error reporting

    Returns:
        Program AST

    Raises:
        LexerError: If lexing fails
        ParseError: If parsing fails
    """
    return Parser(Lexer(source, filename), filename).parse()


def parse_file(filepath: str) -> Program:
    """
    Convenience function to parse a source file.

    Raises:
        ParseError: If parsing fails
        IOError: If file cannot be read
    """
    with open(filepath, 'r', encoding='utf-8') as f:
        source = f.read()

    return parse_string(source, filepath)
