"""
Name resolution for frontc.

Walks the AST in program order with its own ``SymbolTable`` and checks that
every identifier refers to a visible definition and that nothing is defined
twice in one scope. Problems are collected, not raised: a single run reports
every unresolved name in the program.

Resolved ``Identifier`` nodes get their ``resolved_symbol`` slot filled in.

Author: xwest
"""

import logging
from typing import List, Optional

from ..lexer.tokens import PRIMITIVE_TYPE_NAMES
from ..parser.ast_nodes import (
    ASTNodeType, Program, VariableDecl, FunctionDecl, StructDecl,
    BlockStatement, Identifier, TypeRef
)
from ..parser.visitor import ASTVisitor
from .symbol_table import SymbolTable, Symbol, SymbolKind
from .errors import (
    AlreadyDefinedError, NameErrorKind, NameResolutionError,
    create_undefined_variable_error, create_redefinition_error,
    create_undefined_type_error
)

logger = logging.getLogger(__name__)


_REDEFINITION_KINDS = {
    SymbolKind.FUNCTION: NameErrorKind.FUNCTION_ALREADY_DEFINED,
    SymbolKind.TYPE: NameErrorKind.TYPE_ALREADY_DEFINED,
}


class NameResolver(ASTVisitor):
    """
    Checks identifier uses against their definitions.

    Scopes open at every function (parameters and the body's own
    statements share one scope) and at every nested block.
    """

    def __init__(self, symbol_table: Optional[SymbolTable] = None):
        self.symbol_table = symbol_table if symbol_table is not None else SymbolTable()
        self.errors: List[NameResolutionError] = []

    def resolve(self, program: Program) -> List[NameResolutionError]:
        """
        Resolve every name in ``program``.

        Returns:
            All resolution errors in source order; an empty list means success
        """
        self.errors = []
        self.visit(program)
        logger.debug("name resolution finished with %d error(s)", len(self.errors))
        return list(self.errors)

    # ========================================================================
    # Definitions
    # ========================================================================

    def _define(self, symbol: Symbol, node) -> Optional[Symbol]:
        try:
            return self.symbol_table.define(symbol)
        except AlreadyDefinedError as e:
            kind = _REDEFINITION_KINDS.get(symbol.kind, NameErrorKind.VARIABLE_ALREADY_DEFINED)
            self.errors.append(create_redefinition_error(
                kind, symbol.name, node.location, e.existing.location, node
            ))
            return None

    def visit_variable_decl(self, node: VariableDecl):
        if node.type_annotation is not None:
            self.visit(node.type_annotation)

        # Defined before the initializer is resolved
        symbol = self._define(
            Symbol(node.name, kind=SymbolKind.VARIABLE, is_mutable=not node.is_const,
                   location=node.location),
            node
        )
        if symbol is not None:
            node.resolved_symbol = symbol

        if node.initializer is not None:
            self.visit(node.initializer)

    def visit_function_decl(self, node: FunctionDecl):
        for param in node.params:
            self.visit(param.type_annotation)
        if node.return_type is not None:
            self.visit(node.return_type)

        # Visible inside its own body, so recursion resolves
        symbol = self._define(
            Symbol(node.name, kind=SymbolKind.FUNCTION, is_mutable=False,
                   location=node.location),
            node
        )
        if symbol is not None:
            node.resolved_symbol = symbol

        self.symbol_table.enter_scope()
        for param in node.params:
            param_symbol = self._define(
                Symbol(param.name, kind=SymbolKind.PARAMETER, location=param.location),
                param
            )
            if param_symbol is not None:
                param.resolved_symbol = param_symbol

        for statement in node.body.statements:
            self.visit(statement)
        self.symbol_table.exit_scope()

    def visit_struct_decl(self, node: StructDecl):
        symbol = self._define(
            Symbol(node.name, kind=SymbolKind.TYPE, is_mutable=False, location=node.location),
            node
        )
        if symbol is not None:
            node.resolved_symbol = symbol

        # Field names get a scope of their own to catch duplicates
        self.symbol_table.enter_scope()
        for field in node.fields:
            self.visit(field.type_annotation)
            self._define(Symbol(field.name, location=field.location), field)
        self.symbol_table.exit_scope()

    # ========================================================================
    # Scopes and uses
    # ========================================================================

    def visit_block_statement(self, node: BlockStatement):
        self.symbol_table.enter_scope()
        for statement in node.statements:
            self.visit(statement)
        self.symbol_table.exit_scope()

    def visit_identifier(self, node: Identifier):
        symbol = self.symbol_table.lookup(node.name)
        if symbol is None:
            self.errors.append(create_undefined_variable_error(
                node.name, node.location, node,
                similar_names=self.symbol_table.suggest_similar(node.name)
            ))
            return
        node.resolved_symbol = symbol

    def visit_type_ref(self, node: TypeRef):
        if node.node_type != ASTNodeType.NAMED_TYPE:
            return self.generic_visit(node)

        if not node.is_struct and node.name in PRIMITIVE_TYPE_NAMES:
            return None

        symbol = self.symbol_table.lookup(node.name)
        if symbol is None or symbol.kind != SymbolKind.TYPE:
            self.errors.append(create_undefined_type_error(node.name, node.location, node))
        else:
            node.resolved_symbol = symbol
        return None
