"""
Symbol table and scope management for frontc semantic analysis.

A stack of scope frames. The global frame sits at level 0 and is never
popped; ``enter_scope``/``exit_scope`` push and pop frames above it. A name
may be defined once per frame, and inner frames shadow outer ones.

Each analysis pass creates its own ``SymbolTable``; instances are not shared
between passes.

Author: xwest
"""

from dataclasses import dataclass, replace
from enum import Enum
from typing import Dict, List, Optional

from ..lexer.tokens import SourceLocation
from ..lexer.errors import edit_distance
from .errors import AlreadyDefinedError, SymbolTableError
from .types import Type


class SymbolKind(Enum):
    """Types of symbols in the symbol table."""
    VARIABLE = "variable"
    PARAMETER = "parameter"
    FUNCTION = "function"
    TYPE = "type"


@dataclass(frozen=True)
class Symbol:
    """
    Represents a symbol in the symbol table.

    ``symbol_type`` is ``None`` when the defining pass only tracks names.
    ``scope_level`` is filled in by ``SymbolTable.define``.
    """
    name: str
    symbol_type: Optional[Type] = None
    kind: SymbolKind = SymbolKind.VARIABLE
    scope_level: int = 0
    is_mutable: bool = True
    location: Optional[SourceLocation] = None

    def __str__(self) -> str:
        type_str = f": {self.symbol_type}" if self.symbol_type is not None else ""
        return f"{self.name}{type_str}"


class SymbolTable:
    """Scope stack mapping names to symbols."""

    def __init__(self):
        """Initialize the symbol table with an empty global scope."""
        self._frames: List[Dict[str, Symbol]] = [{}]

    @property
    def current_scope_level(self) -> int:
        return len(self._frames) - 1

    def enter_scope(self) -> int:
        """Open a new innermost scope and return its level."""
        self._frames.append({})
        return self.current_scope_level

    def exit_scope(self) -> List[Symbol]:
        """
        Close the innermost scope.

        Returns:
            The symbols that were defined in the closed scope

        Raises:
            SymbolTableError: When called on the global scope
        """
        if self.current_scope_level == 0:
            raise SymbolTableError("cannot exit the global scope", code="S002")
        frame = self._frames.pop()
        return list(frame.values())

    def define(self, symbol: Symbol) -> Symbol:
        """
        Define ``symbol`` in the current scope.

        Returns:
            The stored symbol, stamped with the current scope level

        Raises:
            AlreadyDefinedError: If the name is already defined in this scope
        """
        existing = self.lookup_in_current_scope(symbol.name)
        if existing is not None:
            raise AlreadyDefinedError(symbol, existing)

        stored = replace(symbol, scope_level=self.current_scope_level)
        self._frames[-1][symbol.name] = stored
        return stored

    def define_variable(self, name: str, var_type: Optional[Type] = None,
                        location: Optional[SourceLocation] = None,
                        is_mutable: bool = True) -> Symbol:
        return self.define(Symbol(name, var_type, SymbolKind.VARIABLE,
                                  is_mutable=is_mutable, location=location))

    def define_function(self, name: str, func_type: Optional[Type] = None,
                        location: Optional[SourceLocation] = None) -> Symbol:
        return self.define(Symbol(name, func_type, SymbolKind.FUNCTION,
                                  is_mutable=False, location=location))

    def lookup(self, name: str) -> Optional[Symbol]:
        """Find the innermost visible symbol called ``name``."""
        for frame in reversed(self._frames):
            symbol = frame.get(name)
            if symbol is not None:
                return symbol
        return None

    def lookup_in_current_scope(self, name: str) -> Optional[Symbol]:
        """Look up a symbol only in the innermost scope (no parent traversal)."""
        return self._frames[-1].get(name)

    def get_all_symbols(self) -> List[Symbol]:
        """All symbols in every open scope, innermost scope first."""
        symbols: List[Symbol] = []
        for frame in reversed(self._frames):
            symbols.extend(frame.values())
        return symbols

    def symbols_in_current_scope(self) -> List[Symbol]:
        return list(self._frames[-1].values())

    def suggest_similar(self, name: str, max_distance: int = 2) -> List[str]:
        """Visible names within ``max_distance`` edits of ``name``, closest first."""
        candidates = {symbol.name for symbol in self.get_all_symbols() if symbol.name != name}
        scored = [(edit_distance(name, candidate), candidate) for candidate in candidates]
        return [candidate for distance, candidate in sorted(scored) if distance <= max_distance]

    def __contains__(self, name: str) -> bool:
        return self.lookup(name) is not None

    def __str__(self) -> str:
        lines = []
        for level, frame in enumerate(self._frames):
            names = ", ".join(str(symbol) for symbol in frame.values())
            lines.append(f"[{level}] {names}")
        return "\n".join(lines)
