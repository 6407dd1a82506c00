"""
End-to-end compilation of one translation unit.

Runs lexer, parser, name resolver, type checker and IR builder in order and
hands back everything they produced. Each stage gets fresh state; nothing
is cached between calls, so separate compilations may run in parallel.

Author: xwest
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Union

from .lexer.lexer import Lexer
from .lexer.tokens import Token
from .parser.ast_nodes import Program
from .parser.parser import Parser
from .analyzer.name_resolver import NameResolver
from .analyzer.type_checker import TypeChecker
from .analyzer.errors import NameResolutionFailed
from .ir.ir_builder import IRBuilder
from .ir.ir_nodes import Module

logger = logging.getLogger(__name__)


@dataclass
class CompilerOptions:
    """Configuration for a single compilation"""

    # Diagnostics
    filename: str = "<input>"

    # Name resolution: report every unresolved name at once, or stop at the first
    collect_name_errors: bool = True

    # IR generation
    build_ir: bool = True
    module_name: str = "main"
    validate_ir: bool = True


@dataclass
class CompilationResult:
    """Artifacts of a successful compilation"""
    program: Program
    module: Optional[Module] = None
    tokens: List[Token] = field(default_factory=list)


def compile_source(source: str, options: Optional[CompilerOptions] = None) -> CompilationResult:
    """
    Compile ``source`` down to an IR module.

    Args:
        source: Program text
        options: Compilation settings; defaults to ``CompilerOptions()``

    Returns:
        The token list, the type-annotated AST and (unless ``build_ir`` is
        off) the IR module

    Raises:
        LexerError, ParseError: On the first lexical or syntax error
        NameResolutionFailed: With every name error when ``collect_name_errors`` is set
        NameResolutionError: With the first name error otherwise
        TypeCheckError: On the first type error
        IRError: If lowering breaks an IR invariant
    """
    options = options or CompilerOptions()
    logger.debug("compiling %s", options.filename)

    tokens = Lexer(source, options.filename).tokenize()
    program = Parser(tokens, options.filename).parse()

    name_errors = NameResolver().resolve(program)
    if name_errors:
        logger.debug("%s: %d name resolution error(s)", options.filename, len(name_errors))
        if options.collect_name_errors:
            raise NameResolutionFailed(name_errors)
        raise name_errors[0]

    TypeChecker().check(program)

    module = None
    if options.build_ir:
        module = IRBuilder(validate=options.validate_ir).build(program, options.module_name)

    return CompilationResult(program=program, module=module, tokens=tokens)


def compile_file(path: Union[str, Path], options: Optional[CompilerOptions] = None) -> CompilationResult:
    """Read a UTF-8 source file and compile it; the filename defaults to ``path``."""
    path = Path(path)
    source = path.read_text(encoding="utf-8")

    if options is None:
        options = CompilerOptions(filename=str(path), module_name=path.stem)
    return compile_source(source, options)
