"""
minicc Compiler Main Module
===========================

This module provides the main compiler interface for minicc.
It orchestrates the complete compilation process:

    Source → Lex (on demand) → Parse → Generate → Assembly

Usage
-----
Command line:
    $ mcc hello.c -o hello.s

Programmatic:
    >>> from minicc import compile_c
    >>> asm = compile_c('int main() { return 0; }')

Compilation Pipeline
--------------------
1. **Lexical Analysis**: The parser pulls tokens from the lexer one at
   a time; there is no separate tokenizing pass
2. **Parsing**: Build the Abstract Syntax Tree (AST), counting syntax
   errors instead of stopping at the first
3. **Code Generation**: Convert the AST to x86 assembly text

Error Handling
--------------
All syntax errors from one parse are reported together. If any were
found no assembly is generated, and CompilationError carries the full
report. Code generation errors are reported the same way.
InternalCompilerError is not caught here: it marks a compiler bug, not
a problem with the input.
"""

import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Union

from minicc.lexer import CLexer, CToken
from minicc.parser import CParser
from minicc.codegen import CodeGenerator
from minicc.ast import ProgramNode
from minicc.errors import (
    CCodeGenError,
    CompilationError,
    DiagnosticCollector,
    MiniCCError,
)

logger = logging.getLogger(__name__)


@dataclass
class CompilerOptions:
    """
    Compiler configuration options.

    Attributes:
        emit_comments: Put a comment line with the signature ahead of
                       each function in the assembly
        max_errors: Maximum number of errors listed in a failure report.
                    Every error is still counted.
    """
    emit_comments: bool = False
    max_errors: int = 100


@dataclass
class CompilerResult:
    """
    Result of a compilation.

    Attributes:
        filename: Source filename
        success: True if compilation succeeded
        assembly: Generated assembly code (if successful)
        ast: Abstract syntax tree (if parsing succeeded)
        token_count: Number of tokens the parser pulled from the lexer
        error_count: Number of syntax errors found
        errors: List of error objects
        warnings: List of warning messages
    """
    filename: str = ""
    success: bool = False
    assembly: str = ""
    ast: Optional[ProgramNode] = None
    token_count: int = 0
    error_count: int = 0
    errors: list[MiniCCError] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


class MiniCCompiler:
    """
    The minicc compiler.

    Example:
        compiler = MiniCCompiler()
        result = compiler.compile_file("hello.c")
        print(result.assembly)

    Attributes:
        options: Compiler configuration options
    """

    def __init__(self, options: Optional[CompilerOptions] = None):
        """
        Initialize the compiler.

        Args:
            options: Compiler configuration (uses defaults if None)
        """
        self.options = options or CompilerOptions()
        self._errors = DiagnosticCollector(self.options.max_errors)

    def compile_source(self, source: str, filename: str = "<input>") -> CompilerResult:
        """
        Compile C source code to assembly.

        Args:
            source: C source code string
            filename: Source filename for error messages

        Returns:
            CompilerResult containing assembly output and diagnostics

        Raises:
            CompilationError: If the source has syntax errors or cannot
                be lowered
            InternalCompilerError: If the compiler stages disagree
        """
        self._errors.clear()
        result = CompilerResult(filename=filename)

        # Stage 1+2: Lexing and parsing
        ast, parser = self._parse(source, filename)
        result.token_count = parser.tokens_read
        result.error_count = parser.error_count

        # A tree with syntax errors may have holes; stop before code generation
        parser.errors.raise_if_errors()

        result.ast = ast

        # Stage 3: Code generation
        try:
            result.assembly = self._generate(ast)
            result.success = True
        except CCodeGenError as e:
            self._errors.add(e)
            result.success = False

        result.errors = list(self._errors.errors)
        result.warnings = list(self._errors.warnings)

        if self._errors.has_errors():
            raise CompilationError(self._errors.report(), error_count=self._errors.error_count())

        return result

    def compile_file(self, filepath: Union[str, Path]) -> CompilerResult:
        """
        Compile a C source file to assembly.

        Args:
            filepath: Path to the C source file

        Returns:
            CompilerResult containing assembly output and diagnostics

        Raises:
            CompilationError: If compilation fails
            FileNotFoundError: If source file not found
        """
        path = Path(filepath)
        if not path.exists():
            raise FileNotFoundError(f"Source file not found: {filepath}")

        source = path.read_text(encoding="utf-8")
        return self.compile_source(source, str(filepath))

    def tokenize(self, source: str, filename: str = "<input>") -> list[CToken]:
        """Return every token of the source, ending with EOF."""
        return list(CLexer(source, filename).tokenize())

    def _parse(self, source: str, filename: str) -> tuple[ProgramNode, CParser]:
        """Parse source into an AST, returning the parser for its diagnostics."""
        start = time.perf_counter()
        parser = CParser(source, filename, max_errors=self.options.max_errors)
        ast, error_count = parser.parse_program()
        elapsed = (time.perf_counter() - start) * 1000
        logger.debug(
            f"parsed {filename}: {parser.tokens_read} tokens, "
            f"{error_count} errors in {elapsed:.1f} ms"
        )
        return ast, parser

    def _generate(self, ast: ProgramNode) -> str:
        """Generate assembly from AST."""
        start = time.perf_counter()
        generator = CodeGenerator(emit_comments=self.options.emit_comments)
        assembly = generator.generate(ast)
        self._errors.warnings.extend(generator.warnings)
        elapsed = (time.perf_counter() - start) * 1000
        logger.debug(f"generated {len(assembly.splitlines())} lines in {elapsed:.1f} ms")
        return assembly


# =============================================================================
# Convenience Functions
# =============================================================================

def compile_c(source: str, filename: str = "<input>", emit_comments: bool = False) -> str:
    """
    Compile C source code to x86 assembly.

    This is the primary high-level interface for compiling minicc C.

    Args:
        source: C source code
        filename: Source filename for error messages
        emit_comments: Put a comment ahead of each function

    Returns:
        Generated assembly code

    Raises:
        CompilationError: If compilation fails

    Example:
        >>> asm = compile_c('int main() { return 42; }')
        >>> "movl $42, %eax" in asm
        True
    """
    compiler = MiniCCompiler(CompilerOptions(emit_comments=emit_comments))
    result = compiler.compile_source(source, filename)
    return result.assembly


def compile_file(
    filepath: Union[str, Path],
    output_path: Optional[Union[str, Path]] = None,
) -> str:
    """
    Compile a C source file to x86 assembly.

    Args:
        filepath: Path to C source file
        output_path: Optional path to write assembly output

    Returns:
        Generated assembly code

    Raises:
        CompilationError: If compilation fails
        FileNotFoundError: If source file not found

    Example:
        >>> asm = compile_file("hello.c", "hello.s")
    """
    compiler = MiniCCompiler()
    result = compiler.compile_file(filepath)

    if output_path:
        Path(output_path).write_text(result.assembly, encoding="utf-8")

    return result.assembly
