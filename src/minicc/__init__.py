"""
minicc - A Minimal C Subset Compiler
====================================

This package compiles a small subset of C to x86 assembly text in AT&T
syntax using a stack-machine evaluation model.

Main Components
---------------
- **lexer**: Converts source text to tokens, on demand
- **token_stream**: Token source with bounded pushback for lookahead
- **parser**: Recursive descent parser that builds the AST and counts
    syntax errors
- **ast**: AST node types, visitor base and pretty printer
- **codegen**: Lowers the AST to assembly text
- **compiler**: Runs the pipeline and collects diagnostics

Quick Start
-----------
Compile a program:
    >>> from minicc import compile_c
    >>> asm = compile_c('int main() { return 1 + 2; }')

Inspect the syntax tree:
    >>> from minicc import CParser, ASTPrinter
    >>> program, errors = CParser('int f(int a) { return a; }').parse_program()
    >>> print(ASTPrinter().print(program))

Or use the command-line tool:
    $ mcc hello.c -o hello.s
"""

__version__ = "1.0.0"
__author__ = "minicc Contributors"

# =============================================================================
# Public API Exports
# =============================================================================

from minicc.errors import (
    MiniCCError,
    CompilationError,
    CSyntaxError,
    CCodeGenError,
    InternalCompilerError,
    SourceLocation,
)
from minicc.lexer import CLexer, CToken, CTokenType
from minicc.token_stream import TokenStream
from minicc.parser import CParser, parse_source
from minicc.ast import ASTPrinter, ProgramNode
from minicc.codegen import CodeGenerator, StackFrame
from minicc.compiler import (
    MiniCCompiler,
    CompilerOptions,
    CompilerResult,
    compile_c,
    compile_file,
)

__all__ = [
    # Version info
    "__version__",
    "__author__",
    # Errors
    "MiniCCError",
    "CompilationError",
    "CSyntaxError",
    "CCodeGenError",
    "InternalCompilerError",
    "SourceLocation",
    # Front end
    "CLexer",
    "CToken",
    "CTokenType",
    "TokenStream",
    "CParser",
    "parse_source",
    "ASTPrinter",
    "ProgramNode",
    # Back end
    "CodeGenerator",
    "StackFrame",
    # Compiler
    "MiniCCompiler",
    "CompilerOptions",
    "CompilerResult",
    "compile_c",
    "compile_file",
]
