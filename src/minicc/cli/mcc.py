"""
mcc - minicc Compiler Command-Line Interface
============================================

This module implements the command-line interface for the minicc
compiler.

Usage Examples
--------------
Basic compilation:
    $ mcc hello.c

With output file:
    $ mcc hello.c -o hello.s

Inspect the front end:
    $ mcc --tokens hello.c
    $ mcc --ast hello.c

Verbose mode:
    $ mcc -v hello.c
"""

import logging
from pathlib import Path
from typing import Optional

import click

from minicc import __version__
from minicc.ast import ASTPrinter
from minicc.cli.errors import handle_cli_exception
from minicc.compiler import CompilerOptions, MiniCCompiler
from minicc.parser import CParser


def setup_logging(verbose: bool) -> None:
    """Configure logging based on verbosity."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s: %(message)s",
    )


# =============================================================================
# CLI Definition
# =============================================================================

@click.command()
@click.argument(
    "input_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option(
    "-o", "--output",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Output assembly file (default: input.s)",
)
@click.option(
    "-S", "--asm-only",
    is_flag=True,
    help="Stop after generating assembly (always the case; accepted for compatibility)",
)
@click.option(
    "--ast",
    is_flag=True,
    help="Print AST and exit (for debugging)",
)
@click.option(
    "--tokens",
    is_flag=True,
    help="Print the token stream and exit (for debugging)",
)
@click.option(
    "-v", "--verbose",
    is_flag=True,
    help="Verbose output",
)
@click.version_option(version=__version__, prog_name="mcc")
def main(
    input_file: Path,
    output: Optional[Path],
    asm_only: bool,
    ast: bool,
    tokens: bool,
    verbose: bool,
) -> None:
    """
    Compile a C subset source file to x86 assembly.

    INPUT_FILE is the C source file (.c) to compile.

    \b
    Examples:
        mcc hello.c                 # Outputs hello.s
        mcc hello.c -o out.s        # Specify output file
        mcc --ast hello.c           # Show the syntax tree
        mcc -v hello.c              # Verbose output

    \b
    Supported C features:
        - int, char and void type keywords (all values are 32-bit)
        - Functions with parameters and local variables
        - if/else, while, for, return
        - Arithmetic, comparison and short-circuit logical operators
        - Integer, character and string literals
    """
    setup_logging(verbose)

    if output is None:
        output = input_file.with_suffix(".s")

    compiler = MiniCCompiler(CompilerOptions(emit_comments=verbose))

    try:
        if verbose:
            click.echo(f"Compiling {input_file}...")

        source = input_file.read_text(encoding="utf-8")

        # Token dump mode
        if tokens:
            for token in compiler.tokenize(source, str(input_file)):
                click.echo(repr(token))
            return

        # AST dump mode
        if ast:
            parser = CParser(source, str(input_file))
            program, _ = parser.parse_program()
            parser.errors.raise_if_errors()
            click.echo(ASTPrinter().print(program))
            return

        result = compiler.compile_source(source, str(input_file))

        for warning in result.warnings:
            click.echo(warning, err=True)

        output.write_text(result.assembly, encoding="utf-8")

        if verbose:
            click.echo(f"Tokenized: {result.token_count} tokens")
            if result.ast:
                click.echo(f"Parsed: {len(result.ast.items)} top-level items")
            click.echo(f"Wrote {len(result.assembly)} bytes to {output}")

        click.echo(f"Compilation successful: {output}")

    except Exception as e:
        handle_cli_exception(e, verbose=verbose)


if __name__ == "__main__":
    main()
