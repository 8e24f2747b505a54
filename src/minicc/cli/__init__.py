"""
minicc Command-Line Interface
=============================

This package provides the command-line tool for minicc:

- **mcc**: C subset to x86 assembly compiler

The tool is implemented as a Click-based CLI application with
built-in help and compiler-style error reporting.
"""

__all__ = ["mcc"]
