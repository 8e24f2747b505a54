"""
minicc Error Hierarchy
======================

This module defines the exception hierarchy for the minicc compiler.
All exceptions inherit from MiniCCError, allowing callers to catch every
compiler-related error with a single except clause.

Exception Hierarchy
-------------------
MiniCCError (base)
├── CSyntaxError - lexer and parser syntax errors
│   ├── UnexpectedTokenError - token does not fit the grammar
│   ├── MissingTokenError - required token not found
│   ├── InvalidCharacterError - character the lexer does not recognise
│   └── InvalidAssignmentTargetError - left side of '=' is not a variable
├── CCodeGenError - code generation errors
│   └── UnsupportedFeatureError - construct the backend cannot lower
├── InternalCompilerError - broken invariant between compiler stages
└── CompilationError - aggregate report of collected diagnostics

Error Message Format
--------------------
Errors with a source location follow this format:

    filename:line:column: error: description
        source_line_text
        ^
    hint: suggestion for fixing (when available)

Parse errors are not raised one at a time. The parser records them in a
DiagnosticCollector and keeps going; the compiler turns a non-empty
collector into a single CompilationError.
"""

from dataclasses import dataclass
from typing import List, Optional


# =============================================================================
# Source Location Tracking
# =============================================================================

@dataclass(frozen=True)
class SourceLocation:
    """
    A position in source code for error reporting.

    Attributes:
        filename: Name of the source file (or "<input>" for string input)
        line: Line number (1-indexed)
        column: Column number (1-indexed)
    """
    filename: str
    line: int
    column: int

    def __str__(self) -> str:
        """Format as 'filename:line:column' for error messages."""
        return f"{self.filename}:{self.line}:{self.column}"


# =============================================================================
# Base Exception
# =============================================================================

class MiniCCError(Exception):
    """
    Base exception for all minicc errors.

    Carries source location, source line context and an optional hint,
    and renders them into a compiler-style message:

        hello.c:3:12: error: expected ';'
            return x
                    ^
        hint: add ';' at the end of the statement

    Attributes:
        message: The error description
        location: Where in the source the error occurred
        hint: A suggestion for fixing the error
        source_line: The source text at the error location
    """

    def __init__(
        self,
        message: str,
        location: Optional[SourceLocation] = None,
        hint: Optional[str] = None,
        source_line: Optional[str] = None,
    ):
        self.message = message
        self.location = location
        self.hint = hint
        self.source_line = source_line
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format the message with location, source context, and hint."""
        parts = []

        if self.location:
            parts.append(f"{self.location}: error: {self.message}")
        else:
            parts.append(f"error: {self.message}")

        if self.source_line is not None and self.location is not None:
            parts.append(f"    {self.source_line}")
            if self.location.column > 0:
                padding = " " * (4 + self.location.column - 1)
                parts.append(f"{padding}^")

        if self.hint:
            parts.append(f"hint: {self.hint}")

        return "\n".join(parts)


class CompilationError(MiniCCError):
    """
    Aggregate error for a failed compilation.

    The message is an already formatted report from DiagnosticCollector,
    so it is passed through without another prefix.
    """

    def __init__(self, message: str, error_count: int = 0):
        self.error_count = error_count
        super().__init__(message)

    def _format_message(self) -> str:
        return self.message


# =============================================================================
# Syntax Errors
# =============================================================================

class CSyntaxError(MiniCCError):
    """
    Syntax error in C source code.

    Examples:
        - Missing semicolon
        - Mismatched parentheses
        - Unknown character in source
        - A token that cannot start an expression
    """
    pass


class UnexpectedTokenError(CSyntaxError):
    """Token that doesn't match the grammar rule being parsed."""

    def __init__(
        self,
        found: str,
        expected: Optional[str] = None,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
    ):
        self.found = found
        self.expected = expected

        hint = None
        if expected:
            hint = f"expected {expected}"

        super().__init__(
            f"unexpected token '{found}'",
            location=location,
            hint=hint,
            source_line=source_line,
        )


class MissingTokenError(CSyntaxError):
    """
    Required token is missing.

    Raised when a required token (like ';' or ')') is not found
    where expected.
    """

    def __init__(
        self,
        expected: str,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
        found: Optional[str] = None,
    ):
        self.expected = expected
        self.found = found

        message = f"expected {expected}"
        if found:
            message = f"{message} before '{found}'"

        super().__init__(
            message,
            location=location,
            source_line=source_line,
        )


class InvalidCharacterError(CSyntaxError):
    """
    Character the lexer does not recognise.

    The lexer itself never raises; it hands the character over as an
    ERROR token, and the parser reports it with this error.
    """

    def __init__(
        self,
        char: str,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
    ):
        self.char = char
        code = f" (0x{ord(char):02X})" if len(char) == 1 else ""
        super().__init__(
            f"invalid character '{char}'{code}",
            location=location,
            source_line=source_line,
        )


class InvalidAssignmentTargetError(CSyntaxError):
    """
    Left-hand side of '=' is not a plain variable.

    Examples of invalid targets:
        - 42 = x
        - (a + b) = x
        - f() = x
    """

    def __init__(
        self,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
    ):
        super().__init__(
            "expression is not assignable",
            location=location,
            hint="left side of '=' must be a variable name",
            source_line=source_line,
        )


# =============================================================================
# Code Generation Errors
# =============================================================================

class CCodeGenError(MiniCCError):
    """
    Error during code generation.

    Raised for user-visible problems found while lowering a valid AST.
    """
    pass


class UnsupportedFeatureError(CCodeGenError):
    """
    Language feature the backend cannot lower.

    Examples:
        - floating-point literals
    """

    def __init__(
        self,
        feature: str,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
        alternative: Optional[str] = None,
    ):
        self.feature = feature
        super().__init__(
            f"unsupported feature: {feature}",
            location=location,
            hint=alternative,
            source_line=source_line,
        )


class InternalCompilerError(MiniCCError):
    """
    Violated invariant between compiler stages.

    The code generator assumes the parser delivered a complete tree.
    Finding a hole in it (a function without a body, an unbound variable,
    an absent child node) means the stages disagree, not that the user
    wrote bad code, so generation halts immediately.
    """

    def _format_message(self) -> str:
        if self.location:
            return f"{self.location}: internal compiler error: {self.message}"
        return f"internal compiler error: {self.message}"


# =============================================================================
# Diagnostic Collection
# =============================================================================

class DiagnosticCollector:
    """
    Collects diagnostics for batch reporting.

    The parser records every syntax error here instead of raising, so a
    single run can report several problems. The number of recorded errors
    is the parser's error count.

    Example:
        collector = DiagnosticCollector(max_errors=100)
        collector.add(MissingTokenError("';'", location))
        if collector.has_errors():
            print(collector.report())
    """

    def __init__(self, max_errors: int = 100):
        """
        Initialize the collector.

        Args:
            max_errors: Maximum errors listed in the report
        """
        self.errors: List[MiniCCError] = []
        self.warnings: List[str] = []
        self.max_errors = max_errors

    def add(self, error: MiniCCError) -> None:
        """Add an error to the collection."""
        self.errors.append(error)

    def add_warning(self, message: str, location: Optional[SourceLocation] = None) -> None:
        """Add a warning message."""
        if location:
            self.warnings.append(f"{location}: warning: {message}")
        else:
            self.warnings.append(f"warning: {message}")

    def has_errors(self) -> bool:
        """Return True if any errors have been collected."""
        return len(self.errors) > 0

    def error_count(self) -> int:
        """Return the number of collected errors."""
        return len(self.errors)

    def warning_count(self) -> int:
        """Return the number of collected warnings."""
        return len(self.warnings)

    def report(self) -> str:
        """Format all errors and warnings for display."""
        lines = []

        for error in self.errors[:self.max_errors]:
            lines.append(str(error))
            lines.append("")

        hidden = len(self.errors) - self.max_errors
        if hidden > 0:
            lines.append(f"... {hidden} more errors not shown")
            lines.append("")

        for warning in self.warnings:
            lines.append(warning)

        error_word = "error" if len(self.errors) == 1 else "errors"
        warning_word = "warning" if len(self.warnings) == 1 else "warnings"
        lines.append(
            f"\n{len(self.errors)} {error_word}, {len(self.warnings)} {warning_word}"
        )

        return "\n".join(lines)

    def clear(self) -> None:
        """Clear all collected errors and warnings."""
        self.errors.clear()
        self.warnings.clear()

    def raise_if_errors(self) -> None:
        """Raise a CompilationError if any errors were collected."""
        if self.has_errors():
            count = self.error_count()
            raise CompilationError(
                f"{self.report()}\nParsing failed with {count} errors",
                error_count=count,
            )
