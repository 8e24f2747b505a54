"""
Compiler and CLI Test Suite
===========================

Tests for the compilation pipeline and the mcc command:
- MiniCCompiler results and diagnostics
- compile_c / compile_file convenience functions
- Error reporting and exit codes
"""

from pathlib import Path

import pytest
from click.testing import CliRunner

from minicc import __version__
from minicc.cli.errors import ExitCode
from minicc.cli.mcc import main
from minicc.compiler import (
    CompilerOptions,
    CompilerResult,
    MiniCCompiler,
    compile_c,
    compile_file,
)
from minicc.ast import ProgramNode
from minicc.errors import (
    CompilationError,
    DiagnosticCollector,
    InternalCompilerError,
    MissingTokenError,
    SourceLocation,
)
from minicc.lexer import CTokenType


HELLO = """\
int add(int a, int b) {
    return a + b;
}

int main() {
    int x = add(1, 2);
    if (x == 3 && x > 0) {
        puts("ok");
    }
    return x;
}
"""


# =============================================================================
# Compiler Facade
# =============================================================================

class TestMiniCCompiler:
    """Tests for the MiniCCompiler pipeline."""

    def test_compile_source(self):
        """A valid program compiles with a populated result."""
        result = MiniCCompiler().compile_source(HELLO, "hello.c")
        assert isinstance(result, CompilerResult)
        assert result.success
        assert result.filename == "hello.c"
        assert result.error_count == 0
        assert result.errors == []
        assert isinstance(result.ast, ProgramNode)
        assert result.token_count > 0
        assert ".globl add" in result.assembly
        assert ".globl main" in result.assembly
        assert '.string "ok"' in result.assembly

    def test_syntax_errors_raise(self):
        """Syntax errors raise one CompilationError with every error."""
        with pytest.raises(CompilationError) as exc_info:
            MiniCCompiler().compile_source("int main() { x = 1 y = 2; return 0 }", "bad.c")
        message = str(exc_info.value)
        assert exc_info.value.error_count == 2
        assert "bad.c:1:20: error: expected ';' before 'y'" in message
        assert "2 errors, 0 warnings" in message
        assert message.endswith("Parsing failed with 2 errors")

    def test_report_includes_source_context(self):
        """Errors show the offending line and a caret."""
        with pytest.raises(CompilationError) as exc_info:
            compile_c("int main() {\n    return 1\n}", "ctx.c")
        message = str(exc_info.value)
        assert "ctx.c:3:1: error: expected ';' before '}'" in message
        assert "\n    }\n    ^" in message

    def test_codegen_error_raises(self):
        """Code generation errors are reported as a CompilationError too."""
        with pytest.raises(CompilationError) as exc_info:
            MiniCCompiler().compile_source("int main() { return 2.5; }")
        assert "unsupported feature: floating-point literal" in str(exc_info.value)
        assert "Parsing failed" not in str(exc_info.value)

    def test_internal_error_propagates(self):
        """Internal errors are not turned into user diagnostics."""
        with pytest.raises(InternalCompilerError):
            MiniCCompiler().compile_source("int main() { return nope; }")

    def test_warnings_collected(self):
        """Generator warnings appear on the result."""
        result = MiniCCompiler().compile_source("int g; int main() { return 0; }", "w.c")
        assert result.success
        assert len(result.warnings) == 1
        assert result.warnings[0].startswith("w.c:1:1: warning:")

    def test_compiler_is_reusable(self):
        """A compiler instance can run several compilations."""
        compiler = MiniCCompiler()
        with pytest.raises(CompilationError):
            compiler.compile_source("int main() { return }")
        result = compiler.compile_source("int main() { return 0; }")
        assert result.success
        assert result.errors == []

    def test_emit_comments_option(self):
        """CompilerOptions.emit_comments reaches the generator."""
        compiler = MiniCCompiler(CompilerOptions(emit_comments=True))
        result = compiler.compile_source("int main() { return 0; }")
        assert "# function int main()" in result.assembly

    def test_max_errors_option(self):
        """The report is truncated at max_errors but every error is counted."""
        compiler = MiniCCompiler(CompilerOptions(max_errors=1))
        with pytest.raises(CompilationError) as exc_info:
            compiler.compile_source("int main() { x = 1 y = 2; return 0 }")
        assert exc_info.value.error_count == 2
        assert "... 1 more errors not shown" in str(exc_info.value)

    def test_tokenize(self):
        """tokenize returns every token through EOF."""
        tokens = MiniCCompiler().tokenize("int x;")
        assert [t.type for t in tokens] == [
            CTokenType.INT, CTokenType.IDENTIFIER, CTokenType.SEMICOLON, CTokenType.EOF,
        ]

    def test_compile_file(self, tmp_path):
        """Files are read as UTF-8 and compiled."""
        source = tmp_path / "prog.c"
        source.write_text("// café\nint main() { return 0; }\n", encoding="utf-8")
        result = MiniCCompiler().compile_file(source)
        assert result.success
        assert result.filename == str(source)

    def test_compile_file_missing(self, tmp_path):
        """A missing file raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            MiniCCompiler().compile_file(tmp_path / "missing.c")


class TestConvenienceFunctions:
    """Tests for compile_c and compile_file."""

    def test_compile_c(self):
        """compile_c returns the assembly text."""
        asm = compile_c("int main() { return 1 + 2; }")
        assert asm.startswith(".section .text\n")
        assert "addl %ebx, %eax" in asm

    def test_compile_file_writes_output(self, tmp_path):
        """compile_file writes the output file when asked."""
        source = tmp_path / "in.c"
        output = tmp_path / "out.s"
        source.write_text("int main() { return 0; }")
        asm = compile_file(source, output)
        assert output.read_text() == asm


# =============================================================================
# Diagnostics
# =============================================================================

class TestDiagnosticCollector:
    """Tests for error collection and reporting."""

    def test_empty(self):
        """A new collector has nothing to report."""
        collector = DiagnosticCollector()
        assert not collector.has_errors()
        assert collector.error_count() == 0
        collector.raise_if_errors()

    def test_report_summary(self):
        """The report ends with error and warning counts."""
        collector = DiagnosticCollector()
        collector.add(MissingTokenError("';'", SourceLocation("a.c", 2, 3)))
        collector.add_warning("unused", SourceLocation("a.c", 1, 1))
        report = collector.report()
        assert "a.c:2:3: error: expected ';'" in report
        assert "a.c:1:1: warning: unused" in report
        assert report.endswith("1 error, 1 warning")

    def test_clear(self):
        """clear() empties the collector."""
        collector = DiagnosticCollector()
        collector.add(MissingTokenError("')'"))
        collector.add_warning("w")
        collector.clear()
        assert collector.error_count() == 0
        assert collector.warning_count() == 0


# =============================================================================
# Command Line
# =============================================================================

class TestMccCli:
    """Tests for the mcc command."""

    def test_compile_default_output(self):
        """The output defaults to the input name with .s."""
        runner = CliRunner()
        with runner.isolated_filesystem():
            Path("hello.c").write_text(HELLO)
            result = runner.invoke(main, ["hello.c"])
            assert result.exit_code == ExitCode.SUCCESS, result.output
            assert "Compilation successful: hello.s" in result.output
            assert ".globl main" in Path("hello.s").read_text()

    def test_compile_explicit_output(self):
        """-o selects the output path; -S is accepted."""
        runner = CliRunner()
        with runner.isolated_filesystem():
            Path("hello.c").write_text(HELLO)
            result = runner.invoke(main, ["-S", "hello.c", "-o", "out.asm"])
            assert result.exit_code == 0, result.output
            assert Path("out.asm").exists()
            assert not Path("hello.s").exists()

    def test_syntax_error_exit_code(self):
        """Syntax errors exit with 1 and write nothing."""
        runner = CliRunner()
        with runner.isolated_filesystem():
            Path("bad.c").write_text("int main() { return 0 }")
            result = runner.invoke(main, ["bad.c"])
            assert result.exit_code == ExitCode.BUILD_ERROR
            assert "bad.c:1:23: error: expected ';'" in result.output
            assert "Parsing failed with 1 errors" in result.output
            assert not Path("bad.s").exists()

    def test_missing_input(self):
        """A missing input file is an argument error."""
        runner = CliRunner()
        with runner.isolated_filesystem():
            result = runner.invoke(main, ["nope.c"])
            assert result.exit_code == ExitCode.INVALID_ARGS

    def test_internal_error_exit_code(self):
        """Internal compiler errors exit with 3."""
        runner = CliRunner()
        with runner.isolated_filesystem():
            Path("undeclared.c").write_text("int main() { return y; }")
            result = runner.invoke(main, ["undeclared.c"])
            assert result.exit_code == ExitCode.INTERNAL_ERROR
            assert "internal compiler error" in result.output

    def test_ast_dump(self):
        """--ast prints the tree and writes no assembly."""
        runner = CliRunner()
        with runner.isolated_filesystem():
            Path("add.c").write_text("int add(int a, int b) { return a + b; }")
            result = runner.invoke(main, ["--ast", "add.c"])
            assert result.exit_code == 0, result.output
            assert "Function: int add(int a, int b)" in result.output
            assert "Return (a + b)" in result.output
            assert not Path("add.s").exists()

    def test_ast_dump_with_errors(self):
        """--ast reports syntax errors instead of a partial tree."""
        runner = CliRunner()
        with runner.isolated_filesystem():
            Path("bad.c").write_text("int main() { return 0 }")
            result = runner.invoke(main, ["--ast", "bad.c"])
            assert result.exit_code == ExitCode.BUILD_ERROR

    def test_token_dump(self):
        """--tokens prints one token per line."""
        runner = CliRunner()
        with runner.isolated_filesystem():
            Path("t.c").write_text("int x;")
            result = runner.invoke(main, ["--tokens", "t.c"])
            assert result.exit_code == 0, result.output
            assert result.output.splitlines() == [
                "Token(INT, 'int', 1:1)",
                "Token(IDENTIFIER, 'x', 1:5)",
                "Token(SEMICOLON, ';', 1:6)",
                "Token(EOF, 1:7)",
            ]

    def test_verbose(self):
        """-v reports pipeline statistics."""
        runner = CliRunner()
        with runner.isolated_filesystem():
            Path("hello.c").write_text(HELLO)
            result = runner.invoke(main, ["-v", "hello.c"])
            assert result.exit_code == 0, result.output
            assert "Compiling hello.c..." in result.output
            assert "Parsed: 2 top-level items" in result.output

    def test_version(self):
        """--version prints the package version."""
        result = CliRunner().invoke(main, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output
