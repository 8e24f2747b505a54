"""
Parser Test Suite
=================

Tests for the minicc parser, covering:
- Function definitions, parameters and top-level declarations
- Statements: blocks, declarations, if/else, while, for, return
- Expression precedence and associativity
- Error counting without recovery
- AST pretty printing
"""

import pytest

from minicc.ast import (
    ASTPrinter,
    AssignmentExpression,
    BinaryExpression,
    BinaryOperator,
    BlockStatement,
    CallExpression,
    Declaration,
    ForStatement,
    FunctionNode,
    IdentifierExpression,
    IfStatement,
    Literal,
    LiteralKind,
    ProgramNode,
    ReturnStatement,
    UnaryExpression,
    UnaryOperator,
    WhileStatement,
)
from minicc.errors import (
    CompilationError,
    CSyntaxError,
    InvalidAssignmentTargetError,
    InvalidCharacterError,
    MissingTokenError,
    SourceLocation,
    UnexpectedTokenError,
)
from minicc.parser import CParser, parse_source

LOC = SourceLocation("test.c", 1, 1)


def num(text: str) -> Literal:
    return Literal(location=LOC, text=text, kind=LiteralKind.NUMBER)


def ident(name: str) -> IdentifierExpression:
    return IdentifierExpression(location=LOC, name=name)


def binop(op: str, left, right) -> BinaryExpression:
    return BinaryExpression(location=LOC, operator=op, left=left, right=right)


def parse_expr(source: str):
    """Parse a single expression, asserting it was clean."""
    parser = CParser(source, "test.c")
    expr = parser.parse_expression()
    assert parser.error_count == 0, parser.errors.report()
    return expr


def parse_stmt(source: str):
    """Parse a single statement, asserting it was clean."""
    parser = CParser(source, "test.c")
    stmt = parser.parse_statement()
    assert parser.error_count == 0, parser.errors.report()
    return stmt


def parse_program(source: str) -> tuple[ProgramNode, CParser]:
    parser = CParser(source, "test.c")
    program, _ = parser.parse_program()
    return program, parser


# =============================================================================
# Functions and Declarations
# =============================================================================

class TestFunctions:
    """Tests for function definitions."""

    def test_function_with_parameters(self):
        """Parameters become Declarations and the body is a Block."""
        program = parse_source("int f(int a, int b) { return a + b; }", "test.c")
        assert len(program.items) == 1

        func = program.items[0]
        assert isinstance(func, FunctionNode)
        assert func.name == "f"
        assert func.return_type == "int"
        assert [p.name for p in func.params] == ["a", "b"]
        assert all(isinstance(p, Declaration) for p in func.params)

        assert isinstance(func.body, BlockStatement)
        assert len(func.body.statements) == 1
        ret = func.body.statements[0]
        assert isinstance(ret, ReturnStatement)
        assert ret.value == binop("+", ident("a"), ident("b"))

    def test_empty_parameter_list(self):
        """f() has no parameters."""
        func = parse_source("void f() { }").items[0]
        assert func.params == []
        assert func.return_type == "void"
        assert func.body.statements == []

    def test_void_parameter_list(self):
        """f(void) also has no parameters."""
        func = parse_source("int f(void) { return 0; }").items[0]
        assert func.params == []

    def test_parameter_types(self):
        """Each parameter keeps its type keyword."""
        func = parse_source("char f(char c, int n) { return c; }").items[0]
        assert [(p.type_name, p.name) for p in func.params] == [("char", "c"), ("int", "n")]
        assert func.return_type == "char"

    def test_multiple_functions(self):
        """Functions are kept in source order."""
        program = parse_source("int a() { return 1; } int b() { return 2; }")
        assert [f.name for f in program.items] == ["a", "b"]

    def test_top_level_declaration(self):
        """'int x;' at file scope is a Declaration, not a function."""
        program = parse_source("int g = 5; int h; int main() { return 0; }")
        g, h, main = program.items
        assert isinstance(g, Declaration)
        assert g.name == "g"
        assert g.initializer == num("5")
        assert isinstance(h, Declaration)
        assert h.initializer is None
        assert isinstance(main, FunctionNode)

    def test_lookahead_leaves_no_pending_tokens(self):
        """The third-token peek is always pushed back and re-read."""
        program, parser = parse_program("int x; int f() { return x; }")
        assert parser.error_count == 0
        assert parser._stream.pending() == 0
        assert [type(item) for item in program.items] == [Declaration, FunctionNode]

    def test_empty_program(self):
        """Empty source gives an empty program with no errors."""
        program, parser = parse_program("")
        assert program.items == []
        assert parser.error_count == 0


# =============================================================================
# Statements
# =============================================================================

class TestStatements:
    """Tests for statement parsing."""

    def test_local_declaration(self):
        """A declaration with an initializer."""
        decl = parse_stmt("int x = 1 + 2;")
        assert isinstance(decl, Declaration)
        assert decl.name == "x"
        assert decl.initializer == binop("+", num("1"), num("2"))

    def test_expression_statement(self):
        """An expression followed by ';' is a statement."""
        stmt = parse_stmt("x = 3;")
        assert stmt == AssignmentExpression(location=LOC, target=ident("x"), expr=num("3"))

    def test_if_else(self):
        """if/else keeps both branches."""
        stmt = parse_stmt("if (x) return 1; else return 2;")
        assert isinstance(stmt, IfStatement)
        assert stmt.condition == ident("x")
        assert stmt.then_branch == ReturnStatement(location=LOC, value=num("1"))
        assert stmt.else_branch == ReturnStatement(location=LOC, value=num("2"))

    def test_if_without_else(self):
        """The else branch is optional."""
        stmt = parse_stmt("if (x) { y = 1; }")
        assert isinstance(stmt.then_branch, BlockStatement)
        assert stmt.else_branch is None

    def test_dangling_else(self):
        """else binds to the nearest if."""
        stmt = parse_stmt("if (a) if (b) x = 1; else x = 2;")
        assert stmt.else_branch is None
        inner = stmt.then_branch
        assert isinstance(inner, IfStatement)
        assert inner.else_branch is not None

    def test_while(self):
        """while has a condition and a body."""
        stmt = parse_stmt("while (i < 10) i = i + 1;")
        assert isinstance(stmt, WhileStatement)
        assert stmt.condition == binop("<", ident("i"), num("10"))
        assert isinstance(stmt.body, AssignmentExpression)

    def test_for_full(self):
        """for with a declaration initializer."""
        stmt = parse_stmt("for (int i = 0; i < 3; i = i + 1) { }")
        assert isinstance(stmt, ForStatement)
        assert isinstance(stmt.init, Declaration)
        assert stmt.init.name == "i"
        assert stmt.condition == binop("<", ident("i"), num("3"))
        assert isinstance(stmt.update, AssignmentExpression)
        assert isinstance(stmt.body, BlockStatement)

    def test_for_expression_init(self):
        """for with an expression initializer."""
        stmt = parse_stmt("for (i = 0; i; i = i - 1) x = x + i;")
        assert isinstance(stmt.init, AssignmentExpression)

    def test_for_empty_clauses(self):
        """Every for clause may be omitted."""
        stmt = parse_stmt("for (;;) { }")
        assert stmt.init is None
        assert stmt.condition is None
        assert stmt.update is None

    def test_return_without_value(self):
        """A bare return has no value."""
        stmt = parse_stmt("return;")
        assert isinstance(stmt, ReturnStatement)
        assert stmt.value is None

    def test_nested_blocks(self):
        """Blocks nest."""
        stmt = parse_stmt("{ { x = 1; } y = 2; }")
        assert isinstance(stmt, BlockStatement)
        assert isinstance(stmt.statements[0], BlockStatement)
        assert len(stmt.statements) == 2


# =============================================================================
# Expressions
# =============================================================================

class TestExpressions:
    """Tests for expression precedence and associativity."""

    def test_multiplication_binds_tighter(self):
        """1 + 2 * 3 groups the multiplication first."""
        assert parse_expr("1 + 2 * 3") == binop("+", num("1"), binop("*", num("2"), num("3")))

    def test_multiplication_first_on_left(self):
        """1 * 2 + 3 groups the multiplication first."""
        assert parse_expr("1 * 2 + 3") == binop("+", binop("*", num("1"), num("2")), num("3"))

    def test_left_associative(self):
        """Binary operators of equal precedence group to the left."""
        assert parse_expr("1 - 2 - 3") == binop("-", binop("-", num("1"), num("2")), num("3"))
        assert parse_expr("8 / 4 % 3") == binop("%", binop("/", num("8"), num("4")), num("3"))

    def test_assignment_right_associative(self):
        """a = b = 3 is a = (b = 3)."""
        expected = AssignmentExpression(
            location=LOC,
            target=ident("a"),
            expr=AssignmentExpression(location=LOC, target=ident("b"), expr=num("3")),
        )
        assert parse_expr("a = b = 3") == expected

    def test_assignment_binds_loosest(self):
        """The right side of '=' is a full expression."""
        expr = parse_expr("x = y + 1")
        assert expr.expr == binop("+", ident("y"), num("1"))

    def test_parentheses(self):
        """Parentheses override precedence."""
        assert parse_expr("(1 + 2) * 3") == binop("*", binop("+", num("1"), num("2")), num("3"))

    def test_comparison_below_arithmetic(self):
        """a + b < c compares the sum."""
        assert parse_expr("a + b < c") == binop("<", binop("+", ident("a"), ident("b")), ident("c"))

    def test_comparisons_share_a_level(self):
        """All comparisons have one precedence and group left."""
        assert parse_expr("a < b == c") == binop("==", binop("<", ident("a"), ident("b")), ident("c"))

    def test_logical_precedence(self):
        """&& binds tighter than ||, and both below comparison."""
        expr = parse_expr("a || b && c == d")
        assert expr == binop(
            "||",
            ident("a"),
            binop("&&", ident("b"), binop("==", ident("c"), ident("d"))),
        )

    def test_unary(self):
        """Unary operators bind tighter than binary ones."""
        expr = parse_expr("-a * b")
        assert expr.operator == BinaryOperator.MULTIPLY
        assert expr.left == UnaryExpression(location=LOC, operator=UnaryOperator.NEGATE, operand=ident("a"))

    def test_nested_unary(self):
        """Unary operators nest."""
        expr = parse_expr("-!x")
        assert expr == UnaryExpression(
            location=LOC,
            operator="-",
            operand=UnaryExpression(location=LOC, operator="!", operand=ident("x")),
        )

    def test_call(self):
        """Calls take comma-separated argument expressions."""
        expr = parse_expr("f(1, g(2), x + 1)")
        assert isinstance(expr, CallExpression)
        assert expr.name == "f"
        assert len(expr.args) == 3
        assert expr.args[1] == CallExpression(location=LOC, name="g", args=[num("2")])

    def test_call_without_arguments(self):
        """f() has an empty argument list."""
        expr = parse_expr("f()")
        assert expr == CallExpression(location=LOC, name="f", args=[])

    def test_string_and_char_literals(self):
        """String and character literals keep their lexeme."""
        expr = parse_expr("f(\"hi\", 'c')")
        assert expr.args[0].kind == LiteralKind.STRING
        assert expr.args[0].text == '"hi"'
        assert expr.args[1].kind == LiteralKind.CHAR
        assert expr.args[1].text == "'c'"

    def test_node_location(self):
        """Nodes record where they start."""
        program = parse_source("int main() {\n    return 7;\n}", "test.c")
        ret = program.items[0].body.statements[0]
        assert ret.location == SourceLocation("test.c", 2, 5)


# =============================================================================
# Error Handling
# =============================================================================

class TestErrors:
    """Tests for error counting without recovery."""

    def test_two_independent_errors(self):
        """Two missing semicolons are both counted and parsing completes."""
        program, parser = parse_program("int main() { x = 1 y = 2; return 0 }")
        assert parser.error_count == 2
        assert all(isinstance(e, MissingTokenError) for e in parser.errors.errors)
        assert isinstance(program, ProgramNode)

    def test_parse_program_returns_count(self):
        """parse_program returns the AST and the error count."""
        parser = CParser("int main() { return 1 }", "test.c")
        program, count = parser.parse_program()
        assert count == 1
        assert count == parser.error_count
        assert isinstance(program.items[0], FunctionNode)

    def test_missing_semicolon_message(self):
        """Missing tokens name what was expected and what was found."""
        _, parser = parse_program("int main() { return 1 }")
        error = parser.errors.errors[0]
        assert isinstance(error, MissingTokenError)
        assert error.message == "expected ';' before '}'"
        assert error.location == SourceLocation("test.c", 1, 23)

    def test_missing_closing_brace(self):
        """End of input inside a block is an error, not a crash."""
        _, parser = parse_program("int main() { return 0;")
        assert parser.error_count == 1
        assert parser.errors.errors[0].found == "end of input"

    def test_unexpected_token_in_expression(self):
        """A token that cannot start an expression is reported."""
        parser = CParser("1 + ;", "test.c")
        assert parser.parse_expression() is None
        assert parser.error_count == 1
        error = parser.errors.errors[0]
        assert isinstance(error, UnexpectedTokenError)
        assert error.found == ";"

    def test_invalid_character(self):
        """ERROR tokens are reported as invalid characters."""
        parser = CParser("x + @", "test.c")
        assert parser.parse_expression() is None
        assert isinstance(parser.errors.errors[0], InvalidCharacterError)
        assert "0x40" in parser.errors.errors[0].message

    def test_invalid_assignment_target(self):
        """Only a variable can be assigned to."""
        for source in ("1 = 2", "(a + b) = 2", "f() = 2"):
            parser = CParser(source, "test.c")
            assert parser.parse_expression() is None
            assert parser.error_count == 1
            assert isinstance(parser.errors.errors[0], InvalidAssignmentTargetError)

    def test_bad_parameter(self):
        """A parameter must start with a type keyword."""
        _, parser = parse_program("int f(x) { return x; }")
        error = parser.errors.errors[0]
        assert isinstance(error, UnexpectedTokenError)
        assert error.expected == "parameter type"

    def test_statement_at_file_scope(self):
        """Statements are not allowed outside functions."""
        program, parser = parse_program("x = 1; int main() { return 0; }")
        assert parser.error_count == 1
        assert "outside of a function" in parser.errors.errors[0].message
        assert [type(item) for item in program.items] == [FunctionNode]

    def test_errors_are_syntax_errors(self):
        """Every recorded error is a CSyntaxError with a location."""
        _, parser = parse_program("int main() { return (1 + ; }")
        assert parser.error_count >= 1
        for error in parser.errors.errors:
            assert isinstance(error, CSyntaxError)
            assert error.location is not None

    def test_parse_source_raises(self):
        """parse_source raises CompilationError with the full report."""
        with pytest.raises(CompilationError) as exc_info:
            parse_source("int main() { x = 1 y = 2; return 0 }", "test.c")
        assert exc_info.value.error_count == 2
        assert "Parsing failed with 2 errors" in str(exc_info.value)
        assert "test.c:1:" in str(exc_info.value)


# =============================================================================
# AST Printer
# =============================================================================

class TestASTPrinter:
    """Tests for the debugging pretty printer."""

    def test_print_function(self):
        """Functions print with their signature and body."""
        program = parse_source("int add(int a, int b) { return a + b; }")
        assert ASTPrinter().print(program) == (
            "Program\n"
            "  Function: int add(int a, int b)\n"
            "    Block\n"
            "      Return (a + b)"
        )

    def test_print_statements(self):
        """Control flow and expression statements are printed."""
        source = """
        int main() {
            int x = 0;
            while (x < 3) x = x + 1;
            if (x) f(x); else return;
        }
        """
        text = ASTPrinter().print(parse_source(source))
        assert "Declaration: int x = 0" in text
        assert "While ((x < 3))" in text
        assert "Expr: (x = (x + 1))" in text
        assert "Expr: f(x)" in text
        assert "Else:" in text
