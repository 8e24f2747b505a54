"""
minicc Recursive Descent Parser
===============================

This module implements the parser for the minicc C subset. It pulls
tokens from the lexer through a TokenStream and builds an Abstract
Syntax Tree (AST): recursive descent for declarations and statements,
precedence climbing for binary expressions.

Grammar (Simplified EBNF)
-------------------------
program         ::= (function_def | declaration)*
function_def    ::= type IDENTIFIER '(' params? ')' block
params          ::= 'void' | type IDENTIFIER (',' type IDENTIFIER)*
declaration     ::= type IDENTIFIER ('=' expr)? ';'
type            ::= 'int' | 'char' | 'void'

block           ::= '{' statement* '}'
statement       ::= if_stmt | while_stmt | for_stmt | return_stmt
                  | block | declaration | expr_stmt

if_stmt         ::= 'if' '(' expr ')' statement ('else' statement)?
while_stmt      ::= 'while' '(' expr ')' statement
for_stmt        ::= 'for' '(' (declaration | expr? ';') expr? ';' expr? ')' statement
return_stmt     ::= 'return' expr? ';'
expr_stmt       ::= expr ';'

expr            ::= binary ('=' expr)?
primary         ::= NUMBER | CHAR_LITERAL | STRING
                  | IDENTIFIER ('(' (expr (',' expr)*)? ')')?
                  | '(' expr ')'

Expression Precedence (lowest to highest)
-----------------------------------------
1. assignment      =            (right-associative, only on a variable)
2. logical_or      ||
3. logical_and     &&
4. comparison      == != < > <= >=
5. additive        + -
6. multiplicative  * / %
7. unary           - !
8. primary

Lookahead
---------
The parser holds a current token and one peek token. Telling a function
definition from a declaration needs a third token ("int name (" versus
"int name ;"), which is pulled from the TokenStream and pushed straight
back.

Error Policy
------------
Syntax errors are recorded, not raised. Each one goes into a
DiagnosticCollector with its position, and the failing production
returns None; every caller checks for None and abandons its own node.
A missing expected token is recorded without being consumed, and
parsing carries on from there. There is no resynchronisation, so one
mistake can produce follow-on errors. parse_program() returns the AST
together with the number of errors recorded.

Example Usage
-------------
>>> from minicc.parser import CParser
>>> parser = CParser('int main() { return 42; }', "test.c")
>>> program, error_count = parser.parse_program()
>>> error_count
0
"""

import logging
from typing import Optional

from minicc.errors import (
    CSyntaxError,
    DiagnosticCollector,
    InvalidAssignmentTargetError,
    InvalidCharacterError,
    MissingTokenError,
    SourceLocation,
    UnexpectedTokenError,
)
from minicc.lexer import CLexer, CToken, CTokenType
from minicc.token_stream import TokenStream
from minicc.ast import (
    ASTNode,
    AssignmentExpression,
    BinaryExpression,
    BinaryOperator,
    BlockStatement,
    CallExpression,
    Declaration,
    Expression,
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

logger = logging.getLogger(__name__)


# Binding strength of each binary operator token; higher binds tighter
BINARY_PRECEDENCE: dict[CTokenType, int] = {
    CTokenType.OR: 0,
    CTokenType.AND: 1,
    CTokenType.EQ: 2,
    CTokenType.NE: 2,
    CTokenType.LT: 2,
    CTokenType.GT: 2,
    CTokenType.LE: 2,
    CTokenType.GE: 2,
    CTokenType.PLUS: 3,
    CTokenType.MINUS: 3,
    CTokenType.STAR: 4,
    CTokenType.SLASH: 4,
    CTokenType.PERCENT: 4,
}

BINARY_OPERATORS: dict[CTokenType, BinaryOperator] = {
    CTokenType.OR: BinaryOperator.LOGICAL_OR,
    CTokenType.AND: BinaryOperator.LOGICAL_AND,
    CTokenType.EQ: BinaryOperator.EQUAL,
    CTokenType.NE: BinaryOperator.NOT_EQUAL,
    CTokenType.LT: BinaryOperator.LESS,
    CTokenType.GT: BinaryOperator.GREATER,
    CTokenType.LE: BinaryOperator.LESS_EQ,
    CTokenType.GE: BinaryOperator.GREATER_EQ,
    CTokenType.PLUS: BinaryOperator.ADD,
    CTokenType.MINUS: BinaryOperator.SUBTRACT,
    CTokenType.STAR: BinaryOperator.MULTIPLY,
    CTokenType.SLASH: BinaryOperator.DIVIDE,
    CTokenType.PERCENT: BinaryOperator.MODULO,
}

UNARY_OPERATORS: dict[CTokenType, UnaryOperator] = {
    CTokenType.MINUS: UnaryOperator.NEGATE,
    CTokenType.NOT: UnaryOperator.LOGICAL_NOT,
}

LITERAL_KINDS: dict[CTokenType, LiteralKind] = {
    CTokenType.NUMBER: LiteralKind.NUMBER,
    CTokenType.CHAR_LITERAL: LiteralKind.CHAR,
    CTokenType.STRING: LiteralKind.STRING,
}


class CParser:
    """
    Recursive descent parser for minicc.

    Owns the lexer and token stream for one source text. A parser
    instance is single-use: create a new one for each compilation.

    Attributes:
        filename: Source filename for error reporting
        source_lines: Source split into lines, for error context
        current: The token being examined
        peek: The token after current
    """

    def __init__(
        self,
        source: str,
        filename: str = "<input>",
        max_errors: int = 100,
    ):
        """
        Initialize the parser and prime the two-token window.

        Args:
            source: The C source code
            filename: Source filename for error messages
            max_errors: Cap on errors listed in the diagnostic report
        """
        self.filename = filename
        self.source_lines = source.splitlines()

        self._stream = TokenStream(CLexer(source, filename))
        self._errors = DiagnosticCollector(max_errors)

        self.current: CToken = self._stream.next()
        self.peek: CToken = self._stream.next()

    # =========================================================================
    # Public Interface
    # =========================================================================

    @property
    def error_count(self) -> int:
        """Number of syntax errors recorded so far."""
        return self._errors.error_count()

    @property
    def errors(self) -> DiagnosticCollector:
        """The collected diagnostics."""
        return self._errors

    @property
    def tokens_read(self) -> int:
        """Number of tokens pulled from the lexer."""
        return self._stream.tokens_read

    def parse_program(self) -> tuple[ProgramNode, int]:
        """
        Parse the whole source.

        Returns:
            (program, error_count). The program holds every top-level item
            parsed before the first unrecoverable error; it is only safe
            to generate code from it when error_count is 0.
        """
        items: list[ASTNode] = []

        while not self._check(CTokenType.EOF):
            if self._starts_function():
                item = self.parse_function()
            else:
                start = self.current
                item = self.parse_statement()
                if item is not None and not isinstance(item, Declaration):
                    self._record(CSyntaxError(
                        "statement outside of a function",
                        start.location,
                        hint="only functions and variable declarations may appear at file scope",
                        source_line=self._source_line(start.line),
                    ))
                    continue

            if item is None:
                break
            items.append(item)

        logger.debug(
            f"{self.filename}: parsed {len(items)} top-level items, "
            f"{self.error_count} errors"
        )
        program = ProgramNode(
            location=SourceLocation(self.filename, 1, 1),
            items=items,
        )
        return program, self.error_count

    def parse(self) -> ProgramNode:
        """Parse the whole source and return only the AST."""
        program, _ = self.parse_program()
        return program

    # =========================================================================
    # Token Access Methods
    # =========================================================================

    def _advance(self) -> CToken:
        """Consume and return the current token."""
        token = self.current
        self.current = self.peek
        self.peek = self._stream.next()
        return token

    def _check(self, *types: CTokenType) -> bool:
        """Check if current token is one of the given types."""
        return self.current.type in types

    def _match(self, *types: CTokenType) -> Optional[CToken]:
        """Consume current token if it matches one of the types."""
        if self._check(*types):
            return self._advance()
        return None

    def _expect(self, token_type: CTokenType, description: str) -> Optional[CToken]:
        """
        Consume a token of the given type, or record that it is missing.

        The current token is left in place on failure.

        Returns:
            The consumed token, or None if it was missing
        """
        if self._check(token_type):
            return self._advance()

        self._record(MissingTokenError(
            description,
            self.current.location,
            self._source_line(self.current.line),
            found=self._describe(self.current),
        ))
        return None

    def _peek_third(self) -> CToken:
        """Return the token after peek without consuming anything."""
        third = self._stream.next()
        self._stream.push_back(third)
        return third

    def _starts_function(self) -> bool:
        """True for 'type IDENTIFIER (' at the current position."""
        return (
            self.current.is_type_keyword()
            and self.peek.type == CTokenType.IDENTIFIER
            and self._peek_third().type == CTokenType.LPAREN
        )

    # =========================================================================
    # Diagnostics
    # =========================================================================

    def _record(self, error: CSyntaxError) -> None:
        """Record a syntax error and keep going."""
        self._errors.add(error)
        logger.debug(f"syntax error at {error.location}: {error.message}")

    def _unexpected(self, expected: str) -> None:
        """Record the current token as not fitting the grammar."""
        token = self.current
        if token.type == CTokenType.ERROR:
            self._record(InvalidCharacterError(
                token.value,
                token.location,
                self._source_line(token.line),
            ))
            return

        self._record(UnexpectedTokenError(
            self._describe(token),
            expected=expected,
            location=token.location,
            source_line=self._source_line(token.line),
        ))

    def _describe(self, token: CToken) -> str:
        if token.type == CTokenType.EOF:
            return "end of input"
        return token.value

    def _source_line(self, line: int) -> Optional[str]:
        """Get source line for error reporting."""
        if 0 < line <= len(self.source_lines):
            return self.source_lines[line - 1]
        return None

    # =========================================================================
    # Functions and Declarations
    # =========================================================================

    def parse_function(self) -> Optional[FunctionNode]:
        """Parse 'type name ( params ) block'."""
        location = self.current.location
        return_type = self._advance().value
        name = self._advance().value
        self._expect(CTokenType.LPAREN, "'('")

        params = self._parse_parameter_list()
        if params is None:
            return None
        self._expect(CTokenType.RPAREN, "')'")

        body = self.parse_block()
        if body is None:
            return None

        return FunctionNode(
            location=location,
            name=name,
            return_type=return_type,
            params=params,
            body=body,
        )

    def _parse_parameter_list(self) -> Optional[list[Declaration]]:
        """Parse comma-separated 'type name' pairs up to (not including) ')'."""
        params: list[Declaration] = []

        if self._check(CTokenType.RPAREN):
            return params

        # f(void) declares no parameters
        if self._check(CTokenType.VOID) and self.peek.type == CTokenType.RPAREN:
            self._advance()
            return params

        while True:
            if not self.current.is_type_keyword():
                self._unexpected("parameter type")
                return None
            type_token = self._advance()

            if not self._check(CTokenType.IDENTIFIER):
                self._unexpected("parameter name")
                return None
            name_token = self._advance()

            params.append(Declaration(
                location=type_token.location,
                name=name_token.value,
                type_name=type_token.value,
            ))

            if not self._match(CTokenType.COMMA):
                return params

    def parse_declaration(self) -> Optional[Declaration]:
        """Parse 'type name (= expr)? ;'."""
        location = self.current.location
        type_name = self._advance().value

        if not self._check(CTokenType.IDENTIFIER):
            self._unexpected("variable name")
            return None
        name = self._advance().value

        initializer = None
        if self._match(CTokenType.ASSIGN):
            initializer = self.parse_expression()
            if initializer is None:
                return None

        self._expect(CTokenType.SEMICOLON, "';'")
        return Declaration(
            location=location,
            name=name,
            type_name=type_name,
            initializer=initializer,
        )

    # =========================================================================
    # Statements
    # =========================================================================

    def parse_block(self) -> Optional[BlockStatement]:
        """
        Parse '{ statement* }'.

        Running into end of input before '}' is recorded as an error.
        """
        location = self.current.location
        self._expect(CTokenType.LBRACE, "'{'")

        statements: list[ASTNode] = []
        while not self._check(CTokenType.RBRACE, CTokenType.EOF):
            stmt = self.parse_statement()
            if stmt is None:
                break
            statements.append(stmt)

        self._expect(CTokenType.RBRACE, "'}'")
        return BlockStatement(location=location, statements=statements)

    def parse_statement(self) -> Optional[ASTNode]:
        """Parse one statement, dispatching on the leading token."""
        if self._check(CTokenType.IF):
            return self.parse_if()
        if self._check(CTokenType.WHILE):
            return self.parse_while()
        if self._check(CTokenType.FOR):
            return self.parse_for()
        if self._check(CTokenType.RETURN):
            return self.parse_return()
        if self._check(CTokenType.LBRACE):
            return self.parse_block()
        if self.current.is_type_keyword():
            return self.parse_declaration()
        return self._parse_expression_statement()

    def parse_if(self) -> Optional[IfStatement]:
        """Parse 'if ( expr ) statement (else statement)?'."""
        location = self._advance().location
        self._expect(CTokenType.LPAREN, "'('")
        condition = self.parse_expression()
        if condition is None:
            return None
        self._expect(CTokenType.RPAREN, "')'")

        then_branch = self.parse_statement()
        if then_branch is None:
            return None

        else_branch = None
        if self._match(CTokenType.ELSE):
            else_branch = self.parse_statement()
            if else_branch is None:
                return None

        return IfStatement(
            location=location,
            condition=condition,
            then_branch=then_branch,
            else_branch=else_branch,
        )

    def parse_while(self) -> Optional[WhileStatement]:
        """Parse 'while ( expr ) statement'."""
        location = self._advance().location
        self._expect(CTokenType.LPAREN, "'('")
        condition = self.parse_expression()
        if condition is None:
            return None
        self._expect(CTokenType.RPAREN, "')'")

        body = self.parse_statement()
        if body is None:
            return None

        return WhileStatement(location=location, condition=condition, body=body)

    def parse_for(self) -> Optional[ForStatement]:
        """
        Parse 'for ( init ; condition ; update ) statement'.

        Each of the three clauses may be empty. The init clause may be a
        declaration, in which case it supplies its own ';'.
        """
        location = self._advance().location
        self._expect(CTokenType.LPAREN, "'('")

        init = None
        if self.current.is_type_keyword():
            init = self.parse_declaration()
            if init is None:
                return None
        else:
            if not self._check(CTokenType.SEMICOLON):
                init = self.parse_expression()
                if init is None:
                    return None
            self._expect(CTokenType.SEMICOLON, "';'")

        condition = None
        if not self._check(CTokenType.SEMICOLON):
            condition = self.parse_expression()
            if condition is None:
                return None
        self._expect(CTokenType.SEMICOLON, "';'")

        update = None
        if not self._check(CTokenType.RPAREN):
            update = self.parse_expression()
            if update is None:
                return None
        self._expect(CTokenType.RPAREN, "')'")

        body = self.parse_statement()
        if body is None:
            return None

        return ForStatement(
            location=location,
            init=init,
            condition=condition,
            update=update,
            body=body,
        )

    def parse_return(self) -> Optional[ReturnStatement]:
        """Parse 'return expr? ;'."""
        location = self._advance().location

        value = None
        if not self._check(CTokenType.SEMICOLON):
            value = self.parse_expression()
            if value is None:
                return None

        self._expect(CTokenType.SEMICOLON, "';'")
        return ReturnStatement(location=location, value=value)

    def _parse_expression_statement(self) -> Optional[Expression]:
        """Parse 'expr ;'."""
        expr = self.parse_expression()
        if expr is None:
            return None
        self._expect(CTokenType.SEMICOLON, "';'")
        return expr

    # =========================================================================
    # Expressions
    # =========================================================================

    def parse_expression(self) -> Optional[Expression]:
        """
        Parse an assignment expression.

        Assignment binds loosest and groups to the right: the right-hand
        side is itself a full assignment expression, so 'a = b = c' is
        a = (b = c).
        """
        expr = self._parse_binary(0)
        if expr is None:
            return None

        if self._check(CTokenType.ASSIGN):
            op_token = self._advance()
            value = self.parse_expression()
            if value is None:
                return None

            if not isinstance(expr, IdentifierExpression):
                self._record(InvalidAssignmentTargetError(
                    op_token.location,
                    self._source_line(op_token.line),
                ))
                return None

            return AssignmentExpression(location=expr.location, target=expr, expr=value)

        return expr

    def _parse_binary(self, min_precedence: int) -> Optional[Expression]:
        """
        Precedence climbing over unary operands.

        Operators at or above min_precedence are folded in; each right
        operand is parsed one level tighter, which makes every binary
        level left-associative.
        """
        left = self._parse_unary()
        if left is None:
            return None

        while True:
            precedence = BINARY_PRECEDENCE.get(self.current.type)
            if precedence is None or precedence < min_precedence:
                return left

            op_token = self._advance()
            right = self._parse_binary(precedence + 1)
            if right is None:
                return None

            left = BinaryExpression(
                location=left.location,
                operator=BINARY_OPERATORS[op_token.type],
                left=left,
                right=right,
            )

    def _parse_unary(self) -> Optional[Expression]:
        """Parse prefix '-' and '!'."""
        if self.current.type in UNARY_OPERATORS:
            op_token = self._advance()
            operand = self._parse_unary()
            if operand is None:
                return None
            return UnaryExpression(
                location=op_token.location,
                operator=UNARY_OPERATORS[op_token.type],
                operand=operand,
            )

        return self.parse_primary()

    def parse_primary(self) -> Optional[Expression]:
        """Parse literals, identifiers, calls and parenthesized expressions."""
        token = self.current

        if token.type in LITERAL_KINDS:
            self._advance()
            return Literal(location=token.location, text=token.value, kind=LITERAL_KINDS[token.type])

        if token.type == CTokenType.IDENTIFIER:
            self._advance()
            if not self._match(CTokenType.LPAREN):
                return IdentifierExpression(location=token.location, name=token.value)

            args = self._parse_arguments()
            if args is None:
                return None
            self._expect(CTokenType.RPAREN, "')'")
            return CallExpression(location=token.location, name=token.value, args=args)

        if token.type == CTokenType.LPAREN:
            self._advance()
            expr = self.parse_expression()
            if expr is None:
                return None
            self._expect(CTokenType.RPAREN, "')'")
            return expr

        self._unexpected("expression")
        return None

    def _parse_arguments(self) -> Optional[list[Expression]]:
        """Parse a possibly empty, comma-separated argument list."""
        args: list[Expression] = []
        if self._check(CTokenType.RPAREN):
            return args

        while True:
            arg = self.parse_expression()
            if arg is None:
                return None
            args.append(arg)
            if not self._match(CTokenType.COMMA):
                return args


# =============================================================================
# Convenience Functions
# =============================================================================

def parse_source(source: str, filename: str = "<input>") -> ProgramNode:
    """
    Parse C source code into an AST.

    Args:
        source: The C source code
        filename: Source filename for error messages

    Returns:
        The root ProgramNode of the AST

    Raises:
        CompilationError: If any syntax error was recorded
    """
    parser = CParser(source, filename)
    program, _ = parser.parse_program()
    parser.errors.raise_if_errors()
    return program
