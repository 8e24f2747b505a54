"""
minicc Lexer (Tokenizer)
========================

This module implements a pull-based lexer for the minicc C subset.
It converts source text into typed tokens with 1-based line/column
positions, one token per call.

Token Categories
----------------
- Keywords: int, char, void, if, while, for, return, struct, sizeof, etc.
- Identifiers: [A-Za-z_][A-Za-z0-9_]*
- Numbers: digits, optionally '.' followed by more digits (no exponent)
- Strings: "double quoted" (lexeme keeps the quotes)
- Characters: 'single quoted' (lexeme keeps the quotes)
- Operators: +, -, *, /, ==, !=, &&, ||, <<, >>, ->, etc.
- Delimiters: (, ), {, }, [, ], ;, ,, ., :, ?

Fault Tolerance
---------------
The lexer never raises. An unrecognised character becomes an ERROR
token carrying that character and its position, an unterminated string
or character literal runs to end of input, and an unterminated block
comment simply ends the token stream. Reporting is left to the parser.

Once the input is exhausted, every further call returns an EOF token.

Example Usage
-------------
>>> from minicc.lexer import CLexer
>>> lexer = CLexer('int main() { return 42; }', "test.c")
>>> for token in lexer.tokenize():
...     print(token)
Token(INT, 'int', 1:1)
Token(IDENTIFIER, 'main', 1:5)
Token(LPAREN, '(', 1:9)
Token(RPAREN, ')', 1:10)
Token(LBRACE, '{', 1:12)
Token(RETURN, 'return', 1:14)
Token(NUMBER, '42', 1:21)
Token(SEMICOLON, ';', 1:23)
Token(RBRACE, '}', 1:25)
Token(EOF, 1:26)
"""

import logging
import string
from dataclasses import dataclass
from enum import Enum, auto
from typing import Iterator, Optional

from minicc.errors import SourceLocation

logger = logging.getLogger(__name__)


# =============================================================================
# Token Type Enumeration
# =============================================================================

class CTokenType(Enum):
    """
    Token types for the minicc language.

    Keywords are distinguished from identifiers to simplify parsing.
    """

    # === Structural Tokens ===
    EOF = auto()            # End of input
    ERROR = auto()          # Unrecognised character

    # === Identifiers and Literals ===
    IDENTIFIER = auto()     # Variable/function names
    NUMBER = auto()         # 123 or 1.5
    STRING = auto()         # "..."
    CHAR_LITERAL = auto()   # '...'

    # === Keywords - Type Specifiers ===
    INT = auto()            # int
    CHAR = auto()           # char
    VOID = auto()           # void

    # === Keywords - Control Flow ===
    IF = auto()             # if
    ELSE = auto()           # else
    WHILE = auto()          # while
    FOR = auto()            # for
    RETURN = auto()         # return
    BREAK = auto()          # break
    CONTINUE = auto()       # continue
    SWITCH = auto()         # switch
    CASE = auto()           # case
    DEFAULT = auto()        # default
    GOTO = auto()           # goto

    # === Keywords - Declarations ===
    STRUCT = auto()         # struct
    UNION = auto()          # union
    ENUM = auto()           # enum
    TYPEDEF = auto()        # typedef
    STATIC = auto()         # static
    EXTERN = auto()         # extern
    CONST = auto()          # const
    VOLATILE = auto()       # volatile
    SIZEOF = auto()         # sizeof

    # === Arithmetic Operators ===
    PLUS = auto()           # +
    MINUS = auto()          # -
    STAR = auto()           # *
    SLASH = auto()          # /
    PERCENT = auto()        # %

    # === Increment/Decrement ===
    INCREMENT = auto()      # ++
    DECREMENT = auto()      # --

    # === Comparison Operators ===
    EQ = auto()             # ==
    NE = auto()             # !=
    LT = auto()             # <
    GT = auto()             # >
    LE = auto()             # <=
    GE = auto()             # >=

    # === Logical Operators ===
    AND = auto()            # &&
    OR = auto()             # ||
    NOT = auto()            # !

    # === Bitwise Operators ===
    AMPERSAND = auto()      # &
    PIPE = auto()           # |
    CARET = auto()          # ^
    TILDE = auto()          # ~
    LSHIFT = auto()         # <<
    RSHIFT = auto()         # >>

    # === Assignment and Member Access ===
    ASSIGN = auto()         # =
    ARROW = auto()          # ->
    DOT = auto()            # .

    # === Delimiters ===
    LPAREN = auto()         # (
    RPAREN = auto()         # )
    LBRACE = auto()         # {
    RBRACE = auto()         # }
    LBRACKET = auto()       # [
    RBRACKET = auto()       # ]
    SEMICOLON = auto()      # ;
    COMMA = auto()          # ,
    COLON = auto()          # :
    QUESTION = auto()       # ?


# =============================================================================
# Keyword Mapping
# =============================================================================

# Case-sensitive; anything not listed here is an identifier
KEYWORDS: dict[str, CTokenType] = {
    # Type specifiers
    "int": CTokenType.INT,
    "char": CTokenType.CHAR,
    "void": CTokenType.VOID,

    # Control flow
    "if": CTokenType.IF,
    "else": CTokenType.ELSE,
    "while": CTokenType.WHILE,
    "for": CTokenType.FOR,
    "return": CTokenType.RETURN,
    "break": CTokenType.BREAK,
    "continue": CTokenType.CONTINUE,
    "switch": CTokenType.SWITCH,
    "case": CTokenType.CASE,
    "default": CTokenType.DEFAULT,
    "goto": CTokenType.GOTO,

    # Declarations
    "struct": CTokenType.STRUCT,
    "union": CTokenType.UNION,
    "enum": CTokenType.ENUM,
    "typedef": CTokenType.TYPEDEF,
    "static": CTokenType.STATIC,
    "extern": CTokenType.EXTERN,
    "const": CTokenType.CONST,
    "volatile": CTokenType.VOLATILE,
    "sizeof": CTokenType.SIZEOF,
}

# Type keywords that may start a function or variable declaration
TYPE_KEYWORDS = frozenset({CTokenType.INT, CTokenType.CHAR, CTokenType.VOID})


# =============================================================================
# Token Data Class
# =============================================================================

@dataclass(frozen=True)
class CToken:
    """
    A single token from C source code.

    Attributes:
        type: The CTokenType classification
        value: The exact lexeme text (None for EOF)
        line: Line number in source (1-indexed)
        column: Column number in source (1-indexed)
        filename: Name of the source file
    """
    type: CTokenType
    value: Optional[str]
    line: int
    column: int
    filename: str = "<input>"

    def __repr__(self) -> str:
        if self.value is not None:
            return f"Token({self.type.name}, {self.value!r}, {self.line}:{self.column})"
        return f"Token({self.type.name}, {self.line}:{self.column})"

    @property
    def location(self) -> SourceLocation:
        """Return a SourceLocation for error reporting."""
        return SourceLocation(self.filename, self.line, self.column)

    def is_type_keyword(self) -> bool:
        """Return True if this token is int, char or void."""
        return self.type in TYPE_KEYWORDS


# =============================================================================
# Lexer Implementation
# =============================================================================

class CLexer:
    """
    Tokenizes minicc source code on demand.

    Usage:
        lexer = CLexer(source_text, filename)
        token = lexer.next_token()          # pull one token
        tokens = list(lexer.tokenize())     # or drain up to EOF

    Attributes:
        source: The source code being tokenized
        filename: Name of the source file (for error reporting)
    """

    # Characters that can start an identifier
    IDENT_START = string.ascii_letters + "_"

    # Characters that can continue an identifier
    IDENT_CHARS = string.ascii_letters + string.digits + "_"

    WHITESPACE = " \t\n\r\f\v"

    # Two-character operators, tried before the single-character table
    TWO_CHAR_OPERATORS = {
        "++": CTokenType.INCREMENT,
        "--": CTokenType.DECREMENT,
        "==": CTokenType.EQ,
        "!=": CTokenType.NE,
        "<=": CTokenType.LE,
        ">=": CTokenType.GE,
        "&&": CTokenType.AND,
        "||": CTokenType.OR,
        "<<": CTokenType.LSHIFT,
        ">>": CTokenType.RSHIFT,
        "->": CTokenType.ARROW,
    }

    SINGLE_CHAR_TOKENS = {
        "+": CTokenType.PLUS,
        "-": CTokenType.MINUS,
        "*": CTokenType.STAR,
        "/": CTokenType.SLASH,
        "%": CTokenType.PERCENT,
        "=": CTokenType.ASSIGN,
        "<": CTokenType.LT,
        ">": CTokenType.GT,
        "!": CTokenType.NOT,
        "&": CTokenType.AMPERSAND,
        "|": CTokenType.PIPE,
        "^": CTokenType.CARET,
        "~": CTokenType.TILDE,
        ";": CTokenType.SEMICOLON,
        ",": CTokenType.COMMA,
        ".": CTokenType.DOT,
        "?": CTokenType.QUESTION,
        ":": CTokenType.COLON,
        "(": CTokenType.LPAREN,
        ")": CTokenType.RPAREN,
        "{": CTokenType.LBRACE,
        "}": CTokenType.RBRACE,
        "[": CTokenType.LBRACKET,
        "]": CTokenType.RBRACKET,
    }

    def __init__(self, source: str, filename: str = "<input>"):
        """
        Initialize the lexer with source code.

        Args:
            source: The C source code to tokenize
            filename: Name of the source file (for error messages)
        """
        self.source = source
        self.filename = filename

        # Current position in source
        self._pos = 0
        self._line = 1
        self._column = 1

    def next_token(self) -> CToken:
        """
        Scan and return the next token.

        Returns an EOF token once the input is exhausted, and keeps
        returning one on every later call.
        """
        self._skip_whitespace_and_comments()

        if self._at_end():
            return self._make_token(CTokenType.EOF, None, self._line, self._column)

        return self._scan_token()

    def tokenize(self) -> Iterator[CToken]:
        """
        Generate tokens from the source code.

        Yields:
            Every token up to and including the first EOF token
        """
        while True:
            token = self.next_token()
            yield token
            if token.type == CTokenType.EOF:
                return

    # =========================================================================
    # Character Access Methods
    # =========================================================================

    def _at_end(self) -> bool:
        """Check if we've reached the end of source."""
        return self._pos >= len(self.source)

    def _peek(self, offset: int = 0) -> str:
        """
        Look at character at current position + offset without advancing.

        Returns empty string if past end of source.
        """
        pos = self._pos + offset
        if pos >= len(self.source):
            return ""
        return self.source[pos]

    def _advance(self) -> str:
        """Consume and return the current character, tracking line/column."""
        if self._at_end():
            return ""

        char = self.source[self._pos]
        self._pos += 1

        if char == "\n":
            self._line += 1
            self._column = 1
        else:
            self._column += 1

        return char

    def _make_token(
        self,
        token_type: CTokenType,
        value: Optional[str],
        start_line: int,
        start_column: int,
    ) -> CToken:
        return CToken(
            type=token_type,
            value=value,
            line=start_line,
            column=start_column,
            filename=self.filename,
        )

    # =========================================================================
    # Whitespace and Comment Handling
    # =========================================================================

    def _skip_whitespace_and_comments(self) -> None:
        """Skip all whitespace and comments."""
        while not self._at_end():
            char = self._peek()

            if char in self.WHITESPACE:
                self._advance()
                continue

            if char == "/" and self._peek(1) == "/":
                self._skip_single_line_comment()
                continue

            if char == "/" and self._peek(1) == "*":
                self._skip_multi_line_comment()
                continue

            break

    def _skip_single_line_comment(self) -> None:
        """Skip a single-line comment (// ...)."""
        self._advance()
        self._advance()

        while not self._at_end() and self._peek() != "\n":
            self._advance()

    def _skip_multi_line_comment(self) -> None:
        """
        Skip a multi-line comment (/* ... */).

        An unterminated comment consumes the rest of the input; the next
        token is then EOF.
        """
        start_line = self._line
        start_column = self._column

        self._advance()
        self._advance()

        while not self._at_end():
            if self._peek() == "*" and self._peek(1) == "/":
                self._advance()
                self._advance()
                return
            self._advance()

        logger.debug(
            f"{self.filename}:{start_line}:{start_column}: "
            f"block comment runs to end of input"
        )

    # =========================================================================
    # Token Scanning
    # =========================================================================

    def _scan_token(self) -> CToken:
        """Scan the next token from source."""
        start_line = self._line
        start_column = self._column

        char = self._peek()

        if char in self.IDENT_START:
            return self._scan_identifier(start_line, start_column)

        if char in string.digits:
            return self._scan_number(start_line, start_column)

        if char == '"':
            return self._scan_string(start_line, start_column)

        if char == "'":
            return self._scan_char(start_line, start_column)

        return self._scan_operator(start_line, start_column)

    def _scan_identifier(self, start_line: int, start_column: int) -> CToken:
        """
        Scan an identifier or keyword.

        Keywords are matched case-sensitively against KEYWORDS.
        """
        chars = []
        while self._peek() and self._peek() in self.IDENT_CHARS:
            chars.append(self._advance())

        name = "".join(chars)
        token_type = KEYWORDS.get(name, CTokenType.IDENTIFIER)
        return self._make_token(token_type, name, start_line, start_column)

    def _scan_number(self, start_line: int, start_column: int) -> CToken:
        """
        Scan a numeric literal.

        Digits, then optionally one '.' and more digits. The '.' is only
        taken when a digit follows it, so "1." is NUMBER then DOT and a
        second '.' always ends the number.
        """
        chars = []
        while self._peek() and self._peek() in string.digits:
            chars.append(self._advance())

        next_char = self._peek(1)
        if self._peek() == "." and next_char and next_char in string.digits:
            chars.append(self._advance())
            while self._peek() and self._peek() in string.digits:
                chars.append(self._advance())

        return self._make_token(CTokenType.NUMBER, "".join(chars), start_line, start_column)

    def _scan_string(self, start_line: int, start_column: int) -> CToken:
        """
        Scan a double-quoted string literal.

        A backslash takes the following character unconditionally; no
        escape is validated here. A missing closing quote reads to end of
        input.
        """
        chars = [self._advance()]  # opening "

        while not self._at_end() and self._peek() != '"':
            if self._peek() == "\\":
                chars.append(self._advance())
                if not self._at_end():
                    chars.append(self._advance())
            else:
                chars.append(self._advance())

        if self._peek() == '"':
            chars.append(self._advance())
        else:
            logger.debug(
                f"{self.filename}:{start_line}:{start_column}: "
                f"string literal runs to end of input"
            )

        return self._make_token(CTokenType.STRING, "".join(chars), start_line, start_column)

    def _scan_char(self, start_line: int, start_column: int) -> CToken:
        """
        Scan a single-quoted character literal.

        Reads one character (or a backslash and the character after it),
        then the closing quote if it is there.
        """
        chars = [self._advance()]  # opening '

        if self._peek() == "\\":
            chars.append(self._advance())
            if not self._at_end():
                chars.append(self._advance())
        elif not self._at_end():
            chars.append(self._advance())

        if self._peek() == "'":
            chars.append(self._advance())

        return self._make_token(CTokenType.CHAR_LITERAL, "".join(chars), start_line, start_column)

    def _scan_operator(self, start_line: int, start_column: int) -> CToken:
        """
        Scan an operator or delimiter.

        Two-character operators are checked first with explicit lookahead.
        Anything unrecognised becomes an ERROR token.
        """
        pair = self._peek() + self._peek(1)
        if pair in self.TWO_CHAR_OPERATORS:
            self._advance()
            self._advance()
            return self._make_token(self.TWO_CHAR_OPERATORS[pair], pair, start_line, start_column)

        char = self._advance()
        if char in self.SINGLE_CHAR_TOKENS:
            return self._make_token(self.SINGLE_CHAR_TOKENS[char], char, start_line, start_column)

        logger.debug(
            f"{self.filename}:{start_line}:{start_column}: "
            f"unknown character {char!r}"
        )
        return self._make_token(CTokenType.ERROR, char, start_line, start_column)
