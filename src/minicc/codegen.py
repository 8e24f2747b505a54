"""
x86 Code Generator for minicc
=============================

This module generates AT&T-syntax x86 assembly text from the minicc AST
in a single top-down walk.

Code Generation Strategy
------------------------
The generator uses a simple stack-machine evaluation model:

1. Every expression leaves its result in %eax (the accumulator)
2. For binary operations the left operand is pushed, the right operand
   is evaluated into %eax, moved to %ebx, and the left value is popped
   back into %eax
3. Variables live in 4-byte slots addressed relative to %rbp
4. Conditions are tested with ``cmpl $0, %eax``; zero is false

Register Usage
--------------
| Register | Usage                                      |
|----------|--------------------------------------------|
| %eax     | Expression results, function return value  |
| %ebx     | Right operand of a binary operation        |
| %edx     | Remainder after idivl                      |
| %rbp     | Frame pointer                              |
| %rsp     | Stack pointer                              |

Stack Frame Layout
------------------
Each function gets a fresh StackFrame:

    +----------------+
    | Argument 2     |  +12(%rbp)
    | Argument 1     |  +8(%rbp)   (pushed last by the caller)
    +----------------+
    | Return/saved   |
    +----------------+ <- %rbp
    | Local 1        |  -4(%rbp)
    | Local 2        |  -8(%rbp)
    | ...            |
    +----------------+ <- %rsp during the body

Arguments are pushed right-to-left, so the first argument is closest to
the frame base. The caller removes its arguments after the call.

Labels
------
Control flow labels are ``.L<n>`` from one counter per generator
instance, shared by every function. Pooled string literals are labelled
``.LC<n>`` from a separate counter.

Example output:
    .section .text
    .globl main
    main:
        pushq %rbp
        movq %rsp, %rbp
        movl $42, %eax
        leave
        ret
        leave
        ret
    .section .data
"""

import logging
from typing import Optional

from minicc.errors import (
    CCodeGenError,
    InternalCompilerError,
    UnsupportedFeatureError,
)
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


# =============================================================================
# Stack Frame
# =============================================================================

class StackFrame:
    """
    Symbol table for one function: variable name -> offset from %rbp.

    Parameters get increasing positive offsets from PARAM_BASE, locals get
    decreasing negative offsets in declaration order. Redeclaring a name
    binds it to a new slot; the newest binding wins.
    """

    SLOT_SIZE = 4
    PARAM_BASE = 8

    def __init__(self, function_name: str):
        self.function_name = function_name
        self._offsets: dict[str, int] = {}
        self._next_param = self.PARAM_BASE
        self._local_size = 0

    def bind_param(self, name: str) -> int:
        """Bind a parameter to the next argument slot and return its offset."""
        offset = self._next_param
        self._next_param += self.SLOT_SIZE
        self._offsets[name] = offset
        return offset

    def declare_local(self, name: str) -> int:
        """Allocate a new local slot below the frame base and return its offset."""
        if name in self._offsets:
            logger.debug(f"{self.function_name}: '{name}' shadows an earlier binding")
        self._local_size += self.SLOT_SIZE
        offset = -self._local_size
        self._offsets[name] = offset
        return offset

    def lookup(self, name: str) -> Optional[int]:
        """Return the offset bound to name, or None if it was never declared."""
        return self._offsets.get(name)

    @property
    def local_size(self) -> int:
        """Bytes of local storage allocated so far."""
        return self._local_size

    def __contains__(self, name: str) -> bool:
        return name in self._offsets


# Comparison operator -> setcc instruction
SET_INSTRUCTIONS = {
    BinaryOperator.LESS: "setl",
    BinaryOperator.GREATER: "setg",
    BinaryOperator.EQUAL: "sete",
    BinaryOperator.NOT_EQUAL: "setne",
    BinaryOperator.LESS_EQ: "setle",
    BinaryOperator.GREATER_EQ: "setge",
}

ARITHMETIC_INSTRUCTIONS = {
    BinaryOperator.ADD: "addl",
    BinaryOperator.SUBTRACT: "subl",
    BinaryOperator.MULTIPLY: "imull",
}

# Character escape -> code point
CHAR_ESCAPES = {
    "n": 10,
    "t": 9,
    "r": 13,
    "0": 0,
    "\\": 92,
    "'": 39,
    '"': 34,
}


# =============================================================================
# Code Generator
# =============================================================================

class CodeGenerator:
    """
    Generates x86 assembly from a minicc AST.

    Expects a tree from a parse with no errors. A missing child node or an
    unbound variable means the parser's contract was broken, and stops
    generation with InternalCompilerError.

    A generator instance owns its label counters; use a fresh instance
    per compilation for reproducible output.

    Attributes:
        emit_comments: Emit a comment line ahead of each function
        warnings: Non-fatal messages produced during generation
    """

    def __init__(self, emit_comments: bool = False):
        self.emit_comments = emit_comments
        self.warnings: list[str] = []

        # Assembly output lines
        self._output: list[str] = []

        # Label generation
        self._label_counter: int = 0

        # String literal pool: literal body -> label
        self._strings: dict[str, str] = {}

    def generate(self, program: ProgramNode) -> str:
        """
        Generate assembly code from AST.

        Args:
            program: The root AST node

        Returns:
            Complete assembly text, newline terminated
        """
        self._output = []

        self._emit(".section .text")
        for item in program.items:
            if isinstance(item, FunctionNode):
                self._generate_function(item)
            elif isinstance(item, Declaration):
                message = f"global variable '{item.name}' ignored: global storage is not supported"
                logger.warning(f"{item.location}: {message}")
                self.warnings.append(f"{item.location}: warning: {message}")
            else:
                raise InternalCompilerError(
                    f"unexpected top-level node {type(item).__name__}",
                    location=item.location,
                )

        self._emit(".section .data")
        self._emit_strings()

        return "\n".join(self._output) + "\n"

    # =========================================================================
    # Assembly Output Methods
    # =========================================================================

    def _emit(self, line: str = "") -> None:
        """Emit a line of assembly."""
        self._output.append(line)

    def _emit_label(self, label: str) -> None:
        """Emit a label definition."""
        self._emit(f"{label}:")

    def _emit_instruction(self, mnemonic: str, operands: str = "") -> None:
        """Emit an instruction with optional operands."""
        if operands:
            self._emit(f"    {mnemonic} {operands}")
        else:
            self._emit(f"    {mnemonic}")

    def _new_label(self) -> str:
        """Generate a unique label."""
        label = f".L{self._label_counter}"
        self._label_counter += 1
        return label

    def _emit_strings(self) -> None:
        """Emit the string literal pool."""
        for body, label in self._strings.items():
            self._emit_label(label)
            self._emit_instruction(".string", f'"{body}"')

    # =========================================================================
    # Functions
    # =========================================================================

    def _generate_function(self, func: FunctionNode) -> None:
        """
        Generate a function: prologue, body, epilogue.

        The epilogue is always emitted, even when every path through the
        body already returned.
        """
        if func.body is None:
            raise InternalCompilerError(
                f"function '{func.name}' has no body",
                location=func.location,
            )

        logger.debug(f"generating function {func.name}")

        frame = StackFrame(func.name)
        for param in func.params:
            frame.bind_param(param.name)

        if self.emit_comments:
            params = ", ".join(f"{p.type_name} {p.name}" for p in func.params)
            self._emit(f"# function {func.return_type} {func.name}({params})")

        self._emit(f".globl {func.name}")
        self._emit_label(func.name)
        self._emit_instruction("pushq", "%rbp")
        self._emit_instruction("movq", "%rsp, %rbp")

        # Locals are only known once the body is generated
        reserve_at = len(self._output)
        self._generate_block(func.body, frame)
        if frame.local_size:
            frame_size = (frame.local_size + 15) // 16 * 16
            self._output.insert(reserve_at, f"    subq ${frame_size}, %rsp")

        self._emit_instruction("leave")
        self._emit_instruction("ret")

    # =========================================================================
    # Statements
    # =========================================================================

    def _generate_block(self, block: BlockStatement, frame: StackFrame) -> None:
        """Generate code for a block statement."""
        for stmt in block.statements:
            self._generate_statement(stmt, frame)

    def _generate_statement(self, stmt: ASTNode, frame: StackFrame) -> None:
        """Generate code for any statement."""
        if stmt is None:
            raise InternalCompilerError(f"missing statement in function '{frame.function_name}'")

        if isinstance(stmt, BlockStatement):
            self._generate_block(stmt, frame)
        elif isinstance(stmt, Declaration):
            self._generate_declaration(stmt, frame)
        elif isinstance(stmt, IfStatement):
            self._generate_if(stmt, frame)
        elif isinstance(stmt, WhileStatement):
            self._generate_while(stmt, frame)
        elif isinstance(stmt, ForStatement):
            self._generate_for(stmt, frame)
        elif isinstance(stmt, ReturnStatement):
            self._generate_return(stmt, frame)
        elif isinstance(stmt, Expression):
            self._generate_expression(stmt, frame)
        else:
            raise InternalCompilerError(
                f"unexpected statement node {type(stmt).__name__}",
                location=stmt.location,
            )

    def _generate_declaration(self, decl: Declaration, frame: StackFrame) -> None:
        """Allocate a slot for a local and store its initializer, if any."""
        offset = frame.declare_local(decl.name)
        if decl.initializer is not None:
            self._generate_expression(decl.initializer, frame)
            self._emit_instruction("movl", f"%eax, {offset}(%rbp)")

    def _generate_if(self, stmt: IfStatement, frame: StackFrame) -> None:
        """Generate code for if statement."""
        else_label = self._new_label()
        end_label = self._new_label()

        self._generate_expression(stmt.condition, frame)
        self._emit_instruction("cmpl", "$0, %eax")
        self._emit_instruction("je", else_label)

        self._generate_statement(stmt.then_branch, frame)
        self._emit_instruction("jmp", end_label)

        self._emit_label(else_label)
        if stmt.else_branch is not None:
            self._generate_statement(stmt.else_branch, frame)
        self._emit_label(end_label)

    def _generate_while(self, stmt: WhileStatement, frame: StackFrame) -> None:
        """Generate code for while statement."""
        top_label = self._new_label()
        exit_label = self._new_label()

        self._emit_label(top_label)
        self._generate_expression(stmt.condition, frame)
        self._emit_instruction("cmpl", "$0, %eax")
        self._emit_instruction("je", exit_label)

        self._generate_statement(stmt.body, frame)
        self._emit_instruction("jmp", top_label)
        self._emit_label(exit_label)

    def _generate_for(self, stmt: ForStatement, frame: StackFrame) -> None:
        """
        Generate code for for statement.

        An absent condition loops until a return leaves the function.
        """
        top_label = self._new_label()
        end_label = self._new_label()

        if stmt.init is not None:
            self._generate_statement(stmt.init, frame)

        self._emit_label(top_label)

        if stmt.condition is not None:
            self._generate_expression(stmt.condition, frame)
            self._emit_instruction("cmpl", "$0, %eax")
            self._emit_instruction("je", end_label)

        self._generate_statement(stmt.body, frame)

        if stmt.update is not None:
            self._generate_expression(stmt.update, frame)

        self._emit_instruction("jmp", top_label)
        self._emit_label(end_label)

    def _generate_return(self, stmt: ReturnStatement, frame: StackFrame) -> None:
        """Generate code for return statement."""
        if stmt.value is not None:
            self._generate_expression(stmt.value, frame)
        self._emit_instruction("leave")
        self._emit_instruction("ret")

    # =========================================================================
    # Expressions
    # =========================================================================

    def _generate_expression(self, expr: Expression, frame: StackFrame) -> None:
        """Generate code for an expression, leaving the result in %eax."""
        if expr is None:
            raise InternalCompilerError(f"missing expression in function '{frame.function_name}'")

        if isinstance(expr, Literal):
            self._generate_literal(expr)
        elif isinstance(expr, IdentifierExpression):
            offset = self._lookup(expr, frame)
            self._emit_instruction("movl", f"{offset}(%rbp), %eax")
        elif isinstance(expr, AssignmentExpression):
            self._generate_assignment(expr, frame)
        elif isinstance(expr, BinaryExpression):
            self._generate_binary(expr, frame)
        elif isinstance(expr, UnaryExpression):
            self._generate_unary(expr, frame)
        elif isinstance(expr, CallExpression):
            self._generate_call(expr, frame)
        else:
            raise InternalCompilerError(
                f"unexpected expression node {type(expr).__name__}",
                location=expr.location,
            )

    def _lookup(self, ident: IdentifierExpression, frame: StackFrame) -> int:
        offset = frame.lookup(ident.name)
        if offset is None:
            raise InternalCompilerError(
                f"undeclared variable '{ident.name}' in function '{frame.function_name}'",
                location=ident.location,
            )
        return offset

    def _generate_literal(self, lit: Literal) -> None:
        """Load a constant into %eax."""
        if lit.kind == LiteralKind.NUMBER:
            if "." in lit.text:
                raise UnsupportedFeatureError(
                    "floating-point literal",
                    location=lit.location,
                    alternative="use an integer constant",
                )
            self._emit_instruction("movl", f"${lit.text}, %eax")
        elif lit.kind == LiteralKind.CHAR:
            self._emit_instruction("movl", f"${self._char_value(lit)}, %eax")
        else:
            self._emit_instruction("movl", f"${self._pool_string(lit)}, %eax")

    def _char_value(self, lit: Literal) -> int:
        """Decode a character literal lexeme to its code point."""
        body = lit.text[1:]
        if body.endswith("'") and body != "'":
            body = body[:-1]
        elif body == "'":
            body = ""

        if not body:
            raise CCodeGenError("empty character constant", location=lit.location)
        if body[0] == "\\" and len(body) > 1:
            return CHAR_ESCAPES.get(body[1], ord(body[1]))
        return ord(body[0])

    def _pool_string(self, lit: Literal) -> str:
        """Return the data label for a string literal, adding it to the pool."""
        body = lit.text[1:]
        if body.endswith('"'):
            # A quote after an odd run of backslashes is escaped, not closing
            stripped = body[:-1]
            if (len(stripped) - len(stripped.rstrip("\\"))) % 2 == 0:
                body = stripped

        if body not in self._strings:
            self._strings[body] = f".LC{len(self._strings)}"
        return self._strings[body]

    def _generate_assignment(self, expr: AssignmentExpression, frame: StackFrame) -> None:
        """Evaluate the value and store it; the value stays in %eax."""
        self._generate_expression(expr.expr, frame)
        offset = self._lookup(expr.target, frame)
        self._emit_instruction("movl", f"%eax, {offset}(%rbp)")

    def _generate_binary(self, expr: BinaryExpression, frame: StackFrame) -> None:
        """Generate code for binary expression."""
        op = expr.operator

        if op == BinaryOperator.LOGICAL_AND:
            self._generate_logical_and(expr, frame)
            return
        if op == BinaryOperator.LOGICAL_OR:
            self._generate_logical_or(expr, frame)
            return

        # Left operand saved on the stack while the right is evaluated
        self._generate_expression(expr.left, frame)
        self._emit_instruction("pushl", "%eax")
        self._generate_expression(expr.right, frame)
        self._emit_instruction("movl", "%eax, %ebx")
        self._emit_instruction("popl", "%eax")

        if op in ARITHMETIC_INSTRUCTIONS:
            self._emit_instruction(ARITHMETIC_INSTRUCTIONS[op], "%ebx, %eax")
        elif op == BinaryOperator.DIVIDE:
            self._emit_instruction("cltd")
            self._emit_instruction("idivl", "%ebx")
        elif op == BinaryOperator.MODULO:
            self._emit_instruction("cltd")
            self._emit_instruction("idivl", "%ebx")
            self._emit_instruction("movl", "%edx, %eax")
        elif op in SET_INSTRUCTIONS:
            self._emit_instruction("cmpl", "%ebx, %eax")
            self._emit_instruction(SET_INSTRUCTIONS[op], "%al")
            self._emit_instruction("movzbl", "%al, %eax")
        else:
            raise InternalCompilerError(f"unhandled binary operator {op.value}", location=expr.location)

    def _generate_logical_and(self, expr: BinaryExpression, frame: StackFrame) -> None:
        """Generate short-circuit logical AND; the right side runs only if the left is true."""
        false_label = self._new_label()
        end_label = self._new_label()

        self._generate_expression(expr.left, frame)
        self._emit_instruction("cmpl", "$0, %eax")
        self._emit_instruction("je", false_label)

        self._generate_expression(expr.right, frame)
        self._emit_instruction("cmpl", "$0, %eax")
        self._emit_instruction("je", false_label)

        self._emit_instruction("movl", "$1, %eax")
        self._emit_instruction("jmp", end_label)

        self._emit_label(false_label)
        self._emit_instruction("movl", "$0, %eax")
        self._emit_label(end_label)

    def _generate_logical_or(self, expr: BinaryExpression, frame: StackFrame) -> None:
        """Generate short-circuit logical OR; the right side runs only if the left is false."""
        true_label = self._new_label()
        end_label = self._new_label()

        self._generate_expression(expr.left, frame)
        self._emit_instruction("cmpl", "$0, %eax")
        self._emit_instruction("jne", true_label)

        self._generate_expression(expr.right, frame)
        self._emit_instruction("cmpl", "$0, %eax")
        self._emit_instruction("jne", true_label)

        self._emit_instruction("movl", "$0, %eax")
        self._emit_instruction("jmp", end_label)

        self._emit_label(true_label)
        self._emit_instruction("movl", "$1, %eax")
        self._emit_label(end_label)

    def _generate_unary(self, expr: UnaryExpression, frame: StackFrame) -> None:
        """Generate code for unary expression."""
        self._generate_expression(expr.operand, frame)

        if expr.operator == UnaryOperator.NEGATE:
            self._emit_instruction("negl", "%eax")
        else:
            self._emit_instruction("cmpl", "$0, %eax")
            self._emit_instruction("sete", "%al")
            self._emit_instruction("movzbl", "%al, %eax")

    def _generate_call(self, expr: CallExpression, frame: StackFrame) -> None:
        """
        Generate code for function call.

        Arguments are pushed right-to-left; the caller pops them after
        the call returns.
        """
        for arg in reversed(expr.args):
            self._generate_expression(arg, frame)
            self._emit_instruction("pushl", "%eax")

        self._emit_instruction("call", expr.name)

        if expr.args:
            self._emit_instruction("addl", f"${StackFrame.SLOT_SIZE * len(expr.args)}, %esp")


# =============================================================================
# Convenience Functions
# =============================================================================

def generate_assembly(program: ProgramNode, emit_comments: bool = False) -> str:
    """Generate assembly for a program with a fresh CodeGenerator."""
    return CodeGenerator(emit_comments=emit_comments).generate(program)
