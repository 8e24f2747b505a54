"""
minicc Abstract Syntax Tree (AST) Definitions
=============================================

This module defines the AST node types built by the parser and consumed
by the code generator.

Node Hierarchy
--------------
ASTNode (base)
├── ProgramNode - root, ordered top-level functions and declarations
├── FunctionNode - function definition
├── Statements
│   ├── BlockStatement - compound statement { ... }
│   ├── IfStatement - if/else statement
│   ├── WhileStatement - while loop
│   ├── ForStatement - for loop (every clause optional)
│   ├── ReturnStatement - return with optional value
│   └── Declaration - typed variable or parameter, optional initializer
└── Expressions
    ├── AssignmentExpression - identifier = expr (right-associative)
    ├── BinaryExpression - binary operators
    ├── UnaryExpression - prefix - and !
    ├── IdentifierExpression - variable reference
    ├── Literal - number, string or character constant
    └── CallExpression - function call

The set is closed: NODE_TYPES lists every concrete node, and both the
code generator and ASTPrinter fail loudly on anything else. An
expression may appear directly in a block as an expression statement.

Design Notes
------------
- All nodes are dataclasses; the tree is strictly owned (no node is
  shared between two parents).
- Each node stores its source location for error reporting. Locations
  are excluded from equality so structurally identical trees compare
  equal.
- Operators are Enum members whose values are the source spelling, and
  are validated when the node is built.
"""

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Optional

from minicc.errors import SourceLocation


# =============================================================================
# AST Node Base Classes
# =============================================================================

@dataclass
class ASTNode:
    """
    Base class for all AST nodes.

    Attributes:
        location: Source location where this node appears
    """
    location: SourceLocation = field(compare=False, repr=False)


@dataclass
class Expression(ASTNode):
    """Base class for nodes that evaluate to a value."""
    pass


@dataclass
class Statement(ASTNode):
    """Base class for nodes executed for their effect."""
    pass


# =============================================================================
# Operators
# =============================================================================

class BinaryOperator(Enum):
    """Binary operators, valued by their source spelling."""
    # Arithmetic
    ADD = "+"
    SUBTRACT = "-"
    MULTIPLY = "*"
    DIVIDE = "/"
    MODULO = "%"

    # Comparison
    EQUAL = "=="
    NOT_EQUAL = "!="
    LESS = "<"
    GREATER = ">"
    LESS_EQ = "<="
    GREATER_EQ = ">="

    # Logical (short-circuit)
    LOGICAL_AND = "&&"
    LOGICAL_OR = "||"


class UnaryOperator(Enum):
    """Prefix unary operators, valued by their source spelling."""
    NEGATE = "-"
    LOGICAL_NOT = "!"


class LiteralKind(Enum):
    """Kind of constant held by a Literal."""
    NUMBER = auto()
    STRING = auto()
    CHAR = auto()


# =============================================================================
# Program and Function
# =============================================================================

@dataclass
class ProgramNode(ASTNode):
    """
    Root node of the AST.

    Attributes:
        items: Top-level FunctionNode and Declaration nodes in source order
    """
    items: list[ASTNode] = field(default_factory=list)


@dataclass
class Declaration(Statement):
    """
    Variable declaration, local or top-level, or a function parameter.

    Represents:
        int x;
        int y = 10;

    Attributes:
        name: Variable name
        type_name: Type keyword spelling ("int", "char" or "void")
        initializer: Optional initialization expression (always None
            for parameters)
    """
    name: str = ""
    type_name: str = "int"
    initializer: Optional[Expression] = None


@dataclass
class FunctionNode(ASTNode):
    """
    Function definition.

    Attributes:
        name: Function name
        return_type: Return type keyword spelling
        params: Parameter declarations, leftmost first
        body: The function body
    """
    name: str = ""
    return_type: str = "int"
    params: list[Declaration] = field(default_factory=list)
    body: Optional["BlockStatement"] = None


# =============================================================================
# Statement Nodes
# =============================================================================

@dataclass
class BlockStatement(Statement):
    """
    Compound statement enclosed in braces.

    Attributes:
        statements: Statements, declarations and expression statements
            in source order
    """
    statements: list[ASTNode] = field(default_factory=list)


@dataclass
class IfStatement(Statement):
    """
    If statement with optional else clause.

    Attributes:
        condition: The condition expression
        then_branch: Statement executed if condition is non-zero
        else_branch: Optional statement executed otherwise
    """
    condition: Expression = None
    then_branch: ASTNode = None
    else_branch: Optional[ASTNode] = None


@dataclass
class WhileStatement(Statement):
    """
    While loop statement.

    Attributes:
        condition: Loop condition
        body: Loop body statement
    """
    condition: Expression = None
    body: ASTNode = None


@dataclass
class ForStatement(Statement):
    """
    For loop statement. Every clause is optional.

    Attributes:
        init: Declaration or expression run once before the loop
        condition: Loop condition (absent means loop forever)
        update: Expression evaluated after each iteration
        body: Loop body statement
    """
    init: Optional[ASTNode] = None
    condition: Optional[Expression] = None
    update: Optional[Expression] = None
    body: ASTNode = None


@dataclass
class ReturnStatement(Statement):
    """
    Return statement.

    Attributes:
        value: Returned expression, or None for a bare 'return;'
    """
    value: Optional[Expression] = None


# =============================================================================
# Expression Nodes
# =============================================================================

@dataclass
class AssignmentExpression(Expression):
    """
    Assignment (target = expr). Evaluates to the assigned value.

    Attributes:
        target: The variable being assigned
        expr: The value expression
    """
    target: "IdentifierExpression" = None
    expr: Expression = None


@dataclass
class BinaryExpression(Expression):
    """
    Binary operation expression (left op right).

    Attributes:
        operator: The binary operator (a BinaryOperator or its spelling)
        left: Left operand expression
        right: Right operand expression
    """
    operator: BinaryOperator = None
    left: Expression = None
    right: Expression = None

    def __post_init__(self):
        # Raises ValueError for anything outside the operator set
        self.operator = BinaryOperator(self.operator)


@dataclass
class UnaryExpression(Expression):
    """
    Prefix unary expression (op operand).

    Attributes:
        operator: The unary operator (a UnaryOperator or its spelling)
        operand: The operand expression
    """
    operator: UnaryOperator = None
    operand: Expression = None

    def __post_init__(self):
        self.operator = UnaryOperator(self.operator)


@dataclass
class IdentifierExpression(Expression):
    """Variable reference."""
    name: str = ""


@dataclass
class Literal(Expression):
    """
    Constant value.

    Attributes:
        text: The lexeme as written (quotes included for strings and chars)
        kind: Which kind of constant this is
    """
    text: str = ""
    kind: LiteralKind = LiteralKind.NUMBER


@dataclass
class CallExpression(Expression):
    """
    Function call.

    Attributes:
        name: Callee name
        args: Argument expressions, leftmost first
    """
    name: str = ""
    args: list[Expression] = field(default_factory=list)


# Every concrete node class; nothing else may appear in a tree
NODE_TYPES = (
    ProgramNode,
    FunctionNode,
    BlockStatement,
    IfStatement,
    WhileStatement,
    ForStatement,
    ReturnStatement,
    Declaration,
    AssignmentExpression,
    BinaryExpression,
    UnaryExpression,
    IdentifierExpression,
    Literal,
    CallExpression,
)


# =============================================================================
# AST Visitor Pattern
# =============================================================================

class ASTVisitor:
    """
    Base class for AST visitors.

    Dispatches to visit_<ClassName>; node types without a dedicated
    method fall back to generic_visit, which walks the children.

    Usage:
        class NameCollector(ASTVisitor):
            def __init__(self):
                self.names = []

            def visit_IdentifierExpression(self, node):
                self.names.append(node.name)

        collector = NameCollector()
        collector.visit(program)
    """

    def visit(self, node: ASTNode) -> Any:
        """Visit a node by dispatching to the matching visit method."""
        method_name = f"visit_{node.__class__.__name__}"
        visitor = getattr(self, method_name, self.generic_visit)
        return visitor(node)

    def generic_visit(self, node: ASTNode) -> None:
        """Visit all child nodes, in field order."""
        for field_value in node.__dict__.values():
            if isinstance(field_value, ASTNode):
                self.visit(field_value)
            elif isinstance(field_value, list):
                for item in field_value:
                    if isinstance(item, ASTNode):
                        self.visit(item)


# =============================================================================
# AST Pretty Printer
# =============================================================================

class ASTPrinter(ASTVisitor):
    """
    Pretty printer for AST debugging (used by ``mcc --ast``).

    Usage:
        printer = ASTPrinter()
        print(printer.print(ast))

    Example output:
        Program
          Function: int add(int a, int b)
            Block
              Return (a + b)
    """

    def __init__(self):
        self.output: list[str] = []
        self.indent_level = 0

    def print(self, node: ASTNode) -> str:
        """Print the AST and return it as a string."""
        self.output = []
        self.indent_level = 0
        self.visit(node)
        return "\n".join(self.output)

    def _emit(self, text: str) -> None:
        indent = "  " * self.indent_level
        self.output.append(f"{indent}{text}")

    def _indent(self) -> None:
        self.indent_level += 1

    def _dedent(self) -> None:
        self.indent_level = max(0, self.indent_level - 1)

    def _visit_indented(self, node: Optional[ASTNode]) -> None:
        self._indent()
        if node is not None:
            self.visit(node)
        self._dedent()

    def generic_visit(self, node: ASTNode) -> None:
        # Expressions used as statements land here
        if isinstance(node, Expression):
            self._emit(f"Expr: {self._expr_str(node)}")
        else:
            self._emit(f"<{type(node).__name__}>")

    def visit_ProgramNode(self, node: ProgramNode):
        self._emit("Program")
        self._indent()
        for item in node.items:
            self.visit(item)
        self._dedent()

    def visit_FunctionNode(self, node: FunctionNode):
        params = ", ".join(f"{p.type_name} {p.name}" for p in node.params)
        self._emit(f"Function: {node.return_type} {node.name}({params})")
        self._visit_indented(node.body)

    def visit_Declaration(self, node: Declaration):
        init = f" = {self._expr_str(node.initializer)}" if node.initializer else ""
        self._emit(f"Declaration: {node.type_name} {node.name}{init}")

    def visit_BlockStatement(self, node: BlockStatement):
        self._emit("Block")
        self._indent()
        for stmt in node.statements:
            self.visit(stmt)
        self._dedent()

    def visit_IfStatement(self, node: IfStatement):
        self._emit(f"If ({self._expr_str(node.condition)})")
        self._indent()
        self._emit("Then:")
        self._visit_indented(node.then_branch)
        if node.else_branch:
            self._emit("Else:")
            self._visit_indented(node.else_branch)
        self._dedent()

    def visit_WhileStatement(self, node: WhileStatement):
        self._emit(f"While ({self._expr_str(node.condition)})")
        self._visit_indented(node.body)

    def visit_ForStatement(self, node: ForStatement):
        if isinstance(node.init, Declaration):
            init = f"{node.init.type_name} {node.init.name}"
            if node.init.initializer:
                init += f" = {self._expr_str(node.init.initializer)}"
        else:
            init = self._expr_str(node.init)
        cond = self._expr_str(node.condition)
        update = self._expr_str(node.update)
        self._emit(f"For ({init}; {cond}; {update})")
        self._visit_indented(node.body)

    def visit_ReturnStatement(self, node: ReturnStatement):
        if node.value:
            self._emit(f"Return {self._expr_str(node.value)}")
        else:
            self._emit("Return")

    def _expr_str(self, expr: Optional[ASTNode]) -> str:
        """Convert an expression to a compact, fully parenthesized string."""
        if expr is None:
            return ""
        if isinstance(expr, Literal):
            return expr.text
        if isinstance(expr, IdentifierExpression):
            return expr.name
        if isinstance(expr, BinaryExpression):
            return f"({self._expr_str(expr.left)} {expr.operator.value} {self._expr_str(expr.right)})"
        if isinstance(expr, UnaryExpression):
            return f"({expr.operator.value}{self._expr_str(expr.operand)})"
        if isinstance(expr, AssignmentExpression):
            return f"({self._expr_str(expr.target)} = {self._expr_str(expr.expr)})"
        if isinstance(expr, CallExpression):
            args = ", ".join(self._expr_str(a) for a in expr.args)
            return f"{expr.name}({args})"
        return f"<{type(expr).__name__}>"
