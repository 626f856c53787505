"""
Abstract Syntax Tree (AST) node definitions for MinJ.

The parser produces these nodes; the interpreter walks them. Literal nodes
keep the raw token text so that the evaluator owns literal decoding.
"""

from dataclasses import dataclass, field
from typing import Optional, List, Union, Any
from abc import ABC
from .tokens import SourceSpan, TokenType


# =============================================================================
# Base Classes
# =============================================================================

@dataclass
class AstNode(ABC):
    """Base class for all AST nodes."""
    span: SourceSpan  # Source location for error reporting

    def accept(self, visitor: "AstVisitor") -> Any:
        """Accept a visitor for traversal."""
        method_name = f"visit_{self.__class__.__name__}"
        method = getattr(visitor, method_name, visitor.generic_visit)
        return method(self)


class AstVisitor(ABC):
    """Base class for AST visitors."""

    def generic_visit(self, node: AstNode) -> Any:
        """Default visit method."""
        raise NotImplementedError(f"No visitor for {node.__class__.__name__}")


# =============================================================================
# Expression Nodes
# =============================================================================

@dataclass
class Expression(AstNode):
    """Base class for all expressions."""
    pass


@dataclass
class Literal(Expression):
    """A literal token; `text` is the raw source text."""
    text: str
    literal_type: TokenType  # INT_LITERAL, FLOAT_LITERAL, DOUBLE_LITERAL, ...


@dataclass
class Identifier(Expression):
    """A variable reference."""
    name: str


@dataclass
class ThisExpr(Expression):
    """The receiver inside a method body."""
    pass


@dataclass
class BinaryOp(Expression):
    """A binary operation (e.g., a + b, x and y)."""
    left: Expression
    operator: TokenType
    right: Expression


@dataclass
class UnaryOp(Expression):
    """A unary operation (e.g., not x, -n)."""
    operator: TokenType
    operand: Expression


@dataclass
class FunctionCall(Expression):
    """A call of a global function or builtin (e.g., fib(10))."""
    name: str
    arguments: List[Expression]


@dataclass
class MethodCall(Expression):
    """A method call on a receiver (e.g., counter.inc(1))."""
    object: Expression
    method: str
    arguments: List[Expression]


@dataclass
class MemberAccess(Expression):
    """Field access (e.g., p.x)."""
    object: Expression
    member: str


@dataclass
class ListLiteral(Expression):
    """A list literal (e.g., [1, 2, 3])."""
    elements: List[Expression]


@dataclass
class NewExpr(Expression):
    """Object construction (e.g., new Point())."""
    class_name: str


# =============================================================================
# Statement Nodes
# =============================================================================

@dataclass
class Statement(AstNode):
    """Base class for all statements."""
    pass


@dataclass
class VarDecl(Statement):
    """A declaration of one or more names.

    Syntax options:
        var x = 42              # dynamic, mutable
        val x = 42              # immutable, type inferred
        var int x = 42          # static, mutable
        int x                   # static, default-initialized
        var a, b = pair()       # multi-value bind
    """
    names: List[str]
    type_name: Optional[str]            # 'int', 'double', ... or None
    initializers: List[Expression] = field(default_factory=list)
    mutable: bool = True
    keyword: Optional[str] = None       # 'var', 'val' or None

    @property
    def is_dynamic(self) -> bool:
        """Untyped `var` declarations re-infer their type on every write."""
        return self.keyword == "var" and self.type_name is None


@dataclass
class Assignment(Statement):
    """Reassignment of one or more existing names (x = 1; a, b = f())."""
    names: List[str]
    values: List[Expression]


@dataclass
class FieldAssignment(Statement):
    """Assignment to an object field (p.x = 1)."""
    target: MemberAccess
    value: Expression


@dataclass
class ReturnStatement(Statement):
    """return [expr, ...]"""
    values: List[Expression] = field(default_factory=list)


@dataclass
class Block(AstNode):
    """A sequence of statements."""
    statements: List[Statement] = field(default_factory=list)


@dataclass
class ElifBranch(AstNode):
    """An elif branch of an if statement."""
    condition: Expression
    body: Block


@dataclass
class IfStatement(Statement):
    """if/elif/else chain closed by a single `end`."""
    condition: Expression
    then_branch: Block
    elif_branches: List[ElifBranch] = field(default_factory=list)
    else_branch: Optional[Block] = None


@dataclass
class WhileStatement(Statement):
    """while cond do: ... end"""
    condition: Expression
    body: Block


@dataclass
class ForStatement(Statement):
    """Counted loop.

    Syntax:
        for i = 1 to 10 do: ... end
        for var i = 0 to n step i = i + 2 do: ... end
        for double x = 0.5 to 3 step 0.5 do: ... end
    """
    variable: str
    start: Expression
    end: Expression
    body: Block
    declaration: Optional[VarDecl] = None       # explicit `var`/`val`/typed head
    step: Optional[Expression] = None           # increment expression
    step_assignment: Optional[Assignment] = None  # `step i = ...` form


@dataclass
class ForeachStatement(Statement):
    """foreach x in list do: ... end"""
    variable: str
    iterable: Expression
    body: Block


@dataclass
class ExpressionStatement(Statement):
    """A call used as a statement."""
    expression: Expression


# =============================================================================
# Declarations
# =============================================================================

@dataclass
class MethodDecl(AstNode):
    """A method: global when declared at top level, private when in a class."""
    name: str
    parameters: List[str]
    body: Block


@dataclass
class ClassDecl(AstNode):
    """A class: fields (VarDecl), methods and static-block statements in source order."""
    name: str
    members: List[Union[VarDecl, MethodDecl, Statement]] = field(default_factory=list)

    @property
    def fields(self) -> List[VarDecl]:
        return [m for m in self.members if isinstance(m, VarDecl)]

    @property
    def methods(self) -> List[MethodDecl]:
        return [m for m in self.members if isinstance(m, MethodDecl)]


@dataclass
class Program(AstNode):
    """A complete program: top-level declarations in source order."""
    declarations: List[Union[ClassDecl, MethodDecl, Statement]] = field(default_factory=list)

    @property
    def classes(self) -> List[ClassDecl]:
        return [d for d in self.declarations if isinstance(d, ClassDecl)]

    @property
    def methods(self) -> List[MethodDecl]:
        return [d for d in self.declarations if isinstance(d, MethodDecl)]

    @property
    def statements(self) -> List[Statement]:
        return [d for d in self.declarations
                if not isinstance(d, (ClassDecl, MethodDecl))]


# =============================================================================
# Visitor Helpers
# =============================================================================

class PrintVisitor(AstVisitor):
    """Debug visitor that prints the AST structure."""

    def __init__(self, indent: int = 0, out=None):
        self.indent = indent
        self.out = out

    def _print(self, text: str) -> None:
        print("  " * self.indent + text, file=self.out)

    def generic_visit(self, node: AstNode) -> None:
        self._print(f"{node.__class__.__name__}")
        for name, value in node.__dict__.items():
            if name == "span":
                continue
            if isinstance(value, AstNode):
                self._print(f"  {name}:")
                value.accept(PrintVisitor(self.indent + 2, self.out))
            elif isinstance(value, list):
                self._print(f"  {name}: [")
                for item in value:
                    if isinstance(item, AstNode):
                        item.accept(PrintVisitor(self.indent + 2, self.out))
                    else:
                        self._print(f"    {item!r}")
                self._print("  ]")
            elif isinstance(value, TokenType):
                self._print(f"  {name}: {value.name}")
            else:
                self._print(f"  {name}: {value!r}")


def print_ast(node: AstNode, out=None) -> None:
    """Print an AST node for debugging."""
    node.accept(PrintVisitor(out=out))
