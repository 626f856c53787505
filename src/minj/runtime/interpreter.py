"""
Tree-walking interpreter for MinJ.

Walks the syntax tree produced by the parser. All mutable state lives in
the ExecutionContext that is threaded through every call.
"""

import logging
import math
from typing import List, Optional, TextIO

from .values import (
    Value, Tag, VOID, TYPE_TAGS,
    int_val, float_val, double_val, bool_val, string_val, list_val,
    multi_val, object_val, decode_literal, default_value, to_display,
    values_equal, java_div, java_rem,
)
from .context import Cell, ExecutionContext, create_context
from .objects import ClassDef, MethodHandle
from .builtins import call_builtin

from ..ast import (
    AstNode, Program, ClassDecl, MethodDecl,
    Statement, VarDecl, Assignment, FieldAssignment, ReturnStatement,
    IfStatement, WhileStatement, ForStatement, ForeachStatement,
    ExpressionStatement, Block,
    Expression, Literal, Identifier, ThisExpr, BinaryOp, UnaryOp,
    FunctionCall, MethodCall, MemberAccess, ListLiteral, NewExpr,
)
from ..config import InterpreterConfig
from ..errors import (
    MinjError,
    error_undefined_variable,
    error_expected_type,
    error_arity_mismatch,
    error_unknown_callable,
    error_not_iterable,
    error_bad_operand,
    error_bad_operands,
    error_division_by_zero,
)
from ..tokens import SourceSpan, TokenType

logger = logging.getLogger(__name__)


OPERATOR_TEXT = {
    TokenType.PLUS: "+",
    TokenType.MINUS: "-",
    TokenType.STAR: "*",
    TokenType.SLASH: "/",
    TokenType.PERCENT: "%",
    TokenType.LT: "<",
    TokenType.GT: ">",
    TokenType.LE: "<=",
    TokenType.GE: ">=",
    TokenType.EQ: "==",
    TokenType.NE: "!=",
    TokenType.AND: "and",
    TokenType.OR: "or",
    TokenType.XOR: "xor",
    TokenType.NOT: "not",
}

_COMPARISONS = {
    TokenType.LT: lambda a, b: a < b,
    TokenType.GT: lambda a, b: a > b,
    TokenType.LE: lambda a, b: a <= b,
    TokenType.GE: lambda a, b: a >= b,
}

_LOGICAL = {
    TokenType.AND: lambda a, b: a and b,
    TokenType.OR: lambda a, b: a or b,
    TokenType.XOR: lambda a, b: a != b,
}


class ReturnSignal(Exception):
    """Unwinds a method body; caught only by Interpreter.invoke."""

    def __init__(self, values: List[Value]):
        super().__init__("return")
        self.values = values


def _float_div(x: float, y: float) -> float:
    if y == 0.0:
        if x == 0.0 or math.isnan(x):
            return math.nan
        return math.copysign(math.inf, x) * math.copysign(1.0, y)
    return x / y


def _float_rem(x: float, y: float) -> float:
    if y == 0.0 or math.isinf(x) or math.isnan(x) or math.isnan(y):
        return math.nan
    if math.isinf(y):
        return x
    return math.fmod(x, y)


class Interpreter:
    """
    Tree-walking interpreter for MinJ programs.

    Evaluates AST nodes by dispatching to type-specific methods.
    """

    def __init__(self, config: InterpreterConfig = None,
                 stdout: TextIO = None, stdin: TextIO = None):
        """
        Initialize the interpreter.

        Args:
            config: Interpreter settings (defaults when omitted)
            stdout: Stream for print (default sys.stdout)
            stdin: Stream for input (default sys.stdin)
        """
        self.config = config or InterpreterConfig()
        self.stdout = stdout
        self.stdin = stdin

    def execute(self, program: Program, source: str = "") -> ExecutionContext:
        """
        Run a program to completion.

        Args:
            program: The parsed program
            source: Original source code for error messages

        Returns:
            The final interpreter state

        Raises:
            MinjRuntimeError: On the first runtime failure
        """
        ctx = create_context(source, self.stdout, self.stdin, self.config.trace_calls)
        logger.debug("program start: %d declaration(s)", len(program.declarations))

        try:
            for decl in program.declarations:
                self._execute_declaration(decl, ctx)
        except MinjError as e:
            self._attach_source(e, ctx)
            raise

        logger.debug("program finished: %d global(s), %d class(es)",
                     len(ctx.globals), len(ctx.classes))
        return ctx

    def _attach_source(self, error: MinjError, ctx: ExecutionContext) -> None:
        diag = error.diagnostic
        if diag.source_line is None and diag.span is not None:
            diag.source_line = ctx.get_source_line(diag.span.start.line)

    # =========================================================================
    # Declarations
    # =========================================================================

    def _execute_declaration(self, decl: AstNode, ctx: ExecutionContext) -> None:
        if isinstance(decl, ClassDecl):
            self._register_class(decl, ctx)
        elif isinstance(decl, MethodDecl):
            ctx.methods[decl.name] = MethodHandle(decl)
            logger.debug("registered method %s/%d", decl.name, len(decl.parameters))
        else:
            self._execute_statement(decl, ctx)

    def _register_class(self, decl: ClassDecl, ctx: ExecutionContext) -> None:
        """Build the class template; static blocks run once, here."""
        class_def = ClassDef(decl.name)
        ctx.classes.register(class_def)

        for member in decl.members:
            if isinstance(member, VarDecl):
                self._execute_var_decl(member, ctx, target=class_def.fields)
            elif isinstance(member, MethodDecl):
                class_def.add_method(member)
            else:
                self._execute_statement(member, ctx)

        logger.debug("registered class %s: %d field(s), %d method(s)",
                     decl.name, len(class_def.fields), len(class_def.methods))

    # =========================================================================
    # Invocation
    # =========================================================================

    def invoke(self, handle: MethodHandle, args: List[Value], receiver: Optional[Value],
               ctx: ExecutionContext, span: Optional[SourceSpan] = None) -> Value:
        """
        Call a method with evaluated arguments.

        Zero returned values give Void, one gives that value and two or
        more give a multi-value list.
        """
        if len(args) != handle.arity:
            raise error_arity_mismatch(handle.arity, len(args), span, "arguments")

        if ctx.trace_calls:
            logger.debug("invoke %s/%d at depth %d", handle.qualified_name,
                         len(args), ctx.call_depth)

        ctx.call_depth += 1
        try:
            with ctx.env.method_frame(receiver):
                for name, arg in zip(handle.parameters, args):
                    arg = arg.plain()
                    ctx.env.declare(name, Cell(arg, arg.tag, mutable=True))
                try:
                    self._execute_block(handle.body, ctx)
                except ReturnSignal as signal:
                    return self._return_value(signal.values)
            return VOID
        finally:
            ctx.call_depth -= 1

    def _return_value(self, values: List[Value]) -> Value:
        if not values:
            return VOID
        if len(values) == 1:
            return values[0]
        return multi_val([v.plain() for v in values])

    # =========================================================================
    # Statements
    # =========================================================================

    def _execute_statement(self, stmt: Statement, ctx: ExecutionContext) -> None:
        """Execute a single statement."""
        if isinstance(stmt, VarDecl):
            self._execute_var_decl(stmt, ctx)
        elif isinstance(stmt, Assignment):
            self._execute_assignment(stmt, ctx)
        elif isinstance(stmt, FieldAssignment):
            self._execute_field_assignment(stmt, ctx)
        elif isinstance(stmt, ExpressionStatement):
            self._evaluate(stmt.expression, ctx)
        elif isinstance(stmt, IfStatement):
            self._execute_if_statement(stmt, ctx)
        elif isinstance(stmt, WhileStatement):
            self._execute_while(stmt, ctx)
        elif isinstance(stmt, ForStatement):
            self._execute_for(stmt, ctx)
        elif isinstance(stmt, ForeachStatement):
            self._execute_foreach(stmt, ctx)
        elif isinstance(stmt, ReturnStatement):
            self._execute_return(stmt, ctx)
        elif isinstance(stmt, Block):
            self._execute_block(stmt, ctx)
        else:
            raise TypeError(f"Unknown statement type: {type(stmt).__name__}")

    def _execute_var_decl(self, stmt: VarDecl, ctx: ExecutionContext, target=None) -> None:
        declared = TYPE_TAGS[stmt.type_name] if stmt.type_name else None
        if stmt.initializers:
            values = [self._evaluate(e, ctx) for e in stmt.initializers]
        else:
            values = [default_value(declared) for _ in stmt.names]

        ctx.env.bind_ids(
            stmt.names, values, stmt.span,
            declared=declared,
            mutable=stmt.mutable,
            dynamic=stmt.is_dynamic,
            target=target,
        )

    def _execute_assignment(self, stmt: Assignment, ctx: ExecutionContext) -> None:
        values = [self._evaluate(e, ctx) for e in stmt.values]
        ctx.env.bind_ids(stmt.names, values, stmt.span, reassign=True)

    def _execute_field_assignment(self, stmt: FieldAssignment, ctx: ExecutionContext) -> None:
        receiver = self._evaluate(stmt.target.object, ctx)
        value = self._evaluate(stmt.value, ctx)
        cell = self._object_of(receiver, "field receiver", stmt.target.span) \
            .field_cell(stmt.target.member, stmt.target.span)
        cell.assign(value, stmt.target.member, stmt.span)

    def _execute_block(self, block: Block, ctx: ExecutionContext) -> None:
        for stmt in block.statements:
            self._execute_statement(stmt, ctx)

    def _execute_if_statement(self, stmt: IfStatement, ctx: ExecutionContext) -> None:
        branches = [(stmt.condition, stmt.then_branch)]
        branches.extend((b.condition, b.body) for b in stmt.elif_branches)

        for condition, body in branches:
            guard = self._evaluate(condition, ctx)
            if guard.tag == Tag.BOOL and guard.data is True:
                self._execute_block(body, ctx)
                return

        if stmt.else_branch is not None:
            self._execute_block(stmt.else_branch, ctx)

    def _execute_while(self, stmt: WhileStatement, ctx: ExecutionContext) -> None:
        while True:
            condition = self._evaluate(stmt.condition, ctx)
            if condition.tag != Tag.BOOL:
                raise error_expected_type("while condition", "boolean",
                                          str(condition.tag), stmt.condition.span)
            if not condition.data:
                break
            self._execute_block(stmt.body, ctx)

    def _execute_for(self, stmt: ForStatement, ctx: ExecutionContext) -> None:
        """
        Counted loop over one persistent cell.

        The upper bound is evaluated once; the cell is compared against it
        as a double before every iteration.
        """
        start = self._evaluate(stmt.start, ctx)
        decl = stmt.declaration
        if decl is not None:
            declared = TYPE_TAGS[decl.type_name] if decl.type_name else None
            ctx.env.bind_ids([stmt.variable], [start], decl.span, declared=declared,
                             mutable=decl.mutable, dynamic=decl.is_dynamic)
        else:
            start = start.plain()
            ctx.env.declare(stmt.variable, Cell(start, start.tag, mutable=True, dynamic=True))
        cell = ctx.env.resolve_cell(stmt.variable, stmt.span)

        upper = self._evaluate(stmt.end, ctx)
        self._require_number(upper, "for upper bound", stmt.end.span)

        while True:
            current = cell.value
            self._require_number(current, f"loop variable '{stmt.variable}'", stmt.span)
            if float(current.data) > float(upper.data):
                break
            self._execute_block(stmt.body, ctx)
            self._advance_loop(stmt, cell, ctx)

    def _advance_loop(self, stmt: ForStatement, cell: Cell, ctx: ExecutionContext) -> None:
        if stmt.step_assignment is not None:
            self._execute_assignment(stmt.step_assignment, ctx)
            return

        current = cell.value
        if stmt.step is not None:
            step = self._evaluate(stmt.step, ctx)
            nxt = self._binary(TokenType.PLUS, current, step, stmt.step.span)
        elif current.tag == Tag.INT:
            nxt = int_val(current.data + 1)
        elif current.tag == Tag.FLOAT:
            nxt = float_val(current.data + 1.0)
        else:
            nxt = double_val(current.data + 1.0)
        cell.assign(nxt, stmt.variable, stmt.span)

    def _execute_foreach(self, stmt: ForeachStatement, ctx: ExecutionContext) -> None:
        collection = self._evaluate(stmt.iterable, ctx)
        if collection.tag != Tag.LIST:
            raise error_not_iterable(str(collection.tag), stmt.iterable.span)

        for item in list(collection.data):
            ctx.env.declare(stmt.variable, Cell(item, item.tag, mutable=True, dynamic=True))
            self._execute_block(stmt.body, ctx)

    def _execute_return(self, stmt: ReturnStatement, ctx: ExecutionContext) -> None:
        raise ReturnSignal([self._evaluate(e, ctx) for e in stmt.values])

    # =========================================================================
    # Expressions
    # =========================================================================

    def _evaluate(self, expr: Expression, ctx: ExecutionContext) -> Value:
        """Evaluate an expression to produce a Value."""
        if isinstance(expr, Literal):
            return decode_literal(expr.literal_type, expr.text)
        elif isinstance(expr, Identifier):
            return ctx.env.resolve(expr.name, expr.span)
        elif isinstance(expr, ThisExpr):
            return self._eval_this(expr, ctx)
        elif isinstance(expr, BinaryOp):
            left = self._evaluate(expr.left, ctx)
            right = self._evaluate(expr.right, ctx)
            return self._binary(expr.operator, left, right, expr.span)
        elif isinstance(expr, UnaryOp):
            return self._eval_unary_op(expr, ctx)
        elif isinstance(expr, FunctionCall):
            return self._eval_function_call(expr, ctx)
        elif isinstance(expr, MethodCall):
            return self._eval_method_call(expr, ctx)
        elif isinstance(expr, MemberAccess):
            return self._eval_member_access(expr, ctx)
        elif isinstance(expr, ListLiteral):
            return list_val([self._evaluate(e, ctx).plain() for e in expr.elements])
        elif isinstance(expr, NewExpr):
            return object_val(ctx.classes.instantiate(expr.class_name, expr.span))
        else:
            raise TypeError(f"Unknown expression type: {type(expr).__name__}")

    def _eval_this(self, expr: ThisExpr, ctx: ExecutionContext) -> Value:
        if ctx.env.this is None:
            raise error_undefined_variable("this", expr.span)
        return ctx.env.this.value

    def _object_of(self, value: Value, what: str, span: SourceSpan):
        if value.tag != Tag.OBJECT:
            raise error_expected_type(what, "Object", str(value.tag), span)
        return value.data

    def _eval_function_call(self, call: FunctionCall, ctx: ExecutionContext) -> Value:
        """User methods shadow builtins of the same name."""
        handle = ctx.methods.get(call.name)
        if handle is None and call.name not in ctx.builtins:
            raise error_unknown_callable(call.name, call.span)

        args = [self._evaluate(a, ctx) for a in call.arguments]
        if handle is not None:
            return self.invoke(handle, args, None, ctx, call.span)
        return call_builtin(ctx, call.name, [a.plain() for a in args], call.span)

    def _eval_method_call(self, call: MethodCall, ctx: ExecutionContext) -> Value:
        receiver = self._evaluate(call.object, ctx)
        obj = self._object_of(receiver, "method receiver", call.object.span)
        handle = obj.class_def.find_method(call.method, call.span)
        args = [self._evaluate(a, ctx) for a in call.arguments]
        return self.invoke(handle, args, receiver, ctx, call.span)

    def _eval_member_access(self, access: MemberAccess, ctx: ExecutionContext) -> Value:
        receiver = self._evaluate(access.object, ctx)
        obj = self._object_of(receiver, "field receiver", access.object.span)
        return obj.field_cell(access.member, access.span).value

    def _eval_unary_op(self, op: UnaryOp, ctx: ExecutionContext) -> Value:
        operand = self._evaluate(op.operand, ctx)

        if op.operator == TokenType.NOT:
            if operand.tag != Tag.BOOL:
                raise error_bad_operand("not", str(operand.tag), op.span)
            return bool_val(not operand.data)

        if operand.tag == Tag.INT:
            return int_val(-operand.data)
        if operand.tag == Tag.FLOAT:
            return float_val(-operand.data)
        if operand.tag == Tag.DOUBLE:
            return double_val(-operand.data)
        raise error_bad_operand("-", str(operand.tag), op.span)

    def _require_number(self, value: Value, what: str, span: SourceSpan) -> None:
        if not value.is_number:
            raise error_expected_type(what, "number", str(value.tag), span)

    def _binary(self, op: TokenType, left: Value, right: Value, span: SourceSpan) -> Value:
        """
        Apply a binary operator to two evaluated operands.

        Both operands are always evaluated by the caller; logical operators
        never short-circuit.
        """
        left, right = left.plain(), right.plain()

        if op in _LOGICAL:
            if left.tag != Tag.BOOL or right.tag != Tag.BOOL:
                raise error_bad_operands(OPERATOR_TEXT[op], str(left.tag), str(right.tag), span)
            return bool_val(_LOGICAL[op](left.data, right.data))

        if op == TokenType.EQ:
            return bool_val(values_equal(left, right))
        if op == TokenType.NE:
            return bool_val(not values_equal(left, right))

        if op == TokenType.PLUS and (left.tag in (Tag.STRING, Tag.CHAR) or
                                     right.tag in (Tag.STRING, Tag.CHAR)):
            return string_val(to_display(left) + to_display(right))

        if not (left.is_number and right.is_number):
            raise error_bad_operands(OPERATOR_TEXT[op], str(left.tag), str(right.tag), span)

        if op in _COMPARISONS:
            return bool_val(_COMPARISONS[op](float(left.data), float(right.data)))

        if left.tag == Tag.INT and right.tag == Tag.INT:
            return self._int_arith(op, left.data, right.data, span)

        x, y = float(left.data), float(right.data)
        if op == TokenType.PLUS:
            result = x + y
        elif op == TokenType.MINUS:
            result = x - y
        elif op == TokenType.STAR:
            result = x * y
        elif op == TokenType.SLASH:
            result = _float_div(x, y)
        else:
            result = _float_rem(x, y)

        # float op float stays single precision; any other mix is double
        if left.tag == Tag.FLOAT and right.tag == Tag.FLOAT:
            return float_val(result)
        return double_val(result)

    def _int_arith(self, op: TokenType, a: int, b: int, span: SourceSpan) -> Value:
        if op == TokenType.PLUS:
            return int_val(a + b)
        if op == TokenType.MINUS:
            return int_val(a - b)
        if op == TokenType.STAR:
            return int_val(a * b)
        if b == 0:
            raise error_division_by_zero(span)
        if op == TokenType.SLASH:
            return int_val(java_div(a, b))
        return int_val(java_rem(a, b))


def execute(program: Program, *, config: InterpreterConfig = None,
            stdout: TextIO = None, stdin: TextIO = None,
            source: str = "") -> ExecutionContext:
    """
    Execute a parsed program.

    Args:
        program: The parsed program
        config: Interpreter settings
        stdout: Stream for print
        stdin: Stream for input
        source: Original source code for error messages

    Returns:
        The final interpreter state (globals, classes, global methods)
    """
    return Interpreter(config, stdout, stdin).execute(program, source)


def run_source(source: str, *, filename: str = None, config: InterpreterConfig = None,
               stdout: TextIO = None, stdin: TextIO = None) -> ExecutionContext:
    """
    Tokenize, parse and execute MinJ source code.

    Raises:
        LexerError, ParserError or MinjRuntimeError on failure
    """
    from ..lexer import tokenize
    from ..parser import parse

    tokens = tokenize(source, filename)
    program = parse(tokens, filename)
    return execute(program, config=config, stdout=stdout, stdin=stdin, source=source)
