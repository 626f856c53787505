"""
Recursive descent parser for MinJ.

Converts a token stream into an Abstract Syntax Tree (AST).
Blocks are keyword-delimited (`do: ... end`, `then: ... end`) and class
bodies are brace-delimited, so newlines carry no meaning.
"""

from typing import List, Optional
from .tokens import Token, TokenType, SourceSpan, is_type_token
from .ast import (
    # Expressions
    Expression, Literal, Identifier, ThisExpr, BinaryOp, UnaryOp,
    FunctionCall, MethodCall, MemberAccess, ListLiteral, NewExpr,
    # Statements
    Statement, VarDecl, Assignment, FieldAssignment, ReturnStatement,
    IfStatement, ElifBranch, WhileStatement, ForStatement, ForeachStatement,
    ExpressionStatement, Block,
    # Declarations
    MethodDecl, ClassDecl, Program,
)
from .tokens import LITERAL_TOKENS
from .errors import (
    error_unexpected_token,
    error_unexpected_eof,
    error_invalid_expression,
    error_invalid_assignment_target,
    error_return_outside_method,
    error_useless_expression,
)


class Parser:
    """
    Recursive descent parser for MinJ.

    Usage:
        parser = Parser(tokens)
        program = parser.parse_program()

    The parser implements standard precedence climbing for expressions:
        Lowest:  or xor
                 and
                 == !=
                 < > <= >=
                 + -
                 * / %
        Highest: unary (not ! -)
    """

    # Operator precedence levels (higher = tighter binding)
    PRECEDENCE = {
        TokenType.OR: 1,
        TokenType.XOR: 1,
        TokenType.AND: 2,
        TokenType.EQ: 3,
        TokenType.NE: 3,
        TokenType.LT: 4,
        TokenType.GT: 4,
        TokenType.LE: 4,
        TokenType.GE: 4,
        TokenType.PLUS: 5,
        TokenType.MINUS: 5,
        TokenType.STAR: 6,
        TokenType.SLASH: 6,
        TokenType.PERCENT: 6,
    }

    # Expressions allowed to stand alone as statements
    EFFECTFUL = (FunctionCall, MethodCall, NewExpr)

    def __init__(self, tokens: List[Token], filename: Optional[str] = None):
        self.tokens = tokens
        self.filename = filename
        self.pos = 0
        self._method_depth = 0  # > 0 while parsing a method body

    # =========================================================================
    # Token Navigation
    # =========================================================================

    def _current(self) -> Token:
        if self.pos >= len(self.tokens):
            return self.tokens[-1]  # EOF
        return self.tokens[self.pos]

    def _peek(self, offset: int = 0) -> Token:
        idx = self.pos + offset
        if idx >= len(self.tokens):
            return self.tokens[-1]  # EOF
        return self.tokens[idx]

    def _is_at_end(self) -> bool:
        return self._current().type == TokenType.EOF

    def _check(self, token_type: TokenType) -> bool:
        return self._current().type == token_type

    def _check_any(self, *token_types: TokenType) -> bool:
        return self._current().type in token_types

    def _advance(self) -> Token:
        token = self._current()
        if not self._is_at_end():
            self.pos += 1
        return token

    def _consume(self, token_type: TokenType, expected: str) -> Token:
        """Consume token of expected type, or raise error."""
        if self._check(token_type):
            return self._advance()
        self._error(expected)

    def _match(self, *token_types: TokenType) -> Optional[Token]:
        """Consume token if it matches any of the given types."""
        if self._current().type in token_types:
            return self._advance()
        return None

    def _error(self, expected: str) -> None:
        token = self._current()
        if token.type == TokenType.EOF:
            raise error_unexpected_eof(expected, token.span)
        raise error_unexpected_token(expected, f"'{token.lexeme}'", token.span)

    def _span_from(self, start: Token) -> SourceSpan:
        """Create a span from start token to the previous token."""
        prev_pos = max(0, self.pos - 1)
        end_token = self.tokens[prev_pos]
        return SourceSpan(start.span.start, end_token.span.end)

    # =========================================================================
    # Expression Parsing (Precedence Climbing)
    # =========================================================================

    def _parse_expression(self) -> Expression:
        return self._parse_binary_expr(0)

    def _parse_expression_list(self) -> List[Expression]:
        exprs = [self._parse_expression()]
        while self._match(TokenType.COMMA):
            exprs.append(self._parse_expression())
        return exprs

    def _parse_binary_expr(self, min_precedence: int) -> Expression:
        """Parse binary expressions with precedence climbing (left-associative)."""
        left = self._parse_unary_expr()

        while True:
            op_token = self._current()
            precedence = self.PRECEDENCE.get(op_token.type)

            if precedence is None or precedence < min_precedence:
                break

            self._advance()  # consume operator
            right = self._parse_binary_expr(precedence + 1)

            left = BinaryOp(
                span=SourceSpan(left.span.start, right.span.end),
                left=left,
                operator=op_token.type,
                right=right
            )

        return left

    def _parse_unary_expr(self) -> Expression:
        """Parse unary expressions (not, !, -)."""
        if self._check_any(TokenType.NOT, TokenType.MINUS):
            op = self._advance()
            operand = self._parse_unary_expr()
            return UnaryOp(
                span=SourceSpan(op.span.start, operand.span.end),
                operator=op.type,
                operand=operand
            )

        return self._parse_postfix_expr()

    def _parse_postfix_expr(self) -> Expression:
        """Parse member access and method calls."""
        expr = self._parse_primary_expr()

        while self._match(TokenType.DOT):
            member = self._consume(TokenType.IDENTIFIER, "member name").value

            if self._check(TokenType.LPAREN):
                args = self._parse_arguments()
                expr = MethodCall(
                    span=SourceSpan(expr.span.start, self.tokens[self.pos - 1].span.end),
                    object=expr,
                    method=member,
                    arguments=args
                )
            else:
                expr = MemberAccess(
                    span=SourceSpan(expr.span.start, self.tokens[self.pos - 1].span.end),
                    object=expr,
                    member=member
                )

        return expr

    def _parse_arguments(self) -> List[Expression]:
        """Parse a parenthesized, comma separated argument list."""
        self._consume(TokenType.LPAREN, "'('")

        args = []
        if not self._check(TokenType.RPAREN):
            args = self._parse_expression_list()

        self._consume(TokenType.RPAREN, "')'")
        return args

    def _parse_primary_expr(self) -> Expression:
        """Parse primary expressions (literals, identifiers, grouped, etc.)."""
        token = self._current()

        if token.type in LITERAL_TOKENS:
            self._advance()
            return Literal(span=token.span, text=token.value, literal_type=token.type)

        if token.type == TokenType.IDENTIFIER:
            self._advance()
            if self._check(TokenType.LPAREN):
                args = self._parse_arguments()
                return FunctionCall(span=self._span_from(token), name=token.value,
                                    arguments=args)
            return Identifier(span=token.span, name=token.value)

        if token.type == TokenType.THIS:
            self._advance()
            return ThisExpr(span=token.span)

        if token.type == TokenType.LPAREN:
            self._advance()
            expr = self._parse_expression()
            self._consume(TokenType.RPAREN, "')'")
            return expr

        if token.type == TokenType.LBRACKET:
            return self._parse_list_literal()

        if token.type == TokenType.NEW:
            self._advance()
            name = self._consume(TokenType.IDENTIFIER, "class name").value
            self._consume(TokenType.LPAREN, "'('")
            self._consume(TokenType.RPAREN, "')'")
            return NewExpr(span=self._span_from(token), class_name=name)

        if token.type == TokenType.EOF:
            self._error("expression")
        raise error_invalid_expression(token.span)

    def _parse_list_literal(self) -> ListLiteral:
        start = self._consume(TokenType.LBRACKET, "'['")
        elements = []
        if not self._check(TokenType.RBRACKET):
            elements = self._parse_expression_list()
        self._consume(TokenType.RBRACKET, "']'")
        return ListLiteral(span=self._span_from(start), elements=elements)

    # =========================================================================
    # Statement Parsing
    # =========================================================================

    def _starts_var_decl(self) -> bool:
        return self._check_any(TokenType.VAR, TokenType.VAL) or is_type_token(self._current().type)

    def _parse_statement(self) -> Statement:
        """Parse a statement, consuming an optional trailing ';'."""
        stmt = self._parse_statement_body()
        while self._match(TokenType.SEMICOLON):
            pass
        return stmt

    def _parse_statement_body(self) -> Statement:
        token = self._current()

        if self._starts_var_decl():
            return self._parse_var_decl()

        if token.type == TokenType.IF:
            return self._parse_if_statement()

        if token.type == TokenType.WHILE:
            return self._parse_while_statement()

        if token.type == TokenType.FOR:
            return self._parse_for_statement()

        if token.type == TokenType.FOREACH:
            return self._parse_foreach_statement()

        if token.type == TokenType.RETURN:
            return self._parse_return_statement()

        # name = value / a, b = values
        if token.type == TokenType.IDENTIFIER and \
                self._peek(1).type in (TokenType.ASSIGN, TokenType.COMMA):
            return self._parse_assignment()

        if token.type == TokenType.EOF:
            self._error("statement")

        # Field assignment or expression statement
        expr = self._parse_expression()

        if self._match(TokenType.ASSIGN):
            if not isinstance(expr, MemberAccess):
                raise error_invalid_assignment_target(expr.span)
            value = self._parse_expression()
            return FieldAssignment(
                span=SourceSpan(expr.span.start, value.span.end),
                target=expr,
                value=value
            )

        if not isinstance(expr, self.EFFECTFUL):
            raise error_useless_expression(expr.span)
        return ExpressionStatement(span=expr.span, expression=expr)

    def _parse_names(self) -> List[str]:
        names = [self._consume(TokenType.IDENTIFIER, "identifier").value]
        while self._match(TokenType.COMMA):
            names.append(self._consume(TokenType.IDENTIFIER, "identifier").value)
        return names

    def _parse_var_head(self):
        """Parse `var|val [type]` or `type`; returns (keyword, type_name)."""
        keyword = None
        type_name = None
        kw = self._match(TokenType.VAR, TokenType.VAL)
        if kw is not None:
            keyword = kw.value
        if is_type_token(self._current().type):
            type_name = self._advance().value
        elif keyword is None:
            self._error("'var', 'val' or a type")
        return keyword, type_name

    def _parse_var_decl(self) -> VarDecl:
        """Parse a declaration: (var|val) [type] names [= values] or type names [= values]."""
        start = self._current()
        keyword, type_name = self._parse_var_head()
        names = self._parse_names()

        initializers = []
        if self._match(TokenType.ASSIGN):
            initializers = self._parse_expression_list()

        return VarDecl(
            span=self._span_from(start),
            names=names,
            type_name=type_name,
            initializers=initializers,
            mutable=keyword != "val",
            keyword=keyword,
        )

    def _parse_assignment(self) -> Assignment:
        start = self._current()
        names = self._parse_names()
        self._consume(TokenType.ASSIGN, "'='")
        values = self._parse_expression_list()
        return Assignment(span=self._span_from(start), names=names, values=values)

    def _parse_statements_until(self, *terminators: TokenType) -> Block:
        """Parse statements until one of the terminator tokens (not consumed)."""
        start = self._current()
        statements = []
        while not self._check_any(*terminators):
            if self._is_at_end():
                expected = " or ".join(f"'{t.name.lower()}'" for t in terminators)
                self._error(expected)
            statements.append(self._parse_statement())
        return Block(span=self._span_from(start) if statements else start.span,
                     statements=statements)

    def _parse_block(self) -> Block:
        """Parse `do: statements end`."""
        self._consume(TokenType.DO, "'do'")
        self._consume(TokenType.COLON, "':'")
        body = self._parse_statements_until(TokenType.END)
        self._consume(TokenType.END, "'end'")
        return body

    def _parse_if_statement(self) -> IfStatement:
        """Parse if/elif/else closed by a single `end`."""
        start = self._advance()  # consume 'if'
        condition = self._parse_expression()
        self._consume(TokenType.THEN, "'then'")
        self._consume(TokenType.COLON, "':'")
        then_branch = self._parse_statements_until(TokenType.ELIF, TokenType.ELSE, TokenType.END)

        elif_branches = []
        while self._check(TokenType.ELIF):
            elif_start = self._advance()  # consume 'elif'
            elif_cond = self._parse_expression()
            self._consume(TokenType.THEN, "'then'")
            self._consume(TokenType.COLON, "':'")
            elif_body = self._parse_statements_until(TokenType.ELIF, TokenType.ELSE, TokenType.END)
            elif_branches.append(ElifBranch(
                span=self._span_from(elif_start),
                condition=elif_cond,
                body=elif_body
            ))

        else_branch = None
        if self._match(TokenType.ELSE):
            self._consume(TokenType.COLON, "':'")
            else_branch = self._parse_statements_until(TokenType.END)

        self._consume(TokenType.END, "'end'")
        return IfStatement(
            span=self._span_from(start),
            condition=condition,
            then_branch=then_branch,
            elif_branches=elif_branches,
            else_branch=else_branch
        )

    def _parse_while_statement(self) -> WhileStatement:
        start = self._advance()  # consume 'while'
        condition = self._parse_expression()
        body = self._parse_block()
        return WhileStatement(span=self._span_from(start), condition=condition, body=body)

    def _parse_for_statement(self) -> ForStatement:
        """Parse `for [var|val|type] i = lo to hi [step ...] do: ... end`."""
        start = self._advance()  # consume 'for'

        declaration = None
        if self._starts_var_decl():
            head = self._current()
            keyword, type_name = self._parse_var_head()
            name_token = self._consume(TokenType.IDENTIFIER, "loop variable")
            self._consume(TokenType.ASSIGN, "'='")
            init = self._parse_expression()
            declaration = VarDecl(
                span=self._span_from(head),
                names=[name_token.value],
                type_name=type_name,
                initializers=[init],
                mutable=keyword != "val",
                keyword=keyword,
            )
        else:
            name_token = self._consume(TokenType.IDENTIFIER, "loop variable")
            self._consume(TokenType.ASSIGN, "'='")
            init = self._parse_expression()

        self._consume(TokenType.TO, "'to'")
        upper = self._parse_expression()

        step = None
        step_assignment = None
        if self._match(TokenType.STEP):
            if self._check(TokenType.IDENTIFIER) and self._peek(1).type == TokenType.ASSIGN:
                step_assignment = self._parse_assignment()
            else:
                step = self._parse_expression()

        body = self._parse_block()
        return ForStatement(
            span=self._span_from(start),
            variable=name_token.value,
            start=init,
            end=upper,
            body=body,
            declaration=declaration,
            step=step,
            step_assignment=step_assignment,
        )

    def _parse_foreach_statement(self) -> ForeachStatement:
        start = self._advance()  # consume 'foreach'
        variable = self._consume(TokenType.IDENTIFIER, "loop variable").value
        self._consume(TokenType.IN, "'in'")
        iterable = self._parse_expression()
        body = self._parse_block()
        return ForeachStatement(
            span=self._span_from(start),
            variable=variable,
            iterable=iterable,
            body=body
        )

    def _parse_return_statement(self) -> ReturnStatement:
        """Parse a return; its values must start on the `return` line."""
        start = self._advance()  # consume 'return'
        if self._method_depth == 0:
            raise error_return_outside_method(start.span)

        values = []
        nxt = self._current()
        same_line = nxt.span.start.line == start.span.start.line
        if same_line and not self._check_any(
                TokenType.END, TokenType.ELIF, TokenType.ELSE,
                TokenType.SEMICOLON, TokenType.RBRACE, TokenType.EOF):
            values = self._parse_expression_list()

        return ReturnStatement(span=self._span_from(start), values=values)

    # =========================================================================
    # Declaration Parsing
    # =========================================================================

    def _parse_method_decl(self) -> MethodDecl:
        """Parse `def name(params) do: ... end`."""
        start = self._advance()  # consume 'def'
        name = self._consume(TokenType.IDENTIFIER, "method name").value
        self._consume(TokenType.LPAREN, "'('")
        parameters = []
        if not self._check(TokenType.RPAREN):
            parameters = self._parse_names()
        self._consume(TokenType.RPAREN, "')'")

        self._method_depth += 1
        try:
            body = self._parse_block()
        finally:
            self._method_depth -= 1

        return MethodDecl(span=self._span_from(start), name=name,
                          parameters=parameters, body=body)

    def _parse_class_decl(self) -> ClassDecl:
        """Parse `class Name { members }`."""
        start = self._advance()  # consume 'class'
        name = self._consume(TokenType.IDENTIFIER, "class name").value
        self._consume(TokenType.LBRACE, "'{'")

        members = []
        while not self._check(TokenType.RBRACE):
            if self._is_at_end():
                self._error("'}'")
            if self._check(TokenType.DEF):
                members.append(self._parse_method_decl())
            else:
                members.append(self._parse_statement())

        self._consume(TokenType.RBRACE, "'}'")
        return ClassDecl(span=self._span_from(start), name=name, members=members)

    def parse_program(self) -> Program:
        """Parse a complete program."""
        start = self._current()
        declarations = []

        while not self._is_at_end():
            if self._check(TokenType.CLASS):
                declarations.append(self._parse_class_decl())
            elif self._check(TokenType.DEF):
                declarations.append(self._parse_method_decl())
            else:
                declarations.append(self._parse_statement())

        return Program(span=self._span_from(start) if declarations else start.span,
                       declarations=declarations)


def parse(tokens: List[Token], filename: Optional[str] = None) -> Program:
    """
    Convenience function to parse tokens into a program.

    Args:
        tokens: List of tokens from the lexer
        filename: Optional filename for error messages

    Returns:
        Parsed Program AST

    Raises:
        ParserError: If parsing fails
    """
    parser = Parser(tokens, filename)
    return parser.parse_program()
