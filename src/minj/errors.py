"""
MinJ-specific exceptions and error handling.

Error code ranges:
- E0xx: Lexer errors
- E1xx: Parser errors
- E4xx: Runtime errors
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, List
from .tokens import SourceSpan


class ErrorSeverity(Enum):
    """Severity levels for diagnostics."""
    ERROR = "error"


@dataclass
class Diagnostic:
    """A single diagnostic message."""
    code: str                       # E001, E101, etc.
    message: str                    # Human-readable message
    severity: ErrorSeverity
    span: Optional[SourceSpan]
    source_line: Optional[str] = None   # The actual line of source code
    hints: List[str] = field(default_factory=list)

    def format(self, show_source: bool = True) -> str:
        """Format the diagnostic for display."""
        parts = []

        # Header: location: severity[code]: message
        if self.span is not None:
            parts.append(f"{self.span.start}: {self.severity.value}[{self.code}]: {self.message}")
        else:
            parts.append(f"{self.severity.value}[{self.code}]: {self.message}")

        # Source line with caret
        if show_source and self.source_line is not None and self.span is not None:
            parts.append("  |")
            line_num = str(self.span.start.line)
            parts.append(f"{line_num:>3} | {self.source_line}")

            col = self.span.start.column
            if self.span.start.line == self.span.end.line:
                end_col = self.span.end.column
            else:
                end_col = len(self.source_line) + 1
            underline_len = max(1, end_col - col)
            parts.append(f"    | {' ' * (col - 1)}{'^' * underline_len}")

        for hint in self.hints:
            parts.append(f"    = hint: {hint}")

        return "\n".join(parts)


class MinjError(Exception):
    """Base exception for MinJ errors."""

    def __init__(self, diagnostic: Diagnostic):
        self.diagnostic = diagnostic
        super().__init__(diagnostic.message)

    @property
    def code(self) -> str:
        return self.diagnostic.code

    def __str__(self) -> str:
        return self.diagnostic.format()


class LexerError(MinjError):
    """Error during lexical analysis (E0xx)."""
    pass


class ParserError(MinjError):
    """Error during parsing (E1xx)."""
    pass


class MinjRuntimeError(MinjError):
    """Error raised while executing a program (E4xx)."""
    pass


class UndefinedVariableError(MinjRuntimeError):
    """E401: no scope tier holds the name."""
    pass


class ImmutableReassignmentError(MinjRuntimeError):
    """E402: write to an immutable binding."""
    pass


class TypeMismatchError(MinjRuntimeError):
    """E403: value tag does not match the declared tag."""
    pass


class ArityMismatchError(MinjRuntimeError):
    """E404: value count does not match the binding count."""
    pass


class UnknownClassError(MinjRuntimeError):
    """E405: `new` of an unregistered class."""
    pass


class UnknownCallableError(MinjRuntimeError):
    """E406: call to an unknown function."""
    pass


class UnknownMethodError(UnknownCallableError):
    """E407: call to a method the receiver's class does not define."""
    pass


class NotIterableError(MinjRuntimeError):
    """E408: foreach over something that is not a list."""
    pass


class OperatorError(MinjRuntimeError):
    """E409: invalid operand for a unary or binary operator."""
    pass


def _error(cls, code: str, message: str, span: Optional[SourceSpan],
           source_line: str = None, hints: List[str] = None) -> MinjError:
    diag = Diagnostic(
        code=code,
        message=message,
        severity=ErrorSeverity.ERROR,
        span=span,
        source_line=source_line,
        hints=hints or [],
    )
    return cls(diag)


# --- Lexer error codes ---

def error_unexpected_character(char: str, span: SourceSpan, source_line: str = None) -> LexerError:
    """E001: Unexpected character."""
    return _error(LexerError, "E001", f"unexpected character '{char}'", span, source_line)


def error_unterminated_string(span: SourceSpan, source_line: str = None) -> LexerError:
    """E002: Unterminated string literal."""
    return _error(
        LexerError, "E002", "unterminated string literal", span, source_line,
        hints=["string literals must be closed with '\"' on the same line"],
    )


def error_unterminated_comment(span: SourceSpan, source_line: str = None) -> LexerError:
    """E004: Unterminated multi-line comment."""
    return _error(
        LexerError, "E004", "unterminated multi-line comment (expected closing */)",
        span, source_line,
    )


def error_invalid_number_literal(text: str, span: SourceSpan, source_line: str = None) -> LexerError:
    """E006: Invalid number literal."""
    return _error(LexerError, "E006", f"invalid number literal '{text}'", span, source_line)


def error_invalid_char_literal(text: str, span: SourceSpan, source_line: str = None) -> LexerError:
    """E009: Invalid character literal."""
    return _error(
        LexerError, "E009", f"invalid character literal {text}", span, source_line,
        hints=["character literals hold exactly one character: 'a'"],
    )


# --- Parser error codes ---

def error_unexpected_token(expected: str, found: str, span: SourceSpan,
                           source_line: str = None) -> ParserError:
    """E101: Unexpected token."""
    return _error(ParserError, "E101", f"expected {expected}, found {found}", span, source_line)


def error_unexpected_eof(expected: str, span: SourceSpan) -> ParserError:
    """E102: Unexpected end of file."""
    return _error(ParserError, "E102", f"unexpected end of file, expected {expected}", span)


def error_invalid_expression(span: SourceSpan, source_line: str = None) -> ParserError:
    """E103: Invalid expression."""
    return _error(ParserError, "E103", "invalid expression", span, source_line)


def error_invalid_assignment_target(span: SourceSpan, source_line: str = None) -> ParserError:
    """E104: Left-hand side cannot be assigned."""
    return _error(
        ParserError, "E104", "invalid assignment target", span, source_line,
        hints=["only variables and object fields (obj.field) can be assigned"],
    )


def error_return_outside_method(span: SourceSpan, source_line: str = None) -> ParserError:
    """E105: `return` outside a method body."""
    return _error(ParserError, "E105", "'return' outside of a method", span, source_line)


def error_useless_expression(span: SourceSpan, source_line: str = None) -> ParserError:
    """E106: Expression statement without effect."""
    return _error(
        ParserError, "E106", "expression statement has no effect", span, source_line,
        hints=["only calls, method calls, 'new' and input() may stand alone"],
    )


# --- Runtime error codes ---

def error_undefined_variable(name: str, span: SourceSpan) -> UndefinedVariableError:
    """E401: Undefined variable."""
    return _error(UndefinedVariableError, "E401", f"undefined variable '{name}'", span)


def error_undefined_field(class_name: str, name: str, span: SourceSpan) -> UndefinedVariableError:
    """E401: Field missing on an object."""
    return _error(
        UndefinedVariableError, "E401", f"'{class_name}' object has no field '{name}'", span
    )


def error_immutable_reassignment(name: str, span: SourceSpan) -> ImmutableReassignmentError:
    """E402: Reassignment of a val."""
    return _error(
        ImmutableReassignmentError, "E402", f"cannot reassign val '{name}'", span,
        hints=[f"declare '{name}' with 'var' to allow reassignment"],
    )


def error_type_mismatch(name: str, expected: str, found: str,
                        span: SourceSpan) -> TypeMismatchError:
    """E403: Value tag differs from the declared tag."""
    return _error(
        TypeMismatchError, "E403",
        f"type mismatch for '{name}': expected '{expected}', found '{found}'", span,
    )


def error_expected_type(what: str, expected: str, found: str,
                        span: SourceSpan) -> TypeMismatchError:
    """E403: A construct required a value of a specific tag."""
    return _error(
        TypeMismatchError, "E403", f"{what} must be '{expected}', found '{found}'", span
    )


def error_arity_mismatch(expected: int, found: int, span: SourceSpan,
                         what: str = "values") -> ArityMismatchError:
    """E404: Wrong number of values or arguments."""
    return _error(
        ArityMismatchError, "E404", f"expected {expected} {what}, got {found}", span
    )


def error_unknown_class(name: str, span: SourceSpan) -> UnknownClassError:
    """E405: Unknown class."""
    return _error(UnknownClassError, "E405", f"unknown class '{name}'", span)


def error_unknown_callable(name: str, span: SourceSpan) -> UnknownCallableError:
    """E406: Unknown function."""
    return _error(UnknownCallableError, "E406", f"unknown function '{name}'", span)


def error_unknown_method(class_name: str, name: str, span: SourceSpan) -> UnknownMethodError:
    """E407: Unknown method."""
    return _error(
        UnknownMethodError, "E407", f"class '{class_name}' has no method '{name}'", span
    )


def error_not_iterable(found: str, span: SourceSpan) -> NotIterableError:
    """E408: foreach over a non-list."""
    return _error(NotIterableError, "E408", f"cannot iterate over '{found}'", span)


def error_bad_operand(operator: str, found: str, span: SourceSpan) -> OperatorError:
    """E409: Operand tag not accepted by the operator."""
    return _error(
        OperatorError, "E409", f"bad operand type for '{operator}': '{found}'", span
    )


def error_bad_operands(operator: str, left: str, right: str, span: SourceSpan) -> OperatorError:
    """E409: Operand tags not accepted by the operator."""
    return _error(
        OperatorError, "E409",
        f"unsupported operand types for '{operator}': '{left}' and '{right}'", span,
    )


def error_division_by_zero(span: SourceSpan) -> OperatorError:
    """E409: Integer division or remainder by zero."""
    return _error(OperatorError, "E409", "integer division by zero", span)
