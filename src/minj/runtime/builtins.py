"""
Built-in function registry for the MinJ interpreter.

Holds the `print` and `input` primitives. Each interpreter state owns its
own registry so that output and input streams never leak between runs.
"""

from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, TYPE_CHECKING

from .values import Value, Tag, VOID, string_val, to_display
from ..tokens import SourceSpan
from ..errors import error_arity_mismatch, error_expected_type, error_unknown_callable

if TYPE_CHECKING:
    from .context import ExecutionContext


@dataclass
class BuiltinFunction:
    """
    A built-in function with its implementation and accepted arity.
    """
    name: str
    implementation: Callable[["ExecutionContext", List[Value], Optional[SourceSpan]], Value]
    min_args: int = 0
    max_args: int = 0

    def accepts(self, count: int) -> bool:
        return self.min_args <= count <= self.max_args


class BuiltinRegistry:
    """
    Registry of all built-in functions.

    Functions are registered by name and looked up after user methods.
    """

    def __init__(self):
        self._functions: Dict[str, BuiltinFunction] = {}
        self._register_all()

    def get_function(self, name: str) -> Optional[BuiltinFunction]:
        """Look up a function by name."""
        return self._functions.get(name)

    def register(self, func: BuiltinFunction) -> None:
        """Register a function."""
        self._functions[func.name] = func

    def __contains__(self, name: str) -> bool:
        return name in self._functions

    def _register_all(self) -> None:
        """Register all built-in functions."""
        self._register_io_functions()

    # --- I/O Functions ---

    def _register_io_functions(self) -> None:
        """Register console I/O functions."""

        def _print(ctx: "ExecutionContext", args: List[Value], span) -> Value:
            text = to_display(args[0]) if args else ""
            ctx.stdout.write(text + "\n")
            return VOID

        def _input(ctx: "ExecutionContext", args: List[Value], span) -> Value:
            if args:
                prompt = args[0]
                if prompt.tag != Tag.STRING:
                    raise error_expected_type("input prompt", "String", str(prompt.tag), span)
                ctx.stdout.write(prompt.data)
                ctx.stdout.flush()
            line = ctx.stdin.readline()
            return string_val(line.rstrip("\r\n"))

        self.register(BuiltinFunction("print", _print, 0, 1))
        self.register(BuiltinFunction("input", _input, 0, 1))


def call_builtin(ctx: "ExecutionContext", name: str, args: List[Value],
                 span: Optional[SourceSpan] = None) -> Value:
    """
    Call a built-in function by name.

    Raises UnknownCallableError if no builtin has the name and
    ArityMismatchError if the argument count is not accepted.
    """
    func = ctx.builtins.get_function(name)
    if func is None:
        raise error_unknown_callable(name, span)
    if not func.accepts(len(args)):
        raise error_arity_mismatch(func.max_args, len(args), span, "arguments")
    return func.implementation(ctx, args, span)
