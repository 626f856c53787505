"""
Execution context for the MinJ interpreter.

Manages variable cells, the three-tier name resolution chain and the
process-wide interpreter state threaded through every evaluation call.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, TextIO
from contextlib import contextmanager
import sys

from .values import Value, Tag, clone
from ..errors import (
    error_undefined_variable,
    error_immutable_reassignment,
    error_type_mismatch,
    error_arity_mismatch,
)
from ..tokens import SourceSpan


@dataclass(eq=False)
class Cell:
    """
    Storage slot for one binding.

    A static cell accepts only values whose tag equals `declared`; a
    dynamic cell re-infers `declared` on every write. An immutable cell
    rejects every write after creation.
    """
    value: Value
    declared: Tag
    mutable: bool = True
    dynamic: bool = False

    def assign(self, value: Value, name: str, span: Optional[SourceSpan] = None) -> None:
        """Checked write; the cell keeps its identity."""
        if not self.mutable:
            raise error_immutable_reassignment(name, span)
        value = value.plain()
        if self.dynamic:
            self.declared = value.tag
        elif value.tag != self.declared:
            raise error_type_mismatch(name, str(self.declared), str(value.tag), span)
        self.value = value

    def copy(self) -> "Cell":
        """Independent cell with the same metadata and cloned storage."""
        return Cell(clone(self.value), self.declared, self.mutable, self.dynamic)


class Environment:
    """
    The local frame, the bound receiver and the globals.

    Outside any method the local frame is the globals map itself. Reads
    and write-target lookups go local frame -> `this` fields -> globals.
    """

    def __init__(self):
        self.globals: Dict[str, Cell] = {}
        self.frame: Dict[str, Cell] = self.globals
        self.this: Optional[Cell] = None

    def lookup(self, name: str) -> Optional[Cell]:
        """Find the cell for a name, or None."""
        if name in self.frame:
            return self.frame[name]
        if self.this is not None:
            fields = self.this.value.data.fields
            if name in fields:
                return fields[name]
        return self.globals.get(name)

    def resolve_cell(self, name: str, span: Optional[SourceSpan] = None) -> Cell:
        cell = self.lookup(name)
        if cell is None:
            raise error_undefined_variable(name, span)
        return cell

    def resolve(self, name: str, span: Optional[SourceSpan] = None) -> Value:
        return self.resolve_cell(name, span).value

    def declare(self, name: str, cell: Cell, target: Optional[Dict[str, Cell]] = None) -> None:
        """Bind a fresh cell in the active frame (or `target`), replacing any previous one."""
        (self.frame if target is None else target)[name] = cell

    def bind_ids(
        self,
        names: List[str],
        values: List[Value],
        span: Optional[SourceSpan] = None,
        *,
        reassign: bool = False,
        declared: Optional[Tag] = None,
        mutable: bool = True,
        dynamic: bool = False,
        target: Optional[Dict[str, Cell]] = None,
    ) -> None:
        """
        Bind one or more identifiers.

        A single multi-value result, or a single list bound to several
        names, is spread across the names. The value count must equal the
        name count.

        Args:
            names: Identifiers in source order
            values: Evaluated right-hand side values
            reassign: Write existing cells instead of creating new ones
            declared: Explicit declared tag of a new binding
            mutable: False for `val`
            dynamic: True for untyped `var`
            target: Field map to declare into instead of the local frame
        """
        values = _spread(values, len(names))
        if len(values) != len(names):
            raise error_arity_mismatch(len(names), len(values), span)

        for name, value in zip(names, values):
            value = value.plain()
            if reassign:
                self.resolve_cell(name, span).assign(value, name, span)
                continue
            if declared is not None and value.tag != declared:
                raise error_type_mismatch(name, str(declared), str(value.tag), span)
            tag = declared if declared is not None else value.tag
            self.declare(name, Cell(value, tag, mutable, dynamic), target)

    @contextmanager
    def method_frame(self, receiver: Optional[Value] = None):
        """
        Install a fresh local frame for one invocation.

        Usage:
            with env.method_frame(receiver) as frame:
                env.declare("n", Cell(arg, arg.tag))
                ...

        The caller's frame and receiver are restored on every exit path.
        """
        saved = (self.frame, self.this)
        self.frame = {}
        self.this = None
        if receiver is not None:
            self.this = Cell(receiver, Tag.OBJECT, mutable=False)
        try:
            yield self.frame
        finally:
            self.frame, self.this = saved


def _spread(values: List[Value], count: int) -> List[Value]:
    if len(values) == 1:
        only = values[0]
        if only.tag == Tag.LIST and (only.multi or count > 1):
            return list(only.data)
    return values


@dataclass
class ExecutionContext:
    """
    The interpreter state for one run.

    Tracks:
    - The environment (local frame, receiver, globals)
    - The class registry and the global method table
    - The builtin registry and the I/O streams
    - Source lines for error messages
    """
    env: Environment = field(default_factory=Environment)
    classes: "ClassRegistry" = None
    methods: Dict[str, "MethodHandle"] = field(default_factory=dict)
    builtins: "BuiltinRegistry" = None
    stdout: TextIO = None
    stdin: TextIO = None
    source_lines: List[str] = field(default_factory=list)
    trace_calls: bool = False
    call_depth: int = 0

    def __post_init__(self):
        from .objects import ClassRegistry
        from .builtins import BuiltinRegistry
        if self.classes is None:
            self.classes = ClassRegistry()
        if self.builtins is None:
            self.builtins = BuiltinRegistry()
        if self.stdout is None:
            self.stdout = sys.stdout
        if self.stdin is None:
            self.stdin = sys.stdin

    @property
    def globals(self) -> Dict[str, Cell]:
        return self.env.globals

    def get_global(self, name: str) -> Optional[Value]:
        """Value of a global binding, or None if absent."""
        cell = self.env.globals.get(name)
        return cell.value if cell is not None else None

    def get_source_line(self, line_num: int) -> Optional[str]:
        """Get a source line for error messages."""
        if 1 <= line_num <= len(self.source_lines):
            return self.source_lines[line_num - 1]
        return None


def create_context(source: str = "", stdout: TextIO = None, stdin: TextIO = None,
                   trace_calls: bool = False) -> ExecutionContext:
    """
    Create a fresh execution context.

    Args:
        source: Program source, kept for error messages
        stdout: Stream that print writes to (default sys.stdout)
        stdin: Stream that input reads from (default sys.stdin)
        trace_calls: Log every invocation at DEBUG level
    """
    return ExecutionContext(
        stdout=stdout,
        stdin=stdin,
        source_lines=source.splitlines() if source else [],
        trace_calls=trace_calls,
    )
