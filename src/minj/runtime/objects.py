"""
Class and object model.

A ClassDef holds template field cells and a private method table. Each
`new` builds an Obj whose cells are independent copies of the templates.
"""

from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional

from .context import Cell
from ..ast import MethodDecl, Block
from ..tokens import SourceSpan
from ..errors import (
    error_unknown_class,
    error_unknown_method,
    error_undefined_field,
)


@dataclass(eq=False)
class MethodHandle:
    """Reference to a method declaration; owned by one method table."""
    decl: MethodDecl
    owner: Optional[str] = None     # class name, None for global methods

    @property
    def name(self) -> str:
        return self.decl.name

    @property
    def parameters(self) -> List[str]:
        return self.decl.parameters

    @property
    def body(self) -> Block:
        return self.decl.body

    @property
    def arity(self) -> int:
        return len(self.decl.parameters)

    @property
    def qualified_name(self) -> str:
        if self.owner:
            return f"{self.owner}.{self.name}"
        return self.name


@dataclass(eq=False)
class ClassDef:
    name: str
    fields: Dict[str, Cell] = field(default_factory=dict)
    methods: Dict[str, MethodHandle] = field(default_factory=dict)

    def add_method(self, decl: MethodDecl) -> None:
        self.methods[decl.name] = MethodHandle(decl, owner=self.name)

    def find_method(self, name: str, span: Optional[SourceSpan] = None) -> MethodHandle:
        handle = self.methods.get(name)
        if handle is None:
            raise error_unknown_method(self.name, name, span)
        return handle

    def instantiate(self) -> "Obj":
        """Build an instance with fresh copies of every template cell."""
        return Obj(self, {name: cell.copy() for name, cell in self.fields.items()})


@dataclass(eq=False)
class Obj:
    """A runtime instance; its field cells belong to it alone."""
    class_def: ClassDef
    fields: Dict[str, Cell]

    def field_cell(self, name: str, span: Optional[SourceSpan] = None) -> Cell:
        cell = self.fields.get(name)
        if cell is None:
            raise error_undefined_field(self.class_def.name, name, span)
        return cell

    def __str__(self) -> str:
        return f"{self.class_def.name}@{id(self) & 0xffffffff:x}"


class ClassRegistry:
    """Classes registered in declaration order."""

    def __init__(self):
        self._classes: Dict[str, ClassDef] = {}

    def register(self, class_def: ClassDef) -> None:
        self._classes[class_def.name] = class_def

    def lookup(self, name: str, span: Optional[SourceSpan] = None) -> ClassDef:
        class_def = self._classes.get(name)
        if class_def is None:
            raise error_unknown_class(name, span)
        return class_def

    def instantiate(self, name: str, span: Optional[SourceSpan] = None) -> Obj:
        return self.lookup(name, span).instantiate()

    def __contains__(self, name: str) -> bool:
        return name in self._classes

    def __iter__(self) -> Iterator[ClassDef]:
        return iter(self._classes.values())

    def __len__(self) -> int:
        return len(self._classes)
