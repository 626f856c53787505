"""
MinJ Runtime - Tree-walking interpreter.

This module provides:
- Interpreter: Executes parsed MinJ programs
- Value: Tagged runtime values and literal decoding
- Cell / Environment / ExecutionContext: Bindings and interpreter state
- ClassDef / Obj / MethodHandle: The class and object model
- BuiltinRegistry: The print and input primitives
"""

from .values import (
    Value,
    Tag,
    VOID,
    int_val,
    float_val,
    double_val,
    bool_val,
    char_val,
    string_val,
    list_val,
    multi_val,
    decode_literal,
    default_value,
    to_display,
    values_equal,
)

from .context import (
    Cell,
    Environment,
    ExecutionContext,
    create_context,
)

from .objects import (
    ClassDef,
    ClassRegistry,
    MethodHandle,
    Obj,
)

from .builtins import (
    BuiltinFunction,
    BuiltinRegistry,
    call_builtin,
)

from .interpreter import (
    Interpreter,
    ReturnSignal,
    execute,
    run_source,
)

__all__ = [
    # Values
    'Value',
    'Tag',
    'VOID',
    'int_val',
    'float_val',
    'double_val',
    'bool_val',
    'char_val',
    'string_val',
    'list_val',
    'multi_val',
    'decode_literal',
    'default_value',
    'to_display',
    'values_equal',

    # Context
    'Cell',
    'Environment',
    'ExecutionContext',
    'create_context',

    # Objects
    'ClassDef',
    'ClassRegistry',
    'MethodHandle',
    'Obj',

    # Builtins
    'BuiltinFunction',
    'BuiltinRegistry',
    'call_builtin',

    # Interpreter
    'Interpreter',
    'ReturnSignal',
    'execute',
    'run_source',
]
