"""
MinJ - a small class-based scripting language.

This package provides:
- Lexer: Tokenizes MinJ source code
- Parser: Builds an AST from tokens
- Interpreter: Executes programs over tagged runtime values

Usage:
    from minj import run_source

    source = '''
    def pair() do: return 1, 2 end
    var a, b = pair()
    print(a + b)
    '''
    ctx = run_source(source)
    print(ctx.get_global("a"))
"""

from .tokens import (
    Token,
    TokenType,
    SourceLocation,
    SourceSpan,
    KEYWORDS,
    is_type_token,
)

from .lexer import (
    Lexer,
    tokenize,
)

from .parser import (
    Parser,
    parse,
)

from .ast import (
    AstNode,
    AstVisitor,
    Program,
    ClassDecl,
    MethodDecl,
    print_ast,
)

from .errors import (
    MinjError,
    LexerError,
    ParserError,
    MinjRuntimeError,
    UndefinedVariableError,
    ImmutableReassignmentError,
    TypeMismatchError,
    ArityMismatchError,
    UnknownClassError,
    UnknownCallableError,
    UnknownMethodError,
    NotIterableError,
    OperatorError,
    Diagnostic,
    ErrorSeverity,
)

from .config import (
    ConfigError,
    InterpreterConfig,
    load_config,
)

from .runtime import (
    Interpreter,
    ExecutionContext,
    Value,
    Tag,
    execute,
    run_source,
)

__version__ = "0.1.0"

__all__ = [
    # Tokens
    'Token',
    'TokenType',
    'SourceLocation',
    'SourceSpan',
    'KEYWORDS',
    'is_type_token',
    # Lexer / parser
    'Lexer',
    'tokenize',
    'Parser',
    'parse',
    # AST
    'AstNode',
    'AstVisitor',
    'Program',
    'ClassDecl',
    'MethodDecl',
    'print_ast',
    # Errors
    'MinjError',
    'LexerError',
    'ParserError',
    'MinjRuntimeError',
    'UndefinedVariableError',
    'ImmutableReassignmentError',
    'TypeMismatchError',
    'ArityMismatchError',
    'UnknownClassError',
    'UnknownCallableError',
    'UnknownMethodError',
    'NotIterableError',
    'OperatorError',
    'Diagnostic',
    'ErrorSeverity',
    # Config
    'ConfigError',
    'InterpreterConfig',
    'load_config',
    # Runtime
    'Interpreter',
    'ExecutionContext',
    'Value',
    'Tag',
    'execute',
    'run_source',
]
