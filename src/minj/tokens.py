"""
Token types for the MinJ lexer.

Literal tokens keep their raw source text; the runtime decodes it.
"""

from enum import Enum, auto
from dataclasses import dataclass
from typing import Any, Optional


class TokenType(Enum):
    """All token types recognized by the MinJ lexer."""

    # --- Literals (value is the raw source text) ---
    INT_LITERAL = auto()        # 42
    FLOAT_LITERAL = auto()      # 1.5f, 2F
    DOUBLE_LITERAL = auto()     # 1.5, 1e-3
    CHAR_LITERAL = auto()       # 'c'
    STRING_LITERAL = auto()     # "hello"
    BOOL_LITERAL = auto()       # true, false

    # --- Identifiers ---
    IDENTIFIER = auto()

    # --- Keywords ---
    CLASS = auto()              # class
    DEF = auto()                # def
    VAR = auto()                # var
    VAL = auto()                # val
    IF = auto()                 # if
    THEN = auto()               # then
    ELIF = auto()               # elif
    ELSE = auto()               # else
    WHILE = auto()              # while
    DO = auto()                 # do
    END = auto()                # end
    FOR = auto()                # for
    TO = auto()                 # to
    STEP = auto()               # step
    FOREACH = auto()            # foreach
    IN = auto()                 # in
    RETURN = auto()             # return
    NEW = auto()                # new
    THIS = auto()               # this

    # --- Type keywords ---
    TYPE_INT = auto()           # int
    TYPE_FLOAT = auto()         # float
    TYPE_DOUBLE = auto()        # double
    TYPE_BOOLEAN = auto()       # boolean
    TYPE_CHAR = auto()          # char
    TYPE_STRING = auto()        # String

    # --- Arithmetic operators ---
    PLUS = auto()               # +
    MINUS = auto()              # -
    STAR = auto()               # *
    SLASH = auto()              # /
    PERCENT = auto()            # %

    # --- Comparison operators ---
    LT = auto()                 # <
    GT = auto()                 # >
    LE = auto()                 # <=
    GE = auto()                 # >=
    EQ = auto()                 # ==
    NE = auto()                 # !=

    # --- Logical operators ---
    AND = auto()                # and
    OR = auto()                 # or
    XOR = auto()                # xor
    NOT = auto()                # not, !

    # --- Assignment ---
    ASSIGN = auto()             # =

    # --- Delimiters ---
    LBRACE = auto()             # {
    RBRACE = auto()             # }
    LPAREN = auto()             # (
    RPAREN = auto()             # )
    LBRACKET = auto()           # [
    RBRACKET = auto()           # ]
    COLON = auto()              # :
    SEMICOLON = auto()          # ;
    COMMA = auto()              # ,
    DOT = auto()                # .

    # --- Special ---
    EOF = auto()


@dataclass(frozen=True)
class SourceLocation:
    """Represents a position in source code."""
    line: int           # 1-indexed line number
    column: int         # 1-indexed column number
    offset: int         # 0-indexed character offset from start
    filename: Optional[str] = None

    def __str__(self) -> str:
        if self.filename:
            return f"{self.filename}:{self.line}:{self.column}"
        return f"{self.line}:{self.column}"


@dataclass(frozen=True)
class SourceSpan:
    """Represents a range in source code."""
    start: SourceLocation
    end: SourceLocation

    def __str__(self) -> str:
        if self.start.filename:
            return f"{self.start.filename}:{self.start.line}:{self.start.column}-{self.end.line}:{self.end.column}"
        return f"{self.start.line}:{self.start.column}-{self.end.line}:{self.end.column}"


@dataclass(frozen=True)
class Token:
    """A single token from the lexer."""
    type: TokenType
    value: Any              # Raw literal text, identifier name, or operator text
    lexeme: str             # The original source text
    span: SourceSpan        # Location in source

    def __str__(self) -> str:
        if self.type in LITERAL_TOKENS or self.type == TokenType.IDENTIFIER:
            return f"{self.type.name}({self.value!r})"
        return self.type.name


# Keyword mapping - maps string to token type
KEYWORDS: dict[str, TokenType] = {
    "class": TokenType.CLASS,
    "def": TokenType.DEF,
    "var": TokenType.VAR,
    "val": TokenType.VAL,
    "if": TokenType.IF,
    "then": TokenType.THEN,
    "elif": TokenType.ELIF,
    "else": TokenType.ELSE,
    "while": TokenType.WHILE,
    "do": TokenType.DO,
    "end": TokenType.END,
    "for": TokenType.FOR,
    "to": TokenType.TO,
    "step": TokenType.STEP,
    "foreach": TokenType.FOREACH,
    "in": TokenType.IN,
    "return": TokenType.RETURN,
    "new": TokenType.NEW,
    "this": TokenType.THIS,

    # Logical operators
    "and": TokenType.AND,
    "or": TokenType.OR,
    "xor": TokenType.XOR,
    "not": TokenType.NOT,

    # Boolean literals
    "true": TokenType.BOOL_LITERAL,
    "false": TokenType.BOOL_LITERAL,

    # Types
    "int": TokenType.TYPE_INT,
    "float": TokenType.TYPE_FLOAT,
    "double": TokenType.TYPE_DOUBLE,
    "boolean": TokenType.TYPE_BOOLEAN,
    "char": TokenType.TYPE_CHAR,
    "String": TokenType.TYPE_STRING,
}


LITERAL_TOKENS: frozenset = frozenset({
    TokenType.INT_LITERAL,
    TokenType.FLOAT_LITERAL,
    TokenType.DOUBLE_LITERAL,
    TokenType.CHAR_LITERAL,
    TokenType.STRING_LITERAL,
    TokenType.BOOL_LITERAL,
})


def is_type_token(token_type: TokenType) -> bool:
    """Check if a token type represents a type keyword."""
    return token_type.name.startswith("TYPE_")
