"""
stagedb/lexer.py

SQL-like tokenizer (lexer) for the StageDB query engine.

Responsibilities:
- Convert an input statement or WHERE clause into a list of tokens with line/column positions
- Recognize keywords, identifiers, literals, comparison operators and punctuation
- Provide reliable error messages for unexpected characters and unterminated strings

Notes:
- String literals use single or double quotes; a doubled quote inside a literal
  stands for one quote character: 'it''s'
- Numbers are unsigned here; the parser folds a leading '-' into the literal.
- NULL is tokenized as its own type; the parser decides where it is valid.
- Multi-character operators (!=, <=, >=, <>) are matched before their
  one-character prefixes.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto

from .errors import Position, SqlSyntaxError


class TokenType(Enum):
    """Token categories recognized by the lexer."""
    EOF = auto()

    # Identifiers + literals
    IDENT = auto()
    INT = auto()
    FLOAT = auto()
    STRING = auto()
    NULL = auto()

    # Symbols
    LPAREN = auto()   # (
    RPAREN = auto()   # )
    COMMA = auto()    # ,
    SEMI = auto()     # ;
    STAR = auto()     # *
    MINUS = auto()    # -
    PLUS = auto()     # +

    # Comparison operators
    EQ = auto()       # =
    NE = auto()       # != or <>
    LT = auto()       # <
    LE = auto()       # <=
    GT = auto()       # >
    GE = auto()       # >=

    # Keywords (subset)
    CREATE = auto()
    DROP = auto()
    TABLE = auto()
    IF = auto()
    EXISTS = auto()
    INSERT = auto()
    INTO = auto()
    VALUES = auto()
    SELECT = auto()
    DISTINCT = auto()
    FROM = auto()
    WHERE = auto()
    ORDER = auto()
    BY = auto()
    ASC = auto()
    DESC = auto()
    LIMIT = auto()
    OFFSET = auto()
    UPDATE = auto()
    SET = auto()
    DELETE = auto()
    PRIMARY = auto()
    KEY = auto()
    NOT = auto()
    DEFAULT = auto()
    AND = auto()
    OR = auto()
    IS = auto()
    IN = auto()
    LIKE = auto()
    BETWEEN = auto()
    SAVE = auto()
    LOAD = auto()
    DATABASE = auto()


KEYWORDS: dict[str, TokenType] = {
    "CREATE": TokenType.CREATE,
    "DROP": TokenType.DROP,
    "TABLE": TokenType.TABLE,
    "IF": TokenType.IF,
    "EXISTS": TokenType.EXISTS,
    "INSERT": TokenType.INSERT,
    "INTO": TokenType.INTO,
    "VALUES": TokenType.VALUES,
    "SELECT": TokenType.SELECT,
    "DISTINCT": TokenType.DISTINCT,
    "FROM": TokenType.FROM,
    "WHERE": TokenType.WHERE,
    "ORDER": TokenType.ORDER,
    "BY": TokenType.BY,
    "ASC": TokenType.ASC,
    "DESC": TokenType.DESC,
    "LIMIT": TokenType.LIMIT,
    "OFFSET": TokenType.OFFSET,
    "UPDATE": TokenType.UPDATE,
    "SET": TokenType.SET,
    "DELETE": TokenType.DELETE,
    "PRIMARY": TokenType.PRIMARY,
    "KEY": TokenType.KEY,
    "NOT": TokenType.NOT,
    "DEFAULT": TokenType.DEFAULT,
    "AND": TokenType.AND,
    "OR": TokenType.OR,
    "IS": TokenType.IS,
    "IN": TokenType.IN,
    "LIKE": TokenType.LIKE,
    "BETWEEN": TokenType.BETWEEN,
    "SAVE": TokenType.SAVE,
    "LOAD": TokenType.LOAD,
    "DATABASE": TokenType.DATABASE,
}

KEYWORD_TYPES = frozenset(KEYWORDS.values())

# Longest first, so "<=" never lexes as "<" followed by "="
OPERATORS: list[tuple[str, TokenType]] = [
    ("!=", TokenType.NE),
    ("<>", TokenType.NE),
    ("<=", TokenType.LE),
    (">=", TokenType.GE),
    ("=", TokenType.EQ),
    ("<", TokenType.LT),
    (">", TokenType.GT),
]


def _is_digit(ch: str) -> bool:
    """ASCII digits only; str.isdigit also accepts superscripts and other Unicode digits."""
    return "0" <= ch <= "9"


SINGLE_CHAR: dict[str, TokenType] = {
    "(": TokenType.LPAREN,
    ")": TokenType.RPAREN,
    ",": TokenType.COMMA,
    ";": TokenType.SEMI,
    "*": TokenType.STAR,
    "-": TokenType.MINUS,
    "+": TokenType.PLUS,
}


@dataclass(frozen=True)
class Token:
    """
    A lexical token.

    Attributes:
        typ: TokenType
        lexeme: The original text fragment
        value: Parsed value for literals/idents:
               - IDENT -> str
               - INT -> int
               - FLOAT -> float
               - STRING -> str (without quotes)
               - NULL -> None
               - keywords -> uppercased keyword
        pos: Position in input (line/col)
        offset: 0-based index of the first character in the input
    """
    typ: TokenType
    lexeme: str
    value: object | None
    pos: Position
    offset: int = 0


def tokenize(sql: str) -> list[Token]:
    """
    Tokenize a statement or clause into a list of Token objects.

    Args:
        sql: Raw input string.

    Returns:
        List of Token, always terminated with EOF token.

    Raises:
        SqlSyntaxError: for unexpected characters or unterminated strings.
    """
    tokens: list[Token] = []
    i = 0
    line = 1
    col = 1

    def cur_pos() -> Position:
        return Position(line=line, col=col)

    def advance(n: int = 1) -> None:
        """Advance the cursor by n characters while tracking line/column."""
        nonlocal i, line, col
        for _ in range(n):
            if i >= len(sql):
                return
            ch = sql[i]
            i += 1
            if ch == "\n":
                line += 1
                col = 1
            else:
                col += 1

    while i < len(sql):
        ch = sql[i]

        if ch.isspace():
            advance(1)
            continue

        op = next(((text, typ) for text, typ in OPERATORS if sql.startswith(text, i)), None)
        if op is not None:
            text, typ = op
            tokens.append(Token(typ, text, text, cur_pos(), i))
            advance(len(text))
            continue

        if ch in SINGLE_CHAR:
            tokens.append(Token(SINGLE_CHAR[ch], ch, None, cur_pos(), i))
            advance(1)
            continue

        # String literal: '...' or "..."
        if ch in ("'", '"'):
            quote = ch
            start, start_offset = cur_pos(), i
            advance(1)
            buf: list[str] = []
            while True:
                if i >= len(sql):
                    raise SqlSyntaxError("Unterminated string literal", start, sql[start_offset:])
                c = sql[i]
                if c == quote:
                    if i + 1 < len(sql) and sql[i + 1] == quote:
                        buf.append(quote)
                        advance(2)
                        continue
                    advance(1)
                    break
                buf.append(c)
                advance(1)
            s = "".join(buf)
            tokens.append(Token(TokenType.STRING, sql[start_offset:i], s, start, start_offset))
            continue

        # Integer or decimal literal
        if _is_digit(ch):
            start, start_offset = cur_pos(), i
            j = i
            while j < len(sql) and _is_digit(sql[j]):
                j += 1
            typ = TokenType.INT
            if j + 1 < len(sql) and sql[j] == "." and _is_digit(sql[j + 1]):
                j += 1
                while j < len(sql) and _is_digit(sql[j]):
                    j += 1
                typ = TokenType.FLOAT
            lex = sql[i:j]
            value = int(lex) if typ == TokenType.INT else float(lex)
            tokens.append(Token(typ, lex, value, start, start_offset))
            advance(j - i)
            continue

        # Identifier / keyword / NULL
        if ch.isalpha() or ch == "_":
            start, start_offset = cur_pos(), i
            j = i
            while j < len(sql) and (sql[j].isalnum() or sql[j] == "_"):
                j += 1

            lex = sql[i:j]
            upper = lex.upper()

            if upper == "NULL":
                tokens.append(Token(TokenType.NULL, lex, None, start, start_offset))
            elif upper in KEYWORDS:
                tokens.append(Token(KEYWORDS[upper], lex, upper, start, start_offset))
            else:
                tokens.append(Token(TokenType.IDENT, lex, lex, start, start_offset))

            advance(j - i)
            continue

        raise SqlSyntaxError(f"Unexpected character {ch!r}", cur_pos())

    tokens.append(Token(TokenType.EOF, "", None, Position(line=line, col=col), len(sql)))
    return tokens
