"""
stagedb/parser.py

Recursive-descent parser for the StageDB SQL subset.

Responsibilities:
- Convert token sequences into AST nodes (see stagedb/ast.py)
- Provide clear syntax errors with line/column positions and the expected grammar
- Support the statement set:
    - CREATE TABLE / DROP TABLE
    - INSERT (single row or batch)
    - SELECT (DISTINCT, WHERE, ORDER BY, LIMIT/OFFSET)
    - UPDATE
    - DELETE
    - SAVE DATABASE / LOAD DATABASE
- Parse WHERE clauses into predicate trees:

      or_expr   := and_expr [OR or_expr]
      and_expr  := condition [AND and_expr]
      condition := '(' or_expr ')'
                 | col IS [NOT] NULL
                 | col BETWEEN literal AND literal
                 | col IN '(' literal (',' literal)* ')'
                 | col LIKE literal
                 | col <comparison> literal

  The BETWEEN production consumes its own AND, so a combinator can never be
  taken from inside a range.

Literals: NULL, signed integers, signed decimals, quoted strings, and any other
bare word (taken as a string).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable

from .ast import (
    ColumnDef,
    Comparison,
    CreateTable,
    Delete,
    DropTable,
    Insert,
    LoadDatabase,
    Logical,
    OrderBy,
    Predicate,
    Range,
    SaveDatabase,
    Select,
    Statement,
    Update,
)
from .errors import Position, SqlSyntaxError
from .lexer import KEYWORD_TYPES, Token, TokenType, tokenize

VALID_TYPES = ("INTEGER", "TEXT", "REAL", "BLOB")

GRAMMAR: dict[str, str] = {
    "CREATE TABLE": "CREATE TABLE [IF NOT EXISTS] name (column [TYPE] [PRIMARY KEY] [NOT NULL] [DEFAULT value], ...)",
    "DROP TABLE": "DROP TABLE [IF EXISTS] name",
    "INSERT": "INSERT INTO name [(column, ...)] VALUES (value, ...) [, (value, ...) ...]",
    "SELECT": "SELECT [DISTINCT] columns|* FROM name [WHERE condition] "
              "[ORDER BY column [ASC|DESC]] [LIMIT n [OFFSET m]]",
    "UPDATE": "UPDATE name SET column = value [, ...] [WHERE condition]",
    "DELETE": "DELETE FROM name [WHERE condition]",
    "SAVE DATABASE": "SAVE DATABASE 'path'",
    "LOAD DATABASE": "LOAD DATABASE 'path'",
}

COMPARISON_TOKENS = {
    TokenType.EQ,
    TokenType.NE,
    TokenType.LT,
    TokenType.LE,
    TokenType.GT,
    TokenType.GE,
}

# Tokens that close a WHERE clause inside a statement
CLAUSE_END = {TokenType.ORDER, TokenType.LIMIT, TokenType.SEMI, TokenType.EOF}


def _describe(t: Token) -> str:
    return t.lexeme if t.typ != TokenType.EOF else "end of input"


@dataclass
class Parser:
    """
    Stateful parser over a token list.

    Attributes:
        tokens: List of Token.
        source: The text the tokens came from (used to quote clauses in errors).
        i: Current token index.
    """
    tokens: list[Token]
    source: str = ""
    i: int = 0

    @classmethod
    def for_text(cls, text: str) -> "Parser":
        return cls(tokens=tokenize(text), source=text)

    def peek(self, offset: int = 0) -> Token:
        """Return the token at current index + offset without consuming."""
        j = self.i + offset
        if j >= len(self.tokens):
            return self.tokens[-1]
        return self.tokens[j]

    def at(self, typ: TokenType) -> bool:
        """Check whether current token is of a specific type."""
        return self.peek().typ == typ

    def consume(self) -> Token:
        """Consume and return the current token."""
        t = self.peek()
        self.i += 1
        return t

    def expect(self, typ: TokenType, msg: str) -> Token:
        """Consume a token of the expected type, otherwise raise syntax error."""
        t = self.peek()
        if t.typ != typ:
            raise SqlSyntaxError(msg, t.pos, _describe(t))
        return self.consume()

    def match(self, typ: TokenType) -> bool:
        """If current token matches typ, consume it and return True."""
        if self.at(typ):
            self.consume()
            return True
        return False

    def expect_name(self, msg: str) -> str:
        """
        Consume a table or column name.

        Keywords are accepted too, so columns such as "key" or "desc" stay usable.
        """
        t = self.peek()
        if t.typ == TokenType.IDENT or t.typ in KEYWORD_TYPES:
            self.consume()
            return t.lexeme
        raise SqlSyntaxError(msg, t.pos, _describe(t))

    def expect_end(self) -> None:
        """Allow one trailing semicolon, then require end of input."""
        self.match(TokenType.SEMI)
        t = self.peek()
        if t.typ != TokenType.EOF:
            raise SqlSyntaxError("Unexpected input", t.pos, self.source[t.offset:].strip() or t.lexeme)

    def parse_name_list(self) -> list[str]:
        names = [self.expect_name("Expected column name")]
        while self.match(TokenType.COMMA):
            names.append(self.expect_name("Expected column name after ','"))
        return names

    # ---------------- CREATE / DROP ----------------

    def parse_create_table(self) -> CreateTable:
        """
        Parse:
          CREATE TABLE [IF NOT EXISTS] <name> ( <coldef>, <coldef>, ... )
        """
        self.expect(TokenType.CREATE, "Expected CREATE")
        self.expect(TokenType.TABLE, "Expected TABLE after CREATE")

        if_not_exists = False
        if self.match(TokenType.IF):
            self.expect(TokenType.NOT, "Expected NOT after IF")
            self.expect(TokenType.EXISTS, "Expected EXISTS after IF NOT")
            if_not_exists = True

        table = self.expect_name("Expected table name")
        self.expect(TokenType.LPAREN, "Expected '(' after table name")

        cols = [self.parse_column_def()]
        while self.match(TokenType.COMMA):
            cols.append(self.parse_column_def())

        self.expect(TokenType.RPAREN, "Expected ')' after column definitions")
        return CreateTable(table_name=table, columns=tuple(cols), if_not_exists=if_not_exists)

    def parse_column_def(self) -> ColumnDef:
        """
        Parse:
          <colname> [TYPE] [PRIMARY KEY] [NOT NULL] [DEFAULT <literal>]
        Type and constraints may appear in any order; the type defaults to TEXT.
        """
        name = self.expect_name("Expected column name")
        typ: str | None = None
        primary_key = False
        not_null = False
        default: Any = None

        while True:
            t = self.peek()
            if t.typ == TokenType.IDENT and t.lexeme.upper() in VALID_TYPES:
                if typ is not None:
                    raise SqlSyntaxError(f"Multiple types specified for column '{name}'", t.pos, t.lexeme)
                typ = t.lexeme.upper()
                self.consume()
                continue
            if self.match(TokenType.PRIMARY):
                self.expect(TokenType.KEY, f"Expected KEY after PRIMARY in column '{name}'")
                primary_key = True
                continue
            if self.match(TokenType.NOT):
                self.expect(TokenType.NULL, f"Expected NULL after NOT in column '{name}'")
                not_null = True
                continue
            if self.match(TokenType.DEFAULT):
                default = self.parse_literal()
                continue
            if t.typ in (TokenType.COMMA, TokenType.RPAREN):
                break
            raise SqlSyntaxError(f"Unknown keyword in column '{name}'", t.pos, _describe(t))

        return ColumnDef(
            name=name,
            typ=typ or "TEXT",
            primary_key=primary_key,
            not_null=not_null,
            default=default,
        )

    def parse_drop_table(self) -> DropTable:
        """
        Parse:
          DROP TABLE [IF EXISTS] <name>
        """
        self.expect(TokenType.DROP, "Expected DROP")
        self.expect(TokenType.TABLE, "Expected TABLE after DROP")
        if_exists = False
        if self.match(TokenType.IF):
            self.expect(TokenType.EXISTS, "Expected EXISTS after IF")
            if_exists = True
        table = self.expect_name("Expected table name")
        return DropTable(table_name=table, if_exists=if_exists)

    # ---------------- INSERT ----------------

    def parse_insert(self) -> Insert:
        """
        Parse:
          INSERT INTO table [(c1, c2, ...)] VALUES (v1, v2, ...) [, (v1, v2, ...)]*
        """
        self.expect(TokenType.INSERT, "Expected INSERT")
        self.expect(TokenType.INTO, "Expected INTO after INSERT")
        table = self.expect_name("Expected table name")

        columns: tuple[str, ...] | None = None
        if self.match(TokenType.LPAREN):
            columns = tuple(self.parse_name_list())
            self.expect(TokenType.RPAREN, "Expected ')' after column list")

        self.expect(TokenType.VALUES, "Expected VALUES")
        rows = [self.parse_value_tuple()]
        while self.match(TokenType.COMMA):
            rows.append(self.parse_value_tuple())

        return Insert(table_name=table, columns=columns, rows=tuple(rows))

    def parse_value_tuple(self) -> tuple[Any, ...]:
        """
        Parse:
          '(' literal (',' literal)* ')'
        """
        self.expect(TokenType.LPAREN, "Expected '(' before values")
        vals = [self.parse_literal()]
        while self.match(TokenType.COMMA):
            vals.append(self.parse_literal())
        self.expect(TokenType.RPAREN, "Expected ')' after values")
        return tuple(vals)

    # ---------------- SELECT ----------------

    def parse_select(self) -> Select:
        """
        Parse:
          SELECT [DISTINCT] <cols>|* FROM <table> [WHERE ...] [ORDER BY col [ASC|DESC]] [LIMIT n [OFFSET m]]
        """
        self.expect(TokenType.SELECT, "Expected SELECT")
        distinct = self.match(TokenType.DISTINCT)

        columns: tuple[str, ...] = ()
        if not self.match(TokenType.STAR):
            columns = tuple(self.parse_name_list())

        self.expect(TokenType.FROM, "Expected FROM")
        table = self.expect_name("Expected table name")

        where = None
        if self.match(TokenType.WHERE):
            where = self.parse_where_clause()

        order_by = None
        if self.match(TokenType.ORDER):
            self.expect(TokenType.BY, "Expected BY after ORDER")
            col = self.expect_name("Expected column name after ORDER BY")
            descending = False
            if self.match(TokenType.DESC):
                descending = True
            else:
                self.match(TokenType.ASC)
            order_by = OrderBy(column=col, descending=descending)

        limit = offset = None
        if self.match(TokenType.LIMIT):
            limit = int(self.expect(TokenType.INT, "Expected integer after LIMIT").value)
            if self.match(TokenType.OFFSET):
                offset = int(self.expect(TokenType.INT, "Expected integer after OFFSET").value)

        return Select(
            table_name=table,
            columns=columns,
            where=where,
            order_by=order_by,
            limit=limit,
            offset=offset,
            distinct=distinct,
        )

    # ---------------- UPDATE ----------------

    def parse_update(self) -> Update:
        """
        Parse:
          UPDATE <table> SET c=v [,c=v]* [WHERE ...]
        """
        self.expect(TokenType.UPDATE, "Expected UPDATE")
        table = self.expect_name("Expected table name")
        self.expect(TokenType.SET, "Expected SET")

        assignments = [self.parse_assignment()]
        while self.match(TokenType.COMMA):
            assignments.append(self.parse_assignment())

        where = None
        if self.match(TokenType.WHERE):
            where = self.parse_where_clause()

        return Update(table_name=table, assignments=tuple(assignments), where=where)

    def parse_assignment(self) -> tuple[str, Any]:
        """
        Parse:
          <ident> = <literal>
        """
        col = self.expect_name("Expected column name in SET")
        self.expect(TokenType.EQ, f"Expected '=' after '{col}' in SET")
        return col, self.parse_literal()

    # ---------------- DELETE ----------------

    def parse_delete(self) -> Delete:
        """
        Parse:
          DELETE FROM <table> [WHERE ...]
        """
        self.expect(TokenType.DELETE, "Expected DELETE")
        self.expect(TokenType.FROM, "Expected FROM after DELETE")
        table = self.expect_name("Expected table name")

        where = None
        if self.match(TokenType.WHERE):
            where = self.parse_where_clause()

        return Delete(table_name=table, where=where)

    # ---------------- SAVE / LOAD ----------------

    def parse_save(self) -> SaveDatabase:
        self.expect(TokenType.SAVE, "Expected SAVE")
        self.expect(TokenType.DATABASE, "Expected DATABASE after SAVE")
        path = self.expect(TokenType.STRING, "Expected quoted file name").value
        return SaveDatabase(path=str(path))

    def parse_load(self) -> LoadDatabase:
        self.expect(TokenType.LOAD, "Expected LOAD")
        self.expect(TokenType.DATABASE, "Expected DATABASE after LOAD")
        path = self.expect(TokenType.STRING, "Expected quoted file name").value
        return LoadDatabase(path=str(path))

    # ---------------- WHERE ----------------

    def parse_where_clause(self) -> Predicate:
        """
        Parse a whole WHERE clause, quoting the clause text if any part fails.
        """
        start = self.i
        try:
            return self.parse_or_expr()
        except SqlSyntaxError as e:
            raise SqlSyntaxError(
                f"Invalid WHERE condition ({e.message})",
                e.position,
                self._clause_text(start),
            ) from e

    def parse_or_expr(self) -> Predicate:
        """OR binds loosest: and_expr [OR or_expr]."""
        left = self.parse_and_expr()
        if self.match(TokenType.OR):
            return Logical(left=left, combinator="OR", right=self.parse_or_expr())
        return left

    def parse_and_expr(self) -> Predicate:
        """condition [AND and_expr]."""
        left = self.parse_condition()
        if self.match(TokenType.AND):
            return Logical(left=left, combinator="AND", right=self.parse_and_expr())
        return left

    def parse_condition(self) -> Predicate:
        """
        Parse one leaf, or a parenthesized group.

        Operators are tried in this order: IS NOT NULL, IS NULL, BETWEEN, IN, LIKE,
        then the comparison operators.
        """
        if self.match(TokenType.LPAREN):
            inner = self.parse_or_expr()
            self.expect(TokenType.RPAREN, "Expected ')' to close group")
            return inner

        column = self.expect_name("Expected column name")

        if self.match(TokenType.IS):
            negated = self.match(TokenType.NOT)
            self.expect(TokenType.NULL, "Expected NULL after IS" + (" NOT" if negated else ""))
            return Comparison(column=column, op="IS NOT NULL" if negated else "IS NULL")

        if self.match(TokenType.BETWEEN):
            low = self.parse_literal()
            self.expect(TokenType.AND, "Expected AND between BETWEEN bounds")
            high = self.parse_literal()
            return Comparison(column=column, op="BETWEEN", operand=Range(low=low, high=high))

        if self.match(TokenType.IN):
            self.expect(TokenType.LPAREN, "Expected '(' after IN")
            values = [self.parse_literal()]
            while self.match(TokenType.COMMA):
                values.append(self.parse_literal())
            self.expect(TokenType.RPAREN, "Expected ')' after IN list")
            return Comparison(column=column, op="IN", operand=tuple(values))

        if self.match(TokenType.LIKE):
            return Comparison(column=column, op="LIKE", operand=self.parse_literal())

        t = self.peek()
        if t.typ in COMPARISON_TOKENS:
            self.consume()
            return Comparison(column=column, op=t.lexeme, operand=self.parse_literal())

        raise SqlSyntaxError(f"Expected operator after '{column}'", t.pos, _describe(t))

    def _clause_text(self, start: int) -> str:
        end = start
        while end < len(self.tokens) - 1 and self.tokens[end].typ not in CLAUSE_END:
            end += 1
        return self.source[self.tokens[start].offset:self.tokens[end].offset].strip()

    # ---------------- atoms ----------------

    def parse_literal(self) -> Any:
        """
        Parse a literal value.

        Returns:
            int | float | str | None

        Raises:
            SqlSyntaxError if the current token cannot start a value.
        """
        t = self.peek()
        if t.typ in (TokenType.MINUS, TokenType.PLUS):
            self.consume()
            n = self.peek()
            if n.typ in (TokenType.INT, TokenType.FLOAT):
                self.consume()
                return -n.value if t.typ == TokenType.MINUS else n.value
            raise SqlSyntaxError(f"Expected number after '{t.lexeme}'", n.pos, _describe(n))
        if t.typ in (TokenType.INT, TokenType.FLOAT, TokenType.STRING):
            return self.consume().value
        if t.typ == TokenType.NULL:
            self.consume()
            return None
        if t.typ == TokenType.IDENT:
            return str(self.consume().lexeme)
        raise SqlSyntaxError("Expected a value", t.pos, _describe(t))


# ---------- public helpers ----------

def _parse_one(sql: str, label: str, production: Callable[[Parser], Statement]) -> Statement:
    """
    Run one statement production over the whole input.

    Raises:
        SqlSyntaxError: with the statement's grammar attached as a hint.
    """
    try:
        parser = Parser.for_text(sql)
        stmt = production(parser)
        parser.expect_end()
    except SqlSyntaxError as e:
        raise SqlSyntaxError(
            f"Invalid {label} syntax: {e.message}",
            e.position,
            e.fragment,
            GRAMMAR[label],
        ) from e
    return stmt


def parse_create_table(sql: str) -> CreateTable:
    return _parse_one(sql, "CREATE TABLE", Parser.parse_create_table)


def parse_drop_table(sql: str) -> DropTable:
    return _parse_one(sql, "DROP TABLE", Parser.parse_drop_table)


def parse_insert(sql: str) -> Insert:
    return _parse_one(sql, "INSERT", Parser.parse_insert)


def parse_select(sql: str) -> Select:
    return _parse_one(sql, "SELECT", Parser.parse_select)


def parse_update(sql: str) -> Update:
    return _parse_one(sql, "UPDATE", Parser.parse_update)


def parse_delete(sql: str) -> Delete:
    return _parse_one(sql, "DELETE", Parser.parse_delete)


def parse_save(sql: str) -> SaveDatabase:
    return _parse_one(sql, "SAVE DATABASE", Parser.parse_save)


def parse_load(sql: str) -> LoadDatabase:
    return _parse_one(sql, "LOAD DATABASE", Parser.parse_load)


def parse_predicate(text: str) -> Predicate:
    """
    Parse a standalone WHERE clause (without the WHERE keyword).

    Args:
        text: Clause text, e.g. "age > 25 AND city = 'NYC'".

    Returns:
        Predicate tree.

    Raises:
        SqlSyntaxError: if any part of the clause is malformed; no partial tree is returned.
    """
    parser = Parser.for_text(text)
    if parser.at(TokenType.EOF):
        raise SqlSyntaxError("Empty WHERE condition", Position(1, 1))
    pred = parser.parse_where_clause()
    if not parser.at(TokenType.EOF):
        t = parser.peek()
        raise SqlSyntaxError("Invalid WHERE condition (unexpected input)", t.pos, text.strip())
    return pred


def split_statements(script: str) -> list[str]:
    """
    Split a script on semicolons that sit outside quoted strings.

    Empty statements (e.g. ";;") are dropped.
    """
    out: list[str] = []
    buf: list[str] = []
    quote: str | None = None
    for ch in script:
        if quote is not None:
            if ch == quote:
                quote = None
        elif ch in ("'", '"'):
            quote = ch
        elif ch == ";":
            stmt = "".join(buf).strip()
            if stmt:
                out.append(stmt)
            buf = []
            continue
        buf.append(ch)
    tail = "".join(buf).strip()
    if tail:
        out.append(tail)
    return out
