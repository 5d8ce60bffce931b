import pytest

from stagedb.ast import (
    ColumnDef,
    Comparison,
    CreateTable,
    Delete,
    DropTable,
    Insert,
    LoadDatabase,
    OrderBy,
    SaveDatabase,
    Select,
    Update,
)
from stagedb.errors import SqlSyntaxError
from stagedb.parser import (
    parse_create_table,
    parse_delete,
    parse_drop_table,
    parse_insert,
    parse_load,
    parse_save,
    parse_select,
    parse_update,
    split_statements,
)


def test_create_table_with_constraints():
    stmt = parse_create_table(
        "CREATE TABLE IF NOT EXISTS users (id INTEGER PRIMARY KEY, name TEXT NOT NULL, "
        "score REAL DEFAULT 1.5, note)"
    )
    assert stmt == CreateTable(
        table_name="users",
        columns=(
            ColumnDef("id", "INTEGER", primary_key=True, not_null=True),
            ColumnDef("name", "TEXT", not_null=True),
            ColumnDef("score", "REAL", default=1.5),
            ColumnDef("note", "TEXT"),
        ),
        if_not_exists=True,
    )


def test_primary_key_implies_not_null():
    stmt = parse_create_table("create table t (id integer primary key)")
    assert stmt.columns[0].not_null is True


def test_constraints_in_any_order():
    stmt = parse_create_table("CREATE TABLE t (a NOT NULL DEFAULT 'x' INTEGER)")
    assert stmt.columns[0] == ColumnDef("a", "INTEGER", not_null=True, default="x")


def test_create_table_errors():
    with pytest.raises(SqlSyntaxError) as exc:
        parse_create_table("CREATE TABLE t (a INTEGER TEXT)")
    assert "Multiple types" in str(exc.value)
    assert "Expected: CREATE TABLE" in str(exc.value)

    with pytest.raises(SqlSyntaxError) as exc:
        parse_create_table("CREATE TABLE t (a INTEGER UNIQUE)")
    assert "Unknown keyword in column 'a'" in str(exc.value)

    with pytest.raises(SqlSyntaxError):
        parse_create_table("CREATE TABLE t ()")


def test_drop_table():
    assert parse_drop_table("DROP TABLE users;") == DropTable("users")
    assert parse_drop_table("drop table if exists users") == DropTable("users", if_exists=True)


def test_insert_positional_and_named():
    assert parse_insert("INSERT INTO t VALUES (1, 'a')") == Insert("t", None, ((1, "a"),))
    assert parse_insert("INSERT INTO t (b, a) VALUES ('x', -2)") == Insert("t", ("b", "a"), (("x", -2),))


def test_insert_batch_respects_quotes():
    stmt = parse_insert("INSERT INTO t VALUES ('a, (b)', NULL), ('), (', 2.5), (3, bare)")
    assert stmt.rows == (("a, (b)", None), ("), (", 2.5), (3, "bare"))


def test_select_full():
    stmt = parse_select(
        "SELECT DISTINCT name, city FROM users WHERE age > 25 ORDER BY name DESC LIMIT 10 OFFSET 5;"
    )
    assert stmt == Select(
        table_name="users",
        columns=("name", "city"),
        where=Comparison("age", ">", 25),
        order_by=OrderBy("name", descending=True),
        limit=10,
        offset=5,
        distinct=True,
    )


def test_select_star():
    stmt = parse_select("select * from users order by age asc")
    assert stmt.select_all
    assert stmt.order_by == OrderBy("age")


def test_select_errors_carry_grammar():
    with pytest.raises(SqlSyntaxError) as exc:
        parse_select("SELECT name users")
    assert exc.value.message.startswith("Invalid SELECT syntax")
    assert exc.value.expected.startswith("SELECT [DISTINCT]")


def test_select_bad_where_is_quoted():
    with pytest.raises(SqlSyntaxError) as exc:
        parse_select("SELECT * FROM users WHERE age >> 3 ORDER BY age")
    assert exc.value.fragment == "age >> 3"


def test_trailing_input_rejected():
    with pytest.raises(SqlSyntaxError) as exc:
        parse_select("SELECT * FROM users extra")
    assert "Unexpected input" in str(exc.value)


def test_update_and_delete():
    assert parse_update("UPDATE users SET age = 31, city = 'SF' WHERE name = 'Alice'") == Update(
        "users", (("age", 31), ("city", "SF")), Comparison("name", "=", "Alice")
    )
    assert parse_update("UPDATE t SET a = NULL").where is None
    assert parse_delete("DELETE FROM users WHERE age < 18") == Delete("users", Comparison("age", "<", 18))
    assert parse_delete("DELETE FROM users") == Delete("users")


def test_save_and_load():
    assert parse_save("SAVE DATABASE 'backup'") == SaveDatabase("backup")
    assert parse_load("load database \"backup.stagedb\";") == LoadDatabase("backup.stagedb")
    with pytest.raises(SqlSyntaxError):
        parse_save("SAVE DATABASE backup")


def test_split_statements_respects_quotes():
    assert split_statements("INSERT INTO t VALUES ('a;b'); SELECT * FROM t;;  ") == [
        "INSERT INTO t VALUES ('a;b')",
        "SELECT * FROM t",
    ]


def test_explicit_plus_sign_on_numbers():
    assert parse_insert("INSERT INTO t VALUES (+5, +2.5)") == Insert("t", None, ((5, 2.5),))
    with pytest.raises(SqlSyntaxError, match="Expected number after"):
        parse_insert("INSERT INTO t VALUES (+'x')")
