from stagedb import Database
from stagedb.config import Settings


def test_create_and_drop_toggle_collection(db):
    assert db.execute("CREATE TABLE t (a INTEGER)") == "Table 't' created"
    assert db.store.has_collection("t")
    assert db.execute("DROP TABLE t") == "Table 't' dropped"
    assert not db.store.has_collection("t")


def test_create_existing_table(db):
    db.execute("CREATE TABLE t (a)")
    assert db.execute("CREATE TABLE t (a)") == "ERROR: Table 't' already exists"
    assert db.execute("CREATE TABLE IF NOT EXISTS t (a)") == "Table 't' already exists (skipped)"


def test_drop_missing_table(db):
    assert db.execute("DROP TABLE ghost") == "ERROR: Table 'ghost' does not exist"
    assert db.execute("DROP TABLE IF EXISTS ghost") == "Table 'ghost' does not exist (skipped)"


def test_schema_validation(db):
    assert db.execute("CREATE TABLE t (a PRIMARY KEY, b PRIMARY KEY)") == (
        "ERROR: Table can have only one PRIMARY KEY"
    )
    assert db.execute("CREATE TABLE t (a, a)") == "ERROR: Duplicate column name 'a' in table 't'"
    assert not db.store.has_collection("t")


def test_insert_then_scan_returns_values(db):
    db.execute("CREATE TABLE t (a INTEGER, b TEXT, c REAL)")
    assert db.execute("INSERT INTO t VALUES (1, 'x, y', 2.5)") == "1 row inserted into 't'"
    assert db.store.get_collection("t").rows == [{"a": 1, "b": "x, y", "c": 2.5}]


def test_insert_arity_mismatch_inserts_nothing(db):
    db.execute("CREATE TABLE t (a, b, c)")
    out = db.execute("INSERT INTO t VALUES (1, 2)")
    assert out.startswith("ERROR: Column count mismatch")
    assert "has 3 columns, but INSERT provides 2 values" in out
    assert db.store.get_collection("t").rows == []


def test_batch_insert_is_all_or_nothing(db):
    db.execute("CREATE TABLE t (a, b)")
    out = db.execute("INSERT INTO t VALUES (1, 2), (3), (5, 6)")
    assert out.startswith("ERROR: Column count mismatch (row 2)")
    assert len(db.store.get_collection("t")) == 0

    assert db.execute("INSERT INTO t VALUES (1, 2), (3, 4)") == "2 rows inserted into 't'"


def test_insert_named_columns_uses_defaults(db):
    db.execute("CREATE TABLE t (id INTEGER PRIMARY KEY, status TEXT DEFAULT 'new', note)")
    db.execute("INSERT INTO t (id) VALUES (7)")
    assert db.store.get_collection("t").rows == [{"id": 7, "status": "new", "note": None}]


def test_insert_errors(db):
    db.execute("CREATE TABLE t (id INTEGER PRIMARY KEY, name TEXT NOT NULL)")
    assert db.execute("INSERT INTO ghost VALUES (1)") == "ERROR: Table 'ghost' does not exist"
    assert db.execute("INSERT INTO t (id, nope) VALUES (1, 2)") == (
        "ERROR: Column 'nope' does not exist in table 't'"
    )
    assert db.execute("INSERT INTO t (id) VALUES (1)") == "ERROR: Column 'name' cannot be NULL"
    assert db.execute("INSERT INTO t VALUES (NULL, 'x')") == "ERROR: Column 'id' cannot be NULL"
    assert db.execute("INSERT INTO t (id, name) VALUES (1)").startswith("ERROR: Column count mismatch")
    assert len(db.store.get_collection("t")) == 0


def test_update(people):
    assert people.execute("UPDATE users SET city = 'SF' WHERE age > 28") == "2 rows updated"
    rows = people.store.get_collection("users").rows
    assert [r["city"] for r in rows] == ["SF", "LA", "SF", "Boston", None]
    assert people.execute("UPDATE users SET age = 1") == "5 rows updated"
    assert people.execute("UPDATE users SET age = 2 WHERE id = 99") == "0 rows updated"


def test_update_validates_before_mutating(people):
    assert people.execute("UPDATE users SET salary = 1") == (
        "ERROR: Column 'salary' does not exist in table 'users'"
    )
    assert people.execute("UPDATE users SET age = 1 WHERE salary > 1") == (
        "ERROR: Column 'salary' does not exist in table 'users'"
    )
    assert people.execute("UPDATE users SET name = NULL") == "ERROR: Column 'name' cannot be NULL"
    assert [r["age"] for r in people.store.get_collection("users").rows] == [30, 25, 35, 28, None]


def test_delete(people):
    assert people.execute("DELETE FROM users WHERE city = 'NYC'") == "2 rows deleted"
    assert people.execute("DELETE FROM users WHERE id = 2") == "1 row deleted"
    assert people.execute("DELETE FROM users") == "2 rows deleted"
    assert len(people.store.get_collection("users")) == 0


def test_delete_validates_where_columns(people):
    assert people.execute("DELETE FROM users WHERE salary > 1") == (
        "ERROR: Column 'salary' does not exist in table 'users'"
    )
    assert people.execute("DELETE FROM ghost") == "ERROR: Table 'ghost' does not exist"
    assert len(people.store.get_collection("users")) == 5


def test_syntax_errors_are_results(db):
    out = db.execute("SELECT FROM")
    assert out.startswith("ERROR: Invalid SELECT syntax")
    assert "Expected: SELECT" in out


def test_unrecognized_statement_reports_decline_history(db):
    report = db.run("SHOW TABLES")
    assert report.result.is_error
    assert report.rejected[0].trace.declined_by == tuple(s.name for s in db.dispatcher().stages)
    assert "create_table.parse" in report.text


def test_unrecognized_statement_short_error(store, tmp_path):
    db = Database(store=store, settings=Settings(data_dir=tmp_path, detailed_errors=False))
    assert db.execute("EXPLAIN SELECT 1") == "ERROR: Invalid SQL syntax"


def test_execute_script_keeps_going_after_errors(db):
    results = db.execute_script(
        """
        CREATE TABLE t (a);
        INSERT INTO t VALUES ('semi;colon');
        INSERT INTO nope VALUES (1);
        SELECT a FROM t;
        """
    )
    assert results[0] == "Table 't' created"
    assert results[1] == "1 row inserted into 't'"
    assert results[2].startswith("ERROR:")
    assert results[3].splitlines()[-1] == "semi;colon"


def test_keywords_case_insensitive(db):
    assert db.execute("create table T (x integer)") == "Table 'T' created"
    assert db.execute("insert into T values (1)") == "1 row inserted into 'T'"
    assert db.execute("select x from T where x = 1").startswith("1 row returned")


def test_plus_signed_values_insert(db):
    db.execute("CREATE TABLE t (a INTEGER, b REAL)")
    assert db.execute("INSERT INTO t VALUES (+5, +2.5)") == "1 row inserted into 't'"
    assert db.execute("SELECT a FROM t WHERE b = +2.5").startswith("1 row returned")
