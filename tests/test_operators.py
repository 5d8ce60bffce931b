import pytest

from stagedb.ast import OrderBy, Select
from stagedb.stages.operators import DistinctStage, LimitStage, ProjectStage, RowSetStage, order_rows
from stagedb.units import Phase, RowSet, WorkUnit


def names(result):
    """Data lines of a rendered row listing, first column only."""
    lines = result.splitlines()[4:]
    return [line.split("\t")[0] for line in lines]


def test_order_nulls_last_both_directions():
    rows = [{"e": None}, {"e": "b"}, {"e": "a"}]
    assert [r["e"] for r in order_rows(rows, "e")] == ["a", "b", None]
    assert [r["e"] for r in order_rows(rows, "e", descending=True)] == ["b", "a", None]


def test_order_is_stable_and_numeric():
    rows = [{"n": "10", "k": 1}, {"n": 9, "k": 2}, {"n": 10, "k": 3}]
    ordered = order_rows(rows, "n")
    assert [r["k"] for r in ordered] == [2, 1, 3]
    ordered = order_rows(rows, "n", descending=True)
    assert [r["k"] for r in ordered] == [1, 3, 2]


def test_limit_offset_slices():
    sel = Select(table_name="t", limit=2, offset=1)
    rs = RowSet(rows=tuple({"i": i} for i in range(1, 6)), columns=("i",), select=sel)
    out = LimitStage().apply(rs)
    assert [r["i"] for r in out.rows] == [2, 3]
    assert out.phase == Phase.LIMITED


def test_project_then_distinct():
    sel = Select(table_name="t", columns=("c",), distinct=True)
    rs = RowSet(
        rows=({"c": "red", "x": 1}, {"c": "blue", "x": 2}, {"c": "red", "x": 3}),
        columns=("c",),
        select=sel,
    )
    projected = ProjectStage().apply(rs)
    assert projected.rows == ({"c": "red"}, {"c": "blue"}, {"c": "red"})
    deduped = DistinctStage().apply(projected)
    assert [r["c"] for r in deduped.rows] == ["red", "blue"]


def test_operators_do_not_reprocess_their_output():
    sel = Select(table_name="t", limit=1)
    rs = RowSet(rows=({"i": 1}, {"i": 2}), columns=("i",), select=sel)
    stage = LimitStage()
    assert stage.matches(WorkUnit(payload=rs))
    assert not stage.matches(WorkUnit(payload=stage.apply(rs)))


def test_operator_skipped_when_not_requested():
    rs = RowSet(rows=(), columns=("i",), select=Select(table_name="t"))
    assert not LimitStage().matches(WorkUnit(payload=rs))
    assert not DistinctStage().matches(WorkUnit(payload=rs))


def test_select_pipeline_end_to_end(people):
    out = people.execute("SELECT name FROM users WHERE age > 25 AND city = 'NYC' ORDER BY age DESC")
    assert out.splitlines()[0] == "2 rows returned"
    assert names(out) == ["Carol", "Alice"]


def test_order_by_column_not_projected(people):
    out = people.execute("SELECT name FROM users ORDER BY age")
    assert names(out) == ["Bob", "Dave", "Alice", "Carol", "Eve"]


def test_limit_offset_in_query(people):
    out = people.execute("SELECT name FROM users LIMIT 2 OFFSET 1")
    assert names(out) == ["Bob", "Carol"]


def test_distinct_after_order(people):
    out = people.execute("SELECT DISTINCT city FROM users ORDER BY city")
    assert names(out) == ["Boston", "LA", "NYC", "NULL"]


def test_between_and_combinator_query(people):
    out = people.execute("SELECT name FROM users WHERE age BETWEEN 28 AND 32 AND city = 'NYC'")
    assert names(out) == ["Alice"]


def test_like_in_and_null_queries(people):
    assert names(people.execute("SELECT name FROM users WHERE name LIKE '%a%' ORDER BY name")) == [
        "Alice",
        "Carol",
        "Dave",
    ]
    assert names(people.execute("SELECT name FROM users WHERE id IN (2, 4)")) == ["Bob", "Dave"]
    assert names(people.execute("SELECT name FROM users WHERE age IS NULL")) == ["Eve"]


def test_row_listing_format(people):
    out = people.execute("SELECT name, age FROM users WHERE id >= 4")
    assert out.splitlines() == [
        "2 rows returned",
        "",
        "name\tage",
        "-" * (len("name\tage") + 6),
        "Dave\t28",
        "Eve\tNULL",
    ]


def test_single_row_and_empty_results(people):
    assert people.execute("SELECT * FROM users WHERE id = 1").splitlines()[0] == "1 row returned"
    assert people.execute("SELECT * FROM users WHERE id = 99") == "0 rows returned"


def test_select_star_uses_schema_order(people):
    out = people.execute("SELECT * FROM users WHERE id = 2")
    assert out.splitlines()[2] == "id\tname\tage\tcity"
    assert out.splitlines()[4] == "2\tBob\t25\tLA"


def test_select_errors(people):
    assert people.execute("SELECT * FROM nope") == "ERROR: Table 'nope' does not exist"
    assert people.execute("SELECT salary FROM users") == "ERROR: Column 'salary' does not exist in table 'users'"
    assert people.execute("SELECT * FROM users ORDER BY salary") == "ERROR: ORDER BY column 'salary' does not exist"
    assert people.execute("SELECT * FROM users WHERE salary > 1") == (
        "ERROR: Column 'salary' does not exist in table 'users'"
    )


def test_order_by_object_default_direction():
    assert OrderBy("x").descending is False


def test_order_treats_special_float_spellings_as_text():
    rows = [{"v": "inf"}, {"v": 2}, {"v": "10"}]
    assert [r["v"] for r in order_rows(rows, "v")] == [2, "10", "inf"]
    rows = [{"v": "1_0"}, {"v": 5}]
    assert [r["v"] for r in order_rows(rows, "v")] == ["1_0", 5]


def test_operator_base_requires_applies_and_apply():
    with pytest.raises(TypeError):
        RowSetStage()

    class HalfDone(RowSetStage):
        phase = Phase.FILTERED

        def applies(self, select):
            return True

    with pytest.raises(TypeError):
        HalfDone()
