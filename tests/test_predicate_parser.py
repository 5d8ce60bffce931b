import pytest

from stagedb.ast import Comparison, Logical, Range
from stagedb.errors import SqlSyntaxError
from stagedb.parser import parse_predicate


def test_single_comparison():
    assert parse_predicate("age > 25") == Comparison("age", ">", 25)


def test_flat_conjunction():
    pred = parse_predicate("age > 25 AND city = 'NYC'")
    assert pred == Logical(Comparison("age", ">", 25), "AND", Comparison("city", "=", "NYC"))


def test_between_is_a_single_leaf():
    pred = parse_predicate("age BETWEEN 28 AND 32")
    assert pred == Comparison("age", "BETWEEN", Range(28, 32))


def test_between_followed_by_combinator():
    pred = parse_predicate("age BETWEEN 28 AND 32 AND city='NYC'")
    assert isinstance(pred, Logical)
    assert pred.combinator == "AND"
    assert pred.left == Comparison("age", "BETWEEN", Range(28, 32))
    assert pred.right == Comparison("city", "=", "NYC")


def test_between_after_combinator():
    pred = parse_predicate("city = 'LA' OR age BETWEEN 1 AND 2")
    assert pred.combinator == "OR"
    assert pred.right == Comparison("age", "BETWEEN", Range(1, 2))


def test_or_binds_looser_than_and():
    pred = parse_predicate("a = 1 AND b = 2 OR c = 3")
    assert pred.combinator == "OR"
    assert pred.left == Logical(Comparison("a", "=", 1), "AND", Comparison("b", "=", 2))
    assert pred.right == Comparison("c", "=", 3)

    pred = parse_predicate("a = 1 OR b = 2 AND c = 3")
    assert pred.combinator == "OR"
    assert pred.left == Comparison("a", "=", 1)
    assert pred.right == Logical(Comparison("b", "=", 2), "AND", Comparison("c", "=", 3))


def test_parentheses_group():
    pred = parse_predicate("(a = 1 OR b = 2) AND c = 3")
    assert pred.combinator == "AND"
    assert pred.left.combinator == "OR"


def test_null_tests():
    assert parse_predicate("email IS NULL") == Comparison("email", "IS NULL")
    assert parse_predicate("email is not null") == Comparison("email", "IS NOT NULL")


def test_in_list():
    pred = parse_predicate("city IN ('NYC', 'LA', 3)")
    assert pred == Comparison("city", "IN", ("NYC", "LA", 3))


def test_like():
    assert parse_predicate("name LIKE 'A%'") == Comparison("name", "LIKE", "A%")


def test_operator_variants():
    for op in ("=", "!=", "<>", "<", ">", "<=", ">="):
        assert parse_predicate(f"x {op} 1").op == op


def test_literals():
    assert parse_predicate("x = -5").operand == -5
    assert parse_predicate("x = 2.5").operand == 2.5
    assert parse_predicate("x = NULL").operand is None
    assert parse_predicate("x = bare").operand == "bare"
    assert parse_predicate("x = 'a, b'").operand == "a, b"


@pytest.mark.parametrize(
    "clause",
    [
        "",
        "age >",
        "age 25",
        "age BETWEEN 1",
        "age BETWEEN 1 OR 2",
        "(a = 1",
        "a = 1 AND",
        "a IN ()",
        "a = 1 b = 2",
    ],
)
def test_malformed_clauses_raise(clause):
    with pytest.raises(SqlSyntaxError):
        parse_predicate(clause)


def test_error_quotes_the_clause():
    with pytest.raises(SqlSyntaxError) as exc:
        parse_predicate("age > 1 AND city")
    assert exc.value.fragment == "age > 1 AND city"
    assert "Invalid WHERE condition" in str(exc.value)


def test_plus_signed_operand():
    assert parse_predicate("x = +3") == Comparison("x", "=", 3)
