from datetime import date, datetime

import pytest

from calccore.errors import ValidationError
from calccore.functional import Left, Nothing, Right, Some, sequence
from calccore.parsing import parse_code, parse_date, parse_number, parse_text, unwrap


def test_maybe_map():
    assert Some(5).map(lambda x: x * 2).get_or_else(0) == 10
    assert Nothing().map(lambda x: x * 2).get_or_else(0) == 0
    assert Nothing().is_none()


def test_either_bind():
    def safe_divide(x):
        if x == 0:
            return Left("Division by zero")
        return Right(10 / x)

    assert Right(2).bind(safe_divide) == Right(5.0)
    assert Right(0).bind(safe_divide).get_error() == "Division by zero"
    assert Left("original").bind(safe_divide) == Left("original")


def test_sequence_returns_first_left():
    assert sequence(Right(1), Right(2)) == Right((1, 2))
    assert sequence(Right(1), Left("a"), Left("b")) == Left("a")


@pytest.mark.parametrize("raw,expected", [
    ("42", 42.0),
    (" 3.5 ", 3.5),
    ("1,000", 1000.0),
    (7, 7.0),
    (-2.5, -2.5),
])
def test_parse_number_accepts(raw, expected):
    assert parse_number(raw, "x") == Right(expected)


@pytest.mark.parametrize("raw,code", [
    ("abc", "not_a_number"),
    ("", "not_a_number"),
    (None, "not_a_number"),
    (True, "not_a_number"),
    ("inf", "non_finite"),
    ("nan", "non_finite"),
])
def test_parse_number_rejects(raw, code):
    result = parse_number(raw, "x")
    assert result.is_left()
    assert result.get_error()["error"] == code
    assert result.get_error()["field"] == "x"


def test_parse_number_domain_rules():
    assert parse_number("0", "amount", positive=True).get_error()["error"] == "not_positive"
    assert parse_number("-1", "amount", non_negative=True).get_error()["error"] == "negative"
    assert parse_number("0", "amount", non_negative=True) == Right(0.0)


def test_parse_date():
    assert parse_date("1990-05-15", "born") == Right(date(1990, 5, 15))
    assert parse_date(date(2000, 1, 1), "born") == Right(date(2000, 1, 1))
    assert parse_date(datetime(2000, 1, 1, 10, 30), "born") == Right(date(2000, 1, 1))
    assert parse_date("15/05/1990", "born").is_left()
    assert parse_date("", "born").is_left()


def test_parse_text_and_code():
    assert parse_text("  Rent ", "description") == Right("Rent")
    assert parse_text("  ", "description").get_error()["error"] == "empty_description"
    assert parse_code("usd", "from") == Right("USD")


def test_unwrap_raises_validation_error():
    assert unwrap(Right(3)) == 3
    with pytest.raises(ValidationError) as exc:
        unwrap(parse_number("abc", "amount"))
    assert exc.value.code == "not_a_number"
    assert exc.value.field == "amount"
    assert exc.value.to_dict()["error"] == "not_a_number"
