from datetime import date, datetime

import pytest

from parsing import (
    br_date, br_money, br_percent, day_key, normalize_status, normalize_unit_name,
    parse_currency, parse_date, parse_int,
)


@pytest.mark.parametrize("raw, expected", [
    ("R$ 1.234,56", 1234.56),
    ("R$1.000.000,00", 1000000.0),
    ("1234,5", 1234.5),
    ("980.00", 980.0),
    ("  42 ", 42.0),
    ("12abc", 12.0),
    ("", 0.0),
    (None, 0.0),
    ("abc", 0.0),
    ("R$ ", 0.0),
])
def test_parse_currency(raw, expected):
    assert parse_currency(raw) == pytest.approx(expected)


def test_parse_currency_nan_is_zero():
    assert parse_currency(float("nan")) == 0.0


@pytest.mark.parametrize("raw", [
    "2024-03-10",
    "10/03/2024",
    "10.03.2024",
    "10-03-2024",
    "2024/03/10",
    "10/3/2024",
    "10/03/2024 14:35:00",
    "2024-03-10 23:59",
    "10/03/24",
])
def test_parse_date_formats_land_on_local_noon(raw):
    assert parse_date(raw) == datetime(2024, 3, 10, 12, 0, 0)


def test_parse_date_uses_general_parser_as_fallback():
    assert parse_date("March 10, 2024") == datetime(2024, 3, 10, 12, 0, 0)


@pytest.mark.parametrize("raw", ["", None, "   ", "not a date", "31/02/2024", "2024-13-01"])
def test_parse_date_returns_none_when_unparseable(raw):
    assert parse_date(raw) is None


def test_normalizers_trim_and_uppercase():
    assert normalize_unit_name("  filial sp ") == "FILIAL SP"
    assert normalize_status(" no prazo") == "NO PRAZO"
    assert normalize_status("não baixado") == "NÃO BAIXADO"
    assert normalize_unit_name(None) == ""
    assert normalize_unit_name(float("nan")) == ""


@pytest.mark.parametrize("raw, expected", [("22", 22), ("22 dias", 22), ("", 0), ("abc", 0), (None, 0)])
def test_parse_int(raw, expected):
    assert parse_int(raw) == expected


def test_day_key():
    assert day_key(datetime(2024, 3, 10, 12)) == date(2024, 3, 10)
    assert day_key(date(2024, 3, 10)) == date(2024, 3, 10)
    assert day_key(None) is None


def test_display_formatting():
    assert br_money(1234.5) == "R$ 1.234,50"
    assert br_money(0) == "R$ 0,00"
    assert br_percent(15) == "15,0%"
    assert br_date(datetime(2024, 3, 10, 12)) == "10/03/2024"
    assert br_date(None) == ""


@pytest.mark.parametrize("raw", [
    "10/03/2024²",
    "2024²-03-10",
    "1/1/99999999999999999999",
    "99999999999999999999-01-01",
])
def test_parse_date_malformed_cells_do_not_raise(raw):
    assert parse_date(raw) is None
