from datetime import date

import pytest

from sms.validation import (
    ReceiveLine,
    SaleLineInput,
    ValidationError,
    clean_date,
    parse_receive_lines,
    parse_sale_lines,
    percent_to_bps,
)


@pytest.mark.parametrize("value, expected", [
    (None, 0),
    ("", 0),
    (0, 0),
    (12.5, 1250),
    ("7.25", 725),
    (100, 10000),
    ("0.01", 1),
    (33.33, 3333),
])
def test_percent_to_bps(value, expected):
    assert percent_to_bps(value) == expected


@pytest.mark.parametrize("value", [-1, 100.01, "abc", True, float("inf"), "nan", "12.345", "0.004"])
def test_percent_to_bps_rejects(value):
    with pytest.raises(ValidationError):
        percent_to_bps(value)


def test_clean_date_accepts_iso_forms():
    assert clean_date("2024-03-01", "d") == date(2024, 3, 1)
    assert clean_date("2024-03-01T10:00:00Z", "d") == date(2024, 3, 1)
    assert clean_date(date(2024, 3, 1), "d") == date(2024, 3, 1)


def test_clean_date_keeps_the_written_calendar_day():
    assert clean_date("2024-03-01T01:00:00+05:30", "d") == date(2024, 3, 1)
    assert clean_date("2024-03-01T23:30:00-04:00", "d") == date(2024, 3, 1)
    assert clean_date("2024-03-01T00:15:00", "d") == date(2024, 3, 1)


def test_clean_date_rejects_missing():
    with pytest.raises(ValidationError):
        clean_date(None, "date_of_sale")


def test_parse_sale_lines_mixes_mappings_and_dataclasses():
    lines = parse_sale_lines([
        {"product_id": "3", "quantity": 2},
        SaleLineInput(product_id=4, quantity=1, unit_price_cents=50),
    ])

    assert lines[0] == SaleLineInput(product_id=3, quantity=2, unit_price_cents=None)
    assert lines[1].unit_price_cents == 50


def test_parse_errors_name_the_line():
    with pytest.raises(ValidationError) as exc_info:
        parse_sale_lines([{"product_id": 1, "quantity": 1}, {"product_id": 1, "quantity": 1.5}])

    assert exc_info.value.message.startswith("items[1]:")


def test_parse_receive_lines_strips_text():
    lines = parse_receive_lines([
        {"product_code": "  RC-1 ", "quantity": 1, "unit_price_cents": 0, "brand": "  "},
    ])

    assert lines == [ReceiveLine(product_code="RC-1", quantity=1, unit_price_cents=0)]


def test_items_must_be_a_list():
    with pytest.raises(ValidationError):
        parse_sale_lines({"product_id": 1, "quantity": 1})
