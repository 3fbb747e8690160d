from datetime import datetime, timezone

import pytest

from splitledger.errors import ValidationError
from splitledger.utils.validators import (
    amounts_reconcile, clean_text, normalize_currency, parse_date,
    require_keys, require_positive_amount, to_amount,
)


def test_require_keys_names_the_missing_field():
    with pytest.raises(ValidationError) as exc:
        require_keys({"description": "x"}, "description", "amount")
    assert exc.value.field == "amount"
    assert "amount" in exc.value.message


@pytest.mark.parametrize("value", [None, True, "abc", float("nan"), float("inf"), [1]])
def test_to_amount_rejects_non_numbers(value):
    with pytest.raises(ValidationError):
        to_amount(value)


def test_to_amount_accepts_numeric_strings():
    assert to_amount("12.5") == 12.5


@pytest.mark.parametrize("value", [0, 0.01, -5])
def test_amount_must_exceed_one_cent(value):
    with pytest.raises(ValidationError) as exc:
        require_positive_amount(value)
    assert exc.value.field == "amount"


def test_smallest_accepted_amount():
    assert require_positive_amount(0.02) == 0.02


def test_amounts_reconcile_within_one_cent():
    assert amounts_reconcile(100.00, [33.33, 33.33, 33.33])
    assert amounts_reconcile(100.00, [50.00, 50.01])
    assert not amounts_reconcile(100.00, [40.00, 40.00, 19.00])


def test_currency_is_normalized_and_defaulted():
    assert normalize_currency(None) == "USD"
    assert normalize_currency(" eur ") == "EUR"
    with pytest.raises(ValidationError):
        normalize_currency("EURO")


def test_clean_text_trims_and_limits_length():
    assert clean_text("  Dinner ", "description", 200) == "Dinner"
    with pytest.raises(ValidationError):
        clean_text("   ", "description", 200)
    with pytest.raises(ValidationError):
        clean_text("x" * 201, "description", 200)
    assert clean_text(None, "description", 10, required=False) == ""


def test_parse_date_accepts_iso_and_assumes_utc():
    parsed = parse_date("2024-05-01T19:00:00Z")
    assert parsed == datetime(2024, 5, 1, 19, 0, tzinfo=timezone.utc)
    assert parse_date("2024-05-01").tzinfo == timezone.utc
    assert parse_date(None) is None
    with pytest.raises(ValidationError):
        parse_date("yesterday")
