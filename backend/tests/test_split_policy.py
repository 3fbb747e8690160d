"""SplitPolicy: equal and custom shares, reconciliation tolerance."""
import pytest

from splitledger.core.split_service import SplitPolicy
from splitledger.errors import InvalidSplit, ValidationError
from splitledger.utils.enums import SplitMode


def _total(splits):
    return sum(s["amount"] for s in splits)


def test_equal_split_three_ways_is_exact():
    splits = SplitPolicy.compute_split(90.00, ["a", "b", "c"], SplitMode.EQUAL)

    assert [s["user"] for s in splits] == ["a", "b", "c"]
    assert all(s["amount"] == 30.00 for s in splits)
    assert _total(splits) == pytest.approx(90.00)


def test_equal_split_keeps_rounding_drift_without_redistribution():
    splits = SplitPolicy.compute_split(100.00, ["a", "b", "c"], SplitMode.EQUAL)

    assert all(s["amount"] == 33.33 for s in splits)
    assert _total(splits) == pytest.approx(99.99)


def test_equal_split_with_remainder_redistribution_sums_exactly():
    splits = SplitPolicy.compute_split(
        100.00, ["a", "b", "c"], SplitMode.EQUAL, redistribute_remainder=True
    )

    assert splits[0]["amount"] == 33.34
    assert splits[1]["amount"] == 33.33
    assert splits[2]["amount"] == 33.33
    assert round(_total(splits), 2) == 100.00


def test_equal_split_rejects_drift_beyond_tolerance():
    # 1.00 / 7 rounds to 0.14 each: 0.98, two cents short
    with pytest.raises(InvalidSplit):
        SplitPolicy.compute_split(1.00, list("abcdefg"), SplitMode.EQUAL)

    splits = SplitPolicy.compute_split(1.00, list("abcdefg"), SplitMode.EQUAL, redistribute_remainder=True)
    assert round(_total(splits), 2) == 1.00


def test_equal_split_needs_participants():
    with pytest.raises(InvalidSplit) as exc:
        SplitPolicy.compute_split(50.00, [], SplitMode.EQUAL)
    assert exc.value.field == "splitWith"


def test_custom_split_passes_amounts_through():
    splits = SplitPolicy.compute_split(100.00, ["a", "b"], SplitMode.CUSTOM, amounts=[70.00, 30.00])

    assert splits == [{"user": "a", "amount": 70.00}, {"user": "b", "amount": 30.00}]


def test_custom_split_mismatch_is_rejected_with_context():
    with pytest.raises(InvalidSplit) as exc:
        SplitPolicy.compute_split(
            100.00, ["a", "b", "c"], SplitMode.CUSTOM, amounts=[40.00, 40.00, 19.00]
        )

    assert exc.value.details["expected"] == 100.00
    assert exc.value.details["actual"] == 99.00
    assert isinstance(exc.value, ValidationError)


def test_custom_split_within_one_cent_is_accepted():
    splits = SplitPolicy.compute_split(
        100.00, ["a", "b", "c"], SplitMode.CUSTOM, amounts=[33.33, 33.33, 33.33]
    )
    assert len(splits) == 3


def test_custom_split_rejects_negative_amount():
    with pytest.raises(InvalidSplit):
        SplitPolicy.compute_split(10.00, ["a", "b"], SplitMode.CUSTOM, amounts=[15.00, -5.00])


def test_custom_split_needs_one_amount_per_participant():
    with pytest.raises(InvalidSplit):
        SplitPolicy.compute_split(10.00, ["a", "b"], SplitMode.CUSTOM, amounts=[10.00])


def test_validate_shares_accepts_numeric_strings_and_populated_users():
    shares = SplitPolicy.validate_shares(
        20.00,
        [{"user": {"_id": "a", "name": "A"}, "amount": "12.50"}, {"user": "b", "amount": 7.5}],
    )
    assert shares == [{"user": "a", "amount": 12.50}, {"user": "b", "amount": 7.50}]


def test_validate_shares_rejects_missing_user():
    with pytest.raises(InvalidSplit):
        SplitPolicy.validate_shares(10.00, [{"amount": 10.00}])


def test_validate_shares_rejects_non_numeric_amount():
    with pytest.raises(InvalidSplit):
        SplitPolicy.validate_shares(10.00, [{"user": "a", "amount": "ten"}])
