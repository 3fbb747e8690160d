"""
Split Policy - Share calculation and reconciliation.

Responsibilities:
- Calculate equal splits
- Validate custom (exact) splits
- Validate that shares reconcile to the total within one cent
"""
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, List, Optional, Sequence

from splitledger.errors import InvalidSplit, ValidationError
from splitledger.utils.enums import SplitMode
from splitledger.utils.permissions import member_identity_of
from splitledger.utils.validators import AMOUNT_TOLERANCE, amounts_reconcile, to_amount


class SplitPolicy:
    """Computes per-participant shares for an expense total."""

    @classmethod
    def compute_split(
        cls,
        total: float,
        participants: Sequence[Any],
        mode: SplitMode = SplitMode.EQUAL,
        amounts: Optional[Sequence[Any]] = None,
        redistribute_remainder: bool = False,
    ) -> List[Dict[str, Any]]:
        """
        Compute the share owed by each participant.

        Args:
            total: Expense total
            participants: Participant identities, in split order
            mode: SplitMode.EQUAL or SplitMode.CUSTOM
            amounts: One amount per participant (custom mode only)
            redistribute_remainder: Equal mode only; give leftover cents to
                the first participant so shares sum exactly to the total

        Returns:
            List of {user, amount} dicts

        Raises:
            InvalidSplit: empty equal split, negative or unreconciled shares
        """
        mode = SplitMode(mode)
        if mode == SplitMode.EQUAL:
            if redistribute_remainder:
                return cls.calculate_equal_split_exact(total, participants)
            return cls.calculate_equal_split(total, participants)
        return cls.calculate_custom_split(total, participants, amounts or [])

    @classmethod
    def calculate_equal_split(cls, total: float, participants: Sequence[Any]) -> List[Dict[str, Any]]:
        """
        Same rounded share for every participant.

        Leftover cents are not redistributed: 100.00 / 3 yields three shares
        of 33.33. The drift is accepted while it stays within the tolerance.
        """
        if not participants:
            raise InvalidSplit("Cannot split an expense between zero participants")

        share = round(total / len(participants), 2)
        splits = [{"user": member_identity_of(p), "amount": share} for p in participants]
        cls._require_reconciled(total, splits)
        return splits

    @classmethod
    def calculate_equal_split_exact(cls, total: float, participants: Sequence[Any]) -> List[Dict[str, Any]]:
        """Equal split where the first participant absorbs the remainder cents."""
        if not participants:
            raise InvalidSplit("Cannot split an expense between zero participants")

        n = len(participants)
        exact_total = Decimal(str(total)).quantize(Decimal('0.01'), rounding=ROUND_HALF_UP)
        base_split = (exact_total / n).quantize(Decimal('0.01'), rounding=ROUND_HALF_UP)
        remainder = exact_total - base_split * n

        splits = []
        for i, participant in enumerate(participants):
            amount = base_split + remainder if i == 0 else base_split
            splits.append({"user": member_identity_of(participant), "amount": float(amount)})
        return splits

    @classmethod
    def calculate_custom_split(
        cls,
        total: float,
        participants: Sequence[Any],
        amounts: Sequence[Any],
    ) -> List[Dict[str, Any]]:
        """Validate caller-supplied amounts; nothing is recomputed."""
        if len(amounts) != len(participants):
            raise InvalidSplit(
                "Custom split needs exactly one amount per participant",
                details={"expected": len(participants), "actual": len(amounts)},
            )
        splits = [
            {"user": member_identity_of(p), "amount": amount}
            for p, amount in zip(participants, amounts)
        ]
        return cls.validate_shares(total, splits)

    @classmethod
    def validate_shares(cls, total: float, shares: Sequence[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """
        Validate an explicit [{user, amount}] list against the total.

        Returns the shares with identities normalized and amounts as floats.
        """
        if not shares:
            raise InvalidSplit("At least one split partner is required")

        validated = []
        for index, share in enumerate(shares):
            user = member_identity_of(share.get("user")) if isinstance(share, dict) else None
            if not user:
                raise InvalidSplit(
                    "Each split must have both user and amount",
                    details={"index": index},
                )
            try:
                amount = to_amount(share.get("amount"), "splitWith.amount")
            except ValidationError:
                raise InvalidSplit(
                    "Split amount must be a valid number",
                    details={"index": index, "actual": share.get("amount")},
                )
            if amount < 0:
                raise InvalidSplit(
                    "Split amount cannot be negative",
                    details={"index": index, "user": user, "actual": amount},
                )
            validated.append({"user": user, "amount": amount})

        cls._require_reconciled(total, validated)
        return validated

    @staticmethod
    def _require_reconciled(total: float, splits: Sequence[Dict[str, Any]]) -> None:
        split_sum = sum(s["amount"] for s in splits)
        if not amounts_reconcile(total, (s["amount"] for s in splits)):
            raise InvalidSplit(
                "Split amounts must equal the total expense amount",
                details={
                    "expected": round(total, 2),
                    "actual": round(split_sum, 2),
                    "tolerance": AMOUNT_TOLERANCE,
                },
            )
