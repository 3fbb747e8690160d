"""Expense models."""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from splitledger.errors import Forbidden, InvalidSplit, ValidationError
from splitledger.utils.documents import isoformat as _iso, to_document_id as _oid, utcnow
from splitledger.utils.enums import ExpenseCategory
from splitledger.utils.permissions import member_identity_of, same_identity
from splitledger.utils.validators import (
    AMOUNT_TOLERANCE, amounts_reconcile, clean_text, normalize_currency,
    parse_date, require_positive_amount, to_amount,
)

DESCRIPTION_MAX_LENGTH = 200

# Fields an update request may replace
UPDATABLE_FIELDS = ("description", "amount", "currency", "category", "date", "splitWith")


@dataclass
class SplitEntry:
    user: str
    amount: float
    settled: bool = False
    settled_at: Optional[datetime] = None

    def to_document(self) -> Dict[str, Any]:
        return {
            "user": _oid(self.user),
            "amount": self.amount,
            "settled": self.settled,
            "settledAt": self.settled_at,
        }

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> "SplitEntry":
        return cls(
            user=member_identity_of(doc.get("user")),
            amount=float(doc.get("amount", 0)),
            settled=bool(doc.get("settled", False)),
            settled_at=doc.get("settledAt"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "user": self.user,
            "amount": round(self.amount, 2),
            "settled": self.settled,
            "settledAt": _iso(self.settled_at),
        }


@dataclass
class Expense:
    description: str
    amount: float
    created_by: str
    paid_by: str
    split_with: List[SplitEntry]
    currency: str = "USD"
    category: str = ExpenseCategory.OTHER.value
    date: datetime = field(default_factory=utcnow)
    group: Optional[str] = None
    is_settled: bool = False
    settled_at: Optional[datetime] = None
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)
    id: Optional[str] = None
    version: int = 0

    @classmethod
    def create(
        cls,
        description: Any,
        amount: Any,
        created_by: str,
        split_with: List[Dict[str, Any]],
        payer: Optional[str] = None,
        currency: Optional[str] = None,
        category: Optional[str] = None,
        date: Any = None,
        group: Optional[str] = None,
    ) -> "Expense":
        """
        Build a validated expense.

        Membership eligibility is not checked here; the orchestrating service
        runs the membership gate before construction.

        Raises:
            ValidationError: naming the offending field
            InvalidSplit: split shares do not reconcile to the amount
        """
        now = utcnow()
        expense = cls(
            description=clean_text(description, "description", DESCRIPTION_MAX_LENGTH),
            amount=require_positive_amount(amount),
            created_by=member_identity_of(created_by),
            paid_by=member_identity_of(payer) or member_identity_of(created_by),
            split_with=cls._build_entries(split_with),
            currency=normalize_currency(currency),
            category=cls._validate_category(category),
            date=parse_date(date) or now,
            group=member_identity_of(group),
            created_at=now,
            updated_at=now,
        )
        expense.check_split_invariant()
        return expense

    @staticmethod
    def _validate_category(category: Optional[str]) -> str:
        if category is None or category == "":
            return ExpenseCategory.OTHER.value
        try:
            return ExpenseCategory(category).value
        except ValueError:
            raise ValidationError(
                f"Invalid category: {category}",
                field="category",
                details={"expected": [c.value for c in ExpenseCategory], "actual": category},
            )

    @staticmethod
    def _build_entries(split_with: List[Dict[str, Any]]) -> List[SplitEntry]:
        if not split_with:
            raise InvalidSplit("At least one split partner is required")
        entries = []
        for split in split_with:
            user = member_identity_of(split.get("user")) if isinstance(split, dict) else None
            if not user:
                raise InvalidSplit("Each split must have both user and amount")
            amount = to_amount(split.get("amount"), "splitWith.amount")
            if amount < 0:
                raise InvalidSplit(
                    "Split amount cannot be negative",
                    details={"user": user, "actual": amount},
                )
            entries.append(SplitEntry(user=user, amount=amount))
        return entries

    @property
    def total_split_amount(self) -> float:
        return sum(entry.amount for entry in self.split_with)

    @property
    def participants(self) -> List[str]:
        return [entry.user for entry in self.split_with]

    def check_split_invariant(self) -> None:
        if not amounts_reconcile(self.amount, (e.amount for e in self.split_with)):
            raise InvalidSplit(
                "Split amounts must equal the total expense amount",
                details={
                    "expected": round(self.amount, 2),
                    "actual": round(self.total_split_amount, 2),
                    "tolerance": AMOUNT_TOLERANCE,
                },
            )

    def entry_for(self, identity) -> Optional[SplitEntry]:
        for entry in self.split_with:
            if same_identity(entry.user, identity):
                return entry
        return None

    def share_of(self, identity) -> float:
        """Total owed by the identity; a participant may appear more than once."""
        return sum(e.amount for e in self.split_with if same_identity(e.user, identity))

    def unsettled_share_of(self, identity) -> float:
        return sum(
            e.amount for e in self.split_with
            if same_identity(e.user, identity) and not e.settled
        )

    def involves(self, identity) -> bool:
        return (
            same_identity(self.created_by, identity)
            or same_identity(self.paid_by, identity)
            or self.entry_for(identity) is not None
        )

    def can_modify(self, identity) -> bool:
        return same_identity(self.created_by, identity) or same_identity(self.paid_by, identity)

    def settle_participant(self, identity, now: Optional[datetime] = None) -> bool:
        """
        Mark the participant's share as settled.

        Returns False without raising when the identity is not a participant
        or its share is already settled.
        """
        entry = next(
            (e for e in self.split_with if same_identity(e.user, identity) and not e.settled),
            None,
        )
        if entry is None:
            return False

        now = now or utcnow()
        entry.settled = True
        entry.settled_at = now

        if not self.is_settled and all(e.settled for e in self.split_with):
            self.is_settled = True
            self.settled_at = now

        self.updated_at = now
        return True

    def apply_update(self, patch: Dict[str, Any]) -> None:
        """
        Replace the fields present in the patch.

        The split-sum invariant is re-checked against the effective amount
        only when the patch carries ``amount`` or ``splitWith``.
        """
        if self.is_settled:
            raise Forbidden("Cannot update a settled expense")

        if "description" in patch:
            self.description = clean_text(patch["description"], "description", DESCRIPTION_MAX_LENGTH)
        if "currency" in patch:
            self.currency = normalize_currency(patch["currency"])
        if "category" in patch:
            self.category = self._validate_category(patch["category"])
        if "date" in patch:
            self.date = parse_date(patch["date"]) or self.date
        if "amount" in patch:
            self.amount = require_positive_amount(patch["amount"])
        if "splitWith" in patch:
            self.split_with = self._build_entries(patch["splitWith"])

        if "amount" in patch or "splitWith" in patch:
            self.check_split_invariant()

        self.updated_at = utcnow()

    def to_document(self) -> Dict[str, Any]:
        doc = {
            "description": self.description,
            "amount": self.amount,
            "currency": self.currency,
            "createdBy": _oid(self.created_by),
            "paidBy": _oid(self.paid_by),
            "splitWith": [entry.to_document() for entry in self.split_with],
            "category": self.category,
            "date": self.date,
            "group": _oid(self.group),
            "isSettled": self.is_settled,
            "settledAt": self.settled_at,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
            "version": self.version,
        }
        if self.id:
            doc["_id"] = _oid(self.id)
        return doc

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> "Expense":
        return cls(
            id=member_identity_of(doc.get("_id")),
            description=doc.get("description", ""),
            amount=float(doc.get("amount", 0)),
            currency=doc.get("currency", "USD"),
            created_by=member_identity_of(doc.get("createdBy") or doc.get("paidBy")),
            paid_by=member_identity_of(doc.get("paidBy")),
            split_with=[SplitEntry.from_document(s) for s in doc.get("splitWith", [])],
            category=doc.get("category", ExpenseCategory.OTHER.value),
            date=doc.get("date"),
            group=member_identity_of(doc.get("group")),
            is_settled=bool(doc.get("isSettled", False)),
            settled_at=doc.get("settledAt"),
            created_at=doc.get("createdAt"),
            updated_at=doc.get("updatedAt"),
            version=int(doc.get("version", 0)),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "_id": self.id,
            "description": self.description,
            "amount": round(self.amount, 2),
            "currency": self.currency,
            "createdBy": self.created_by,
            "paidBy": self.paid_by,
            "splitWith": [entry.to_dict() for entry in self.split_with],
            "category": self.category,
            "date": _iso(self.date),
            "group": self.group,
            "isSettled": self.is_settled,
            "settledAt": _iso(self.settled_at),
            "createdAt": _iso(self.created_at),
            "updatedAt": _iso(self.updated_at),
        }
