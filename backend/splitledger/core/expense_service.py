"""
Expense Service - Expense lifecycle and balance queries.

Responsibilities:
- Create expenses (membership gate, split policy, record construction)
- Update and delete expenses (creator or payer only, open expenses only)
- List expenses involving a user, between friends, or inside a group
- Pairwise, per-friend and per-group balances
"""
import logging
from typing import Any, Dict, List, Optional, Tuple

from splitledger.core.balance_service import BalanceAggregator
from splitledger.core.membership_service import MembershipGate
from splitledger.core.split_service import SplitPolicy
from splitledger.errors import AuthError, ErrorCode, Forbidden, InvalidSplit, NotFound, ValidationError
from splitledger.expenses.models import UPDATABLE_FIELDS, Expense
from splitledger.extensions import get_store
from splitledger.utils.enums import SplitMode
from splitledger.utils.permissions import member_identity_of
from splitledger.utils.validators import require_keys, require_positive_amount

logger = logging.getLogger(__name__)


class ExpenseService:
    """Service for the expense ledger."""

    @classmethod
    def create_expense(cls, actor: str, payload: Dict[str, Any]) -> Expense:
        """
        Create an expense on behalf of the authenticated actor.

        Payload:
        {
            "description": "Dinner",
            "amount": 90.00,
            "currency": "USD",              // optional
            "category": "food",             // optional
            "date": "2024-05-01T19:00:00Z", // optional
            "groupId": "...",               // optional
            "paidBy": "...",                // optional, defaults to actor
            "splitWith": [{"user": "...", "amount": 30.00}, ...]
            // or
            "splitType": "equal", "participants": ["...", ...]
        }

        Raises:
            ValidationError, InvalidSplit, AuthError, NotFound
        """
        payload = payload or {}
        require_keys(payload, "description", "amount")
        store = get_store()

        amount = require_positive_amount(payload["amount"])
        payer = member_identity_of(payload.get("paidBy")) or member_identity_of(actor)
        mode = cls._split_mode(payload)
        participants = cls._participants_of(payload, mode)

        group_id = payload.get("groupId") or payload.get("group")
        group, friends = cls._load_split_context(store, actor, group_id)
        MembershipGate.authorize_split(actor, payer, participants, group=group, friends=friends)

        shares = cls._resolve_shares(amount, participants, payload, mode)

        expense = Expense.create(
            description=payload.get("description"),
            amount=amount,
            created_by=actor,
            payer=payer,
            split_with=shares,
            currency=payload.get("currency"),
            category=payload.get("category"),
            date=payload.get("date"),
            group=group.id if group else None,
        )
        store.persist_expense(expense)

        logger.info(
            "[Expenses] %s created expense %s (%.2f %s, %d splits)",
            actor, expense.id, expense.amount, expense.currency, len(expense.split_with),
        )
        return expense

    @staticmethod
    def _split_mode(payload: Dict[str, Any]) -> SplitMode:
        default_mode = SplitMode.CUSTOM if payload.get("splitWith") else SplitMode.EQUAL
        try:
            return SplitMode(payload.get("splitType") or default_mode)
        except ValueError:
            raise ValidationError("splitType must be equal or custom", field="splitType")

    @staticmethod
    def _participants_of(payload: Dict[str, Any], mode: SplitMode) -> List[str]:
        """Identities of the list the shares will be built from."""
        if mode == SplitMode.CUSTOM:
            entries = payload.get("splitWith") or []
        else:
            entries = payload.get("participants") or payload.get("splitWith") or []
        if not isinstance(entries, list) or not entries:
            raise ValidationError(
                "Description, amount, and at least one split partner are required",
                field="splitWith",
            )
        participants = [member_identity_of(e) if isinstance(e, (dict, str)) else None for e in entries]
        if None in participants:
            raise InvalidSplit("Each split must have both user and amount")
        return participants

    @staticmethod
    def _resolve_shares(
        amount: float,
        participants: List[str],
        payload: Dict[str, Any],
        mode: SplitMode,
    ) -> List[Dict[str, Any]]:
        if mode == SplitMode.EQUAL:
            return SplitPolicy.compute_split(
                amount,
                participants,
                SplitMode.EQUAL,
                redistribute_remainder=bool(payload.get("redistributeRemainder")),
            )
        return SplitPolicy.validate_shares(amount, payload.get("splitWith") or [])

    @staticmethod
    def _load_split_context(store, actor, group_id):
        """Group for group expenses, the actor's friend set otherwise."""
        if group_id:
            group = store.load_group(group_id)
            if group is None or not group.is_active:
                raise NotFound("Group not found")
            return group, frozenset()
        return None, frozenset(store.load_friend_set(actor))

    @classmethod
    def get_expense(cls, actor: str, expense_id: str) -> Expense:
        expense = get_store().load_expense(expense_id)
        if expense is None:
            raise NotFound("Expense not found")
        if not expense.involves(actor):
            raise Forbidden("Not authorized to view this expense")
        return expense

    @classmethod
    def list_expenses(
        cls,
        actor: str,
        friend_id: Optional[str] = None,
        settled: Optional[bool] = None,
        page: int = 1,
        limit: int = 10,
    ) -> Tuple[List[Expense], Dict[str, int]]:
        """Expenses involving the actor, newest first, one page at a time."""
        store = get_store()
        if friend_id:
            expenses = store.query_expenses_between(actor, friend_id)
            if settled is not None:
                expenses = [e for e in expenses if e.is_settled == settled]
        else:
            expenses = store.query_expenses_involving(actor, settled=settled)
        return cls._paginate(expenses, page, limit)

    @classmethod
    def expenses_between(cls, actor: str, friend_id: str, page: int = 1, limit: int = 10):
        store = get_store()
        if member_identity_of(friend_id) not in store.load_friend_set(actor):
            raise ValidationError("User is not your friend", field="friendId")
        return cls._paginate(store.query_expenses_between(actor, friend_id), page, limit)

    @classmethod
    def group_expenses(
        cls,
        actor: str,
        group_id: str,
        settled: Optional[bool] = None,
        page: int = 1,
        limit: int = 10,
    ):
        store = get_store()
        cls._require_group_member(store, actor, group_id)
        return cls._paginate(store.query_expenses_for_group(group_id, settled=settled), page, limit)

    @staticmethod
    def _paginate(items: List[Any], page: int, limit: int):
        page = max(int(page), 1)
        limit = max(int(limit), 1)
        start = (page - 1) * limit
        total = len(items)
        pagination = {
            "current": page,
            "limit": limit,
            "pages": (total + limit - 1) // limit,
            "total": total,
        }
        return items[start:start + limit], pagination

    @classmethod
    def update_expense(cls, actor: str, expense_id: str, patch: Dict[str, Any]) -> Expense:
        """
        Replace fields of an open expense.

        Only the creator or the payer may edit, and only while the expense is
        not fully settled. A new split list goes through the membership gate
        again.
        """
        patch = {k: v for k, v in (patch or {}).items() if k in UPDATABLE_FIELDS}
        if not patch:
            raise ValidationError("No updatable fields provided")

        store = get_store()
        expense = store.load_expense(expense_id)
        if expense is None:
            raise NotFound("Expense not found")
        if not expense.can_modify(actor):
            raise Forbidden("Only the creator or the person who paid can update this expense")
        if expense.is_settled:
            raise Forbidden("Cannot update a settled expense")

        if "splitWith" in patch:
            cls._authorize_new_split(store, expense, patch)

        def mutate(current: Expense):
            if not current.can_modify(actor):
                raise Forbidden("Only the creator or the person who paid can update this expense")
            current.apply_update(patch)

        updated = store.modify_expense(expense_id, mutate)
        if updated is None:
            raise NotFound("Expense not found")

        logger.info("[Expenses] %s updated expense %s (%s)", actor, expense_id, ", ".join(sorted(patch)))
        return updated

    @classmethod
    def _authorize_new_split(cls, store, expense: Expense, patch: Dict[str, Any]) -> None:
        """
        Validate a replacement split and run it through the membership gate.

        Eligibility is judged from the creator's side, whoever edits: direct
        expenses accept the creator's friends, group expenses need an active
        group.
        """
        if not isinstance(patch["splitWith"], list):
            raise ValidationError("splitWith must be a list", field="splitWith")
        amount = require_positive_amount(patch["amount"]) if "amount" in patch else expense.amount
        shares = SplitPolicy.validate_shares(amount, patch["splitWith"])

        if expense.group:
            group = store.load_group(expense.group)
            if group is not None and not group.is_active:
                raise Forbidden("Cannot change the split of an expense in an archived group")
        group, friends = cls._load_split_context(store, expense.created_by, expense.group)

        MembershipGate.authorize_split(
            expense.created_by,
            expense.paid_by,
            [share["user"] for share in shares],
            group=group,
            friends=friends,
        )

    @classmethod
    def delete_expense(cls, actor: str, expense_id: str) -> None:
        """Physically remove an open expense. Nothing cascades."""
        store = get_store()
        expense = store.load_expense(expense_id)
        if expense is None:
            raise NotFound("Expense not found")
        if not expense.can_modify(actor):
            raise Forbidden("Only the creator or the person who paid can delete this expense")
        if expense.is_settled:
            raise Forbidden("Cannot delete a settled expense")

        if not store.delete_expense(expense_id):
            raise NotFound("Expense not found")
        logger.info("[Expenses] %s deleted expense %s", actor, expense_id)

    # --- Balances ---

    @classmethod
    def get_pairwise_balance(cls, actor: str, other: str) -> float:
        """Positive: the other user owes the actor. Negative: the actor owes them."""
        expenses = get_store().query_expenses_between(actor, other)
        return BalanceAggregator.pairwise_balance(expenses, actor, other)

    @classmethod
    def get_friend_balances(cls, actor: str) -> Dict[str, Any]:
        store = get_store()
        friends = sorted(store.load_friend_set(actor))
        expenses = store.query_expenses_involving(actor)
        balances = BalanceAggregator.friend_balances(expenses, actor, friends)
        summary = BalanceAggregator.totals(b["balance"] for b in balances)
        return {"balances": balances, **summary}

    @classmethod
    def get_group_balances(cls, actor: str, group_id: str) -> Dict[str, float]:
        """
        Net position of every group member.

        Former members who still appear on group expenses are reported too,
        so the map keeps summing to zero after someone leaves.
        """
        store = get_store()
        group = cls._require_group_member(store, actor, group_id)
        expenses = store.query_expenses_for_group(group_id)

        identities = list(group.member_ids)
        for expense in expenses:
            for identity in [expense.paid_by, *expense.participants]:
                if identity not in identities:
                    identities.append(identity)

        return BalanceAggregator.group_balances(expenses, identities)

    @staticmethod
    def _require_group_member(store, actor, group_id):
        group = store.load_group(group_id)
        if group is None:
            raise NotFound("Group not found")
        if not group.is_member(actor):
            raise AuthError(
                "Access denied. You are not a member of this group",
                code=ErrorCode.NOT_MEMBER,
            )
        return group
