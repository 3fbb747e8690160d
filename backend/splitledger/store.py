"""
MongoDB persistence for the ledger.

The services only talk to the store through the methods below, so tests can
swap in any object with the same surface.

Read-modify-write goes through ``modify_expense`` / ``modify_group``: the
document is loaded, mutated in Python, and written back with a compare-and-swap
on its ``version`` field. Two concurrent settlements on the same expense can
therefore never drop one another's write.
"""
import logging
from typing import Any, Callable, Dict, List, Optional, Set

from pymongo import ASCENDING, DESCENDING

from splitledger.errors import ConflictError
from splitledger.expenses.models import Expense
from splitledger.extensions import db as mongo
from splitledger.groups.models import Group
from splitledger.utils.documents import to_document_id
from splitledger.utils.enums import GroupState
from splitledger.utils.permissions import member_identity_of

logger = logging.getLogger(__name__)

Mutator = Callable[[Any], Optional[bool]]


class MongoLedgerStore:
    """Expense, group and user collections behind one interface."""

    def __init__(self, database=None, max_retries: int = 5):
        self.db = database if database is not None else mongo
        self.max_retries = max_retries

    def ensure_indexes(self) -> None:
        self.db.expenses.create_index([("paidBy", ASCENDING)])
        self.db.expenses.create_index([("createdBy", ASCENDING)])
        self.db.expenses.create_index([("splitWith.user", ASCENDING)])
        self.db.expenses.create_index([("group", ASCENDING), ("date", DESCENDING)])
        self.db.groups.create_index([("members.user", ASCENDING)])
        self.db.users.create_index([("email", ASCENDING)], unique=True)

    # --- Groups ---

    def load_group(self, group_id) -> Optional[Group]:
        doc = self.db.groups.find_one({"_id": to_document_id(group_id)})
        return Group.from_document(doc) if doc else None

    @staticmethod
    def is_group_member(group: Group, identity) -> bool:
        return group.is_member(identity)

    @staticmethod
    def is_group_admin(group: Group, identity) -> bool:
        return group.is_admin(identity)

    def query_groups_for_user(self, identity) -> List[Group]:
        docs = self.db.groups.find({
            "members.user": to_document_id(identity),
            "state": GroupState.ACTIVE.value,
        }).sort("createdAt", DESCENDING)
        return [Group.from_document(d) for d in docs]

    def persist_group(self, group: Group) -> Group:
        doc = group.to_document()
        doc.pop("_id", None)
        result = self.db.groups.insert_one(doc)
        group.id = member_identity_of(result.inserted_id)
        return group

    def modify_group(self, group_id, mutator: Mutator) -> Optional[Group]:
        return self._compare_and_swap(self.db.groups, group_id, Group, mutator)

    # --- Expenses ---

    def load_expense(self, expense_id) -> Optional[Expense]:
        doc = self.db.expenses.find_one({"_id": to_document_id(expense_id)})
        return Expense.from_document(doc) if doc else None

    def query_expenses_involving(self, identity, settled: Optional[bool] = None) -> List[Expense]:
        """Expenses where the identity is creator, payer, or a split participant."""
        oid = to_document_id(identity)
        query: Dict[str, Any] = {
            "$or": [
                {"createdBy": oid},
                {"paidBy": oid},
                {"splitWith.user": oid},
            ]
        }
        if settled is not None:
            query["isSettled"] = settled
        return self._find_expenses(query)

    def query_expenses_between(self, first, second) -> List[Expense]:
        """Expenses paid by one of the two with the other in the split."""
        a, b = to_document_id(first), to_document_id(second)
        return self._find_expenses({
            "$or": [
                {"paidBy": a, "splitWith.user": b},
                {"paidBy": b, "splitWith.user": a},
            ]
        })

    def query_expenses_for_group(self, group_id, settled: Optional[bool] = None) -> List[Expense]:
        query: Dict[str, Any] = {"group": to_document_id(group_id)}
        if settled is not None:
            query["isSettled"] = settled
        return self._find_expenses(query)

    def _find_expenses(self, query) -> List[Expense]:
        docs = self.db.expenses.find(query).sort("date", DESCENDING)
        return [Expense.from_document(d) for d in docs]

    def persist_expense(self, expense: Expense) -> Expense:
        doc = expense.to_document()
        doc.pop("_id", None)
        result = self.db.expenses.insert_one(doc)
        expense.id = member_identity_of(result.inserted_id)
        logger.info("[Store] Inserted expense %s", expense.id)
        return expense

    def modify_expense(self, expense_id, mutator: Mutator) -> Optional[Expense]:
        return self._compare_and_swap(self.db.expenses, expense_id, Expense, mutator)

    def delete_expense(self, expense_id) -> bool:
        result = self.db.expenses.delete_one({"_id": to_document_id(expense_id)})
        return result.deleted_count == 1

    def _compare_and_swap(self, collection, doc_id, model, mutator: Mutator):
        """
        Load, mutate and conditionally replace one document.

        The mutator may raise to abort, or return False to signal that
        nothing changed (no write happens). Returns None when the document
        does not exist.
        """
        oid = to_document_id(doc_id)
        for attempt in range(1, self.max_retries + 1):
            doc = collection.find_one({"_id": oid})
            if doc is None:
                return None

            entity = model.from_document(doc)
            if mutator(entity) is False:
                return entity

            expected_version = doc.get("version")
            entity.version = (expected_version or 0) + 1
            replacement = entity.to_document()
            replacement.pop("_id", None)

            result = collection.replace_one(
                {"_id": oid, "version": expected_version},
                replacement,
            )
            if result.matched_count == 1:
                return entity

            logger.warning(
                "[Store] Version conflict on %s %s (attempt %d/%d)",
                collection.name, doc_id, attempt, self.max_retries,
            )

        raise ConflictError(
            "The record was modified concurrently, please retry",
            details={"id": member_identity_of(doc_id)},
        )

    # --- Users & friendships ---

    def create_user(self, user: Dict[str, Any]) -> Dict[str, Any]:
        doc = dict(user)
        doc.setdefault("friends", [])
        result = self.db.users.insert_one(doc)
        doc["_id"] = result.inserted_id
        return doc

    def find_user(self, identity) -> Optional[Dict[str, Any]]:
        return self.db.users.find_one({"_id": to_document_id(identity)})

    def find_user_by_email(self, email: str) -> Optional[Dict[str, Any]]:
        return self.db.users.find_one({"email": email})

    def load_friend_set(self, identity) -> Set[str]:
        user = self.db.users.find_one({"_id": to_document_id(identity)}, {"friends": 1})
        if not user:
            return set()
        return {member_identity_of(f) for f in user.get("friends", [])}

    def link_friends(self, first, second) -> None:
        """Friendship is symmetric: both sides are updated."""
        a, b = to_document_id(first), to_document_id(second)
        self.db.users.update_one({"_id": a}, {"$addToSet": {"friends": b}})
        self.db.users.update_one({"_id": b}, {"$addToSet": {"friends": a}})

    def unlink_friends(self, first, second) -> None:
        a, b = to_document_id(first), to_document_id(second)
        self.db.users.update_one({"_id": a}, {"$pull": {"friends": b}})
        self.db.users.update_one({"_id": b}, {"$pull": {"friends": a}})

    def find_users(self, identities) -> List[Dict[str, Any]]:
        ids = [to_document_id(i) for i in identities]
        return list(self.db.users.find({"_id": {"$in": ids}}, {"password_hash": 0, "friends": 0}))
