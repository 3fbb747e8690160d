"""
Shared fixtures.

Service and API tests run against ``InMemoryStore``, which implements the same
surface as ``MongoLedgerStore`` over plain dicts. Documents go through
to_document / from_document on every read and write, so a test can never
mutate stored state by holding on to a returned object.
"""
from copy import deepcopy

import pytest
from bson import ObjectId
from flask_jwt_extended import create_access_token

from splitledger import create_app
from splitledger.config import TestConfig
from splitledger.expenses.models import Expense
from splitledger.extensions import set_store
from splitledger.groups.models import Group
from splitledger.utils.permissions import member_identity_of


class InMemoryStore:

    def __init__(self):
        self.expenses = {}
        self.groups = {}
        self.users = {}

    @staticmethod
    def _new_id():
        return str(ObjectId())

    # --- Groups ---

    def load_group(self, group_id):
        doc = self.groups.get(str(group_id))
        return Group.from_document(deepcopy(doc)) if doc else None

    @staticmethod
    def is_group_member(group, identity):
        return group.is_member(identity)

    @staticmethod
    def is_group_admin(group, identity):
        return group.is_admin(identity)

    def query_groups_for_user(self, identity):
        groups = [Group.from_document(deepcopy(d)) for d in self.groups.values()]
        return [g for g in groups if g.is_active and g.is_member(identity)]

    def persist_group(self, group):
        group.id = self._new_id()
        self.groups[group.id] = deepcopy(group.to_document())
        return group

    def modify_group(self, group_id, mutator):
        return self._modify(self.groups, group_id, Group, mutator)

    # --- Expenses ---

    def _all_expenses(self):
        expenses = [Expense.from_document(deepcopy(d)) for d in self.expenses.values()]
        return sorted(expenses, key=lambda e: e.date, reverse=True)

    def load_expense(self, expense_id):
        doc = self.expenses.get(str(expense_id))
        return Expense.from_document(deepcopy(doc)) if doc else None

    def query_expenses_involving(self, identity, settled=None):
        return [
            e for e in self._all_expenses()
            if e.involves(identity) and (settled is None or e.is_settled == settled)
        ]

    def query_expenses_between(self, first, second):
        first, second = member_identity_of(first), member_identity_of(second)
        return [
            e for e in self._all_expenses()
            if (e.paid_by == first and e.entry_for(second))
            or (e.paid_by == second and e.entry_for(first))
        ]

    def query_expenses_for_group(self, group_id, settled=None):
        return [
            e for e in self._all_expenses()
            if e.group == str(group_id) and (settled is None or e.is_settled == settled)
        ]

    def persist_expense(self, expense):
        expense.id = self._new_id()
        self.expenses[expense.id] = deepcopy(expense.to_document())
        return expense

    def modify_expense(self, expense_id, mutator):
        return self._modify(self.expenses, expense_id, Expense, mutator)

    def delete_expense(self, expense_id):
        return self.expenses.pop(str(expense_id), None) is not None

    @staticmethod
    def _modify(table, doc_id, model, mutator):
        doc = table.get(str(doc_id))
        if doc is None:
            return None
        entity = model.from_document(deepcopy(doc))
        if mutator(entity) is False:
            return entity
        entity.version += 1
        table[str(doc_id)] = deepcopy(entity.to_document())
        return entity

    # --- Users & friendships ---

    def create_user(self, user):
        doc = dict(user)
        doc["_id"] = ObjectId()
        doc.setdefault("friends", [])
        self.users[str(doc["_id"])] = doc
        return doc

    def find_user(self, identity):
        return self.users.get(str(identity))

    def find_user_by_email(self, email):
        return next((u for u in self.users.values() if u.get("email") == email), None)

    def load_friend_set(self, identity):
        user = self.users.get(str(identity))
        return {member_identity_of(f) for f in user.get("friends", [])} if user else set()

    def link_friends(self, first, second):
        for a, b in ((first, second), (second, first)):
            user = self.users.get(str(a))
            if user is not None and str(b) not in user["friends"]:
                user["friends"].append(str(b))

    def unlink_friends(self, first, second):
        for a, b in ((first, second), (second, first)):
            user = self.users.get(str(a))
            if user is not None and str(b) in user["friends"]:
                user["friends"].remove(str(b))

    def find_users(self, identities):
        return [self.users[str(i)] for i in identities if str(i) in self.users]


@pytest.fixture
def store():
    ledger = InMemoryStore()
    set_store(ledger)
    yield ledger
    set_store(None)


@pytest.fixture
def users(store):
    """alice is friends with bob and carol; dave is a stranger to everyone."""
    ids = {}
    for name in ("alice", "bob", "carol", "dave"):
        user = store.create_user({"name": name.title(), "email": f"{name}@example.com"})
        ids[name] = str(user["_id"])
    store.link_friends(ids["alice"], ids["bob"])
    store.link_friends(ids["alice"], ids["carol"])
    return ids


@pytest.fixture
def app(store):
    return create_app(TestConfig, store=store)


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def auth_headers(app):
    def _headers(user_id):
        with app.app_context():
            token = create_access_token(identity=user_id)
        return {"Authorization": f"Bearer {token}"}
    return _headers
