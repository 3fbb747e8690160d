# splitledger/expenses/routes.py

from flask import Blueprint, current_app, request
from flask_jwt_extended import jwt_required, get_jwt_identity

from splitledger.core import ExpenseService, SettlementService
from splitledger.utils.responses import created, json_body, ok, query_bool, query_page

expenses_bp = Blueprint("expenses", __name__)


def _page():
    return query_page(current_app.config["DEFAULT_PAGE_SIZE"], current_app.config["MAX_PAGE_SIZE"])


@expenses_bp.route("/", methods=["POST"])
@jwt_required()
def create_expense():
    """
    Create an expense.

    Request body:
    {
        "description": "Dinner",
        "amount": 100.00,
        "currency": "USD",            // optional
        "category": "food",           // optional
        "groupId": "...",             // optional
        "paidBy": "...",              // optional, defaults to caller
        "splitWith": [{"user": "...", "amount": 50.00}]
        // or "splitType": "equal", "participants": ["..."]
    }
    """
    expense = ExpenseService.create_expense(get_jwt_identity(), json_body())
    return created(expense.to_dict(), "Expense created successfully")


@expenses_bp.route("/", methods=["GET"])
@jwt_required()
def list_expenses():
    """Query: page, limit, friendId, settled=true|false"""
    page, limit = _page()
    expenses, pagination = ExpenseService.list_expenses(
        get_jwt_identity(),
        friend_id=request.args.get("friendId"),
        settled=query_bool("settled"),
        page=page,
        limit=limit,
    )
    return ok([e.to_dict() for e in expenses], pagination=pagination)


@expenses_bp.route("/between/<friend_id>", methods=["GET"])
@jwt_required()
def expenses_between(friend_id):
    page, limit = _page()
    expenses, pagination = ExpenseService.expenses_between(get_jwt_identity(), friend_id, page, limit)
    return ok([e.to_dict() for e in expenses], pagination=pagination)


@expenses_bp.route("/group/<group_id>", methods=["GET"])
@jwt_required()
def group_expenses(group_id):
    page, limit = _page()
    expenses, pagination = ExpenseService.group_expenses(
        get_jwt_identity(), group_id, settled=query_bool("settled"), page=page, limit=limit
    )
    return ok([e.to_dict() for e in expenses], pagination=pagination)


@expenses_bp.route("/group/<group_id>/balance", methods=["GET"])
@jwt_required()
def group_balance(group_id):
    """
    Per-member balances of a group.

    Positive balance = is owed money
    Negative balance = owes money
    """
    balances = ExpenseService.get_group_balances(get_jwt_identity(), group_id)
    return ok({"groupId": group_id, "balances": balances})


@expenses_bp.route("/<expense_id>", methods=["GET"])
@jwt_required()
def get_expense(expense_id):
    expense = ExpenseService.get_expense(get_jwt_identity(), expense_id)
    return ok(expense.to_dict())


@expenses_bp.route("/<expense_id>", methods=["PUT"])
@jwt_required()
def update_expense(expense_id):
    expense = ExpenseService.update_expense(get_jwt_identity(), expense_id, json_body())
    return ok(expense.to_dict(), "Expense updated successfully")


@expenses_bp.route("/<expense_id>", methods=["DELETE"])
@jwt_required()
def delete_expense(expense_id):
    ExpenseService.delete_expense(get_jwt_identity(), expense_id)
    return ok(message="Expense deleted successfully")


@expenses_bp.route("/<expense_id>/settle", methods=["POST"])
@jwt_required()
def settle_split(expense_id):
    """
    Settle one participant's share.

    Request body:
    {
        "userId": "..."   // optional, defaults to the caller
    }
    """
    data = json_body()
    expense = SettlementService.settle_split(get_jwt_identity(), expense_id, data.get("userId"))
    return ok(expense.to_dict(), "Split settled successfully")
