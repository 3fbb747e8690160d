from flask import Blueprint
from flask_jwt_extended import jwt_required, get_jwt_identity

from splitledger.core import ExpenseService
from splitledger.users.services import FriendService
from splitledger.utils.responses import created, json_body, ok

users_bp = Blueprint("users", __name__)


@users_bp.route("/friends", methods=["GET"])
@jwt_required()
def list_friends():
    return ok(FriendService.list_friends(get_jwt_identity()))


@users_bp.route("/friends", methods=["POST"])
@jwt_required()
def add_friend():
    data = json_body()
    friend = FriendService.add_friend(get_jwt_identity(), data.get("friendId"))
    return created(friend, "Friend added successfully")


@users_bp.route("/friends/<friend_id>", methods=["DELETE"])
@jwt_required()
def remove_friend(friend_id):
    FriendService.remove_friend(get_jwt_identity(), friend_id)
    return ok(message="Friend removed successfully")


@users_bp.route("/friends/<friend_id>/balance", methods=["GET"])
@jwt_required()
def friend_balance(friend_id):
    """
    Net balance with one friend.

    Positive balance = the friend owes you
    Negative balance = you owe the friend
    """
    balance = ExpenseService.get_pairwise_balance(get_jwt_identity(), friend_id)
    return ok({"friendId": friend_id, "balance": balance})


@users_bp.route("/balances", methods=["GET"])
@jwt_required()
def all_balances():
    return ok(ExpenseService.get_friend_balances(get_jwt_identity()))
