from datetime import datetime, timezone

from bcrypt import hashpw, gensalt, checkpw
from flask import Blueprint, jsonify
from flask_jwt_extended import create_access_token, jwt_required, get_jwt_identity

from splitledger.errors import NotFound, ValidationError
from splitledger.extensions import get_store
from splitledger.users.services import public_user
from splitledger.utils.responses import created, json_body, ok
from splitledger.utils.validators import clean_text, require_keys

auth_bp = Blueprint("auth", __name__)


@auth_bp.route("/register", methods=["POST"])
def register():
    data = json_body()
    require_keys(data, "name", "email", "password")

    email = clean_text(data["email"], "email", 254).lower()
    if len(str(data["password"])) < 6:
        raise ValidationError("Password must be at least 6 characters", field="password")

    store = get_store()
    if store.find_user_by_email(email):
        return jsonify({"success": False, "message": "User already exists"}), 409

    user = store.create_user({
        "name": clean_text(data["name"], "name", 100),
        "email": email,
        "password_hash": hashpw(str(data["password"]).encode(), gensalt()),
        "created_at": datetime.now(timezone.utc),
    })
    access_token = create_access_token(identity=str(user["_id"]))

    return created({"access_token": access_token, "user": public_user(user)}, "User registered successfully")


@auth_bp.route("/login", methods=["POST"])
def login():
    data = json_body()
    require_keys(data, "email", "password")
    user = get_store().find_user_by_email(str(data["email"]).strip().lower())

    if not user or not checkpw(str(data["password"]).encode(), user["password_hash"]):
        return jsonify({"success": False, "message": "Invalid credentials"}), 401

    token = create_access_token(identity=str(user["_id"]))
    return ok({"access_token": token, "user": public_user(user)})


@auth_bp.route("/me", methods=["GET"])
@jwt_required()
def me():
    user = get_store().find_user(get_jwt_identity())
    if not user:
        raise NotFound("User not found")
    return ok(public_user(user))
