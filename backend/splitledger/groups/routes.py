from flask import Blueprint
from flask_jwt_extended import jwt_required, get_jwt_identity

from splitledger.core import GroupService
from splitledger.utils.responses import created, json_body, ok

groups_bp = Blueprint("groups", __name__)


@groups_bp.route("/", methods=["POST"])
@jwt_required()
def create_group():
    """
    Request body:
    {
        "name": "Trip to Lisbon",
        "description": "...",     // optional
        "members": ["...", "..."] // optional user ids
    }
    """
    group = GroupService.create_group(get_jwt_identity(), json_body())
    return created(group.to_dict(), "Group created successfully")


@groups_bp.route("/", methods=["GET"])
@jwt_required()
def list_groups():
    groups = GroupService.list_groups(get_jwt_identity())
    return ok([g.to_dict() for g in groups], "Groups retrieved successfully")


@groups_bp.route("/<group_id>", methods=["GET"])
@jwt_required()
def get_group(group_id):
    group = GroupService.get_group(get_jwt_identity(), group_id)
    return ok(group.to_dict(), "Group retrieved successfully")


@groups_bp.route("/<group_id>", methods=["PUT"])
@jwt_required()
def update_group(group_id):
    group = GroupService.update_group(get_jwt_identity(), group_id, json_body())
    return ok(group.to_dict(), "Group updated successfully")


@groups_bp.route("/<group_id>", methods=["DELETE"])
@jwt_required()
def delete_group(group_id):
    GroupService.archive_group(get_jwt_identity(), group_id)
    return ok(message="Group deleted successfully")


@groups_bp.route("/<group_id>/members", methods=["POST"])
@jwt_required()
def add_member(group_id):
    """
    Request body:
    {
        "memberEmail": "friend@example.com",  // or "userId": "..."
        "role": "member"                      // optional
    }
    """
    group = GroupService.add_member(get_jwt_identity(), group_id, json_body())
    return ok(group.to_dict(), "Member added successfully")


@groups_bp.route("/<group_id>/members/<member_id>", methods=["PUT"])
@jwt_required()
def update_member_role(group_id, member_id):
    data = json_body()
    group = GroupService.update_member_role(get_jwt_identity(), group_id, member_id, data.get("role"))
    return ok(group.to_dict(), "Member role updated successfully")


@groups_bp.route("/<group_id>/members/<member_id>", methods=["DELETE"])
@jwt_required()
def remove_member(group_id, member_id):
    group = GroupService.remove_member(get_jwt_identity(), group_id, member_id)
    return ok(group.to_dict(), "Member removed successfully")


@groups_bp.route("/<group_id>/leave", methods=["DELETE"])
@jwt_required()
def leave_group(group_id):
    GroupService.leave_group(get_jwt_identity(), group_id)
    return ok(message="You have left the group successfully")
