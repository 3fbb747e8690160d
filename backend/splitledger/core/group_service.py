"""
Group Service - Group lifecycle and membership administration.

Responsibilities:
- Create groups with the creator as admin
- Any member may rename the group or add members
- Admins remove other members and archive the group
- Members may leave; the creator always stays a member
"""
import logging
from typing import Any, Dict, List

from splitledger.errors import Forbidden, NotFound, ValidationError
from splitledger.extensions import get_store
from splitledger.groups.models import Group
from splitledger.utils.enums import MemberRole
from splitledger.utils.permissions import member_identity_of, same_identity

logger = logging.getLogger(__name__)


class GroupService:
    """Service for groups and their members."""

    @classmethod
    def create_group(cls, actor: str, payload: Dict[str, Any]) -> Group:
        """
        Create a group; listed members that exist are added as plain members
        and become friends of the creator.
        """
        payload = payload or {}
        store = get_store()

        requested = payload.get("members") or []
        if not isinstance(requested, list):
            raise ValidationError("members must be a list of user ids", field="members")

        member_ids = []
        for member_id in requested:
            identity = member_identity_of(member_id)
            if same_identity(identity, actor) or identity in member_ids:
                continue
            if store.find_user(identity):
                member_ids.append(identity)

        group = Group.create(
            name=payload.get("name"),
            created_by=actor,
            description=payload.get("description", ""),
            member_ids=member_ids,
        )

        friends = store.load_friend_set(actor)
        for identity in member_ids:
            if identity not in friends:
                store.link_friends(actor, identity)

        store.persist_group(group)
        logger.info("[Groups] %s created group %s with %d members", actor, group.id, len(group.members))
        return group

    @classmethod
    def list_groups(cls, actor: str) -> List[Group]:
        return get_store().query_groups_for_user(actor)

    @classmethod
    def get_group(cls, actor: str, group_id: str) -> Group:
        group = get_store().load_group(group_id)
        if group is None or not group.is_active:
            raise NotFound("Group not found")
        if not group.is_member(actor):
            raise Forbidden("Access denied. You are not a member of this group")
        return group

    @classmethod
    def update_group(cls, actor: str, group_id: str, payload: Dict[str, Any]) -> Group:
        payload = payload or {}
        cls.get_group(actor, group_id)

        def mutate(group: Group):
            if not group.is_member(actor):
                raise Forbidden("Access denied. You are not a member of this group")
            group.rename(name=payload.get("name"), description=payload.get("description"))

        return cls._modify(group_id, mutate)

    @classmethod
    def archive_group(cls, actor: str, group_id: str) -> Group:
        """Soft delete: the group and its expenses stay resolvable."""
        group = cls.get_group(actor, group_id)
        if not group.is_admin(actor):
            raise Forbidden("Access denied. Only group admins can delete the group")

        archived = cls._modify(group_id, lambda g: g.archive())
        logger.info("[Groups] %s archived group %s", actor, group_id)
        return archived

    @classmethod
    def add_member(cls, actor: str, group_id: str, payload: Dict[str, Any]) -> Group:
        """
        Add a user (by ``userId`` or ``memberEmail``). The actor and the new
        member become friends if they were not already. Any member may add
        plain members; only admins may add someone as admin.
        """
        payload = payload or {}
        store = get_store()
        cls.get_group(actor, group_id)

        if payload.get("userId"):
            user = store.find_user(payload["userId"])
        elif payload.get("memberEmail"):
            user = store.find_user_by_email(str(payload["memberEmail"]).strip().lower())
        else:
            raise ValidationError("Please provide userId or memberEmail", field="memberEmail")
        if not user:
            raise NotFound("User not found")

        new_member = member_identity_of(user)
        role = payload.get("role") or MemberRole.MEMBER.value

        def mutate(group: Group):
            if not group.is_member(actor):
                raise Forbidden("Access denied. You are not a member of this group")
            if role != MemberRole.MEMBER.value and not group.is_admin(actor):
                raise Forbidden("Access denied. Only group admins can add admins")
            group.add_member(new_member, role)

        group = cls._modify(group_id, mutate)

        if not same_identity(new_member, actor) and new_member not in store.load_friend_set(actor):
            store.link_friends(actor, new_member)

        logger.info("[Groups] %s added %s to group %s", actor, new_member, group_id)
        return group

    @classmethod
    def remove_member(cls, actor: str, group_id: str, member_id: str) -> Group:
        """Admins remove anyone but the creator; members may only remove themselves."""
        group = cls.get_group(actor, group_id)
        member_id = member_identity_of(member_id)

        if not same_identity(member_id, actor) and not group.is_admin(actor):
            raise Forbidden("Access denied. You can only remove yourself from the group")
        if same_identity(member_id, group.created_by):
            raise Forbidden("The group creator cannot be removed; delete the group instead")

        updated = cls._modify(group_id, lambda g: g.remove_member(member_id))
        logger.info("[Groups] %s removed %s from group %s", actor, member_id, group_id)
        return updated

    @classmethod
    def leave_group(cls, actor: str, group_id: str) -> Group:
        group = get_store().load_group(group_id)
        if group is None or not group.is_active:
            raise NotFound("Group not found")
        if not group.is_member(actor):
            raise ValidationError("You are not a member of this group")
        return cls.remove_member(actor, group_id, actor)

    @classmethod
    def update_member_role(cls, actor: str, group_id: str, member_id: str, role: str) -> Group:
        group = cls.get_group(actor, group_id)
        if not group.is_admin(actor):
            raise Forbidden("Access denied. Only group admins can change roles")
        if same_identity(member_id, group.created_by) and role != MemberRole.ADMIN.value:
            raise Forbidden("The group creator always stays an admin")

        return cls._modify(group_id, lambda g: g.update_role(member_id, role))

    @staticmethod
    def _modify(group_id, mutator) -> Group:
        group = get_store().modify_group(group_id, mutator)
        if group is None:
            raise NotFound("Group not found")
        return group
