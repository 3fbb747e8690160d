"""Friendship service. Friendship is symmetric: both users are always updated."""
import logging

from splitledger.errors import NotFound, ValidationError
from splitledger.extensions import get_store
from splitledger.utils.permissions import member_identity_of, same_identity

logger = logging.getLogger(__name__)


def public_user(user):
    return {
        "_id": member_identity_of(user),
        "name": user.get("name"),
        "email": user.get("email"),
        "profileImage": user.get("profileImage"),
    }


class FriendService:

    @staticmethod
    def list_friends(actor):
        store = get_store()
        friends = store.load_friend_set(actor)
        return [public_user(u) for u in store.find_users(sorted(friends))]

    @staticmethod
    def add_friend(actor, friend_id):
        if not friend_id:
            raise ValidationError("Friend ID is required", field="friendId")
        if same_identity(friend_id, actor):
            raise ValidationError("Cannot add yourself as a friend", field="friendId")

        store = get_store()
        friend = store.find_user(friend_id)
        if not friend:
            raise NotFound("User not found")
        if member_identity_of(friend) in store.load_friend_set(actor):
            raise ValidationError("User is already your friend", field="friendId")

        store.link_friends(actor, member_identity_of(friend))
        logger.info("[Friends] %s and %s are now friends", actor, member_identity_of(friend))
        return public_user(friend)

    @staticmethod
    def remove_friend(actor, friend_id):
        store = get_store()
        if member_identity_of(friend_id) not in store.load_friend_set(actor):
            raise NotFound("User is not your friend")
        store.unlink_friends(actor, friend_id)
        logger.info("[Friends] %s removed friend %s", actor, friend_id)
