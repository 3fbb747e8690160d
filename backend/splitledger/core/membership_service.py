"""
Membership Gate - Who may take part in a split.

Group expenses: actor, payer and every participant must be group members.
Direct expenses: the payer is the actor or one of the actor's friends, and
every participant is the actor, the payer, or a friend of the actor.

The gate works on already-loaded membership and friend sets; it does no I/O.
"""
from typing import AbstractSet, Any, Iterable, Optional

from splitledger.errors import AuthError, ErrorCode
from splitledger.utils.permissions import member_identity_of, same_identity


class MembershipGate:
    """Pure predicate over group membership and friendship."""

    @classmethod
    def authorize_split(
        cls,
        actor: Any,
        payer: Any,
        participants: Iterable[Any],
        group: Optional[Any] = None,
        friends: AbstractSet[str] = frozenset(),
    ) -> None:
        """
        Raise AuthError unless the split participants are eligible.

        Args:
            actor: Authenticated user creating the expense
            payer: User who paid
            participants: Identities listed in the split
            group: Loaded Group for group expenses, None for direct ones
            friends: Friend identities of the actor (direct expenses)
        """
        participant_ids = [member_identity_of(p) for p in participants]

        if group is not None:
            cls._authorize_group_split(actor, payer, participant_ids, group)
        else:
            cls._authorize_direct_split(actor, payer, participant_ids, friends)

    @staticmethod
    def _authorize_group_split(actor, payer, participant_ids, group) -> None:
        if not group.is_member(actor):
            raise AuthError("You are not a member of this group", code=ErrorCode.NOT_MEMBER)

        if not group.is_member(payer):
            raise AuthError(
                "The payer must be a member of the group",
                code=ErrorCode.PAYER_NOT_MEMBER,
                field="paidBy",
            )

        outsiders = [p for p in participant_ids if not group.is_member(p)]
        if outsiders:
            raise AuthError(
                "All split partners must be members of the group",
                code=ErrorCode.PARTICIPANTS_NOT_MEMBERS,
                field="splitWith",
                details={"participants": outsiders},
            )

    @staticmethod
    def _authorize_direct_split(actor, payer, participant_ids, friends) -> None:
        friend_ids = {member_identity_of(f) for f in friends}

        if not same_identity(payer, actor) and member_identity_of(payer) not in friend_ids:
            raise AuthError(
                "The payer must be you or one of your friends",
                code=ErrorCode.PAYER_NOT_FRIEND,
                field="paidBy",
            )

        for participant in participant_ids:
            if same_identity(participant, actor) or same_identity(participant, payer):
                continue
            if participant not in friend_ids:
                raise AuthError(
                    "All split partners must be you, the payer, or your friends",
                    code=ErrorCode.PARTICIPANT_NOT_ELIGIBLE,
                    field="splitWith",
                    details={"participant": participant},
                )
