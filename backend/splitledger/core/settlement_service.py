"""
Settlement Service - Marking split shares as paid.

Each split entry moves Unsettled -> Settled exactly once; there is no
un-settle. The expense becomes fully settled the moment its last entry
settles, after which it can no longer be edited.
"""
import logging

from splitledger.errors import AlreadySettled, Forbidden, NotFound, ValidationError
from splitledger.expenses.models import Expense
from splitledger.extensions import get_store
from splitledger.utils.permissions import member_identity_of, same_identity

logger = logging.getLogger(__name__)


class SettlementService:
    """Service for settling individual split shares."""

    @classmethod
    def settle_split(cls, actor: str, expense_id: str, target: str = None) -> Expense:
        """
        Settle ``target``'s share of an expense.

        Participants settle their own share; the payer may also confirm any
        participant's share as paid back.

        Raises:
            NotFound: expense does not exist
            Forbidden: actor is not involved, or settles someone else's share
            ValidationError: target is not part of the split
            AlreadySettled: target's share was settled before
        """
        target = member_identity_of(target) or member_identity_of(actor)
        store = get_store()

        expense = store.load_expense(expense_id)
        if expense is None:
            raise NotFound("Expense not found")
        if not expense.involves(actor):
            raise Forbidden("Not authorized to settle this expense")
        if expense.entry_for(target) is None:
            raise ValidationError("User is not part of this expense split", field="userId")
        if not same_identity(target, actor) and not same_identity(expense.paid_by, actor):
            raise Forbidden("You can only settle your own share")

        def mutate(current: Expense):
            # The model call is a silent no-op for settled shares
            if not current.settle_participant(target):
                raise AlreadySettled(
                    "This split is already settled",
                    field="userId",
                    details={"user": target},
                )

        updated = store.modify_expense(expense_id, mutate)
        if updated is None:
            raise NotFound("Expense not found")

        logger.info(
            "[Settlements] %s settled %s's share of expense %s%s",
            actor, target, expense_id, " (fully settled)" if updated.is_settled else "",
        )
        return updated
