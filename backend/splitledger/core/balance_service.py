"""Balance aggregation over expense sets."""
from collections import OrderedDict
from typing import Any, Dict, Iterable, List

from splitledger.utils.permissions import member_identity_of, same_identity


class BalanceAggregator:
    """
    Net positions derived from expenses.

    Sign convention everywhere:
    - Positive balance = is owed money (others owe them)
    - Negative balance = owes money (they owe others)

    Both aggregations are pure; the caller supplies the filtered expense set.
    """

    @staticmethod
    def pairwise_balance(expenses: Iterable[Any], subject: Any, other: Any) -> float:
        """
        Net balance of ``subject`` against ``other``.

        Only expenses paid by one of the two with the other listed in the
        split count. Shares already settled have been paid back and no
        longer contribute.
        """
        subject_id = member_identity_of(subject)
        other_id = member_identity_of(other)
        if subject_id == other_id:
            return 0.0

        balance = 0.0
        for expense in expenses:
            if same_identity(expense.paid_by, subject_id):
                # Subject paid, so they are owed the other's share
                balance += expense.unsettled_share_of(other_id)
            elif same_identity(expense.paid_by, other_id):
                # Other paid, so the subject owes their own share
                balance -= expense.unsettled_share_of(subject_id)

        return round(balance, 2) + 0.0

    @staticmethod
    def group_balances(expenses: Iterable[Any], members: Iterable[Any]) -> Dict[str, float]:
        """
        Net position of every member across a group's expenses.

        A payer is owed the expense amount minus their own share; every other
        participant owes their share. Values sum to zero when each expense's
        shares reconcile to its amount.
        """
        expenses = list(expenses)
        balances: Dict[str, float] = OrderedDict()

        for member in members:
            member_id = member_identity_of(member)
            balance = 0.0
            for expense in expenses:
                own_share = expense.share_of(member_id)
                if same_identity(expense.paid_by, member_id):
                    balance += expense.amount - own_share
                else:
                    balance -= own_share
            balances[member_id] = round(balance, 2) + 0.0

        return balances

    @classmethod
    def friend_balances(
        cls,
        expenses: Iterable[Any],
        subject: Any,
        friends: Iterable[Any],
    ) -> List[Dict[str, Any]]:
        """Pairwise balance against each friend, skipping settled-up friends."""
        expenses = list(expenses)
        result = []
        for friend in friends:
            balance = cls.pairwise_balance(expenses, subject, friend)
            if abs(balance) >= 0.01:
                result.append({"friend": member_identity_of(friend), "balance": balance})
        return result

    @staticmethod
    def totals(balances: Iterable[float]) -> Dict[str, float]:
        """Summarize what the subject is owed, what they owe, and the net."""
        balances = list(balances)
        owed = sum(b for b in balances if b > 0)
        owing = sum(-b for b in balances if b < 0)
        return {
            "totalOwed": round(owed, 2),
            "totalOwing": round(owing, 2),
            "net": round(owed - owing, 2),
        }
