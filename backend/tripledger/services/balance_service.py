"""
Balance aggregator: net pairwise balances for a trip.

Sign convention: each pair is reported as (user_a, user_b) with user_a < user_b.
A positive amount means user_b owes user_a; a negative amount means user_a owes
user_b. Read-only, never mutates the store.
"""
from collections import defaultdict
from dataclasses import dataclass
from typing import Dict, List, Tuple
from sqlalchemy.orm import Session, selectinload
from tripledger.models.expense import Expense
from tripledger.models.settlement import Settlement, SettlementStatus
from tripledger.models.user import User
from tripledger.services.membership_service import check_trip_access
from tripledger.services.split_service import compute_split


@dataclass
class PairBalance:
    user_a: int
    user_b: int
    amount_cents: int  # > 0: user_b owes user_a, < 0: user_a owes user_b


@dataclass
class Transfer:
    """Represents a single transfer between users."""
    from_user_id: int
    to_user_id: int
    amount_cents: int


def accumulate_debts(expenses: List[Expense], settlements: List[Settlement]) -> Dict[Tuple[int, int], int]:
    """
    Directed ledger: (debtor, creditor) -> cents still owed.
    Every participant other than the payer owes the payer their computed share;
    settled settlements are then subtracted from the debtor -> creditor direction.
    """
    owed: Dict[Tuple[int, int], int] = defaultdict(int)

    for expense in expenses:
        shares = compute_split(
            expense.amount_cents,
            expense.split_kind,
            expense.participant_ids,
            expense.shares_cents,
        )
        for user_id, share in shares.items():
            if user_id != expense.payer_id and share:
                owed[(user_id, expense.payer_id)] += share

    for settlement in settlements:
        if settlement.status == SettlementStatus.SETTLED:
            owed[(settlement.from_user_id, settlement.to_user_id)] -= settlement.amount_cents

    return owed


def net_pairs(owed: Dict[Tuple[int, int], int]) -> List[PairBalance]:
    """Collapse the directed ledger into one signed amount per unordered pair."""
    net: Dict[Tuple[int, int], int] = defaultdict(int)
    for (debtor, creditor), cents in owed.items():
        if debtor < creditor:
            # creditor is user_b and is owed money by user_a
            net[(debtor, creditor)] -= cents
        else:
            net[(creditor, debtor)] += cents

    return [
        PairBalance(user_a=a, user_b=b, amount_cents=cents)
        for (a, b), cents in sorted(net.items())
        if cents != 0
    ]


def user_net_positions(pairs: List[PairBalance]) -> Dict[int, int]:
    """user_id -> net cents (positive = should receive, negative = should pay)."""
    positions: Dict[int, int] = defaultdict(int)
    for pair in pairs:
        positions[pair.user_a] += pair.amount_cents
        positions[pair.user_b] -= pair.amount_cents
    return dict(positions)


def minimize_transfers(balances: List[tuple]) -> List[Transfer]:
    """
    Minimize the number of transfers needed to settle debts.
    Uses a greedy algorithm over (user_id, net cents) tuples.
    """
    # Separate creditors (positive balance) and debtors (negative balance)
    creditors = [(uid, bal) for uid, bal in balances if bal > 0]
    debtors = [(uid, -bal) for uid, bal in balances if bal < 0]

    # Largest first, ties by user id for a stable result
    creditors.sort(key=lambda x: (-x[1], x[0]))
    debtors.sort(key=lambda x: (-x[1], x[0]))

    transfers = []
    cred_idx = 0
    debt_idx = 0

    while cred_idx < len(creditors) and debt_idx < len(debtors):
        creditor_id, cred_amount = creditors[cred_idx]
        debtor_id, debt_amount = debtors[debt_idx]

        transfer_amount = min(cred_amount, debt_amount)
        transfers.append(Transfer(debtor_id, creditor_id, transfer_amount))

        creditors[cred_idx] = (creditor_id, cred_amount - transfer_amount)
        debtors[debt_idx] = (debtor_id, debt_amount - transfer_amount)

        if creditors[cred_idx][1] == 0:
            cred_idx += 1
        if debtors[debt_idx][1] == 0:
            debt_idx += 1

    return transfers


def net_balances(trip_id: int, caller: User, db: Session) -> List[PairBalance]:
    """Net pairwise balances of a trip. Requires trip membership."""
    check_trip_access(trip_id, caller.id, db)

    expenses = db.query(Expense).options(
        selectinload(Expense.participants)
    ).filter(Expense.trip_id == trip_id).all()
    settlements = db.query(Settlement).filter(
        Settlement.trip_id == trip_id,
        Settlement.status == SettlementStatus.SETTLED
    ).all()

    return net_pairs(accumulate_debts(expenses, settlements))


def suggest_transfers(pairs: List[PairBalance]) -> List[Transfer]:
    """Fewest transfers that clear every pair balance."""
    return minimize_transfers(list(user_net_positions(pairs).items()))
