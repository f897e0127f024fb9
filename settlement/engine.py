"""
Settlement engine: net positions and greedy debt settlement.

Amounts are handled as ``Decimal`` in an unbounded-precision
context and rounded to cents with ``ROUND_HALF_EVEN``. Floats handed in by
callers are converted through their string form before any arithmetic takes
place.
"""

from decimal import (
    Context, Decimal, MAX_EMAX, MAX_PREC, MIN_EMIN, ROUND_HALF_EVEN, localcontext,
)
from functools import wraps
from typing import Iterable, Mapping

from .models import Expense, NetPosition, Settlement

UNKNOWN_NAME = "Unknown"
CENT = Decimal("0.01")
ZERO = Decimal("0")

# Sums, differences and quantize stay exact at any magnitude; the engine never divides.
EXACT_CONTEXT = Context(prec=MAX_PREC, Emax=MAX_EMAX, Emin=MIN_EMIN, rounding=ROUND_HALF_EVEN)


def exact_arithmetic(func):
    @wraps(func)
    def wrapper(*args, **kwargs):
        with localcontext(EXACT_CONTEXT):
            return func(*args, **kwargs)
    return wrapper


@exact_arithmetic
def to_cents(value) -> Decimal:
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(CENT, rounding=ROUND_HALF_EVEN)


def _lookup_name(participant_names: Mapping[str, str], participant_id: str) -> str:
    return participant_names.get(participant_id) or UNKNOWN_NAME


@exact_arithmetic
def compute_net_positions(expenses: Iterable[Expense]) -> dict[str, Decimal]:
    """Positive = owed money, negative = owes money. Keys in first-mention order."""
    net: dict[str, Decimal] = {}
    for expense in expenses:
        amount = Decimal(str(expense.amount))
        net[expense.payer_id] = net.get(expense.payer_id, ZERO) + amount
        for split in expense.expense_splits:
            share = Decimal(str(split.amount))
            net[split.participant_id] = net.get(split.participant_id, ZERO) - share
    return net


@exact_arithmetic
def compute_balances(
    expenses: Iterable[Expense],
    participant_names: Mapping[str, str],
) -> list[Settlement]:
    net = compute_net_positions(expenses)

    debtors: list[list] = []
    creditors: list[list] = []
    for participant_id, amount in net.items():
        rounded = to_cents(amount)
        if rounded < -CENT:
            debtors.append([participant_id, -rounded])
        elif rounded > CENT:
            creditors.append([participant_id, rounded])

    # sort() is stable: ties keep first-mention order
    debtors.sort(key=lambda d: d[1], reverse=True)
    creditors.sort(key=lambda c: c[1], reverse=True)

    settlements: list[Settlement] = []
    i = j = 0
    while i < len(debtors) and j < len(creditors):
        debtor, creditor = debtors[i], creditors[j]
        amount = min(debtor[1], creditor[1])
        rounded = to_cents(amount)
        if rounded > ZERO:
            settlements.append(Settlement(
                from_id=debtor[0],
                from_name=_lookup_name(participant_names, debtor[0]),
                to_id=creditor[0],
                to_name=_lookup_name(participant_names, creditor[0]),
                amount=rounded,
            ))
        debtor[1] -= amount
        creditor[1] -= amount
        if debtor[1] < CENT:
            i += 1
        if creditor[1] < CENT:
            j += 1

    return settlements


@exact_arithmetic
def summarize_positions(
    expenses: Iterable[Expense],
    participant_names: Mapping[str, str],
) -> list[NetPosition]:
    paid: dict[str, Decimal] = {}
    share: dict[str, Decimal] = {}
    order: dict[str, None] = {}
    for expense in expenses:
        order.setdefault(expense.payer_id)
        paid[expense.payer_id] = paid.get(expense.payer_id, ZERO) + Decimal(str(expense.amount))
        for split in expense.expense_splits:
            order.setdefault(split.participant_id)
            share[split.participant_id] = share.get(split.participant_id, ZERO) + Decimal(str(split.amount))

    positions = []
    for participant_id in order:
        total_paid = paid.get(participant_id, ZERO)
        total_share = share.get(participant_id, ZERO)
        positions.append(NetPosition(
            participant_id=participant_id,
            name=_lookup_name(participant_names, participant_id),
            total_paid=to_cents(total_paid),
            total_share=to_cents(total_share),
            net=to_cents(total_paid - total_share),
        ))
    return positions
