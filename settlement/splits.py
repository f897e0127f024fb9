from decimal import Context, Decimal, MAX_EMAX, MIN_EMIN, ROUND_DOWN, ROUND_HALF_EVEN, localcontext
from typing import Mapping, Optional, Sequence

from .models import ExpenseSplit, SplitMode

CENT = Decimal("0.01")
HUNDRED = Decimal("100")


class SplitError(ValueError):
    pass


def _as_decimal(value) -> Decimal:
    return value if isinstance(value, Decimal) else Decimal(str(value))


def _working_context(*values: Decimal) -> Context:
    """Room for every integer and fractional digit of the operands, plus guard digits."""
    digits = 0
    for value in values:
        exponent = value.as_tuple().exponent
        digits += max(value.adjusted() + 1, 0) + max(-exponent, 0)
    return Context(prec=max(28, digits + 10), rounding=ROUND_HALF_EVEN, Emax=MAX_EMAX, Emin=MIN_EMIN)


def split_equally(amount: Decimal, participant_ids: Sequence[str]) -> list[ExpenseSplit]:
    """Floor each share to the cent; the first participant absorbs the leftover cents."""
    amount = _as_decimal(amount)
    with localcontext(_working_context(amount)):
        share = (amount / len(participant_ids)).quantize(CENT, rounding=ROUND_DOWN)
        remainder = amount - share * len(participant_ids)
        first = share + remainder
    return [
        ExpenseSplit(participant_id=pid, amount=first if i == 0 else share)
        for i, pid in enumerate(participant_ids)
    ]


def split_custom(participant_ids: Sequence[str], values: Mapping[str, Decimal]) -> list[ExpenseSplit]:
    return [
        ExpenseSplit(participant_id=pid, amount=_as_decimal(values.get(pid, 0)))
        for pid in participant_ids
    ]


def split_by_percentage(
    amount: Decimal, participant_ids: Sequence[str], percentages: Mapping[str, Decimal]
) -> list[ExpenseSplit]:
    amount = _as_decimal(amount)
    splits = []
    for pid in participant_ids:
        percentage = _as_decimal(percentages.get(pid, 0))
        with localcontext(_working_context(amount, percentage)):
            share = (amount * percentage / HUNDRED).quantize(CENT, rounding=ROUND_HALF_EVEN)
        splits.append(ExpenseSplit(participant_id=pid, amount=share))
    return splits


def compute_splits(
    amount: Decimal,
    participant_ids: Sequence[str],
    mode: SplitMode,
    custom_values: Optional[Mapping[str, Decimal]] = None,
) -> list[ExpenseSplit]:
    if not participant_ids:
        raise SplitError("At least one participant is required to split an expense")

    values = custom_values or {}
    if mode == SplitMode.EQUAL:
        return split_equally(amount, participant_ids)
    if mode == SplitMode.CUSTOM:
        return split_custom(participant_ids, values)
    if mode == SplitMode.PERCENTAGE:
        return split_by_percentage(amount, participant_ids, values)
    raise SplitError(f"Unknown split mode: {mode}")


def validate_splits(amount: Decimal, splits: Sequence[ExpenseSplit]) -> bool:
    """Shares must sum to the amount within half a cent per share (one cent at least)."""
    amount = _as_decimal(amount)
    shares = [_as_decimal(s.amount) for s in splits]
    with localcontext(_working_context(amount, *shares)):
        total = sum(shares, Decimal("0"))
        tolerance = max(CENT, CENT * len(splits) / 2)
        return abs(total - amount) <= tolerance
