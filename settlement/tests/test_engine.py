"""
Unit Tests for the Settlement Engine

Tests cover:
1. Net position computation
2. Greedy debtor/creditor matching
3. Rounding boundaries
4. Display name fallback
5. Determinism
6. Malformed and unbalanced input
7. Amounts beyond the default decimal precision
"""

import pytest
from decimal import Decimal
from types import SimpleNamespace

from settlement.engine import (
    UNKNOWN_NAME,
    compute_balances,
    compute_net_positions,
    summarize_positions,
)
from settlement.models import Expense, ExpenseSplit


NAMES = {"alice": "Alice", "bob": "Bob", "carol": "Carol", "dave": "Dave"}


def make_expense(payer_id, amount, shares):
    return Expense(
        payer_id=payer_id,
        amount=Decimal(amount),
        expense_splits=[
            ExpenseSplit(participant_id=pid, amount=Decimal(share))
            for pid, share in shares.items()
        ],
    )


class TestNetPositions:
    """Tests for net position accumulation."""

    def test_payer_and_sharer_accumulate_both(self):
        """Test a payer who also owes a share nets both effects."""
        net = compute_net_positions([
            make_expense("alice", "10.00", {"alice": "5.00", "bob": "5.00"}),
        ])

        assert net == {"alice": Decimal("5.00"), "bob": Decimal("-5.00")}

    def test_balanced_expenses_sum_to_zero(self):
        """Test zero-sum invariant over several balanced expenses."""
        net = compute_net_positions([
            make_expense("alice", "90.00", {"alice": "30.00", "bob": "30.00", "carol": "30.00"}),
            make_expense("bob", "45.50", {"carol": "20.25", "dave": "25.25"}),
            make_expense("carol", "10.01", {"alice": "3.34", "bob": "3.34", "carol": "3.33"}),
        ])

        assert sum(net.values()) == Decimal("0")

    def test_empty_expenses(self):
        """Test no expenses yields no positions."""
        assert compute_net_positions([]) == {}

    def test_float_amounts_do_not_drift(self):
        """Test float inputs are converted without binary drift."""
        expense = SimpleNamespace(
            payer_id="alice",
            amount=0.3,
            expense_splits=[
                SimpleNamespace(participant_id="bob", amount=0.1),
                SimpleNamespace(participant_id="carol", amount=0.2),
            ],
        )

        net = compute_net_positions([expense])

        assert net["alice"] + net["bob"] + net["carol"] == Decimal("0")


class TestComputeBalances:
    """Tests for greedy settlement."""

    def test_two_participants_single_transfer(self):
        """Test A pays 10.00 split evenly: B owes A 5.00."""
        settlements = compute_balances(
            [make_expense("alice", "10.00", {"alice": "5.00", "bob": "5.00"})],
            NAMES,
        )

        assert len(settlements) == 1
        transfer = settlements[0]
        assert transfer.from_id == "bob"
        assert transfer.from_name == "Bob"
        assert transfer.to_id == "alice"
        assert transfer.to_name == "Alice"
        assert transfer.amount == Decimal("5.00")

    def test_single_debtor_two_creditors(self):
        """Test one debtor of 30.00 pays the larger creditor first."""
        settlements = compute_balances(
            [
                make_expense("alice", "10.00", {"carol": "10.00"}),
                make_expense("bob", "20.00", {"carol": "20.00"}),
            ],
            NAMES,
        )

        assert [(s.from_id, s.to_id, s.amount) for s in settlements] == [
            ("carol", "bob", Decimal("20.00")),
            ("carol", "alice", Decimal("10.00")),
        ]

    def test_empty_input_returns_empty(self):
        """Test no expenses produces no transfers."""
        assert compute_balances([], NAMES) == []

    def test_settled_group_returns_empty(self):
        """Test a group where everyone paid their own share."""
        settlements = compute_balances(
            [
                make_expense("alice", "10.00", {"alice": "5.00", "bob": "5.00"}),
                make_expense("bob", "10.00", {"alice": "5.00", "bob": "5.00"}),
            ],
            NAMES,
        )

        assert settlements == []

    def test_transfers_cover_total_debt(self):
        """Test transfer total equals creditor total, no self transfers, positive amounts."""
        expenses = [
            make_expense("alice", "120.00", {"alice": "30.00", "bob": "30.00", "carol": "30.00", "dave": "30.00"}),
            make_expense("bob", "75.30", {"alice": "25.10", "carol": "25.10", "dave": "25.10"}),
            make_expense("dave", "9.99", {"alice": "3.33", "bob": "3.33", "carol": "3.33"}),
        ]

        settlements = compute_balances(expenses, NAMES)
        net = compute_net_positions(expenses)

        creditor_total = sum(v for v in net.values() if v > 0)
        assert sum(s.amount for s in settlements) == creditor_total
        for s in settlements:
            assert s.from_id != s.to_id
            assert s.amount > 0
            assert s.amount == s.amount.quantize(Decimal("0.01"))

    def test_transfer_count_bound(self):
        """Test each step resolves at least one side."""
        expenses = [
            make_expense("alice", "100.00", {"bob": "40.00", "carol": "35.00", "dave": "25.00"}),
            make_expense("bob", "30.00", {"carol": "30.00"}),
        ]

        settlements = compute_balances(expenses, NAMES)

        # alice +100, bob -10, carol -65, dave -25
        assert len(settlements) <= 3
        assert [s.to_id for s in settlements] == ["alice", "alice", "alice"]
        assert [s.from_id for s in settlements] == ["carol", "dave", "bob"]

    def test_deterministic_output(self):
        """Test identical input yields identical output and order."""
        expenses = [
            make_expense("alice", "30.00", {"bob": "10.00", "carol": "10.00", "dave": "10.00"}),
            make_expense("bob", "30.00", {"alice": "10.00", "carol": "10.00", "dave": "10.00"}),
        ]

        first = compute_balances(expenses, NAMES)
        second = compute_balances(expenses, NAMES)

        assert first == second
        # ties keep first-mention order
        assert [(s.from_id, s.to_id) for s in first] == [("carol", "alice"), ("dave", "bob")]


class TestUnknownNames:
    """Tests for display name fallback."""

    def test_missing_name_uses_sentinel(self):
        """Test participants absent from the directory are labelled Unknown."""
        settlements = compute_balances(
            [make_expense("ghost", "10.00", {"phantom": "10.00"})],
            {},
        )

        assert settlements[0].from_name == UNKNOWN_NAME
        assert settlements[0].to_name == UNKNOWN_NAME
        assert settlements[0].amount == Decimal("10.00")

    def test_empty_name_uses_sentinel(self):
        """Test an empty display name falls back as well."""
        settlements = compute_balances(
            [make_expense("alice", "10.00", {"bob": "10.00"})],
            {"alice": "", "bob": "Bob"},
        )

        assert settlements[0].to_name == "Unknown"
        assert settlements[0].from_name == "Bob"


class TestRoundingBoundary:
    """Tests for the settled threshold."""

    @pytest.mark.parametrize("amount", ["0.01", "0.005", "0.014"])
    def test_one_cent_positions_are_settled(self, amount):
        """Test positions rounding to at most one cent are dropped."""
        settlements = compute_balances(
            [make_expense("alice", amount, {"bob": amount})],
            NAMES,
        )

        assert settlements == []

    def test_two_cent_positions_are_settled_up(self):
        """Test a two cent position produces a transfer."""
        settlements = compute_balances(
            [make_expense("alice", "0.02", {"bob": "0.02"})],
            NAMES,
        )

        assert len(settlements) == 1
        assert settlements[0].amount == Decimal("0.02")

    def test_half_cent_rounds_to_even(self):
        """Test half cent positions round half to even."""
        settlements = compute_balances(
            [
                make_expense("alice", "0.025", {"bob": "0.025"}),
                make_expense("carol", "0.035", {"dave": "0.035"}),
            ],
            NAMES,
        )

        # 0.025 -> 0.02 (kept), 0.035 -> 0.04 (kept)
        assert [(s.from_id, s.amount) for s in settlements] == [
            ("dave", Decimal("0.04")),
            ("bob", Decimal("0.02")),
        ]


class TestSummarizePositions:
    """Tests for the per-participant summary."""

    def test_summary_totals(self):
        """Test paid, share and net per participant in first-mention order."""
        positions = summarize_positions(
            [
                make_expense("alice", "10.00", {"alice": "5.00", "bob": "5.00"}),
                make_expense("bob", "4.00", {"alice": "2.00", "bob": "2.00"}),
            ],
            NAMES,
        )

        assert [p.participant_id for p in positions] == ["alice", "bob"]
        alice, bob = positions
        assert alice.total_paid == Decimal("10.00")
        assert alice.total_share == Decimal("7.00")
        assert alice.net == Decimal("3.00")
        assert bob.name == "Bob"
        assert bob.net == Decimal("-3.00")


class TestMalformedInput:
    """Tests that unbalanced or odd input flows through without raising."""

    def test_shares_not_matching_amount(self):
        """Test an expense whose shares fall short still settles what is owed."""
        expenses = [make_expense("alice", "10.00", {"bob": "4.00"})]

        net = compute_net_positions(expenses)
        settlements = compute_balances(expenses, NAMES)

        assert sum(net.values()) == Decimal("6.00")
        assert [(s.from_id, s.to_id, s.amount) for s in settlements] == [
            ("bob", "alice", Decimal("4.00")),
        ]

    def test_negative_amounts(self):
        """Test negative amounts and shares never produce negative transfers."""
        settlements = compute_balances(
            [
                make_expense("alice", "-10.00", {"bob": "-10.00"}),
                make_expense("carol", "5.00", {"dave": "-5.00"}),
            ],
            NAMES,
        )

        # alice -10, bob +10, carol +5, dave +5
        assert [(s.from_id, s.to_id, s.amount) for s in settlements] == [
            ("alice", "bob", Decimal("10.00")),
        ]
        assert all(s.amount > 0 for s in settlements)

    def test_duplicate_split_entries_accumulate(self):
        """Test the same participant listed twice in one expense owes both shares."""
        expense = Expense(
            payer_id="alice",
            amount=Decimal("5.00"),
            expense_splits=[
                ExpenseSplit(participant_id="bob", amount=Decimal("3.00")),
                ExpenseSplit(participant_id="bob", amount=Decimal("2.00")),
            ],
        )

        assert compute_net_positions([expense]) == {"alice": Decimal("5.00"), "bob": Decimal("-5.00")}
        settlements = compute_balances([expense], NAMES)
        assert [(s.from_id, s.amount) for s in settlements] == [("bob", Decimal("5.00"))]


class TestLargeAmounts:
    """Tests for amounts wider than the default 28 digit decimal context."""

    def test_amount_of_ten_to_the_twenty_seventh(self):
        """Test a 1e27 expense settles without a decimal error."""
        settlements = compute_balances(
            [make_expense("alice", "1e27", {"bob": "1e27"})],
            {},
        )

        assert len(settlements) == 1
        assert settlements[0].from_id == "bob"
        assert settlements[0].amount == Decimal("1e27")

    def test_cents_survive_on_thirty_digit_amounts(self):
        """Test cents are kept exactly on very wide amounts."""
        settlements = compute_balances(
            [
                make_expense(
                    "alice",
                    "123456789012345678901234567890.05",
                    {"bob": "123456789012345678901234567890.02", "carol": "0.03"},
                ),
            ],
            NAMES,
        )

        assert [(s.from_id, s.amount) for s in settlements] == [
            ("bob", Decimal("123456789012345678901234567890.02")),
            ("carol", Decimal("0.03")),
        ]

    def test_summary_of_large_amounts(self):
        positions = summarize_positions(
            [make_expense("alice", "1e30", {"alice": "5e29", "bob": "5e29"})],
            NAMES,
        )

        assert positions[0].net == Decimal("5e29")
        assert positions[1].net == Decimal("-5e29")
