import logging
from datetime import date, datetime, timezone
from decimal import Decimal, localcontext
from typing import Optional
from uuid import uuid4

from .engine import EXACT_CONTEXT, compute_balances, summarize_positions, to_cents
from .models import (
    AddParticipantRequest,
    CreateExpenseRequest,
    CreateGroupRequest,
    ExpenseRecord,
    Group,
    GroupSummary,
    Participant,
    Settlement,
    SplitMode,
)
from .splits import SplitError, compute_splits, validate_splits

logger = logging.getLogger(__name__)


class SettlementServiceError(Exception):
    pass


class GroupNotFoundError(SettlementServiceError):
    pass


class ParticipantNotFoundError(SettlementServiceError):
    pass


class ExpenseNotFoundError(SettlementServiceError):
    pass


class InvalidExpenseError(SettlementServiceError):
    pass


class InMemoryStorage:
    def __init__(self):
        self.groups: dict[str, dict] = {}
        self.participants: dict[str, dict] = {}
        self.expenses: dict[str, dict] = {}


class SettlementService:
    def __init__(self, storage: Optional[InMemoryStorage] = None, currency: str = "USD"):
        self.storage = storage or InMemoryStorage()
        self.currency = currency

    def create_group(self, request: CreateGroupRequest) -> Group:
        group_id = str(uuid4())
        self.storage.groups[group_id] = {
            "id": group_id,
            "name": request.name,
            "description": request.description,
            "currency": request.currency or self.currency,
            "created_at": datetime.now(timezone.utc),
        }
        logger.info("Created group %s (%s)", group_id, request.name)
        for name in request.participants:
            if name.strip():
                self.add_participant(group_id, AddParticipantRequest(name=name.strip()))
        return self.get_group(group_id)

    def list_groups(self) -> list[Group]:
        """Newest first, each with its participants."""
        ordered = sorted(
            enumerate(self.storage.groups.values()),
            key=lambda item: (item[1]["created_at"], item[0]),
            reverse=True,
        )
        return [self.get_group(group_data["id"]) for _, group_data in ordered]

    def delete_group(self, group_id: str) -> None:
        if self.storage.groups.pop(group_id, None) is None:
            raise GroupNotFoundError(f"Group {group_id} not found")
        self.storage.participants = {
            pid: p for pid, p in self.storage.participants.items() if p["group_id"] != group_id
        }
        self.storage.expenses = {
            eid: e for eid, e in self.storage.expenses.items() if e["group_id"] != group_id
        }
        logger.info("Deleted group %s with its participants and expenses", group_id)

    def get_group(self, group_id: str) -> Group:
        group_data = self.storage.groups.get(group_id)
        if not group_data:
            raise GroupNotFoundError(f"Group {group_id} not found")
        participants = [
            Participant(**p) for p in self.storage.participants.values()
            if p["group_id"] == group_id
        ]
        return Group(**group_data, participants=participants)

    def add_participant(self, group_id: str, request: AddParticipantRequest) -> Participant:
        if group_id not in self.storage.groups:
            raise GroupNotFoundError(f"Group {group_id} not found")
        participant_id = str(uuid4())
        participant_data = {
            "id": participant_id,
            "group_id": group_id,
            "name": request.name,
            "color": request.color,
        }
        self.storage.participants[participant_id] = participant_data
        logger.info("Added participant %s to group %s", participant_id, group_id)
        return Participant(**participant_data)

    def create_expense(self, request: CreateExpenseRequest) -> ExpenseRecord:
        group = self.get_group(request.group_id)
        members = group.participant_names()

        if request.amount <= 0:
            raise InvalidExpenseError("Expense amount must be positive")
        if request.payer_id not in members:
            raise ParticipantNotFoundError(
                f"Payer {request.payer_id} is not a participant of group {group.id}"
            )

        if request.splits is not None:
            if request.split_mode != SplitMode.CUSTOM:
                raise InvalidExpenseError(
                    f"Explicit splits require the custom split mode, got {request.split_mode.value}"
                )
            splits = request.splits
        else:
            participant_ids = request.participant_ids or list(members)
            try:
                splits = compute_splits(
                    request.amount, participant_ids, request.split_mode, request.custom_values
                )
            except SplitError as e:
                raise InvalidExpenseError(str(e))

        for split in splits:
            if split.participant_id not in members:
                raise ParticipantNotFoundError(
                    f"Participant {split.participant_id} is not a participant of group {group.id}"
                )
        if not validate_splits(request.amount, splits):
            raise InvalidExpenseError(
                f"Splits do not add up to the expense amount {to_cents(request.amount)}"
            )

        expense_id = str(uuid4())
        expense_data = {
            "id": expense_id,
            "group_id": group.id,
            "description": request.description,
            "amount": request.amount,
            "spent_on": request.spent_on or date.today(),
            "payer_id": request.payer_id,
            "split_mode": request.split_mode,
            "expense_splits": [s.model_dump() for s in splits],
            "created_at": datetime.now(timezone.utc),
        }
        self.storage.expenses[expense_id] = expense_data
        logger.info("Recorded expense %s of %s in group %s", expense_id, request.amount, group.id)
        return ExpenseRecord(**expense_data)

    def delete_expense(self, expense_id: str) -> None:
        if self.storage.expenses.pop(expense_id, None) is None:
            raise ExpenseNotFoundError(f"Expense {expense_id} not found")
        logger.info("Deleted expense %s", expense_id)

    def list_expenses(self, group_id: str) -> list[ExpenseRecord]:
        if group_id not in self.storage.groups:
            raise GroupNotFoundError(f"Group {group_id} not found")
        expenses = [
            ExpenseRecord(**e) for e in self.storage.expenses.values()
            if e["group_id"] == group_id
        ]
        expenses.sort(key=lambda e: (e.spent_on, e.created_at), reverse=True)
        return expenses

    def get_settlements(self, group_id: str) -> list[Settlement]:
        group = self.get_group(group_id)
        expenses = self.list_expenses(group_id)
        if not expenses:
            return []
        settlements = compute_balances(expenses, group.participant_names())
        logger.debug(
            "Group %s: %d expenses settled with %d transfers",
            group_id, len(expenses), len(settlements),
        )
        return settlements

    def get_group_summary(self, group_id: str) -> GroupSummary:
        group = self.get_group(group_id)
        expenses = self.list_expenses(group_id)
        names = group.participant_names()
        with localcontext(EXACT_CONTEXT):
            total_spent = sum((e.amount for e in expenses), Decimal("0"))

        return GroupSummary(
            group_id=group.id,
            currency=group.currency,
            total_spent=to_cents(total_spent),
            expense_count=len(expenses),
            participant_count=len(group.participants),
            positions=summarize_positions(expenses, names),
            settlements=compute_balances(expenses, names) if expenses else [],
        )
