from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field, ConfigDict


class SplitMode(str, Enum):
    EQUAL = "equal"
    CUSTOM = "custom"
    PERCENTAGE = "percentage"


class ExpenseSplit(BaseModel):
    participant_id: str
    amount: Decimal

    model_config = ConfigDict(from_attributes=True)


class Expense(BaseModel):
    payer_id: str
    amount: Decimal
    expense_splits: list[ExpenseSplit] = Field(default_factory=list)

    model_config = ConfigDict(from_attributes=True)


class Settlement(BaseModel):
    from_id: str
    from_name: str
    to_id: str
    to_name: str
    amount: Decimal


class NetPosition(BaseModel):
    participant_id: str
    name: str
    total_paid: Decimal
    total_share: Decimal
    net: Decimal


class ComputeSettlementsRequest(BaseModel):
    expenses: list[Expense] = Field(default_factory=list)
    participant_names: dict[str, str] = Field(default_factory=dict)

    model_config = ConfigDict(json_schema_extra={
        "example": {
            "expenses": [
                {
                    "payer_id": "alice",
                    "amount": 10.00,
                    "expense_splits": [
                        {"participant_id": "alice", "amount": 5.00},
                        {"participant_id": "bob", "amount": 5.00},
                    ],
                }
            ],
            "participant_names": {"alice": "Alice", "bob": "Bob"},
        }
    })


class CreateGroupRequest(BaseModel):
    name: str = Field(..., min_length=1)
    description: Optional[str] = None
    currency: Optional[str] = None
    participants: list[str] = Field(default_factory=list, description="Names of the initial participants")


class AddParticipantRequest(BaseModel):
    name: str = Field(..., min_length=1)
    color: Optional[str] = None


class CreateExpenseRequest(BaseModel):
    group_id: str
    description: str = Field(..., min_length=1)
    amount: Decimal
    spent_on: Optional[date] = None
    payer_id: str
    split_mode: SplitMode = SplitMode.EQUAL
    participant_ids: Optional[list[str]] = Field(
        default=None, description="Participants sharing the expense; defaults to the whole group"
    )
    custom_values: dict[str, Decimal] = Field(
        default_factory=dict, description="Amounts (custom) or percentages (percentage) per participant"
    )
    splits: Optional[list[ExpenseSplit]] = Field(
        default=None, description="Precomputed shares; used as-is when given"
    )


class Participant(BaseModel):
    id: str
    group_id: str
    name: str
    color: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class Group(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    currency: str
    created_at: datetime
    participants: list[Participant] = Field(default_factory=list)

    model_config = ConfigDict(from_attributes=True)

    def participant_names(self) -> dict[str, str]:
        return {p.id: p.name for p in self.participants}


class ExpenseRecord(Expense):
    id: str
    group_id: str
    description: str
    spent_on: date
    split_mode: SplitMode
    created_at: datetime


class GroupSummary(BaseModel):
    group_id: str
    currency: str
    total_spent: Decimal
    expense_count: int
    participant_count: int
    positions: list[NetPosition]
    settlements: list[Settlement]
