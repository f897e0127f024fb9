import logging

from fastapi import FastAPI, HTTPException, status
from fastapi.middleware.cors import CORSMiddleware

from .config import Settings, configure_logging
from .engine import compute_balances
from .models import (
    AddParticipantRequest, ComputeSettlementsRequest, CreateExpenseRequest,
    CreateGroupRequest, ExpenseRecord, Group, GroupSummary, Participant, Settlement,
)
from .service import (
    SettlementService, ExpenseNotFoundError, GroupNotFoundError,
    InvalidExpenseError, ParticipantNotFoundError,
)

logger = logging.getLogger(__name__)

settings = Settings.from_env()
configure_logging(settings)

app = FastAPI(
    title="Expense Settlement API",
    description="Group expense sharing with greedy debt settlement",
    version="1.0.0",
    root_path=settings.root_path,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

settlement_service = SettlementService(currency=settings.currency)


@app.get("/health", tags=["System"])
def health_check():
    return {"status": "healthy", "service": "expense-settlement"}


@app.post("/settlements/compute", response_model=list[Settlement], tags=["Settlements"])
def compute_settlements(request: ComputeSettlementsRequest) -> list[Settlement]:
    settlements = compute_balances(request.expenses, request.participant_names)
    logger.debug("Computed %d transfers for %d expenses", len(settlements), len(request.expenses))
    return settlements


@app.post("/groups", response_model=Group, status_code=status.HTTP_201_CREATED, tags=["Groups"])
def create_group(request: CreateGroupRequest) -> Group:
    return settlement_service.create_group(request)


@app.get("/groups", response_model=list[Group], tags=["Groups"])
def list_groups() -> list[Group]:
    return settlement_service.list_groups()


@app.get("/groups/{group_id}", response_model=Group, tags=["Groups"])
def get_group(group_id: str) -> Group:
    try:
        return settlement_service.get_group(group_id)
    except GroupNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Group {group_id} not found")


@app.delete("/groups/{group_id}", status_code=status.HTTP_204_NO_CONTENT, tags=["Groups"])
def delete_group(group_id: str) -> None:
    try:
        settlement_service.delete_group(group_id)
    except GroupNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Group {group_id} not found")


@app.post(
    "/groups/{group_id}/participants",
    response_model=Participant,
    status_code=status.HTTP_201_CREATED,
    tags=["Groups"],
)
def add_participant(group_id: str, request: AddParticipantRequest) -> Participant:
    try:
        return settlement_service.add_participant(group_id, request)
    except GroupNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Group {group_id} not found")


@app.get("/groups/{group_id}/expenses", response_model=list[ExpenseRecord], tags=["Expenses"])
def list_expenses(group_id: str) -> list[ExpenseRecord]:
    try:
        return settlement_service.list_expenses(group_id)
    except GroupNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Group {group_id} not found")


@app.post("/expenses", response_model=ExpenseRecord, status_code=status.HTTP_201_CREATED, tags=["Expenses"])
def create_expense(request: CreateExpenseRequest) -> ExpenseRecord:
    try:
        return settlement_service.create_expense(request)
    except GroupNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Group {request.group_id} not found")
    except (ParticipantNotFoundError, InvalidExpenseError) as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@app.delete("/expenses/{expense_id}", status_code=status.HTTP_204_NO_CONTENT, tags=["Expenses"])
def delete_expense(expense_id: str) -> None:
    try:
        settlement_service.delete_expense(expense_id)
    except ExpenseNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Expense {expense_id} not found")


@app.get("/groups/{group_id}/settlements", response_model=list[Settlement], tags=["Settlements"])
def get_group_settlements(group_id: str) -> list[Settlement]:
    try:
        return settlement_service.get_settlements(group_id)
    except GroupNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Group {group_id} not found")


@app.get("/groups/{group_id}/summary", response_model=GroupSummary, tags=["Settlements"])
def get_group_summary(group_id: str) -> GroupSummary:
    try:
        return settlement_service.get_group_summary(group_id)
    except GroupNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Group {group_id} not found")


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
