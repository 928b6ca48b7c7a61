"""Transactions router: owner-scoped CRUD plus the period summary."""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Annotated, Any

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator, model_validator

from .auth import get_current_owner_id
from .database import get_db_connection
from .services.errors import DataAccessError, InvalidPeriodFormat
from .services import periods
from .services.periods import Period, parse_day, resolve_period
from .services.summary_service import Summary, summarize
from .services.transactions_service import TransactionStore, TransactionType

router = APIRouter(prefix="/api/transactions", tags=["transactions"])

Amount = Annotated[Decimal, Field(gt=Decimal("0"), max_digits=12, decimal_places=2)]


def _money(value: Decimal) -> float:
    return float(value)


def _clean_text(value: Any) -> Any:
    if isinstance(value, str):
        return value.strip() or None
    return value


class TransactionCreate(BaseModel):
    amount: Amount
    type: TransactionType
    category_id: int | None = Field(default=None, gt=0)
    description: str | None = Field(default=None, max_length=200)
    occurred_at: date | None = None

    @field_validator("description", mode="before")
    @classmethod
    def clean_text(cls, value: Any) -> Any:
        return _clean_text(value)


class TransactionUpdate(BaseModel):
    amount: Amount | None = None
    type: TransactionType | None = None
    category_id: int | None = Field(default=None, gt=0)
    description: str | None = Field(default=None, max_length=200)
    occurred_at: date | None = None

    @field_validator("description", mode="before")
    @classmethod
    def clean_text(cls, value: Any) -> Any:
        return _clean_text(value)

    @model_validator(mode="after")
    def check_fields(self) -> "TransactionUpdate":
        if not self.model_fields_set:
            raise ValueError("At least one field must be provided")

        # category and description may be cleared; the rest are required columns.
        for name in ("amount", "type", "occurred_at"):
            if name in self.model_fields_set and getattr(self, name) is None:
                raise ValueError(f"{name} cannot be null")

        return self


class TransactionResponse(BaseModel):
    id: int
    amount: Decimal
    type: TransactionType
    category_id: int | None
    description: str | None
    occurred_at: date

    @field_serializer("amount")
    def serialize_amount(self, value: Decimal) -> float:
        return _money(value)


class CategoryTotalItem(BaseModel):
    category_id: int
    total: Decimal

    @field_serializer("total")
    def serialize_total(self, value: Decimal) -> float:
        return _money(value)


class PeriodSummaryResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    month: str | None
    date_from: date = Field(alias="from")
    date_to: date = Field(alias="to")
    inc: Decimal
    exp: Decimal
    net: Decimal
    by_category: list[CategoryTotalItem] = Field(alias="byCategory")

    @field_serializer("inc", "exp", "net")
    def serialize_decimal(self, value: Decimal) -> float:
        return _money(value)

    @classmethod
    def from_summary(cls, summary: Summary) -> "PeriodSummaryResponse":
        return cls(
            month=summary.period.month,
            date_from=summary.period.date_from,
            date_to=summary.period.date_to,
            inc=summary.income,
            exp=summary.expense,
            net=summary.net,
            by_category=[
                CategoryTotalItem(category_id=item.category_id, total=item.total)
                for item in summary.by_category
            ],
        )


class DeleteResponse(BaseModel):
    ok: bool = True


def get_transaction_store(connection: Any = Depends(get_db_connection)) -> TransactionStore:
    return TransactionStore(connection)


def _validate_date_range(date_from: date | None, date_to: date | None) -> None:
    if date_from and date_to and date_from > date_to:
        raise HTTPException(status_code=422, detail="from must be on or before to")


def _resolve_summary_period(month: str | None, date_from: str | None, date_to: str | None) -> Period:
    try:
        period = resolve_period(month, date_from, date_to)
    except InvalidPeriodFormat as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc

    _validate_date_range(period.date_from, period.date_to)
    return period


def _resolve_list_bounds(
    month: str | None,
    date_from: str | None,
    date_to: str | None,
) -> tuple[date | None, date | None]:
    """A month wins over explicit bounds; explicit bounds may be given one at a time."""
    try:
        if month is not None:
            period = resolve_period(month=month)
            return period.date_from, period.date_to

        lower = parse_day(date_from) if date_from is not None else None
        upper = parse_day(date_to) if date_to is not None else None
    except InvalidPeriodFormat as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc

    _validate_date_range(lower, upper)
    return lower, upper


@router.get("", response_model=list[TransactionResponse])
async def list_transactions(
    month: str | None = Query(default=None, description="YYYY-MM"),
    date_from: str | None = Query(default=None, alias="from", description="YYYY-MM-DD"),
    date_to: str | None = Query(default=None, alias="to", description="YYYY-MM-DD"),
    type_filter: TransactionType | None = Query(default=None, alias="type"),
    owner_id: int = Depends(get_current_owner_id),
    store: TransactionStore = Depends(get_transaction_store),
) -> list[TransactionResponse]:
    lower, upper = _resolve_list_bounds(month, date_from, date_to)

    try:
        rows = await store.list_transactions(owner_id, lower, upper, type_filter)
    except DataAccessError as exc:
        raise HTTPException(status_code=400, detail=exc.message) from exc

    return [TransactionResponse.model_validate(row) for row in rows]


@router.post("", response_model=TransactionResponse, status_code=201)
async def create_transaction(
    payload: TransactionCreate,
    owner_id: int = Depends(get_current_owner_id),
    store: TransactionStore = Depends(get_transaction_store),
) -> TransactionResponse:
    data = payload.model_dump()
    if data["occurred_at"] is None:
        data["occurred_at"] = periods.utc_today()

    try:
        row = await store.create_transaction(owner_id, data)
    except DataAccessError as exc:
        raise HTTPException(status_code=400, detail=exc.message) from exc

    return TransactionResponse.model_validate(row)


@router.get("/summary/month", response_model=PeriodSummaryResponse)
async def month_summary(
    month: str | None = Query(default=None, description="YYYY-MM"),
    date_from: str | None = Query(default=None, alias="from", description="YYYY-MM-DD"),
    date_to: str | None = Query(default=None, alias="to", description="YYYY-MM-DD"),
    type_filter: TransactionType | None = Query(default=None, alias="type"),
    owner_id: int = Depends(get_current_owner_id),
    store: TransactionStore = Depends(get_transaction_store),
) -> PeriodSummaryResponse:
    """
    Income/expense totals and per-category breakdown for one period.

    Example response:
    {
      "month": "2026-02",
      "from": "2026-02-01",
      "to": "2026-02-28",
      "inc": 1500.0,
      "exp": 870.5,
      "net": 629.5,
      "byCategory": [{"category_id": 3, "total": 600.0}]
    }
    """
    period = _resolve_summary_period(month, date_from, date_to)

    try:
        summary = await summarize(store.fetch_period_rows, owner_id, period, type_filter)
    except DataAccessError as exc:
        raise HTTPException(status_code=400, detail=exc.message) from exc

    return PeriodSummaryResponse.from_summary(summary)


@router.patch("/{transaction_id}", response_model=TransactionResponse)
async def update_transaction(
    transaction_id: int,
    payload: TransactionUpdate,
    owner_id: int = Depends(get_current_owner_id),
    store: TransactionStore = Depends(get_transaction_store),
) -> TransactionResponse:
    try:
        row = await store.update_transaction(
            owner_id,
            transaction_id,
            payload.model_dump(exclude_unset=True),
        )
    except LookupError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    except DataAccessError as exc:
        raise HTTPException(status_code=400, detail=exc.message) from exc

    return TransactionResponse.model_validate(row)


@router.delete("/{transaction_id}", response_model=DeleteResponse)
async def delete_transaction(
    transaction_id: int,
    owner_id: int = Depends(get_current_owner_id),
    store: TransactionStore = Depends(get_transaction_store),
) -> DeleteResponse:
    try:
        await store.delete_transaction(owner_id, transaction_id)
    except LookupError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except DataAccessError as exc:
        raise HTTPException(status_code=400, detail=exc.message) from exc

    return DeleteResponse()
