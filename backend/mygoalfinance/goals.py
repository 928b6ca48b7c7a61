"""Goals router: owner-scoped CRUD with computed progress fields."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field, field_serializer, field_validator, model_validator

from .auth import get_current_owner_id
from .database import get_db_connection
from .services.errors import DataAccessError
from .services.goals_service import (
    create_goal,
    delete_goal,
    get_goal,
    list_goals,
    update_goal,
)

router = APIRouter(prefix="/api/goals", tags=["goals"])


def _money(value: Decimal) -> float:
    return float(value)


class GoalCreateRequest(BaseModel):
    title: str = Field(min_length=2, max_length=120)
    description: str | None = None
    target_amount: Decimal = Field(gt=Decimal("0"), max_digits=12, decimal_places=2)
    deadline: date | None = None

    @field_validator("title", mode="before")
    @classmethod
    def strip_title(cls, value: Any) -> Any:
        return value.strip() if isinstance(value, str) else value


class GoalUpdateRequest(BaseModel):
    title: str | None = Field(default=None, min_length=2, max_length=120)
    description: str | None = None
    target_amount: Decimal | None = Field(default=None, gt=Decimal("0"), max_digits=12, decimal_places=2)
    current_amount: Decimal | None = Field(default=None, ge=Decimal("0"), max_digits=12, decimal_places=2)
    deadline: date | None = None

    @field_validator("title", mode="before")
    @classmethod
    def strip_title(cls, value: Any) -> Any:
        return value.strip() if isinstance(value, str) else value

    @model_validator(mode="after")
    def check_required_columns(self) -> "GoalUpdateRequest":
        for name in ("title", "target_amount", "current_amount"):
            if name in self.model_fields_set and getattr(self, name) is None:
                raise ValueError(f"{name} cannot be null")
        return self


class GoalResponse(BaseModel):
    id: int
    user_id: int
    title: str
    description: str | None
    target_amount: Decimal
    current_amount: Decimal
    deadline: date | None
    created_at: datetime
    remaining_amount: Decimal
    progress_pct: int

    @field_serializer("target_amount", "current_amount", "remaining_amount")
    def serialize_decimal(self, value: Decimal) -> float:
        return _money(value)


class DeleteResponse(BaseModel):
    ok: bool = True


@router.get("", response_model=list[GoalResponse])
async def list_goals_endpoint(
    owner_id: int = Depends(get_current_owner_id),
    connection: Any = Depends(get_db_connection),
) -> list[GoalResponse]:
    """List the current owner's goals, newest first."""
    try:
        rows = await list_goals(connection, owner_id)
    except DataAccessError as exc:
        raise HTTPException(status_code=400, detail=exc.message) from exc

    return [GoalResponse(**row) for row in rows]


@router.post("", response_model=GoalResponse, status_code=status.HTTP_201_CREATED)
async def create_goal_endpoint(
    payload: GoalCreateRequest,
    owner_id: int = Depends(get_current_owner_id),
    connection: Any = Depends(get_db_connection),
) -> GoalResponse:
    try:
        row = await create_goal(connection, owner_id, payload.model_dump())
    except DataAccessError as exc:
        raise HTTPException(status_code=400, detail=exc.message) from exc

    return GoalResponse(**row)


@router.get("/{goal_id}", response_model=GoalResponse)
async def get_goal_endpoint(
    goal_id: int,
    owner_id: int = Depends(get_current_owner_id),
    connection: Any = Depends(get_db_connection),
) -> GoalResponse:
    try:
        row = await get_goal(connection, owner_id, goal_id)
    except LookupError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except DataAccessError as exc:
        raise HTTPException(status_code=400, detail=exc.message) from exc

    return GoalResponse(**row)


@router.patch("/{goal_id}", response_model=GoalResponse)
async def update_goal_endpoint(
    goal_id: int,
    payload: GoalUpdateRequest,
    owner_id: int = Depends(get_current_owner_id),
    connection: Any = Depends(get_db_connection),
) -> GoalResponse:
    """Partially update one goal; `current_amount` records progress."""
    patch_data = payload.model_dump(exclude_unset=True)
    if not patch_data:
        raise HTTPException(status_code=422, detail="At least one field must be provided")

    try:
        row = await update_goal(connection, owner_id, goal_id, patch_data)
    except LookupError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    except DataAccessError as exc:
        raise HTTPException(status_code=400, detail=exc.message) from exc

    return GoalResponse(**row)


@router.delete("/{goal_id}", response_model=DeleteResponse)
async def delete_goal_endpoint(
    goal_id: int,
    owner_id: int = Depends(get_current_owner_id),
    connection: Any = Depends(get_db_connection),
) -> DeleteResponse:
    try:
        await delete_goal(connection, owner_id, goal_id)
    except LookupError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except DataAccessError as exc:
        raise HTTPException(status_code=400, detail=exc.message) from exc

    return DeleteResponse()
