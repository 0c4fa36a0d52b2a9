"""
Boundary models for health records and goals.

Everything entering the analytics engine passes through these models first:
rows from the store and request bodies from the API are validated here so
the engine itself only ever sees well-scoped, well-typed input.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from constants import DATA_TYPES


class InputContractError(ValueError):
    """Input that must never reach the engine (unscoped or mixed-user data)."""


DataType = Enum("DataType", {t.upper(): t for t in DATA_TYPES}, type=str)


class GoalStatus(str, Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
    OTHER = "other"


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class Record(BaseModel):
    """One timestamped observation of a single data type."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    user_id: str = Field(alias="userId", min_length=1)
    goal_id: Optional[str] = Field(default=None, alias="goalId")
    data_type: DataType = Field(alias="dataType")
    timestamp: datetime
    payload: Any = None

    @field_validator("user_id", "goal_id", mode="before")
    @classmethod
    def _stringify_ids(cls, v):
        return None if v is None else str(v)

    @field_validator("timestamp")
    @classmethod
    def _utc_timestamp(cls, v: datetime) -> datetime:
        return _as_utc(v)

    @property
    def type_name(self) -> str:
        return self.data_type.value

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "Record":
        """Build a Record from a ``health_data`` row (snake_case columns)."""
        return cls(
            user_id=row.get("user_id"),
            goal_id=row.get("goal_id"),
            data_type=row.get("data_type"),
            timestamp=row.get("date") or row.get("created_at"),
            payload=row.get("data"),
        )


class Goal(BaseModel):
    """A user-defined tracked target."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: str
    user_id: str = Field(alias="userId", min_length=1)
    title: str = ""
    category: str = "general"
    target_value: Optional[float] = Field(default=None, alias="targetValue")
    target_unit: Optional[str] = Field(default=None, alias="targetUnit")
    start_date: datetime = Field(alias="startDate")
    end_date: Optional[datetime] = Field(default=None, alias="endDate")
    status: GoalStatus = GoalStatus.ACTIVE

    @field_validator("id", "user_id", mode="before")
    @classmethod
    def _stringify_ids(cls, v):
        return None if v is None else str(v)

    @field_validator("status", mode="before")
    @classmethod
    def _coerce_status(cls, v):
        if v in ("active", "completed"):
            return v
        if isinstance(v, GoalStatus):
            return v
        return "other"

    @field_validator("start_date", "end_date")
    @classmethod
    def _utc_dates(cls, v: Optional[datetime]) -> Optional[datetime]:
        return None if v is None else _as_utc(v)

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "Goal":
        """Build a Goal from a ``health_goals`` row."""
        return cls(
            id=row.get("id"),
            user_id=row.get("user_id"),
            title=row.get("title") or "",
            category=row.get("category") or "general",
            target_value=row.get("target_value"),
            target_unit=row.get("target_unit"),
            start_date=row.get("start_date") or row.get("created_at"),
            end_date=row.get("end_date"),
            status=row.get("status") or "active",
        )

    def describe(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "category": self.category,
            "targetValue": self.target_value,
            "targetUnit": self.target_unit,
        }


def parse_records(items: Iterable[Any], user_id: Optional[str] = None) -> List[Record]:
    """Validate raw records and enforce a single user scope.

    Raises InputContractError when ``user_id`` is missing or a record belongs
    to another user; pydantic's ValidationError propagates for malformed
    fields (bad timestamp, unknown data type).
    """
    records = [i if isinstance(i, Record) else Record.model_validate(i) for i in items]
    scope = user_id or (records[0].user_id if records else None)
    if records and not scope:
        raise InputContractError("userId is required")
    foreign = sorted({r.user_id for r in records if r.user_id != scope})
    if foreign:
        raise InputContractError(
            f"records for {len(foreign)} other user(s) found in a request scoped to {scope}"
        )
    return records


def parse_goal(item: Any, user_id: Optional[str] = None) -> Optional[Goal]:
    if item is None:
        return None
    goal = item if isinstance(item, Goal) else Goal.model_validate(item)
    if user_id and goal.user_id != user_id:
        raise InputContractError(f"goal {goal.id} does not belong to user {user_id}")
    return goal
