"""Plain records exchanged between the repositories and the nomination editors.

Both the ORM repository and the HTTP client hand these out, so the state store,
the reconciliation engine and the flight partitioner never see model instances.
"""
from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any, Generic, TypeVar

from django.utils.dateparse import parse_datetime

T = TypeVar("T")

MAX_GROUPS = 3

__all__ = [
    "MAX_GROUPS",
    "AthleteRecord",
    "NominationRecord",
    "NominationPayload",
    "FieldUpdate",
    "RepositoryResult",
]


def _parse_dt(value: Any) -> datetime | None:
    if value in (None, ""):
        return None
    if isinstance(value, datetime):
        return value
    return parse_datetime(str(value))


def _format_dt(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


@dataclass(frozen=True)
class AthleteRecord:
    """An athlete as seen through the athlete directory."""

    id: int
    first_name: str
    last_name: str
    gender: str
    weight_category: str

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "AthleteRecord":
        return cls(
            id=data["id"],
            first_name=data.get("first_name") or "",
            last_name=data.get("last_name") or "",
            gender=data.get("gender") or "",
            weight_category=data.get("weight_category") or "",
        )

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class NominationRecord:
    """A committed nomination."""

    id: int
    athlete_id: int
    competition_id: int
    weight_category: str
    age_category: str
    flight_number: int | None = None
    group_number: int | None = None
    group_name: str = ""
    group_start_time: datetime | None = None
    athlete_name: str = ""
    athlete_gender: str | None = None
    nominated_by_id: int | None = None
    nominated_at: datetime | None = None

    @property
    def is_scheduled(self) -> bool:
        return self.flight_number is not None and self.group_number is not None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "NominationRecord":
        return cls(
            id=data["id"],
            athlete_id=data["athlete_id"],
            competition_id=data["competition_id"],
            weight_category=data.get("weight_category") or "",
            age_category=data.get("age_category") or "",
            flight_number=data.get("flight_number"),
            group_number=data.get("group_number"),
            group_name=data.get("group_name") or "",
            group_start_time=_parse_dt(data.get("group_start_time")),
            athlete_name=data.get("athlete_name") or "",
            athlete_gender=data.get("athlete_gender"),
            nominated_by_id=data.get("nominated_by_id"),
            nominated_at=_parse_dt(data.get("nominated_at")),
        )

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["group_start_time"] = _format_dt(self.group_start_time)
        data["nominated_at"] = _format_dt(self.nominated_at)
        return data


@dataclass(frozen=True)
class NominationPayload:
    """Creation request for a single nomination."""

    competition_id: int
    athlete_id: int
    weight_category: str
    age_category: str
    nominated_at: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["nominated_at"] = _format_dt(self.nominated_at)
        return data


@dataclass(frozen=True)
class FieldUpdate:
    """Flight/group fields to write onto one nomination."""

    nomination_id: int
    updates: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        updates = {
            key: _format_dt(value) if isinstance(value, datetime) else value
            for key, value in self.updates.items()
        }
        return {"nomination_id": self.nomination_id, "updates": updates}


@dataclass(frozen=True)
class RepositoryResult(Generic[T]):
    """Success/failure envelope returned by every repository call."""

    success: bool
    data: T | None = None
    error: str = ""

    @classmethod
    def ok(cls, data: T | None = None) -> "RepositoryResult[T]":
        return cls(success=True, data=data)

    @classmethod
    def failure(cls, error: str) -> "RepositoryResult[T]":
        return cls(success=False, error=error)
