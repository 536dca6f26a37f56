"""Nomination repository interface and its Django ORM implementation."""
from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping, Protocol

from django.db import IntegrityError, transaction

from . import models
from .records import AthleteRecord, FieldUpdate, NominationPayload, NominationRecord, RepositoryResult
from .serializers import NominationBatchCreateSerializer, NominationBatchUpdateSerializer

logger = logging.getLogger(__name__)

__all__ = [
    "NominationRepository",
    "AthleteDirectory",
    "OrmNominationRepository",
    "OrmAthleteDirectory",
    "to_record",
    "to_athlete_record",
    "create_nominations",
    "update_nomination_fields",
    "first_error",
]

DUPLICATE_MESSAGE = "Athlete is already nominated for this competition"

# Keys whose messages are shown without a field prefix.
UNPREFIXED_ERROR_KEYS = ("non_field_errors", "__all__", "nominations")


class NominationRepository(Protocol):
    """Operations the nomination editors need from the nomination store."""

    supports_concurrent_calls: bool

    def fetch_by_competition(self, competition_id: int) -> RepositoryResult[list[NominationRecord]]: ...

    def fetch_by_competition_and_weight_categories(
        self, competition_id: int, weight_categories: Iterable[str]
    ) -> RepositoryResult[list[NominationRecord]]: ...

    def create(self, payload: NominationPayload) -> RepositoryResult[NominationRecord]: ...

    def batch_create(self, payloads: list[NominationPayload]) -> RepositoryResult[list[NominationRecord]]: ...

    def delete(self, nomination_id: int) -> RepositoryResult[None]: ...

    def batch_update_fields(self, updates: list[FieldUpdate]) -> RepositoryResult[list[NominationRecord]]: ...


class AthleteDirectory(Protocol):
    def fetch_by_federation(self, federation_id: int) -> RepositoryResult[list[AthleteRecord]]: ...


def to_record(nomination: models.Nomination) -> NominationRecord:
    athlete = nomination.athlete
    return NominationRecord(
        id=nomination.pk,
        athlete_id=nomination.athlete_id,
        competition_id=nomination.competition_id,
        weight_category=nomination.weight_category,
        age_category=nomination.age_category,
        flight_number=nomination.flight_number,
        group_number=nomination.group_number,
        group_name=nomination.group_name,
        group_start_time=nomination.group_start_time,
        athlete_name=str(athlete),
        athlete_gender=athlete.gender,
        nominated_by_id=nomination.nominated_by_id,
        nominated_at=nomination.nominated_at,
    )


def to_athlete_record(athlete: models.Athlete) -> AthleteRecord:
    return AthleteRecord(
        id=athlete.pk,
        first_name=athlete.first_name,
        last_name=athlete.last_name,
        gender=athlete.gender,
        weight_category=athlete.weight_category,
    )


def first_error(errors: Any) -> str:
    """Flatten DRF-style error structures into one readable message."""

    if isinstance(errors, Mapping):
        for key, value in errors.items():
            message = first_error(value)
            if not message:
                continue
            leaf = isinstance(value, (list, tuple)) and all(isinstance(item, str) for item in value)
            if key in UNPREFIXED_ERROR_KEYS or not leaf:
                return message
            return f"{key}: {message}"
        return ""
    if isinstance(errors, (list, tuple)):
        for item in errors:
            message = first_error(item)
            if message:
                return message
        return ""
    return str(errors) if errors else ""


def _nominations():
    return models.Nomination.objects.select_related("athlete")


def create_nominations(items: list[Mapping[str, Any]], user=None) -> RepositoryResult[list[NominationRecord]]:
    """Validate and create nominations in one transaction."""

    serializer = NominationBatchCreateSerializer(data={"nominations": list(items)})
    if not serializer.is_valid():
        return RepositoryResult.failure(first_error(serializer.errors) or "Invalid nominations")
    nominated_by = user if getattr(user, "is_authenticated", False) else None
    try:
        with transaction.atomic():
            created = [
                models.Nomination.objects.create(
                    athlete=attrs["athlete"],
                    competition=attrs["competition"],
                    weight_category=attrs["weight_category"],
                    age_category=attrs["age_category"],
                    nominated_at=attrs["nominated_at"],
                    nominated_by=nominated_by,
                )
                for attrs in serializer.validated_data["nominations"]
            ]
    except IntegrityError as exc:
        logger.warning("nomination create rejected by database: %s", exc)
        return RepositoryResult.failure(DUPLICATE_MESSAGE)
    return RepositoryResult.ok([to_record(nomination) for nomination in created])


def update_nomination_fields(items: list[Mapping[str, Any]]) -> RepositoryResult[list[NominationRecord]]:
    """Apply flight/group field updates to several nominations atomically."""

    serializer = NominationBatchUpdateSerializer(data={"nominations": list(items)})
    if not serializer.is_valid():
        return RepositoryResult.failure(first_error(serializer.errors) or "Invalid nomination updates")
    rows = serializer.validated_data["nominations"]
    ids = [row["nomination_id"] for row in rows]
    with transaction.atomic():
        existing = {n.pk: n for n in _nominations().select_for_update().filter(pk__in=ids)}
        missing = [nomination_id for nomination_id in ids if nomination_id not in existing]
        if missing:
            return RepositoryResult.failure(f"Nomination not found: {missing[0]}")
        for row in rows:
            nomination = existing[row["nomination_id"]]
            updates = row["updates"]
            for name, value in updates.items():
                setattr(nomination, name, "" if name == "group_name" and value is None else value)
            nomination.save(update_fields=[*updates.keys(), "updated_at"])
    return RepositoryResult.ok([to_record(existing[nomination_id]) for nomination_id in ids])


class OrmNominationRepository:
    """Repository backed directly by the database."""

    # Each thread would open its own connection; keep calls on the caller's thread.
    supports_concurrent_calls = False

    def __init__(self, user=None) -> None:
        self.user = user

    def fetch_by_competition(self, competition_id: int) -> RepositoryResult[list[NominationRecord]]:
        if not models.Competition.objects.filter(pk=competition_id).exists():
            return RepositoryResult.failure("Competition not found")
        nominations = _nominations().filter(competition_id=competition_id)
        return RepositoryResult.ok([to_record(nomination) for nomination in nominations])

    def fetch_by_competition_and_weight_categories(
        self, competition_id: int, weight_categories: Iterable[str]
    ) -> RepositoryResult[list[NominationRecord]]:
        if not models.Competition.objects.filter(pk=competition_id).exists():
            return RepositoryResult.failure("Competition not found")
        nominations = _nominations().filter(competition_id=competition_id)
        categories = [code for code in weight_categories if code]
        if categories:
            nominations = nominations.filter(weight_category__in=categories)
        return RepositoryResult.ok([to_record(nomination) for nomination in nominations])

    def create(self, payload: NominationPayload) -> RepositoryResult[NominationRecord]:
        result = create_nominations([payload.to_dict()], user=self.user)
        if not result.success:
            return RepositoryResult.failure(result.error)
        return RepositoryResult.ok(result.data[0])

    def batch_create(self, payloads: list[NominationPayload]) -> RepositoryResult[list[NominationRecord]]:
        return create_nominations([payload.to_dict() for payload in payloads], user=self.user)

    def delete(self, nomination_id: int) -> RepositoryResult[None]:
        deleted, _ = models.Nomination.objects.filter(pk=nomination_id).delete()
        if not deleted:
            return RepositoryResult.failure("Nomination not found")
        return RepositoryResult.ok()

    def batch_update_fields(self, updates: list[FieldUpdate]) -> RepositoryResult[list[NominationRecord]]:
        return update_nomination_fields([update.to_dict() for update in updates])


class OrmAthleteDirectory:
    def fetch_by_federation(self, federation_id: int) -> RepositoryResult[list[AthleteRecord]]:
        if not models.Federation.objects.filter(pk=federation_id).exists():
            return RepositoryResult.failure("Federation not found")
        athletes = models.Athlete.objects.filter(federation_id=federation_id)
        return RepositoryResult.ok([to_athlete_record(athlete) for athlete in athletes])
