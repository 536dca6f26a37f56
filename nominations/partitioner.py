"""Split the nominations of one flight into ordered groups.

The partition is a plain mapping of bucket ids to ordered lists. ``unassigned``
always comes first and holds both nominations without a slot and nominations
already committed to another flight; the latter are tagged ``editable=False`` and
can never be moved. Group buckets are ``group-1`` .. ``group-n``.

The module level functions are pure; :class:`FlightGroupPartitioner` wraps them
with the fetch, the "manually edited" bookkeeping and the batched commit.
"""
from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Iterable

from .records import MAX_GROUPS, FieldUpdate, NominationRecord, RepositoryResult
from .repository import NominationRepository
from .signals import flight_groups_changed

logger = logging.getLogger(__name__)

__all__ = [
    "UNASSIGNED",
    "MoveRejected",
    "PlacedNomination",
    "group_bucket_id",
    "group_number_from",
    "group_label",
    "partition",
    "move",
    "resize",
    "build_updates",
    "PartitionCommitOutcome",
    "FlightGroupPartitioner",
]

UNASSIGNED = "unassigned"
MIN_GROUPS = 1

Buckets = dict[str, list["PlacedNomination"]]


class MoveRejected(ValueError):
    """Raised when a drag cannot be applied to the partition."""


def group_bucket_id(number: int) -> str:
    return f"group-{number}"


def group_number_from(bucket_id: str) -> int | None:
    prefix, _, number = bucket_id.partition("-")
    if prefix != "group" or not number.isdigit():
        return None
    return int(number)


def group_label(number: int) -> str:
    return f"Group {number}"


def _bounded(number_of_groups: int) -> int:
    return max(MIN_GROUPS, min(MAX_GROUPS, number_of_groups))


@dataclass(frozen=True)
class PlacedNomination:
    """A nomination as it sits in the editor, with its working slot fields."""

    nomination: NominationRecord
    editable: bool
    flight_number: int | None = None
    group_number: int | None = None
    group_name: str = ""

    @property
    def id(self) -> int:
        return self.nomination.id

    def detached(self) -> "PlacedNomination":
        return replace(self, flight_number=None, group_number=None, group_name="")

    def assigned(self, flight_number: int, group_number: int) -> "PlacedNomination":
        return replace(
            self,
            flight_number=flight_number,
            group_number=group_number,
            group_name=group_label(group_number),
        )

    def to_dict(self) -> dict[str, object]:
        return {
            "nomination_id": self.id,
            "athlete_id": self.nomination.athlete_id,
            "athlete_name": self.nomination.athlete_name,
            "weight_category": self.nomination.weight_category,
            "age_category": self.nomination.age_category,
            "editable": self.editable,
            "flight_number": self.flight_number,
            "group_number": self.group_number,
            "group_name": self.group_name,
        }


def _empty_buckets(number_of_groups: int) -> Buckets:
    buckets: Buckets = {UNASSIGNED: []}
    for number in range(1, number_of_groups + 1):
        buckets[group_bucket_id(number)] = []
    return buckets


def partition(
    nominations: Iterable[NominationRecord],
    flight_number: int,
    number_of_groups: int = 1,
) -> tuple[Buckets, int]:
    """Build the initial partition for ``flight_number``.

    Returns the buckets and the number of groups actually materialised, which
    grows past ``number_of_groups`` when committed nominations already use a
    higher group number (never past ``MAX_GROUPS``).
    """

    nominations = list(nominations)
    used = [
        n.group_number
        for n in nominations
        if n.flight_number == flight_number and n.group_number and n.group_number <= MAX_GROUPS
    ]
    count = _bounded(max([number_of_groups, *used]))
    buckets = _empty_buckets(count)

    for nomination in nominations:
        if nomination.flight_number is not None and nomination.flight_number != flight_number:
            buckets[UNASSIGNED].append(
                PlacedNomination(
                    nomination=nomination,
                    editable=False,
                    flight_number=nomination.flight_number,
                    group_number=nomination.group_number,
                    group_name=nomination.group_name,
                )
            )
            continue
        placed = PlacedNomination(nomination=nomination, editable=True)
        number = nomination.group_number
        if nomination.flight_number == flight_number and number and number <= count:
            buckets[group_bucket_id(number)].append(placed.assigned(flight_number, number))
        else:
            buckets[UNASSIGNED].append(placed)
    return buckets, count


def move(
    buckets: Buckets,
    nomination_id: int,
    source: str,
    destination: str,
    index: int,
    *,
    flight_number: int,
) -> Buckets:
    """Return new buckets with one nomination moved to ``destination[index]``."""

    if source not in buckets:
        raise MoveRejected(f"Unknown source bucket {source!r}")
    if destination not in buckets:
        raise MoveRejected(f"Unknown destination bucket {destination!r}")
    position = next((i for i, entry in enumerate(buckets[source]) if entry.id == nomination_id), None)
    if position is None:
        raise MoveRejected(f"Nomination {nomination_id} is not in {source!r}")
    entry = buckets[source][position]
    if not entry.editable:
        raise MoveRejected(f"Nomination {nomination_id} belongs to flight {entry.flight_number}")

    updated = {bucket_id: list(entries) for bucket_id, entries in buckets.items()}
    del updated[source][position]
    if destination == UNASSIGNED:
        entry = entry.detached()
    else:
        entry = entry.assigned(flight_number, group_number_from(destination))
    target = updated[destination]
    target.insert(max(0, min(index, len(target))), entry)
    return updated


def resize(buckets: Buckets, number_of_groups: int) -> Buckets:
    """Grow or shrink the group buckets, detaching whatever sat in removed groups."""

    number_of_groups = _bounded(number_of_groups)
    updated: Buckets = {UNASSIGNED: list(buckets.get(UNASSIGNED, []))}
    for number in range(1, number_of_groups + 1):
        bucket_id = group_bucket_id(number)
        updated[bucket_id] = list(buckets.get(bucket_id, []))
    for bucket_id, entries in buckets.items():
        if bucket_id not in updated:
            updated[UNASSIGNED].extend(entry.detached() for entry in entries)
    return updated


def build_updates(buckets: Buckets, group_start_time: datetime | None = None) -> list[FieldUpdate]:
    """Field updates for every editable nomination; other flights are left out."""

    updates: list[FieldUpdate] = []
    for bucket_id, entries in buckets.items():
        for entry in entries:
            if not entry.editable:
                continue
            if bucket_id == UNASSIGNED:
                fields = {
                    "flight_number": None,
                    "group_number": None,
                    "group_name": "",
                    "group_start_time": None,
                }
            else:
                fields = {
                    "flight_number": entry.flight_number,
                    "group_number": entry.group_number,
                    "group_name": entry.group_name,
                    "group_start_time": group_start_time,
                }
            updates.append(FieldUpdate(nomination_id=entry.id, updates=fields))
    return updates


@dataclass
class PartitionCommitOutcome:
    success: bool
    updated: list[int] = field(default_factory=list)
    messages: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, object]:
        return {"success": self.success, "updated": list(self.updated), "messages": list(self.messages)}


class FlightGroupPartitioner:
    """Editing session for the groups of one flight of one competition."""

    def __init__(
        self,
        repository: NominationRepository,
        competition_id: int,
        flight_number: int,
        *,
        number_of_groups: int = 1,
        group_start_time: datetime | None = None,
    ) -> None:
        self.repository = repository
        self.competition_id = competition_id
        self.flight_number = flight_number
        self.number_of_groups = _bounded(number_of_groups)
        self.group_start_time = group_start_time
        self.weight_categories: list[str] = []
        self.buckets: Buckets = _empty_buckets(self.number_of_groups)
        self.manually_edited = False
        self._lock = threading.Lock()

    @property
    def busy(self) -> bool:
        return self._lock.locked()

    # ---------- loading ----------

    def load(self, weight_categories: Iterable[str] | None = None) -> RepositoryResult[list[NominationRecord]]:
        """Fetch the nominations for the selected weight categories and rebuild."""

        if weight_categories is not None:
            self.weight_categories = list(weight_categories)
        result = self.repository.fetch_by_competition_and_weight_categories(
            self.competition_id, self.weight_categories
        )
        if not result.success:
            logger.warning(
                "could not load nominations for competition %s: %s", self.competition_id, result.error
            )
            return result
        self.refresh(result.data or [])
        return result

    def select_weight_categories(self, weight_categories: Iterable[str]) -> RepositoryResult[list[NominationRecord]]:
        """Change the editing scope; manual edits are dropped and the partition rebuilt."""

        self.manually_edited = False
        return self.load(weight_categories)

    def refresh(self, nominations: Iterable[NominationRecord]) -> bool:
        """Rebuild from upstream data unless the operator already moved things around."""

        if self.manually_edited:
            return False
        self.buckets, self.number_of_groups = partition(nominations, self.flight_number, self.number_of_groups)
        return True

    # ---------- editing ----------

    def bucket_of(self, nomination_id: int) -> str | None:
        for bucket_id, entries in self.buckets.items():
            if any(entry.id == nomination_id for entry in entries):
                return bucket_id
        return None

    def move(self, nomination_id: int, source: str, destination: str, index: int) -> bool:
        if self.busy:
            logger.info("move of nomination %s ignored while a commit is outstanding", nomination_id)
            return False
        try:
            self.buckets = move(
                self.buckets,
                nomination_id,
                source,
                destination,
                index,
                flight_number=self.flight_number,
            )
        except MoveRejected as exc:
            logger.info("move rejected: %s", exc)
            return False
        self.manually_edited = True
        return True

    def set_number_of_groups(self, number_of_groups: int) -> int:
        if self.busy:
            return self.number_of_groups
        self.number_of_groups = _bounded(number_of_groups)
        self.buckets = resize(self.buckets, self.number_of_groups)
        self.manually_edited = True
        return self.number_of_groups

    def set_group_start_time(self, group_start_time: datetime | None) -> None:
        self.group_start_time = group_start_time

    # ---------- commit ----------

    def pending_updates(self) -> list[FieldUpdate]:
        return build_updates(self.buckets, self.group_start_time)

    def commit(self) -> PartitionCommitOutcome:
        """Send the whole partition as one batched field update."""

        if not self._lock.acquire(blocking=False):
            return PartitionCommitOutcome(success=False, messages=["A commit is already in progress."])
        try:
            updates = self.pending_updates()
            if not updates:
                return PartitionCommitOutcome(success=True, messages=["Nothing to update."])
            result = self.repository.batch_update_fields(updates)
            if not result.success:
                logger.warning(
                    "flight %s of competition %s could not be saved: %s",
                    self.flight_number,
                    self.competition_id,
                    result.error,
                )
                return PartitionCommitOutcome(
                    success=False, messages=[result.error or "Failed to update nominations"]
                )
            self._absorb(result.data or [])
            updated = [update.nomination_id for update in updates]
            flight_groups_changed.send(
                sender=self.__class__,
                competition_id=self.competition_id,
                flight_number=self.flight_number,
                updated=updated,
            )
            logger.info(
                "saved %d nominations for flight %s of competition %s",
                len(updated),
                self.flight_number,
                self.competition_id,
            )
            return PartitionCommitOutcome(success=True, updated=updated, messages=["Flight saved."])
        finally:
            self._lock.release()

    def _absorb(self, records: list[NominationRecord]) -> None:
        by_id = {record.id: record for record in records}
        self.buckets = {
            bucket_id: [
                replace(entry, nomination=by_id[entry.id]) if entry.id in by_id else entry
                for entry in entries
            ]
            for bucket_id, entries in self.buckets.items()
        }
        self.manually_edited = False

    def to_dict(self) -> dict[str, object]:
        return {
            "competition_id": self.competition_id,
            "flight_number": self.flight_number,
            "number_of_groups": self.number_of_groups,
            "group_start_time": self.group_start_time.isoformat() if self.group_start_time else None,
            "weight_categories": list(self.weight_categories),
            "manually_edited": self.manually_edited,
            "buckets": [
                {
                    "id": bucket_id,
                    "name": group_label(group_number_from(bucket_id)) if bucket_id != UNASSIGNED else "Unassigned",
                    "nominations": [entry.to_dict() for entry in entries],
                }
                for bucket_id, entries in self.buckets.items()
            ],
        }
