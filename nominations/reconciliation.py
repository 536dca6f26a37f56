"""Push the pending edits of a :class:`NominationStateStore` to the repository."""
from __future__ import annotations

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable

from django.conf import settings
from django.core.exceptions import ValidationError
from django.utils import timezone

from .records import NominationPayload, NominationRecord, RepositoryResult
from .repository import NominationRepository
from .signals import nominations_changed
from .state import NominationStateStore

logger = logging.getLogger(__name__)

__all__ = ["CommitOutcome", "ReconciliationEngine", "BUSY_MESSAGE"]

BUSY_MESSAGE = "A save is already in progress."
SAVED_MESSAGE = "Changes saved."
MISSING_WEIGHT_MESSAGE = "Choose a weight category before saving."
MISSING_AGE_MESSAGE = "Choose an age category before saving."


@dataclass
class CommitOutcome:
    """What a save did, plus the messages to show the operator."""

    success: bool
    created: list[NominationRecord] = field(default_factory=list)
    deleted: list[int] = field(default_factory=list)
    failed_deletions: dict[int, str] = field(default_factory=dict)
    messages: list[str] = field(default_factory=list)
    noop: bool = False

    @property
    def partial(self) -> bool:
        """True when some calls went through and others did not."""

        return not self.success and bool(self.created or self.deleted)

    def to_dict(self) -> dict[str, object]:
        return {
            "success": self.success,
            "partial": self.partial,
            "noop": self.noop,
            "created": [nomination.to_dict() for nomination in self.created],
            "deleted": list(self.deleted),
            "failed_deletions": {str(key): value for key, value in self.failed_deletions.items()},
            "messages": list(self.messages),
        }


class ReconciliationEngine:
    """Commit every pending nomination and pending removal in one save.

    Creations go out as one batch request. Removals are only issued once that
    batch has succeeded, each as its own call, fanned out over a thread pool when
    the repository allows concurrent calls. A failed batch leaves the store
    untouched. Removals that fail stay ``pendingUnnominate``; removals that
    succeeded are kept, so a partial save is reported rather than rolled back.
    """

    def __init__(
        self,
        repository: NominationRepository,
        store: NominationStateStore,
        *,
        max_workers: int | None = None,
        clock: Callable[[], datetime] = timezone.now,
    ) -> None:
        self.repository = repository
        self.store = store
        self.max_workers = max_workers if max_workers is not None else settings.NOMINATIONS_DELETE_WORKERS
        self.clock = clock
        self._lock = threading.Lock()

    @property
    def busy(self) -> bool:
        return self._lock.locked()

    def build_creations(self) -> list[NominationPayload]:
        """Return the creation batch, raising ``ValidationError`` for incomplete entries."""

        errors: dict[str, list[str]] = {}
        payloads: list[NominationPayload] = []
        now = self.clock()
        for state in self.store.pending():
            missing = []
            if not state.weight_category:
                missing.append(MISSING_WEIGHT_MESSAGE)
            if not state.age_category:
                missing.append(MISSING_AGE_MESSAGE)
            if missing:
                errors[str(state.athlete_id)] = missing
                continue
            payloads.append(
                NominationPayload(
                    competition_id=self.store.competition_id,
                    athlete_id=state.athlete_id,
                    weight_category=state.weight_category,
                    age_category=state.age_category,
                    nominated_at=now,
                )
            )
        if errors:
            raise ValidationError(errors)
        return payloads

    def build_deletions(self) -> dict[int, int]:
        """Map committed nomination ids to the athletes marked for removal."""

        deletions: dict[int, int] = {}
        for state in self.store.pending_removals():
            nomination = self.store.committed_for(state.athlete_id)
            if nomination is None:
                logger.warning("no committed nomination found for athlete %s", state.athlete_id)
                continue
            deletions[nomination.id] = state.athlete_id
        return deletions

    def commit(self) -> CommitOutcome:
        if not self._lock.acquire(blocking=False):
            return CommitOutcome(success=False, messages=[BUSY_MESSAGE])
        try:
            creations = self.build_creations()
            deletions = self.build_deletions()
            if not creations and not deletions:
                return CommitOutcome(success=True, noop=True)
            return self._commit(creations, deletions)
        finally:
            self._lock.release()

    def _commit(self, creations: list[NominationPayload], deletions: dict[int, int]) -> CommitOutcome:
        created: list[NominationRecord] = []
        if creations:
            result = self.repository.batch_create(creations)
            if not result.success:
                logger.warning(
                    "batch create of %d nominations for competition %s failed: %s",
                    len(creations),
                    self.store.competition_id,
                    result.error,
                )
                return CommitOutcome(success=False, messages=[result.error or "Failed to create nominations"])
            created = list(result.data or [])

        results = self._delete_all(list(deletions))
        deleted = [nomination_id for nomination_id, res in results.items() if res.success]
        failed = {
            nomination_id: res.error or "Failed to delete nomination"
            for nomination_id, res in results.items()
            if not res.success
        }

        for nomination in created:
            self.store.mark_nominated(nomination)
        for nomination_id in deleted:
            self.store.mark_removed(nomination_id)

        if created or deleted:
            nominations_changed.send(
                sender=self.__class__,
                competition_id=self.store.competition_id,
                created=created,
                deleted=deleted,
            )

        if failed:
            logger.warning(
                "%d of %d nomination removals failed for competition %s",
                len(failed),
                len(deletions),
                self.store.competition_id,
            )
            return CommitOutcome(
                success=False,
                created=created,
                deleted=deleted,
                failed_deletions=failed,
                messages=list(failed.values()),
            )
        logger.info(
            "saved nominations for competition %s: %d created, %d removed",
            self.store.competition_id,
            len(created),
            len(deleted),
        )
        return CommitOutcome(success=True, created=created, deleted=deleted, messages=[SAVED_MESSAGE])

    def _delete_all(self, nomination_ids: list[int]) -> dict[int, RepositoryResult]:
        if not nomination_ids:
            return {}
        concurrent = getattr(self.repository, "supports_concurrent_calls", False)
        workers = min(self.max_workers, len(nomination_ids)) if concurrent else 1
        if workers <= 1:
            return {nomination_id: self._delete_one(nomination_id) for nomination_id in nomination_ids}
        with ThreadPoolExecutor(max_workers=workers) as ex:
            futures = {nomination_id: ex.submit(self._delete_one, nomination_id) for nomination_id in nomination_ids}
            return {nomination_id: fut.result() for nomination_id, fut in futures.items()}

    def _delete_one(self, nomination_id: int) -> RepositoryResult:
        try:
            return self.repository.delete(nomination_id)
        except Exception as exc:
            logger.warning("delete of nomination %s raised: %s", nomination_id, exc)
            return RepositoryResult.failure(f"Failed to delete nomination: {exc}")

    def unnominate_now(self, athlete_id: int) -> CommitOutcome:
        """Delete an athlete's committed nomination straight away."""

        nomination = self.store.committed_for(athlete_id)
        if nomination is None:
            return CommitOutcome(success=False, messages=["Athlete is not nominated."])
        if not self._lock.acquire(blocking=False):
            return CommitOutcome(success=False, messages=[BUSY_MESSAGE])
        try:
            result = self._delete_one(nomination.id)
            if not result.success:
                return CommitOutcome(
                    success=False,
                    failed_deletions={nomination.id: result.error},
                    messages=[result.error or "Failed to delete nomination"],
                )
            self.store.mark_removed(nomination.id)
            nominations_changed.send(
                sender=self.__class__,
                competition_id=self.store.competition_id,
                created=[],
                deleted=[nomination.id],
            )
            return CommitOutcome(success=True, deleted=[nomination.id], messages=["Athlete unnominated."])
        finally:
            self._lock.release()
