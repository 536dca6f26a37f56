"""Local, optimistic nomination status for every athlete in an editing session."""
from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import Iterable

from .records import AthleteRecord, NominationRecord

logger = logging.getLogger(__name__)

__all__ = ["NominationStatus", "AthleteNominationState", "NominationStateStore"]


class NominationStatus(str, Enum):
    NONE = "none"
    PENDING = "pending"
    NOMINATED = "nominated"
    PENDING_UNNOMINATE = "pendingUnnominate"


TOGGLE_TRANSITIONS: dict[NominationStatus, NominationStatus] = {
    NominationStatus.NONE: NominationStatus.PENDING,
    NominationStatus.PENDING: NominationStatus.NONE,
    NominationStatus.NOMINATED: NominationStatus.PENDING_UNNOMINATE,
    NominationStatus.PENDING_UNNOMINATE: NominationStatus.NOMINATED,
}


@dataclass(frozen=True)
class AthleteNominationState:
    """Status plus the working categories for one athlete."""

    athlete_id: int
    status: NominationStatus
    weight_category: str | None
    age_category: str | None

    @property
    def is_dirty(self) -> bool:
        return self.status in (NominationStatus.PENDING, NominationStatus.PENDING_UNNOMINATE)

    def to_dict(self) -> dict[str, object]:
        return {
            "athlete_id": self.athlete_id,
            "status": self.status.value,
            "weight_category": self.weight_category,
            "age_category": self.age_category,
        }


class NominationStateStore:
    """Holds one :class:`AthleteNominationState` per athlete of a federation.

    The store is seeded from the athlete directory joined with the committed
    nominations of one competition and is only changed through ``toggle``, the
    category setters and the ``mark_*`` hooks the reconciliation engine uses to
    fold server results back in. It never talks to the network.
    """

    def __init__(
        self,
        competition_id: int,
        athletes: Iterable[AthleteRecord] = (),
        committed: Iterable[NominationRecord] = (),
    ) -> None:
        self.competition_id = competition_id
        self._athletes: dict[int, AthleteRecord] = {}
        self._states: dict[int, AthleteNominationState] = {}
        self.committed: list[NominationRecord] = []
        self.rebuild(athletes, committed)

    def rebuild(self, athletes: Iterable[AthleteRecord], committed: Iterable[NominationRecord]) -> None:
        """Discard every local marker and derive the states again."""

        self._athletes = {athlete.id: athlete for athlete in athletes}
        self.committed = [
            nomination for nomination in committed if nomination.competition_id == self.competition_id
        ]
        by_athlete = {nomination.athlete_id: nomination for nomination in self.committed}
        self._states = {}
        for athlete_id, athlete in self._athletes.items():
            nomination = by_athlete.get(athlete_id)
            if nomination:
                self._states[athlete_id] = AthleteNominationState(
                    athlete_id=athlete_id,
                    status=NominationStatus.NOMINATED,
                    weight_category=nomination.weight_category,
                    age_category=nomination.age_category,
                )
            else:
                self._states[athlete_id] = self._default_state(athlete)

    @staticmethod
    def _default_state(athlete: AthleteRecord) -> AthleteNominationState:
        return AthleteNominationState(
            athlete_id=athlete.id,
            status=NominationStatus.NONE,
            weight_category=athlete.weight_category or None,
            age_category=None,
        )

    # ---------- queries ----------

    def __contains__(self, athlete_id: object) -> bool:
        return athlete_id in self._states

    def __len__(self) -> int:
        return len(self._states)

    def get(self, athlete_id: int) -> AthleteNominationState | None:
        return self._states.get(athlete_id)

    def athlete(self, athlete_id: int) -> AthleteRecord | None:
        return self._athletes.get(athlete_id)

    def states(self) -> list[AthleteNominationState]:
        return list(self._states.values())

    def with_status(self, status: NominationStatus) -> list[AthleteNominationState]:
        return [state for state in self._states.values() if state.status == status]

    def pending(self) -> list[AthleteNominationState]:
        return self.with_status(NominationStatus.PENDING)

    def pending_removals(self) -> list[AthleteNominationState]:
        return self.with_status(NominationStatus.PENDING_UNNOMINATE)

    @property
    def has_pending_changes(self) -> bool:
        return any(state.is_dirty for state in self._states.values())

    def committed_for(self, athlete_id: int) -> NominationRecord | None:
        for nomination in self.committed:
            if nomination.athlete_id == athlete_id:
                return nomination
        return None

    # ---------- transitions ----------

    def toggle(self, athlete_id: int) -> NominationStatus | None:
        """Advance an athlete along the toggle cycle and return the new status."""

        state = self._states.get(athlete_id)
        if state is None:
            logger.debug("toggle ignored for unknown athlete %s", athlete_id)
            return None
        target = TOGGLE_TRANSITIONS[state.status]
        if target == NominationStatus.NONE:
            self._states[athlete_id] = self._default_state(self._athletes[athlete_id])
        else:
            self._states[athlete_id] = replace(state, status=target)
        return target

    def set_weight_category(self, athlete_id: int, weight_category: str | None) -> bool:
        """Change the working weight category; only pending athletes are editable."""

        state = self._states.get(athlete_id)
        if state is None or state.status != NominationStatus.PENDING:
            return False
        self._states[athlete_id] = replace(state, weight_category=weight_category or None)
        return True

    def set_age_category(self, athlete_id: int, age_category: str | None) -> bool:
        state = self._states.get(athlete_id)
        if state is None or state.status != NominationStatus.PENDING:
            return False
        self._states[athlete_id] = replace(state, age_category=age_category or None)
        return True

    # ---------- fold-back hooks ----------

    def mark_nominated(self, nomination: NominationRecord) -> None:
        """Record a server-confirmed nomination."""

        self.committed = [n for n in self.committed if n.athlete_id != nomination.athlete_id]
        self.committed.append(nomination)
        self._states[nomination.athlete_id] = AthleteNominationState(
            athlete_id=nomination.athlete_id,
            status=NominationStatus.NOMINATED,
            weight_category=nomination.weight_category,
            age_category=nomination.age_category,
        )

    def mark_removed(self, nomination_id: int) -> int | None:
        """Drop a deleted nomination and reset its athlete; return the athlete id."""

        removed = next((n for n in self.committed if n.id == nomination_id), None)
        if removed is None:
            return None
        self.committed = [n for n in self.committed if n.id != nomination_id]
        athlete = self._athletes.get(removed.athlete_id)
        if athlete is not None:
            self._states[removed.athlete_id] = self._default_state(athlete)
        else:
            self._states.pop(removed.athlete_id, None)
        return removed.athlete_id
