"""Read-only views over committed nominations: by weight class and by flight."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable

from . import weight_categories as catalog
from .partitioner import group_label
from .records import NominationRecord

__all__ = [
    "WeightCategoryGroup",
    "FlightGroup",
    "Flight",
    "group_by_weight_category",
    "age_categories_in",
    "summarize_flights",
]


@dataclass
class WeightCategoryGroup:
    code: str
    label: str
    nominations: list[NominationRecord] = field(default_factory=list)

    def to_dict(self) -> dict[str, object]:
        return {
            "code": self.code,
            "label": self.label,
            "nominations": [nomination.to_dict() for nomination in self.nominations],
        }


@dataclass
class FlightGroup:
    number: int
    name: str
    start_time: datetime | None
    nominations: list[NominationRecord] = field(default_factory=list)

    def to_dict(self) -> dict[str, object]:
        return {
            "number": self.number,
            "name": self.name,
            "start_time": self.start_time.isoformat() if self.start_time else None,
            "nominations": [nomination.to_dict() for nomination in self.nominations],
        }


@dataclass
class Flight:
    number: int
    groups: list[FlightGroup] = field(default_factory=list)

    def to_dict(self) -> dict[str, object]:
        return {"number": self.number, "groups": [group.to_dict() for group in self.groups]}


def _gender_of(nomination: NominationRecord) -> str | None:
    return nomination.athlete_gender or catalog.gender_for(nomination.weight_category)


def group_by_weight_category(
    nominations: Iterable[NominationRecord],
    gender: str,
    age_category: str | None = None,
) -> list[WeightCategoryGroup]:
    """Group one gender's nominations by weight class, lightest class first.

    Empty classes are left out. Within a class, nominations keep their incoming
    order.
    """

    groups: dict[str, WeightCategoryGroup] = {}
    for nomination in nominations:
        if _gender_of(nomination) != gender:
            continue
        if age_category and nomination.age_category != age_category:
            continue
        code = nomination.weight_category
        if code not in groups:
            groups[code] = WeightCategoryGroup(code=code, label=catalog.label_for(code))
        groups[code].nominations.append(nomination)
    return catalog.sort_by_weight_category(groups.values(), key=lambda group: group.code)


def age_categories_in(nominations: Iterable[NominationRecord]) -> list[str]:
    """Age categories present among ``nominations``, in catalog order."""

    present = {nomination.age_category for nomination in nominations if nomination.age_category}
    known = [code for code in catalog.AGE_CATEGORY_ORDER if code in present]
    return known + sorted(present.difference(known))


def summarize_flights(nominations: Iterable[NominationRecord]) -> list[Flight]:
    """Flights and their groups, built from nominations that have both numbers.

    A group takes its name and start time from its first nomination.
    """

    by_flight: dict[int, dict[int, list[NominationRecord]]] = {}
    for nomination in nominations:
        if not nomination.flight_number or not nomination.group_number:
            continue
        by_flight.setdefault(nomination.flight_number, {}).setdefault(nomination.group_number, []).append(
            nomination
        )

    flights = []
    for flight_number in sorted(by_flight):
        groups = []
        for group_number in sorted(by_flight[flight_number]):
            members = by_flight[flight_number][group_number]
            first = members[0]
            groups.append(
                FlightGroup(
                    number=group_number,
                    name=first.group_name or group_label(group_number),
                    start_time=first.group_start_time,
                    nominations=members,
                )
            )
        flights.append(Flight(number=flight_number, groups=groups))
    return flights
