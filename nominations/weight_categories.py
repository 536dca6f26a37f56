"""Static weight and age category tables used for sorting and option lists."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Iterable, TypeVar

T = TypeVar("T")

MALE = "male"
FEMALE = "female"
GENDERS: tuple[str, ...] = (MALE, FEMALE)

CLASSIC = "classic"
EQUIPPED = "equipped"
CLASSIC_BENCH = "classicBench"
EQUIPPED_BENCH = "equippedBench"
EQUIPMENT_TYPES: tuple[str, ...] = (CLASSIC, EQUIPPED, CLASSIC_BENCH, EQUIPPED_BENCH)

FEMALE_CATEGORIES: list[str] = ["u43", "u47", "u52", "u57", "u63", "u69", "u76", "u84", "o84"]
MALE_CATEGORIES: list[str] = ["u53", "u59", "u66", "u74", "u83", "u93", "u105", "u120", "o120"]

CATEGORIES_BY_GENDER: dict[str, list[str]] = {
    FEMALE: FEMALE_CATEGORIES,
    MALE: MALE_CATEGORIES,
}

# Female classes rank before male ones so a mixed list sorts the way the start lists print.
WEIGHT_CATEGORY_ORDER: list[str] = [*FEMALE_CATEGORIES, *MALE_CATEGORIES]

WEIGHT_CATEGORY_RANK = {code: index for index, code in enumerate(WEIGHT_CATEGORY_ORDER, start=1)}

# Lightest classes are not contested outside classic powerlifting.
RESTRICTED_CATEGORIES: frozenset[str] = frozenset({"u43", "u53"})

SUB_JUNIORS = "SUB_JUNIORS"
JUNIORS = "JUNIORS"
OPEN = "OPEN"
MASTERS_1 = "MASTERS_1"
MASTERS_2 = "MASTERS_2"
MASTERS_3 = "MASTERS_3"
MASTERS_4 = "MASTERS_4"

AGE_CATEGORY_ORDER: list[str] = [SUB_JUNIORS, JUNIORS, OPEN, MASTERS_1, MASTERS_2, MASTERS_3, MASTERS_4]

AGE_CATEGORY_LABELS: dict[str, str] = {
    SUB_JUNIORS: "Sub-juniors",
    JUNIORS: "Juniors",
    OPEN: "Open",
    MASTERS_1: "Masters 1",
    MASTERS_2: "Masters 2",
    MASTERS_3: "Masters 3",
    MASTERS_4: "Masters 4",
}


@dataclass(frozen=True)
class WeightCategoryOption:
    """A selectable weight class for one gender."""

    code: str
    label: str
    gender: str


def label_for(code: str) -> str:
    """Return a display label such as ``-83 kg`` or ``+120 kg``."""

    text = (code or "").strip().lower()
    if len(text) < 2 or not text[1:].isdigit():
        return code
    limit = text[1:]
    if text[0] == "u":
        return f"-{limit} kg"
    if text[0] == "o":
        return f"+{limit} kg"
    return code


def gender_for(code: str) -> str | None:
    """Return the gender a weight class belongs to, or ``None`` for unknown codes."""

    for gender, codes in CATEGORIES_BY_GENDER.items():
        if code in codes:
            return gender
    return None


def rank(code: str) -> int:
    """Sort rank for a weight class; unknown codes sort last."""

    return WEIGHT_CATEGORY_RANK.get(code, len(WEIGHT_CATEGORY_ORDER) + 1)


def options_for(equipment_type: str, gender: str) -> list[WeightCategoryOption]:
    """Return the ordered weight classes offered for an equipment type and gender."""

    codes = CATEGORIES_BY_GENDER.get(gender, [])
    if equipment_type != CLASSIC:
        codes = [code for code in codes if code not in RESTRICTED_CATEGORIES]
    return [WeightCategoryOption(code=code, label=label_for(code), gender=gender) for code in codes]


def is_valid_for(code: str, gender: str, equipment_type: str | None = None) -> bool:
    if equipment_type is None:
        return code in CATEGORIES_BY_GENDER.get(gender, [])
    return any(option.code == code for option in options_for(equipment_type, gender))


def sort_by_weight_category(items: Iterable[T], key: Callable[[T], str]) -> list[T]:
    """Return ``items`` ordered by the rank of the weight class ``key`` extracts.

    The sort is stable, so items sharing a class keep their incoming order.
    """

    return sorted(items, key=lambda item: rank(key(item)))


def age_category_for_age(age: int) -> str:
    """Map an age in whole years onto its age category."""

    if age <= 18:
        return SUB_JUNIORS
    if age <= 23:
        return JUNIORS
    if age >= 70:
        return MASTERS_4
    if age >= 60:
        return MASTERS_3
    if age >= 50:
        return MASTERS_2
    if age >= 40:
        return MASTERS_1
    return OPEN


def is_eligible_for_age_category(age: int, category: str) -> bool:
    """Everyone may lift in the open category; other categories must match the age."""

    if category == OPEN:
        return True
    return age_category_for_age(age) == category
