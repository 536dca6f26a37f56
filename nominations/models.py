"""Database models for competition nominations."""
from __future__ import annotations

from datetime import date

from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models
from django.utils import timezone

from . import weight_categories as catalog
from .records import MAX_GROUPS


WEIGHT_CATEGORY_CHOICES = [(code, catalog.label_for(code)) for code in catalog.WEIGHT_CATEGORY_ORDER]
AGE_CATEGORY_CHOICES = [(code, catalog.AGE_CATEGORY_LABELS[code]) for code in catalog.AGE_CATEGORY_ORDER]


def age_on(dob: date, when: date) -> int:
    """Return the age in whole years on ``when``."""

    age = when.year - dob.year
    if (when.month, when.day) < (dob.month, dob.day):
        age -= 1
    return age


class Federation(models.Model):
    """A national or regional federation owning a roster of athletes."""

    name = models.CharField(max_length=120)

    class Meta:
        ordering = ("name",)

    def __str__(self) -> str:
        return self.name


class Athlete(models.Model):
    """An athlete registered with a federation."""

    class Gender(models.TextChoices):
        MALE = catalog.MALE, "Male"
        FEMALE = catalog.FEMALE, "Female"

    federation = models.ForeignKey(Federation, on_delete=models.CASCADE, related_name="athletes")
    first_name = models.CharField(max_length=80)
    last_name = models.CharField(max_length=80)
    gender = models.CharField(max_length=8, choices=Gender.choices)
    weight_category = models.CharField(max_length=8, choices=WEIGHT_CATEGORY_CHOICES)
    date_of_birth = models.DateField(blank=True, null=True)

    class Meta:
        ordering = ("last_name", "first_name")

    def __str__(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def clean(self) -> None:
        super().clean()
        if self.weight_category and catalog.gender_for(self.weight_category) != self.gender:
            raise ValidationError(
                {"weight_category": "Weight category does not match the athlete's gender."}
            )


class Competition(models.Model):
    """A competition athletes can be nominated into."""

    class EquipmentType(models.TextChoices):
        CLASSIC = catalog.CLASSIC, "Classic"
        EQUIPPED = catalog.EQUIPPED, "Equipped"
        CLASSIC_BENCH = catalog.CLASSIC_BENCH, "Classic bench press"
        EQUIPPED_BENCH = catalog.EQUIPPED_BENCH, "Equipped bench press"

    class Status(models.TextChoices):
        UPCOMING = "upcoming", "Upcoming"
        ONGOING = "ongoing", "Ongoing"
        COMPLETED = "completed", "Completed"

    name = models.CharField(max_length=120)
    start_date = models.DateField()
    equipment_type = models.CharField(max_length=16, choices=EquipmentType.choices)
    age_categories = models.JSONField(default=list, blank=True)
    nomination_start = models.DateTimeField(blank=True, null=True)
    nomination_deadline = models.DateTimeField(blank=True, null=True)
    status = models.CharField(max_length=12, choices=Status.choices, default=Status.UPCOMING)

    class Meta:
        ordering = ("-start_date", "name")

    def __str__(self) -> str:
        return self.name

    @property
    def accepts_nominations(self) -> bool:
        return self.status == self.Status.UPCOMING

    def permits_age_category(self, category: str) -> bool:
        return category in (self.age_categories or [])


class Nomination(models.Model):
    """An athlete's nomination into a competition, plus its running-order slot."""

    athlete = models.ForeignKey(Athlete, on_delete=models.CASCADE, related_name="nominations")
    competition = models.ForeignKey(Competition, on_delete=models.CASCADE, related_name="nominations")
    weight_category = models.CharField(max_length=8, choices=WEIGHT_CATEGORY_CHOICES)
    age_category = models.CharField(max_length=16, choices=AGE_CATEGORY_CHOICES)
    flight_number = models.PositiveIntegerField(blank=True, null=True, validators=[MinValueValidator(1)])
    group_number = models.PositiveIntegerField(
        blank=True,
        null=True,
        validators=[MinValueValidator(1), MaxValueValidator(MAX_GROUPS)],
    )
    group_name = models.CharField(max_length=80, blank=True)
    group_start_time = models.DateTimeField(blank=True, null=True)
    nominated_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        blank=True,
        null=True,
        related_name="nominations_made",
    )
    nominated_at = models.DateTimeField(default=timezone.now)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=["athlete", "competition"], name="unique_nomination_per_competition"),
        ]
        ordering = ("competition", "flight_number", "group_number", "pk")

    def __str__(self) -> str:
        return f"{self.athlete} - {self.competition}"
