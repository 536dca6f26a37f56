import os
from datetime import date

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "federation_admin.settings")

import django

django.setup()

from django.test import TestCase

from nominations import models
from nominations.reconciliation import ReconciliationEngine
from nominations.repository import OrmAthleteDirectory, OrmNominationRepository
from nominations.state import NominationStateStore, NominationStatus


class NominationRoundTripTests(TestCase):
    """Three athletes, two already nominated; the third is added from the editor."""

    def setUp(self):
        federation = models.Federation.objects.create(name="Coastal Barbell")
        self.competition = models.Competition.objects.create(
            name="Regional Open",
            start_date=date(2025, 4, 12),
            equipment_type=models.Competition.EquipmentType.CLASSIC,
            age_categories=["OPEN"],
        )
        self.athletes = [
            models.Athlete.objects.create(
                federation=federation,
                first_name=first_name,
                last_name="Doe",
                gender="male",
                weight_category=weight_category,
            )
            for first_name, weight_category in (("Alex", "u74"), ("Bo", "u93"), ("Cy", "u105"))
        ]
        for athlete in self.athletes[:2]:
            models.Nomination.objects.create(
                athlete=athlete,
                competition=self.competition,
                weight_category=athlete.weight_category,
                age_category="OPEN",
            )
        self.federation = federation

    def test_toggle_and_commit_third_athlete(self):
        repository = OrmNominationRepository()
        athletes = OrmAthleteDirectory().fetch_by_federation(self.federation.pk).data
        committed = repository.fetch_by_competition(self.competition.pk).data
        store = NominationStateStore(self.competition.pk, athletes, committed)
        third = self.athletes[2].pk

        self.assertEqual(
            [store.get(a.pk).status for a in self.athletes],
            [NominationStatus.NOMINATED, NominationStatus.NOMINATED, NominationStatus.NONE],
        )

        store.toggle(third)
        store.set_weight_category(third, "u83")
        store.set_age_category(third, "OPEN")
        outcome = ReconciliationEngine(repository, store).commit()

        self.assertTrue(outcome.success)
        self.assertEqual(len(repository.fetch_by_competition(self.competition.pk).data), 3)
        self.assertEqual(len(store.committed), 3)
        state = store.get(third)
        self.assertEqual(
            (state.status, state.weight_category, state.age_category),
            (NominationStatus.NOMINATED, "u83", "OPEN"),
        )
