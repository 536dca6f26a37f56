from __future__ import annotations

from datetime import date

from django.contrib.auth import get_user_model
from django.test import TestCase
from rest_framework.test import APIClient

from nominations import models


class NominationAPITestCase(TestCase):
    def setUp(self) -> None:
        User = get_user_model()
        self.user = User.objects.create_user(username="secretary", password="password123")
        self.client = APIClient()
        self.client.force_authenticate(user=self.user)

        self.federation = models.Federation.objects.create(name="Northern Powerlifting")
        self.sam = self.athlete("Sam", "Lifter", "male", "u83")
        self.max = self.athlete("Max", "Squat", "male", "u83")
        self.ada = self.athlete("Ada", "Press", "female", "u63")
        self.competition = models.Competition.objects.create(
            name="Nationals",
            start_date=date(2025, 6, 1),
            equipment_type=models.Competition.EquipmentType.CLASSIC,
            age_categories=["OPEN", "JUNIORS"],
        )

    def athlete(self, first_name, last_name, gender, weight_category):
        return models.Athlete.objects.create(
            federation=self.federation,
            first_name=first_name,
            last_name=last_name,
            gender=gender,
            weight_category=weight_category,
        )

    def nominate(self, athlete, **extra):
        return models.Nomination.objects.create(
            athlete=athlete,
            competition=self.competition,
            weight_category=athlete.weight_category,
            age_category="OPEN",
            **extra,
        )

    def item(self, athlete, age_category="OPEN"):
        return {
            "competition_id": self.competition.pk,
            "athlete_id": athlete.pk,
            "weight_category": athlete.weight_category,
            "age_category": age_category,
        }


class NominationEndpointTests(NominationAPITestCase):
    def test_requires_authentication(self) -> None:
        response = APIClient().get(f"/api/nominations/competition/{self.competition.pk}/")
        self.assertIn(response.status_code, (401, 403))

    def test_create(self) -> None:
        response = self.client.post("/api/nominations/", self.item(self.sam), format="json")

        self.assertEqual(response.status_code, 201)
        body = response.json()
        self.assertTrue(body["success"])
        self.assertEqual(body["data"]["athlete_name"], "Sam Lifter")
        self.assertEqual(body["data"]["nominated_by_id"], self.user.pk)

    def test_create_validation_error(self) -> None:
        response = self.client.post(
            "/api/nominations/", self.item(self.sam, age_category="MASTERS_2"), format="json"
        )

        self.assertEqual(response.status_code, 400)
        self.assertEqual(
            response.json(),
            {"success": False, "data": None, "error": "Competition does not support age category"},
        )

    def test_batch_create_and_update(self) -> None:
        created = self.client.post(
            "/api/nominations/batch/",
            {"nominations": [self.item(self.sam), self.item(self.ada)]},
            format="json",
        )
        self.assertEqual(created.status_code, 201)
        ids = [row["id"] for row in created.json()["data"]]

        updated = self.client.patch(
            "/api/nominations/batch/",
            {
                "nominations": [
                    {"nomination_id": ids[0], "updates": {"flight_number": 1, "group_number": 1}},
                    {"nomination_id": ids[1], "updates": {"flight_number": 1, "group_number": 2, "group_name": "Late"}},
                ]
            },
            format="json",
        )

        self.assertEqual(updated.status_code, 200)
        self.assertEqual(models.Nomination.objects.get(pk=ids[1]).group_name, "Late")

    def test_batch_requires_a_list(self) -> None:
        response = self.client.post("/api/nominations/batch/", {"nominations": "nope"}, format="json")
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["error"], "Expected a list of nominations")

    def test_delete(self) -> None:
        nomination = self.nominate(self.sam)

        first = self.client.delete(f"/api/nominations/{nomination.pk}/")
        second = self.client.delete(f"/api/nominations/{nomination.pk}/")

        self.assertEqual(first.status_code, 200)
        self.assertEqual(second.status_code, 404)
        self.assertEqual(second.json()["error"], "Nomination not found")

    def test_fetch_filtered_by_weight_category(self) -> None:
        self.nominate(self.sam)
        self.nominate(self.ada)

        response = self.client.get(
            f"/api/nominations/competition/{self.competition.pk}/weight-categories/",
            {"weight_categories": "u63"},
        )

        self.assertEqual([row["athlete_id"] for row in response.json()["data"]], [self.ada.pk])

    def test_unknown_competition(self) -> None:
        response = self.client.get("/api/nominations/competition/999/")
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json()["error"], "Competition not found")

    def test_athletes_by_federation(self) -> None:
        response = self.client.get(f"/api/athletes/federation/{self.federation.pk}/")

        names = {(row["first_name"], row["weight_category"]) for row in response.json()["data"]}
        self.assertEqual(names, {("Sam", "u83"), ("Max", "u83"), ("Ada", "u63")})


class CompetitionEndpointTests(NominationAPITestCase):
    def test_grouped_by_weight_category(self) -> None:
        self.nominate(self.sam)
        self.nominate(self.ada)

        response = self.client.get(
            f"/api/competitions/{self.competition.pk}/nominations/grouped/", {"gender": "female"}
        )

        data = response.json()["data"]
        self.assertEqual(data["age_categories"], ["OPEN"])
        self.assertEqual(list(data["genders"]), ["female"])
        self.assertEqual(data["genders"]["female"][0]["code"], "u63")

    def test_flight_summary(self) -> None:
        self.nominate(self.sam, flight_number=1, group_number=1)
        self.nominate(self.ada)

        response = self.client.get(f"/api/competitions/{self.competition.pk}/flights/")

        flights = response.json()["data"]
        self.assertEqual(len(flights), 1)
        self.assertEqual(flights[0]["groups"][0]["name"], "Group 1")

    def test_save_nominates_and_unnominates(self) -> None:
        self.nominate(self.sam)
        self.nominate(self.max)

        response = self.client.post(
            f"/api/competitions/{self.competition.pk}/nominations/save/",
            {
                "federation_id": self.federation.pk,
                "changes": [
                    {"athlete_id": self.ada.pk, "toggle": True, "weight_category": "u57", "age_category": "OPEN"},
                    {"athlete_id": self.max.pk, "toggle": True},
                ],
            },
            format="json",
        )

        self.assertEqual(response.status_code, 200, response.content)
        states = {row["athlete_id"]: row for row in response.json()["data"]["states"]}
        self.assertEqual(states[self.ada.pk]["status"], "nominated")
        self.assertEqual(states[self.max.pk]["status"], "none")
        self.assertEqual(
            set(models.Nomination.objects.values_list("athlete_id", "weight_category")),
            {(self.sam.pk, "u83"), (self.ada.pk, "u57")},
        )

    def test_save_reports_missing_category(self) -> None:
        response = self.client.post(
            f"/api/competitions/{self.competition.pk}/nominations/save/",
            {"federation_id": self.federation.pk, "changes": [{"athlete_id": self.ada.pk, "toggle": True}]},
            format="json",
        )

        self.assertEqual(response.status_code, 400)
        self.assertIn("Choose an age category before saving.", response.json()["error"])
        self.assertFalse(models.Nomination.objects.exists())

    def test_save_rejects_category_change_on_committed_athlete(self) -> None:
        self.nominate(self.sam)

        response = self.client.post(
            f"/api/competitions/{self.competition.pk}/nominations/save/",
            {"federation_id": self.federation.pk, "changes": [{"athlete_id": self.sam.pk, "age_category": "JUNIORS"}]},
            format="json",
        )

        self.assertEqual(response.status_code, 400)
        self.assertEqual(models.Nomination.objects.get().age_category, "OPEN")

    def test_flight_groups_commit(self) -> None:
        sam = self.nominate(self.sam)
        max_ = self.nominate(self.max)

        response = self.client.post(
            f"/api/competitions/{self.competition.pk}/flights/1/groups/",
            {
                "weight_categories": ["u83"],
                "number_of_groups": 2,
                "group_start_time": "2025-06-01T09:00:00Z",
                "moves": [
                    {"nomination_id": sam.pk, "source": "unassigned", "destination": "group-1", "index": 0},
                    {"nomination_id": max_.pk, "source": "unassigned", "destination": "group-2", "index": 0},
                ],
            },
            format="json",
        )

        self.assertEqual(response.status_code, 200, response.content)
        sam.refresh_from_db()
        max_.refresh_from_db()
        self.assertEqual((sam.flight_number, sam.group_number, sam.group_name), (1, 1, "Group 1"))
        self.assertEqual((max_.flight_number, max_.group_number), (1, 2))
        self.assertEqual(max_.group_start_time.hour, 9)

    def test_flight_groups_rejects_other_flight(self) -> None:
        other = self.nominate(self.sam, flight_number=2, group_number=1)

        response = self.client.post(
            f"/api/competitions/{self.competition.pk}/flights/1/groups/",
            {
                "weight_categories": ["u83"],
                "moves": [{"nomination_id": other.pk, "source": "unassigned", "destination": "group-1", "index": 0}],
            },
            format="json",
        )

        self.assertEqual(response.status_code, 409)
        other.refresh_from_db()
        self.assertEqual(other.flight_number, 2)

    def test_flight_groups_shrinking_clears_removed_group(self) -> None:
        sam = self.nominate(self.sam, flight_number=1, group_number=1, group_name="Group 1")
        max_ = self.nominate(self.max, flight_number=1, group_number=2, group_name="Group 2")

        response = self.client.post(
            f"/api/competitions/{self.competition.pk}/flights/1/groups/",
            {"weight_categories": ["u83"], "number_of_groups": 1},
            format="json",
        )

        self.assertEqual(response.status_code, 200, response.content)
        partition = response.json()["data"]["partition"]
        self.assertEqual(partition["number_of_groups"], 1)
        self.assertEqual([bucket["id"] for bucket in partition["buckets"]], ["unassigned", "group-1"])
        sam.refresh_from_db()
        max_.refresh_from_db()
        self.assertEqual((sam.flight_number, sam.group_number), (1, 1))
        self.assertEqual((max_.flight_number, max_.group_number, max_.group_name), (None, None, ""))
