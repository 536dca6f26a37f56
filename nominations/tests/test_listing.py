import os
from datetime import datetime, timezone as dt_timezone

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "federation_admin.settings")

import django

django.setup()

from django.test import SimpleTestCase

from nominations.listing import age_categories_in, group_by_weight_category, summarize_flights
from nominations.tests.fakes import nomination


class GroupByWeightCategoryTests(SimpleTestCase):
    def setUp(self):
        self.nominations = [
            nomination(1, 1, weight_category="u84", athlete_gender="female"),
            nomination(2, 2, weight_category="u43", athlete_gender="female", age_category="JUNIORS"),
            nomination(3, 3, weight_category="u52", athlete_gender="female"),
            nomination(4, 4, weight_category="u43", athlete_gender="female"),
            nomination(5, 5, weight_category="o120", athlete_gender="male", age_category="MASTERS_1"),
            nomination(6, 6, weight_category="u53"),
        ]

    def test_female_groups_in_catalog_order(self):
        groups = group_by_weight_category(self.nominations, "female")

        self.assertEqual([group.code for group in groups], ["u43", "u52", "u84"])
        self.assertEqual([n.id for n in groups[0].nominations], [2, 4])
        self.assertEqual(groups[0].label, "-43 kg")

    def test_male_groups_fall_back_to_the_class_gender(self):
        groups = group_by_weight_category(self.nominations, "male")
        self.assertEqual([group.code for group in groups], ["u53", "o120"])

    def test_age_category_filter(self):
        groups = group_by_weight_category(self.nominations, "female", age_category="JUNIORS")
        self.assertEqual([(g.code, [n.id for n in g.nominations]) for g in groups], [("u43", [2])])

    def test_age_categories_present(self):
        self.assertEqual(age_categories_in(self.nominations), ["JUNIORS", "OPEN", "MASTERS_1"])


class SummarizeFlightsTests(SimpleTestCase):
    def test_flights_and_groups_are_sorted(self):
        start = datetime(2025, 5, 10, 9, 0, tzinfo=dt_timezone.utc)
        nominations = [
            nomination(1, 1, flight_number=2, group_number=1),
            nomination(2, 2, flight_number=1, group_number=2),
            nomination(3, 3, flight_number=1, group_number=1, group_name="Early", group_start_time=start),
            nomination(4, 4, flight_number=1, group_number=1),
            nomination(5, 5, flight_number=1),
            nomination(6, 6),
        ]

        flights = summarize_flights(nominations)

        self.assertEqual([flight.number for flight in flights], [1, 2])
        first = flights[0]
        self.assertEqual([group.number for group in first.groups], [1, 2])
        self.assertEqual(first.groups[0].name, "Early")
        self.assertEqual(first.groups[0].start_time, start)
        self.assertEqual([n.id for n in first.groups[0].nominations], [3, 4])
        self.assertEqual(first.groups[1].name, "Group 2")
        self.assertEqual(flights[0].to_dict()["groups"][0]["start_time"], start.isoformat())

    def test_no_scheduled_nominations(self):
        self.assertEqual(summarize_flights([nomination(1, 1)]), [])
