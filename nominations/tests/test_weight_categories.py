import os

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "federation_admin.settings")

import django

django.setup()

from django.test import SimpleTestCase

from nominations import weight_categories as catalog


class WeightCategoryCatalogTests(SimpleTestCase):
    def test_ranks_strictly_increase_within_each_gender(self):
        for codes in (catalog.FEMALE_CATEGORIES, catalog.MALE_CATEGORIES):
            ranks = [catalog.rank(code) for code in codes]
            self.assertEqual(ranks, sorted(set(ranks)))

    def test_unknown_code_sorts_last(self):
        self.assertGreater(catalog.rank("u999"), catalog.rank("o120"))

    def test_labels(self):
        self.assertEqual(catalog.label_for("u83"), "-83 kg")
        self.assertEqual(catalog.label_for("o120"), "+120 kg")
        self.assertEqual(catalog.label_for("heavy"), "heavy")

    def test_gender_for(self):
        self.assertEqual(catalog.gender_for("u57"), catalog.FEMALE)
        self.assertEqual(catalog.gender_for("u105"), catalog.MALE)
        self.assertIsNone(catalog.gender_for("u1"))

    def test_classic_offers_every_class(self):
        codes = [option.code for option in catalog.options_for(catalog.CLASSIC, catalog.FEMALE)]
        self.assertEqual(codes, catalog.FEMALE_CATEGORIES)
        self.assertEqual(catalog.options_for(catalog.CLASSIC, catalog.MALE)[0].label, "-53 kg")

    def test_equipped_and_bench_drop_the_lightest_class(self):
        for equipment in (catalog.EQUIPPED, catalog.CLASSIC_BENCH, catalog.EQUIPPED_BENCH):
            female = [option.code for option in catalog.options_for(equipment, catalog.FEMALE)]
            male = [option.code for option in catalog.options_for(equipment, catalog.MALE)]
            self.assertNotIn("u43", female)
            self.assertNotIn("u53", male)
            self.assertEqual(female[0], "u47")
            self.assertEqual(male[0], "u59")

    def test_is_valid_for(self):
        self.assertTrue(catalog.is_valid_for("u83", catalog.MALE))
        self.assertFalse(catalog.is_valid_for("u84", catalog.MALE))
        self.assertTrue(catalog.is_valid_for("u53", catalog.MALE, catalog.CLASSIC))
        self.assertFalse(catalog.is_valid_for("u53", catalog.MALE, catalog.EQUIPPED))

    def test_sort_by_weight_category_female(self):
        shuffled = ["o84", "u52", "u43", "u76", "u47", "u63", "u57", "u84", "u69"]
        self.assertEqual(
            catalog.sort_by_weight_category(shuffled, key=lambda code: code),
            ["u43", "u47", "u52", "u57", "u63", "u69", "u76", "u84", "o84"],
        )

    def test_sort_by_weight_category_male(self):
        shuffled = ["o120", "u59", "u105", "u53", "u93", "u66", "u120", "u83", "u74"]
        self.assertEqual(
            catalog.sort_by_weight_category(shuffled, key=lambda code: code),
            catalog.MALE_CATEGORIES,
        )

    def test_sort_is_stable_within_a_class(self):
        items = [("b", "u83"), ("a", "u59"), ("c", "u83")]
        ordered = catalog.sort_by_weight_category(items, key=lambda item: item[1])
        self.assertEqual([name for name, _ in ordered], ["a", "b", "c"])

    def test_age_categories(self):
        self.assertEqual(catalog.age_category_for_age(17), catalog.SUB_JUNIORS)
        self.assertEqual(catalog.age_category_for_age(21), catalog.JUNIORS)
        self.assertEqual(catalog.age_category_for_age(30), catalog.OPEN)
        self.assertEqual(catalog.age_category_for_age(45), catalog.MASTERS_1)
        self.assertEqual(catalog.age_category_for_age(72), catalog.MASTERS_4)

    def test_open_is_available_to_everyone(self):
        self.assertTrue(catalog.is_eligible_for_age_category(16, catalog.OPEN))
        self.assertTrue(catalog.is_eligible_for_age_category(21, catalog.JUNIORS))
        self.assertFalse(catalog.is_eligible_for_age_category(30, catalog.JUNIORS))
