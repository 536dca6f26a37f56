import django.core.validators
import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


WEIGHT_CATEGORY_CHOICES = [
    ("u43", "-43 kg"),
    ("u47", "-47 kg"),
    ("u52", "-52 kg"),
    ("u57", "-57 kg"),
    ("u63", "-63 kg"),
    ("u69", "-69 kg"),
    ("u76", "-76 kg"),
    ("u84", "-84 kg"),
    ("o84", "+84 kg"),
    ("u53", "-53 kg"),
    ("u59", "-59 kg"),
    ("u66", "-66 kg"),
    ("u74", "-74 kg"),
    ("u83", "-83 kg"),
    ("u93", "-93 kg"),
    ("u105", "-105 kg"),
    ("u120", "-120 kg"),
    ("o120", "+120 kg"),
]

AGE_CATEGORY_CHOICES = [
    ("SUB_JUNIORS", "Sub-juniors"),
    ("JUNIORS", "Juniors"),
    ("OPEN", "Open"),
    ("MASTERS_1", "Masters 1"),
    ("MASTERS_2", "Masters 2"),
    ("MASTERS_3", "Masters 3"),
    ("MASTERS_4", "Masters 4"),
]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Federation",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=120)),
            ],
            options={"ordering": ("name",)},
        ),
        migrations.CreateModel(
            name="Competition",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=120)),
                ("start_date", models.DateField()),
                (
                    "equipment_type",
                    models.CharField(
                        choices=[
                            ("classic", "Classic"),
                            ("equipped", "Equipped"),
                            ("classicBench", "Classic bench press"),
                            ("equippedBench", "Equipped bench press"),
                        ],
                        max_length=16,
                    ),
                ),
                ("age_categories", models.JSONField(blank=True, default=list)),
                ("nomination_start", models.DateTimeField(blank=True, null=True)),
                ("nomination_deadline", models.DateTimeField(blank=True, null=True)),
                (
                    "status",
                    models.CharField(
                        choices=[("upcoming", "Upcoming"), ("ongoing", "Ongoing"), ("completed", "Completed")],
                        default="upcoming",
                        max_length=12,
                    ),
                ),
            ],
            options={"ordering": ("-start_date", "name")},
        ),
        migrations.CreateModel(
            name="Athlete",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("first_name", models.CharField(max_length=80)),
                ("last_name", models.CharField(max_length=80)),
                ("gender", models.CharField(choices=[("male", "Male"), ("female", "Female")], max_length=8)),
                ("weight_category", models.CharField(choices=WEIGHT_CATEGORY_CHOICES, max_length=8)),
                ("date_of_birth", models.DateField(blank=True, null=True)),
                (
                    "federation",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="athletes",
                        to="nominations.federation",
                    ),
                ),
            ],
            options={"ordering": ("last_name", "first_name")},
        ),
        migrations.CreateModel(
            name="Nomination",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("weight_category", models.CharField(choices=WEIGHT_CATEGORY_CHOICES, max_length=8)),
                ("age_category", models.CharField(choices=AGE_CATEGORY_CHOICES, max_length=16)),
                (
                    "flight_number",
                    models.PositiveIntegerField(
                        blank=True, null=True, validators=[django.core.validators.MinValueValidator(1)]
                    ),
                ),
                (
                    "group_number",
                    models.PositiveIntegerField(
                        blank=True,
                        null=True,
                        validators=[
                            django.core.validators.MinValueValidator(1),
                            django.core.validators.MaxValueValidator(3),
                        ],
                    ),
                ),
                ("group_name", models.CharField(blank=True, max_length=80)),
                ("group_start_time", models.DateTimeField(blank=True, null=True)),
                ("nominated_at", models.DateTimeField(default=django.utils.timezone.now)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "athlete",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="nominations",
                        to="nominations.athlete",
                    ),
                ),
                (
                    "competition",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="nominations",
                        to="nominations.competition",
                    ),
                ),
                (
                    "nominated_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="nominations_made",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={"ordering": ("competition", "flight_number", "group_number", "pk")},
        ),
        migrations.AddConstraint(
            model_name="nomination",
            constraint=models.UniqueConstraint(
                fields=("athlete", "competition"), name="unique_nomination_per_competition"
            ),
        ),
    ]
