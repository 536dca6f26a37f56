"""Admin registrations for the nominations application."""
from django.contrib import admin

from . import models


@admin.register(models.Federation)
class FederationAdmin(admin.ModelAdmin):
    list_display = ("name",)
    search_fields = ("name",)


@admin.register(models.Athlete)
class AthleteAdmin(admin.ModelAdmin):
    list_display = ("first_name", "last_name", "federation", "gender", "weight_category", "date_of_birth")
    list_filter = ("federation", "gender", "weight_category")
    search_fields = ("first_name", "last_name")


@admin.register(models.Competition)
class CompetitionAdmin(admin.ModelAdmin):
    list_display = ("name", "start_date", "equipment_type", "status", "nomination_deadline")
    list_filter = ("status", "equipment_type")
    search_fields = ("name",)


@admin.register(models.Nomination)
class NominationAdmin(admin.ModelAdmin):
    list_display = (
        "athlete",
        "competition",
        "weight_category",
        "age_category",
        "flight_number",
        "group_number",
        "group_name",
        "nominated_at",
    )
    list_filter = ("competition", "weight_category", "age_category", "flight_number")
    search_fields = ("athlete__first_name", "athlete__last_name", "competition__name")
    raw_id_fields = ("athlete", "competition", "nominated_by")
