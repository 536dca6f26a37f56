"""Serializers for the nomination REST endpoints."""

from __future__ import annotations

from typing import Any, Dict

from django.utils import timezone
from rest_framework import serializers

from . import models
from . import weight_categories as catalog
from .records import MAX_GROUPS


class NominationCreateSerializer(serializers.Serializer):
    competition_id = serializers.IntegerField()
    athlete_id = serializers.IntegerField()
    weight_category = serializers.ChoiceField(choices=catalog.WEIGHT_CATEGORY_ORDER)
    age_category = serializers.ChoiceField(choices=catalog.AGE_CATEGORY_ORDER)
    nominated_at = serializers.DateTimeField(required=False, allow_null=True)

    def validate(self, attrs: Dict[str, Any]) -> Dict[str, Any]:
        try:
            athlete = models.Athlete.objects.get(pk=attrs["athlete_id"])
        except models.Athlete.DoesNotExist as exc:
            raise serializers.ValidationError("Athlete not found") from exc
        try:
            competition = models.Competition.objects.get(pk=attrs["competition_id"])
        except models.Competition.DoesNotExist as exc:
            raise serializers.ValidationError("Competition not found") from exc

        if not competition.accepts_nominations:
            raise serializers.ValidationError("Competition is no longer accepting nominations")
        if not competition.permits_age_category(attrs["age_category"]):
            raise serializers.ValidationError("Competition does not support age category")
        if athlete.date_of_birth:
            age = models.age_on(athlete.date_of_birth, competition.start_date)
            if not catalog.is_eligible_for_age_category(age, attrs["age_category"]):
                raise serializers.ValidationError("Athlete not in age category")
        if not catalog.is_valid_for(attrs["weight_category"], athlete.gender, competition.equipment_type):
            raise serializers.ValidationError("Weight category not available for this athlete")

        attrs["athlete"] = athlete
        attrs["competition"] = competition
        attrs["nominated_at"] = attrs.get("nominated_at") or timezone.now()
        return attrs


class NominationBatchCreateSerializer(serializers.Serializer):
    nominations = NominationCreateSerializer(many=True, allow_empty=False)

    def validate_nominations(self, value):
        seen = set()
        for attrs in value:
            key = (attrs["athlete_id"], attrs["competition_id"])
            if key in seen:
                raise serializers.ValidationError("Athlete appears twice in the batch")
            seen.add(key)
        return value


class NominationFieldsSerializer(serializers.Serializer):
    flight_number = serializers.IntegerField(min_value=1, required=False, allow_null=True)
    group_number = serializers.IntegerField(min_value=1, max_value=MAX_GROUPS, required=False, allow_null=True)
    group_name = serializers.CharField(max_length=80, required=False, allow_blank=True, allow_null=True)
    group_start_time = serializers.DateTimeField(required=False, allow_null=True)


class NominationFieldUpdateSerializer(serializers.Serializer):
    nomination_id = serializers.IntegerField()
    updates = NominationFieldsSerializer()


class NominationBatchUpdateSerializer(serializers.Serializer):
    nominations = NominationFieldUpdateSerializer(many=True, allow_empty=False)


class NominationChangeSerializer(serializers.Serializer):
    """One editor gesture for an athlete: toggle and/or category picks."""

    athlete_id = serializers.IntegerField()
    toggle = serializers.BooleanField(default=False)
    weight_category = serializers.ChoiceField(
        choices=catalog.WEIGHT_CATEGORY_ORDER, required=False, allow_null=True
    )
    age_category = serializers.ChoiceField(choices=catalog.AGE_CATEGORY_ORDER, required=False, allow_null=True)


class NominationSaveSerializer(serializers.Serializer):
    federation_id = serializers.IntegerField()
    changes = NominationChangeSerializer(many=True)


class GroupMoveSerializer(serializers.Serializer):
    nomination_id = serializers.IntegerField()
    source = serializers.CharField(max_length=20)
    destination = serializers.CharField(max_length=20)
    index = serializers.IntegerField(min_value=0)


class FlightGroupsSerializer(serializers.Serializer):
    weight_categories = serializers.ListField(
        child=serializers.ChoiceField(choices=catalog.WEIGHT_CATEGORY_ORDER), allow_empty=False
    )
    number_of_groups = serializers.IntegerField(min_value=1, max_value=MAX_GROUPS, default=1)
    group_start_time = serializers.DateTimeField(required=False, allow_null=True)
    moves = GroupMoveSerializer(many=True, required=False)
