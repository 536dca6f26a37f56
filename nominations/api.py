"""REST API for nominations, the athlete directory and the competition editors."""
from __future__ import annotations

import logging
from typing import Any, Callable, Optional

from django.core.exceptions import ValidationError
from rest_framework import permissions, status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from . import weight_categories as catalog
from .listing import age_categories_in, group_by_weight_category, summarize_flights
from .partitioner import FlightGroupPartitioner
from .reconciliation import BUSY_MESSAGE, ReconciliationEngine
from .records import RepositoryResult
from .repository import (
    OrmAthleteDirectory,
    OrmNominationRepository,
    create_nominations,
    first_error,
    update_nomination_fields,
)
from .serializers import FlightGroupsSerializer, NominationSaveSerializer
from .state import NominationStateStore

logger = logging.getLogger(__name__)


def envelope(
    result: RepositoryResult,
    to_data: Optional[Callable[[Any], Any]] = None,
    *,
    success_status: int = status.HTTP_200_OK,
    failure_status: int = status.HTTP_400_BAD_REQUEST,
) -> Response:
    if not result.success:
        return Response(
            {"success": False, "data": None, "error": result.error},
            status=failure_status,
        )
    data = to_data(result.data) if to_data else result.data
    return Response({"success": True, "data": data, "error": ""}, status=success_status)


def failure(error: str, http_status: int = status.HTTP_400_BAD_REQUEST, data: Any = None) -> Response:
    return Response({"success": False, "data": data, "error": error}, status=http_status)


def _records(records) -> list[dict[str, Any]]:
    return [record.to_dict() for record in records or []]


def _list_payload(request, key: str = "nominations"):
    items = request.data.get(key) if hasattr(request.data, "get") else None
    return items if isinstance(items, list) else None


class NominationViewSet(viewsets.ViewSet):
    permission_classes = [permissions.IsAuthenticated]
    lookup_value_regex = r"\d+"

    def create(self, request):
        result = create_nominations([request.data], user=request.user)
        return envelope(
            result,
            lambda records: records[0].to_dict(),
            success_status=status.HTTP_201_CREATED,
        )

    def destroy(self, request, pk=None):
        result = OrmNominationRepository(user=request.user).delete(int(pk))
        return envelope(result, failure_status=status.HTTP_404_NOT_FOUND)

    @action(detail=False, methods=["post", "patch"], url_path="batch")
    def batch(self, request):
        items = _list_payload(request)
        if items is None:
            return failure("Expected a list of nominations")
        if request.method == "POST":
            result = create_nominations(items, user=request.user)
            return envelope(result, _records, success_status=status.HTTP_201_CREATED)
        return envelope(update_nomination_fields(items), _records)

    @action(detail=False, methods=["get"], url_path=r"competition/(?P<competition_id>\d+)")
    def by_competition(self, request, competition_id=None):
        result = OrmNominationRepository().fetch_by_competition(int(competition_id))
        return envelope(result, _records, failure_status=status.HTTP_404_NOT_FOUND)

    @action(
        detail=False,
        methods=["get"],
        url_path=r"competition/(?P<competition_id>\d+)/weight-categories",
    )
    def by_weight_categories(self, request, competition_id=None):
        raw = request.query_params.get("weight_categories", "")
        categories = [code.strip() for code in raw.split(",") if code.strip()]
        result = OrmNominationRepository().fetch_by_competition_and_weight_categories(
            int(competition_id), categories
        )
        return envelope(result, _records, failure_status=status.HTTP_404_NOT_FOUND)


class AthleteViewSet(viewsets.ViewSet):
    permission_classes = [permissions.IsAuthenticated]

    @action(detail=False, methods=["get"], url_path=r"federation/(?P<federation_id>\d+)")
    def by_federation(self, request, federation_id=None):
        result = OrmAthleteDirectory().fetch_by_federation(int(federation_id))
        return envelope(result, _records, failure_status=status.HTTP_404_NOT_FOUND)


class CompetitionViewSet(viewsets.ViewSet):
    """Read views and the two editors of one competition."""

    permission_classes = [permissions.IsAuthenticated]
    lookup_value_regex = r"\d+"

    @action(detail=True, methods=["get"], url_path="nominations/grouped")
    def grouped(self, request, pk=None):
        result = OrmNominationRepository().fetch_by_competition(int(pk))
        if not result.success:
            return envelope(result, failure_status=status.HTTP_404_NOT_FOUND)
        gender = request.query_params.get("gender")
        if gender and gender not in catalog.GENDERS:
            return failure(f"Unknown gender: {gender}")
        age_category = request.query_params.get("age_category") or None
        genders = [gender] if gender else [catalog.FEMALE, catalog.MALE]
        data = {
            "age_categories": age_categories_in(result.data),
            "genders": {
                key: [group.to_dict() for group in group_by_weight_category(result.data, key, age_category)]
                for key in genders
            },
        }
        return Response({"success": True, "data": data, "error": ""})

    @action(detail=True, methods=["get"])
    def flights(self, request, pk=None):
        result = OrmNominationRepository().fetch_by_competition(int(pk))
        return envelope(
            result,
            lambda records: [flight.to_dict() for flight in summarize_flights(records)],
            failure_status=status.HTTP_404_NOT_FOUND,
        )

    @action(detail=True, methods=["post"], url_path="nominations/save")
    def save_nominations(self, request, pk=None):
        ser = NominationSaveSerializer(data=request.data)
        if not ser.is_valid():
            return failure(first_error(ser.errors), data={"errors": ser.errors})
        competition_id = int(pk)
        repository = OrmNominationRepository(user=request.user)

        athletes = OrmAthleteDirectory().fetch_by_federation(ser.validated_data["federation_id"])
        if not athletes.success:
            return envelope(athletes, failure_status=status.HTTP_404_NOT_FOUND)
        committed = repository.fetch_by_competition(competition_id)
        if not committed.success:
            return envelope(committed, failure_status=status.HTTP_404_NOT_FOUND)

        store = NominationStateStore(competition_id, athletes.data, committed.data)
        for change in ser.validated_data["changes"]:
            error = self._apply_change(store, change)
            if error:
                logger.info("nomination save for competition %s rejected: %s", competition_id, error)
                return failure(error)

        engine = ReconciliationEngine(repository, store)
        try:
            outcome = engine.commit()
        except ValidationError as exc:
            return failure(first_error(exc.message_dict), data={"errors": exc.message_dict})

        data = {
            "outcome": outcome.to_dict(),
            "states": [state.to_dict() for state in store.states()],
        }
        if outcome.success:
            return Response({"success": True, "data": data, "error": ""})
        http_status = status.HTTP_409_CONFLICT if outcome.messages == [BUSY_MESSAGE] else status.HTTP_400_BAD_REQUEST
        return failure("; ".join(outcome.messages), http_status, data=data)

    @staticmethod
    def _apply_change(store: NominationStateStore, change: dict[str, Any]) -> str:
        athlete_id = change["athlete_id"]
        if athlete_id not in store:
            return f"Athlete not found: {athlete_id}"
        if change.get("toggle"):
            store.toggle(athlete_id)
        for name, setter in (
            ("weight_category", store.set_weight_category),
            ("age_category", store.set_age_category),
        ):
            value = change.get(name)
            if value and not setter(athlete_id, value):
                return f"Athlete {athlete_id} is not pending; {name.replace('_', ' ')} cannot be changed"
        return ""

    @action(detail=True, methods=["post"], url_path=r"flights/(?P<flight_number>\d+)/groups")
    def flight_groups(self, request, pk=None, flight_number=None):
        ser = FlightGroupsSerializer(data=request.data)
        if not ser.is_valid():
            return failure(first_error(ser.errors), data={"errors": ser.errors})
        data = ser.validated_data

        partitioner = FlightGroupPartitioner(
            OrmNominationRepository(user=request.user),
            int(pk),
            int(flight_number),
            number_of_groups=data["number_of_groups"],
            group_start_time=data.get("group_start_time"),
        )
        loaded = partitioner.load(data["weight_categories"])
        if not loaded.success:
            return envelope(loaded, failure_status=status.HTTP_404_NOT_FOUND)
        if "number_of_groups" in request.data:
            partitioner.set_number_of_groups(data["number_of_groups"])

        for move in data.get("moves", []):
            if not partitioner.move(move["nomination_id"], move["source"], move["destination"], move["index"]):
                return failure(
                    f"Nomination {move['nomination_id']} cannot be moved from "
                    f"{move['source']} to {move['destination']}",
                    status.HTTP_409_CONFLICT,
                    data=partitioner.to_dict(),
                )

        outcome = partitioner.commit()
        payload = {"outcome": outcome.to_dict(), "partition": partitioner.to_dict()}
        if not outcome.success:
            return failure("; ".join(outcome.messages), data=payload)
        return Response({"success": True, "data": payload, "error": ""})
