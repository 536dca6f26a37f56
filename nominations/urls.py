"""URL configuration for the nominations API."""

from rest_framework.routers import DefaultRouter

from .api import AthleteViewSet, CompetitionViewSet, NominationViewSet

router = DefaultRouter()
router.register(r"nominations", NominationViewSet, basename="nomination")
router.register(r"athletes", AthleteViewSet, basename="athlete")
router.register(r"competitions", CompetitionViewSet, basename="competition")

urlpatterns = router.urls
