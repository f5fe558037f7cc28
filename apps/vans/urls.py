"""URL routing for the fleet."""

from django.urls import include, path  # type: ignore
from rest_framework.routers import DefaultRouter  # type: ignore

from .views import VanViewSet

router = DefaultRouter()
router.register(r"", VanViewSet, basename="van")

urlpatterns = [path("", include(router.urls))]
