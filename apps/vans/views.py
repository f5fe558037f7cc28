"""API views for the fleet."""

from __future__ import annotations

from rest_framework import permissions, status, viewsets  # type: ignore
from rest_framework.decorators import action  # type: ignore
from rest_framework.response import Response  # type: ignore

from apps.bookings.application.access import Requester
from apps.bookings.application.command_handlers import DeleteVanCommand
from apps.bookings.services import get_message_bus, get_queries

from .models import Van
from .serializers import CalendarEntrySerializer, VanSerializer


class IsPrivilegedOrReadOnly(permissions.BasePermission):
    """Any signed-in user may read; only fleet administrators may write."""

    def has_permission(self, request, view) -> bool:  # type: ignore
        user = request.user
        if not user.is_authenticated:
            return False
        if request.method in permissions.SAFE_METHODS:
            return True
        return bool(getattr(user, "is_privileged", False))


class VanViewSet(viewsets.ModelViewSet):
    """Viewset for managing vans and reading their booking calendar."""

    queryset = Van.objects.all()
    serializer_class = VanSerializer
    permission_classes = [IsPrivilegedOrReadOnly]
    lookup_value_regex = "[0-9a-fA-F-]{36}"

    def destroy(self, request, *args, **kwargs):  # type: ignore
        van = self.get_object()
        deleted = get_message_bus().handle(DeleteVanCommand(
            requester=Requester.from_user(request.user),
            van_id=van.pk,
        ))
        return Response({"id": str(van.pk), "bookings_deleted": deleted}, status=status.HTTP_200_OK)

    @action(detail=True, methods=["get"])
    def calendar(self, request, pk=None):  # type: ignore
        van = self.get_object()
        entries = get_queries().van_calendar(van.pk)
        data = CalendarEntrySerializer(
            [{"start_date": d.start_date, "end_date": d.end_date, "days": d.days} for d in entries],
            many=True,
        ).data
        return Response(data)
