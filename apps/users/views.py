"""User API views."""

from __future__ import annotations

from django.contrib.auth import get_user_model  # type: ignore
from rest_framework import mixins, permissions, status, viewsets  # type: ignore
from rest_framework.decorators import action  # type: ignore
from rest_framework.response import Response  # type: ignore

from apps.bookings.application.access import Requester
from apps.bookings.application.command_handlers import DeleteUserCommand
from apps.bookings.services import get_message_bus

from .serializers import AdminUserSerializer, UserSerializer

User = get_user_model()


class IsPrivileged(permissions.BasePermission):
    """Only fleet administrators manage other accounts."""

    def has_permission(self, request, view) -> bool:  # type: ignore
        user = request.user
        return bool(user.is_authenticated and getattr(user, "is_privileged", False))


class UserViewSet(
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    mixins.UpdateModelMixin,
    mixins.DestroyModelMixin,
    viewsets.GenericViewSet,
):
    """
    Profiles and account administration.

    - `me` reads, edits or deletes the caller's own account
    - list, retrieve, update and delete are for administrators
    - accounts are created and credentials issued elsewhere
    """

    queryset = User.objects.all()
    serializer_class = AdminUserSerializer
    permission_classes = [IsPrivileged]
    lookup_value_regex = "[0-9a-fA-F-]{36}"

    def destroy(self, request, *args, **kwargs):  # type: ignore
        user = self.get_object()
        return self._delete(request, user)

    @action(
        detail=False,
        methods=["get", "put", "patch", "delete"],
        permission_classes=[permissions.IsAuthenticated],
    )
    def me(self, request):
        """The caller's own profile."""
        if request.method == "GET":
            return Response(UserSerializer(request.user).data)
        if request.method == "DELETE":
            return self._delete(request, request.user)

        serializer = UserSerializer(
            request.user,
            data=request.data,
            partial=request.method == "PATCH",
        )
        serializer.is_valid(raise_exception=True)
        serializer.save()
        return Response(serializer.data)

    @staticmethod
    def _delete(request, user) -> Response:
        """Cancel the account's bookings, releasing their dates, then remove it."""
        cancelled = get_message_bus().handle(DeleteUserCommand(
            requester=Requester.from_user(request.user),
            user_id=user.pk,
        ))
        return Response({"id": str(user.pk), "bookings_cancelled": cancelled}, status=status.HTTP_200_OK)
