"""API views for managing reviews."""

from __future__ import annotations

from rest_framework import permissions, viewsets  # type: ignore

from .models import Review
from .serializers import ReviewSerializer


class IsReviewerOrAdmin(permissions.BasePermission):
    """Allow renters to manage their reviews and admins to manage all."""

    def has_object_permission(self, request, view, obj: Review) -> bool:  # type: ignore
        if request.method in permissions.SAFE_METHODS:
            return True
        user = request.user
        if getattr(user, "is_privileged", False):
            return True
        return obj.user_id == user.pk


class ReviewViewSet(viewsets.ModelViewSet):
    """Viewset for creating, retrieving, editing and deleting reviews."""

    queryset = Review.objects.select_related('booking', 'user').all()
    serializer_class = ReviewSerializer
    permission_classes = [permissions.IsAuthenticated, IsReviewerOrAdmin]
    filterset_fields = ['booking', 'rating']

    def perform_create(self, serializer):  # type: ignore
        serializer.save(user=self.request.user)
