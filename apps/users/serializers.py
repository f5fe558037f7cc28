"""Serializers for user profile and administration endpoints."""

from __future__ import annotations

from django.contrib.auth import get_user_model  # type: ignore
from rest_framework import serializers  # type: ignore

User = get_user_model()


class UserSerializer(serializers.ModelSerializer):
    """Profile fields a user may read and edit for themselves."""

    class Meta:
        model = User
        fields = [
            "id",
            "email",
            "first_name",
            "last_name",
            "date_of_birth",
            "address",
            "licence_number",
            "is_admin",
            "is_active",
            "date_joined",
        ]
        read_only_fields = ["id", "is_admin", "is_active", "date_joined"]

    def validate(self, attrs):  # type: ignore
        if "password" in self.initial_data:
            raise serializers.ValidationError(
                {"password": "Passwords cannot be changed through this endpoint."}
            )
        return attrs


class AdminUserSerializer(UserSerializer):
    """Administrators may also grant fleet rights and deactivate accounts."""

    class Meta(UserSerializer.Meta):
        read_only_fields = ["id", "date_joined"]
