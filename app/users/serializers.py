"""
Serializers for the user API.
"""

from django.contrib.auth import get_user_model, authenticate
from django.utils.translation import gettext_lazy as _
from rest_framework import serializers

from .models import UserRole


SELF_REGISTRATION_ROLES = (UserRole.USER, UserRole.HOST)


class UserSerializer(serializers.ModelSerializer):
    """Serializer for the user object."""

    role = serializers.ChoiceField(
        choices=SELF_REGISTRATION_ROLES, default=UserRole.USER
    )

    class Meta:
        model = get_user_model()
        fields = ["email", "password", "full_name", "role"]
        extra_kwargs = {"password": {"write_only": True, "min_length": 5}}

    def create(self, validated_data):
        """Create and return a user with encrypted password."""
        return get_user_model().objects.create_user(**validated_data)

    def update(self, instance, validated_data):
        """Update and return user; the role cannot be changed here."""
        validated_data.pop("role", None)
        password = validated_data.pop("password", None)
        user = super().update(instance, validated_data)

        if password:
            user.set_password(password)
            user.save()

        return user


class UserNestedSerializer(serializers.ModelSerializer):
    """Read-only compact representation used inside other payloads."""

    class Meta:
        model = get_user_model()
        fields = ["id", "email", "full_name", "role"]
        read_only_fields = fields


class AuthTokenSerializer(serializers.Serializer):
    """Serializer for the user auth token."""

    email = serializers.EmailField()
    password = serializers.CharField(
        style={"input_type": "password"},
        trim_whitespace=False,
    )

    def validate(self, attrs):
        """Validate and authenticate the user."""
        user = authenticate(
            request=self.context.get("request"),
            username=attrs.get("email"),
            password=attrs.get("password"),
        )
        if not user:
            msg = _("Unable to authenticate with provided credentials.")
            raise serializers.ValidationError(msg, code="authorization")

        attrs["user"] = user
        return attrs
