import bleach
from rest_framework import serializers


class LoginSerializer(serializers.Serializer):
    username = serializers.CharField()
    password = serializers.CharField()

    def validate_username(self, v):
        v = (v or '').strip()
        if not v:
            raise serializers.ValidationError('Email or username is required')
        return v

    def validate_password(self, v):
        if not v:
            raise serializers.ValidationError('Password is required')
        return v


class SignupSerializer(serializers.Serializer):
    email = serializers.EmailField(max_length=255)
    password = serializers.CharField(min_length=8, max_length=100, write_only=True)
    full_name = serializers.CharField(min_length=2, max_length=100)

    def validate_email(self, v):
        return v.strip().lower()

    def validate_full_name(self, v):
        return bleach.clean(v.strip(), strip=True)


class CreateStaffAuthSerializer(serializers.Serializer):
    staffId = serializers.UUIDField()
    email = serializers.EmailField(max_length=255)
    password = serializers.CharField(min_length=8, max_length=100, write_only=True)
    fullName = serializers.CharField(min_length=2, max_length=100)

    def validate_fullName(self, v):
        v = bleach.clean(v.strip(), strip=True)
        if len(v) < 2:
            raise serializers.ValidationError('Name must be at least 2 characters')
        return v
