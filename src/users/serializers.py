from django.contrib.auth.password_validation import validate_password
from django.core import exceptions as django_exc
from rest_framework import serializers

from .models import CustomUser


class RegistrationSerializer(serializers.ModelSerializer):
    """Registration payload -> creates a regular lab user and hashes the password."""
    password = serializers.CharField(write_only=True, required=True, style={'input_type': 'password'})
    phone_number = serializers.CharField(required=False, allow_blank=True, max_length=30)

    class Meta:
        model = CustomUser
        fields = ('email', 'password', 'first_name', 'last_name', 'phone_number')

    def validate_password(self, value):
        try:
            validate_password(value)
        except django_exc.ValidationError as e:
            raise serializers.ValidationError(list(e.messages))
        return value

    def create(self, validated_data):
        return CustomUser.objects.create_user(
            email=validated_data['email'],
            password=validated_data['password'],
            first_name=validated_data.get('first_name', ''),
            last_name=validated_data.get('last_name', ''),
            phone_number=validated_data.get('phone_number', ''),
        )


class CustomUserSerializer(serializers.ModelSerializer):
    """Representation of a user; role and staff flags are read-only for API clients."""
    is_admin = serializers.BooleanField(read_only=True)

    class Meta:
        model = CustomUser
        fields = ('id', 'email', 'first_name', 'last_name', 'phone_number', 'role', 'is_admin')
        read_only_fields = ('id', 'email', 'role', 'is_admin')


class LoginSerializer(serializers.Serializer):
    email = serializers.EmailField(required=True)
    password = serializers.CharField(required=True, write_only=True, style={'input_type': 'password'})


class SimpleDetailSerializer(serializers.Serializer):
    detail = serializers.CharField()


class RegisterResponseSerializer(serializers.Serializer):
    detail = serializers.CharField()
    user = CustomUserSerializer()
