from rest_framework import serializers
from django.contrib.auth.password_validation import validate_password
from .constants import ERROR_MESSAGES, VALIDATION_LIMITS
from .models import User, AuditLog


class UserSerializer(serializers.ModelSerializer):
    class Meta:
        model = User
        fields = ['id', 'username', 'email', 'first_name', 'last_name', 'phone', 'is_active', 'is_staff', 'is_superuser', 'created_at', 'updated_at']
        read_only_fields = ['is_staff', 'is_superuser', 'created_at', 'updated_at']


class UserCreateSerializer(serializers.ModelSerializer):
    password = serializers.CharField(write_only=True, validators=[validate_password])
    password_confirm = serializers.CharField(write_only=True)

    class Meta:
        model = User
        fields = ['username', 'email', 'password', 'password_confirm', 'first_name', 'last_name', 'phone']

    def validate(self, attrs):
        if attrs['password'] != attrs['password_confirm']:
            raise serializers.ValidationError({"password": "Passwords don't match"})
        return attrs

    def create(self, validated_data):
        validated_data.pop('password_confirm')
        password = validated_data.pop('password')
        user = User.objects.create(**validated_data, is_active=True)
        user.set_password(password)
        user.save()
        return user


class AuditLogSerializer(serializers.ModelSerializer):
    user = UserSerializer(read_only=True)

    class Meta:
        model = AuditLog
        fields = ['id', 'user', 'action', 'model_name', 'object_id', 'object_name',
                  'object_reference', 'changes', 'ip_address', 'created_at']


class ValidatedModelSerializer(serializers.ModelSerializer):
    """
    ModelSerializer with the shared input rules: end dates may not precede
    start dates and progress stays within 0..100.
    """
    date_range_fields = ()
    progress_field = None

    def _current(self, attrs, field):
        if field in attrs:
            return attrs[field]
        if self.instance is not None:
            return getattr(self.instance, field, None)
        return None

    def validate(self, attrs):
        attrs = super().validate(attrs)
        for start_field, end_field in self.date_range_fields:
            start = self._current(attrs, start_field)
            end = self._current(attrs, end_field)
            if start and end and end < start:
                raise serializers.ValidationError({end_field: ERROR_MESSAGES['DATE_RANGE_INVALID']})
        if self.progress_field and self.progress_field in attrs and attrs[self.progress_field] is not None:
            progress = attrs[self.progress_field]
            if progress < VALIDATION_LIMITS['PROGRESS_MIN'] or progress > VALIDATION_LIMITS['PROGRESS_MAX']:
                raise serializers.ValidationError({self.progress_field: 'Progress must be between 0 and 100'})
        return attrs
