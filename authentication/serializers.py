from rest_framework import serializers
from django.contrib.auth import authenticate
from django.contrib.auth.password_validation import validate_password

from production.roles import map_user_role
from .models import CustomUser


class UserDetailSerializer(serializers.ModelSerializer):
    """
    User serializer including the resolved workflow role
    """
    full_name = serializers.ReadOnlyField()
    role_display = serializers.CharField(source='get_role_display', read_only=True)
    workflow_role = serializers.SerializerMethodField()

    class Meta:
        model = CustomUser
        fields = [
            'id', 'email', 'username', 'first_name', 'last_name', 'full_name',
            'role', 'role_display', 'workflow_role', 'department',
            'is_active', 'date_joined', 'last_login'
        ]
        read_only_fields = ['id', 'date_joined', 'last_login']

    def get_workflow_role(self, obj):
        return map_user_role(obj.role)


class UserLoginSerializer(serializers.Serializer):
    """
    Email login. The email is matched case-insensitively since operators
    type it on shared plant tablets.
    """
    email = serializers.EmailField()
    password = serializers.CharField(write_only=True, trim_whitespace=False)

    def validate_email(self, value):
        return value.strip().lower()

    def validate(self, attrs):
        user = authenticate(
            request=self.context.get('request'),
            username=attrs['email'],
            password=attrs['password']
        )
        if user is None:
            raise serializers.ValidationError('Invalid email or password')
        if not user.is_active:
            raise serializers.ValidationError('This account has been deactivated')
        if not user.role:
            raise serializers.ValidationError('This account has no role assigned')
        attrs['user'] = user
        return attrs


class ChangePasswordSerializer(serializers.Serializer):
    """Checks the current password of the requesting user before accepting a new one"""
    old_password = serializers.CharField(trim_whitespace=False)
    new_password = serializers.CharField(trim_whitespace=False)
    new_password_confirm = serializers.CharField(trim_whitespace=False)

    def validate_old_password(self, value):
        user = self.context['request'].user
        if not user.check_password(value):
            raise serializers.ValidationError('Old password is incorrect')
        return value

    def validate(self, attrs):
        if attrs['new_password'] != attrs['new_password_confirm']:
            raise serializers.ValidationError({'new_password_confirm': 'Passwords do not match'})
        if attrs['new_password'] == attrs['old_password']:
            raise serializers.ValidationError({'new_password': 'The new password must be different'})
        validate_password(attrs['new_password'], user=self.context['request'].user)
        return attrs
