from rest_framework import serializers

from clinic.models import MODULE_CHOICES, PERMISSION_CHOICES, ROLE_CHOICES

ASSIGNABLE_ROLES = [r for r, _ in ROLE_CHOICES]


class GrantSerializer(serializers.Serializer):
    role = serializers.ChoiceField(choices=ROLE_CHOICES)
    module = serializers.ChoiceField(choices=MODULE_CHOICES)
    permission = serializers.ChoiceField(choices=PERMISSION_CHOICES)
    granted = serializers.BooleanField()


class RoleQuerySerializer(serializers.Serializer):
    role = serializers.ChoiceField(choices=ROLE_CHOICES)


class StaffRolesSerializer(serializers.Serializer):
    roles = serializers.ListField(child=serializers.ChoiceField(choices=ASSIGNABLE_ROLES), allow_empty=True)

    def validate_roles(self, v):
        if 'superadmin' in v and not self.context.get('caller_is_superadmin'):
            raise serializers.ValidationError('Only a superadmin can grant superadmin')
        return v
