import bleach
from rest_framework import serializers

from clinic.models import Pet, PetOwner


def _clean(v):
    return bleach.clean((v or '').strip(), strip=True)


class OwnerSerializer(serializers.ModelSerializer):
    name = serializers.CharField(min_length=2, max_length=100)
    phone = serializers.CharField(min_length=1, max_length=20)
    address = serializers.CharField(max_length=500, required=False, allow_blank=True)
    notes = serializers.CharField(max_length=2000, required=False, allow_blank=True)
    pet_count = serializers.IntegerField(read_only=True, required=False)

    class Meta:
        model = PetOwner
        fields = ['id', 'name', 'phone', 'email', 'address', 'notes', 'active', 'pet_count',
                  'created_at', 'updated_at']
        read_only_fields = ['id', 'created_at', 'updated_at']

    def validate_name(self, v):
        return _clean(v)

    def validate_phone(self, v):
        v = v.strip()
        if not v:
            raise serializers.ValidationError('Phone is required')
        return v

    def validate_address(self, v):
        return _clean(v)

    def validate_notes(self, v):
        return _clean(v)


class PetSerializer(serializers.ModelSerializer):
    owner_id = serializers.PrimaryKeyRelatedField(source='owner', queryset=PetOwner.objects.all())
    owner_name = serializers.CharField(source='owner.name', read_only=True)
    owner_phone = serializers.CharField(source='owner.phone', read_only=True)
    name = serializers.CharField(max_length=100, required=False, allow_blank=True)
    weight = serializers.DecimalField(max_digits=7, decimal_places=2, min_value=0, required=False, allow_null=True)

    class Meta:
        model = Pet
        fields = [
            'id', 'owner_id', 'owner_name', 'owner_phone', 'name', 'species', 'breed', 'gender', 'age', 'weight',
            'color', 'microchip_id', 'medical_notes', 'photo_url', 'active', 'removed', 'removal_reason',
            'removal_date', 'created_at', 'updated_at',
        ]
        read_only_fields = ['id', 'microchip_id', 'removed', 'removal_reason', 'removal_date',
                            'created_at', 'updated_at']

    def validate_name(self, v):
        return _clean(v) or 'Unknown'

    def validate_medical_notes(self, v):
        return _clean(v)


class RemovePetSerializer(serializers.Serializer):
    reason = serializers.ChoiceField(choices=Pet.REMOVAL_REASONS)
    removal_date = serializers.DateField(required=False)
