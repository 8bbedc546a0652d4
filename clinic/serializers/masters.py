"""Serializers for master data: facilities, types, medicines and staff."""
from rest_framework import serializers

from clinic.models import ROLE_CHOICES, Building, Cage, Medicine, PetType, Room, Staff, StaffType, Treatment
from clinic.services.cages import current_pet_count


class NameMixin:
    min_name_length = 2

    def validate_name(self, value):
        value = (value or '').strip()
        if len(value) < self.min_name_length:
            raise serializers.ValidationError(f'Name must be at least {self.min_name_length} characters')
        return value


class BuildingSerializer(NameMixin, serializers.ModelSerializer):
    room_count = serializers.IntegerField(read_only=True, required=False)

    class Meta:
        model = Building
        fields = ['id', 'name', 'description', 'address', 'active', 'room_count', 'created_at', 'updated_at']
        read_only_fields = ['id', 'created_at', 'updated_at']


class RoomSerializer(NameMixin, serializers.ModelSerializer):
    min_name_length = 1
    building_id = serializers.PrimaryKeyRelatedField(source='building', queryset=Building.objects.all())
    building_name = serializers.CharField(source='building.name', read_only=True)

    class Meta:
        model = Room
        fields = [
            'id', 'building_id', 'building_name', 'name', 'room_number', 'floor', 'description', 'active',
            'created_at', 'updated_at',
        ]
        read_only_fields = ['id', 'created_at', 'updated_at']


class CageSerializer(serializers.ModelSerializer):
    room_id = serializers.PrimaryKeyRelatedField(source='room', queryset=Room.objects.all())
    room_name = serializers.CharField(source='room.name', read_only=True)
    building_name = serializers.CharField(source='room.building.name', read_only=True)
    max_pet_count = serializers.IntegerField(min_value=1)
    current_count = serializers.IntegerField(read_only=True, required=False)

    class Meta:
        model = Cage
        fields = [
            'id', 'room_id', 'room_name', 'building_name', 'cage_number', 'name', 'size', 'max_pet_count',
            'current_count', 'status', 'notes', 'active', 'created_at', 'updated_at',
        ]
        read_only_fields = ['id', 'created_at', 'updated_at']

    def validate_cage_number(self, value):
        value = (value or '').strip()
        if not value:
            raise serializers.ValidationError('Cage number is required')
        return value

    def validate_max_pet_count(self, value):
        if self.instance is not None:
            occupied = current_pet_count(self.instance)
            if value < occupied:
                raise serializers.ValidationError(f'Cage currently holds {occupied} pets')
        return value


class PetTypeSerializer(NameMixin, serializers.ModelSerializer):
    class Meta:
        model = PetType
        fields = ['id', 'name', 'description', 'active', 'created_at', 'updated_at']
        read_only_fields = ['id', 'created_at', 'updated_at']


class StaffTypeSerializer(NameMixin, serializers.ModelSerializer):
    min_name_length = 1
    role_mapping = serializers.ChoiceField(
        choices=[r for r, _ in ROLE_CHOICES if r != 'superadmin'],
        required=False, allow_blank=True, allow_null=True,
    )

    class Meta:
        model = StaffType
        fields = ['id', 'name', 'description', 'role_mapping', 'active', 'created_at', 'updated_at']
        read_only_fields = ['id', 'created_at', 'updated_at']

    def validate_role_mapping(self, value):
        return value or ''


class TreatmentSerializer(NameMixin, serializers.ModelSerializer):
    base_cost = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0)

    class Meta:
        model = Treatment
        fields = ['id', 'name', 'description', 'base_cost', 'active', 'created_at', 'updated_at']
        read_only_fields = ['id', 'created_at', 'updated_at']


class MedicineSerializer(NameMixin, serializers.ModelSerializer):
    unit_price = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0)
    stock_quantity = serializers.IntegerField(min_value=0)
    reorder_level = serializers.IntegerField(min_value=0)
    is_low_stock = serializers.BooleanField(read_only=True)
    stock_status = serializers.CharField(read_only=True)

    class Meta:
        model = Medicine
        fields = [
            'id', 'name', 'generic_name', 'manufacturer', 'category', 'unit', 'unit_price', 'stock_quantity',
            'reorder_level', 'expiry_date', 'notes', 'active', 'is_low_stock', 'stock_status',
            'created_at', 'updated_at',
        ]
        read_only_fields = ['id', 'created_at', 'updated_at']


class StaffSerializer(NameMixin, serializers.ModelSerializer):
    staff_type_id = serializers.PrimaryKeyRelatedField(
        source='staff_type', queryset=StaffType.objects.all(), required=False, allow_null=True,
    )
    staff_type_name = serializers.CharField(source='staff_type.name', read_only=True, default=None)
    user_id = serializers.ReadOnlyField()
    has_login = serializers.SerializerMethodField()
    # optional: creates the login together with the staff record
    password = serializers.CharField(write_only=True, required=False, allow_blank=True, min_length=8, max_length=100)

    class Meta:
        model = Staff
        fields = [
            'id', 'name', 'email', 'phone', 'staff_type_id', 'staff_type_name', 'specialization',
            'license_number', 'active', 'user_id', 'has_login', 'password', 'created_at', 'updated_at',
        ]
        read_only_fields = ['id', 'created_at', 'updated_at']

    def get_has_login(self, obj) -> bool:
        return obj.user_id is not None

    def validate(self, attrs):
        if attrs.get('password') and not (attrs.get('email') or getattr(self.instance, 'email', '')):
            raise serializers.ValidationError({'email': 'Email is required for login'})
        return attrs
