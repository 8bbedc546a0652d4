import bleach
from rest_framework import serializers

from clinic.models import Admission, Medicine, Pet, Staff


def _clean(v):
    return bleach.clean((v or '').strip(), strip=True)


class AdmissionOwnerSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=100, required=False, allow_blank=True)
    phone = serializers.CharField(max_length=20, required=False, allow_blank=True)
    address = serializers.CharField(max_length=500, required=False, allow_blank=True)
    email = serializers.EmailField(required=False, allow_blank=True)


class AdmissionPetSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=100, required=False, allow_blank=True)
    species = serializers.CharField(max_length=100, required=False, allow_blank=True)
    breed = serializers.CharField(max_length=100, required=False, allow_blank=True)
    gender = serializers.ChoiceField(choices=Pet.GENDER_CHOICES, required=False, allow_blank=True)
    age = serializers.IntegerField(min_value=0, required=False, allow_null=True)
    weight = serializers.DecimalField(max_digits=7, decimal_places=2, min_value=0, required=False, allow_null=True)
    color = serializers.CharField(max_length=50, required=False, allow_blank=True)
    medical_notes = serializers.CharField(required=False, allow_blank=True)

    def validate_medical_notes(self, v):
        return _clean(v)


class AntibioticsSerializer(serializers.Serializer):
    day1 = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    day2 = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    day3 = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    day5 = serializers.CharField(required=False, allow_blank=True, allow_null=True)


class AdmissionWriteSerializer(serializers.Serializer):
    """Intake form: owner, pet and admission fields in one payload."""
    unknown_owner = serializers.BooleanField(default=False)
    owner = AdmissionOwnerSerializer(required=False)
    pet = AdmissionPetSerializer(required=False)

    admission_date = serializers.DateTimeField(required=False)
    status = serializers.ChoiceField(choices=Admission.STATUS_CHOICES, required=False)
    cage_id = serializers.UUIDField(required=False, allow_null=True)
    doctor_id = serializers.PrimaryKeyRelatedField(
        source='doctor', queryset=Staff.objects.all(), required=False, allow_null=True)
    brought_by_id = serializers.PrimaryKeyRelatedField(
        source='brought_by', queryset=Staff.objects.all(), required=False, allow_null=True)
    reason = serializers.CharField(required=False, allow_blank=True)
    diagnosis = serializers.CharField(required=False, allow_blank=True)
    symptoms = serializers.CharField(required=False, allow_blank=True)
    notes = serializers.CharField(required=False, allow_blank=True)
    xray_date = serializers.DateField(required=False, allow_null=True)
    operation_date = serializers.DateField(required=False, allow_null=True)
    antibiotics = AntibioticsSerializer(required=False)
    blood_test_report = serializers.CharField(required=False, allow_blank=True)
    payment_received = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0, required=False)

    def validate_reason(self, v):
        return _clean(v)

    def validate_notes(self, v):
        return _clean(v)

    def validate(self, attrs):
        creating = self.context.get('instance') is None
        if creating and not attrs.get('unknown_owner'):
            owner = attrs.get('owner') or {}
            if len((owner.get('name') or '').strip()) < 2:
                raise serializers.ValidationError({'owner': 'Owner name must be at least 2 characters'})
            if not (owner.get('phone') or '').strip():
                raise serializers.ValidationError({'owner': 'Owner phone is required'})
        return attrs


class AssignCageSerializer(serializers.Serializer):
    cage_id = serializers.UUIDField()


class DischargeSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=['discharged', 'deceased'], default='discharged')
    discharge_date = serializers.DateTimeField(required=False)


class ShiftSerializer(serializers.Serializer):
    temperature = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    urine = serializers.ChoiceField(choices=['yes', 'no', ''], required=False, allow_blank=True)
    urineAmount = serializers.CharField(required=False, allow_blank=True)
    stool = serializers.ChoiceField(choices=['yes', 'no', ''], required=False, allow_blank=True)
    stoolAmount = serializers.CharField(required=False, allow_blank=True)
    medication = serializers.CharField(required=False, allow_blank=True)

    def validate_temperature(self, v):
        if v in (None, ''):
            return None
        try:
            float(v)
        except (TypeError, ValueError):
            raise serializers.ValidationError('Temperature must be a number')
        return v


class PrescriptionInputSerializer(serializers.Serializer):
    medicine_id = serializers.PrimaryKeyRelatedField(source='medicine', queryset=Medicine.objects.all())
    dosage = serializers.CharField(max_length=100)
    frequency = serializers.CharField(max_length=100)
    duration = serializers.CharField(max_length=100, required=False, allow_blank=True)
    quantity = serializers.IntegerField(min_value=1, required=False, allow_null=True)
    instructions = serializers.CharField(required=False, allow_blank=True)


class TreatmentRecordSerializer(serializers.Serializer):
    date = serializers.DateField()
    morning = ShiftSerializer(required=False)
    evening = ShiftSerializer(required=False)
    observations = serializers.CharField(required=False, allow_blank=True)
    diagnosis = serializers.CharField(required=False, allow_blank=True)
    prescriptions = PrescriptionInputSerializer(many=True, required=False)

    def validate_observations(self, v):
        return _clean(v)
