import bleach
from rest_framework import serializers

from clinic.models import Admission, Bill, Medicine, PurchaseOrder


class LineItemSerializer(serializers.Serializer):
    medicine_id = serializers.PrimaryKeyRelatedField(source='medicine', queryset=Medicine.objects.all())
    quantity = serializers.IntegerField(min_value=1, max_value=1_000_000)
    unit_price = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0)


class PurchaseOrderWriteSerializer(serializers.Serializer):
    vendor_name = serializers.CharField(min_length=2, max_length=255)
    vendor_contact = serializers.CharField(max_length=255, required=False, allow_blank=True)
    order_date = serializers.DateField(required=False)
    expected_delivery = serializers.DateField(required=False, allow_null=True)
    status = serializers.ChoiceField(
        choices=[s for s, _ in PurchaseOrder.STATUS_CHOICES if s != 'received'], required=False)
    notes = serializers.CharField(required=False, allow_blank=True)
    items = LineItemSerializer(many=True, required=False)

    def validate_vendor_name(self, v):
        return bleach.clean(v.strip(), strip=True)

    def validate(self, attrs):
        if not self.partial and not attrs.get('items'):
            raise serializers.ValidationError({'items': 'At least one item is required'})
        return attrs


class DonatedStockSerializer(serializers.Serializer):
    medicine_id = serializers.PrimaryKeyRelatedField(source='medicine', queryset=Medicine.objects.all())
    quantity = serializers.IntegerField(min_value=1)
    unit_value = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0, required=False, allow_null=True)
    expiry_date = serializers.DateField(required=False, allow_null=True)


class DonationCreateSerializer(serializers.Serializer):
    donor_name = serializers.CharField(min_length=1, max_length=255)
    phone = serializers.CharField(min_length=10, max_length=20)
    address = serializers.CharField(min_length=1)
    email = serializers.EmailField(required=False, allow_blank=True)
    amount = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=1)
    donation_date = serializers.DateField(required=False)
    notes = serializers.CharField(required=False, allow_blank=True)
    admission_id = serializers.PrimaryKeyRelatedField(
        source='admission', queryset=Admission.objects.all(), required=False, allow_null=True)
    stock_items = DonatedStockSerializer(many=True, required=False)

    def validate_donor_name(self, v):
        v = bleach.clean(v.strip(), strip=True)
        if not v:
            raise serializers.ValidationError('Donor name is required')
        return v

    def validate_phone(self, v):
        v = v.strip()
        if sum(c.isdigit() for c in v) < 10:
            raise serializers.ValidationError('Phone number must be at least 10 digits')
        return v


class BillItemSerializer(serializers.Serializer):
    description = serializers.CharField(max_length=255)
    quantity = serializers.IntegerField(min_value=1, default=1)
    unit_price = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0)


class BillWriteSerializer(serializers.Serializer):
    admission_id = serializers.PrimaryKeyRelatedField(source='admission', queryset=Admission.objects.all())
    invoice_date = serializers.DateField(required=False)
    due_date = serializers.DateField(required=False, allow_null=True)
    status = serializers.ChoiceField(choices=Bill.STATUS_CHOICES, required=False)
    tax_amount = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0, required=False)
    discount_amount = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0, required=False)
    paid_amount = serializers.DecimalField(max_digits=14, decimal_places=2, min_value=0, required=False)
    notes = serializers.CharField(required=False, allow_blank=True)
    items = BillItemSerializer(many=True, required=False)
