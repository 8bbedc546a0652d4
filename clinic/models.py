"""
Database models for the VetCare backend.

The schema follows the hospital's day-to-day records: owners and their
pets, admissions into cages (building -> room -> cage), staff with roles
and the role/module permission grants, medicine stock with purchase
orders and donated stock, doctor visits, donations and billing.

Cage occupancy is never stored; it is counted from admissions whose
status is still open (see :mod:`clinic.services.cages`).
"""
from __future__ import annotations

import uuid
from decimal import Decimal

from django.conf import settings
from django.contrib.auth.models import AbstractUser
from django.core.validators import MinValueValidator
from django.db import models


ROLE_CHOICES = [
    ('superadmin', 'Super Administrator'),
    ('admin', 'Administrator'),
    ('doctor', 'Doctor'),
    ('receptionist', 'Receptionist'),
    ('store_keeper', 'Store Keeper'),
    ('accountant', 'Accountant'),
    ('staff', 'Staff'),
]
ADMIN_ROLES = frozenset({'superadmin', 'admin'})

MODULE_CHOICES = [
    ('pets', 'Pets'),
    ('pet_owners', 'Pet Owners'),
    ('admissions', 'Admissions'),
    ('doctor_visits', 'Doctor Visits'),
    ('inventory', 'Inventory'),
    ('billing', 'Billing'),
    ('medicines', 'Medicines'),
    ('buildings', 'Buildings'),
    ('rooms', 'Rooms'),
    ('cages', 'Cages'),
    ('staff', 'Staff'),
    ('staff_types', 'Staff Types'),
    ('treatments', 'Treatments'),
    ('pet_types', 'Pet Types'),
    ('role_management', 'Role Management'),
    ('donations', 'Donations'),
    ('purchase_orders', 'Purchase Orders'),
]

PERMISSION_CHOICES = [
    ('view', 'View'),
    ('add', 'Add'),
    ('edit', 'Edit'),
    ('delete', 'Delete'),
]


class TimestampedModel(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True


class User(AbstractUser):
    """Login account for hospital staff.

    Roles are not stored on the user; they live in :class:`UserRole` so a
    person can hold several (e.g. doctor and accountant).
    """
    full_name = models.CharField(max_length=255, blank=True)
    phone = models.CharField(max_length=20, blank=True)
    avatar_url = models.URLField(blank=True)

    def __str__(self) -> str:
        return self.full_name or self.username


class UserRole(models.Model):
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='roles')
    role = models.CharField(max_length=20, choices=ROLE_CHOICES)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=['user', 'role'], name='uniq_user_role'),
        ]

    def __str__(self) -> str:
        return f"{self.user_id}:{self.role}"


class RolePermission(models.Model):
    """A single grant. Presence of a row means allowed; absence means denied."""
    role = models.CharField(max_length=20, choices=ROLE_CHOICES)
    module = models.CharField(max_length=32, choices=MODULE_CHOICES)
    permission = models.CharField(max_length=10, choices=PERMISSION_CHOICES)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=['role', 'module', 'permission'], name='uniq_role_module_perm'),
        ]
        indexes = [models.Index(fields=['role'])]

    def __str__(self) -> str:
        return f"{self.role}:{self.module}:{self.permission}"


# ---------------------------------------------------------------------------
# Facility hierarchy
# ---------------------------------------------------------------------------

class Building(TimestampedModel):
    name = models.CharField(max_length=100)
    description = models.TextField(blank=True)
    address = models.TextField(blank=True)
    active = models.BooleanField(default=True)

    class Meta:
        ordering = ['name']

    def __str__(self) -> str:
        return self.name


class Room(TimestampedModel):
    building = models.ForeignKey(Building, on_delete=models.PROTECT, related_name='rooms')
    name = models.CharField(max_length=100)
    room_number = models.CharField(max_length=20, blank=True)
    floor = models.IntegerField(null=True, blank=True)
    description = models.TextField(blank=True)
    active = models.BooleanField(default=True)

    class Meta:
        ordering = ['name']

    def __str__(self) -> str:
        return f"{self.name} ({self.building.name})"


class Cage(TimestampedModel):
    STATUS_CHOICES = [
        ('available', 'Available'),
        ('occupied', 'Occupied'),
        ('maintenance', 'Maintenance'),
        ('reserved', 'Reserved'),
    ]
    SIZE_CHOICES = [
        ('small', 'Small'),
        ('medium', 'Medium'),
        ('large', 'Large'),
        ('extra_large', 'Extra Large'),
    ]
    room = models.ForeignKey(Room, on_delete=models.PROTECT, related_name='cages')
    cage_number = models.CharField(max_length=20)
    name = models.CharField(max_length=100, blank=True)
    size = models.CharField(max_length=20, choices=SIZE_CHOICES, blank=True)
    max_pet_count = models.PositiveIntegerField(default=1, validators=[MinValueValidator(1)])
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='available', db_index=True)
    notes = models.TextField(blank=True)
    active = models.BooleanField(default=True, db_index=True)

    class Meta:
        ordering = ['cage_number']

    def __str__(self) -> str:
        return self.name or self.cage_number


# ---------------------------------------------------------------------------
# Owners & pets
# ---------------------------------------------------------------------------

class PetOwner(TimestampedModel):
    name = models.CharField(max_length=100)
    # merge key for walk-in admissions and donations
    phone = models.CharField(max_length=20, db_index=True)
    email = models.EmailField(blank=True)
    address = models.TextField(blank=True)
    notes = models.TextField(blank=True)
    active = models.BooleanField(default=True)

    class Meta:
        ordering = ['name']

    def __str__(self) -> str:
        return f"{self.name} ({self.phone})"


class PetType(TimestampedModel):
    name = models.CharField(max_length=100, unique=True)
    description = models.TextField(blank=True)
    active = models.BooleanField(default=True)

    class Meta:
        ordering = ['name']

    def __str__(self) -> str:
        return self.name


class Pet(TimestampedModel):
    """An animal known to the hospital.

    Pets are never hard-deleted. Removing one sets ``removed`` with a reason
    and date; a pet removed as ``Cured`` still counts as active on the
    dashboard.
    """
    GENDER_CHOICES = [
        ('male', 'Male'),
        ('female', 'Female'),
    ]
    REMOVAL_REASONS = [
        ('Expired', 'Expired'),
        ('Cured', 'Cured'),
        ('Returned to owner', 'Returned to owner'),
    ]
    owner = models.ForeignKey(PetOwner, on_delete=models.PROTECT, related_name='pets')
    name = models.CharField(max_length=100)
    species = models.CharField(max_length=100, blank=True)
    breed = models.CharField(max_length=100, blank=True)
    gender = models.CharField(max_length=10, choices=GENDER_CHOICES, blank=True)
    age = models.PositiveIntegerField(null=True, blank=True)
    weight = models.DecimalField(max_digits=7, decimal_places=2, null=True, blank=True)
    color = models.CharField(max_length=50, blank=True)
    microchip_id = models.CharField(max_length=50, unique=True, null=True, blank=True)
    medical_notes = models.TextField(blank=True)
    photo_url = models.URLField(blank=True)
    active = models.BooleanField(default=True)
    removed = models.BooleanField(default=False, db_index=True)
    removal_reason = models.CharField(max_length=32, choices=REMOVAL_REASONS, blank=True)
    removal_date = models.DateField(null=True, blank=True)

    class Meta:
        ordering = ['-created_at']

    def __str__(self) -> str:
        return f"{self.name} ({self.species})"


# ---------------------------------------------------------------------------
# Staff
# ---------------------------------------------------------------------------

class StaffType(TimestampedModel):
    name = models.CharField(max_length=100, unique=True)
    description = models.TextField(blank=True)
    # role granted to a staff member of this type when a login is linked
    role_mapping = models.CharField(max_length=20, choices=ROLE_CHOICES, blank=True)
    active = models.BooleanField(default=True)

    class Meta:
        ordering = ['name']

    def __str__(self) -> str:
        return self.name


class Staff(TimestampedModel):
    user = models.OneToOneField(
        settings.AUTH_USER_MODEL, null=True, blank=True, on_delete=models.SET_NULL, related_name='staff_profile'
    )
    staff_type = models.ForeignKey(StaffType, null=True, blank=True, on_delete=models.SET_NULL, related_name='staff')
    name = models.CharField(max_length=100)
    email = models.EmailField(blank=True)
    phone = models.CharField(max_length=20, blank=True)
    specialization = models.CharField(max_length=255, blank=True)
    license_number = models.CharField(max_length=100, blank=True)
    active = models.BooleanField(default=True)

    class Meta:
        ordering = ['name']
        verbose_name_plural = 'staff'

    def __str__(self) -> str:
        return self.name


# ---------------------------------------------------------------------------
# Admissions & clinical records
# ---------------------------------------------------------------------------

class Admission(TimestampedModel):
    """A pet's stay from intake to discharge."""
    STATUS_CHOICES = [
        ('pending', 'Pending'),
        ('admitted', 'Admitted'),
        ('discharged', 'Discharged'),
        ('deceased', 'Deceased'),
    ]
    # statuses that hold a place in a cage
    OCCUPYING_STATUSES = ('admitted', 'pending')

    admission_number = models.CharField(max_length=32, unique=True)
    pet = models.ForeignKey(Pet, on_delete=models.CASCADE, related_name='admissions')
    admission_date = models.DateTimeField()
    discharge_date = models.DateTimeField(null=True, blank=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='pending', db_index=True)
    cage = models.ForeignKey(Cage, null=True, blank=True, on_delete=models.SET_NULL, related_name='admissions')
    doctor = models.ForeignKey(
        Staff, null=True, blank=True, on_delete=models.SET_NULL, related_name='assigned_admissions'
    )
    brought_by = models.ForeignKey(
        Staff, null=True, blank=True, on_delete=models.SET_NULL, related_name='brought_admissions'
    )
    admitted_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, null=True, blank=True, on_delete=models.SET_NULL, related_name='+'
    )
    reason = models.TextField(blank=True)
    diagnosis = models.TextField(blank=True)
    symptoms = models.TextField(blank=True)
    notes = models.TextField(blank=True)
    xray_date = models.DateField(null=True, blank=True)
    operation_date = models.DateField(null=True, blank=True)
    antibiotics_schedule = models.JSONField(null=True, blank=True)
    blood_test_report = models.TextField(blank=True)
    payment_received = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0'))

    class Meta:
        ordering = ['-admission_date']
        indexes = [
            models.Index(fields=['cage', 'status']),
            models.Index(fields=['doctor', 'status']),
        ]

    def __str__(self) -> str:
        return self.admission_number


class DoctorVisit(TimestampedModel):
    """One treatment record per admission per day.

    ``vitals`` holds ``{date, morning: {...}, evening: {...}}`` where each
    shift carries temperature, urine/stool flags with amounts and the
    medication given.
    """
    admission = models.ForeignKey(Admission, on_delete=models.CASCADE, related_name='visits')
    doctor = models.ForeignKey(Staff, null=True, blank=True, on_delete=models.SET_NULL, related_name='visits')
    visit_date = models.DateTimeField()
    vitals = models.JSONField(default=dict, blank=True)
    observations = models.TextField(blank=True)
    diagnosis = models.TextField(blank=True)
    notes = models.TextField(blank=True)

    class Meta:
        ordering = ['-visit_date']

    def __str__(self) -> str:
        return f"visit {self.admission_id} @ {self.visit_date:%Y-%m-%d}"


class Medicine(TimestampedModel):
    name = models.CharField(max_length=255)
    generic_name = models.CharField(max_length=255, blank=True)
    manufacturer = models.CharField(max_length=255, blank=True)
    category = models.CharField(max_length=100, blank=True)
    unit = models.CharField(max_length=50)
    unit_price = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0'))
    stock_quantity = models.IntegerField(default=0)
    reorder_level = models.IntegerField(default=10)
    expiry_date = models.DateField(null=True, blank=True)
    notes = models.TextField(blank=True)
    active = models.BooleanField(default=True)

    class Meta:
        ordering = ['name']

    @property
    def is_low_stock(self) -> bool:
        return self.stock_quantity <= self.reorder_level

    @property
    def stock_status(self) -> str:
        if self.stock_quantity <= 0:
            return 'out_of_stock'
        if self.is_low_stock:
            return 'low_stock'
        return 'in_stock'

    def __str__(self) -> str:
        return self.name


class Prescription(TimestampedModel):
    visit = models.ForeignKey(DoctorVisit, on_delete=models.CASCADE, related_name='prescriptions')
    medicine = models.ForeignKey(Medicine, on_delete=models.PROTECT, related_name='prescriptions')
    dosage = models.CharField(max_length=100)
    frequency = models.CharField(max_length=100)
    duration = models.CharField(max_length=100, blank=True)
    quantity = models.PositiveIntegerField(null=True, blank=True)
    instructions = models.TextField(blank=True)


class Treatment(TimestampedModel):
    name = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    base_cost = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0'))
    active = models.BooleanField(default=True)

    class Meta:
        ordering = ['name']

    def __str__(self) -> str:
        return self.name


# ---------------------------------------------------------------------------
# Purchasing
# ---------------------------------------------------------------------------

class PurchaseOrder(TimestampedModel):
    STATUS_CHOICES = [
        ('draft', 'Draft'),
        ('submitted', 'Submitted'),
        ('approved', 'Approved'),
        ('received', 'Received'),
        ('cancelled', 'Cancelled'),
    ]
    CLOSED_STATUSES = ('received', 'cancelled')

    po_number = models.CharField(max_length=32, unique=True)
    vendor_name = models.CharField(max_length=255)
    vendor_contact = models.CharField(max_length=255, blank=True)
    order_date = models.DateField()
    expected_delivery = models.DateField(null=True, blank=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='draft', db_index=True)
    total_amount = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal('0'))
    notes = models.TextField(blank=True)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, null=True, blank=True, on_delete=models.SET_NULL, related_name='+'
    )
    received_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ['-created_at']

    def __str__(self) -> str:
        return self.po_number


class POItem(TimestampedModel):
    purchase_order = models.ForeignKey(PurchaseOrder, on_delete=models.CASCADE, related_name='items')
    medicine = models.ForeignKey(Medicine, on_delete=models.PROTECT, related_name='po_items')
    quantity = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    unit_price = models.DecimalField(max_digits=12, decimal_places=2)
    total_price = models.DecimalField(max_digits=14, decimal_places=2)


# ---------------------------------------------------------------------------
# Donations
# ---------------------------------------------------------------------------

class Donation(TimestampedModel):
    receipt_number = models.CharField(max_length=32, unique=True)
    donor = models.ForeignKey(PetOwner, null=True, blank=True, on_delete=models.SET_NULL, related_name='donations')
    admission = models.ForeignKey(
        Admission, null=True, blank=True, on_delete=models.SET_NULL, related_name='donations'
    )
    donor_name = models.CharField(max_length=255)
    donor_phone = models.CharField(max_length=20, blank=True, db_index=True)
    donor_email = models.EmailField(blank=True)
    donor_address = models.TextField(blank=True)
    donation_date = models.DateField()
    total_value = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0'))
    notes = models.TextField(blank=True)
    received_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, null=True, blank=True, on_delete=models.SET_NULL, related_name='+'
    )

    class Meta:
        ordering = ['-donation_date', '-created_at']

    def __str__(self) -> str:
        return self.receipt_number


class DonatedStock(TimestampedModel):
    donation = models.ForeignKey(Donation, on_delete=models.CASCADE, related_name='stock_items')
    medicine = models.ForeignKey(Medicine, on_delete=models.PROTECT, related_name='donated_stock')
    quantity = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    unit_value = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    expiry_date = models.DateField(null=True, blank=True)


# ---------------------------------------------------------------------------
# Billing
# ---------------------------------------------------------------------------

class Bill(TimestampedModel):
    STATUS_CHOICES = [
        ('draft', 'Draft'),
        ('pending', 'Pending'),
        ('paid', 'Paid'),
        ('cancelled', 'Cancelled'),
    ]
    invoice_number = models.CharField(max_length=32, unique=True)
    admission = models.ForeignKey(Admission, on_delete=models.PROTECT, related_name='bills')
    invoice_date = models.DateField()
    due_date = models.DateField(null=True, blank=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='draft', db_index=True)
    subtotal = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal('0'))
    tax_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0'))
    discount_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0'))
    total_amount = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal('0'))
    paid_amount = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal('0'))
    notes = models.TextField(blank=True)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, null=True, blank=True, on_delete=models.SET_NULL, related_name='+'
    )

    class Meta:
        ordering = ['-invoice_date', '-created_at']

    def __str__(self) -> str:
        return self.invoice_number


class BillItem(TimestampedModel):
    bill = models.ForeignKey(Bill, on_delete=models.CASCADE, related_name='items')
    description = models.CharField(max_length=255)
    quantity = models.PositiveIntegerField(default=1, validators=[MinValueValidator(1)])
    unit_price = models.DecimalField(max_digits=12, decimal_places=2)
    total_price = models.DecimalField(max_digits=14, decimal_places=2)


# ---------------------------------------------------------------------------
# Audit
# ---------------------------------------------------------------------------

class AuditLog(models.Model):
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True)
    action = models.CharField(max_length=64)
    table_name = models.CharField(max_length=64, blank=True)
    record_id = models.CharField(max_length=64, blank=True)
    old_data = models.JSONField(null=True, blank=True)
    new_data = models.JSONField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        indexes = [
            models.Index(fields=['action', 'created_at']),
            models.Index(fields=['table_name', 'record_id', 'created_at']),
        ]
