"""Django admin registrations for the clinic models."""

from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin

from .models import (
    Admission,
    AuditLog,
    Bill,
    BillItem,
    Building,
    Cage,
    DoctorVisit,
    DonatedStock,
    Donation,
    Medicine,
    Pet,
    PetOwner,
    PetType,
    POItem,
    Prescription,
    PurchaseOrder,
    RolePermission,
    Room,
    Staff,
    StaffType,
    Treatment,
    User,
    UserRole,
)


class UserRoleInline(admin.TabularInline):
    model = UserRole
    extra = 0


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    list_display = ('username', 'email', 'full_name', 'is_active', 'is_superuser')
    search_fields = ('username', 'email', 'full_name')
    fieldsets = BaseUserAdmin.fieldsets + (('Profile', {'fields': ('full_name', 'phone', 'avatar_url')}),)
    inlines = [UserRoleInline]


@admin.register(RolePermission)
class RolePermissionAdmin(admin.ModelAdmin):
    list_display = ('role', 'module', 'permission')
    list_filter = ('role', 'module', 'permission')


@admin.register(Building)
class BuildingAdmin(admin.ModelAdmin):
    list_display = ('name', 'address', 'active')
    search_fields = ('name',)


@admin.register(Room)
class RoomAdmin(admin.ModelAdmin):
    list_display = ('name', 'room_number', 'building', 'floor', 'active')
    list_filter = ('building', 'active')
    search_fields = ('name', 'room_number')


@admin.register(Cage)
class CageAdmin(admin.ModelAdmin):
    list_display = ('cage_number', 'room', 'size', 'max_pet_count', 'status', 'active')
    list_filter = ('status', 'size', 'active')
    search_fields = ('cage_number', 'name')


@admin.register(PetOwner)
class PetOwnerAdmin(admin.ModelAdmin):
    list_display = ('name', 'phone', 'email', 'active')
    search_fields = ('name', 'phone', 'email')


@admin.register(PetType)
class PetTypeAdmin(admin.ModelAdmin):
    list_display = ('name', 'active')


@admin.register(Pet)
class PetAdmin(admin.ModelAdmin):
    list_display = ('name', 'species', 'owner', 'microchip_id', 'removed', 'removal_reason')
    list_filter = ('species', 'removed', 'removal_reason')
    search_fields = ('name', 'microchip_id', 'owner__name', 'owner__phone')


@admin.register(StaffType)
class StaffTypeAdmin(admin.ModelAdmin):
    list_display = ('name', 'role_mapping', 'active')


@admin.register(Staff)
class StaffAdmin(admin.ModelAdmin):
    list_display = ('name', 'email', 'staff_type', 'user', 'active')
    list_filter = ('staff_type', 'active')
    search_fields = ('name', 'email', 'phone')


@admin.register(Admission)
class AdmissionAdmin(admin.ModelAdmin):
    list_display = ('admission_number', 'pet', 'status', 'cage', 'doctor', 'admission_date')
    list_filter = ('status',)
    search_fields = ('admission_number', 'pet__name', 'pet__owner__phone')


class PrescriptionInline(admin.TabularInline):
    model = Prescription
    extra = 0


@admin.register(DoctorVisit)
class DoctorVisitAdmin(admin.ModelAdmin):
    list_display = ('admission', 'doctor', 'visit_date')
    search_fields = ('admission__admission_number',)
    inlines = [PrescriptionInline]


@admin.register(Medicine)
class MedicineAdmin(admin.ModelAdmin):
    list_display = ('name', 'category', 'stock_quantity', 'reorder_level', 'active')
    list_filter = ('category', 'active')
    search_fields = ('name', 'generic_name')


@admin.register(Treatment)
class TreatmentAdmin(admin.ModelAdmin):
    list_display = ('name', 'base_cost', 'active')


class POItemInline(admin.TabularInline):
    model = POItem
    extra = 0


@admin.register(PurchaseOrder)
class PurchaseOrderAdmin(admin.ModelAdmin):
    list_display = ('po_number', 'vendor_name', 'status', 'total_amount', 'order_date', 'received_at')
    list_filter = ('status',)
    search_fields = ('po_number', 'vendor_name')
    inlines = [POItemInline]


class DonatedStockInline(admin.TabularInline):
    model = DonatedStock
    extra = 0


@admin.register(Donation)
class DonationAdmin(admin.ModelAdmin):
    list_display = ('receipt_number', 'donor_name', 'donor_phone', 'total_value', 'donation_date')
    search_fields = ('receipt_number', 'donor_name', 'donor_phone')
    inlines = [DonatedStockInline]


class BillItemInline(admin.TabularInline):
    model = BillItem
    extra = 0


@admin.register(Bill)
class BillAdmin(admin.ModelAdmin):
    list_display = ('invoice_number', 'admission', 'status', 'total_amount', 'paid_amount', 'invoice_date')
    list_filter = ('status',)
    search_fields = ('invoice_number',)
    inlines = [BillItemInline]


@admin.register(AuditLog)
class AuditLogAdmin(admin.ModelAdmin):
    list_display = ('action', 'table_name', 'record_id', 'user', 'created_at')
    list_filter = ('action', 'table_name')
    search_fields = ('record_id',)
