"""
URL mappings for the clinic API.

Trailing slashes are omitted on every path; ``APPEND_SLASH`` is off so a
request with a trailing slash is a plain 404.
"""
from django.urls import path, include

from .auth_views import login_view, signup_view, session_view, jwt_refresh_view, logout_view
from .views import admissions, billing, dashboard, donations, facilities, health, masters, owners, purchasing, staff


urlpatterns = [
    path('metrics', include('django_prometheus.urls')),
    path('healthz', health.healthz, name='healthz'),
    # Authentication
    path('api/auth/login', login_view, name='login_view'),
    path('api/auth/signup', signup_view, name='signup_view'),
    path('api/auth/session', session_view, name='session_view'),
    path('api/auth/refresh', jwt_refresh_view, name='jwt_refresh_view'),
    path('api/auth/logout', logout_view, name='logout_view'),
    # Dashboards
    path('api/dashboard', dashboard.dashboard_view, name='dashboard'),
    path('api/doctor/dashboard', dashboard.doctor_dashboard_view, name='doctor_dashboard'),
    # Facilities
    path('api/buildings', facilities.buildings_list, name='buildings'),
    path('api/buildings/<uuid:pk>', facilities.building_detail, name='building_detail'),
    path('api/rooms', facilities.rooms_list, name='rooms'),
    path('api/rooms/<uuid:pk>', facilities.room_detail, name='room_detail'),
    path('api/cages', facilities.cages_list, name='cages'),
    path('api/cages/available', facilities.available_cages, name='available_cages'),
    path('api/cages/<uuid:pk>', facilities.cage_detail, name='cage_detail'),
    path('api/cages/<uuid:pk>/occupancy', facilities.cage_occupancy, name='cage_occupancy'),
    # Masters
    path('api/pet-types', masters.pet_types_list, name='pet_types'),
    path('api/pet-types/<uuid:pk>', masters.pet_type_detail, name='pet_type_detail'),
    path('api/staff-types', masters.staff_types_list, name='staff_types'),
    path('api/staff-types/<uuid:pk>', masters.staff_type_detail, name='staff_type_detail'),
    path('api/treatments', masters.treatments_list, name='treatments'),
    path('api/treatments/<uuid:pk>', masters.treatment_detail, name='treatment_detail'),
    path('api/medicines', masters.medicines_list, name='medicines'),
    path('api/medicines/<uuid:pk>', masters.medicine_detail, name='medicine_detail'),
    path('api/inventory', masters.inventory_view, name='inventory'),
    # Owners and pets
    path('api/owners', owners.owners_list, name='owners'),
    path('api/owners/<uuid:pk>', owners.owner_detail, name='owner_detail'),
    path('api/owners/<uuid:pk>/admissions', owners.owner_admissions, name='owner_admissions'),
    path('api/pets', owners.pets_list, name='pets'),
    path('api/pets/<uuid:pk>', owners.pet_detail, name='pet_detail'),
    path('api/pets/<uuid:pk>/remove', owners.pet_remove, name='pet_remove'),
    path('api/pets/<uuid:pk>/history', owners.pet_history, name='pet_history'),
    # Admissions
    path('api/admissions', admissions.admissions_list, name='admissions'),
    path('api/admissions/<uuid:pk>', admissions.admission_detail, name='admission_detail'),
    path('api/admissions/<uuid:pk>/assign-cage', admissions.admission_assign_cage, name='admission_assign_cage'),
    path('api/admissions/<uuid:pk>/discharge', admissions.admission_discharge, name='admission_discharge'),
    path('api/admissions/<uuid:pk>/treatment-record', admissions.treatment_record, name='treatment_record'),
    # Staff and roles
    path('api/staff', staff.staff_list, name='staff'),
    path('api/staff/create-auth', staff.create_staff_auth, name='create_staff_auth'),
    path('api/staff/doctors', staff.doctors_list, name='doctors'),
    path('api/staff/roles', staff.staff_roles_list, name='staff_roles_list'),
    path('api/staff/<uuid:pk>', staff.staff_detail, name='staff_detail'),
    path('api/staff/<uuid:pk>/deactivate', staff.staff_deactivate, name='staff_deactivate'),
    path('api/staff/<uuid:pk>/reactivate', staff.staff_reactivate, name='staff_reactivate'),
    path('api/staff/<uuid:pk>/roles', staff.staff_roles, name='staff_roles'),
    path('api/role-permissions', staff.role_permissions, name='role_permissions'),
    # Purchasing
    path('api/purchase-orders', purchasing.purchase_orders_list, name='purchase_orders'),
    path('api/purchase-orders/<uuid:pk>', purchasing.purchase_order_detail, name='purchase_order_detail'),
    path('api/purchase-orders/<uuid:pk>/receive', purchasing.purchase_order_receive, name='purchase_order_receive'),
    # Donations
    path('api/donations', donations.donations_list, name='donations'),
    path('api/donors', donations.donors_list, name='donors'),
    path('api/donations/<uuid:pk>', donations.donation_detail, name='donation_detail'),
    path('api/donations/<uuid:pk>/receipt', donations.donation_receipt, name='donation_receipt'),
    # Billing
    path('api/bills', billing.bills_list, name='bills'),
    path('api/bills/<uuid:pk>', billing.bill_detail, name='bill_detail'),
]
