"""Sidebar entries visible to a user."""
from typing import Dict, List

from clinic.services import access

# (key, title, path, module); module None means always shown
MENU = [
    ('dashboard', 'Dashboard', '/dashboard', None),
    ('owners', 'Pet Owners', '/owners', 'pet_owners'),
    ('pets', 'Pets', '/pets', 'pets'),
    ('admissions', 'Admissions', '/admissions', 'admissions'),
    ('donations', 'Donations', '/donations', 'donations'),
    ('donors', 'Donors', '/donors', 'donations'),
    ('buildings', 'Buildings', '/buildings', 'buildings'),
    ('rooms', 'Rooms', '/rooms', 'rooms'),
    ('cages', 'Cages', '/cages', 'cages'),
    ('staff', 'Staff', '/staff', 'staff'),
    ('staff_types', 'Staff Types', '/staff-types', 'staff_types'),
    ('role_management', 'Role Management', '/roles', 'role_management'),
    ('medicines', 'Medicines', '/medicines', 'medicines'),
    ('treatments', 'Treatments', '/treatments', 'treatments'),
    ('pet_types', 'Pet Types', '/pet-types', 'pet_types'),
    ('purchase_orders', 'Purchase Orders', '/purchase-orders', 'purchase_orders'),
    ('inventory', 'Inventory', '/inventory', 'inventory'),
    ('billing', 'Billing', '/billing', 'billing'),
    ('treatment_history', 'Treatment History', '/treatment-history', 'doctor_visits'),
]

DOCTOR_ENTRY = ('doctor_dashboard', 'Doctor Dashboard', '/doctor-dashboard', None)


def menu_for(user) -> List[Dict[str, str]]:
    matrix = access.permission_matrix(user)
    entries = [
        {'key': key, 'title': title, 'path': path}
        for key, title, path, module in MENU
        if module is None or 'view' in matrix.get(module, [])
    ]
    if access.is_admin(user) or access.has_role(user, 'doctor'):
        key, title, path, _ = DOCTOR_ENTRY
        entries.insert(1, {'key': key, 'title': title, 'path': path})
    return entries
