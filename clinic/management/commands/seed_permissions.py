from django.core.management.base import BaseCommand
from django.db import transaction

from clinic.models import RolePermission

ALL = ('view', 'add', 'edit', 'delete')
READ = ('view',)
WRITE = ('view', 'add', 'edit')

# admin and superadmin bypass the table and need no rows
DEFAULT_GRANTS = {
    'doctor': {
        'pets': WRITE, 'pet_owners': READ, 'admissions': WRITE, 'doctor_visits': ALL,
        'medicines': READ, 'treatments': READ, 'cages': READ, 'inventory': READ,
    },
    'receptionist': {
        'pets': WRITE, 'pet_owners': WRITE, 'admissions': WRITE, 'cages': READ, 'rooms': READ,
        'buildings': READ, 'donations': WRITE, 'billing': WRITE, 'pet_types': READ,
    },
    'store_keeper': {
        'medicines': ALL, 'inventory': ALL, 'purchase_orders': ALL, 'donations': READ,
    },
    'accountant': {
        'billing': ALL, 'donations': ALL, 'purchase_orders': READ, 'inventory': READ,
    },
    'staff': {
        'pets': READ, 'admissions': READ, 'cages': READ,
    },
}


class Command(BaseCommand):
    help = "Install the default role x module grants (idempotent)."

    def add_arguments(self, parser):
        parser.add_argument('--reset', action='store_true', help='Drop existing grants of the seeded roles first.')

    @transaction.atomic
    def handle(self, *args, **opts):
        if opts.get('reset'):
            deleted, _ = RolePermission.objects.filter(role__in=list(DEFAULT_GRANTS)).delete()
            self.stdout.write(f"removed {deleted} grants")
        created = 0
        for role, modules in DEFAULT_GRANTS.items():
            for module, perms in modules.items():
                for perm in perms:
                    _, was_created = RolePermission.objects.get_or_create(role=role, module=module, permission=perm)
                    created += int(was_created)
        self.stdout.write(self.style.SUCCESS(f"Default grants ensured ({created} new)."))
