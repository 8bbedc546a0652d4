from django.core.management.base import BaseCommand

from clinic.models import User
from clinic.services import access

TEST_SET = [
    ("superadmin1", "superadmin"),
    ("admin1", "admin"),
    ("doctor1", "doctor"),
    ("reception1", "receptionist"),
    ("store1", "store_keeper"),
    ("accounts1", "accountant"),
    ("staff1", "staff"),
]


class Command(BaseCommand):
    help = "Ensure one demo login per role exists with password=Vetcare@123 (idempotent)."

    def add_arguments(self, parser):
        parser.add_argument('--password', default='Vetcare@123')

    def handle(self, *args, **opts):
        password = opts['password']
        for username, role in TEST_SET:
            u, created = User.objects.get_or_create(
                username=username,
                defaults={"email": f"{username}@vetcare.local", "full_name": username, "is_active": True},
            )
            u.set_password(password)
            u.is_active = True
            u.save(update_fields=["password", "is_active"])
            access.set_user_roles(u, [role])
            self.stdout.write(self.style.SUCCESS(f"ok: {username} ({role})"))
        self.stdout.write(self.style.SUCCESS("All test users ensured."))
