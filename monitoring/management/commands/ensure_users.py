from django.core.management.base import BaseCommand, CommandError

from monitoring.models import User
from monitoring.validators import PASSWORD_POLICY

DEFAULT_SET = [
    ("admin", "admin@ward.local", "admin"),
    ("nurse", "nurse@ward.local", "user"),
]


class Command(BaseCommand):
    help = "Ensure the seed admin and staff accounts exist with the given password (idempotent)."

    def add_arguments(self, parser):
        parser.add_argument("--password", default="Secret1!", help="Password for every seeded account.")

    def handle(self, *args, **opts):
        password = opts["password"]
        if not PASSWORD_POLICY.match(password):
            raise CommandError("Password does not satisfy the password policy.")
        for username, email, role in DEFAULT_SET:
            u, created = User.objects.get_or_create(
                username=username,
                defaults={"email": email, "role": role, "is_active": True},
            )
            # Reset password, activation and role on every run.
            u.email = email
            u.role = role
            u.is_active = True
            u.set_password(password)
            u.save()
            self.stdout.write(self.style.SUCCESS(f"{'created' if created else 'ok'}: {username} ({role})"))
        self.stdout.write(self.style.SUCCESS("All seed users ensured."))
