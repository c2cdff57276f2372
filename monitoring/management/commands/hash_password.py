from django.contrib.auth.hashers import make_password
from django.core.management.base import BaseCommand


class Command(BaseCommand):
    help = "Print a password hash suitable for seeding a user row by hand."

    def add_arguments(self, parser):
        parser.add_argument("password")
        parser.add_argument("--hasher", default="default",
                            help="Hasher name, e.g. bcrypt_sha256 or bcrypt (default: first configured).")

    def handle(self, *args, **opts):
        self.stdout.write(make_password(opts["password"], hasher=opts["hasher"]))
