# users/management/commands/seed_users.py

from __future__ import annotations

from dataclasses import dataclass

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand, CommandError
from django.db import transaction

from hotels.models import Hotel
from permissions.roles import (
    ROLE_ADMIN,
    ROLE_CASHIER,
    ROLE_FRONT_DESK,
    ROLE_MANAGER,
    ROLE_NIGHT_AUDITOR,
)


@dataclass(frozen=True)
class SeedUserSpec:
    label: str
    role: str
    local_part: str
    first_name: str = ""
    last_name: str = ""


SEED_USERS = [
    SeedUserSpec("Admin", ROLE_ADMIN, "admin", "System", "Admin"),
    SeedUserSpec("Manager", ROLE_MANAGER, "manager", "Duty", "Manager"),
    SeedUserSpec("Front desk", ROLE_FRONT_DESK, "frontdesk", "Front", "Desk"),
    SeedUserSpec("Cashier", ROLE_CASHIER, "cashier", "Night", "Cashier"),
    SeedUserSpec("Night auditor", ROLE_NIGHT_AUDITOR, "audit", "Night", "Auditor"),
]


class Command(BaseCommand):
    help = "Seed staff users for one hotel (idempotent)."

    def add_arguments(self, parser):
        parser.add_argument(
            "--hotel",
            type=str,
            required=True,
            help="Hotel code the staff belong to",
        )
        parser.add_argument(
            "--domain",
            type=str,
            default="example.com",
            help="Email domain for seeded users (default: example.com)",
        )
        parser.add_argument(
            "--password",
            type=str,
            default="Pass1234!",
            help="Password for seeded users (default: Pass1234!)",
        )
        parser.add_argument(
            "--force-password",
            action="store_true",
            help="Reset password for existing seeded users too.",
        )

    @transaction.atomic
    def handle(self, *args, **options):
        code = (options.get("hotel") or "").strip()
        domain = (options.get("domain") or "").strip().lower()
        password = options.get("password") or ""
        force_password = bool(options.get("force_password"))

        hotel = Hotel.objects.filter(code__iexact=code).first()
        if hotel is None:
            raise CommandError(f"Unknown hotel code '{code}'")

        if not password or len(password) < 6:
            raise CommandError("--password must be at least 6 characters.")

        User = get_user_model()

        self.stdout.write(f"Seeding staff for hotel '{hotel.code}' ...")

        created_count = 0
        updated_count = 0

        for spec in SEED_USERS:
            email = f"{spec.local_part}.{hotel.code.lower()}@{domain}"
            is_admin = spec.role == ROLE_ADMIN

            user = User.objects.filter(email__iexact=email).first()

            if user is None:
                User.objects.create_user(
                    email=email,
                    password=password,
                    first_name=spec.first_name,
                    last_name=spec.last_name,
                    role=spec.role,
                    hotel=hotel,
                    is_staff=True,
                    is_superuser=is_admin,
                )
                created_count += 1
                self.stdout.write(f"created: {spec.label} ({spec.role}) -> {email}")
                continue

            user.role = spec.role
            user.hotel = hotel
            user.is_staff = True
            user.is_superuser = is_admin
            user.is_active = True
            if force_password:
                user.set_password(password)
            user.save()

            updated_count += 1
            self.stdout.write(f"exists:  {spec.label} ({spec.role}) -> {email}")

        self.stdout.write("\n--- Summary ---")
        self.stdout.write(f"Created: {created_count}")
        self.stdout.write(f"Updated: {updated_count}")
