"""
PATH: invoices/management/commands/mark_overdue_invoices.py

Daily sweep: ISSUED invoices past their due date with an open balance
move to OVERDUE (settled ones move to PAID).

Safe to run repeatedly. Intended for cron / scheduler, e.g.:
    python manage.py mark_overdue_invoices --hotel LGS01
"""

from __future__ import annotations

from django.core.management.base import BaseCommand, CommandError

from hotels.models import Hotel
from invoices.models import Invoice
from invoices.services.invoice_service import refresh_overdue_invoices


class Command(BaseCommand):
    help = "Move past-due ISSUED invoices to OVERDUE (idempotent)."

    def add_arguments(self, parser):
        parser.add_argument(
            "--hotel",
            type=str,
            default="",
            help="Hotel code to restrict the sweep to (default: all hotels)",
        )

    def handle(self, *args, **options):
        code = (options.get("hotel") or "").strip()

        hotel_id = None
        if code:
            hotel = Hotel.objects.filter(code__iexact=code).first()
            if hotel is None:
                raise CommandError(f"Unknown hotel code '{code}'")
            hotel_id = hotel.id

        updated = refresh_overdue_invoices(hotel_id=hotel_id)

        overdue = sum(1 for inv in updated if inv.status == Invoice.STATUS_OVERDUE)
        paid = sum(1 for inv in updated if inv.status == Invoice.STATUS_PAID)

        self.stdout.write(f"Checked: {len(updated)}")
        self.stdout.write(f"Overdue: {overdue}")
        self.stdout.write(f"Paid: {paid}")
