# folios/apps.py

"""
FOLIOS APP CONFIG

Per-stay guest sub-ledger:
- Folio (running account, aggregates)
- FolioItem (append-only charge / reversal lines)
- FolioPayment (immutable payment rows)
- FolioCloseOverride (audit trail for unpaid closes)
- DocumentSequence (race-free folio/invoice/receipt numbering)
"""

from django.apps import AppConfig


class FoliosConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "folios"
    verbose_name = "Guest Folios"
