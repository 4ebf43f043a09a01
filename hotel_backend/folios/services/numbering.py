"""
======================================================
PATH: folios/services/numbering.py
======================================================
DOCUMENT NUMBERING

Sequential, gap-free-per-commit numbers scoped per hotel per year:
- Folio:   F-2026-00001
- Invoice: INV-2026-00001
- Receipt: RCP-2026-00001

Allocation = transactional "read-last, increment" on a dedicated
DocumentSequence row held under SELECT ... FOR UPDATE.
Must be called inside the caller's transaction.atomic block so the
number commits (or rolls back) together with the document.
"""

from __future__ import annotations

from django.db import transaction
from django.utils import timezone

from folios.models import DocumentSequence

PREFIXES = {
    DocumentSequence.KIND_FOLIO: "F",
    DocumentSequence.KIND_INVOICE: "INV",
    DocumentSequence.KIND_RECEIPT: "RCP",
}

SEQUENCE_WIDTH = 5


def format_document_number(*, kind: str, year: int, value: int) -> str:
    return f"{PREFIXES[kind]}-{year}-{value:0{SEQUENCE_WIDTH}d}"


def allocate_document_number(*, hotel_id, kind: str, at=None) -> str:
    if kind not in PREFIXES:
        raise ValueError(f"Unknown document kind {kind!r}")

    if not transaction.get_connection().in_atomic_block:
        raise RuntimeError("Document numbers must be allocated inside a transaction")

    year = (at or timezone.now()).year

    # get_or_create absorbs the first-row creation race (IntegrityError -> re-get)
    sequence, _ = DocumentSequence.objects.get_or_create(
        hotel_id=hotel_id,
        kind=kind,
        year=year,
    )

    sequence = DocumentSequence.objects.select_for_update().get(pk=sequence.pk)
    sequence.last_value += 1
    sequence.save(update_fields=["last_value", "updated_at"])

    return format_document_number(kind=kind, year=year, value=sequence.last_value)
