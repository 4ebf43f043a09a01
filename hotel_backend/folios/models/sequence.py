# folios/models/sequence.py

from django.db import models


class DocumentSequence(models.Model):
    """
    Atomic counter per (hotel, kind, year).

    Incremented ONLY under select_for_update inside the caller's
    transaction (folios.services.numbering).
    """

    KIND_FOLIO = "FOLIO"
    KIND_INVOICE = "INVOICE"
    KIND_RECEIPT = "RECEIPT"

    KIND_CHOICES = [
        (KIND_FOLIO, "Folio"),
        (KIND_INVOICE, "Invoice"),
        (KIND_RECEIPT, "Receipt"),
    ]

    hotel = models.ForeignKey(
        "hotels.Hotel",
        on_delete=models.PROTECT,
        related_name="document_sequences",
    )
    kind = models.CharField(max_length=16, choices=KIND_CHOICES)
    year = models.PositiveIntegerField()

    last_value = models.PositiveIntegerField(default=0)

    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=["hotel", "kind", "year"],
                name="uniq_document_sequence_scope",
            ),
        ]

    def __str__(self):
        return f"{self.kind} {self.year} @ {self.last_value}"
