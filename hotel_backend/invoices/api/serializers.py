# invoices/api/serializers.py

from rest_framework import serializers

from folios.models import FolioPayment
from invoices.models import Invoice, InvoicePayment


class InvoicePaymentSerializer(serializers.ModelSerializer):
    class Meta:
        model = InvoicePayment
        fields = [
            "id",
            "amount",
            "method",
            "reference",
            "payment_date",
            "recorded_by",
        ]
        read_only_fields = fields


class InvoiceSerializer(serializers.ModelSerializer):
    folio_number = serializers.CharField(source="folio.folio_number", read_only=True)
    payments = InvoicePaymentSerializer(many=True, read_only=True)

    class Meta:
        model = Invoice
        fields = [
            "id",
            "invoice_number",
            "hotel",
            "folio",
            "folio_number",
            "status",
            "currency",
            "subtotal",
            "tax_amount",
            "total_amount",
            "prepaid_amount",
            "paid_amount",
            "balance_due",
            "bill_to",
            "issue_date",
            "due_date",
            "paid_date",
            "notes",
            "terms_and_conditions",
            "issued_by",
            "cancelled_at",
            "cancelled_by",
            "cancellation_reason",
            "payments",
        ]
        read_only_fields = fields


# ==========================================================
# COMMAND INPUT
# ==========================================================


class InvoicePaymentInputSerializer(serializers.Serializer):
    amount = serializers.DecimalField(max_digits=12, decimal_places=2)
    method = serializers.ChoiceField(choices=FolioPayment.METHOD_CHOICES)
    reference = serializers.CharField(required=False, allow_blank=True, default="")
    payment_date = serializers.DateTimeField(required=False, allow_null=True)


class InvoiceCancelInputSerializer(serializers.Serializer):
    reason = serializers.CharField()
