# folios/api/serializers.py

from decimal import Decimal

from rest_framework import serializers

from folios.models import Folio, FolioCloseOverride, FolioItem, FolioPayment


# ==========================================================
# READ SERIALIZERS
# ==========================================================


class FolioItemSerializer(serializers.ModelSerializer):
    class Meta:
        model = FolioItem
        fields = [
            "id",
            "entry_type",
            "description",
            "category",
            "quantity",
            "unit_price",
            "total_price",
            "tax_rate",
            "tax_amount",
            "service_date",
            "posted_at",
            "posted_by",
            "is_voided",
            "voided_at",
            "voided_by",
            "void_reason",
            "reference_id",
            "reference_type",
        ]
        read_only_fields = fields


class FolioPaymentSerializer(serializers.ModelSerializer):
    class Meta:
        model = FolioPayment
        fields = [
            "id",
            "receipt_number",
            "amount",
            "currency",
            "method",
            "status",
            "reference",
            "payment_date",
            "recorded_by",
        ]
        read_only_fields = fields


class FolioCloseOverrideSerializer(serializers.ModelSerializer):
    class Meta:
        model = FolioCloseOverride
        fields = ["authorized_by", "reason", "balance_due", "currency", "created_at"]
        read_only_fields = fields


class FolioSerializer(serializers.ModelSerializer):
    items = FolioItemSerializer(many=True, read_only=True)
    payments = FolioPaymentSerializer(many=True, read_only=True)
    close_override = FolioCloseOverrideSerializer(read_only=True)

    class Meta:
        model = Folio
        fields = [
            "id",
            "folio_number",
            "hotel",
            "booking",
            "guest",
            "status",
            "currency",
            "billing_name",
            "billing_address",
            "billing_email",
            "billing_phone",
            "subtotal",
            "tax_amount",
            "total_amount",
            "paid_amount",
            "balance_due",
            "payment_status",
            "opened_at",
            "opened_by",
            "closed_at",
            "closed_by",
            "items",
            "payments",
            "close_override",
        ]
        read_only_fields = fields


# ==========================================================
# COMMAND INPUT
# ==========================================================


class ChargeInputSerializer(serializers.Serializer):
    description = serializers.CharField(max_length=255)
    category = serializers.ChoiceField(choices=FolioItem.CATEGORY_CHOICES)
    quantity = serializers.DecimalField(
        max_digits=10, decimal_places=2, default=Decimal("1.00")
    )
    unit_price = serializers.DecimalField(max_digits=12, decimal_places=2)
    tax_rate = serializers.DecimalField(
        max_digits=5, decimal_places=2, default=Decimal("0.00")
    )
    service_date = serializers.DateTimeField(required=False, allow_null=True)
    reference_id = serializers.CharField(required=False, allow_blank=True, default="")
    reference_type = serializers.CharField(required=False, allow_blank=True, default="")


class VoidItemInputSerializer(serializers.Serializer):
    item_id = serializers.UUIDField()
    reason = serializers.CharField()


class PaymentInputSerializer(serializers.Serializer):
    amount = serializers.DecimalField(max_digits=12, decimal_places=2)
    method = serializers.ChoiceField(choices=FolioPayment.METHOD_CHOICES)
    currency = serializers.CharField(max_length=3, required=False, allow_blank=True)
    reference = serializers.CharField(required=False, allow_blank=True, default="")
    payment_date = serializers.DateTimeField(required=False, allow_null=True)


class CheckInInputSerializer(serializers.Serializer):
    booking_id = serializers.UUIDField()
    billing_name = serializers.CharField(required=False, allow_blank=True, default="")
    billing_address = serializers.CharField(required=False, allow_blank=True, default="")
    billing_email = serializers.EmailField(required=False, allow_blank=True, default="")
    billing_phone = serializers.CharField(required=False, allow_blank=True, default="")
    currency = serializers.CharField(max_length=3, required=False, allow_blank=True)
    nightly_rate = serializers.DecimalField(
        max_digits=12, decimal_places=2, required=False, min_value=Decimal("0.00")
    )
    room_tax_rate = serializers.DecimalField(
        max_digits=5, decimal_places=2, required=False, min_value=Decimal("0.00")
    )


class CheckOutInputSerializer(serializers.Serializer):
    booking_id = serializers.UUIDField()
    allow_unpaid = serializers.BooleanField(default=False)
    override_reason = serializers.CharField(required=False, allow_blank=True, default="")


class InvoiceOptionsInputSerializer(serializers.Serializer):
    due_date = serializers.DateField(required=False, allow_null=True)
    notes = serializers.CharField(required=False, allow_blank=True, default="")
    terms_and_conditions = serializers.CharField(
        required=False, allow_blank=True, default=""
    )
