# folios/admin.py

"""
Ledger rows are append-only: admin is a read-only window.
All mutations go through folios.services.
"""

from django.contrib import admin

from folios.models import (
    DocumentSequence,
    Folio,
    FolioCloseOverride,
    FolioItem,
    FolioPayment,
)


class ReadOnlyAdmin(admin.ModelAdmin):
    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


# ======================================================
# FOLIO ADMIN
# ======================================================


class FolioItemInline(admin.TabularInline):
    model = FolioItem
    extra = 0
    can_delete = False
    fields = (
        "entry_type",
        "description",
        "category",
        "quantity",
        "unit_price",
        "total_price",
        "tax_amount",
        "is_voided",
    )
    readonly_fields = fields

    def has_add_permission(self, request, obj=None):
        return False


class FolioPaymentInline(admin.TabularInline):
    model = FolioPayment
    extra = 0
    can_delete = False
    fields = ("receipt_number", "amount", "currency", "method", "payment_date")
    readonly_fields = fields

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Folio)
class FolioAdmin(ReadOnlyAdmin):
    list_display = (
        "folio_number",
        "billing_name",
        "status",
        "total_amount",
        "paid_amount",
        "balance_due",
        "payment_status",
        "opened_at",
    )
    search_fields = ("folio_number", "billing_name", "guest__last_name")
    list_filter = ("hotel", "status", "payment_status", "opened_at")
    inlines = [FolioItemInline, FolioPaymentInline]


# ======================================================
# AUDIT ADMIN
# ======================================================


@admin.register(FolioCloseOverride)
class FolioCloseOverrideAdmin(ReadOnlyAdmin):
    list_display = ("folio", "balance_due", "currency", "authorized_by", "created_at")
    search_fields = ("folio__folio_number",)
    list_filter = ("created_at",)


@admin.register(DocumentSequence)
class DocumentSequenceAdmin(ReadOnlyAdmin):
    list_display = ("hotel", "kind", "year", "last_value", "updated_at")
    list_filter = ("hotel", "kind", "year")
