# invoices/admin.py

from django.contrib import admin

from folios.admin import ReadOnlyAdmin
from invoices.models import Invoice, InvoicePayment


class InvoicePaymentInline(admin.TabularInline):
    model = InvoicePayment
    extra = 0
    can_delete = False
    fields = ("amount", "method", "reference", "payment_date", "recorded_by")
    readonly_fields = fields

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Invoice)
class InvoiceAdmin(ReadOnlyAdmin):
    list_display = (
        "invoice_number",
        "status",
        "total_amount",
        "paid_amount",
        "balance_due",
        "issue_date",
        "due_date",
    )
    search_fields = ("invoice_number", "folio__folio_number")
    list_filter = ("hotel", "status", "issue_date")
    inlines = [InvoicePaymentInline]
