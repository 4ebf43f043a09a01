# guests/admin.py

from django.contrib import admin

from guests.models import Guest


@admin.register(Guest)
class GuestAdmin(admin.ModelAdmin):
    list_display = (
        "first_name",
        "last_name",
        "email",
        "loyalty_tier",
        "is_vip",
        "total_stays",
        "total_spent",
    )
    # Written only by folio close accrual
    readonly_fields = (
        "loyalty_tier",
        "is_vip",
        "total_stays",
        "total_spent",
        "last_stay_date",
    )
    search_fields = ("first_name", "last_name", "email", "phone")
    list_filter = ("hotel", "loyalty_tier", "is_vip")
