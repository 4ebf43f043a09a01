# hotels/admin.py

from django.contrib import admin

from hotels.models import Booking, Hotel, Room, RoomType


@admin.register(Hotel)
class HotelAdmin(admin.ModelAdmin):
    list_display = ("name", "code", "currency", "room_tax_rate", "is_active")
    search_fields = ("name", "code")
    list_filter = ("is_active",)


@admin.register(RoomType)
class RoomTypeAdmin(admin.ModelAdmin):
    list_display = ("code", "name", "hotel", "base_rate")
    search_fields = ("code", "name")
    list_filter = ("hotel",)


@admin.register(Room)
class RoomAdmin(admin.ModelAdmin):
    list_display = ("number", "room_type", "hotel")
    search_fields = ("number",)
    list_filter = ("hotel", "room_type")


@admin.register(Booking)
class BookingAdmin(admin.ModelAdmin):
    list_display = (
        "confirmation_code",
        "guest",
        "room",
        "check_in_date",
        "check_out_date",
        "status",
    )
    readonly_fields = ("checked_in_at", "checked_out_at", "created_at", "updated_at")
    search_fields = ("confirmation_code", "guest__first_name", "guest__last_name")
    list_filter = ("hotel", "status", "check_in_date")
