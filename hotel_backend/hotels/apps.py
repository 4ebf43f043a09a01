# hotels/apps.py

"""
HOTELS APP CONFIG

Property + room/rate catalog + booking references.

Billing reads from here:
- Hotel: owning property (folio/invoice numbering scope, room tax rate)
- RoomType: nightly base rate
- Booking: stay dates, agreed nightly rate, guest
"""

from django.apps import AppConfig


class HotelsConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "hotels"
    verbose_name = "Hotels & Bookings"
