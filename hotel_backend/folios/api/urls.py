# folios/api/urls.py

"""
BILLING API URLS

Explicit non-PK routes are registered BEFORE router URLs.
"""

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from folios.api.viewsets import CheckInView, CheckOutView, FolioViewSet

router = DefaultRouter()
router.register(r"folios", FolioViewSet, basename="folios")

urlpatterns = [
    path("check-in/", CheckInView.as_view(), name="billing-check-in"),
    path("check-out/", CheckOutView.as_view(), name="billing-check-out"),
    path("", include(router.urls)),
]
