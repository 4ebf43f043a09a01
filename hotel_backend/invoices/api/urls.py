# invoices/api/urls.py

from rest_framework.routers import SimpleRouter

from invoices.api.viewsets import InvoiceViewSet

router = SimpleRouter()
router.register(r"", InvoiceViewSet, basename="invoices")

urlpatterns = router.urls
