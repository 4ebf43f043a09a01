"""
======================================================
PATH: invoices/api/viewsets.py
======================================================
INVOICE API (STAFF)

- GET  /api/invoices/                      list (filters: status, unpaid_only,
                                           issued_from, issued_to, invoice_number)
- GET  /api/invoices/<id>/                 retrieve
- POST /api/invoices/<id>/payments/        post-close payment    invoice.settle
- POST /api/invoices/<id>/mark-paid/       re-derive settlement  invoice.settle
- POST /api/invoices/<id>/cancel/          cancel (reason)       invoice.cancel
- GET  /api/invoices/<id>/export/          JSON export           invoice.view | folio.view
======================================================
"""

from __future__ import annotations

from drf_spectacular.utils import extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from folios.api.common import billing_error_response, resolve_hotel_id
from folios.services.exceptions import BillingError
from invoices.api.filters import InvoiceFilter
from invoices.api.serializers import (
    InvoiceCancelInputSerializer,
    InvoicePaymentInputSerializer,
    InvoicePaymentSerializer,
    InvoiceSerializer,
)
from invoices.models import Invoice
from invoices.services import invoice_service
from permissions.roles import (
    CAP_FOLIO_VIEW,
    CAP_INVOICE_CANCEL,
    CAP_INVOICE_SETTLE,
    CAP_INVOICE_VIEW,
    HasAnyCapability,
    HasCapability,
)


class InvoiceViewSet(viewsets.ReadOnlyModelViewSet):
    serializer_class = InvoiceSerializer
    permission_classes = [IsAuthenticated]
    filterset_class = InvoiceFilter
    lookup_value_regex = "[0-9a-f-]{36}"

    required_capability = None
    required_any_capabilities = {CAP_INVOICE_VIEW, CAP_FOLIO_VIEW}

    ACTION_CAPABILITIES = {
        "payments": CAP_INVOICE_SETTLE,
        "mark_paid": CAP_INVOICE_SETTLE,
        "cancel": CAP_INVOICE_CANCEL,
    }

    def get_permissions(self):
        if self.action == "export":
            return [IsAuthenticated(), HasAnyCapability()]

        self.required_capability = self.ACTION_CAPABILITIES.get(self.action, CAP_INVOICE_VIEW)
        return [IsAuthenticated(), HasCapability()]

    def get_serializer_class(self):
        return {
            "payments": InvoicePaymentInputSerializer,
            "cancel": InvoiceCancelInputSerializer,
        }.get(self.action, InvoiceSerializer)

    def get_queryset(self):
        qs = Invoice.objects.select_related("folio").prefetch_related("payments")

        hotel_id = resolve_hotel_id(self.request)
        if hotel_id is not None:
            qs = qs.filter(hotel_id=hotel_id)

        return qs.order_by("-issue_date")

    # ======================================================
    # POST-CLOSE PAYMENT
    # ======================================================

    @extend_schema(request=InvoicePaymentInputSerializer, responses={201: InvoicePaymentSerializer})
    @action(detail=True, methods=["post"], url_path="payments")
    def payments(self, request, pk=None):
        serializer = InvoicePaymentInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        data = serializer.validated_data
        try:
            payment = invoice_service.record_invoice_payment(
                invoice_id=pk,
                amount=data["amount"],
                method=data["method"],
                reference=data.get("reference", ""),
                payment_date=data.get("payment_date"),
                user=request.user,
                hotel_id=resolve_hotel_id(request),
            )
        except BillingError as exc:
            return billing_error_response(exc)

        return Response(InvoicePaymentSerializer(payment).data, status=status.HTTP_201_CREATED)

    # ======================================================
    # MARK PAID / SETTLEMENT REFRESH
    # ======================================================

    @extend_schema(request=None, responses={200: InvoiceSerializer})
    @action(detail=True, methods=["post"], url_path="mark-paid")
    def mark_paid(self, request, pk=None):
        try:
            invoice = invoice_service.mark_invoice_paid(
                invoice_id=pk,
                hotel_id=resolve_hotel_id(request),
            )
        except BillingError as exc:
            return billing_error_response(exc)

        return Response(InvoiceSerializer(invoice).data)

    # ======================================================
    # CANCEL
    # ======================================================

    @extend_schema(request=InvoiceCancelInputSerializer, responses={200: InvoiceSerializer})
    @action(detail=True, methods=["post"], url_path="cancel")
    def cancel(self, request, pk=None):
        serializer = InvoiceCancelInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            invoice = invoice_service.cancel_invoice(
                invoice_id=pk,
                reason=serializer.validated_data["reason"],
                user=request.user,
                hotel_id=resolve_hotel_id(request),
            )
        except BillingError as exc:
            return billing_error_response(exc)

        return Response(InvoiceSerializer(invoice).data)

    # ======================================================
    # EXPORT
    # ======================================================

    @extend_schema(responses={200: dict})
    @action(detail=True, methods=["get"], url_path="export")
    def export(self, request, pk=None):
        invoice = self.get_object()
        return Response(invoice_service.export_invoice(invoice))
