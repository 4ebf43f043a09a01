"""
======================================================
PATH: folios/api/viewsets.py
======================================================
FOLIO API (STAFF)

Read:
- GET  /api/billing/folios/                 list (filters: status, payment_status,
                                            guest, booking, opened_from, opened_to)
- GET  /api/billing/folios/<id>/            retrieve (items + payments)

Commands (thin wrappers over folios.services.front_desk):
- POST /api/billing/folios/<id>/charges/    add charge          folio.post
- POST /api/billing/folios/<id>/void-item/  void a charge       folio.void
- POST /api/billing/folios/<id>/payments/   record payment      folio.payment
- POST /api/billing/folios/<id>/invoice/    generate invoice    invoice.issue
- POST /api/billing/check-in/               open folio          folio.check_in
- POST /api/billing/check-out/              close folio         folio.check_out
                                            (+ folio.close_unpaid when allow_unpaid)

Every query and command is scoped to the requesting user's hotel.
======================================================
"""

from __future__ import annotations

from drf_spectacular.utils import extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from folios.api.common import billing_error_response, error_response, resolve_hotel_id
from folios.api.filters import FolioFilter
from folios.api.serializers import (
    ChargeInputSerializer,
    CheckInInputSerializer,
    CheckOutInputSerializer,
    FolioItemSerializer,
    FolioPaymentSerializer,
    FolioSerializer,
    InvoiceOptionsInputSerializer,
    PaymentInputSerializer,
    VoidItemInputSerializer,
)
from folios.models import Folio, FolioItem
from folios.services import front_desk
from folios.services.exceptions import BillingError
from folios.services import ledger
from folios.services.ledger import Charge
from invoices.api.serializers import InvoiceSerializer
from permissions.roles import (
    CAP_FOLIO_CHECK_IN,
    CAP_FOLIO_CHECK_OUT,
    CAP_FOLIO_CLOSE_UNPAID,
    CAP_FOLIO_PAYMENT,
    CAP_FOLIO_POST,
    CAP_FOLIO_VIEW,
    CAP_FOLIO_VOID,
    CAP_INVOICE_ISSUE,
    HasCapability,
    effective_capabilities_for,
)


class FolioViewSet(viewsets.ReadOnlyModelViewSet):
    serializer_class = FolioSerializer
    permission_classes = [IsAuthenticated]
    filterset_class = FolioFilter
    lookup_value_regex = "[0-9a-f-]{36}"

    required_capability = None

    ACTION_CAPABILITIES = {
        "charges": CAP_FOLIO_POST,
        "void_item": CAP_FOLIO_VOID,
        "payments": CAP_FOLIO_PAYMENT,
        "invoice": CAP_INVOICE_ISSUE,
    }

    def get_permissions(self):
        self.required_capability = self.ACTION_CAPABILITIES.get(self.action, CAP_FOLIO_VIEW)
        return [IsAuthenticated(), HasCapability()]

    def get_serializer_class(self):
        return {
            "charges": ChargeInputSerializer,
            "void_item": VoidItemInputSerializer,
            "payments": PaymentInputSerializer,
            "invoice": InvoiceOptionsInputSerializer,
        }.get(self.action, FolioSerializer)

    # ======================================================
    # QUERYSET
    # ======================================================

    def get_queryset(self):
        qs = Folio.objects.select_related("close_override").prefetch_related(
            "items",
            "payments",
        )

        hotel_id = resolve_hotel_id(self.request)
        if hotel_id is not None:
            qs = qs.filter(hotel_id=hotel_id)

        return qs.order_by("-opened_at")

    def _folio_response(self, folio_id, http_status=status.HTTP_200_OK):
        folio = self.get_queryset().get(pk=folio_id)
        return Response(FolioSerializer(folio).data, status=http_status)

    # ======================================================
    # ADD CHARGE
    # ======================================================

    @extend_schema(request=ChargeInputSerializer, responses={201: FolioItemSerializer})
    @action(detail=True, methods=["post"], url_path="charges")
    def charges(self, request, pk=None):
        serializer = ChargeInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            item = front_desk.add_charge(
                hotel_id=resolve_hotel_id(request),
                folio_id=pk,
                charge=Charge(**serializer.validated_data),
                user=request.user,
            )
        except BillingError as exc:
            return billing_error_response(exc)

        return Response(FolioItemSerializer(item).data, status=status.HTTP_201_CREATED)

    # ======================================================
    # VOID ITEM
    # ======================================================

    @extend_schema(request=VoidItemInputSerializer, responses={200: FolioSerializer})
    @action(detail=True, methods=["post"], url_path="void-item")
    def void_item(self, request, pk=None):
        serializer = VoidItemInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        hotel_id = resolve_hotel_id(request)
        item_id = serializer.validated_data["item_id"]

        if not FolioItem.objects.filter(pk=item_id, folio_id=pk).exists():
            return error_response(
                code="NOT_FOUND",
                message=f"Folio item {item_id} not found on this folio",
                http_status=status.HTTP_404_NOT_FOUND,
            )

        try:
            ledger.void_item(
                item_id=item_id,
                reason=serializer.validated_data["reason"],
                user=request.user,
                hotel_id=hotel_id,
            )
        except BillingError as exc:
            return billing_error_response(exc)

        return self._folio_response(pk)

    # ======================================================
    # RECORD PAYMENT
    # ======================================================

    @extend_schema(request=PaymentInputSerializer, responses={201: FolioPaymentSerializer})
    @action(detail=True, methods=["post"], url_path="payments")
    def payments(self, request, pk=None):
        serializer = PaymentInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            payment = front_desk.record_folio_payment(
                hotel_id=resolve_hotel_id(request),
                folio_id=pk,
                payment=serializer.validated_data,
                user=request.user,
            )
        except BillingError as exc:
            return billing_error_response(exc)

        return Response(FolioPaymentSerializer(payment).data, status=status.HTTP_201_CREATED)

    # ======================================================
    # GENERATE INVOICE (idempotent)
    # ======================================================

    @extend_schema(request=InvoiceOptionsInputSerializer, responses={200: InvoiceSerializer})
    @action(detail=True, methods=["post"], url_path="invoice")
    def invoice(self, request, pk=None):
        serializer = InvoiceOptionsInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            invoice = front_desk.generate_folio_invoice(
                hotel_id=resolve_hotel_id(request),
                folio_id=pk,
                options=serializer.validated_data,
                user=request.user,
            )
        except BillingError as exc:
            return billing_error_response(exc)

        return Response(InvoiceSerializer(invoice).data)


# ==========================================================
# CHECK-IN / CHECK-OUT
# ==========================================================


class CheckInView(APIView):
    permission_classes = [IsAuthenticated, HasCapability]
    required_capability = CAP_FOLIO_CHECK_IN
    serializer_class = CheckInInputSerializer

    @extend_schema(
        request=CheckInInputSerializer,
        responses={200: FolioSerializer},
        description="Check a booking in and open its folio (idempotent).",
    )
    def post(self, request):
        serializer = CheckInInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        data = dict(serializer.validated_data)
        booking_id = data.pop("booking_id")

        try:
            folio = front_desk.check_in(
                hotel_id=resolve_hotel_id(request),
                booking_id=booking_id,
                billing_info=data,
                user=request.user,
            )
        except BillingError as exc:
            return billing_error_response(exc)

        return Response(FolioSerializer(folio).data)


class CheckOutView(APIView):
    permission_classes = [IsAuthenticated, HasCapability]
    required_capability = CAP_FOLIO_CHECK_OUT
    serializer_class = CheckOutInputSerializer

    @extend_schema(
        request=CheckOutInputSerializer,
        responses={200: FolioSerializer},
        description="Check a booking out and close its folio.",
    )
    def post(self, request):
        serializer = CheckOutInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        data = serializer.validated_data

        if data["allow_unpaid"] and CAP_FOLIO_CLOSE_UNPAID not in effective_capabilities_for(
            request, request.user
        ):
            return error_response(
                code="FORBIDDEN",
                message="Closing a folio with an outstanding balance requires supervisor rights.",
                http_status=status.HTTP_403_FORBIDDEN,
            )

        try:
            folio = front_desk.check_out(
                hotel_id=resolve_hotel_id(request),
                booking_id=data["booking_id"],
                allow_unpaid=data["allow_unpaid"],
                override_reason=data["override_reason"],
                user=request.user,
            )
        except BillingError as exc:
            return billing_error_response(exc)

        return Response(FolioSerializer(folio).data)
