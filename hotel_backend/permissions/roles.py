# permissions/roles.py

from __future__ import annotations

from typing import Optional

from rest_framework.permissions import BasePermission


# =========================================================
# ROLE CONSTANTS (STAFF JOB ROLES)
# =========================================================
ROLE_ADMIN = "admin"
ROLE_MANAGER = "manager"
ROLE_FRONT_DESK = "front_desk"
ROLE_CASHIER = "cashier"
ROLE_NIGHT_AUDITOR = "night_auditor"

STAFF_ROLES = {
    ROLE_ADMIN,
    ROLE_MANAGER,
    ROLE_FRONT_DESK,
    ROLE_CASHIER,
    ROLE_NIGHT_AUDITOR,
}


# =========================================================
# CAPABILITIES (THE REAL PERMISSION LANGUAGE)
# =========================================================
# Views protect capabilities, not raw roles.
CAP_FOLIO_VIEW = "folio.view"
CAP_FOLIO_POST = "folio.post"
CAP_FOLIO_VOID = "folio.void"
CAP_FOLIO_PAYMENT = "folio.payment"
CAP_FOLIO_CHECK_IN = "folio.check_in"
CAP_FOLIO_CHECK_OUT = "folio.check_out"
CAP_FOLIO_CLOSE_UNPAID = "folio.close_unpaid"  # sensitive: forced close with balance

CAP_INVOICE_VIEW = "invoice.view"
CAP_INVOICE_ISSUE = "invoice.issue"
CAP_INVOICE_SETTLE = "invoice.settle"
CAP_INVOICE_CANCEL = "invoice.cancel"

ALL_CAPABILITIES = {
    CAP_FOLIO_VIEW,
    CAP_FOLIO_POST,
    CAP_FOLIO_VOID,
    CAP_FOLIO_PAYMENT,
    CAP_FOLIO_CHECK_IN,
    CAP_FOLIO_CHECK_OUT,
    CAP_FOLIO_CLOSE_UNPAID,
    CAP_INVOICE_VIEW,
    CAP_INVOICE_ISSUE,
    CAP_INVOICE_SETTLE,
    CAP_INVOICE_CANCEL,
}


# =========================================================
# ROLE → CAPABILITY MAP
# =========================================================
ROLE_CAPABILITIES: dict[str, set[str]] = {
    ROLE_ADMIN: {
        *ALL_CAPABILITIES,
    },
    ROLE_MANAGER: {
        *ALL_CAPABILITIES,
    },
    ROLE_FRONT_DESK: {
        CAP_FOLIO_VIEW,
        CAP_FOLIO_POST,
        CAP_FOLIO_PAYMENT,
        CAP_FOLIO_CHECK_IN,
        CAP_FOLIO_CHECK_OUT,
        CAP_INVOICE_VIEW,
        CAP_INVOICE_ISSUE,
        # NOT void / close_unpaid / cancel: supervisor actions
    },
    ROLE_CASHIER: {
        CAP_FOLIO_VIEW,
        CAP_FOLIO_PAYMENT,
        CAP_INVOICE_VIEW,
        CAP_INVOICE_SETTLE,
    },
    ROLE_NIGHT_AUDITOR: {
        CAP_FOLIO_VIEW,
        CAP_FOLIO_POST,
        CAP_FOLIO_VOID,
        CAP_INVOICE_VIEW,
        CAP_INVOICE_ISSUE,
    },
}


def get_user_role(user) -> Optional[str]:
    return getattr(user, "role", None)


def effective_capabilities_for(request, user) -> set[str]:
    """
    Capabilities granted by role. Superusers hold everything.
    """
    if getattr(user, "is_superuser", False):
        return set(ALL_CAPABILITIES)

    return set(ROLE_CAPABILITIES.get(get_user_role(user), set()))


# =========================================================
# Capability Permissions
# =========================================================
class HasCapability(BasePermission):
    """
    Require a specific capability.

    Usage:
        permission_classes = [IsAuthenticated, HasCapability]
        view.required_capability = CAP_FOLIO_VOID
    """

    def has_permission(self, request, view):
        user = request.user
        if not user or not user.is_authenticated:
            return False

        required = getattr(view, "required_capability", None)
        if not required:
            # deny-by-default to avoid accidental open endpoints
            return False

        return required in effective_capabilities_for(request, user)


class HasAnyCapability(BasePermission):
    """
    Require ANY capability from a set.

    Usage:
        view.required_any_capabilities = {CAP_FOLIO_VIEW, CAP_INVOICE_VIEW}
    """

    def has_permission(self, request, view):
        user = request.user
        if not user or not user.is_authenticated:
            return False

        required = getattr(view, "required_any_capabilities", None)
        if not required:
            return False

        caps = effective_capabilities_for(request, user)
        return any(cap in caps for cap in set(required))
