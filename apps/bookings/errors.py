"""Typed reservation errors.

All of them derive from DRF's ``APIException`` so that the HTTP layer turns
them into the right status code without a translation table.
"""

from __future__ import annotations

import logging

from django.utils.translation import gettext_lazy as _  # type: ignore
from rest_framework import status  # type: ignore
from rest_framework.exceptions import APIException  # type: ignore

logger = logging.getLogger(__name__)


class ReservationError(APIException):
    """Base class for every error the reservation engine raises on purpose."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = _("Reservation request failed.")
    default_code = "reservation_error"


class InvalidInput(ReservationError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = _("Invalid reservation request.")
    default_code = "invalid_input"


class InvalidRange(InvalidInput):
    default_detail = _("Invalid date range.")
    default_code = "invalid_range"


class InvalidTransition(InvalidInput):
    default_detail = _("This status change is not allowed.")
    default_code = "invalid_transition"


class GroupSizeViolation(InvalidInput):
    default_detail = _("Group size is outside the limits of this tour.")
    default_code = "group_size_violation"


class NotAvailable(ReservationError):
    """Conflict with an existing reservation, block or capacity limit.

    ``reason`` is a short machine-readable tag (``booked``, ``blocked``,
    ``outside_window``, ...).
    """

    status_code = status.HTTP_409_CONFLICT
    default_detail = _("Not available for the selected dates.")
    default_code = "not_available"

    def __init__(self, reason: str | None = None, detail=None, code=None):
        self.reason = reason or self.default_code
        super().__init__(detail=detail, code=code)


class InsufficientCapacity(NotAvailable):
    default_detail = _("Not enough slots left on this schedule.")
    default_code = "insufficient_capacity"


InsufficientSlots = InsufficientCapacity


class NotFound(ReservationError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = _("Not found.")
    default_code = "not_found"


class AccessDenied(ReservationError):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = _("You are not allowed to perform this action.")
    default_code = "access_denied"


class InternalConsistency(ReservationError):
    """An invariant was about to be violated; the operation is aborted."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = _("Internal consistency error.")
    default_code = "internal_consistency"

    def __init__(self, detail=None, code=None):
        super().__init__(detail=detail, code=code)
        logger.error(f"Internal consistency violation: {self.detail}")
