"""Blocked-range ledger.

Single writer for :class:`~apps.properties.models.BlockedRange` rows. Every
write joins the caller's transaction, so a reservation and the range derived
from it are committed or rolled back together.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import List, Optional
from uuid import UUID, uuid4

from django.db.models import Q  # type: ignore

from shared.domain.value_objects import DateRange, day_range

from .models import BlockedRange

logger = logging.getLogger(__name__)

BOOKING_TAG_PREFIX = "booking:"
MANUAL_TAG_PREFIX = "manual:"


def booking_tag(booking_id: UUID | str) -> str:
    return f"{BOOKING_TAG_PREFIX}{booking_id}"


def manual_tag() -> str:
    return f"{MANUAL_TAG_PREFIX}{uuid4()}"


def _overlapping(window: DateRange) -> Q:
    return Q(start_date__lt=window.end_date) & Q(end_date__gt=window.start_date)


class BlockedRangeLedger:
    """Create, retract and query the blocked ranges of properties."""

    def create(
        self,
        property_id: int,
        period: DateRange,
        tag: str,
        reason: str = "",
        kind: str = BlockedRange.Kind.MANUAL,
    ) -> BlockedRange:
        blocked = BlockedRange.objects.create(
            property_id=property_id,
            start_date=period.start_date,
            end_date=period.end_date,
            tag=tag,
            reason=reason[:255],
            kind=kind,
            is_active=True,
        )
        logger.debug(f"Blocked {period} on property {property_id} ({tag})")
        return blocked

    def retract(self, tag: str) -> int:
        """Deactivate every active range carrying ``tag``; no match is a no-op."""
        count = BlockedRange.objects.filter(tag=tag, is_active=True).update(is_active=False)
        if count:
            logger.debug(f"Retracted {count} blocked range(s) tagged {tag}")
        return count

    def active_ranges_for(
        self,
        property_id: int,
        window: DateRange,
        exclude_tag: Optional[str] = None,
    ) -> List[BlockedRange]:
        queryset = BlockedRange.objects.filter(property_id=property_id, is_active=True).filter(
            _overlapping(window)
        )
        if exclude_tag:
            queryset = queryset.exclude(tag=exclude_tag)
        return list(queryset.order_by("start_date", "pk"))

    def has_active(self, tag: str) -> bool:
        return BlockedRange.objects.filter(tag=tag, is_active=True).exists()

    def active_for_property(self, property_id: int, since: Optional[date] = None) -> List[BlockedRange]:
        queryset = BlockedRange.objects.filter(property_id=property_id, is_active=True)
        if since is not None:
            queryset = queryset.filter(end_date__gt=since)
        return list(queryset.order_by("start_date", "pk"))

    def blocked_days(self, property_id: int, today: date) -> List[date]:
        """Every blocked calendar day from ``today`` on, in order, without duplicates.

        Display only: availability decisions use interval overlap.
        """
        seen = set()
        days: List[date] = []
        for blocked in self.active_for_property(property_id, since=today):
            for day in day_range(max(blocked.start_date, today), blocked.end_date):
                if day not in seen:
                    seen.add(day)
                    days.append(day)
        return sorted(days)
