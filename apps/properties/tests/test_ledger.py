"""Tests for the blocked-range ledger."""

from __future__ import annotations

from django.test import TestCase

from apps.bookings.tests.factories import day, make_property
from apps.properties.ledger import BlockedRangeLedger, booking_tag, manual_tag
from apps.properties.models import BlockedRange
from shared.domain.value_objects import DateRange


class BlockedRangeLedgerTests(TestCase):
    def setUp(self) -> None:
        self.property = make_property()
        self.ledger = BlockedRangeLedger()

    def test_tags(self) -> None:
        self.assertEqual(booking_tag("abc"), "booking:abc")
        self.assertTrue(manual_tag().startswith("manual:"))
        self.assertNotEqual(manual_tag(), manual_tag())

    def test_retract_only_touches_its_tag(self) -> None:
        mine = manual_tag()
        theirs = manual_tag()
        self.ledger.create(self.property.pk, DateRange(day(1), day(3)), mine)
        self.ledger.create(self.property.pk, DateRange(day(5), day(7)), theirs)

        self.assertEqual(self.ledger.retract(mine), 1)

        self.assertFalse(self.ledger.has_active(mine))
        self.assertTrue(self.ledger.has_active(theirs))
        self.assertEqual(BlockedRange.objects.count(), 2)

    def test_retract_unknown_tag_is_a_no_op(self) -> None:
        self.assertEqual(self.ledger.retract("manual:missing"), 0)

    def test_active_ranges_use_half_open_overlap(self) -> None:
        self.ledger.create(self.property.pk, DateRange(day(5), day(8)), manual_tag())

        self.assertEqual(len(self.ledger.active_ranges_for(self.property.pk, DateRange(day(7), day(9)))), 1)
        self.assertEqual(self.ledger.active_ranges_for(self.property.pk, DateRange(day(8), day(9))), [])
        self.assertEqual(self.ledger.active_ranges_for(self.property.pk, DateRange(day(3), day(5))), [])

    def test_active_ranges_can_exclude_a_tag(self) -> None:
        tag = booking_tag("b1")
        self.ledger.create(self.property.pk, DateRange(day(5), day(8)), tag, kind=BlockedRange.Kind.BOOKING)
        self.assertEqual(
            self.ledger.active_ranges_for(self.property.pk, DateRange(day(5), day(8)), exclude_tag=tag),
            [],
        )

    def test_blocked_days_from_today_without_duplicates(self) -> None:
        self.ledger.create(self.property.pk, DateRange(day(-2), day(2)), manual_tag())
        self.ledger.create(self.property.pk, DateRange(day(1), day(3)), manual_tag())
        self.ledger.create(self.property.pk, DateRange(day(6), day(7)), manual_tag())
        retracted = manual_tag()
        self.ledger.create(self.property.pk, DateRange(day(10), day(12)), retracted)
        self.ledger.retract(retracted)

        days = self.ledger.blocked_days(self.property.pk, today=day(0))

        self.assertEqual(days, [day(0), day(1), day(2), day(6)])
