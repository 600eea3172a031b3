from dataclasses import dataclass
from unittest import mock

import pytest
from django.db import OperationalError
from django.test import TestCase

from shared.application.message_bus import MessageBus
from shared.application.uow import DjangoUnitOfWork, is_retryable_error, retry_on_conflict
from shared.domain.base import Aggregate, DomainEvent


@dataclass(kw_only=True)
class Pinged(DomainEvent):
    pass


class Pingable(Aggregate):
    pk = 1

    def ping(self):
        self.add_event(Pinged())


class UnitOfWorkTests(TestCase):
    def setUp(self) -> None:
        self.bus = MessageBus()
        self.received = []
        self.bus.register_event_handler(Pinged, self.received.append)

    def test_events_are_published_after_commit(self) -> None:
        aggregate = Pingable()
        with self.captureOnCommitCallbacks(execute=True) as callbacks:
            with DjangoUnitOfWork(self.bus) as uow:
                aggregate.ping()
                uow.collect_events(aggregate)
                self.assertEqual(self.received, [])

        self.assertEqual(len(callbacks), 1)
        self.assertEqual(len(self.received), 1)
        self.assertEqual(aggregate.events, [])

    def test_events_are_discarded_on_rollback(self) -> None:
        aggregate = Pingable()
        with self.captureOnCommitCallbacks(execute=True) as callbacks:
            with self.assertRaises(RuntimeError):
                with DjangoUnitOfWork(self.bus) as uow:
                    aggregate.ping()
                    uow.collect_events(aggregate)
                    raise RuntimeError("abort")

        self.assertEqual(callbacks, [])
        self.assertEqual(self.received, [])


def test_database_locked_is_retryable() -> None:
    assert is_retryable_error(OperationalError("database is locked"))
    assert not is_retryable_error(OperationalError("no such table: x"))
    assert not is_retryable_error(ValueError("database is locked"))


@pytest.mark.django_db(transaction=True)
def test_retry_on_conflict_reruns_outside_atomic_block() -> None:
    calls = []

    @retry_on_conflict(attempts=3, backoff=0)
    def flaky():
        calls.append(1)
        if len(calls) < 3:
            raise OperationalError("database is locked")
        return "done"

    assert flaky() == "done"
    assert len(calls) == 3


@pytest.mark.django_db(transaction=True)
def test_retry_on_conflict_gives_up_after_max_attempts() -> None:
    calls = []

    @retry_on_conflict(attempts=2, backoff=0)
    def always_locked():
        calls.append(1)
        raise OperationalError("database is locked")

    with pytest.raises(OperationalError):
        always_locked()
    assert len(calls) == 2


@pytest.mark.django_db
def test_retry_on_conflict_never_retries_inside_atomic_block() -> None:
    calls = []

    @retry_on_conflict(attempts=3, backoff=0)
    def locked():
        calls.append(1)
        raise OperationalError("database is locked")

    with mock.patch("shared.application.uow.time.sleep") as sleep:
        with pytest.raises(OperationalError):
            locked()
    assert len(calls) == 1
    sleep.assert_not_called()
