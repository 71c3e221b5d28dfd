"""Unit tests for the transition executor"""

import pytest
from dataclasses import replace
from datetime import timedelta

from rental_lifecycle.domain.exceptions import EntityWriteError
from rental_lifecycle.domain.models import AutoDecide, Expire, MarkOverdue, Warn
from rental_lifecycle.domain.states import (
    ApplicationStatus,
    AutoProcessingPolicy,
    DecisionActor,
    LeaseStatus,
    PropertyStatus,
)
from rental_lifecycle.services.executor import TransitionExecutor
from fakes import NOW, FakeEntityStore, make_application, make_lease, make_property

SITE_URL = "https://rent.example"


def test_expire_releases_property_and_notifies_both_parties():
    prop = make_property(PropertyStatus.RENTED)
    lease = make_lease(prop, days_remaining=0)
    store = FakeEntityStore(leases=[lease], properties=[prop])

    outcome = TransitionExecutor(store, SITE_URL).apply_lease_events(lease, [Expire()], NOW)

    assert outcome.applied == [Expire()]
    assert store.leases[lease.id].status == LeaseStatus.EXPIRED
    assert store.leases[lease.id].version == lease.version + 1
    assert store.properties[prop.id].status == PropertyStatus.AVAILABLE
    assert sorted(n.recipient_id for n in outcome.notifications) == ["landlord-1", "tenant-1"]
    assert {n.dedupe_key for n in outcome.notifications} == {
        f"{lease.id}:lease_expired:tenant",
        f"{lease.id}:lease_expired:landlord",
    }


def test_expire_skips_property_write_when_already_available():
    """Test the cascade is guarded, not an error"""
    prop = make_property(PropertyStatus.AVAILABLE)
    lease = make_lease(prop, days_remaining=-2)
    store = FakeEntityStore(leases=[lease], properties=[prop])

    outcome = TransitionExecutor(store, SITE_URL).apply_lease_events(lease, [Expire()], NOW)

    assert outcome.applied == [Expire()]
    assert store.property_writes == 0
    assert store.properties[prop.id].version == prop.version


def test_stale_lease_version_is_a_no_op():
    """Test losing the race to another run yields a conflict, not an error"""
    prop = make_property(PropertyStatus.RENTED)
    lease = make_lease(prop, days_remaining=0)
    store = FakeEntityStore(leases=[replace(lease.expire(), version=2)], properties=[prop])

    outcome = TransitionExecutor(store, SITE_URL).apply_lease_events(lease, [Expire()], NOW)

    assert outcome.conflict is True
    assert outcome.applied == []
    assert outcome.notifications == []
    assert store.properties[prop.id].status == PropertyStatus.RENTED


def test_stale_property_rolls_back_lease_expiry():
    """Test the lease and its cascade commit together or not at all"""
    prop = make_property(PropertyStatus.RENTED)
    lease = make_lease(prop, days_remaining=0)
    store = FakeEntityStore(leases=[lease], properties=[replace(prop, version=5)])
    # Hand the executor a property snapshot one version behind the store
    original_get = store.get_property

    def stale_get(property_id):
        return replace(original_get(property_id), version=4)

    store.get_property = stale_get

    outcome = TransitionExecutor(store, SITE_URL).apply_lease_events(lease, [Expire()], NOW)

    assert outcome.conflict is True
    assert store.leases[lease.id].status == LeaseStatus.ACTIVE
    assert store.leases[lease.id].version == lease.version


def test_warnings_recorded_in_one_write_and_announced_once_to_both_parties():
    """Test a late run records every crossed threshold but warns once with the real day count"""
    prop = make_property()
    lease = make_lease(prop, days_remaining=5, sent={60, 30})
    store = FakeEntityStore(leases=[lease], properties=[prop])

    outcome = TransitionExecutor(store, SITE_URL).apply_lease_events(lease, [Warn(15), Warn(7)], NOW)

    stored = store.leases[lease.id]
    assert stored.sent_warning_thresholds == frozenset({60, 30, 15, 7})
    assert stored.status == LeaseStatus.EXPIRING
    assert stored.version == lease.version + 1
    assert outcome.count("warn") == 2
    assert sorted(n.recipient_id for n in outcome.notifications) == ["landlord-1", "tenant-1"]
    assert {n.dedupe_key for n in outcome.notifications} == {
        f"{lease.id}:lease_expiring_soon:7:tenant",
        f"{lease.id}:lease_expiring_soon:7:landlord",
    }
    for notification in outcome.notifications:
        assert notification.title == "Lease expires in 5 day(s)"
        assert notification.payload["days_remaining"] == 5
        assert notification.payload["threshold"] == 7
    assert store.property_writes == 0


def test_warning_on_threshold_day_reports_that_day():
    prop = make_property()
    lease = make_lease(prop, days_remaining=30, sent={60})
    store = FakeEntityStore(leases=[lease], properties=[prop])

    outcome = TransitionExecutor(store, SITE_URL).apply_lease_events(lease, [Warn(30)], NOW)

    assert [n.payload["days_remaining"] for n in outcome.notifications] == [30, 30]


def test_store_failure_raises_entity_write_error():
    prop = make_property()
    lease = make_lease(prop, days_remaining=7)
    store = FakeEntityStore(leases=[lease], properties=[prop])
    store.failing_ids.add(lease.id)

    with pytest.raises(EntityWriteError):
        TransitionExecutor(store, SITE_URL).apply_lease_events(lease, [Warn(7)], NOW)

    assert store.leases[lease.id] == lease


def test_overdue_and_auto_reject_committed_together():
    prop = make_property()
    application = make_application(prop, age=timedelta(days=10))
    store = FakeEntityStore(applications=[application], properties=[prop])

    outcome = TransitionExecutor(store, SITE_URL).apply_application_events(
        application, [MarkOverdue(), AutoDecide(AutoProcessingPolicy.AUTO_REJECT)]
    )

    stored = store.applications[application.id]
    assert stored.overdue is True
    assert stored.status == ApplicationStatus.REJECTED
    assert stored.auto_processed is True
    assert stored.decision_actor == DecisionActor.SYSTEM
    assert stored.version == application.version + 1
    assert outcome.count("mark_overdue") == 1
    assert outcome.count("auto_decide") == 1
    # Only the applicant hears about it
    assert [(n.recipient_id, n.category) for n in outcome.notifications] == [
        ("applicant-1", "application_rejected")
    ]


def test_overdue_notifies_landlord():
    prop = make_property()
    application = make_application(prop, age=timedelta(days=8))
    store = FakeEntityStore(applications=[application], properties=[prop])

    outcome = TransitionExecutor(store, SITE_URL).apply_application_events(application, [MarkOverdue()])

    assert store.applications[application.id].overdue is True
    assert store.applications[application.id].status == ApplicationStatus.PENDING
    assert [(n.recipient_id, n.category) for n in outcome.notifications] == [
        ("landlord-1", "application_overdue")
    ]


def test_no_events_touches_nothing():
    prop = make_property()
    lease = make_lease(prop, days_remaining=90)
    store = FakeEntityStore(leases=[lease], properties=[prop])

    outcome = TransitionExecutor(store, SITE_URL).apply_lease_events(lease, [], NOW)

    assert outcome.applied == []
    assert store.leases[lease.id].version == lease.version
