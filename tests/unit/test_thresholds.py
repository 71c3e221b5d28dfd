"""Unit tests for deadline evaluation"""

from dataclasses import replace
from datetime import timedelta

from rental_lifecycle.domain.models import AutoDecide, Expire, MarkOverdue, Warn
from rental_lifecycle.domain.policy import ApplicationRules
from rental_lifecycle.domain.states import ApplicationStatus, AutoProcessingPolicy
from rental_lifecycle.domain.thresholds import evaluate_application, evaluate_lease
from rental_lifecycle.utils.date_utils import days_until
from fakes import NOW, SCHEDULE, make_application, make_lease, make_property

RULES = ApplicationRules(sla=timedelta(days=7), grace=timedelta(days=3), policy=AutoProcessingPolicy.AUTO_REJECT)


def test_days_until_rounds_partial_days_up():
    """Test a lease ending in 4.2 days still has 5 days remaining"""
    assert days_until(NOW + timedelta(days=4, hours=5), NOW) == 5
    assert days_until(NOW + timedelta(days=5), NOW) == 5
    assert days_until(NOW - timedelta(hours=1), NOW) == 0


def test_lease_far_from_end_has_no_events():
    lease = make_lease(make_property(), days_remaining=90)
    assert evaluate_lease(lease, SCHEDULE, NOW) == []


def test_lease_exact_threshold_warns():
    """Test daysRemaining == 60 yields the 60-day warning only"""
    lease = make_lease(make_property(), days_remaining=60)
    assert evaluate_lease(lease, SCHEDULE, NOW) == [Warn(60)]


def test_lease_reports_every_crossed_threshold():
    """Test a delayed run still reports the skipped 7-day threshold"""
    lease = make_lease(make_property(), days_remaining=5)

    events = evaluate_lease(lease, SCHEDULE, NOW)

    # Least urgent first; sent thresholds are filtered later by the guard
    assert events == [Warn(60), Warn(30), Warn(15), Warn(7)]


def test_lease_one_day_remaining_warns_without_expiring():
    lease = make_lease(make_property(), days_remaining=1)
    events = evaluate_lease(lease, SCHEDULE, NOW)

    assert Expire() not in events
    assert events[-1] == Warn(1)


def test_lease_at_or_past_end_only_expires():
    """Test expiry suppresses every warning in the same run"""
    prop = make_property()
    assert evaluate_lease(make_lease(prop, days_remaining=0), SCHEDULE, NOW) == [Expire()]
    assert evaluate_lease(make_lease(prop, days_remaining=-3), SCHEDULE, NOW) == [Expire()]


def test_evaluate_lease_does_not_mutate_snapshot():
    lease = make_lease(make_property(), days_remaining=5, sent={60})
    before = replace(lease)

    evaluate_lease(lease, SCHEDULE, NOW)

    assert lease == before


def test_application_within_sla_has_no_events():
    application = make_application(make_property(), age=timedelta(days=6))
    assert evaluate_application(application, RULES, NOW) == []


def test_application_past_sla_marked_overdue():
    application = make_application(make_property(), age=timedelta(days=8))
    assert evaluate_application(application, RULES, NOW) == [MarkOverdue()]


def test_application_past_grace_overdue_and_auto_decided():
    """Test 10 days old, 7-day SLA, 3-day grace, autoReject"""
    application = make_application(make_property(), age=timedelta(days=10))

    events = evaluate_application(application, RULES, NOW)

    assert events == [MarkOverdue(), AutoDecide(AutoProcessingPolicy.AUTO_REJECT)]


def test_application_already_overdue_only_auto_decides():
    application = make_application(make_property(), age=timedelta(days=11), overdue=True)
    assert evaluate_application(application, RULES, NOW) == [AutoDecide(AutoProcessingPolicy.AUTO_REJECT)]


def test_application_policy_disabled_never_auto_decides():
    application = make_application(make_property(), age=timedelta(days=30))
    rules = replace(RULES, policy=AutoProcessingPolicy.DISABLED)

    assert evaluate_application(application, rules, NOW) == [MarkOverdue()]


def test_decided_application_has_no_events():
    application = make_application(make_property(), age=timedelta(days=30), status=ApplicationStatus.WITHDRAWN)
    assert evaluate_application(application, RULES, NOW) == []
