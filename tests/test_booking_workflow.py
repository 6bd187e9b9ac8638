import re

import pytest

from homeease.db.db_models import BookingStatus
from homeease.services import booking_workflow
from homeease.services.booking_workflow import InvalidTransition, check_transition


def test_filter_by_status_matches_only_requested_status():
    bookings = [{"status": "pending"}, {"status": "completed"}]
    assert booking_workflow.filter_by_status(bookings, "completed") == [{"status": "completed"}]


def test_filter_all_returns_everything():
    bookings = [{"status": "pending"}, {"status": "completed"}, {"status": "cancelled"}]
    assert booking_workflow.filter_by_status(bookings, "all") == bookings
    assert booking_workflow.filter_by_status(bookings, None) == bookings


def test_filter_with_unknown_status_is_empty():
    assert booking_workflow.filter_by_status([{"status": "pending"}], "archived") == []


@pytest.mark.parametrize("current,target", [
    ("pending", "accepted"),
    ("pending", "cancelled"),
    ("accepted", "in-progress"),
    ("accepted", "cancelled"),
    ("in-progress", "completed"),
])
def test_provider_allowed_transitions(current, target):
    assert check_transition(current, target, "provider") == BookingStatus(target)


@pytest.mark.parametrize("current,target", [
    ("completed", "pending"),
    ("completed", "cancelled"),
    ("cancelled", "pending"),
    ("pending", "completed"),
    ("pending", "in-progress"),
    ("in-progress", "cancelled"),
    ("accepted", "pending"),
])
def test_invalid_transitions_rejected(current, target):
    with pytest.raises(InvalidTransition):
        check_transition(current, target, "provider")


def test_same_status_rejected():
    with pytest.raises(InvalidTransition, match="already"):
        check_transition("accepted", "accepted", "provider")


def test_customer_may_only_cancel_pending():
    assert check_transition("pending", "cancelled", "customer") == BookingStatus.CANCELLED
    with pytest.raises(InvalidTransition):
        check_transition("pending", "accepted", "customer")
    with pytest.raises(InvalidTransition):
        check_transition("accepted", "cancelled", "customer")


def test_unknown_status_rejected():
    with pytest.raises(InvalidTransition, match="Unknown"):
        check_transition("pending", "archived", "provider")


def test_terminal_statuses():
    assert booking_workflow.is_terminal("completed")
    assert booking_workflow.is_terminal("cancelled")
    assert not booking_workflow.is_terminal("pending")
    assert booking_workflow.allowed_targets("completed", "provider") == set()
    assert booking_workflow.allowed_targets("pending", "admin") == set()


def test_count_by_status():
    counts = booking_workflow.count_by_status(
        [{"status": "pending"}, {"status": "pending"}, {"status": "completed"}]
    )
    assert counts["pending"] == 2
    assert counts["completed"] == 1
    assert counts["in-progress"] == 0


def test_booking_codes_are_unique():
    codes = {booking_workflow.generate_booking_code() for _ in range(200)}
    assert len(codes) == 200
    assert all(re.fullmatch(r"BOOK-\d+-[A-Z0-9]{6}", c) for c in codes)
