from datetime import datetime
from types import SimpleNamespace

import pytest

from homeease.db.db_models import User
from homeease.services import booking_service, provider_approval
from homeease.services.provider_approval import ApprovalError


def _provider(**fields):
    defaults = dict(id="p1", name="Pro", email="pro@example.com", password_hash="x",
                    role="provider", status="active", approval_status="pending")
    defaults.update(fields)
    return User(**defaults)


def test_approve_pending_provider():
    provider = provider_approval.approve(_provider(), "admin-1")
    assert provider.approval_status == "approved"
    assert provider.status == "active"
    assert provider.approved_by == "admin-1"
    assert provider.approval_date is not None


def test_reject_records_reason_and_blocks_account():
    provider = provider_approval.reject(_provider(), "admin-1", "Missing CNIC")
    assert provider.approval_status == "rejected"
    assert provider.status == "rejected"
    assert provider.rejection_reason == "Missing CNIC"
    assert provider.rejected_by == "admin-1"


def test_rejected_provider_can_be_approved_later():
    provider = provider_approval.reject(_provider(), "admin-1", "Blurry documents")
    provider_approval.approve(provider, "admin-2")
    assert provider.status == "active"
    assert provider.rejection_reason is None


def test_repeat_decisions_rejected():
    with pytest.raises(ApprovalError):
        provider_approval.approve(_provider(approval_status="approved"), "admin-1")
    with pytest.raises(ApprovalError):
        provider_approval.reject(_provider(approval_status="rejected"), "admin-1")


def test_only_providers_are_vetted():
    with pytest.raises(ApprovalError):
        provider_approval.approve(_provider(role="customer", approval_status=None), "admin-1")


def test_booking_analytics_summary():
    day1 = datetime(2030, 1, 1, 9)
    day2 = datetime(2030, 1, 2, 9)
    bookings = [
        SimpleNamespace(status="completed", estimated_cost=1000.0, created_at=day1),
        SimpleNamespace(status="cancelled", estimated_cost=500.0, created_at=day1),
        SimpleNamespace(status="pending", estimated_cost=700.0, created_at=day2),
        SimpleNamespace(status="completed", estimated_cost=300.0, created_at=day2),
    ]
    result = booking_service.booking_analytics(bookings, day1, day2)
    summary = result["summary"]
    assert summary["total_bookings"] == 4
    assert summary["completed_bookings"] == 2
    assert summary["cancelled_bookings"] == 1
    assert summary["pending_bookings"] == 1
    assert summary["total_revenue"] == 1300.0
    assert summary["completion_rate"] == 50.0
    assert summary["cancellation_rate"] == 25.0
    assert result["bookings_by_date"] == {
        "2030-01-01": {"bookings": 2, "revenue": 1000.0},
        "2030-01-02": {"bookings": 2, "revenue": 300.0},
    }


def test_booking_analytics_empty_window():
    now = datetime(2030, 1, 1)
    summary = booking_service.booking_analytics([], now, now)["summary"]
    assert summary["total_bookings"] == 0
    assert summary["completion_rate"] == 0.0
