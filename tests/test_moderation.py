import pytest

from homeease.db.db_models import Review
from homeease.models.review import ModerationAction
from homeease.services import moderation
from homeease.services.moderation import ModerationError


def _review(**fields):
    defaults = dict(
        id="r1", booking_id="b1", customer_id="c1", provider_id="p1",
        rating=4, review_text="Good work", provider_response=None,
        moderation_status="none",
    )
    defaults.update(fields)
    return Review(**defaults)


@pytest.mark.parametrize("response,status,visible", [
    ("Thanks!", "approved", True),
    ("Thanks!", "pending", False),
    ("Thanks!", "rejected", False),
    ("Thanks!", "none", False),
    ("", "approved", False),
    ("   ", "approved", False),
    (None, "approved", False),
])
def test_response_visibility(response, status, visible):
    review = {"provider_response": response, "moderation_status": status}
    assert moderation.response_is_visible(review) is visible
    assert moderation.visible_response(review) == (response if visible else None)


def test_attach_response_sets_pending():
    review = moderation.attach_response(_review(), "  Thank you for the feedback  ")
    assert review.provider_response == "Thank you for the feedback"
    assert review.moderation_status == "pending"
    assert review.response_date is not None


def test_only_one_response_per_review():
    review = moderation.attach_response(_review(), "First")
    with pytest.raises(ModerationError):
        moderation.attach_response(review, "Second")


def test_empty_response_rejected():
    with pytest.raises(ModerationError):
        moderation.attach_response(_review(), "   ")


def test_approve_makes_response_visible():
    review = moderation.attach_response(_review(), "Thanks")
    moderation.moderate(review, "approve", "admin-1")
    assert review.moderation_status == "approved"
    assert review.moderated_by == "admin-1"
    assert moderation.response_is_visible(review)


def test_reject_keeps_response_hidden():
    review = moderation.attach_response(_review(), "Rude reply")
    moderation.moderate(review, "reject", "admin-1", "Inappropriate language")
    assert review.moderation_status == "rejected"
    assert review.rejection_reason == "Inappropriate language"
    assert not moderation.response_is_visible(review)


def test_cannot_moderate_twice():
    review = moderation.attach_response(_review(), "Thanks")
    moderation.moderate(review, "approve", "admin-1")
    with pytest.raises(ModerationError):
        moderation.moderate(review, "reject", "admin-1")


def test_cannot_moderate_without_response():
    with pytest.raises(ModerationError):
        moderation.moderate(_review(), "approve", "admin-1")


def test_invalid_action():
    review = moderation.attach_response(_review(), "Thanks")
    with pytest.raises(ModerationError):
        moderation.moderate(review, "delete", "admin-1")
    with pytest.raises(ValueError):
        ModerationAction(action="delete")
