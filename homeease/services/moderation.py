"""Provider responses to reviews and their admin moderation (none -> pending -> approved | rejected)."""

import logging
from datetime import datetime
from typing import Optional

from homeease.db.db_models import ModerationStatus, Review

logger = logging.getLogger(__name__)


class ModerationError(ValueError):
    pass


def _field(review, name):
    if isinstance(review, dict):
        return review.get(name)
    return getattr(review, name, None)


def response_is_visible(review) -> bool:
    """A response is shown to customers only when it is non-empty and approved."""
    response = _field(review, "provider_response")
    status = _field(review, "moderation_status")
    return bool(response and response.strip()) and status == ModerationStatus.APPROVED.value


def visible_response(review) -> Optional[str]:
    return _field(review, "provider_response") if response_is_visible(review) else None


def attach_response(review: Review, response: str) -> Review:
    """Attach the provider's single response; it waits for moderation."""
    if review.provider_response:
        raise ModerationError("A response has already been submitted for this review")
    response = response.strip()
    if not response:
        raise ModerationError("Response text is required")

    review.provider_response = response
    review.response_date = datetime.utcnow()
    review.moderation_status = ModerationStatus.PENDING.value
    review.rejection_reason = None
    logger.info("Response submitted for review %s, awaiting moderation", review.id)
    return review


def moderate(review: Review, action: str, admin_id: str, rejection_reason: Optional[str] = None) -> Review:
    if action not in ("approve", "reject"):
        raise ModerationError("Invalid action")
    if not review.provider_response:
        raise ModerationError("No response to moderate")
    if review.moderation_status != ModerationStatus.PENDING.value:
        raise ModerationError(f"Response has already been {review.moderation_status}")

    if action == "approve":
        review.moderation_status = ModerationStatus.APPROVED.value
        review.rejection_reason = None
    else:
        review.moderation_status = ModerationStatus.REJECTED.value
        review.rejection_reason = rejection_reason

    review.moderated_by = admin_id
    review.moderation_date = datetime.utcnow()
    logger.info("Review %s response %sd by admin %s", review.id, action, admin_id)
    return review
