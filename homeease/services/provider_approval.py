"""Admin vetting of provider accounts (pending -> approved | rejected)."""

import logging
from datetime import datetime
from typing import Optional

from homeease.db.db_models import ApprovalStatus, User, UserRole, UserStatus

logger = logging.getLogger(__name__)


class ApprovalError(ValueError):
    pass


def _check_provider(user: User) -> None:
    if user.role != UserRole.PROVIDER.value:
        raise ApprovalError("User is not a provider")


def approve(provider: User, admin_id: str) -> User:
    """Approve a provider and (re)activate the account."""
    _check_provider(provider)
    if provider.approval_status == ApprovalStatus.APPROVED.value:
        raise ApprovalError("Provider is already approved")

    provider.approval_status = ApprovalStatus.APPROVED.value
    provider.status = UserStatus.ACTIVE.value
    provider.approved_by = admin_id
    provider.approval_date = datetime.utcnow()
    provider.rejection_reason = None
    logger.info("Provider %s approved by admin %s", provider.id, admin_id)
    return provider


def reject(provider: User, admin_id: str, reason: Optional[str] = None) -> User:
    """Reject a provider; a rejected account can no longer sign in."""
    _check_provider(provider)
    if provider.approval_status == ApprovalStatus.REJECTED.value:
        raise ApprovalError("Provider is already rejected")

    provider.approval_status = ApprovalStatus.REJECTED.value
    provider.status = UserStatus.REJECTED.value
    provider.rejection_reason = reason
    provider.rejected_by = admin_id
    provider.rejection_date = datetime.utcnow()
    logger.info("Provider %s rejected by admin %s", provider.id, admin_id)
    return provider
