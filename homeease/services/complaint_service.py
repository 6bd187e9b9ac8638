import logging
from datetime import datetime
from typing import Optional
from fastapi import HTTPException, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from homeease.db.db_models import (
    User, Booking, Complaint, ComplaintCategory, ComplaintPriority, ComplaintStatus, UserRole,
)
from homeease.services.upload_service import UploadService

logger = logging.getLogger(__name__)


async def file_complaint(
    db: AsyncSession,
    user: User,
    description: str,
    title: Optional[str] = None,
    category: ComplaintCategory = ComplaintCategory.OTHER,
    priority: ComplaintPriority = ComplaintPriority.MEDIUM,
    booking_id: Optional[str] = None,
    evidence: Optional[UploadFile] = None,
) -> Complaint:
    """Create a complaint from a multipart submission, storing optional evidence."""
    description = (description or "").strip()
    if not description:
        raise HTTPException(status_code=400, detail="Description is required")

    customer_id = user.id if user.role == UserRole.CUSTOMER.value else None
    provider_id = user.id if user.role == UserRole.PROVIDER.value else None

    if booking_id:
        result = await db.execute(select(Booking).where(Booking.id == booking_id))
        booking = result.scalar_one_or_none()
        if not booking:
            raise HTTPException(status_code=404, detail="Booking not found")
        if user.id not in [booking.customer_id, booking.provider_id]:
            raise HTTPException(status_code=403, detail="Not authorized to file a complaint for this booking")
        customer_id = booking.customer_id
        provider_id = booking.provider_id

    attachments = []
    if evidence is not None and evidence.filename:
        attachments.append(await UploadService.save_file(evidence))

    complaint = Complaint(
        title=title,
        description=description,
        category=category.value,
        priority=priority.value,
        filed_by=user.id,
        customer_id=customer_id,
        provider_id=provider_id,
        booking_id=booking_id,
        status=ComplaintStatus.OPEN.value,
        attachments=attachments,
        admin_notes=[],
    )
    db.add(complaint)
    await db.flush()
    await db.refresh(complaint)
    logger.info("Complaint %s filed by %s (%s)", complaint.id, user.id, user.role)
    return complaint


async def list_complaints_for(db: AsyncSession, user: User):
    result = await db.execute(
        select(Complaint)
        .where(Complaint.filed_by == user.id)
        .order_by(Complaint.created_at.desc())
    )
    return result.scalars().all()


def add_admin_note(complaint: Complaint, note: str, admin_id: str) -> None:
    # JSON columns only persist on reassignment
    complaint.admin_notes = list(complaint.admin_notes or []) + [{
        "note": note,
        "admin": admin_id,
        "timestamp": datetime.utcnow().isoformat(),
    }]


def set_status(
    complaint: Complaint, status: ComplaintStatus, admin_id: str, note: Optional[str] = None
) -> Complaint:
    """Move a complaint between working states; resolving goes through `resolve`."""
    if status == ComplaintStatus.RESOLVED:
        raise HTTPException(
            status_code=400, detail="Use the resolve endpoint to resolve a complaint with a resolution"
        )
    if status == ComplaintStatus.CLOSED and not complaint.resolution:
        raise HTTPException(status_code=400, detail="Only resolved complaints can be closed")

    complaint.status = status.value
    add_admin_note(complaint, note or f"Status changed to {complaint.status}", admin_id)
    logger.info("Complaint %s set to %s by admin %s", complaint.id, complaint.status, admin_id)
    return complaint


def resolve(complaint: Complaint, resolution: str, admin_id: str) -> Complaint:
    resolution = (resolution or "").strip()
    if not resolution:
        raise HTTPException(status_code=400, detail="Resolution is required")
    if complaint.status in (ComplaintStatus.RESOLVED.value, ComplaintStatus.CLOSED.value):
        raise HTTPException(status_code=400, detail=f"Complaint is already {complaint.status}")
    complaint.status = ComplaintStatus.RESOLVED.value
    complaint.resolution = resolution
    complaint.resolved_by = admin_id
    complaint.resolution_date = datetime.utcnow()
    logger.info("Complaint %s resolved by admin %s", complaint.id, admin_id)
    return complaint
