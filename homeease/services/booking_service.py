import logging
from datetime import datetime
from typing import Dict, List, Optional, Sequence
from fastapi import HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from homeease.db.db_models import User, Service, Booking, BookingStatus
from homeease.models.booking import BookingResponse, PartySummary, ServiceSummary
from homeease.services import booking_workflow

logger = logging.getLogger(__name__)


async def _users_by_id(db: AsyncSession, ids) -> Dict[str, User]:
    ids = {i for i in ids if i}
    if not ids:
        return {}
    result = await db.execute(select(User).where(User.id.in_(ids)))
    return {u.id: u for u in result.scalars().all()}


async def _services_by_id(db: AsyncSession, ids) -> Dict[str, Service]:
    ids = {i for i in ids if i}
    if not ids:
        return {}
    result = await db.execute(select(Service).where(Service.id.in_(ids)))
    return {s.id: s for s in result.scalars().all()}


async def enrich_bookings(db: AsyncSession, bookings: Sequence[Booking]) -> List[BookingResponse]:
    """Attach customer/provider names and the service category to each booking."""
    users = await _users_by_id(db, [b.customer_id for b in bookings] + [b.provider_id for b in bookings])
    services = await _services_by_id(db, [b.service_id for b in bookings])

    responses = []
    for b in bookings:
        response = BookingResponse.model_validate(b)
        customer = users.get(b.customer_id)
        provider = users.get(b.provider_id)
        service = services.get(b.service_id)
        if customer:
            response.customer = PartySummary(id=customer.id, name=customer.name, image=customer.profile_image)
        if provider:
            response.provider = PartySummary(id=provider.id, name=provider.name, image=provider.profile_image)
        if service:
            response.service = ServiceSummary(id=service.id, title=service.title, category=service.category)
        responses.append(response)
    return responses


async def get_booking_for(db: AsyncSession, booking_id: str, user: User) -> Booking:
    """Fetch a booking the user is a party to."""
    result = await db.execute(select(Booking).where(Booking.id == booking_id))
    booking = result.scalar_one_or_none()
    if not booking:
        raise HTTPException(status_code=404, detail="Booking not found")
    if user.id not in [booking.customer_id, booking.provider_id]:
        raise HTTPException(status_code=403, detail="Not authorized")
    return booking


async def list_bookings(
    db: AsyncSession, user: User, status_filter: Optional[str] = None, as_provider: bool = False
) -> List[Booking]:
    column = Booking.provider_id if as_provider else Booking.customer_id
    result = await db.execute(
        select(Booking).where(column == user.id).order_by(Booking.booking_date.desc())
    )
    return booking_workflow.filter_by_status(result.scalars().all(), status_filter)


async def create_booking(db: AsyncSession, customer: User, booking_in) -> Booking:
    result = await db.execute(select(Service).where(Service.id == booking_in.service_id))
    service = result.scalar_one_or_none()
    if not service or not service.is_active:
        raise HTTPException(status_code=404, detail="Service not found")
    if service.provider_id == customer.id:
        raise HTTPException(status_code=400, detail="Cannot book your own service")

    contact = booking_in.customer_contact or customer.phone
    if not contact:
        raise HTTPException(status_code=400, detail="Contact number is required")

    booking = Booking(
        booking_code=booking_workflow.generate_booking_code(),
        customer_id=customer.id,
        provider_id=service.provider_id,
        service_id=service.id,
        customer_contact=contact,
        email=booking_in.email or customer.email,
        booking_date=booking_in.booking_date,
        preferred_time=booking_in.preferred_time,
        location=booking_in.location,
        description=booking_in.description,
        estimated_cost=service.price,
        status=BookingStatus.PENDING.value,
        payment_method=booking_in.payment_method.value,
    )
    db.add(booking)
    service.total_bookings = (service.total_bookings or 0) + 1
    await db.flush()
    await db.refresh(booking)
    logger.info("Booking %s created by customer %s for service %s", booking.booking_code, customer.id, service.id)
    return booking


async def change_status(
    db: AsyncSession,
    booking: Booking,
    target,
    actor: User,
    reason: Optional[str] = None,
    provider_notes: Optional[str] = None,
) -> Booking:
    """Apply a validated status transition on behalf of `actor`."""
    try:
        new_status = booking_workflow.check_transition(booking.status, target, actor.role)
    except booking_workflow.InvalidTransition as e:
        raise HTTPException(status_code=400, detail=str(e))

    previous = booking.status
    booking.status = new_status.value
    if new_status == BookingStatus.CANCELLED:
        booking.cancellation_reason = reason
    if provider_notes is not None:
        booking.provider_notes = provider_notes
    if new_status == BookingStatus.COMPLETED:
        booking.completed_at = datetime.utcnow()
        result = await db.execute(select(Service).where(Service.id == booking.service_id))
        service = result.scalar_one_or_none()
        if service:
            service.completed_bookings = (service.completed_bookings or 0) + 1

    await db.flush()
    await db.refresh(booking)
    logger.info(
        "Booking %s: %s -> %s by %s %s", booking.booking_code, previous, booking.status, actor.role, actor.id
    )
    return booking


def booking_analytics(bookings: Sequence[Booking], start: datetime, end: datetime) -> dict:
    """Totals, completion/cancellation rates and per-day counts for bookings created in a window."""
    total = len(bookings)
    completed = [b for b in bookings if b.status == BookingStatus.COMPLETED.value]
    cancelled = sum(1 for b in bookings if b.status == BookingStatus.CANCELLED.value)
    pending = sum(1 for b in bookings if b.status == BookingStatus.PENDING.value)

    by_date: Dict[str, dict] = {}
    for b in bookings:
        day = by_date.setdefault(b.created_at.date().isoformat(), {"bookings": 0, "revenue": 0.0})
        day["bookings"] += 1
        if b.status == BookingStatus.COMPLETED.value:
            day["revenue"] += b.estimated_cost or 0.0

    return {
        "summary": {
            "total_bookings": total,
            "completed_bookings": len(completed),
            "cancelled_bookings": cancelled,
            "pending_bookings": pending,
            "total_revenue": sum(b.estimated_cost or 0.0 for b in completed),
            "completion_rate": round(len(completed) / total * 100, 2) if total else 0.0,
            "cancellation_rate": round(cancelled / total * 100, 2) if total else 0.0,
        },
        "bookings_by_date": by_date,
        "date_range": {"start": start, "end": end},
    }
