import logging
from typing import List, Sequence, Type
from fastapi import HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from sqlalchemy.exc import IntegrityError
from homeease.db.db_models import User, Service, Booking, Review, BookingStatus
from homeease.models.review import ReviewCreate, ReviewOut
from homeease.services.moderation import visible_response

logger = logging.getLogger(__name__)


async def submit_review(db: AsyncSession, customer: User, review_in: ReviewCreate) -> Review:
    """Submit a review for a completed booking."""
    result = await db.execute(select(Booking).where(Booking.id == review_in.booking_id))
    booking = result.scalar_one_or_none()
    if not booking:
        raise HTTPException(status_code=404, detail="Booking not found")
    if booking.customer_id != customer.id:
        raise HTTPException(status_code=403, detail="Not authorized to review this booking")
    if booking.status != BookingStatus.COMPLETED.value:
        raise HTTPException(status_code=400, detail="Can only review completed bookings")

    existing = await db.execute(select(Review).where(Review.booking_id == booking.id))
    if existing.scalar_one_or_none():
        raise HTTPException(status_code=400, detail="Review already exists for this booking")

    review = Review(
        booking_id=booking.id,
        customer_id=customer.id,
        provider_id=booking.provider_id,
        service_id=booking.service_id,
        rating=review_in.rating,
        review_text=review_in.review_text,
    )
    db.add(review)
    try:
        await db.flush()
    except IntegrityError:
        raise HTTPException(status_code=409, detail="Review already exists for this booking")

    await refresh_ratings(db, booking.provider_id, booking.service_id)
    await db.refresh(review)
    logger.info("Review %s (%d stars) submitted for booking %s", review.id, review.rating, booking.id)
    return review


async def refresh_ratings(db: AsyncSession, provider_id: str, service_id: str = None) -> None:
    """Recompute average rating and count for the provider and the reviewed service."""
    row = (await db.execute(
        select(func.avg(Review.rating), func.count(Review.id)).where(Review.provider_id == provider_id)
    )).one()
    provider = (await db.execute(select(User).where(User.id == provider_id))).scalar_one_or_none()
    if provider:
        provider.rating = round(float(row[0]), 2) if row[0] else 0.0
        provider.review_count = row[1]

    if service_id:
        row = (await db.execute(
            select(func.avg(Review.rating), func.count(Review.id)).where(Review.service_id == service_id)
        )).one()
        service = (await db.execute(select(Service).where(Service.id == service_id))).scalar_one_or_none()
        if service:
            service.rating = round(float(row[0]), 2) if row[0] else 0.0
            service.review_count = row[1]
    await db.flush()


async def serialize_reviews(
    db: AsyncSession, reviews: Sequence[Review], schema: Type[ReviewOut] = ReviewOut
) -> List[ReviewOut]:
    """Build review payloads with party names.

    With the customer-facing ReviewOut schema the provider response is only
    included once approved; provider/admin schemas carry it as stored.
    """
    ids = {r.customer_id for r in reviews} | {r.provider_id for r in reviews}
    users = {}
    if ids:
        result = await db.execute(select(User).where(User.id.in_(ids)))
        users = {u.id: u for u in result.scalars().all()}

    out = []
    for r in reviews:
        customer = users.get(r.customer_id)
        provider = users.get(r.provider_id)
        data = dict(
            id=r.id,
            booking_id=r.booking_id,
            customer_id=r.customer_id,
            provider_id=r.provider_id,
            service_id=r.service_id,
            rating=r.rating,
            review_text=r.review_text,
            customer_name=customer.name if customer else None,
            provider_name=provider.name if provider else None,
            created_at=r.created_at,
        )
        if schema is ReviewOut:
            response = visible_response(r)
            data["provider_response"] = response
            data["response_date"] = r.response_date if response else None
        else:
            data["provider_response"] = r.provider_response
            data["response_date"] = r.response_date
            data["moderation_status"] = r.moderation_status
            data["rejection_reason"] = r.rejection_reason
            data["moderated_by"] = r.moderated_by
            data["moderation_date"] = r.moderation_date
        out.append(schema(**data))
    return out
