from typing import Any, List, Optional
from fastapi import APIRouter, Depends, HTTPException, File, Form, UploadFile, Query, Body
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from sqlalchemy.exc import IntegrityError
from homeease.api import deps
from homeease.db.database import get_db
from homeease.db.db_models import (
    User, Service, Review, ProviderService, ServiceCategory,
    BookingStatus, ModerationStatus, ComplaintCategory, ComplaintPriority,
)
from homeease.models.booking import (
    BookingResponse, BookingStatusUpdate, BookingActionNote, BookingCounts, ProviderDashboard,
)
from homeease.models.chat import ChatRoomResponse, MessageCreate, MessageResponse
from homeease.models.complaint import ComplaintResponse
from homeease.models.review import ProviderReviewOut, ReviewResponseCreate
from homeease.models.service import (
    ServiceCreate, ServiceUpdate, ServiceResponse,
    ProviderServiceCreate, ProviderServiceResponse, CategoryResponse,
)
from homeease.models.user import ProviderProfile, ProviderProfileUpdate, AvailabilityUpdate
from homeease.services import (
    booking_service, booking_workflow, chat_service, complaint_service, moderation, review_service,
)

router = APIRouter()


@router.get("/dashboard", response_model=ProviderDashboard)
async def get_dashboard(
    current_user: User = Depends(deps.get_current_provider),
    db: AsyncSession = Depends(get_db),
) -> Any:
    """Get provider dashboard statistics."""
    bookings = await booking_service.list_bookings(db, current_user, as_provider=True)
    earnings = sum(
        b.estimated_cost or 0.0 for b in bookings if b.status == BookingStatus.COMPLETED.value
    )

    pending_result = await db.execute(
        select(func.count(Review.id)).where(
            Review.provider_id == current_user.id,
            Review.moderation_status == ModerationStatus.PENDING.value,
        )
    )

    return ProviderDashboard(
        bookings=await booking_service.enrich_bookings(db, bookings[:10]),
        counts=BookingCounts(total=len(bookings), by_status=booking_workflow.count_by_status(bookings)),
        earnings=earnings,
        rating=round(current_user.rating or 0.0, 1),
        review_count=current_user.review_count or 0,
        pending_responses=pending_result.scalar() or 0,
    )


# ─── Service categories ──────────────────────────────────────────────

@router.get("/service-categories", response_model=List[CategoryResponse])
async def get_service_categories(
    current_user: User = Depends(deps.get_current_provider),
    db: AsyncSession = Depends(get_db),
) -> Any:
    result = await db.execute(select(ServiceCategory).order_by(ServiceCategory.name))
    return result.scalars().all()


@router.post("/service-categories", response_model=ProviderServiceResponse, status_code=201)
async def register_service_category(
    category_in: ProviderServiceCreate,
    current_user: User = Depends(deps.get_current_provider),
    db: AsyncSession = Depends(get_db),
) -> Any:
    """Register the provider under a service category."""
    existing = await db.execute(
        select(ProviderService).where(
            ProviderService.provider_id == current_user.id,
            ProviderService.category_name == category_in.category_name,
        )
    )
    if existing.scalar_one_or_none():
        raise HTTPException(status_code=400, detail="Category already registered")

    provider_service = ProviderService(provider_id=current_user.id, category_name=category_in.category_name)
    db.add(provider_service)
    try:
        await db.flush()
    except IntegrityError:
        raise HTTPException(status_code=409, detail="Category already registered")
    await db.refresh(provider_service)
    return provider_service


@router.get("/registered-categories", response_model=List[ProviderServiceResponse])
async def get_registered_categories(
    current_user: User = Depends(deps.get_current_provider),
    db: AsyncSession = Depends(get_db),
) -> Any:
    result = await db.execute(
        select(ProviderService)
        .where(ProviderService.provider_id == current_user.id)
        .order_by(ProviderService.created_at)
    )
    return result.scalars().all()


# ─── Service listings ────────────────────────────────────────────────

async def _get_own_service(db: AsyncSession, service_id: str, provider: User) -> Service:
    result = await db.execute(select(Service).where(Service.id == service_id))
    service = result.scalar_one_or_none()
    if not service:
        raise HTTPException(status_code=404, detail="Service not found")
    if service.provider_id != provider.id:
        raise HTTPException(status_code=403, detail="Not authorized")
    return service


@router.post("/services", response_model=ServiceResponse, status_code=201)
async def create_service(
    service_in: ServiceCreate,
    current_user: User = Depends(deps.get_current_provider),
    db: AsyncSession = Depends(get_db),
) -> Any:
    service = Service(provider_id=current_user.id, **service_in.model_dump())
    db.add(service)
    await db.flush()
    await db.refresh(service)
    return service


@router.get("/services", response_model=List[ServiceResponse])
async def get_services(
    current_user: User = Depends(deps.get_current_provider),
    db: AsyncSession = Depends(get_db),
) -> Any:
    result = await db.execute(
        select(Service).where(Service.provider_id == current_user.id).order_by(Service.created_at.desc())
    )
    return result.scalars().all()


@router.put("/services/{service_id}", response_model=ServiceResponse)
async def update_service(
    service_id: str,
    update: ServiceUpdate,
    current_user: User = Depends(deps.get_current_provider),
    db: AsyncSession = Depends(get_db),
) -> Any:
    service = await _get_own_service(db, service_id, current_user)
    update_data = update.model_dump(exclude_unset=True)
    for field, value in update_data.items():
        setattr(service, field, value)

    await db.flush()
    await db.refresh(service)
    return service


@router.delete("/services/{service_id}")
async def delete_service(
    service_id: str,
    current_user: User = Depends(deps.get_current_provider),
    db: AsyncSession = Depends(get_db),
) -> Any:
    """Deactivate a service; it stays referenced by past bookings."""
    service = await _get_own_service(db, service_id, current_user)
    service.is_active = False
    await db.flush()
    return {"message": "Service deleted"}


# ─── Bookings ────────────────────────────────────────────────────────

@router.get("/bookings", response_model=List[BookingResponse])
async def get_bookings(
    status: str = Query(booking_workflow.ALL_FILTER),
    current_user: User = Depends(deps.get_current_provider),
    db: AsyncSession = Depends(get_db),
) -> Any:
    bookings = await booking_service.list_bookings(db, current_user, status, as_provider=True)
    return await booking_service.enrich_bookings(db, bookings)


@router.get("/bookings/{booking_id}", response_model=BookingResponse)
async def get_booking_details(
    booking_id: str,
    current_user: User = Depends(deps.get_current_provider),
    db: AsyncSession = Depends(get_db),
) -> Any:
    booking = await booking_service.get_booking_for(db, booking_id, current_user)
    return (await booking_service.enrich_bookings(db, [booking]))[0]


async def _transition(db, booking_id, target, provider, note: Optional[BookingActionNote]):
    booking = await booking_service.get_booking_for(db, booking_id, provider)
    booking = await booking_service.change_status(
        db, booking, target, provider,
        reason=note.reason if note else None,
        provider_notes=note.provider_notes if note else None,
    )
    return (await booking_service.enrich_bookings(db, [booking]))[0]


@router.put("/bookings/{booking_id}/accept", response_model=BookingResponse)
async def accept_booking(
    booking_id: str,
    note: Optional[BookingActionNote] = Body(None),
    current_user: User = Depends(deps.get_current_provider),
    db: AsyncSession = Depends(get_db),
) -> Any:
    return await _transition(db, booking_id, BookingStatus.ACCEPTED, current_user, note)


@router.put("/bookings/{booking_id}/reject", response_model=BookingResponse)
async def reject_booking(
    booking_id: str,
    note: Optional[BookingActionNote] = Body(None),
    current_user: User = Depends(deps.get_current_provider),
    db: AsyncSession = Depends(get_db),
) -> Any:
    booking = await booking_service.get_booking_for(db, booking_id, current_user)
    if booking.status != BookingStatus.PENDING.value:
        raise HTTPException(status_code=400, detail="Only pending bookings can be rejected")
    return await _transition(db, booking_id, BookingStatus.CANCELLED, current_user, note)


@router.put("/bookings/{booking_id}/start", response_model=BookingResponse)
async def start_booking(
    booking_id: str,
    note: Optional[BookingActionNote] = Body(None),
    current_user: User = Depends(deps.get_current_provider),
    db: AsyncSession = Depends(get_db),
) -> Any:
    return await _transition(db, booking_id, BookingStatus.IN_PROGRESS, current_user, note)


@router.put("/bookings/{booking_id}/complete", response_model=BookingResponse)
async def complete_booking(
    booking_id: str,
    note: Optional[BookingActionNote] = Body(None),
    current_user: User = Depends(deps.get_current_provider),
    db: AsyncSession = Depends(get_db),
) -> Any:
    return await _transition(db, booking_id, BookingStatus.COMPLETED, current_user, note)


@router.put("/bookings/{booking_id}/status", response_model=BookingResponse)
async def update_booking_status(
    booking_id: str,
    status_update: BookingStatusUpdate,
    current_user: User = Depends(deps.get_current_provider),
    db: AsyncSession = Depends(get_db),
) -> Any:
    note = BookingActionNote(reason=status_update.reason, provider_notes=status_update.provider_notes)
    return await _transition(db, booking_id, status_update.status, current_user, note)


# ─── Reviews ─────────────────────────────────────────────────────────

@router.get("/reviews", response_model=List[ProviderReviewOut])
async def get_reviews(
    current_user: User = Depends(deps.get_current_provider),
    db: AsyncSession = Depends(get_db),
) -> Any:
    """Own reviews, including responses and their moderation status."""
    result = await db.execute(
        select(Review).where(Review.provider_id == current_user.id).order_by(Review.created_at.desc())
    )
    return await review_service.serialize_reviews(db, result.scalars().all(), ProviderReviewOut)


@router.post("/reviews/{review_id}/response", response_model=ProviderReviewOut)
async def respond_to_review(
    review_id: str,
    response_in: ReviewResponseCreate,
    current_user: User = Depends(deps.get_current_provider),
    db: AsyncSession = Depends(get_db),
) -> Any:
    result = await db.execute(select(Review).where(Review.id == review_id))
    review = result.scalar_one_or_none()
    if not review:
        raise HTTPException(status_code=404, detail="Review not found")
    if review.provider_id != current_user.id:
        raise HTTPException(status_code=403, detail="Not authorized")

    try:
        moderation.attach_response(review, response_in.response)
    except moderation.ModerationError as e:
        raise HTTPException(status_code=400, detail=str(e))

    await db.flush()
    await db.refresh(review)
    return (await review_service.serialize_reviews(db, [review], ProviderReviewOut))[0]


# ─── Availability & Profile ──────────────────────────────────────────

@router.put("/availability", response_model=ProviderProfile)
async def update_availability(
    availability_in: AvailabilityUpdate,
    current_user: User = Depends(deps.get_current_provider),
    db: AsyncSession = Depends(get_db),
) -> Any:
    current_user.availability = availability_in.availability.strip()
    await db.flush()
    await db.refresh(current_user)
    return current_user


@router.get("/profile", response_model=ProviderProfile)
async def get_profile(
    current_user: User = Depends(deps.get_current_provider),
) -> Any:
    """Get provider profile."""
    return current_user


@router.put("/profile", response_model=ProviderProfile)
async def update_profile(
    user_update: ProviderProfileUpdate,
    current_user: User = Depends(deps.get_current_provider),
    db: AsyncSession = Depends(get_db),
) -> Any:
    update_data = user_update.model_dump(exclude_unset=True)
    for field, value in update_data.items():
        setattr(current_user, field, value)

    await db.flush()
    await db.refresh(current_user)
    return current_user


# ─── Complaints ──────────────────────────────────────────────────────

@router.get("/complaints", response_model=List[ComplaintResponse])
async def get_complaints(
    current_user: User = Depends(deps.get_current_provider),
    db: AsyncSession = Depends(get_db),
) -> Any:
    return await complaint_service.list_complaints_for(db, current_user)


@router.post("/complaints", response_model=ComplaintResponse, status_code=201)
async def create_complaint(
    description: str = Form(...),
    title: Optional[str] = Form(None),
    category: ComplaintCategory = Form(ComplaintCategory.OTHER),
    priority: ComplaintPriority = Form(ComplaintPriority.MEDIUM),
    booking_id: Optional[str] = Form(None),
    evidence: Optional[UploadFile] = File(None),
    current_user: User = Depends(deps.get_current_provider),
    db: AsyncSession = Depends(get_db),
) -> Any:
    return await complaint_service.file_complaint(
        db, current_user, description, title=title, category=category,
        priority=priority, booking_id=booking_id, evidence=evidence,
    )


# ─── Chat ────────────────────────────────────────────────────────────

@router.get("/chats", response_model=List[ChatRoomResponse])
async def get_chats(
    current_user: User = Depends(deps.get_current_provider),
    db: AsyncSession = Depends(get_db),
) -> Any:
    rooms = await chat_service.list_rooms(db, current_user)
    return await chat_service.describe_rooms(db, rooms, current_user)


@router.get("/chats/{room_id}/messages", response_model=List[MessageResponse])
async def get_chat_messages(
    room_id: str,
    current_user: User = Depends(deps.get_current_provider),
    db: AsyncSession = Depends(get_db),
) -> Any:
    room = await chat_service.get_room_for(db, room_id, current_user)
    return await chat_service.read_messages(db, room, current_user)


@router.post("/chats/{room_id}/messages", response_model=MessageResponse)
async def send_message(
    room_id: str,
    message_in: MessageCreate,
    current_user: User = Depends(deps.get_current_provider),
    db: AsyncSession = Depends(get_db),
) -> Any:
    room = await chat_service.get_room_for(db, room_id, current_user)
    return await chat_service.send_message(db, room, current_user, message_in)
