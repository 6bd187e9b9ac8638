from typing import Any, List, Optional
from fastapi import APIRouter, Depends, HTTPException, File, Form, UploadFile, Query
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, or_
from homeease.api import deps
from homeease.db.database import get_db
from homeease.db.db_models import (
    User, Service, Review, BookingStatus, ComplaintCategory, ComplaintPriority, UserRole,
)
from homeease.models.booking import (
    BookingCreate, BookingResponse, BookingStatusUpdate, BookingCounts, CustomerDashboard,
)
from homeease.models.chat import ChatRoomCreate, ChatRoomResponse, MessageCreate, MessageResponse
from homeease.models.complaint import ComplaintResponse
from homeease.models.review import ReviewCreate, ReviewOut
from homeease.models.service import ServiceResponse
from homeease.models.user import UserResponse, UserUpdate
from homeease.services import booking_service, booking_workflow, chat_service, complaint_service, review_service

router = APIRouter()


async def _services_with_provider_names(db: AsyncSession, services) -> List[ServiceResponse]:
    provider_ids = {s.provider_id for s in services}
    names = {}
    if provider_ids:
        result = await db.execute(select(User).where(User.id.in_(provider_ids)))
        names = {u.id: u.name for u in result.scalars().all()}
    out = []
    for s in services:
        item = ServiceResponse.model_validate(s)
        item.provider_name = names.get(s.provider_id)
        out.append(item)
    return out


# ─── Dashboard & Profile ─────────────────────────────────────────────

@router.get("/dashboard", response_model=CustomerDashboard)
async def get_dashboard(
    current_user: User = Depends(deps.get_current_customer),
    db: AsyncSession = Depends(get_db),
) -> Any:
    """Recent bookings, status counts and the active service catalogue."""
    bookings = await booking_service.list_bookings(db, current_user)
    total_spent = sum(
        b.estimated_cost or 0.0 for b in bookings if b.status == BookingStatus.COMPLETED.value
    )

    result = await db.execute(
        select(Service).where(Service.is_active == True).order_by(Service.created_at.desc()).limit(20)
    )
    services = await _services_with_provider_names(db, result.scalars().all())

    return CustomerDashboard(
        bookings=await booking_service.enrich_bookings(db, bookings[:10]),
        counts=BookingCounts(total=len(bookings), by_status=booking_workflow.count_by_status(bookings)),
        total_spent=total_spent,
        services=services,
    )


@router.get("/profile", response_model=UserResponse)
async def get_profile(
    current_user: User = Depends(deps.get_current_customer),
) -> Any:
    """Get customer profile."""
    return current_user


@router.put("/profile", response_model=UserResponse)
async def update_profile(
    user_update: UserUpdate,
    current_user: User = Depends(deps.get_current_customer),
    db: AsyncSession = Depends(get_db),
) -> Any:
    update_data = user_update.model_dump(exclude_unset=True)
    for field, value in update_data.items():
        setattr(current_user, field, value)

    await db.flush()
    await db.refresh(current_user)
    return current_user


# ─── Service search ──────────────────────────────────────────────────

@router.get("/search", response_model=List[ServiceResponse])
async def search_services(
    q: Optional[str] = None,
    category: Optional[str] = None,
    city: Optional[str] = None,
    current_user: User = Depends(deps.get_current_customer),
    db: AsyncSession = Depends(get_db),
) -> Any:
    """Search active services by text, category and city."""
    query = select(Service).where(Service.is_active == True)
    if q:
        pattern = f"%{q.strip()}%"
        query = query.where(or_(
            Service.title.ilike(pattern),
            Service.description.ilike(pattern),
            Service.category.ilike(pattern),
            Service.location.ilike(pattern),
        ))
    if category:
        query = query.where(Service.category.ilike(category.strip()))
    if city:
        query = query.where(Service.city.ilike(city.strip()))
    result = await db.execute(query.order_by(Service.rating.desc(), Service.created_at.desc()))
    return await _services_with_provider_names(db, result.scalars().all())


# ─── Bookings ────────────────────────────────────────────────────────

@router.post("/book", response_model=BookingResponse, status_code=201)
async def book_service(
    booking_in: BookingCreate,
    current_user: User = Depends(deps.get_current_customer),
    db: AsyncSession = Depends(get_db),
) -> Any:
    booking = await booking_service.create_booking(db, current_user, booking_in)
    return (await booking_service.enrich_bookings(db, [booking]))[0]


@router.get("/bookings", response_model=List[BookingResponse])
async def get_my_bookings(
    status: str = Query(booking_workflow.ALL_FILTER),
    current_user: User = Depends(deps.get_current_customer),
    db: AsyncSession = Depends(get_db),
) -> Any:
    """Own bookings, optionally filtered by status (`all` for everything)."""
    bookings = await booking_service.list_bookings(db, current_user, status)
    return await booking_service.enrich_bookings(db, bookings)


@router.get("/bookings/{booking_id}", response_model=BookingResponse)
async def get_booking(
    booking_id: str,
    current_user: User = Depends(deps.get_current_customer),
    db: AsyncSession = Depends(get_db),
) -> Any:
    booking = await booking_service.get_booking_for(db, booking_id, current_user)
    return (await booking_service.enrich_bookings(db, [booking]))[0]


@router.put("/bookings/{booking_id}/status", response_model=BookingResponse)
async def update_booking_status(
    booking_id: str,
    status_update: BookingStatusUpdate,
    current_user: User = Depends(deps.get_current_customer),
    db: AsyncSession = Depends(get_db),
) -> Any:
    """Customers may only cancel a pending booking."""
    booking = await booking_service.get_booking_for(db, booking_id, current_user)
    booking = await booking_service.change_status(
        db, booking, status_update.status, current_user, reason=status_update.reason,
    )
    return (await booking_service.enrich_bookings(db, [booking]))[0]


@router.get("/history", response_model=List[BookingResponse])
async def get_service_history(
    current_user: User = Depends(deps.get_current_customer),
    db: AsyncSession = Depends(get_db),
) -> Any:
    bookings = await booking_service.list_bookings(db, current_user, BookingStatus.COMPLETED.value)
    return await booking_service.enrich_bookings(db, bookings)


# ─── Reviews ─────────────────────────────────────────────────────────

@router.post("/reviews", response_model=ReviewOut, status_code=201)
async def submit_review(
    review_in: ReviewCreate,
    current_user: User = Depends(deps.get_current_customer),
    db: AsyncSession = Depends(get_db),
) -> Any:
    review = await review_service.submit_review(db, current_user, review_in)
    return (await review_service.serialize_reviews(db, [review]))[0]


@router.get("/reviews", response_model=List[ReviewOut])
async def get_my_reviews(
    current_user: User = Depends(deps.get_current_customer),
    db: AsyncSession = Depends(get_db),
) -> Any:
    result = await db.execute(
        select(Review).where(Review.customer_id == current_user.id).order_by(Review.created_at.desc())
    )
    return await review_service.serialize_reviews(db, result.scalars().all())


@router.get("/providers/{provider_id}/reviews", response_model=List[ReviewOut])
async def get_provider_reviews(
    provider_id: str,
    current_user: User = Depends(deps.get_current_customer),
    db: AsyncSession = Depends(get_db),
) -> Any:
    """Public reviews of a provider; responses appear only once approved."""
    result = await db.execute(select(User).where(User.id == provider_id))
    provider = result.scalar_one_or_none()
    if not provider or provider.role != UserRole.PROVIDER.value:
        raise HTTPException(status_code=404, detail="Provider not found")

    result = await db.execute(
        select(Review).where(Review.provider_id == provider_id).order_by(Review.created_at.desc())
    )
    return await review_service.serialize_reviews(db, result.scalars().all())


# ─── Complaints ──────────────────────────────────────────────────────

@router.post("/complaints", response_model=ComplaintResponse, status_code=201)
async def create_complaint(
    description: str = Form(...),
    title: Optional[str] = Form(None),
    category: ComplaintCategory = Form(ComplaintCategory.OTHER),
    priority: ComplaintPriority = Form(ComplaintPriority.MEDIUM),
    booking_id: Optional[str] = Form(None),
    evidence: Optional[UploadFile] = File(None),
    current_user: User = Depends(deps.get_current_customer),
    db: AsyncSession = Depends(get_db),
) -> Any:
    return await complaint_service.file_complaint(
        db, current_user, description, title=title, category=category,
        priority=priority, booking_id=booking_id, evidence=evidence,
    )


@router.get("/complaints", response_model=List[ComplaintResponse])
async def get_my_complaints(
    current_user: User = Depends(deps.get_current_customer),
    db: AsyncSession = Depends(get_db),
) -> Any:
    return await complaint_service.list_complaints_for(db, current_user)


# ─── Chat ────────────────────────────────────────────────────────────

@router.post("/chats", response_model=ChatRoomResponse)
async def start_chat(
    room_in: ChatRoomCreate,
    current_user: User = Depends(deps.get_current_customer),
    db: AsyncSession = Depends(get_db),
) -> Any:
    """Open (or reuse) a chat with a provider."""
    room = await chat_service.find_or_create_room(db, current_user, room_in.provider_id, room_in.booking_id)
    return (await chat_service.describe_rooms(db, [room], current_user))[0]


@router.get("/chats", response_model=List[ChatRoomResponse])
async def list_chats(
    current_user: User = Depends(deps.get_current_customer),
    db: AsyncSession = Depends(get_db),
) -> Any:
    rooms = await chat_service.list_rooms(db, current_user)
    return await chat_service.describe_rooms(db, rooms, current_user)


@router.get("/chats/{room_id}/messages", response_model=List[MessageResponse])
async def get_chat_messages(
    room_id: str,
    current_user: User = Depends(deps.get_current_customer),
    db: AsyncSession = Depends(get_db),
) -> Any:
    room = await chat_service.get_room_for(db, room_id, current_user)
    return await chat_service.read_messages(db, room, current_user)


@router.post("/chats/{room_id}/messages", response_model=MessageResponse)
async def send_chat_message(
    room_id: str,
    message_in: MessageCreate,
    current_user: User = Depends(deps.get_current_customer),
    db: AsyncSession = Depends(get_db),
) -> Any:
    room = await chat_service.get_room_for(db, room_id, current_user)
    return await chat_service.send_message(db, room, current_user, message_in)
