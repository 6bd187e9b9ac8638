import logging
from datetime import datetime, timedelta
from typing import Any, List, Optional
from fastapi import APIRouter, Body, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, delete, or_
from sqlalchemy.exc import IntegrityError
from homeease.api import deps
from homeease.db.database import get_db
from homeease.db.db_models import (
    User, Service, Booking, Review, Complaint, ServiceCategory, City, ChatRoom, ProviderService,
    UserRole, ApprovalStatus, BookingStatus, PaymentStatus, ModerationStatus, ComplaintStatus,
)
from homeease.models.common import paginate
from homeease.models.complaint import ComplaintResponse, ComplaintStatusUpdate, ComplaintResolve
from homeease.models.review import AdminReviewOut, ModerationAction
from homeease.models.service import CategoryCreate, CategoryResponse, CityCreate, CityResponse
from homeease.models.user import (
    UserResponse, UserStatusUpdate, AdminUserResponse, ProviderRejection, ProviderRating,
)
from homeease.services import (
    booking_service, booking_workflow, complaint_service, moderation, provider_approval, review_service,
)

logger = logging.getLogger(__name__)

router = APIRouter()


async def _count(db: AsyncSession, query) -> int:
    return (await db.execute(query)).scalar() or 0


async def _get_user(db: AsyncSession, user_id: str) -> User:
    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user


# ─── Dashboard ───────────────────────────────────────────────────────

@router.get("/dashboard", response_model=dict)
async def get_dashboard(
    current_user: User = Depends(deps.get_current_admin),
    db: AsyncSession = Depends(get_db),
) -> Any:
    """Platform-wide statistics."""
    revenue = (await db.execute(
        select(func.sum(Booking.estimated_cost)).where(
            Booking.status == BookingStatus.COMPLETED.value,
            Booking.payment_status == PaymentStatus.PAID.value,
        )
    )).scalar() or 0.0

    return {
        "stats": {
            "total_users": await _count(db, select(func.count(User.id)).where(
                User.role.in_([UserRole.CUSTOMER.value, UserRole.PROVIDER.value]))),
            "total_providers": await _count(db, select(func.count(User.id)).where(
                User.role == UserRole.PROVIDER.value, User.approval_status == ApprovalStatus.APPROVED.value)),
            "pending_providers": await _count(db, select(func.count(User.id)).where(
                User.role == UserRole.PROVIDER.value, User.approval_status == ApprovalStatus.PENDING.value)),
            "total_bookings": await _count(db, select(func.count(Booking.id))),
            "completed_bookings": await _count(db, select(func.count(Booking.id)).where(
                Booking.status == BookingStatus.COMPLETED.value)),
            "pending_bookings": await _count(db, select(func.count(Booking.id)).where(
                Booking.status == BookingStatus.PENDING.value)),
            "total_revenue": revenue,
            "open_complaints": await _count(db, select(func.count(Complaint.id)).where(
                Complaint.status == ComplaintStatus.OPEN.value)),
            "active_services": await _count(db, select(func.count(Service.id)).where(
                Service.is_active == True)),
            "pending_responses": await _count(db, select(func.count(Review.id)).where(
                Review.moderation_status == ModerationStatus.PENDING.value)),
        }
    }


# ─── Users ───────────────────────────────────────────────────────────

@router.get("/users", response_model=dict)
async def get_users(
    role: Optional[str] = None,
    status: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    current_user: User = Depends(deps.get_current_admin),
    db: AsyncSession = Depends(get_db),
) -> Any:
    conditions = []
    if role:
        conditions.append(User.role == role)
    if status == ApprovalStatus.PENDING.value and role == UserRole.PROVIDER.value:
        # Providers awaiting vetting are tracked by approval status
        conditions.append(User.approval_status == status)
    elif status:
        conditions.append(User.status == status)

    result = await db.execute(
        select(User).where(*conditions).order_by(User.created_at.desc()).offset((page - 1) * limit).limit(limit)
    )
    return {
        "users": [UserResponse.model_validate(u) for u in result.scalars().all()],
        "pagination": paginate(page, limit, await _count(db, select(func.count(User.id)).where(*conditions))),
    }


@router.patch("/users/{user_id}/status", response_model=UserResponse)
async def update_user_status(
    user_id: str,
    status_update: UserStatusUpdate,
    current_user: User = Depends(deps.get_current_admin),
    db: AsyncSession = Depends(get_db),
) -> Any:
    user = await _get_user(db, user_id)
    if user.id == current_user.id:
        raise HTTPException(status_code=400, detail="Cannot change your own status")

    user.status = status_update.status.value
    await db.flush()
    await db.refresh(user)
    logger.info("User %s status set to %s by admin %s", user.id, user.status, current_user.id)
    return user


@router.get("/users/{user_id}", response_model=AdminUserResponse)
async def get_user(
    user_id: str,
    current_user: User = Depends(deps.get_current_admin),
    db: AsyncSession = Depends(get_db),
) -> Any:
    return await _get_user(db, user_id)


@router.delete("/users/{user_id}")
async def delete_user(
    user_id: str,
    current_user: User = Depends(deps.get_current_admin),
    db: AsyncSession = Depends(get_db),
) -> Any:
    """Delete an account with no marketplace history; others must be suspended instead."""
    user = await _get_user(db, user_id)
    if user.role == UserRole.ADMIN.value:
        raise HTTPException(status_code=400, detail="Admin accounts cannot be deleted")

    history = [
        select(func.count(Booking.id)).where(or_(Booking.customer_id == user.id, Booking.provider_id == user.id)),
        select(func.count(Review.id)).where(or_(Review.customer_id == user.id, Review.provider_id == user.id)),
        select(func.count(Complaint.id)).where(or_(
            Complaint.filed_by == user.id, Complaint.customer_id == user.id, Complaint.provider_id == user.id,
        )),
        select(func.count(ChatRoom.id)).where(or_(ChatRoom.customer_id == user.id, ChatRoom.provider_id == user.id)),
    ]
    for query in history:
        if await _count(db, query):
            raise HTTPException(status_code=409, detail="User has bookings or activity; suspend the account instead")

    await db.execute(delete(ProviderService).where(ProviderService.provider_id == user.id))
    await db.execute(delete(Service).where(Service.provider_id == user.id))
    await db.delete(user)
    logger.info("User %s deleted by admin %s", user.id, current_user.id)
    return {"message": "User deleted successfully"}


# ─── Providers ───────────────────────────────────────────────────────

async def _get_provider(db: AsyncSession, provider_id: str) -> User:
    result = await db.execute(select(User).where(User.id == provider_id))
    provider = result.scalar_one_or_none()
    if not provider or provider.role != UserRole.PROVIDER.value:
        raise HTTPException(status_code=404, detail="Provider not found")
    return provider


async def _list_providers(
    db: AsyncSession, page: int, limit: int,
    status: Optional[str] = None, approval_status: Optional[str] = None,
) -> dict:
    conditions = [User.role == UserRole.PROVIDER.value]
    if status:
        conditions.append(User.status == status)
    if approval_status:
        conditions.append(User.approval_status == approval_status)

    result = await db.execute(
        select(User).where(*conditions)
        .order_by(User.created_at.desc())
        .offset((page - 1) * limit).limit(limit)
    )
    return {
        "providers": [AdminUserResponse.model_validate(u) for u in result.scalars().all()],
        "pagination": paginate(page, limit, await _count(db, select(func.count(User.id)).where(*conditions))),
    }


@router.get("/providers", response_model=dict)
async def get_providers(
    status: Optional[str] = None,
    approval_status: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    current_user: User = Depends(deps.get_current_admin),
    db: AsyncSession = Depends(get_db),
) -> Any:
    return await _list_providers(db, page, limit, status, approval_status)


@router.get("/providers/pending", response_model=dict)
async def get_pending_providers(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    current_user: User = Depends(deps.get_current_admin),
    db: AsyncSession = Depends(get_db),
) -> Any:
    return await _list_providers(db, page, limit, approval_status=ApprovalStatus.PENDING.value)


@router.get("/providers/ratings", response_model=dict)
async def get_provider_ratings(
    current_user: User = Depends(deps.get_current_admin),
    db: AsyncSession = Depends(get_db),
) -> Any:
    result = await db.execute(
        select(User).where(User.role == UserRole.PROVIDER.value)
        .order_by(User.rating.desc(), User.review_count.desc())
    )
    return {"providers": [ProviderRating.model_validate(u) for u in result.scalars().all()]}


@router.get("/providers/{provider_id}/reviews", response_model=dict)
async def get_provider_reviews(
    provider_id: str,
    current_user: User = Depends(deps.get_current_admin),
    db: AsyncSession = Depends(get_db),
) -> Any:
    await _get_provider(db, provider_id)
    result = await db.execute(
        select(Review).where(Review.provider_id == provider_id).order_by(Review.created_at.desc())
    )
    return {"reviews": await review_service.serialize_reviews(db, result.scalars().all(), AdminReviewOut)}


@router.patch("/providers/{provider_id}/approve", response_model=AdminUserResponse)
async def approve_provider(
    provider_id: str,
    current_user: User = Depends(deps.get_current_admin),
    db: AsyncSession = Depends(get_db),
) -> Any:
    provider = await _get_provider(db, provider_id)
    try:
        provider_approval.approve(provider, current_user.id)
    except provider_approval.ApprovalError as e:
        raise HTTPException(status_code=400, detail=str(e))
    await db.flush()
    await db.refresh(provider)
    return provider


@router.patch("/providers/{provider_id}/reject", response_model=AdminUserResponse)
async def reject_provider(
    provider_id: str,
    rejection: Optional[ProviderRejection] = Body(None),
    current_user: User = Depends(deps.get_current_admin),
    db: AsyncSession = Depends(get_db),
) -> Any:
    provider = await _get_provider(db, provider_id)
    try:
        provider_approval.reject(provider, current_user.id, rejection.reason if rejection else None)
    except provider_approval.ApprovalError as e:
        raise HTTPException(status_code=400, detail=str(e))
    await db.flush()
    await db.refresh(provider)
    return provider


# ─── Bookings ────────────────────────────────────────────────────────

@router.get("/bookings", response_model=dict)
async def get_bookings(
    status: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    current_user: User = Depends(deps.get_current_admin),
    db: AsyncSession = Depends(get_db),
) -> Any:
    conditions = []
    if status and status != booking_workflow.ALL_FILTER:
        conditions.append(Booking.status == status)

    result = await db.execute(
        select(Booking).where(*conditions)
        .order_by(Booking.created_at.desc())
        .offset((page - 1) * limit).limit(limit)
    )
    return {
        "bookings": await booking_service.enrich_bookings(db, result.scalars().all()),
        "pagination": paginate(page, limit, await _count(db, select(func.count(Booking.id)).where(*conditions))),
    }


@router.get("/analytics/bookings", response_model=dict)
async def get_booking_analytics(
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    current_user: User = Depends(deps.get_current_admin),
    db: AsyncSession = Depends(get_db),
) -> Any:
    """Booking summary for a window, the last 30 days by default."""
    end = end_date or datetime.utcnow()
    start = start_date or end - timedelta(days=30)
    if start > end:
        raise HTTPException(status_code=400, detail="start_date must be before end_date")

    result = await db.execute(
        select(Booking).where(Booking.created_at >= start, Booking.created_at <= end)
    )
    return booking_service.booking_analytics(result.scalars().all(), start, end)


# ─── Ratings ─────────────────────────────────────────────────────────

@router.get("/ratings", response_model=dict)
async def get_ratings(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    current_user: User = Depends(deps.get_current_admin),
    db: AsyncSession = Depends(get_db),
) -> Any:
    """All reviews with the platform-wide average rating."""
    result = await db.execute(
        select(Review).order_by(Review.created_at.desc()).offset((page - 1) * limit).limit(limit)
    )
    average = (await db.execute(select(func.avg(Review.rating)))).scalar()
    total = await _count(db, select(func.count(Review.id)))
    return {
        "reviews": await review_service.serialize_reviews(db, result.scalars().all(), AdminReviewOut),
        "average_rating": round(float(average), 2) if average else 0.0,
        "total_reviews": total,
        "pagination": paginate(page, limit, total),
    }


# ─── Review response moderation ──────────────────────────────────────

async def _list_responses(db: AsyncSession, status: Optional[str], page: int, limit: int) -> dict:
    condition = [Review.provider_response.isnot(None), Review.provider_response != ""]
    if status:
        condition.append(Review.moderation_status == status)

    result = await db.execute(
        select(Review).where(*condition)
        .order_by(Review.response_date.desc())
        .offset((page - 1) * limit).limit(limit)
    )
    total = await _count(db, select(func.count(Review.id)).where(*condition))
    return {
        "responses": await review_service.serialize_reviews(db, result.scalars().all(), AdminReviewOut),
        "pagination": paginate(page, limit, total),
    }


@router.get("/review-responses/pending", response_model=dict)
async def get_pending_review_responses(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    current_user: User = Depends(deps.get_current_admin),
    db: AsyncSession = Depends(get_db),
) -> Any:
    return await _list_responses(db, ModerationStatus.PENDING.value, page, limit)


@router.get("/review-responses", response_model=dict)
async def get_review_responses(
    status: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    current_user: User = Depends(deps.get_current_admin),
    db: AsyncSession = Depends(get_db),
) -> Any:
    return await _list_responses(db, status, page, limit)


@router.patch("/reviews/{review_id}/moderate", response_model=AdminReviewOut)
async def moderate_review_response(
    review_id: str,
    action_in: ModerationAction,
    current_user: User = Depends(deps.get_current_admin),
    db: AsyncSession = Depends(get_db),
) -> Any:
    result = await db.execute(select(Review).where(Review.id == review_id))
    review = result.scalar_one_or_none()
    if not review:
        raise HTTPException(status_code=404, detail="Review not found")

    try:
        moderation.moderate(review, action_in.action, current_user.id, action_in.rejection_reason)
    except moderation.ModerationError as e:
        raise HTTPException(status_code=400, detail=str(e))

    await db.flush()
    await db.refresh(review)
    return (await review_service.serialize_reviews(db, [review], AdminReviewOut))[0]


# ─── Complaints ──────────────────────────────────────────────────────

async def _get_complaint(db: AsyncSession, complaint_id: str) -> Complaint:
    result = await db.execute(select(Complaint).where(Complaint.id == complaint_id))
    complaint = result.scalar_one_or_none()
    if not complaint:
        raise HTTPException(status_code=404, detail="Complaint not found")
    return complaint


@router.get("/complaints", response_model=dict)
async def get_complaints(
    status: Optional[str] = None,
    priority: Optional[str] = None,
    category: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    current_user: User = Depends(deps.get_current_admin),
    db: AsyncSession = Depends(get_db),
) -> Any:
    conditions = []
    if status:
        conditions.append(Complaint.status == status)
    if priority:
        conditions.append(Complaint.priority == priority)
    if category:
        conditions.append(Complaint.category == category)

    result = await db.execute(
        select(Complaint).where(*conditions)
        .order_by(Complaint.created_at.desc())
        .offset((page - 1) * limit).limit(limit)
    )
    total = await _count(db, select(func.count(Complaint.id)).where(*conditions))
    return {
        "complaints": [ComplaintResponse.model_validate(c) for c in result.scalars().all()],
        "pagination": paginate(page, limit, total),
    }


@router.get("/complaints/{complaint_id}", response_model=ComplaintResponse)
async def get_complaint(
    complaint_id: str,
    current_user: User = Depends(deps.get_current_admin),
    db: AsyncSession = Depends(get_db),
) -> Any:
    return await _get_complaint(db, complaint_id)


@router.patch("/complaints/{complaint_id}/status", response_model=ComplaintResponse)
async def update_complaint_status(
    complaint_id: str,
    status_update: ComplaintStatusUpdate,
    current_user: User = Depends(deps.get_current_admin),
    db: AsyncSession = Depends(get_db),
) -> Any:
    complaint = await _get_complaint(db, complaint_id)
    complaint_service.set_status(complaint, status_update.status, current_user.id, status_update.note)
    await db.flush()
    await db.refresh(complaint)
    return complaint


@router.post("/complaints/{complaint_id}/resolve", response_model=ComplaintResponse)
async def resolve_complaint(
    complaint_id: str,
    resolve_in: ComplaintResolve,
    current_user: User = Depends(deps.get_current_admin),
    db: AsyncSession = Depends(get_db),
) -> Any:
    complaint = await _get_complaint(db, complaint_id)
    complaint_service.resolve(complaint, resolve_in.resolution, current_user.id)
    complaint_service.add_admin_note(complaint, "Complaint resolved", current_user.id)
    await db.flush()
    await db.refresh(complaint)
    return complaint


# ─── Service categories ──────────────────────────────────────────────

@router.get("/service-categories", response_model=List[CategoryResponse])
async def get_service_categories(
    current_user: User = Depends(deps.get_current_admin),
    db: AsyncSession = Depends(get_db),
) -> Any:
    result = await db.execute(select(ServiceCategory).order_by(ServiceCategory.name))
    return result.scalars().all()


@router.post("/service-categories", response_model=CategoryResponse, status_code=201)
async def create_service_category(
    category_in: CategoryCreate,
    current_user: User = Depends(deps.get_current_admin),
    db: AsyncSession = Depends(get_db),
) -> Any:
    existing = await db.execute(select(ServiceCategory).where(ServiceCategory.name == category_in.name))
    if existing.scalar_one_or_none():
        raise HTTPException(status_code=400, detail="Category already exists")

    category = ServiceCategory(name=category_in.name, created_by=current_user.id)
    db.add(category)
    try:
        await db.flush()
    except IntegrityError:
        raise HTTPException(status_code=409, detail="Category already exists")
    await db.refresh(category)
    return category


@router.put("/service-categories/{category_id}", response_model=CategoryResponse)
async def update_service_category(
    category_id: str,
    category_in: CategoryCreate,
    current_user: User = Depends(deps.get_current_admin),
    db: AsyncSession = Depends(get_db),
) -> Any:
    result = await db.execute(select(ServiceCategory).where(ServiceCategory.id == category_id))
    category = result.scalar_one_or_none()
    if not category:
        raise HTTPException(status_code=404, detail="Category not found")

    category.name = category_in.name
    try:
        await db.flush()
    except IntegrityError:
        raise HTTPException(status_code=409, detail="Category already exists")
    await db.refresh(category)
    return category


@router.delete("/service-categories/{category_id}")
async def delete_service_category(
    category_id: str,
    current_user: User = Depends(deps.get_current_admin),
    db: AsyncSession = Depends(get_db),
) -> Any:
    result = await db.execute(select(ServiceCategory).where(ServiceCategory.id == category_id))
    category = result.scalar_one_or_none()
    if not category:
        raise HTTPException(status_code=404, detail="Category not found")
    await db.delete(category)
    return {"message": "Category deleted"}


# ─── Cities ──────────────────────────────────────────────────────────

@router.get("/cities", response_model=List[CityResponse])
async def get_cities(
    current_user: User = Depends(deps.get_current_admin),
    db: AsyncSession = Depends(get_db),
) -> Any:
    result = await db.execute(select(City).order_by(City.name))
    return result.scalars().all()


@router.post("/cities", response_model=CityResponse, status_code=201)
async def create_city(
    city_in: CityCreate,
    current_user: User = Depends(deps.get_current_admin),
    db: AsyncSession = Depends(get_db),
) -> Any:
    existing = await db.execute(select(City).where(City.name == city_in.name))
    if existing.scalar_one_or_none():
        raise HTTPException(status_code=400, detail="City already exists")

    city = City(name=city_in.name)
    db.add(city)
    try:
        await db.flush()
    except IntegrityError:
        raise HTTPException(status_code=409, detail="City already exists")
    await db.refresh(city)
    return city


@router.put("/cities/{city_id}", response_model=CityResponse)
async def update_city(
    city_id: str,
    city_in: CityCreate,
    current_user: User = Depends(deps.get_current_admin),
    db: AsyncSession = Depends(get_db),
) -> Any:
    result = await db.execute(select(City).where(City.id == city_id))
    city = result.scalar_one_or_none()
    if not city:
        raise HTTPException(status_code=404, detail="City not found")

    city.name = city_in.name
    try:
        await db.flush()
    except IntegrityError:
        raise HTTPException(status_code=409, detail="City already exists")
    await db.refresh(city)
    return city


@router.delete("/cities/{city_id}")
async def delete_city(
    city_id: str,
    current_user: User = Depends(deps.get_current_admin),
    db: AsyncSession = Depends(get_db),
) -> Any:
    result = await db.execute(select(City).where(City.id == city_id))
    city = result.scalar_one_or_none()
    if not city:
        raise HTTPException(status_code=404, detail="City not found")
    await db.delete(city)
    return {"message": "City deleted"}
