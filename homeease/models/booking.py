from pydantic import BaseModel, Field, EmailStr
from typing import Optional, List, Dict
from datetime import datetime
from homeease.db.db_models import BookingStatus, PaymentMethod
from homeease.models.service import ServiceResponse


# ─── Booking Schemas ─────────────────────────────────────────────────

class BookingCreate(BaseModel):
    service_id: str
    booking_date: datetime
    preferred_time: str = Field(..., min_length=1)
    location: str = Field(..., min_length=1)
    customer_contact: Optional[str] = None  # Defaults to the customer's phone
    email: Optional[EmailStr] = None  # Defaults to the customer's email
    description: Optional[str] = None
    payment_method: PaymentMethod = PaymentMethod.CASH


class PartySummary(BaseModel):
    id: str
    name: str
    image: Optional[str] = None


class ServiceSummary(BaseModel):
    id: str
    title: str
    category: str


class BookingResponse(BaseModel):
    id: str
    booking_code: str
    customer_id: str
    provider_id: str
    service_id: str
    customer_contact: str
    email: str
    booking_date: datetime
    preferred_time: str
    location: str
    description: Optional[str] = None
    estimated_cost: float
    status: str
    payment_status: str
    payment_method: str
    provider_notes: Optional[str] = None
    cancellation_reason: Optional[str] = None
    completed_at: Optional[datetime] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    # Populated for list/detail views
    customer: Optional[PartySummary] = None
    provider: Optional[PartySummary] = None
    service: Optional[ServiceSummary] = None

    class Config:
        from_attributes = True


class BookingStatusUpdate(BaseModel):
    status: BookingStatus
    reason: Optional[str] = None
    provider_notes: Optional[str] = None


class BookingActionNote(BaseModel):
    """Optional body for provider accept/reject/start/complete actions."""
    reason: Optional[str] = None
    provider_notes: Optional[str] = None


class BookingCounts(BaseModel):
    total: int = 0
    by_status: Dict[str, int] = {}


class CustomerDashboard(BaseModel):
    bookings: List[BookingResponse]
    counts: BookingCounts
    total_spent: float
    services: List[ServiceResponse]


class ProviderDashboard(BaseModel):
    bookings: List[BookingResponse]
    counts: BookingCounts
    earnings: float
    rating: float
    review_count: int
    pending_responses: int
