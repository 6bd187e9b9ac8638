import uuid
from datetime import datetime
from sqlalchemy import (
    Column, String, Integer, Float, Boolean, Text, DateTime,
    ForeignKey, JSON, UniqueConstraint
)
from sqlalchemy.orm import relationship, DeclarativeBase
import enum


class Base(DeclarativeBase):
    pass


# ─── Enums ───────────────────────────────────────────────────────────

class UserRole(str, enum.Enum):
    CUSTOMER = "customer"
    PROVIDER = "provider"
    ADMIN = "admin"


class UserStatus(str, enum.Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    SUSPENDED = "suspended"
    REJECTED = "rejected"


class ApprovalStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class BookingStatus(str, enum.Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class PaymentStatus(str, enum.Enum):
    PENDING = "pending"
    PAID = "paid"
    REFUNDED = "refunded"


class PaymentMethod(str, enum.Enum):
    CASH = "cash"
    CARD = "card"
    MOBILE_WALLET = "mobile-wallet"


class ModerationStatus(str, enum.Enum):
    NONE = "none"
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class ComplaintCategory(str, enum.Enum):
    SERVICE_QUALITY = "service_quality"
    PAYMENT_ISSUE = "payment_issue"
    PROVIDER_BEHAVIOR = "provider_behavior"
    BOOKING_CANCELLATION = "booking_cancellation"
    SAFETY_CONCERN = "safety_concern"
    OTHER = "other"


class ComplaintPriority(str, enum.Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class ComplaintStatus(str, enum.Enum):
    OPEN = "open"
    IN_PROGRESS = "in_progress"
    RESOLVED = "resolved"
    CLOSED = "closed"
    ESCALATED = "escalated"


class MessageType(str, enum.Enum):
    TEXT = "text"
    IMAGE = "image"
    FILE = "file"


# ─── Helper ──────────────────────────────────────────────────────────

def generate_uuid():
    return str(uuid.uuid4())


# ─── Models ──────────────────────────────────────────────────────────

class User(Base):
    __tablename__ = "users"

    id = Column(String, primary_key=True, default=generate_uuid)
    name = Column(String, nullable=False)
    email = Column(String, unique=True, nullable=False, index=True)
    password_hash = Column(String, nullable=False)
    role = Column(String, nullable=False, default=UserRole.CUSTOMER.value)
    status = Column(String, nullable=False, default=UserStatus.ACTIVE.value)

    # Customer fields
    phone = Column(String, nullable=True)
    address = Column(String, nullable=True)
    city = Column(String, nullable=True)

    # Provider fields
    profession = Column(String, nullable=True)
    experience = Column(Integer, nullable=True)  # years
    pricing = Column(Float, nullable=True)  # per hour / per job
    certifications = Column(String, nullable=True)
    cnic = Column(String, nullable=True)
    availability = Column(String, nullable=True)  # e.g. "9am to 6pm, Mon-Sat"
    bio = Column(Text, nullable=True)
    profile_image = Column(String, nullable=True)
    rating = Column(Float, default=0.0)
    review_count = Column(Integer, default=0)

    # Provider vetting, unset for customers and admins
    approval_status = Column(String, nullable=True, index=True)
    approved_by = Column(String, ForeignKey("users.id"), nullable=True)
    approval_date = Column(DateTime, nullable=True)
    rejection_reason = Column(Text, nullable=True)
    rejected_by = Column(String, ForeignKey("users.id"), nullable=True)
    rejection_date = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class ProviderService(Base):
    __tablename__ = "provider_services"
    __table_args__ = (
        UniqueConstraint("provider_id", "category_name", name="uq_provider_category"),
    )

    id = Column(String, primary_key=True, default=generate_uuid)
    service_provider_id = Column(String, unique=True, nullable=False, default=generate_uuid)
    provider_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    category_name = Column(String, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class ServiceCategory(Base):
    __tablename__ = "service_categories"

    id = Column(String, primary_key=True, default=generate_uuid)
    name = Column(String, unique=True, nullable=False)
    created_by = Column(String, ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class City(Base):
    __tablename__ = "cities"

    id = Column(String, primary_key=True, default=generate_uuid)
    name = Column(String, unique=True, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class Service(Base):
    __tablename__ = "services"

    id = Column(String, primary_key=True, default=generate_uuid)
    provider_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    title = Column(String, nullable=False)
    category = Column(String, nullable=False, index=True)
    description = Column(Text, nullable=False)
    price = Column(Float, nullable=False, default=0.0)
    city = Column(String, nullable=False)
    location = Column(String, nullable=False)
    tags = Column(JSON, default=list)
    images = Column(JSON, default=list)
    is_active = Column(Boolean, default=True)
    rating = Column(Float, default=0.0)
    review_count = Column(Integer, default=0)
    total_bookings = Column(Integer, default=0)
    completed_bookings = Column(Integer, default=0)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class Booking(Base):
    __tablename__ = "bookings"

    id = Column(String, primary_key=True, default=generate_uuid)
    booking_code = Column(String, unique=True, nullable=False)
    customer_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    provider_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    service_id = Column(String, ForeignKey("services.id"), nullable=False)
    customer_contact = Column(String, nullable=False)
    email = Column(String, nullable=False)
    booking_date = Column(DateTime, nullable=False)
    preferred_time = Column(String, nullable=False)
    location = Column(String, nullable=False)
    description = Column(Text, nullable=True)  # customer's special note
    estimated_cost = Column(Float, default=0.0)
    status = Column(String, nullable=False, default=BookingStatus.PENDING.value)
    payment_status = Column(String, default=PaymentStatus.PENDING.value)
    payment_method = Column(String, default=PaymentMethod.CASH.value)
    provider_notes = Column(Text, nullable=True)
    cancellation_reason = Column(Text, nullable=True)
    completed_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class Review(Base):
    __tablename__ = "reviews"

    id = Column(String, primary_key=True, default=generate_uuid)
    booking_id = Column(String, ForeignKey("bookings.id"), nullable=False, unique=True)
    customer_id = Column(String, ForeignKey("users.id"), nullable=False)
    provider_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    service_id = Column(String, ForeignKey("services.id"), nullable=True)
    rating = Column(Integer, nullable=False)
    review_text = Column(Text, nullable=False)

    # Provider response, gated by admin moderation
    provider_response = Column(Text, nullable=True)
    response_date = Column(DateTime, nullable=True)
    moderation_status = Column(String, nullable=False, default=ModerationStatus.NONE.value)
    rejection_reason = Column(Text, nullable=True)
    moderated_by = Column(String, ForeignKey("users.id"), nullable=True)
    moderation_date = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class Complaint(Base):
    __tablename__ = "complaints"

    id = Column(String, primary_key=True, default=generate_uuid)
    title = Column(String, nullable=True)
    description = Column(Text, nullable=False)
    category = Column(String, default=ComplaintCategory.OTHER.value)
    priority = Column(String, default=ComplaintPriority.MEDIUM.value)
    filed_by = Column(String, ForeignKey("users.id"), nullable=False)
    customer_id = Column(String, ForeignKey("users.id"), nullable=True)
    provider_id = Column(String, ForeignKey("users.id"), nullable=True)
    booking_id = Column(String, ForeignKey("bookings.id"), nullable=True)
    status = Column(String, default=ComplaintStatus.OPEN.value)
    resolution = Column(Text, nullable=True)
    resolved_by = Column(String, ForeignKey("users.id"), nullable=True)
    resolution_date = Column(DateTime, nullable=True)
    attachments = Column(JSON, default=list)  # [{"filename", "url"}]
    admin_notes = Column(JSON, default=list)  # [{"note", "admin", "timestamp"}]
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class ChatRoom(Base):
    __tablename__ = "chat_rooms"

    id = Column(String, primary_key=True, default=generate_uuid)
    customer_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    provider_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    booking_id = Column(String, ForeignKey("bookings.id"), nullable=True)
    is_active = Column(Boolean, default=True)
    last_message_at = Column(DateTime, default=datetime.utcnow)
    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    messages = relationship("Message", back_populates="chat_room", order_by="Message.created_at")


class Message(Base):
    __tablename__ = "messages"

    id = Column(String, primary_key=True, default=generate_uuid)
    chat_room_id = Column(String, ForeignKey("chat_rooms.id"), nullable=False, index=True)
    sender_id = Column(String, ForeignKey("users.id"), nullable=False)
    receiver_id = Column(String, ForeignKey("users.id"), nullable=False)
    content = Column(Text, nullable=False)
    message_type = Column(String, default=MessageType.TEXT.value)
    is_read = Column(Boolean, default=False)
    read_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    chat_room = relationship("ChatRoom", back_populates="messages")
