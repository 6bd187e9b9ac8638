from pydantic import BaseModel, Field, field_validator
from typing import Optional, Literal
from datetime import datetime

MAX_REVIEW_LENGTH = 500


class ReviewCreate(BaseModel):
    booking_id: str
    rating: int = Field(..., ge=1, le=5)
    review_text: str = Field(..., max_length=MAX_REVIEW_LENGTH)

    @field_validator("review_text")
    @classmethod
    def strip_text(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Review text is required")
        return v


class ReviewResponseCreate(BaseModel):
    response: str = Field(..., max_length=MAX_REVIEW_LENGTH)

    @field_validator("response")
    @classmethod
    def strip_response(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Response text is required")
        return v


class ModerationAction(BaseModel):
    action: Literal["approve", "reject"]
    rejection_reason: Optional[str] = None


class ReviewOut(BaseModel):
    """Customer-facing review; provider_response is only set once approved."""
    id: str
    booking_id: str
    customer_id: str
    provider_id: str
    service_id: Optional[str] = None
    rating: int
    review_text: str
    customer_name: Optional[str] = None
    provider_name: Optional[str] = None
    provider_response: Optional[str] = None
    response_date: Optional[datetime] = None
    created_at: datetime


class ProviderReviewOut(ReviewOut):
    moderation_status: str
    rejection_reason: Optional[str] = None


class AdminReviewOut(ProviderReviewOut):
    moderated_by: Optional[str] = None
    moderation_date: Optional[datetime] = None
