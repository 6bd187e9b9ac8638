from pydantic import BaseModel, Field, field_validator
from typing import List, Optional
from datetime import datetime


def _strip_required(v: str) -> str:
    v = v.strip()
    if not v:
        raise ValueError("Name is required")
    return v


# ─── Service Listings ────────────────────────────────────────────────

class ServiceCreate(BaseModel):
    title: str = Field(..., min_length=1)
    category: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    price: float = Field(..., ge=0)
    city: str = Field(..., min_length=1)
    location: str = Field(..., min_length=1)
    tags: List[str] = []
    images: List[str] = []


class ServiceUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1)
    category: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = Field(None, min_length=1)
    price: Optional[float] = Field(None, ge=0)
    city: Optional[str] = None
    location: Optional[str] = None
    tags: Optional[List[str]] = None
    images: Optional[List[str]] = None
    is_active: Optional[bool] = None

    @field_validator("title", "category", "description", "price", "city", "location", "tags", "images", "is_active")
    @classmethod
    def not_null(cls, v, info):
        if v is None:
            raise ValueError(f"{info.field_name} cannot be null")
        return v


class ServiceResponse(BaseModel):
    id: str
    provider_id: str
    title: str
    category: str
    description: str
    price: float
    city: str
    location: str
    tags: List[str] = []
    images: List[str] = []
    is_active: bool
    rating: float = 0.0
    review_count: int = 0
    total_bookings: int = 0
    completed_bookings: int = 0
    provider_name: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


# ─── Provider category registration ──────────────────────────────────

class ProviderServiceCreate(BaseModel):
    category_name: str

    @field_validator("category_name")
    @classmethod
    def strip_category_name(cls, v: str) -> str:
        return _strip_required(v)


class ProviderServiceResponse(BaseModel):
    id: str
    service_provider_id: str
    provider_id: str
    category_name: str
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# ─── Categories & Cities ─────────────────────────────────────────────

class CategoryCreate(BaseModel):
    name: str

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        return _strip_required(v)


class CategoryResponse(BaseModel):
    id: str
    name: str
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class CityCreate(BaseModel):
    name: str

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        return _strip_required(v)


class CityResponse(BaseModel):
    id: str
    name: str
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
