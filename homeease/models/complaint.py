from pydantic import BaseModel
from typing import Optional, List
from datetime import datetime
from homeease.db.db_models import ComplaintStatus


class Attachment(BaseModel):
    filename: str
    url: str


class AdminNote(BaseModel):
    note: str
    admin: str
    timestamp: datetime


class ComplaintResponse(BaseModel):
    id: str
    title: Optional[str] = None
    description: str
    category: str
    priority: str
    filed_by: str
    customer_id: Optional[str] = None
    provider_id: Optional[str] = None
    booking_id: Optional[str] = None
    status: str
    resolution: Optional[str] = None
    resolved_by: Optional[str] = None
    resolution_date: Optional[datetime] = None
    attachments: List[Attachment] = []
    admin_notes: List[AdminNote] = []
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ComplaintStatusUpdate(BaseModel):
    status: ComplaintStatus
    note: Optional[str] = None


class ComplaintResolve(BaseModel):
    resolution: str
