"""API Schemas - Request and Response DTOs"""
from pydantic import BaseModel
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from application.commands import (
    AmendReservationCommand, CreateReservationCommand, CreateTaskCommand, UpdateTaskCommand
)


# ============================================================================
# RESERVATION SCHEMAS
# ============================================================================

class CreateReservationRequest(CreateReservationCommand):
    """Create reservation request DTO"""


class AmendReservationRequest(AmendReservationCommand):
    """Amend reservation request DTO"""


class ReservationResponse(BaseModel):
    """Reservation response DTO"""
    id: int
    confirmation_number: str
    guest_id: int
    room_id: int
    check_in_date: date
    check_out_date: date
    number_of_guests: int
    number_of_nights: int
    room_rate: Decimal
    total_amount: Decimal
    paid_amount: Decimal
    balance_due: Decimal
    currency: str
    status: str
    source: str
    special_requests: Optional[str] = None
    notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    checked_in_at: Optional[datetime] = None
    checked_out_at: Optional[datetime] = None


# ============================================================================
# HOUSEKEEPING SCHEMAS
# ============================================================================

class CreateTaskRequest(CreateTaskCommand):
    """Create housekeeping task request DTO"""


class UpdateTaskRequest(UpdateTaskCommand):
    """Update housekeeping task request DTO"""


class TaskResponse(BaseModel):
    """Housekeeping task response DTO"""
    id: int
    room_id: int
    reservation_id: Optional[int] = None
    task_type: str
    priority: str
    status: str
    assigned_to: Optional[str] = None
    description: Optional[str] = None
    estimated_duration: Optional[int] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    notes: Optional[str] = None
    created_by: str
    created_at: datetime
    updated_at: datetime


class CheckOutResponse(BaseModel):
    """Check-out response DTO"""
    message: str
    reservation: ReservationResponse
    cleaning_task: TaskResponse


class MessageResponse(BaseModel):
    """Plain acknowledgement DTO"""
    success: bool = True
    message: str


# ============================================================================
# AUTH SCHEMAS
# ============================================================================

class Token(BaseModel):
    """Token response DTO"""
    access_token: str
    token_type: str


class TokenData(BaseModel):
    """Token payload DTO"""
    username: Optional[str] = None


class UserResponse(BaseModel):
    """User response DTO"""
    user_id: int
    username: str
    email: Optional[str] = None
    full_name: Optional[str] = None
    role: str
    disabled: bool
