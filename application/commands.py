"""Application Commands - validated input for each use case"""
from pydantic import BaseModel, Field
from datetime import date
from decimal import Decimal
from typing import Optional

from domain.enums import ReservationSource, ReservationStatus, TaskPriority, TaskStatus, TaskType


class CreateReservationCommand(BaseModel):
    """Book a room for a guest"""
    guest_id: int = Field(gt=0)
    room_id: int = Field(gt=0)
    check_in_date: date
    check_out_date: date
    number_of_guests: int = Field(ge=1)
    special_requests: Optional[str] = None
    notes: Optional[str] = None
    source: ReservationSource = ReservationSource.FRONT_DESK


class AmendReservationCommand(BaseModel):
    """Partial update; only fields that were explicitly set are applied"""
    check_in_date: Optional[date] = None
    check_out_date: Optional[date] = None
    number_of_guests: Optional[int] = Field(None, ge=1)
    status: Optional[ReservationStatus] = None
    special_requests: Optional[str] = None
    notes: Optional[str] = None
    paid_amount: Optional[Decimal] = Field(None, ge=0)


class CreateTaskCommand(BaseModel):
    """Open a housekeeping work order by hand"""
    room_id: int = Field(gt=0)
    task_type: TaskType
    priority: TaskPriority = TaskPriority.NORMAL
    description: str = Field(min_length=1)
    estimated_duration: Optional[int] = Field(None, ge=0)
    assigned_to: Optional[str] = None
    notes: Optional[str] = None


class UpdateTaskCommand(BaseModel):
    """Partial update of a work order"""
    status: Optional[TaskStatus] = None
    assigned_to: Optional[str] = None
    notes: Optional[str] = None
    estimated_duration: Optional[int] = Field(None, ge=0)
