"""Domain Entities - Aggregates"""
from pydantic import BaseModel, Field
from datetime import datetime, date, timezone
from typing import Optional
from decimal import Decimal
import secrets
import string
import time

from domain.enums import (
    ACTIVE_RESERVATION_STATUSES, ReservationStatus, ReservationSource,
    RoomType, RoomStatus, TaskType, TaskPriority, TaskStatus
)
from domain.errors import InvalidTransitionError
from domain.pricing import calculate_total
from domain.value_objects import DateRange

_BASE36 = string.digits + string.ascii_uppercase


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Room(BaseModel):
    """Room as seen by the reservation engine (inventory owns the rest)"""

    id: Optional[int] = None
    room_number: str
    room_type: RoomType
    floor: int
    max_occupancy: int = Field(ge=1)
    base_rate: Decimal = Field(gt=0)
    status: RoomStatus = RoomStatus.AVAILABLE
    amenities: Optional[str] = None
    description: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    class Config:
        from_attributes = True


class Guest(BaseModel):
    """Guest record, referenced by reservations through its id"""

    id: Optional[int] = None
    first_name: str
    last_name: str
    email: str
    phone: Optional[str] = None
    id_type: Optional[str] = None
    id_number: Optional[str] = None
    nationality: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    country: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    class Config:
        from_attributes = True


class Reservation(BaseModel):
    """Reservation Aggregate Root Entity"""

    # Identity
    id: Optional[int] = None
    confirmation_number: str

    # References
    guest_id: int
    room_id: int

    # Stay
    check_in_date: date
    check_out_date: date
    number_of_guests: int = Field(ge=1)
    number_of_nights: int = Field(ge=1)

    # Money; room_rate is the base rate captured at booking time
    room_rate: Decimal = Field(gt=0)
    total_amount: Decimal
    paid_amount: Decimal = Decimal("0")

    status: ReservationStatus = ReservationStatus.CONFIRMED
    source: ReservationSource = ReservationSource.FRONT_DESK
    special_requests: Optional[str] = None
    notes: Optional[str] = None

    # Metadata
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
    checked_in_at: Optional[datetime] = None
    checked_out_at: Optional[datetime] = None

    class Config:
        from_attributes = True

    # ==================== FACTORY METHOD ====================
    @staticmethod
    def create(
        guest_id: int,
        room: Room,
        date_range: DateRange,
        number_of_guests: int,
        confirmation_prefix: str = "HTL",
        special_requests: Optional[str] = None,
        notes: Optional[str] = None,
        source: ReservationSource = ReservationSource.FRONT_DESK
    ) -> "Reservation":
        """Create a confirmed reservation priced at the room's current rate"""
        nights = date_range.nights()
        return Reservation(
            confirmation_number=Reservation.generate_confirmation_number(confirmation_prefix),
            guest_id=guest_id,
            room_id=room.id,
            check_in_date=date_range.check_in,
            check_out_date=date_range.check_out,
            number_of_guests=number_of_guests,
            number_of_nights=nights,
            room_rate=room.base_rate,
            total_amount=calculate_total(nights, room.base_rate),
            paid_amount=Decimal("0"),
            status=ReservationStatus.CONFIRMED,
            special_requests=special_requests,
            notes=notes,
            source=source
        )

    @staticmethod
    def generate_confirmation_number(prefix: str = "HTL") -> str:
        """Prefix, epoch milliseconds and four random base36 characters"""
        suffix = ''.join(secrets.choice(_BASE36) for _ in range(4))
        return f"{prefix}-{int(time.time() * 1000)}-{suffix}"

    # ==================== QUERY METHODS ====================
    @property
    def date_range(self) -> DateRange:
        return DateRange(check_in=self.check_in_date, check_out=self.check_out_date)

    @property
    def is_active(self) -> bool:
        """Whether the reservation currently holds its room"""
        return self.status in ACTIVE_RESERVATION_STATUSES

    @property
    def balance_due(self) -> Decimal:
        return self.total_amount - self.paid_amount

    def conflicts_with(self, date_range: DateRange) -> bool:
        """Check whether this reservation blocks the room for ``date_range``"""
        return self.is_active and self.date_range.overlaps(date_range)

    # ==================== STATE TRANSITION METHODS ====================
    def check_in(self, at: Optional[datetime] = None) -> None:
        """Mark guest as checked in"""
        if self.status != ReservationStatus.CONFIRMED:
            raise InvalidTransitionError(
                f"Reservation cannot be checked in from status {self.status.value}",
                details={"reservation_id": self.id, "status": self.status.value}
            )
        self._set_status(ReservationStatus.CHECKED_IN, at)

    def check_out(self, at: Optional[datetime] = None) -> None:
        """Mark guest as checked out"""
        if self.status != ReservationStatus.CHECKED_IN:
            raise InvalidTransitionError(
                f"Guest is not checked in (status {self.status.value})",
                details={"reservation_id": self.id, "status": self.status.value}
            )
        self._set_status(ReservationStatus.CHECKED_OUT, at)

    def cancel(self, at: Optional[datetime] = None) -> None:
        """Administrative cancellation"""
        if not self.is_active:
            raise InvalidTransitionError(
                f"Cannot cancel reservation with status {self.status.value}",
                details={"reservation_id": self.id, "status": self.status.value}
            )
        self._set_status(ReservationStatus.CANCELLED, at)

    def override_status(self, status: ReservationStatus, at: Optional[datetime] = None) -> None:
        """Set a status without the transition guards (privileged amendment)"""
        self._set_status(status, at)

    # ==================== MODIFICATION METHODS ====================
    def reschedule(self, date_range: DateRange, room_rate: Decimal) -> None:
        """Move the stay and recompute nights and total at ``room_rate``"""
        nights = date_range.nights()
        self.check_in_date = date_range.check_in
        self.check_out_date = date_range.check_out
        self.number_of_nights = nights
        self.room_rate = room_rate
        self.total_amount = calculate_total(nights, room_rate)
        self.updated_at = utcnow()

    def _set_status(self, status: ReservationStatus, at: Optional[datetime]) -> None:
        now = at or utcnow()
        self.status = status
        if status == ReservationStatus.CHECKED_IN:
            self.checked_in_at = now
        elif status == ReservationStatus.CHECKED_OUT:
            self.checked_out_at = now
        self.updated_at = now


# Allowed work order status moves
_TASK_TRANSITIONS = {
    TaskStatus.PENDING: (TaskStatus.IN_PROGRESS, TaskStatus.COMPLETED, TaskStatus.CANCELLED),
    TaskStatus.IN_PROGRESS: (TaskStatus.COMPLETED, TaskStatus.CANCELLED),
}


class HousekeepingTask(BaseModel):
    """Housekeeping work order"""

    id: Optional[int] = None
    room_id: int
    reservation_id: Optional[int] = None
    task_type: TaskType
    priority: TaskPriority = TaskPriority.NORMAL
    status: TaskStatus = TaskStatus.PENDING
    assigned_to: Optional[str] = None
    description: Optional[str] = None
    estimated_duration: Optional[int] = Field(default=None, ge=0)
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    notes: Optional[str] = None
    created_by: str
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    class Config:
        from_attributes = True

    @property
    def releases_room(self) -> bool:
        """Completing a cleaning task is what makes a room available again"""
        return self.task_type == TaskType.CLEANING and self.status == TaskStatus.COMPLETED

    def move_to(self, status: TaskStatus, at: Optional[datetime] = None) -> None:
        """Advance the work order, stamping start and completion times"""
        if status not in _TASK_TRANSITIONS.get(self.status, ()):
            raise InvalidTransitionError(
                f"Cannot move task from {self.status.value} to {status.value}",
                details={"task_id": self.id, "status": self.status.value}
            )
        now = at or utcnow()
        self.status = status
        if status == TaskStatus.IN_PROGRESS:
            self.started_at = now
        elif status == TaskStatus.COMPLETED:
            self.completed_at = now
        self.updated_at = now
