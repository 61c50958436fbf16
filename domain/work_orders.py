"""Housekeeping Work Order Emitter"""
from typing import Optional

from domain.entities import HousekeepingTask, Room
from domain.enums import TaskPriority, TaskStatus, TaskType

DEFAULT_CLEANING_DURATION = 60  # minutes
SYSTEM_ACTOR = "System"


def emit_cleaning_task(
    room: Room,
    created_by: Optional[str] = None,
    reservation_id: Optional[int] = None,
    estimated_duration: int = DEFAULT_CLEANING_DURATION
) -> HousekeepingTask:
    """Build the post-departure cleaning order for ``room``.

    Nothing is read here; calling it twice gives two tasks.
    """
    return HousekeepingTask(
        room_id=room.id,
        reservation_id=reservation_id,
        task_type=TaskType.CLEANING,
        priority=TaskPriority.NORMAL,
        status=TaskStatus.PENDING,
        description=f"Post-checkout cleaning for room {room.room_number} after guest departure",
        estimated_duration=estimated_duration,
        created_by=created_by or SYSTEM_ACTOR
    )
