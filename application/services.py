"""Application Services - Business use cases

Each public method is one logical operation and runs inside exactly one unit
of work, so either every write it makes is committed or none is.
"""
import logging
from datetime import date
from typing import Callable, List, Optional

from pydantic import BaseModel

from application.commands import (
    AmendReservationCommand, CreateReservationCommand, CreateTaskCommand, UpdateTaskCommand
)
from domain.auth import RequestContext
from domain.entities import HousekeepingTask, Reservation, utcnow
from domain.enums import ReservationStatus, RoomStatus, StaffRole, TaskStatus
from domain.errors import ConflictError, NotFoundError
from domain.repositories import UnitOfWork
from domain.value_objects import DateRange
from domain.work_orders import DEFAULT_CLEANING_DURATION, emit_cleaning_task

logger = logging.getLogger(__name__)

UnitOfWorkFactory = Callable[[], UnitOfWork]

# Fields an amendment copies over as-is; null clears only the clearable ones
_REQUIRED_AMEND_FIELDS = ("number_of_guests", "paid_amount")
_CLEARABLE_AMEND_FIELDS = ("special_requests", "notes")


class CheckOutResult(BaseModel):
    """Checked-out reservation and the cleaning order it produced"""
    reservation: Reservation
    cleaning_task: HousekeepingTask


class ReservationService:
    """Service for Reservation business use cases"""

    def __init__(
        self,
        uow_factory: UnitOfWorkFactory,
        confirmation_prefix: str = "HTL",
        cleaning_duration: int = DEFAULT_CLEANING_DURATION,
        amend_uses_current_rate: bool = True
    ):
        self.uow_factory = uow_factory
        self.confirmation_prefix = confirmation_prefix
        self.cleaning_duration = cleaning_duration
        self.amend_uses_current_rate = amend_uses_current_rate

    # ==================== CREATION ====================
    async def create_reservation(
        self,
        context: RequestContext,
        command: CreateReservationCommand
    ) -> Reservation:
        """Book a room if nothing active overlaps the requested dates"""
        date_range = DateRange.between(command.check_in_date, command.check_out_date)

        async with self.uow_factory() as uow:
            # Room row lock serializes bookings for this room
            room = await uow.rooms.get(command.room_id, for_update=True)

            conflicts = await uow.reservations.find_overlapping(command.room_id, date_range)
            if conflicts:
                logger.warning(
                    "Booking rejected: room %s unavailable %s..%s (conflicts with %s)",
                    command.room_id, date_range.check_in, date_range.check_out,
                    [r.id for r in conflicts]
                )
                raise ConflictError(
                    "Room is not available for the selected dates",
                    details={
                        "room_id": command.room_id,
                        "conflicting_reservation_ids": [r.id for r in conflicts],
                    }
                )

            if room is None:
                raise NotFoundError("Room not found", details={"room_id": command.room_id})

            if await uow.guests.get(command.guest_id) is None:
                raise NotFoundError("Guest not found", details={"guest_id": command.guest_id})

            reservation = Reservation.create(
                guest_id=command.guest_id,
                room=room,
                date_range=date_range,
                number_of_guests=command.number_of_guests,
                confirmation_prefix=self.confirmation_prefix,
                special_requests=command.special_requests,
                notes=command.notes,
                source=command.source
            )
            saved = await uow.reservations.add(reservation)

        logger.info(
            "Reservation %s (%s) created by %s for room %s, %s nights, total %s",
            saved.id, saved.confirmation_number, context.username,
            saved.room_id, saved.number_of_nights, saved.total_amount
        )
        return saved

    # ==================== QUERIES ====================
    async def get_reservation(self, reservation_id: int) -> Reservation:
        """Get reservation by ID"""
        async with self.uow_factory() as uow:
            reservation = await uow.reservations.get(reservation_id)
        if reservation is None:
            raise NotFoundError("Reservation not found", details={"reservation_id": reservation_id})
        return reservation

    async def get_reservation_by_confirmation_number(self, confirmation_number: str) -> Reservation:
        """Get reservation by confirmation number"""
        async with self.uow_factory() as uow:
            reservation = await uow.reservations.find_by_confirmation_number(confirmation_number)
        if reservation is None:
            raise NotFoundError(
                "Reservation not found", details={"confirmation_number": confirmation_number}
            )
        return reservation

    async def list_reservations(
        self,
        status: Optional[ReservationStatus] = None,
        from_date: Optional[date] = None,
        to_date: Optional[date] = None
    ) -> List[Reservation]:
        """List reservations ordered by check-in date"""
        async with self.uow_factory() as uow:
            return await uow.reservations.find_all(status=status, from_date=from_date, to_date=to_date)

    # ==================== STATE TRANSITIONS ====================
    async def check_in(self, context: RequestContext, reservation_id: int) -> Reservation:
        """Check the guest in and mark the room occupied"""
        async with self.uow_factory() as uow:
            reservation = await self._load_for_update(uow, reservation_id)
            reservation.check_in()
            await uow.rooms.set_status(reservation.room_id, RoomStatus.OCCUPIED)
            saved = await uow.reservations.update(reservation)

        logger.info(
            "Reservation %s checked in by %s; room %s occupied",
            saved.id, context.username, saved.room_id
        )
        return saved

    async def check_out(self, context: RequestContext, reservation_id: int) -> CheckOutResult:
        """Check the guest out, mark the room dirty and open a cleaning order"""
        async with self.uow_factory() as uow:
            reservation = await self._load_for_update(uow, reservation_id)
            reservation.check_out()

            room = await uow.rooms.get(reservation.room_id, for_update=True)
            if room is None:
                raise NotFoundError("Room not found", details={"room_id": reservation.room_id})
            await uow.rooms.set_status(room.id, RoomStatus.DIRTY)

            task = await uow.tasks.add(emit_cleaning_task(
                room,
                created_by=context.actor,
                reservation_id=reservation.id,
                estimated_duration=self.cleaning_duration
            ))
            saved = await uow.reservations.update(reservation)

        logger.info(
            "Reservation %s checked out by %s; room %s dirty, cleaning task %s opened",
            saved.id, context.username, saved.room_id, task.id
        )
        return CheckOutResult(reservation=saved, cleaning_task=task)

    async def cancel_reservation(self, context: RequestContext, reservation_id: int) -> Reservation:
        """Administrative cancellation; room and housekeeping are left alone"""
        context.require_privileged()
        async with self.uow_factory() as uow:
            reservation = await self._load_for_update(uow, reservation_id)
            reservation.cancel()
            saved = await uow.reservations.update(reservation)

        logger.info("Reservation %s cancelled by %s", saved.id, context.username)
        return saved

    # ==================== AMENDMENT & DELETION ====================
    async def amend_reservation(
        self,
        context: RequestContext,
        reservation_id: int,
        command: AmendReservationCommand
    ) -> Reservation:
        """Apply the fields set on ``command``.

        Changing either date reprices the stay and, for a reservation that
        still holds its room, re-checks the room for overlaps. A status
        override skips the transition guards but still stamps check-in and
        check-out times.
        """
        changes = command.model_dump(exclude_unset=True)
        if "status" in changes:
            context.require_privileged()

        new_check_in = changes.get("check_in_date")
        new_check_out = changes.get("check_out_date")

        async with self.uow_factory() as uow:
            reservation = await self._load_for_update(uow, reservation_id)

            if new_check_in is not None or new_check_out is not None:
                date_range = DateRange.between(
                    new_check_in or reservation.check_in_date,
                    new_check_out or reservation.check_out_date
                )
                # Same room lock as create_reservation
                room = await uow.rooms.get(reservation.room_id, for_update=True)
                if room is None:
                    raise NotFoundError("Room not found", details={"room_id": reservation.room_id})

                if reservation.is_active:
                    conflicts = await uow.reservations.find_overlapping(
                        reservation.room_id, date_range, exclude_id=reservation.id
                    )
                    if conflicts:
                        raise ConflictError(
                            "Room is not available for the selected dates",
                            details={
                                "room_id": reservation.room_id,
                                "conflicting_reservation_ids": [r.id for r in conflicts],
                            }
                        )
                rate = room.base_rate if self.amend_uses_current_rate else reservation.room_rate
                reservation.reschedule(date_range, rate)

            for field in _REQUIRED_AMEND_FIELDS:
                if changes.get(field) is not None:
                    setattr(reservation, field, changes[field])
            for field in _CLEARABLE_AMEND_FIELDS:
                if field in changes:
                    setattr(reservation, field, changes[field])

            if changes.get("status") is not None:
                reservation.override_status(changes["status"])

            reservation.updated_at = utcnow()
            saved = await uow.reservations.update(reservation)

        logger.info(
            "Reservation %s amended by %s: %s",
            saved.id, context.username, sorted(changes)
        )
        return saved

    async def delete_reservation(self, context: RequestContext, reservation_id: int) -> None:
        """Hard delete; no room or housekeeping cleanup"""
        context.require_privileged()
        async with self.uow_factory() as uow:
            deleted = await uow.reservations.delete(reservation_id)
            if not deleted:
                raise NotFoundError("Reservation not found", details={"reservation_id": reservation_id})

        logger.info("Reservation %s deleted by %s", reservation_id, context.username)

    @staticmethod
    async def _load_for_update(uow: UnitOfWork, reservation_id: int) -> Reservation:
        reservation = await uow.reservations.get(reservation_id, for_update=True)
        if reservation is None:
            raise NotFoundError("Reservation not found", details={"reservation_id": reservation_id})
        return reservation


class HousekeepingService:
    """Service for housekeeping work orders"""

    # Roles allowed to remove work orders
    DELETE_ROLES = (StaffRole.ADMIN, StaffRole.MANAGER, StaffRole.HOUSEKEEPING)

    def __init__(self, uow_factory: UnitOfWorkFactory):
        self.uow_factory = uow_factory

    async def list_tasks(self, status: Optional[TaskStatus] = None) -> List[HousekeepingTask]:
        """Get tasks, newest first"""
        async with self.uow_factory() as uow:
            return await uow.tasks.find_all(status=status)

    async def get_task(self, task_id: int) -> HousekeepingTask:
        async with self.uow_factory() as uow:
            task = await uow.tasks.get(task_id)
        if task is None:
            raise NotFoundError("Task not found", details={"task_id": task_id})
        return task

    async def create_task(self, context: RequestContext, command: CreateTaskCommand) -> HousekeepingTask:
        """Open a work order by hand"""
        async with self.uow_factory() as uow:
            if await uow.rooms.get(command.room_id) is None:
                raise NotFoundError("Room not found", details={"room_id": command.room_id})
            task = await uow.tasks.add(HousekeepingTask(
                **command.model_dump(),
                status=TaskStatus.PENDING,
                created_by=context.actor
            ))

        logger.info("Task %s (%s) opened for room %s by %s",
                    task.id, task.task_type.value, task.room_id, context.username)
        return task

    async def update_task(
        self,
        context: RequestContext,
        task_id: int,
        command: UpdateTaskCommand
    ) -> HousekeepingTask:
        """Partial update; moving a cleaning task to completed frees its room"""
        changes = command.model_dump(exclude_unset=True)
        async with self.uow_factory() as uow:
            task = await self._load_for_update(uow, task_id)

            new_status = changes.get("status")
            if new_status is not None and new_status != task.status:
                await self._advance(uow, task, new_status)

            for field in ("assigned_to", "notes", "estimated_duration"):
                if field in changes:
                    setattr(task, field, changes[field])
            task.updated_at = utcnow()
            saved = await uow.tasks.update(task)

        logger.info("Task %s updated by %s: %s", saved.id, context.username, sorted(changes))
        return saved

    async def complete_task(self, context: RequestContext, task_id: int) -> HousekeepingTask:
        """Mark a task completed"""
        async with self.uow_factory() as uow:
            task = await self._load_for_update(uow, task_id)
            await self._advance(uow, task, TaskStatus.COMPLETED)
            saved = await uow.tasks.update(task)

        logger.info("Task %s completed by %s", saved.id, context.username)
        return saved

    async def delete_task(self, context: RequestContext, task_id: int) -> None:
        context.require_role(*self.DELETE_ROLES)
        async with self.uow_factory() as uow:
            if not await uow.tasks.delete(task_id):
                raise NotFoundError("Task not found", details={"task_id": task_id})

        logger.info("Task %s deleted by %s", task_id, context.username)

    @staticmethod
    async def _advance(uow: UnitOfWork, task: HousekeepingTask, status: TaskStatus) -> None:
        task.move_to(status)
        if task.releases_room:
            await uow.rooms.set_status(task.room_id, RoomStatus.AVAILABLE)
            logger.info("Room %s available after cleaning task %s", task.room_id, task.id)

    @staticmethod
    async def _load_for_update(uow: UnitOfWork, task_id: int) -> HousekeepingTask:
        task = await uow.tasks.get(task_id, for_update=True)
        if task is None:
            raise NotFoundError("Task not found", details={"task_id": task_id})
        return task
