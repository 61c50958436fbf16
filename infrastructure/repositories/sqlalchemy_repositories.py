"""SQLAlchemy Repository Implementations"""
import logging
from datetime import date
from typing import Callable, List, Optional

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from domain.entities import Guest, HousekeepingTask, Reservation, Room
from domain.enums import ACTIVE_RESERVATION_STATUSES, ReservationStatus, RoomStatus, TaskStatus
from domain.errors import NotFoundError
from domain.repositories import (
    GuestRepository,
    HousekeepingTaskRepository,
    ReservationRepository,
    RoomRepository,
    UnitOfWork,
)
from domain.value_objects import DateRange
from infrastructure.orm import GuestRecord, HousekeepingTaskRecord, ReservationRecord, RoomRecord

logger = logging.getLogger(__name__)


class SqlAlchemyRoomRepository(RoomRepository):
    """Room rows; only status is ever written by the engine"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def add(self, room: Room) -> Room:
        record = RoomRecord(**room.model_dump(exclude={"id"}))
        self.session.add(record)
        await self.session.flush()
        return Room.model_validate(record)

    async def get(self, room_id: int, for_update: bool = False) -> Optional[Room]:
        stmt = select(RoomRecord).where(RoomRecord.id == room_id)
        if for_update:
            stmt = stmt.with_for_update()
        record = (await self.session.execute(stmt)).scalar_one_or_none()
        return Room.model_validate(record) if record else None

    async def find_by_number(self, room_number: str) -> Optional[Room]:
        stmt = select(RoomRecord).where(RoomRecord.room_number == room_number)
        record = (await self.session.execute(stmt)).scalar_one_or_none()
        return Room.model_validate(record) if record else None

    async def set_status(self, room_id: int, status: RoomStatus) -> None:
        record = await self.session.get(RoomRecord, room_id)
        if record is None:
            raise NotFoundError("Room not found", details={"room_id": room_id})
        record.status = status
        await self.session.flush()


class SqlAlchemyGuestRepository(GuestRepository):

    def __init__(self, session: AsyncSession):
        self.session = session

    async def add(self, guest: Guest) -> Guest:
        record = GuestRecord(**guest.model_dump(exclude={"id"}))
        self.session.add(record)
        await self.session.flush()
        return Guest.model_validate(record)

    async def get(self, guest_id: int) -> Optional[Guest]:
        record = await self.session.get(GuestRecord, guest_id)
        return Guest.model_validate(record) if record else None


class SqlAlchemyReservationRepository(ReservationRepository):
    """Reservation rows"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def add(self, reservation: Reservation) -> Reservation:
        record = ReservationRecord(**reservation.model_dump(exclude={"id"}))
        self.session.add(record)
        await self.session.flush()
        return Reservation.model_validate(record)

    async def get(self, reservation_id: int, for_update: bool = False) -> Optional[Reservation]:
        stmt = select(ReservationRecord).where(ReservationRecord.id == reservation_id)
        if for_update:
            stmt = stmt.with_for_update()
        record = (await self.session.execute(stmt)).scalar_one_or_none()
        return Reservation.model_validate(record) if record else None

    async def find_by_confirmation_number(self, confirmation_number: str) -> Optional[Reservation]:
        stmt = select(ReservationRecord).where(ReservationRecord.confirmation_number == confirmation_number)
        record = (await self.session.execute(stmt)).scalar_one_or_none()
        return Reservation.model_validate(record) if record else None

    async def find_overlapping(
        self,
        room_id: int,
        date_range: DateRange,
        exclude_id: Optional[int] = None
    ) -> List[Reservation]:
        # Half-open intersection: existing.in < new.out AND existing.out > new.in
        stmt = select(ReservationRecord).where(
            ReservationRecord.room_id == room_id,
            ReservationRecord.status.in_(ACTIVE_RESERVATION_STATUSES),
            ReservationRecord.check_in_date < date_range.check_out,
            ReservationRecord.check_out_date > date_range.check_in,
        )
        if exclude_id is not None:
            stmt = stmt.where(ReservationRecord.id != exclude_id)
        records = (await self.session.execute(stmt)).scalars().all()
        return [Reservation.model_validate(r) for r in records]

    async def find_all(
        self,
        status: Optional[ReservationStatus] = None,
        from_date: Optional[date] = None,
        to_date: Optional[date] = None
    ) -> List[Reservation]:
        stmt = select(ReservationRecord)
        if status is not None:
            stmt = stmt.where(ReservationRecord.status == status)
        if from_date is not None:
            stmt = stmt.where(ReservationRecord.check_in_date >= from_date)
        if to_date is not None:
            stmt = stmt.where(ReservationRecord.check_out_date <= to_date)
        stmt = stmt.order_by(ReservationRecord.check_in_date, ReservationRecord.id)
        records = (await self.session.execute(stmt)).scalars().all()
        return [Reservation.model_validate(r) for r in records]

    async def update(self, reservation: Reservation) -> Reservation:
        record = await self.session.get(ReservationRecord, reservation.id)
        if record is None:
            raise NotFoundError("Reservation not found", details={"reservation_id": reservation.id})
        for field, value in reservation.model_dump(exclude={"id", "created_at"}).items():
            setattr(record, field, value)
        await self.session.flush()
        return Reservation.model_validate(record)

    async def delete(self, reservation_id: int) -> bool:
        result = await self.session.execute(
            delete(ReservationRecord).where(ReservationRecord.id == reservation_id)
        )
        return result.rowcount > 0


class SqlAlchemyHousekeepingTaskRepository(HousekeepingTaskRepository):
    """Housekeeping work order rows"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def add(self, task: HousekeepingTask) -> HousekeepingTask:
        record = HousekeepingTaskRecord(**task.model_dump(exclude={"id"}))
        self.session.add(record)
        await self.session.flush()
        return HousekeepingTask.model_validate(record)

    async def get(self, task_id: int, for_update: bool = False) -> Optional[HousekeepingTask]:
        stmt = select(HousekeepingTaskRecord).where(HousekeepingTaskRecord.id == task_id)
        if for_update:
            stmt = stmt.with_for_update()
        record = (await self.session.execute(stmt)).scalar_one_or_none()
        return HousekeepingTask.model_validate(record) if record else None

    async def find_all(self, status: Optional[TaskStatus] = None) -> List[HousekeepingTask]:
        stmt = select(HousekeepingTaskRecord)
        if status is not None:
            stmt = stmt.where(HousekeepingTaskRecord.status == status)
        stmt = stmt.order_by(HousekeepingTaskRecord.created_at.desc(), HousekeepingTaskRecord.id.desc())
        records = (await self.session.execute(stmt)).scalars().all()
        return [HousekeepingTask.model_validate(r) for r in records]

    async def update(self, task: HousekeepingTask) -> HousekeepingTask:
        record = await self.session.get(HousekeepingTaskRecord, task.id)
        if record is None:
            raise NotFoundError("Task not found", details={"task_id": task.id})
        for field, value in task.model_dump(exclude={"id", "created_at"}).items():
            setattr(record, field, value)
        await self.session.flush()
        return HousekeepingTask.model_validate(record)

    async def delete(self, task_id: int) -> bool:
        result = await self.session.execute(
            delete(HousekeepingTaskRecord).where(HousekeepingTaskRecord.id == task_id)
        )
        return result.rowcount > 0


class SqlAlchemyUnitOfWork(UnitOfWork):
    """One AsyncSession transaction per logical operation"""

    def __init__(self, session_factory: Callable[[], AsyncSession]):
        self._session_factory = session_factory
        self.session: Optional[AsyncSession] = None

    async def __aenter__(self) -> "SqlAlchemyUnitOfWork":
        if self.session is not None:
            raise RuntimeError("UnitOfWork context already entered")
        self.session = self._session_factory()
        self.rooms = SqlAlchemyRoomRepository(self.session)
        self.guests = SqlAlchemyGuestRepository(self.session)
        self.reservations = SqlAlchemyReservationRepository(self.session)
        self.tasks = SqlAlchemyHousekeepingTaskRepository(self.session)
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> bool:
        try:
            return await super().__aexit__(exc_type, exc_val, exc_tb)
        finally:
            await self.session.close()
            self.session = None

    async def commit(self) -> None:
        try:
            await self.session.commit()
        except SQLAlchemyError as exc:
            logger.error("Commit failed: %s", exc)
            await self.session.rollback()
            raise

    async def rollback(self) -> None:
        await self.session.rollback()
        logger.debug("UnitOfWork rolled back")
