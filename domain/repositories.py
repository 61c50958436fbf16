"""Domain Repository Interfaces"""
from abc import ABC, abstractmethod
from typing import Optional, List
from datetime import date

from domain.entities import Room, Guest, Reservation, HousekeepingTask
from domain.enums import ReservationStatus, RoomStatus, TaskStatus
from domain.value_objects import DateRange


class RoomRepository(ABC):
    """Repository interface for the room inventory the engine consumes"""

    @abstractmethod
    async def add(self, room: Room) -> Room:
        """Save room, assigning its id"""
        pass

    @abstractmethod
    async def get(self, room_id: int, for_update: bool = False) -> Optional[Room]:
        """Find room by ID, optionally locking the row for the transaction"""
        pass

    @abstractmethod
    async def find_by_number(self, room_number: str) -> Optional[Room]:
        """Find room by its room number"""
        pass

    @abstractmethod
    async def set_status(self, room_id: int, status: RoomStatus) -> None:
        """Change room occupancy status"""
        pass


class GuestRepository(ABC):
    """Repository interface for guest records"""

    @abstractmethod
    async def add(self, guest: Guest) -> Guest:
        """Save guest, assigning its id"""
        pass

    @abstractmethod
    async def get(self, guest_id: int) -> Optional[Guest]:
        """Find guest by ID"""
        pass


class ReservationRepository(ABC):
    """Repository interface for Reservation Aggregate"""

    @abstractmethod
    async def add(self, reservation: Reservation) -> Reservation:
        """Save reservation, assigning its id"""
        pass

    @abstractmethod
    async def get(self, reservation_id: int, for_update: bool = False) -> Optional[Reservation]:
        """Find reservation by ID"""
        pass

    @abstractmethod
    async def find_by_confirmation_number(self, confirmation_number: str) -> Optional[Reservation]:
        """Find reservation by confirmation number"""
        pass

    @abstractmethod
    async def find_overlapping(
        self,
        room_id: int,
        date_range: DateRange,
        exclude_id: Optional[int] = None
    ) -> List[Reservation]:
        """Find confirmed or checked-in reservations on a room that intersect a range"""
        pass

    @abstractmethod
    async def find_all(
        self,
        status: Optional[ReservationStatus] = None,
        from_date: Optional[date] = None,
        to_date: Optional[date] = None
    ) -> List[Reservation]:
        """Find reservations ordered by check-in date"""
        pass

    @abstractmethod
    async def update(self, reservation: Reservation) -> Reservation:
        """Update reservation"""
        pass

    @abstractmethod
    async def delete(self, reservation_id: int) -> bool:
        """Delete reservation"""
        pass


class HousekeepingTaskRepository(ABC):
    """Repository interface for housekeeping work orders"""

    @abstractmethod
    async def add(self, task: HousekeepingTask) -> HousekeepingTask:
        """Save task, assigning its id"""
        pass

    @abstractmethod
    async def get(self, task_id: int, for_update: bool = False) -> Optional[HousekeepingTask]:
        """Find task by ID"""
        pass

    @abstractmethod
    async def find_all(self, status: Optional[TaskStatus] = None) -> List[HousekeepingTask]:
        """Find tasks, newest first"""
        pass

    @abstractmethod
    async def update(self, task: HousekeepingTask) -> HousekeepingTask:
        """Update task"""
        pass

    @abstractmethod
    async def delete(self, task_id: int) -> bool:
        """Delete task"""
        pass


class UnitOfWork(ABC):
    """One transaction spanning the repositories of a logical operation.

    Used as ``async with uow:``; leaving the block normally commits, leaving
    it with an exception rolls everything back.
    """

    rooms: RoomRepository
    guests: GuestRepository
    reservations: ReservationRepository
    tasks: HousekeepingTaskRepository

    async def __aenter__(self) -> "UnitOfWork":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> bool:
        if exc_type is None:
            await self.commit()
        else:
            await self.rollback()
        return False

    @abstractmethod
    async def commit(self) -> None:
        pass

    @abstractmethod
    async def rollback(self) -> None:
        pass
