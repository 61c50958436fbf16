"""In-Memory Repository Implementations"""
import asyncio
from datetime import date
from typing import Dict, List, Optional, TypeVar

from pydantic import BaseModel

from domain.repositories import (
    GuestRepository, HousekeepingTaskRepository, ReservationRepository, RoomRepository, UnitOfWork
)
from domain.entities import Guest, HousekeepingTask, Reservation, Room
from domain.enums import ReservationStatus, RoomStatus, TaskStatus
from domain.errors import NotFoundError
from domain.value_objects import DateRange

T = TypeVar("T", bound=BaseModel)


class InMemoryStore:
    """Committed state shared by every unit of work created on it"""

    def __init__(self):
        self.rooms: Dict[int, Room] = {}
        self.guests: Dict[int, Guest] = {}
        self.reservations: Dict[int, Reservation] = {}
        self.tasks: Dict[int, HousekeepingTask] = {}
        self.sequences: Dict[str, int] = {"rooms": 0, "guests": 0, "reservations": 0, "tasks": 0}
        self.lock = asyncio.Lock()


def _copy(entity: T) -> T:
    return entity.model_copy(deep=True)


def _next_id(sequences: Dict[str, int], name: str) -> int:
    sequences[name] += 1
    return sequences[name]


class InMemoryRoomRepository(RoomRepository):
    """In-memory implementation of RoomRepository"""

    def __init__(self, storage: Dict[int, Room], sequences: Dict[str, int]):
        self._storage = storage
        self._sequences = sequences

    async def add(self, room: Room) -> Room:
        """Save room to memory"""
        stored = room.model_copy(update={"id": _next_id(self._sequences, "rooms")}, deep=True)
        self._storage[stored.id] = stored
        return _copy(stored)

    async def get(self, room_id: int, for_update: bool = False) -> Optional[Room]:
        """Find room by ID"""
        room = self._storage.get(room_id)
        return _copy(room) if room else None

    async def find_by_number(self, room_number: str) -> Optional[Room]:
        """Find room by room number"""
        for room in self._storage.values():
            if room.room_number == room_number:
                return _copy(room)
        return None

    async def set_status(self, room_id: int, status: RoomStatus) -> None:
        """Change room status"""
        if room_id not in self._storage:
            raise NotFoundError("Room not found", details={"room_id": room_id})
        self._storage[room_id].status = status


class InMemoryGuestRepository(GuestRepository):
    """In-memory implementation of GuestRepository"""

    def __init__(self, storage: Dict[int, Guest], sequences: Dict[str, int]):
        self._storage = storage
        self._sequences = sequences

    async def add(self, guest: Guest) -> Guest:
        stored = guest.model_copy(update={"id": _next_id(self._sequences, "guests")}, deep=True)
        self._storage[stored.id] = stored
        return _copy(stored)

    async def get(self, guest_id: int) -> Optional[Guest]:
        guest = self._storage.get(guest_id)
        return _copy(guest) if guest else None


class InMemoryReservationRepository(ReservationRepository):
    """In-memory implementation of ReservationRepository"""

    def __init__(self, storage: Dict[int, Reservation], sequences: Dict[str, int]):
        self._storage = storage
        self._sequences = sequences

    async def add(self, reservation: Reservation) -> Reservation:
        """Save reservation to memory"""
        stored = reservation.model_copy(update={"id": _next_id(self._sequences, "reservations")}, deep=True)
        self._storage[stored.id] = stored
        return _copy(stored)

    async def get(self, reservation_id: int, for_update: bool = False) -> Optional[Reservation]:
        """Find reservation by ID"""
        reservation = self._storage.get(reservation_id)
        return _copy(reservation) if reservation else None

    async def find_by_confirmation_number(self, confirmation_number: str) -> Optional[Reservation]:
        """Find reservation by confirmation number"""
        for reservation in self._storage.values():
            if reservation.confirmation_number == confirmation_number:
                return _copy(reservation)
        return None

    async def find_overlapping(
        self,
        room_id: int,
        date_range: DateRange,
        exclude_id: Optional[int] = None
    ) -> List[Reservation]:
        """Find active reservations on the room intersecting the range"""
        return [
            _copy(r) for r in self._storage.values()
            if r.room_id == room_id and r.id != exclude_id and r.conflicts_with(date_range)
        ]

    async def find_all(
        self,
        status: Optional[ReservationStatus] = None,
        from_date: Optional[date] = None,
        to_date: Optional[date] = None
    ) -> List[Reservation]:
        """Find reservations ordered by check-in date"""
        results = [
            r for r in self._storage.values()
            if (status is None or r.status == status)
            and (from_date is None or r.check_in_date >= from_date)
            and (to_date is None or r.check_out_date <= to_date)
        ]
        return [_copy(r) for r in sorted(results, key=lambda r: (r.check_in_date, r.id))]

    async def update(self, reservation: Reservation) -> Reservation:
        """Update reservation"""
        if reservation.id in self._storage:
            self._storage[reservation.id] = _copy(reservation)
            return _copy(reservation)
        raise NotFoundError("Reservation not found", details={"reservation_id": reservation.id})

    async def delete(self, reservation_id: int) -> bool:
        """Delete reservation"""
        if reservation_id in self._storage:
            del self._storage[reservation_id]
            return True
        return False


class InMemoryHousekeepingTaskRepository(HousekeepingTaskRepository):
    """In-memory implementation of HousekeepingTaskRepository"""

    def __init__(self, storage: Dict[int, HousekeepingTask], sequences: Dict[str, int]):
        self._storage = storage
        self._sequences = sequences

    async def add(self, task: HousekeepingTask) -> HousekeepingTask:
        stored = task.model_copy(update={"id": _next_id(self._sequences, "tasks")}, deep=True)
        self._storage[stored.id] = stored
        return _copy(stored)

    async def get(self, task_id: int, for_update: bool = False) -> Optional[HousekeepingTask]:
        task = self._storage.get(task_id)
        return _copy(task) if task else None

    async def find_all(self, status: Optional[TaskStatus] = None) -> List[HousekeepingTask]:
        """Find tasks, newest first"""
        results = [t for t in self._storage.values() if status is None or t.status == status]
        return [_copy(t) for t in sorted(results, key=lambda t: (t.created_at, t.id), reverse=True)]

    async def update(self, task: HousekeepingTask) -> HousekeepingTask:
        if task.id in self._storage:
            self._storage[task.id] = _copy(task)
            return _copy(task)
        raise NotFoundError("Task not found", details={"task_id": task.id})

    async def delete(self, task_id: int) -> bool:
        if task_id in self._storage:
            del self._storage[task_id]
            return True
        return False


class InMemoryUnitOfWork(UnitOfWork):
    """Serialized transaction over an InMemoryStore.

    Work happens on copies of the committed dictionaries; commit swaps them
    in, rollback throws them away.
    """

    def __init__(self, store: InMemoryStore):
        self._store = store
        self._staged: Optional[dict] = None

    async def __aenter__(self) -> "InMemoryUnitOfWork":
        await self._store.lock.acquire()
        self._staged = {
            "rooms": {k: _copy(v) for k, v in self._store.rooms.items()},
            "guests": {k: _copy(v) for k, v in self._store.guests.items()},
            "reservations": {k: _copy(v) for k, v in self._store.reservations.items()},
            "tasks": {k: _copy(v) for k, v in self._store.tasks.items()},
            "sequences": dict(self._store.sequences),
        }
        sequences = self._staged["sequences"]
        self.rooms = InMemoryRoomRepository(self._staged["rooms"], sequences)
        self.guests = InMemoryGuestRepository(self._staged["guests"], sequences)
        self.reservations = InMemoryReservationRepository(self._staged["reservations"], sequences)
        self.tasks = InMemoryHousekeepingTaskRepository(self._staged["tasks"], sequences)
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> bool:
        try:
            return await super().__aexit__(exc_type, exc_val, exc_tb)
        finally:
            self._staged = None
            self._store.lock.release()

    async def commit(self) -> None:
        if self._staged is None:
            return
        self._store.rooms = self._staged["rooms"]
        self._store.guests = self._staged["guests"]
        self._store.reservations = self._staged["reservations"]
        self._store.tasks = self._staged["tasks"]
        self._store.sequences = self._staged["sequences"]

    async def rollback(self) -> None:
        self._staged = None
