"""Shared fixtures for the reservation engine tests"""
import random
from datetime import date, timedelta
from decimal import Decimal
from functools import partial
from typing import List, Set, Tuple

import pytest
from httpx import ASGITransport, AsyncClient

from application.commands import CreateReservationCommand
from application.services import HousekeepingService, ReservationService
from domain.auth import RequestContext
from domain.entities import Guest, Room
from domain.enums import RoomType, StaffRole
from domain.errors import ConflictError
from infrastructure.config import Settings
from infrastructure.database import Database
from infrastructure.repositories.in_memory_repositories import InMemoryStore, InMemoryUnitOfWork
from infrastructure.repositories.sqlalchemy_repositories import SqlAlchemyUnitOfWork
from infrastructure.seed import seed_sample_data
from main import create_app

JAN_1 = date(2024, 1, 1)
JAN_2 = date(2024, 1, 2)
JAN_3 = date(2024, 1, 3)
JAN_4 = date(2024, 1, 4)
JAN_5 = date(2024, 1, 5)


async def add_room(uow_factory, room_number="X1", base_rate="100.00", room_type=RoomType.DOUBLE) -> Room:
    async with uow_factory() as uow:
        return await uow.rooms.add(Room(
            room_number=room_number,
            room_type=room_type,
            floor=1,
            max_occupancy=2,
            base_rate=Decimal(base_rate)
        ))


async def add_guest(uow_factory, email="guest@example.com") -> Guest:
    async with uow_factory() as uow:
        return await uow.guests.add(Guest(first_name="Test", last_name="Guest", email=email))


async def get_room(uow_factory, room_id: int) -> Room:
    async with uow_factory() as uow:
        return await uow.rooms.get(room_id)


async def book_random_stays(
    service, context, room, guest, seed: int, attempts: int = 120
) -> List[Tuple[date, date, bool, bool]]:
    """Try random stays on one room.

    Returns ``(check_in, check_out, booked, clashes)`` per attempt, where
    ``clashes`` is whether the stay shares a night with an earlier booked one.
    """
    rng = random.Random(seed)
    held_nights: Set[date] = set()
    outcomes = []
    for _ in range(attempts):
        check_in = JAN_1 + timedelta(days=rng.randint(0, 60))
        check_out = check_in + timedelta(days=rng.randint(1, 7))
        nights = {check_in + timedelta(days=i) for i in range((check_out - check_in).days)}
        clashes = bool(nights & held_nights)
        try:
            await service.create_reservation(context, CreateReservationCommand(
                guest_id=guest.id,
                room_id=room.id,
                check_in_date=check_in,
                check_out_date=check_out,
                number_of_guests=1
            ))
            booked = True
            held_nights |= nights
        except ConflictError:
            booked = False
        outcomes.append((check_in, check_out, booked, clashes))
    return outcomes


# ============================================================================
# CONTEXTS
# ============================================================================

@pytest.fixture
def admin_context():
    return RequestContext(user_id=1, username="admin", display_name="Admin User", role=StaffRole.ADMIN)


@pytest.fixture
def manager_context():
    return RequestContext(user_id=2, username="manager", display_name="Hotel Manager", role=StaffRole.MANAGER)


@pytest.fixture
def front_desk_context():
    return RequestContext(user_id=3, username="frontdesk", display_name="Front Desk", role=StaffRole.FRONT_DESK)


@pytest.fixture
def housekeeping_context():
    return RequestContext(
        user_id=4, username="housekeeping", display_name="Housekeeping Staff", role=StaffRole.HOUSEKEEPING
    )


# ============================================================================
# IN-MEMORY BACKEND
# ============================================================================

@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def uow_factory(store):
    return partial(InMemoryUnitOfWork, store)


@pytest.fixture
async def room(uow_factory):
    """Room X, base rate 100"""
    return await add_room(uow_factory)


@pytest.fixture
async def guest(uow_factory):
    return await add_guest(uow_factory)


@pytest.fixture
def reservation_service(uow_factory):
    return ReservationService(uow_factory)


@pytest.fixture
def housekeeping_service(uow_factory):
    return HousekeepingService(uow_factory)


# ============================================================================
# SQLALCHEMY BACKEND
# ============================================================================

@pytest.fixture
async def database(tmp_path):
    db = Database(f"sqlite+aiosqlite:///{tmp_path / 'hotel.db'}")
    await db.create_all()
    yield db
    await db.dispose()


@pytest.fixture
def sql_uow_factory(database):
    return partial(SqlAlchemyUnitOfWork, database.session_factory)


# ============================================================================
# API
# ============================================================================

@pytest.fixture
def settings():
    return Settings(SEED_SAMPLE_DATA=False, CREATE_TABLES_ON_STARTUP=False)


@pytest.fixture
async def api_client(settings, uow_factory):
    """Client over an app backed by a seeded in-memory store"""
    await seed_sample_data(uow_factory())
    app = create_app(settings=settings, uow_factory=uow_factory)
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client


async def login(client: AsyncClient, username: str, password: str) -> dict:
    response = await client.post("/token", data={"username": username, "password": password})
    token = response.json()["access_token"]
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
async def auth_headers(api_client):
    """Admin authentication headers"""
    return await login(api_client, "admin", "admin123")


@pytest.fixture
async def frontdesk_headers(api_client):
    return await login(api_client, "frontdesk", "frontdesk123")


@pytest.fixture
async def housekeeping_headers(api_client):
    return await login(api_client, "housekeeping", "housekeeping123")
