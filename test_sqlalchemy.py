"""SQLAlchemy repositories and unit of work against a SQLite file database"""
import asyncio
from decimal import Decimal

import pytest
from sqlalchemy.exc import IntegrityError

from application.commands import AmendReservationCommand, CreateReservationCommand, UpdateTaskCommand
from application.services import HousekeepingService, ReservationService
from conftest import JAN_1, JAN_2, JAN_3, JAN_4, JAN_5, add_guest, add_room, book_random_stays, get_room
from domain.entities import Guest
from domain.enums import ReservationStatus, RoomStatus, TaskStatus, TaskType
from domain.errors import ConflictError, InvalidTransitionError, NotFoundError
from domain.value_objects import DateRange
from infrastructure.seed import SAMPLE_GUESTS, SAMPLE_ROOMS, seed_sample_data


def booking(room, guest, check_in=JAN_1, check_out=JAN_3) -> CreateReservationCommand:
    return CreateReservationCommand(
        guest_id=guest.id,
        room_id=room.id,
        check_in_date=check_in,
        check_out_date=check_out,
        number_of_guests=2
    )


@pytest.fixture
async def sql_room(sql_uow_factory):
    return await add_room(sql_uow_factory)


@pytest.fixture
async def sql_guest(sql_uow_factory):
    return await add_guest(sql_uow_factory)


@pytest.fixture
def sql_reservation_service(sql_uow_factory):
    return ReservationService(sql_uow_factory)


@pytest.fixture
def sql_housekeeping_service(sql_uow_factory):
    return HousekeepingService(sql_uow_factory)


class TestSqlAlchemyRepositories:
    """Repository round trips through real tables"""

    @pytest.mark.integration
    @pytest.mark.infrastructure
    async def test_room_round_trip(self, sql_uow_factory, sql_room):
        assert sql_room.id is not None
        loaded = await get_room(sql_uow_factory, sql_room.id)
        assert loaded.room_number == "X1"
        assert loaded.base_rate == Decimal("100.00")
        assert loaded.status == RoomStatus.AVAILABLE

    @pytest.mark.integration
    @pytest.mark.infrastructure
    async def test_find_room_by_number(self, sql_uow_factory, sql_room):
        async with sql_uow_factory() as uow:
            assert (await uow.rooms.find_by_number("X1")).id == sql_room.id
            assert await uow.rooms.find_by_number("nope") is None

    @pytest.mark.integration
    @pytest.mark.infrastructure
    async def test_find_overlapping_uses_half_open_ranges(self, sql_uow_factory, sql_reservation_service,
                                                          admin_context, sql_room, sql_guest):
        reservation = await sql_reservation_service.create_reservation(admin_context, booking(sql_room, sql_guest))

        async with sql_uow_factory() as uow:
            overlapping = await uow.reservations.find_overlapping(sql_room.id, DateRange(check_in=JAN_2, check_out=JAN_4))
            adjacent = await uow.reservations.find_overlapping(sql_room.id, DateRange(check_in=JAN_3, check_out=JAN_5))
            excluded = await uow.reservations.find_overlapping(
                sql_room.id, DateRange(check_in=JAN_1, check_out=JAN_3), exclude_id=reservation.id
            )
            containing = await uow.reservations.find_overlapping(
                sql_room.id, DateRange(check_in=JAN_1, check_out=JAN_5)
            )
            inside = await uow.reservations.find_overlapping(sql_room.id, DateRange(check_in=JAN_2, check_out=JAN_3))
        assert [r.id for r in overlapping] == [reservation.id]
        assert [r.id for r in containing] == [reservation.id]
        assert [r.id for r in inside] == [reservation.id]
        assert adjacent == []
        assert excluded == []

    @pytest.mark.integration
    @pytest.mark.infrastructure
    async def test_rollback_on_error(self, sql_uow_factory, sql_room):
        with pytest.raises(RuntimeError):
            async with sql_uow_factory() as uow:
                await uow.rooms.set_status(sql_room.id, RoomStatus.MAINTENANCE)
                raise RuntimeError("boom")
        assert (await get_room(sql_uow_factory, sql_room.id)).status == RoomStatus.AVAILABLE

    @pytest.mark.integration
    @pytest.mark.infrastructure
    @pytest.mark.edge_case
    async def test_unique_guest_email(self, sql_uow_factory, sql_guest):
        with pytest.raises(IntegrityError):
            async with sql_uow_factory() as uow:
                await uow.guests.add(Guest(first_name="Dup", last_name="Licate", email=sql_guest.email))

    @pytest.mark.integration
    @pytest.mark.infrastructure
    async def test_delete_reports_missing_rows(self, sql_uow_factory):
        async with sql_uow_factory() as uow:
            assert await uow.reservations.delete(123) is False
            assert await uow.tasks.delete(123) is False


class TestSqlAlchemyReservationFlow:
    """The booking lifecycle persisted through SQLAlchemy"""

    @pytest.mark.integration
    @pytest.mark.application
    async def test_full_lifecycle(self, sql_uow_factory, sql_reservation_service, sql_housekeeping_service,
                                  front_desk_context, housekeeping_context, sql_room, sql_guest):
        reservation = await sql_reservation_service.create_reservation(
            front_desk_context, booking(sql_room, sql_guest)
        )
        assert reservation.total_amount == Decimal("200.00")
        assert reservation.number_of_nights == 2

        with pytest.raises(ConflictError):
            await sql_reservation_service.create_reservation(
                front_desk_context, booking(sql_room, sql_guest, JAN_2, JAN_4)
            )
        await sql_reservation_service.create_reservation(front_desk_context, booking(sql_room, sql_guest, JAN_3, JAN_5))

        await sql_reservation_service.check_in(front_desk_context, reservation.id)
        assert (await get_room(sql_uow_factory, sql_room.id)).status == RoomStatus.OCCUPIED

        result = await sql_reservation_service.check_out(front_desk_context, reservation.id)
        assert result.reservation.status == ReservationStatus.CHECKED_OUT
        assert result.cleaning_task.task_type == TaskType.CLEANING
        assert (await get_room(sql_uow_factory, sql_room.id)).status == RoomStatus.DIRTY

        tasks = await sql_housekeeping_service.list_tasks()
        assert [t.id for t in tasks] == [result.cleaning_task.id]

        await sql_housekeeping_service.update_task(
            housekeeping_context, result.cleaning_task.id, UpdateTaskCommand(status=TaskStatus.IN_PROGRESS)
        )
        completed = await sql_housekeeping_service.complete_task(housekeeping_context, result.cleaning_task.id)
        assert completed.status == TaskStatus.COMPLETED
        assert (await get_room(sql_uow_factory, sql_room.id)).status == RoomStatus.AVAILABLE

    @pytest.mark.integration
    @pytest.mark.application
    @pytest.mark.edge_case
    async def test_invalid_transition_writes_nothing(self, sql_uow_factory, sql_reservation_service,
                                                     sql_housekeeping_service, admin_context, sql_room, sql_guest):
        reservation = await sql_reservation_service.create_reservation(admin_context, booking(sql_room, sql_guest))

        with pytest.raises(InvalidTransitionError):
            await sql_reservation_service.check_out(admin_context, reservation.id)

        assert (await sql_reservation_service.get_reservation(reservation.id)).status == ReservationStatus.CONFIRMED
        assert (await get_room(sql_uow_factory, sql_room.id)).status == RoomStatus.AVAILABLE
        assert await sql_housekeeping_service.list_tasks() == []

    @pytest.mark.integration
    @pytest.mark.application
    async def test_amend_and_lookup(self, sql_reservation_service, admin_context, sql_room, sql_guest):
        reservation = await sql_reservation_service.create_reservation(admin_context, booking(sql_room, sql_guest))
        amended = await sql_reservation_service.amend_reservation(
            admin_context, reservation.id, AmendReservationCommand(check_out_date=JAN_4, notes="Extended stay")
        )
        assert amended.number_of_nights == 3
        assert amended.total_amount == Decimal("300.00")

        found = await sql_reservation_service.get_reservation_by_confirmation_number(reservation.confirmation_number)
        assert found.notes == "Extended stay"
        assert found.check_out_date == JAN_4

    @pytest.mark.integration
    @pytest.mark.application
    async def test_delete(self, sql_reservation_service, admin_context, sql_room, sql_guest):
        reservation = await sql_reservation_service.create_reservation(admin_context, booking(sql_room, sql_guest))
        await sql_reservation_service.delete_reservation(admin_context, reservation.id)
        with pytest.raises(NotFoundError):
            await sql_reservation_service.get_reservation(reservation.id)

    @pytest.mark.integration
    @pytest.mark.application
    async def test_concurrent_overlapping_bookings(self, sql_reservation_service, admin_context, sql_room, sql_guest):
        """Write transactions serialize, so only one overlapping booking commits"""
        results = await asyncio.gather(
            *[sql_reservation_service.create_reservation(admin_context, booking(sql_room, sql_guest))
              for _ in range(3)],
            return_exceptions=True
        )
        successes = [r for r in results if not isinstance(r, Exception)]
        conflicts = [r for r in results if isinstance(r, ConflictError)]
        assert len(successes) == 1
        assert len(conflicts) == 2
        assert len(await sql_reservation_service.list_reservations()) == 1

    @pytest.mark.integration
    @pytest.mark.application
    @pytest.mark.edge_case
    async def test_random_stays_booked_unless_nights_shared(self, sql_reservation_service, admin_context,
                                                            sql_room, sql_guest):
        """The SQL overlap query agrees with shared nights for random stays"""
        outcomes = await book_random_stays(sql_reservation_service, admin_context, sql_room, sql_guest, seed=11)

        for check_in, check_out, booked, clashes in outcomes:
            assert booked is not clashes, (check_in, check_out)
        assert any(booked for _, _, booked, _ in outcomes)
        assert not all(booked for _, _, booked, _ in outcomes)
        assert len(await sql_reservation_service.list_reservations()) == sum(o[2] for o in outcomes)


class TestSeed:
    """Sample data for development databases"""

    @pytest.mark.integration
    @pytest.mark.infrastructure
    async def test_seed_once(self, sql_uow_factory):
        assert await seed_sample_data(sql_uow_factory()) is True
        assert await seed_sample_data(sql_uow_factory()) is False

        async with sql_uow_factory() as uow:
            suite = await uow.rooms.find_by_number("201")
            assert suite.base_rate == Decimal("249.99")
            assert await uow.guests.get(len(SAMPLE_GUESTS)) is not None
            assert await uow.rooms.get(len(SAMPLE_ROOMS)) is not None
