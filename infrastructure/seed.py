"""Sample rooms and guests for a fresh development database."""
import logging
from decimal import Decimal

from domain.entities import Guest, Room
from domain.enums import RoomType
from domain.repositories import UnitOfWork

logger = logging.getLogger(__name__)

SAMPLE_ROOMS = [
    ("101", RoomType.SINGLE, 1, 1, "89.99", "Cozy single room with city view"),
    ("102", RoomType.DOUBLE, 1, 2, "129.99", "Comfortable double room with garden view"),
    ("103", RoomType.DOUBLE, 1, 2, "129.99", "Standard double room"),
    ("201", RoomType.SUITE, 2, 4, "249.99", "Luxurious suite with separate living area"),
    ("202", RoomType.DELUXE, 2, 2, "189.99", "Deluxe room with premium amenities"),
    ("203", RoomType.FAMILY, 2, 4, "199.99", "Family room with bunk beds"),
    ("301", RoomType.SUITE, 3, 4, "269.99", "Premium suite with balcony"),
    ("302", RoomType.DELUXE, 3, 2, "189.99", "Deluxe room with ocean view"),
]

SAMPLE_GUESTS = [
    ("John", "Smith", "john.smith@email.com", "+1-555-0101", "New York", "USA"),
    ("Emily", "Johnson", "emily.johnson@email.com", "+1-555-0102", "Toronto", "Canada"),
    ("Michael", "Brown", "michael.brown@email.com", "+1-555-0103", "London", "UK"),
    ("Sarah", "Davis", "sarah.davis@email.com", "+1-555-0104", "Los Angeles", "USA"),
]


async def seed_sample_data(uow: UnitOfWork) -> bool:
    """Insert the sample rooms and guests in one transaction.

    Returns False without writing anything when the sample rooms exist.
    """
    async with uow:
        if await uow.rooms.find_by_number(SAMPLE_ROOMS[0][0]) is not None:
            logger.info("Sample data already present, skipping seed")
            return False
        for number, room_type, floor, occupancy, rate, description in SAMPLE_ROOMS:
            await uow.rooms.add(Room(
                room_number=number,
                room_type=room_type,
                floor=floor,
                max_occupancy=occupancy,
                base_rate=Decimal(rate),
                description=description
            ))
        for first_name, last_name, email, phone, city, country in SAMPLE_GUESTS:
            await uow.guests.add(Guest(
                first_name=first_name,
                last_name=last_name,
                email=email,
                phone=phone,
                city=city,
                country=country
            ))
    logger.info("Seeded %d rooms and %d guests", len(SAMPLE_ROOMS), len(SAMPLE_GUESTS))
    return True
