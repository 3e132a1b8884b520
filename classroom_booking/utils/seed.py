import logging

logger = logging.getLogger(__name__)

DEFAULT_ROOMS = [
    {"name": "Room A101", "capacity": 30},
    {"name": "Room B205", "capacity": 25},
    {"name": "Lab C301", "capacity": 20},
    {"name": "Conference Room D401", "capacity": 15},
    {"name": "Auditorium E501", "capacity": 100},
]


def seed_default_rooms(storage):
    """Add the default rooms that are missing. Safe to run repeatedly."""
    existing = {room.name for room in storage.list_rooms()}
    created = 0
    for room in DEFAULT_ROOMS:
        if room["name"] not in existing:
            storage.create_room(dict(room))
            created += 1
    if created:
        logger.info(f"Seeded {created} default rooms")
    return created
