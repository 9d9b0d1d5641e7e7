import logging

from sqlalchemy import text
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from tripboard.core.errors import TripIdAllocationError
from tripboard.models import Trip

logger = logging.getLogger(__name__)

MAX_ALLOCATION_ATTEMPTS = 3


def next_trip_id(session: Session) -> int:
    """Next public trip number: max over all trips (soft-deleted included) plus one."""
    result = session.execute(text("SELECT COALESCE(MAX(trip_id), 0) FROM trips"))
    return int(result.scalar()) + 1


def add_with_next_trip_id(session: Session, trip: Trip, attempts: int = MAX_ALLOCATION_ATTEMPTS) -> int:
    """Insert ``trip`` under a freshly allocated ``trip_id``.

    Must be the first write of the unit of work: a collision on the unique
    ``trip_id`` rolls the session back and the allocation is retried.
    """
    for attempt in range(1, attempts + 1):
        trip.trip_id = next_trip_id(session)
        session.add(trip)
        try:
            session.flush()
            return trip.trip_id
        except IntegrityError as e:
            session.rollback()
            if "trip_id" not in str(e.orig):
                raise
            logger.warning(f"trip_id {trip.trip_id} taken by a concurrent writer (attempt {attempt}/{attempts})")

    raise TripIdAllocationError()
