from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import List, Optional
from datetime import date
from enum import Enum

from tripboard.core.database import get_db
from tripboard.services.images import ImageResolver
from tripboard.services.storage import ObjectStorage, get_storage
from tripboard.services.transform import TripDisplay, trip_to_display
from tripboard.services.trips import TripFilters, TripService

router = APIRouter(prefix="/trips", tags=["trips"])


class TripLocation(str, Enum):
    UNITED_STATES = "united_states"
    INTERNATIONAL = "international"
    ISRAEL = "israel"


class TripGender(str, Enum):
    MIXED = "mixed"
    MALE = "male"
    FEMALE = "female"


def get_trip_service(
    db: Session = Depends(get_db),
    storage: ObjectStorage = Depends(get_storage)
) -> TripService:
    return TripService(db, storage)


def get_image_resolver(storage: ObjectStorage = Depends(get_storage)) -> ImageResolver:
    return ImageResolver(storage)


@router.get("/", response_model=List[TripDisplay])
async def list_trips(
    location: Optional[TripLocation] = Query(None, description="Destination"),
    gender: Optional[TripGender] = Query(None, description="Gender composition"),
    start_from: Optional[date] = Query(None, description="Earliest start date"),
    start_until: Optional[date] = Query(None, description="Latest start date"),
    is_internship: Optional[bool] = Query(None, description="Internships only (true) or trips only (false)"),
    service: TripService = Depends(get_trip_service),
    resolver: ImageResolver = Depends(get_image_resolver)
):
    """List publicly visible trips, soonest first."""
    filters = TripFilters(
        location=location.value if location else None,
        gender=gender.value if gender else None,
        start_from=start_from,
        start_until=start_until,
        is_internship=is_internship,
    )
    return [trip_to_display(trip, resolver) for trip in service.list_public(filters)]


@router.get("/{trip_id}", response_model=TripDisplay)
async def get_trip(
    trip_id: int,
    service: TripService = Depends(get_trip_service),
    resolver: ImageResolver = Depends(get_image_resolver)
):
    """Get a publicly visible trip by its trip number."""
    return trip_to_display(service.get(trip_id, public=True), resolver)
