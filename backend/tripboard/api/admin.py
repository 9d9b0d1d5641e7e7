from fastapi import APIRouter, Depends, status, UploadFile, File, Form, Query
from pydantic import BaseModel, Field, field_validator, model_validator
from sqlalchemy.orm import Session
from typing import List, Optional
from datetime import date
from contextlib import contextmanager
import logging
import time

from tripboard.api.metrics import metrics_collector
from tripboard.api.trips import TripGender, TripLocation, get_image_resolver, get_trip_service
from tripboard.auth.middleware import get_current_admin, check_api_rate_limit, CurrentAdmin
from tripboard.core.database import get_db
from tripboard.services.duplication import TripDuplicator
from tripboard.services.images import ImageResolver
from tripboard.services.status import TripStatus
from tripboard.services.storage import ObjectStorage, get_storage
from tripboard.services.transform import TripDisplay, TripImageDisplay, trip_to_display
from tripboard.services.trips import REQUIRED_FIELDS, TripService, UploadedFile

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])


class TripCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255, description="Trip name")
    description: Optional[str] = Field(None, description="Description")
    start_date: date
    end_date: date
    location: TripLocation
    gender: TripGender = TripGender.MIXED
    spots: Optional[int] = Field(None, ge=1, description="Available spots")
    price: Optional[str] = Field(None, max_length=100, description="Display price, e.g. '$1,200'")
    website_url: Optional[str] = Field(None, max_length=2048)
    organizer_name: str = Field(..., min_length=1, max_length=255)
    organizer_contact: str = Field(..., min_length=1, max_length=255)
    is_internship: bool = False
    video_links: List[str] = Field(default_factory=list)

    @model_validator(mode="after")
    def check_dates(self):
        if self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self


class TripUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    location: Optional[TripLocation] = None
    gender: Optional[TripGender] = None
    spots: Optional[int] = Field(None, ge=1)
    price: Optional[str] = Field(None, max_length=100)
    website_url: Optional[str] = Field(None, max_length=2048)
    organizer_name: Optional[str] = Field(None, min_length=1, max_length=255)
    organizer_contact: Optional[str] = Field(None, min_length=1, max_length=255)
    is_internship: Optional[bool] = None

    @field_validator(*REQUIRED_FIELDS, "is_internship", mode="before")
    @classmethod
    def reject_null(cls, value):
        # Omit a field to leave it unchanged; these columns cannot be cleared
        if value is None:
            raise ValueError("must not be null")
        return value

    @model_validator(mode="after")
    def check_dates(self):
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self


class StatusUpdate(BaseModel):
    status: TripStatus


class ThumbnailUpdate(BaseModel):
    image_path: Optional[str] = None


class ImageRolesUpdate(BaseModel):
    is_thumbnail: Optional[bool] = None
    is_flyer: Optional[bool] = None


class VideoCreate(BaseModel):
    video_url: str = Field(..., min_length=1, max_length=2048)


class VideoResponse(BaseModel):
    id: int
    video_url: str

    class Config:
        from_attributes = True


@contextmanager
def track(operation: str):
    """Record the outcome and duration of an admin operation."""
    start_time = time.time()
    success = False
    try:
        yield
        success = True
    finally:
        metrics_collector.record_operation(operation, success, (time.time() - start_time) * 1000)


def _dump(model: BaseModel, exclude_unset: bool = True) -> dict:
    data = model.model_dump(exclude_unset=exclude_unset)
    for field in ("location", "gender"):
        if data.get(field) is not None:
            data[field] = data[field].value
    return data


async def _read_uploads(files: List[UploadFile]) -> List[UploadedFile]:
    return [
        UploadedFile(filename=file.filename or "upload", content_type=file.content_type, data=await file.read())
        for file in files
    ]


@router.get("/trips", response_model=List[TripDisplay])
async def list_admin_trips(
    show_deleted: bool = Query(False, description="Include soft-deleted trips"),
    service: TripService = Depends(get_trip_service),
    resolver: ImageResolver = Depends(get_image_resolver),
    current_admin: CurrentAdmin = Depends(get_current_admin)
):
    """List shown and hidden trips, plus deleted ones when requested."""
    return [trip_to_display(trip, resolver) for trip in service.list_admin(show_deleted)]


@router.get("/trips/{trip_id}", response_model=TripDisplay)
async def get_admin_trip(
    trip_id: int,
    service: TripService = Depends(get_trip_service),
    resolver: ImageResolver = Depends(get_image_resolver),
    current_admin: CurrentAdmin = Depends(get_current_admin)
):
    """Get a trip in any status."""
    return trip_to_display(service.get(trip_id), resolver)


@router.post("/trips", response_model=TripDisplay, status_code=status.HTTP_201_CREATED)
async def create_trip(
    trip_data: TripCreate,
    service: TripService = Depends(get_trip_service),
    resolver: ImageResolver = Depends(get_image_resolver),
    current_admin: CurrentAdmin = Depends(check_api_rate_limit)
):
    """Create a new trip. New trips start hidden."""
    data = _dump(trip_data, exclude_unset=False)
    video_links = data.pop("video_links", [])
    with track("create_trip"):
        trip = service.create(data, video_links)
    return trip_to_display(trip, resolver)


@router.put("/trips/{trip_id}", response_model=TripDisplay)
async def update_trip(
    trip_id: int,
    trip_data: TripUpdate,
    service: TripService = Depends(get_trip_service),
    resolver: ImageResolver = Depends(get_image_resolver),
    current_admin: CurrentAdmin = Depends(check_api_rate_limit)
):
    """Update the scalar fields of a trip."""
    with track("update_trip"):
        trip = service.update(trip_id, _dump(trip_data))
    return trip_to_display(trip, resolver)


@router.patch("/trips/{trip_id}/status", response_model=TripDisplay)
async def update_trip_status(
    trip_id: int,
    status_data: StatusUpdate,
    service: TripService = Depends(get_trip_service),
    resolver: ImageResolver = Depends(get_image_resolver),
    current_admin: CurrentAdmin = Depends(check_api_rate_limit)
):
    """Show, hide or soft delete a trip."""
    with track("update_status"):
        trip = service.set_status(trip_id, status_data.status.value)
    metrics_collector.record_status_change(status_data.status.value)
    return trip_to_display(trip, resolver)


@router.post("/trips/{trip_id}/duplicate", response_model=TripDisplay, status_code=status.HTTP_201_CREATED)
async def duplicate_trip(
    trip_id: int,
    db: Session = Depends(get_db),
    storage: ObjectStorage = Depends(get_storage),
    resolver: ImageResolver = Depends(get_image_resolver),
    current_admin: CurrentAdmin = Depends(check_api_rate_limit)
):
    """Copy a trip with its images and videos into a new hidden trip."""
    with track("duplicate_trip"):
        trip = TripDuplicator(db, storage).duplicate(trip_id)
    return trip_to_display(trip, resolver)


@router.post("/trips/{trip_id}/brochure", response_model=TripDisplay)
async def upload_brochure(
    trip_id: int,
    file: UploadFile = File(...),
    service: TripService = Depends(get_trip_service),
    resolver: ImageResolver = Depends(get_image_resolver),
    current_admin: CurrentAdmin = Depends(check_api_rate_limit)
):
    """Replace the brochure image of a trip."""
    uploads = await _read_uploads([file])
    with track("upload_brochure"):
        trip = service.set_brochure(trip_id, uploads[0])
    return trip_to_display(trip, resolver)


@router.post("/trips/{trip_id}/images", response_model=List[TripImageDisplay], status_code=status.HTTP_201_CREATED)
async def upload_images(
    trip_id: int,
    files: List[UploadFile] = File(...),
    is_thumbnail: bool = Form(False),
    is_flyer: bool = Form(False),
    service: TripService = Depends(get_trip_service),
    resolver: ImageResolver = Depends(get_image_resolver),
    current_admin: CurrentAdmin = Depends(check_api_rate_limit)
):
    """Add gallery images to a trip."""
    uploads = await _read_uploads(files)
    with track("upload_images"):
        images = service.add_images(trip_id, uploads, is_thumbnail=is_thumbnail, is_flyer=is_flyer)
    return [
        TripImageDisplay(
            id=image.id,
            url=resolver.resolve(image.image_path),
            path=image.image_path,
            is_thumbnail=image.is_thumbnail,
            is_flyer=image.is_flyer,
        )
        for image in images
    ]


@router.patch("/trips/{trip_id}/images/{image_id}", response_model=TripDisplay)
async def update_image_roles(
    trip_id: int,
    image_id: int,
    roles: ImageRolesUpdate,
    service: TripService = Depends(get_trip_service),
    resolver: ImageResolver = Depends(get_image_resolver),
    current_admin: CurrentAdmin = Depends(check_api_rate_limit)
):
    """Flag or unflag an image as thumbnail or flyer."""
    with track("update_image_roles"):
        service.set_image_roles(trip_id, image_id, is_thumbnail=roles.is_thumbnail, is_flyer=roles.is_flyer)
    return trip_to_display(service.get(trip_id), resolver)


@router.delete("/trips/{trip_id}/images/{image_id}")
async def delete_image(
    trip_id: int,
    image_id: int,
    service: TripService = Depends(get_trip_service),
    current_admin: CurrentAdmin = Depends(check_api_rate_limit)
):
    """Delete an image and its stored file."""
    with track("delete_image"):
        service.delete_image(trip_id, image_id)
    return {"message": "Image deleted successfully"}


@router.put("/trips/{trip_id}/thumbnail", response_model=TripDisplay)
async def select_thumbnail(
    trip_id: int,
    thumbnail: ThumbnailUpdate,
    service: TripService = Depends(get_trip_service),
    resolver: ImageResolver = Depends(get_image_resolver),
    current_admin: CurrentAdmin = Depends(check_api_rate_limit)
):
    """Choose the listing image; a null path restores the brochure default."""
    with track("select_thumbnail"):
        trip = service.set_thumbnail(trip_id, thumbnail.image_path)
    return trip_to_display(trip, resolver)


@router.post("/trips/{trip_id}/videos", response_model=VideoResponse, status_code=status.HTTP_201_CREATED)
async def add_video(
    trip_id: int,
    video: VideoCreate,
    service: TripService = Depends(get_trip_service),
    current_admin: CurrentAdmin = Depends(check_api_rate_limit)
):
    """Attach an embeddable video link to a trip."""
    with track("add_video"):
        video_row = service.add_video(trip_id, video.video_url)
    return VideoResponse.model_validate(video_row)


@router.delete("/trips/{trip_id}/videos/{video_id}")
async def delete_video(
    trip_id: int,
    video_id: int,
    service: TripService = Depends(get_trip_service),
    current_admin: CurrentAdmin = Depends(check_api_rate_limit)
):
    """Remove a video link from a trip."""
    with track("delete_video"):
        service.delete_video(trip_id, video_id)
    return {"message": "Video deleted successfully"}
