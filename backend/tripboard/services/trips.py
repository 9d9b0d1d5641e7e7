"""Trip persistence: listings, admin edits, uploads and image roles.

Every multi-step write here runs in one database transaction. Objects that
were uploaded before a later step fails are removed again, so a failed edit
leaves neither orphaned rows nor orphaned files.
"""

from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, List, Optional, Sequence
import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from tripboard.core.config import settings
from tripboard.core.database_utils import add_with_next_trip_id
from tripboard.core.errors import (
    ImageNotFoundError,
    InvalidTripDataError,
    InvalidUploadError,
    StorageError,
    TripBoardError,
    TripNotFoundError,
    VideoNotFoundError,
)
from tripboard.models import Trip, TripImage, TripVideo
from tripboard.services.images import is_absolute_url
from tripboard.services.status import INITIAL_STATUS, admin_statuses, public_statuses, transition
from tripboard.services.storage import BROCHURE_PREFIX, GALLERY_PREFIX, ObjectStorage

logger = logging.getLogger(__name__)

ALLOWED_IMAGE_TYPES = {"image/jpeg", "image/png", "image/gif", "image/webp", "image/svg+xml"}
ALLOWED_IMAGE_EXTENSIONS = {".jpg", ".jpeg", ".png", ".gif", ".webp", ".svg"}

EDITABLE_FIELDS = (
    "name",
    "description",
    "start_date",
    "end_date",
    "location",
    "gender",
    "spots",
    "price",
    "website_url",
    "organizer_name",
    "organizer_contact",
    "is_internship",
)

# Non-nullable columns an update may change but never clear
REQUIRED_FIELDS = (
    "name",
    "start_date",
    "end_date",
    "location",
    "gender",
    "organizer_name",
    "organizer_contact",
)


@dataclass
class UploadedFile:
    filename: str
    content_type: Optional[str]
    data: bytes


@dataclass
class TripFilters:
    location: Optional[str] = None
    gender: Optional[str] = None
    start_from: Optional[date] = None
    start_until: Optional[date] = None
    is_internship: Optional[bool] = None


def validate_image_upload(upload: UploadedFile) -> None:
    """Reject non-image or oversized uploads before anything is stored."""
    extension = None
    if upload.filename and "." in upload.filename:
        extension = f".{upload.filename.lower().rsplit('.', 1)[-1]}"

    content_type_valid = upload.content_type in ALLOWED_IMAGE_TYPES if upload.content_type else False
    extension_valid = extension in ALLOWED_IMAGE_EXTENSIONS if extension else False

    if not content_type_valid and not extension_valid:
        raise InvalidUploadError(
            f"File type not supported. Detected: {upload.content_type or 'None'}, "
            f"Extension: {extension or 'None'}"
        )
    if not upload.data:
        raise InvalidUploadError(f"File {upload.filename} is empty")
    if len(upload.data) > settings.max_upload_bytes:
        raise InvalidUploadError(
            f"File {upload.filename} exceeds the {settings.max_upload_bytes} byte upload limit"
        )


class TripService:
    """Trip reads and admin writes over one database session and one bucket."""

    def __init__(self, db: Session, storage: ObjectStorage):
        self.db = db
        self.storage = storage

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def _query(self):
        return self.db.query(Trip).options(
            selectinload(Trip.images),
            selectinload(Trip.videos),
            selectinload(Trip.gallery),
        )

    def list_public(self, filters: Optional[TripFilters] = None) -> List[Trip]:
        """Trips visible to visitors, soonest first."""
        statuses = [s.value for s in public_statuses()]
        query = self._query().filter(Trip.show_trip.in_(statuses))

        filters = filters or TripFilters()
        if filters.location:
            query = query.filter(Trip.location == filters.location)
        if filters.gender:
            query = query.filter(Trip.gender == filters.gender)
        if filters.start_from:
            query = query.filter(Trip.start_date >= filters.start_from)
        if filters.start_until:
            query = query.filter(Trip.start_date <= filters.start_until)
        if filters.is_internship is not None:
            if filters.is_internship:
                query = query.filter(Trip.is_internship.is_(True))
            else:
                query = query.filter((Trip.is_internship.is_(False)) | (Trip.is_internship.is_(None)))

        return query.order_by(Trip.start_date.asc(), Trip.trip_id.asc()).all()

    def list_admin(self, show_deleted: bool = False) -> List[Trip]:
        statuses = [s.value for s in admin_statuses(show_deleted)]
        return (
            self._query()
            .filter(Trip.show_trip.in_(statuses))
            .order_by(Trip.start_date.asc(), Trip.trip_id.asc())
            .all()
        )

    def get(self, trip_id: int, public: bool = False) -> Trip:
        """Trip by its public number; visitors only see ``Show`` trips."""
        query = self._query().filter(Trip.trip_id == trip_id)
        if public:
            query = query.filter(Trip.show_trip.in_([s.value for s in public_statuses()]))

        trip = query.first()
        if not trip:
            raise TripNotFoundError()
        return trip

    # ------------------------------------------------------------------
    # Trip records
    # ------------------------------------------------------------------

    def create(self, data: Dict[str, Any], video_links: Sequence[str] = ()) -> Trip:
        """Create a trip; it always starts hidden under the next trip number."""
        trip = Trip(**{field: data.get(field) for field in EDITABLE_FIELDS if field in data})
        trip.show_trip = INITIAL_STATUS.value
        trip.videos = [TripVideo(video_url=url) for url in video_links if url]

        try:
            add_with_next_trip_id(self.db, trip)
            self.db.commit()
        except TripBoardError:
            self.db.rollback()
            raise
        except SQLAlchemyError:
            self.db.rollback()
            logger.error("Failed to create trip", exc_info=True)
            raise TripBoardError("Failed to create trip")

        logger.info(f"Created trip {trip.trip_id} ({trip.name})")
        return self.get(trip.trip_id)

    def update(self, trip_id: int, data: Dict[str, Any]) -> Trip:
        """Apply a partial update of the editable scalar fields."""
        cleared = sorted(field for field in REQUIRED_FIELDS if field in data and data[field] is None)
        if cleared:
            raise InvalidTripDataError(f"Required fields cannot be cleared: {', '.join(cleared)}")

        trip = self.get(trip_id)
        for field, value in data.items():
            if field in EDITABLE_FIELDS:
                setattr(trip, field, value)

        if trip.end_date and trip.start_date and trip.end_date < trip.start_date:
            self.db.rollback()
            raise InvalidTripDataError("End date must not be before start date")

        self._commit("update trip", trip_id)
        return self.get(trip_id)

    def set_status(self, trip_id: int, new_status: str) -> Trip:
        """Change visibility. A failed write leaves the previous status in place."""
        trip = self.get(trip_id)
        trip.show_trip = transition(trip.show_trip, new_status).value
        self._commit("update trip status", trip_id)
        return trip

    # ------------------------------------------------------------------
    # Images
    # ------------------------------------------------------------------

    def set_brochure(self, trip_id: int, upload: UploadedFile) -> Trip:
        """Upload a new brochure image and point the trip at it."""
        validate_image_upload(upload)
        trip = self.get(trip_id)

        path = self._upload(BROCHURE_PREFIX, upload)
        trip.brochure_image_path = path
        self._commit("set brochure", trip_id, uploaded=[path])
        return self.get(trip_id)

    def add_images(
        self,
        trip_id: int,
        uploads: Sequence[UploadedFile],
        is_thumbnail: bool = False,
        is_flyer: bool = False,
    ) -> List[TripImage]:
        """Upload gallery images, all with the given role flags."""
        if not uploads:
            raise InvalidUploadError("No files uploaded")
        for upload in uploads:
            validate_image_upload(upload)

        trip = self.get(trip_id)
        uploaded = []
        images = []
        try:
            for upload in uploads:
                path = self._upload(GALLERY_PREFIX, upload)
                uploaded.append(path)
                image = TripImage(image_path=path, is_thumbnail=is_thumbnail, is_flyer=is_flyer)
                trip.images.append(image)
                images.append(image)
        except StorageError:
            self.db.rollback()
            self._discard(uploaded)
            raise

        if images:
            self._enforce_unique_roles(trip, images[-1])
            if is_thumbnail:
                trip.thumbnail_image = images[-1].image_path

        self._commit("add images", trip_id, uploaded=uploaded)
        return images

    def delete_image(self, trip_id: int, image_id: int) -> None:
        """Delete an image row and its stored object."""
        trip = self.get(trip_id)
        image = next((img for img in trip.images if img.id == image_id), None)
        if image is None:
            raise ImageNotFoundError()

        path = image.image_path
        if trip.thumbnail_image == path:
            trip.thumbnail_image = None
        trip.images.remove(image)

        try:
            self.db.flush()
            self.storage.remove([path])
            self.db.commit()
        except StorageError:
            self.db.rollback()
            logger.error(f"Failed to remove stored image {path} of trip {trip_id}", exc_info=True)
            raise
        except SQLAlchemyError:
            self.db.rollback()
            logger.error(f"Failed to delete image {image_id} of trip {trip_id}", exc_info=True)
            raise TripBoardError("Failed to delete image")

        logger.info(f"Deleted image {path} from trip {trip_id}")

    def set_thumbnail(self, trip_id: int, image_path: Optional[str]) -> Trip:
        """Select the card image; ``None`` restores the default (brochure) choice."""
        trip = self.get(trip_id)
        image_paths = [img.image_path for img in trip.images] + [img.image_path for img in trip.gallery]

        if image_path is not None:
            allowed = image_path in image_paths or image_path == trip.brochure_image_path
            if not allowed and not is_absolute_url(image_path):
                raise ImageNotFoundError(f"Image {image_path} does not belong to trip {trip_id}")

        trip.thumbnail_image = image_path
        if settings.enforce_unique_image_roles:
            for image in trip.images:
                image.is_thumbnail = image_path is not None and image.image_path == image_path

        self._commit("set thumbnail", trip_id)
        return self.get(trip_id)

    def set_image_roles(
        self,
        trip_id: int,
        image_id: int,
        is_thumbnail: Optional[bool] = None,
        is_flyer: Optional[bool] = None,
    ) -> TripImage:
        trip = self.get(trip_id)
        image = next((img for img in trip.images if img.id == image_id), None)
        if image is None:
            raise ImageNotFoundError()

        if is_thumbnail is not None:
            image.is_thumbnail = is_thumbnail
            if is_thumbnail:
                trip.thumbnail_image = image.image_path
            elif trip.thumbnail_image == image.image_path:
                trip.thumbnail_image = None
        if is_flyer is not None:
            image.is_flyer = is_flyer
        self._enforce_unique_roles(trip, image)

        self._commit("set image roles", trip_id)
        return image

    # ------------------------------------------------------------------
    # Videos
    # ------------------------------------------------------------------

    def add_video(self, trip_id: int, video_url: str) -> TripVideo:
        trip = self.get(trip_id)
        video = TripVideo(video_url=video_url)
        trip.videos.append(video)
        self._commit("add video", trip_id)
        return video

    def delete_video(self, trip_id: int, video_id: int) -> None:
        trip = self.get(trip_id)
        video = next((v for v in trip.videos if v.id == video_id), None)
        if video is None:
            raise VideoNotFoundError()
        trip.videos.remove(video)
        self._commit("delete video", trip_id)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _enforce_unique_roles(self, trip: Trip, image: TripImage) -> None:
        """Clear the roles carried by ``image`` from the trip's other images."""
        if not settings.enforce_unique_image_roles:
            return
        for other in trip.images:
            if other is image:
                continue
            if image.is_thumbnail:
                other.is_thumbnail = False
            if image.is_flyer:
                other.is_flyer = False

    def _upload(self, prefix: str, upload: UploadedFile) -> str:
        path = self.storage.new_object_path(prefix, upload.filename)
        return self.storage.upload(path, upload.data, upload.content_type)

    def _discard(self, paths: Sequence[str]) -> None:
        """Compensate for uploads whose database rows were never committed."""
        if not paths:
            return
        try:
            self.storage.remove(paths)
        except StorageError:
            logger.error(f"Failed to clean up uploaded objects {list(paths)}", exc_info=True)

    def _commit(self, action: str, trip_id: int, uploaded: Sequence[str] = ()) -> None:
        try:
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            self._discard(uploaded)
            logger.error(f"Failed to {action} for trip {trip_id}", exc_info=True)
            raise TripBoardError(f"Failed to {action}")
