"""Deep copy of a trip, its stored images and its video links."""

from typing import Dict, List, Optional
import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from tripboard.core.database_utils import add_with_next_trip_id
from tripboard.core.errors import DuplicationError, StorageError, TripBoardError
from tripboard.models import Trip, TripImage, TripVideo
from tripboard.services.images import is_absolute_url
from tripboard.services.status import INITIAL_STATUS
from tripboard.services.storage import BROCHURE_PREFIX, GALLERY_PREFIX, ObjectStorage
from tripboard.services.trips import EDITABLE_FIELDS, TripService

logger = logging.getLogger(__name__)

COPY_SUFFIX = " - Copy"
NAME_MAX_LENGTH = Trip.__table__.c.name.type.length


def copy_name(name: str) -> str:
    """Name of a copy, shortening the original so the suffix still fits."""
    return f"{name[:NAME_MAX_LENGTH - len(COPY_SUFFIX)]}{COPY_SUFFIX}"


class TripDuplicator:
    """Copies a trip into a new hidden trip with the next trip number.

    Any failing step aborts the copy: the database transaction is rolled back
    and every object already uploaded for the copy is removed again. Retrying
    creates yet another new trip.
    """

    def __init__(self, db: Session, storage: ObjectStorage):
        self.db = db
        self.storage = storage
        self._uploaded: List[str] = []

    def duplicate(self, trip_id: int) -> Trip:
        source = TripService(self.db, self.storage).get(trip_id)
        self._uploaded = []

        try:
            copy = Trip(**{field: getattr(source, field) for field in EDITABLE_FIELDS})
            copy.name = copy_name(source.name)
            copy.show_trip = INITIAL_STATUS.value
            new_trip_id = add_with_next_trip_id(self.db, copy)

            path_map: Dict[str, str] = {}
            if source.brochure_image_path:
                copy.brochure_image_path = self._copy_object(source.brochure_image_path, BROCHURE_PREFIX)
                path_map[source.brochure_image_path] = copy.brochure_image_path

            for image in source.images:
                new_path = self._copy_object(image.image_path, GALLERY_PREFIX)
                path_map[image.image_path] = new_path
                copy.images.append(TripImage(
                    image_path=new_path,
                    is_thumbnail=image.is_thumbnail,
                    is_flyer=image.is_flyer,
                ))

            # Legacy gallery rows become plain images of the canonical model
            for image in source.gallery:
                new_path = self._copy_object(image.image_path, GALLERY_PREFIX)
                path_map[image.image_path] = new_path
                copy.images.append(TripImage(image_path=new_path, is_thumbnail=False, is_flyer=False))

            for video in source.videos:
                copy.videos.append(TripVideo(video_url=video.video_url))

            copy.thumbnail_image = self._remap_thumbnail(source.thumbnail_image, path_map)
            self.db.commit()
        except (StorageError, SQLAlchemyError, TripBoardError) as e:
            self.db.rollback()
            self._discard_uploads()
            logger.error(f"Error duplicating trip {trip_id}: {e}", exc_info=True)
            raise DuplicationError() from e

        logger.info(f"Duplicated trip {trip_id} as {new_trip_id} with {len(copy.images)} images")
        return TripService(self.db, self.storage).get(new_trip_id)

    def _copy_object(self, path: str, prefix: str) -> str:
        """Download a stored object and re-upload it under a fresh timestamped path."""
        if is_absolute_url(path):
            return path

        data = self.storage.download(path)
        filename = path.rsplit("/", 1)[-1]
        new_path = self.storage.upload(self.storage.new_object_path(prefix, filename), data)
        self._uploaded.append(new_path)
        return new_path

    @staticmethod
    def _remap_thumbnail(pointer: Optional[str], path_map: Dict[str, str]) -> Optional[str]:
        if not pointer:
            return None
        if pointer in path_map:
            return path_map[pointer]
        if is_absolute_url(pointer):
            return pointer
        # Dangling pointer: the copy falls back to its brochure
        return None

    def _discard_uploads(self):
        if not self._uploaded:
            return
        try:
            removed = self.storage.remove(self._uploaded)
            logger.info(f"Removed {len(removed)} objects uploaded for the failed copy")
        except StorageError:
            logger.error(f"Failed to remove objects of the failed copy: {self._uploaded}", exc_info=True)
        finally:
            self._uploaded = []
