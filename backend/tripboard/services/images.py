"""Image resolution and image role assignment for trips.

Images are stored as bucket-relative paths. Everything shown to a visitor
goes through :class:`ImageResolver`, which never raises and falls back to the
placeholder image. The representative ("card") image of a trip is derived on
every read:

1. the explicitly selected thumbnail, if it still belongs to the trip,
2. otherwise the brochure/flyer image,
3. otherwise the placeholder.
"""

from typing import Any, Iterable, List, Mapping, Optional, Sequence, Tuple
import logging
import re

from tripboard.core.config import settings
from tripboard.services.storage import ObjectStorage

logger = logging.getLogger(__name__)

_URI_SCHEME = re.compile(r"^[A-Za-z][A-Za-z0-9+.\-]*://")


def is_absolute_url(value: Optional[str]) -> bool:
    return bool(value) and bool(_URI_SCHEME.match(value))


def get_field(record: Any, name: str, default: Any = None) -> Any:
    """Read ``name`` from a mapping or an object."""
    if record is None:
        return default
    if isinstance(record, Mapping):
        value = record.get(name, default)
    else:
        value = getattr(record, name, default)
    return default if value is None else value


class ImageResolver:
    """Maps stored paths to fetchable URLs."""

    def __init__(self, storage: ObjectStorage, default_image: Optional[str] = None):
        self.storage = storage
        self.default_image = default_image or settings.default_image

    def resolve(self, path: Optional[str]) -> str:
        if not path or not path.strip():
            return self.default_image

        path = path.strip()
        if is_absolute_url(path):
            return path

        try:
            url = self.storage.get_public_url(path)
        except Exception as e:
            logger.warning(f"Failed to resolve public URL for {path}: {e}")
            return self.default_image

        if not url:
            logger.warning(f"Empty public URL for {path}, using placeholder")
            return self.default_image
        return url

    def resolve_optional(self, path: Optional[str]) -> Optional[str]:
        """Like :meth:`resolve` but keeps ``None`` for a missing path."""
        if not path or not path.strip():
            return None
        return self.resolve(path)


def select_thumbnail_path(
    thumbnail_pointer: Optional[str],
    brochure_path: Optional[str],
    images: Sequence[Any],
) -> Optional[str]:
    """Stored path (or URL) of the image representing a trip, ``None`` for the placeholder."""
    image_paths = [get_field(image, "image_path") for image in images]

    if thumbnail_pointer:
        if is_absolute_url(thumbnail_pointer) or thumbnail_pointer in image_paths or thumbnail_pointer == brochure_path:
            return thumbnail_pointer
        logger.debug(f"Thumbnail pointer {thumbnail_pointer} is dangling, falling back")

    flagged_thumbnail = next((image for image in images if get_field(image, "is_thumbnail", False)), None)
    if flagged_thumbnail is not None:
        return get_field(flagged_thumbnail, "image_path")

    if brochure_path:
        return brochure_path

    flyer = next((image for image in images if get_field(image, "is_flyer", False)), None)
    if flyer is not None:
        return get_field(flyer, "image_path")

    return None


def select_card_image(
    thumbnail_pointer: Optional[str],
    brochure_path: Optional[str],
    images: Sequence[Any],
    resolver: ImageResolver,
) -> str:
    """Resolved URL of the image used on listing cards."""
    return resolver.resolve(select_thumbnail_path(thumbnail_pointer, brochure_path, images))


def split_flyer_and_gallery(images: Iterable[Any]) -> Tuple[Optional[Any], List[Any]]:
    """Separate the first flyer image from the ordinary gallery entries."""
    flyer = None
    gallery = []
    for image in images:
        if flyer is None and get_field(image, "is_flyer", False):
            flyer = image
        else:
            gallery.append(image)
    return flyer, gallery
