"""Adapter between persisted trip rows and the display model.

Persisted rows are snake_case with flat organizer columns and relation lists
(``trip_images``, legacy ``gallery``, ``videos``). The display model nests the
organizer, uses camelCase keys on the wire and carries resolved image URLs.
This module is the only place that knows about the legacy gallery shape.
"""

from datetime import date
from typing import Any, Dict, List, Mapping, Optional
from pydantic import BaseModel
from pydantic.alias_generators import to_camel

from tripboard.models import Trip
from tripboard.services.images import (
    ImageResolver,
    get_field,
    select_card_image,
    split_flyer_and_gallery,
)

TRIP_COLUMNS = (
    "id",
    "trip_id",
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
    "brochure_image_path",
    "thumbnail_image",
    "show_trip",
    "is_internship",
    "created_at",
    "updated_at",
)


class DisplayModel(BaseModel):
    class Config:
        alias_generator = to_camel
        populate_by_name = True


class Organizer(DisplayModel):
    name: str = ""
    contact: str = ""


class TripImageDisplay(DisplayModel):
    id: Optional[int] = None
    url: str
    path: str = ""
    is_thumbnail: bool = False
    is_flyer: bool = False
    legacy: bool = False


class TripVideoDisplay(DisplayModel):
    id: Optional[int] = None
    url: str


class TripDisplay(DisplayModel):
    id: int
    trip_id: int
    name: str
    description: str = ""
    start_date: date
    end_date: date
    website_url: Optional[str] = None
    organizer: Organizer
    gender: str = "mixed"
    location: str
    spots: Optional[int] = None
    price: Optional[str] = None
    is_internship: bool = False
    show_trip: str = "Hidden"
    images: List[TripImageDisplay] = []
    video_links: List[str] = []
    videos: List[TripVideoDisplay] = []
    brochure_image: Optional[str] = None
    thumbnail_image: Optional[str] = None
    card_image: str
    flyer_image: Optional[TripImageDisplay] = None
    gallery_images: List[TripImageDisplay] = []


def row_from_model(trip: Trip) -> Dict[str, Any]:
    """Flatten an ORM trip and its relations into a persisted-row mapping."""
    row = {column: getattr(trip, column) for column in TRIP_COLUMNS}
    row["trip_images"] = [
        {
            "id": image.id,
            "image_path": image.image_path,
            "is_thumbnail": image.is_thumbnail,
            "is_flyer": image.is_flyer,
        }
        for image in trip.images
    ]
    row["gallery"] = [{"id": image.id, "image_path": image.image_path} for image in trip.gallery]
    row["videos"] = [{"id": video.id, "video_url": video.video_url} for video in trip.videos]
    return row


def _image_rows(row: Mapping[str, Any]) -> List[Dict[str, Any]]:
    """Current and legacy image rows in one canonical shape."""
    images = []
    for image in row.get("trip_images") or row.get("images") or []:
        images.append({
            "id": get_field(image, "id"),
            "image_path": get_field(image, "image_path", ""),
            "is_thumbnail": bool(get_field(image, "is_thumbnail", False)),
            "is_flyer": bool(get_field(image, "is_flyer", False)),
            "legacy": False,
        })
    for image in row.get("gallery") or []:
        # Legacy gallery rows carry no role flags
        path = image if isinstance(image, str) else get_field(image, "image_path", "")
        images.append({
            "id": None if isinstance(image, str) else get_field(image, "id"),
            "image_path": path,
            "is_thumbnail": False,
            "is_flyer": False,
            "legacy": True,
        })
    return images


def _videos(row: Mapping[str, Any]) -> List[TripVideoDisplay]:
    videos = []
    for video in row.get("videos") or []:
        if isinstance(video, str):
            video_id, url = None, video
        else:
            video_id, url = get_field(video, "id"), get_field(video, "video_url")
        if url:
            videos.append(TripVideoDisplay(id=video_id, url=url))
    return videos


def _organizer(row: Mapping[str, Any]) -> Organizer:
    nested = row.get("organizer")
    if nested:
        return Organizer(name=get_field(nested, "name", ""), contact=get_field(nested, "contact", ""))
    return Organizer(name=row.get("organizer_name") or "", contact=row.get("organizer_contact") or "")


def to_display(row: Mapping[str, Any], resolver: ImageResolver) -> TripDisplay:
    """Convert a persisted trip row into the display model."""
    image_rows = _image_rows(row)
    images = [
        TripImageDisplay(
            id=image["id"],
            url=resolver.resolve(image["image_path"]),
            path=image["image_path"],
            is_thumbnail=image["is_thumbnail"],
            is_flyer=image["is_flyer"],
            legacy=image["legacy"],
        )
        for image in image_rows
    ]
    flyer, gallery = split_flyer_and_gallery(images)
    videos = _videos(row)

    brochure_path = row.get("brochure_image_path")
    thumbnail_pointer = row.get("thumbnail_image")

    return TripDisplay(
        id=row["id"],
        trip_id=row["trip_id"],
        name=row["name"],
        description=row.get("description") or "",
        start_date=row["start_date"],
        end_date=row["end_date"],
        website_url=row.get("website_url") or None,
        organizer=_organizer(row),
        gender=row.get("gender") or "mixed",
        location=row["location"],
        spots=row.get("spots"),
        price=row.get("price") or None,
        is_internship=bool(row.get("is_internship")),
        show_trip=row.get("show_trip") or "Hidden",
        images=images,
        video_links=[video.url for video in videos],
        videos=videos,
        brochure_image=resolver.resolve_optional(brochure_path),
        thumbnail_image=resolver.resolve_optional(thumbnail_pointer),
        card_image=select_card_image(thumbnail_pointer, brochure_path, image_rows, resolver),
        flyer_image=flyer,
        gallery_images=gallery,
    )


def trip_to_display(trip: Trip, resolver: ImageResolver) -> TripDisplay:
    return to_display(row_from_model(trip), resolver)
