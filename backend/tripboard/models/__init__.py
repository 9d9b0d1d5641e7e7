from .base import BaseModel
from .trip import Trip, TripImage, TripVideo, TripGalleryImage
from .session import AdminSession

__all__ = [
    "BaseModel",
    "Trip",
    "TripImage",
    "TripVideo",
    "TripGalleryImage",
    "AdminSession",
]
