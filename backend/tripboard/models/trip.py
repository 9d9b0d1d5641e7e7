from sqlalchemy import Column, String, Boolean, Integer, ForeignKey, Text, Date, CheckConstraint
from sqlalchemy.orm import relationship
from .base import BaseModel, PrimaryKey


class Trip(BaseModel):
    __tablename__ = "trips"
    __table_args__ = (
        CheckConstraint("show_trip IN ('Show', 'Hidden', 'Deleted')", name="ck_trips_show_trip"),
        CheckConstraint("location IN ('united_states', 'international', 'israel')", name="ck_trips_location"),
        CheckConstraint("gender IN ('mixed', 'male', 'female')", name="ck_trips_gender"),
    )

    trip_id = Column(Integer, unique=True, index=True, nullable=False)  # Public, URL-stable number
    name = Column(String(255), nullable=False)
    description = Column(Text)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    location = Column(String(32), nullable=False)
    gender = Column(String(16), nullable=False, default="mixed")
    spots = Column(Integer)
    price = Column(String(100))
    website_url = Column(String(2048))
    organizer_name = Column(String(255), nullable=False)
    organizer_contact = Column(String(255), nullable=False)
    brochure_image_path = Column(String(1024))
    thumbnail_image = Column(String(1024))  # Storage path of the selected thumbnail
    show_trip = Column(String(16), nullable=False, default="Hidden", index=True)
    is_internship = Column(Boolean, default=False)

    # Relationships
    images = relationship(
        "TripImage", back_populates="trip", order_by="TripImage.id", cascade="all, delete-orphan"
    )
    videos = relationship(
        "TripVideo", back_populates="trip", order_by="TripVideo.id", cascade="all, delete-orphan"
    )
    gallery = relationship(
        "TripGalleryImage", back_populates="trip", order_by="TripGalleryImage.id", cascade="all, delete-orphan"
    )


class TripImage(BaseModel):
    __tablename__ = "trip_images"

    image_path = Column(String(1024), nullable=False)
    is_thumbnail = Column(Boolean, nullable=False, default=False)
    is_flyer = Column(Boolean, nullable=False, default=False)

    # Foreign keys
    trip_id = Column(PrimaryKey, ForeignKey("trips.id", ondelete="CASCADE"), nullable=False, index=True)

    # Relationships
    trip = relationship("Trip", back_populates="images")


class TripVideo(BaseModel):
    __tablename__ = "trip_videos"

    video_url = Column(String(2048), nullable=False)

    # Foreign keys
    trip_id = Column(PrimaryKey, ForeignKey("trips.id", ondelete="CASCADE"), nullable=False, index=True)

    # Relationships
    trip = relationship("Trip", back_populates="videos")


class TripGalleryImage(BaseModel):
    """Legacy gallery rows, read through the transformer as plain gallery images."""

    __tablename__ = "trip_gallery"

    image_path = Column(String(1024), nullable=False)

    # Foreign keys
    trip_id = Column(PrimaryKey, ForeignKey("trips.id", ondelete="CASCADE"), nullable=False, index=True)

    # Relationships
    trip = relationship("Trip", back_populates="gallery")
