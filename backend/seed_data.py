#!/usr/bin/env python3
"""Seed script to populate the database with sample trips."""

from datetime import date

from tripboard.core.database import SessionLocal, Base, engine
from tripboard.core.database_utils import add_with_next_trip_id
from tripboard.models import Trip, TripVideo


def create_sample_data():
    """Create a few trips in every visibility status."""
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()

    try:
        trips = [
            Trip(
                name="Jerusalem Winter Seminar",
                description="Ten days of learning, hiking and touring across Israel.",
                start_date=date(2026, 12, 20),
                end_date=date(2026, 12, 30),
                location="israel",
                gender="mixed",
                spots=40,
                price="$499",
                website_url="https://example.com/winter-seminar",
                organizer_name="Campus Travel Desk",
                organizer_contact="trips@example.com",
                show_trip="Show",
                videos=[TripVideo(video_url="https://www.youtube.com/embed/dQw4w9WgXcQ")]
            ),
            Trip(
                name="New York Summer Internship",
                description="Six-week placement with a partner firm in Manhattan.",
                start_date=date(2027, 6, 14),
                end_date=date(2027, 7, 23),
                location="united_states",
                gender="female",
                spots=12,
                organizer_name="Career Office",
                organizer_contact="+1 555 0100",
                show_trip="Show",
                is_internship=True
            ),
            Trip(
                name="Prague Heritage Tour",
                description="Draft itinerary, not yet published.",
                start_date=date(2027, 3, 2),
                end_date=date(2027, 3, 9),
                location="international",
                gender="male",
                organizer_name="Heritage Trips",
                organizer_contact="heritage@example.com",
                show_trip="Hidden"
            ),
            Trip(
                name="Cancelled Ski Week",
                start_date=date(2027, 1, 10),
                end_date=date(2027, 1, 17),
                location="international",
                gender="mixed",
                organizer_name="Campus Travel Desk",
                organizer_contact="trips@example.com",
                show_trip="Deleted"
            ),
        ]

        for trip in trips:
            add_with_next_trip_id(db, trip)
            db.commit()
            print(f"Trip #{trip.trip_id}: {trip.name} ({trip.show_trip})")

        print(f"Created {len(trips)} trips")

    except Exception as e:
        print(f"Error creating sample data: {e}")
        db.rollback()
    finally:
        db.close()


if __name__ == "__main__":
    create_sample_data()
