"""
Unit tests: TripService reads and admin writes.

Verifies:
- Public and admin listings honour visibility and filters
- Failed writes leave the previous state in place
- Upload validation, compensation and image role bookkeeping
"""

from datetime import date

import pytest
from sqlalchemy.exc import OperationalError

from factories import PNG_BYTES, bucket_files, make_trip, store_image
from tripboard.core.errors import (
    ImageNotFoundError,
    InvalidTransitionError,
    InvalidTripDataError,
    InvalidUploadError,
    StorageError,
    TripBoardError,
    TripNotFoundError,
)
from tripboard.models import Trip, TripImage
from tripboard.services.trips import TripFilters, TripService, UploadedFile, validate_image_upload


@pytest.fixture
def service(db_session, storage):
    return TripService(db_session, storage)


def _png(name="photo.png"):
    return UploadedFile(filename=name, content_type="image/png", data=PNG_BYTES)


def _failing_commit():
    raise OperationalError("COMMIT", {}, Exception("database is locked"))


# ---------------------------------------------------------------------------
# Listings
# ---------------------------------------------------------------------------

class TestListings:

    def test_public_listing_only_shows_show(self, db_session, service):
        make_trip(db_session, name="Visible", show_trip="Show")
        make_trip(db_session, name="Hidden", show_trip="Hidden")
        make_trip(db_session, name="Gone", show_trip="Deleted")

        assert [trip.name for trip in service.list_public()] == ["Visible"]

    def test_admin_listing_toggle(self, db_session, service):
        make_trip(db_session, name="Visible", show_trip="Show")
        make_trip(db_session, name="Hidden", show_trip="Hidden")
        make_trip(db_session, name="Gone", show_trip="Deleted")

        assert {trip.name for trip in service.list_admin()} == {"Visible", "Hidden"}
        assert {trip.name for trip in service.list_admin(show_deleted=True)} == {"Visible", "Hidden", "Gone"}

    def test_public_listing_sorted_by_start_date(self, db_session, service):
        make_trip(db_session, name="Later", show_trip="Show", start_date=date(2027, 3, 1), end_date=date(2027, 3, 5))
        make_trip(db_session, name="Sooner", show_trip="Show", start_date=date(2026, 11, 1), end_date=date(2026, 11, 5))

        assert [trip.name for trip in service.list_public()] == ["Sooner", "Later"]

    def test_filters(self, db_session, service):
        make_trip(db_session, name="Israel", show_trip="Show", location="israel", gender="female")
        make_trip(db_session, name="Abroad", show_trip="Show", location="international", gender="mixed")
        make_trip(db_session, name="Internship", show_trip="Show", location="united_states", is_internship=True)

        def names(**kwargs):
            return [trip.name for trip in service.list_public(TripFilters(**kwargs))]

        assert names(location="israel") == ["Israel"]
        assert names(gender="female") == ["Israel"]
        assert names(is_internship=True) == ["Internship"]
        assert set(names(is_internship=False)) == {"Israel", "Abroad"}

    def test_start_date_window(self, db_session, service):
        make_trip(db_session, name="Winter", show_trip="Show", start_date=date(2026, 12, 1), end_date=date(2026, 12, 9))
        make_trip(db_session, name="Spring", show_trip="Show", start_date=date(2027, 4, 1), end_date=date(2027, 4, 9))

        filters = TripFilters(start_from=date(2027, 1, 1), start_until=date(2027, 12, 31))
        assert [trip.name for trip in service.list_public(filters)] == ["Spring"]

    def test_public_get_hides_non_show_trips(self, db_session, service):
        trip = make_trip(db_session, show_trip="Hidden")

        with pytest.raises(TripNotFoundError):
            service.get(trip.trip_id, public=True)
        assert service.get(trip.trip_id).trip_id == trip.trip_id


# ---------------------------------------------------------------------------
# Trip records
# ---------------------------------------------------------------------------

class TestTripRecords:

    DATA = {
        "name": "Cape Town Volunteering",
        "description": "Two weeks abroad",
        "start_date": date(2027, 1, 10),
        "end_date": date(2027, 1, 24),
        "location": "international",
        "gender": "mixed",
        "organizer_name": "Volunteer Desk",
        "organizer_contact": "volunteer@example.com",
    }

    def test_create_starts_hidden_with_next_trip_id(self, db_session, service):
        make_trip(db_session, trip_id=7, show_trip="Deleted")

        trip = service.create(dict(self.DATA), video_links=["https://youtube.com/embed/cape"])

        assert trip.trip_id == 8
        assert trip.show_trip == "Hidden"
        assert [video.video_url for video in trip.videos] == ["https://youtube.com/embed/cape"]

    def test_create_ignores_status_and_unknown_fields(self, service):
        trip = service.create(dict(self.DATA, show_trip="Show", trip_id=99, unknown="x"))
        assert trip.show_trip == "Hidden"
        assert trip.trip_id == 1

    def test_update_changes_fields(self, db_session, service):
        trip = make_trip(db_session)
        updated = service.update(trip.trip_id, {"name": "Renamed", "spots": 12})
        assert updated.name == "Renamed"
        assert updated.spots == 12

    def test_update_rejects_end_before_start(self, db_session, service):
        trip = make_trip(db_session)

        with pytest.raises(InvalidTripDataError):
            service.update(trip.trip_id, {"end_date": date(2020, 1, 1)})

        db_session.expire_all()
        assert db_session.query(Trip).one().end_date == date(2026, 12, 30)

    @pytest.mark.parametrize("field", ["name", "start_date", "location", "organizer_contact"])
    def test_update_rejects_clearing_required_fields(self, db_session, service, field):
        trip = make_trip(db_session, name="Kept")

        with pytest.raises(InvalidTripDataError):
            service.update(trip.trip_id, {field: None, "spots": 3})

        db_session.expire_all()
        stored = db_session.query(Trip).one()
        assert stored.name == "Kept"
        assert stored.spots is None

    def test_set_status(self, db_session, service):
        trip = make_trip(db_session)
        assert service.set_status(trip.trip_id, "Show").show_trip == "Show"
        assert service.set_status(trip.trip_id, "Deleted").show_trip == "Deleted"
        assert service.set_status(trip.trip_id, "Hidden").show_trip == "Hidden"

    def test_set_status_unknown_value(self, db_session, service):
        trip = make_trip(db_session)
        with pytest.raises(InvalidTransitionError):
            service.set_status(trip.trip_id, "Archived")

    def test_failed_status_write_keeps_previous_status(self, db_session, service, monkeypatch):
        trip = make_trip(db_session, show_trip="Show")
        monkeypatch.setattr(db_session, "commit", _failing_commit)

        with pytest.raises(TripBoardError):
            service.set_status(trip.trip_id, "Deleted")

        monkeypatch.undo()
        db_session.expire_all()
        assert db_session.query(Trip).one().show_trip == "Show"


# ---------------------------------------------------------------------------
# Uploads
# ---------------------------------------------------------------------------

class TestUploadValidation:

    def test_accepts_by_extension_when_type_missing(self):
        validate_image_upload(UploadedFile("cover.JPG", None, b"data"))

    @pytest.mark.parametrize("upload", [
        UploadedFile("notes.txt", "text/plain", b"hello"),
        UploadedFile("script", "application/javascript", b"alert(1)"),
        UploadedFile("empty.png", "image/png", b""),
    ])
    def test_rejects_invalid_uploads(self, upload):
        with pytest.raises(InvalidUploadError):
            validate_image_upload(upload)

    def test_rejects_oversized_upload(self, monkeypatch):
        from tripboard.core.config import settings
        monkeypatch.setattr(settings, "max_upload_bytes", 4)

        with pytest.raises(InvalidUploadError):
            validate_image_upload(UploadedFile("big.png", "image/png", b"12345"))


class TestImages:

    def test_add_images_stores_objects_and_rows(self, db_session, storage, service):
        trip = make_trip(db_session)

        images = service.add_images(trip.trip_id, [_png("a.png"), _png("b.png")])

        assert len(images) == 2
        assert all(image.image_path.startswith("gallery/") for image in images)
        assert bucket_files(storage) == sorted(image.image_path for image in images)

    def test_add_thumbnail_sets_pointer(self, db_session, service):
        trip = make_trip(db_session)
        images = service.add_images(trip.trip_id, [_png()], is_thumbnail=True)

        assert service.get(trip.trip_id).thumbnail_image == images[0].image_path

    def test_unique_roles_enforced_on_upload(self, db_session, storage, service):
        trip = make_trip(db_session)
        store_image(storage, db_session, trip, "gallery/1-old-flyer.png", is_flyer=True)

        service.add_images(trip.trip_id, [_png("new-flyer.png")], is_flyer=True)

        flyers = [image for image in service.get(trip.trip_id).images if image.is_flyer]
        assert len(flyers) == 1
        assert flyers[0].image_path.endswith("new-flyer.png")

    def test_unique_roles_can_be_disabled(self, db_session, storage, service, monkeypatch):
        from tripboard.core.config import settings
        monkeypatch.setattr(settings, "enforce_unique_image_roles", False)
        trip = make_trip(db_session)
        store_image(storage, db_session, trip, "gallery/1-old-flyer.png", is_flyer=True)

        service.add_images(trip.trip_id, [_png("new-flyer.png")], is_flyer=True)

        assert sum(image.is_flyer for image in service.get(trip.trip_id).images) == 2

    def test_failed_commit_removes_uploaded_objects(self, db_session, storage, service, monkeypatch):
        trip = make_trip(db_session)
        monkeypatch.setattr(db_session, "commit", _failing_commit)

        with pytest.raises(TripBoardError):
            service.add_images(trip.trip_id, [_png("a.png"), _png("b.png")])

        monkeypatch.undo()
        assert bucket_files(storage) == []
        assert db_session.query(TripImage).count() == 0

    def test_storage_failure_midway_removes_earlier_uploads(self, db_session, storage, service, monkeypatch):
        trip = make_trip(db_session)
        real_upload = storage.upload
        calls = []

        def flaky_upload(path, data, content_type=None):
            calls.append(path)
            if len(calls) == 2:
                raise StorageError("bucket unavailable")
            return real_upload(path, data, content_type)

        monkeypatch.setattr(storage, "upload", flaky_upload)

        with pytest.raises(StorageError):
            service.add_images(trip.trip_id, [_png("a.png"), _png("b.png")])

        assert bucket_files(storage) == []
        assert db_session.query(TripImage).count() == 0

    def test_set_brochure(self, db_session, storage, service):
        trip = make_trip(db_session)
        updated = service.set_brochure(trip.trip_id, _png("brochure.png"))

        assert updated.brochure_image_path.startswith("brochures/")
        assert storage.exists(updated.brochure_image_path)

    def test_delete_image_removes_object_and_clears_thumbnail(self, db_session, storage, service):
        trip = make_trip(db_session)
        image = store_image(storage, db_session, trip, "gallery/1-cover.png", is_thumbnail=True)
        trip.thumbnail_image = image.image_path
        db_session.commit()

        service.delete_image(trip.trip_id, image.id)

        refreshed = service.get(trip.trip_id)
        assert refreshed.images == []
        assert refreshed.thumbnail_image is None
        assert not storage.exists("gallery/1-cover.png")

    def test_delete_bare_filename_image_removes_object(self, db_session, storage, service):
        trip = make_trip(db_session)
        image = store_image(storage, db_session, trip, "cover.png")
        assert bucket_files(storage) == ["trip-photos/cover.png"]

        service.delete_image(trip.trip_id, image.id)

        assert bucket_files(storage) == []

    def test_delete_image_of_other_trip(self, db_session, storage, service):
        first = make_trip(db_session)
        second = make_trip(db_session)
        image = store_image(storage, db_session, first, "gallery/1-a.png")

        with pytest.raises(ImageNotFoundError):
            service.delete_image(second.trip_id, image.id)
        assert storage.exists("gallery/1-a.png")

    def test_set_thumbnail_syncs_flags(self, db_session, storage, service):
        trip = make_trip(db_session)
        first = store_image(storage, db_session, trip, "gallery/1-a.png", is_thumbnail=True)
        second = store_image(storage, db_session, trip, "gallery/2-b.png")

        updated = service.set_thumbnail(trip.trip_id, second.image_path)

        assert updated.thumbnail_image == "gallery/2-b.png"
        flags = {image.image_path: image.is_thumbnail for image in updated.images}
        assert flags == {first.image_path: False, second.image_path: True}

    def test_clear_thumbnail(self, db_session, storage, service):
        trip = make_trip(db_session)
        image = store_image(storage, db_session, trip, "gallery/1-a.png", is_thumbnail=True)

        updated = service.set_thumbnail(trip.trip_id, None)

        assert updated.thumbnail_image is None
        assert not updated.images[0].is_thumbnail
        assert image.image_path == "gallery/1-a.png"

    def test_thumbnail_must_belong_to_trip(self, db_session, service):
        trip = make_trip(db_session)
        with pytest.raises(ImageNotFoundError):
            service.set_thumbnail(trip.trip_id, "gallery/someone-else.png")

    def test_set_image_roles(self, db_session, storage, service):
        trip = make_trip(db_session)
        image = store_image(storage, db_session, trip, "gallery/1-a.png")

        service.set_image_roles(trip.trip_id, image.id, is_thumbnail=True, is_flyer=True)

        refreshed = service.get(trip.trip_id)
        assert refreshed.images[0].is_thumbnail and refreshed.images[0].is_flyer
        assert refreshed.thumbnail_image == "gallery/1-a.png"


class TestVideos:

    def test_add_and_delete_video(self, db_session, service):
        trip = make_trip(db_session)
        video = service.add_video(trip.trip_id, "https://youtube.com/embed/v")

        assert [v.video_url for v in service.get(trip.trip_id).videos] == ["https://youtube.com/embed/v"]

        service.delete_video(trip.trip_id, video.id)
        assert service.get(trip.trip_id).videos == []
