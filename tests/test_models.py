"""Tests de normalización de registros del store."""

from datetime import date, datetime, timezone

import pytest
from pydantic import ValidationError

from vitrina.models import (
    Booking,
    BookingStatus,
    Favorite,
    Listing,
    ListingKind,
    ListingStatus,
    Review,
    SearchCriteria,
)


def test_listing_accepts_camel_and_snake_case():
    camel = Listing.from_row({"id": "1", "maxGuests": "3", "createdAt": "2024-01-01T10:00:00Z"})
    snake = Listing.from_row({"id": "1", "max_guests": 3, "created_at": "2024-01-01T10:00:00+00:00"})
    assert camel.max_guests == snake.max_guests == 3
    assert camel.created_at == snake.created_at == datetime(2024, 1, 1, 10, tzinfo=timezone.utc)


def test_listing_defaults_for_loose_fields():
    listing = Listing.from_row({"id": 42, "title": None, "maxGuests": 0, "createdAt": "yesterday"})
    assert listing.id == "42"
    assert listing.title == ""
    assert listing.max_guests == 1
    assert listing.created_at is None
    assert listing.status == ListingStatus.ACTIVE


def test_unknown_listing_status_is_not_active():
    assert not Listing.from_row({"id": "1", "status": "archived"}).is_active
    assert Listing.from_row({"id": "1", "status": "ACTIVE"}).is_active


def test_listing_without_id_is_rejected():
    with pytest.raises(ValidationError):
        Listing.from_row({"title": "huérfano"})


def test_booking_dates_and_status():
    booking = Booking.from_row(
        {"listingId": "L", "checkIn": "2024-03-10T15:00:00Z", "checkOut": "2024-03-12", "status": "Confirmed"}
    )
    assert booking.check_in == date(2024, 3, 10)
    assert booking.status == BookingStatus.CONFIRMED
    assert booking.blocks_availability
    assert booking.is_complete


def test_booking_unknown_status_never_blocks():
    assert not Booking.from_row({"listing_id": "L", "status": "weird"}).blocks_availability


def test_review_rating_out_of_range_does_not_count():
    assert not Review.from_row({"listing_id": "L", "rating": 9, "status": "approved"}).counts
    assert Review.from_row({"listing_id": "L", "rating": "4", "status": "approved"}).counts
    assert not Review.from_row({"listing_id": "L", "rating": 4, "status": "pending"}).counts


def test_favorite_db_dict_excludes_id():
    favorite = Favorite(id="f1", user_id="u", listing_id="L", listing_title="Casa")
    data = favorite.to_db_dict()
    assert "id" not in data
    assert data["user_id"] == "u"
    assert data["listing_id"] == "L"


@pytest.mark.parametrize("value", ["home", "Homes", "experiences", "SERVICE"])
def test_criteria_category_parsing(value):
    assert isinstance(SearchCriteria(category=value).category, ListingKind)


def test_criteria_rejects_unknown_category():
    with pytest.raises(ValidationError):
        SearchCriteria(category="castles")


def test_criteria_rejects_inverted_range():
    with pytest.raises(ValidationError):
        SearchCriteria(check_in="2024-03-10", check_out="2024-03-01")


def test_criteria_has_dates_requires_both():
    assert not SearchCriteria(check_in="2024-03-10").has_dates
    assert SearchCriteria(check_in="2024-03-10", check_out="2024-03-10").has_dates


def test_kind_label():
    assert ListingKind.EXPERIENCE.label == "Experience"
