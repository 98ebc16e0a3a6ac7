"""Tests del clasificador de categorías."""

import itertools

import pytest

from vitrina.discovery import classify, classify_fields
from vitrina.models import Listing, ListingKind


def test_service_wins_over_experience_when_both_present():
    assert classify_fields(activity_type="hiking", service_type="catering") == ListingKind.SERVICE


def test_place_type_only_is_home():
    assert classify_fields(place_type="house") == ListingKind.HOME


@pytest.mark.parametrize(
    "category, expected",
    [
        ("experience", ListingKind.EXPERIENCE),
        ("service", ListingKind.SERVICE),
        ("resort", ListingKind.HOME),
        ("hotel", ListingKind.HOME),
        ("transient", ListingKind.HOME),
        ("place", ListingKind.HOME),
        (None, ListingKind.HOME),
        ("something-else", ListingKind.HOME),
        ("  Experience ", ListingKind.EXPERIENCE),
    ],
)
def test_category_tag(category, expected):
    assert classify_fields(category=category) == expected


def test_experience_category_with_service_type_is_service():
    assert classify_fields(category="experience", service_type="photography") == ListingKind.SERVICE


def test_activity_type_beats_home_markers():
    # Registro convertido: tiene placeType y activityType
    assert classify_fields(category="resort", place_type="cabin", activity_type="kayak") == ListingKind.EXPERIENCE


def test_blank_markers_are_ignored():
    assert classify_fields(activity_type="   ", service_type="") == ListingKind.HOME


def test_non_string_markers_are_ignored():
    assert classify_fields(activity_type=5, service_type=["x"]) == ListingKind.HOME


def test_classify_accepts_camel_case_rows():
    assert classify({"id": "1", "serviceType": "catering"}) == ListingKind.SERVICE
    assert classify({"id": "1", "activity_type": "hiking"}) == ListingKind.EXPERIENCE


def test_kind_is_derived_at_ingestion():
    listing = Listing.from_row({"id": "1", "activityType": "hiking"})
    assert listing.kind == ListingKind.EXPERIENCE


def test_kind_from_store_row_is_ignored():
    listing = Listing.from_row({"id": "1", "kind": "service", "placeType": "house"})
    assert listing.kind == ListingKind.HOME


def test_classifier_is_total_and_exclusive():
    categories = [None, "", "experience", "service", "place", "resort", "hotel", "transient", "other"]
    markers = [None, "", "x"]
    for category, place, activity, service in itertools.product(categories, markers, markers, markers):
        kind = classify_fields(category, place, activity, service)
        assert kind in set(ListingKind)
