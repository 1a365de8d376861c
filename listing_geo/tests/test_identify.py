"""
Tests for listing-level identification: villa screening, text matches
cross-checked by coordinates, and the coordinate-only fallback.
"""

from __future__ import annotations

import pytest

from listing_geo.identify import BuildingIdentifier, is_villa_listing
from listing_geo.models import (
    Confidence,
    IdentificationMethod,
    ListingStatus,
    ListingText,
    PropertyKind,
)

FIVE = (25.104334288891593, 55.14869174441605)


@pytest.fixture(scope="module")
def identifier(palm_registry, matching_config):
    return BuildingIdentifier.build(palm_registry, matching_config)


@pytest.fixture(scope="module")
def harbour_identifier(harbour_registry, matching_config):
    return BuildingIdentifier.build(harbour_registry, matching_config)


class TestVillaDetection:
    @pytest.mark.parametrize("title,subtitle", [
        ("Beachfront Villa with private pool", None),
        ("Family townhouse on the fronds", None),
        ("Cozy beach house", None),
        ("Spacious family retreat", "Entire villa in Dubai"),
        ("Spacious family retreat", "Entire home in Dubai"),
    ])
    def test_villa(self, title, subtitle):
        assert is_villa_listing(title, subtitle) is True

    @pytest.mark.parametrize("title,subtitle", [
        ("Stunning 2BR apartment", "Entire rental unit in Dubai"),
        ("Villanova style studio", None),
        (None, None),
    ])
    def test_not_villa(self, title, subtitle):
        assert is_villa_listing(title, subtitle) is False

    def test_villa_listing_skips_matching(self, identifier):
        listing = ListingText(title="Signature Villa on Frond G", description="Located at Five Palm Jumeirah")
        result = identifier.identify(listing, *FIVE)
        assert result.property_kind == PropertyKind.VILLA
        assert result.status == ListingStatus.VILLA
        assert result.building is None
        assert result.area == "PALM_JUMEIRAH"


class TestIdentify:
    def test_text_match_validated(self, identifier):
        listing = ListingText(title="Stunning 2BR apartment located at Five Palm Jumeirah")
        result = identifier.identify(listing, *FIVE)
        assert result.property_kind == PropertyKind.APARTMENT
        assert result.status == ListingStatus.VALIDATED
        assert result.building == "FIVE PALM JUMEIRAH, Palm Jumeirah"
        assert result.confidence == Confidence.HIGH
        assert result.method == IdentificationMethod.TEXT
        assert result.distance_meters == pytest.approx(0.0, abs=1e-6)

    def test_text_match_without_coordinates(self, identifier):
        listing = ListingText(
            title="Cozy studio",
            description="Enjoy views of Atlantis The Palm from this cozy studio in Shoreline Apartments",
        )
        result = identifier.identify(listing)
        assert result.status == ListingStatus.TEXT_ONLY
        assert result.building == "SHORELINE APARTMENTS, Palm Jumeirah"
        assert result.area == "PALM_JUMEIRAH"
        assert result.distance_meters is None

    def test_coordinate_fallback(self, identifier):
        listing = ListingText(title="Cozy retreat with sea breeze and modern decor")
        result = identifier.identify(listing, 25.1045, 55.1487)
        assert result.status == ListingStatus.VALIDATED
        assert result.building == "FIVE PALM JUMEIRAH, Palm Jumeirah"
        assert result.confidence == Confidence.COORD_ONLY
        assert result.method == IdentificationMethod.COORDINATES

    def test_nothing_found(self, identifier):
        listing = ListingText(title="Cozy retreat with sea breeze and modern decor")
        result = identifier.identify(listing)
        assert result.status == ListingStatus.NOT_FOUND
        assert result.building is None
        assert result.method is None
        assert result.area == "PALM_JUMEIRAH"

    def test_coordinates_outside_known_areas(self, identifier):
        listing = ListingText(title="Stunning 2BR apartment located at Five Palm Jumeirah")
        result = identifier.identify(listing, 40.7128, -74.0060)
        assert result.status == ListingStatus.UNKNOWN_LOCATION
        assert result.building == "FIVE PALM JUMEIRAH, Palm Jumeirah"
        assert result.area == "PALM_JUMEIRAH"

    def test_text_far_from_coordinates(self, harbour_identifier):
        listing = ListingText(title="Flat in North Tower")
        result = harbour_identifier.identify(listing, 10.02, 20.02)
        assert result.status == ListingStatus.MANUAL_CHECK
        assert result.building == "NORTH TOWER, Harbour"
        assert result.distance_meters > 400

    def test_area_from_coordinates(self, harbour_identifier):
        listing = ListingText(title="Flat in East")
        result = harbour_identifier.identify(listing, 10.15, 20.15)
        assert result.status == ListingStatus.VALIDATED
        assert result.building == "EAST, Overlap"
        assert result.area == "OVERLAP"

    def test_no_default_area_in_registry(self, harbour_identifier):
        # Fixture registry has no PALM_JUMEIRAH, so no area can be resolved
        result = harbour_identifier.identify(ListingText(title="Flat in North Tower"))
        assert result.status == ListingStatus.NOT_FOUND
        assert result.area is None


class TestListingText:
    def test_full_text_joins_fields(self):
        listing = ListingText(title="Title", description="Body", location="Palm Jumeirah")
        assert listing.full_text == "Title\nBody\nPalm Jumeirah"
