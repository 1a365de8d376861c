"""Listing-level building identification: text extraction cross-checked by coordinates."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Optional

from listing_geo.config import MatchingConfig, get_settings
from listing_geo.extractor import TextExtractor
from listing_geo.gazetteer import LocationRegistry, default_registry
from listing_geo.models import (
    Confidence,
    IdentificationMethod,
    ListingIdentification,
    ListingStatus,
    ListingText,
    PropertyKind,
    ValidationStatus,
)
from listing_geo.validator import CoordinateValidator

logger = logging.getLogger(__name__)

_VILLA_SUBTITLE_RE = re.compile(r"\bEntire\s+(?:villa|townhouse|vacation\s+home|home|house)\s+in\b", re.IGNORECASE)
_VILLA_TITLE_RE = re.compile(r"\b(?:villa|townhouse|beach\s+house)\b", re.IGNORECASE)

# Verdicts that carry over 1:1 from coordinate validation
_STATUS_FROM_VALIDATION = {
    ValidationStatus.VALIDATED: ListingStatus.VALIDATED,
    ValidationStatus.MANUAL_CHECK: ListingStatus.MANUAL_CHECK,
    ValidationStatus.WRONG_LOCATION: ListingStatus.WRONG_LOCATION,
    ValidationStatus.UNKNOWN_LOCATION: ListingStatus.UNKNOWN_LOCATION,
    ValidationStatus.NO_COORDS: ListingStatus.TEXT_ONLY,
}


def is_villa_listing(title: Optional[str], property_type: Optional[str] = None) -> bool:
    """Villas and townhouses have no building to identify."""
    from_subtitle = bool(property_type and _VILLA_SUBTITLE_RE.search(property_type))
    from_title = bool(title and _VILLA_TITLE_RE.search(title))
    if from_subtitle and from_title:
        logger.debug("Villa confirmed by both subtitle and title")
    elif from_title:
        logger.debug("Villa detected in title")
    elif from_subtitle:
        logger.debug("Villa detected in subtitle")
    return from_subtitle or from_title


@dataclass
class BuildingIdentifier:
    registry: LocationRegistry
    extractor: TextExtractor
    validator: CoordinateValidator
    config: MatchingConfig

    @classmethod
    def build(
        cls,
        registry: Optional[LocationRegistry] = None,
        config: Optional[MatchingConfig] = None,
    ) -> "BuildingIdentifier":
        registry = registry or default_registry()
        config = config or get_settings().matching
        return cls(
            registry=registry,
            extractor=TextExtractor(registry, config),
            validator=CoordinateValidator(registry, config),
            config=config,
        )

    def resolve_area(self, lat: Optional[float], lng: Optional[float]) -> Optional[str]:
        """Area from coordinates, else the configured default area."""
        area = self.registry.detect_area(lat, lng)
        if area is None and self.registry.area(self.config.default_area) is not None:
            area = self.config.default_area
        return area

    def identify(
        self,
        listing: ListingText,
        lat: Optional[float] = None,
        lng: Optional[float] = None,
    ) -> ListingIdentification:
        if is_villa_listing(listing.title, listing.property_type):
            return ListingIdentification(
                property_kind=PropertyKind.VILLA,
                status=ListingStatus.VILLA,
                area=self.registry.detect_area(lat, lng),
            )

        area = self.resolve_area(lat, lng)
        extracted = self.extractor.extract(listing.full_text, area)
        building, confidence = extracted.building, extracted.confidence
        method = IdentificationMethod.TEXT if building else None

        if building is None and lat is not None and lng is not None:
            closest = self.validator.find_closest_building(lat, lng)
            if closest.building:
                logger.info("No text match - using closest building by coordinates")
                building = closest.building
                confidence = Confidence.COORD_ONLY
                method = IdentificationMethod.COORDINATES

        if building is None:
            return ListingIdentification(
                property_kind=PropertyKind.APARTMENT,
                status=ListingStatus.NOT_FOUND,
                area=area,
            )

        verdict = self.validator.validate(lat, lng, building)
        return ListingIdentification(
            property_kind=PropertyKind.APARTMENT,
            status=_STATUS_FROM_VALIDATION[verdict.status],
            building=building,
            confidence=confidence,
            method=method,
            area=verdict.area or area,
            distance_meters=verdict.distance_meters,
        )
