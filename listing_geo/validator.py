"""
Coordinate-based validation of building matches.

Strategy:
  1. Resolve the area from the listing coordinates (registry bounds).
  2. Look the building up in that area only. A name from another area is
     a wrong-location verdict, not a distance check.
  3. Great-circle distance (haversine, mean Earth radius) against the
     registered coordinate, compared unrounded to the threshold.

Also provides the nearest-building fallback used when text extraction
found nothing, and a helper to pull coordinates out of page source text
already fetched by the crawler.
"""

from __future__ import annotations

import logging
import math
import re
from functools import lru_cache
from types import MappingProxyType
from typing import Mapping, Optional

import numpy as np

from listing_geo.config import CoordinateConfig, MatchingConfig, get_settings
from listing_geo.gazetteer import LocationRegistry, default_registry
from listing_geo.models import ClosestBuilding, ValidationResult, ValidationStatus

logger = logging.getLogger(__name__)

EARTH_RADIUS_M = 6_371_000.0


# ── Distance ───────────────────────────────────────────────────────────

def haversine_m(
    lat1: Optional[float],
    lng1: Optional[float],
    lat2: Optional[float],
    lng2: Optional[float],
) -> Optional[float]:
    """Great-circle distance in meters; None if any coordinate is missing."""
    if lat1 is None or lng1 is None or lat2 is None or lng2 is None:
        return None

    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    dphi = math.radians(lat2 - lat1)
    dlmb = math.radians(lng2 - lng1)

    a = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlmb / 2) ** 2
    a = min(a, 1.0)
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_M * c


def haversine_many(lat: float, lng: float, coords: np.ndarray) -> np.ndarray:
    """Distances in meters from one point to each (lat, lng) row of ``coords``."""
    if coords.size == 0:
        return np.zeros(0, dtype=np.float64)
    phi1 = np.radians(lat)
    phi2 = np.radians(coords[:, 0])
    dphi = phi2 - phi1
    dlmb = np.radians(coords[:, 1] - lng)

    a = np.sin(dphi / 2) ** 2 + np.cos(phi1) * np.cos(phi2) * np.sin(dlmb / 2) ** 2
    a = np.minimum(a, 1.0)
    c = 2 * np.arctan2(np.sqrt(a), np.sqrt(1 - a))
    return EARTH_RADIUS_M * c


def canonical_from_display(building_name: Optional[str]) -> Optional[str]:
    """'AL HAMRI, SHORELINE APARTMENTS, Palm Jumeirah' -> 'AL HAMRI'."""
    if not building_name:
        return None
    return building_name.split(",", 1)[0].strip() or None


# ── Validator ─────────────────────────────────────────────────────────

class CoordinateValidator:
    """Area detection, distance verdicts and nearest-building lookup over one registry."""

    def __init__(self, registry: LocationRegistry, config: Optional[MatchingConfig] = None):
        self.registry = registry
        self.config = config or get_settings().matching

        names: dict[str, tuple[str, ...]] = {}
        matrices: dict[str, np.ndarray] = {}
        for area in registry.areas:
            buildings = registry.buildings_for_area(area.key)
            # Umbrella entries whose blocks are registered themselves would
            # shadow the more precise block
            candidates = [
                b for b in buildings.values()
                if not any(sub in buildings for sub in b.sub_buildings)
            ]
            names[area.key] = tuple(b.name for b in candidates)
            matrices[area.key] = np.array(
                [b.coords for b in candidates], dtype=np.float64
            ).reshape(-1, 2)
        self._names: Mapping[str, tuple[str, ...]] = MappingProxyType(names)
        self._coords: Mapping[str, np.ndarray] = MappingProxyType(matrices)

    @property
    def threshold_m(self) -> float:
        return self.config.distance_threshold_m

    def validate(
        self,
        lat: Optional[float],
        lng: Optional[float],
        building_name: Optional[str],
    ) -> ValidationResult:
        if lat is None or lng is None:
            return ValidationResult(status=ValidationStatus.NO_COORDS)

        area = self.registry.detect_area(lat, lng)
        if area is None:
            logger.info("Listing coordinates (%s, %s) outside known areas", lat, lng)
            return ValidationResult(status=ValidationStatus.UNKNOWN_LOCATION)

        canonical = canonical_from_display(building_name)
        coords = self.registry.coordinates(canonical, area)
        if coords is None:
            logger.info("Building %r not found in %s", canonical, self.registry.area_display_name(area))
            return ValidationResult(status=ValidationStatus.WRONG_LOCATION, area=area)

        distance = haversine_m(lat, lng, coords[0], coords[1])
        logger.debug("Distance from %s: %dm", canonical, round(distance))

        status = (
            ValidationStatus.VALIDATED
            if distance <= self.threshold_m
            else ValidationStatus.MANUAL_CHECK
        )
        return ValidationResult(status=status, distance_meters=distance, area=area)

    def find_closest_building(self, lat: Optional[float], lng: Optional[float]) -> ClosestBuilding:
        """Nearest registered building in the listing's area, if within the threshold."""
        if lat is None or lng is None:
            return ClosestBuilding()

        area = self.registry.detect_area(lat, lng)
        if area is None:
            return ClosestBuilding()

        names = self._names.get(area, ())
        if not names:
            return ClosestBuilding(area=area)

        distances = haversine_many(lat, lng, self._coords[area])
        # argmin returns the first minimum, i.e. registration order on ties
        idx = int(np.argmin(distances))
        distance = float(distances[idx])
        if distance > self.threshold_m:
            return ClosestBuilding(area=area)

        name = names[idx]
        logger.info("Closest building by coordinates: %s (%dm)", name, round(distance))
        return ClosestBuilding(
            building=self.registry.format_full_name(name, area),
            distance_meters=distance,
            area=area,
        )


# ── Page-source coordinates ───────────────────────────────────────────

_COORD_PATTERNS: tuple[re.Pattern, ...] = (
    re.compile(r'"latitude":\s*(-?[\d.]+)\s*,\s*"longitude":\s*(-?[\d.]+)'),
    re.compile(r"'latitude':\s*(-?[\d.]+)\s*,\s*'longitude':\s*(-?[\d.]+)"),
    re.compile(r"latitude&quot;:\s*(-?[\d.]+)\s*,\s*&quot;longitude&quot;:\s*(-?[\d.]+)"),
)


def parse_coordinates(
    page_source: Optional[str],
    envelope: Optional[CoordinateConfig] = None,
) -> tuple[Optional[float], Optional[float]]:
    """
    First embedded latitude/longitude pair in already-fetched page text that
    falls inside the plausibility envelope, else (None, None).
    """
    if not page_source:
        return None, None
    envelope = envelope or get_settings().coordinates

    for pattern in _COORD_PATTERNS:
        m = pattern.search(page_source)
        if m is None:
            continue
        try:
            lat, lng = float(m.group(1)), float(m.group(2))
        except ValueError:
            continue
        if envelope.contains(lat, lng):
            return lat, lng
        logger.warning("Found coords (%s, %s) outside the expected range", lat, lng)

    logger.debug("Could not find coordinates in page source")
    return None, None


@lru_cache(maxsize=1)
def get_validator() -> CoordinateValidator:
    return CoordinateValidator(default_registry())
