"""
Central configuration loaded from environment variables with sensible defaults.
Nothing here is mutated after start-up; components receive the values they need.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from functools import lru_cache


@dataclass(frozen=True)
class MatchingConfig:
    # Listing-to-building distance accepted as "validated" (meters)
    distance_threshold_m: float = float(os.getenv("MATCH_DISTANCE_THRESHOLD_M", "400"))
    # Characters inspected before a match when looking for view/proximity phrases
    exclusion_window: int = int(os.getenv("MATCH_EXCLUSION_WINDOW", "150"))
    # Words allowed between an exclusion phrase and the match it disqualifies
    exclusion_max_gap_words: int = int(os.getenv("MATCH_EXCLUSION_MAX_GAP_WORDS", "3"))
    # Area used for text extraction when coordinates don't resolve one
    default_area: str = os.getenv("DEFAULT_AREA", "PALM_JUMEIRAH")


@dataclass(frozen=True)
class CoordinateConfig:
    # Plausibility envelope for coordinates scraped out of page source (Dubai)
    lat_min: float = float(os.getenv("COORD_LAT_MIN", "24.5"))
    lat_max: float = float(os.getenv("COORD_LAT_MAX", "25.5"))
    lng_min: float = float(os.getenv("COORD_LNG_MIN", "54.5"))
    lng_max: float = float(os.getenv("COORD_LNG_MAX", "56.0"))

    def contains(self, lat: float, lng: float) -> bool:
        return self.lat_min <= lat <= self.lat_max and self.lng_min <= lng <= self.lng_max


@dataclass(frozen=True)
class GazetteerConfig:
    # Optional JSON gazetteer replacing the bundled data (empty = bundled)
    path: str = os.getenv("GAZETTEER_PATH", "")
    # Refuse to start when the integrity check fails
    strict: bool = os.getenv("GAZETTEER_STRICT", "true").lower() == "true"


@dataclass(frozen=True)
class Settings:
    matching: MatchingConfig = field(default_factory=MatchingConfig)
    coordinates: CoordinateConfig = field(default_factory=CoordinateConfig)
    gazetteer: GazetteerConfig = field(default_factory=GazetteerConfig)
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    env: str = os.getenv("APP_ENV", "development")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Singleton settings instance."""
    return Settings()
