"""
Pydantic models returned to callers of the identification engine.
These are pure data objects; the gazetteer itself lives in frozen dataclasses.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


# ── Enums ──────────────────────────────────────────────────────────────

class Confidence(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    # Only produced by the nearest-building fallback, never by text rules
    COORD_ONLY = "coord_only"


class ValidationStatus(str, Enum):
    VALIDATED = "validated"
    MANUAL_CHECK = "manual_check"
    WRONG_LOCATION = "wrong_location"
    UNKNOWN_LOCATION = "unknown_location"
    NO_COORDS = "no_coords"


class ListingStatus(str, Enum):
    VALIDATED = "validated"
    MANUAL_CHECK = "manual_check"
    WRONG_LOCATION = "wrong_location"
    UNKNOWN_LOCATION = "unknown_location"
    TEXT_ONLY = "text_only"
    NOT_FOUND = "not_found"
    VILLA = "villa"


class PropertyKind(str, Enum):
    APARTMENT = "apartment"
    VILLA = "villa"


class IdentificationMethod(str, Enum):
    TEXT = "text"
    COORDINATES = "coordinates"


# ── Per-call results ──────────────────────────────────────────────────

class ExtractionResult(BaseModel):
    """Outcome of text extraction: both fields are None when nothing matched."""
    building: Optional[str] = Field(None, description="Display name, e.g. 'FIVE PALM JUMEIRAH, Palm Jumeirah'")
    confidence: Optional[Confidence] = None

    @property
    def found(self) -> bool:
        return self.building is not None

    def as_tuple(self) -> tuple[Optional[str], Optional[str]]:
        return self.building, (self.confidence.value if self.confidence else None)


class ValidationResult(BaseModel):
    status: ValidationStatus
    distance_meters: Optional[float] = Field(None, ge=0.0, description="Unrounded great-circle distance")
    area: Optional[str] = None

    @property
    def rounded_distance(self) -> Optional[int]:
        return None if self.distance_meters is None else round(self.distance_meters)


class ClosestBuilding(BaseModel):
    building: Optional[str] = None
    distance_meters: Optional[float] = Field(None, ge=0.0)
    area: Optional[str] = None

    @property
    def rounded_distance(self) -> Optional[int]:
        return None if self.distance_meters is None else round(self.distance_meters)


# ── Combined identification ───────────────────────────────────────────

class ListingText(BaseModel):
    """Plain-text listing content as supplied by the page collaborator."""
    title: str = ""
    description: str = ""
    location: str = ""
    property_type: Optional[str] = Field(None, description="Subtitle such as 'Entire rental unit in Dubai'")

    @property
    def full_text(self) -> str:
        return "\n".join([self.title, self.description, self.location])


class ListingIdentification(BaseModel):
    property_kind: PropertyKind
    status: ListingStatus
    building: Optional[str] = None
    confidence: Optional[Confidence] = None
    method: Optional[IdentificationMethod] = None
    area: Optional[str] = None
    distance_meters: Optional[float] = Field(None, ge=0.0)

    @property
    def rounded_distance(self) -> Optional[int]:
        return None if self.distance_meters is None else round(self.distance_meters)
