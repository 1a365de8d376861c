"""
Exceptions raised for malformed reference data.

Expected conditions (no match, missing coordinates, unknown area) are never
signalled with exceptions; they come back as ``None`` or a status enum.
"""

from __future__ import annotations


class GazetteerError(Exception):
    """Base class for gazetteer configuration faults."""


class GazetteerLoadError(GazetteerError):
    """A gazetteer document could not be turned into areas and buildings."""


class GazetteerIntegrityError(GazetteerError):
    """The gazetteer loaded but failed its integrity check."""

    def __init__(self, errors: list[str]):
        self.errors = list(errors)
        summary = "; ".join(self.errors[:5])
        if len(self.errors) > 5:
            summary += f" (+{len(self.errors) - 5} more)"
        super().__init__(f"Gazetteer integrity check failed: {summary}")
