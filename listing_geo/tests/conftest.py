"""
Shared fixtures: the bundled Palm Jumeirah registry and a tiny synthetic
gazetteer whose rule order and distances are easy to reason about.
"""

from __future__ import annotations

import copy

import pytest

from listing_geo.config import MatchingConfig
from listing_geo.extractor import TextExtractor
from listing_geo.gazetteer import LocationRegistry
from listing_geo.validator import CoordinateValidator

HARBOUR_DOC = {
    "areas": [
        {
            "key": "HARBOUR",
            "display_name": "Harbour",
            "bounds": {"lat": [10.0, 10.1], "lng": [20.0, 20.1]},
            "buildings": [
                {"name": "NORTH TOWER", "coords": [10.05, 20.05], "aliases": ["NORTH TOWER", "NORTH"]},
                {"name": "SOUTH TOWER", "coords": [10.02, 20.02], "aliases": ["SOUTH TOWER", "SOUTH"]},
                {"name": "PIER 1", "coords": [10.08, 20.08], "aliases": ["PIER 1"], "complex": "THE PIERS"},
                {"name": "LIGHTHOUSE", "coords": [10.09, 20.01], "aliases": ["LIGHTHOUSE"]},
            ],
            "idioms": [r"\binside\s+the\s+(GRAND\s+HALL)"],
            "landmarks": ["LIGHTHOUSE"],
            "qualifiers": ["Harbour"],
        },
        {
            # Overlaps the north-east corner of HARBOUR
            "key": "OVERLAP",
            "display_name": "Overlap",
            "bounds": {"lat": [10.05, 10.2], "lng": [20.05, 20.2]},
            "buildings": [
                {"name": "EAST", "coords": [10.15, 20.15], "aliases": ["EAST"]},
            ],
        },
        {
            "key": "EMPTY",
            "display_name": "Empty",
            "bounds": {"lat": [30.0, 31.0], "lng": [30.0, 31.0]},
            "buildings": [],
        },
    ]
}


@pytest.fixture
def harbour_doc():
    """Fresh copy of the synthetic gazetteer document, safe to mutate."""
    return copy.deepcopy(HARBOUR_DOC)


@pytest.fixture(scope="session")
def matching_config():
    return MatchingConfig(
        distance_threshold_m=400.0,
        exclusion_window=150,
        exclusion_max_gap_words=3,
        default_area="PALM_JUMEIRAH",
    )


@pytest.fixture(scope="session")
def palm_registry():
    return LocationRegistry.bundled()


@pytest.fixture(scope="session")
def palm_extractor(palm_registry, matching_config):
    return TextExtractor(palm_registry, matching_config)


@pytest.fixture(scope="session")
def palm_validator(palm_registry, matching_config):
    return CoordinateValidator(palm_registry, matching_config)


@pytest.fixture(scope="session")
def harbour_registry():
    return LocationRegistry.from_mapping(HARBOUR_DOC)


@pytest.fixture(scope="session")
def harbour_extractor(harbour_registry, matching_config):
    return TextExtractor(harbour_registry, matching_config)


@pytest.fixture(scope="session")
def harbour_validator(harbour_registry, matching_config):
    return CoordinateValidator(harbour_registry, matching_config)
