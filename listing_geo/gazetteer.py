"""
Building gazetteer for short-term-rental listings.

A static registry of geographic areas (bounding boxes) and the named
buildings inside them: canonical name, coordinates, aliases, optional parent
complex and descriptive metadata. Text extraction and coordinate validation
both resolve names through this registry.

Design:
  - Areas and buildings are frozen dataclasses; the registry builds its
    lookup tables once in ``__init__`` and never mutates them afterwards.
  - Areas keep registration order: ``detect_area`` returns the first area
    whose (inclusive) bounds cover a point.
  - Every alias maps to exactly one canonical building per area. A second
    building claiming the same alias is an integrity error, not a tie.
  - The bundled data covers Palm Jumeirah; a JSON document with the same
    shape can replace it (``GAZETTEER_PATH``) or feed tests.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from types import MappingProxyType
from typing import Any, Mapping, Optional

from listing_geo.config import get_settings
from listing_geo.errors import GazetteerIntegrityError, GazetteerLoadError

logger = logging.getLogger(__name__)

GAZETTEER_VERSION = "2.0.0"

_ws = re.compile(r"\s+")


def alias_key(name: str) -> str:
    """Case- and whitespace-insensitive lookup key for an alias."""
    return _ws.sub(" ", name.strip()).casefold()


# ── Data types ────────────────────────────────────────────────────────

@dataclass(frozen=True)
class Bounds:
    min_lat: float
    max_lat: float
    min_lng: float
    max_lng: float

    def contains(self, lat: float, lng: float) -> bool:
        return self.min_lat <= lat <= self.max_lat and self.min_lng <= lng <= self.max_lng

    def problems(self) -> list[str]:
        out = []
        if not self.min_lat < self.max_lat:
            out.append("Invalid latitude bounds")
        if not self.min_lng < self.max_lng:
            out.append("Invalid longitude bounds")
        return out


@dataclass(frozen=True)
class BuildingMetadata:
    """Descriptive facts; never consulted by matching."""
    type: Optional[str] = None
    year_built: Optional[int] = None
    floors: Optional[int] = None
    units: Optional[int] = None
    developer: Optional[str] = None


@dataclass(frozen=True)
class Building:
    name: str
    lat: float
    lng: float
    aliases: tuple[str, ...]
    complex: Optional[str] = None
    sub_buildings: tuple[str, ...] = ()
    metadata: BuildingMetadata = field(default_factory=BuildingMetadata)

    @property
    def coords(self) -> tuple[float, float]:
        return (self.lat, self.lng)


@dataclass(frozen=True)
class GeographicArea:
    key: str                              # "PALM_JUMEIRAH"
    display_name: str                     # "Palm Jumeirah"
    bounds: Bounds
    buildings: tuple[Building, ...]
    description: str = ""
    # Hand-written regexes (one capture group) for especially ambiguous buildings
    idioms: tuple[str, ...] = ()
    # Canonical names of buildings mostly mentioned as visible landmarks
    landmarks: tuple[str, ...] = ()
    # Place names that may trail a building name ("Oceana - Palm Jumeirah")
    qualifiers: tuple[str, ...] = ()


def _building(
    name: str,
    lat: float,
    lng: float,
    aliases: list[str],
    *,
    complex: Optional[str] = None,
    sub_buildings: tuple[str, ...] = (),
    **meta: Any,
) -> Building:
    return Building(
        name=name,
        lat=lat,
        lng=lng,
        aliases=tuple(aliases),
        complex=complex,
        sub_buildings=tuple(sub_buildings),
        metadata=BuildingMetadata(**meta),
    )


# ══════════════════════════════════════════════════════════════════════
# GAZETTEER DATA
# ══════════════════════════════════════════════════════════════════════

# ── Palm Jumeirah: towers, hotel residences and communities ───────────

_PALM_JUMEIRAH_BUILDINGS: tuple[Building, ...] = (
    _building("ATLANTIS THE PALM", 25.130388378334434, 55.11713265962359,
              ["ATLANTIS THE PALM", "ATLANTIS"],
              type="hotel_residence", year_built=2008, floors=23, units=1539,
              developer="Kerzner International"),
    _building("ROYAL ATLANTIS", 25.138565117680006, 55.12776223842851,
              ["ROYAL ATLANTIS", "THE ROYAL ATLANTIS"],
              type="hotel_residence", year_built=2023, floors=43, units=795,
              developer="Kerzner International"),
    _building("FIVE PALM JUMEIRAH", 25.104334288891593, 55.14869174441605,
              ["FIVE PALM JUMEIRAH", "FIVE AT PALM JUMEIRAH", "FIVE PALM", "FIVE"],
              type="hotel_residence", year_built=2016, floors=16, units=221,
              developer="Five Holdings"),
    _building("ONE AT PALM JUMEIRAH", 25.103402706459573, 55.14986241168743,
              ["ONE AT PALM JUMEIRAH", "ONE PALM", "ONE"],
              type="residential", year_built=2023, floors=94, units=430,
              developer="Dorchester Collection"),
    _building("BALQIS RESIDENCES", 25.120052744264747, 55.11042703301607,
              ["BALQIS RESIDENCES", "BALQIS RESIDENCE", "BALQIS", "WYNDHAM"],
              type="residential", year_built=2014, floors=30, units=330,
              developer="Nakheel"),
    _building("THE 8", 25.117548557810736, 55.10962743471458,
              ["THE 8", "THE EIGHT"],
              type="residential", year_built=2015, floors=21, units=155,
              developer="Nakheel"),
    _building("THE PALM TOWER", 25.113777438518582, 55.13997665598321,
              ["THE PALM TOWER", "PALM TOWER", "ST REGIS RESIDENCES"],
              type="hotel_residence", year_built=2021, floors=52, units=432,
              developer="Nakheel"),
    _building("OCEANA RESIDENCES", 25.11107232148635, 55.13739886438929,
              ["OCEANA RESIDENCES", "OCEANA HOTEL", "OCEANA APARTMENTS", "OCEANA"],
              sub_buildings=("ADRIATIC", "PACIFIC", "CARIBBEAN", "ATLANTIC",
                             "AEGEAN", "BALTIC", "SOUTHERN"),
              type="residential", year_built=2010, floors=14, units=469,
              developer="Seven Tides"),
    _building("GOLDEN MILE 1", 25.105619489933705, 55.14913118598946,
              ["GOLDEN MILE 1"], complex="GOLDEN MILE",
              type="residential", year_built=2010, floors=9, developer="Nakheel"),
    _building("GOLDEN MILE 2", 25.106212236464216, 55.148339016322254,
              ["GOLDEN MILE 2"], complex="GOLDEN MILE",
              type="residential", year_built=2010, floors=9, developer="Nakheel"),
    _building("GOLDEN MILE 3", 25.10671670090406, 55.14760824734748,
              ["GOLDEN MILE 3"], complex="GOLDEN MILE",
              type="residential", year_built=2010, floors=9, developer="Nakheel"),
    _building("GOLDEN MILE 4", 25.10727426445531, 55.14686620100142,
              ["GOLDEN MILE 4"], complex="GOLDEN MILE",
              type="residential", year_built=2010, floors=9, developer="Nakheel"),
    _building("GOLDEN MILE 5", 25.107855758900406, 55.14621994090272,
              ["GOLDEN MILE 5"], complex="GOLDEN MILE",
              type="residential", year_built=2010, floors=9, developer="Nakheel"),
    _building("GOLDEN MILE 6", 25.10839502095261, 55.145414830750354,
              ["GOLDEN MILE 6"], complex="GOLDEN MILE",
              type="residential", year_built=2010, floors=9, developer="Nakheel"),
    _building("FAIRMONT PALM", 25.110073307281326, 55.14096748283601,
              ["FAIRMONT PALM", "FAIRMONT", "FAIRMONT THE PALM"],
              type="hotel_residence", year_built=2012, floors=19, units=381,
              developer="IFA Hotels & Resorts"),
    _building("RAFFLES THE PALM", 25.110391805920685, 55.10984132296129,
              ["RAFFLES THE PALM", "RAFFLES PALM", "RAFFLES"],
              type="hotel_residence", year_built=2013, floors=23, units=389,
              developer="Al Hamra Real Estate"),
    _building("W PALM", 25.106393320449566, 55.11109321054681,
              ["W PALM", "W DUBAI", "W RESIDENCES", "W THE PALM"],
              type="hotel_residence", year_built=2018, floors=52, units=350,
              developer="Aldar Properties"),
    _building("DUKES PALM", 25.112505003046053, 55.13798895001271,
              ["DUKES PALM", "DUKES THE PALM", "DUKES HOTEL"],
              type="hotel_residence", year_built=2019, floors=15, units=279,
              developer="Seven Tides"),
    _building("RIXOS PALM", 25.121391364265154, 55.15366257545908,
              ["RIXOS PALM", "RIXOS THE PALM", "RIXOS"],
              type="hotel_residence", year_built=2013, floors=17, units=231,
              developer="Nakheel"),
    _building("EMAAR BEACHFRONT", 25.098499137118534, 55.14055790317492,
              ["EMAAR BEACHFRONT", "MARINA VISTA", "BEACH ISLE", "BEACH VISTA",
               "SUNRISE BAY", "GRAND BLEU", "PALACE BEACH RESIDENCE", "PALACE BEACH"],
              sub_buildings=("MARINA VISTA TOWER 1", "MARINA VISTA TOWER 2",
                             "MARINA VISTA TOWER 3", "BEACH ISLE", "BEACH VISTA",
                             "SUNRISE BAY TOWER 1", "SUNRISE BAY TOWER 2",
                             "GRAND BLEU TOWER", "PALACE BEACH RESIDENCE"),
              type="residential_community", year_built=2018,
              developer="Emaar Properties"),
    _building("SEVEN PALM", 25.111664183271177, 55.1384718941355,
              ["SEVEN PALM", "SEVEN HOTEL", "SEVEN HOTEL AND APARTMENTS"],
              type="hotel_residence", year_built=2015, floors=16, units=365,
              developer="Seven Tides"),
    _building("DREAM PALM", 25.122250891414193, 55.15441076121446,
              ["DREAM PALM", "DREAM"],
              type="residential", year_built=2016, floors=17, units=162,
              developer="Seven Tides"),
    _building("ANANTARA", 25.128449833201703, 55.153966635909235,
              ["ANANTARA", "ANANTARA PALM", "ANANTARA THE PALM", "ANANTARA RESIDENCES"],
              type="hotel_residence", year_built=2014, floors=13, units=293,
              developer="Anantara Hotels"),
    _building("AZIZI MINA", 25.12693592140891, 55.15349219365068,
              ["AZIZI MINA", "MINA", "MINA BY AZIZI"],
              type="residential", year_built=2024, floors=33, units=444,
              developer="Azizi Developments"),
    _building("AZURE RESIDENCES", 25.10704187688564, 55.15260914087014,
              ["AZURE RESIDENCES", "AZURE", "AZURE THE PALM"],
              type="residential", year_built=2018, floors=12, units=180,
              developer="Nakheel"),
    _building("TIARA RESIDENCES", 25.11545265573328, 55.14038718458433,
              ["TIARA RESIDENCES", "TIARA", "TIARA PALM"],
              type="residential", year_built=2014, floors=30, units=394,
              developer="Nakheel"),
    _building("CLUB VISTA MARE", 25.1151808834005, 55.14235758142192,
              ["CLUB VISTA MARE", "VISTA MARE"],
              type="residential", year_built=2015, floors=12, units=96,
              developer="Nakheel"),
    _building("MARINA RESIDENCES 1", 25.112941125796883, 55.1366317393548,
              ["MARINA RESIDENCES 1"], complex="MARINA RESIDENCES",
              type="residential", year_built=2008, floors=48, developer="Nakheel"),
    _building("MARINA RESIDENCES 2", 25.113800152895834, 55.136152256723555,
              ["MARINA RESIDENCES 2"], complex="MARINA RESIDENCES",
              type="residential", year_built=2008, floors=48, developer="Nakheel"),
    _building("MARINA RESIDENCES 3", 25.11479453116967, 55.13620384995259,
              ["MARINA RESIDENCES 3"], complex="MARINA RESIDENCES",
              type="residential", year_built=2008, floors=48, developer="Nakheel"),
    _building("MARINA RESIDENCES 4", 25.116189316626393, 55.13759686719626,
              ["MARINA RESIDENCES 4"], complex="MARINA RESIDENCES",
              type="residential", year_built=2008, floors=48, developer="Nakheel"),
    _building("MARINA RESIDENCES 5", 25.116382850191844, 55.13857345340445,
              ["MARINA RESIDENCES 5"], complex="MARINA RESIDENCES",
              type="residential", year_built=2008, floors=48, developer="Nakheel"),
    _building("MARINA RESIDENCES 6", 25.116032487484, 55.13961637367663,
              ["MARINA RESIDENCES 6"], complex="MARINA RESIDENCES",
              type="residential", year_built=2008, floors=48, developer="Nakheel"),
    _building("RUBY", 25.116585047795336, 55.141380433947011,
              ["RUBY", "RUBY RESIDENCES"],
              type="residential", year_built=2015, floors=10, developer="Nakheel"),
    _building("DIAMOND", 25.1174082037247, 55.142025961052084,
              ["DIAMOND", "DIAMOND RESIDENCES"],
              type="residential", year_built=2015, floors=10, developer="Nakheel"),
    _building("TANZANITE", 25.115815549047024, 55.14254052800524,
              ["TANZANITE", "TANZANITE RESIDENCES"],
              type="residential", year_built=2015, floors=10, developer="Nakheel"),
    _building("EMERALD", 25.116157421463427, 55.14105449639319,
              ["EMERALD", "EMERALD RESIDENCES"],
              type="residential", year_built=2015, floors=10, developer="Nakheel"),
    _building("ROYAL AMWAJ", 25.128449833201703, 55.153966635909235,
              ["ROYAL AMWAJ", "ROYAL AMWAJ RESIDENCES"],
              type="residential", year_built=2009, floors=14, units=104,
              developer="Nakheel"),
    _building("ROYAL BAY", 25.125271418545978, 55.15323450905715,
              ["ROYAL BAY", "ROYAL BAY PALM"],
              type="residential", year_built=2014, floors=8, units=196,
              developer="Nakheel"),
    _building("ZABEEL SARAY", 25.09849, 55.12360,
              ["ZABEEL SARAY", "JUMEIRAH ZABEEL SARAY"],
              type="hotel_residence", year_built=2011, floors=8, units=405,
              developer="Jumeirah Group"),
    _building("GRANDEUR RESIDENCES", 25.098830, 55.121800,
              ["GRANDEUR RESIDENCES", "GRANDUER RESIDENCES", "GRANDEUR", "GRANDUER"],
              type="residential", year_built=2012, floors=30, units=422,
              developer="Nakheel"),
    # Umbrella entry for listings that name the community but not the block
    _building("SHORELINE APARTMENTS", 25.110000, 55.146000,
              ["SHORELINE APARTMENTS", "SHORELINE RESIDENCES", "PALM SHORELINE"],
              sub_buildings=("ABU KEIBAL", "AL ANBARA", "AL BASRI", "AL DABAS", "AL DAS",
                             "AL HABOOL", "AL HALLAWI", "AL HAMRI", "AL HASEER",
                             "AL HATIMI", "AL KHUDRAWI", "AL KHUSHKAR", "AL MSALLI",
                             "AL NABAT", "AL SARROOD", "AL SHAHLA", "AL SULTANA",
                             "AL TAMR", "JASH FALQA", "JASH HAMAD"),
              type="residential_community", year_built=2007, developer="Nakheel"),
    # Shoreline Apartments blocks
    _building("ABU KEIBAL", 25.108179313750618, 55.14760196531019,
              ["ABU KEIBAL"], complex="SHORELINE APARTMENTS",
              type="apartment_block", developer="Nakheel"),
    _building("AL ANBARA", 25.112673171685934, 55.141749038749055,
              ["AL ANBARA", "ANBARA"], complex="SHORELINE APARTMENTS",
              type="apartment_block", developer="Nakheel"),
    _building("AL BASRI", 25.10681403459865, 55.150934611202935,
              ["AL BASRI", "BASRI", "AL BASHRI", "BASHRI"], complex="SHORELINE APARTMENTS",
              type="apartment_block", developer="Nakheel"),
    _building("AL DABAS", 25.107439968032086, 55.150215266781785,
              ["AL DABAS", "DABAS"], complex="SHORELINE APARTMENTS",
              type="apartment_block", developer="Nakheel"),
    _building("AL DAS", 25.114107870674655, 55.14158893003817,
              ["AL DAS"], complex="SHORELINE APARTMENTS",
              type="apartment_block", developer="Nakheel"),
    _building("AL HABOOL", 25.113240308742526, 55.14081929392028,
              ["AL HABOOL", "HABOOL"], complex="SHORELINE APARTMENTS",
              type="apartment_block", developer="Nakheel"),
    _building("AL HALLAWI", 25.11124883041989, 55.143418045111986,
              ["AL HALLAWI", "HALLAWI"], complex="SHORELINE APARTMENTS",
              type="apartment_block", developer="Nakheel"),
    _building("AL HAMRI", 25.10665881650435, 55.14917838671534,
              ["AL HAMRI", "HAMRI"], complex="SHORELINE APARTMENTS",
              type="apartment_block", developer="Nakheel"),
    _building("AL HASEER", 25.11208435336811, 55.14403562297922,
              ["AL HASEER", "HASEER"], complex="SHORELINE APARTMENTS",
              type="apartment_block", developer="Nakheel"),
    _building("AL HATIMI", 25.109397977767692, 55.147578700950476,
              ["AL HATIMI", "HATIMI"], complex="SHORELINE APARTMENTS",
              type="apartment_block", developer="Nakheel"),
    _building("AL KHUDRAWI", 25.110333539859983, 55.1467619432406,
              ["AL KHUDRAWI", "KHUDRAWI"], complex="SHORELINE APARTMENTS",
              type="apartment_block", developer="Nakheel"),
    _building("AL KHUSHKAR", 25.10612936649333, 55.15011813219595,
              ["AL KHUSHKAR", "KHUSHKAR"], complex="SHORELINE APARTMENTS",
              type="apartment_block", developer="Nakheel"),
    _building("AL MSALLI", 25.113328862816445, 55.142329445398886,
              ["AL MSALLI", "MSALLI"], complex="SHORELINE APARTMENTS",
              type="apartment_block", developer="Nakheel"),
    _building("AL NABAT", 25.112696023429784, 55.143222154039165,
              ["AL NABAT", "NABAT"], complex="SHORELINE APARTMENTS",
              type="apartment_block", developer="Nakheel"),
    _building("AL SARROOD", 25.111926485098046, 55.142553131766014,
              ["AL SARROOD", "SARROOD"], complex="SHORELINE APARTMENTS",
              type="apartment_block", developer="Nakheel"),
    _building("AL SHAHLA", 25.108746734527138, 55.14646597731126,
              ["AL SHAHLA", "SHAHLA"], complex="SHORELINE APARTMENTS",
              type="apartment_block", developer="Nakheel"),
    _building("AL SULTANA", 25.108118497298022, 55.149276422807134,
              ["AL SULTANA", "SULTANA"], complex="SHORELINE APARTMENTS",
              type="apartment_block", developer="Nakheel"),
    _building("AL TAMR", 25.10917753606508, 55.14586232735876,
              ["AL TAMR", "TAMR"], complex="SHORELINE APARTMENTS",
              type="apartment_block", developer="Nakheel"),
    _building("JASH FALQA", 25.108707734167837, 55.148390057430284,
              ["JASH FALQA"], complex="SHORELINE APARTMENTS",
              type="apartment_block", developer="Nakheel"),
    _building("JASH HAMAD", 25.107519004632035, 55.14850734832549,
              ["JASH HAMAD"], complex="SHORELINE APARTMENTS",
              type="apartment_block", developer="Nakheel"),
)

# ── Palm Jumeirah: phrasing that only makes sense for one building ────

_PALM_JUMEIRAH_IDIOMS: tuple[str, ...] = (
    r"\b(?:in|at|within|nestled\s+in)\s+(?:the\s+)?(?:vibrant\s+)?(EMAAR\s+BEACHFRONT)\s+community",
    r"\b(MARINA\s+VISTA|SUNRISE\s+BAY|BEACH\s+ISLE|BEACH\s+VISTA|GRAND\s+BLEU|PALACE\s+BEACH)"
    r"\s+(?:TOWER|BUILDING)\s+\d+",
    r"\bneighbor(?:ing|s)\s+(?:our\s+)?(?:residency|residence|building)\s+is\s+(?:a\s+)?"
    r"(?:famous\s+)?(?:5-star\s+)?(?:hotel\s+)?(ZABEEL\s+SARAY)",
    r"\b(TIARA\s+RESIDENCES|TIARA)\s+offers?\s+(?:occupants|residents|guests)",
)

_BUNDLED_AREAS: tuple[GeographicArea, ...] = (
    GeographicArea(
        key="PALM_JUMEIRAH",
        display_name="Palm Jumeirah",
        bounds=Bounds(min_lat=25.09, max_lat=25.14, min_lng=55.10, max_lng=55.16),
        buildings=_PALM_JUMEIRAH_BUILDINGS,
        description="Iconic palm-shaped artificial archipelago",
        idioms=_PALM_JUMEIRAH_IDIOMS,
        landmarks=("ATLANTIS THE PALM", "ROYAL ATLANTIS", "DREAM PALM"),
        qualifiers=("Palm Jumeirah", "Dubai", "UAE"),
    ),
    # Further areas (JVC, Downtown Dubai, Dubai Marina) register after this one
)


# ══════════════════════════════════════════════════════════════════════
# REGISTRY
# ══════════════════════════════════════════════════════════════════════

class LocationRegistry:
    """
    Read-only lookup layer over a fixed sequence of areas.

    All tables are built in the constructor; afterwards the instance is safe
    to share between threads. Unknown area keys and missing coordinates
    yield ``None`` or empty collections rather than exceptions.
    """

    def __init__(self, areas: tuple[GeographicArea, ...] | list[GeographicArea]):
        self._areas: tuple[GeographicArea, ...] = tuple(areas)
        self._by_key: Mapping[str, GeographicArea] = MappingProxyType(
            {a.key: a for a in self._areas}
        )

        buildings: dict[str, Mapping[str, Building]] = {}
        aliases: dict[str, tuple[str, ...]] = {}
        alias_index: dict[str, Mapping[str, str]] = {}
        for area in self._areas:
            by_name: dict[str, Building] = {}
            for b in area.buildings:
                by_name.setdefault(b.name, b)
            buildings[area.key] = MappingProxyType(by_name)
            aliases[area.key] = self._sorted_aliases(area)

            # First building registering an alias owns it; clashes are
            # reported by validate_integrity()
            index: dict[str, str] = {}
            for b in by_name.values():
                for a in b.aliases:
                    index.setdefault(alias_key(a), b.name)
            alias_index[area.key] = MappingProxyType(index)

        self._buildings = MappingProxyType(buildings)
        self._aliases = MappingProxyType(aliases)
        self._alias_index = MappingProxyType(alias_index)

    @staticmethod
    def _sorted_aliases(area: GeographicArea) -> tuple[str, ...]:
        seen: set[str] = set()
        unique: list[str] = []
        for b in area.buildings:
            for a in b.aliases:
                k = alias_key(a)
                if k and k not in seen:
                    seen.add(k)
                    unique.append(a)
        # Longest first so "FIVE PALM JUMEIRAH" is tried before "FIVE"; sort is stable
        return tuple(sorted(unique, key=len, reverse=True))

    # ── Construction ──────────────────────────────────────────────────

    @classmethod
    def bundled(cls) -> "LocationRegistry":
        return cls(_BUNDLED_AREAS)

    @classmethod
    def from_mapping(cls, document: Mapping[str, Any]) -> "LocationRegistry":
        """
        Build a registry from a plain document::

            {"areas": [{"key": "PALM_JUMEIRAH", "display_name": "Palm Jumeirah",
                        "bounds": {"lat": [25.09, 25.14], "lng": [55.10, 55.16]},
                        "buildings": [{"name": "...", "coords": [lat, lng],
                                       "aliases": ["..."], "complex": null}],
                        "idioms": [], "landmarks": [], "qualifiers": []}]}

        Structural problems (missing keys, non-numeric coordinates) raise
        GazetteerLoadError; semantic problems are left to validate_integrity().
        """
        try:
            areas = [_area_from_dict(raw) for raw in document["areas"]]
        except (KeyError, TypeError, ValueError) as exc:
            raise GazetteerLoadError(f"Malformed gazetteer document: {exc!r}") from exc
        return cls(areas)

    @classmethod
    def from_json_file(cls, path: str | Path) -> "LocationRegistry":
        file_path = Path(path)
        try:
            with file_path.open("r", encoding="utf-8") as f:
                document = json.load(f)
        except (OSError, json.JSONDecodeError) as exc:
            raise GazetteerLoadError(f"Cannot read gazetteer {file_path}: {exc}") from exc
        return cls.from_mapping(document)

    # ── Areas ─────────────────────────────────────────────────────────

    @property
    def areas(self) -> tuple[GeographicArea, ...]:
        return self._areas

    def area(self, key: Optional[str]) -> Optional[GeographicArea]:
        if key is None:
            return None
        return self._by_key.get(key)

    def area_display_name(self, key: Optional[str]) -> Optional[str]:
        if not key:
            return None
        area = self._by_key.get(key)
        if area is not None:
            return area.display_name
        return " ".join(part.capitalize() for part in key.replace("_", " ").split())

    def detect_area(self, lat: Optional[float], lng: Optional[float]) -> Optional[str]:
        """Key of the first registered area whose bounds cover the point."""
        if lat is None or lng is None:
            return None
        for area in self._areas:
            if area.bounds.contains(lat, lng):
                return area.key
        return None

    # ── Buildings ─────────────────────────────────────────────────────

    def buildings_for_area(self, area: Optional[str]) -> Mapping[str, Building]:
        if area is None:
            return MappingProxyType({})
        return self._buildings.get(area, MappingProxyType({}))

    def building(self, name: Optional[str], area: Optional[str]) -> Optional[Building]:
        if not name:
            return None
        return self.buildings_for_area(area).get(name)

    def aliases_for_area(self, area: Optional[str]) -> list[str]:
        """Deduplicated aliases, longest first."""
        if area is None:
            return []
        return list(self._aliases.get(area, ()))

    def normalize(self, raw_match: Optional[str], area: Optional[str]) -> Optional[str]:
        """Canonical building name for an alias (case-insensitive), or None."""
        if not raw_match or not raw_match.strip() or area is None:
            return None
        index = self._alias_index.get(area)
        if index is None:
            return None
        return index.get(alias_key(raw_match))

    def coordinates(self, name: Optional[str], area: Optional[str]) -> Optional[tuple[float, float]]:
        b = self.building(name, area)
        return b.coords if b else None

    def complex_name(self, name: Optional[str], area: Optional[str]) -> Optional[str]:
        b = self.building(name, area)
        return b.complex if b else None

    def building_metadata(self, name: Optional[str], area: Optional[str]) -> Optional[BuildingMetadata]:
        b = self.building(name, area)
        return b.metadata if b else None

    def format_full_name(self, name: Optional[str], area: Optional[str]) -> Optional[str]:
        """
        Display form of a building:
          "FIVE PALM JUMEIRAH, Palm Jumeirah"
          "MARINA RESIDENCES 1, MARINA RESIDENCES, Palm Jumeirah"
        """
        if not name or not area:
            return None
        display = self.area_display_name(area)
        complex_label = self.complex_name(name, area)
        if complex_label:
            return f"{name}, {complex_label}, {display}"
        return f"{name}, {display}"

    # ── Statistics & validation ───────────────────────────────────────

    def total_buildings(self) -> int:
        return sum(len(b) for b in self._buildings.values())

    def building_counts(self) -> dict[str, int]:
        return {key: len(b) for key, b in self._buildings.items()}

    def validate_integrity(self) -> tuple[bool, list[str]]:
        """
        Check the reference data once at start-up. Every violation is
        collected; the caller decides whether a failure is fatal.
        """
        errors: list[str] = []
        seen_keys: set[str] = set()

        for area in self._areas:
            if area.key in seen_keys:
                errors.append(f"{area.key}: Duplicate area key")
            seen_keys.add(area.key)

            for problem in area.bounds.problems():
                errors.append(f"{area.key}: {problem}")

            names: set[str] = set()
            alias_owner: dict[str, str] = {}
            for b in area.buildings:
                if b.name in names:
                    errors.append(f"{area.key}/{b.name}: Duplicate building name")
                names.add(b.name)

                if not area.bounds.contains(b.lat, b.lng):
                    errors.append(f"{area.key}/{b.name}: Coordinates outside location bounds")

                if not b.aliases or not any(a.strip() for a in b.aliases):
                    errors.append(f"{area.key}/{b.name}: No aliases defined")

                for a in b.aliases:
                    k = alias_key(a)
                    owner = alias_owner.get(k)
                    if owner is not None and owner != b.name:
                        errors.append(
                            f"{area.key}/{b.name}: Alias '{a}' already registered for {owner}"
                        )
                    else:
                        alias_owner[k] = b.name

            for landmark in area.landmarks:
                if landmark not in names:
                    errors.append(f"{area.key}: Landmark '{landmark}' is not a registered building")

            for idiom in area.idioms:
                try:
                    if re.compile(idiom).groups < 1:
                        errors.append(f"{area.key}: Idiom has no capture group: {idiom}")
                except re.error as exc:
                    errors.append(f"{area.key}: Idiom does not compile ({exc}): {idiom}")

        if errors:
            logger.warning("Gazetteer validation found %d error(s)", len(errors))
            for error in errors:
                logger.warning("  - %s", error)
            return False, errors

        logger.info("Gazetteer validation passed (%d buildings)", self.total_buildings())
        return True, []


def _area_from_dict(raw: Mapping[str, Any]) -> GeographicArea:
    lat_lo, lat_hi = (float(v) for v in raw["bounds"]["lat"])
    lng_lo, lng_hi = (float(v) for v in raw["bounds"]["lng"])
    buildings = []
    for b in raw.get("buildings", []):
        lat, lng = (float(v) for v in b["coords"])
        buildings.append(
            Building(
                name=str(b["name"]),
                lat=lat,
                lng=lng,
                aliases=tuple(str(a) for a in b.get("aliases") or ()),
                complex=b.get("complex"),
                sub_buildings=tuple(b.get("sub_buildings") or ()),
                metadata=BuildingMetadata(**(b.get("metadata") or {})),
            )
        )
    return GeographicArea(
        key=str(raw["key"]),
        display_name=str(raw.get("display_name") or raw["key"]),
        bounds=Bounds(lat_lo, lat_hi, lng_lo, lng_hi),
        buildings=tuple(buildings),
        description=str(raw.get("description", "")),
        idioms=tuple(raw.get("idioms") or ()),
        landmarks=tuple(raw.get("landmarks") or ()),
        qualifiers=tuple(raw.get("qualifiers") or ()),
    )


def load_checked_registry(path: str | Path | None = None, strict: bool = True) -> LocationRegistry:
    """Load the bundled (or a JSON) gazetteer and run the integrity check."""
    registry = LocationRegistry.from_json_file(path) if path else LocationRegistry.bundled()
    ok, errors = registry.validate_integrity()
    if not ok and strict:
        raise GazetteerIntegrityError(errors)
    return registry


@lru_cache(maxsize=1)
def default_registry() -> LocationRegistry:
    """Process-wide registry built from settings on first use."""
    cfg = get_settings().gazetteer
    return load_checked_registry(cfg.path or None, strict=cfg.strict)
