"""CLI entrypoint for listing_geo."""

from __future__ import annotations

import argparse
import json
import sys
from typing import Optional

from pydantic import BaseModel

from listing_geo.logging_config import setup_logging


def main(argv: Optional[list[str]] = None) -> int:
    setup_logging()

    parser = argparse.ArgumentParser(prog="listing-geo")
    sub = parser.add_subparsers(dest="command", required=True)

    identify_parser = sub.add_parser("identify", help="Identify the building of one listing")
    identify_parser.add_argument("--title", required=True)
    identify_parser.add_argument("--description", default="")
    identify_parser.add_argument("--location", default="")
    identify_parser.add_argument("--property-type", default=None)
    _add_coords(identify_parser, required=False)

    extract_parser = sub.add_parser("extract", help="Run text extraction only")
    extract_parser.add_argument("text")
    extract_parser.add_argument("--area", default=None)

    validate_parser = sub.add_parser("validate", help="Check a building name against coordinates")
    _add_coords(validate_parser, required=True)
    validate_parser.add_argument("--building", required=True)

    nearest_parser = sub.add_parser("nearest", help="Closest registered building to a point")
    _add_coords(nearest_parser, required=True)

    sub.add_parser("check", help="Run the gazetteer integrity check")
    sub.add_parser("areas", help="List registered areas")

    args = parser.parse_args(argv)

    if args.command == "identify":
        return _identify(args)
    if args.command == "extract":
        return _extract(args.text, args.area)
    if args.command == "validate":
        return _validate(args.lat, args.lng, args.building)
    if args.command == "nearest":
        return _nearest(args.lat, args.lng)
    if args.command == "check":
        return _check()
    if args.command == "areas":
        return _areas()
    return 2


def _add_coords(parser: argparse.ArgumentParser, required: bool) -> None:
    parser.add_argument("--lat", type=float, required=required, default=None)
    parser.add_argument("--lng", type=float, required=required, default=None)


def _print(out: BaseModel | dict) -> None:
    data = out.model_dump(mode="json") if isinstance(out, BaseModel) else out
    # Distances are shown in whole meters
    if "distance_meters" in data and hasattr(out, "rounded_distance"):
        data["distance_meters"] = out.rounded_distance
    print(json.dumps(data, ensure_ascii=True, indent=2))


def _identify(args: argparse.Namespace) -> int:
    from listing_geo.identify import BuildingIdentifier
    from listing_geo.models import ListingText

    identifier = BuildingIdentifier.build()
    listing = ListingText(
        title=args.title,
        description=args.description,
        location=args.location,
        property_type=args.property_type,
    )
    _print(identifier.identify(listing, args.lat, args.lng))
    return 0


def _extract(text: str, area: Optional[str]) -> int:
    from listing_geo.config import get_settings
    from listing_geo.extractor import get_extractor

    _print(get_extractor().extract(text, area or get_settings().matching.default_area))
    return 0


def _validate(lat: float, lng: float, building: str) -> int:
    from listing_geo.validator import get_validator

    _print(get_validator().validate(lat, lng, building))
    return 0


def _nearest(lat: float, lng: float) -> int:
    from listing_geo.validator import get_validator

    _print(get_validator().find_closest_building(lat, lng))
    return 0


def _check() -> int:
    from listing_geo.config import get_settings
    from listing_geo.errors import GazetteerLoadError
    from listing_geo.gazetteer import LocationRegistry

    path = get_settings().gazetteer.path
    try:
        registry = LocationRegistry.from_json_file(path) if path else LocationRegistry.bundled()
    except GazetteerLoadError as exc:
        _print({"ok": False, "errors": [str(exc)], "buildings": 0})
        return 1
    ok, errors = registry.validate_integrity()
    _print({"ok": ok, "errors": errors, "buildings": registry.total_buildings()})
    return 0 if ok else 1


def _areas() -> int:
    from listing_geo.gazetteer import default_registry

    registry = default_registry()
    counts = registry.building_counts()
    _print({
        "areas": [
            {
                "key": area.key,
                "display_name": area.display_name,
                "bounds": {
                    "lat": [area.bounds.min_lat, area.bounds.max_lat],
                    "lng": [area.bounds.min_lng, area.bounds.max_lng],
                },
                "buildings": counts.get(area.key, 0),
            }
            for area in registry.areas
        ]
    })
    return 0


if __name__ == "__main__":
    sys.exit(main())
