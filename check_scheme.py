"""Validate a sectional scheme described in a JSON file.

Usage:
    python check_scheme.py scheme.json
    python check_scheme.py scheme.json --json
    python check_scheme.py scheme.json --generate   # cut sections from "units" first

Scheme file keys:
    parent       [[x, y], ...] parent parcel boundary
    sections     {"1": [[x, y], ...], ...} section boundaries
    floor_levels {"1": 0, "2": 1, ...} storey of each section (optional, default 0)
    units        [{"section_number", "target_area", "boundary", "floor_level"}],
                 used with --generate
    quotas       {"1": 50.0, ...} participation quotas in percent (optional)
    common_area  declared common property area in m² (optional)
    traverse     {"format": "bearing_distance", "data": "...", "origin": [x, y]} (optional)
    srid         EPSG code applied to every coordinate (optional)

Exit codes:
    0  scheme is valid (warnings allowed)
    1  validation errors found
    2  input could not be read or processed (missing keys, malformed coordinates)
"""
import argparse
import json
import logging
import sys
from pathlib import Path

from cogo import DEFAULT_TOLERANCE_RATIO, PlanarPoint, parse
from scheme import TopologyOptions, UnitSpecification, generate, validate_scheme_report

logger = logging.getLogger("check_scheme")


def _ring(coords, srid, what):
    try:
        return [PlanarPoint(float(c[0]), float(c[1]), srid=srid) for c in coords]
    except (TypeError, ValueError, IndexError) as exc:
        raise ValueError(f"{what}: expected [[x, y], ...], {exc}") from exc


def load_scheme(path: Path, run_generate: bool = False) -> dict:
    """Read *path* into keyword arguments for validate_scheme_report()."""
    doc = json.loads(path.read_text())
    srid = doc.get("srid")
    parent = _ring(doc["parent"], srid, "parent")
    if run_generate:
        specs = [UnitSpecification(
                    str(u["section_number"]), u.get("target_area"),
                    _ring(u["boundary"], srid, f"unit {u['section_number']}")
                    if u.get("boundary") else None,
                    u.get("section_type", "residential"), int(u.get("floor_level", 0)))
                 for u in doc["units"]]
        gs = generate(parent, specs)
        sections = gs.sections
        common_area = doc.get("common_area", gs.common_area)
        floor_levels = gs.floor_levels if len(gs.floors) > 1 else None
    else:
        sections = {str(k): _ring(v, srid, f"section {k}")
                    for k, v in doc.get("sections", {}).items()}
        common_area = doc.get("common_area")
        levels = doc.get("floor_levels")
        floor_levels = {str(k): int(v) for k, v in levels.items()} if levels is not None else None

    traverse = None
    if "traverse" in doc:
        t = doc["traverse"]
        traverse = parse(t["data"], t.get("format", "bearing_distance"),
                         origin=tuple(t.get("origin", (0.0, 0.0))), srid=srid,
                         has_header=t.get("has_header", False))
    quotas = doc.get("quotas")
    return dict(
        parent=parent, sections=sections,
        quotas={str(k): float(v) for k, v in quotas.items()} if quotas is not None else None,
        common_area=float(common_area) if common_area is not None else None,
        traverse=traverse, floor_levels=floor_levels,
    )

def print_report(report) -> None:
    s = report.summary
    print(f"{'VALID' if report.is_valid else 'INVALID'}: {s.total_errors} error(s), "
          f"{s.total_warnings} warning(s), {s.total_geometries} geometries "
          f"[{report.duration_ms} ms]")
    for issue in report.errors + report.warnings:
        print(f"  {issue.severity.upper():7s} {issue.type:22s} {issue.description}")
    if report.correction_suggestions:
        print("Suggestions:")
        for sug in report.correction_suggestions:
            units = f" ({', '.join(sug.affected_units)})" if sug.affected_units else ""
            print(f"  [{sug.priority}] {sug.suggestion}{units}")


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Validate a sectional scheme JSON file")
    parser.add_argument("scheme", type=Path, help="Path to the scheme JSON file")
    parser.add_argument("--json", action="store_true", help="Print the report as JSON")
    parser.add_argument("--generate", action="store_true",
                        help="Generate section boundaries from 'units' before validating")
    parser.add_argument("--tolerance-ratio", type=float, default=DEFAULT_TOLERANCE_RATIO,
                        help="Minimum traverse accuracy, as N in 1:N (default %(default).0f)")
    parser.add_argument("--gap-error-ratio", type=float, default=None,
                        help="Treat gaps above this fraction of the parent as errors")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        kwargs = load_scheme(args.scheme, args.generate)
        report = validate_scheme_report(
            **kwargs, tolerance_ratio=args.tolerance_ratio,
            options=TopologyOptions(gap_error_ratio=args.gap_error_ratio),
        )
    except (OSError, KeyError, TypeError, ValueError) as exc:
        logger.error("cannot check %s: %s", args.scheme, exc)
        return 2

    if args.json:
        print(json.dumps(report.as_dict(), indent=2))
    else:
        print_report(report)
    return 0 if report.is_valid else 1


if __name__ == "__main__":
    sys.exit(main())
