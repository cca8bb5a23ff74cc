"""Coordinate parsing: survey text (XY lists, traverses, DMS, UTM) to PlanarPoints.

Every format has its own line tokenizer, but all of them converge on an
ordered ``list[PlanarPoint]``. Traverse formats accumulate legs from a known
origin in input order, since point order drives closure and winding.
"""
import math
import re
from typing import Iterable, Literal, Optional

from .geometry import advance, normalize_bearing
from .types import Leg, PlanarPoint, Point

Format = Literal["xy_csv", "bearing_distance", "dms", "utm"]
FORMATS: tuple[str, ...] = ("xy_csv", "bearing_distance", "dms", "utm")

# UTM validity window (metres)
UTM_EASTING_RANGE = (166_000.0, 834_000.0)
UTM_NORTHING_RANGE = (0.0, 10_000_000.0)

_SPLIT = re.compile(r"\s*[,;\t]\s*|\s+")
_DMS = re.compile(
    r"""^(?P<d>\d+(?:\.\d+)?)\s*(?:°|-|\s|d)\s*
         (?P<m>\d+(?:\.\d+)?)\s*(?:'|′|-|\s|m)\s*
         (?P<s>\d+(?:\.\d+)?)\s*(?:"|″|s)?$""", re.X | re.I)
_QUADRANT = re.compile(r"^(?P<ns>[NS])\s*(?P<angle>.+?)\s*(?P<ew>[EW])$", re.I)
_ZONE = re.compile(r"^(?P<zone>\d{1,2})(?P<hemi>[NS])$", re.I)


class ParseError(ValueError):
    """Malformed survey input. *line_number* is 1-based, None for whole-input errors."""

    def __init__(self, reason: str, line_number: Optional[int] = None):
        self.reason = reason
        self.line_number = line_number
        where = f"line {line_number}: " if line_number is not None else ""
        super().__init__(f"{where}{reason}")


# ============================================================
# Token Helpers
# ============================================================
def _lines(raw: str) -> Iterable[tuple[int, str]]:
    """(line_number, stripped_text) for lines that carry data."""
    for i, line in enumerate(raw.splitlines(), start=1):
        text = line.strip()
        if text and not text.startswith("#"):
            yield i, text

def _number(token: str, line_no: int, what: str = "value") -> float:
    try:
        v = float(token)
    except ValueError:
        raise ParseError(f"malformed {what} {token!r}", line_no) from None
    if not math.isfinite(v):
        raise ParseError(f"non-finite {what} {token!r}", line_no)
    return v

def _is_number(token: str) -> bool:
    try:
        float(token)
    except ValueError:
        return False
    return True

def _fields(text: str) -> list[str]:
    return [f for f in _SPLIT.split(text) if f]

def _require_three(points: list[PlanarPoint]) -> list[PlanarPoint]:
    if len(points) < 3:
        raise ParseError(f"at least 3 points required, got {len(points)}")
    return points

# ============================================================
# Angles
# ============================================================
def dms_to_deg(d: float, m: float, s: float) -> float:
    return d + m / 60.0 + s / 3600.0

def parse_dms(text: str, line_no: int = 0) -> float:
    """Degree-minute-second azimuth (``257°53'45"``, ``257-53-45``, ``257 53 45``) to degrees."""
    match = _DMS.match(text.strip())
    if not match:
        raise ParseError(f"malformed DMS angle {text!r}", line_no)
    d, m, s = (float(match[k]) for k in ("d", "m", "s"))
    if m >= 60 or s >= 60:
        raise ParseError(f"minutes/seconds out of range in {text!r}", line_no)
    return dms_to_deg(d, m, s)

def _angle(text: str, line_no: int) -> float:
    """Decimal degrees if numeric, DMS otherwise."""
    text = text.strip()
    if _is_number(text):
        return _number(text, line_no, "bearing")
    return parse_dms(text, line_no)

def parse_bearing(text: str, line_no: int = 0) -> float:
    """Azimuth in degrees clockwise from north.

    Accepts a decimal or DMS azimuth, or quadrant notation such as
    ``N 45.5 E`` or ``S 12-30-00 W``.
    """
    text = text.strip()
    quad = _QUADRANT.match(text)
    if quad:
        a = _angle(quad["angle"], line_no)
        if a > 90:
            raise ParseError(f"quadrant angle exceeds 90 degrees in {text!r}", line_no)
        ns, ew = quad["ns"].upper(), quad["ew"].upper()
        if ns == "N":
            return a if ew == "E" else normalize_bearing(360 - a)
        return 180 - a if ew == "E" else 180 + a
    b = _angle(text, line_no)
    if not 0 <= b < 360:
        raise ParseError(f"bearing {b} outside [0, 360)", line_no)
    return b

# ============================================================
# Traverse Accumulation
# ============================================================
def traverse_points(legs: Iterable[Leg], origin: Point = (0.0, 0.0),
                    srid: Optional[int] = None) -> list[PlanarPoint]:
    """Accumulate bearing/distance legs from *origin*; origin is point 1."""
    trav = [PlanarPoint(origin[0], origin[1], point_number="1", srid=srid)]
    for i, leg in enumerate(legs, start=2):
        last = trav[-1]
        x, y = advance(last, leg.bearing, leg.distance)
        trav.append(PlanarPoint(x, y, point_number=str(i), srid=srid))
    return trav

def _parse_legs(raw: str, dms_only: bool) -> list[Leg]:
    legs = []
    for line_no, text in _lines(raw):
        # bearing may itself contain spaces; distance is the last field
        head, sep, tail = text.rpartition(",")
        if not sep:
            parts = text.rsplit(None, 1)
            if len(parts) != 2:
                raise ParseError(f"expected 'bearing, distance', got {text!r}", line_no)
            head, tail = parts
        distance = _number(tail.strip(), line_no, "distance")
        if distance < 0:
            raise ParseError(f"negative distance {distance}", line_no)
        if dms_only:
            bearing = parse_dms(head, line_no)
            if bearing >= 360:
                raise ParseError(f"azimuth {bearing} outside [0, 360)", line_no)
        else:
            bearing = parse_bearing(head, line_no)
        legs.append(Leg(bearing, distance))
    return legs

# ============================================================
# Coordinate Lists
# ============================================================
def _parse_xy(raw: str, srid: Optional[int], has_header: bool) -> list[PlanarPoint]:
    points = []
    lines = list(_lines(raw))
    if has_header and lines:
        lines = lines[1:]
    for line_no, text in lines:
        f = _fields(text)
        pid = desc = None
        if len(f) >= 3 and not _is_number(f[0]):
            pid, f = f[0], f[1:]
        if len(f) < 2:
            raise ParseError(f"expected at least x and y, got {text!r}", line_no)
        x = _number(f[0], line_no, "x")
        y = _number(f[1], line_no, "y")
        z = None
        if len(f) >= 3:
            if _is_number(f[2]):
                z = _number(f[2], line_no, "z")
                rest = f[3:]
            else:
                rest = f[2:]
            desc = " ".join(rest) or None
        points.append(PlanarPoint(x, y, z, pid or str(len(points)+1), desc, srid))
    return points

def _parse_utm(raw: str, srid: Optional[int]) -> list[PlanarPoint]:
    points = []
    zone_srid: Optional[int] = None
    for line_no, text in _lines(raw):
        f = _fields(text)
        zm = _ZONE.match(f[0]) if f else None
        line_srid = srid
        if zm:
            zone = int(zm["zone"])
            if not 1 <= zone <= 60:
                raise ParseError(f"UTM zone {zone} outside 1-60", line_no)
            line_srid = (32600 if zm["hemi"].upper() == "N" else 32700) + zone
            if zone_srid is not None and line_srid != zone_srid:
                raise ParseError(f"UTM zone changes within input ({f[0]})", line_no)
            zone_srid = line_srid
            f = f[1:]
        if len(f) != 2:
            raise ParseError(f"expected 'easting northing', got {text!r}", line_no)
        e = _number(f[0], line_no, "easting")
        n = _number(f[1], line_no, "northing")
        if not UTM_EASTING_RANGE[0] <= e <= UTM_EASTING_RANGE[1]:
            raise ParseError(f"UTM easting {e} out of range", line_no)
        if not UTM_NORTHING_RANGE[0] <= n <= UTM_NORTHING_RANGE[1]:
            raise ParseError(f"UTM northing {n} out of range", line_no)
        points.append(PlanarPoint(e, n, point_number=str(len(points)+1), srid=line_srid))
    if zone_srid is not None and any(p.srid != zone_srid for p in points):
        raise ParseError("UTM zone prefix missing on some lines")
    return points

# ============================================================
# Entry Point
# ============================================================
def parse(raw: str, fmt: Format, *, origin: Point = (0.0, 0.0),
          srid: Optional[int] = None, has_header: bool = False) -> list[PlanarPoint]:
    """Parse survey text in *fmt* into an ordered list of PlanarPoints.

    Raises ParseError on malformed or non-finite tokens, on an unknown
    format, or when fewer than 3 points result.
    """
    if fmt == "xy_csv":
        return _require_three(_parse_xy(raw, srid, has_header))
    if fmt in ("bearing_distance", "dms"):
        legs = _parse_legs(raw, dms_only=(fmt == "dms"))
        return _require_three(traverse_points(legs, origin, srid))
    if fmt == "utm":
        return _require_three(_parse_utm(raw, srid))
    raise ParseError(f"unknown coordinate format {fmt!r}; expected one of {', '.join(FORMATS)}")
