"""Shared type definitions for survey coordinate geometry."""
from typing import NamedTuple, Optional, Sequence

Point = tuple[float, float]


class PlanarPoint(NamedTuple):
    """One traverse/boundary vertex in a projected (metric) system.

    Indexes like a plain ``(x, y)`` tuple, so ``p[0]``/``p[1]`` work anywhere
    a ``Point`` does.
    """
    x: float
    y: float
    z: Optional[float] = None
    point_number: Optional[str] = None
    description: Optional[str] = None
    srid: Optional[int] = None       # EPSG code of the planar projection


# Ordered boundary ring, closure implicit or explicit.
Polygon = Sequence[PlanarPoint]


class Region(NamedTuple):
    """Polygon with optional holes (common-property residual parts)."""
    shell: list[PlanarPoint]
    holes: tuple[list[PlanarPoint], ...] = ()


class Leg(NamedTuple):
    bearing: float; distance: float  # degrees CW from north, metres
