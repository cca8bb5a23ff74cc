"""Shared test fixtures for survey and scheme validation tests."""
import pytest
from cogo.types import PlanarPoint


def rect(x0, y0, x1, y1, srid=None):
    """CCW rectangle ring of PlanarPoints."""
    return [PlanarPoint(x0, y0, srid=srid), PlanarPoint(x1, y0, srid=srid),
            PlanarPoint(x1, y1, srid=srid), PlanarPoint(x0, y1, srid=srid)]


# Self-intersecting ring whose lobes do not cancel (shoelace area 50).
BOWTIE = [PlanarPoint(0, 0), PlanarPoint(10, 10), PlanarPoint(10, 0), PlanarPoint(0, 20)]


@pytest.fixture(scope="session")
def make_rect():
    """rect(x0, y0, x1, y1, srid=None) builder."""
    return rect


@pytest.fixture(scope="session")
def bowtie():
    return list(BOWTIE)


@pytest.fixture(scope="session")
def parent_1000():
    """1000 m x 1000 m parent parcel."""
    return rect(0, 0, 1000, 1000)


@pytest.fixture(scope="session")
def halves():
    """Two 500 m x 1000 m sections tiling parent_1000."""
    return {"1": rect(0, 0, 500, 1000), "2": rect(500, 0, 1000, 1000)}


@pytest.fixture(scope="session")
def misclosed_traverse():
    """100 m square traverse returning 0.05 m east / 0.02 m north of the start."""
    return [(0, 0), (100, 0), (100, 100), (0, 100), (0.05, 0.02)]


@pytest.fixture(scope="session")
def square_legs():
    """Bearing/distance text for a 100 m square walked east, north, west, then south."""
    return "90, 100\n0, 100\n270, 100\n180, 100\n"
