"""
Shared fixtures: a closed field ring and an in-memory statistics provider,
so no test ever talks to Earth Engine.
"""

from datetime import date

import pytest

from paddy_verification.exceptions import NoContributingImagery
from paddy_verification.schemas import SarStatistics, SpectralStatistics

# ~1.2 ha square in the Mahanadi delta, lon/lat
FIELD_RING = [
    [86.000, 20.000],
    [86.001, 20.000],
    [86.001, 20.001],
    [86.000, 20.001],
    [86.000, 20.000],
]

RICE_STATS = SpectralStatistics(ndvi=0.6, ndwi=0.05, lswi=0.25, evi=0.5)


class FakeProvider:
    """Returns canned statistics and records what it was asked for."""

    def __init__(
        self,
        area: float = 2.0,
        spectral: SpectralStatistics = RICE_STATS,
        optical_count: int = 6,
        water_fraction: float = 0.45,
        radar_count: int = 5,
        missing: tuple = (),
        error: Exception = None,
    ):
        self.area = area
        self.spectral = spectral
        self.optical_count = optical_count
        self.sar = SarStatistics(water_fraction=water_fraction)
        self.radar_count = radar_count
        self.missing = missing
        self.error = error
        self.calls = []

    def polygon_area_hectares(self, ring):
        self.calls.append("area")
        if self.error is not None:
            raise self.error
        return self.area

    def optical_statistics(self, ring, period, config):
        self.calls.append("optical")
        if "optical" in self.missing:
            raise NoContributingImagery("Sentinel-2", period.start.isoformat(), period.end.isoformat())
        return self.spectral, self.optical_count

    def radar_statistics(self, ring, period, config):
        self.calls.append("radar")
        if "radar" in self.missing:
            raise NoContributingImagery("Sentinel-1", period.start.isoformat(), period.end.isoformat())
        return self.sar, self.radar_count


@pytest.fixture
def field_ring():
    return [list(c) for c in FIELD_RING]


@pytest.fixture
def geojson_feature():
    return {
        "type": "Feature",
        "properties": {"name": "plot-7"},
        "geometry": {"type": "Polygon", "coordinates": [[list(c) for c in FIELD_RING]]},
    }


@pytest.fixture
def reference_date():
    return date(2024, 9, 15)


@pytest.fixture
def provider():
    return FakeProvider()
