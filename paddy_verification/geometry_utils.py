"""
geometry_utils.py — Boundary parsing, ring validation, geodesic area,
EE conversion and declared-vs-actual area comparison.
"""

import math
import logging
import ee
import geopandas as gpd
from shapely.geometry import Polygon

from config import SQ_M_PER_HECTARE
from paddy_verification.exceptions import InvalidGeometry
from paddy_verification.schemas import AreaComparison
from paddy_verification.settings import VerificationConfig, DEFAULT_CONFIG

logger = logging.getLogger(__name__)

Ring = tuple[tuple[float, float], ...]


def _as_pair(coord) -> tuple[float, float]:
    if not isinstance(coord, (list, tuple)) or len(coord) < 2:
        raise InvalidGeometry(f"Expected a [lon, lat] pair, got {coord!r}")
    try:
        lon, lat = float(coord[0]), float(coord[1])
    except (TypeError, ValueError):
        raise InvalidGeometry(f"Non-numeric coordinate {coord!r}") from None
    if not (math.isfinite(lon) and math.isfinite(lat)):
        raise InvalidGeometry(f"Non-finite coordinate {coord!r}")
    if not (-180.0 <= lon <= 180.0 and -90.0 <= lat <= 90.0):
        raise InvalidGeometry(f"Coordinate out of WGS84 range: {coord!r}")
    return lon, lat


def parse_boundary(boundary) -> Ring:
    """
    Extract the outer ring from a GeoJSON Feature, a Polygon geometry,
    or a bare ring / list-of-rings of [lon, lat] pairs.
    Z values (KML exports often carry them) are dropped.
    """
    coords = boundary
    if isinstance(boundary, dict):
        geom = boundary.get("geometry", boundary) if boundary.get("type") == "Feature" else boundary
        if not isinstance(geom, dict) or geom.get("type") != "Polygon":
            kind = geom.get("type") if isinstance(geom, dict) else type(geom).__name__
            raise InvalidGeometry(f"Expected Polygon geometry, got {kind}")
        coords = geom.get("coordinates") or []
        if not coords:
            raise InvalidGeometry("Polygon has no coordinates")
        coords = coords[0]
    elif isinstance(boundary, (list, tuple)):
        # [[[lon, lat], ...]] → outer ring
        if boundary and isinstance(boundary[0], (list, tuple)) and boundary[0] \
                and isinstance(boundary[0][0], (list, tuple)):
            coords = boundary[0]
    else:
        raise InvalidGeometry(f"Unsupported boundary type {type(boundary).__name__}")

    if not isinstance(coords, (list, tuple)):
        raise InvalidGeometry("Boundary ring must be a sequence of coordinates")

    return tuple(_as_pair(c) for c in coords)


def validate_boundary(ring: Ring) -> None:
    """
    Ring must be closed (first == last) with at least 3 distinct vertices
    and describe a simple polygon.
    """
    if len(ring) < 4:
        raise InvalidGeometry(
            f"Boundary has {len(ring)} points; a closed ring needs at least 4"
        )
    if ring[0] != ring[-1]:
        raise InvalidGeometry("Boundary ring is not closed (first vertex != last vertex)")

    distinct = set(ring[:-1])
    if len(distinct) < 3:
        raise InvalidGeometry(
            f"Boundary has {len(distinct)} distinct vertices; at least 3 are required"
        )

    polygon = Polygon(ring)
    if polygon.is_empty or polygon.area == 0:
        raise InvalidGeometry("Boundary vertices are collinear (zero area)")
    if not polygon.is_valid:
        raise InvalidGeometry("Boundary ring self-intersects")


def boundary_to_polygon(ring: Ring) -> Polygon:
    validate_boundary(ring)
    return Polygon(ring)


def compute_area_hectares(ring: Ring) -> float:
    """
    Geodesic area of the ring in hectares.
    Re-projects to World Cylindrical Equal Area (EPSG:6933).
    """
    polygon = boundary_to_polygon(ring)
    gdf = gpd.GeoDataFrame(geometry=[polygon], crs="EPSG:4326")
    gdf_proj = gdf.to_crs("EPSG:6933")
    return float(gdf_proj.geometry.iloc[0].area) / SQ_M_PER_HECTARE


def polygon_to_ee_geometry(ring: Ring) -> ee.Geometry.Polygon:
    """Convert a validated ring to an Earth Engine Geometry."""
    return ee.Geometry.Polygon([[list(c) for c in ring]])


def compare_area(
    declared_area: float,
    actual_area: float,
    config: VerificationConfig = DEFAULT_CONFIG,
) -> AreaComparison:
    """
    |declared - actual| / declared * 100, rounded to 2 decimals.

    Precondition: declared_area is finite and > 0 (validated by the caller).
    A mismatch exactly equal to the tolerance is a mismatch.
    """
    if not math.isfinite(declared_area) or declared_area <= 0:
        raise ValueError(f"declared_area must be > 0, got {declared_area}")

    mismatch = abs(declared_area - actual_area) / declared_area * 100
    comparison = AreaComparison(
        declared_area=declared_area,
        actual_area=round(actual_area, 2),
        area_match_percentage=round(mismatch, 2),
        max_mismatch_percentage=config.area.max_mismatch_percentage,
    )
    logger.info(
        "Area: declared=%.2f ha actual=%.2f ha mismatch=%.2f%% match=%s",
        declared_area, actual_area, comparison.area_match_percentage, comparison.area_match,
    )
    return comparison
