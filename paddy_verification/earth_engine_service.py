"""
earth_engine_service.py — Google Earth Engine statistics provider.

Supplies the verifier with:
  * geodesic polygon area (hectares)
  * Sentinel-2 mean NDVI / NDWI / LSWI / EVI over a cloud-filtered window
  * Sentinel-1 VV water fraction after speckle filtering

Everything here is I/O against Earth Engine; the decision logic lives in
the classifier modules and never touches ``ee``.
"""

import logging
import ee

from config import EE_PROJECT_ID, SQ_M_PER_HECTARE
from paddy_verification.exceptions import NoContributingImagery, ProviderError
from paddy_verification.geometry_utils import Ring, polygon_to_ee_geometry
from paddy_verification.schemas import SarStatistics, SpectralStatistics, VerificationPeriod
from paddy_verification.settings import VerificationConfig

logger = logging.getLogger(__name__)

_ee_initialized = False

S2_COLLECTION = "COPERNICUS/S2_SR_HARMONIZED"
S1_COLLECTION = "COPERNICUS/S1_GRD"
# Surface reflectance DN → reflectance
S2_SCALE = 10000


def init_ee() -> None:
    """
    Initialize the Earth Engine API exactly once.
    Uses the project ID from .env (EE_PROJECT_ID).
    """
    global _ee_initialized
    if _ee_initialized:
        return

    try:
        if EE_PROJECT_ID:
            ee.Initialize(project=EE_PROJECT_ID)
            logger.info("Earth Engine initialized with project: %s", EE_PROJECT_ID)
        else:
            ee.Initialize()
            logger.info("Earth Engine initialized (default project)")
        _ee_initialized = True
    except Exception as exc:
        logger.error("Failed to initialize Earth Engine: %s", exc)
        raise ProviderError(
            "Could not initialize Earth Engine. "
            "Have you run 'earthengine authenticate'?"
        ) from exc


def _window(period: VerificationPeriod) -> tuple[str, str]:
    return period.start.isoformat(), period.end.isoformat()


def add_rice_indices(image: ee.Image) -> ee.Image:
    """
    NDVI = (B8 - B4) / (B8 + B4)            vegetation greenness
    NDWI = (B3 - B8) / (B3 + B8)            vegetation / surface water
    LSWI = (B8 - B11) / (B8 + B11)          land surface water (rice-specific)
    EVI  = 2.5 (NIR - R) / (NIR + 6R - 7.5B + 1), on reflectance
    """
    ndvi = image.normalizedDifference(["B8", "B4"]).rename("NDVI")
    ndwi = image.normalizedDifference(["B3", "B8"]).rename("NDWI")
    lswi = image.normalizedDifference(["B8", "B11"]).rename("LSWI")

    reflectance = image.select(["B2", "B4", "B8"]).divide(S2_SCALE)
    evi = reflectance.expression(
        "2.5 * (NIR - RED) / (NIR + 6 * RED - 7.5 * BLUE + 1)",
        {
            "NIR": reflectance.select("B8"),
            "RED": reflectance.select("B4"),
            "BLUE": reflectance.select("B2"),
        },
    ).rename("EVI")

    return image.addBands([ndvi, ndwi, lswi, evi])


class EarthEngineProvider:
    """Statistics provider backed by Sentinel-1 / Sentinel-2 collections in Earth Engine."""

    def __init__(self, initialize: bool = True):
        if initialize:
            init_ee()

    def polygon_area_hectares(self, ring: Ring) -> float:
        try:
            area_sq_m = polygon_to_ee_geometry(ring).area().getInfo()
        except ee.EEException as exc:
            raise ProviderError(f"Earth Engine area computation failed: {exc}") from exc
        return float(area_sq_m) / SQ_M_PER_HECTARE

    def optical_statistics(
        self,
        ring: Ring,
        period: VerificationPeriod,
        config: VerificationConfig,
    ) -> tuple[SpectralStatistics, int]:
        """Mean NDVI/NDWI/LSWI/EVI over the polygon and the scene count."""
        region = polygon_to_ee_geometry(ring)
        start, end = _window(period)
        acquisition = config.acquisition

        try:
            collection = (
                ee.ImageCollection(S2_COLLECTION)
                .filterDate(start, end)
                .filterBounds(region)
                .filter(ee.Filter.lt("CLOUDY_PIXEL_PERCENTAGE", acquisition.cloud_percentage_max))
                .select(["B2", "B3", "B4", "B8", "B11"])
            )
            count = collection.size().getInfo()
            logger.info("Found %d Sentinel-2 images for %s to %s", count, start, end)
            if count == 0:
                raise NoContributingImagery("Sentinel-2", start, end)

            stats = (
                collection.map(add_rice_indices)
                .select(["NDVI", "NDWI", "LSWI", "EVI"])
                .mean()
                .reduceRegion(
                    reducer=ee.Reducer.mean(),
                    geometry=region,
                    scale=acquisition.scale_m,
                    maxPixels=1e9,
                )
                .getInfo()
            )
        except ee.EEException as exc:
            raise ProviderError(f"Sentinel-2 statistics failed: {exc}") from exc

        logger.info("S2 stats: %s", stats)
        return SpectralStatistics(
            ndvi=stats.get("NDVI") or 0.0,
            ndwi=stats.get("NDWI") or 0.0,
            lswi=stats.get("LSWI") or 0.0,
            evi=stats.get("EVI") or 0.0,
        ), count

    def radar_statistics(
        self,
        ring: Ring,
        period: VerificationPeriod,
        config: VerificationConfig,
    ) -> tuple[SarStatistics, int]:
        """Fraction of pixels with filtered mean VV below the flooding threshold."""
        region = polygon_to_ee_geometry(ring)
        start, end = _window(period)
        acquisition = config.acquisition

        try:
            collection = (
                ee.ImageCollection(S1_COLLECTION)
                .filterDate(start, end)
                .filterBounds(region)
                .filter(ee.Filter.eq("instrumentMode", "IW"))
                .filter(ee.Filter.listContains("transmitterReceiverPolarisation", "VV"))
                .select("VV")
            )
            count = collection.size().getInfo()
            logger.info("Found %d Sentinel-1 images for %s to %s", count, start, end)
            if count == 0:
                raise NoContributingImagery("Sentinel-1", start, end)

            radius = acquisition.speckle_radius_m
            vv_mean = collection.map(
                lambda img: img.focal_median(radius, "circle", "meters")
            ).mean()
            water_mask = vv_mean.lt(config.sar.vv_flooding_threshold_db)

            stats = water_mask.reduceRegion(
                reducer=ee.Reducer.mean(),
                geometry=region,
                scale=acquisition.scale_m,
                maxPixels=1e9,
            ).getInfo()
        except ee.EEException as exc:
            raise ProviderError(f"Sentinel-1 statistics failed: {exc}") from exc

        fraction = min(1.0, max(0.0, stats.get("VV") or 0.0))
        return SarStatistics(water_fraction=fraction), count
