"""
radar_water.py — Sentinel-1 standing-water verdict.

The provider supplies the fraction of polygon pixels whose speckle-filtered
VV backscatter is below ``sar.vv_flooding_threshold_db``. Water is present
when that fraction exceeds ``sar.water_fraction_min``. No radar coverage
yields a fraction of 0, hence no water; the scene count in the report tells
"no water" apart from "no data".
"""

import logging

from paddy_verification.schemas import SarStatistics, WaterDetection
from paddy_verification.settings import VerificationConfig, DEFAULT_CONFIG

logger = logging.getLogger(__name__)


def detect_water(
    sar: SarStatistics,
    config: VerificationConfig = DEFAULT_CONFIG,
) -> WaterDetection:
    detection = WaterDetection(
        water_fraction=sar.water_fraction,
        water_fraction_min=config.sar.water_fraction_min,
    )
    logger.info(
        "Water percentage: %.1f%%, water detected: %s",
        sar.water_fraction * 100, detection.water_detected,
    )
    return detection
