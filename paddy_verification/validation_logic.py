"""
validation_logic.py — Satellite verification of a rice-cultivation project.

    boundary ──► GeometryValidator ───────────────────────────┐
    S2 stats ──► SpectralCropClassifier ──────────────────────┤
    S1 stats ──► RadarWaterDetector ──► WaterRegimeMatcher ───┼──► report
                                                              │
    config (versioned, snapshotted into the report) ──────────┘

The verifier holds no state between calls: the same inputs, provider answers
and config always produce the same report.
"""

import logging
import math
from datetime import date, datetime
from typing import Optional, Protocol

from paddy_verification.exceptions import NoContributingImagery
from paddy_verification.geometry_utils import (
    Ring, compare_area, compute_area_hectares, parse_boundary, validate_boundary,
)
from paddy_verification.radar_water import detect_water
from paddy_verification.report import assemble_report, verification_window
from paddy_verification.schemas import (
    SarStatistics, SpectralStatistics, VerificationPeriod, VerificationResult,
)
from paddy_verification.settings import VerificationConfig, DEFAULT_CONFIG, ensure_config
from paddy_verification.spectral_classifier import classify_crop
from paddy_verification.water_regime import match_regime

logger = logging.getLogger(__name__)


class StatisticsProvider(Protocol):
    """External collaborator returning per-polygon band statistics."""

    def polygon_area_hectares(self, ring: Ring) -> Optional[float]: ...

    def optical_statistics(
        self, ring: Ring, period: VerificationPeriod, config: VerificationConfig,
    ) -> tuple[SpectralStatistics, int]: ...

    def radar_statistics(
        self, ring: Ring, period: VerificationPeriod, config: VerificationConfig,
    ) -> tuple[SarStatistics, int]: ...


class SatelliteVerifier:
    """
    Verifies a declared rice field against Sentinel-1/2 statistics.

    Checks:
        area    declared vs geodesic area, mismatch < 15%
        crop    >= 4 of 5 spectral criteria (NDVI, LSWI, NDVI-LSWI, NDWI, EVI)
        water   S1 water fraction > 0.3
        regime  water pattern consistent with the declared water regime

    Preconditions: declared_area finite and > 0. Zero scenes from a sensor is
    not an error: its statistics default to zero and the count is reported as 0.
    A provider that returns no area falls back to the local geodesic area.
    """

    def __init__(self, provider: StatisticsProvider, config: VerificationConfig = DEFAULT_CONFIG):
        """
        Args:
            provider: statistics provider (EarthEngineProvider in production)
            config:   threshold set, snapshotted into every report
        """
        self.provider = provider
        self.config = config

    def verify(
        self,
        boundary,
        declared_area: float,
        declared_water_regime: str,
        reference_date: date,
        *,
        cultivation_period: Optional[str] = None,
        verified_at: Optional[datetime] = None,
    ) -> VerificationResult:
        config = ensure_config(self.config)

        ring = parse_boundary(boundary)
        validate_boundary(ring)
        if declared_area is None or not math.isfinite(declared_area) or declared_area <= 0:
            raise ValueError(f"declared_area must be > 0, got {declared_area}")

        period = verification_window(reference_date, config.acquisition.window_months)
        logger.info(
            "Verifying %d-vertex boundary, %.2f ha declared, regime=%s, window %s to %s",
            len(ring) - 1, declared_area, declared_water_regime, period.start, period.end,
        )

        warnings = []

        actual_area = self.provider.polygon_area_hectares(ring)
        if actual_area is None:
            actual_area = compute_area_hectares(ring)
            logger.info("Provider returned no area; using local geodesic area %.4f ha", actual_area)
        area = compare_area(declared_area, actual_area, config)

        spectral, optical_count = self._fetch(
            self.provider.optical_statistics, "Sentinel-2", SpectralStatistics.empty,
            ring, period, config, warnings,
        )
        sar, radar_count = self._fetch(
            self.provider.radar_statistics, "Sentinel-1", SarStatistics.empty,
            ring, period, config, warnings,
        )

        crop = classify_crop(spectral, config)
        water = detect_water(sar, config)
        regime = match_regime(declared_water_regime, water, spectral.lswi, config)

        report = assemble_report(
            area=area,
            indices=spectral,
            crop=crop,
            water=water,
            regime=regime,
            period=period,
            optical_image_count=optical_count,
            radar_image_count=radar_count,
            config=config,
            cultivation_period=cultivation_period,
            verified_at=verified_at,
            warnings=warnings,
        )
        logger.info(
            "Verification: area_match=%s crop=%s water=%s regime_match=%s",
            area.area_match, crop.crop_detected, water.water_detected, regime.water_regime_match,
        )
        return report

    @staticmethod
    def _fetch(fetch, sensor, empty, ring, period, config, warnings):
        """Call a provider; zero contributing scenes degrade to empty statistics."""
        try:
            stats, count = fetch(ring, period, config)
        except NoContributingImagery as e:
            logger.warning("%s statistics unavailable (non-fatal): %s", sensor, e)
            warnings.append(e.message)
            return empty(), 0

        if count == 0:
            message = NoContributingImagery(sensor, period.start.isoformat(), period.end.isoformat()).message
            logger.warning("%s statistics unavailable (non-fatal): %s", sensor, message)
            warnings.append(message)
            return empty(), 0
        return stats, count
