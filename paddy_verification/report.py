"""
report.py — Verification window and final report assembly.
"""

import calendar
from datetime import date, datetime
from typing import Iterable, Optional

from paddy_verification.schemas import (
    AreaComparison, CropDetection, RegimeMatch, SpectralStatistics,
    VerificationPeriod, VerificationResult, WaterDetection,
)
from paddy_verification.settings import VerificationConfig

INDEX_DECIMALS = 3


def subtract_months(day: date, months: int) -> date:
    """Calendar month subtraction, clamping the day (31 May - 3 months = 28/29 Feb)."""
    total = day.year * 12 + (day.month - 1) - months
    year, month = divmod(total, 12)
    month += 1
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(day.day, last_day))


def verification_window(reference_date, months: int = 3) -> VerificationPeriod:
    """[reference_date - months, reference_date]"""
    if isinstance(reference_date, datetime):
        reference_date = reference_date.date()
    return VerificationPeriod(
        start=subtract_months(reference_date, months),
        end=reference_date,
    )


def assemble_report(
    *,
    area: AreaComparison,
    indices: SpectralStatistics,
    crop: CropDetection,
    water: WaterDetection,
    regime: RegimeMatch,
    period: VerificationPeriod,
    optical_image_count: int,
    radar_image_count: int,
    config: VerificationConfig,
    cultivation_period: Optional[str] = None,
    verified_at: Optional[datetime] = None,
    warnings: Iterable[str] = (),
) -> VerificationResult:
    """Merge component outputs into one immutable report with a config snapshot."""
    return VerificationResult(
        area=area,
        indices=indices.rounded(INDEX_DECIMALS),
        crop=crop,
        water=water,
        regime=regime,
        declared_water_regime=regime.declared_regime,
        cultivation_period=cultivation_period,
        verification_period=period,
        sentinel_optical_image_count=optical_image_count,
        sentinel_radar_image_count=radar_image_count,
        warnings=tuple(warnings),
        algorithm_version=config.algorithm_version,
        config_used=config.model_copy(deep=True),
        verified_at=verified_at,
    )
