"""
schemas.py — Pydantic records for satellite paddy verification.

Verdict flags (``crop_detected``, ``water_detected``, ``area_match``) are
computed fields over the stored criteria / fractions, so a serialised report
can never disagree with its own inputs.
"""

from datetime import date, datetime
from enum import Enum
from typing import Optional, Union

from pydantic import BaseModel, Field, computed_field

from paddy_verification.settings import RECORD_CONFIG, VerificationConfig


# ─── Provider inputs ──────────────────────────────────────────

class SpectralStatistics(BaseModel):
    """Polygon means of the optical indices over the composite window."""
    model_config = RECORD_CONFIG

    ndvi: float = 0.0
    ndwi: float = 0.0
    lswi: float = 0.0
    evi: float = 0.0

    @classmethod
    def empty(cls) -> "SpectralStatistics":
        """Degenerate statistics used when no optical scene contributed."""
        return cls()

    def rounded(self, ndigits: int = 3) -> "SpectralStatistics":
        return SpectralStatistics(
            ndvi=round(self.ndvi, ndigits),
            ndwi=round(self.ndwi, ndigits),
            lswi=round(self.lswi, ndigits),
            evi=round(self.evi, ndigits),
        )


class SarStatistics(BaseModel):
    """Fraction of polygon pixels whose filtered VV backscatter is below the flooding threshold."""
    model_config = RECORD_CONFIG

    water_fraction: float = Field(0.0, ge=0.0, le=1.0)

    @classmethod
    def empty(cls) -> "SarStatistics":
        return cls()


# ─── Component outputs ────────────────────────────────────────

class AreaComparison(BaseModel):
    model_config = RECORD_CONFIG

    declared_area: float
    actual_area: float
    area_match_percentage: float
    max_mismatch_percentage: float = 15.0

    @computed_field(alias="areaMatch")
    @property
    def area_match(self) -> bool:
        return self.area_match_percentage < self.max_mismatch_percentage


class SpectralCriteria(BaseModel):
    model_config = RECORD_CONFIG

    ndvi_ok: bool
    lswi_ok: bool
    ndvi_lswi_ratio: bool
    ndwi_ok: bool
    evi_ok: bool

    def count(self) -> int:
        return sum((self.ndvi_ok, self.lswi_ok, self.ndvi_lswi_ratio, self.ndwi_ok, self.evi_ok))


class CropDetection(BaseModel):
    model_config = RECORD_CONFIG

    criteria: SpectralCriteria
    min_criteria: int = 4
    early_flooding_signal: bool = False
    detection_reason: str = ""

    @computed_field(alias="criteriaMet")
    @property
    def criteria_met(self) -> int:
        return self.criteria.count()

    @computed_field(alias="confidenceScore")
    @property
    def confidence_score(self) -> float:
        return round(self.criteria_met / 5 * 100, 1)

    @computed_field(alias="cropDetected")
    @property
    def crop_detected(self) -> bool:
        return self.criteria_met >= self.min_criteria


class WaterDetection(BaseModel):
    model_config = RECORD_CONFIG

    water_fraction: float = 0.0
    water_fraction_min: float = 0.3

    @computed_field(alias="waterDetected")
    @property
    def water_detected(self) -> bool:
        return self.water_fraction > self.water_fraction_min

    @computed_field(alias="waterPercentage")
    @property
    def water_percentage(self) -> float:
        return round(self.water_fraction * 100, 2)


class WaterRegime(str, Enum):
    CONTINUOUSLY_FLOODED = "continuously_flooded"
    INTERMITTENT_OR_RAINFED = "intermittent_or_rainfed"
    IRRIGATED = "irrigated"
    UPLAND_OR_DRY = "upland_or_dry"
    UNRECOGNIZED = "unrecognized"


class RegimeMatch(BaseModel):
    model_config = RECORD_CONFIG

    declared_regime: str
    regime: WaterRegime
    water_regime_match: bool
    water_regime_reason: str


class VerificationPeriod(BaseModel):
    model_config = RECORD_CONFIG

    start: date
    end: date


# ─── Report ───────────────────────────────────────────────────

class VerificationResult(BaseModel):
    """Immutable, JSON-serialisable audit record of one verification run."""
    model_config = RECORD_CONFIG

    area: AreaComparison
    indices: SpectralStatistics
    crop: CropDetection
    water: WaterDetection
    regime: RegimeMatch

    declared_water_regime: str
    cultivation_period: Optional[str] = None
    verification_period: VerificationPeriod
    sentinel_optical_image_count: int = Field(ge=0)
    sentinel_radar_image_count: int = Field(ge=0)
    warnings: tuple[str, ...] = ()

    algorithm_version: str
    config_used: VerificationConfig
    verified_at: Optional[datetime] = None


# ─── HTTP layer ───────────────────────────────────────────────

class VerifySatelliteRequest(BaseModel):
    """Body of POST /verify_satellite, sent by the admin approval workflow."""
    model_config = RECORD_CONFIG

    # GeoJSON Feature / Polygon, or a bare [[lon, lat], ...] ring
    boundary: Union[dict, list]
    declared_area: float = Field(gt=0, description="Declared land area in hectares")
    declared_water_regime: str
    reference_date: date
    cultivation_period: Optional[str] = None


class VerifySatelliteResponse(BaseModel):
    model_config = RECORD_CONFIG

    success: bool
    verification: VerificationResult
