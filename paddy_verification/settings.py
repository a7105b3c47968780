"""
settings.py — Versioned threshold configuration for rice-paddy verification.

Thresholds come from published paddy-rice remote sensing work:

  * NDVI 0.4–0.8, LSWI > 0.2 and the LSWI >= NDVI - 0.05 flooding signal:
    Xiao et al. (2005, 2006), Zhang et al. (2015)
  * EVI 0.3–0.85 (upper bound raised for peak biomass): Boschetti et al. (2014)
  * VV < -18 dB for flooded paddies: Sellaperumal et al. (2025)

They are empirical and are the behavioural contract of the engine. Every
report embeds the config it was produced with, so a verdict can be reproduced
after the values are retuned: bump ``version`` whenever a threshold changes.
"""

import json
import logging
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator
from pydantic.alias_generators import to_camel

from paddy_verification.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

# Shared by every immutable record: camelCase on the wire, snake_case in Python.
RECORD_CONFIG = ConfigDict(
    frozen=True,
    alias_generator=to_camel,
    populate_by_name=True,
)

_THRESHOLD_CONFIG = ConfigDict(
    frozen=True,
    alias_generator=to_camel,
    populate_by_name=True,
    extra="forbid",
)


class IndexBand(BaseModel):
    """Inclusive [min, max] acceptance band for a vegetation index."""
    model_config = _THRESHOLD_CONFIG

    min: float
    max: float

    @model_validator(mode="after")
    def _ordered(self):
        if self.min > self.max:
            raise ValueError(f"band min {self.min} exceeds max {self.max}")
        return self


class SarThresholds(BaseModel):
    model_config = _THRESHOLD_CONFIG

    vv_flooding_threshold_db: float = -18.0
    water_fraction_min: float = Field(0.3, ge=0.0, le=1.0)


class FloorBand(BaseModel):
    model_config = _THRESHOLD_CONFIG

    min: float = Field(ge=0.0, le=1.0)


class CeilingBand(BaseModel):
    model_config = _THRESHOLD_CONFIG

    max: float = Field(ge=0.0, le=1.0)


class FractionBand(BaseModel):
    model_config = _THRESHOLD_CONFIG

    min: float = Field(ge=0.0, le=1.0)
    max: float = Field(ge=0.0, le=1.0)

    @model_validator(mode="after")
    def _ordered(self):
        if self.min >= self.max:
            raise ValueError(f"fraction band min {self.min} must be below max {self.max}")
        return self


class IrrigatedThresholds(BaseModel):
    model_config = _THRESHOLD_CONFIG

    lswi_min: float = 0.15
    water_min: float = Field(0.2, ge=0.0, le=1.0)


class WaterRegimeThresholds(BaseModel):
    """Water-fraction bands per declared cultivation regime."""
    model_config = _THRESHOLD_CONFIG

    continuously_flooded: FloorBand = FloorBand(min=0.4)
    intermittent: FractionBand = FractionBand(min=0.15, max=0.5)
    irrigated: IrrigatedThresholds = IrrigatedThresholds()
    upland: CeilingBand = CeilingBand(max=0.2)


class AreaThresholds(BaseModel):
    model_config = _THRESHOLD_CONFIG

    max_mismatch_percentage: float = Field(15.0, gt=0.0)


class AcquisitionSettings(BaseModel):
    """Parameters handed to the statistics provider, not used by the classifiers."""
    model_config = _THRESHOLD_CONFIG

    window_months: int = Field(3, ge=1, le=24)
    cloud_percentage_max: float = Field(20.0, gt=0.0, le=100.0)
    scale_m: int = Field(10, gt=0)
    speckle_radius_m: float = Field(50.0, ge=0.0)


class VerificationConfig(BaseModel):
    model_config = _THRESHOLD_CONFIG

    version: str = "1.1.0"
    algorithm_version: str = "1.1.0-research-validated"

    # Spectral criteria
    ndvi: IndexBand = IndexBand(min=0.4, max=0.8)
    evi: IndexBand = IndexBand(min=0.3, max=0.85)
    lswi_min: float = 0.2
    ndwi_min: float = -0.1
    ndvi_lswi_max_diff: float = Field(0.3, gt=0.0)
    early_flooding_margin: float = Field(0.05, ge=0.0)
    min_criteria: int = Field(4, ge=1, le=5)

    # Reason-string guards (explanation only, never the verdict)
    forest_ndvi_min: float = 0.7
    forest_lswi_max: float = 0.2
    dry_ndwi_max: float = -0.3

    sar: SarThresholds = SarThresholds()
    water_regime: WaterRegimeThresholds = WaterRegimeThresholds()
    area: AreaThresholds = AreaThresholds()
    acquisition: AcquisitionSettings = AcquisitionSettings()

    @model_validator(mode="after")
    def _non_empty_version(self):
        if not self.version.strip():
            raise ValueError("config version must not be empty")
        return self


DEFAULT_CONFIG = VerificationConfig()


def config_from_dict(data: dict) -> VerificationConfig:
    """Build a config from a plain mapping, missing keys fall back to defaults."""
    if not isinstance(data, dict):
        raise ConfigurationError(
            f"Verification config must be a JSON object, got {type(data).__name__}"
        )
    try:
        return VerificationConfig.model_validate(data)
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid verification config: {exc}") from exc


def load_config(path: str | Path | None = None) -> VerificationConfig:
    """
    Load a VerificationConfig from a JSON file.

    An empty path returns the built-in defaults.
    """
    if not path:
        return DEFAULT_CONFIG

    path = Path(path)
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigurationError(f"Cannot read verification config '{path}': {exc}") from exc

    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ConfigurationError(f"Verification config '{path}' is not valid JSON: {exc}") from exc

    config = config_from_dict(data)
    logger.info("Loaded verification config v%s from %s", config.version, path)
    return config


def ensure_config(config) -> VerificationConfig:
    """Fail fast unless ``config`` is a usable VerificationConfig."""
    if config is None:
        raise ConfigurationError("No verification config supplied")
    if isinstance(config, dict):
        return config_from_dict(config)
    if not isinstance(config, VerificationConfig):
        raise ConfigurationError(
            f"Expected VerificationConfig, got {type(config).__name__}"
        )
    return config
