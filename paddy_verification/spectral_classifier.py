"""
spectral_classifier.py — Five-criterion rice detection on Sentinel-2 index means.

    ndvi_ok          ndvi.min <= NDVI <= ndvi.max
    lswi_ok          LSWI > lswi_min
    ndvi_lswi_ratio  |NDVI - LSWI| < ndvi_lswi_max_diff  OR  LSWI >= NDVI - margin
    ndwi_ok          NDWI > ndwi_min
    evi_ok           evi.min <= EVI <= evi.max

Rice is detected when at least ``min_criteria`` (default 4) of the five hold.
Tolerating one disagreeing index is a tunable policy, not a physical law.

The human-readable reason comes from REASON_RULES, an ordered
(predicate, template) table where the first matching rule wins. It explains
the verdict and never changes it.
"""

import logging
from dataclasses import dataclass
from typing import Callable

from paddy_verification.schemas import CropDetection, SpectralCriteria, SpectralStatistics
from paddy_verification.settings import VerificationConfig, DEFAULT_CONFIG

logger = logging.getLogger(__name__)


def early_flooding_signal(stats: SpectralStatistics, config: VerificationConfig) -> bool:
    """LSWI approaching or exceeding NDVI marks flooding / transplanting (Xiao et al. 2005)."""
    return stats.lswi >= stats.ndvi - config.early_flooding_margin


def evaluate_criteria(stats: SpectralStatistics, config: VerificationConfig) -> SpectralCriteria:
    return SpectralCriteria(
        ndvi_ok=config.ndvi.min <= stats.ndvi <= config.ndvi.max,
        lswi_ok=stats.lswi > config.lswi_min,
        ndvi_lswi_ratio=(
            abs(stats.ndvi - stats.lswi) < config.ndvi_lswi_max_diff
            or early_flooding_signal(stats, config)
        ),
        ndwi_ok=stats.ndwi > config.ndwi_min,
        evi_ok=config.evi.min <= stats.evi <= config.evi.max,
    )


# ──────────────────────────────────────────────────────────────
# Reason table
# ──────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class ReasonContext:
    stats: SpectralStatistics
    criteria_met: int
    confidence: float
    crop_detected: bool
    early_flooding: bool
    config: VerificationConfig


@dataclass(frozen=True)
class ReasonRule:
    name: str
    predicate: Callable[[ReasonContext], bool]
    render: Callable[[ReasonContext], str]


def _detected_reason(ctx: ReasonContext) -> str:
    reason = (
        f"Rice detected with {ctx.confidence:.0f}% confidence "
        f"({ctx.criteria_met}/5 criteria met)"
    )
    if ctx.early_flooding:
        reason += " - Early flooding signal detected (LSWI ≥ NDVI)"
    return reason


REASON_RULES: tuple[ReasonRule, ...] = (
    ReasonRule(
        name="detected",
        predicate=lambda ctx: ctx.crop_detected,
        render=_detected_reason,
    ),
    # Must precede the low-NDVI / low-NDWI rules: dense canopy fails the
    # water criteria while keeping NDVI high.
    ReasonRule(
        name="forest",
        predicate=lambda ctx: (
            ctx.stats.ndvi > ctx.config.forest_ndvi_min
            and ctx.stats.lswi < ctx.config.forest_lswi_max
        ),
        render=lambda ctx: (
            f"High NDVI ({ctx.stats.ndvi:.2f}) but low water content "
            f"(LSWI: {ctx.stats.lswi:.2f}) - likely trees/forest, not rice"
        ),
    ),
    ReasonRule(
        name="bare_soil",
        predicate=lambda ctx: ctx.stats.ndvi < ctx.config.ndvi.min,
        render=lambda ctx: (
            f"Low vegetation index (NDVI: {ctx.stats.ndvi:.2f}) - "
            "likely bare soil, buildings, or dry land"
        ),
    ),
    ReasonRule(
        name="dry",
        predicate=lambda ctx: ctx.stats.ndwi < ctx.config.dry_ndwi_max,
        render=lambda ctx: (
            f"Very low water content (NDWI: {ctx.stats.ndwi:.2f}) - "
            "not suitable for rice cultivation"
        ),
    ),
    ReasonRule(
        name="insufficient",
        predicate=lambda ctx: True,
        render=lambda ctx: (
            "Vegetation detected but criteria insufficient for rice "
            f"(confidence: {ctx.confidence:.0f}%, {ctx.criteria_met}/5 criteria)"
        ),
    ),
)


def select_reason_rule(ctx: ReasonContext, rules=REASON_RULES) -> ReasonRule:
    for rule in rules:
        if rule.predicate(ctx):
            return rule
    raise LookupError("No reason rule matched; the table must end with a catch-all")


def explain(ctx: ReasonContext, rules=REASON_RULES) -> str:
    return select_reason_rule(ctx, rules).render(ctx)


# ──────────────────────────────────────────────────────────────
# Classifier
# ──────────────────────────────────────────────────────────────

def classify_crop(
    stats: SpectralStatistics,
    config: VerificationConfig = DEFAULT_CONFIG,
) -> CropDetection:
    """Score the five criteria and attach the first matching explanation."""
    criteria = evaluate_criteria(stats, config)
    flooding = early_flooding_signal(stats, config)

    detection = CropDetection(
        criteria=criteria,
        min_criteria=config.min_criteria,
        early_flooding_signal=flooding,
    )
    ctx = ReasonContext(
        stats=stats,
        criteria_met=detection.criteria_met,
        confidence=detection.confidence_score,
        crop_detected=detection.crop_detected,
        early_flooding=flooding,
        config=config,
    )
    detection = detection.model_copy(update={"detection_reason": explain(ctx)})

    logger.info(
        "Rice detection: %s (%d/5 criteria) - %s",
        detection.crop_detected, detection.criteria_met, detection.detection_reason,
    )
    return detection
