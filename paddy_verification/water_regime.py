"""
water_regime.py — Match the observed water pattern against the farmer's
declared water regime.

Declared regimes are free text on the project record (IPCC categories such as
"Continuously_flooded", "Intermittently_flooded_single_aeration", "Rainfed",
"Upland"...). ``classify_regime`` maps them onto one WaterRegime family;
``match_regime`` then dispatches to that family's rule.
"""

import logging
import re
from typing import Callable

from paddy_verification.schemas import RegimeMatch, WaterDetection, WaterRegime
from paddy_verification.settings import VerificationConfig, DEFAULT_CONFIG

logger = logging.getLogger(__name__)

# Checked in order; the first family with a matching token wins.
REGIME_FAMILIES: tuple[tuple[WaterRegime, tuple[str, ...]], ...] = (
    (WaterRegime.CONTINUOUSLY_FLOODED, ("continuously_flooded",)),
    (WaterRegime.INTERMITTENT_OR_RAINFED, ("intermittently_flooded", "intermittent", "rainfed")),
    (WaterRegime.IRRIGATED, ("irrigated",)),
    (WaterRegime.UPLAND_OR_DRY, ("upland", "dry")),
)

_SEPARATORS = re.compile(r"[\s\-]+")


def normalize_regime(raw: str) -> str:
    return _SEPARATORS.sub("_", (raw or "").strip().lower())


def classify_regime(raw: str) -> WaterRegime:
    token = normalize_regime(raw)
    for regime, needles in REGIME_FAMILIES:
        if any(needle in token for needle in needles):
            return regime
    return WaterRegime.UNRECOGNIZED


def regime_implies_water(raw: str) -> bool:
    token = normalize_regime(raw)
    return "flooded" in token or "irrigated" in token


# ──────────────────────────────────────────────────────────────
# Per-regime rules: (water, lswi, config, raw) -> (matched, reason)
# ──────────────────────────────────────────────────────────────

def _pct(fraction: float) -> str:
    return f"{fraction * 100:.1f}%"


def _continuously_flooded(water: WaterDetection, lswi: float, config: VerificationConfig, raw: str):
    floor = config.water_regime.continuously_flooded.min
    matched = water.water_detected and water.water_fraction > floor
    if not water.water_detected:
        return matched, "No significant water detected - does not match continuously flooded regime"
    verdict = "matches" if matched else "insufficient for"
    return matched, (
        f"Water detected ({_pct(water.water_fraction)} coverage) {verdict} continuously flooded regime"
    )


def _intermittent(water: WaterDetection, lswi: float, config: VerificationConfig, raw: str):
    band = config.water_regime.intermittent
    matched = water.water_detected and band.min < water.water_fraction < band.max
    if not water.water_detected:
        return matched, "Water pattern does not match intermittently flooded regime"
    verdict = "matches" if matched else "does not match"
    return matched, (
        f"Intermittent water detected ({_pct(water.water_fraction)} coverage) {verdict} regime"
    )


def _irrigated(water: WaterDetection, lswi: float, config: VerificationConfig, raw: str):
    # Irrigated paddies need not show standing water at acquisition time;
    # high vegetation water content (LSWI) is accepted instead.
    thresholds = config.water_regime.irrigated
    wet_canopy = lswi > thresholds.lswi_min
    standing_water = water.water_detected and water.water_fraction > thresholds.water_min
    matched = wet_canopy or standing_water
    if wet_canopy:
        return matched, f"High vegetation water content (LSWI: {lswi:.2f}) indicates irrigation"
    if water.water_detected:
        verdict = "matches" if standing_water else "insufficient for"
        return matched, f"Water detected ({_pct(water.water_fraction)}) {verdict} irrigated regime"
    return matched, "Low water indicators - may not be actively irrigated"


def _upland(water: WaterDetection, lswi: float, config: VerificationConfig, raw: str):
    ceiling = config.water_regime.upland.max
    matched = not water.water_detected or water.water_fraction < ceiling
    if not water.water_detected:
        return matched, "No water detected - matches dry/upland regime"
    verdict = "acceptable" if matched else "excessive"
    return matched, f"Water detected ({_pct(water.water_fraction)}) - {verdict} for dry regime"


def _unrecognized(water: WaterDetection, lswi: float, config: VerificationConfig, raw: str):
    expects_water = regime_implies_water(raw)
    matched = expects_water == water.water_detected
    return matched, "Standard water detection applied for unknown regime"


REGIME_RULES: dict[WaterRegime, Callable] = {
    WaterRegime.CONTINUOUSLY_FLOODED: _continuously_flooded,
    WaterRegime.INTERMITTENT_OR_RAINFED: _intermittent,
    WaterRegime.IRRIGATED: _irrigated,
    WaterRegime.UPLAND_OR_DRY: _upland,
    WaterRegime.UNRECOGNIZED: _unrecognized,
}


def match_regime(
    declared_regime: str,
    water: WaterDetection,
    lswi: float,
    config: VerificationConfig = DEFAULT_CONFIG,
) -> RegimeMatch:
    regime = classify_regime(declared_regime)
    matched, reason = REGIME_RULES[regime](water, lswi, config, declared_regime)

    logger.info("Water regime %s (%s): match=%s, %s", declared_regime, regime.value, matched, reason)
    return RegimeMatch(
        declared_regime=declared_regime,
        regime=regime,
        water_regime_match=matched,
        water_regime_reason=reason,
    )
