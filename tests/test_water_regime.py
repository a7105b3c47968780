"""
Tests for Sentinel-1 water detection and declared water-regime matching.
"""

import json

import pytest

from paddy_verification.radar_water import detect_water
from paddy_verification.schemas import SarStatistics, WaterRegime
from paddy_verification.settings import SarThresholds, VerificationConfig
from paddy_verification.water_regime import classify_regime, match_regime, regime_implies_water


def _water(fraction):
    return detect_water(SarStatistics(water_fraction=fraction))


# ---------------------------------------------------------------------------
# Radar water detection
# ---------------------------------------------------------------------------

class TestDetectWater:

    @pytest.mark.parametrize("fraction,expected", [
        (0.0, False), (0.3, False), (0.31, True), (0.45, True), (1.0, True),
    ])
    def test_threshold_is_strict(self, fraction, expected):
        assert _water(fraction).water_detected is expected

    def test_percentage(self):
        assert _water(0.45678).water_percentage == 45.68

    def test_no_coverage_means_no_water(self):
        assert detect_water(SarStatistics.empty()).water_detected is False

    def test_configured_threshold(self):
        config = VerificationConfig(sar=SarThresholds(water_fraction_min=0.5))
        detection = detect_water(SarStatistics(water_fraction=0.45), config)
        assert detection.water_detected is False
        assert detection.water_fraction_min == 0.5

    def test_fraction_out_of_range_rejected(self):
        with pytest.raises(ValueError):
            SarStatistics(water_fraction=1.2)

    @pytest.mark.parametrize("fraction", [0.0, 0.15, 0.3, 0.300001, 0.72])
    def test_serialised_verdict_follows_fraction(self, fraction):
        data = json.loads(_water(fraction).model_dump_json(by_alias=True))
        assert data["waterDetected"] == (data["waterFraction"] > data["waterFractionMin"])


# ---------------------------------------------------------------------------
# Regime classification
# ---------------------------------------------------------------------------

class TestClassifyRegime:

    @pytest.mark.parametrize("raw,expected", [
        ("Continuously_flooded", WaterRegime.CONTINUOUSLY_FLOODED),
        ("continuously flooded", WaterRegime.CONTINUOUSLY_FLOODED),
        ("Intermittently_flooded_single_aeration", WaterRegime.INTERMITTENT_OR_RAINFED),
        ("Intermittently-flooded multiple aeration", WaterRegime.INTERMITTENT_OR_RAINFED),
        ("Rainfed", WaterRegime.INTERMITTENT_OR_RAINFED),
        ("Rainfed_drought_prone", WaterRegime.INTERMITTENT_OR_RAINFED),
        ("IRRIGATED", WaterRegime.IRRIGATED),
        ("upland", WaterRegime.UPLAND_OR_DRY),
        ("Dry season", WaterRegime.UPLAND_OR_DRY),
        ("deep_water", WaterRegime.UNRECOGNIZED),
        ("", WaterRegime.UNRECOGNIZED),
    ])
    def test_families(self, raw, expected):
        assert classify_regime(raw) is expected

    def test_priority_continuous_before_irrigated(self):
        assert classify_regime("irrigated_continuously_flooded") is WaterRegime.CONTINUOUSLY_FLOODED

    def test_priority_rainfed_before_dry(self):
        assert classify_regime("rainfed_dry_spell") is WaterRegime.INTERMITTENT_OR_RAINFED

    def test_implies_water(self):
        assert regime_implies_water("Pre-season flooded")
        assert not regime_implies_water("deep_water")


# ---------------------------------------------------------------------------
# Regime matching
# ---------------------------------------------------------------------------

class TestMatchRegime:

    def test_continuously_flooded_match(self):
        result = match_regime("Continuously_flooded", _water(0.45), lswi=0.3)
        assert result.water_regime_match is True
        assert result.water_regime_reason == (
            "Water detected (45.0% coverage) matches continuously flooded regime"
        )

    def test_continuously_flooded_needs_forty_percent(self):
        result = match_regime("Continuously_flooded", _water(0.35), lswi=0.3)
        assert result.water_regime_match is False
        assert "insufficient for" in result.water_regime_reason

    def test_continuously_flooded_no_water(self):
        result = match_regime("Continuously_flooded", _water(0.1), lswi=0.3)
        assert result.water_regime_match is False
        assert result.water_regime_reason.startswith("No significant water detected")

    @pytest.mark.parametrize("fraction,expected", [
        (0.35, True), (0.49, True), (0.5, False), (0.6, False), (0.2, False),
    ])
    def test_intermittent_band(self, fraction, expected):
        # 0.2 is inside the band but below the detection threshold
        assert match_regime("Rainfed", _water(fraction), lswi=0.0).water_regime_match is expected

    def test_irrigated_by_canopy_water(self):
        result = match_regime("Irrigated", _water(0.0), lswi=0.2)
        assert result.water_regime_match is True
        assert result.water_regime_reason == (
            "High vegetation water content (LSWI: 0.20) indicates irrigation"
        )

    def test_irrigated_by_standing_water(self):
        result = match_regime("Irrigated", _water(0.4), lswi=0.1)
        assert result.water_regime_match is True
        assert result.water_regime_reason == "Water detected (40.0%) matches irrigated regime"

    def test_irrigated_dry(self):
        result = match_regime("Irrigated", _water(0.1), lswi=0.15)
        assert result.water_regime_match is False
        assert "may not be actively irrigated" in result.water_regime_reason

    def test_upland_mismatch(self):
        water = _water(0.35)
        assert water.water_detected is True
        result = match_regime("upland", water, lswi=0.0)
        assert result.water_regime_match is False
        assert result.water_regime_reason == "Water detected (35.0%) - excessive for dry regime"

    def test_upland_no_water(self):
        result = match_regime("Upland", _water(0.25), lswi=0.0)
        assert result.water_regime_match is True
        assert result.water_regime_reason == "No water detected - matches dry/upland regime"

    def test_upland_small_water_with_low_detection_floor(self):
        config = VerificationConfig(sar=SarThresholds(water_fraction_min=0.1))
        water = detect_water(SarStatistics(water_fraction=0.15), config)
        result = match_regime("dry", water, lswi=0.0, config=config)
        assert result.water_regime_match is True
        assert "acceptable" in result.water_regime_reason

    @pytest.mark.parametrize("raw,fraction,expected", [
        ("Pre-season flooded", 0.5, True),
        ("Pre-season flooded", 0.1, False),
        ("deep_water", 0.1, True),
        ("deep_water", 0.5, False),
    ])
    def test_unrecognized_fallback(self, raw, fraction, expected):
        result = match_regime(raw, _water(fraction), lswi=0.0)
        assert result.regime is WaterRegime.UNRECOGNIZED
        assert result.water_regime_match is expected
        assert result.water_regime_reason == "Standard water detection applied for unknown regime"

    def test_declared_regime_echoed(self):
        result = match_regime("Rainfed", _water(0.35), lswi=0.0)
        assert result.declared_regime == "Rainfed"
        assert result.regime is WaterRegime.INTERMITTENT_OR_RAINFED
