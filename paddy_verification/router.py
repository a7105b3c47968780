"""
router.py — FastAPI router for satellite verification of rice projects.
"""

import logging
from datetime import datetime, timezone
from functools import lru_cache

from fastapi import APIRouter, Depends, HTTPException
from pydantic import ValidationError

from config import VERIFICATION_CONFIG_PATH
from paddy_verification.exceptions import (
    ConfigurationError, InvalidGeometry, ProviderError,
)
from paddy_verification.schemas import VerifySatelliteRequest, VerifySatelliteResponse
from paddy_verification.settings import VerificationConfig, load_config
from paddy_verification.validation_logic import SatelliteVerifier

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Satellite Verification"])


@lru_cache
def get_config() -> VerificationConfig:
    return load_config(VERIFICATION_CONFIG_PATH)


@lru_cache
def get_verifier() -> SatelliteVerifier:
    # Imported lazily so the router can be mounted without EE credentials
    from paddy_verification.earth_engine_service import EarthEngineProvider

    return SatelliteVerifier(EarthEngineProvider(), get_config())


def active_config() -> VerificationConfig:
    try:
        return get_config()
    except ConfigurationError as e:
        logger.error("Verification config error: %s", e)
        raise HTTPException(status_code=500, detail=str(e))


def active_verifier() -> SatelliteVerifier:
    try:
        return get_verifier()
    except (ConfigurationError, ProviderError) as e:
        logger.error("Verifier unavailable: %s", e)
        raise HTTPException(status_code=503, detail=str(e))


# ──────────────────────────────────────────────────────────────
# POST /verify_satellite
# ──────────────────────────────────────────────────────────────

@router.post(
    "/verify_satellite",
    response_model=VerifySatelliteResponse,
    response_model_by_alias=True,
)
async def verify_satellite(
    req: VerifySatelliteRequest,
    verifier: SatelliteVerifier = Depends(active_verifier),
):
    """
    Verify a declared rice field using Sentinel-2 spectral indices and
    Sentinel-1 water detection over the 3 months before the reference date.
    """
    try:
        verification = verifier.verify(
            req.boundary,
            req.declared_area,
            req.declared_water_regime,
            req.reference_date,
            cultivation_period=req.cultivation_period,
            verified_at=datetime.now(timezone.utc),
        )
    except InvalidGeometry as e:
        raise HTTPException(status_code=400, detail=str(e))
    except ValidationError as e:
        logger.exception("Verification produced an invalid report")
        raise HTTPException(status_code=500, detail=f"Satellite verification failed: {e}")
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except ConfigurationError as e:
        logger.error("Verification config error: %s", e)
        raise HTTPException(status_code=500, detail=str(e))
    except ProviderError as e:
        logger.error("Statistics provider error: %s", e)
        raise HTTPException(status_code=502, detail=str(e))
    except Exception as e:
        logger.exception("Satellite verification error")
        raise HTTPException(
            status_code=500,
            detail=f"Satellite verification failed: {e}",
        )

    return VerifySatelliteResponse(success=True, verification=verification)


# ──────────────────────────────────────────────────────────────
# GET /verification_config: thresholds currently in force
# ──────────────────────────────────────────────────────────────

@router.get("/verification_config", response_model=VerificationConfig, response_model_by_alias=True)
async def verification_config(config: VerificationConfig = Depends(active_config)):
    return config
