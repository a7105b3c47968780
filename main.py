"""
main.py — FastAPI entrypoint for the satellite paddy verification API.

Usage:
    uvicorn main:app --reload
"""

import logging
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from config import CORS_ALLOW_ORIGINS
from paddy_verification.router import router, get_config

# ──────────────────────────────────────────────
# Logging
# ──────────────────────────────────────────────
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s  %(levelname)-8s  %(name)s  %(message)s",
)
logger = logging.getLogger(__name__)

# ──────────────────────────────────────────────
# FastAPI App
# ──────────────────────────────────────────────
app = FastAPI(
    title="Rice Paddy Satellite Verifier",
    description=(
        "Verify farmer-declared rice cultivation projects (area, crop "
        "presence, water regime) using Sentinel-1 and Sentinel-2."
    ),
    version="1.1.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ALLOW_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(router)


# ──────────────────────────────────────────────
# Initialize EE + load thresholds on startup
# ──────────────────────────────────────────────
@app.on_event("startup")
async def startup_event():
    config = get_config()
    logger.info("Verification config v%s loaded", config.version)
    try:
        from paddy_verification.earth_engine_service import init_ee

        init_ee()
        logger.info("Earth Engine ready")
    except Exception as e:
        logger.error("EE init failed at startup: %s", e)


@app.get("/health")
async def health():
    return {"status": "ok", "service": "paddy-satellite-verifier"}
