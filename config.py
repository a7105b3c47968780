"""
config.py — Shared constants and settings.
"""

import os
from dotenv import load_dotenv

load_dotenv()

SQ_M_PER_HECTARE = 10_000.0

# Earth Engine project (falls back to the default credentials project)
EE_PROJECT_ID = os.getenv("EE_PROJECT_ID", "")

# Optional JSON file overriding the built-in verification thresholds
VERIFICATION_CONFIG_PATH = os.getenv("VERIFICATION_CONFIG_PATH", "")

CORS_ALLOW_ORIGINS = [
    origin.strip()
    for origin in os.getenv("CORS_ALLOW_ORIGINS", "*").split(",")
    if origin.strip()
]
