#!/usr/bin/env python3
"""
rPPG Vital-Signs Report API — Main Entry Point
================================================
Launches the FastAPI backend with Uvicorn.
Run with:  python main.py

⚠️  DISCLAIMER: This is a WELLNESS ESTIMATION tool, NOT a medical device.
    Every reading is an estimate derived from remote photoplethysmography
    (rPPG) and fixed heuristics.  Consult a qualified healthcare
    professional for medical advice.
"""

import uvicorn

from api.app import create_app
from config import API_HOST, API_PORT, LOG_LEVEL

app = create_app()

if __name__ == "__main__":
    uvicorn.run(
        app,
        host=API_HOST,
        port=API_PORT,
        reload=False,
        log_level=LOG_LEVEL.lower(),
    )
