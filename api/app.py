"""
api/app.py — FastAPI application factory
==========================================
Creates and configures the FastAPI instance so that `main.py` stays
minimal and tests can build isolated apps.
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.routes import router
from config import API_TITLE, API_VERSION


def create_app() -> FastAPI:
    app = FastAPI(
        title=API_TITLE,
        version=API_VERSION,
        description=(
            "Upload a short face video and receive heart rate, HRV, respiratory "
            "rate, SpO2, blood pressure, stress and mood estimates. "
            "WELLNESS TOOL ONLY, not a medical device."
        ),
    )

    # Open CORS for local demos; narrow `allow_origins` when deploying.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.include_router(router)
    return app
