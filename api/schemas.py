"""
api/schemas.py — Pydantic response models
===========================================
The report itself is a deeply nested, metric-dependent mapping and is
passed through as a plain dict; these models pin down the envelope around
it so FastAPI can document the endpoints.
"""

from typing import Any, Optional

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    status: str = "ok"
    service: str
    version: str


class ValidationIssue(BaseModel):
    issue: str
    details: Optional[str] = None
    fixes: list[str] = Field(default_factory=list)


class ErrorResponse(BaseModel):
    """Body of every 4xx / 5xx answer from /analyse."""
    error: str
    message: str
    issues: list[ValidationIssue] = Field(default_factory=list)
    metrics: Optional[dict[str, Any]] = None
    details: Optional[dict[str, Any]] = None


class AnalysisResponse(BaseModel):
    success: bool = True
    message: str = "Video analysis completed successfully"
    disclaimer: str
    report: dict[str, Any]
