"""
Pydantic Models for the Report API

Request and response bodies for the report endpoints. Driver records and
the configuration document stay loosely typed here; the report engine
normalizes them itself.
"""

from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field, field_validator


class ReportRequest(BaseModel):
    """
    Body of POST /api/reports and POST /api/datasets.

    Attributes:
        drivers: Driver records (snake_case or camelCase fields)
        config: Configuration document; the configured file is used when omitted
    """
    drivers: List[Dict[str, Any]] = Field(..., description="Driver records")
    config: Optional[Dict[str, Any]] = Field(default=None, description="Report configuration document")

    @field_validator("drivers", mode="before")
    @classmethod
    def wrap_single_driver(cls, v: Any) -> Any:
        """Accept a single driver object as a one-driver batch."""
        if isinstance(v, dict):
            return [v]
        return v


class ReportResponse(BaseModel):
    """Generated reports, one per driver in input order."""
    reports: List[Dict[str, Any]]


class DatasetResponse(BaseModel):
    """Token for a stored dataset."""
    token: str
    expiresIn: int = Field(..., description="Seconds until the token expires")
    drivers: List[Any] = Field(default_factory=list, description="Driver ids in the dataset")
