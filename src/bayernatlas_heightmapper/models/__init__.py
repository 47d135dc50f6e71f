"""Configuration, wire, and report models for bayernatlas-heightmapper."""

from .config import RunConfig, scaled_dimension
from .responses import ErrorResponse, PlanResponse, RunSummary, format_response
from .wire import Altitudes, GridRequest, GridResponse, HeightPoint

__all__ = [
    "RunConfig",
    "scaled_dimension",
    "GridRequest",
    "GridResponse",
    "HeightPoint",
    "Altitudes",
    "ErrorResponse",
    "PlanResponse",
    "RunSummary",
    "format_response",
]
