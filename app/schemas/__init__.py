"""
Schemas module - Placement record models and API contract.

Difference from services:
- Schemas: data shapes (what is stored, what the client sends/receives)
- Services: the rules and computations applied to them
"""

from app.schemas.schemas import (
    StudentRecord, StudentCreate, StudentUpdate, RecruiterVerification,
    FilterCriteria, SummaryStats, DashboardMetrics, ApiResponse, FieldError
)

__all__ = [
    "StudentRecord",
    "StudentCreate",
    "StudentUpdate",
    "RecruiterVerification",
    "FilterCriteria",
    "SummaryStats",
    "DashboardMetrics",
    "ApiResponse",
    "FieldError",
]
