"""
Pydantic Schemas - Placement records, engine inputs and API payloads

All schemas in one file for simplicity.

JSON keys are camelCase (the contract the browser client already speaks);
Python attributes stay snake_case. Every model accepts either form.
"""

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from pydantic.alias_generators import to_camel
from typing import Any, Optional, List, Generic, TypeVar
from datetime import datetime
from enum import Enum


T = TypeVar("T")


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def normalize_rating(value: Any) -> Any:
    """
    Map the legacy "no rating" sentinel to absence.

    The verification form sends 0 when the recruiter skips the stars.
    Stored records keep the rating optional instead of overloading 0.
    """
    if value == 0 and not isinstance(value, bool):
        return None
    return value


# ============================================================
# ENUMS
# ============================================================

class EmploymentStatus(str, Enum):
    joined = "joined"
    not_joined = "not_joined"
    left_company = "left_company"
    still_working = "still_working"


class NormalizedStatus(str, Enum):
    """Display/aggregation buckets for the inconsistent upstream vocabulary."""
    joined = "joined"
    left = "left"
    not_joined = "not_joined"
    pending = "pending"
    unknown = "unknown"


class SortField(str, Enum):
    name = "name"
    registration_number = "registrationNumber"
    course = "course"
    package = "package"
    submitted_at = "submittedAt"
    verified_at = "verifiedAt"
    batch_start_year = "batchStartYear"


class SortDirection(str, Enum):
    asc = "asc"
    desc = "desc"


class VerificationFilter(str, Enum):
    all = "all"
    verified = "verified"
    unverified = "unverified"
    pending = "pending"  # recruiter view spelling of "unverified"


class StatusMatch(str, Enum):
    exact = "exact"            # recruiter view
    normalized = "normalized"  # analytics dashboard


# ============================================================
# STUDENT SCHEMAS
# ============================================================

class StudentCreate(CamelModel):
    """A student submission that passed validation."""
    name: str = Field(..., min_length=2, max_length=100)
    registration_number: str = Field(..., min_length=5, max_length=20)
    course: str = Field(..., min_length=2, max_length=100)
    batch_start_year: int
    batch_end_year: int
    is_placed: bool
    company: Optional[str] = None
    package: Optional[float] = Field(None, ge=0)
    student_feedback: Optional[str] = Field(None, max_length=1000)


class StudentUpdate(CamelModel):
    """Partial update. Only provided fields are written."""
    company: Optional[str] = Field(None, min_length=1, max_length=100)
    package: Optional[float] = Field(None, ge=0)
    is_placed: Optional[bool] = None
    employment_status: Optional[EmploymentStatus] = None
    student_feedback: Optional[str] = Field(None, max_length=1000)
    recruiter_feedback: Optional[str] = Field(None, max_length=1000)
    recruiter_rating: Optional[int] = Field(None, ge=1, le=5)

    @field_validator("recruiter_rating", mode="before")
    @classmethod
    def unrated_as_none(cls, value: Any) -> Any:
        """0 clears the rating, like null."""
        return normalize_rating(value)


class RecruiterVerification(CamelModel):
    """A recruiter verification that passed validation.

    recruiter_rating is None when the recruiter chose not to rate.
    """
    student_id: str = Field(..., min_length=1)
    recruiter_feedback: str = Field(..., min_length=10, max_length=1000)
    recruiter_rating: Optional[int] = Field(None, ge=1, le=5)
    employment_status: EmploymentStatus
    recruiter_name: Optional[str] = None
    recruiter_email: Optional[EmailStr] = None
    recruiter_position: Optional[str] = None


class CompanySearch(CamelModel):
    company_name: str = Field(..., min_length=1, max_length=100)


class StudentRecord(CamelModel):
    """One stored placement record.

    employment_status stays a plain string: stored data uses more spellings
    than the four recruiter choices (see normalize_employment_status).
    """
    id: Optional[str] = Field(None, alias="_id")
    name: str
    registration_number: str
    course: str
    batch_start_year: int
    batch_end_year: Optional[int] = None
    is_placed: bool = False
    company: Optional[str] = None
    package: Optional[float] = None
    employment_status: Optional[str] = None
    is_verified: bool = False
    recruiter_rating: Optional[int] = None
    recruiter_feedback: Optional[str] = None
    student_feedback: Optional[str] = None
    recruiter_name: Optional[str] = None
    recruiter_email: Optional[str] = None
    recruiter_position: Optional[str] = None
    submitted_at: Optional[datetime] = None
    verified_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# ============================================================
# ENGINE INPUTS
# ============================================================

class FilterCriteria(BaseModel):
    """Filters for a record snapshot. None / "all" / "" disables a criterion."""
    search: Optional[str] = None
    company: Optional[str] = None
    course: Optional[str] = None
    batch: Optional[int] = None
    status: Optional[str] = None
    status_match: StatusMatch = StatusMatch.normalized
    verification: VerificationFilter = VerificationFilter.all


# ============================================================
# STATISTICS SCHEMAS
# ============================================================

class SummaryStats(CamelModel):
    """Recruiter view statistics. Status counts use exact matching."""
    total_students: int = 0
    verified_students: int = 0
    pending_students: int = 0
    placed_students: int = 0
    highest_package: float = 0
    lowest_package: float = 0
    average_package: float = 0
    median_package: float = 0
    joined_count: int = 0
    not_joined_count: int = 0
    left_company_count: int = 0
    still_working_count: int = 0


class EmploymentDistribution(CamelModel):
    """Analytics dashboard counts per normalized status bucket."""
    joined: int = 0
    left: int = 0
    not_joined: int = 0
    pending: int = 0
    unknown: int = 0


class DashboardMetrics(CamelModel):
    total: int = 0
    placed: int = 0
    verified: int = 0
    placement_rate: str = "0.0"
    avg_package: float = 0
    highest_package: float = 0
    avg_rating: float = 0
    employment: EmploymentDistribution = Field(default_factory=EmploymentDistribution)


class CompanyStat(CamelModel):
    company: str
    count: int
    avg_package: float = 0
    max_package: float = 0
    avg_rating: float = 0


class CourseStat(CamelModel):
    course: str
    total: int
    placed: int
    placement_rate: str


class BatchStat(CamelModel):
    year: int
    total: int
    placed: int
    placement_rate: str


class PackageBucket(CamelModel):
    label: str
    count: int


class CompanyRecord(CamelModel):
    name: str
    total_students: int = 0
    verified_students: int = 0
    avg_package: float = 0
    avg_rating: float = 0
    still_working: int = 0
    left_company: int = 0
    not_joined: int = 0


class FilterOptions(CamelModel):
    companies: List[str] = []
    courses: List[str] = []
    batches: List[int] = []
    employment_statuses: List[str] = []


# ============================================================
# VIEW SCHEMAS
# ============================================================

class DashboardResponse(CamelModel):
    students: List[StudentRecord]
    total: int
    page: int
    page_size: int
    total_pages: int
    metrics: DashboardMetrics
    company_stats: List[CompanyStat]
    course_stats: List[CourseStat]
    batch_stats: List[BatchStat]
    package_distribution: List[PackageBucket]
    filter_options: FilterOptions


class RecruiterViewResponse(CamelModel):
    company: str
    students: List[StudentRecord]
    total: int
    statistics: SummaryStats


# ============================================================
# GENERIC SCHEMAS
# ============================================================

class FieldError(BaseModel):
    field: str
    message: str


class ApiResponse(BaseModel, Generic[T]):
    """Envelope for every JSON response: {success, data?, message?, error?}."""
    success: bool = True
    data: Optional[T] = None
    message: Optional[str] = None
    error: Optional[str] = None


class HealthResponse(BaseModel):
    status: str
    mongodb: str
