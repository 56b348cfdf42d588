"""
Validation Service - accept or reject submissions before they reach the store.

Three payloads are checked:
1. Student submission   (POST /students)
2. Recruiter verification (POST /students/{id}/verify)
3. Partial update         (PUT /students/{id}), against the stored record

RULES:
- Every violated rule is reported, not just the first one,
  so the form can highlight all problems at once.
- Nothing is raised. The result carries either the validated model
  or a list of FieldError(field, message).
- The current year is a parameter. Rules never read the clock.
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Any, Dict, Generic, List, Optional, TypeVar

from pydantic import EmailStr, TypeAdapter, ValidationError

from app.schemas.schemas import (
    CompanySearch, EmploymentStatus, FieldError, RecruiterVerification, StudentCreate,
    StudentRecord, StudentUpdate, normalize_rating
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

MIN_BATCH_YEAR = 2010
MAX_FUTURE_YEARS = 5
FEEDBACK_MAX_LENGTH = 1000

_email_adapter = TypeAdapter(EmailStr)


# ============================================================
# RESULT TYPE
# ============================================================

@dataclass
class ValidationResult(Generic[T]):
    """Outcome of a validation pass: a value, or the errors that prevented it."""

    value: Optional[T] = None
    errors: List[FieldError] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def error_map(self) -> Dict[str, str]:
        """Field name -> message. Several messages on one field are joined."""
        out: Dict[str, str] = {}
        for err in self.errors:
            out[err.field] = f"{out[err.field]}. {err.message}" if err.field in out else err.message
        return out

    def summary(self) -> str:
        """One line for a toast / error banner."""
        return ". ".join(err.message for err in self.errors)


# ============================================================
# RULE HELPERS
# ============================================================

def _clean_text(value: Any) -> Any:
    return value.strip() if isinstance(value, str) else value


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _is_number(value: Any) -> bool:
    """Finite int or float. NaN, infinities and ints too large for a float are rejected."""
    if not isinstance(value, (int, float)) or isinstance(value, bool):
        return False
    try:
        return math.isfinite(value)
    except OverflowError:
        return False


def _check_length(
    errors: List[FieldError],
    key: str,
    value: Any,
    label: str,
    min_len: int,
    max_len: int,
    required: bool = True
) -> None:
    if value is None or value == "":
        if required:
            errors.append(FieldError(field=key, message=f"{label} is required"))
        return
    if not isinstance(value, str):
        errors.append(FieldError(field=key, message=f"{label} must be text"))
        return
    if len(value) < min_len:
        errors.append(FieldError(field=key, message=f"{label} must be at least {min_len} characters"))
    elif len(value) > max_len:
        errors.append(FieldError(field=key, message=f"{label} must be less than {max_len} characters"))


def _check_year(
    errors: List[FieldError],
    key: str,
    value: Any,
    label: str,
    min_year: int,
    max_year: int,
    max_future_years: int
) -> bool:
    """Returns True when the value is a usable integer year (in range or not)."""
    if value is None:
        errors.append(FieldError(field=key, message=f"{label} is required"))
        return False
    if not _is_int(value):
        errors.append(FieldError(field=key, message=f"{label} must be a whole number"))
        return False
    if value < min_year:
        errors.append(FieldError(field=key, message=f"{label} must be {min_year} or later"))
    elif value > max_year:
        errors.append(FieldError(
            field=key,
            message=f"{label} cannot be more than {max_future_years} years in the future"
        ))
    return True


# ============================================================
# STUDENT SUBMISSION
# ============================================================

def validate_student_submission(
    data: Dict[str, Any],
    current_year: int,
    min_year: int = MIN_BATCH_YEAR,
    max_future_years: int = MAX_FUTURE_YEARS
) -> ValidationResult[StudentCreate]:
    """
    Validate a student placement submission.

    Args:
        data: Raw JSON body (camelCase keys)
        current_year: Upper year bound is current_year + max_future_years

    Returns:
        ValidationResult with a StudentCreate on success.
        When isPlaced is false, company and package are ignored and dropped.
    """
    errors: List[FieldError] = []
    max_year = current_year + max_future_years

    name = _clean_text(data.get("name"))
    registration_number = _clean_text(data.get("registrationNumber"))
    course = _clean_text(data.get("course"))
    company = _clean_text(data.get("company"))
    package = data.get("package")
    student_feedback = _clean_text(data.get("studentFeedback"))
    is_placed = data.get("isPlaced", False)

    _check_length(errors, "name", name, "Name", 2, 100)
    _check_length(errors, "registrationNumber", registration_number, "Registration number", 5, 20)
    _check_length(errors, "course", course, "Course", 2, 100)

    start = data.get("batchStartYear")
    end = data.get("batchEndYear")
    start_ok = _check_year(errors, "batchStartYear", start, "Batch start year", min_year, max_year, max_future_years)
    end_ok = _check_year(errors, "batchEndYear", end, "Batch end year", min_year, max_year, max_future_years)
    if start_ok and end_ok and end <= start:
        errors.append(FieldError(field="batchEndYear", message="Batch end year must be after batch start year"))

    if not isinstance(is_placed, bool):
        errors.append(FieldError(field="isPlaced", message="Placement status must be true or false"))
    elif is_placed:
        package_ok = _is_number(package)
        if not company or not isinstance(company, str) or not package_ok:
            errors.append(FieldError(
                field="company",
                message="Company and package are required when student is placed"
            ))
        if package_ok and package < 0:
            errors.append(FieldError(field="package", message="Package must be non-negative"))

    _check_length(
        errors, "studentFeedback", student_feedback, "Feedback", 0, FEEDBACK_MAX_LENGTH, required=False
    )

    if errors:
        logger.info("Student submission rejected: %d error(s)", len(errors))
        return ValidationResult(errors=errors)

    value = StudentCreate(
        name=name,
        registration_number=registration_number,
        course=course,
        batch_start_year=start,
        batch_end_year=end,
        is_placed=is_placed,
        company=company if is_placed else None,
        package=float(package) if is_placed else None,
        student_feedback=student_feedback or None,
    )
    return ValidationResult(value=value)


# ============================================================
# RECRUITER VERIFICATION
# ============================================================

def validate_recruiter_verification(data: Dict[str, Any]) -> ValidationResult[RecruiterVerification]:
    """
    Validate a recruiter's verification of one student.

    Rating is optional: absent, null or 0 means "not rated".
    A given rating must be a whole number from 1 to 5.
    """
    errors: List[FieldError] = []

    student_id = _clean_text(data.get("studentId"))
    if not student_id or not isinstance(student_id, str):
        errors.append(FieldError(field="studentId", message="Student ID is required"))

    feedback = _clean_text(data.get("recruiterFeedback"))
    _check_length(errors, "recruiterFeedback", feedback, "Feedback", 10, FEEDBACK_MAX_LENGTH)

    rating = normalize_rating(data.get("recruiterRating"))
    if rating is not None:
        if not _is_int(rating):
            errors.append(FieldError(field="recruiterRating", message="Rating must be a whole number"))
        elif rating < 1:
            errors.append(FieldError(field="recruiterRating", message="Rating must be at least 1"))
        elif rating > 5:
            errors.append(FieldError(field="recruiterRating", message="Rating must be at most 5"))

    status = data.get("employmentStatus")
    allowed = [s.value for s in EmploymentStatus]
    if not status:
        errors.append(FieldError(field="employmentStatus", message="Employment status is required"))
    elif status not in allowed:
        errors.append(FieldError(
            field="employmentStatus",
            message=f"Employment status must be one of: {', '.join(allowed)}"
        ))

    recruiter_name = _clean_text(data.get("recruiterName")) or None
    recruiter_position = _clean_text(data.get("recruiterPosition")) or None
    _check_length(errors, "recruiterName", recruiter_name, "Recruiter name", 1, 100, required=False)
    _check_length(errors, "recruiterPosition", recruiter_position, "Recruiter position", 1, 100, required=False)

    recruiter_email = _clean_text(data.get("recruiterEmail")) or None
    if recruiter_email is not None:
        try:
            _email_adapter.validate_python(recruiter_email)
        except ValidationError:
            errors.append(FieldError(field="recruiterEmail", message="Please enter a valid email address"))

    if errors:
        logger.info("Recruiter verification rejected: %d error(s)", len(errors))
        return ValidationResult(errors=errors)

    value = RecruiterVerification(
        student_id=student_id,
        recruiter_feedback=feedback,
        recruiter_rating=rating,
        employment_status=status,
        recruiter_name=recruiter_name,
        recruiter_email=recruiter_email,
        recruiter_position=recruiter_position,
    )
    return ValidationResult(value=value)


# ============================================================
# PARTIAL UPDATE
# ============================================================

def validate_record_update(existing: StudentRecord, data: StudentUpdate) -> ValidationResult[StudentUpdate]:
    """
    Check a partial update against the record it will be merged into.

    The merged record must still hold:
    - placed records have a company and a package
    - verified records have an employment status and recruiter feedback
      of at least 10 characters
    """
    merged = existing.model_copy(update={name: getattr(data, name) for name in data.model_fields_set})
    errors: List[FieldError] = []

    if merged.is_placed and (not (merged.company or "").strip() or merged.package is None):
        errors.append(FieldError(
            field="company",
            message="Company and package are required when student is placed"
        ))

    if merged.is_verified:
        if not merged.employment_status:
            errors.append(FieldError(
                field="employmentStatus",
                message="Employment status is required for a verified student"
            ))
        feedback = (merged.recruiter_feedback or "").strip()
        if len(feedback) < 10:
            errors.append(FieldError(field="recruiterFeedback", message="Feedback must be at least 10 characters"))

    if errors:
        logger.info("Update of record %s rejected: %d error(s)", existing.id, len(errors))
        return ValidationResult(errors=errors)
    return ValidationResult(value=data)


# ============================================================
# COMPANY SEARCH
# ============================================================

def validate_company_search(data: Dict[str, Any]) -> ValidationResult[CompanySearch]:
    """Validate the company picker's search box."""
    errors: List[FieldError] = []
    company_name = _clean_text(data.get("companyName"))
    _check_length(errors, "companyName", company_name, "Company name", 1, 100)
    if errors:
        return ValidationResult(errors=errors)
    return ValidationResult(value=CompanySearch(company_name=company_name))
