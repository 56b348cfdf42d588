"""
Student Routes

POST /students - Submit a placement record
GET /students - List all records
GET /students/company/{company_name} - Records for one company
GET /students/dashboard - Analytics dashboard (filter, sort, page, statistics)
GET /students/export - Dashboard spreadsheet for the current filters
PUT /students/{student_id} - Partial update (e.g. employment status)
POST /students/{student_id}/verify - Recruiter verification
"""

import logging
from datetime import datetime, timezone
from typing import List, Optional

from bson.errors import InvalidId
from fastapi import APIRouter, Body, Depends, HTTPException, Query, Response
from fastapi.responses import JSONResponse
from pymongo.errors import DuplicateKeyError

from app.core.config import get_settings
from app.services.aggregation_service import (
    compute_batch_stats, compute_company_stats, compute_course_stats,
    compute_dashboard_metrics, compute_package_distribution, filter_options,
    filter_students, paginate, sort_students
)
from app.services.export_service import XLSX_MEDIA_TYPE, build_dashboard_workbook
from app.services.mongo_service import StudentRecordService, get_student_service
from app.services.validation_service import (
    ValidationResult, validate_record_update, validate_recruiter_verification,
    validate_student_submission
)
from app.schemas.schemas import (
    ApiResponse, DashboardResponse, FilterCriteria, SortDirection, SortField,
    StatusMatch, StudentRecord, StudentUpdate, VerificationFilter
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/students", tags=["Students"])


def current_year() -> int:
    """Dependency so tests can pin the year used for batch-year bounds."""
    return datetime.now(timezone.utc).year


def validation_failed(result: ValidationResult) -> JSONResponse:
    """422 envelope: summary in error, field -> message map in data."""
    body = ApiResponse(success=False, error=result.summary(), data=result.error_map())
    return JSONResponse(status_code=422, content=body.model_dump())


def dashboard_criteria(
    search: Optional[str] = Query(None),
    company: Optional[str] = Query(None),
    course: Optional[str] = Query(None),
    batch: Optional[int] = Query(None),
    status: Optional[str] = Query(None, description="Normalized bucket: joined, left, not_joined, pending, unknown"),
    verification: VerificationFilter = Query(VerificationFilter.all),
) -> FilterCriteria:
    """Dashboard filters. Status compares normalized buckets."""
    return FilterCriteria(
        search=search, company=company, course=course, batch=batch,
        status=status, status_match=StatusMatch.normalized, verification=verification
    )


@router.post("", response_model=ApiResponse[StudentRecord], status_code=201)
async def submit_student(
    data: dict = Body(...),
    year: int = Depends(current_year),
    service: StudentRecordService = Depends(get_student_service)
):
    """Validate and store a student's placement submission (unverified)."""
    settings = get_settings()
    result = validate_student_submission(
        data, current_year=year,
        min_year=settings.min_batch_year, max_future_years=settings.max_future_years
    )
    if not result.is_valid:
        return validation_failed(result)

    try:
        record = service.insert(result.value)
    except DuplicateKeyError:
        raise HTTPException(
            status_code=409,
            detail=f"Registration number {result.value.registration_number} has already been submitted"
        )

    return ApiResponse(data=record, message="Student placement submitted successfully")


@router.get("", response_model=ApiResponse[List[StudentRecord]])
async def list_students(service: StudentRecordService = Depends(get_student_service)):
    """All stored records."""
    return ApiResponse(data=service.list_all())


@router.get("/company/{company_name}", response_model=ApiResponse[List[StudentRecord]])
async def list_students_by_company(
    company_name: str,
    service: StudentRecordService = Depends(get_student_service)
):
    """Records for one company (recruiter view source list)."""
    return ApiResponse(data=service.list_by_company(company_name))


@router.get("/dashboard", response_model=ApiResponse[DashboardResponse])
async def dashboard(
    criteria: FilterCriteria = Depends(dashboard_criteria),
    sort_field: SortField = Query(SortField.name, alias="sortField"),
    sort_direction: SortDirection = Query(SortDirection.asc, alias="sortDirection"),
    page: int = Query(1, ge=1),
    page_size: Optional[int] = Query(None, alias="pageSize", ge=1),
    service: StudentRecordService = Depends(get_student_service)
):
    """
    Analytics dashboard.

    Every statistic describes the filtered view; the page only limits
    which records are returned in `students`.
    """
    settings = get_settings()
    page_size = min(page_size or settings.default_page_size, settings.max_page_size)

    records = service.list_all()
    view = sort_students(filter_students(records, criteria), sort_field, sort_direction)
    page_records, total_pages = paginate(view, page, page_size)

    return ApiResponse(data=DashboardResponse(
        students=page_records,
        total=len(view),
        page=page,
        page_size=page_size,
        total_pages=total_pages,
        metrics=compute_dashboard_metrics(view),
        company_stats=compute_company_stats(view),
        course_stats=compute_course_stats(view),
        batch_stats=compute_batch_stats(view),
        package_distribution=compute_package_distribution(view),
        filter_options=filter_options(records),
    ))


@router.get("/export")
async def export_dashboard(
    criteria: FilterCriteria = Depends(dashboard_criteria),
    sort_field: SortField = Query(SortField.name, alias="sortField"),
    sort_direction: SortDirection = Query(SortDirection.asc, alias="sortDirection"),
    service: StudentRecordService = Depends(get_student_service)
):
    """Download the filtered, sorted dashboard view as an .xlsx workbook."""
    view = sort_students(filter_students(service.list_all(), criteria), sort_field, sort_direction)
    content = build_dashboard_workbook(view, compute_dashboard_metrics(view))
    filename = f"placement_analytics_{datetime.now(timezone.utc).date().isoformat()}.xlsx"
    return Response(
        content=content,
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'}
    )


@router.put("/{student_id}", response_model=ApiResponse[StudentRecord])
async def update_student(
    student_id: str,
    data: StudentUpdate,
    service: StudentRecordService = Depends(get_student_service)
):
    """
    Update only the provided fields (recruiters use this to set employment status).

    The record as it would look after the update must still be consistent:
    a placed student keeps a company and package, a verified student keeps
    an employment status and recruiter feedback.
    """
    if not data.model_fields_set:
        raise HTTPException(status_code=400, detail="No fields to update")
    try:
        existing = service.get_by_id(student_id)
    except InvalidId:
        raise HTTPException(status_code=400, detail=f"Invalid student id: {student_id}")
    if existing is None:
        raise HTTPException(status_code=404, detail="Student not found")

    result = validate_record_update(existing, data)
    if not result.is_valid:
        return validation_failed(result)

    record = service.update(student_id, result.value)
    if record is None:
        raise HTTPException(status_code=404, detail="Student not found")
    return ApiResponse(data=record, message="Student updated successfully")


@router.post("/{student_id}/verify", response_model=ApiResponse[StudentRecord])
async def verify_student(
    student_id: str,
    data: dict = Body(...),
    service: StudentRecordService = Depends(get_student_service)
):
    """
    Recruiter verification.

    The path id wins over any studentId in the body. When the body has no
    employmentStatus, the status the recruiter already set on the record is used.
    A student can only be verified once.
    """
    try:
        existing = service.get_by_id(student_id)
    except InvalidId:
        raise HTTPException(status_code=400, detail=f"Invalid student id: {student_id}")
    if existing is None:
        raise HTTPException(status_code=404, detail="Student not found")
    if existing.is_verified:
        raise HTTPException(status_code=409, detail="Student is already verified")

    payload = {**data, "studentId": student_id}
    if not payload.get("employmentStatus"):
        if not existing.employment_status:
            raise HTTPException(
                status_code=400,
                detail="Please select an employment status before verifying the student."
            )
        payload["employmentStatus"] = existing.employment_status

    result = validate_recruiter_verification(payload)
    if not result.is_valid:
        return validation_failed(result)

    record = service.verify(student_id, result.value)
    if record is None:
        # Verified by someone else between the read and the update
        raise HTTPException(status_code=409, detail="Student is already verified")

    rating = result.value.recruiter_rating
    suffix = f" with {rating}/5 rating" if rating else " (no rating provided)"
    return ApiResponse(data=record, message=f"{record.name} verified successfully{suffix}")
