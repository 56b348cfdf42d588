"""
Company Routes

GET /companies - Company names in use (optional ?search=)
GET /companies/stats - Per-company summary for every company (optional ?name=)
GET /companies/{company_name} - Summary for one company
GET /companies/{company_name}/students - Recruiter view (filter, sort, statistics)
GET /companies/{company_name}/export - Recruiter view spreadsheet

Companies are not stored on their own: a company exists as soon as a
student names it in a submission.
"""

from datetime import datetime, timezone
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response

from app.services.aggregation_service import (
    compute_company_records, compute_statistics, filter_students, search_companies, sort_students
)
from app.services.export_service import XLSX_MEDIA_TYPE, build_recruiter_workbook
from app.services.mongo_service import StudentRecordService, get_student_service
from app.services.validation_service import validate_company_search
from app.schemas.schemas import (
    ApiResponse, CompanyRecord, FilterCriteria, RecruiterViewResponse, SortDirection,
    SortField, StatusMatch, VerificationFilter
)

router = APIRouter(prefix="/companies", tags=["Companies"])


def recruiter_criteria(
    search: Optional[str] = Query(None),
    status: Optional[str] = Query(None, description="Exact status: joined, not_joined, left_company, still_working"),
    verification: VerificationFilter = Query(VerificationFilter.all),
) -> FilterCriteria:
    """Recruiter view filters. Status compares the stored value exactly."""
    return FilterCriteria(search=search, status=status, status_match=StatusMatch.exact, verification=verification)


def safe_file_stem(company_name: str) -> str:
    return "".join(ch if ch.isascii() and (ch.isalnum() or ch in "-_") else "_" for ch in company_name)


def recruiter_view(
    company_name: str,
    criteria: FilterCriteria,
    sort_field: SortField,
    sort_direction: SortDirection,
    service: StudentRecordService
) -> RecruiterViewResponse:
    records = service.list_by_company(company_name)
    view = sort_students(filter_students(records, criteria), sort_field, sort_direction)
    return RecruiterViewResponse(
        company=company_name,
        students=view,
        total=len(records),
        statistics=compute_statistics(view),
    )


@router.get("", response_model=ApiResponse[List[str]])
async def list_companies(
    search: Optional[str] = Query(None, max_length=100),
    service: StudentRecordService = Depends(get_student_service)
):
    """Distinct company names, filtered by a case-insensitive search term."""
    return ApiResponse(data=search_companies(service.distinct_companies(), search))


@router.get("/stats", response_model=ApiResponse[List[CompanyRecord]])
async def company_stats(
    name: Optional[str] = Query(None, max_length=100, description="Only this company"),
    service: StudentRecordService = Depends(get_student_service)
):
    """
    Summary row for every company, or only for `name`.

    /companies/stats shadows /companies/{company_name} for a company
    literally named "stats"; use /companies/stats?name=stats for it.
    """
    records = service.list_by_company(name) if name else service.list_all()
    return ApiResponse(data=compute_company_records(records))


@router.get("/{company_name}", response_model=ApiResponse[CompanyRecord])
async def company_details(company_name: str, service: StudentRecordService = Depends(get_student_service)):
    """Summary for one company."""
    result = validate_company_search({"companyName": company_name})
    if not result.is_valid:
        raise HTTPException(status_code=400, detail=result.summary())

    records = compute_company_records(service.list_by_company(result.value.company_name))
    if not records:
        raise HTTPException(status_code=404, detail=f"No students found for company {company_name}")
    return ApiResponse(data=records[0])


@router.get("/{company_name}/students", response_model=ApiResponse[RecruiterViewResponse])
async def company_students(
    company_name: str,
    criteria: FilterCriteria = Depends(recruiter_criteria),
    sort_field: SortField = Query(SortField.name, alias="sortField"),
    sort_direction: SortDirection = Query(SortDirection.asc, alias="sortDirection"),
    service: StudentRecordService = Depends(get_student_service)
):
    """
    Recruiter view of one company's students.

    `total` counts all of the company's records; `students` and
    `statistics` describe the filtered view.
    """
    return ApiResponse(data=recruiter_view(company_name, criteria, sort_field, sort_direction, service))


@router.get("/{company_name}/export")
async def export_company(
    company_name: str,
    criteria: FilterCriteria = Depends(recruiter_criteria),
    sort_field: SortField = Query(SortField.name, alias="sortField"),
    sort_direction: SortDirection = Query(SortDirection.asc, alias="sortDirection"),
    service: StudentRecordService = Depends(get_student_service)
):
    """Download the recruiter view as an .xlsx workbook."""
    view = recruiter_view(company_name, criteria, sort_field, sort_direction, service)
    if view.total == 0:
        raise HTTPException(status_code=404, detail="No data available to export")

    content = build_recruiter_workbook(company_name, view.students, view.statistics)
    timestamp = datetime.now(timezone.utc).isoformat()[:19].replace(":", "-")
    filename = f"{safe_file_stem(company_name)}_Students_Report_{timestamp}.xlsx"
    return Response(
        content=content,
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'}
    )
