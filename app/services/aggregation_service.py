"""
Aggregation Service - filtered, sorted and summarized views of placement records.

PURPOSE:
Everything the recruiter view and the analytics dashboard display is derived
here from a snapshot of StudentRecord objects supplied by the caller.

RULES:
- Pure functions. The input list is never mutated and nothing is cached.
- Same input -> same output (no clock, no randomness).
- Statistics describe whatever list they are given; callers pass the
  current filtered view, not the full collection.

TWO STATUS GROUPINGS (kept separate on purpose):
- Recruiter view: exact string match on employmentStatus
  (joined / not_joined / left_company / still_working).
- Analytics dashboard: normalize_employment_status() buckets
  (joined / left / not_joined / pending / unknown).
"""

import math
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from app.schemas.schemas import (
    BatchStat, CompanyRecord, CompanyStat, CourseStat, DashboardMetrics,
    EmploymentDistribution, EmploymentStatus, FilterCriteria, FilterOptions,
    NormalizedStatus, PackageBucket, SortDirection, SortField, StatusMatch,
    StudentRecord, SummaryStats, VerificationFilter
)


# ============================================================
# STATUS NORMALIZATION
# ============================================================

_STATUS_ALIASES: Dict[str, NormalizedStatus] = {
    "joined": NormalizedStatus.joined,
    "working": NormalizedStatus.joined,
    "still_working": NormalizedStatus.joined,
    "active": NormalizedStatus.joined,
    "left_company": NormalizedStatus.left,
    "left": NormalizedStatus.left,
    "resigned": NormalizedStatus.left,
    "not_joined": NormalizedStatus.not_joined,
    "notjoined": NormalizedStatus.not_joined,
    "pending": NormalizedStatus.pending,
}


def normalize_employment_status(raw: Any) -> NormalizedStatus:
    """
    Collapse the many spellings found in stored data into five buckets.

    Case-insensitive and whitespace-tolerant. Never raises: None, empty
    and unrecognized values all map to "unknown".
    """
    if isinstance(raw, Enum):
        raw = raw.value
    if not raw:
        return NormalizedStatus.unknown
    return _STATUS_ALIASES.get(str(raw).strip().lower(), NormalizedStatus.unknown)


# ============================================================
# FILTERING
# ============================================================

def _is_active(value: Any) -> bool:
    """A criterion is disabled by None, "" or the "all" sentinel."""
    return value is not None and value != "" and value != "all"


def _matches_search(record: StudentRecord, term: str) -> bool:
    return (
        term in (record.name or "").lower()
        or term in (record.registration_number or "").lower()
        or term in (record.course or "").lower()
    )


def _matches_status(record: StudentRecord, status: str, mode: StatusMatch) -> bool:
    if mode == StatusMatch.exact:
        return record.employment_status == status
    return normalize_employment_status(record.employment_status) == normalize_employment_status(status)


def filter_students(records: Sequence[StudentRecord], criteria: FilterCriteria) -> List[StudentRecord]:
    """
    Apply every active criterion (logical AND). Input order is preserved.

    search matches name, registration number or course (case-insensitive substring).
    """
    term = criteria.search.strip().lower() if criteria.search else ""
    verification = criteria.verification

    out = []
    for record in records:
        if term and not _matches_search(record, term):
            continue
        if _is_active(criteria.company) and record.company != criteria.company:
            continue
        if _is_active(criteria.course) and record.course != criteria.course:
            continue
        if criteria.batch is not None and record.batch_start_year != criteria.batch:
            continue
        if _is_active(criteria.status) and not _matches_status(record, criteria.status, criteria.status_match):
            continue
        if verification == VerificationFilter.verified and not record.is_verified:
            continue
        if verification in (VerificationFilter.unverified, VerificationFilter.pending) and record.is_verified:
            continue
        out.append(record)
    return out


# ============================================================
# SORTING
# ============================================================

_EPOCH = 0.0


def _timestamp(value: Optional[datetime]) -> float:
    """Seconds since epoch; missing dates sort as the epoch. Naive values are UTC."""
    if value is None:
        return _EPOCH
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.timestamp()


_SORT_KEYS: Dict[SortField, Callable[[StudentRecord], Any]] = {
    SortField.name: lambda r: (r.name or "").lower(),
    SortField.registration_number: lambda r: (r.registration_number or "").lower(),
    SortField.course: lambda r: (r.course or "").lower(),
    SortField.package: lambda r: r.package or 0,
    SortField.submitted_at: lambda r: _timestamp(r.submitted_at),
    SortField.verified_at: lambda r: _timestamp(r.verified_at),
    SortField.batch_start_year: lambda r: r.batch_start_year or 0,
}


def sort_students(
    records: Sequence[StudentRecord],
    field: SortField = SortField.name,
    direction: SortDirection = SortDirection.asc
) -> List[StudentRecord]:
    """
    Return a new list ordered by one field.

    Stable in both directions: records that tie keep their input order,
    so sorting by a secondary key first and then a primary key works.
    """
    key = _SORT_KEYS[SortField(field)]
    return sorted(records, key=key, reverse=SortDirection(direction) == SortDirection.desc)


def paginate(records: Sequence[StudentRecord], page: int, page_size: int) -> Tuple[List[StudentRecord], int]:
    """1-based page slice and the total page count."""
    page = max(page, 1)
    total_pages = math.ceil(len(records) / page_size) if page_size > 0 else 0
    start = (page - 1) * page_size
    return list(records[start:start + page_size]), total_pages


# ============================================================
# SUMMARY STATISTICS
# ============================================================

def _packages(records: Iterable[StudentRecord]) -> List[float]:
    return [r.package for r in records if r.package and r.package > 0]


def _rate(placed: int, total: int) -> str:
    """Placement rate as shown on screen: percentage with one decimal."""
    if total == 0:
        return "0.0"
    return f"{placed / total * 100:.1f}"


def compute_statistics(records: Sequence[StudentRecord]) -> SummaryStats:
    """
    Recruiter view statistics over the given records.

    Packages are the values present and > 0.
    medianPackage is the element at index n // 2 of the ascending list
    (for even n that is the upper of the two middle values, not their mean).
    """
    packages = sorted(_packages(records))
    total = len(records)
    verified = sum(1 for r in records if r.is_verified)

    def count_status(status: EmploymentStatus) -> int:
        return sum(1 for r in records if r.employment_status == status.value)

    return SummaryStats(
        total_students=total,
        verified_students=verified,
        pending_students=total - verified,
        placed_students=sum(1 for r in records if r.is_placed),
        highest_package=packages[-1] if packages else 0,
        lowest_package=packages[0] if packages else 0,
        average_package=sum(packages) / len(packages) if packages else 0,
        median_package=packages[len(packages) // 2] if packages else 0,
        joined_count=count_status(EmploymentStatus.joined),
        not_joined_count=count_status(EmploymentStatus.not_joined),
        left_company_count=count_status(EmploymentStatus.left_company),
        still_working_count=count_status(EmploymentStatus.still_working),
    )


def compute_employment_distribution(records: Iterable[StudentRecord]) -> EmploymentDistribution:
    """Analytics dashboard counts per normalized status bucket."""
    counts = {bucket.value: 0 for bucket in NormalizedStatus}
    for r in records:
        counts[normalize_employment_status(r.employment_status).value] += 1
    return EmploymentDistribution(**counts)


def compute_dashboard_metrics(records: Sequence[StudentRecord]) -> DashboardMetrics:
    """
    Key metrics cards of the analytics dashboard.

    avg/highest package use placed records that have a package.
    avgRating uses records with a non-zero rating (0 means "not rated").
    """
    total = len(records)
    placed = sum(1 for r in records if r.is_placed)
    with_package = [r.package for r in records if r.is_placed and r.package]
    ratings = [r.recruiter_rating for r in records if r.recruiter_rating]

    return DashboardMetrics(
        total=total,
        placed=placed,
        verified=sum(1 for r in records if r.is_verified),
        placement_rate=_rate(placed, total),
        avg_package=round(sum(with_package) / len(with_package), 2) if with_package else 0,
        highest_package=round(max(with_package), 2) if with_package else 0,
        avg_rating=round(sum(ratings) / len(ratings), 1) if ratings else 0,
        employment=compute_employment_distribution(records),
    )


# ============================================================
# GROUPED STATISTICS
# ============================================================

def compute_company_stats(records: Iterable[StudentRecord]) -> List[CompanyStat]:
    """
    Per-company figures over placed records with a company name.

    Sorted by count, highest first; ties keep first-seen order.
    """
    groups: Dict[str, Dict[str, list]] = {}
    for r in records:
        if not (r.is_placed and r.company):
            continue
        group = groups.setdefault(r.company, {"records": [], "packages": [], "ratings": []})
        group["records"].append(r)
        if r.package:
            group["packages"].append(r.package)
        if r.recruiter_rating:
            group["ratings"].append(r.recruiter_rating)

    stats = []
    for company, group in groups.items():
        packages, ratings = group["packages"], group["ratings"]
        stats.append(CompanyStat(
            company=company,
            count=len(group["records"]),
            avg_package=round(sum(packages) / len(packages), 2) if packages else 0,
            max_package=round(max(packages), 2) if packages else 0,
            avg_rating=round(sum(ratings) / len(ratings), 1) if ratings else 0,
        ))
    return sorted(stats, key=lambda s: s.count, reverse=True)


def compute_course_stats(records: Iterable[StudentRecord]) -> List[CourseStat]:
    """Per-course totals and placement rate, in first-seen order."""
    groups: Dict[str, List[int]] = {}
    for r in records:
        counts = groups.setdefault(r.course, [0, 0])
        counts[0] += 1
        if r.is_placed:
            counts[1] += 1

    return [
        CourseStat(course=course, total=total, placed=placed, placement_rate=_rate(placed, total))
        for course, (total, placed) in groups.items()
    ]


def graduation_year(record: StudentRecord) -> int:
    """batchEndYear, or start + 4 for records stored without one."""
    return record.batch_end_year or record.batch_start_year + 4


def compute_batch_stats(records: Iterable[StudentRecord]) -> List[BatchStat]:
    """Per-graduation-year totals and placement rate, oldest year first."""
    groups: Dict[int, List[int]] = {}
    for r in records:
        counts = groups.setdefault(graduation_year(r), [0, 0])
        counts[0] += 1
        if r.is_placed:
            counts[1] += 1

    return [
        BatchStat(year=year, total=total, placed=placed, placement_rate=_rate(placed, total))
        for year, (total, placed) in sorted(groups.items())
    ]


# (label, lower bound inclusive, upper bound exclusive) in LPA
PACKAGE_BUCKETS: List[Tuple[str, float, Optional[float]]] = [
    ("0-3 LPA", 0, 3),
    ("3-5 LPA", 3, 5),
    ("5-8 LPA", 5, 8),
    ("8-12 LPA", 8, 12),
    ("12+ LPA", 12, None),
]


def compute_package_distribution(records: Iterable[StudentRecord]) -> List[PackageBucket]:
    """Count of records per package band. Records without a package are skipped."""
    packages = _packages(records)
    return [
        PackageBucket(
            label=label,
            count=sum(1 for p in packages if p >= low and (high is None or p < high)),
        )
        for label, low, high in PACKAGE_BUCKETS
    ]


def compute_company_records(records: Iterable[StudentRecord]) -> List[CompanyRecord]:
    """
    Denormalized per-company view (the /companies/stats payload).

    Status counts use exact matching, like the recruiter view.
    Sorted by company name.
    """
    groups: Dict[str, List[StudentRecord]] = {}
    for r in records:
        if r.company:
            groups.setdefault(r.company, []).append(r)

    out = []
    for name in sorted(groups):
        members = groups[name]
        packages = _packages(members)
        ratings = [r.recruiter_rating for r in members if r.recruiter_rating]
        out.append(CompanyRecord(
            name=name,
            total_students=len(members),
            verified_students=sum(1 for r in members if r.is_verified),
            avg_package=round(sum(packages) / len(packages), 2) if packages else 0,
            avg_rating=round(sum(ratings) / len(ratings), 1) if ratings else 0,
            still_working=sum(1 for r in members if r.employment_status == EmploymentStatus.still_working.value),
            left_company=sum(1 for r in members if r.employment_status == EmploymentStatus.left_company.value),
            not_joined=sum(1 for r in members if r.employment_status == EmploymentStatus.not_joined.value),
        ))
    return out


# ============================================================
# FILTER CHOICES
# ============================================================

def filter_options(records: Sequence[StudentRecord]) -> FilterOptions:
    """Distinct values for the dashboard's dropdowns."""
    statuses: List[str] = []
    for r in records:
        if r.employment_status and r.employment_status not in statuses:
            statuses.append(r.employment_status)

    return FilterOptions(
        companies=sorted({r.company for r in records if r.company}),
        courses=sorted({r.course for r in records}),
        batches=sorted({r.batch_start_year for r in records}, reverse=True),
        employment_statuses=statuses,
    )


def search_companies(names: Iterable[str], term: Optional[str]) -> List[str]:
    """Company picker: case-insensitive substring match, input order kept."""
    needle = (term or "").strip().lower()
    if not needle:
        return list(names)
    return [name for name in names if needle in name.lower()]
