"""
Export Service - two-sheet .xlsx workbooks of the current view.

Workbooks:
1. Analytics dashboard: "Students" sheet + "Summary" sheet (Metric / Value)
2. Recruiter view:      "<Company>_Students" sheet + "Summary" sheet (Metric / Count)

Column and metric labels are part of the contract with people who
re-open these files, so they are kept exactly as listed below.
"""

import io
import re
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

import pandas as pd
from openpyxl.utils import get_column_letter

from app.schemas.schemas import DashboardMetrics, EmploymentStatus, StudentRecord, SummaryStats

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

SUMMARY_SHEET = "Summary"
MAX_SHEET_NAME = 31

DASHBOARD_COLUMNS = [
    "Name", "Registration Number", "Course", "Batch Start Year", "Batch End Year",
    "Is Placed", "Company", "Package (LPA)", "Employment Status", "Is Verified",
    "Recruiter Rating", "Student Feedback", "Recruiter Feedback", "Submitted At", "Verified At",
]

RECRUITER_COLUMNS = [
    ("S.No", 6), ("Student Name", 25), ("Registration Number", 20), ("Course", 15),
    ("Batch", 15), ("Package (LPA)", 15), ("Employment Status", 18), ("Is Placed", 12),
    ("Is Verified", 12), ("Recruiter Rating", 15), ("Recruiter Name", 20),
    ("Recruiter Position", 20), ("Recruiter Email", 25), ("Recruiter Feedback", 40),
    ("Student Feedback", 40), ("Submitted Date", 20), ("Verified Date", 20), ("Last Updated", 20),
]

STATUS_LABELS = {
    EmploymentStatus.joined.value: "Joined",
    EmploymentStatus.not_joined.value: "Not Joined",
    EmploymentStatus.left_company.value: "Left Company",
    EmploymentStatus.still_working.value: "Still Working",
}


# ============================================================
# CELL FORMATTING
# ============================================================

def _yes_no(flag: bool) -> str:
    return "Yes" if flag else "No"


def _date(value: Optional[datetime], missing: str = "N/A") -> str:
    return value.strftime("%Y-%m-%d %H:%M") if value else missing


def _lpa(value: float) -> str:
    """Rupee amount written the way the screen shows it (12 -> ₹12, 12.5 -> ₹12.5)."""
    number = int(value) if float(value).is_integer() else value
    return f"₹{number}"


def safe_sheet_name(company: str) -> str:
    return f"{re.sub(r'[^a-zA-Z0-9]', '_', company)}_Students"[:MAX_SHEET_NAME]


def _to_bytes(sheets: List[tuple]) -> bytes:
    """sheets: (name, DataFrame, column widths or None) in tab order."""
    buffer = io.BytesIO()
    with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
        for name, frame, widths in sheets:
            frame.to_excel(writer, sheet_name=name, index=False)
            if widths:
                worksheet = writer.sheets[name]
                for idx, width in enumerate(widths, start=1):
                    worksheet.column_dimensions[get_column_letter(idx)].width = width
    return buffer.getvalue()


# ============================================================
# ANALYTICS DASHBOARD WORKBOOK
# ============================================================

def dashboard_rows(records: Sequence[StudentRecord]) -> List[Dict[str, Any]]:
    return [
        {
            "Name": r.name,
            "Registration Number": r.registration_number,
            "Course": r.course,
            "Batch Start Year": r.batch_start_year,
            "Batch End Year": r.batch_end_year,
            "Is Placed": _yes_no(r.is_placed),
            "Company": r.company or "N/A",
            "Package (LPA)": r.package or "N/A",
            "Employment Status": r.employment_status,
            "Is Verified": _yes_no(r.is_verified),
            "Recruiter Rating": r.recruiter_rating or "N/A",
            "Student Feedback": r.student_feedback or "N/A",
            "Recruiter Feedback": r.recruiter_feedback or "N/A",
            "Submitted At": _date(r.submitted_at),
            "Verified At": _date(r.verified_at),
        }
        for r in records
    ]


def dashboard_summary(metrics: DashboardMetrics) -> List[Dict[str, Any]]:
    return [
        {"Metric": "Total Students", "Value": metrics.total},
        {"Metric": "Placed Students", "Value": metrics.placed},
        {"Metric": "Placement Rate (%)", "Value": metrics.placement_rate},
        {"Metric": "Average Package (LPA)", "Value": metrics.avg_package},
        {"Metric": "Highest Package (LPA)", "Value": metrics.highest_package},
        {"Metric": "Average Rating", "Value": metrics.avg_rating},
        {"Metric": "Verified Students", "Value": metrics.verified},
    ]


def build_dashboard_workbook(records: Sequence[StudentRecord], metrics: DashboardMetrics) -> bytes:
    """Workbook for the dashboard's filtered, sorted view and its key metrics."""
    return _to_bytes([
        ("Students", pd.DataFrame(dashboard_rows(records), columns=DASHBOARD_COLUMNS), None),
        (SUMMARY_SHEET, pd.DataFrame(dashboard_summary(metrics), columns=["Metric", "Value"]), None),
    ])


# ============================================================
# RECRUITER WORKBOOK
# ============================================================

def recruiter_rows(records: Sequence[StudentRecord]) -> List[Dict[str, Any]]:
    rows = []
    for index, r in enumerate(records, start=1):
        status = STATUS_LABELS.get(r.employment_status) or r.employment_status or "Not Set"
        rows.append({
            "S.No": index,
            "Student Name": r.name,
            "Registration Number": r.registration_number,
            "Course": r.course,
            "Batch": f"{r.batch_start_year} - {r.batch_end_year}",
            "Package (LPA)": _lpa(r.package) if r.package else "Not specified",
            "Employment Status": status,
            "Is Placed": _yes_no(r.is_placed),
            "Is Verified": _yes_no(r.is_verified),
            "Recruiter Rating": r.recruiter_rating or "Not rated",
            "Recruiter Name": r.recruiter_name or "N/A",
            "Recruiter Position": r.recruiter_position or "N/A",
            "Recruiter Email": r.recruiter_email or "N/A",
            "Recruiter Feedback": r.recruiter_feedback or "N/A",
            "Student Feedback": r.student_feedback or "N/A",
            "Submitted Date": _date(r.submitted_at),
            "Verified Date": _date(r.verified_at, missing="Not verified"),
            "Last Updated": _date(r.updated_at),
        })
    return rows


def recruiter_summary(stats: SummaryStats) -> List[Dict[str, Any]]:
    def money(value: float, fmt=_lpa) -> str:
        return fmt(value) if value > 0 else "N/A"

    return [
        {"Metric": "Total Students", "Count": stats.total_students},
        {"Metric": "Verified Students", "Count": stats.verified_students},
        {"Metric": "Pending Verification", "Count": stats.pending_students},
        {"Metric": "Placed Students", "Count": stats.placed_students},
        {"Metric": "Joined Company", "Count": stats.joined_count},
        {"Metric": "Not Joined", "Count": stats.not_joined_count},
        {"Metric": "Left Company", "Count": stats.left_company_count},
        {"Metric": "Still Working", "Count": stats.still_working_count},
        {"Metric": "Highest Package (LPA)", "Count": money(stats.highest_package)},
        {"Metric": "Lowest Package (LPA)", "Count": money(stats.lowest_package)},
        {"Metric": "Average Package (LPA)", "Count": money(stats.average_package, lambda v: f"₹{v:.1f}")},
        {"Metric": "Median Package (LPA)", "Count": money(stats.median_package)},
    ]


def build_recruiter_workbook(company: str, records: Sequence[StudentRecord], stats: SummaryStats) -> bytes:
    """Workbook for one company's recruiter view."""
    columns = [name for name, _ in RECRUITER_COLUMNS]
    widths = [width for _, width in RECRUITER_COLUMNS]
    return _to_bytes([
        (safe_sheet_name(company), pd.DataFrame(recruiter_rows(records), columns=columns), widths),
        (SUMMARY_SHEET, pd.DataFrame(recruiter_summary(stats), columns=["Metric", "Count"]), [25, 20]),
    ])


# ============================================================
# READ BACK
# ============================================================

def read_summary_sheet(content: bytes) -> Dict[str, Any]:
    """Parse a workbook's Summary sheet into {metric: value}."""
    frame = pd.read_excel(io.BytesIO(content), sheet_name=SUMMARY_SHEET)
    metric_col, value_col = frame.columns[0], frame.columns[1]
    out = {}
    for _, row in frame.iterrows():
        value = row[value_col]
        out[row[metric_col]] = value.item() if hasattr(value, "item") else value
    return out
