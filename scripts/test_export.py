#!/usr/bin/env python3
"""
Export Test Script

Tests:
1. Dashboard workbook (Students + Summary sheets)
2. Recruiter workbook (company sheet + Summary, labels, column widths)
3. Summary sheet read back equals the statistics written

No database needed.

Run: python scripts/test_export.py
"""
import sys
sys.path.insert(0, '.')

import io
from datetime import datetime

import pandas as pd
from openpyxl import load_workbook

from app.schemas.schemas import StudentRecord
from app.services.aggregation_service import compute_dashboard_metrics, compute_statistics
from app.services.export_service import (
    DASHBOARD_COLUMNS,
    RECRUITER_COLUMNS,
    build_dashboard_workbook,
    build_recruiter_workbook,
    dashboard_rows,
    read_summary_sheet,
    recruiter_rows,
    recruiter_summary,
    safe_sheet_name
)


def make_record(**overrides) -> StudentRecord:
    data = {
        "name": "Student",
        "registration_number": "REG00001",
        "course": "CS",
        "batch_start_year": 2021,
        "batch_end_year": 2025,
        "is_placed": True,
        "company": "Acme",
        "submitted_at": datetime(2025, 3, 1, 9, 30),
    }
    data.update(overrides)
    return StudentRecord(**data)


def sample_records() -> list:
    return [
        make_record(name="Ravi", package=12, employment_status="joined", is_verified=True,
                    recruiter_rating=4, verified_at=datetime(2025, 4, 2, 10, 0)),
        make_record(name="Anita", package=12.5, employment_status="still_working"),
        make_record(name="Bala", package=3, employment_status=None),
        make_record(name="Chitra", package=8, employment_status="left_company", recruiter_rating=2,
                    is_verified=True),
    ]


def sheet_names(content: bytes) -> list:
    return pd.ExcelFile(io.BytesIO(content)).sheet_names


def test_dashboard_rows():
    print("\n[1] Testing dashboard rows...")
    rows = dashboard_rows([make_record(is_placed=False, company=None)])
    row = rows[0]
    assert list(row) == DASHBOARD_COLUMNS
    assert row["Is Placed"] == "No"
    assert row["Company"] == "N/A"
    assert row["Package (LPA)"] == "N/A"
    assert row["Recruiter Rating"] == "N/A"
    assert row["Submitted At"] == "2025-03-01 09:30"
    assert row["Verified At"] == "N/A"
    print("    ✅ Dashboard row labels")


def test_dashboard_workbook():
    print("\n[2] Testing dashboard workbook...")
    records = sample_records()
    metrics = compute_dashboard_metrics(records)
    content = build_dashboard_workbook(records, metrics)

    assert sheet_names(content) == ["Students", "Summary"]
    students = pd.read_excel(io.BytesIO(content), sheet_name="Students")
    assert list(students.columns) == DASHBOARD_COLUMNS
    assert list(students["Name"]) == ["Ravi", "Anita", "Bala", "Chitra"]

    summary = read_summary_sheet(content)
    assert summary == {
        "Total Students": metrics.total,
        "Placed Students": metrics.placed,
        "Placement Rate (%)": metrics.placement_rate,
        "Average Package (LPA)": metrics.avg_package,
        "Highest Package (LPA)": metrics.highest_package,
        "Average Rating": metrics.avg_rating,
        "Verified Students": metrics.verified,
    }
    print(f"    Summary: {summary}")
    print("    ✅ Dashboard summary round-trips")


def test_empty_dashboard_workbook():
    print("\n[3] Testing empty dashboard workbook...")
    content = build_dashboard_workbook([], compute_dashboard_metrics([]))
    students = pd.read_excel(io.BytesIO(content), sheet_name="Students")
    assert list(students.columns) == DASHBOARD_COLUMNS
    assert len(students) == 0
    assert read_summary_sheet(content)["Total Students"] == 0
    print("    ✅ Header-only sheet, zero metrics")


def test_safe_sheet_name():
    print("\n[4] Testing sheet names...")
    assert safe_sheet_name("Acme") == "Acme_Students"
    assert safe_sheet_name("Acme & Co.") == "Acme___Co__Students"
    long_name = safe_sheet_name("International Business Machines Corporation")
    assert len(long_name) == 31
    print("    ✅ Sheet names are Excel-safe")


def test_recruiter_rows():
    print("\n[5] Testing recruiter rows...")
    rows = recruiter_rows(sample_records())
    assert [r["S.No"] for r in rows] == [1, 2, 3, 4]
    assert list(rows[0]) == [name for name, _ in RECRUITER_COLUMNS]

    assert rows[0]["Employment Status"] == "Joined"
    assert rows[1]["Employment Status"] == "Still Working"
    assert rows[2]["Employment Status"] == "Not Set"
    assert rows[3]["Employment Status"] == "Left Company"

    assert rows[0]["Package (LPA)"] == "₹12"
    assert rows[1]["Package (LPA)"] == "₹12.5"
    assert recruiter_rows([make_record(package=None)])[0]["Package (LPA)"] == "Not specified"

    assert rows[0]["Batch"] == "2021 - 2025"
    assert rows[0]["Recruiter Rating"] == 4
    assert rows[1]["Recruiter Rating"] == "Not rated"
    assert rows[0]["Verified Date"] == "2025-04-02 10:00"
    assert rows[1]["Verified Date"] == "Not verified"
    print("    ✅ Recruiter row labels")


def test_recruiter_summary():
    print("\n[6] Testing recruiter summary...")
    stats = compute_statistics(sample_records())
    summary = {row["Metric"]: row["Count"] for row in recruiter_summary(stats)}
    assert summary["Total Students"] == 4
    assert summary["Pending Verification"] == 2
    assert summary["Joined Company"] == 1
    assert summary["Still Working"] == 1
    assert summary["Highest Package (LPA)"] == "₹12.5"
    assert summary["Lowest Package (LPA)"] == "₹3"
    assert summary["Average Package (LPA)"] == "₹8.9"
    assert summary["Median Package (LPA)"] == "₹12"

    empty = {row["Metric"]: row["Count"] for row in recruiter_summary(compute_statistics([]))}
    for label in ["Highest Package (LPA)", "Lowest Package (LPA)", "Average Package (LPA)", "Median Package (LPA)"]:
        assert empty[label] == "N/A"
    print("    ✅ Recruiter summary labels")


def test_recruiter_workbook():
    print("\n[7] Testing recruiter workbook...")
    records = sample_records()
    stats = compute_statistics(records)
    content = build_recruiter_workbook("Acme", records, stats)

    assert sheet_names(content) == ["Acme_Students", "Summary"]
    summary = read_summary_sheet(content)
    assert summary["Total Students"] == stats.total_students
    assert summary["Verified Students"] == stats.verified_students
    assert summary["Placed Students"] == stats.placed_students
    assert summary["Median Package (LPA)"] == "₹12"

    workbook = load_workbook(io.BytesIO(content))
    sheet = workbook["Acme_Students"]
    assert sheet["A1"].value == "S.No"
    assert sheet.column_dimensions["B"].width == 25
    assert sheet.column_dimensions["N"].width == 40
    assert workbook["Summary"].column_dimensions["A"].width == 25
    print("    ✅ Recruiter workbook layout")


def main():
    print("=" * 50)
    print("PLACEMENT TRACKER - EXPORT TESTS")
    print("=" * 50)

    test_dashboard_rows()
    test_dashboard_workbook()
    test_empty_dashboard_workbook()
    test_safe_sheet_name()
    test_recruiter_rows()
    test_recruiter_summary()
    test_recruiter_workbook()

    print("\n" + "=" * 50)
    print("All export tests passed!")
    print("=" * 50)


if __name__ == "__main__":
    main()
