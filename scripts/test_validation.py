#!/usr/bin/env python3
"""
Validation Test Script

Tests:
1. Student submission rules (lengths, years, placement fields, feedback)
2. All errors reported together
3. Recruiter verification rules (feedback, rating sentinel, status, email)
4. Company search rule

No database needed.

Run: python scripts/test_validation.py
"""
import sys
sys.path.insert(0, '.')

from pydantic import ValidationError

from app.schemas.schemas import EmploymentStatus, StudentRecord, StudentUpdate
from app.services.validation_service import (
    validate_company_search,
    validate_record_update,
    validate_recruiter_verification,
    validate_student_submission
)

YEAR = 2025


def valid_submission(**overrides) -> dict:
    data = {
        "name": "Asha Rao",
        "registrationNumber": "21BCE1042",
        "course": "B.Tech CSE",
        "batchStartYear": 2021,
        "batchEndYear": 2025,
        "isPlaced": True,
        "company": "Acme Corp",
        "package": 12.5,
        "studentFeedback": "Smooth process",
    }
    data.update(overrides)
    return data


def valid_verification(**overrides) -> dict:
    data = {
        "studentId": "64f0c2a1b2c3d4e5f6a7b8c9",
        "recruiterFeedback": "Performing well in the team",
        "recruiterRating": 4,
        "employmentStatus": "still_working",
        "recruiterName": "Meera Iyer",
        "recruiterEmail": "meera@acme.com",
        "recruiterPosition": "HR Lead",
    }
    data.update(overrides)
    return data


def fields(result) -> set:
    return {err.field for err in result.errors}


def test_valid_submission():
    """A complete placed submission passes and is trimmed."""
    print("\n[1] Testing valid submission...")
    result = validate_student_submission(valid_submission(name="  Asha Rao  "), current_year=YEAR)
    assert result.is_valid, result.errors
    assert result.value.name == "Asha Rao"
    assert result.value.company == "Acme Corp"
    assert result.value.package == 12.5
    print("    ✅ Valid submission accepted")


def test_unplaced_ignores_company_and_package():
    """isPlaced=false passes whatever company/package hold, and drops them."""
    print("\n[2] Testing unplaced submission...")
    for company, package in [(None, None), ("", -3), ("Acme", "lots")]:
        result = validate_student_submission(
            valid_submission(isPlaced=False, company=company, package=package), current_year=YEAR
        )
        assert result.is_valid, result.errors
        assert result.value.company is None
        assert result.value.package is None
    print("    ✅ Unplaced submissions accepted without company/package")


def test_placed_requires_company_and_package():
    """Missing company or package on a placed submission is reported on company."""
    print("\n[3] Testing placed submission without company/package...")
    for overrides in [{"company": ""}, {"company": None}, {"package": None}, {"package": "12"}]:
        result = validate_student_submission(valid_submission(**overrides), current_year=YEAR)
        assert not result.is_valid
        assert "company" in fields(result), overrides
        assert result.error_map()["company"] == "Company and package are required when student is placed"

    zero = validate_student_submission(valid_submission(package=0), current_year=YEAR)
    assert zero.is_valid

    negative = validate_student_submission(valid_submission(package=-1), current_year=YEAR)
    assert fields(negative) == {"package"}
    print("    ✅ Placement rules enforced")


def test_batch_years():
    """Year bounds depend on the injected current year; end must follow start."""
    print("\n[4] Testing batch years...")
    result = validate_student_submission(valid_submission(batchStartYear=2022, batchEndYear=2022), current_year=YEAR)
    assert fields(result) == {"batchEndYear"}
    assert result.errors[0].message == "Batch end year must be after batch start year"

    result = validate_student_submission(valid_submission(batchStartYear=2023, batchEndYear=2021), current_year=YEAR)
    assert fields(result) == {"batchEndYear"}

    result = validate_student_submission(valid_submission(batchStartYear=2009), current_year=YEAR)
    assert fields(result) == {"batchStartYear"}

    # current_year + 5 is the last allowed year
    assert validate_student_submission(valid_submission(batchStartYear=2026, batchEndYear=2030), current_year=YEAR).is_valid
    result = validate_student_submission(valid_submission(batchStartYear=2026, batchEndYear=2031), current_year=YEAR)
    assert fields(result) == {"batchEndYear"}
    assert "5 years in the future" in result.errors[0].message
    assert validate_student_submission(valid_submission(batchStartYear=2026, batchEndYear=2031), current_year=2026).is_valid

    result = validate_student_submission(valid_submission(batchStartYear="2021"), current_year=YEAR)
    assert fields(result) == {"batchStartYear"}
    print("    ✅ Batch year rules enforced")


def test_all_errors_collected():
    """Every broken rule is reported in one pass."""
    print("\n[5] Testing error collection...")
    data = {
        "name": "A",
        "registrationNumber": "123",
        "course": "C" * 101,
        "batchStartYear": 2024,
        "batchEndYear": 2020,
        "isPlaced": True,
        "studentFeedback": "x" * 1001,
    }
    result = validate_student_submission(data, current_year=YEAR)
    assert fields(result) == {
        "name", "registrationNumber", "course", "batchEndYear", "company", "studentFeedback"
    }
    assert len(result.errors) == 6
    assert "Name must be at least 2 characters" in result.summary()
    print(f"    Summary: {result.summary()}")
    print("    ✅ All errors reported together")


def test_length_boundaries():
    """Bounds are inclusive."""
    print("\n[6] Testing length boundaries...")
    assert validate_student_submission(valid_submission(name="Al", registrationNumber="12345"), current_year=YEAR).is_valid
    assert validate_student_submission(valid_submission(registrationNumber="R" * 20), current_year=YEAR).is_valid
    assert not validate_student_submission(valid_submission(registrationNumber="R" * 21), current_year=YEAR).is_valid
    assert validate_student_submission(valid_submission(studentFeedback="f" * 1000), current_year=YEAR).is_valid
    missing = validate_student_submission({}, current_year=YEAR)
    assert {"name", "registrationNumber", "course", "batchStartYear", "batchEndYear"} <= fields(missing)
    print("    ✅ Boundaries inclusive")


def test_valid_verification():
    print("\n[7] Testing valid verification...")
    result = validate_recruiter_verification(valid_verification())
    assert result.is_valid, result.errors
    assert result.value.recruiter_rating == 4
    assert result.value.employment_status == EmploymentStatus.still_working
    print("    ✅ Valid verification accepted")


def test_rating_is_optional():
    """Absent, null and the legacy 0 all mean "not rated"."""
    print("\n[8] Testing optional rating...")
    no_rating = valid_verification()
    del no_rating["recruiterRating"]
    for data in [no_rating, valid_verification(recruiterRating=None), valid_verification(recruiterRating=0)]:
        result = validate_recruiter_verification(data)
        assert result.is_valid, result.errors
        assert result.value.recruiter_rating is None

    for bad in [6, -1, 3.5, "4", True]:
        result = validate_recruiter_verification(valid_verification(recruiterRating=bad))
        assert fields(result) == {"recruiterRating"}, bad
    for good in [1, 5]:
        assert validate_recruiter_verification(valid_verification(recruiterRating=good)).is_valid
    print("    ✅ Rating sentinel handled")


def test_verification_rules():
    print("\n[9] Testing verification rules...")
    result = validate_recruiter_verification(valid_verification(recruiterFeedback="too short"))
    assert fields(result) == {"recruiterFeedback"}
    assert result.errors[0].message == "Feedback must be at least 10 characters"

    result = validate_recruiter_verification(valid_verification(employmentStatus="working"))
    assert fields(result) == {"employmentStatus"}

    result = validate_recruiter_verification(valid_verification(employmentStatus=None))
    assert result.errors[0].message == "Employment status is required"

    result = validate_recruiter_verification(valid_verification(recruiterEmail="not-an-email"))
    assert fields(result) == {"recruiterEmail"}

    result = validate_recruiter_verification({})
    assert fields(result) == {"studentId", "recruiterFeedback", "employmentStatus"}
    print("    ✅ Verification rules enforced")


def test_company_search():
    print("\n[10] Testing company search...")
    assert validate_company_search({"companyName": "Acme"}).is_valid
    assert not validate_company_search({"companyName": "   "}).is_valid
    assert not validate_company_search({"companyName": "x" * 101}).is_valid
    print("    ✅ Company search rule enforced")


def test_non_finite_package():
    """NaN, infinities and huge ints are reported, never raised."""
    print("\n[11] Testing non-finite packages...")
    for package in [float("nan"), float("inf"), float("-inf"), 10 ** 400]:
        result = validate_student_submission(valid_submission(package=package), current_year=YEAR)
        assert not result.is_valid
        assert fields(result) == {"company"}

    unplaced = validate_student_submission(valid_submission(isPlaced=False, package=float("nan")), current_year=YEAR)
    assert unplaced.is_valid
    print("    ✅ Unusable packages reported on company")


def stored_record(**overrides) -> StudentRecord:
    data = {
        "id": "64f0c2a1b2c3d4e5f6a7b8c9",
        "name": "Asha Rao",
        "registration_number": "21BCE1042",
        "course": "B.Tech CSE",
        "batch_start_year": 2021,
        "batch_end_year": 2025,
        "is_placed": False,
    }
    data.update(overrides)
    return StudentRecord(**data)


def test_record_update_placement():
    """Becoming placed needs a company and a package on the merged record."""
    print("\n[12] Testing update of placement fields...")
    record = stored_record()

    result = validate_record_update(record, StudentUpdate(is_placed=True))
    assert fields(result) == {"company"}

    result = validate_record_update(record, StudentUpdate(is_placed=True, company="Acme"))
    assert fields(result) == {"company"}

    assert validate_record_update(record, StudentUpdate(is_placed=True, company="Acme", package=6)).is_valid

    placed = stored_record(is_placed=True, company="Acme", package=6)
    assert validate_record_update(placed, StudentUpdate(package=7.5)).is_valid
    assert fields(validate_record_update(placed, StudentUpdate(company=None))) == {"company"}
    assert validate_record_update(placed, StudentUpdate(is_placed=False, company=None)).is_valid
    print("    ✅ Placement consistency checked")


def test_record_update_verified():
    """A verified record keeps its status and recruiter feedback."""
    print("\n[13] Testing update of a verified record...")
    verified = stored_record(
        is_verified=True, employment_status="joined", recruiter_feedback="Performing well in the team"
    )

    result = validate_record_update(verified, StudentUpdate(employment_status=None, recruiter_feedback="x"))
    assert fields(result) == {"employmentStatus", "recruiterFeedback"}

    assert validate_record_update(verified, StudentUpdate(employment_status="left_company")).is_valid
    assert validate_record_update(verified, StudentUpdate(recruiter_feedback="Moved to the platform team")).is_valid

    unverified = stored_record()
    assert validate_record_update(unverified, StudentUpdate(employment_status=None)).is_valid
    print("    ✅ Verified record consistency checked")


def test_update_rating():
    """0 clears the rating like null; anything else must be 1..5."""
    print("\n[14] Testing update rating...")
    assert StudentUpdate(recruiter_rating=0).recruiter_rating is None
    assert "recruiter_rating" in StudentUpdate(recruiter_rating=0).model_fields_set
    assert StudentUpdate(recruiter_rating=5).recruiter_rating == 5
    for bad in [-1, 6]:
        try:
            StudentUpdate(recruiter_rating=bad)
        except ValidationError:
            continue
        raise AssertionError(f"rating {bad} accepted")
    print("    ✅ Rating sentinel cleared on update")


def main():
    print("=" * 50)
    print("PLACEMENT TRACKER - VALIDATION TESTS")
    print("=" * 50)

    test_valid_submission()
    test_unplaced_ignores_company_and_package()
    test_placed_requires_company_and_package()
    test_batch_years()
    test_all_errors_collected()
    test_length_boundaries()
    test_valid_verification()
    test_rating_is_optional()
    test_verification_rules()
    test_company_search()
    test_non_finite_package()
    test_record_update_placement()
    test_record_update_verified()
    test_update_rating()

    print("\n" + "=" * 50)
    print("All validation tests passed!")
    print("=" * 50)


if __name__ == "__main__":
    main()
