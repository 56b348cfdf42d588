"""
MongoDB Service - CRUD operations for placement records.

Collection: students
One document per student submission, camelCase keys:
{
    "_id": ObjectId,
    "name": "Asha Rao",
    "registrationNumber": "21BCE1042",
    "course": "B.Tech CSE",
    "batchStartYear": 2021, "batchEndYear": 2025,
    "isPlaced": true, "company": "Acme", "package": 12.5,
    "employmentStatus": "joined",          # set by a recruiter
    "isVerified": false,
    "recruiterRating": 4,                  # absent when not rated
    "recruiterFeedback": "...", "studentFeedback": "...",
    "recruiterName": "...", "recruiterEmail": "...", "recruiterPosition": "...",
    "submittedAt": ..., "verifiedAt": ..., "updatedAt": ...
}

The service returns StudentRecord snapshots; all filtering, sorting and
statistics happen in aggregation_service on those snapshots.
"""

import logging
from datetime import datetime, timezone
from typing import Callable, List, Optional

from bson import ObjectId
from pymongo import ReturnDocument
from pymongo.collection import Collection

from app.db.mongodb import get_students_collection
from app.schemas.schemas import RecruiterVerification, StudentCreate, StudentRecord, StudentUpdate

logger = logging.getLogger(__name__)


# ============================================================
# HELPER: Convert ObjectId to string for JSON serialization
# ============================================================

def serialize_doc(doc: dict) -> dict:
    """Convert MongoDB document to JSON-serializable dict."""
    if doc is None:
        return None
    if "_id" in doc:
        doc["_id"] = str(doc["_id"])
    return doc


def to_record(doc: dict) -> Optional[StudentRecord]:
    doc = serialize_doc(doc)
    if doc is None:
        return None
    return StudentRecord.model_validate(doc)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ============================================================
# STUDENTS COLLECTION
# ============================================================

class StudentRecordService:
    """
    Handles placement record storage.

    Args:
        collection: Collection to use (defaults to the configured students collection)
        clock: Source of timestamps for submittedAt / updatedAt / verifiedAt
    """

    def __init__(self, collection: Collection = None, clock: Callable[[], datetime] = _utcnow):
        self.collection: Collection = collection if collection is not None else get_students_collection()
        self.clock = clock

    def insert(self, data: StudentCreate) -> StudentRecord:
        """
        Insert a validated submission as an unverified record.

        Raises:
            pymongo.errors.DuplicateKeyError: registration number already stored
        """
        now = self.clock()
        doc = data.model_dump(by_alias=True, exclude_none=True)
        doc.update({
            "isVerified": False,
            "submittedAt": now,
            "updatedAt": now,
        })
        result = self.collection.insert_one(doc)
        logger.info("Stored submission %s for %s", result.inserted_id, data.registration_number)
        return to_record(doc)

    def list_all(self) -> List[StudentRecord]:
        """All records, oldest submission first."""
        cursor = self.collection.find({}).sort("submittedAt", 1)
        return [to_record(doc) for doc in cursor]

    def list_by_company(self, company: str) -> List[StudentRecord]:
        """Records whose company field equals the given name."""
        cursor = self.collection.find({"company": company}).sort("submittedAt", 1)
        return [to_record(doc) for doc in cursor]

    def get_by_id(self, record_id: str) -> Optional[StudentRecord]:
        """
        Fetch one record.

        Raises:
            bson.errors.InvalidId: record_id is not an ObjectId string
        """
        doc = self.collection.find_one({"_id": ObjectId(record_id)})
        return to_record(doc)

    def distinct_companies(self) -> List[str]:
        """Company names in use, sorted. Names are created implicitly by submissions."""
        names = self.collection.distinct("company")
        return sorted(name for name in names if name)

    def update(self, record_id: str, data: StudentUpdate) -> Optional[StudentRecord]:
        """
        Partial update. Only fields present in the payload are written.

        A rating cleared with null (or 0) is removed from the document.
        """
        fields = data.model_dump(by_alias=True, exclude_unset=True, mode="json")
        fields["updatedAt"] = self.clock()
        update = {"$set": fields}
        if "recruiterRating" in fields and fields["recruiterRating"] is None:
            del fields["recruiterRating"]
            update["$unset"] = {"recruiterRating": ""}

        doc = self.collection.find_one_and_update(
            {"_id": ObjectId(record_id)},
            update,
            return_document=ReturnDocument.AFTER
        )
        return to_record(doc)

    def verify(self, record_id: str, verification: RecruiterVerification) -> Optional[StudentRecord]:
        """
        One-way transition to verified.

        Stamps recruiter identity, feedback, status and verifiedAt.
        An unrated verification removes any stored rating.
        Returns None when the record does not exist or is already verified.
        """
        now = self.clock()
        fields = verification.model_dump(by_alias=True, exclude={"student_id"}, mode="json")
        rating = fields.pop("recruiterRating")
        fields.update({"isVerified": True, "verifiedAt": now, "updatedAt": now})

        update = {"$set": fields}
        if rating is None:
            update["$unset"] = {"recruiterRating": ""}
        else:
            fields["recruiterRating"] = rating

        doc = self.collection.find_one_and_update(
            {"_id": ObjectId(record_id), "isVerified": {"$ne": True}},
            update,
            return_document=ReturnDocument.AFTER
        )
        if doc is not None:
            logger.info("Record %s verified by %s", record_id, fields.get("recruiterEmail") or "recruiter")
        return to_record(doc)


# ============================================================
# CONVENIENCE FUNCTION: FastAPI dependency
# ============================================================

def get_student_service() -> StudentRecordService:
    """
    Dependency for route injection.

    Usage:
        @router.get("/students")
        async def list_students(service: StudentRecordService = Depends(get_student_service)):
            ...
    """
    return StudentRecordService()
