"""
MongoDB access for placement records.

One collection holds everything: each student submission is a
self-contained document, and a "company" is only the distinct values
of its company field. The client is created lazily on first use and
shared by every request (pymongo pools connections itself).
"""
import logging
from typing import Optional

from pymongo import ASCENDING, MongoClient
from pymongo.collection import Collection
from pymongo.database import Database
from pymongo.errors import PyMongoError

from app.core.config import get_settings

logger = logging.getLogger(__name__)

settings = get_settings()

_client: Optional[MongoClient] = None

# Logical name -> configured collection name
COLLECTIONS = {
    "students": settings.students_collection,
}


def get_mongo_client() -> MongoClient:
    """Shared client; fails fast when the server cannot be selected."""
    global _client
    if _client is None:
        _client = MongoClient(settings.mongodb_uri, serverSelectionTimeoutMS=settings.mongodb_timeout_ms)
    return _client


def get_mongo_db() -> Database:
    return get_mongo_client()[settings.mongodb_db]


def get_collection(name: str) -> Collection:
    return get_mongo_db()[name]


def get_students_collection() -> Collection:
    return get_collection(COLLECTIONS["students"])


def close_mongo_client() -> None:
    global _client
    if _client is not None:
        _client.close()
        _client = None


def ping_mongo() -> bool:
    """True when the server answers a ping within the configured timeout."""
    try:
        get_mongo_client().admin.command("ping")
    except PyMongoError as e:
        logger.error("MongoDB ping failed: %s", e)
        return False
    return True


def init_mongo_indexes(db: Database = None) -> None:
    """
    Indexes the record store relies on. Safe to call on every startup.

    - registrationNumber is unique: a second submission for the same
      student is rejected by the store (DuplicateKeyError).
    - company backs the recruiter view, which loads one company at a time.
    """
    db = db if db is not None else get_mongo_db()
    students = db[COLLECTIONS["students"]]
    students.create_index([("registrationNumber", ASCENDING)], unique=True)
    students.create_index([("company", ASCENDING)])
    logger.info("Indexes ensured on '%s'", students.name)
