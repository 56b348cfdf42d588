"""
Database module - the MongoDB record store.
"""
from app.db.mongodb import get_students_collection, init_mongo_indexes, ping_mongo

__all__ = [
    "get_students_collection",
    "init_mongo_indexes",
    "ping_mongo",
]
