"""
Database helpers

A single MongoDB database handle shared by every router, plus thin helpers
around the collection calls the API needs. Collection names are the
lowercased schema class names (see schemas.py).
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from bson import ObjectId
from bson.errors import InvalidId
from pydantic import BaseModel
from pymongo import ASCENDING, MongoClient, ReturnDocument
from pymongo.database import Database

logger = logging.getLogger(__name__)

_client: Optional[MongoClient] = None
_db: Optional[Database] = None

# Fields never sent back to clients
PRIVATE_FIELDS = ("password_hash", "storage_name")


class DatabaseUnavailable(RuntimeError):
    """Raised when a helper is used before a database is configured."""


def init_db(database_url: str, database_name: str) -> Database:
    global _client, _db
    _client = MongoClient(database_url)
    _db = _client[database_name]
    logger.info("Connected to MongoDB database %s", database_name)
    return _db


def set_db(database: Optional[Database]) -> None:
    """Install an already created database handle (or clear it with None)."""
    global _db
    _db = database


def get_db() -> Optional[Database]:
    return _db


def close_db() -> None:
    global _client, _db
    if _client is not None:
        _client.close()
    _client = None
    _db = None


def _require_db() -> Database:
    if _db is None:
        raise DatabaseUnavailable("Database is not configured")
    return _db


def to_object_id(value: str) -> Optional[ObjectId]:
    try:
        return ObjectId(value)
    except (InvalidId, TypeError):
        return None


def ensure_indexes() -> None:
    db = _require_db()
    db["authuser"].create_index([("email", ASCENDING)], unique=True)
    db["blogpost"].create_index([("slug", ASCENDING)], unique=True)
    db["blogpost"].create_index([("author_id", ASCENDING)])
    db["storedfile"].create_index([("owner_id", ASCENDING)])


def create_document(collection_name: str, data: Union[BaseModel, Dict[str, Any]]) -> str:
    """Insert a document, stamping created_at/updated_at. Returns the new id."""
    db = _require_db()
    doc = data.model_dump() if isinstance(data, BaseModel) else dict(data)
    now = datetime.now(timezone.utc)
    doc["created_at"] = now
    doc["updated_at"] = now
    result = db[collection_name].insert_one(doc)
    return str(result.inserted_id)


def get_documents(
    collection_name: str,
    filter_dict: Optional[Dict[str, Any]] = None,
    limit: Optional[int] = None,
    skip: int = 0,
    sort: Optional[Sequence[Tuple[str, int]]] = None,
) -> List[Dict[str, Any]]:
    db = _require_db()
    cursor = db[collection_name].find(filter_dict or {})
    if sort:
        cursor = cursor.sort(list(sort))
    if skip:
        cursor = cursor.skip(skip)
    if limit:
        cursor = cursor.limit(limit)
    return list(cursor)


def get_document(collection_name: str, document_id: str) -> Optional[Dict[str, Any]]:
    oid = to_object_id(document_id)
    if oid is None:
        return None
    return _require_db()[collection_name].find_one({"_id": oid})


def find_document(collection_name: str, filter_dict: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    return _require_db()[collection_name].find_one(filter_dict)


def update_document(
    collection_name: str, document_id: str, changes: Dict[str, Any]
) -> Optional[Dict[str, Any]]:
    oid = to_object_id(document_id)
    if oid is None:
        return None
    update = dict(changes)
    update["updated_at"] = datetime.now(timezone.utc)
    return _require_db()[collection_name].find_one_and_update(
        {"_id": oid},
        {"$set": update},
        return_document=ReturnDocument.AFTER,
    )


def delete_document(collection_name: str, document_id: str) -> bool:
    oid = to_object_id(document_id)
    if oid is None:
        return False
    result = _require_db()[collection_name].delete_one({"_id": oid})
    return result.deleted_count > 0


def delete_documents(collection_name: str, filter_dict: Dict[str, Any]) -> int:
    result = _require_db()[collection_name].delete_many(filter_dict)
    return result.deleted_count


def to_public(doc: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """Convert a Mongo document to a JSON-friendly dict without private fields."""
    if not doc:
        return doc
    d = {**doc}
    _id = d.pop("_id", None)
    if _id is not None:
        d["id"] = str(_id)
    for name in PRIVATE_FIELDS:
        d.pop(name, None)
    return d
