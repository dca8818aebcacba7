"""
Database Helper Functions

MongoDB helpers shared by the services. Every collection document gets
created_at / updated_at stamps, and ids leave this module as strings.
"""

import logging
from datetime import datetime, timezone
from typing import Union, Optional, Dict, Any, List

from bson import ObjectId
from bson.errors import InvalidId
from pymongo import MongoClient, ASCENDING, DESCENDING, ReturnDocument
from pydantic import BaseModel

import config
from errors import ServerError

logger = logging.getLogger(__name__)

_client = None
db = None

if config.DATABASE_URL and config.DATABASE_NAME:
    _client = MongoClient(config.DATABASE_URL)
    db = _client[config.DATABASE_NAME]


def _ensure_db():
    if db is None:
        raise ServerError("Database not available. Check DATABASE_URL and DATABASE_NAME environment variables.")


def _to_dict(data: Union[BaseModel, dict]) -> dict:
    if isinstance(data, BaseModel):
        return data.model_dump()
    return dict(data)


def to_object_id(_id: str) -> Optional[ObjectId]:
    """Parse an id string; None when it is not a valid ObjectId."""
    try:
        return ObjectId(_id)
    except (InvalidId, TypeError):
        return None


def ensure_indexes() -> None:
    _ensure_db()
    db["user"].create_index([("email", ASCENDING)], unique=True)
    db["order"].create_index([("payment_intent_id", ASCENDING)], unique=True, sparse=True)
    db["order"].create_index([("user_id", ASCENDING), ("created_at", DESCENDING)])
    logger.info("Database indexes ensured")


# CRUD helpers

def create_document(collection_name: str, data: Union[BaseModel, dict]) -> str:
    _ensure_db()
    payload = _to_dict(data)
    now = datetime.now(timezone.utc)
    payload['created_at'] = now
    payload['updated_at'] = now
    result = db[collection_name].insert_one(payload)
    return str(result.inserted_id)


def get_documents(collection_name: str, filter_dict: Optional[dict] = None, limit: Optional[int] = None, sort: Optional[list] = None) -> List[dict]:
    _ensure_db()
    cursor = db[collection_name].find(filter_dict or {})
    if sort:
        cursor = cursor.sort(sort)
    if limit:
        cursor = cursor.limit(int(limit))
    return [serialize_doc(doc) for doc in cursor]


def find_document(collection_name: str, filter_dict: dict) -> Optional[dict]:
    _ensure_db()
    return serialize_doc(db[collection_name].find_one(filter_dict))


def get_document_by_id(collection_name: str, _id: str) -> Optional[dict]:
    _ensure_db()
    oid = to_object_id(_id)
    if oid is None:
        return None
    return serialize_doc(db[collection_name].find_one({"_id": oid}))


def update_document(collection_name: str, _id: str, update_data: Union[BaseModel, Dict[str, Any]], expected: Optional[dict] = None) -> Optional[dict]:
    """Apply a $set and return the updated document.

    Returns None if no document has this id, or if it no longer matches `expected`.
    """
    _ensure_db()
    oid = to_object_id(_id)
    if oid is None:
        return None
    filter_q = dict(expected or {})
    filter_q["_id"] = oid
    update = {"$set": _to_dict(update_data)}
    update["$set"]["updated_at"] = datetime.now(timezone.utc)
    doc = db[collection_name].find_one_and_update(filter_q, update, return_document=ReturnDocument.AFTER)
    return serialize_doc(doc)


def delete_document(collection_name: str, _id: str) -> bool:
    _ensure_db()
    oid = to_object_id(_id)
    if oid is None:
        return False
    result = db[collection_name].delete_one({"_id": oid})
    return result.deleted_count > 0


# Utility

def serialize_doc(doc: Optional[dict]) -> Optional[dict]:
    if not doc:
        return None
    d = dict(doc)
    if "_id" in d:
        d["_id"] = str(d["_id"])  # convert ObjectId to string
    return d
