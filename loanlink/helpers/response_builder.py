from datetime import datetime
from typing import Any, Dict

from bson import ObjectId


def convert_objectid(obj):
    """Convert ObjectId and datetime values to JSON-friendly strings."""
    if isinstance(obj, dict):
        return {key: convert_objectid(value) for key, value in obj.items()}
    elif isinstance(obj, list):
        return [convert_objectid(item) for item in obj]
    elif isinstance(obj, ObjectId):
        return str(obj)
    elif isinstance(obj, datetime):
        return obj.isoformat()
    return obj


def build_insert_summary(result) -> Dict[str, Any]:
    return {
        "acknowledged": result.acknowledged,
        "insertedId": str(result.inserted_id),
    }


def build_update_summary(result) -> Dict[str, Any]:
    return {
        "acknowledged": result.acknowledged,
        "matchedCount": result.matched_count,
        "modifiedCount": result.modified_count,
        "upsertedId": str(result.upserted_id) if result.upserted_id is not None else None,
        "upsertedCount": 1 if result.upserted_id is not None else 0,
    }


def build_delete_summary(result) -> Dict[str, Any]:
    return {
        "acknowledged": result.acknowledged,
        "deletedCount": result.deleted_count,
    }
