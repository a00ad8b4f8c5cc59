from typing import Any, Dict, Type, TypeVar

from bson import ObjectId
from bson.errors import InvalidId
from pydantic import BaseModel, ValidationError

from loanlink.core.exceptions import ValidationFailedError

ModelT = TypeVar("ModelT", bound=BaseModel)


def parse_object_id(value: str, *, label: str = "id") -> ObjectId:
    """Parse a path identifier, rejecting malformed values as a validation error."""
    try:
        return ObjectId(value)
    except (InvalidId, TypeError) as e:
        raise ValidationFailedError(f"Invalid {label}: '{value}' is not a valid ObjectId") from e


def parse_payload(model: Type[ModelT], payload: Any) -> ModelT:
    """Validate a raw JSON body against a schema, reporting every problem in one message."""
    if not isinstance(payload, dict):
        raise ValidationFailedError("Request body must be a JSON object")
    try:
        return model(**payload)
    except ValidationError as e:
        problems = []
        for err in e.errors():
            location = ".".join(str(part) for part in err.get("loc", ())) or "body"
            problems.append(f"{location}: {err.get('msg')}")
        raise ValidationFailedError("; ".join(problems)) from e


def strip_identifier(payload: Dict[str, Any]) -> Dict[str, Any]:
    return {key: value for key, value in payload.items() if key != "_id"}


def reject_operator_keys(payload: Dict[str, Any]) -> Dict[str, Any]:
    """Refuse top-level keys MongoDB would read as operators."""
    operators = sorted(key for key in payload if str(key).startswith("$"))
    if operators:
        raise ValidationFailedError(f"Field names may not start with '$': {', '.join(operators)}")
    return payload
