from typing import Optional

from bson import ObjectId
from bson.errors import InvalidId

from worktime.core.errors import InvalidInput


def parse_object_id(value, field: str = "id") -> ObjectId:
    if isinstance(value, ObjectId):
        return value
    try:
        return ObjectId(str(value))
    except (InvalidId, TypeError) as exc:
        raise InvalidInput(f"Invalid {field}") from exc


def parse_optional_id(value, field: str = "id") -> Optional[ObjectId]:
    if value is None or value == "":
        return None
    return parse_object_id(value, field)
