"""
Form data conversion between the form shape and the API shape of a record.
"""

import json
import logging
from datetime import date, datetime, timezone
from typing import Any, Dict, List

from entity_admin.schemas.entity import FieldDescriptor, FieldType

logger = logging.getLogger(__name__)

TO_API = "to_api"
FROM_API = "from_api"


def parse_datetime(value: Any) -> datetime:
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    elif isinstance(value, (int, float)) and not isinstance(value, bool):
        # epoch milliseconds
        return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
    else:
        text = str(value).strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def _iso(value: datetime) -> str:
    return value.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _to_number(value: Any) -> Any:
    if value is None or value == "":
        return None
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return value
    number = float(str(value).strip())
    return int(number) if number.is_integer() and "." not in str(value) else number


def _value_to_api(field: FieldDescriptor, value: Any) -> Any:
    if field.type in (FieldType.DATE, FieldType.DATETIME):
        return _iso(parse_datetime(value)) if value not in (None, "") else None
    if field.type == FieldType.NUMBER:
        return _to_number(value)
    if field.type == FieldType.BOOLEAN:
        if isinstance(value, str):
            return value.strip().lower() not in ("", "false", "0", "off", "no")
        return bool(value)
    if field.type == FieldType.JSON:
        return json.loads(value) if isinstance(value, str) else value
    return value


def _value_from_api(field: FieldDescriptor, value: Any) -> Any:
    if field.type == FieldType.DATE:
        return parse_datetime(value).strftime("%Y-%m-%d") if value not in (None, "") else ""
    if field.type == FieldType.DATETIME:
        return parse_datetime(value).strftime("%Y-%m-%dT%H:%M") if value not in (None, "") else ""
    if field.type == FieldType.JSON and isinstance(value, (dict, list)):
        return json.dumps(value, indent=2)
    return value


def transform_form_data(fields: List[FieldDescriptor], data: Dict[str, Any], direction: str) -> Dict[str, Any]:
    """
    Convert ``data`` for every declared field.

    to_api: dates to ISO-8601 UTC, numbers parsed, booleans coerced, JSON text parsed.
    from_api: dates to YYYY-MM-DD, datetimes to YYYY-MM-DDTHH:MM, JSON pretty-printed.

    Raises:
        ValueError: on an unknown direction, or a value that cannot be converted
    """
    if direction not in (TO_API, FROM_API):
        raise ValueError(f"Unknown direction: {direction}")
    convert = _value_to_api if direction == TO_API else _value_from_api
    return {field.key: convert(field, data.get(field.key)) for field in fields}
