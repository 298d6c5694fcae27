"""
Field Validation

validate_field evaluates one field value against the field's ValidationRule:

1. required: an empty value fails
2. an empty, non-required value passes without further checks
3. type-specific checks (email, url, number bounds, text length/pattern)
4. custom(value, record), whose result is authoritative

Errors are returned as strings, never raised.
"""

import logging
import re
from typing import Any, Callable, Dict, List, Optional
from urllib.parse import urlsplit

from entity_admin.schemas.entity import FieldDescriptor, FieldType, FormMode, ValidationRule

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
_SCHEME_PATTERN = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.\-]*$")
_NETWORK_SCHEMES = {"http", "https", "ftp", "ws", "wss"}


def is_empty(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return value == ""
    if isinstance(value, (list, tuple, set)):
        return len(value) == 0
    return False


def is_valid_url(value: str) -> bool:
    """True when ``value`` parses as an absolute URL."""
    try:
        parts = urlsplit(value)
    except ValueError:
        return False
    if not parts.scheme or not _SCHEME_PATTERN.match(parts.scheme):
        return False
    if parts.scheme.lower() in _NETWORK_SCHEMES:
        return bool(parts.netloc)
    return bool(parts.netloc or parts.path)


def _as_number(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return float(value)
    if isinstance(value, (int, float)):
        return float(value)
    try:
        return float(str(value).strip())
    except ValueError:
        return None


# ── Type-specific checks ─────────────────────────────────────────────────

def _check_email(field: FieldDescriptor, rule: ValidationRule, value: Any) -> Optional[str]:
    if rule.email is False:
        return None
    if not EMAIL_PATTERN.match(str(value)):
        return rule.message or "Please enter a valid email address"
    return None


def _check_url(field: FieldDescriptor, rule: ValidationRule, value: Any) -> Optional[str]:
    if rule.url is False:
        return None
    if not is_valid_url(str(value)):
        return rule.message or "Please enter a valid URL"
    return None


def _check_number(field: FieldDescriptor, rule: ValidationRule, value: Any) -> Optional[str]:
    number = _as_number(value)
    if number is None:
        return rule.message or f"{field.label} must be a number"
    if rule.min is not None and number < rule.min:
        return rule.message or f"{field.label} must be at least {_fmt(rule.min)}"
    if rule.max is not None and number > rule.max:
        return rule.message or f"{field.label} must be no more than {_fmt(rule.max)}"
    return None


def _check_text(field: FieldDescriptor, rule: ValidationRule, value: Any) -> Optional[str]:
    text = str(value)
    if rule.min_length is not None and len(text) < rule.min_length:
        return rule.message or f"{field.label} must be at least {rule.min_length} characters"
    if rule.max_length is not None and len(text) > rule.max_length:
        return rule.message or f"{field.label} must be no more than {rule.max_length} characters"
    if rule.pattern:
        try:
            matched = re.search(rule.pattern, text) is not None
        except re.error:
            logger.warning(f"Invalid validation pattern on field {field.key}: {rule.pattern!r}")
            return None
        if not matched:
            return rule.message or f"{field.label} format is invalid"
    return None


def _no_check(field: FieldDescriptor, rule: ValidationRule, value: Any) -> Optional[str]:
    return None


TypeCheck = Callable[[FieldDescriptor, ValidationRule, Any], Optional[str]]

# Every FieldType has an entry; see test_validation.py
TYPE_CHECKS: Dict[FieldType, TypeCheck] = {
    FieldType.TEXT: _check_text,
    FieldType.TEXTAREA: _check_text,
    FieldType.EMAIL: _check_email,
    FieldType.URL: _check_url,
    FieldType.NUMBER: _check_number,
    FieldType.PASSWORD: _no_check,
    FieldType.SELECT: _no_check,
    FieldType.MULTISELECT: _no_check,
    FieldType.DATE: _no_check,
    FieldType.DATETIME: _no_check,
    FieldType.BOOLEAN: _no_check,
    FieldType.JSON: _no_check,
    FieldType.COLOR: _no_check,
    FieldType.FILE: _no_check,
    FieldType.REFERENCE: _no_check,
}


def _fmt(number: float) -> str:
    return str(int(number)) if float(number).is_integer() else str(number)


def validate_field(
    field: FieldDescriptor,
    value: Any,
    record: Optional[Dict[str, Any]] = None,
) -> Optional[str]:
    """Return an error message for ``value`` or None when it is valid."""
    rule = field.validation
    if rule is None:
        return None

    if is_empty(value):
        if rule.required:
            return rule.message or f"{field.label} is required"
        return None

    error = TYPE_CHECKS[field.type](field, rule, value)
    if error:
        return error

    if rule.custom:
        return rule.custom(value, record or {})

    return None


def validate_record(
    fields: List[FieldDescriptor],
    record: Dict[str, Any],
    mode: Optional[FormMode] = None,
) -> Dict[str, str]:
    """
    Validate every field of a candidate record.

    Fields hidden for ``mode`` are skipped when a mode is given.

    Returns:
        Mapping of field key to error message; empty when the record is valid
    """
    errors: Dict[str, str] = {}
    for field in fields:
        if mode is not None and field.is_hidden(mode, record):
            continue
        error = validate_field(field, record.get(field.key), record)
        if error:
            errors[field.key] = error
    return errors
