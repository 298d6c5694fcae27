"""
Column Factory

Builders for the columns most entity configurations share: id, status,
date and row actions.
"""

from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional

from entity_admin.schemas.entity import ColumnDescriptor
from entity_admin.services.form_transform import parse_datetime

DEFAULT_STATUS_COLORS: Dict[str, str] = {
    "ACTIVE": "success",
    "ENABLED": "success",
    "VERIFIED": "success",
    "COMPLETED": "success",
    "PENDING": "warning",
    "PROCESSING": "warning",
    "PENDING_REVIEW": "warning",
    "INACTIVE": "default",
    "DISABLED": "default",
    "FAILED": "error",
    "CANCELLED": "error",
    "BANNED": "error",
}


def relative_time(moment: datetime, now: Optional[datetime] = None) -> str:
    now = now or datetime.now(timezone.utc)
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    seconds = int((now - moment).total_seconds())
    minutes, hours, days = seconds // 60, seconds // 3600, seconds // 86400

    if days > 30:
        return moment.strftime("%Y-%m-%d")
    if days > 0:
        return f"{days}d ago"
    if hours > 0:
        return f"{hours}h ago"
    if minutes > 0:
        return f"{minutes}m ago"
    return "Just now"


def create_id_column() -> ColumnDescriptor:
    return ColumnDescriptor(accessor_key="id", header="ID", size=80, sortable=True)


def create_status_column(
    accessor_key: str = "status",
    label: Optional[str] = None,
    color_map: Optional[Dict[str, str]] = None,
) -> ColumnDescriptor:
    """Status column; ``status_color(value)`` in meta maps a status to its badge colour."""
    colors = color_map or DEFAULT_STATUS_COLORS

    def render(value: Any, record: Dict[str, Any]) -> str:
        return value if isinstance(value, str) else ("" if value is None else str(value))

    def status_color(value: Any) -> str:
        return colors.get(render(value, {}), "default")

    return ColumnDescriptor(
        accessor_key=accessor_key,
        header=label or "Status",
        size=120,
        renderer=render,
        meta={"color_map": dict(colors), "status_color": status_color},
    )


def create_date_column(
    accessor_key: str = "createdAt",
    label: Optional[str] = None,
    fmt: str = "date",
    now: Optional[Callable[[], datetime]] = None,
) -> ColumnDescriptor:
    """Date column rendering as ``date``, ``datetime`` or ``relative``; "-" when empty."""
    if fmt not in ("date", "datetime", "relative"):
        raise ValueError(f"Unknown date format: {fmt}")

    def render(value: Any, record: Dict[str, Any]) -> str:
        if not value:
            return "-"
        try:
            moment = parse_datetime(value)
        except (TypeError, ValueError):
            return str(value)
        if fmt == "datetime":
            return moment.strftime("%Y-%m-%d %H:%M")
        if fmt == "relative":
            return relative_time(moment, now() if now else None)
        return moment.strftime("%Y-%m-%d")

    return ColumnDescriptor(accessor_key=accessor_key, header=label or "Created", size=150, renderer=render)


def create_actions_column() -> ColumnDescriptor:
    return ColumnDescriptor(id="actions", header="Actions", size=120, sortable=False, filterable=False)
