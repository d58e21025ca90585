"""Date and time utility functions."""
from datetime import datetime, timezone
from typing import Optional

INDONESIAN_MONTHS = [
    "Januari", "Februari", "Maret", "April", "Mei", "Juni",
    "Juli", "Agustus", "September", "Oktober", "November", "Desember",
]


def parse_date(date_str: str) -> datetime:
    """
    Parse date string in YYYY-MM-DD format.

    Raises:
        ValueError: If date format is invalid
    """
    return datetime.strptime(date_str, "%Y-%m-%d")


def parse_timestamp(value: str) -> datetime:
    """
    Parse an ISO 8601 timestamp, accepting a trailing "Z".

    Raises:
        ValueError: If the string is not ISO 8601
    """
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def local_now_iso() -> str:
    """Current local time with UTC offset, as recorded by the form."""
    return datetime.now().astimezone().isoformat()


def utc_now_iso() -> str:
    """Current UTC time, used for server-assigned timestamps."""
    return datetime.now(timezone.utc).isoformat()


def format_indonesian_date(date_str: str) -> str:
    """
    Format YYYY-MM-DD as e.g. "30 Maret 2026".

    Unparseable input is returned unchanged.
    """
    try:
        date_obj = parse_date(date_str)
    except (TypeError, ValueError):
        return date_str
    return f"{date_obj.day} {INDONESIAN_MONTHS[date_obj.month - 1]} {date_obj.year}"


def format_registration_time(value: Optional[str]) -> str:
    """
    Format an ISO timestamp in Indonesian locale style (DD/MM/YYYY HH.MM.SS).

    Aware timestamps are converted to local time first. Missing or
    unparseable values render as "-".
    """
    if not value:
        return "-"
    try:
        moment = parse_timestamp(value)
    except (TypeError, ValueError):
        return "-"
    if moment.tzinfo is not None:
        moment = moment.astimezone()
    return moment.strftime("%d/%m/%Y %H.%M.%S")
