"""Data validation utilities."""
import re
from datetime import datetime
from typing import Any, Dict, Tuple

from donor_registration.utils.exceptions import ValidationError

MIN_NAME_LENGTH = 3
NATIONAL_ID_LENGTH = 16
MIN_CONTACT_LENGTH = 10

NATIONAL_ID_PATTERN = re.compile(r"^[0-9]{16}$")
CONTACT_NUMBER_PATTERN = re.compile(r"^08[0-9]{8,}$")


def validate_full_name(full_name: str) -> Tuple[bool, str]:
    """
    Validate donor full name.

    Returns:
        Tuple of (is_valid: bool, error_message: str)
        - (True, "") if valid
        - (False, "Nama lengkap harus diisi, minimal 3 karakter.") otherwise
    """
    if not isinstance(full_name, str) or len(full_name.strip()) < MIN_NAME_LENGTH:
        return False, "Nama lengkap harus diisi, minimal 3 karakter."
    return True, ""


def validate_national_id(national_id: str) -> Tuple[bool, str]:
    """
    Validate NIK (Nomor Induk Kependudukan).

    Returns:
        Tuple of (is_valid: bool, error_message: str)
        - (True, "") if exactly 16 digits
        - (False, "Nomor Induk Kependudukan (NIK) harus 16 digit.") otherwise
    """
    if not isinstance(national_id, str) or not NATIONAL_ID_PATTERN.match(national_id.strip()):
        return False, "Nomor Induk Kependudukan (NIK) harus 16 digit."
    return True, ""


def validate_contact_number(contact_number: str) -> Tuple[bool, str]:
    """
    Validate WhatsApp number.

    Returns:
        Tuple of (is_valid: bool, error_message: str)
        - (True, "") if it starts with "08" and has at least 10 digits
        - (False, "Nomor WhatsApp tidak valid, minimal 10 digit.") if too short
        - (False, "Format No. WhatsApp salah, contoh: 08123456789") if pattern mismatch
    """
    if not isinstance(contact_number, str):
        return False, "Nomor WhatsApp tidak valid, minimal 10 digit."

    value = contact_number.strip()
    if len(value) < MIN_CONTACT_LENGTH:
        return False, "Nomor WhatsApp tidak valid, minimal 10 digit."
    if not CONTACT_NUMBER_PATTERN.match(value):
        return False, "Format No. WhatsApp salah, contoh: 08123456789"
    return True, ""


def validate_registrant_details(details: Dict[str, Any]) -> Dict[str, str]:
    """
    Validate all registrant form fields at once.

    Args:
        details: Mapping with full_name, national_id and contact_number

    Returns:
        Normalized copy of the fields (whitespace trimmed)

    Raises:
        ValidationError: With one message per invalid field
    """
    full_name = details.get("full_name") or ""
    national_id = details.get("national_id") or ""
    contact_number = details.get("contact_number") or ""

    errors: Dict[str, str] = {}
    for field, validator, value in (
        ("full_name", validate_full_name, full_name),
        ("national_id", validate_national_id, national_id),
        ("contact_number", validate_contact_number, contact_number),
    ):
        is_valid, error_msg = validator(value)
        if not is_valid:
            errors[field] = error_msg

    if errors:
        raise ValidationError(errors)

    return {
        "full_name": full_name.strip(),
        "national_id": national_id.strip(),
        "contact_number": contact_number.strip(),
    }


def validate_date_format(date_str: str) -> bool:
    """
    Validate date string in YYYY-MM-DD format.

    Raises:
        ValueError: If date format is invalid
    """
    if not isinstance(date_str, str):
        raise ValueError("Date must be a string")

    if not re.match(r"^[0-9]{4}-[0-9]{2}-[0-9]{2}$", date_str):
        raise ValueError(f"Date must be in YYYY-MM-DD format: {date_str}")

    try:
        datetime.strptime(date_str, "%Y-%m-%d")
    except ValueError as e:
        raise ValueError(f"Invalid date value: {date_str} - {str(e)}")

    return True


def validate_capacity(capacity: Any) -> Tuple[bool, str]:
    """
    Validate event capacity.

    The current registration count is deliberately not consulted: an admin
    may lower capacity below it, which only closes the event.

    Returns:
        Tuple of (is_valid: bool, error_message: str)
        - (True, "") if valid
        - (False, "Kuota harus berupa bilangan bulat positif.") otherwise
    """
    if isinstance(capacity, bool) or not isinstance(capacity, int) or capacity <= 0:
        return False, "Kuota harus berupa bilangan bulat positif."
    return True, ""
