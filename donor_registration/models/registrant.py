"""Registrant data model for donor registration."""
from dataclasses import dataclass, asdict
from typing import Any, Dict, Optional

from donor_registration.utils.date_utils import parse_timestamp


@dataclass(frozen=True)
class RegistrantDetails:
    """Unvalidated form input for a registration."""

    full_name: str
    national_id: str
    contact_number: str

    def to_dict(self) -> Dict[str, str]:
        return asdict(self)


@dataclass(frozen=True)
class Registrant:
    """Donor who successfully registered for an event."""

    id: str
    full_name: str
    national_id: str
    contact_number: str
    event_id: str
    registered_at: str  # ISO 8601, as observed by the form
    created_at: Optional[str] = None  # ISO 8601, assigned by the store at commit

    def __post_init__(self):
        """Validate registrant data."""
        if not self.id:
            raise ValueError("Registrant ID cannot be empty")
        if not self.full_name or not self.full_name.strip():
            raise ValueError("Name cannot be empty")
        if not self.event_id:
            raise ValueError("Event ID cannot be empty")

        # Validate ISO 8601 timestamp format
        try:
            parse_timestamp(self.registered_at)
        except (AttributeError, ValueError) as e:
            raise ValueError(f"Invalid timestamp format: {self.registered_at}") from e
        if self.created_at is not None:
            try:
                parse_timestamp(self.created_at)
            except (AttributeError, ValueError) as e:
                raise ValueError(f"Invalid server timestamp format: {self.created_at}") from e

    @property
    def sort_timestamp(self) -> str:
        """Timestamp used to order registrants, preferring the server one."""
        return self.created_at or self.registered_at

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Registrant":
        return cls(
            id=data["id"],
            full_name=data["full_name"],
            national_id=data["national_id"],
            contact_number=data["contact_number"],
            event_id=data["event_id"],
            registered_at=data["registered_at"],
            created_at=data.get("created_at"),
        )
