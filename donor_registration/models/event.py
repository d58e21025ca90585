"""Donation event data model."""
from dataclasses import dataclass, asdict
from typing import Any, Dict

from donor_registration.utils.date_utils import format_indonesian_date
from donor_registration.utils.validation import validate_date_format


@dataclass
class Event:
    """Blood donation slot with capacity information."""

    id: str
    location: str
    date: str  # YYYY-MM-DD
    max_quota: int
    current_registrations: int = 0

    def __post_init__(self):
        """Validate event data after initialization."""
        if not self.id or not self.id.strip():
            raise ValueError("Event ID cannot be empty")

        if not self.location or not self.location.strip():
            raise ValueError("Location cannot be empty")

        validate_date_format(self.date)

        if self.max_quota <= 0:
            raise ValueError("Max quota must be positive")

        if self.current_registrations < 0:
            raise ValueError("Current registrations cannot be negative")

    def is_full(self) -> bool:
        """Check if event is at (or above) capacity."""
        return self.current_registrations >= self.max_quota

    def remaining_slots(self) -> int:
        """Open slots left; zero when an admin lowered quota below the count."""
        return max(self.max_quota - self.current_registrations, 0)

    def status(self) -> str:
        """'full' if at capacity, 'available' otherwise."""
        return "full" if self.is_full() else "available"

    def registration_percentage(self) -> float:
        """Calculate registration percentage, capped at 100."""
        return min((self.current_registrations / self.max_quota) * 100.0, 100.0)

    def location_and_date(self) -> str:
        """Location and date phrase used in confirmation messages."""
        return f"{self.location} pada {self.date}"

    def display_date(self) -> str:
        return format_indonesian_date(self.date)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Event":
        """Build an Event from a stored document, ignoring internal keys."""
        return cls(
            id=data["id"],
            location=data["location"],
            date=data["date"],
            max_quota=int(data.get("max_quota", 0)),
            current_registrations=int(data.get("current_registrations", 0) or 0),
        )
