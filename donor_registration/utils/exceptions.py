"""Custom exception classes."""
from typing import Dict, Optional


class DonorRegistrationError(Exception):
    """Base class for errors surfaced to the registration UI."""

    default_message = "Terjadi kesalahan saat mendaftar."

    def user_message(self) -> str:
        """Indonesian copy shown to the user."""
        return self.default_message


class ValidationError(DonorRegistrationError):
    """Raised when registrant or admin input fails validation."""

    default_message = "Mohon periksa kembali isian Anda."

    def __init__(self, errors: Dict[str, str]):
        self.errors = dict(errors)
        super().__init__("; ".join(f"{k}: {v}" for k, v in self.errors.items()))

    def user_message(self) -> str:
        if self.errors:
            return next(iter(self.errors.values()))
        return self.default_message


class NotFoundError(DonorRegistrationError):
    """Raised when a document ID doesn't exist."""

    default_message = "Data tidak ditemukan."


class EventNotFoundError(NotFoundError):
    """Raised when an event ID doesn't exist at transaction time."""

    default_message = "Event tidak tersedia, silakan pilih ulang jadwal."

    def __init__(self, event_id: str):
        self.event_id = event_id
        super().__init__(f"Event not found: {event_id}")


class CapacityExceededError(DonorRegistrationError):
    """Raised when the event is already full at transaction time."""

    default_message = "Maaf, kuota untuk lokasi ini sudah penuh."

    def __init__(self, event_id: str, max_quota: Optional[int] = None):
        self.event_id = event_id
        self.max_quota = max_quota
        super().__init__(f"Event {event_id} is full (max_quota={max_quota})")


class TransientStoreError(DonorRegistrationError):
    """Raised when the store is unreachable or transaction retries run out."""

    default_message = "Server sedang sibuk. Silakan coba lagi beberapa saat lagi."


class TransactionConflictError(Exception):
    """Raised internally when a commit finds its read set changed."""
    pass


class NotificationDispatchError(Exception):
    """Raised when the WhatsApp gateway cannot be reached."""
    pass


class AuthenticationError(DonorRegistrationError):
    """Raised when login credentials invalid."""

    default_message = "Username atau password salah."
