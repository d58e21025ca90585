"""Unit tests for registration_service."""
from unittest.mock import MagicMock, patch

import pytest

from donor_registration.models.registrant import RegistrantDetails
from donor_registration.services.document_store import DocumentStore
from donor_registration.services.event_service import EVENTS, get_event, list_registrants
from donor_registration.services.notification_service import compose_message
from donor_registration.services.registration_service import register, submit_registration
from donor_registration.utils.config import Settings
from donor_registration.utils.date_utils import parse_timestamp
from donor_registration.utils.exceptions import (
    CapacityExceededError,
    EventNotFoundError,
    TransientStoreError,
    ValidationError,
)

VALID_DETAILS = {
    "full_name": "Roni Algifari",
    "national_id": "3171234567890001",
    "contact_number": "08123456789",
}


@pytest.fixture
def store(tmp_path):
    """Store with one open event and one full event."""
    store = DocumentStore(str(tmp_path / "store.json"))
    with store.batch() as batch:
        batch.set(EVENTS, "ev1", {
            "id": "ev1", "location": "Stasiun Juanda", "date": "2026-03-30",
            "max_quota": 2, "current_registrations": 0,
        })
        batch.set(EVENTS, "full", {
            "id": "full", "location": "Stasiun BNI City", "date": "2026-03-31",
            "max_quota": 1, "current_registrations": 1,
        })
    return store


@pytest.fixture
def offline_settings():
    """Settings with no AI key and no WhatsApp gateway."""
    return Settings()


class TestRegister:
    """Test register function."""

    def test_successful_registration(self, store):
        registrant = register("ev1", VALID_DETAILS, store=store)

        assert registrant.full_name == "Roni Algifari"
        assert registrant.event_id == "ev1"
        assert registrant.id
        assert get_event("ev1", store).current_registrations == 1
        assert [r.id for r in list_registrants(store)] == [registrant.id]

    def test_accepts_registrant_details(self, store):
        registrant = register("ev1", RegistrantDetails(**VALID_DETAILS), store=store)
        assert registrant.national_id == "3171234567890001"

    def test_fields_are_trimmed(self, store):
        registrant = register("ev1", {**VALID_DETAILS, "full_name": "  Roni Algifari  "}, store=store)
        assert registrant.full_name == "Roni Algifari"

    def test_timestamps(self, store):
        """Client time is kept; the store assigns the authoritative commit time."""
        registrant = register("ev1", VALID_DETAILS, store=store, submitted_at="2026-03-01T09:00:00+07:00")

        assert registrant.registered_at == "2026-03-01T09:00:00+07:00"
        assert parse_timestamp(registrant.created_at).utcoffset().total_seconds() == 0
        stored = list_registrants(store)[0]
        assert stored.created_at == registrant.created_at

    def test_unique_ids(self, store):
        first = register("ev1", VALID_DETAILS, store=store)
        second = register("ev1", VALID_DETAILS, store=store)
        assert first.id != second.id

    def test_unknown_event(self, store):
        with pytest.raises(EventNotFoundError):
            register("nonexistent-id", VALID_DETAILS, store=store)
        assert list_registrants(store) == []

    def test_full_event(self, store):
        with pytest.raises(CapacityExceededError) as exc_info:
            register("full", VALID_DETAILS, store=store)

        assert exc_info.value.user_message() == "Maaf, kuota untuk lokasi ini sudah penuh."
        assert get_event("full", store).current_registrations == 1
        assert list_registrants(store) == []

    def test_fills_to_capacity_then_rejects(self, store):
        register("ev1", VALID_DETAILS, store=store)
        register("ev1", VALID_DETAILS, store=store)
        with pytest.raises(CapacityExceededError):
            register("ev1", VALID_DETAILS, store=store)
        assert get_event("ev1", store).current_registrations == 2
        assert len(list_registrants(store)) == 2

    def test_invalid_national_id_never_touches_store(self):
        """Validation happens before any transaction is attempted."""
        mock_store = MagicMock(spec=DocumentStore)

        with pytest.raises(ValidationError) as exc_info:
            register("ev1", {**VALID_DETAILS, "national_id": "317123456789000"}, store=mock_store)

        assert "national_id" in exc_info.value.errors
        mock_store.run_transaction.assert_not_called()
        mock_store.get.assert_not_called()

    def test_fullwidth_national_id_is_not_stored(self, store):
        with pytest.raises(ValidationError) as exc_info:
            register("ev1", {**VALID_DETAILS, "national_id": "３" * 16}, store=store)

        assert "national_id" in exc_info.value.errors
        assert list_registrants(store) == []
        assert get_event("ev1", store).current_registrations == 0

    def test_does_not_trust_cached_capacity(self, store):
        """A quota lowered after the form loaded is enforced at commit."""
        with store.batch() as batch:
            batch.update(EVENTS, "ev1", {"max_quota": 1, "current_registrations": 1})

        with pytest.raises(CapacityExceededError):
            register("ev1", VALID_DETAILS, store=store)

    def test_transient_error_leaves_no_partial_state(self, store):
        with patch(
            "donor_registration.services.document_store.save_json",
            side_effect=IOError("disk full"),
        ):
            with pytest.raises(TransientStoreError):
                register("ev1", VALID_DETAILS, store=store)

        assert get_event("ev1", store).current_registrations == 0
        assert list_registrants(store) == []

    def test_register_does_not_notify(self, store):
        with patch("donor_registration.services.registration_service.notify_registrant") as mock_notify:
            register("ev1", VALID_DETAILS, store=store)
        mock_notify.assert_not_called()


class TestSubmitRegistration:
    """Test submit_registration orchestration."""

    def test_outcome_uses_template_without_ai(self, store, offline_settings):
        outcome = submit_registration("ev1", VALID_DETAILS, store=store, settings=offline_settings)

        assert outcome.registrant.event_id == "ev1"
        assert outcome.event.current_registrations == 1
        assert outcome.message == compose_message("Roni Algifari", "Stasiun Juanda pada 2026-03-30")
        assert outcome.message_generated is False
        assert outcome.notification_sent is False
        assert outcome.notification_error

    def test_generator_failure_does_not_fail_registration(self, store, offline_settings):
        with patch(
            "donor_registration.services.notification_service.generate_confirmation_message",
            side_effect=TimeoutError("model timed out"),
        ):
            outcome = submit_registration("ev1", VALID_DETAILS, store=store, settings=offline_settings)

        assert outcome.registrant.full_name == "Roni Algifari"
        assert outcome.message == (
            "Hallo Roni Algifari, selamat anda terdaftar sebagai peserta donor darah "
            "PT. Kereta Commuter Indonesia. Sampai jumpa di Stasiun Juanda pada 2026-03-30"
        )
        assert get_event("ev1", store).current_registrations == 1

    def test_notification_runs_after_commit(self, store, offline_settings):
        """The registrant is already persisted when notification starts."""
        seen = {}

        def fake_notify(registrant, event, settings=None):
            seen["stored"] = [r.id for r in list_registrants(store)]
            seen["registrant"] = registrant.id
            return MagicMock(message="ok", message_generated=True, sent=True, error=None)

        with patch("donor_registration.services.registration_service.notify_registrant", side_effect=fake_notify):
            outcome = submit_registration("ev1", VALID_DETAILS, store=store, settings=offline_settings)

        assert seen["stored"] == [seen["registrant"]]
        assert outcome.message == "ok"
        assert outcome.notification_sent is True

    def test_failed_registration_skips_notification(self, store, offline_settings):
        with patch("donor_registration.services.registration_service.notify_registrant") as mock_notify:
            with pytest.raises(CapacityExceededError):
                submit_registration("full", VALID_DETAILS, store=store, settings=offline_settings)
        mock_notify.assert_not_called()
