"""Unit tests for Event model."""
import pytest

from donor_registration.models.event import Event


@pytest.fixture
def open_event():
    """Event with free slots."""
    return Event(id="ev1", location="Stasiun Juanda", date="2026-03-30", max_quota=5, current_registrations=2)


class TestEventValidation:
    """Test Event.__post_init__ validation."""

    def test_valid_event(self, open_event):
        """Test a well-formed event is accepted."""
        assert open_event.id == "ev1"
        assert open_event.current_registrations == 2

    def test_empty_id_rejected(self):
        with pytest.raises(ValueError, match="Event ID cannot be empty"):
            Event(id=" ", location="Stasiun Juanda", date="2026-03-30", max_quota=5)

    def test_empty_location_rejected(self):
        with pytest.raises(ValueError, match="Location cannot be empty"):
            Event(id="ev1", location="", date="2026-03-30", max_quota=5)

    def test_non_iso_date_rejected(self):
        with pytest.raises(ValueError, match="YYYY-MM-DD"):
            Event(id="ev1", location="Stasiun Juanda", date="30/03/2026", max_quota=5)

    def test_impossible_date_rejected(self):
        with pytest.raises(ValueError, match="Invalid date value"):
            Event(id="ev1", location="Stasiun Juanda", date="2026-02-30", max_quota=5)

    def test_non_positive_quota_rejected(self):
        with pytest.raises(ValueError, match="Max quota must be positive"):
            Event(id="ev1", location="Stasiun Juanda", date="2026-03-30", max_quota=0)

    def test_negative_counter_rejected(self):
        with pytest.raises(ValueError, match="cannot be negative"):
            Event(id="ev1", location="Stasiun Juanda", date="2026-03-30", max_quota=5, current_registrations=-1)

    def test_counter_above_quota_allowed(self):
        """Admin may lower quota below the count; the model keeps the event."""
        event = Event(id="ev1", location="Stasiun Juanda", date="2026-03-30", max_quota=2, current_registrations=4)
        assert event.is_full() is True
        assert event.remaining_slots() == 0


class TestEventCapacity:
    """Test capacity helpers."""

    def test_is_full_uses_greater_or_equal(self):
        event = Event(id="ev1", location="Stasiun Juanda", date="2026-03-30", max_quota=3, current_registrations=3)
        assert event.is_full() is True
        assert event.status() == "full"

    def test_available_event(self, open_event):
        assert open_event.is_full() is False
        assert open_event.status() == "available"
        assert open_event.remaining_slots() == 3

    def test_registration_percentage(self, open_event):
        assert open_event.registration_percentage() == pytest.approx(40.0)

    def test_registration_percentage_capped(self):
        event = Event(id="ev1", location="Stasiun Juanda", date="2026-03-30", max_quota=2, current_registrations=3)
        assert event.registration_percentage() == 100.0


class TestEventFormatting:
    """Test display helpers and serialization."""

    def test_location_and_date(self, open_event):
        assert open_event.location_and_date() == "Stasiun Juanda pada 2026-03-30"

    def test_display_date_in_indonesian(self, open_event):
        assert open_event.display_date() == "30 Maret 2026"

    def test_from_dict_ignores_internal_keys(self):
        event = Event.from_dict({
            "id": "ev2",
            "location": "GTO Stasiun Depok",
            "date": "2026-03-30",
            "max_quota": 30,
            "_version": 7,
        })
        assert event.current_registrations == 0
        assert event.max_quota == 30

    def test_to_dict_round_trip(self, open_event):
        assert Event.from_dict(open_event.to_dict()) == open_event
