"""Event registry: donation events, capacity edits and admin bulk operations."""
import logging
from typing import Dict, List, Optional

from donor_registration.models.event import Event
from donor_registration.models.registrant import Registrant
from donor_registration.services.document_store import DocumentStore, Transaction, get_store
from donor_registration.utils.exceptions import EventNotFoundError, ValidationError
from donor_registration.utils.validation import validate_capacity

logger = logging.getLogger(__name__)

EVENTS = "events"
REGISTRANTS = "registrants"

DEFAULT_EVENTS: List[Dict[str, object]] = [
    {"id": "ev1", "location": "Stasiun Juanda", "date": "2026-03-30", "max_quota": 50},
    {"id": "ev2", "location": "GTO Stasiun Depok", "date": "2026-03-30", "max_quota": 30},
    {"id": "ev3", "location": "Stasiun Juanda", "date": "2026-03-31", "max_quota": 50},
    {"id": "ev4", "location": "Stasiun BNI City", "date": "2026-03-31", "max_quota": 40},
]


def list_events(store: Optional[DocumentStore] = None) -> List[Event]:
    """
    Load all events ordered by date ascending (ties broken by ID).

    Returns:
        List[Event]: Snapshot of every event with its live counter

    Raises:
        TransientStoreError: If the data file cannot be read
    """
    store = store or get_store()
    events = [Event.from_dict(doc) for doc in store.list(EVENTS)]
    events.sort(key=lambda e: (e.date, e.id))
    return events


def get_event(event_id: str, store: Optional[DocumentStore] = None) -> Optional[Event]:
    """Find an event by ID, or None if it doesn't exist."""
    store = store or get_store()
    doc = store.get(EVENTS, event_id)
    return None if doc is None else Event.from_dict(doc)


def set_capacity(event_id: str, new_max: int, store: Optional[DocumentStore] = None) -> Event:
    """
    Change an event's max quota.

    The new quota may be lower than the current registration count; the
    event then stays full until an admin raises it again.

    Args:
        event_id: Event to edit
        new_max: New positive capacity

    Returns:
        Event: The updated event

    Raises:
        ValidationError: If new_max is not a positive integer
        EventNotFoundError: If event_id doesn't exist
    """
    is_valid, error_msg = validate_capacity(new_max)
    if not is_valid:
        raise ValidationError({"max_quota": error_msg})

    store = store or get_store()

    def _update(transaction: Transaction) -> Event:
        doc = transaction.get(EVENTS, event_id)
        if doc is None:
            raise EventNotFoundError(event_id)
        transaction.update(EVENTS, event_id, {"max_quota": new_max})
        return Event.from_dict({**doc, "max_quota": new_max})

    event = store.run_transaction(_update)
    logger.info("Capacity of %s set to %d", event_id, new_max)
    return event


def reset_all(store: Optional[DocumentStore] = None) -> int:
    """
    Delete every registrant and set every event counter back to 0.

    Runs as one batch but is not coordinated with registrations in
    flight; operators run it while the form is idle.

    Returns:
        int: Number of registrants deleted
    """
    store = store or get_store()
    registrants = store.list(REGISTRANTS)
    events = store.list(EVENTS)

    with store.batch() as batch:
        for doc in registrants:
            batch.delete(REGISTRANTS, doc["id"])
        for doc in events:
            batch.update(EVENTS, doc["id"], {"current_registrations": 0})

    logger.warning("Reset %d events and deleted %d registrants", len(events), len(registrants))
    return len(registrants)


def seed_defaults(store: Optional[DocumentStore] = None) -> List[Event]:
    """
    Write the default event schedule with zeroed counters.

    Existing events with the same IDs are overwritten.

    Returns:
        List[Event]: The seeded events
    """
    store = store or get_store()
    events = [Event(current_registrations=0, **defaults) for defaults in DEFAULT_EVENTS]

    with store.batch() as batch:
        for event in events:
            batch.set(EVENTS, event.id, event.to_dict())

    logger.info("Seeded %d default events", len(events))
    return events


def list_registrants(store: Optional[DocumentStore] = None, search: str = "") -> List[Registrant]:
    """
    Load registrants, newest first.

    Args:
        search: Optional filter; matches full name (case-insensitive)
            or any substring of the NIK

    Returns:
        List[Registrant]: Matching registrants
    """
    store = store or get_store()
    registrants = [Registrant.from_dict(doc) for doc in store.list(REGISTRANTS)]

    query = (search or "").strip()
    if query:
        lowered = query.lower()
        registrants = [
            r for r in registrants
            if lowered in r.full_name.lower() or query in r.national_id
        ]

    registrants.sort(key=lambda r: r.sort_timestamp, reverse=True)
    return registrants


def count_registrants_by_event(store: Optional[DocumentStore] = None) -> Dict[str, int]:
    """Count stored registrants per event ID (for consistency checks)."""
    counts: Dict[str, int] = {}
    for registrant in list_registrants(store):
        counts[registrant.event_id] = counts.get(registrant.event_id, 0) + 1
    return counts
