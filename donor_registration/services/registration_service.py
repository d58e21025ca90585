"""Registration service: the quota-bounded registration transaction."""
import logging
import uuid
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple, Union

from donor_registration.models.event import Event
from donor_registration.models.registrant import Registrant, RegistrantDetails
from donor_registration.services.document_store import (
    SERVER_TIMESTAMP,
    DocumentStore,
    Transaction,
    get_store,
)
from donor_registration.services.event_service import EVENTS, REGISTRANTS
from donor_registration.services.notification_service import notify_registrant
from donor_registration.utils.config import Settings
from donor_registration.utils.date_utils import local_now_iso
from donor_registration.utils.exceptions import CapacityExceededError, EventNotFoundError
from donor_registration.utils.validation import validate_registrant_details

logger = logging.getLogger(__name__)


@dataclass
class RegistrationOutcome:
    """What the form shows after a successful registration."""

    registrant: Registrant
    event: Event
    message: str
    message_generated: bool
    notification_sent: bool
    notification_error: Optional[str] = None


def _details_to_dict(details: Union[RegistrantDetails, Dict[str, Any]]) -> Dict[str, Any]:
    if isinstance(details, RegistrantDetails):
        return details.to_dict()
    return dict(details)


def _register(
    event_id: str,
    details: Union[RegistrantDetails, Dict[str, Any]],
    store: Optional[DocumentStore],
    submitted_at: Optional[str],
) -> Tuple[Registrant, Event]:
    """Run the registration transaction; return the registrant and the committed event state."""
    fields = validate_registrant_details(_details_to_dict(details))
    store = store or get_store()
    registered_at = submitted_at or local_now_iso()

    def _register_txn(transaction: Transaction) -> Tuple[Dict[str, Any], Dict[str, Any]]:
        event_doc = transaction.get(EVENTS, event_id)
        if event_doc is None:
            raise EventNotFoundError(event_id)

        current_count = int(event_doc.get("current_registrations") or 0)
        max_quota = int(event_doc.get("max_quota") or 0)
        if current_count >= max_quota:
            raise CapacityExceededError(event_id, max_quota)

        registrant_doc = {
            "id": uuid.uuid4().hex,
            **fields,
            "event_id": event_id,
            "registered_at": registered_at,
            "created_at": SERVER_TIMESTAMP,
        }
        transaction.update(EVENTS, event_id, {"current_registrations": current_count + 1})
        transaction.set(REGISTRANTS, registrant_doc["id"], registrant_doc)
        return registrant_doc, {**event_doc, "current_registrations": current_count + 1}

    try:
        registrant_doc, event_doc = store.run_transaction(_register_txn)
    except CapacityExceededError:
        logger.info("Registration rejected, event %s is full", event_id)
        raise
    except EventNotFoundError:
        logger.info("Registration rejected, event %s not found", event_id)
        raise

    # created_at was resolved to the commit time when the write was applied
    registrant = Registrant.from_dict(registrant_doc)
    logger.info("Registrant %s registered for event %s", registrant.id, event_id)
    return registrant, Event.from_dict(event_doc)


def register(
    event_id: str,
    details: Union[RegistrantDetails, Dict[str, Any]],
    store: Optional[DocumentStore] = None,
    submitted_at: Optional[str] = None,
) -> Registrant:
    """
    Register a donor for an event.

    Args:
        event_id: Event to register for
        details: full_name, national_id and contact_number from the form
        store: Document store (defaults to the configured one)
        submitted_at: Client-observed submission time (ISO 8601);
            defaults to now

    Returns:
        Registrant: The persisted record, with server timestamp

    Raises:
        ValidationError: If details are malformed (before touching the store)
        EventNotFoundError: If the event doesn't exist at commit time
        CapacityExceededError: If the event is full at commit time
        TransientStoreError: If the store fails or retries run out

    Behavior:
        - Reads the event inside the transaction, never from a cached list
        - Increments the counter and inserts the registrant in one commit
        - Conflicting commits re-run the whole read-check-write closure
    """
    registrant, _ = _register(event_id, details, store, submitted_at)
    return registrant


def submit_registration(
    event_id: str,
    details: Union[RegistrantDetails, Dict[str, Any]],
    store: Optional[DocumentStore] = None,
    settings: Optional[Settings] = None,
    submitted_at: Optional[str] = None,
) -> RegistrationOutcome:
    """
    Register, then send the confirmation outside the transaction.

    Notification problems never fail the registration; the outcome
    always carries a confirmation message (the template as fallback).

    Raises:
        Same as register()
    """
    registrant, event = _register(event_id, details, store, submitted_at)
    result = notify_registrant(registrant, event, settings=settings)

    return RegistrationOutcome(
        registrant=registrant,
        event=event,
        message=result.message,
        message_generated=result.message_generated,
        notification_sent=result.sent,
        notification_error=result.error,
    )
