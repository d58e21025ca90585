"""
Integration tests for concurrent registration against a shared store.

Each worker opens its own DocumentStore on the same file, the way separate
Streamlit sessions (or processes) would.
"""
import threading

import pytest

from donor_registration.services.document_store import DocumentStore
from donor_registration.services.event_service import (
    EVENTS,
    count_registrants_by_event,
    get_event,
    list_registrants,
    reset_all,
    seed_defaults,
    set_capacity,
)
from donor_registration.services.registration_service import register, submit_registration
from donor_registration.utils.config import Settings
from donor_registration.utils.exceptions import CapacityExceededError


def _details(n):
    return {
        "full_name": f"Pendonor {n}",
        "national_id": f"{3171000000000000 + n}",
        "contact_number": f"0812{n:08d}",
    }


def _run_concurrently(path, event_id, count):
    """Register `count` donors at once; return (registrants, rejections, other errors)."""
    successes, rejections, errors = [], [], []
    lock = threading.Lock()
    barrier = threading.Barrier(count)

    def worker(n):
        store = DocumentStore(path, max_attempts=50)
        barrier.wait()
        try:
            registrant = register(event_id, _details(n), store=store)
        except CapacityExceededError as e:
            with lock:
                rejections.append(e)
        except Exception as e:  # noqa: BLE001 - surfaced by the assertions below
            with lock:
                errors.append(e)
        else:
            with lock:
                successes.append(registrant)

    threads = [threading.Thread(target=worker, args=(n,)) for n in range(count)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=60)
    return successes, rejections, errors


@pytest.fixture
def path(tmp_path):
    return str(tmp_path / "donor.json")


@pytest.fixture
def store(path):
    store = DocumentStore(path, max_attempts=50)
    with store.batch() as batch:
        batch.set(EVENTS, "e1", {
            "id": "e1", "location": "Stasiun Juanda", "date": "2026-03-30",
            "max_quota": 5, "current_registrations": 0,
        })
    return store


def test_more_requests_than_quota(path, store):
    """Twelve concurrent requests for five seats: exactly five succeed."""
    successes, rejections, errors = _run_concurrently(path, "e1", 12)

    assert errors == []
    assert len(successes) == 5
    assert len(rejections) == 7
    assert get_event("e1", store).current_registrations == 5
    assert count_registrants_by_event(store) == {"e1": 5}
    assert len({r.id for r in successes}) == 5


def test_last_seat_goes_to_one_of_two(path, store):
    set_capacity("e1", 1, store=store)

    successes, rejections, errors = _run_concurrently(path, "e1", 2)

    assert errors == []
    assert len(successes) == 1
    assert len(rejections) == 1
    assert rejections[0].user_message() == "Maaf, kuota untuk lokasi ini sudah penuh."
    assert [r.id for r in list_registrants(store)] == [successes[0].id]


def test_counter_matches_registrants_without_contention(path, store):
    """Sequential registrations never let the counter drift from stored records."""
    previous = 0
    for n in range(5):
        register("e1", _details(n), store=store)
        current = get_event("e1", store).current_registrations
        assert current == previous + 1
        previous = current

    with pytest.raises(CapacityExceededError):
        register("e1", _details(99), store=store)
    assert get_event("e1", store).current_registrations == 5
    assert count_registrants_by_event(store) == {"e1": 5}


def test_raising_capacity_reopens_event(path, store):
    for n in range(5):
        register("e1", _details(n), store=store)

    set_capacity("e1", 6, store=store)
    register("e1", _details(5), store=store)

    assert get_event("e1", store).current_registrations == 6


def test_reset_then_register_again(path):
    store = DocumentStore(path)
    seed_defaults(store)
    submit_registration("ev1", _details(1), store=store, settings=Settings())
    submit_registration("ev2", _details(2), store=store, settings=Settings())

    assert reset_all(store) == 2
    assert list_registrants(store) == []
    assert all(get_event(eid, store).current_registrations == 0 for eid in ("ev1", "ev2", "ev3", "ev4"))

    outcome = submit_registration("ev1", _details(3), store=store, settings=Settings())
    assert outcome.event.current_registrations == 1
