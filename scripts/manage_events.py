#!/usr/bin/env python3
"""
Event data maintenance from the command line.

Usage:
    python scripts/manage_events.py status
    python scripts/manage_events.py seed
    python scripts/manage_events.py reset --yes
    python scripts/manage_events.py set-quota ev1 60
"""

import argparse
import logging
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from donor_registration.services.event_service import (  # noqa: E402
    count_registrants_by_event,
    list_events,
    reset_all,
    seed_defaults,
    set_capacity,
)
from donor_registration.utils.exceptions import DonorRegistrationError  # noqa: E402


def print_status():
    """Print each event's counter next to the stored registrant count."""
    events = list_events()
    if not events:
        print("No events. Run 'seed' first.")
        return True

    counts = count_registrants_by_event()
    consistent = True
    for event in events:
        stored = counts.get(event.id, 0)
        flag = "✅" if stored == event.current_registrations else "⚠️"
        if stored != event.current_registrations:
            consistent = False
        print(
            f"{flag} {event.id:<6} {event.location:<22} {event.date}  "
            f"{event.current_registrations}/{event.max_quota} (stored registrants: {stored})"
        )
    return consistent


def main(argv=None):
    parser = argparse.ArgumentParser(description="Manage donation events")
    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("status", help="Show counters and check them against registrants")
    sub.add_parser("seed", help="Write the default event schedule")
    reset_parser = sub.add_parser("reset", help="Delete all registrants and zero counters")
    reset_parser.add_argument("--yes", action="store_true", help="Confirm the reset")
    quota_parser = sub.add_parser("set-quota", help="Change an event's max quota")
    quota_parser.add_argument("event_id")
    quota_parser.add_argument("max_quota", type=int)

    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    try:
        if args.command == "status":
            return 0 if print_status() else 1
        if args.command == "seed":
            events = seed_defaults()
            print(f"Seeded {len(events)} events")
        elif args.command == "reset":
            if not args.yes:
                print("Refusing to reset without --yes")
                return 2
            deleted = reset_all()
            print(f"Deleted {deleted} registrants")
        elif args.command == "set-quota":
            event = set_capacity(args.event_id, args.max_quota)
            print(f"{event.id}: max quota {event.max_quota}")
    except DonorRegistrationError as e:
        print(f"❌ {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
