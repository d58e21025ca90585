"""Utilities for preparing HTML snippets before rendering in Streamlit."""
import html
from textwrap import dedent

from donor_registration.models.event import Event


def html_block(template: str) -> str:
    """
    Normalize multi-line HTML so Streamlit doesn't treat it as Markdown code.

    Lines with 4+ leading spaces would otherwise render as code blocks.
    """
    lines = dedent(template).splitlines()
    return "\n".join(line.lstrip() for line in lines).strip()


def format_slot_badge(event: Event) -> str:
    """Badge text for an event card: "Penuh" or "<n> Slot"."""
    if event.is_full():
        return "Penuh"
    return f"{event.remaining_slots()} Slot"


def event_card_html(event: Event) -> str:
    """Card markup showing location, date and remaining quota."""
    status_class = "event-card-full" if event.is_full() else "event-card-open"
    return html_block(
        f"""
        <div class="event-card {status_class}">
            <div class="event-card-body">
                <div class="event-card-location">📍 {html.escape(event.location)}</div>
                <div class="event-card-date">{html.escape(event.display_date())}</div>
            </div>
            <div class="event-card-badge">{format_slot_badge(event)}</div>
        </div>
        """
    )
