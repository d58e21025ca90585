"""CSV export of registrants for the admin dashboard."""
import csv
import io
from datetime import date
from typing import Iterable, List, Optional

from donor_registration.models.event import Event
from donor_registration.models.registrant import Registrant
from donor_registration.utils.date_utils import format_registration_time

EXPORT_HEADERS = ["ID", "Nama Lengkap", "NIK", "WhatsApp", "Lokasi", "Tanggal", "Waktu Pendaftaran"]


def registrant_row(registrant: Registrant, events_by_id: dict) -> List[str]:
    """Flatten one registrant into export columns, joining its event."""
    event: Optional[Event] = events_by_id.get(registrant.event_id)
    return [
        registrant.id,
        registrant.full_name,
        registrant.national_id,
        registrant.contact_number,
        event.location if event else "N/A",
        event.date if event else "-",
        format_registration_time(registrant.sort_timestamp),
    ]


def export_registrants_csv(registrants: Iterable[Registrant], events: Iterable[Event]) -> str:
    """
    Render registrants as CSV text.

    Every cell is quoted so NIK and phone numbers keep their leading
    zeros when opened in a spreadsheet.

    Returns:
        CSV content with a header row and one row per registrant
    """
    events_by_id = {event.id: event for event in events}

    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(EXPORT_HEADERS)
    for registrant in registrants:
        writer.writerow(registrant_row(registrant, events_by_id))
    return buffer.getvalue()


def export_filename(today: Optional[date] = None) -> str:
    """Download filename, e.g. Rekap_Donor_KCI_2026-03-30.csv."""
    today = today or date.today()
    return f"Rekap_Donor_KCI_{today.isoformat()}.csv"
