"""Public donor registration form."""
import logging
from typing import List, Optional

import streamlit as st

from donor_registration.models.event import Event
from donor_registration.models.registrant import RegistrantDetails
from donor_registration.services.event_service import list_events
from donor_registration.services.registration_service import RegistrationOutcome, submit_registration
from donor_registration.ui.html_utils import event_card_html, format_slot_badge, html_block
from donor_registration.utils.date_utils import local_now_iso
from donor_registration.utils.exceptions import (
    CapacityExceededError,
    DonorRegistrationError,
    TransientStoreError,
    ValidationError,
)
from donor_registration.utils.validation import validate_registrant_details

logger = logging.getLogger(__name__)

DIALOG_DECORATOR = getattr(st, "dialog", None) or getattr(st, "experimental_dialog", None)

OUTCOME_KEY = "registration_outcome"
SUBMIT_ERROR_KEY = "registration_submit_error"
FORM_KEY = "donor_registration_form"


def event_option_label(event: Event) -> str:
    """Radio label for an event option."""
    return f"{event.location} · {event.display_date()} · {format_slot_badge(event)}"


def selectable_events(events: List[Event]) -> List[Event]:
    """Events that still accept registrations."""
    return [event for event in events if not event.is_full()]


def _inject_form_styles() -> None:
    st.markdown(
        html_block(
            """
            <style>
            .event-card {
                display: flex;
                justify-content: space-between;
                align-items: flex-start;
                padding: 16px;
                border-radius: 12px;
                border: 1px solid #e5e7eb;
                background: #ffffff;
                margin-bottom: 12px;
            }
            .event-card-full { opacity: 0.5; background: #f3f4f6; }
            .event-card-location { font-weight: 600; font-size: 14px; color: #111827; }
            .event-card-date { font-size: 12px; color: #6b7280; margin-top: 4px; }
            .event-card-badge {
                font-size: 11px;
                font-weight: 700;
                padding: 2px 8px;
                border-radius: 6px;
                background: #dcfce7;
                color: #15803d;
            }
            .event-card-full .event-card-badge { background: #fee2e2; color: #dc2626; }
            </style>
            """
        ),
        unsafe_allow_html=True,
    )


def _render_load_error(error: Exception) -> None:
    """Retry affordance when events can't be loaded."""
    st.error("Gagal Memuat Jadwal Donor")
    st.caption(
        "Tidak dapat mengambil data dari server. Ini bisa terjadi jika database "
        "belum siap atau ada masalah koneksi."
    )
    st.code(str(error))

    retry_col, admin_col = st.columns(2)
    with retry_col:
        if st.button("Coba Lagi", use_container_width=True, key="events_retry"):
            st.rerun()
    with admin_col:
        if st.button("Cek Admin", use_container_width=True, key="events_error_admin"):
            st.session_state.current_page = "admin"
            st.rerun()


def _render_empty_state() -> None:
    st.info(
        "Belum ada Jadwal Tersedia. Saat ini belum ada jadwal donor darah yang "
        "terdaftar di sistem. Silakan setup jadwal di dashboard admin."
    )
    if st.button("Setup Jadwal (Admin)", key="events_empty_admin"):
        st.session_state.current_page = "admin"
        st.rerun()


def _render_confirmation(outcome: RegistrationOutcome) -> None:
    """Body of the success dialog."""
    st.success("Selamat anda telah terdaftar")
    st.caption("Terima kasih telah bersedia mendonorkan darah Anda. Satu tetes darah Anda sangat berarti.")
    st.markdown("**👥 Notifikasi WhatsApp:**")
    st.info(outcome.message)
    if not outcome.notification_sent:
        st.caption("Pesan WhatsApp belum terkirim; simpan konfirmasi di atas sebagai bukti pendaftaran.")

    if st.button("Selesai", use_container_width=True, type="primary", key="registration_done"):
        st.session_state.pop(OUTCOME_KEY, None)
        st.rerun()


if DIALOG_DECORATOR:
    @DIALOG_DECORATOR("Pendaftaran Berhasil")
    def _confirmation_dialog(outcome: RegistrationOutcome) -> None:
        _render_confirmation(outcome)
else:  # pragma: no cover - older Streamlit
    def _confirmation_dialog(outcome: RegistrationOutcome) -> None:
        with st.container(border=True):
            _render_confirmation(outcome)


def _render_submit_error() -> None:
    """Show a capacity rejection carried over from the previous run."""
    message = st.session_state.pop(SUBMIT_ERROR_KEY, None)
    if message:
        st.error(f"Pendaftaran Gagal: {message}")
        st.caption("Daftar jadwal telah diperbarui, silakan pilih jadwal lain.")


def _handle_submit(event_id: Optional[str], details: RegistrantDetails) -> None:
    """Validate, register and stash the outcome for the confirmation dialog."""
    errors = {}
    try:
        validate_registrant_details(details.to_dict())
    except ValidationError as e:
        errors.update(e.errors)
    if not event_id:
        errors["event_id"] = "Silakan pilih lokasi dan tanggal."

    if errors:
        st.error("Formulir Belum Lengkap. Mohon periksa kembali isian Anda.")
        for message in errors.values():
            st.caption(f"• {message}")
        return

    try:
        outcome = submit_registration(event_id, details, submitted_at=local_now_iso())
    except CapacityExceededError as e:
        # Rerun so cards and options are rebuilt from a fresh list_events()
        st.session_state[SUBMIT_ERROR_KEY] = e.user_message()
        st.rerun()
        return
    except TransientStoreError as e:
        logger.warning("Registration failed transiently: %s", e)
        st.error(f"Pendaftaran Gagal: {e.user_message()}")
        return
    except DonorRegistrationError as e:
        st.error(f"Pendaftaran Gagal: {e.user_message()}")
        return

    st.session_state[OUTCOME_KEY] = outcome
    st.balloons()


def render_registration_form() -> None:
    """Render the public registration page."""
    _inject_form_styles()

    st.markdown("## 🩸 Pendaftaran Donor Darah")
    st.caption("PT. Kereta Commuter Indonesia")

    try:
        events = list_events()
    except TransientStoreError as e:
        logger.warning("Could not load events: %s", e)
        _render_load_error(e)
        return

    if not events:
        _render_empty_state()
        return

    _render_submit_error()

    st.markdown("### Lokasi dan Tanggal")
    st.caption("Pilih jadwal donor darah yang tersedia. Kuota realtime.")
    card_cols = st.columns(2)
    for idx, event in enumerate(events):
        with card_cols[idx % 2]:
            st.markdown(event_card_html(event), unsafe_allow_html=True)

    open_events = selectable_events(events)
    events_by_id = {event.id: event for event in open_events}

    with st.form(FORM_KEY, clear_on_submit=False):
        name_col, nik_col, wa_col = st.columns(3)
        with name_col:
            full_name = st.text_input("Nama Lengkap", placeholder="Contoh: Roni Algifari")
        with nik_col:
            national_id = st.text_input(
                "Nomor Induk Kependudukan (NIK)",
                placeholder="16 digit angka",
                max_chars=16,
            )
        with wa_col:
            contact_number = st.text_input("No WhatsApp", placeholder="Contoh: 08123456789")

        event_id = st.radio(
            "Pilih jadwal",
            options=list(events_by_id.keys()),
            format_func=lambda eid: event_option_label(events_by_id[eid]),
            index=None,
            disabled=not open_events,
        )
        if not open_events:
            st.warning("Semua jadwal sudah penuh.")

        submitted = st.form_submit_button(
            "🩸 Daftar Sekarang",
            use_container_width=True,
            type="primary",
            disabled=not open_events,
        )

    if submitted:
        with st.spinner("Memproses..."):
            _handle_submit(
                event_id,
                RegistrantDetails(
                    full_name=full_name,
                    national_id=national_id,
                    contact_number=contact_number,
                ),
            )

    outcome = st.session_state.get(OUTCOME_KEY)
    if outcome is not None:
        _confirmation_dialog(outcome)
