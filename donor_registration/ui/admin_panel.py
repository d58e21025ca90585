"""Admin panel UI component for event and registrant management."""
import logging
import traceback
from typing import Dict, Iterable, List

import streamlit as st

from donor_registration.models.event import Event
from donor_registration.models.registrant import Registrant
from donor_registration.services.admin_service import (
    login_admin,
    logout_admin,
    is_admin_authenticated
)
from donor_registration.services.event_service import (
    list_events,
    list_registrants,
    reset_all,
    seed_defaults,
    set_capacity,
)
from donor_registration.services.export_service import export_filename, export_registrants_csv
from donor_registration.ui.html_utils import html_block
from donor_registration.utils.date_utils import format_registration_time
from donor_registration.utils.exceptions import DonorRegistrationError

logger = logging.getLogger(__name__)


def _show_admin_exception(error: Exception, context: str) -> None:
    """Display error details in UI and log full traceback."""
    logger.exception("Admin panel error during %s", context)

    st.error(f"❌ Gagal {context}: {error}")
    with st.expander("🔍 Detail error"):
        st.code("".join(traceback.format_exception(type(error), error, error.__traceback__)))


def _set_feedback(level: str, message: str) -> None:
    st.session_state["admin_feedback"] = (level, message)


def build_registrant_rows(registrants: Iterable[Registrant], events: Iterable[Event]) -> List[Dict[str, str]]:
    """
    Build table rows for the registrant list.

    Returns:
        One dict per registrant with display columns; registrants of an
        unknown event show location "N/A" and date "-"
    """
    events_by_id = {event.id: event for event in events}
    rows = []
    for registrant in registrants:
        event = events_by_id.get(registrant.event_id)
        rows.append({
            "Nama Lengkap": registrant.full_name,
            "NIK": registrant.national_id,
            "WhatsApp": registrant.contact_number,
            "Lokasi": event.location if event else "N/A",
            "Tanggal": event.date if event else "-",
            "Waktu Pendaftaran": format_registration_time(registrant.sort_timestamp),
        })
    return rows


def render_login_page():
    """Render admin login page."""
    with st.form("admin_login_form", clear_on_submit=False):
        st.markdown("### 🔐 Admin Dashboard")
        st.caption("Silakan masuk dengan akun administrator untuk melihat rekapan pendaftar.")

        username = st.text_input("Username", placeholder="admin", key="admin_username_input")
        password = st.text_input("Password", type="password", key="admin_password_input")

        submit_col, cancel_col = st.columns(2, gap="small")
        with submit_col:
            submit = st.form_submit_button("Masuk ke Dashboard", use_container_width=True, type="primary")
        with cancel_col:
            cancel = st.form_submit_button("Kembali ke Pendaftaran", use_container_width=True)

        if submit:
            if not username or not password:
                st.error("❌ Mohon isi username dan password")
            else:
                success, message = login_admin(username, password)
                if success:
                    st.success(f"✅ {message}")
                    st.rerun()
                else:
                    st.error(f"❌ {message}")

        if cancel:
            st.session_state.current_page = "register"
            st.rerun()


def _render_feedback() -> None:
    feedback = st.session_state.pop("admin_feedback", None)
    if not feedback:
        return

    level, message = feedback
    if level == "success":
        st.success(message)
    elif level == "error":
        st.error(message)
    elif level == "warning":
        st.warning(message)
    else:
        st.info(message)


def _render_event_quotas(events: List[Event]) -> None:
    """Per-event counters with a capacity editor."""
    st.markdown("### Kuota per Jadwal")

    if not events:
        st.info("Belum ada jadwal. Klik 'Inisialisasi Jadwal' untuk membuat jadwal default.")
        return

    cols = st.columns(min(len(events), 4))
    for idx, event in enumerate(events):
        with cols[idx % len(cols)]:
            st.metric(
                f"{event.location}",
                f"{event.current_registrations}/{event.max_quota}",
                help=event.display_date(),
            )
            st.progress(event.registration_percentage() / 100.0)

            with st.expander("⚙️ Edit Kuota"):
                new_max = st.number_input(
                    "Kuota maksimal",
                    min_value=1,
                    value=event.max_quota,
                    step=1,
                    key=f"quota_input_{event.id}",
                )
                if new_max < event.current_registrations:
                    st.caption("Kuota di bawah jumlah pendaftar; jadwal akan tertutup.")
                if st.button("💾 Simpan", key=f"quota_save_{event.id}", use_container_width=True):
                    try:
                        set_capacity(event.id, int(new_max))
                        _set_feedback("success", f"✅ Kuota {event.location} berhasil diperbarui")
                        st.rerun()
                    except DonorRegistrationError as e:
                        st.error(f"❌ Gagal update kuota: {e.user_message()}")


def _render_actions(events: List[Event], registrants: List[Registrant]) -> None:
    seed_col, export_col, reset_col = st.columns(3, gap="small")

    with seed_col:
        if not events and st.button("➕ Inisialisasi Jadwal", use_container_width=True):
            try:
                seeded = seed_defaults()
                _set_feedback("success", f"✅ {len(seeded)} jadwal berhasil diinisialisasi")
                st.rerun()
            except DonorRegistrationError as e:
                _show_admin_exception(e, "inisialisasi")

    with export_col:
        st.download_button(
            "📥 Download CSV",
            data=export_registrants_csv(registrants, events).encode("utf-8"),
            file_name=export_filename(),
            mime="text/csv",
            use_container_width=True,
            disabled=not registrants,
        )

    with reset_col:
        with st.popover("🗑️ Reset Data", use_container_width=True, disabled=not registrants):
            st.warning(
                "Semua data pendaftar akan dihapus dan kuota kembali ke 0. "
                "Pastikan tidak ada pendaftaran yang sedang berlangsung."
            )
            confirm = st.checkbox("Saya yakin", key="admin_reset_confirm")
            if st.button("Hapus Semua", disabled=not confirm, type="primary", key="admin_reset_submit"):
                try:
                    deleted = reset_all()
                    _set_feedback("success", f"✅ Data berhasil direset ({deleted} pendaftar dihapus)")
                    st.rerun()
                except DonorRegistrationError as e:
                    _show_admin_exception(e, "reset data")


def render_admin_panel():
    """Render admin management panel."""
    try:
        if not is_admin_authenticated():
            render_login_page()
            return

        _render_feedback()

        header_col, home_col, logout_col = st.columns([3, 1, 1], gap="small")
        with header_col:
            st.markdown(
                html_block(
                    """
                    <div class="admin-header">
                        <h2 class="admin-title">📊 Rekap Pendaftar Donor Darah</h2>
                    </div>
                    """
                ),
                unsafe_allow_html=True,
            )
        with home_col:
            if st.button("🏠 Pendaftaran", use_container_width=True):
                st.session_state.current_page = "register"
                st.rerun()
        with logout_col:
            if st.button("🚪 Logout", use_container_width=True):
                logout_admin()
                st.rerun()

        events = list_events()
        all_registrants = list_registrants()

        _render_actions(events, all_registrants)
        _render_event_quotas(events)

        st.markdown("### Daftar Pendaftar")
        search = st.text_input("🔍 Cari nama atau NIK...", key="admin_search")
        registrants = list_registrants(search=search) if search else all_registrants
        st.caption(f"Total: {len(registrants)} Orang")

        if registrants:
            st.dataframe(build_registrant_rows(registrants, events), use_container_width=True, hide_index=True)
        else:
            st.info("Tidak ada data pendaftar.")

    except Exception as error:
        _show_admin_exception(error, "memuat dashboard")
