"""
Pendaftaran Donor Darah
Blood Donation Registration
"""
import logging
import streamlit as st

from donor_registration.ui.registration_form import render_registration_form
from donor_registration.ui.admin_panel import render_admin_panel
from donor_registration.utils.config import get_settings

logger = logging.getLogger(__name__)


# Streamlit page configuration
st.set_page_config(
    page_title="Donor Darah KCI",
    page_icon="🩸",
    layout="centered",
    initial_sidebar_state="collapsed"
)


def configure_logging():
    """Configure root logging once per process from LOG_LEVEL."""
    settings = get_settings()
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def initialize_session_state():
    """Initialize session state defaults."""
    if "current_page" not in st.session_state:
        st.session_state.current_page = "register"

    if "admin_authenticated" not in st.session_state:
        st.session_state.admin_authenticated = False

    # ?page=admin opens the dashboard directly
    if "url_params_processed" not in st.session_state:
        if st.query_params.get("page") == "admin":
            st.session_state.current_page = "admin"
        st.session_state.url_params_processed = True


def render_navigation():
    """Render navigation buttons."""
    nav_col1, _, nav_col2 = st.columns([1, 2, 1], gap="small")

    with nav_col1:
        if st.button("🩸 Pendaftaran", use_container_width=True, key="nav_register"):
            st.session_state.current_page = "register"

    with nav_col2:
        if st.button("👤 Admin", use_container_width=True, key="nav_admin"):
            st.session_state.current_page = "admin"


def render_current_page():
    """Render the page selected in session state."""
    try:
        if st.session_state.current_page == "register":
            render_registration_form()

        elif st.session_state.current_page == "admin":
            render_admin_panel()

        else:
            st.error(f"Halaman tidak dikenal: {st.session_state.current_page}")
            if st.button("Kembali ke Pendaftaran"):
                st.session_state.current_page = "register"
                st.rerun()

    except Exception as e:
        # Error boundary
        logger.exception("Unhandled exception while rendering page")
        st.error("Terjadi kesalahan, silakan coba lagi")

        with st.expander("🔍 Detail error"):
            st.code(str(e))

        if st.button("Kembali ke Pendaftaran"):
            st.session_state.current_page = "register"
            st.rerun()


def main():
    """Application entry point."""
    try:
        configure_logging()
        initialize_session_state()
        render_navigation()
        render_current_page()
    except Exception as e:
        logger.exception("Unhandled exception during app execution")
        st.error("Aplikasi mengalami error, silakan muat ulang halaman")
        st.code(str(e))

        if st.button("🔄 Muat Ulang"):
            st.session_state.clear()
            st.rerun()


if __name__ == "__main__":
    main()
