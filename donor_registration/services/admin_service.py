"""Admin service for authentication and session state management."""
import hmac
import logging
from typing import Optional, Tuple

import streamlit as st

from donor_registration.utils.config import Settings, get_settings

logger = logging.getLogger(__name__)

ADMIN_SESSION_KEY = "admin_authenticated"


def authenticate_admin(username: str, password: str, settings: Optional[Settings] = None) -> bool:
    """
    Authenticate admin credentials.

    Returns:
        True if credentials valid, False otherwise

    Behavior:
        - Credentials come from ADMIN_USERNAME / ADMIN_PASSWORD (env or .env)
        - An unset ADMIN_PASSWORD disables login entirely
        - Single admin user only
    """
    settings = settings or get_settings()

    if not settings.admin_password:
        logger.warning("ADMIN_PASSWORD not set, admin login disabled")
        return False

    username_ok = hmac.compare_digest((username or "").encode("utf-8"), settings.admin_username.encode("utf-8"))
    password_ok = hmac.compare_digest((password or "").encode("utf-8"), settings.admin_password.encode("utf-8"))
    return username_ok and password_ok


def is_admin_authenticated() -> bool:
    """True if st.session_state marks the current browser session as admin."""
    return st.session_state.get(ADMIN_SESSION_KEY, False)


def login_admin(username: str, password: str, settings: Optional[Settings] = None) -> Tuple[bool, str]:
    """
    Log in admin user.

    Returns:
        Tuple of (success: bool, message: str)
        - (True, "Login berhasil") on success
        - (False, "Username atau password salah") on failure
    """
    if authenticate_admin(username, password, settings=settings):
        st.session_state[ADMIN_SESSION_KEY] = True
        logger.info("Admin %s logged in", username)
        return True, "Login berhasil"

    logger.warning("Failed admin login for %r", username)
    return False, "Username atau password salah"


def logout_admin() -> None:
    """Clear the admin flag from the Streamlit session."""
    if ADMIN_SESSION_KEY in st.session_state:
        del st.session_state[ADMIN_SESSION_KEY]
