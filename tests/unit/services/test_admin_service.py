"""Unit tests for admin_service."""
import pytest
from unittest.mock import patch

from donor_registration.services.admin_service import (
    authenticate_admin,
    is_admin_authenticated,
    login_admin,
    logout_admin
)
from donor_registration.utils.config import Settings, reset_settings_cache


@pytest.fixture
def settings():
    return Settings(admin_username="testadmin", admin_password="testpass")


class TestAuthenticateAdmin:
    """Test authenticate_admin function."""

    def test_authenticate_with_correct_credentials(self, settings):
        """Test authentication succeeds with correct credentials."""
        assert authenticate_admin("testadmin", "testpass", settings=settings) is True

    def test_authenticate_with_wrong_username(self, settings):
        """Test authentication fails with wrong username."""
        assert authenticate_admin("wronguser", "testpass", settings=settings) is False

    def test_authenticate_with_wrong_password(self, settings):
        """Test authentication fails with wrong password."""
        assert authenticate_admin("testadmin", "wrongpass", settings=settings) is False

    def test_authenticate_with_empty_credentials(self, settings):
        """Test authentication fails with empty credentials."""
        assert authenticate_admin("", "", settings=settings) is False

    def test_authenticate_with_non_ascii_input(self, settings):
        """Non-ASCII input is compared, not rejected with an error."""
        assert authenticate_admin("testadmin", "pässwörd", settings=settings) is False

    def test_unset_password_disables_login(self):
        """An empty ADMIN_PASSWORD never authenticates."""
        assert authenticate_admin("admin", "", settings=Settings()) is False

    def test_reads_environment_by_default(self, monkeypatch, tmp_path):
        """Test credentials come from the environment when no settings are given."""
        monkeypatch.chdir(tmp_path)
        monkeypatch.delenv("ADMIN_USERNAME", raising=False)
        monkeypatch.setenv("ADMIN_PASSWORD", "envpass")
        reset_settings_cache()
        try:
            assert authenticate_admin("admin", "envpass") is True
        finally:
            reset_settings_cache()


class TestIsAdminAuthenticated:
    """Test is_admin_authenticated function."""

    @patch('donor_registration.services.admin_service.st')
    def test_returns_true_when_authenticated(self, mock_st):
        """Test returns True when admin is authenticated."""
        mock_st.session_state.get.return_value = True

        assert is_admin_authenticated() is True
        mock_st.session_state.get.assert_called_once_with("admin_authenticated", False)

    @patch('donor_registration.services.admin_service.st')
    def test_returns_false_when_key_not_exists(self, mock_st):
        """Test returns False when session state key doesn't exist."""
        mock_st.session_state = {}

        assert is_admin_authenticated() is False


class TestLoginLogout:
    """Test login_admin and logout_admin functions."""

    @patch('donor_registration.services.admin_service.st')
    def test_login_success_sets_session(self, mock_st, settings):
        mock_st.session_state = {}

        success, message = login_admin("testadmin", "testpass", settings=settings)

        assert success is True
        assert message == "Login berhasil"
        assert mock_st.session_state["admin_authenticated"] is True

    @patch('donor_registration.services.admin_service.st')
    def test_login_failure_leaves_session(self, mock_st, settings):
        mock_st.session_state = {}

        success, message = login_admin("testadmin", "nope", settings=settings)

        assert success is False
        assert message == "Username atau password salah"
        assert "admin_authenticated" not in mock_st.session_state

    @patch('donor_registration.services.admin_service.st')
    def test_logout_clears_session(self, mock_st):
        mock_st.session_state = {"admin_authenticated": True, "admin_search": "x"}

        logout_admin()

        assert mock_st.session_state == {"admin_search": "x"}

    @patch('donor_registration.services.admin_service.st')
    def test_logout_when_not_logged_in(self, mock_st):
        mock_st.session_state = {}
        logout_admin()
        assert mock_st.session_state == {}
