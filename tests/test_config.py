"""
BloomFrame Backend — Configuration and Auth Tests
"""

import pytest
from fastapi.security import HTTPAuthorizationCredentials

from bloomframe.auth import authenticate_token, require_auth
from bloomframe.config import DEFAULT_VIEWS_DIR, Settings
from bloomframe.exceptions import AuthenticationError


class TestSettings:

    def test_api_token_map(self):
        settings = Settings(api_tokens=" alice:tok-a , bob:tok-b,broken, :nouser,nouser: ")
        assert settings.api_token_map == {"tok-a": "alice", "tok-b": "bob"}

    def test_blank_pdf_bin_defaults_to_wkhtmltopdf(self):
        assert Settings(invoice_pdf_bin="  ").invoice_pdf_bin == "wkhtmltopdf"

    def test_invoice_template_path(self):
        settings = Settings(views_dir=str(DEFAULT_VIEWS_DIR), invoice_template="invoice.preview.html")
        assert settings.invoice_template_path == DEFAULT_VIEWS_DIR / "invoice.preview.html"
        assert settings.invoice_template_path.is_file()

    def test_log_level_normalised(self):
        assert Settings(log_level="debug").log_level == "DEBUG"
        with pytest.raises(ValueError):
            Settings(log_level="chatty")

    def test_production_check_lists_missing_settings(self):
        settings = Settings(smtp_host="", sender_address="", api_tokens="")
        with pytest.raises(ValueError) as exc_info:
            settings.validate_required_for_production()
        message = str(exc_info.value)
        assert "SMTP_HOST" in message
        assert "SENDER_ADDRESS" in message
        assert "API_TOKENS" in message

    def test_cors_origins_list(self):
        settings = Settings(cors_origins="http://a.test, http://b.test,")
        assert settings.cors_origins_list == ["http://a.test", "http://b.test"]


class TestAuth:

    def test_authenticate_known_token(self):
        user = authenticate_token("test-token")
        assert user is not None and user.id == "user1"

    def test_authenticate_unknown_token(self):
        assert authenticate_token("nope") is None

    @pytest.mark.asyncio
    async def test_require_auth(self):
        creds = HTTPAuthorizationCredentials(scheme="Bearer", credentials="test-token")
        assert (await require_auth(creds)).id == "user1"

    @pytest.mark.asyncio
    async def test_require_auth_without_credentials(self):
        with pytest.raises(AuthenticationError):
            await require_auth(None)
