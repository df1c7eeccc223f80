"""
Tests for settings validation.
"""
import pytest
from pydantic import ValidationError

from warranty_api.core.config import Settings

STRONG = "s3cure-warranty-secret-0123456789-abcdefgh"


def make_settings(**overrides) -> Settings:
    values = {"WARRANTY_TOKEN_SECRET": STRONG, "JWT_SECRET_KEY": STRONG, "_env_file": None}
    values.update(overrides)
    return Settings(**values)


class TestSecrets:
    @pytest.mark.parametrize("field", ["WARRANTY_TOKEN_SECRET", "JWT_SECRET_KEY"])
    def test_rejects_insecure_default(self, field):
        with pytest.raises(ValidationError, match="insecure default"):
            make_settings(**{field: "changeme"})

    @pytest.mark.parametrize("field", ["WARRANTY_TOKEN_SECRET", "JWT_SECRET_KEY"])
    def test_rejects_short_secret(self, field):
        with pytest.raises(ValidationError, match="at least 32 characters"):
            make_settings(**{field: "too-short"})

    def test_secrets_are_optional(self, monkeypatch):
        monkeypatch.delenv("WARRANTY_TOKEN_SECRET", raising=False)
        monkeypatch.delenv("JWT_SECRET_KEY", raising=False)

        settings = Settings(_env_file=None)

        assert settings.WARRANTY_TOKEN_SECRET is None
        assert settings.verification_secrets == []

    def test_rejects_weak_previous_secret(self):
        with pytest.raises(ValidationError):
            make_settings(WARRANTY_TOKEN_PREVIOUS_SECRETS=["short"])

    def test_verification_secrets_current_first(self):
        previous = "previous-warranty-secret-0123456789-abcd"

        settings = make_settings(WARRANTY_TOKEN_PREVIOUS_SECRETS=[previous, STRONG])

        assert settings.verification_secrets == [STRONG, previous]

    def test_previous_secrets_from_environment(self, monkeypatch):
        previous = "previous-warranty-secret-0123456789-abcd"
        monkeypatch.setenv("WARRANTY_TOKEN_PREVIOUS_SECRETS", f'["{previous}"]')

        settings = make_settings()

        assert settings.WARRANTY_TOKEN_PREVIOUS_SECRETS == [previous]


class TestOtherSettings:
    def test_defaults(self):
        settings = make_settings()

        assert settings.WARRANTY_LINK_MODE == "cpf"
        assert settings.WARRANTY_TOKEN_TTL_DAYS == 30
        assert settings.ISSUER_ROLES == ["admin", "seller"]

    def test_public_base_url_strips_trailing_slash(self):
        assert make_settings(APP_PUBLIC_URL="https://example.com/").public_base_url == "https://example.com"

    def test_rejects_unknown_link_mode(self):
        with pytest.raises(ValidationError):
            make_settings(WARRANTY_LINK_MODE="email")

    @pytest.mark.parametrize("field", ["WARRANTY_TOKEN_TTL_DAYS", "CPF_LOOKUP_RATE_LIMIT", "CPF_LOOKUP_RATE_WINDOW_SECONDS"])
    def test_rejects_non_positive(self, field):
        with pytest.raises(ValidationError):
            make_settings(**{field: 0})
