"""
Tests for configuration and credential lookup.
"""

import pytest

from erwin_guesser.config import (
    API_KEY_ENV,
    DEFAULT_STATS_URL,
    ORACLE_URL_ENV,
    STATS_URL_ENV,
    WALLET_ADDRESS_ENV,
    EngineConfig,
    load_credential,
    oracle_url_from_env,
    stats_url_from_env,
)
from erwin_guesser.engine.models import Credential
from erwin_guesser.engine.submission import DEFAULT_ORACLE_URL


class TestLoadCredential:
    """Test reading the credential from the environment."""

    def test_both_values_present(self):
        credential = load_credential({API_KEY_ENV: "key", WALLET_ADDRESS_ENV: " Wallet111 "})

        assert credential == Credential(api_key="key", wallet_address="Wallet111")

    def test_missing_key_returns_none(self):
        assert load_credential({WALLET_ADDRESS_ENV: "Wallet111"}) is None

    def test_blank_key_returns_none(self):
        assert load_credential({API_KEY_ENV: "   "}) is None

    def test_wallet_is_optional_for_the_engine(self):
        credential = load_credential({API_KEY_ENV: "key"})

        assert credential.is_complete
        assert credential.wallet_address == ""

    def test_reads_process_environment_by_default(self, monkeypatch):
        monkeypatch.setenv(API_KEY_ENV, "from-env")

        assert load_credential().api_key == "from-env"

    def test_repr_hides_key(self):
        credential = Credential(api_key="super-secret", wallet_address="W")

        assert "super-secret" not in repr(credential)


class TestEngineConfig:
    """Test defaults and validation."""

    def test_defaults(self):
        config = EngineConfig()

        assert config.batch_size == 50
        assert config.cycle_delay_s == 10.0
        assert config.request_timeout_s == 120.0
        assert config.log_window_s == 3600.0
        assert config.oracle_url == DEFAULT_ORACLE_URL

    @pytest.mark.parametrize("kwargs", [
        {"batch_size": 0},
        {"batch_size": -5},
        {"cycle_delay_s": -1},
        {"request_timeout_s": 0},
        {"log_window_s": 0},
    ])
    def test_invalid_values_rejected(self, kwargs):
        with pytest.raises(ValueError):
            EngineConfig(**kwargs)

    def test_zero_delay_allowed(self):
        assert EngineConfig(cycle_delay_s=0).cycle_delay_s == 0


class TestEndpointOverrides:
    """Test URL overrides from the environment."""

    def test_oracle_url_default_and_override(self):
        assert oracle_url_from_env({}) == DEFAULT_ORACLE_URL
        assert oracle_url_from_env({ORACLE_URL_ENV: "http://localhost:9000/g"}) == "http://localhost:9000/g"

    def test_stats_url_strips_trailing_slash(self):
        assert stats_url_from_env({}) == DEFAULT_STATS_URL
        assert stats_url_from_env({STATS_URL_ENV: "http://localhost:8000/"}) == "http://localhost:8000"


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
