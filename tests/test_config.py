"""Tests for ArcPayConfig.from_env."""

import os

import pytest

from arcpay.config import DEFAULT_USDC_ADDRESS, ArcPayConfig

ENV_NAMES = [
    "ENVIRONMENT", "MIN_QUALITY_SCORE", "PAYMENT_THRESHOLD", "ARCPAY_DEFAULT_DAILY_BUDGET",
    "CIRCLE_API_KEY", "CIRCLE_ENTITY_SECRET", "ENTITY_SECRET", "OPENAI_API_KEY",
    "CLOUDFLARE_ACCOUNT_ID", "CLOUDFLARE_API_TOKEN", "ARCPAY_USE_WORKERS_AI",
    "ARCPAY_KV_PREFERENCES_NAMESPACE", "ARCPAY_KV_HISTORY_NAMESPACE",
    "ARCPAY_KV_SUBSCRIPTIONS_NAMESPACE", "ARCPAY_PORT", "ARCPAY_LOG_LEVEL",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    for name in ENV_NAMES:
        monkeypatch.delenv(name, raising=False)
    # keep a developer's .env out of the picture
    monkeypatch.chdir(tmp_path)
    yield
    # load_dotenv writes straight to os.environ
    for name in ENV_NAMES:
        os.environ.pop(name, None)


class TestFromEnv:
    def test_defaults(self) -> None:
        config = ArcPayConfig.from_env()
        assert config.min_quality_score == 0.7
        assert config.payment_threshold == 0.10
        assert config.default_max_daily_budget == 5.0
        assert config.usdc_address == DEFAULT_USDC_ADDRESS
        assert config.port == 8787
        assert not config.circle_configured
        assert not config.kv_configured
        assert not config.workers_ai_configured

    def test_values_from_env(self, monkeypatch) -> None:
        monkeypatch.setenv("MIN_QUALITY_SCORE", "0.8")
        monkeypatch.setenv("CIRCLE_API_KEY", "key")
        monkeypatch.setenv("ARCPAY_PORT", "9000")
        monkeypatch.setenv("ARCPAY_LOG_LEVEL", "debug")
        config = ArcPayConfig.from_env()
        assert config.min_quality_score == 0.8
        assert config.circle_configured
        assert config.port == 9000
        assert config.log_level == "DEBUG"

    def test_legacy_entity_secret(self, monkeypatch) -> None:
        monkeypatch.setenv("ENTITY_SECRET", "legacy")
        assert ArcPayConfig.from_env().circle_entity_secret == "legacy"
        monkeypatch.setenv("CIRCLE_ENTITY_SECRET", "current")
        assert ArcPayConfig.from_env().circle_entity_secret == "current"

    def test_bad_number(self, monkeypatch) -> None:
        monkeypatch.setenv("PAYMENT_THRESHOLD", "ten cents")
        with pytest.raises(ValueError, match="PAYMENT_THRESHOLD"):
            ArcPayConfig.from_env()

    def test_env_file(self, tmp_path) -> None:
        env_file = tmp_path / "custom.env"
        env_file.write_text("OPENAI_API_KEY=sk-test\nARCPAY_USE_WORKERS_AI=true\n")
        config = ArcPayConfig.from_env(env_file)
        assert config.openai_api_key == "sk-test"
        assert config.use_workers_ai
        assert not config.workers_ai_configured

    def test_kv_needs_all_namespaces(self, monkeypatch) -> None:
        monkeypatch.setenv("CLOUDFLARE_ACCOUNT_ID", "acct")
        monkeypatch.setenv("CLOUDFLARE_API_TOKEN", "tok")
        monkeypatch.setenv("ARCPAY_KV_PREFERENCES_NAMESPACE", "p")
        monkeypatch.setenv("ARCPAY_KV_HISTORY_NAMESPACE", "h")
        assert not ArcPayConfig.from_env().kv_configured
        monkeypatch.setenv("ARCPAY_KV_SUBSCRIPTIONS_NAMESPACE", "s")
        assert ArcPayConfig.from_env().kv_configured
