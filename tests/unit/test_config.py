"""Unit tests for settings and the wallet policy."""

import pytest
from decimal import Decimal

from pydantic import ValidationError

from app.config import Settings, WalletPolicy


def test_policy_defaults():
    policy = WalletPolicy()
    assert policy.default_daily_limit == Decimal("100.00")
    assert policy.default_monthly_limit == Decimal("1000.00")
    assert policy.max_deposit_amount == Decimal("10000.00")
    assert policy.tz.key == "America/Mexico_City"


def test_policy_is_frozen():
    policy = WalletPolicy()
    with pytest.raises(ValidationError):
        policy.default_daily_limit = Decimal("5")


def test_policy_rejects_unknown_timezone():
    with pytest.raises(ValidationError):
        WalletPolicy(timezone="Mars/Olympus_Mons")


def test_policy_rejects_monthly_below_daily():
    with pytest.raises(ValidationError):
        WalletPolicy(default_daily_limit=Decimal("500"), default_monthly_limit=Decimal("100"))


def test_settings_build_policy_from_environment(monkeypatch):
    monkeypatch.setenv("DEFAULT_DAILY_LIMIT", "150")
    monkeypatch.setenv("SCHOOL_TIMEZONE", "America/Bogota")
    policy = Settings(_env_file=None).build_policy()
    assert policy.default_daily_limit == Decimal("150")
    assert policy.timezone == "America/Bogota"


def test_protected_environments_are_parsed(monkeypatch):
    monkeypatch.setenv("PROTECTED_ENVIRONMENTS", "Production, staging ,")
    settings = Settings(_env_file=None)
    assert settings.PROTECTED_ENVIRONMENTS == ["production", "staging"]


def test_production_requires_secret_key(monkeypatch):
    monkeypatch.setenv("ENVIRONMENT", "production")
    monkeypatch.delenv("SECRET_KEY", raising=False)
    with pytest.raises(ValidationError):
        Settings(_env_file=None)
