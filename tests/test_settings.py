from __future__ import annotations

from decimal import Decimal

import pytest
from pydantic import ValidationError

from tradesim.core.config.settings import load_settings


def test_default_settings_file() -> None:
    settings = load_settings(env={})
    assert settings.initial_cash == Decimal("100000")
    assert settings.currency == "INR"
    assert settings.tick_interval_seconds == 2.0
    assert settings.history_limit == 100
    assert settings.history_days == 180
    assert not settings.analysis.configured


def test_env_overrides() -> None:
    settings = load_settings(
        env={
            "TRADESIM_INITIAL_CASH": "5000",
            "TRADESIM_TICK_SECONDS": "0.5",
            "TRADESIM_HISTORY_LIMIT": "10",
            "AWS_DEFAULT_REGION": "ap-south-1",
            "BEDROCK_MODEL_ID": "some-model",
            "GOOGLE_CLIENT_ID": "client.apps.example",
        }
    )
    assert settings.initial_cash == Decimal("5000")
    assert settings.tick_interval_seconds == 0.5
    assert settings.history_limit == 10
    assert settings.analysis.region == "ap-south-1"
    assert settings.analysis.configured
    assert settings.auth.google_client_id == "client.apps.example"


def test_custom_file_and_missing_file(tmp_path) -> None:
    path = tmp_path / "settings.yaml"
    path.write_text("initial_cash: '2500.50'\nanalysis:\n  max_tokens: 300\n", encoding="utf-8")
    settings = load_settings(path, env={})
    assert settings.initial_cash == Decimal("2500.50")
    assert settings.analysis.max_tokens == 300
    assert settings.tick_interval_seconds == 2.0

    assert load_settings(tmp_path / "absent.yaml", env={}).history_limit == 100


def test_invalid_values_rejected() -> None:
    with pytest.raises(ValidationError):
        load_settings(env={"TRADESIM_TICK_SECONDS": "0"})
    with pytest.raises(ValidationError):
        load_settings(env={"TRADESIM_INITIAL_CASH": "-1"})
