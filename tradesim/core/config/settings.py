from __future__ import annotations

import os
from decimal import Decimal
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field

DEFAULT_SETTINGS_PATH = Path(__file__).resolve().parent / "settings.yaml"


class AnalysisSettings(BaseModel):
    region: str = ""
    model_id: str = ""
    max_tokens: int = Field(default=1200, gt=0)
    temperature: float = Field(default=0.3, ge=0.0, le=1.0)
    request_timeout_seconds: float | None = 30.0

    @property
    def configured(self) -> bool:
        return bool(self.region.strip() and self.model_id.strip())


class AuthSettings(BaseModel):
    google_client_id: str = ""
    oidc_provider: str = "google"


class Settings(BaseModel):
    initial_cash: Decimal = Field(default=Decimal("100000"), ge=0)
    currency: str = "INR"
    tick_interval_seconds: float = Field(default=2.0, gt=0)
    history_limit: int = Field(default=100, gt=0)
    history_days: int = Field(default=180, gt=0)
    search_limit: int = Field(default=7, gt=0)
    log_level: str = "INFO"
    analysis: AnalysisSettings = Field(default_factory=AnalysisSettings)
    auth: AuthSettings = Field(default_factory=AuthSettings)


def load_settings(path: str | Path | None = None, env: dict[str, str] | None = None) -> Settings:
    settings_path = Path(path) if path is not None else DEFAULT_SETTINGS_PATH
    raw: dict[str, Any] = {}
    if settings_path.exists():
        with settings_path.open("r", encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}
    if not isinstance(raw, dict):
        raw = {}
    environ = os.environ if env is None else env
    return Settings.model_validate(_apply_env_overrides(raw, environ))


def _apply_env_overrides(raw: dict[str, Any], environ: Any) -> dict[str, Any]:
    data = dict(raw)
    data["analysis"] = dict(data.get("analysis") or {})
    data["auth"] = dict(data.get("auth") or {})

    simple = {
        "TRADESIM_INITIAL_CASH": "initial_cash",
        "TRADESIM_TICK_SECONDS": "tick_interval_seconds",
        "TRADESIM_HISTORY_LIMIT": "history_limit",
        "TRADESIM_LOG_LEVEL": "log_level",
    }
    for env_key, field in simple.items():
        value = str(environ.get(env_key, "")).strip()
        if value:
            data[field] = value

    region = str(environ.get("AWS_REGION", "") or environ.get("AWS_DEFAULT_REGION", "")).strip()
    if region:
        data["analysis"]["region"] = region
    model_id = str(environ.get("BEDROCK_MODEL_ID", "")).strip()
    if model_id:
        data["analysis"]["model_id"] = model_id
    client_id = str(environ.get("GOOGLE_CLIENT_ID", "")).strip()
    if client_id:
        data["auth"]["google_client_id"] = client_id
    return data
