"""Configuration management for the dashboard.

Rules:
- YAML provides defaults for non-secret config (base URLs, intervals, paths).
- Secrets (bot API credentials, LLM key) come from .env / environment variables and override YAML.
- We do NOT inject YAML into os.environ.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Dict, List, Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

SUPPORTED_MODELS = ("chatgpt", "gemini")


class BotApiConfig(BaseModel):
    """One trading bot REST API (freqtrade-style, Basic-Auth)."""

    base_url: str = Field(..., description="Base URL including the API prefix, e.g. http://host:8071/api/v1")
    username: str = Field(default="")
    password: str = Field(default="", repr=False)

    @field_validator("base_url")
    @classmethod
    def validate_base_url(cls, v: str) -> str:
        v = str(v).strip()
        if not v.startswith(("http://", "https://")):
            raise ValueError("base_url must start with http:// or https://")
        return v.rstrip("/")


def _default_bots() -> Dict[str, BotApiConfig]:
    return {
        "chatgpt": BotApiConfig(base_url="http://127.0.0.1:8071/api/v1"),
        "gemini": BotApiConfig(base_url="http://127.0.0.1:8073/api/v1"),
    }


class UpstreamConfig(BaseModel):
    timeout_seconds: float = Field(default=10.0, gt=0, le=120)
    status_path: str = Field(default="/status", description="Endpoint with open positions: /status or /stats")
    trades_path: str = Field(default="/trades")
    open_trades_source: str = Field(default="merged", description="merged | status | trades")

    @field_validator("status_path")
    @classmethod
    def validate_status_path(cls, v: str) -> str:
        v = "/" + str(v).strip().lstrip("/")
        if v not in ("/status", "/stats"):
            raise ValueError("status_path must be '/status' or '/stats'")
        return v

    @field_validator("trades_path")
    @classmethod
    def validate_trades_path(cls, v: str) -> str:
        return "/" + str(v).strip().lstrip("/")

    @field_validator("open_trades_source")
    @classmethod
    def validate_open_trades_source(cls, v: str) -> str:
        if str(v).lower() not in ("merged", "status", "trades"):
            raise ValueError("open_trades_source must be 'merged', 'status' or 'trades'")
        return str(v).lower()


class DashboardSettings(BaseModel):
    poll_interval_seconds: int = Field(default=15, ge=1, le=3600)
    recent_closed_limit: int = Field(default=10, ge=1, le=500)
    include_start_point: bool = Field(default=False, description="Prepend a zero 'Start' point to the cumulative series")


class ForecastConfig(BaseModel):
    """OpenAI-compatible chat completions endpoint used by the profit forecaster."""

    enabled: bool = Field(default=True)
    base_url: str = Field(default="https://api.openai.com/v1")
    model: str = Field(default="gpt-4o-mini")
    api_key: str = Field(default="", repr=False)
    temperature: float = Field(default=0.2, ge=0.0, le=2.0)
    max_tokens: int = Field(default=1500, ge=100, le=16000)
    timeout_seconds: float = Field(default=60.0, gt=0, le=600)

    @field_validator("base_url")
    @classmethod
    def validate_base_url(cls, v: str) -> str:
        return str(v).strip().rstrip("/")

    @property
    def is_configured(self) -> bool:
        return self.enabled and bool(self.api_key)


class APIConfig(BaseModel):
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=9002, ge=1024, le=65535)
    cors_origins: List[str] = Field(default=["http://localhost:3000", "http://localhost:9002"])


class DashboardConfig(BaseSettings):
    """Main configuration for the dashboard backend.

    YAML is parsed as the base config, then env overrides are re-applied for secrets.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
    )

    environment: str = Field(default="DEV")
    log_level: str = Field(default="INFO")
    json_logs: bool = Field(default=True)

    bots: Dict[str, BotApiConfig] = Field(default_factory=_default_bots)
    upstream: UpstreamConfig = Field(default_factory=UpstreamConfig)
    dashboard: DashboardSettings = Field(default_factory=DashboardSettings)
    forecast: ForecastConfig = Field(default_factory=ForecastConfig)
    api: APIConfig = Field(default_factory=APIConfig)

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        if str(v).upper() not in {"DEV", "PROD"}:
            raise ValueError("Environment must be 'DEV' or 'PROD'")
        return str(v).upper()

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        valid = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if str(v).upper() not in valid:
            raise ValueError(f"Log level must be one of: {sorted(valid)}")
        return str(v).upper()

    @field_validator("bots")
    @classmethod
    def validate_bots(cls, v: Dict[str, BotApiConfig]) -> Dict[str, BotApiConfig]:
        if not v:
            raise ValueError("at least one bot must be configured")
        unknown = sorted(set(v) - set(SUPPORTED_MODELS))
        if unknown:
            raise ValueError(f"Unsupported bot model(s) {unknown}; expected {list(SUPPORTED_MODELS)}")
        return v

    @property
    def models(self) -> List[str]:
        return [m for m in SUPPORTED_MODELS if m in self.bots]

    def apply_env_overrides(self) -> "DashboardConfig":
        """Re-apply secrets and key settings from the environment on top of YAML values."""
        for model, bot in self.bots.items():
            prefix = f"BOTS__{model.upper()}__"
            if os.getenv(prefix + "BASE_URL"):
                bot.base_url = BotApiConfig.validate_base_url(os.environ[prefix + "BASE_URL"])
            if os.getenv(prefix + "USERNAME"):
                bot.username = os.environ[prefix + "USERNAME"]
            if os.getenv(prefix + "PASSWORD"):
                bot.password = os.environ[prefix + "PASSWORD"]

        if os.getenv("FORECAST__API_KEY"):
            self.forecast.api_key = os.environ["FORECAST__API_KEY"]

        if os.getenv("ENVIRONMENT"):
            self.environment = self.validate_environment(os.environ["ENVIRONMENT"])

        if os.getenv("LOG_LEVEL"):
            self.log_level = self.validate_log_level(os.environ["LOG_LEVEL"])

        return self

    @classmethod
    def from_yaml(cls, yaml_path: Path) -> "DashboardConfig":
        """Load configuration from YAML without polluting environment.

        Steps:
        1) Parse YAML -> base config dict
        2) Validate into model
        3) Apply env overrides (BOTS__CHATGPT__PASSWORD, FORECAST__API_KEY, etc.) on top
        """
        if not yaml_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {yaml_path}")

        try:
            with open(yaml_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in configuration file: {e}")

        try:
            base = cls.model_validate(data)
        except ValidationError as e:
            raise ValueError(f"Configuration validation error: {e}")

        return base.apply_env_overrides()


def load_config(config_path: Optional[Path] = None) -> DashboardConfig:
    """Load configuration from YAML + .env (env wins for secrets)."""

    load_dotenv(dotenv_path=Path(".env"))

    if config_path is None:
        possible_paths = [Path("config/default.yaml"), Path("config/config.yaml"), Path("config.yaml")]
        for path in possible_paths:
            if path.exists():
                config_path = path
                break
        else:
            raise FileNotFoundError("No configuration file found. Create config/default.yaml or specify config path.")

    return DashboardConfig.from_yaml(config_path)


_config: Optional[DashboardConfig] = None


def get_config() -> DashboardConfig:
    global _config
    if _config is None:
        _config = load_config()
    return _config


def reload_config(config_path: Optional[Path] = None) -> DashboardConfig:
    global _config
    _config = load_config(config_path)
    return _config
