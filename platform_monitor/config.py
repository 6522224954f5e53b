"""Configuration management for the platform monitor."""

import os
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator


DEFAULT_CONFIG_PATH = "config/monitor.yaml"


class ConfigError(ValueError):
    """Raised when the configuration file cannot be loaded."""


class ThresholdPair(BaseModel):
    """Warn/fail ceilings in milliseconds for one latency class."""
    model_config = ConfigDict(frozen=True)

    warn_ms: int = Field(ge=0, description="Degraded at or above this duration")
    fail_ms: int = Field(ge=0, description="Critical at or above this duration")

    @model_validator(mode="after")
    def _warn_not_above_fail(self) -> "ThresholdPair":
        if self.warn_ms > self.fail_ms:
            raise ValueError(f"warn_ms ({self.warn_ms}) must not exceed fail_ms ({self.fail_ms})")
        return self


class Thresholds(BaseModel):
    """Latency thresholds for AI responses and generic API responses."""
    model_config = ConfigDict(frozen=True)

    ai: ThresholdPair = Field(default_factory=lambda: ThresholdPair(warn_ms=3000, fail_ms=10000))
    api: ThresholdPair = Field(default_factory=lambda: ThresholdPair(warn_ms=1000, fail_ms=5000))


class PlatformUrls(BaseModel):
    """Public base URLs of the monitored services."""
    model_config = ConfigDict(frozen=True)

    landing: str = Field(default="https://eryai.tech", description="Marketing site")
    demo: str = Field(default="https://ery-ai-demo-restaurang.vercel.app", description="Demo restaurant app")
    dashboard: str = Field(default="https://dashboard.eryai.tech", description="Customer dashboard")
    sales: str = Field(default="https://sales.eryai.tech", description="Sales dashboard")
    engine: str = Field(default="https://eryai-engine.vercel.app", description="Multi-tenant chat engine")


class TenantFixture(BaseModel):
    """The canonical tenant used as a test fixture across suites."""
    model_config = ConfigDict(frozen=True)

    id: str = Field(default="3c6d67d9-22bb-4a3e-94ca-ca552eddb08e", description="Customer id in the database")
    slug: str = Field(default="bella-italia", description="Slug sent to the chat engine")
    customer_name: str = Field(default="Bella Italia")
    ai_name: str = Field(default="Sofia")
    price_token: str = Field(default="189", description="Price the knowledge base should mention")
    currency_token: str = Field(default="kr")
    min_actions: int = Field(default=10, ge=0, description="Minimum configured customer actions")


class MonitorConfig(BaseModel):
    """Main configuration for the monitor."""
    model_config = ConfigDict(frozen=True)

    log_level: str = Field(default="INFO", description="Logging level")
    http_timeout_seconds: float = Field(default=30.0, gt=0, description="Timeout for every outbound HTTP call")

    urls: PlatformUrls = Field(default_factory=PlatformUrls)
    tenant: TenantFixture = Field(default_factory=TenantFixture)
    thresholds: Thresholds = Field(default_factory=Thresholds)

    demo_link_tokens: tuple[str, ...] = Field(default=("demo", "Demo", "prova"))
    visitor_id: str = Field(default="test-visitor-monitoring")
    skip_checks: tuple[str, ...] = Field(default=(), description="'Category' or 'Category/Name' entries")

    # Alerting
    superadmin_email: str = Field(default="eric@eryai.tech")
    alert_sender: str = Field(default="EryAI Monitoring <sofia@eryai.tech>")
    alert_subject_prefix: str = Field(default="🚨 [TEST] EryAI")
    alert_timezone: str = Field(default="Europe/Stockholm")
    rerun_url: str = Field(default="https://eryai-monitoring.vercel.app/api/test")

    # Secrets, environment only
    supabase_url: str = Field(default="")
    supabase_service_key: str = Field(default="")
    resend_api_key: str = Field(default="")
    internal_api_key: str = Field(default="")
    telegram_bot_token: str = Field(default="")
    telegram_chat_id: str = Field(default="")

    def telegram_configured(self) -> bool:
        return bool(self.telegram_bot_token and self.telegram_chat_id)

    def public_status(self) -> dict[str, Any]:
        """Configuration summary that is safe to expose (no secret values)."""
        return {
            "urls": self.urls.model_dump(),
            "tenant_slug": self.tenant.slug,
            "thresholds": self.thresholds.model_dump(),
            "skip_checks": list(self.skip_checks),
            "credentials": {
                "database": bool(self.supabase_url and self.supabase_service_key),
                "email": bool(self.resend_api_key),
                "internal_api_key": bool(self.internal_api_key),
                "telegram": self.telegram_configured(),
            },
        }


_SECRET_ENV = {
    "supabase_url": "SUPABASE_URL",
    "supabase_service_key": "SUPABASE_SERVICE_KEY",
    "resend_api_key": "RESEND_API_KEY",
    "internal_api_key": "INTERNAL_API_KEY",
    "telegram_bot_token": "TELEGRAM_BOT_TOKEN",
    "telegram_chat_id": "TELEGRAM_CHAT_ID",
}


def load_config(config_path: Optional[str] = None) -> MonitorConfig:
    """Load configuration from file and environment variables."""
    explicit = config_path is not None
    if config_path is None:
        env_path = os.getenv("MONITOR_CONFIG", "").strip()
        config_path = env_path or DEFAULT_CONFIG_PATH
        explicit = bool(env_path)

    config_data: dict[str, Any] = {}

    path = Path(config_path)
    if path.is_file():
        try:
            with open(path, "r", encoding="utf-8") as f:
                loaded = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as exc:
            raise ConfigError(f"Cannot read config file {path}: {exc}") from exc
        if not isinstance(loaded, dict):
            raise ConfigError(f"Config file {path} must contain a mapping")
        config_data.update(loaded)
    elif path.exists():
        raise ConfigError(f"Config path is not a file: {path}")
    elif explicit:
        raise ConfigError(f"Config file not found: {path}")

    # Secrets never come from the file.
    for field_name, env_name in _SECRET_ENV.items():
        config_data[field_name] = os.getenv(env_name, "").strip()

    env_overrides = {
        "log_level": os.getenv("LOG_LEVEL"),
        "http_timeout_seconds": os.getenv("MONITOR_HTTP_TIMEOUT"),
    }
    for key, value in env_overrides.items():
        if value is not None and value.strip():
            config_data[key] = value.strip()

    try:
        return MonitorConfig(**config_data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration in {path}: {exc}") from exc
