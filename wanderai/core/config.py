"""Configuration helpers for API keys and environment variables."""
from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Dict, Optional

DEFAULT_GEMINI_MODEL = "gemini-2.5-flash"
DEFAULT_WEATHER_URL = "https://api.open-meteo.com/v1/forecast"


def _first_env(*names: str) -> Optional[str]:
    for name in names:
        value = os.getenv(name)
        if value:
            return value
    return None


@dataclass(slots=True)
class ApiSettings:
    """Centralised container for the external service credentials."""

    gemini_api_key: Optional[str] = None
    gemini_model: str = DEFAULT_GEMINI_MODEL
    firebase_api_key: Optional[str] = None
    firebase_auth_domain: Optional[str] = None
    firebase_project_id: Optional[str] = None
    firebase_storage_bucket: Optional[str] = None
    firebase_messaging_sender_id: Optional[str] = None
    firebase_app_id: Optional[str] = None
    weather_base_url: str = DEFAULT_WEATHER_URL
    log_level: str = "INFO"
    sentry_dsn: Optional[str] = None

    @classmethod
    def from_env(cls) -> "ApiSettings":
        """Load settings from environment variables.

        The Gemini key is looked up under ``GEMINI_API_KEY`` first, then the
        ``GOOGLE_API_KEY`` and ``API_KEY`` names older deployments used.
        """

        return cls(
            gemini_api_key=_first_env("GEMINI_API_KEY", "GOOGLE_API_KEY", "API_KEY"),
            gemini_model=os.getenv("GEMINI_MODEL", DEFAULT_GEMINI_MODEL),
            firebase_api_key=os.getenv("FIREBASE_API_KEY"),
            firebase_auth_domain=os.getenv("FIREBASE_AUTH_DOMAIN"),
            firebase_project_id=os.getenv("FIREBASE_PROJECT_ID"),
            firebase_storage_bucket=os.getenv("FIREBASE_STORAGE_BUCKET"),
            firebase_messaging_sender_id=os.getenv("FIREBASE_MESSAGING_SENDER_ID"),
            firebase_app_id=os.getenv("FIREBASE_APP_ID"),
            weather_base_url=os.getenv("WEATHER_BASE_URL", DEFAULT_WEATHER_URL),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            sentry_dsn=os.getenv("SENTRY_DSN"),
        )

    def ensure(self, field: str) -> str:
        """Return the requested field and fail fast if it is missing."""

        value = getattr(self, field)
        if not value:
            raise RuntimeError(f"Missing configuration value: {field}")
        return value

    def describe(self) -> Dict[str, str]:
        """Report which credentials were found without exposing their values."""

        report: Dict[str, str] = {}
        gemini_key = self.gemini_api_key
        report["gemini_api_key"] = f"YES (length {len(gemini_key)})" if gemini_key else "NO"
        for field in ("firebase_api_key", "firebase_project_id"):
            report[field] = "YES" if getattr(self, field) else "NO"
        return report
