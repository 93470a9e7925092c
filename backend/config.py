"""
Environment configuration for the police form automation service
"""

import os
from typing import List, Optional

from dotenv import load_dotenv

# Load environment variables
load_dotenv()

POLICE_FORM_URL = "https://www.police.rajasthan.gov.in/old/verificationform.aspx"

# Origins that are always allowed to call the API
STATIC_ALLOWED_ORIGINS = [
    "https://hostel-hub-tenant-ma-production.up.railway.app",
    "https://anandpg.netlify.app",
    "https://railway.com",
]


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name, "").strip()
    if not value:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name, "").strip().lower()
    if not value:
        return default
    return value in ("1", "true", "yes", "on")


def is_development_mode() -> bool:
    """Check if we're running in development mode"""
    return os.getenv("NODE_ENV", "").lower() == "development"


class Settings:
    def __init__(self):
        self.port = _env_int("PORT", 3000)
        self.node_env = os.getenv("NODE_ENV", "production").lower()
        self.log_level = os.getenv("LOG_LEVEL", "INFO").upper()

        # Browser subsystem
        self.headless = _env_bool("HEADLESS", True)
        self.browser_timeout_ms = _env_int("BROWSER_TIMEOUT_MS", 30000)
        self.browser_max_retries = max(1, _env_int("BROWSER_MAX_RETRIES", 3))
        self.browser_retry_delay_ms = _env_int("BROWSER_RETRY_DELAY_MS", 2000)
        self.browser_probe_timeout_ms = _env_int("BROWSER_PROBE_TIMEOUT_MS", 10000)
        self.browser_status_ttl_seconds = _env_int("BROWSER_STATUS_TTL_SECONDS", 300)
        # Remote browser (e.g. Browserless); launches locally when unset
        self.browser_endpoint: Optional[str] = os.getenv("BROWSER_PLAYWRIGHT_ENDPOINT") or None

        # Target site
        self.police_form_url = os.getenv("POLICE_FORM_URL", POLICE_FORM_URL)
        self.submit_change_timeout_ms = _env_int("SUBMIT_CHANGE_TIMEOUT_MS", 25000)

        self.debug_dir = os.getenv("DEBUG_DIR", "dbg_imgs")
        self.allowed_origins = self._load_allowed_origins()

    @property
    def is_development(self) -> bool:
        return self.node_env == "development"

    @staticmethod
    def _load_allowed_origins() -> List[str]:
        extra = [o.strip() for o in os.getenv("ALLOWED_ORIGINS", "").split(",") if o.strip()]
        merged = []
        for origin in STATIC_ALLOWED_ORIGINS + extra:
            if origin not in merged:
                merged.append(origin)
        return merged


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Return the process-wide settings instance"""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
