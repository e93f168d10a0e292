"""
Runtime configuration for the Şantiye backend.

Every tunable lives here and is read from the environment once at import
time. Import from here rather than calling os.getenv in services.
"""
from __future__ import annotations

import os

# Load .env file automatically in dev (no-op if the file is missing)
from dotenv import load_dotenv

load_dotenv()


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes")


# ── Logging ────────────────────────────────────────────────────────────────────
LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
JSON_LOGS: bool = os.getenv("LOG_FORMAT", "json").lower() != "text"

# ── HTTP ───────────────────────────────────────────────────────────────────────
_cors_default = "http://localhost:3000,http://localhost:5173"
CORS_ORIGINS: list[str] = [
    o.strip() for o in os.getenv("CORS_ORIGINS", _cors_default).split(",") if o.strip()
]

# ── Application state ─────────────────────────────────────────────────────────
# Load the two demonstration projects into the store on startup
SEED_DEMO_DATA: bool = _env_flag("SANTIYE_SEED_DEMO")

# ── Gantt timeline ─────────────────────────────────────────────────────────────
TIMELINE_LOCALE: str = os.getenv("SANTIYE_TIMELINE_LOCALE", "tr").lower()

# Minimum bar width in percent so zero-length tasks stay visible
MIN_BAR_WIDTH_PCT: float = 0.5

# Guard against a zero-length timeline when mapping positions
MIN_DURATION_MS: float = 1.0

APP_VERSION: str = "1.0.0"
