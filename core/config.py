"""
Runtime configuration read from the environment (and `.env` for local runs).
"""
from __future__ import annotations

import os

from dotenv import load_dotenv

# Load `.env` for local/dev runs (override=True so updates take effect after restart).
load_dotenv(override=True)


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes")


# -------- CONFIG --------
TRACKING_INTERVAL_SECONDS = int(os.getenv("TRACKING_INTERVAL_SECONDS", "3600"))  # one pass per hour
HEADLESS = _env_bool("PLAYWRIGHT_HEADLESS", "true")
SCRAPE_SETTLE_MS = int(os.getenv("SCRAPE_SETTLE_MS", "2000"))

NOTIFY_BATCH_SIZE = int(os.getenv("NOTIFY_BATCH_SIZE", "10"))
NOTIFY_BATCH_DELAY_SECONDS = float(os.getenv("NOTIFY_BATCH_DELAY_SECONDS", "1.0"))

SHORTEN_URLS = _env_bool("SHORTEN_URLS", "true")
SHORTENER_TIMEOUT_SECONDS = float(os.getenv("SHORTENER_TIMEOUT_SECONDS", "5"))

LINE_CHANNEL_ACCESS_TOKEN = os.getenv("LINE_CHANNEL_ACCESS_TOKEN", "").strip()
LINE_CHANNEL_SECRET = os.getenv("LINE_CHANNEL_SECRET", "").strip()

EMAIL_USER = os.getenv("EMAIL_USER")
EMAIL_PASSWORD = os.getenv("EMAIL_PASSWORD")
EMAIL_FROM = os.getenv("EMAIL_FROM")
SMTP_SERVER = os.getenv("SMTP_SERVER", "smtp.gmail.com")
SMTP_PORT = int(os.getenv("SMTP_PORT", "587"))

WEB_URL = os.getenv("WEB_URL", "http://localhost:8000")

PRODUCT_BATCH_SIZE = 450  # rows per commit when saving product history
# ------------------------
