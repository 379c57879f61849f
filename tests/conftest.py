import os

import pytest

from app.security import reset_rate_limits
from core import config


_TABLES = [
    "notifications",
    "tracking_rules",
    "products",
    "system_state",
    "users",
]


def _truncate_all():
    from core.db.base import get_conn

    conn = get_conn()
    cur = conn.cursor()
    cur.execute(
        "TRUNCATE " + ", ".join(_TABLES) + " RESTART IDENTITY CASCADE"
    )
    conn.commit()
    conn.close()


@pytest.fixture
def db():
    """Clean Postgres schema; skips unless DATABASE_URL is set."""
    if not os.getenv("DATABASE_URL"):
        pytest.skip("DATABASE_URL must be set for Postgres-backed tests.")
    from core.db.schema import init_db

    init_db()
    _truncate_all()
    yield
    _truncate_all()


@pytest.fixture(autouse=True)
def _offline_config(monkeypatch):
    # No test may reach TinyURL, LINE or SMTP.
    monkeypatch.setattr(config, "SHORTEN_URLS", False)
    monkeypatch.setattr(config, "LINE_CHANNEL_ACCESS_TOKEN", "")
    monkeypatch.setattr(config, "LINE_CHANNEL_SECRET", "")
    monkeypatch.setattr(config, "EMAIL_USER", None)
    monkeypatch.setattr(config, "EMAIL_PASSWORD", None)
    monkeypatch.setattr(config, "NOTIFY_BATCH_DELAY_SECONDS", 0)
    reset_rate_limits()
    yield
    reset_rate_limits()


def _listing(path: str, name: str, price: str = "NT$29,900", description: str | None = None, category: str = "Mac"):
    return {
        "name": name,
        "price": price,
        "description": description if description is not None else name,
        "url": f"https://www.apple.com/tw/shop/product/{path}",
        "image": "",
        "category": category,
    }


@pytest.fixture
def make_listing():
    """Factory for RawListing dicts as the scraper produces them."""
    return _listing
