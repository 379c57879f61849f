"""
Schema helpers for Postgres.
"""
from __future__ import annotations

import logging

from core.db.base import get_conn

log = logging.getLogger("db")

SYSTEM_STATE_ID = "tracking_state"


def init_db() -> None:
    """Create the users, tracking_rules, products, notifications and system_state tables if they don't exist."""
    conn = get_conn()
    cur = conn.cursor()

    cur.execute(
        """
        CREATE TABLE IF NOT EXISTS users(
            id TEXT PRIMARY KEY,
            is_active INTEGER NOT NULL DEFAULT 1,
            email TEXT,
            settings TEXT,
            summary_settings TEXT,
            last_summary_date TEXT,
            created_at TEXT NOT NULL,
            updated_at TEXT
        )
        """
    )
    cur.execute(
        """
        CREATE TABLE IF NOT EXISTS tracking_rules(
            id SERIAL PRIMARY KEY,
            user_id TEXT NOT NULL,
            name TEXT NOT NULL,
            description TEXT,
            enabled INTEGER NOT NULL DEFAULT 1,
            filters TEXT NOT NULL DEFAULT '{}',
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL,
            FOREIGN KEY(user_id) REFERENCES users(id) ON DELETE CASCADE
        )
        """
    )
    cur.execute(
        """
        CREATE TABLE IF NOT EXISTS products(
            id TEXT PRIMARY KEY,
            product_key TEXT NOT NULL UNIQUE,
            name TEXT,
            price TEXT,
            description TEXT,
            url TEXT NOT NULL,
            image TEXT,
            category TEXT,
            specs TEXT,
            first_seen_at TEXT NOT NULL,
            last_seen TEXT NOT NULL,
            updated_at TEXT NOT NULL
        )
        """
    )
    cur.execute(
        """
        CREATE TABLE IF NOT EXISTS notifications(
            id SERIAL PRIMARY KEY,
            user_id TEXT NOT NULL,
            message TEXT NOT NULL,
            product_ids TEXT NOT NULL DEFAULT '[]',
            sent_at TEXT NOT NULL,
            status TEXT NOT NULL DEFAULT 'sent'
        )
        """
    )
    cur.execute(
        """
        CREATE TABLE IF NOT EXISTS system_state(
            id TEXT PRIMARY KEY,
            is_tracking INTEGER NOT NULL DEFAULT 0,
            last_updated TEXT
        )
        """
    )
    cur.execute("CREATE INDEX IF NOT EXISTS idx_tracking_rules_user ON tracking_rules(user_id)")
    cur.execute("CREATE INDEX IF NOT EXISTS idx_notifications_sent_at ON notifications(sent_at)")

    conn.commit()
    conn.close()
    log.info("Schema ready")


__all__ = ["SYSTEM_STATE_ID", "init_db"]
