"""
Preview the alert messages users would get for products already in the DB.

This is a debug helper that reads stored products and each active user's rules,
matches them, and prints the "would send" messages. It does NOT send anything.

Usage:
  python -m scripts.preview_alerts                   # all active users
  python -m scripts.preview_alerts --user U123abc    # single user
  python -m scripts.preview_alerts --limit 50 --batch-size 5
"""
from __future__ import annotations

import argparse

from core.database import get_active_users, get_all_products, get_user_tracking_rules
from worker.batcher import build_matches, format_batches


def main():
    parser = argparse.ArgumentParser(description="Print the notifications stored products would trigger.")
    parser.add_argument("--user", help="Only process this LINE user id", default=None)
    parser.add_argument("--limit", type=int, help="Limit number of products to consider", default=100)
    parser.add_argument("--batch-size", type=int, help="Entries per message", default=10)
    args = parser.parse_args()

    products = get_all_products(limit=args.limit)
    users = get_active_users()
    if args.user:
        users = [u for u in users if u.get("id") == args.user]

    if not users:
        print("No active users found for criteria.")
        return
    if not products:
        print("No stored products. Run a tracking pass first.")
        return

    any_match = False
    for user in users:
        matches = build_matches(products, get_user_tracking_rules(user["id"]))
        if not matches:
            continue
        any_match = True
        # Keep raw URLs so the preview doesn't hit the shortener.
        messages = format_batches(matches, batch_size=args.batch_size, shorten=lambda url: url)
        print(f"\n=== Alerts for {user['id']} ({len(matches)} product(s), {len(messages)} message(s)) ===")
        for message in messages:
            print(message)
            print("-" * 40)

    if not any_match:
        print("No matching products for any user.")


if __name__ == "__main__":
    main()
