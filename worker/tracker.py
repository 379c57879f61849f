"""
One tracking pass: scrape -> diff -> match per user -> notify -> persist.
"""
from __future__ import annotations

import asyncio
import logging
from collections import Counter
from typing import Awaitable, Callable, Dict, Iterable, List, Mapping, Optional, Tuple

from core import config
from core.database import (
    DatabaseUnavailable,
    get_active_users,
    get_product_history,
    get_user_tracking_rules,
    save_notification,
    save_product_history,
)
from core.product_keys import product_key
from worker.apple_engine import AppleRefurbishedScraper, ScrapeError
from worker.batcher import batch_product_ids, build_matches, chunk_matches, format_batches
from worker.diff import detect_new
from worker.link_shortener import shorten_url
from worker.notifiers import NotificationManager, build_default_manager
from worker.spec_parser import parse_specs

log = logging.getLogger("tracker")

ScrapeFn = Callable[[], Awaitable[List[Dict]]]

_scraper: Optional[AppleRefurbishedScraper] = None
_manager: Optional[NotificationManager] = None


def _empty_result() -> Dict[str, int]:
    return {"total_products": 0, "new_products": 0, "total_new_matches": 0, "notified_users": 0}


async def scrape_all() -> List[Dict]:
    """Scrape every category with the shared browser (started on first use)."""
    global _scraper
    if _scraper is None:
        _scraper = AppleRefurbishedScraper()
    return await _scraper.scrape()


async def close_scraper() -> None:
    global _scraper
    if _scraper is not None:
        await _scraper.close()
        _scraper = None


def get_manager() -> NotificationManager:
    global _manager
    if _manager is None:
        _manager = build_default_manager()
    return _manager


def build_product(listing: Mapping) -> Dict:
    """RawListing -> Product dict with parsed specs and its ProductKey."""
    product = dict(listing)
    product["specs"] = parse_specs(listing.get("name"), listing.get("description"), listing.get("category")).as_dict()
    product["product_key"] = product_key(listing.get("url") or "")
    return product


def summarize_products(products: Iterable[Mapping]) -> Dict:
    """Counts by product type, chip, memory and storage (unknown values are skipped)."""
    by_type: Counter = Counter()
    by_chip: Counter = Counter()
    by_memory: Counter = Counter()
    by_storage: Counter = Counter()
    total = 0

    for product in products:
        total += 1
        specs = product.get("specs") or {}
        if specs.get("product_type"):
            by_type[specs["product_type"]] += 1
        if specs.get("chip"):
            by_chip[specs["chip"]] += 1
        if specs.get("memory"):
            by_memory[specs["memory"]] += 1
        if specs.get("storage"):
            by_storage[specs["storage"]] += 1

    return {
        "total": total,
        "product_types": dict(by_type),
        "chips": dict(by_chip),
        "memory": dict(by_memory),
        "storage": dict(by_storage),
    }


async def _notify_user(
    user: Mapping,
    new_products: List[Dict],
    manager: NotificationManager,
    shorten: Callable[[str], str],
) -> Tuple[int, int]:
    """Match, format and send for one user. Returns (matches, messages delivered)."""
    user_id = user.get("id")
    rules = get_user_tracking_rules(user_id)
    matches = build_matches(new_products, rules)
    if not matches:
        return 0, 0

    batch_size = config.NOTIFY_BATCH_SIZE
    messages = await asyncio.to_thread(format_batches, matches, batch_size, shorten)
    batches = chunk_matches(matches, batch_size)

    delivered = 0
    for index, (message, batch) in enumerate(zip(messages, batches)):
        if index > 0:
            await asyncio.sleep(config.NOTIFY_BATCH_DELAY_SECONDS)
        results = await asyncio.to_thread(manager.send_notification, user, message)
        if any(r.get("success") for r in results):
            delivered += 1
            try:
                save_notification(user_id, message, batch_product_ids(batch))
            except DatabaseUnavailable as e:
                log.error(
                    "Failed to record notification",
                    extra={"user_id": user_id, "batch": index + 1, "error": str(e)},
                )
        else:
            log.warning(
                "Message not delivered by any provider",
                extra={"user_id": user_id, "batch": index + 1, "results": results},
            )

    log.info(
        "User notified",
        extra={"user_id": user_id, "matches": len(matches), "messages": len(messages), "delivered": delivered},
    )
    return len(matches), delivered


async def run_tracking_pass(
    scrape: ScrapeFn | None = None,
    manager: NotificationManager | None = None,
    shorten: Callable[[str], str] | None = None,
) -> Dict[str, int]:
    """
    Run one full pass and return `{total_products, new_products, total_new_matches, notified_users}`.

    Failures are contained: a scrape failure yields the zero result, an unreachable store
    means nothing counts as new, and one user's error never stops the others.
    """
    scrape = scrape or scrape_all
    manager = manager or get_manager()
    shorten = shorten or shorten_url
    result = _empty_result()

    log.info("Tracking pass started")
    try:
        listings = await scrape()
    except ScrapeError as e:
        log.error("Scrape failed, pass aborted", extra={"error": str(e)})
        return result

    products = [build_product(listing) for listing in listings]
    result["total_products"] = len(products)

    try:
        history = get_product_history()
    except DatabaseUnavailable as e:
        log.error("Product history unavailable, skipping notifications", extra={"error": str(e)})
        history = None

    new_products = detect_new(products, history)
    result["new_products"] = len(new_products)

    if new_products:
        try:
            users = get_active_users()
        except DatabaseUnavailable as e:
            log.error("Could not load users", extra={"error": str(e)})
            users = []

        for user in users:
            try:
                matched, delivered = await _notify_user(user, new_products, manager, shorten)
            except Exception as e:
                log.exception("User notification flow failed", extra={"user_id": user.get("id"), "error": str(e)})
                continue
            result["total_new_matches"] += matched
            if delivered:
                result["notified_users"] += 1

    try:
        save_product_history(products)
    except DatabaseUnavailable as e:
        log.error("Failed to save product history", extra={"error": str(e)})

    log.info("Tracking pass complete", extra=result)
    return result


__all__ = [
    "build_product",
    "summarize_products",
    "scrape_all",
    "close_scraper",
    "get_manager",
    "run_tracking_pass",
]
