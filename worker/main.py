import argparse
import asyncio
import logging
from typing import Dict, List, Optional

from core import config
from core.database import DatabaseUnavailable, init_db
from worker.scheduler import TrackingScheduler
from worker.tracker import close_scraper, run_tracking_pass

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
log = logging.getLogger("worker")


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Apple refurbished product tracker worker")
    parser.add_argument("--once", action="store_true", help="run a single tracking pass and exit")
    parser.add_argument(
        "--interval",
        type=float,
        default=config.TRACKING_INTERVAL_SECONDS,
        help="seconds between passes (default: %(default)s)",
    )
    return parser.parse_args(argv)


async def run_once() -> Dict[str, int]:
    """One pass with a fresh browser, closed afterwards."""
    try:
        result = await run_tracking_pass()
    finally:
        await close_scraper()
    log.info("Single pass finished", extra=result)
    return result


async def main(argv: Optional[List[str]] = None):
    args = parse_args(argv)

    try:
        init_db()
    except DatabaseUnavailable as e:
        log.error("Database not ready, passes will run without history", extra={"error": str(e)})

    if args.once:
        return await run_once()

    scheduler = TrackingScheduler(interval_seconds=args.interval)
    await scheduler.start()
    try:
        await asyncio.Event().wait()
    finally:
        await scheduler.shutdown()
        await close_scraper()


if __name__ == "__main__":
    asyncio.run(main())
