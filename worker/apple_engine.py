"""
Playwright scraper for Apple's Taiwan refurbished storefront.

One browser per AppleRefurbishedScraper; one page per scrape, closed when the scrape ends.
"""
from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Mapping, Optional

from playwright.async_api import async_playwright

from core import config

log = logging.getLogger("engine")

BASE_URL = "https://www.apple.com/tw/shop/refurbished"

CATEGORY_URLS = [
    f"{BASE_URL}/mac",
    f"{BASE_URL}/ipad",
    f"{BASE_URL}/appletv",
]

PRICE_NOT_FOUND = "價格未找到"

USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/118.0.0.0 Safari/537.36"
)

# Collects refurbished product links with the nearest NT$ price (up to 6 ancestors) and image.
_EXTRACT_JS = """
() => {
    const out = [];
    const links = Array.from(document.querySelectorAll('a[href*="/shop/product/"]'));
    for (const link of links) {
        const href = (link.href || '').toLowerCase();
        const text = (link.textContent || '').trim();
        if (!text) continue;
        if (!(href.includes('refurbished') || text.includes('整修'))) continue;

        let price = '';
        let el = link.parentElement;
        for (let depth = 0; el && depth < 6; depth++) {
            const m = (el.textContent || '').match(/NT\\$[\\d,]+/);
            if (m) { price = m[0]; break; }
            el = el.parentElement;
        }

        let image = '';
        const box = link.closest('div');
        if (box) {
            const img = box.querySelector('img');
            if (img) image = img.src || img.getAttribute('data-src') || '';
        }

        out.push({ name: text, price: price, image: image, url: link.href });
    }
    return out;
}
"""


class ScrapeError(RuntimeError):
    """The browser session could not be started or used; no category was scraped."""


def category_for_url(url: str) -> str:
    lowered = (url or "").lower()
    if lowered.rstrip("/").endswith("/appletv"):
        return "AppleTV"
    if "/ipad" in lowered:
        return "iPad"
    if "/mac" in lowered:
        return "Mac"
    return "Other"


def _listing_from_raw(raw: Mapping[str, object], category: str) -> Optional[Dict]:
    """Normalize one extracted link into a RawListing dict, None when it has no name or URL."""
    name = " ".join(str(raw.get("name") or "").split())
    url = str(raw.get("url") or "").strip()
    if not name or not url:
        return None
    return {
        "name": name,
        "price": str(raw.get("price") or "").strip() or PRICE_NOT_FOUND,
        "description": name,
        "url": url,
        "image": str(raw.get("image") or "").strip(),
        "category": category,
    }


class AppleRefurbishedScraper:
    def __init__(self, headless: bool | None = None, settle_ms: int | None = None):
        self.headless = config.HEADLESS if headless is None else headless
        self.settle_ms = config.SCRAPE_SETTLE_MS if settle_ms is None else settle_ms
        self._playwright = None
        self._browser = None
        self._context = None

    @property
    def started(self) -> bool:
        return self._browser is not None

    async def start(self) -> None:
        if self._browser is not None:
            return
        try:
            self._playwright = await async_playwright().start()
            self._browser = await self._playwright.chromium.launch(
                headless=self.headless,
                args=["--no-sandbox", "--disable-setuid-sandbox"],
            )
            self._context = await self._browser.new_context(
                user_agent=USER_AGENT,
                extra_http_headers={"Accept-Language": "zh-TW,zh;q=0.9,en;q=0.8"},
            )
        except Exception as e:
            await self.close()
            raise ScrapeError(f"browser launch failed: {e}") from e
        log.info("Browser started", extra={"headless": self.headless})

    async def close(self) -> None:
        try:
            if self._browser is not None:
                await self._browser.close()
            if self._playwright is not None:
                await self._playwright.stop()
        except Exception as e:
            log.warning("Error while closing browser", extra={"error": str(e)})
        finally:
            self._context = None
            self._browser = None
            self._playwright = None

    async def _scrape_category(self, page, url: str) -> List[Dict]:
        category = category_for_url(url)
        await page.goto(url, wait_until="networkidle")
        await page.wait_for_timeout(self.settle_ms)
        raw_items = await page.evaluate(_EXTRACT_JS) or []

        listings: List[Dict] = []
        for raw in raw_items:
            listing = _listing_from_raw(raw, category)
            if listing:
                listings.append(listing)
        log.info("Scraped category", extra={"category": category, "count": len(listings)})
        return listings

    async def scrape(self, urls: Iterable[str] | None = None) -> List[Dict]:
        """
        Scrape every category URL with a single page.

        A failing category is logged and contributes nothing; a failing browser
        session raises ScrapeError.
        """
        await self.start()
        try:
            page = await self._context.new_page()
        except Exception as e:
            raise ScrapeError(f"could not open page: {e}") from e

        listings: List[Dict] = []
        try:
            for url in urls or CATEGORY_URLS:
                try:
                    listings.extend(await self._scrape_category(page, url))
                except Exception as e:
                    log.error("Category scrape failed", extra={"url": url, "error": str(e)})
        finally:
            try:
                await page.close()
            except Exception as e:
                log.warning("Error while closing page", extra={"error": str(e)})

        log.info("Scrape complete", extra={"total": len(listings)})
        return listings


__all__ = [
    "BASE_URL",
    "CATEGORY_URLS",
    "PRICE_NOT_FOUND",
    "ScrapeError",
    "AppleRefurbishedScraper",
    "category_for_url",
]
