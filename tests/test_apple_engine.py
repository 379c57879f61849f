import asyncio

import pytest

from worker import apple_engine
from worker.apple_engine import (
    CATEGORY_URLS,
    PRICE_NOT_FOUND,
    AppleRefurbishedScraper,
    ScrapeError,
    _listing_from_raw,
    category_for_url,
)


class FakePage:
    def __init__(self, items_by_url, broken_urls=()):
        self.items_by_url = items_by_url
        self.broken_urls = set(broken_urls)
        self.current = None
        self.visited = []
        self.closed = False

    async def goto(self, url, wait_until=None):
        self.visited.append(url)
        if url in self.broken_urls:
            raise TimeoutError("navigation timed out")
        self.current = url

    async def wait_for_timeout(self, ms):
        return None

    async def evaluate(self, script):
        return self.items_by_url.get(self.current, [])

    async def close(self):
        self.closed = True


class FakeContext:
    def __init__(self, page=None):
        self.page = page

    async def new_page(self):
        if self.page is None:
            raise RuntimeError("browser has been closed")
        return self.page


def _started_scraper(context):
    scraper = AppleRefurbishedScraper(headless=True, settle_ms=0)
    scraper._browser = object()
    scraper._context = context
    return scraper


def test_category_for_url():
    assert category_for_url(CATEGORY_URLS[0]) == "Mac"
    assert category_for_url(CATEGORY_URLS[1]) == "iPad"
    assert category_for_url(CATEGORY_URLS[2]) == "AppleTV"
    assert category_for_url("https://www.apple.com/tw/shop/refurbished/watch") == "Other"


def test_listing_from_raw_normalizes_fields():
    raw = {
        "name": "  整修品 Mac mini\n Apple M2 晶片 ",
        "price": "",
        "url": "https://www.apple.com/tw/shop/product/FMXX3TA/A?fnode=1",
        "image": None,
    }
    listing = _listing_from_raw(raw, "Mac")
    assert listing == {
        "name": "整修品 Mac mini Apple M2 晶片",
        "price": PRICE_NOT_FOUND,
        "description": "整修品 Mac mini Apple M2 晶片",
        "url": "https://www.apple.com/tw/shop/product/FMXX3TA/A?fnode=1",
        "image": "",
        "category": "Mac",
    }
    assert _listing_from_raw({"name": "", "url": "https://x"}, "Mac") is None
    assert _listing_from_raw({"name": "iPad", "url": ""}, "iPad") is None


def test_failing_category_is_skipped_and_page_closed(caplog):
    mac_url, ipad_url, tv_url = CATEGORY_URLS
    page = FakePage(
        {
            mac_url: [
                {"name": "整修品 MacBook Air", "price": "NT$29,900", "url": "https://www.apple.com/tw/shop/product/A"},
                {"name": "", "url": "https://www.apple.com/tw/shop/product/blank"},
            ],
            tv_url: [{"name": "整修品 Apple TV 4K", "price": "NT$4,200", "url": "https://www.apple.com/tw/shop/product/T"}],
        },
        broken_urls=[ipad_url],
    )
    scraper = _started_scraper(FakeContext(page))

    with caplog.at_level("ERROR", logger="engine"):
        listings = asyncio.run(scraper.scrape())

    assert page.visited == CATEGORY_URLS
    assert [l["category"] for l in listings] == ["Mac", "AppleTV"]
    assert listings[0]["price"] == "NT$29,900"
    assert page.closed is True
    assert "Category scrape failed" in caplog.text


def test_unusable_browser_raises_scrape_error():
    scraper = _started_scraper(FakeContext(page=None))
    with pytest.raises(ScrapeError):
        asyncio.run(scraper.scrape())


def test_launch_failure_raises_scrape_error(monkeypatch):
    class BrokenPlaywright:
        async def start(self):
            raise RuntimeError("Executable doesn't exist")

    monkeypatch.setattr(apple_engine, "async_playwright", lambda: BrokenPlaywright())
    scraper = AppleRefurbishedScraper(headless=True)
    with pytest.raises(ScrapeError):
        asyncio.run(scraper.start())
    assert scraper.started is False
