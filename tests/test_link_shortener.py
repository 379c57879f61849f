import httpx

from core import config
from worker import link_shortener
from worker.link_shortener import shorten_url

URL = "https://www.apple.com/tw/shop/product/FXXX3TA/A?fnode=1"


class FakeResponse:
    def __init__(self, status_code=200, text=""):
        self.status_code = status_code
        self.text = text


def test_returns_tinyurl_link(monkeypatch):
    monkeypatch.setattr(config, "SHORTEN_URLS", True)
    calls = []

    def fake_get(url, params=None, timeout=None):
        calls.append((url, params))
        return FakeResponse(200, "https://tinyurl.com/2abc\n")

    monkeypatch.setattr(link_shortener.httpx, "get", fake_get)
    assert shorten_url(URL) == "https://tinyurl.com/2abc"
    assert calls == [(link_shortener.TINYURL_API, {"url": URL})]


def test_unexpected_body_falls_back(monkeypatch):
    monkeypatch.setattr(config, "SHORTEN_URLS", True)
    monkeypatch.setattr(link_shortener.httpx, "get", lambda *a, **k: FakeResponse(200, "Error"))
    assert shorten_url(URL) == URL


def test_transport_error_falls_back(monkeypatch, caplog):
    monkeypatch.setattr(config, "SHORTEN_URLS", True)

    def boom(*a, **k):
        raise httpx.ConnectTimeout("timed out")

    monkeypatch.setattr(link_shortener.httpx, "get", boom)
    with caplog.at_level("WARNING", logger="notify"):
        assert shorten_url(URL) == URL
    assert "URL shortening failed" in caplog.text


def test_disabled_shortener_makes_no_request(monkeypatch):
    def fail(*a, **k):
        raise AssertionError("should not be called")

    monkeypatch.setattr(link_shortener.httpx, "get", fail)
    assert shorten_url(URL) == URL
    assert shorten_url("") == ""
