import logging

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from app.security import allow_request
from app.state import get_scheduler
from core.database import (
    count_active_rules,
    count_notifications_since,
    count_products,
    count_users,
    get_system_stats,
)
from worker.apple_engine import ScrapeError
from worker.tracker import build_product, scrape_all, summarize_products

log = logging.getLogger("api")

router = APIRouter(prefix="/api")

PREVIEW_LIMIT = 10


@router.post("/track/start")
async def start_tracking(request: Request):
    scheduler = get_scheduler(request.app)
    if not await scheduler.start():
        return {"success": False, "error": "已在追蹤中"}
    return {"success": True, "message": "開始追蹤"}


@router.post("/track/stop")
async def stop_tracking(request: Request):
    scheduler = get_scheduler(request.app)
    if not await scheduler.stop():
        return {"success": False, "error": "目前未在追蹤"}
    return {"success": True, "message": "停止追蹤"}


@router.get("/track/status")
async def tracking_status(request: Request):
    status = dict(get_scheduler(request.app).status())
    status.update(
        {
            "rules_count": count_active_rules(),
            "users_count": count_users(),
            "notifications_last_24h": count_notifications_since(),
            "products_count": count_products(),
        }
    )
    return status


@router.get("/stats")
async def stats():
    return get_system_stats()


@router.get("/products/test")
async def products_test(request: Request):
    """Scrape now and return a preview; nothing is diffed, stored or sent."""
    client_ip = request.client.host if request.client else "unknown"
    if not allow_request(f"products-test:{client_ip}", limit=3, window_seconds=300):
        return JSONResponse(status_code=429, content={"error": "請稍後再試"})

    try:
        listings = await scrape_all()
    except ScrapeError as e:
        log.error("Preview scrape failed", extra={"error": str(e)})
        return JSONResponse(status_code=502, content={"error": str(e)})

    products = [build_product(listing) for listing in listings]
    return {
        "message": f"找到 {len(products)} 個產品",
        "total": len(products),
        "summary": summarize_products(products),
        "products": products[:PREVIEW_LIMIT],
    }
