import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from app.routes import line_webhook, rules, tracking
from app.state import get_notifier, get_scheduler
from core.database import DatabaseUnavailable, init_db
from worker.tracker import close_scraper

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
log = logging.getLogger("api")


@asynccontextmanager
async def lifespan(app: FastAPI):
    try:
        init_db()
    except DatabaseUnavailable as e:
        log.error("Database not ready at startup", extra={"error": str(e)})

    get_notifier(app)
    scheduler = get_scheduler(app)
    await scheduler.restore()
    yield
    await scheduler.shutdown()
    await close_scraper()


app = FastAPI(lifespan=lifespan)


app.include_router(tracking.router)
app.include_router(rules.router)
app.include_router(line_webhook.router)


@app.get("/health")
async def health():
    return {"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()}


@app.exception_handler(DatabaseUnavailable)
async def database_unavailable_handler(request: Request, exc: DatabaseUnavailable):
    log.error("Database unavailable", extra={"path": request.url.path, "error": str(exc)})
    return JSONResponse(status_code=503, content={"success": False, "error": "database unavailable"})


@app.middleware("http")
async def add_security_headers(request: Request, call_next):
    response = await call_next(request)
    response.headers.setdefault("X-Content-Type-Options", "nosniff")
    response.headers.setdefault("X-Frame-Options", "SAMEORIGIN")
    response.headers.setdefault(
        "Content-Security-Policy",
        "default-src 'self'; img-src 'self' data:; style-src 'self' 'unsafe-inline'; script-src 'self' 'unsafe-inline'; "
        "font-src 'self' data:; connect-src 'self';",
    )
    return response
