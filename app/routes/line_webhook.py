"""
LINE webhook: follow/unfollow handling and text commands.
"""
from __future__ import annotations

import json
import logging
from typing import Awaitable, Callable, Dict, Mapping, Optional

from fastapi import APIRouter, FastAPI, Request
from fastapi.responses import JSONResponse

from app.security import verify_line_signature
from app.state import get_notifier, get_scheduler
from core import config
from core.database import (
    DatabaseUnavailable,
    get_or_create_user,
    get_system_stats,
    get_user_tracking_rules,
    set_user_active,
)

log = logging.getLogger("api")

router = APIRouter()

ERROR_REPLY = "❌ 系統發生錯誤，請稍後再試"
UNKNOWN_REPLY = "❓ 不認識的指令\n請輸入「幫助」查看可用指令"
TEST_REPLY = "🧪 測試通知\n✅ 系統運作正常！"


def welcome_message() -> str:
    return (
        "🍎 您好！歡迎使用 Apple 翻新機追蹤 Bot！\n\n"
        "✨ 我會幫您監控 Apple 翻新機新品上架\n"
        "當有符合您條件的產品時會立即通知您！\n\n"
        "📱 快速開始：\n"
        "• 輸入「開始追蹤」立即開始監控\n"
        "• 輸入「幫助」查看所有指令\n\n"
        f"🔧 進階設定請訪問：\n{config.WEB_URL}\n\n"
        "🎯 祝您搶到心儀的 Mac！"
    )


def help_message(app: FastAPI) -> str:
    providers = ", ".join(get_notifier(app).active_provider_names()) or "無"
    return (
        "🤖 Apple 翻新機追蹤 Bot\n\n"
        "📱 可用指令:\n"
        "• 開始追蹤 - 開始監控新品\n"
        "• 停止追蹤 - 停止監控\n"
        "• 狀態 - 查看系統狀態\n"
        "• 我的規則 - 查看個人追蹤規則\n"
        "• 新增規則 - 新增追蹤規則\n"
        "• 測試 - 測試Bot連接\n"
        "• 幫助 - 顯示此訊息\n\n"
        f"📤 啟用通知方式: {providers}\n\n"
        "🔧 詳細規則管理請使用網頁:\n"
        f"{config.WEB_URL}"
    )


def status_message(app: FastAPI) -> str:
    tracking = "運行中" if get_scheduler(app).is_tracking else "已停止"
    stats = get_system_stats()
    return (
        "📊 系統狀態\n\n"
        f"🎯 追蹤狀態: {tracking}\n"
        f"📋 啟用規則: {stats['active_rules']} 個\n"
        f"👥 註冊使用者: {stats['total_users']} 人\n"
        f"📤 24小時通知: {stats['notifications_last_24h']} 則"
    )


def rules_message(user_id: str) -> str:
    rules = get_user_tracking_rules(user_id)
    if not rules:
        return f"📋 您目前沒有設定追蹤規則\n\n📝 請使用網頁介面新增規則:\n{config.WEB_URL}"

    lines = [f"📋 您的追蹤規則 ({len(rules)} 個):", ""]
    for index, rule in enumerate(rules, start=1):
        filters = rule.get("filters") or {}
        lines.append(f"{index}. {rule.get('name')}")
        if filters.get("product_type"):
            lines.append(f"   📱 產品: {filters['product_type']}")
        if filters.get("chip"):
            lines.append(f"   🔧 晶片: {filters['chip']}")
        if filters.get("min_memory"):
            lines.append(f"   💾 記憶體: ≥{filters['min_memory']}GB")
        if filters.get("min_storage"):
            lines.append(f"   🗄️ 儲存: ≥{filters['min_storage']}")
        if filters.get("max_price"):
            lines.append(f"   💰 價格: ≤NT${int(filters['max_price']):,}")
        lines.append("")
    return "\n".join(lines).rstrip()


async def _cmd_start(app: FastAPI, user_id: str) -> str:
    if not await get_scheduler(app).start():
        return "⚠️ 系統已在追蹤中"
    return "✅ 開始追蹤 Apple 翻新產品\n📱 有新品時會立即通知您"


async def _cmd_stop(app: FastAPI, user_id: str) -> str:
    if not await get_scheduler(app).stop():
        return "⚠️ 系統目前未在追蹤"
    return "⏹️ 已停止追蹤"


async def _cmd_status(app: FastAPI, user_id: str) -> str:
    return status_message(app)


async def _cmd_help(app: FastAPI, user_id: str) -> str:
    return help_message(app)


async def _cmd_test(app: FastAPI, user_id: str) -> str:
    return TEST_REPLY


async def _cmd_rules(app: FastAPI, user_id: str) -> str:
    return rules_message(user_id)


async def _cmd_add_rule(app: FastAPI, user_id: str) -> str:
    return f"📝 請使用網頁介面新增追蹤規則:\n{config.WEB_URL}"


Command = Callable[[FastAPI, str], Awaitable[str]]

COMMANDS: Dict[str, Command] = {}
for _words, _handler in (
    (("開始追蹤", "start", "開始"), _cmd_start),
    (("停止追蹤", "stop", "停止"), _cmd_stop),
    (("狀態", "status", "追蹤狀態"), _cmd_status),
    (("幫助", "help", "指令"), _cmd_help),
    (("測試", "test"), _cmd_test),
    (("我的規則", "規則列表"), _cmd_rules),
    (("新增規則",), _cmd_add_rule),
):
    for _word in _words:
        COMMANDS[_word] = _handler


def _register(user_id: str) -> None:
    try:
        get_or_create_user(user_id)
    except DatabaseUnavailable as e:
        log.warning("Could not register LINE user", extra={"user_id": user_id, "error": str(e)})


def _reply(app: FastAPI, reply_token: Optional[str], text: str) -> None:
    line = get_notifier(app).get_provider("line")
    if line is None or not reply_token:
        log.info("No LINE reply channel, dropping reply", extra={"chars": len(text)})
        return
    line.reply_message(reply_token, text)


async def handle_event(app: FastAPI, event: Mapping) -> None:
    event_type = event.get("type")
    user_id = (event.get("source") or {}).get("userId")
    reply_token = event.get("replyToken")
    if not user_id:
        return

    if event_type == "follow":
        _register(user_id)
        try:
            set_user_active(user_id, True)
        except DatabaseUnavailable as e:
            log.warning("Could not reactivate LINE user", extra={"user_id": user_id, "error": str(e)})
        _reply(app, reply_token, welcome_message())
        return

    if event_type == "unfollow":
        set_user_active(user_id, False)
        log.info("LINE user unfollowed", extra={"user_id": user_id})
        return

    message = event.get("message") or {}
    if event_type != "message" or message.get("type") != "text":
        return

    _register(user_id)
    text = (message.get("text") or "").strip()
    handler = COMMANDS.get(text.lower())

    try:
        reply = await handler(app, user_id) if handler else UNKNOWN_REPLY
    except Exception as e:
        log.exception("LINE command failed", extra={"user_id": user_id, "command": text, "error": str(e)})
        reply = ERROR_REPLY
    _reply(app, reply_token, reply)


@router.post("/webhook/line")
async def line_webhook(request: Request):
    body = await request.body()

    if config.LINE_CHANNEL_SECRET:
        signature = request.headers.get("X-Line-Signature")
        if not verify_line_signature(config.LINE_CHANNEL_SECRET, body, signature):
            log.warning("Rejected LINE webhook with bad signature")
            return JSONResponse(status_code=401, content={"error": "invalid signature"})

    try:
        payload = json.loads(body or b"{}")
    except ValueError:
        return JSONResponse(status_code=400, content={"error": "invalid JSON"})
    if not isinstance(payload, dict):
        return JSONResponse(status_code=400, content={"error": "invalid JSON"})

    events = payload.get("events") or []
    log.info("LINE events received", extra={"count": len(events)})

    for event in events:
        if not isinstance(event, dict):
            log.warning("Skipping malformed LINE event", extra={"event_kind": type(event).__name__})
            continue
        try:
            await handle_event(request.app, event)
        except Exception as e:
            log.exception("LINE event failed", extra={"event_type": event.get("type"), "error": str(e)})

    return {"success": True, "processed": len(events)}
