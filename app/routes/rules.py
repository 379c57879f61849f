import logging
import re
from typing import Any, Dict, Optional

from fastapi import APIRouter, Query
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from core.database import (
    add_tracking_rule,
    delete_tracking_rule,
    get_all_user_rules,
    get_or_create_user,
    get_tracking_rule,
    get_user,
    get_user_notifications,
    update_tracking_rule,
    update_user_email,
    update_user_notification_settings,
)
from core.models import FilterSpec

log = logging.getLogger("api")

router = APIRouter(prefix="/api/users/{user_id}")


class RuleCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100, description="Rule label shown in notifications")
    description: Optional[str] = None
    enabled: bool = True
    filters: Dict[str, Any] = Field(default_factory=dict, description="FilterSpec fields, camelCase or snake_case")


class RuleUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = None
    enabled: Optional[bool] = None
    filters: Optional[Dict[str, Any]] = None


class NotificationToggles(BaseModel):
    line: bool = True
    email: bool = False


class EmailUpdate(BaseModel):
    email: str


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": message})


def _is_valid_email(email: str) -> bool:
    email = (email or "").strip()
    return bool(email) and re.fullmatch(r"[^@\s]+@[^@\s]+\.[^@\s]+", email) is not None


def _checked_filters(raw: Dict[str, Any]) -> Dict[str, Any]:
    """Normalize filters to snake_case FilterSpec fields; ValueError when malformed."""
    return FilterSpec.from_dict(raw).as_dict()


@router.get("/rules")
async def list_rules(user_id: str):
    return {"rules": get_all_user_rules(user_id)}


@router.post("/rules", status_code=201)
async def create_rule(user_id: str, body: RuleCreate):
    try:
        filters = _checked_filters(body.filters)
    except ValueError as e:
        return _error(400, str(e))

    get_or_create_user(user_id)
    rule_id = add_tracking_rule(
        user_id,
        {"name": body.name, "description": body.description, "enabled": body.enabled, "filters": filters},
    )
    log.info("Rule created", extra={"user_id": user_id, "rule_id": rule_id})
    return {"success": True, "id": rule_id}


@router.put("/rules/{rule_id}")
async def update_rule(user_id: str, rule_id: int, body: RuleUpdate):
    updates = body.model_dump(exclude_unset=True)
    if "filters" in updates:
        try:
            updates["filters"] = _checked_filters(updates["filters"] or {})
        except ValueError as e:
            return _error(400, str(e))

    if not get_tracking_rule(user_id, rule_id):
        return _error(404, "rule not found")
    try:
        update_tracking_rule(user_id, rule_id, updates)
    except ValueError as e:
        return _error(400, str(e))
    return {"success": True, "rule": get_tracking_rule(user_id, rule_id)}


@router.delete("/rules/{rule_id}")
async def delete_rule(user_id: str, rule_id: int):
    if not delete_tracking_rule(user_id, rule_id):
        return _error(404, "rule not found")
    log.info("Rule deleted", extra={"user_id": user_id, "rule_id": rule_id})
    return {"success": True}


@router.put("/settings/notifications")
async def update_notifications(user_id: str, body: NotificationToggles):
    if not get_user(user_id):
        return _error(404, "user not found")
    update_user_notification_settings(user_id, body.model_dump())
    return {"success": True, "notifications": body.model_dump()}


@router.put("/email")
async def update_email(user_id: str, body: EmailUpdate):
    if not _is_valid_email(body.email):
        return _error(400, "invalid email address")
    if not update_user_email(user_id, body.email):
        return _error(404, "user not found")
    return {"success": True}


@router.get("/notifications")
async def list_notifications(user_id: str, limit: int = Query(20, ge=1, le=100)):
    """Most recent delivered messages first."""
    return {"notifications": get_user_notifications(user_id, limit=limit)}
