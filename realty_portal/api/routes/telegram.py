"""Telegram routes: bot webhook, group notifications and bot setup."""

from typing import Dict, Any, Optional
import logging

from fastapi import APIRouter, Body, Depends, Header
from pydantic import BaseModel

from ..dependencies import get_bot, get_telegram_client
from ..errors import error_response
from ...config import settings
from ...telegram.client import TelegramClient
from ...telegram.handlers import BotHandler

logger = logging.getLogger(__name__)

router = APIRouter()


class NotifyRequest(BaseModel):
    message: Optional[str] = None
    type: str = "info"
    property: Optional[Dict[str, Any]] = None


class SetupRequest(BaseModel):
    webhook_url: Optional[str] = None


@router.post("/webhook")
def webhook(
    update: Dict[str, Any] = Body(...),
    x_telegram_bot_api_secret_token: Optional[str] = Header(default=None),
    bot: BotHandler = Depends(get_bot)
):
    """Receive a Telegram update.

    When a webhook secret is configured, updates without the matching
    ``X-Telegram-Bot-Api-Secret-Token`` header are rejected.
    """
    secret = settings.telegram.webhook_secret
    if secret and x_telegram_bot_api_secret_token != secret:
        logger.warning("Rejected webhook call with invalid secret token")
        return error_response(403, "Invalid secret token")

    logger.info(f"Received update {update.get('update_id')}")
    bot.handle_update(update)
    return {"ok": True}


@router.post("/notify")
def notify(request: NotifyRequest, bot: BotHandler = Depends(get_bot)):
    """Send a notification or a new-property announcement to the group chat."""
    if request.property:
        result = bot.notify_new_property(request.property)
    elif request.message:
        result = bot.notify_group(request.message, request.type)
    else:
        return error_response(400, "Message or property is required")

    return {"ok": bool(result.get("ok")), "result": result}


@router.get("/status")
def status(client: TelegramClient = Depends(get_telegram_client)):
    return {
        "success": True,
        "configured": client.configured,
        "bot": client.get_me(),
        "webhook": client.get_webhook_info(),
    }


@router.post("/setup")
def setup(request: Optional[SetupRequest] = None, bot: BotHandler = Depends(get_bot)):
    """Register bot commands and the webhook URL."""
    webhook_url = request.webhook_url if request else None
    return {"success": True, **bot.setup(webhook_url)}
