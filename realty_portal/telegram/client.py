"""Minimal Telegram Bot API client over requests."""

import logging
from typing import Dict, Any, List, Optional, Union

import requests

from ..config import settings

logger = logging.getLogger(__name__)

ChatId = Union[int, str]

CAPTION_LIMIT = 1024
MESSAGE_LIMIT = 4096


class TelegramClient:
    """Calls Bot API methods and reports failures as ``{"ok": False}`` results.

    Without a bot token every call is a logged no-op, so features depending
    on Telegram degrade instead of failing.
    """

    api_url = "https://api.telegram.org/bot{token}/{method}"

    def __init__(self, token: Optional[str] = None, session: Optional[requests.Session] = None,
                 timeout: int = 30):
        self.token = token if token is not None else settings.telegram.bot_token
        self.session = session or requests.Session()
        self.timeout = timeout

    @property
    def configured(self) -> bool:
        return bool(self.token)

    def call(self, method: str, payload: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Call a Bot API method.

        Args:
            method: Method name such as ``sendMessage``
            payload: JSON body

        Returns:
            Dict[str, Any]: Decoded Telegram response, ``ok`` is False on any failure
        """
        if not self.configured:
            logger.error(f"TELEGRAM_BOT_TOKEN not configured, skipping {method}")
            return {"ok": False, "description": "TELEGRAM_BOT_TOKEN not configured"}

        url = self.api_url.format(token=self.token, method=method)
        try:
            response = self.session.post(url, json=payload or {}, timeout=self.timeout)
            result = response.json()
        except requests.exceptions.RequestException as e:
            logger.error(f"Telegram {method} request failed: {e}")
            return {"ok": False, "description": str(e)}
        except ValueError:
            logger.error(f"Telegram {method} returned non-JSON response (HTTP {response.status_code})")
            return {"ok": False, "description": f"HTTP {response.status_code}"}

        if not result.get("ok"):
            logger.error(f"Telegram {method} error: {result.get('description')}")
        return result

    def send_message(self, chat_id: ChatId, text: str, reply_markup: Optional[Dict[str, Any]] = None,
                     parse_mode: str = "HTML", disable_web_page_preview: bool = False) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "chat_id": chat_id,
            "text": text[:MESSAGE_LIMIT],
            "parse_mode": parse_mode,
            "disable_web_page_preview": disable_web_page_preview,
        }
        if reply_markup:
            payload["reply_markup"] = reply_markup
        return self.call("sendMessage", payload)

    def send_photo(self, chat_id: ChatId, photo: str, caption: str = "",
                   reply_markup: Optional[Dict[str, Any]] = None, parse_mode: str = "HTML") -> Dict[str, Any]:
        """Send a photo, falling back to a text message if Telegram rejects it."""
        payload: Dict[str, Any] = {
            "chat_id": chat_id,
            "photo": photo,
            "caption": caption[:CAPTION_LIMIT],
            "parse_mode": parse_mode,
        }
        if reply_markup:
            payload["reply_markup"] = reply_markup

        result = self.call("sendPhoto", payload)
        if result.get("ok") or not self.configured:
            return result

        logger.warning(f"sendPhoto failed for chat {chat_id}, falling back to text")
        return self.send_message(chat_id, caption, reply_markup=reply_markup, parse_mode=parse_mode)

    def delete_message(self, chat_id: ChatId, message_id: int) -> Dict[str, Any]:
        return self.call("deleteMessage", {"chat_id": chat_id, "message_id": message_id})

    def answer_callback_query(self, callback_query_id: str, text: Optional[str] = None) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"callback_query_id": callback_query_id}
        if text:
            payload["text"] = text
        return self.call("answerCallbackQuery", payload)

    def set_my_commands(self, commands: List[Dict[str, str]]) -> Dict[str, Any]:
        return self.call("setMyCommands", {"commands": commands})

    def set_message_reaction(self, chat_id: ChatId, message_id: int, emoji: str = "✅") -> Dict[str, Any]:
        return self.call("setMessageReaction", {
            "chat_id": chat_id,
            "message_id": message_id,
            "reaction": [{"type": "emoji", "emoji": emoji}],
        })

    def set_webhook(self, url: str, secret_token: Optional[str] = None,
                    allowed_updates: Optional[List[str]] = None) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "url": url,
            "allowed_updates": allowed_updates or ["message", "callback_query", "channel_post"],
        }
        if secret_token:
            payload["secret_token"] = secret_token
        return self.call("setWebhook", payload)

    def get_webhook_info(self) -> Dict[str, Any]:
        return self.call("getWebhookInfo")

    def get_me(self) -> Dict[str, Any]:
        return self.call("getMe")
