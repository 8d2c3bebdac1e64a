"""HTTP client for the OpenAI-compatible LLM gateway."""

import json
import time
import logging
from typing import Dict, Any, List, Optional
import requests
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..config import settings
from ..database.crud import ApiUsageLogCRUD
from ..scrapers.rate_limiter import TokenBucket

logger = logging.getLogger(__name__)


class EnrichmentError(Exception):
    """Raised when the gateway call fails or returns an unusable payload."""
    pass


class AIClient:
    """Thin wrapper around ``/chat/completions`` with rate limiting and usage logging."""

    API_SOURCE = "ai_gateway"

    def __init__(self, api_key: Optional[str] = None, session: Optional[requests.Session] = None,
                 rate_limiter: Optional[TokenBucket] = None, db: Optional[Session] = None):
        """Initialize the client.

        Args:
            api_key: Gateway key, defaults to AI_API_KEY
            session: Optional requests session
            rate_limiter: Token bucket for gateway calls
            db: Optional session used to record api_usage_logs rows
        """
        self.api_key = api_key if api_key is not None else settings.ai.api_key
        self.url = settings.ai.gateway_url
        self.model = settings.ai.model
        self.timeout = settings.ai.timeout
        self.session = session or requests.Session()
        self.rate_limiter = rate_limiter or TokenBucket(settings.ai.requests_per_minute)
        self.db = db

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    def chat(self, messages: List[Dict[str, str]], max_tokens: Optional[int] = None,
             temperature: Optional[float] = None, tools: Optional[List[Dict[str, Any]]] = None,
             tool_choice: Optional[Dict[str, Any]] = None, endpoint: str = "chat") -> Dict[str, Any]:
        """Send a chat completion request.

        Args:
            messages: Chat messages
            max_tokens: Optional completion cap
            temperature: Optional sampling temperature
            tools: Optional function tools
            tool_choice: Optional forced tool
            endpoint: Label recorded in the usage log

        Returns:
            Dict[str, Any]: Decoded response payload

        Raises:
            EnrichmentError: If the key is missing or the call fails
        """
        if not self.configured:
            raise EnrichmentError("AI_API_KEY is not configured")

        payload: Dict[str, Any] = {"model": self.model, "messages": messages}
        if max_tokens is not None:
            payload["max_tokens"] = max_tokens
        if temperature is not None:
            payload["temperature"] = temperature
        if tools:
            payload["tools"] = tools
        if tool_choice:
            payload["tool_choice"] = tool_choice

        self.rate_limiter.acquire()
        started = time.monotonic()
        status = None

        try:
            response = self.session.post(
                self.url,
                headers={
                    "Authorization": f"Bearer {self.api_key}",
                    "Content-Type": "application/json",
                },
                json=payload,
                timeout=self.timeout
            )
            status = response.status_code

            if not 200 <= status < 300:
                raise EnrichmentError(f"AI gateway returned HTTP {status}: {response.text[:200]}")

            try:
                return response.json()
            except ValueError as e:
                raise EnrichmentError(f"AI gateway returned invalid JSON: {e}") from e

        except requests.exceptions.RequestException as e:
            raise EnrichmentError(f"AI gateway request failed: {e}") from e
        finally:
            self._log_usage(endpoint, status, started, max_tokens)

    def complete(self, system_prompt: str, user_prompt: str, max_tokens: Optional[int] = None,
                 temperature: Optional[float] = None, endpoint: str = "chat") -> str:
        """Return the assistant text for a system and user prompt pair."""
        data = self.chat(
            [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            max_tokens=max_tokens,
            temperature=temperature,
            endpoint=endpoint
        )

        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as e:
            raise EnrichmentError(f"Malformed completion payload: {e}") from e

        if not isinstance(content, str):
            raise EnrichmentError(f"Completion content is {type(content).__name__}, expected text")
        if not content.strip():
            raise EnrichmentError("Empty completion")
        return content.strip()

    def call_tool(self, system_prompt: str, user_prompt: str, tool: Dict[str, Any],
                  endpoint: str = "tool") -> Dict[str, Any]:
        """Force a function call and return its decoded arguments."""
        name = tool["function"]["name"]
        data = self.chat(
            [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            tools=[tool],
            tool_choice={"type": "function", "function": {"name": name}},
            endpoint=endpoint
        )

        try:
            arguments = data["choices"][0]["message"]["tool_calls"][0]["function"]["arguments"]
            decoded = json.loads(arguments) if isinstance(arguments, str) else arguments
        except (KeyError, IndexError, TypeError, ValueError) as e:
            raise EnrichmentError(f"Malformed tool call payload: {e}") from e

        if not isinstance(decoded, dict):
            raise EnrichmentError("Tool call arguments are not an object")
        return decoded

    def _log_usage(self, endpoint: str, status: Optional[int], started: float,
                   max_tokens: Optional[int]) -> None:
        if self.db is None:
            return

        elapsed_ms = int((time.monotonic() - started) * 1000)
        try:
            ApiUsageLogCRUD.create(
                self.db,
                api_source=self.API_SOURCE,
                endpoint=endpoint,
                request_params={"model": self.model, "max_tokens": max_tokens},
                response_status=status,
                execution_time_ms=elapsed_ms
            )
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.warning(f"Could not record API usage: {e}")
