"""
Webhook response provider.

Forwards each user message, with its bounded history, to an automation
webhook (an n8n workflow by default) and reads the reply text back. Transport
problems never surface as raw failures: the provider answers with a canned
apology so the conversation keeps going.
"""

import asyncio
import random
from datetime import datetime, timezone
from typing import Dict, Any, Optional, Sequence

import aiohttp

try:
    from ...interfaces.response import ResponseInterface
    from ...models.data_models import Message, ResponseResult
    from ...utils.error_handling import ResponseGenerationError
    from ...utils.logging_config import get_logger
except ImportError:
    from jarvis_framework.interfaces.response import ResponseInterface
    from jarvis_framework.models.data_models import Message, ResponseResult
    from jarvis_framework.utils.error_handling import ResponseGenerationError
    from jarvis_framework.utils.logging_config import get_logger

logger = get_logger("response")


class WebhookResponseProvider(ResponseInterface):
    """
    Response generator backed by an HTTP webhook.

    Request body:
        {"message", "conversationHistory", "timestamp", "source"}

    The reply is taken from the first of ``response``, ``message`` or
    ``output`` present in the JSON body.
    """

    SOURCE = "jarvis-voice-assistant"
    REPLY_KEYS = ("response", "message", "output")
    DEFAULT_REPLY = "I've processed your request, sir."

    FALLBACK_RESPONSES = [
        "I'm experiencing connectivity issues, but I'm still here to assist you, sir.",
        "There seems to be a temporary issue with my processing systems. How may I help you?",
        "I'm having trouble connecting to my backend systems, but I remain at your service.",
        "My external processing is temporarily unavailable, but I can still assist you.",
    ]

    def __init__(self, config: Dict[str, Any]):
        """
        Initialize webhook provider.

        Args:
            config: Configuration dictionary containing:
                - webhook_url: Default webhook URL (optional when overridden per call)
                - timeout: Request timeout in seconds (default: 30)
                - fallback_on_error: Answer with a canned reply on failure (default: True)
                - headers: Extra request headers
        """
        self.webhook_url: Optional[str] = config.get('webhook_url') or None
        self.timeout = float(config.get('timeout', 30.0))
        self.fallback_on_error = config.get('fallback_on_error', True)
        self.headers = dict(config.get('headers') or {})
        self._session: Optional[aiohttp.ClientSession] = None

    async def initialize(self) -> bool:
        if not self.webhook_url:
            logger.warning("No default webhook URL configured; relying on stored override")
        return True

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout)
            )
        return self._session

    def build_payload(self, message: str, history: Sequence[Message]) -> Dict[str, Any]:
        return {
            'message': message,
            'conversationHistory': [m.to_dict() for m in history],
            'timestamp': datetime.now(timezone.utc).isoformat(),
            'source': self.SOURCE,
        }

    @classmethod
    def extract_reply(cls, data: Any) -> str:
        if isinstance(data, dict):
            for key in cls.REPLY_KEYS:
                value = data.get(key)
                if isinstance(value, str) and value.strip():
                    return value.strip()
        return cls.DEFAULT_REPLY

    def _fallback(self, error: Exception) -> ResponseResult:
        if not self.fallback_on_error:
            if isinstance(error, ResponseGenerationError):
                raise error
            raise ResponseGenerationError(str(error)) from error
        logger.warning(f"Webhook failed, answering with fallback: {error}")
        return ResponseResult(
            text=random.choice(self.FALLBACK_RESPONSES),
            success=False,
            fallback=True,
            error=str(error),
        )

    async def generate(self,
                       message: str,
                       history: Sequence[Message] = (),
                       endpoint_override: Optional[str] = None) -> ResponseResult:
        if not message or not message.strip():
            raise ResponseGenerationError("Message is required")

        url = endpoint_override or self.webhook_url
        try:
            if not url:
                raise ResponseGenerationError("Webhook URL not configured")

            logger.info(f"Sending message to webhook ({len(history)} history messages)")
            session = await self._get_session()
            async with session.post(
                url,
                json=self.build_payload(message, history),
                headers={'Content-Type': 'application/json', **self.headers},
            ) as response:
                if response.status >= 400:
                    body = await response.text()
                    raise ResponseGenerationError(f"Webhook error: {response.status} {body[:200]}")
                try:
                    data = await response.json(content_type=None)
                except ValueError as e:
                    raise ResponseGenerationError(f"Webhook returned invalid JSON: {e}") from e

        except (aiohttp.ClientError, asyncio.TimeoutError, ResponseGenerationError) as e:
            return self._fallback(e)

        text = self.extract_reply(data)
        logger.debug(f"Webhook reply: {text[:80]}")
        return ResponseResult(text=text, success=True, data=data if isinstance(data, dict) else {'raw': data})

    async def cleanup(self) -> None:
        if self._session and not self._session.closed:
            await self._session.close()
        self._session = None
