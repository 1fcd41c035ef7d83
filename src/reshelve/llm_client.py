from __future__ import annotations

import logging
from typing import Protocol

from openai import AsyncOpenAI

from .config import ProviderConfig

logger = logging.getLogger(__name__)


class ChatClient(Protocol):
    async def complete(
        self,
        messages: list[dict[str, str]],
        *,
        temperature: float | None = None,
        json_mode: bool = False,
    ) -> str | None: ...


class OpenAIChatClient:
    """Chat completions against any OpenAI-compatible endpoint."""

    def __init__(self, config: ProviderConfig) -> None:
        if not config.api_key:
            raise ValueError("an API key is required")
        self.model = config.model
        self.base_url = config.base_url
        self.client = AsyncOpenAI(api_key=config.api_key, base_url=config.base_url)

    async def complete(
        self,
        messages: list[dict[str, str]],
        *,
        temperature: float | None = None,
        json_mode: bool = False,
    ) -> str | None:
        kwargs: dict[str, object] = {}
        if temperature is not None:
            kwargs["temperature"] = temperature
        if json_mode:
            kwargs["response_format"] = {"type": "json_object"}
        logger.debug(
            "chat request to %s model=%s messages=%d",
            self.base_url,
            self.model,
            len(messages),
        )
        response = await self.client.chat.completions.create(
            model=self.model,
            messages=messages,
            **kwargs,
        )
        if not response.choices:
            return None
        return response.choices[0].message.content


def create_chat_client(config: ProviderConfig | None = None) -> ChatClient | None:
    resolved = config or ProviderConfig.from_env()
    if not resolved.enabled:
        return None
    return OpenAIChatClient(resolved)
