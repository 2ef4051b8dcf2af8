"""
AI provider client

Routes a prompt to Anthropic or OpenAI based on a provider-prefixed model
string ("anthropic:claude-..." / "openai:gpt-..."), optionally with one image,
and extracts JSON from the reply.
"""

import base64
import json
import logging
from typing import Any, Optional

import anthropic
import openai
from anthropic import AsyncAnthropic
from openai import AsyncOpenAI

from challenge_bot.config import AI_MODEL, ANTHROPIC_API_KEY, OPENAI_API_KEY
from challenge_bot.exceptions import AIServiceError, ConfigurationError, wrap_external_exception

logger = logging.getLogger(__name__)

DEFAULT_MODELS = {
    "anthropic": "claude-sonnet-4-20250514",
    "openai": "gpt-4o-mini",
}


def extract_json(content: str) -> Any:
    """
    Parse JSON from a model reply (may be wrapped in markdown code blocks)

    Raises:
        json.JSONDecodeError: If no valid JSON is found
    """
    if "```json" in content:
        json_str = content.split("```json")[1].split("```")[0].strip()
    elif "```" in content:
        json_str = content.split("```")[1].split("```")[0].strip()
    else:
        json_str = content.strip()
    return json.loads(json_str)


def split_model(model: str) -> tuple[str, str]:
    """'anthropic:claude-x' -> ('anthropic', 'claude-x'); bare names are Anthropic models"""
    if ":" in model:
        provider, name = model.split(":", 1)
        return provider, name or DEFAULT_MODELS.get(provider, "")
    return "anthropic", model


class AIClient:
    """Thin async wrapper over the Anthropic and OpenAI SDKs"""

    def __init__(
        self,
        model: str = AI_MODEL,
        anthropic_client: Optional[AsyncAnthropic] = None,
        openai_client: Optional[AsyncOpenAI] = None,
    ):
        self.model = model
        self._anthropic = anthropic_client
        self._openai = openai_client

    def _anthropic_client(self) -> AsyncAnthropic:
        if self._anthropic is None:
            if not ANTHROPIC_API_KEY:
                raise ConfigurationError("ANTHROPIC_API_KEY is not set", config_key="ANTHROPIC_API_KEY")
            self._anthropic = AsyncAnthropic(api_key=ANTHROPIC_API_KEY)
        return self._anthropic

    def _openai_client(self) -> AsyncOpenAI:
        if self._openai is None:
            if not OPENAI_API_KEY:
                raise ConfigurationError("OPENAI_API_KEY is not set", config_key="OPENAI_API_KEY")
            self._openai = AsyncOpenAI(api_key=OPENAI_API_KEY)
        return self._openai

    async def complete(
        self,
        system: str,
        prompt: str,
        image: Optional[bytes] = None,
        media_type: str = "image/jpeg",
        model: Optional[str] = None,
        max_tokens: int = 1000,
    ) -> str:
        """
        Send one user turn and return the reply text

        Args:
            system: System prompt
            prompt: User message
            image: Optional image bytes sent alongside the prompt
            media_type: MIME type of the image
            model: Provider-prefixed model override
            max_tokens: Reply length cap

        Raises:
            AIServiceError: If the provider call fails
            ConfigurationError: If the provider is unknown or has no API key
        """
        provider, model_name = split_model(model or self.model)
        image_data = base64.b64encode(image).decode("utf-8") if image else None

        if provider == "anthropic":
            return await self._complete_anthropic(system, prompt, image_data, media_type, model_name, max_tokens)
        elif provider == "openai":
            return await self._complete_openai(system, prompt, image_data, media_type, model_name, max_tokens)
        raise ConfigurationError(f"Unknown AI provider '{provider}'", config_key="AI_MODEL")

    async def _complete_anthropic(
        self, system: str, prompt: str, image_data: Optional[str], media_type: str, model_name: str, max_tokens: int
    ) -> str:
        content: list[dict] = []
        if image_data:
            content.append({
                "type": "image",
                "source": {"type": "base64", "media_type": media_type, "data": image_data}
            })
        content.append({"type": "text", "text": prompt})

        try:
            response = await self._anthropic_client().messages.create(
                model=model_name,
                max_tokens=max_tokens,
                system=system,
                messages=[{"role": "user", "content": content}]
            )
        except anthropic.APIError as e:
            raise wrap_external_exception(e, operation="anthropic_complete") from e

        text = "".join(block.text for block in response.content if getattr(block, "type", "") == "text")
        logger.debug(f"Anthropic response ({model_name}): {text}")
        return text

    async def _complete_openai(
        self, system: str, prompt: str, image_data: Optional[str], media_type: str, model_name: str, max_tokens: int
    ) -> str:
        if image_data:
            user_content: Any = [
                {"type": "text", "text": prompt},
                {"type": "image_url", "image_url": {"url": f"data:{media_type};base64,{image_data}"}},
            ]
        else:
            user_content = prompt

        try:
            response = await self._openai_client().chat.completions.create(
                model=model_name,
                max_tokens=max_tokens,
                messages=[
                    {"role": "system", "content": system},
                    {"role": "user", "content": user_content},
                ]
            )
        except openai.APIError as e:
            raise wrap_external_exception(e, operation="openai_complete") from e

        text = response.choices[0].message.content or ""
        logger.debug(f"OpenAI response ({model_name}): {text}")
        return text

    async def complete_json(self, system: str, prompt: str, **kwargs) -> Any:
        """
        Like complete(), but parse the reply as JSON

        Raises:
            AIServiceError: If the call fails or the reply is not JSON
        """
        content = await self.complete(system, prompt, **kwargs)
        try:
            return extract_json(content)
        except (json.JSONDecodeError, IndexError) as e:
            raise AIServiceError(
                f"Model reply is not valid JSON: {content[:200]!r}",
                provider=split_model(kwargs.get("model") or self.model)[0],
                operation="complete_json",
                cause=e,
            ) from e
