"""
Generative fallback using Groq API.
Answers questions that neither the pin-code check nor the FAQ list can.
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Optional, List, Dict, Any

from groq import AsyncGroq

from tera.config import get_settings, LANGUAGE_NAMES
from tera.core.exceptions import (
    LLMException,
    LLMAPIException,
    LLMNotConfiguredException,
    LLMTimeoutException,
    LLMRateLimitException
)
from tera.core.language import LanguageCode
from tera.knowledge.responses import EMPTY_REPLY_APOLOGIES, ERROR_REPLY_APOLOGIES

logger = logging.getLogger(__name__)
settings = get_settings()


PERSONA_PROMPT = """You are TeRA, a friendly and helpful AI assistant for T-Fiber, a high-speed internet service provider in Telangana, India.
Your goal is to answer user questions about T-Fiber services, plans, coverage, troubleshooting, and general inquiries related to T-Fiber.
The user is asking in {language}. Please respond in {language}. If the question is in English, respond in English. If the question is in Telugu, respond in Telugu.

Provide a concise and helpful answer. If you don't know the answer or if the question is unrelated to T-Fiber, politely state that you cannot help with that specific query. Do not make up information.
If asked about specific current plans or pricing, state that the most up-to-date information can be found on the official T-Fiber website."""


@dataclass
class LLMResponse:
    """Response from LLM completion."""
    content: str
    finish_reason: Optional[str] = None
    usage: Optional[Dict[str, int]] = None
    processing_time_ms: Optional[float] = None


@dataclass
class GeneratedReply:
    """Reply produced by the generative fallback."""
    text: str
    language: LanguageCode
    is_fallback: bool = False
    error: Optional[str] = None


def build_messages(text: str, language: LanguageCode) -> List[Dict[str, str]]:
    """Persona prompt plus the user's question."""
    language_name = LANGUAGE_NAMES[language.value].split(" ")[0]
    return [
        {"role": "system", "content": PERSONA_PROMPT.format(language=language_name)},
        {"role": "user", "content": text}
    ]


class LLMService:
    """
    Groq-backed reply generator.

    ``complete`` raises ``LLMException`` subclasses; ``generate_reply`` never
    raises and substitutes a localised apology instead.
    """

    def __init__(self, client: Optional[Any] = None):
        self._client = client
        self._model = settings.LLM_MODEL_ID

    @property
    def is_configured(self) -> bool:
        return self._client is not None or bool(settings.GROQ_API_KEY)

    async def initialize(self):
        """Create the Groq client when an API key is available."""
        if self._client is not None:
            return

        if not settings.GROQ_API_KEY:
            logger.warning("GROQ_API_KEY not set, generative replies will use the apology fallback")
            return

        self._client = AsyncGroq(api_key=settings.GROQ_API_KEY)
        logger.info(f"LLM service initialized with model: {self._model}")

    async def complete(
        self,
        messages: List[Dict[str, str]],
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None
    ) -> LLMResponse:
        """
        Generate a complete response.

        Args:
            messages: Chat messages
            temperature: Sampling temperature
            max_tokens: Maximum tokens to generate

        Returns:
            LLMResponse with content
        """
        if self._client is None:
            raise LLMNotConfiguredException()

        start_time = time.time()

        try:
            response = await asyncio.wait_for(
                self._client.chat.completions.create(
                    model=self._model,
                    messages=messages,
                    temperature=settings.LLM_TEMPERATURE if temperature is None else temperature,
                    max_tokens=max_tokens or settings.LLM_MAX_TOKENS
                ),
                timeout=settings.LLM_TIMEOUT_SECONDS
            )
        except asyncio.TimeoutError:
            raise LLMTimeoutException(settings.LLM_TIMEOUT_SECONDS)
        except Exception as e:
            if "rate_limit" in str(e).lower():
                raise LLMRateLimitException()
            raise LLMAPIException(str(e))

        try:
            choice = response.choices[0]
            content = choice.message.content or ""
        except (AttributeError, IndexError, TypeError):
            raise LLMAPIException("Completion contained no usable choice")

        usage = getattr(response, "usage", None)

        return LLMResponse(
            content=content,
            finish_reason=getattr(choice, "finish_reason", None),
            usage={
                "prompt_tokens": usage.prompt_tokens,
                "completion_tokens": usage.completion_tokens,
                "total_tokens": usage.total_tokens
            } if usage else None,
            processing_time_ms=(time.time() - start_time) * 1000
        )

    async def generate_reply(self, text: str, language: LanguageCode) -> GeneratedReply:
        """
        Answer a question the static knowledge could not.

        Empty output falls back to the "couldn't process" apology, any failure
        to the "error occurred" apology.
        """
        language = LanguageCode(language)

        try:
            response = await self.complete(build_messages(text, language))
        except LLMException as e:
            logger.error(f"Generative reply failed: {e.message}")
            return GeneratedReply(
                text=ERROR_REPLY_APOLOGIES[language.value],
                language=language,
                is_fallback=True,
                error=e.message
            )

        content = response.content.strip() if isinstance(response.content, str) else ""
        if not content:
            logger.warning("Generative reply was empty")
            return GeneratedReply(
                text=EMPTY_REPLY_APOLOGIES[language.value],
                language=language,
                is_fallback=True
            )

        logger.info(f"Generated reply in {response.processing_time_ms:.0f}ms")
        return GeneratedReply(text=content, language=language)

    async def cleanup(self):
        """Cleanup resources."""
        if self._client is not None and hasattr(self._client, "close"):
            await self._client.close()
        self._client = None
        logger.info("LLM service cleaned up")
