"""Itinerary generation against Gemini under a strict JSON output contract."""
from __future__ import annotations

import json
import logging
from typing import Any, List, Optional

from langchain_core.language_models.chat_models import BaseChatModel
from langchain_core.messages import BaseMessage
from langchain_google_genai import ChatGoogleGenerativeAI
from pydantic import ValidationError

from wanderai.core.config import DEFAULT_GEMINI_MODEL, ApiSettings
from wanderai.core.errors import (
    InvalidCredentialError,
    MalformedResponseError,
    MissingCredentialError,
    ProviderUnavailableError,
)
from wanderai.core.prompts import ITINERARY_SCHEMA, build_itinerary_prompt
from wanderai.core.schemas import Itinerary

logger = logging.getLogger(__name__)

GENERATION_TEMPERATURE = 0.7

_AUTH_STATUS_CODES = {401, 403}
_AUTH_MARKERS = ("API_KEY_INVALID", "API key not valid", "PERMISSION_DENIED", "UNAUTHENTICATED")


def _status_code(exc: BaseException) -> Optional[int]:
    """Best-effort HTTP status lookup across the SDK error types."""

    for attr in ("status_code", "code"):
        value = getattr(exc, attr, None)
        if isinstance(value, int):
            return value
    response = getattr(exc, "response", None)
    value = getattr(response, "status_code", None)
    return value if isinstance(value, int) else None


def _classify_provider_error(exc: BaseException) -> Exception:
    """Map a raw provider exception onto the generation error taxonomy."""

    status = _status_code(exc)
    text = str(exc)
    if status in _AUTH_STATUS_CODES or any(marker in text for marker in _AUTH_MARKERS):
        return InvalidCredentialError(f"Gemini rejected the API key: {text}")
    return ProviderUnavailableError(f"Gemini request failed: {text}")


def _message_text(message: Any) -> str:
    """Flatten a chat model reply into the raw text it carries."""

    content = message.content if isinstance(message, BaseMessage) else message
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        chunks: List[str] = []
        for chunk in content:
            if isinstance(chunk, dict) and chunk.get("type") == "text":
                chunks.append(chunk.get("text", ""))
            elif isinstance(chunk, str):
                chunks.append(chunk)
        return "".join(chunks)
    return "" if content is None else str(content)


def parse_itinerary(text: str, *, expected_days: Optional[int] = None) -> Itinerary:
    """Strictly parse model output into an :class:`Itinerary`.

    Raises:
        MalformedResponseError: empty text, invalid JSON, missing or mistyped
            fields, out-of-range coordinates, or a day count that differs
            from ``expected_days``.
    """

    if not text or not text.strip():
        raise MalformedResponseError("No response from AI")

    try:
        payload = json.loads(text)
    except json.JSONDecodeError as exc:
        raise MalformedResponseError(f"Model output is not valid JSON: {exc}") from exc

    try:
        itinerary = Itinerary.model_validate(payload)
    except ValidationError as exc:
        raise MalformedResponseError(f"Model output does not match the itinerary schema: {exc}") from exc

    if expected_days is not None and len(itinerary.days) != expected_days:
        raise MalformedResponseError(
            f"Model returned {len(itinerary.days)} days but {expected_days} were requested"
        )
    return itinerary


class ItineraryGenerator:
    """Builds the itinerary prompt, calls the chat model once and validates the reply."""

    def __init__(
        self,
        api_key: Optional[str],
        *,
        model: str = DEFAULT_GEMINI_MODEL,
        temperature: float = GENERATION_TEMPERATURE,
        llm: Optional[BaseChatModel] = None,
    ) -> None:
        self.api_key = api_key
        self.model = model
        self.temperature = temperature
        self._llm = llm

    def _build_llm(self) -> BaseChatModel:
        # A failed attempt goes straight back to the user; resubmission is the retry.
        return ChatGoogleGenerativeAI(
            model=self.model,
            temperature=self.temperature,
            google_api_key=self.api_key,
            response_mime_type="application/json",
            response_schema=ITINERARY_SCHEMA,
            max_retries=0,
        )

    @property
    def llm(self) -> BaseChatModel:
        if self._llm is None:
            self._llm = self._build_llm()
        return self._llm

    async def generate(self, destination: str, days: int, interests: str) -> Itinerary:
        """Generate a ``days``-day itinerary for ``destination``.

        Raises:
            MissingCredentialError: no API key configured; raised before any call.
            InvalidCredentialError: the provider rejected the key.
            ProviderUnavailableError: timeouts, 5xx and network failures.
            MalformedResponseError: the reply violates the output contract.
        """

        if not self.api_key:
            logger.error("Gemini API key is missing; refusing to call the model")
            raise MissingCredentialError()

        prompt = build_itinerary_prompt(destination, days, interests)
        logger.info(f"Generating {days}-day itinerary for {destination}")
        logger.debug(f"Itinerary prompt: {prompt}")

        try:
            message = await self.llm.ainvoke(prompt)
        except Exception as exc:
            error = _classify_provider_error(exc)
            logger.error(f"Gemini API error: {exc}")
            raise error from exc

        raw_output = _message_text(message)
        logger.debug(f"Raw itinerary output: {raw_output}")
        itinerary = parse_itinerary(raw_output, expected_days=days)
        logger.info(f"Generated itinerary for {itinerary.destination} with {len(itinerary.days)} days")
        return itinerary


def create_itinerary_generator(settings: ApiSettings) -> ItineraryGenerator:
    """Instantiate the generator using project settings.

    A missing key is not an error here: it surfaces as
    :class:`MissingCredentialError` on the first generation attempt.
    """

    return ItineraryGenerator(settings.gemini_api_key, model=settings.gemini_model)
