"""Tests for the Gemini itinerary generator."""
from __future__ import annotations

import json
from typing import Any, List, Optional
from unittest.mock import Mock

import httpx
import pytest
from langchain_core.messages import AIMessage

from wanderai.core.errors import (
    GenerationErrorKind,
    InvalidCredentialError,
    MalformedResponseError,
    MissingCredentialError,
    ProviderUnavailableError,
)
from wanderai.services.gemini import ItineraryGenerator, create_itinerary_generator, parse_itinerary
from wanderai.services.gemini import client as gemini_client
from wanderai.core.config import ApiSettings
from wanderai.core.prompts import ITINERARY_SCHEMA


class StubLLM:
    """Chat model double returning a fixed reply or raising a fixed error."""

    def __init__(self, reply: Any = None, error: Optional[BaseException] = None) -> None:
        self.reply = reply
        self.error = error
        self.prompts: List[Any] = []

    async def ainvoke(self, prompt: Any, *args: Any, **kwargs: Any) -> AIMessage:
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        if isinstance(self.reply, AIMessage):
            return self.reply
        return AIMessage(content=self.reply)


class ProviderError(Exception):
    """Mimics SDK errors exposing an HTTP status as ``code``."""

    def __init__(self, message: str, code: Optional[int] = None) -> None:
        super().__init__(message)
        self.code = code


@pytest.mark.asyncio
async def test_generate_returns_validated_itinerary(itinerary_payload):
    llm = StubLLM(json.dumps(itinerary_payload(days=3)))
    generator = ItineraryGenerator("test-key", llm=llm)

    itinerary = await generator.generate("Tokyo", 3, "history, food")

    assert itinerary.destination == "Tokyo"
    assert len(itinerary.days) == 3
    assert len(llm.prompts) == 1
    assert "Tokyo" in llm.prompts[0]
    assert "history, food" in llm.prompts[0]


@pytest.mark.asyncio
@pytest.mark.parametrize("days", [1, 2, 7, 14])
async def test_generate_honours_requested_day_count(itinerary_payload, days):
    generator = ItineraryGenerator("test-key", llm=StubLLM(json.dumps(itinerary_payload(days=days))))

    itinerary = await generator.generate("Tokyo", days, "food")

    assert len(itinerary.days) == days
    for day in itinerary.days:
        assert day.activities
        for activity in day.activities:
            assert activity.time and activity.activity and activity.description and activity.emoji


@pytest.mark.asyncio
async def test_generate_accepts_content_parts(itinerary_payload):
    reply = AIMessage(content=[{"type": "text", "text": json.dumps(itinerary_payload(days=1))}])
    generator = ItineraryGenerator("test-key", llm=StubLLM(reply))

    itinerary = await generator.generate("Tokyo", 1, "food")

    assert itinerary.days[0].day_title == "Day 1: Historical Walk"


@pytest.mark.asyncio
async def test_missing_key_fails_before_any_model_call(monkeypatch):
    factory = Mock()
    monkeypatch.setattr(gemini_client, "ChatGoogleGenerativeAI", factory)
    llm = StubLLM("{}")

    with pytest.raises(MissingCredentialError) as excinfo:
        await ItineraryGenerator(None, llm=llm).generate("Tokyo", 3, "food")
    with pytest.raises(MissingCredentialError):
        await ItineraryGenerator("").generate("Tokyo", 3, "food")

    assert excinfo.value.kind is GenerationErrorKind.MISSING_CREDENTIAL
    assert llm.prompts == []
    factory.assert_not_called()


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "error",
    [
        ProviderError("Forbidden", code=403),
        ProviderError("Unauthorized", code=401),
        ProviderError("400 API key not valid. Please pass a valid API key. [reason: API_KEY_INVALID]", code=400),
    ],
)
async def test_rejected_key_maps_to_invalid_credential(error):
    generator = ItineraryGenerator("bad-key", llm=StubLLM(error=error))

    with pytest.raises(InvalidCredentialError) as excinfo:
        await generator.generate("Tokyo", 3, "food")

    assert excinfo.value.__cause__ is error
    assert excinfo.value.user_message == "Invalid Gemini API key. Please check your configuration in .env"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "error",
    [
        httpx.ConnectTimeout("timed out"),
        ProviderError("503 The model is overloaded.", code=503),
        ProviderError("Deadline exceeded", code=504),
        RuntimeError("connection reset by peer"),
    ],
)
async def test_transport_failures_map_to_provider_unavailable(error):
    llm = StubLLM(error=error)
    generator = ItineraryGenerator("test-key", llm=llm)

    with pytest.raises(ProviderUnavailableError):
        await generator.generate("Tokyo", 3, "food")

    assert len(llm.prompts) == 1


@pytest.mark.asyncio
@pytest.mark.parametrize("reply", ["", "   ", "not json at all", "{\"destination\": \"Tokyo\"}"])
async def test_unreadable_reply_maps_to_malformed_response(reply):
    generator = ItineraryGenerator("test-key", llm=StubLLM(reply))

    with pytest.raises(MalformedResponseError):
        await generator.generate("Tokyo", 3, "food")


@pytest.mark.asyncio
async def test_day_count_mismatch_is_malformed(itinerary_payload):
    generator = ItineraryGenerator("test-key", llm=StubLLM(json.dumps(itinerary_payload(days=2))))

    with pytest.raises(MalformedResponseError, match="2 days but 3"):
        await generator.generate("Tokyo", 3, "food")


def test_parse_itinerary_rejects_missing_activity_field(itinerary_payload):
    payload = itinerary_payload(days=1)
    del payload["days"][0]["activities"][0]["emoji"]

    with pytest.raises(MalformedResponseError):
        parse_itinerary(json.dumps(payload))


def test_parse_itinerary_rejects_bad_coordinates(itinerary_payload):
    payload = itinerary_payload(days=1)
    payload["coordinates"]["lat"] = 123.0

    with pytest.raises(MalformedResponseError):
        parse_itinerary(json.dumps(payload))


def test_parse_itinerary_without_expected_days(itinerary_payload):
    itinerary = parse_itinerary(json.dumps(itinerary_payload(days=5)))

    assert len(itinerary.days) == 5


def test_empty_reply_reports_no_response():
    with pytest.raises(MalformedResponseError, match="No response from AI"):
        parse_itinerary("")


def test_default_llm_requests_json_output(monkeypatch):
    factory = Mock()
    monkeypatch.setattr(gemini_client, "ChatGoogleGenerativeAI", factory)

    generator = create_itinerary_generator(ApiSettings(gemini_api_key="key", gemini_model="gemini-test"))
    llm = generator.llm

    assert llm is factory.return_value
    assert generator.llm is llm
    factory.assert_called_once()
    kwargs = factory.call_args.kwargs
    assert kwargs["model"] == "gemini-test"
    assert kwargs["google_api_key"] == "key"
    assert kwargs["temperature"] == pytest.approx(0.7)
    assert kwargs["response_mime_type"] == "application/json"
    assert kwargs["response_schema"] == ITINERARY_SCHEMA
