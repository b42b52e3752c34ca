import json

import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from dining_enricher.clients.base import LLMProvider
from dining_enricher.clients.openai_client import Completion, OpenAIClient
from dining_enricher.enricher.llm_client import VenueLLMClient, calculate_cost
from dining_enricher.enricher.prompts import build_user_prompt
from dining_enricher.errors import ProviderResponseError
from dining_enricher.vocab import CuisineType, VenueFeature, VenueType
from tests.conftest import FakeProvider, make_raw_venue, make_resort


def _provider(content: str, prompt_tokens: int = 1000, completion_tokens: int = 500):
    provider = MagicMock()
    provider.complete = AsyncMock(
        return_value=Completion(content=content, prompt_tokens=prompt_tokens, completion_tokens=completion_tokens)
    )
    return provider


def test_prompt_embeds_resort_search_bounds_and_vocabularies():
    resort = make_resort(name="Test Peak", nearest_city="Frisco", region="CO")
    prompt = build_user_prompt(resort, radius_miles=12.5, max_venues=7)

    assert '"Test Peak"' in prompt
    assert "Frisco, CO" in prompt
    assert "40.0, -105.0" in prompt
    assert "within 12.5 miles" in prompt
    assert "Return EXACTLY 7 venues" in prompt
    for value in VenueType.values() + CuisineType.values() + VenueFeature.values():
        assert f'"{value}"' in prompt
    assert '"$$$$"' in prompt
    assert '"mid_mountain"' in prompt


def test_cost_uses_model_rates():
    assert calculate_cost("gpt-4o", 1000, 1000) == pytest.approx(0.005 + 0.015)
    assert calculate_cost("gpt-4o-mini", 2000, 4000) == pytest.approx(0.0003 + 0.0024)


def test_cost_falls_back_to_default_model_rates():
    assert calculate_cost("some-future-model", 1000, 1000) == calculate_cost("gpt-4-turbo-preview", 1000, 1000)


@pytest.mark.asyncio
async def test_request_venues_returns_raw_venues_usage_and_cost():
    payload = {"venues": [make_raw_venue(), make_raw_venue(name="Other")]}
    provider = _provider(json.dumps(payload))
    client = VenueLLMClient(provider, model="gpt-4o")

    response = await client.request_venues(make_resort(), 10, 2)

    assert len(response.venues) == 2
    assert response.prompt_tokens == 1000
    assert response.completion_tokens == 500
    assert response.cost == pytest.approx(calculate_cost("gpt-4o", 1000, 500))
    assert response.raw_payload == payload

    kwargs = provider.complete.call_args.kwargs
    assert kwargs["json_mode"] is True
    assert kwargs["model"] == "gpt-4o"


@pytest.mark.asyncio
async def test_missing_venues_key_is_zero_results():
    client = VenueLLMClient(_provider(json.dumps({"note": "nothing nearby"})))
    response = await client.request_venues(make_resort(), 10, 5)
    assert response.venues == []


@pytest.mark.asyncio
@pytest.mark.parametrize("content", ["", "   ", "not json", "[1, 2]", json.dumps({"venues": "many"})])
async def test_empty_or_malformed_content_is_a_hard_failure(content):
    client = VenueLLMClient(_provider(content))
    with pytest.raises(ProviderResponseError):
        await client.request_venues(make_resort(), 10, 5)


@pytest.mark.asyncio
async def test_provider_errors_propagate_untouched():
    provider = MagicMock()
    provider.complete = AsyncMock(side_effect=TimeoutError("socket timeout"))
    client = VenueLLMClient(provider)

    with pytest.raises(TimeoutError, match="socket timeout"):
        await client.request_venues(make_resort(), 10, 5)
    assert provider.complete.await_count == 1


@pytest.mark.asyncio
async def test_openai_client_complete_maps_response_and_usage(monkeypatch):
    """
    Patch the SDK at the point of use and reset the singleton, so the real
    OpenAIClient.complete runs against a mocked chat completion.
    """
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")

    mock_response = MagicMock()
    mock_response.choices = [MagicMock()]
    mock_response.choices[0].message.content = '{"venues": []}'
    mock_response.usage.prompt_tokens = 321
    mock_response.usage.completion_tokens = 45

    with patch("dining_enricher.clients.openai_client.AsyncOpenAI") as mock_sdk:
        mock_sdk_instance = MagicMock()
        mock_sdk_instance.chat.completions.create = AsyncMock(return_value=mock_response)
        mock_sdk.return_value = mock_sdk_instance

        # Reset singleton state
        from dining_enricher.clients import openai_client as oai_client_module
        oai_client_module.OpenAIClient._instance = None
        oai_client_module.OpenAIClient._initialized = False

        try:
            client = oai_client_module.OpenAIClient()
            completion = await client.complete("system", "user", model="gpt-4o-mini", max_tokens=100)
        finally:
            oai_client_module.OpenAIClient._instance = None
            oai_client_module.OpenAIClient._initialized = False

    assert completion == Completion(content='{"venues": []}', prompt_tokens=321, completion_tokens=45)
    kwargs = mock_sdk_instance.chat.completions.create.call_args.kwargs
    assert kwargs["response_format"] == {"type": "json_object"}
    assert kwargs["messages"][0] == {"role": "system", "content": "system"}
    assert kwargs["max_tokens"] == 100


def test_openai_client_and_test_provider_satisfy_provider_interface():
    assert isinstance(FakeProvider(), LLMProvider)
    assert issubclass(OpenAIClient, LLMProvider)
