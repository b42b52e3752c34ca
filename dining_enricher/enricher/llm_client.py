import json
from typing import Dict

from loguru import logger

from dining_enricher.clients.base import LLMProvider
from dining_enricher.config import OPENAI_MODEL
from dining_enricher.errors import ProviderResponseError
from dining_enricher.models import LLMVenueResponse, ResortQuery
from dining_enricher.enricher.prompts import SYSTEM_PROMPT, build_user_prompt

# USD per 1K tokens
PRICING: Dict[str, Dict[str, float]] = {
    "gpt-4-turbo-preview": {"input": 0.01, "output": 0.03},
    "gpt-4-turbo": {"input": 0.01, "output": 0.03},
    "gpt-4o": {"input": 0.005, "output": 0.015},
    "gpt-4o-mini": {"input": 0.00015, "output": 0.0006},
    "gpt-4.1": {"input": 0.002, "output": 0.008},
    "gpt-4.1-mini": {"input": 0.0004, "output": 0.0016},
    "gpt-3.5-turbo": {"input": 0.0005, "output": 0.0015},
}
DEFAULT_PRICING_MODEL = "gpt-4-turbo-preview"

TEMPERATURE = 0.3
MAX_TOKENS = 6000


def calculate_cost(model: str, prompt_tokens: int, completion_tokens: int) -> float:
    """Cost in USD for a completion; unknown models are billed at the default model's rates."""
    rates = PRICING.get(model, PRICING[DEFAULT_PRICING_MODEL])
    return (prompt_tokens / 1000) * rates["input"] + (completion_tokens / 1000) * rates["output"]


class VenueLLMClient:
    """Asks the LLM provider for dining venues around a resort."""

    def __init__(self, provider: LLMProvider, model: str = OPENAI_MODEL):
        self.provider = provider
        self.model = model

    async def request_venues(self, resort: ResortQuery, radius_miles: float, max_venues: int) -> LLMVenueResponse:
        """
        Request up to `max_venues` venues within `radius_miles` of the resort.

        Args:
            resort (ResortQuery): Resort to search around.
            radius_miles (float): Search radius in miles.
            max_venues (int): Number of venues to request.

        Returns:
            LLMVenueResponse: Raw (unvalidated) venues, token usage, cost and the parsed payload.

        Raises:
            ProviderResponseError: If the provider returns no content or content that is not
                a JSON object with a list of venues. Provider and network errors propagate as-is.
        """
        prompt = build_user_prompt(resort, radius_miles, max_venues)
        logger.debug(f"Sending venue request for '{resort.name}' to {self.model}")

        completion = await self.provider.complete(
            SYSTEM_PROMPT,
            prompt,
            model=self.model,
            json_mode=True,
            temperature=TEMPERATURE,
            max_tokens=MAX_TOKENS,
        )

        if not completion.content or not completion.content.strip():
            raise ProviderResponseError(f"No content in provider response for '{resort.name}'")

        try:
            payload = json.loads(completion.content)
        except json.JSONDecodeError as e:
            raise ProviderResponseError(f"Provider returned invalid JSON for '{resort.name}': {e}") from e

        if not isinstance(payload, dict):
            raise ProviderResponseError(f"Provider returned a {type(payload).__name__}, expected a JSON object")

        venues = payload.get("venues")
        if venues is None:
            venues = []
        elif not isinstance(venues, list):
            raise ProviderResponseError(f"'venues' must be a list, got {type(venues).__name__}")

        cost = calculate_cost(self.model, completion.prompt_tokens, completion.completion_tokens)
        logger.debug(
            f"Provider returned {len(venues)} venues for '{resort.name}' "
            f"({completion.prompt_tokens}+{completion.completion_tokens} tokens, ${cost:.4f})"
        )

        return LLMVenueResponse(
            venues=venues,
            prompt_tokens=completion.prompt_tokens,
            completion_tokens=completion.completion_tokens,
            cost=cost,
            raw_payload=payload,
        )
