"""
Singleton OpenAI client with rate limiting using aiolimiter.
"""
import os
from dataclasses import dataclass
from aiolimiter import AsyncLimiter
from openai import AsyncOpenAI
from loguru import logger

from dining_enricher.config import OPENAI_API_KEY, OPENAI_MAX_REQUESTS_PER_MINUTE, OPENAI_MODEL


@dataclass
class Completion:
    """Text content of a chat completion with its token usage."""
    content: str
    prompt_tokens: int
    completion_tokens: int


class OpenAIClient:
    """
    Singleton OpenAI client for making API requests.
    Uses AsyncLimiter to cap requests per minute across the process.
    """
    _instance = None
    _initialized = False

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self):
        if not OpenAIClient._initialized:
            api_key = OPENAI_API_KEY or os.getenv("OPENAI_API_KEY")
            if not api_key:
                raise ValueError("OPENAI_API_KEY must be set in environment or config")

            self.client = AsyncOpenAI(api_key=api_key)
            # Token bucket: OPENAI_MAX_REQUESTS_PER_MINUTE requests per 60s window.
            # The enricher's own RateLimiter spaces calls further apart than this.
            self.rate_limiter = AsyncLimiter(max_rate=OPENAI_MAX_REQUESTS_PER_MINUTE, time_period=60.0)
            OpenAIClient._initialized = True

    async def chat_completions_create(self, **kwargs):
        """
        Create a chat completion with rate limiting.
        Accepts all arguments that AsyncOpenAI.chat.completions.create accepts.

        Returns:
            The response from OpenAI's chat completions API.
        """
        async with self.rate_limiter:
            try:
                return await self.client.chat.completions.create(**kwargs)
            except Exception as e:
                logger.debug(f"⚠️ OpenAI API request failed: {e}")
                raise

    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        *,
        model: str = OPENAI_MODEL,
        json_mode: bool = True,
        temperature: float = 0.3,
        max_tokens: int = 6000,
    ) -> Completion:
        """
        Run a single system+user chat completion and return its content and usage.

        Transport and API errors propagate to the caller; nothing is retried here.
        """
        kwargs = dict(
            model=model,
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            temperature=temperature,
            max_tokens=max_tokens,
        )
        if json_mode:
            kwargs["response_format"] = {"type": "json_object"}

        resp = await self.chat_completions_create(**kwargs)
        content = resp.choices[0].message.content if resp.choices else None
        usage = resp.usage
        return Completion(
            content=content or "",
            prompt_tokens=getattr(usage, "prompt_tokens", 0) or 0,
            completion_tokens=getattr(usage, "completion_tokens", 0) or 0,
        )
