"""LLM oracle for AEO scoring."""

import asyncio
import logging
import os
from abc import ABC, abstractmethod
from typing import Optional

from aeo.constants import DEFAULT_ORACLE_TIMEOUT_SECONDS
from aeo.exceptions import OracleCallError

logger = logging.getLogger(__name__)


class BaseOracle(ABC):
    """The scoring oracle capability: two prompts in, raw text out."""

    @abstractmethod
    async def complete(self, system_prompt: str, user_prompt: str) -> str:
        """Return the oracle's raw reply.

        Raises:
            OracleCallError: On network failure or timeout
        """


class LLMClient(BaseOracle):
    """Scoring oracle backed by the OpenAI or Anthropic API.

    Makes exactly one request per call; retrying is left to the caller.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = "gpt-4.1-mini",
        provider: str = "openai",
        max_tokens: int = 4000,
        temperature: float = 0.0,
        timeout: float = DEFAULT_ORACLE_TIMEOUT_SECONDS,
    ):
        """Initialize the LLM client.

        Args:
            api_key: API key for the LLM provider
            model: Model name to use
            provider: LLM provider (openai or anthropic)
            max_tokens: Maximum tokens for the response
            temperature: Sampling temperature (default: 0 for stable scoring)
            timeout: Seconds to wait for a reply before failing
        """
        self.api_key = api_key or os.getenv("LLM_API_KEY")
        self.model = model
        self.provider = provider
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.timeout = timeout

        if not self.api_key:
            raise ValueError(
                "API key must be provided or set in LLM_API_KEY environment variable"
            )
        if provider not in ("openai", "anthropic"):
            raise ValueError(f"Unsupported provider: {provider}")

        self._client = None

    def _get_client(self):
        """Create the provider's async SDK client on first use."""
        if self._client is None:
            if self.provider == "openai":
                import openai

                self._client = openai.AsyncOpenAI(api_key=self.api_key, max_retries=0)
            else:
                import anthropic

                self._client = anthropic.AsyncAnthropic(api_key=self.api_key, max_retries=0)
        return self._client

    async def complete(self, system_prompt: str, user_prompt: str) -> str:
        """Send both prompts and return the raw reply text.

        Args:
            system_prompt: System instruction
            user_prompt: User instruction

        Returns:
            Raw response text

        Raises:
            OracleCallError: On any provider/network failure or timeout
        """
        if self.provider == "openai":
            request = self._call_openai(system_prompt, user_prompt)
        else:
            request = self._call_anthropic(system_prompt, user_prompt)

        try:
            response = await asyncio.wait_for(request, timeout=self.timeout)
        except asyncio.TimeoutError as e:
            logger.error(f"LLM call timed out after {self.timeout}s")
            raise OracleCallError(f"Oracle call timed out after {self.timeout}s", cause=e)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(f"LLM call failed: {e}")
            raise OracleCallError(f"Oracle call failed: {e}", cause=e)

        logger.debug(f"LLM returned {len(response or '')} characters")
        return response or ""

    async def _call_openai(self, system_prompt: str, user_prompt: str) -> str:
        client = self._get_client()
        response = await client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            temperature=self.temperature,
            max_tokens=self.max_tokens,
            response_format={"type": "json_object"},
        )
        return response.choices[0].message.content

    async def _call_anthropic(self, system_prompt: str, user_prompt: str) -> str:
        client = self._get_client()
        response = await client.messages.create(
            model=self.model,
            max_tokens=self.max_tokens,
            temperature=self.temperature,
            system=system_prompt,
            messages=[{"role": "user", "content": user_prompt}],
        )
        return "".join(
            block.text for block in response.content if getattr(block, "type", "") == "text"
        )
