"""Text completion service with Ollama integration.

Pipeline steps ask for a completion by quality tier ("fast" for extraction,
"smart" for selection and writing); the client resolves the tier to a model
name and reports token usage with a cost estimate.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Literal, Protocol

import httpx

from resu.config import Settings, settings
from resu.exceptions import ExternalServiceFailed

logger = logging.getLogger(__name__)

ModelTier = Literal["fast", "smart"]


@dataclass(frozen=True)
class CompletionResult:
    """Generated text plus accounting for one call."""

    text: str
    model_id: str
    prompt_tokens: int = 0
    completion_tokens: int = 0
    cost_estimate: float = 0.0

    @property
    def total_tokens(self) -> int:
        return self.prompt_tokens + self.completion_tokens


class CompletionService(Protocol):
    async def complete(
        self,
        tier: ModelTier,
        system_prompt: str,
        user_message: str,
        structured_output: bool = False,
        temperature: float | None = None,
    ) -> CompletionResult: ...


def estimate_cost(
    prompt_tokens: int, completion_tokens: int, config: Settings = settings
) -> float:
    """Estimate USD cost from the per-1K token prices in settings."""
    return (
        prompt_tokens / 1000 * config.cost_per_1k_prompt_tokens
        + completion_tokens / 1000 * config.cost_per_1k_completion_tokens
    )


class OllamaCompletionClient:
    """Async client for the Ollama chat API.

    Each call is bounded by ``timeout`` seconds. Calls are not retried; a
    failed step is surfaced to the caller, who decides whether to resubmit.
    """

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        config: Settings = settings,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize Ollama client.

        Args:
            base_url: Ollama API base URL. Defaults to settings.ollama_base_url
            timeout: Per-call timeout in seconds. Defaults to settings.completion_timeout
            config: Settings used for tier resolution and cost estimation
            transport: Optional httpx transport (used by tests)
        """
        self.config = config
        self.base_url = (base_url or config.ollama_base_url).rstrip("/")
        self.timeout = timeout or config.completion_timeout
        self._transport = transport

    async def complete(
        self,
        tier: ModelTier,
        system_prompt: str,
        user_message: str,
        structured_output: bool = False,
        temperature: float | None = None,
    ) -> CompletionResult:
        """Call the Ollama chat endpoint.

        Args:
            tier: "fast" or "smart"
            system_prompt: Instructions for the model
            user_message: Task input
            structured_output: Ask Ollama to constrain output to JSON
            temperature: Sampling temperature (model default when None)

        Returns:
            CompletionResult with the message content and usage

        Raises:
            ExternalServiceFailed: On HTTP failure, timeout or empty content
        """
        model = self.config.model_for_tier(tier)
        payload: dict = {
            "model": model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_message},
            ],
            "stream": False,
        }
        if structured_output:
            payload["format"] = "json"
        if temperature is not None:
            payload["options"] = {"temperature": temperature}

        logger.info(f"Completion request: tier={tier} model={model}")

        try:
            async with asyncio.timeout(self.timeout):
                async with httpx.AsyncClient(transport=self._transport) as client:
                    response = await client.post(
                        f"{self.base_url}/api/chat",
                        json=payload,
                        timeout=self.timeout,
                    )
                    response.raise_for_status()
                    data = response.json()
        except asyncio.TimeoutError as e:
            raise ExternalServiceFailed(
                f"Ollama request timed out after {self.timeout}s (model: {model})"
            ) from e
        except httpx.HTTPError as e:
            raise ExternalServiceFailed(f"Ollama API error: {e}") from e
        except ValueError as e:
            raise ExternalServiceFailed(f"Ollama returned a non-JSON body: {e}") from e

        content = (data.get("message") or {}).get("content") or ""
        if not content.strip():
            raise ExternalServiceFailed(f"No response from Ollama (model: {model})")

        prompt_tokens = int(data.get("prompt_eval_count") or 0)
        completion_tokens = int(data.get("eval_count") or 0)
        result = CompletionResult(
            text=content,
            model_id=data.get("model") or model,
            prompt_tokens=prompt_tokens,
            completion_tokens=completion_tokens,
            cost_estimate=estimate_cost(prompt_tokens, completion_tokens, self.config),
        )
        logger.info(
            f"Completion done: model={result.model_id} "
            f"tokens={result.total_tokens} cost=${result.cost_estimate:.4f}"
        )
        return result
