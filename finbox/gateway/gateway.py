"""
AI Gateway: one prompt plus conversation context in, one GatewayResult out.

    gateway = AIGateway.from_config(cfg)
    result = await gateway.invoke("Summarize this.", conversation.context())
    if result.success:
        ...

The gateway serializes the tail of the context into a role-tagged
transcript, dispatches it to the configured provider under a RetryPolicy,
and decodes the provider's response shape. Every failure path, including
unexpected exceptions, resolves to GatewayResult.fail(); nothing raises
past invoke().
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable

from finbox.gateway.base import BaseProvider, GenerationConfig, GatewayResult, ProviderResponse
from finbox.gateway.gemini import GeminiProvider
from finbox.gateway.huggingface import HuggingFaceProvider
from finbox.gateway.interpreter import ResponseFormatError, decode_response
from finbox.gateway.retry import Outcome, RetryPolicy, retry_with_backoff

logger = logging.getLogger(__name__)

DEFAULT_CONTEXT_WINDOW = 6

# Provider name → provider class
PROVIDERS: dict[str, type[BaseProvider]] = {
    "huggingface": HuggingFaceProvider,
    "gemini": GeminiProvider,
}


def make_provider(gateway_cfg: dict) -> BaseProvider:
    """Instantiate a provider from the `gateway` config section."""
    provider = gateway_cfg.get("provider", "huggingface")
    cls = PROVIDERS.get(provider)
    if not cls:
        raise ValueError(
            f"Unknown gateway provider '{provider}' (expected one of: {', '.join(PROVIDERS)})"
        )
    url = gateway_cfg.get("url", "")
    if not url:
        raise ValueError(f"Gateway provider '{provider}' has no url")
    return cls(
        name=gateway_cfg.get("name", provider),
        url=url,
        model=gateway_cfg.get("model", ""),
        api_key=gateway_cfg.get("api_key", ""),
        timeout=gateway_cfg.get("timeout", 30),
    )


def build_prompt(prompt: str, context: list[dict] | None, window: int = DEFAULT_CONTEXT_WINDOW) -> str:
    """
    Render the last `window` context entries as a Customer/Agent transcript
    followed by the task. Entries keep their original order.
    """
    if not context:
        return f"{prompt}\n\nResponse:"

    lines = ["Previous conversation:"]
    for msg in context[-window:]:
        role = "Customer" if msg.get("sender") == "user" else "Agent"
        lines.append(f"{role}: {msg.get('content', '')}")
    transcript = "\n".join(lines)
    return f"{transcript}\n\nTask: {prompt}\n\nResponse:"


class _Attempt:
    """One provider round trip, decoded."""
    __slots__ = ("response", "text", "malformed")

    def __init__(self, response: ProviderResponse, text: str = "", malformed: bool = False):
        self.response = response
        self.text = text
        self.malformed = malformed


def _classify(attempt: _Attempt) -> Outcome:
    if attempt.malformed:
        return Outcome.FATAL
    if attempt.response.ok:
        return Outcome.SUCCESS
    if attempt.response.warming_up:
        return Outcome.WARMUP
    return Outcome.RETRY


class AIGateway:
    """Issues generation requests to one configured provider."""

    def __init__(
        self,
        provider: BaseProvider,
        policy: RetryPolicy | None = None,
        generation: GenerationConfig | None = None,
        context_window: int = DEFAULT_CONTEXT_WINDOW,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.provider = provider
        self.policy = policy or RetryPolicy()
        self.generation = (generation or GenerationConfig()).validate()
        self.context_window = context_window
        self._sleep = sleep

    @classmethod
    def from_config(cls, cfg: dict, **kwargs) -> AIGateway:
        """Build a gateway from the full config dict (gateway/generation/retry sections)."""
        gw_cfg = cfg.get("gateway", {})
        return cls(
            provider=make_provider(gw_cfg),
            policy=RetryPolicy.from_config(cfg),
            generation=GenerationConfig.from_config(cfg),
            context_window=int(gw_cfg.get("context_window", DEFAULT_CONTEXT_WINDOW)),
            **kwargs,
        )

    async def _attempt(self, text: str, generation: GenerationConfig) -> _Attempt:
        response = await self.provider.send(text, generation)
        if not response.ok:
            return _Attempt(response)
        try:
            return _Attempt(response, text=decode_response(self.provider.shape, response.data))
        except ResponseFormatError:
            logger.warning(
                "Provider '%s' returned an unexpected response shape: %.200r",
                self.provider.name, response.data,
            )
            return _Attempt(response, malformed=True)

    async def invoke(
        self, prompt: str, context: list[dict] | None = None, wrap: bool = True, **options,
    ) -> GatewayResult:
        """
        Generate text for `prompt`, grounded on `context`.
        With wrap=False the prompt is sent as-is, for templates that carry
        their own answer cue and no separate context.
        `options` override the default GenerationConfig for this call only.
        """
        if not prompt or not prompt.strip():
            return GatewayResult.fail("Prompt must not be empty")

        try:
            generation = self.generation.merged(**options) if options else self.generation
        except (TypeError, ValueError) as e:
            return GatewayResult.fail(f"Invalid generation options: {e}")

        cred_error = self.provider.credential_error()
        if cred_error:
            logger.error("Gateway not configured: %s", cred_error)
            return GatewayResult.fail(cred_error)

        if wrap:
            try:
                text = build_prompt(prompt, context, self.context_window)
            except (AttributeError, TypeError) as e:
                return GatewayResult.fail(f"Invalid conversation context: {e}")
        else:
            text = prompt

        try:
            attempt, attempts = await retry_with_backoff(
                lambda: self._attempt(text, generation),
                _classify,
                self.policy,
                sleep=self._sleep,
            )
        except Exception as e:
            logger.exception("Gateway call failed unexpectedly")
            return GatewayResult.fail(f"Failed to generate response: {e}")

        if attempt.malformed:
            return GatewayResult.fail("Unexpected API response format")

        if attempt.response.ok:
            logger.info(
                "Provider '%s' answered in %.0fms after %d attempt(s)",
                self.provider.name, attempt.response.latency_ms, attempts,
            )
            return GatewayResult.ok(attempt.text)

        logger.error(
            "Provider '%s' exhausted %d attempt(s): %s",
            self.provider.name, attempts, attempt.response.error,
        )
        return GatewayResult.fail(f"AI service error: {attempt.response.error or 'unknown error'}")

    async def health_check(self) -> bool:
        return await self.provider.health_check()
