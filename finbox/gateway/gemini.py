"""
Google Gemini generateContent provider.
Needs an API key, passed as the `key` query parameter; without one the
gateway fails the call before touching the network.
"""

from __future__ import annotations

import logging
import time

import httpx

from finbox.gateway.base import BaseProvider, GenerationConfig, ProviderResponse
from finbox.gateway.interpreter import ResponseShape

logger = logging.getLogger(__name__)


class GeminiProvider(BaseProvider):
    """Provider for generativelanguage.googleapis.com."""

    PLACEHOLDER_KEYS = ("YOUR_GEMINI_API_KEY_HERE",)
    requires_api_key = True
    shape = ResponseShape.GEMINI_CANDIDATES

    @property
    def endpoint(self) -> str:
        return f"{self.url}/models/{self.model}:generateContent"

    def build_payload(self, text: str, generation: GenerationConfig) -> dict:
        config = {
            "temperature": generation.temperature,
            "maxOutputTokens": generation.max_output_tokens,
        }
        if generation.top_p is not None:
            config["topP"] = generation.top_p
        return {
            "contents": [{"parts": [{"text": text}]}],
            "generationConfig": config,
        }

    @staticmethod
    def _error_detail(resp: httpx.Response) -> str:
        try:
            body = resp.json()
        except ValueError:
            return ""
        if isinstance(body, dict) and isinstance(body.get("error"), dict):
            return body["error"].get("message", "") or ""
        return ""

    async def send(self, text: str, generation: GenerationConfig) -> ProviderResponse:
        if not self.has_api_key:
            return ProviderResponse(
                ok=False, status_code=0, provider_name=self.name,
                error=self.credential_error(),
            )

        t0 = time.monotonic()
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                resp = await client.post(
                    self.endpoint,
                    params={"key": self.api_key},
                    headers={"Content-Type": "application/json"},
                    json=self.build_payload(text, generation),
                )
                latency = (time.monotonic() - t0) * 1000

                if resp.status_code >= 400:
                    detail = self._error_detail(resp) or "Unknown error"
                    return ProviderResponse(
                        ok=False,
                        status_code=resp.status_code,
                        provider_name=self.name,
                        latency_ms=latency,
                        error=f"Gemini API error: {detail}",
                        warming_up="loading" in detail.lower(),
                    )

                return ProviderResponse(
                    ok=True,
                    status_code=resp.status_code,
                    data=resp.json(),
                    provider_name=self.name,
                    latency_ms=latency,
                )
        except httpx.TimeoutException:
            latency = (time.monotonic() - t0) * 1000
            logger.warning("Gemini provider '%s' timed out after %.0fms", self.name, latency)
            return ProviderResponse(
                ok=False, provider_name=self.name, latency_ms=latency,
                status_code=0, error=f"Timeout after {self.timeout}s",
            )
        except Exception as e:
            latency = (time.monotonic() - t0) * 1000
            logger.warning("Gemini provider '%s' failed: %s", self.name, e)
            return ProviderResponse(
                ok=False, provider_name=self.name, latency_ms=latency,
                status_code=0, error=str(e) or e.__class__.__name__,
            )

    async def health_check(self) -> bool:
        """Check the model resource is reachable with our key."""
        if not self.has_api_key:
            return False
        try:
            async with httpx.AsyncClient(timeout=5) as client:
                resp = await client.get(
                    f"{self.url}/models/{self.model}",
                    params={"key": self.api_key},
                )
                return resp.status_code == 200
        except Exception:
            return False
