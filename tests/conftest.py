"""
Shared fixtures: a scripted provider and a fake clock so gateway tests
never touch the network or actually sleep.
"""

import pytest

from finbox.copilot import Copilot
from finbox.gateway.base import BaseProvider, ProviderResponse
from finbox.gateway.gateway import AIGateway
from finbox.gateway.interpreter import ResponseShape
from finbox.gateway.retry import RetryPolicy


class ScriptedProvider(BaseProvider):
    """Replays a list of ProviderResponses (or a callable text -> response)."""

    shape = ResponseShape.HF_GENERATED_TEXT

    def __init__(self, responses=None, reply=None, **kwargs):
        kwargs.setdefault("name", "scripted")
        kwargs.setdefault("url", "http://fake")
        kwargs.setdefault("model", "test-model")
        super().__init__(**kwargs)
        self.responses = list(responses or [])
        self.reply = reply
        self.sent: list[str] = []

    def build_payload(self, text, generation):
        return {"inputs": text}

    async def send(self, text, generation):
        self.sent.append(text)
        if self.reply is not None:
            return ProviderResponse(ok=True, data=[{"generated_text": self.reply(text)}])
        return self.responses.pop(0)

    async def health_check(self):
        return True


def ok(text: str) -> ProviderResponse:
    return ProviderResponse(ok=True, data=[{"generated_text": text}], provider_name="scripted")


def http_error(status: int = 503, error: str = "", warming_up: bool = False) -> ProviderResponse:
    return ProviderResponse(
        ok=False, status_code=status, provider_name="scripted",
        error=error or f"HTTP error! status: {status}", warming_up=warming_up,
    )


class FakeClock:
    """Stands in for asyncio.sleep; records every requested delay."""

    def __init__(self):
        self.delays: list[float] = []

    async def __call__(self, seconds: float):
        self.delays.append(seconds)

    @property
    def total(self) -> float:
        return sum(self.delays)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def make_gateway(clock):
    """Factory: make_gateway(responses=[...]) or make_gateway(reply=fn)."""
    def _make(responses=None, reply=None, policy=None, **provider_kwargs):
        provider = ScriptedProvider(responses=responses, reply=reply, **provider_kwargs)
        return AIGateway(provider, policy=policy or RetryPolicy(), sleep=clock)
    return _make


@pytest.fixture
def make_copilot(make_gateway):
    def _make(**kwargs):
        return Copilot(make_gateway(**kwargs))
    return _make
