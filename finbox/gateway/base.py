"""
Base provider abstraction and the result types shared by the AI pipeline.
All providers implement BaseProvider so the gateway can treat them uniformly.
"""

from __future__ import annotations

import abc
import logging
import os
from dataclasses import dataclass, field, fields, replace

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GenerationConfig:
    """Sampling options sent with every generation request."""
    temperature: float = 0.7
    max_output_tokens: int = 500
    top_p: float | None = 0.95

    def validate(self) -> GenerationConfig:
        if not 0.0 <= float(self.temperature) <= 1.0:
            raise ValueError(f"temperature must be in [0, 1], got {self.temperature}")
        if int(self.max_output_tokens) <= 0:
            raise ValueError(f"max_output_tokens must be positive, got {self.max_output_tokens}")
        if self.top_p is not None and not 0.0 < float(self.top_p) <= 1.0:
            raise ValueError(f"top_p must be in (0, 1], got {self.top_p}")
        return self

    def merged(self, **overrides) -> GenerationConfig:
        """Return a copy with overrides applied. Unknown keys raise TypeError."""
        known = {f.name for f in fields(self)}
        unknown = set(overrides) - known
        if unknown:
            raise TypeError(f"Unknown generation option(s): {', '.join(sorted(unknown))}")
        return replace(self, **overrides).validate()

    @classmethod
    def from_config(cls, cfg: dict) -> GenerationConfig:
        gen = cfg.get("generation", {})
        return cls(
            temperature=float(gen.get("temperature", 0.7)),
            max_output_tokens=int(gen.get("max_output_tokens", 500)),
            top_p=gen.get("top_p", 0.95),
        ).validate()


@dataclass(frozen=True)
class GatewayRequest:
    """
    A prompt plus the conversation context that grounds it.
    wrap=False sends the prompt verbatim, without the transcript framing.
    """
    prompt: str
    context: list[dict] = field(default_factory=list)
    wrap: bool = True


@dataclass(frozen=True)
class GatewayResult:
    """
    Uniform outcome of every AI call: success with data, or failure with a
    human-displayable error. Never both; branch on `success` alone.

    `data` is normally text. The internal-content check is the one caller
    that narrows it to `False` when nothing was flagged.
    """
    success: bool
    data: str | bool | None = None
    error: str | None = None

    @classmethod
    def ok(cls, data: str | bool) -> GatewayResult:
        if data is None or data == "":
            raise ValueError("A successful result needs data")
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, error: str) -> GatewayResult:
        if not error:
            raise ValueError("A failed result needs an error message")
        return cls(success=False, error=error)

    def to_dict(self) -> dict:
        if self.success:
            return {"success": True, "data": self.data}
        return {"success": False, "error": self.error}


@dataclass
class ProviderResponse:
    """Standardized raw response from a single provider attempt."""
    ok: bool
    status_code: int = 200
    data: dict | list | None = None
    provider_name: str = ""
    latency_ms: float = 0.0
    error: str = ""
    warming_up: bool = False


class BaseProvider(abc.ABC):
    """
    Abstract base for text-generation providers.
    Each provider knows its payload format, its auth and which response
    shape it returns; decoding that shape lives in the interpreter.
    """

    # Placeholder keys shipped in sample configs count as "no key"
    PLACEHOLDER_KEYS: tuple[str, ...] = ()
    requires_api_key: bool = False
    shape = None  # ResponseShape, set by subclasses

    def __init__(
        self,
        name: str,
        url: str,
        model: str,
        api_key: str = "",
        timeout: float = 30,
    ):
        self.name = name
        self.url = url.rstrip("/")
        self.model = model
        self.api_key = self._resolve_env(api_key)
        self.timeout = timeout

    @staticmethod
    def _resolve_env(value: str) -> str:
        """Resolve ${ENV_VAR} references in config values."""
        if value and value.startswith("${") and value.endswith("}"):
            env_name = value[2:-1]
            return os.environ.get(env_name, "")
        return value or ""

    @property
    def has_api_key(self) -> bool:
        return bool(self.api_key) and self.api_key not in self.PLACEHOLDER_KEYS

    def credential_error(self) -> str:
        """Error to report before any network call, or '' if config is usable."""
        if self.requires_api_key and not self.has_api_key:
            return f"{self.name} API key is missing or invalid. Please provide a valid API key."
        return ""

    @abc.abstractmethod
    def build_payload(self, text: str, generation: GenerationConfig) -> dict:
        """Provider-specific request body for one prompt."""
        ...

    @abc.abstractmethod
    async def send(self, text: str, generation: GenerationConfig) -> ProviderResponse:
        """
        Issue one generation request.
        Never raises: transport errors come back as ok=False.
        """
        ...

    @abc.abstractmethod
    async def health_check(self) -> bool:
        """Check if the provider endpoint is reachable."""
        ...

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} name={self.name!r} url={self.url!r} model={self.model!r}>"
