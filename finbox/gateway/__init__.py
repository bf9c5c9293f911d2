"""
AI gateway for finbox.
Prompt in, GatewayResult out, across HuggingFace and Gemini providers.
"""
from finbox.gateway.base import BaseProvider, GatewayRequest, GatewayResult, GenerationConfig
from finbox.gateway.gateway import AIGateway, PROVIDERS, build_prompt, make_provider
from finbox.gateway.gemini import GeminiProvider
from finbox.gateway.huggingface import HuggingFaceProvider
from finbox.gateway.retry import Outcome, RetryPolicy, retry_with_backoff

__all__ = [
    "AIGateway",
    "BaseProvider",
    "GatewayRequest",
    "GatewayResult",
    "GenerationConfig",
    "GeminiProvider",
    "HuggingFaceProvider",
    "Outcome",
    "PROVIDERS",
    "RetryPolicy",
    "build_prompt",
    "make_provider",
    "retry_with_backoff",
]
