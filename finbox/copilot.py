"""
Copilot: the agent-facing AI operations.

Each method renders a prompt template, hands it to the gateway and returns
the GatewayResult untouched. detect_internal_content() is the exception:
its answer is reduced to an internal-content finding.

Chained operations (suggest, follow_up) await each call before issuing
the next one.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from finbox import prompts
from finbox.gateway.base import GatewayRequest, GatewayResult
from finbox.gateway.gateway import AIGateway
from finbox.gateway.interpreter import interpret_internal_content
from finbox.models import Conversation

logger = logging.getLogger(__name__)

ADVICE_UNAVAILABLE = "Could not generate advice."
INTERNAL_WARNING = "\n\n⚠️ Contains internal content: {explanation}"


@dataclass
class Suggestion:
    """A suggested reply plus the advice and internal-content check run on it."""
    answer: str
    advice: str
    contains_internal_content: str | bool = False

    def to_dict(self) -> dict:
        return {
            "answer": self.answer,
            "advice": self.advice,
            "containsInternalContent": self.contains_internal_content,
        }


class Copilot:
    def __init__(self, gateway: AIGateway):
        self.gateway = gateway

    async def _run(self, build, *args) -> GatewayResult:
        try:
            request: GatewayRequest = build(*args)
        except ValueError as e:
            return GatewayResult.fail(str(e))
        return await self.gateway.invoke(request.prompt, request.context, wrap=request.wrap)

    async def generate_reply(
        self, context: list[dict], instruction: str = prompts.DEFAULT_REPLY_INSTRUCTION,
    ) -> GatewayResult:
        return await self._run(prompts.generate_reply, context, instruction)

    async def respond_to_customer(self, context: list[dict]) -> GatewayResult:
        return await self._run(prompts.respond_to_customer, context)

    async def simulate_customer(self, context: list[dict]) -> GatewayResult:
        return await self._run(prompts.simulate_customer, context)

    async def summarize(self, messages: list[dict]) -> GatewayResult:
        return await self._run(prompts.summarize, messages)

    async def rephrase(self, text: str, tone: prompts.Tone | str) -> GatewayResult:
        return await self._run(prompts.rephrase, text, tone)

    async def advise(self, candidate_response: str) -> GatewayResult:
        return await self._run(prompts.advise, candidate_response)

    async def detect_internal_content(self, text: str) -> GatewayResult:
        """Success data is the model's explanation when flagged, else False."""
        result = await self._run(prompts.detect_internal_content, text)
        return interpret_internal_content(result)

    async def sentiment(self, messages: list[dict]) -> GatewayResult:
        return await self._run(prompts.sentiment, messages)

    async def suggest_tags(self, messages: list[dict]) -> GatewayResult:
        return await self._run(prompts.suggest_tags, messages)

    async def suggest(
        self, conversation: Conversation, knowledge_base: dict[str, str],
    ) -> Suggestion | GatewayResult:
        """
        Suggest a reply for the conversation, then advise on it, then check
        it for internal content. Returns the failed GatewayResult if the
        suggestion itself could not be generated.
        """
        result = await self._run(prompts.suggest_response, conversation.context(), knowledge_base)
        if not result.success:
            return result

        answer = str(result.data)
        advice = await self.advise(answer)
        if not advice.success:
            logger.warning("Advice generation failed: %s", advice.error)

        internal = await self.detect_internal_content(answer)
        if not internal.success:
            logger.warning("Internal-content check failed: %s", internal.error)

        return Suggestion(
            answer=answer,
            advice=str(advice.data) if advice.success else ADVICE_UNAVAILABLE,
            contains_internal_content=internal.data if internal.success else False,
        )

    async def follow_up(self, question: str, conversation: Conversation) -> GatewayResult:
        """Answer a follow-up question; flag the answer if it leaks internal content."""
        result = await self._run(prompts.answer_follow_up, question, conversation.context())
        if not result.success:
            return result

        answer = str(result.data)
        internal = await self.detect_internal_content(answer)
        if internal.success and internal.data:
            answer += INTERNAL_WARNING.format(explanation=internal.data)
        return GatewayResult.ok(answer)
