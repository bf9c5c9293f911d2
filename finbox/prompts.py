"""
Prompt templates for the copilot.

Every template is a pure function from inbox data to a GatewayRequest
(prompt text + context). They never call the gateway themselves; see
finbox.copilot for that. Empty inputs raise ValueError.
"""

from __future__ import annotations

import enum
import json
import re

from finbox.gateway.base import GatewayRequest

DEFAULT_REPLY_INSTRUCTION = (
    "Generate a helpful response to continue the conversation as a customer support agent."
)
RESPOND_TO_CUSTOMER = "Respond to the user as a helpful customer support agent."
SIMULATE_CUSTOMER = "Respond to the agent as a user continuing the conversation."

SENTIMENTS = ("positive", "negative", "neutral", "frustrated", "satisfied")


class Tone(str, enum.Enum):
    FRIENDLY = "friendly"
    PROFESSIONAL = "professional"
    FORMAL = "formal"
    CASUAL = "casual"


def _require(value, what: str):
    if not value or (isinstance(value, str) and not value.strip()):
        raise ValueError(f"{what} must not be empty")


def _tone_label(tone: Tone | str) -> str:
    label = tone.value if isinstance(tone, Tone) else str(tone).strip()
    _require(label, "tone")
    return label


def generate_reply(context: list[dict], instruction: str = DEFAULT_REPLY_INSTRUCTION) -> GatewayRequest:
    """Agent-style continuation of the full message history."""
    _require(instruction, "instruction")
    return GatewayRequest(prompt=instruction, context=list(context))


def respond_to_customer(context: list[dict]) -> GatewayRequest:
    return generate_reply(context, RESPOND_TO_CUSTOMER)


def simulate_customer(context: list[dict]) -> GatewayRequest:
    """Customer's side of the conversation, used by the reply-with-AI demo flow."""
    return generate_reply(context, SIMULATE_CUSTOMER)


def summarize(messages: list[dict]) -> GatewayRequest:
    # The transcript is inlined, so the prompt goes out unwrapped
    _require(messages, "messages")
    conversation_text = "\n".join(f"{m['sender']}: {m['content']}" for m in messages)
    prompt = (
        "Summarize this customer support conversation in 2-3 clear sentences:\n\n"
        f"{conversation_text}\n\nSummary:"
    )
    return GatewayRequest(prompt=prompt, wrap=False)


def rephrase(text: str, tone: Tone | str) -> GatewayRequest:
    _require(text, "text")
    prompt = (
        f"Rewrite this message in a {_tone_label(tone)} tone for customer support. "
        "Only provide the rewritten message:\n\n"
        f"Original: {text}\n\nRewritten:"
    )
    return GatewayRequest(prompt=prompt, wrap=False)


def advise(candidate_response: str) -> GatewayRequest:
    _require(candidate_response, "response")
    prompt = (
        "As a customer support advisor, provide 1-2 sentences of advice for an agent "
        f"about this response:\n\n{candidate_response}\n\nAdvice:"
    )
    return GatewayRequest(prompt=prompt, wrap=False)


def detect_internal_content(text: str) -> GatewayRequest:
    _require(text, "text")
    prompt = (
        "Does this message contain internal-only information (system IDs, internal notes, "
        'confidential data)? Answer "yes" or "no" and explain if yes:\n\n'
        f"{text}\n\nAnswer:"
    )
    return GatewayRequest(prompt=prompt, wrap=False)


def sentiment(messages: list[dict]) -> GatewayRequest:
    _require(messages, "messages")
    recent = " ".join(m["content"] for m in messages[-3:])
    prompt = (
        f"Analyze the customer's sentiment in one word ({', '.join(SENTIMENTS[:-1])}, "
        f"or {SENTIMENTS[-1]}):\n\n{recent}\n\nSentiment:"
    )
    return GatewayRequest(prompt=prompt, wrap=False)


def suggest_tags(messages: list[dict]) -> GatewayRequest:
    _require(messages, "messages")
    recent = " ".join(m["content"] for m in messages[-5:])
    prompt = (
        "Suggest 2-3 relevant tags for this customer support conversation "
        "(e.g., billing, technical, refund, urgent). List only the tags separated by commas:\n\n"
        f"{recent}\n\nTags:"
    )
    return GatewayRequest(prompt=prompt, wrap=False)


def suggest_response(context: list[dict], knowledge_base: dict[str, str]) -> GatewayRequest:
    """Copilot suggestion grounded on the public knowledge base."""
    _require(context, "context")
    last_message = context[-1].get("content", "")
    prompt = (
        "Based on the following knowledge base and conversation context, generate 1 concise and "
        "important response (max 2-3 sentences) for the agent:\n\n"
        f"Knowledge Base: {json.dumps(knowledge_base)}\n\n"
        f"Last Message: {last_message}"
    )
    return GatewayRequest(prompt=prompt, context=list(context))


def answer_follow_up(question: str, context: list[dict]) -> GatewayRequest:
    _require(question, "question")
    prompt = (
        "Answer the following follow-up question based on the conversation context:\n\n"
        f"Question: {question}"
    )
    return GatewayRequest(prompt=prompt, context=list(context))


def parse_tags(text: str) -> list[str]:
    """Split a model's 'billing, refund' answer into clean, de-duplicated tags."""
    tags: list[str] = []
    for raw in re.split(r"[,\n]", text or ""):
        tag = raw.strip().strip("#*-. ").lower()
        if tag and tag not in tags:
            tags.append(tag)
    return tags


def parse_sentiment(text: str) -> str | None:
    """First vocabulary word found in the model's answer, or None."""
    words = re.findall(r"[a-z]+", (text or "").lower())
    for word in words:
        if word in SENTIMENTS:
            return word
    return None
