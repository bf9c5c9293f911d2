"""
Inbox session: the agent's working state.

Holds the conversation list, the active conversation, the composer text,
the typing indicator, the last error and the current summary, and drives
copilot calls in response to agent actions.

AI failures never commit a partial message: the active conversation is
left as it was, `error` is set to the displayable failure text, and the
failed GatewayResult is returned to the caller.
"""

from __future__ import annotations

import logging
from dataclasses import replace

from finbox import sample_data
from finbox.copilot import Copilot
from finbox.gateway.base import GatewayResult
from finbox.models import Conversation, Message, MessageStatus, Sender
from finbox.prompts import Tone
from finbox.storage.json_store import JsonStore

logger = logging.getLogger(__name__)

VIDEO_CALL_OFFER = (
    "This issue might be complex. Would you like to schedule a video call to resolve it more efficiently?"
)


class InboxSession:
    def __init__(
        self,
        copilot: Copilot,
        store: JsonStore | None = None,
        conversations: list[Conversation] | None = None,
        active: Conversation | None = None,
    ):
        self.copilot = copilot
        self.store = store
        self.conversations = conversations if conversations is not None else self._load_conversations()
        self.active = active or sample_data.initial_conversation()
        self.composer_text = ""
        self.is_typing = False
        self.error: str | None = None
        self.summary = ""
        self.show_summary = False

    def _load_conversations(self) -> list[Conversation]:
        if self.store:
            stored = self.store.load_conversations()
            if stored:
                try:
                    return [Conversation.from_dict(c) for c in stored]
                except (KeyError, TypeError, ValueError) as e:
                    logger.warning("Stored conversations unreadable, using sample inbox: %s", e)
        return sample_data.inbox_conversations()

    # ── Helpers ──────────────────────────────────────────────────────────

    @property
    def auto_save(self) -> bool:
        return bool(self.store and self.store.load_settings().get("autoSave", True))

    def _sync_entry(self, msg: Message):
        """Mirror a committed message onto the inbox list entry, as save_message does in the store."""
        for entry in self.conversations:
            if entry.id == self.active.id and entry is not self.active:
                entry.messages.append(msg)
                entry.snippet = msg.content[:30] + "..."
                entry.time_ago = "0m"
                return

    def _commit(self, content: str, sender: Sender, status: MessageStatus) -> Message:
        msg = self.active.append(content, sender, status)
        self._sync_entry(msg)
        if self.auto_save:
            self.store.save_message(self.active.id, msg.to_dict())
        return msg

    def _fail(self, result: GatewayResult) -> GatewayResult:
        self.error = result.error
        logger.info("Inbox action failed: %s", result.error)
        return result

    def get_conversation(self, conversation_id: int) -> Conversation:
        for conv in self.conversations:
            if conv.id == conversation_id:
                return conv
        raise KeyError(conversation_id)

    # ── Agent actions ────────────────────────────────────────────────────

    def select_conversation(self, conversation_id: int) -> Conversation:
        """
        Open a conversation from the inbox list. The thread is seeded from
        the initial conversation template, minus system messages.
        """
        entry = self.get_conversation(conversation_id)
        template = sample_data.initial_conversation()
        self.active = replace(
            template,
            id=entry.id,
            user=entry.user,
            messages=[m for m in template.messages if m.sender is not Sender.SYSTEM],
        )
        entry.unread = False
        self.show_summary = False
        self.summary = ""
        self.error = None
        return self.active

    def add_to_composer(self, text: str):
        self.composer_text = text

    def dismiss_error(self):
        self.error = None

    async def rephrase_composer(self, tone: Tone | str) -> GatewayResult | None:
        """Rewrite the composer text in `tone`. No-op (None) when the composer is blank."""
        if not self.composer_text.strip():
            return None
        self.error = None
        result = await self.copilot.rephrase(self.composer_text, tone)
        if not result.success:
            return self._fail(result)
        self.composer_text = str(result.data)
        return result

    async def summarize(self) -> GatewayResult:
        self.error = None
        result = await self.copilot.summarize(self.active.context())
        if not result.success:
            return self._fail(result)
        self.summary = str(result.data)
        self.show_summary = True
        return result

    async def send_message(self, text: str) -> GatewayResult:
        """
        Send the agent's message, then ask the copilot for the reply.
        The agent's own message is committed before the AI call.
        """
        if not text or not text.strip():
            raise ValueError("Message text must not be empty")

        self._commit(text, Sender.AGENT, MessageStatus.SEEN)
        self.composer_text = ""
        self.error = None

        self.is_typing = True
        try:
            result = await self.copilot.respond_to_customer(self.active.context())
        finally:
            self.is_typing = False

        if not result.success:
            return self._fail(result)
        self._commit(str(result.data), Sender.BOT, MessageStatus.DELIVERED)
        return result

    async def reply_with_ai(self) -> GatewayResult:
        """
        Draft and post an agent reply, then simulate the customer's answer.
        Each step awaits the previous one; a failed second step keeps the
        first reply.
        """
        self.error = None

        self.is_typing = True
        try:
            reply = await self.copilot.generate_reply(self.active.context())
        finally:
            self.is_typing = False
        if not reply.success:
            return self._fail(reply)
        self._commit(str(reply.data), Sender.AGENT, MessageStatus.SEEN)

        self.is_typing = True
        try:
            customer = await self.copilot.simulate_customer(self.active.context())
        finally:
            self.is_typing = False
        if not customer.success:
            return self._fail(customer)
        self._commit(str(customer.data), Sender.BOT, MessageStatus.DELIVERED)
        return customer

    def suggest_video_call(self) -> Message:
        return self._commit(VIDEO_CALL_OFFER, Sender.AGENT, MessageStatus.SEEN)

    # ── Views ────────────────────────────────────────────────────────────

    def snapshot(self) -> dict:
        return {
            "active": self.active.to_dict(),
            "composerText": self.composer_text,
            "isTyping": self.is_typing,
            "error": self.error,
            "summary": self.summary,
            "showSummary": self.show_summary,
        }

    def persist(self) -> bool:
        """Write the inbox list to the store (no-op without one)."""
        if not self.store:
            return False
        return self.store.save_conversations([c.to_dict() for c in self.conversations])
