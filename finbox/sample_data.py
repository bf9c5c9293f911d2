"""
Static seed data for a fresh inbox.
Factories return new objects every call so a session can append to its
conversations without touching the module-level definitions.
"""

from __future__ import annotations

import copy

from finbox.models import Conversation, Customer, Message, MessageStatus, Sender

_INBOX = [
    {"id": 1, "user": {"name": "Sarah", "source": "Insurance", "email": "sarah.insurance@example.com", "orderId": "CLAIM5487"},
     "snippet": "I expected 80% reimbursement...", "timeAgo": "13m", "unread": True, "avatar": "S"},
    {"id": 2, "user": {"name": "Ivan", "source": "Nike", "email": "ivan.nike@example.com", "orderId": "ORD12346"},
     "snippet": "Hi there, I have a qu...", "timeAgo": "10m", "unread": True, "avatar": "I", "priority": True},
    {"id": 3, "user": {"name": "Lead from New York", "source": "", "email": "lead.ny@example.com", "orderId": "ORD12347"},
     "snippet": "Good morning, let me...", "timeAgo": "15m", "unread": True, "avatar": "L"},
    {"id": 4, "user": {"name": "Booking API problems", "source": "", "email": "support@example.com", "orderId": "ORD12348"},
     "snippet": "Bug report", "timeAgo": "20m", "unread": True,
     "secondLine": "Luis · Small Crafting", "isSystem": True},
    {"id": 5, "user": {"name": "Miracle", "source": "Exemplary Bank", "email": "miracle.bank@example.com", "orderId": "ORD12349"},
     "snippet": "Hey there, I'm here to...", "timeAgo": "25m", "unread": True, "avatar": "M"},
    {"id": 6, "user": {"name": "Alex", "source": "Retail", "email": "alex.retail@example.com", "orderId": "ORD12350"},
     "snippet": "Can you help with my order?", "timeAgo": "30m", "unread": True, "avatar": "A"},
    {"id": 7, "user": {"name": "Emma", "source": "Tech Support", "email": "emma.tech@example.com", "orderId": "ORD12351"},
     "snippet": "I have an issue with...", "timeAgo": "35m", "unread": True, "avatar": "E"},
    {"id": 8, "user": {"name": "Noah", "source": "Finance", "email": "noah.finance@example.com", "orderId": "ORD12352"},
     "snippet": "Payment issue...", "timeAgo": "40m", "unread": True, "avatar": "N"},
    {"id": 9, "user": {"name": "Olivia", "source": "Travel", "email": "olivia.travel@example.com", "orderId": "ORD12353"},
     "snippet": "Booking confirmation...", "timeAgo": "45m", "unread": True, "avatar": "O"},
    {"id": 10, "user": {"name": "Liam", "source": "Healthcare", "email": "liam.health@example.com", "orderId": "ORD12354"},
     "snippet": "Appointment issue...", "timeAgo": "50m", "unread": True, "avatar": "L"},
    {"id": 11, "user": {"name": "Ava", "source": "Retail", "email": "ava.retail@example.com", "orderId": "ORD12355"},
     "snippet": "Return request...", "timeAgo": "55m", "unread": True, "avatar": "A"},
    {"id": 12, "user": {"name": "James", "source": "Support", "email": "james.support@example.com", "orderId": "ORD12356"},
     "snippet": "Technical issue...", "timeAgo": "60m", "unread": True, "avatar": "J"},
]

# Public help content the copilot grounds its suggestions on
KNOWLEDGE_BASE: dict[str, str] = {
    "refunds": (
        "Our refund policy allows returns within 60 days of purchase. Please provide your order ID "
        "and proof of purchase to initiate a refund. Items must be un-opened and in original condition.\n\n"
        "**Return Process:**\n1. Contact support with your order ID.\n2. Receive a QR code for return.\n"
        "3. Ship the item back.\n4. Automatic refund will be processed upon receipt."
    ),
    "shipping": (
        "Shipping typically takes 5-7 business days. You can track your order using the tracking "
        "number provided in your confirmation email."
    ),
    "returns": (
        "To return an item, please contact support with your order ID. Returns are accepted within "
        "60 days of purchase."
    ),
    "insurance": (
        "Insurance reimbursements are calculated at 80% of the billed amount, subject to policy terms. "
        "For discrepancies, please provide your claim ID and bill details.\n\n"
        "**Note:** Ensure all documentation is submitted within 30 days of the claim."
    ),
}

_INITIAL_MESSAGES = [
    Message(
        id=1,
        content=(
            "I expected an 80% reimbursement on my $2,500 hospital bill, which should be $2,000, "
            "but I only received $1,600. Can you look into this discrepancy for me?"
        ),
        sender=Sender.USER,
        timestamp="13m",
        status=MessageStatus.DELIVERED,
    ),
    Message(
        id=2,
        content="Operator assigned this conversation to USA · 13m",
        sender=Sender.SYSTEM,
        timestamp="13m",
        status=MessageStatus.DELIVERED,
    ),
    Message(
        id=3,
        content=(
            "I’m investigating the calculation issue for claim ID #5487. This might be complex—would "
            "you like to schedule a video call to resolve this more efficiently?"
        ),
        sender=Sender.AGENT,
        timestamp="12m",
        status=MessageStatus.SEEN,
    ),
]


def inbox_conversations() -> list[Conversation]:
    """The twelve open tickets shown in the inbox list."""
    return [Conversation.from_dict(copy.deepcopy(c)) for c in _INBOX]


def initial_conversation() -> Conversation:
    """The insurance-claim thread opened when the inbox loads."""
    return Conversation(
        id=1,
        user=Customer(
            name="Sarah Johnson",
            source="Insurance",
            email="sarah.insurance@example.com",
            order_id="CLAIM5487",
        ),
        messages=list(_INITIAL_MESSAGES),
    )


def knowledge_base() -> dict[str, str]:
    return dict(KNOWLEDGE_BASE)
