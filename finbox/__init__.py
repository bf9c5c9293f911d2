"""finbox: support inbox with an AI copilot."""

__version__ = "1.0.0"
