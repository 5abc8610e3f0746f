"""
Voice Journal Bot

Conversation handling on top of an abstract messaging transport.
"""

from .handlers import IncomingMessage, Transport, JournalBot

__all__ = [
    "IncomingMessage",
    "Transport",
    "JournalBot",
]
