"""
Application-level exceptions.

Domain errors raised by repositories and services; the API server maps them
to HTTP status codes with a consistent {"error": ...} body.
"""

from __future__ import annotations


class AlphIQError(Exception):
    """Base class for domain errors."""


class QuestNotFoundError(AlphIQError):
    def __init__(self, quest_id: int) -> None:
        super().__init__(f"Quest {quest_id} not found")
        self.quest_id = quest_id


class DuplicateSubmissionError(AlphIQError):
    def __init__(self, quest_id: int, address: str) -> None:
        super().__init__(f"Submission already exists for quest {quest_id}")
        self.quest_id = quest_id
        self.address = address


class InvalidSubmissionError(AlphIQError):
    """Submission payload is missing required proof."""
