"""Exception types and user-facing error formatting."""

from __future__ import annotations

from typing import List, Optional


class RepotaleError(Exception):
    """Base class for errors raised by repotale."""


class NarrativeExtractionError(RepotaleError):
    """Raised when a caller asks for a narrative and the reply had no quests."""

    def __init__(self, message: str, problems: Optional[List[str]] = None):
        super().__init__(message)
        self.problems = list(problems or [])

    def __str__(self) -> str:
        base = super().__str__()
        if not self.problems:
            return base
        return f"{base}: {'; '.join(self.problems)}"


def format_error_for_user(error: Exception, step: Optional[str] = None, source: Optional[str] = None) -> str:
    """Render an error as a one-line message for CLI/UI collaborators.

    ``step`` wins over ``source`` when both are given.
    """
    if step:
        return f"Error during {step}: {error}"
    if source:
        return f"Failed to process {source}: {error}"
    return f"Error: {error}"
