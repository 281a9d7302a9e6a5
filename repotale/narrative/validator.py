"""Structural diagnostics for model replies.

These checks explain *why* a reply is unusable; they never change what the
narrative parser extracts.
"""
import re
from typing import List

from pydantic import BaseModel, Field, computed_field

from repotale.narrative.events import HeadingEvent, ListEvent, ParagraphEvent, tokenize
from repotale.narrative.parser import parse_narrative_result

_LINK_PATTERN = re.compile(r'\[([^\]]*)\]\(([^)]*)\)')


class ReplyDiagnostics(BaseModel):
    errors: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)

    @computed_field
    @property
    def valid(self) -> bool:
        return not self.errors


def _fences_closed(text: str) -> bool:
    return text.count("```") % 2 == 0


def _hierarchy_ok(headings: List[HeadingEvent]) -> bool:
    previous = 0
    for heading in headings:
        if previous and heading.depth > previous + 1:
            return False
        previous = heading.depth
    return True


def _links_ok(paragraphs: List[ParagraphEvent]) -> bool:
    for paragraph in paragraphs:
        for text, url in _LINK_PATTERN.findall(paragraph.text):
            if not text.strip() or not url.strip():
                return False
    return True


def validate_story_markdown(markdown: str, min_paragraphs: int = 2, min_quests: int = 2) -> ReplyDiagnostics:
    """Check a story reply for a title, enough narrative and enough quests."""
    events = tokenize(markdown)
    diagnostics = ReplyDiagnostics()

    if not any(isinstance(e, HeadingEvent) and e.depth == 1 for e in events):
        diagnostics.errors.append("Missing H1 heading for story title")

    paragraphs = sum(1 for e in events if isinstance(e, ParagraphEvent))
    if paragraphs < min_paragraphs:
        diagnostics.errors.append(
            f"Insufficient narrative content - story needs at least {min_paragraphs} paragraphs"
        )

    quest_count = len(parse_narrative_result(markdown).narrative.quests)
    if quest_count < min_quests:
        diagnostics.errors.append(
            f"Missing or insufficient list of quests (found {quest_count}, need at least {min_quests})"
        )

    if not _fences_closed(markdown or ""):
        diagnostics.errors.append("Unclosed code block - odd number of ``` markers")
    return diagnostics


def validate_quest_markdown(markdown: str) -> ReplyDiagnostics:
    """Check the markdown produced for a single quest page."""
    events = tokenize(markdown)
    headings = [e for e in events if isinstance(e, HeadingEvent)]
    paragraphs = [e for e in events if isinstance(e, ParagraphEvent)]
    diagnostics = ReplyDiagnostics()

    if not any(h.depth == 1 for h in headings):
        diagnostics.errors.append("Missing H1 heading for quest title")
    if not any(h.depth == 2 for h in headings):
        diagnostics.warnings.append("No H2 headings found - quest may lack structure")
    if not _fences_closed(markdown or ""):
        diagnostics.errors.append("Unclosed code block - odd number of ``` markers")
    elif "```" not in (markdown or ""):
        diagnostics.warnings.append("No code blocks found - quest may benefit from code examples")
    if not any(isinstance(e, ListEvent) for e in events):
        diagnostics.warnings.append("No lists found - quest may benefit from structured hints or steps")
    if not _hierarchy_ok(headings):
        diagnostics.warnings.append("Heading hierarchy may be inconsistent (H1 -> H2 -> H3 order)")
    if not _links_ok(paragraphs):
        diagnostics.errors.append("Invalid markdown links - empty link text or URL found")
    return diagnostics
