from .events import tokenize, HeadingEvent, ParagraphEvent, ListEvent
from .cleanup import clean_reply, extract_between_markers, strip_markdown_fence, remove_meta_commentary
from .parser import NarrativeParser, parse_narrative, parse_narrative_result
from .validator import validate_story_markdown, validate_quest_markdown

__all__ = [
    "tokenize",
    "HeadingEvent",
    "ParagraphEvent",
    "ListEvent",
    "clean_reply",
    "extract_between_markers",
    "strip_markdown_fence",
    "remove_meta_commentary",
    "NarrativeParser",
    "parse_narrative",
    "parse_narrative_result",
    "validate_story_markdown",
    "validate_quest_markdown",
]
