"""Tokenize a markdown reply into top-level block events.

Only the blocks the narrative parser reacts to are emitted: headings,
paragraphs and lists.  Code blocks, quotes, rules and raw HTML are skipped.
Event text is the raw inline source, so ``**bold**`` markers survive.
"""
from __future__ import annotations

from typing import List, Literal, Union

from markdown_it import MarkdownIt
from pydantic import BaseModel, Field

_markdown = None


def _get_markdown() -> MarkdownIt:
    global _markdown
    if _markdown is None:
        _markdown = MarkdownIt("commonmark")
    return _markdown


class HeadingEvent(BaseModel):
    kind: Literal["heading"] = "heading"
    depth: int
    text: str


class ParagraphEvent(BaseModel):
    kind: Literal["paragraph"] = "paragraph"
    text: str


class ListEvent(BaseModel):
    kind: Literal["list"] = "list"
    items: List[str] = Field(default_factory=list)
    ordered: bool = False


BlockEvent = Union[HeadingEvent, ParagraphEvent, ListEvent]


def _collect_list(tokens, start: int) -> tuple[ListEvent, int]:
    """Gather item texts from the list opened at ``tokens[start]``.

    Returns the event and the index of the matching close token.  Text of
    nested blocks is folded into the enclosing top-level item.
    """
    opener = tokens[start]
    close_type = opener.type.replace("_open", "_close")
    items: List[List[str]] = []
    index = start + 1
    while index < len(tokens):
        token = tokens[index]
        if token.type == close_type and token.level == opener.level:
            break
        if token.type == "list_item_open" and token.level == opener.level + 1:
            items.append([])
        elif token.type == "inline" and items:
            items[-1].append(token.content)
        index += 1
    event = ListEvent(
        items=["\n".join(parts).strip() for parts in items],
        ordered=opener.type == "ordered_list_open",
    )
    return event, index


def tokenize(markdown: str) -> List[BlockEvent]:
    tokens = _get_markdown().parse(markdown or "")
    events: List[BlockEvent] = []
    index = 0
    while index < len(tokens):
        token = tokens[index]
        if token.level != 0:
            index += 1
            continue
        if token.type == "heading_open":
            inline = tokens[index + 1]
            events.append(HeadingEvent(depth=int(token.tag[1:]), text=inline.content.strip()))
            index += 3
            continue
        if token.type == "paragraph_open":
            inline = tokens[index + 1]
            events.append(ParagraphEvent(text=inline.content.strip()))
            index += 3
            continue
        if token.type in ("bullet_list_open", "ordered_list_open"):
            event, index = _collect_list(tokens, index)
            events.append(event)
        index += 1
    return events
