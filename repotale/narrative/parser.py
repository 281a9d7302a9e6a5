"""Recover a structured narrative from a model's markdown reply.

The reply is tokenized into heading/paragraph/list events and fed through a
small state machine.  Three quest conventions are accepted and may be mixed:

1. ``### Title`` headings followed by description paragraphs and an optional
   list of file references
2. single-line bold paragraphs: ``**Quest 1: Title** - Description``
3. list items: ``1. **Title** - Description``

Quest ids are assigned at commit time from the number of quests already
committed; numbering written by the model is ignored.
"""
import logging
import re
from enum import Enum
from typing import List, Optional

from repotale import config as config_module
from repotale.config import RepotaleConfig
from repotale.models import Narrative, NarrativeResult, NarrativeStatus, Quest
from repotale.narrative.events import BlockEvent, HeadingEvent, ListEvent, ParagraphEvent, tokenize

logger = logging.getLogger(__name__)

BOLD_QUEST_PATTERN = re.compile(r'^\*\*Quest\s+\d+:\s*(.+?)\*\*\s*[-–—]\s*(.+)$')
LIST_QUEST_PATTERN = re.compile(r'^\*\*([^*]+)\*\*\s*[-–—]\s*(.+)$', re.DOTALL)

QUEST_SECTIONS = frozenset({"quests", "adventures", "choose a quest"})
STORY_SECTIONS = frozenset({"story", "adventure"})
CODE_FILE_EXTENSIONS = ("ts", "tsx", "js", "jsx", "py", "java", "cpp", "c", "h", "rs", "go", "rb", "cs", "kt", "swift", "php")
_CODE_FILE_SUFFIX = re.compile(r'\.(' + '|'.join(CODE_FILE_EXTENSIONS) + r')$')


class SectionKind(str, Enum):
    NONE = "none"
    STORY = "story"
    QUESTS = "quests"
    OTHER = "other"


def classify_section(heading: str) -> SectionKind:
    name = heading.strip().lower()
    if name in QUEST_SECTIONS:
        return SectionKind.QUESTS
    if name in STORY_SECTIONS:
        return SectionKind.STORY
    return SectionKind.OTHER


def as_code_file(item: str) -> Optional[str]:
    """Return the file reference in a list item, or None if it is not one."""
    text = item.strip().strip('`').strip()
    if '.' not in text:
        return None
    if '/' in text or _CODE_FILE_SUFFIX.search(text):
        return text
    return None


class _PendingQuest:
    def __init__(self, title: str):
        self.title = title
        self.description = ""
        self.code_files: List[str] = []


class NarrativeParser:
    """State machine over block events. One instance parses one reply."""

    def __init__(self):
        self.section = SectionKind.NONE
        self.title: Optional[str] = None
        self.story = ""
        self.quests: List[Quest] = []
        self.pending: Optional[_PendingQuest] = None

    @property
    def title_seen(self) -> bool:
        return self.title is not None

    # -- commit helpers -------------------------------------------------

    def _commit(self, title: str, description: str, code_files: Optional[List[str]] = None) -> None:
        self.quests.append(Quest(
            id=f"quest-{len(self.quests) + 1}",
            title=title.strip(),
            description=description.strip(),
            code_files=list(code_files or []),
        ))

    def _commit_pending(self) -> None:
        pending, self.pending = self.pending, None
        if pending is None:
            return
        if pending.title.strip() and pending.description.strip():
            self._commit(pending.title, pending.description, pending.code_files)
        else:
            logger.debug(f"[Narrative] Dropped quest without description: {pending.title!r}")

    # -- event handlers -------------------------------------------------

    def _on_heading(self, event: HeadingEvent) -> None:
        if event.depth == 1:
            if self.title is None:
                self.title = event.text
        elif event.depth == 2:
            self.section = classify_section(event.text)
        elif event.depth == 3 and self.section == SectionKind.QUESTS:
            self._commit_pending()
            self.pending = _PendingQuest(event.text)

    def _on_paragraph(self, event: ParagraphEvent) -> None:
        match = BOLD_QUEST_PATTERN.match(event.text)
        if match and self.section == SectionKind.QUESTS:
            self._commit_pending()
            self._commit(match.group(1), match.group(2))
        elif self.section == SectionKind.STORY:
            self.story += event.text + "\n\n"
        elif self.pending is not None:
            self.pending.description += event.text + "\n\n"

    def _on_list(self, event: ListEvent) -> None:
        if self.section != SectionKind.QUESTS:
            return
        matches = [LIST_QUEST_PATTERN.match(item) for item in event.items]
        if any(matches):
            self._commit_pending()
            for match in matches:
                if match:
                    self._commit(match.group(1), match.group(2))
            return
        if self.pending is None:
            return
        for item in event.items:
            path = as_code_file(item)
            if path:
                self.pending.code_files.append(path)

    def feed(self, event: BlockEvent) -> None:
        if isinstance(event, HeadingEvent):
            self._on_heading(event)
        elif isinstance(event, ParagraphEvent):
            self._on_paragraph(event)
        elif isinstance(event, ListEvent):
            self._on_list(event)

    def finish(self, cfg: Optional[RepotaleConfig] = None) -> NarrativeResult:
        cfg = cfg or config_module.config
        self._commit_pending()

        problems = []
        if not self.title_seen:
            problems.append("No H1 title found")
        if not self.story.strip():
            problems.append("No story section found")
        if not self.quests:
            problems.append("No quests found")

        narrative = Narrative(
            title=self.title or cfg.narrative.default_title,
            story=self.story.strip() or cfg.narrative.default_story,
            quests=self.quests,
        )
        status = NarrativeStatus.OK if self.quests else NarrativeStatus.EMPTY
        return NarrativeResult(narrative=narrative, status=status, problems=problems)


def parse_narrative_result(markdown: str, cfg: Optional[RepotaleConfig] = None) -> NarrativeResult:
    parser = NarrativeParser()
    for event in tokenize(markdown):
        parser.feed(event)
    result = parser.finish(cfg)
    if result.is_empty:
        logger.warning(f"[Narrative] Nothing usable extracted: {'; '.join(result.problems)}")
    else:
        logger.debug(f"[Narrative] Extracted {len(result.narrative.quests)} quest(s)")
    return result


def parse_narrative(markdown: str, cfg: Optional[RepotaleConfig] = None) -> Narrative:
    """Parse a reply into a Narrative; never raises on malformed input."""
    return parse_narrative_result(markdown, cfg).narrative
