"""Unit tests for repotale/narrative/parser.py — quest conventions, sections, ids, defaults."""
import pytest
from repotale.errors import NarrativeExtractionError
from repotale.models import NarrativeStatus
from repotale.narrative.events import HeadingEvent, ListEvent, ParagraphEvent
from repotale.narrative.parser import (
    NarrativeParser,
    SectionKind,
    as_code_file,
    classify_section,
    parse_narrative,
    parse_narrative_result,
)


HEADING_QUESTS = """# Tale
## Story
Intro.
## Quests
### The Gate
Guard the entrance.

### The Library
Study the scrolls.

### The Forge
Build things.
"""

BOLD_QUESTS = """# Tale
## Story
Intro.
## Quests
**Quest 1: The Gate** - Guard the entrance.

**Quest 2: The Library** – Study the scrolls.

**Quest 3: The Forge** — Build things.
"""

LIST_QUESTS = """# Tale
## Story
Intro.
## Quests
1. **The Gate** - Guard the entrance.
2. **The Library** - Study the scrolls.
3. **The Forge** - Build things.
"""


def _pairs(narrative):
    return [(q.title, q.description) for q in narrative.quests]


# ============================================================
# Scenarios
# ============================================================

class TestScenarios:
    def test_minimal_reply(self):
        narrative = parse_narrative("# Title\n## Story\nHello\n## Quests\n### First\nDo X\n")
        assert narrative.title == "Title"
        assert narrative.story == "Hello"
        assert len(narrative.quests) == 1
        assert narrative.quests[0].title == "First"
        assert narrative.quests[0].description == "Do X"

    def test_heading_quests_with_files(self, story_reply):
        narrative = parse_narrative(story_reply)
        assert narrative.title == "The Realm of Code"
        assert narrative.story == "Once upon a time a kingdom of modules lived in harmony.\n\nThen the build broke."
        assert [q.id for q in narrative.quests] == ["quest-1", "quest-2", "quest-3"]
        assert [q.title for q in narrative.quests] == [
            "Quest 1: The Gate", "Quest 7: The Library", "Quest 7: The Forge",
        ]
        assert narrative.quests[0].code_files == ["src/server.ts", "src/routes/index.ts"]
        assert narrative.quests[1].code_files == []


# ============================================================
# Format tolerance
# ============================================================

class TestFormatTolerance:
    def test_heading_format(self):
        assert _pairs(parse_narrative(HEADING_QUESTS)) == [
            ("The Gate", "Guard the entrance."),
            ("The Library", "Study the scrolls."),
            ("The Forge", "Build things."),
        ]

    def test_bold_format_matches_heading_format(self):
        assert _pairs(parse_narrative(BOLD_QUESTS)) == _pairs(parse_narrative(HEADING_QUESTS))

    def test_list_format_matches_heading_format(self):
        assert _pairs(parse_narrative(LIST_QUESTS)) == _pairs(parse_narrative(HEADING_QUESTS))

    @pytest.mark.parametrize("reply", [HEADING_QUESTS, BOLD_QUESTS, LIST_QUESTS])
    def test_ids_follow_position(self, reply):
        assert [q.id for q in parse_narrative(reply).quests] == ["quest-1", "quest-2", "quest-3"]

    def test_model_numbering_ignored(self):
        reply = "## Quests\n**Quest 5: A** - first\n\n**Quest 5: B** - second\n"
        quests = parse_narrative(reply).quests
        assert [(q.id, q.title) for q in quests] == [("quest-1", "A"), ("quest-2", "B")]

    def test_mixed_conventions_keep_order(self):
        reply = "## Quests\n### A\nDesc A\n\n**Quest 2: B** - Desc B\n\n1. **C** - Desc C\n"
        quests = parse_narrative(reply).quests
        assert [(q.id, q.title) for q in quests] == [("quest-1", "A"), ("quest-2", "B"), ("quest-3", "C")]

    def test_list_with_some_matching_items(self):
        reply = "## Quests\n- **A** - one\n- plain item\n- **B** - two\n"
        assert [q.title for q in parse_narrative(reply).quests] == ["A", "B"]

    def test_multiline_bold_paragraph_is_not_a_quest(self):
        reply = "## Quests\n**Quest 1: A** - one\n**Quest 2: B** - two\n"
        assert parse_narrative(reply).quests == []


# ============================================================
# Sections
# ============================================================

class TestSections:
    @pytest.mark.parametrize("name", ["Quests", "QUESTS", "Adventures", "Choose a Quest", "  quests  "])
    def test_quest_sections(self, name):
        assert classify_section(name) == SectionKind.QUESTS

    @pytest.mark.parametrize("name", ["Story", "adventure"])
    def test_story_sections(self, name):
        assert classify_section(name) == SectionKind.STORY

    def test_other_section(self):
        assert classify_section("Notes") == SectionKind.OTHER

    def test_h3_outside_quest_section_ignored(self):
        narrative = parse_narrative("## Notes\n### Not a quest\nSome text\n")
        assert narrative.quests == []

    def test_bold_quest_outside_quest_section_ignored(self):
        narrative = parse_narrative("## Notes\n**Quest 1: A** - one\n")
        assert narrative.quests == []

    def test_adventure_section_is_story(self):
        assert parse_narrative("# T\n## Adventure\nOnce.\n").story == "Once."

    def test_text_under_title_is_not_story(self):
        narrative = parse_narrative("# T\nLoose paragraph.\n")
        assert narrative.story == "Welcome to your coding adventure!"

    def test_first_title_wins(self):
        assert parse_narrative("# First\n# Second\n").title == "First"

    def test_pending_quest_survives_section_change(self):
        reply = "## Quests\n### A\nDesc A\n## Notes\nMore about A.\n"
        quests = parse_narrative(reply).quests
        assert quests[0].description == "Desc A\n\nMore about A."


# ============================================================
# Pending quest commits
# ============================================================

class TestPendingQuests:
    def test_quest_without_description_dropped(self):
        quests = parse_narrative("## Quests\n### Empty\n### Real\nDesc\n").quests
        assert [(q.id, q.title) for q in quests] == [("quest-1", "Real")]

    def test_multi_paragraph_description(self):
        quest = parse_narrative("## Quests\n### A\nOne.\n\nTwo.\n").quests[0]
        assert quest.description == "One.\n\nTwo."

    def test_file_list_without_pending_quest_ignored(self):
        assert parse_narrative("## Quests\n- src/app.ts\n").quests == []

    def test_state_machine_directly(self):
        parser = NarrativeParser()
        parser.feed(HeadingEvent(depth=2, text="Quests"))
        parser.feed(HeadingEvent(depth=3, text="A"))
        parser.feed(ParagraphEvent(text="Desc"))
        parser.feed(ListEvent(items=["lib/a.py", "notes"]))
        assert parser.quests == []
        result = parser.finish()
        assert result.narrative.quests[0].code_files == ["lib/a.py"]
        assert parser.title_seen is False


# ============================================================
# File references
# ============================================================

class TestCodeFiles:
    @pytest.mark.parametrize("item,expected", [
        ("src/app.ts", "src/app.ts"),
        ("main.py", "main.py"),
        ("docs/README.md", "docs/README.md"),
        ("`src/app.ts`", "src/app.ts"),
        ("  lib/x.go ", "lib/x.go"),
    ])
    def test_recognized(self, item, expected):
        assert as_code_file(item) == expected

    @pytest.mark.parametrize("item", ["README.md", "no dot here", "src/folder", "v1.0 release"])
    def test_rejected(self, item):
        assert as_code_file(item) is None


# ============================================================
# Empty / degraded replies
# ============================================================

class TestEmptyResult:
    def test_empty_reply_defaults(self):
        result = parse_narrative_result("")
        assert result.status == NarrativeStatus.EMPTY
        assert result.narrative.title == "Adventure"
        assert result.narrative.story == "Welcome to your coding adventure!"
        assert result.narrative.quests == []
        assert result.problems == ["No H1 title found", "No story section found", "No quests found"]

    def test_unwrap_raises_on_empty(self):
        with pytest.raises(NarrativeExtractionError) as exc:
            parse_narrative_result("just prose").unwrap()
        assert "No quests found" in exc.value.problems

    def test_unwrap_returns_narrative(self, story_reply):
        result = parse_narrative_result(story_reply)
        assert result.status == NarrativeStatus.OK
        assert result.unwrap().title == "The Realm of Code"

    def test_never_raises_on_garbage(self):
        narrative = parse_narrative("```\nunclosed\n### ## # ***\n- - -\n> quote")
        assert narrative.quests == []
