"""Tests for reply cleanup: marker extraction, fence unwrapping, meta-commentary removal."""
from repotale.narrative.cleanup import (
    clean_reply,
    extract_between_markers,
    remove_meta_commentary,
    strip_markdown_fence,
)


# ============================================================
# extract_between_markers
# ============================================================

class TestExtractBetweenMarkers:
    def test_interior_extracted(self):
        reply = "junk\n---BEGIN MARKDOWN---\n# T\nbody\n---END MARKDOWN---\ntrailing"
        assert extract_between_markers(reply) == "# T\nbody"

    def test_missing_markers_pass_through(self):
        assert extract_between_markers("  # T\nbody  ") == "# T\nbody"

    def test_out_of_order_markers_removed(self):
        reply = "---END MARKDOWN---\n# T\n---BEGIN MARKDOWN---"
        assert extract_between_markers(reply) == "# T"

    def test_only_begin_marker(self):
        assert extract_between_markers("---BEGIN MARKDOWN---\n# T") == "# T"

    def test_none_reply(self):
        assert extract_between_markers(None) == ""


# ============================================================
# strip_markdown_fence
# ============================================================

class TestStripMarkdownFence:
    def test_markdown_wrapper(self):
        assert strip_markdown_fence("```markdown\n# T\nbody\n```") == "# T\nbody"

    def test_bare_wrapper(self):
        assert strip_markdown_fence("```\n# T\n```\n") == "# T"

    def test_unwrapped_text_untouched(self):
        assert strip_markdown_fence("# T\n```python\nx\n```") == "# T\n```python\nx\n```"

    def test_other_language_not_unwrapped(self):
        text = "```python\nx = 1\n```"
        assert strip_markdown_fence(text) == text


# ============================================================
# remove_meta_commentary
# ============================================================

class TestRemoveMetaCommentary:
    def test_single_opener(self):
        text = "Here is the continuation of the story:\n\n# T\nbody"
        assert remove_meta_commentary(text) == "# T\nbody"

    def test_several_openers(self):
        text = "Certainly! Here is your story\nLet me generate it now\n# T"
        assert remove_meta_commentary(text) == "# T"

    def test_stops_at_first_real_line(self):
        text = "# T\nHere is the continuation of nothing"
        assert remove_meta_commentary(text) == text

    def test_scan_limit(self, short_scan_config):
        text = "Let me generate\nLet me generate\nLet me generate\n# T"
        assert remove_meta_commentary(text, short_scan_config) == "Let me generate\n# T"

    def test_case_insensitive(self):
        assert remove_meta_commentary("HERE'S THE GENERATED CONTENT\n# T") == "# T"


class TestCleanReply:
    def test_all_steps_in_order(self):
        reply = (
            "Sure! Below is the content\n"
            "---BEGIN MARKDOWN---\n"
            "```markdown\n"
            "Here is the continuation of the tale\n"
            "# T\n"
            "```\n"
            "---END MARKDOWN---"
        )
        assert clean_reply(reply) == "# T"
