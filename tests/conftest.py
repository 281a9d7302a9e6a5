"""Shared fixtures for the repotale test suite."""
import pytest
from repotale.config import RepotaleConfig, TruncationConfig, NarrativeConfig
from repotale.models import FileRecord


SAMPLE_DOCUMENT = "\n".join([
    "# Repository summary",
    "",
    "## File: src/app.py",
    "```python",
    "def main():",
    "    return 1",
    "```",
    "",
    "## File: src/util.py",
    "```python",
    "X = 1",
    "```",
    "",
    "## File: README.md",
    "Project readme.",
])


STORY_REPLY = """# The Realm of Code

## Story
Once upon a time a kingdom of modules lived in harmony.

Then the build broke.

## Quests
### Quest 1: The Gate
Guard the entrance.

- src/server.ts
- src/routes/index.ts
- not a file

### Quest 7: The Library
Study the scrolls.

### Quest 7: The Forge
Build things.
"""


@pytest.fixture
def make_file():
    """Factory for FileRecords with a standard "## File:" header."""
    def _make(path: str, body: str) -> FileRecord:
        return FileRecord(path=path, header=f"## File: {path}", body=body)
    return _make


@pytest.fixture
def sample_document():
    return SAMPLE_DOCUMENT


@pytest.fixture
def story_reply():
    return STORY_REPLY


@pytest.fixture
def small_config():
    """Config with a tiny budget and a short marker for truncation tests."""
    return RepotaleConfig(
        truncation=TruncationConfig(
            max_chars=200,
            max_lines_per_file=4,
            max_context_tokens=1000,
            truncation_message="[cut]",
        ),
    )


@pytest.fixture
def short_scan_config():
    """Config that only scans two leading lines for meta-commentary."""
    return RepotaleConfig(narrative=NarrativeConfig(meta_commentary_scan_lines=2))
