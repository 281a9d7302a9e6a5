"""
repotale/models.py — Pydantic data model for the document and narrative pipeline.

Covers:
- FileRecord / ParseDiagnostics / ParseResult for file-delimited documents
- TruncateOptions and the tagged TruncationResult
- Quest / Narrative and the tagged NarrativeResult
- Closed enumerations for header formats, outcomes and statuses
"""

from __future__ import annotations

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, computed_field

from repotale import config as config_module
from repotale.errors import NarrativeExtractionError
from repotale.utils.fences import count_fences


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


class HeaderFormat(str, Enum):
    """File header spellings a document may use. Only STANDARD is parsed."""

    STANDARD = "standard"
    LOWERCASE = "lowercase"
    SOURCE_HEADER = "source-header"
    PATH_HEADER = "path-header"
    UNKNOWN = "unknown"


class TruncationOutcome(str, Enum):
    UNCHANGED = "unchanged"
    TRUNCATED = "truncated"
    PRIORITY_OVER_BUDGET = "priority_over_budget"


class NarrativeStatus(str, Enum):
    OK = "ok"
    EMPTY = "empty"


# ---------------------------------------------------------------------------
# Document records
# ---------------------------------------------------------------------------


class FileRecord(BaseModel):
    """One file extracted from a file-delimited document.

    Records are immutable; truncation produces a new record through
    ``model_copy(update=...)``.  The fence flags are read off ``body`` on
    every access, so they cannot disagree with it after a copy.
    """

    path: str
    header: str
    body: str = ""
    start_line: int = 0
    end_line: int = 0

    model_config = {"frozen": True}

    @computed_field
    @property
    def has_code_fences(self) -> bool:
        return count_fences(self.body.split("\n")) > 0

    @computed_field
    @property
    def code_fences_balanced(self) -> bool:
        return count_fences(self.body.split("\n")) % 2 == 0


class ParseDiagnostics(BaseModel):
    format_name: HeaderFormat = HeaderFormat.UNKNOWN
    warnings: List[str] = Field(default_factory=list)

    @computed_field
    @property
    def is_valid(self) -> bool:
        return not self.warnings


class ParseResult(BaseModel):
    files: List[FileRecord] = Field(default_factory=list)
    diagnostics: ParseDiagnostics = Field(default_factory=ParseDiagnostics)
    total_chars: int = 0
    total_lines: int = 0
    # Non-blank lines seen before the first header; they are not part of any file.
    dropped_preamble_lines: int = 0

    @property
    def paths(self) -> List[str]:
        return [f.path for f in self.files]


# ---------------------------------------------------------------------------
# Truncation
# ---------------------------------------------------------------------------


def _default_max_lines() -> int:
    return config_module.config.truncation.max_lines_per_file


def _default_marker() -> str:
    return config_module.config.truncation.truncation_message


def _default_preserve_fences() -> bool:
    return config_module.config.truncation.preserve_code_fences


def _default_overhead() -> int:
    return config_module.config.truncation.separator_overhead


class TruncateOptions(BaseModel):
    """Budget and policy for one truncation call.

    ``priority_paths`` entries match a file when either string contains the
    other (after normalising backslashes), so short names and repo-relative
    paths can be mixed freely.
    """

    max_chars: int = Field(..., gt=0)
    max_lines_per_file: int = Field(default_factory=_default_max_lines, gt=0)
    priority_paths: List[str] = Field(default_factory=list)
    preserve_code_fences: bool = Field(default_factory=_default_preserve_fences)
    truncation_marker: str = Field(default_factory=_default_marker)
    # Budgeted chars per file on top of header and body; must cover what the serializer adds.
    separator_overhead: int = Field(default_factory=_default_overhead, ge=0)

    @classmethod
    def from_config(cls, cfg: Optional[config_module.RepotaleConfig] = None, **overrides) -> "TruncateOptions":
        """Build options from a config's truncation section, then apply overrides."""
        section = (cfg or config_module.config).truncation
        values = {
            "max_chars": section.max_chars,
            "max_lines_per_file": section.max_lines_per_file,
            "preserve_code_fences": section.preserve_code_fences,
            "truncation_marker": section.truncation_message,
            "separator_overhead": section.separator_overhead,
        }
        values.update(overrides)
        return cls(**values)


class TruncationResult(BaseModel):
    files: List[FileRecord] = Field(default_factory=list)
    outcome: TruncationOutcome = TruncationOutcome.UNCHANGED
    priority_chars: int = 0
    remaining_chars: int = 0
    dropped_paths: List[str] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Narrative
# ---------------------------------------------------------------------------


class Quest(BaseModel):
    """One chapter of the narrative. ``id`` is always derived from position."""

    id: str
    title: str
    description: str
    code_files: List[str] = Field(default_factory=list)


class Narrative(BaseModel):
    title: str
    story: str
    quests: List[Quest] = Field(default_factory=list)


class NarrativeResult(BaseModel):
    """Narrative plus whether anything usable was recovered from the reply."""

    narrative: Narrative
    status: NarrativeStatus = NarrativeStatus.OK
    problems: List[str] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return self.status == NarrativeStatus.EMPTY

    def unwrap(self) -> Narrative:
        if self.is_empty:
            raise NarrativeExtractionError(
                "No quests could be extracted from the reply", problems=self.problems
            )
        return self.narrative
