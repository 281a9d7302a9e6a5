"""Caller-facing glue around the document and narrative pipelines.

``prepare_document`` bounds a repository summary before it is sent to the
model; ``read_story_reply`` turns the model's reply back into a Narrative.
"""
import logging
from typing import Optional, Sequence

from pydantic import BaseModel

from repotale import config as config_module
from repotale.config import RepotaleConfig
from repotale.document.truncator import smart_truncate
from repotale.document.validator import validate
from repotale.errors import NarrativeExtractionError
from repotale.models import NarrativeResult, ParseDiagnostics
from repotale.narrative.cleanup import clean_reply
from repotale.narrative.parser import parse_narrative_result
from repotale.narrative.validator import validate_story_markdown
from repotale.utils.tokens import estimate_tokens

logger = logging.getLogger(__name__)


class PreparedDocument(BaseModel):
    content: str
    diagnostics: ParseDiagnostics
    estimated_tokens: int
    truncated: bool = False


def prepare_document(
    document: str,
    priority_paths: Sequence[str] = (),
    cfg: Optional[RepotaleConfig] = None,
) -> PreparedDocument:
    cfg = cfg or config_module.config
    diagnostics = validate(document, cfg)
    content = smart_truncate(document, list(priority_paths), cfg)
    prepared = PreparedDocument(
        content=content,
        diagnostics=diagnostics,
        estimated_tokens=estimate_tokens(content, cfg.truncation.tokens_per_char),
        truncated=content != document,
    )
    logger.info(
        f"[Pipeline] Document ready: {len(content)} chars (~{prepared.estimated_tokens} tokens)"
        f"{', truncated' if prepared.truncated else ''}"
    )
    return prepared


def read_story_reply(reply: str, strict: bool = False, cfg: Optional[RepotaleConfig] = None) -> NarrativeResult:
    """Clean and parse a story reply.

    With ``strict=True`` a reply without quests raises
    :class:`NarrativeExtractionError` listing the structural problems found.
    """
    markdown = clean_reply(reply, cfg)
    result = parse_narrative_result(markdown, cfg)
    if strict and result.is_empty:
        problems = result.problems + [
            e for e in validate_story_markdown(markdown).errors if e not in result.problems
        ]
        raise NarrativeExtractionError("Invalid LLM response for story", problems=problems)
    return result
