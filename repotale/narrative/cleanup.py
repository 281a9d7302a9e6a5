"""Pre-processing for raw model replies before narrative parsing.

Three pure text transforms, applied in order by :func:`clean_reply`:
marker extraction, markdown-fence unwrapping, meta-commentary removal.
"""
import logging
import re
from typing import Optional

from repotale import config as config_module
from repotale.config import RepotaleConfig

logger = logging.getLogger(__name__)

_FENCE_WRAPPER_OPEN = re.compile(r'^```(?:markdown|md)?[ \t]*\n', re.IGNORECASE)
_FENCE_WRAPPER_CLOSE = re.compile(r'\n?```\s*$')

META_COMMENTARY_PATTERNS = [
    re.compile(r'^Here is the continuation of', re.IGNORECASE),
    re.compile(r'^Based on the provided.*narrative', re.IGNORECASE),
    re.compile(r'^The markdown output.*constraints', re.IGNORECASE),
    re.compile(r'^Following the.*template', re.IGNORECASE),
    re.compile(r'^As requested.*format', re.IGNORECASE),
    re.compile(r"^I'll continue the.*themed", re.IGNORECASE),
    re.compile(r'^Let me generate', re.IGNORECASE),
    re.compile(r'^I understand you want', re.IGNORECASE),
    re.compile(r'^See http://localhost', re.IGNORECASE),
    re.compile(r'^Sure! Below is the content', re.IGNORECASE),
    re.compile(r'^Below is the content generated', re.IGNORECASE),
    re.compile(r"^Here's the generated content", re.IGNORECASE),
    re.compile(r'^Here is.*content.*for.*Quest', re.IGNORECASE),
    re.compile(r"^I'll create.*content.*for", re.IGNORECASE),
    re.compile(r'^Certainly! Here.*is', re.IGNORECASE),
]


def extract_between_markers(reply: str, cfg: Optional[RepotaleConfig] = None) -> str:
    """Return the text between the begin/end markers, or the whole reply.

    Falls back to the reply (with any stray markers removed) when a marker is
    missing or the end marker precedes the begin marker.
    """
    cfg = cfg or config_module.config
    begin, end = cfg.narrative.begin_marker, cfg.narrative.end_marker
    text = (reply or "").strip()

    begin_index = text.find(begin)
    end_index = text.find(end)
    if begin_index != -1 and end_index != -1 and end_index > begin_index:
        return text[begin_index + len(begin):end_index].strip()

    if begin_index != -1 or end_index != -1:
        logger.debug("[Cleanup] Reply markers missing or out of order, using whole reply")
    return text.replace(begin, "").replace(end, "").strip()


def strip_markdown_fence(text: str) -> str:
    """Unwrap a reply that arrived as a single ```markdown fenced block."""
    stripped = text.strip()
    if not _FENCE_WRAPPER_OPEN.match(stripped):
        return stripped
    inner = _FENCE_WRAPPER_OPEN.sub('', stripped, count=1)
    return _FENCE_WRAPPER_CLOSE.sub('', inner).strip()


def remove_meta_commentary(text: str, cfg: Optional[RepotaleConfig] = None) -> str:
    """Drop leading "Here is the ..." style lines from the first few lines."""
    cfg = cfg or config_module.config
    lines = text.split('\n')
    start = 0
    for index, line in enumerate(lines[:cfg.narrative.meta_commentary_scan_lines]):
        stripped = line.strip()
        if not stripped:
            continue
        if any(p.match(stripped) for p in META_COMMENTARY_PATTERNS):
            start = index + 1
        else:
            break
    if start:
        logger.debug(f"[Cleanup] Removed {start} leading line(s) of meta-commentary")
    return '\n'.join(lines[start:]).strip()


def clean_reply(reply: str, cfg: Optional[RepotaleConfig] = None) -> str:
    text = extract_between_markers(reply, cfg)
    text = strip_markdown_fence(text)
    return remove_meta_commentary(text, cfg)
