"""Budget-constrained truncation of parsed documents.

Priority files are kept first with twice the per-file line allowance; regular
files then fill the remaining character budget in document order.  The first
regular file that does not fit whole is cut to fit and ends the walk.  A cut
never separates a header from its body and never leaves a code fence open
when ``preserve_code_fences`` is set.
"""
import logging
import math
from typing import List, Optional, Sequence

from repotale import config as config_module
from repotale.config import RepotaleConfig
from repotale.document.parser import parse_document, path_matches
from repotale.document.serializer import serialize_files
from repotale.document.validator import validate
from repotale.models import FileRecord, TruncateOptions, TruncationOutcome, TruncationResult
from repotale.utils.fences import FENCE_MARKER, fences_balanced
from repotale.utils.tokens import estimate_tokens

logger = logging.getLogger(__name__)


def rendered_size(record: FileRecord, overhead: Optional[int] = None) -> int:
    """Budgeted size of a record: header + body + separator overhead.

    ``overhead`` defaults to the global config's ``separator_overhead``; it is
    always >= the record's share of :func:`serialize_files` output.
    """
    if overhead is None:
        overhead = config_module.config.truncation.separator_overhead
    return len(record.header) + len(record.body) + overhead


def close_open_fence(text: str) -> str:
    """Append a closing fence line if ``text`` ends inside an open fence."""
    if fences_balanced(text):
        return text
    return f"{text}\n{FENCE_MARKER}" if text else FENCE_MARKER


def _with_marker(text: str, marker: str) -> str:
    return f"{text}\n{marker}" if text else marker


def _tail_reserve(marker: str, preserve_code_fences: bool) -> int:
    """Room for the marker line and a possible closing fence after a cut."""
    reserve = len(marker) + 1
    if preserve_code_fences:
        reserve += len(FENCE_MARKER) + 1
    return reserve


def _cut_lines(body: str, max_lines: int) -> Optional[str]:
    """First ``max_lines`` lines of ``body``, or None when it is already short enough."""
    lines = body.split('\n')
    if len(lines) <= max_lines:
        return None
    return '\n'.join(lines[:max_lines])


def _keep_priority(record: FileRecord, options: TruncateOptions) -> FileRecord:
    kept = _cut_lines(record.body, options.max_lines_per_file * 2)
    if kept is None:
        return _repair_whole(record, options)
    if options.preserve_code_fences:
        kept = close_open_fence(kept)
    return record.model_copy(update={"body": _with_marker(kept, options.truncation_marker)})


def _repair_whole(record: FileRecord, options: TruncateOptions) -> FileRecord:
    if not options.preserve_code_fences or fences_balanced(record.body):
        return record
    return record.model_copy(update={"body": close_open_fence(record.body.rstrip())})


def _keep_partial(record: FileRecord, options: TruncateOptions, budget: int) -> FileRecord:
    """Cut ``record`` so that it fits in ``budget`` characters including the marker.

    The line cut happens first, then a direct character cut; if the header
    alone overflows, the body shrinks to just the marker.
    """
    reserve = len(record.header) + options.separator_overhead
    reserve += _tail_reserve(options.truncation_marker, options.preserve_code_fences)
    available = max(0, budget - reserve)

    text = _cut_lines(record.body, options.max_lines_per_file)
    if text is None:
        text = record.body
    if len(text) > available:
        text = text[:available]
    if options.preserve_code_fences:
        text = close_open_fence(text)

    return record.model_copy(update={"body": _with_marker(text, options.truncation_marker)})


def plan_truncation(files: Sequence[FileRecord], options: TruncateOptions) -> TruncationResult:
    """Reduce ``files`` to fit ``options.max_chars`` and report how it went.

    Output order is priority files (document order) followed by the kept
    regular files (document order).  Priority files are never shrunk below
    their own allowance; when they alone exceed the budget the outcome is
    ``PRIORITY_OVER_BUDGET`` and no regular file is kept.
    """
    priority: List[FileRecord] = []
    regular: List[FileRecord] = []
    for record in files:
        if path_matches(record.path, options.priority_paths):
            priority.append(record)
        else:
            regular.append(record)

    kept_priority = []
    priority_chars = 0
    changed = False
    for record in priority:
        kept = _keep_priority(record, options)
        changed = changed or kept.body != record.body
        priority_chars += rendered_size(kept, options.separator_overhead)
        kept_priority.append(kept)
        logger.debug(f"[Truncator] Priority file kept: {record.path} ({len(kept.body)} chars)")

    remaining_chars = options.max_chars - priority_chars
    current_chars = 0
    kept_regular = []
    for record in regular:
        whole = _repair_whole(record, options)
        size = rendered_size(whole, options.separator_overhead)
        if current_chars + size <= remaining_chars:
            kept_regular.append(whole)
            current_chars += size
            continue
        if current_chars < remaining_chars:
            partial = _keep_partial(record, options, remaining_chars - current_chars)
            kept_regular.append(partial)
            current_chars += rendered_size(partial, options.separator_overhead)
            changed = True
            logger.debug(f"[Truncator] Cut {record.path}: {len(record.body)} -> {len(partial.body)} chars")
        break

    # Kept regular files are always a prefix of ``regular``.
    dropped = [r.path for r in regular[len(kept_regular):]]

    if priority_chars > options.max_chars:
        outcome = TruncationOutcome.PRIORITY_OVER_BUDGET
        logger.warning(
            f"[Truncator] Priority files need {priority_chars} chars, "
            f"over the {options.max_chars} char budget; regular files dropped"
        )
    elif changed or dropped:
        outcome = TruncationOutcome.TRUNCATED
    else:
        outcome = TruncationOutcome.UNCHANGED

    return TruncationResult(
        files=kept_priority + kept_regular,
        outcome=outcome,
        priority_chars=priority_chars,
        remaining_chars=remaining_chars,
        dropped_paths=dropped,
    )


def truncate_files(files: Sequence[FileRecord], options: TruncateOptions) -> List[FileRecord]:
    return plan_truncation(files, options).files


def truncate_text(
    content: str,
    max_chars: int,
    marker: Optional[str] = None,
    preserve_code_fences: Optional[bool] = None,
) -> str:
    """Plain character cut for text without file headers.

    The marker line and a possible closing fence are reserved out of
    ``max_chars`` before cutting, so the result never exceeds it unless the
    marker alone does.  Prefers to stop at the last file header or ``---``
    separator when one lies in the final fifth of the remaining span.
    """
    if len(content) <= max_chars:
        return content
    limits = config_module.config.truncation
    marker = marker if marker is not None else limits.truncation_message
    if preserve_code_fences is None:
        preserve_code_fences = limits.preserve_code_fences

    span = max(0, max_chars - _tail_reserve(marker, preserve_code_fences))
    head = content[:span]
    cutoff = span
    last_header = max(head.rfind('\n# File:'), head.rfind('\n## File:'), head.rfind('\n### File:'))
    last_section = head.rfind('\n---')
    if last_header > span * 0.8:
        cutoff = last_header
    elif last_section > span * 0.8:
        cutoff = last_section

    text = content[:cutoff]
    if preserve_code_fences:
        text = close_open_fence(text)
    return _with_marker(text, marker)


def truncate_document(document: str, options: TruncateOptions) -> str:
    """Parse, truncate and re-serialize ``document``."""
    parsed = parse_document(document, run_validation=False)
    if not parsed.files:
        return truncate_text(
            document, options.max_chars, options.truncation_marker, options.preserve_code_fences
        )
    return serialize_files(truncate_files(parsed.files, options))


def smart_truncate(
    document: str,
    priority_paths: Optional[Sequence[str]] = None,
    cfg: Optional[RepotaleConfig] = None,
) -> str:
    """Pick a truncation budget from the document's estimated token pressure.

    Documents that already fit are returned untouched unless priority paths
    were given; otherwise the budget shrinks in tiers as the estimate grows
    past the context window.
    """
    cfg = cfg or config_module.config
    limits = cfg.truncation
    length = len(document)
    tokens = estimate_tokens(length, limits.tokens_per_char)
    context = limits.max_context_tokens

    if length > cfg.validation.warn_threshold_chars:
        diagnostics = validate(document, cfg)
        if not diagnostics.is_valid and length > cfg.validation.large_document_chars:
            for warning in diagnostics.warnings:
                logger.warning(f"[Truncator] Format issue: {warning}")
            logger.warning("[Truncator] Proceeding with truncation despite format issues")

    if length <= limits.max_chars and tokens <= context * 0.8 and not priority_paths:
        return document

    if tokens > context * 1.5:
        target, max_lines = math.floor(limits.max_chars * 0.4), math.floor(limits.max_lines_per_file * 0.5)
        tier = "aggressive"
    elif tokens > context * 1.2:
        target, max_lines = math.floor(limits.max_chars * 0.6), math.floor(limits.max_lines_per_file * 0.75)
        tier = "moderate"
    elif tokens > context * 0.9:
        target, max_lines = math.floor(limits.max_chars * 0.8), limits.max_lines_per_file
        tier = "conservative"
    else:
        target, max_lines = limits.max_chars, limits.max_lines_per_file * 2
        tier = "relaxed"

    options = TruncateOptions(
        max_chars=max(target, 1),
        max_lines_per_file=max(max_lines, 1),
        priority_paths=list(priority_paths or []),
        preserve_code_fences=limits.preserve_code_fences,
        truncation_marker=limits.truncation_message,
        separator_overhead=limits.separator_overhead,
    )
    logger.info(f"[Truncator] Using {tier} truncation (~{tokens} tokens, target {options.max_chars} chars, {options.max_lines_per_file} lines/file)")

    result = truncate_document(document, options)
    if len(result) < length:
        reduction = (1 - len(result) / length) * 100
        logger.info(f"[Truncator] Content truncated: {length} -> {len(result)} chars ({reduction:.1f}% reduction)")
    return result
