"""Parse file-delimited documents into FileRecord lists.

A document is a concatenation of blocks, each introduced by a header line
such as ``## File: src/app.py``; everything up to the next header (or the end
of input) is that file's body.
"""
import logging
import re
from typing import Iterable, List, Optional

from repotale.config import RepotaleConfig
from repotale.document.validator import detect_format, validate
from repotale.models import FileRecord, ParseDiagnostics, ParseResult

logger = logging.getLogger(__name__)

# Matched against the stripped line; case-sensitive on "File".
FILE_HEADER_PATTERN = re.compile(r'^#{1,6}\s*File:\s*(.+)$')


def match_header(line: str) -> Optional[str]:
    """Return the declared path if ``line`` is a file header, else None."""
    match = FILE_HEADER_PATTERN.match(line.strip())
    if not match:
        return None
    return match.group(1).strip()


def _close_file(path: str, header: str, start: int, end: int, body_lines: List[str]) -> FileRecord:
    body = '\n'.join(body_lines)
    return FileRecord(
        path=path,
        header=header,
        body=body,
        start_line=start,
        end_line=end,
    )


def parse_document(
    document: str,
    max_files: Optional[int] = None,
    run_validation: bool = True,
    cfg: Optional[RepotaleConfig] = None,
) -> ParseResult:
    """Split ``document`` into file records in a single pass over its lines.

    Line numbers are 1-based; a record spans its header line through the line
    before the next header.  Text before the first header belongs to no file
    and is only counted in ``dropped_preamble_lines``.  When ``max_files`` is
    reached, scanning stops and later files are not parsed at all.
    """
    document = document or ""
    lines = document.split('\n')
    files: List[FileRecord] = []
    preamble = 0

    current_path = None
    current_header = ""
    current_start = 0
    body_lines: List[str] = []
    limit_hit = False

    for index, line in enumerate(lines, start=1):
        path = match_header(line)
        if path is not None:
            if current_path is not None:
                files.append(_close_file(current_path, current_header, current_start, index - 1, body_lines))
                if max_files and len(files) >= max_files:
                    limit_hit = True
                    break
            current_path = path
            current_header = line
            current_start = index
            body_lines = []
        elif current_path is not None:
            body_lines.append(line)
        elif line.strip():
            preamble += 1

    if current_path is not None and not limit_hit:
        files.append(_close_file(current_path, current_header, current_start, len(lines), body_lines))

    if run_validation:
        diagnostics = validate(document, cfg)
    else:
        diagnostics = ParseDiagnostics(format_name=detect_format(document))

    if preamble:
        logger.debug(f"[Parser] Ignored {preamble} line(s) before the first file header")
    logger.debug(f"[Parser] Parsed {len(files)} file(s) from {len(document)} chars")

    return ParseResult(
        files=files,
        diagnostics=diagnostics,
        total_chars=len(document),
        total_lines=len(lines),
        dropped_preamble_lines=preamble,
    )


# ---------------------------------------------------------------------------
# Path matching
# ---------------------------------------------------------------------------


def _normalize_path(path: str) -> str:
    return path.replace('\\', '/').strip()


def path_matches(file_path: str, patterns: Iterable[str]) -> bool:
    """Loose two-way substring match: either string may contain the other."""
    normalized = _normalize_path(file_path)
    for pattern in patterns:
        candidate = _normalize_path(pattern)
        if not candidate:
            continue
        if candidate in normalized or normalized in candidate:
            return True
    return False


def find_priority_files(files: Iterable[FileRecord], priority_paths: Iterable[str]) -> List[FileRecord]:
    priority_paths = list(priority_paths)
    return [f for f in files if path_matches(f.path, priority_paths)]


def extract_files(document: str, patterns: Iterable[str]) -> List[FileRecord]:
    """Parse ``document`` and return only the files matching ``patterns``."""
    return find_priority_files(parse_document(document, run_validation=False).files, patterns)
