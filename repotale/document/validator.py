"""Format checks for file-delimited documents.

Validation runs on the raw text and is independent of parsing: it never
raises, and every finding is a human-readable warning.  A document with no
warnings is considered valid.
"""
import logging
import re
from typing import Optional

from repotale import config as config_module
from repotale.config import RepotaleConfig
from repotale.models import HeaderFormat, ParseDiagnostics
from repotale.utils.fences import count_fences, fences_balanced

logger = logging.getLogger(__name__)

HEADER_PATTERNS = {
    HeaderFormat.STANDARD: re.compile(r'^[ \t]*#{1,6}[ \t]*File:[ \t]*\S', re.MULTILINE),
    HeaderFormat.LOWERCASE: re.compile(r'^[ \t]*#{1,6}[ \t]*file:[ \t]*', re.MULTILINE),
    HeaderFormat.SOURCE_HEADER: re.compile(r'^[ \t]*#{1,6}[ \t]*Source:[ \t]*', re.MULTILINE),
    HeaderFormat.PATH_HEADER: re.compile(r'^[ \t]*#{1,6}[ \t]*Path:[ \t]*', re.MULTILINE),
}

DEPRECATED_HEADER_WARNINGS = {
    HeaderFormat.LOWERCASE: 'Detected lowercase "file:" headers - expected "File:" with capital F',
    HeaderFormat.SOURCE_HEADER: 'Detected "Source:" headers instead of "File:" - format not supported',
    HeaderFormat.PATH_HEADER: 'Detected "Path:" headers instead of "File:" - format not supported',
}

_ANY_KEYWORD_HEADER = re.compile(r'^[ \t]*#{1,6}[ \t]*(File|file|Source|Path):', re.MULTILINE)


def detect_format(document: str) -> HeaderFormat:
    """Return the first header spelling found, checking the canonical one first."""
    for header_format, pattern in HEADER_PATTERNS.items():
        if pattern.search(document or ""):
            return header_format
    return HeaderFormat.UNKNOWN


def detect_mixed_formats(document: str) -> bool:
    """True when more than one header keyword (File/file/Source/Path) is in use."""
    keywords = {m.group(1) for m in _ANY_KEYWORD_HEADER.finditer(document or "")}
    return len(keywords) > 1


def validate(document: str, cfg: Optional[RepotaleConfig] = None) -> ParseDiagnostics:
    """Inspect raw document text for header and fence problems.

    Every check runs even when an earlier one already failed, so the warnings
    list names each problem once.
    """
    cfg = cfg or config_module.config
    document = document or ""
    format_name = detect_format(document)

    if len(document) < cfg.validation.min_document_chars:
        return ParseDiagnostics(format_name=format_name)

    warnings = []
    for header_format, message in DEPRECATED_HEADER_WARNINGS.items():
        if HEADER_PATTERNS[header_format].search(document):
            warnings.append(message)

    if not HEADER_PATTERNS[HeaderFormat.STANDARD].search(document):
        warnings.append('No file headers found in content')

    fences = count_fences(document.split('\n'))
    if fences % 2 != 0:
        warnings.append(f'Unbalanced code fences detected ({fences} markers)')

    if warnings:
        logger.debug(f"[Validator] {len(warnings)} format warning(s), format={format_name.value}")
    return ParseDiagnostics(format_name=format_name, warnings=warnings)
