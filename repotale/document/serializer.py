"""Render FileRecord lists back into the file-delimited document format."""
from typing import Iterable

from repotale.models import FileRecord

SEPARATOR = "---"


def render_file(record: FileRecord) -> str:
    """Header, newline, trimmed body, blank line, separator line."""
    return f"{record.header}\n{record.body.rstrip()}\n\n{SEPARATOR}"


def serialize_files(files: Iterable[FileRecord]) -> str:
    return "\n\n".join(render_file(f) for f in files)
