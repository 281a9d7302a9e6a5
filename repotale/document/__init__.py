from .validator import validate, detect_format, detect_mixed_formats
from .parser import parse_document, extract_files, find_priority_files
from .serializer import serialize_files
from .truncator import plan_truncation, truncate_files, truncate_document, smart_truncate

__all__ = [
    "validate",
    "detect_format",
    "detect_mixed_formats",
    "parse_document",
    "extract_files",
    "find_priority_files",
    "serialize_files",
    "plan_truncation",
    "truncate_files",
    "truncate_document",
    "smart_truncate",
]
