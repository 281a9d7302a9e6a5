"""Triple-backtick fence counting shared by the model, validator and truncator."""
from typing import Iterable

FENCE_MARKER = "```"


def is_fence_line(line: str) -> bool:
    return line.lstrip().startswith(FENCE_MARKER)


def count_fences(lines: Iterable[str]) -> int:
    return sum(1 for line in lines if is_fence_line(line))


def fences_balanced(text: str) -> bool:
    return count_fences(text.split('\n')) % 2 == 0
