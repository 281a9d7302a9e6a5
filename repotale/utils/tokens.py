"""Token estimation (fixed chars-per-token ratio) and exact counting using tiktoken."""
import math
from typing import Optional, Union

import tiktoken
from pydantic import BaseModel

from repotale import config as config_module

_encoder = None

def _get_encoder():
    global _encoder
    if _encoder is None:
        _encoder = tiktoken.encoding_for_model("gpt-4")
    return _encoder

def _ratio(ratio: Optional[float]) -> float:
    return ratio if ratio is not None else config_module.config.truncation.tokens_per_char

def estimate_tokens(text: Union[str, int], ratio: Optional[float] = None) -> int:
    """Estimated token count for a string or a raw character count."""
    chars = text if isinstance(text, int) else len(text or "")
    if chars <= 0:
        return 0
    return math.ceil(chars * _ratio(ratio))

def chars_for_tokens(tokens: int, ratio: Optional[float] = None) -> int:
    return math.ceil(tokens / _ratio(ratio))

def count_tokens(text: str) -> int:
    if not text:
        return 0
    return len(_get_encoder().encode(text))

def estimate_prompt_size(ratio: Optional[float] = None, **components: Optional[str]) -> int:
    """Estimate tokens for a prompt assembled from named parts (base_prompt, code_content, ...)."""
    total_chars = sum(len(part) for part in components.values() if part)
    return estimate_tokens(total_chars, ratio)


class ContentSizeCheck(BaseModel):
    valid: bool
    estimated_tokens: int
    recommendation: Optional[str] = None


def validate_content_size(
    base_prompt: str,
    code_content: str,
    max_tokens: int = 120_000,
    exact: bool = False,
) -> ContentSizeCheck:
    """Check whether prompt + code fit under ``max_tokens``.

    ``exact=True`` counts with tiktoken instead of the ratio estimate.
    """
    if exact:
        estimated = count_tokens(base_prompt) + count_tokens(code_content)
    else:
        estimated = estimate_prompt_size(base_prompt=base_prompt, code_content=code_content)

    if estimated <= max_tokens:
        return ContentSizeCheck(valid=True, estimated_tokens=estimated)

    excess = estimated - max_tokens
    return ContentSizeCheck(
        valid=False,
        estimated_tokens=estimated,
        recommendation=(
            f"Content exceeds token limit by {excess} tokens. "
            f"Consider reducing content by {chars_for_tokens(excess)} characters."
        ),
    )
