"""
repotale/config.py — YAML-backed settings for truncation, validation and reply parsing.

``config`` is filled from ``$REPOTALE_CONFIG`` (or ``./config.yaml``) on
import and stays at the defaults below when no file is present.  Components
read it only when the caller does not pass a config of its own.
"""

from __future__ import annotations

import logging
import os
import re
from pathlib import Path
from typing import Any, Dict

import yaml
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Section models
# ---------------------------------------------------------------------------


class TruncationConfig(BaseModel):
    max_chars: int = Field(default=400_000, gt=0)
    max_lines_per_file: int = Field(default=100, gt=0)
    tokens_per_char: float = Field(default=0.25, gt=0)  # ~4 chars per token
    max_context_tokens: int = Field(default=128_000, gt=0)
    truncation_message: str = "... [content truncated to fit the context budget] ..."
    preserve_code_fences: bool = True
    separator_overhead: int = Field(default=10, ge=0)


class ValidationConfig(BaseModel):
    min_document_chars: int = 10
    warn_threshold_chars: int = 100
    large_document_chars: int = 1000


class NarrativeConfig(BaseModel):
    default_title: str = "Adventure"
    default_story: str = "Welcome to your coding adventure!"
    meta_commentary_scan_lines: int = 10
    begin_marker: str = "---BEGIN MARKDOWN---"
    end_marker: str = "---END MARKDOWN---"


# ---------------------------------------------------------------------------
# Top-level config
# ---------------------------------------------------------------------------


class RepotaleConfig(BaseModel):
    truncation: TruncationConfig = Field(default_factory=TruncationConfig)
    validation: ValidationConfig = Field(default_factory=ValidationConfig)
    narrative: NarrativeConfig = Field(default_factory=NarrativeConfig)


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------

_ENV_REFERENCE = re.compile(r"\$\{(?P<name>[^}]+)\}")


def _expand_env_vars(node: Any) -> Any:
    """Substitute ``${NAME}`` in every string of a YAML tree.

    Unknown names stay as written so a missing variable is visible in the
    resulting value rather than silently becoming empty.
    """
    if isinstance(node, str):
        return _ENV_REFERENCE.sub(lambda m: os.environ.get(m.group("name"), m.group(0)), node)
    if isinstance(node, list):
        return [_expand_env_vars(item) for item in node]
    if isinstance(node, dict):
        return {key: _expand_env_vars(value) for key, value in node.items()}
    return node


def load_config(path: str | Path = "config.yaml") -> RepotaleConfig:
    """Read a YAML config file into a :class:`RepotaleConfig`.

    Sections and keys left out of the file keep their defaults.

    Raises:
        FileNotFoundError: the file does not exist.
        yaml.YAMLError: the file is not valid YAML.
        pydantic.ValidationError: a value is out of range (e.g. ``max_chars: 0``).
    """
    source = Path(path)
    if not source.is_file():
        raise FileNotFoundError(f"repotale config not found at {source.resolve()}")

    data: Dict[str, Any] = yaml.safe_load(source.read_text(encoding="utf-8")) or {}
    return RepotaleConfig.model_validate(_expand_env_vars(data))


#: Process-wide configuration read by every component that is not handed an
#: explicit config.  Replace it by assigning the result of ``load_config``.
config: RepotaleConfig = RepotaleConfig()


def _init_global_config(path: str | None = None) -> None:
    global config
    target = path or os.environ.get("REPOTALE_CONFIG", "config.yaml")
    if Path(target).is_file():
        config = load_config(target)
    else:
        logger.debug(f"[Config] No config file at {target}, using defaults")


_init_global_config()
