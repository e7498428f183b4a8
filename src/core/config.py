"""Core configuration dataclasses.

We keep config parsing outside the core, but these dataclasses define the
shape the core expects so adapters and app layers can build safely.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

DEFAULT_MAX_LINE_LENGTH = 500
DEFAULT_PATTERN_MARKERS = ("high-risk pattern", "regex")


@dataclass(frozen=True)
class EngineConfig:
    """Segmentation settings for the core engine."""

    max_line_length: int = DEFAULT_MAX_LINE_LENGTH
    default_profile: str = "c-family"


@dataclass(frozen=True)
class IndexConfig:
    """Issue index settings.

    ``pattern_markers`` are matched case-insensitively against an issue's
    detection reason to recognise pattern-based security detections.
    """

    pattern_markers: Tuple[str, ...] = DEFAULT_PATTERN_MARKERS
