"""Core domain models.

These dataclasses are shared across the core and adapters to avoid tight
coupling to any UI-specific or analysis-provider-specific types.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping, Optional, Tuple


class TokenClass(str, Enum):
    """Closed set of lexical classes a token can carry."""

    PLAIN = "plain"
    KEYWORD = "keyword"
    STRING = "string-literal"
    COMMENT = "comment"
    NUMBER = "number"
    TYPE_NAME = "type-name"
    CALL = "identifier-call"


class RiskLevel(str, Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"

    @classmethod
    def parse(cls, value: str) -> "RiskLevel":
        """Parse a risk label case-insensitively ("high", "HIGH", "High")."""

        normalized = str(value).strip().lower()
        for level in cls:
            if level.value.lower() == normalized:
                return level
        raise ValueError(f"Unknown risk level: {value!r}")


@dataclass(frozen=True)
class Token:
    """A classified, contiguous substring of one source line."""

    text: str
    token_class: TokenClass


@dataclass(frozen=True)
class IssueRecord:
    """A finding produced by an external analysis step.

    Only ``id``, ``line_start``, ``risk_level`` and ``detection_reason`` are
    read by the engine; the remaining fields are carried for presentation.
    """

    id: str
    line_start: Optional[int]
    risk_level: RiskLevel
    detection_reason: str
    problem: str = ""
    explanation: str = ""
    minimal_fix: str = ""
    suggested_fix_code: Optional[str] = None
    fix_checklist: Tuple[str, ...] = ()
    extra: Mapping[str, Any] = field(default_factory=dict, compare=False, hash=False)


@dataclass(frozen=True)
class LineAnnotation:
    """Derived view of one line: its tokens and the issue that won it."""

    line_number: int
    winning_issue: Optional[IssueRecord]
    tokens: Tuple[Token, ...]


@dataclass(frozen=True)
class RenderDescriptor:
    """Per-line decision inputs for the presentation layer."""

    line_number: int
    tokens: Tuple[Token, ...]
    has_issue: bool
    is_selected: bool
    is_fixed: bool
    risk_level: Optional[RiskLevel] = None
    issue_id: Optional[str] = None


@dataclass(frozen=True)
class LineActivation:
    """Outcome of clicking a line: the new cursor value and where to scroll."""

    selected_issue_id: Optional[str]
    scroll_line: Optional[int]


@dataclass(frozen=True)
class AnalysisOverview:
    """Document-level verdict that accompanies an issue snapshot."""

    top_risk_title: str = ""
    top_risk_description: str = ""
    summary: str = ""
    recommended_action: str = ""
    cost_of_ignoring: str = ""

    def is_empty(self) -> bool:
        return not any(
            (
                self.top_risk_title,
                self.top_risk_description,
                self.summary,
                self.recommended_action,
                self.cost_of_ignoring,
            )
        )
