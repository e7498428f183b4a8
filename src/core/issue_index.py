"""Line-to-issue projection (core domain)."""

from __future__ import annotations

from typing import Callable, Dict, Iterable, List, Optional, Sequence

from core.config import DEFAULT_PATTERN_MARKERS
from core.models import IssueRecord

Precedence = Callable[[IssueRecord], int]


def is_pattern_detection(issue: IssueRecord, markers: Sequence[str] = DEFAULT_PATTERN_MARKERS) -> bool:
    """Return True when the detection reason marks a pattern-based security hit."""

    reason = (issue.detection_reason or "").lower()
    return any(marker.lower() in reason for marker in markers)


def pattern_precedence(issue: IssueRecord) -> int:
    return 1 if is_pattern_detection(issue) else 0


def make_precedence(markers: Sequence[str]) -> Precedence:
    """Build a binary precedence function for a configured marker list."""

    frozen = tuple(markers)

    def _precedence(issue: IssueRecord) -> int:
        return 1 if is_pattern_detection(issue, frozen) else 0

    return _precedence


def is_anchored(issue: IssueRecord, line_count: Optional[int] = None) -> bool:
    line = issue.line_start
    if line is None or line <= 0:
        return False
    return line_count is None or line <= line_count


def build_index(
    issues: Iterable[IssueRecord],
    line_count: Optional[int] = None,
    precedence: Precedence = pattern_precedence,
) -> Dict[int, IssueRecord]:
    """Map each anchored line to its single winning issue.

    The scan is stable: a later record only replaces the current winner when
    its precedence is strictly higher, so among equals the first one wins.
    Records without a usable line anchor are skipped here; callers keep them
    via ``unanchored_issues``.
    """

    index: Dict[int, IssueRecord] = {}
    ranks: Dict[int, int] = {}
    for issue in issues:
        if not is_anchored(issue, line_count):
            continue
        rank = precedence(issue)
        line = issue.line_start
        if line not in index or rank > ranks[line]:
            index[line] = issue
            ranks[line] = rank
    return index


def unanchored_issues(issues: Iterable[IssueRecord], line_count: Optional[int] = None) -> List[IssueRecord]:
    """Return the records ``build_index`` cannot place on a line, in input order."""

    return [issue for issue in issues if not is_anchored(issue, line_count)]
