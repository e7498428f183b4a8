"""Render descriptors, selection and scroll resolution (core domain).

Selection cursor and fixed set are owned by the caller and passed in
read-only. Nothing here mutates them; line activation returns the new cursor
value instead.
"""

from __future__ import annotations

import logging
from typing import AbstractSet, Dict, Iterable, List, Mapping, Optional, Tuple

from core.config import DEFAULT_MAX_LINE_LENGTH
from core.issue_index import Precedence, build_index, pattern_precedence, unanchored_issues
from core.models import IssueRecord, LineActivation, LineAnnotation, RenderDescriptor
from core.profiles import LanguageProfile
from core.segmenter import segment_line, split_lines

LOGGER = logging.getLogger(__name__)


def resolve_selection(selected_issue_id: Optional[str], issue_ids: AbstractSet[str]) -> Optional[str]:
    """Return the cursor if it names a current issue, otherwise None."""

    if selected_issue_id is None or selected_issue_id not in issue_ids:
        return None
    return selected_issue_id


def render_descriptor(
    line_number: int,
    line_text: str,
    index: Mapping[int, IssueRecord],
    profile: LanguageProfile,
    selected_issue_id: Optional[str] = None,
    fixed_ids: AbstractSet[str] = frozenset(),
    max_line_length: int = DEFAULT_MAX_LINE_LENGTH,
) -> RenderDescriptor:
    """Combine tokens, the winning issue and UI state for one line.

    ``selected_issue_id`` is expected to be validated already (see
    ``resolve_selection``).
    """

    tokens = tuple(segment_line(line_text, profile, max_line_length))
    issue = index.get(line_number)
    if issue is None:
        return RenderDescriptor(
            line_number=line_number,
            tokens=tokens,
            has_issue=False,
            is_selected=False,
            is_fixed=False,
        )
    return RenderDescriptor(
        line_number=line_number,
        tokens=tokens,
        has_issue=True,
        is_selected=selected_issue_id is not None and issue.id == selected_issue_id,
        is_fixed=issue.id in fixed_ids,
        risk_level=issue.risk_level,
        issue_id=issue.id,
    )


class AnnotatedDocument:
    """Immutable snapshot of one document plus one issue set.

    Build a new instance whenever the text or the issue snapshot changes.
    """

    def __init__(
        self,
        document: str,
        issues: Iterable[IssueRecord],
        profile: LanguageProfile,
        max_line_length: int = DEFAULT_MAX_LINE_LENGTH,
        precedence: Precedence = pattern_precedence,
    ) -> None:
        self._lines: Tuple[str, ...] = tuple(split_lines(document))
        self._issues: Tuple[IssueRecord, ...] = tuple(issues)
        self._profile = profile
        self._max_line_length = max_line_length
        self._issue_ids = frozenset(issue.id for issue in self._issues)
        self._index: Dict[int, IssueRecord] = build_index(
            self._issues,
            line_count=len(self._lines),
            precedence=precedence,
        )
        self._unanchored = tuple(unanchored_issues(self._issues, len(self._lines)))
        if self._unanchored:
            LOGGER.debug("%s issue(s) have no line anchor", len(self._unanchored))

    @property
    def profile(self) -> LanguageProfile:
        return self._profile

    @property
    def line_count(self) -> int:
        return len(self._lines)

    @property
    def issues(self) -> Tuple[IssueRecord, ...]:
        return self._issues

    @property
    def index(self) -> Mapping[int, IssueRecord]:
        return dict(self._index)

    @property
    def unanchored(self) -> Tuple[IssueRecord, ...]:
        return self._unanchored

    def line_text(self, line_number: int) -> str:
        if 1 <= line_number <= len(self._lines):
            return self._lines[line_number - 1]
        return ""

    def issue(self, issue_id: Optional[str]) -> Optional[IssueRecord]:
        for issue in self._issues:
            if issue.id == issue_id:
                return issue
        return None

    def annotation(self, line_number: int) -> LineAnnotation:
        return LineAnnotation(
            line_number=line_number,
            winning_issue=self._index.get(line_number),
            tokens=tuple(segment_line(self.line_text(line_number), self._profile, self._max_line_length)),
        )

    def descriptor(
        self,
        line_number: int,
        selected_issue_id: Optional[str] = None,
        fixed_ids: AbstractSet[str] = frozenset(),
    ) -> RenderDescriptor:
        return render_descriptor(
            line_number,
            self.line_text(line_number),
            self._index,
            self._profile,
            selected_issue_id=resolve_selection(selected_issue_id, self._issue_ids),
            fixed_ids=fixed_ids,
            max_line_length=self._max_line_length,
        )

    def descriptors(
        self,
        selected_issue_id: Optional[str] = None,
        fixed_ids: AbstractSet[str] = frozenset(),
    ) -> List[RenderDescriptor]:
        return [
            self.descriptor(line_number, selected_issue_id, fixed_ids)
            for line_number in range(1, len(self._lines) + 1)
        ]

    def scroll_target(self, issue_id: Optional[str]) -> Optional[int]:
        """Line to bring into view for a selected issue, if it is anchored.

        A record that lost its line to a higher-precedence issue still scrolls
        to its own anchor.
        """

        issue = self.issue(issue_id)
        if issue is None or issue.line_start is None:
            return None
        if 1 <= issue.line_start <= len(self._lines):
            return issue.line_start
        return None

    def activate_line(self, line_number: int) -> LineActivation:
        """Resolve a click on a line into a new cursor value and scroll target."""

        issue = self._index.get(line_number)
        if issue is None:
            return LineActivation(selected_issue_id=None, scroll_line=None)
        return LineActivation(selected_issue_id=issue.id, scroll_line=line_number)
