"""Session state for the review viewer: document, issue snapshot, cursor, fixed set."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Optional

from core.models import AnalysisOverview, IssueRecord
from core.remediation import apply_fix, can_apply_fix


@dataclass
class ReviewState:
    document: str = ""
    issues: list[IssueRecord] = field(default_factory=list)
    selected_issue_id: str | None = None
    fixed_ids: set[str] = field(default_factory=set)
    overview: AnalysisOverview = field(default_factory=AnalysisOverview)

    def start_cycle(self, issues: Iterable[IssueRecord], overview: Optional[AnalysisOverview] = None) -> None:
        """Replace the issue snapshot; cursor and fixed set reset together."""

        self.issues = list(issues)
        self.overview = overview or AnalysisOverview()
        self.selected_issue_id = None
        self.fixed_ids = set()

    def reset_document(self, document: str = "") -> None:
        self.document = document
        self.start_cycle([])

    def select(self, issue_id: Optional[str]) -> None:
        self.selected_issue_id = issue_id

    def toggle_fixed(self, issue_id: str) -> bool:
        """Flip the fixed mark for an issue; returns the new state."""

        if issue_id in self.fixed_ids:
            self.fixed_ids.discard(issue_id)
            return False
        self.fixed_ids.add(issue_id)
        return True

    def apply_fix(self, issue: IssueRecord) -> bool:
        """Rewrite the document with the issue's suggested fix.

        On success the issue is marked fixed and becomes the cursor. The issue
        snapshot is kept, so other findings stay on their original lines.
        """

        if not can_apply_fix(self.document, issue):
            return False
        self.document = apply_fix(self.document, issue)
        self.fixed_ids.add(issue.id)
        self.selected_issue_id = issue.id
        return True
