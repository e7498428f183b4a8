"""Ports (interfaces) used around the core engine.

Ports define the minimal contracts for issue providers so that the core can
be fed by a saved analysis file, the secret scanner, or a live analysis
service without changes here.
"""

from __future__ import annotations

from typing import List, Optional, Protocol

from core.models import AnalysisOverview, IssueRecord


class IssueSourcePort(Protocol):
    """Produces a full issue snapshot for one analysis cycle.

    ``overview`` holds the document-level verdict of the last ``load`` call,
    or ``None`` when the source has none.
    """

    overview: Optional[AnalysisOverview]

    def load(self, document: str) -> List[IssueRecord]:
        ...
