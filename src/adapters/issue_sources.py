"""Issue source adapters.

Analysis results arrive as JSON in the camelCase schema used by the analysis
service (``{"items": [...]}`` or a bare list). Mapping happens here so the
core only ever sees ``IssueRecord``.
"""

from __future__ import annotations

from dataclasses import fields, replace
import json
import logging
from pathlib import Path
from typing import Any, Iterable, List, Optional

from core.models import AnalysisOverview, IssueRecord, RiskLevel
from core.secret_scan import scan_secrets

LOGGER = logging.getLogger(__name__)

LEAK_TITLE = "CRITICAL SECURITY LEAK DETECTED"

_KNOWN_KEYS = {
    "id",
    "lineStart",
    "risk",
    "whyDetection",
    "problem",
    "vibeSmell",
    "minimalFix",
    "suggestedFixCode",
    "fixChecklist",
}


def _parse_line(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _text(value: Any) -> str:
    return "" if value is None else str(value)


def issue_from_item(item: dict, position: int) -> IssueRecord:
    """Map one analysis item to an ``IssueRecord``.

    Missing ids get a positional fallback; an unknown risk label is an error
    because the presentation layer cannot color it.
    """

    if not isinstance(item, dict):
        raise ValueError(f"analysis item {position} must be an object")
    issue_id = str(item.get("id") or f"issue-{position}")
    checklist = item.get("fixChecklist")
    if not isinstance(checklist, list):
        # A bare string would otherwise be split into characters.
        checklist = [checklist] if isinstance(checklist, str) and checklist else []
    fix_code = item.get("suggestedFixCode")
    return IssueRecord(
        id=issue_id,
        line_start=_parse_line(item.get("lineStart")),
        risk_level=RiskLevel.parse(item.get("risk", RiskLevel.LOW.value)),
        detection_reason=str(item.get("whyDetection") or ""),
        problem=str(item.get("problem") or ""),
        explanation=str(item.get("vibeSmell") or ""),
        minimal_fix=str(item.get("minimalFix") or ""),
        suggested_fix_code=None if fix_code is None else str(fix_code),
        fix_checklist=tuple(str(step) for step in checklist if step is not None),
        extra={key: value for key, value in item.items() if key not in _KNOWN_KEYS},
    )


def overview_from_payload(payload: Any) -> AnalysisOverview:
    """Read the document-level verdict of an analysis result.

    A bare list payload, or one without these keys, yields an empty overview.
    """

    if not isinstance(payload, dict):
        return AnalysisOverview()
    top_risk = payload.get("topRisk")
    if not isinstance(top_risk, dict):
        top_risk = {}
    return AnalysisOverview(
        top_risk_title=_text(top_risk.get("title")),
        top_risk_description=_text(top_risk.get("description")),
        summary=_text(payload.get("summary")),
        recommended_action=_text(payload.get("recommendedAction")),
        cost_of_ignoring=_text(payload.get("costOfIgnoring")),
    )


def merge_overviews(*overviews: Optional[AnalysisOverview]) -> AnalysisOverview:
    """Field by field, the first non-empty value wins."""

    merged = {}
    for field_info in fields(AnalysisOverview):
        for overview in overviews:
            value = getattr(overview, field_info.name) if overview is not None else ""
            if value:
                merged[field_info.name] = value
                break
    return AnalysisOverview(**merged)


def issues_from_payload(payload: Any) -> List[IssueRecord]:
    if isinstance(payload, dict):
        items = payload.get("items")
        if items is None:
            raise ValueError("analysis result must contain an 'items' list")
    else:
        items = payload
    if not isinstance(items, list):
        raise ValueError("analysis items must be a list")

    issues = [issue_from_item(item, position) for position, item in enumerate(items, start=1)]
    seen: set[str] = set()
    for issue in issues:
        if issue.id in seen:
            raise ValueError(f"duplicate issue id: {issue.id}")
        seen.add(issue.id)
    return issues


def merge_issues(*groups: Iterable[IssueRecord]) -> List[IssueRecord]:
    """Concatenate issue groups in order.

    Ids must stay unique for selection, so a later record whose id is already
    taken is kept under a suffixed id (``sec-1#2``) rather than dropped.
    """

    merged: List[IssueRecord] = []
    seen: set[str] = set()
    for group in groups:
        for issue in group:
            if issue.id in seen:
                suffix = 2
                while f"{issue.id}#{suffix}" in seen:
                    suffix += 1
                renamed = f"{issue.id}#{suffix}"
                LOGGER.warning("Issue id %s already taken; keeping it as %s", issue.id, renamed)
                issue = replace(issue, id=renamed)
            seen.add(issue.id)
            merged.append(issue)
    return merged


class JsonIssueSource:
    """Loads a saved analysis result from disk."""

    def __init__(self, path: Path) -> None:
        self._path = Path(path)
        self.overview: Optional[AnalysisOverview] = None

    def load(self, document: str) -> List[IssueRecord]:
        if not self._path.exists():
            raise FileNotFoundError(f"Issues file not found: {self._path}")
        try:
            payload = json.loads(self._path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            raise ValueError(f"{self._path.name} error: {exc.msg}") from exc
        issues = issues_from_payload(payload)
        self.overview = overview_from_payload(payload)
        LOGGER.info("Loaded %s issue(s) from %s", len(issues), self._path)
        return issues


class SecretScanSource:
    """Issue source backed by the built-in credential scanner.

    Any hit overrides the top risk: leaked credentials outrank whatever the
    analysis concluded.
    """

    def __init__(self) -> None:
        self.overview: Optional[AnalysisOverview] = None

    def load(self, document: str) -> List[IssueRecord]:
        result = scan_secrets(document)
        self.overview = None
        if result.issues:
            LOGGER.info("Secret scan found %s hard-coded credential(s)", len(result.issues))
            self.overview = AnalysisOverview(
                top_risk_title=LEAK_TITLE,
                top_risk_description=(
                    f"We detected {len(result.issues)} hardcoded secret(s) in your code. "
                    "These must be revoked immediately."
                ),
            )
        return list(result.issues)


class CombinedIssueSource:
    """Runs several sources and merges their snapshots in the given order."""

    def __init__(self, sources: Iterable) -> None:
        self._sources = list(sources)
        self.overview: Optional[AnalysisOverview] = None

    def load(self, document: str) -> List[IssueRecord]:
        groups = [source.load(document) for source in self._sources]
        self.overview = merge_overviews(*(getattr(source, "overview", None) for source in self._sources))
        return merge_issues(*groups)
