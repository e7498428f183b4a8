"""Shared line formatting helpers.

Keeping styling here prevents drift between the terminal printer and the
Textual viewer, so a line looks the same regardless of where it is shown.
"""

from __future__ import annotations

from typing import AbstractSet, List, Optional

from rich.text import Text

from core.annotations import AnnotatedDocument
from core.models import AnalysisOverview, IssueRecord, RenderDescriptor, RiskLevel, TokenClass

TOKEN_STYLES = {
    TokenClass.PLAIN: "#e8eef5",
    TokenClass.KEYWORD: "#C678DD",
    TokenClass.STRING: "#98C379",
    TokenClass.COMMENT: "italic #5C6370",
    TokenClass.NUMBER: "#D19A66",
    TokenClass.TYPE_NAME: "#E5C07B",
    TokenClass.CALL: "#61AFEF",
}

RISK_COLORS = {
    RiskLevel.HIGH: "#D66A6A",
    RiskLevel.MEDIUM: "#E6B566",
    RiskLevel.LOW: "#6BBF9B",
}

FIXED_COLOR = "#6BBF9B"
SELECTED_BACKGROUND = "#242B52"
FIXED_BACKGROUND = "#1C2B26"
RISK_BACKGROUNDS = {
    RiskLevel.HIGH: "#3A2024",
    RiskLevel.MEDIUM: "#352E20",
    RiskLevel.LOW: "#1C2B26",
}
MUTED = "#5C6370"


def indicator_color(descriptor: RenderDescriptor) -> Optional[str]:
    """Marker color for an annotated line: green when fixed, else by risk."""

    if not descriptor.has_issue:
        return None
    if descriptor.is_fixed:
        return FIXED_COLOR
    return RISK_COLORS.get(descriptor.risk_level, MUTED)


def line_background(descriptor: RenderDescriptor) -> Optional[str]:
    # Selection wins over fixed, fixed wins over risk.
    if descriptor.is_selected:
        return SELECTED_BACKGROUND
    if not descriptor.has_issue:
        return None
    if descriptor.is_fixed:
        return FIXED_BACKGROUND
    return RISK_BACKGROUNDS.get(descriptor.risk_level)


def format_line(descriptor: RenderDescriptor, number_width: int = 4) -> Text:
    """Build the styled text for one line: number, marker, gutter, tokens."""

    number_style = "bold #e8eef5" if descriptor.is_selected else MUTED
    marker_color = indicator_color(descriptor)
    text = Text.assemble(
        (str(descriptor.line_number).rjust(number_width), number_style),
        ("▌" if marker_color else " ", marker_color or ""),
        (" │ ", marker_color if descriptor.is_selected and marker_color else MUTED),
    )
    for token in descriptor.tokens:
        text.append(token.text, style=TOKEN_STYLES[token.token_class])

    background = line_background(descriptor)
    if background:
        text.stylize(f"on {background}")
    return text


def format_document(
    document: AnnotatedDocument,
    selected_issue_id: Optional[str] = None,
    fixed_ids: AbstractSet[str] = frozenset(),
) -> List[Text]:
    width = max(len(str(document.line_count)), 2)
    return [
        format_line(descriptor, number_width=width)
        for descriptor in document.descriptors(selected_issue_id, fixed_ids)
    ]


def format_issue_label(issue: IssueRecord, is_fixed: bool = False) -> Text:
    """One-line summary used in issue lists: risk badge, line, problem."""

    color = FIXED_COLOR if is_fixed else RISK_COLORS.get(issue.risk_level, MUTED)
    badge = "FIXED" if is_fixed else issue.risk_level.value.upper()
    location = f"L{issue.line_start}" if issue.line_start and issue.line_start > 0 else "--"
    return Text.assemble(
        (f"[{badge}]", f"bold {color}"),
        " ",
        (location.ljust(5), MUTED),
        " ",
        issue.problem or issue.id,
    )


def format_issue_detail(issue: IssueRecord, is_fixed: bool = False) -> Text:
    """Multi-line detail view for a single issue."""

    text = Text()
    text.append_text(format_issue_label(issue, is_fixed))
    text.append("\n")
    if issue.explanation:
        text.append(f"\n{issue.explanation}\n")
    if issue.detection_reason:
        text.append("\nWhy detected: ", style="bold")
        text.append(f"{issue.detection_reason}\n")
    if issue.minimal_fix:
        text.append("\nMinimal fix: ", style="bold")
        text.append(f"{issue.minimal_fix}\n")
    if issue.suggested_fix_code:
        text.append("\n")
        text.append(issue.suggested_fix_code, style=TOKEN_STYLES[TokenClass.STRING])
        text.append("\n")
    for step in issue.fix_checklist:
        text.append(f"\n  - {step}")
    return text


def format_overview(overview: AnalysisOverview) -> Text:
    """Top risk headline followed by the summary, cost and recommended action."""

    text = Text()
    if overview.top_risk_title:
        text.append(overview.top_risk_title, style=f"bold {RISK_COLORS[RiskLevel.HIGH]}")
        text.append("\n")
    if overview.top_risk_description:
        text.append(f"{overview.top_risk_description}\n")
    if overview.summary:
        text.append(f"\n{overview.summary}\n")
    if overview.cost_of_ignoring:
        text.append("\nCost of ignoring: ", style="bold")
        text.append(f"{overview.cost_of_ignoring}\n")
    if overview.recommended_action:
        text.append("\nRecommended action: ", style="bold")
        text.append(f"{overview.recommended_action}\n")
    return text
