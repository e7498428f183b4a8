"""Main Textual app for the linelens review viewer."""

from __future__ import annotations

import logging
from typing import Any, Iterable, Optional

from rich.text import Text
from textual import events
from textual.app import App, ComposeResult
from textual.containers import Container, Horizontal, Vertical, VerticalScroll
from textual.css.query import NoMatches
from textual.message import Message
from textual.widgets import Footer, OptionList, Static
from textual.widgets.option_list import Option

from adapters.line_formatting import format_document, format_issue_detail, format_issue_label, format_overview
from core.annotations import AnnotatedDocument
from core.issue_index import Precedence, pattern_precedence
from core.models import IssueRecord
from core.ports import IssueSourcePort
from core.profiles import LanguageProfile
from core.secret_scan import scan_secrets

from .constants import ACCENT, SUBTITLE, TITLE
from .state import ReviewState

LOGGER = logging.getLogger(__name__)


class CodeLine(Static):
    """One rendered source line; clicking it raises ``CodeLine.Clicked``."""

    class Clicked(Message):
        def __init__(self, line_number: int) -> None:
            self.line_number = line_number
            super().__init__()

    def __init__(self, content: Text, line_number: int, **kwargs: Any) -> None:
        super().__init__(content, **kwargs)
        self.line_number = line_number

    def on_click(self, event: events.Click) -> None:
        self.post_message(self.Clicked(self.line_number))


class CodeView(VerticalScroll):
    """Scrollable code pane with one ``CodeLine`` per source line."""

    def __init__(self, lines: list[Text], **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self._initial = lines

    def compose(self) -> ComposeResult:
        for number, text in enumerate(self._initial, start=1):
            yield CodeLine(text, number, id=f"line-{number}", classes="code-line")

    def update_lines(self, lines: list[Text]) -> None:
        for line in self.query(CodeLine):
            line.update(lines[line.line_number - 1])

    async def set_lines(self, lines: list[Text]) -> None:
        """Replace the rendered lines, remounting when the line count changed."""

        if len(self.query(CodeLine)) == len(lines):
            self.update_lines(lines)
            return
        await self.remove_children()
        await self.mount_all(
            CodeLine(text, number, id=f"line-{number}", classes="code-line")
            for number, text in enumerate(lines, start=1)
        )

    def scroll_to_line(self, line_number: int) -> None:
        try:
            target = self.query_one(f"#line-{line_number}", CodeLine)
        except NoMatches:
            return
        target.scroll_visible(animate=False)


class ReviewApp(App):
    """Code pane, issue list and detail panel over one document."""

    CSS = """
    Screen {
        background: #0f1a21;
        color: #e8eef5;
    }

    #header {
        height: 3;
        padding: 0 2;
        border-bottom: solid #2a3a46;
    }

    #body {
        height: 1fr;
    }

    #code {
        width: 2fr;
        padding: 0 1;
    }

    .code-line {
        height: auto;
    }

    #side {
        width: 1fr;
        border-left: solid #2a3a46;
    }

    #issues {
        height: 1fr;
    }

    #detail {
        height: 1fr;
        padding: 1;
        border-top: solid #2a3a46;
    }
    """

    BINDINGS = [
        ("f", "toggle_fixed", "Mark fixed"),
        ("a", "apply_fix", "Apply fix"),
        ("escape", "clear_selection", "Clear"),
        ("r", "reanalyze", "Re-analyze"),
        ("q", "quit", "Quit"),
    ]

    def __init__(
        self,
        document: str,
        profile: LanguageProfile,
        issue_source: IssueSourcePort,
        max_line_length: int,
        precedence: Precedence = pattern_precedence,
        mask_secrets: bool = True,
        **kwargs: Any,
    ) -> None:
        super().__init__(**kwargs)
        self._mask_secrets = mask_secrets
        self._profile = profile
        self._issue_source = issue_source
        self._max_line_length = max_line_length
        self._precedence = precedence
        self.review_state = ReviewState()
        self.review_state.reset_document(document)
        self.review_state.start_cycle(issue_source.load(document), issue_source.overview)
        self._annotated = self._build_document()

    def compose(self) -> ComposeResult:
        with Container(id="header"):
            yield Static(self._title_text(), id="title")
        with Horizontal(id="body"):
            yield CodeView(self._render_lines(), id="code")
            with Vertical(id="side"):
                yield OptionList(*self._issue_options(), id="issues")
                yield Static("", id="detail")
        yield Footer()

    def on_mount(self) -> None:
        self._refresh_detail()

    def _build_document(self) -> AnnotatedDocument:
        document = self.review_state.document
        if self._mask_secrets:
            document = scan_secrets(document).masked_document
        return AnnotatedDocument(
            document,
            self.review_state.issues,
            self._profile,
            max_line_length=self._max_line_length,
            precedence=self._precedence,
        )

    def _render_lines(self) -> list[Text]:
        return format_document(
            self._annotated,
            self.review_state.selected_issue_id,
            self.review_state.fixed_ids,
        )

    def _issue_options(self) -> Iterable[Option]:
        for issue in self.review_state.issues:
            label = format_issue_label(issue, issue.id in self.review_state.fixed_ids)
            yield Option(label, id=issue.id)

    def _selected_issue(self) -> Optional[IssueRecord]:
        return self._annotated.issue(self.review_state.selected_issue_id)

    def on_code_line_clicked(self, message: CodeLine.Clicked) -> None:
        activation = self._annotated.activate_line(message.line_number)
        self._apply_selection(activation.selected_issue_id, activation.scroll_line)

    def on_option_list_option_selected(self, event: OptionList.OptionSelected) -> None:
        issue_id = event.option.id
        self._apply_selection(issue_id, self._annotated.scroll_target(issue_id))

    def _apply_selection(self, issue_id: Optional[str], scroll_line: Optional[int]) -> None:
        self.review_state.select(issue_id)
        self._refresh_code()
        self._refresh_detail()
        if scroll_line is not None:
            self.query_one("#code", CodeView).scroll_to_line(scroll_line)

    def action_toggle_fixed(self) -> None:
        issue = self._selected_issue()
        if issue is None:
            return
        fixed = self.review_state.toggle_fixed(issue.id)
        LOGGER.info("Issue %s marked %s", issue.id, "fixed" if fixed else "open")
        self._refresh_issue_list()
        self._refresh_code()
        self._refresh_detail()

    async def action_apply_fix(self) -> None:
        issue = self._selected_issue()
        if issue is None:
            return
        if not self.review_state.apply_fix(issue):
            self.notify("This issue has no applicable fix.", severity="warning")
            return
        LOGGER.info("Applied suggested fix for %s at line %s", issue.id, issue.line_start)
        self._annotated = self._build_document()
        await self.query_one("#code", CodeView).set_lines(self._render_lines())
        self._refresh_issue_list()
        self._refresh_detail()

    def action_clear_selection(self) -> None:
        self._apply_selection(None, None)

    def action_reanalyze(self) -> None:
        try:
            issues = self._issue_source.load(self.review_state.document)
        except (OSError, ValueError) as exc:
            self.notify(f"analysis failed: {exc}", severity="error")
            return
        self.review_state.start_cycle(issues, self._issue_source.overview)
        self._annotated = self._build_document()
        self._refresh_issue_list()
        self._refresh_code()
        self._refresh_detail()

    def _refresh_code(self) -> None:
        self.query_one("#code", CodeView).update_lines(self._render_lines())

    def _refresh_issue_list(self) -> None:
        option_list = self.query_one("#issues", OptionList)
        option_list.clear_options()
        option_list.add_options(list(self._issue_options()))

    def _refresh_detail(self) -> None:
        detail = self.query_one("#detail", Static)
        issue = self._selected_issue()
        if issue is None:
            count = len(self.review_state.issues)
            unanchored = len(self._annotated.unanchored)
            summary = Text()
            if not self.review_state.overview.is_empty():
                summary.append_text(format_overview(self.review_state.overview))
                summary.append("\n")
            summary.append(
                f"{count} issue(s), {unanchored} without a line. Pick one to inspect.",
                style="#c6d2dd",
            )
            detail.update(summary)
            return
        detail.update(format_issue_detail(issue, issue.id in self.review_state.fixed_ids))

    def _title_text(self) -> Text:
        return Text.assemble(
            (TITLE, ACCENT),
            (f"{SUBTITLE} [{self._profile.id}]", "bold"),
        )
