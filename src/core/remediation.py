"""Applying a finding's suggested fix to the document text."""

from __future__ import annotations

import logging
import re

from core.models import IssueRecord

LOGGER = logging.getLogger(__name__)

_INDENT = re.compile(r"[ \t]*")


def can_apply_fix(document: str, issue: IssueRecord) -> bool:
    """True when the issue carries fix code and anchors to an existing line."""

    if not issue.suggested_fix_code or issue.line_start is None:
        return False
    return 1 <= issue.line_start <= len(document.split("\n"))


def apply_fix(document: str, issue: IssueRecord) -> str:
    """Replace the issue's anchor line with its suggested fix.

    The original line's leading whitespace is kept. Anything that cannot be
    applied returns the document unchanged. Fix code may span several lines;
    only the first picks up the indentation.
    """

    if not can_apply_fix(document, issue):
        return document
    lines = document.split("\n")
    index = issue.line_start - 1
    indentation = _INDENT.match(lines[index]).group(0)
    lines[index] = indentation + issue.suggested_fix_code.lstrip(" \t")
    LOGGER.debug("Applied fix for %s at line %s", issue.id, issue.line_start)
    return "\n".join(lines)
