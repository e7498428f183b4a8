"""Shared constants for the Textual UI."""

from __future__ import annotations

ACCENT = "#61AFEF"
TITLE = "LINE"
SUBTITLE = "LENS > Review"
