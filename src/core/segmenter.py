"""Per-line lexical segmentation (core domain).

Segmentation is an ordered pipeline over a working list of segments. Each rule
category only ever looks at segments that are still plain, so anything an
earlier category claimed (a string, a comment) is never reclassified.
"""

from __future__ import annotations

import re
from typing import List

from core.config import DEFAULT_MAX_LINE_LENGTH
from core.models import Token, TokenClass
from core.profiles import LanguageProfile


def _split_plain(segment: Token, pattern: re.Pattern, token_class: TokenClass) -> List[Token]:
    text = segment.text
    pieces: List[Token] = []
    last_index = 0
    for match in pattern.finditer(text):
        start, end = match.span()
        if start == end:
            continue
        if start > last_index:
            pieces.append(Token(text[last_index:start], TokenClass.PLAIN))
        pieces.append(Token(text[start:end], token_class))
        last_index = end

    if not pieces:
        return [segment]
    if last_index < len(text):
        pieces.append(Token(text[last_index:], TokenClass.PLAIN))
    return pieces


def segment_line(
    line: str,
    profile: LanguageProfile,
    max_line_length: int = DEFAULT_MAX_LINE_LENGTH,
) -> List[Token]:
    """Split one line into classified tokens.

    Concatenating the returned token texts always reproduces ``line``. An
    empty line yields no tokens; a line at or above ``max_line_length`` is
    returned as a single plain token without running any rule.
    """

    if not line:
        return []
    if len(line) >= max_line_length:
        return [Token(line, TokenClass.PLAIN)]

    segments = [Token(line, TokenClass.PLAIN)]
    for rule in profile.rules:
        updated: List[Token] = []
        for segment in segments:
            if segment.token_class is not TokenClass.PLAIN:
                updated.append(segment)
                continue
            updated.extend(_split_plain(segment, rule.pattern, rule.token_class))
        segments = updated
    return segments


def split_lines(document: str) -> List[str]:
    """Split a document on line feeds; line ``n`` lives at index ``n - 1``."""

    return document.split("\n")


def segment_document(
    document: str,
    profile: LanguageProfile,
    max_line_length: int = DEFAULT_MAX_LINE_LENGTH,
) -> List[List[Token]]:
    return [segment_line(line, profile, max_line_length) for line in split_lines(document)]
