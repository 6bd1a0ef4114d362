"""
Subtitle payload cleanup.

Turns an SRT-style caption download into plain prose: cue numbers and
``HH:MM:SS,mmm --> HH:MM:SS,mmm`` lines go away, inline markup such as
``<i>`` or ``<font color=...>`` is stripped, and the remaining lines are
joined with single spaces.
"""

import re
from typing import Any

_CUE_HEADER_RE = re.compile(
    r"(?:^|(?<=\n))[ \t]*\d+[ \t]*\r?\n"
    r"[ \t]*\d{1,2}:\d{2}:\d{2}[,.]\d{3}[ \t]*-->[ \t]*\d{1,2}:\d{2}:\d{2}[,.]\d{3}[^\r\n]*(?:\r?\n|$)"
)
_MARKUP_RE = re.compile(r"<[^<>]*>")
_LINE_BREAK_RE = re.compile(r"[ \t]*(?:\r\n|\r|\n)+[ \t]*")
_MULTI_SPACE_RE = re.compile(r"[ \t]{2,}")


def _strip_markup(text: str) -> str:
    # Nested brackets like "<<b>i>" need more than one pass.
    while True:
        stripped = _MARKUP_RE.sub("", text)
        if stripped == text:
            return stripped
        text = stripped


def normalize_subtitles(raw: Any) -> str:
    """Return clean transcript text for a raw subtitle payload; never raises."""
    if isinstance(raw, bytes):
        raw = raw.decode("utf-8", errors="replace")
    if not isinstance(raw, str) or not raw:
        return ""

    text = raw.replace("\ufeff", "")
    text = _CUE_HEADER_RE.sub("", text)
    text = _strip_markup(text)
    text = _LINE_BREAK_RE.sub(" ", text)
    text = _MULTI_SPACE_RE.sub(" ", text)
    return text.strip()
