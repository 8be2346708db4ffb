"""
Text helpers for the PDF document: Latin-1 sanitation for the core
Helvetica font, truncation, and width-estimated wrapping.

Wrapping is estimated from the font size rather than measured, so the
layout pass can size table rows without a PDF backend.
"""

import re as _re
import textwrap
from typing import List

# Regex to strip emoji characters (Helvetica lacks emoji glyphs)
_EMOJI_RE = _re.compile(
    "["
    "\U0001F300-\U0001F9FF"  # Misc Symbols, Emoticons, Supplemental Symbols
    "\U00002702-\U000027B0"  # Dingbats
    "\U0000FE00-\U0000FE0F"  # Variation Selectors
    "\U0000200D"             # Zero Width Joiner
    "]+",
)

_REPLACEMENTS = {
    "\u2013": "-",    # en-dash
    "\u2014": "--",   # em-dash
    "\u2018": "'",    # left single quote
    "\u2019": "'",    # right single quote
    "\u201c": '"',    # left double quote
    "\u201d": '"',    # right double quote
    "\u2026": "...",  # ellipsis
    "\u2022": "*",    # bullet
    "\u00a0": " ",    # non-breaking space
    "\u2212": "-",    # minus sign
}

PT_TO_MM = 25.4 / 72.0
# Average Helvetica glyph width as a fraction of the em (slightly generous)
AVG_CHAR_EM = 0.52


def sanitize_for_pdf(text: str) -> str:
    """Replace Unicode characters unsupported by Helvetica (Latin-1) with ASCII equivalents."""
    if not text:
        return ""
    text = _EMOJI_RE.sub("", text)
    for char, replacement in _REPLACEMENTS.items():
        text = text.replace(char, replacement)
    # Fallback: replace any remaining non-Latin-1 chars
    return text.encode("latin-1", errors="replace").decode("latin-1")


def truncate_text(text: str, limit: int) -> str:
    """Cut *text* to *limit* characters, appending '...' when cut."""
    text = text or ""
    if len(text) <= limit:
        return text
    return text[:limit] + "..."


def line_height(font_size: float) -> float:
    """Line pitch in mm for a font size in points."""
    return font_size * PT_TO_MM * 1.25


def max_chars_for_width(width_mm: float, font_size: float) -> int:
    avg_char_w = font_size * PT_TO_MM * AVG_CHAR_EM
    return max(4, int(width_mm / avg_char_w))


def wrap_text(text: str, width_mm: float, font_size: float, max_lines: int = 0) -> List[str]:
    """
    Wrap *text* to lines that fit *width_mm* at *font_size*.

    With *max_lines* set, surplus lines are dropped and the last kept
    line ends in '...'.
    """
    max_chars = max_chars_for_width(width_mm, font_size)
    lines: List[str] = []
    for paragraph in sanitize_for_pdf(text).splitlines() or [""]:
        lines.extend(textwrap.wrap(paragraph, width=max_chars, break_long_words=True) or [""])
    if max_lines and len(lines) > max_lines:
        lines = lines[:max_lines]
        last = lines[-1]
        lines[-1] = (last[: max(0, max_chars - 3)] + "...") if last else "..."
    return lines or [""]


def truncate_to_width(pdf, text: str, max_width: float) -> str:
    """Truncate text with '...' suffix if it exceeds the given cell width (mm)."""
    if pdf.get_string_width(text) <= max_width:
        return text
    ellipsis = "..."
    ew = pdf.get_string_width(ellipsis)
    for i in range(len(text), 0, -1):
        if pdf.get_string_width(text[:i]) + ew <= max_width:
            return text[:i] + ellipsis
    return ellipsis
