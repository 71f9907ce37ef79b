"""Normalization of model-written executive summaries."""

import re

_HEADING_LINE = re.compile(r"^#{1,6}(\s.*)?$")
_TITLE_LINE = re.compile(r"^\**\s*executive\s+summary\s*:?\s*\**\s*:?$", re.IGNORECASE)
_TITLE_PREFIX = re.compile(r"^\**\s*executive\s+summary\s*:\s*\**\s*", re.IGNORECASE)
_BLANK_RUN = re.compile(r"\n{3,}")


def clean_summary(text: str) -> str:
    """Strip leading heading and title lines and normalize paragraph breaks.

    Removes any leading Markdown heading lines and a leading "Executive
    Summary" title (bare, bold, or followed by a colon), collapses runs of
    three or more newlines to a single blank line, and trims the result.
    Applying it to its own output returns the output unchanged.

    Example:
        >>> clean_summary("## Executive Summary\\n\\nParagraph one.\\n\\n\\n\\nParagraph two.")
        'Paragraph one.\\n\\nParagraph two.'
    """
    if not text:
        return ""

    cleaned = text.replace("\r\n", "\n").strip()
    while cleaned:
        first_line, _, rest = cleaned.partition("\n")
        stripped = first_line.strip()
        if _HEADING_LINE.match(stripped) or _TITLE_LINE.match(stripped):
            cleaned = rest.strip()
            continue
        prefix = _TITLE_PREFIX.match(stripped)
        if prefix:
            cleaned = (stripped[prefix.end() :] + ("\n" + rest if rest else "")).strip()
            continue
        break

    return _BLANK_RUN.sub("\n\n", cleaned).strip()


def first_paragraph(text: str) -> str:
    """Return the first paragraph of a cleaned summary."""
    return clean_summary(text).split("\n\n", 1)[0]
