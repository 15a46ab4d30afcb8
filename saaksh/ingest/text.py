"""Text cleanup applied to scraped content before it reaches the oracle."""

from __future__ import annotations

import re
import unicodedata

LINK_PLACEHOLDER = "[LINK]"

_MARKDOWN_LINK = re.compile(r"\[([^\]]+)\]\([^)]+\)")
_URL = re.compile(r"https?://\S+")
_EMPHASIS = re.compile(r"[*_~`]")
_WHITESPACE = re.compile(r"\s+")
_EMOJI = re.compile(
    "["
    "\U0001F300-\U0001F5FF"  # symbols & pictographs
    "\U0001F600-\U0001F64F"  # emoticons
    "\U0001F680-\U0001F6FF"  # transport & map
    "\U0001F900-\U0001F9FF"  # supplemental symbols
    "\u2600-\u26FF"  # misc symbols
    "\u2700-\u27BF"  # dingbats
    "\uFE0F\u200D"  # variation selector, zero-width joiner
    "]"
)
_BASIC_PUNCTUATION = frozenset(".,!?;:()'\"[]-")


def _is_basic(ch: str) -> bool:
    # Letters, digits and combining marks in any script
    return (
        ch.isspace()
        or ch in _BASIC_PUNCTUATION
        or unicodedata.category(ch)[0] in "LNM"
    )


def preprocess_text(text: str, strip_symbols: bool = False) -> str:
    """Normalize scraped text.

    Markdown links become their display text, URLs become ``[LINK]``,
    markdown emphasis characters are dropped and whitespace is collapsed.
    With ``strip_symbols`` emoji and any character outside letters, digits
    and basic punctuation are removed as well.
    """
    if not text:
        return ""

    text = _MARKDOWN_LINK.sub(r"\1", text)
    text = _URL.sub(LINK_PLACEHOLDER, text)
    text = _EMPHASIS.sub("", text)
    if strip_symbols:
        text = _EMOJI.sub("", text)
        text = "".join(ch for ch in text if _is_basic(ch))
    return _WHITESPACE.sub(" ", text).strip()
