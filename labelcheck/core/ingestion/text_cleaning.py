"""
Text cleanup for PDF-extracted label content.

Dependencies: unicodedata (stdlib)
System role: Normalizes extracted text before length checks and analysis
"""

import re
import unicodedata

_SYMBOL_REPLACEMENTS = {
    "€": "EUR",
    "©": "(c)",
    "®": "(R)",
    "™": "(TM)",
}

_EXCESS_NEWLINES = re.compile(r"\n{3,}")
_HORIZONTAL_WHITESPACE = re.compile(r"[ \t]+")


def clean_extracted_text(text: str) -> str:
    """
    Normalize text pulled from a PDF text layer.

    Decomposes Unicode (NFKD) and drops combining marks, spells out a few
    symbols models misread, normalizes line endings and collapses runs of
    whitespace.

    Args:
        text: Raw extracted text

    Returns:
        str: Cleaned text
    """
    for symbol, replacement in _SYMBOL_REPLACEMENTS.items():
        text = text.replace(symbol, replacement)
    decomposed = unicodedata.normalize("NFKD", text)
    text = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    text = _EXCESS_NEWLINES.sub("\n\n", text)
    text = _HORIZONTAL_WHITESPACE.sub(" ", text)
    return text.strip()
