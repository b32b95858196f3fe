"""Text cleanup shared by every document extractor.

Extractors hand back text straight from PyMuPDF, Tesseract, ebooklib or
an HTML parser.  Before chunking, it is normalized so that:

- line endings are ``\\n`` only,
- non-breaking spaces are plain spaces,
- hyphen/dash variants become ``-`` and curly quotes become ASCII quotes,
- runs of spaces/tabs collapse to one space and 3+ newlines to a blank line.

Normalizing typography keeps embeddings of the same sentence identical
whether it came from a PDF or a plain-text transcript.
"""

import re

# Typographic characters and their ASCII replacements.
_TYPOGRAPHY = str.maketrans(
    {
        0x00A0: " ",     # no-break space
        0x2010: "-",     # hyphen
        0x2011: "-",     # non-breaking hyphen
        0x2013: "-",     # en dash
        0x2014: "-",     # em dash
        0x2018: "'",     # left single quote
        0x2019: "'",     # right single quote
        0x201C: '"',     # left double quote
        0x201D: '"',     # right double quote
        0x2026: "...",   # horizontal ellipsis
        0xFEFF: None,    # byte-order mark
    }
)

_MULTI_NEWLINE = re.compile(r"\n{3,}")
_MULTI_SPACE = re.compile(r"[ \t]{2,}")
_TRAILING_SPACE = re.compile(r"[ \t]+\n")


def clean_extracted_text(text: str) -> str:
    """Normalize line endings, typography and whitespace runs in *text*.

    Args:
        text: Raw extractor output.

    Returns:
        Cleaned, trimmed text.  Paragraph breaks (blank lines) survive.
    """
    if not text:
        return ""
    cleaned = text.replace("\r\n", "\n").replace("\r", "\n")
    cleaned = cleaned.translate(_TYPOGRAPHY)
    cleaned = _MULTI_SPACE.sub(" ", cleaned)
    cleaned = _TRAILING_SPACE.sub("\n", cleaned)
    cleaned = _MULTI_NEWLINE.sub("\n\n", cleaned)
    return cleaned.strip()


def collapse_whitespace(text: str) -> str:
    """Collapse every whitespace run (newlines included) to a single space."""
    return " ".join(text.split())
