"""
pdfplumber adapter: turns bulletin pages into positioned text runs.

Coordinates are converted to PDF user space (origin bottom-left) so that a
larger y means higher on the page.
"""

import io
import logging
import re
from typing import List

import pdfplumber

from lotto_pdf.models import RawToken
from lotto_pdf.tokens import normalize_text, to_iso

logger = logging.getLogger(__name__)

# Some printings render a whole draw as one run: "21- 26- 30- 42- 49- 51"
DASHED_RUN = re.compile(r"^\d{1,2}(?:\s*-\s*\d{1,2})+-?$")
# ... or as one line with blanks kept: "2/8/26 EVENING 4 8 11 34 35"
SPACED_RUN = re.compile(r"(?:^|\s)\d{1,2}\s+\d{1,2}(?=\s|$)")

WORD_OPTIONS = {
    "keep_blank_chars": True,
    "x_tolerance": 3,
    "y_tolerance": 3,
    "return_chars": True,
}


def _char_boxes(word: dict):
    """(text, x0, bottom) per character, estimated when chars are missing."""
    chars = word.get("chars")
    if chars:
        return [(c.get("text", ""), float(c["x0"]), float(c["bottom"])) for c in chars]
    text = word["text"]
    width = (float(word["x1"]) - float(word["x0"])) / max(len(text), 1)
    return [(ch, float(word["x0"]) + i * width, float(word["bottom"])) for i, ch in enumerate(text)]


def _split_digits(word: dict, page_height: float, page_no: int) -> List[RawToken]:
    tokens = []
    digits, x0, bottom = "", None, None
    for ch, cx, cb in _char_boxes(word) + [(" ", None, None)]:
        if ch.isdigit():
            if not digits:
                x0, bottom = cx, cb
            digits += ch
        elif digits:
            tokens.append(RawToken(digits, x0, page_height - bottom, page_no))
            digits = ""
    return tokens


def _blank_separated(word: dict):
    pieces = []
    text, x0, bottom = "", None, None
    for ch, cx, cb in _char_boxes(word) + [(" ", None, None)]:
        if not ch.isspace():
            if not text:
                x0, bottom = cx, cb
            text += ch
        elif text:
            pieces.append((text, x0, bottom))
            text = ""
    return pieces


def _split_spaced(word: dict, page_height: float, page_no: int) -> List[RawToken]:
    """Split at blanks, keeping multi-part dates ("Feb 7, 2026") together."""
    pieces = _blank_separated(word)
    tokens = []
    i = 0
    while i < len(pieces):
        n, text = 1, normalize_text(pieces[i][0])
        for size in (3, 2):
            joined = normalize_text(" ".join(p[0] for p in pieces[i:i + size]))
            if i + size <= len(pieces) and to_iso(joined):
                n, text = size, joined
                break
        _, x0, bottom = pieces[i]
        if text:
            tokens.append(RawToken(text, x0, page_height - bottom, page_no))
        i += n
    return tokens


def split_word(word: dict, page_height: float, page_no: int) -> List[RawToken]:
    text = normalize_text(word["text"])
    if not to_iso(text):
        if DASHED_RUN.match(text):
            return _split_digits(word, page_height, page_no)
        if SPACED_RUN.search(text):
            return _split_spaced(word, page_height, page_no)
    return [RawToken(text, float(word["x0"]), page_height - float(word["bottom"]), page_no)]


def page_tokens(page, page_no: int) -> List[RawToken]:
    height = float(page.height)
    words = page.extract_words(**WORD_OPTIONS)
    tokens = []
    for word in words:
        if not str(word.get("text", "")).strip():
            continue
        tokens.extend(split_word(word, height, page_no))
    return tokens


def extract_tokens(source) -> List[RawToken]:
    """Positioned text runs of every page; accepts a path, bytes or file object."""
    if isinstance(source, (bytes, bytearray)):
        source = io.BytesIO(source)

    tokens: List[RawToken] = []
    with pdfplumber.open(source) as pdf:
        for page_no, page in enumerate(pdf.pages, start=1):
            try:
                found = page_tokens(page, page_no)
            except Exception as e:
                # Broken font metrics on a single page should not sink the document
                logger.warning("Skipping page %d: text extraction failed (%s)", page_no, e)
                continue
            logger.debug("page %d: %d text runs", page_no, len(found))
            tokens.extend(found)
    return tokens
