"""
Token classification.

Every text run extracted from a bulletin page is labelled as a date, a
session marker, a drawn value, a variant tag or noise. Boilerplate that is
printed on every page is dropped before classification.
"""

import re
import unicodedata
from datetime import date
from functools import lru_cache
from typing import Iterable, List, Optional, Pattern, Sequence, Tuple

from lotto_pdf.config import CENTURY_PIVOT, COMMON_DROP, GameConfig
from lotto_pdf.models import PositionedToken, RawToken, TokenKind

MONTHS = {
    "JAN": 1, "FEB": 2, "MAR": 3, "APR": 4, "MAY": 5, "JUN": 6,
    "JUL": 7, "AUG": 8, "SEP": 9, "OCT": 10, "NOV": 11, "DEC": 12,
}

# 02/07/26, 2-7-2026
NUMERIC_DATE = re.compile(r"^(\d{1,2})[/\-](\d{1,2})[/\-](\d{2}|\d{4})$")
# Feb 7, 2026 / February 7 2026
MONTH_FIRST_DATE = re.compile(r"^([A-Za-z]{3,9})\.?\s+(\d{1,2}),?\s*(\d{4})$")
# 07-Feb-2026 / 7 Feb 2026
DAY_FIRST_DATE = re.compile(r"^(\d{1,2})[- ]([A-Za-z]{3})[- ,]?\s*(\d{4})$")

VALUE_RE = re.compile(r"^\d{1,3}$")

DASHES = re.compile("[\u2010\u2011\u2012\u2013\u2014\u2015\u2212]")
INVISIBLE = re.compile("[\u200b\u200c\u200d\u2060\ufeff\u00ad]")


def normalize_text(text: str) -> str:
    """Fold a raw PDF string into plain single-spaced ASCII-ish text."""
    if text is None:
        return ""
    s = unicodedata.normalize("NFKC", str(text))
    s = INVISIBLE.sub("", s)
    s = DASHES.sub("-", s)
    s = "".join(" " if unicodedata.category(ch).startswith(("Z", "C")) else ch for ch in s)
    return re.sub(r"\s+", " ", s).strip()


def _full_year(raw: str) -> int:
    year = int(raw)
    if len(raw) == 2:
        year += 1900 if year >= CENTURY_PIVOT else 2000
    return year


def _month(name: str) -> Optional[int]:
    return MONTHS.get(name[:3].upper())


def to_iso(text: str) -> Optional[str]:
    """Parse '2/7/26', 'Feb 7, 2026' or '07-Feb-2026' into '2026-02-07'.

    Returns None when the text is not a date or names an impossible day.
    """
    s = normalize_text(text)
    m = NUMERIC_DATE.match(s)
    if m:
        month, day, year = int(m.group(1)), int(m.group(2)), _full_year(m.group(3))
    else:
        m = MONTH_FIRST_DATE.match(s)
        if m:
            month, day, year = _month(m.group(1)), int(m.group(2)), int(m.group(3))
        else:
            m = DAY_FIRST_DATE.match(s)
            if not m:
                return None
            month, day, year = _month(m.group(2)), int(m.group(1)), int(m.group(3))
    if month is None:
        return None
    try:
        return date(year, month, day).isoformat()
    except ValueError:
        return None


def _compile(patterns: Iterable[str]) -> Tuple[Pattern, ...]:
    return tuple(re.compile(p, re.IGNORECASE) for p in patterns)


@lru_cache(maxsize=None)
def _vocabulary(items: Tuple[Tuple[str, Tuple[str, ...]], ...]) -> Tuple[Tuple[str, Tuple[Pattern, ...]], ...]:
    return tuple((label, _compile(patterns)) for label, patterns in items)


def _freeze(vocab) -> Tuple[Tuple[str, Tuple[str, ...]], ...]:
    return tuple((label, tuple(patterns)) for label, patterns in vocab.items())


@lru_cache(maxsize=None)
def _drop_list(extra: Tuple[str, ...]) -> Tuple[Pattern, ...]:
    return _compile(list(COMMON_DROP) + list(extra))


def _match_label(text: str, vocab) -> Optional[str]:
    for label, patterns in vocab:
        if any(p.match(text) for p in patterns):
            return label
    return None


class TokenClassifier:
    """Per-game classifier; compiled patterns are cached across instances."""

    def __init__(self, game: GameConfig):
        self.game = game
        self.drop = _drop_list(tuple(game.drop))
        self.sessions = _vocabulary(_freeze(game.sessions))
        self.tags = _vocabulary(_freeze(game.tags))
        self.low, self.high = game.number_range

    def is_boilerplate(self, text: str) -> bool:
        return any(p.search(text) for p in self.drop)

    def kind_of(self, text: str) -> Tuple[TokenKind, object]:
        iso = to_iso(text)
        if iso:
            return TokenKind.DATE, iso
        label = _match_label(text, self.sessions)
        if label:
            return TokenKind.SESSION, label
        label = _match_label(text, self.tags)
        if label:
            return TokenKind.TAG, label
        if VALUE_RE.match(text):
            n = int(text)
            if self.low <= n <= self.high:
                return TokenKind.VALUE, n
        return TokenKind.NOISE, None

    def classify(self, raw: RawToken) -> Optional[PositionedToken]:
        text = normalize_text(raw.text)
        if not text or self.is_boilerplate(text):
            return None
        kind, canonical = self.kind_of(text)
        return PositionedToken(
            text=text,
            x=float(raw.x),
            y=float(raw.y),
            page=int(raw.page),
            kind=kind,
            canonical=canonical,
        )


def classify_token(raw: RawToken, game: GameConfig) -> Optional[PositionedToken]:
    """Classify one token; None means it was boilerplate and is discarded."""
    return TokenClassifier(game).classify(raw)


def classify_tokens(raws: Sequence[RawToken], game: GameConfig) -> List[PositionedToken]:
    classifier = TokenClassifier(game)
    out = []
    for raw in raws:
        if not isinstance(raw, RawToken):
            raw = RawToken(*raw)
        token = classifier.classify(raw)
        if token is not None:
            out.append(token)
    return out
