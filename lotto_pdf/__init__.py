"""Rebuild lottery draw history from state "Winning Numbers History" PDFs."""

from lotto_pdf.config import GAMES, GameConfig, LayoutHeuristics, get_game
from lotto_pdf.errors import LottoPdfError, NoRowsError, SourceError, UnknownGameError
from lotto_pdf.models import DrawRecord, PositionedToken, RawToken, TokenKind
from lotto_pdf.pipeline import ParseTrace, PageReport, parse_pdf, parse_tokens

__version__ = "1.0.0"

__all__ = [
    "GAMES",
    "DrawRecord",
    "GameConfig",
    "LayoutHeuristics",
    "LottoPdfError",
    "NoRowsError",
    "PageReport",
    "ParseTrace",
    "PositionedToken",
    "RawToken",
    "SourceError",
    "TokenKind",
    "UnknownGameError",
    "get_game",
    "parse_pdf",
    "parse_tokens",
]
