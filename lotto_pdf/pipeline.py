"""
Layout reconstruction pipeline.

    raw tokens -> classify -> (per page) columns -> panes
               -> (per pane) pitch/tolerance -> rows -> merge

Everything is a pure function of the token stream and the game config, so
pages can be processed on a thread pool and re-running gives the same
result.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from lotto_pdf.columns import cluster_columns
from lotto_pdf.config import GameConfig, SESSION_INLINE
from lotto_pdf.errors import NoRowsError
from lotto_pdf.merge import merge_records
from lotto_pdf.models import DrawRecord, PositionedToken, RawToken, TokenKind
from lotto_pdf.panes import split_panes
from lotto_pdf.pitch import pane_tolerance
from lotto_pdf.rows import assemble_rows
from lotto_pdf.tokens import classify_tokens

logger = logging.getLogger(__name__)


@dataclass
class PageReport:
    page: int
    tokens: int = 0
    columns: List[Tuple[float, str, int]] = field(default_factory=list)
    panes: int = 0
    pitches: List[float] = field(default_factory=list)
    tolerances: List[float] = field(default_factory=list)
    rows: int = 0

    def summary(self) -> str:
        kinds = {}
        for _, kind, _ in self.columns:
            kinds[kind] = kinds.get(kind, 0) + 1
        tol = ", ".join(f"{t:.1f}" for t in self.tolerances) or "-"
        return (
            f"page {self.page}: tokens={self.tokens} columns={kinds} "
            f"panes={self.panes} tolerance=[{tol}] rows={self.rows}"
        )


@dataclass
class ParseTrace:
    """Classified token table and per-page layout reports of one run."""

    tokens: List[PositionedToken] = field(default_factory=list)
    pages: List[PageReport] = field(default_factory=list)

    def token_rows(self) -> List[dict]:
        ordered = sorted(self.tokens, key=lambda t: (t.page, t.x, -t.y))
        return [
            {"page": t.page, "x": round(t.x), "y": round(t.y), "kind": t.kind.value, "text": t.text}
            for t in ordered
        ]


def process_page(page: int, tokens: List[PositionedToken], game: GameConfig) -> Tuple[List[DrawRecord], PageReport]:
    """Columns -> panes -> rows for the classified tokens of one page."""
    report = PageReport(page=page, tokens=len(tokens))
    columns = cluster_columns(tokens, game.heuristics)
    report.columns = [(c.center_x, c.kind.value, len(c.items)) for c in columns]

    panes = split_panes(columns, game)
    report.panes = len(panes)
    inline = game.has_sessions and game.session_layout == SESSION_INLINE

    records: List[DrawRecord] = []
    for pane in panes:
        pitch, tolerance = pane_tolerance(pane, inline, game.heuristics)
        report.pitches.append(pitch)
        report.tolerances.append(tolerance)
        records.extend(assemble_rows(pane, game, tolerance))

    report.rows = len(records)
    logger.debug(report.summary())
    return records, report


def group_by_page(tokens: Iterable[PositionedToken]) -> Dict[int, List[PositionedToken]]:
    pages: Dict[int, List[PositionedToken]] = {}
    for t in tokens:
        pages.setdefault(t.page, []).append(t)
    return dict(sorted(pages.items()))


def parse_tokens(
    raw_tokens: Iterable[RawToken],
    game: GameConfig,
    on_trace: Optional[Callable[[ParseTrace], None]] = None,
    max_workers: int = 1,
) -> List[DrawRecord]:
    """Rebuild draw records from positioned text runs.

    Raises NoRowsError (with the trace attached) when nothing is recovered.
    """
    classified = classify_tokens(list(raw_tokens), game)
    trace = ParseTrace(tokens=classified)
    pages = group_by_page(t for t in classified if t.kind is not TokenKind.NOISE)

    jobs = list(pages.items())
    if max_workers > 1 and len(jobs) > 1:
        with ThreadPoolExecutor(max_workers=max_workers) as pool:
            results = list(pool.map(lambda job: process_page(job[0], job[1], game), jobs))
    else:
        results = [process_page(p, toks, game) for p, toks in jobs]

    candidates: List[DrawRecord] = []
    for records, report in results:
        candidates.extend(records)
        trace.pages.append(report)

    merged = merge_records(candidates, game)
    logger.info(
        "%s: %d tokens, %d pages, %d candidate rows, %d draws",
        game.name, len(classified), len(pages), len(candidates), len(merged),
    )
    if on_trace is not None:
        on_trace(trace)
    if not merged:
        raise NoRowsError(
            f"No draw rows recovered for {game.name} from {len(classified)} tokens; "
            "the bulletin layout may have changed",
            trace=trace,
        )
    return merged


def parse_pdf(source, game: GameConfig, on_trace=None, max_workers: int = 1) -> List[DrawRecord]:
    """Extract tokens from a PDF (path, bytes or file object) and parse them."""
    from lotto_pdf.extract import extract_tokens

    return parse_tokens(extract_tokens(source), game, on_trace=on_trace, max_workers=max_workers)
