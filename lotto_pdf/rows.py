"""
Row assembly.

A row is anchored on a date (or on a session marker that sits beside a date)
and completed with the value printed closest to the anchor's baseline in
every value column. Rows missing any value are dropped.
"""

import logging
from datetime import date
from typing import List, Optional, Sequence, Tuple

from lotto_pdf.config import GameConfig, SESSION_HEADER
from lotto_pdf.models import Column, DrawRecord, Pane, PositionedToken, TokenKind

logger = logging.getLogger(__name__)


def closest(
    tokens: Sequence[PositionedToken],
    y: float,
    tolerance: float,
    left_of: Optional[float] = None,
    right_of: Optional[float] = None,
) -> Optional[PositionedToken]:
    """Token with the smallest |dy| within tolerance (first one on ties)."""
    best, best_dy = None, None
    for t in tokens:
        if left_of is not None and t.x >= left_of:
            continue
        if right_of is not None and t.x <= right_of:
            continue
        dy = abs(t.y - y)
        if dy > tolerance:
            continue
        if best is None or dy < best_dy:
            best, best_dy = t, dy
    return best


def row_values(columns: Sequence[Column], y: float, tolerance: float) -> Optional[Tuple[int, ...]]:
    values = []
    for col in columns:
        hit = closest(col.of_kind(TokenKind.VALUE), y, tolerance)
        if hit is None:
            return None
        values.append(hit.canonical)
    return tuple(values)


def row_tag(pane: Pane, y: float, tolerance: float) -> Optional[str]:
    if pane.tag_column is None:
        return None
    hit = closest(pane.tag_column.of_kind(TokenKind.TAG), y, tolerance)
    return hit.canonical if hit else None


def _date_anchored(pane: Pane, game: GameConfig, tolerance: float) -> List[DrawRecord]:
    if pane.date_column is None or len(pane.value_columns) < game.numbers_count:
        return []
    records = []
    for anchor in pane.date_column.of_kind(TokenKind.DATE):
        values = row_values(pane.value_columns, anchor.y, tolerance)
        if values is None:
            continue
        records.append(
            DrawRecord(
                date=date.fromisoformat(anchor.canonical),
                values=values,
                tag=row_tag(pane, anchor.y, tolerance),
            )
        )
    return records


def date_left_of(pane: Pane, anchor: PositionedToken, tolerance: float) -> Optional[PositionedToken]:
    """Closest date on the anchor's baseline, searching date columns nearest first."""
    cols = pane.date_columns or ([pane.date_column] if pane.date_column else [])
    for col in sorted(cols, key=lambda c: -c.center_x):
        if col.center_x >= anchor.x:
            continue
        hit = closest(col.of_kind(TokenKind.DATE), anchor.y, tolerance, left_of=anchor.x)
        if hit is not None:
            return hit
    return None


def _session_anchored(pane: Pane, game: GameConfig, tolerance: float) -> List[DrawRecord]:
    if pane.session_column is None or (pane.date_column is None and not pane.date_columns):
        return []
    if len(pane.value_columns) < game.numbers_count:
        return []
    records = []
    for anchor in pane.session_column.of_kind(TokenKind.SESSION):
        day = date_left_of(pane, anchor, tolerance)
        if day is None:
            continue
        values = row_values(pane.value_columns, anchor.y, tolerance)
        if values is None:
            continue
        records.append(
            DrawRecord(
                date=date.fromisoformat(day.canonical),
                values=values,
                session=anchor.canonical,
                tag=row_tag(pane, anchor.y, tolerance),
            )
        )
    return records


def header_columns(pane: Pane, game: GameConfig) -> List[Tuple[str, Column]]:
    """Map each session header to the value column printed beneath it."""
    cols = sorted(pane.value_columns, key=lambda c: c.center_x)
    if not cols:
        return []
    mapped = {}
    for header in sorted(pane.headers, key=lambda t: (-t.y, t.x)):
        if header.canonical in mapped:
            continue
        mapped[header.canonical] = min(cols, key=lambda c: (abs(c.center_x - header.x), c.center_x))

    sessions = list(game.sessions)
    if len(mapped) < len(sessions) and len(cols) >= len(sessions):
        # Later pages often omit the header row
        for session, col in zip(sessions, cols[-len(sessions):]):
            mapped.setdefault(session, col)
    return [(s, mapped[s]) for s in sessions if s in mapped]


def _header_sessions(pane: Pane, game: GameConfig, tolerance: float) -> List[DrawRecord]:
    if pane.date_column is None:
        return []
    targets = header_columns(pane, game)
    records = []
    for anchor in pane.date_column.of_kind(TokenKind.DATE):
        day = date.fromisoformat(anchor.canonical)
        for session, col in targets:
            hit = closest(col.of_kind(TokenKind.VALUE), anchor.y, tolerance, right_of=anchor.x)
            if hit is None:
                continue
            records.append(DrawRecord(date=day, values=(hit.canonical,), session=session))
    return records


def assemble_rows(pane: Pane, game: GameConfig, tolerance: float) -> List[DrawRecord]:
    """Candidate records for one pane, before cross-page deduplication."""
    if not game.has_sessions:
        records = _date_anchored(pane, game, tolerance)
    elif game.session_layout == SESSION_HEADER:
        records = _header_sessions(pane, game, tolerance)
    else:
        records = _session_anchored(pane, game, tolerance)
    logger.debug("pane assembled %d rows (tolerance %.1f)", len(records), tolerance)
    return records
