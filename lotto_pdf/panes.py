"""
Pane splitting.

Some bulletins print two independent tables side by side (regular draws on
the left, Double Play draws on the right). The value columns of such a page
fall into two groups separated by one wide gap; everything else is attached
to the closer group.
"""

import logging
from typing import List, Optional, Sequence

from lotto_pdf.config import GameConfig, SESSION_HEADER
from lotto_pdf.models import Column, Pane, TokenKind

logger = logging.getLogger(__name__)


def _mean_x(cols: Sequence[Column]) -> float:
    return sum(c.center_x for c in cols) / len(cols)


def split_value_columns(value_cols: Sequence[Column], min_columns: int, gap_min: float) -> List[List[Column]]:
    """Split sorted value columns at the single largest gap, if it is wide enough."""
    cols = sorted(value_cols, key=lambda c: c.center_x)
    if len(cols) < max(min_columns, 2):
        return [cols]

    gaps = [(cols[i + 1].center_x - cols[i].center_x, i) for i in range(len(cols) - 1)]
    widest, at = max(gaps, key=lambda g: (g[0], -g[1]))
    if widest < gap_min:
        return [cols]
    return [cols[: at + 1], cols[at + 1:]]


def _pick(candidates: List[Column], target_x: Optional[float]) -> Optional[Column]:
    """Most populated column; ties go to the one nearest the pane's values."""
    if not candidates:
        return None

    def score(c: Column):
        dist = abs(c.center_x - target_x) if target_x is not None else 0.0
        return (-len(c.items), dist, c.center_x)

    return min(candidates, key=score)


def split_panes(columns: Sequence[Column], game: GameConfig) -> List[Pane]:
    h = game.heuristics
    value_cols = [c for c in columns if c.kind is TokenKind.VALUE]
    others = [c for c in columns if c.kind in (TokenKind.DATE, TokenKind.SESSION, TokenKind.TAG)]

    groups = split_value_columns(value_cols, game.min_value_columns, h.pane_gap_min)
    groups = [g for g in groups if g] or [[]]
    means = [_mean_x(g) if g else None for g in groups]

    assigned: List[List[Column]] = [[] for _ in groups]
    for col in others:
        if len(groups) == 1 or means[0] is None:
            assigned[0].append(col)
            continue
        nearest = min(range(len(groups)), key=lambda i: (abs(col.center_x - means[i]), i))
        assigned[nearest].append(col)

    panes = []
    for group, mean, extra in zip(groups, means, assigned):
        dates = sorted((c for c in extra if c.kind is TokenKind.DATE), key=lambda c: c.center_x)
        pane = Pane(
            value_columns=group,
            date_column=_pick(dates, mean),
            date_columns=dates,
            session_column=_pick([c for c in extra if c.kind is TokenKind.SESSION], mean),
            tag_column=_pick([c for c in extra if c.kind is TokenKind.TAG], mean),
        )
        if game.session_layout == SESSION_HEADER:
            pane.headers = [t for c in group + extra for t in c.of_kind(TokenKind.SESSION)]
        else:
            pane.value_columns = group[: game.numbers_count]
        panes.append(pane)

    if len(panes) > 1:
        logger.debug(
            "split page into %d panes at x=%.0f/%.0f",
            len(panes),
            groups[0][-1].center_x,
            groups[1][0].center_x,
        )
    return panes
