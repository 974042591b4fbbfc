import logging
from collections import Counter
from typing import Dict, List, Sequence

from lotto_pdf.config import LayoutHeuristics
from lotto_pdf.models import KIND_PRIORITY, Column, PositionedToken, TokenKind

logger = logging.getLogger(__name__)


def median(nums: Sequence[float]) -> float:
    if not nums:
        return 0.0
    a = sorted(nums)
    m = len(a) // 2
    return float(a[m]) if len(a) % 2 else (a[m - 1] + a[m]) / 2


def clamp(v: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, v))


def column_epsilon(xs: Sequence[int], heuristics: LayoutHeuristics) -> float:
    """Grouping radius from the median gap between distinct x positions."""
    gaps = [b - a for a, b in zip(xs, xs[1:])]
    med_gap = median(gaps) if gaps else heuristics.default_column_gap
    return clamp(
        round(med_gap * heuristics.column_gap_fraction),
        heuristics.column_eps_min,
        heuristics.column_eps_max,
    )


def column_centers(tokens: Sequence[PositionedToken], heuristics: LayoutHeuristics) -> List[float]:
    xs = sorted({round(t.x) for t in tokens})
    if not xs:
        return []
    eps = column_epsilon(xs, heuristics)

    groups: List[List[int]] = []
    for x in xs:
        if not groups or x - groups[-1][-1] > eps:
            groups.append([x])
        else:
            groups[-1].append(x)
    return [sum(g) / len(g) for g in groups]


def column_kind(items: Sequence[PositionedToken]) -> TokenKind:
    """Majority kind; ties go to the kind earliest in KIND_PRIORITY."""
    counts = Counter(t.kind for t in items)
    if not counts:
        return TokenKind.NOISE
    return max(KIND_PRIORITY, key=lambda k: (counts.get(k, 0), -KIND_PRIORITY.index(k)))


def cluster_columns(tokens: Sequence[PositionedToken], heuristics: LayoutHeuristics) -> List[Column]:
    """Group one page's non-noise tokens into vertical columns, left to right."""
    tokens = [t for t in tokens if t.kind is not TokenKind.NOISE]
    centers = column_centers(tokens, heuristics)
    if not centers:
        return []

    members: Dict[int, List[PositionedToken]] = {}
    for t in tokens:
        best = min(range(len(centers)), key=lambda i: (abs(centers[i] - t.x), i))
        members.setdefault(best, []).append(t)

    columns = []
    for i in sorted(members):
        items = sorted(members[i], key=lambda t: (-t.y, t.x))
        columns.append(Column(center_x=centers[i], kind=column_kind(items), items=items))

    logger.debug(
        "clustered %d tokens into %d columns: %s",
        len(tokens),
        len(columns),
        ", ".join(f"{c.kind.value}@{c.center_x:.0f}" for c in columns),
    )
    return columns
