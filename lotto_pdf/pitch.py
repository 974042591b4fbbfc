from typing import Optional, Sequence

from lotto_pdf.columns import clamp, median
from lotto_pdf.config import LayoutHeuristics
from lotto_pdf.models import Column, Pane


def estimate_pitch(ys: Sequence[float], heuristics: LayoutHeuristics) -> float:
    """Median vertical distance between consecutive anchor rows."""
    ordered = sorted(ys, reverse=True)
    diffs = [a - b for a, b in zip(ordered, ordered[1:])]
    diffs = [d for d in diffs if d > heuristics.pitch_noise_floor]
    return median(diffs) if diffs else heuristics.default_pitch


def row_tolerance(pitch: float, heuristics: LayoutHeuristics) -> float:
    return clamp(
        heuristics.tolerance_fraction * pitch,
        heuristics.tolerance_min,
        heuristics.tolerance_max,
    )


def anchor_column(pane: Pane, inline_sessions: bool) -> Optional[Column]:
    if inline_sessions and pane.session_column is not None:
        return pane.session_column
    return pane.date_column


def pane_tolerance(pane: Pane, inline_sessions: bool, heuristics: LayoutHeuristics):
    """Return (pitch, tolerance) for one pane."""
    col = anchor_column(pane, inline_sessions)
    ys = [t.y for t in col.of_kind(col.kind)] if col is not None else []
    pitch = estimate_pitch(ys, heuristics)
    return pitch, row_tolerance(pitch, heuristics)
