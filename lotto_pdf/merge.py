import logging
from typing import Dict, Iterable, List, Optional, Tuple

from lotto_pdf.config import GameConfig
from lotto_pdf.models import DrawRecord

logger = logging.getLogger(__name__)


def merge_key(record: DrawRecord, game: GameConfig) -> Tuple:
    key = (record.date,)
    if game.has_sessions:
        key += (record.session,)
    if game.tag_in_key:
        key += (record.tag,)
    return key


def tag_rank(tag: Optional[str], game: GameConfig) -> int:
    """Higher is better; tags missing from the priority list rank lowest."""
    ranked = game.ranked_tags()
    if tag in ranked:
        return len(ranked) - ranked.index(tag)
    return 0


def merge_records(records: Iterable[DrawRecord], game: GameConfig) -> List[DrawRecord]:
    """Collapse duplicates to one record per MergeKey, ordered by date and session."""
    kept: Dict[Tuple, DrawRecord] = {}
    dupes = 0
    for rec in records:
        key = merge_key(rec, game)
        prev = kept.get(key)
        if prev is None:
            kept[key] = rec
            continue
        dupes += 1
        if tag_rank(rec.tag, game) > tag_rank(prev.tag, game):
            kept[key] = rec

    if dupes:
        logger.debug("merged %d duplicate rows into %d records", dupes, len(kept))
    return sorted(
        kept.values(),
        key=lambda r: (r.date, game.session_order(r.session), r.tag or ""),
    )


def series_records(records: Iterable[DrawRecord], game: GameConfig) -> List[DrawRecord]:
    """Records that belong to the game's published series.

    Drops rows carrying an excluded tag (Double Play printed beside the main
    draw) and draws older than the game's era start.
    """
    out = []
    for rec in records:
        if rec.tag is not None and rec.tag in game.exclude_tags:
            continue
        if game.era_start is not None and rec.date < game.era_start:
            continue
        out.append(rec)
    return out
