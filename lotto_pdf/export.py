"""
Serializers for parsed draws: the game JSON document served by the API,
canonical CSV files and the raw token dump used to debug layout changes.
"""

import csv
import json
import os
from datetime import datetime
from typing import Iterable, List, Optional, Sequence

from lotto_pdf.config import SPECIAL_BLANK, SPECIAL_LAST, GameConfig
from lotto_pdf.merge import series_records
from lotto_pdf.models import DrawRecord


def create_game_json(records: Sequence[DrawRecord], game: GameConfig) -> dict:
    """Create the JSON structure for a game (latest draw first)."""
    draws = [r.to_dict() for r in reversed(series_records(records, game))]
    doc = {
        "game": game.game_id,
        "game_name": game.name,
        "state": game.state,
        "numbers_count": game.numbers_count,
        "draw_times": game.draw_times,
        "last_updated": datetime.now().isoformat() + "Z",
        "total_draws": len(draws),
        "draws": draws,
    }
    if game.special:
        doc[f"has_{game.special}"] = True
    return doc


def write_json(records: Sequence[DrawRecord], game: GameConfig, output_file: str) -> str:
    os.makedirs(os.path.dirname(os.path.abspath(output_file)), exist_ok=True)
    with open(output_file, "w") as f:
        json.dump(create_game_json(records, game), f, indent=2)
    return output_file


def csv_header(game: GameConfig) -> List[str]:
    """draw_date, num1..numN in print order, then an optional special column."""
    mains = game.numbers_count - 1 if game.special_column == SPECIAL_LAST else game.numbers_count
    header = ["draw_date"] + [f"num{i}" for i in range(1, mains + 1)]
    if game.special_column:
        header.append("special")
    if game.tags and game.tag_in_key:
        header.append("tag")
    return header


def csv_rows(records: Iterable[DrawRecord], game: GameConfig) -> List[list]:
    rows = []
    for r in records:
        row = [r.date.isoformat()] + list(r.values)
        if game.special_column == SPECIAL_BLANK:
            row.append("")
        if game.tags and game.tag_in_key:
            row.append(r.tag or "")
        rows.append(row)
    return rows


def write_csv(records: Iterable[DrawRecord], game: GameConfig, output_file: str,
              session: Optional[str] = None) -> int:
    """Write one CSV; session games get one file per session."""
    records = series_records(records, game)
    if session is not None:
        records = [r for r in records if r.session == session]
    rows = csv_rows(records, game)
    os.makedirs(os.path.dirname(os.path.abspath(output_file)), exist_ok=True)
    with open(output_file, "w", newline="") as f:
        writer = csv.writer(f, lineterminator="\n")
        writer.writerow(csv_header(game))
        writer.writerows(rows)
    return len(rows)


def write_token_dump(token_rows: Iterable[dict], output_file: str) -> str:
    """Flat page,x,y,kind,text table of every classified token."""
    os.makedirs(os.path.dirname(os.path.abspath(output_file)), exist_ok=True)
    with open(output_file, "w", newline="") as f:
        writer = csv.DictWriter(f, fieldnames=["page", "x", "y", "kind", "text"], lineterminator="\n")
        writer.writeheader()
        writer.writerows(token_rows)
    return output_file
