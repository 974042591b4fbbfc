"""
Game registry and layout heuristics for the bulletin parser.

Each entry in GAMES describes one "Winning Numbers History" PDF: how many
numbers a draw has, their numeric domain, the session and tag vocabularies
and the boilerplate that is printed on every page.
"""

import os
import re
from dataclasses import dataclass, field, replace
from datetime import date
from typing import Dict, List, Optional, Tuple

from lotto_pdf.errors import UnknownGameError

HTTP_TIMEOUT = float(os.getenv("LOTTO_PDF_HTTP_TIMEOUT", "20"))
PDF_RETRIES = int(os.getenv("LOTTO_PDF_RETRIES", "2"))
DEBUG = os.getenv("LOTTO_PDF_DEBUG", "").strip() != ""
DATA_DIR = os.getenv(
    "LOTTO_PDF_DATA_DIR",
    os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "data"),
)

# Two digit years at or above the pivot belong to the 1900s
CENTURY_PIVOT = 80

SESSION_INLINE = "inline"
SESSION_HEADER = "header"

# How the canonical CSV fills its "special" column
SPECIAL_LAST = "last"
SPECIAL_BLANK = "blank"


@dataclass(frozen=True)
class LayoutHeuristics:
    """Numeric thresholds shared by every stage of the layout pipeline."""

    column_gap_fraction: float = 0.6
    column_eps_min: float = 6.0
    column_eps_max: float = 14.0
    default_column_gap: float = 18.0

    tolerance_fraction: float = 0.3
    tolerance_min: float = 7.0
    tolerance_max: float = 14.0
    default_pitch: float = 13.0
    pitch_noise_floor: float = 2.0

    pane_gap_min: float = 40.0
    pane_min_value_columns: Optional[int] = None

    def with_overrides(self, **overrides) -> "LayoutHeuristics":
        return replace(self, **overrides)


@dataclass(frozen=True)
class GameConfig:
    game_id: str
    name: str
    numbers_count: int
    number_range: Tuple[int, int]
    state: str = "florida"
    sessions: Dict[str, List[str]] = field(default_factory=dict)
    session_layout: str = SESSION_INLINE
    tags: Dict[str, List[str]] = field(default_factory=dict)
    tag_priority: Optional[List[Optional[str]]] = None
    tag_in_key: bool = False
    special: Optional[str] = None
    csv_special: Optional[str] = None
    exclude_tags: Tuple[str, ...] = ()
    era_start: Optional[date] = None
    drop: List[str] = field(default_factory=list)
    pdf_url: Optional[str] = None
    game_page_url: Optional[str] = None
    heuristics: LayoutHeuristics = field(default_factory=LayoutHeuristics)

    @property
    def has_sessions(self) -> bool:
        return bool(self.sessions)

    @property
    def draw_times(self) -> List[str]:
        return list(self.sessions) or ["evening"]

    @property
    def special_column(self) -> Optional[str]:
        """SPECIAL_LAST, SPECIAL_BLANK or None (no special column)."""
        if self.csv_special is not None:
            return self.csv_special
        return SPECIAL_LAST if self.special else None

    @property
    def min_value_columns(self) -> int:
        if self.heuristics.pane_min_value_columns is not None:
            return self.heuristics.pane_min_value_columns
        return self.numbers_count + 2

    def ranked_tags(self) -> List[Optional[str]]:
        """Tags from highest to lowest priority; None is the untagged row."""
        if self.tag_priority is not None:
            return list(self.tag_priority)
        return list(self.tags) + [None]

    def session_order(self, session: Optional[str]) -> int:
        if session is None:
            return -1
        names = list(self.sessions)
        return names.index(session) if session in names else len(names)

    @classmethod
    def from_dict(cls, game_id: str, data: dict) -> "GameConfig":
        low, high = data["number_range"]
        heuristics = LayoutHeuristics().with_overrides(**data.get("heuristics", {}))
        layout = data.get("session_layout", SESSION_INLINE)
        era_start = data.get("era_start")
        if layout == SESSION_HEADER and data["numbers_count"] != 1:
            raise ValueError(f"{game_id}: header sessions need numbers_count == 1")
        return cls(
            game_id=game_id,
            name=data["name"],
            state=data.get("state", "florida"),
            numbers_count=data["numbers_count"],
            number_range=(int(low), int(high)),
            sessions={k: list(v) for k, v in data.get("sessions", {}).items()},
            session_layout=layout,
            tags={k: list(v) for k, v in data.get("tags", {}).items()},
            tag_priority=data.get("tag_priority"),
            tag_in_key=data.get("tag_in_key", False),
            special=data.get("special"),
            csv_special=data.get("csv_special"),
            exclude_tags=tuple(data.get("exclude_tags", ())),
            era_start=date.fromisoformat(era_start) if era_start else None,
            drop=list(data.get("drop", [])),
            pdf_url=data.get("pdf_url"),
            game_page_url=data.get("game_page_url"),
            heuristics=heuristics,
        )


# Printed on every Florida bulletin page
COMMON_DROP = [
    r"^FLORIDA\s+LOTTERY\b",
    r"^Winning Numbers History$",
    r"^Page \d+ of \d+$",
    r"^Please note every effort",
    r"^Last Queried:",
    r"^GMT-?\d{2}:\d{2}$",
    r"^-+$",
    r"^X(?:[2-9]|10)$",
]

MIDDAY_EVENING = {
    "midday": [r"^M\s*:?$", r"^MIDDAY$"],
    "evening": [r"^E\s*:?$", r"^EVENING$"],
}

GAMES = {
    "florida-lotto": {
        "name": "Florida Lotto",
        "state": "florida",
        "numbers_count": 6,
        "number_range": (1, 53),
        "tags": {
            "LOTTO DP": [r"^LOTTO\s*DP$"],
            "LOTTO": [r"^LOTTO$"],
        },
        "tag_priority": ["LOTTO", None, "LOTTO DP"],
        # Double Play is its own series; the 6th main is written as "special"
        "exclude_tags": ["LOTTO DP"],
        "era_start": "1999-10-24",
        "csv_special": SPECIAL_LAST,
        "pdf_url": "https://files.floridalottery.com/exptkt/l6.pdf",
        "game_page_url": "https://floridalottery.com/games/draw-games/florida-lotto",
    },
    "fantasy-5": {
        "name": "Fantasy 5",
        "state": "florida",
        "numbers_count": 5,
        "number_range": (1, 36),
        "sessions": MIDDAY_EVENING,
        "drop": [r"^FANTASY\s*5$"],
        "csv_special": SPECIAL_BLANK,
        "heuristics": {"tolerance_fraction": 0.32},
        "pdf_url": "https://files.floridalottery.com/exptkt/ff.pdf",
        "game_page_url": "https://floridalottery.com/games/draw-games/fantasy5",
    },
    "cash-pop": {
        "name": "Cash Pop",
        "state": "florida",
        "numbers_count": 1,
        "number_range": (1, 15),
        "sessions": {
            "morning": [r"^MORNING$"],
            "matinee": [r"^MATINEE$"],
            "afternoon": [r"^AFTERNOON$"],
            "evening": [r"^EVENING$"],
            "latenight": [r"^LATE\s*NIGHT$"],
        },
        "session_layout": SESSION_HEADER,
        "drop": [r"^CASH\s*POP$"],
        "heuristics": {"pane_gap_min": float("inf")},
        "pdf_url": "https://files.floridalottery.com/exptkt/cp.pdf",
        "game_page_url": "https://floridalottery.com/games/draw-games/cash-pop",
    },
    "cash4life": {
        "name": "Cash4Life",
        "state": "florida",
        "numbers_count": 6,
        "number_range": (1, 60),
        "special": "cashball",
        "drop": [r"^CASH\s*4\s*LIFE$", r"^CB$"],
        "pdf_url": "https://files.floridalottery.com/exptkt/c4l.pdf",
        "game_page_url": "https://floridalottery.com/games/draw-games/cash4life",
    },
    "powerball-double-play": {
        "name": "Powerball Double Play",
        "state": "florida",
        "numbers_count": 6,
        "number_range": (1, 69),
        "special": "powerball",
        "tags": {
            "POWERBALL": [r"^POWERBALL$"],
            "POWERBALL DP": [r"^POWERBALL\s*DP$"],
        },
        "tag_in_key": True,
        "drop": [r"^PB$"],
        "pdf_url": "https://files.floridalottery.com/exptkt/pb.pdf",
        "game_page_url": "https://floridalottery.com/games/draw-games/powerball",
    },
}

for _digits in (2, 3, 4, 5):
    GAMES[f"pick-{_digits}"] = {
        "name": f"Pick {_digits}",
        "state": "florida",
        "numbers_count": _digits,
        "number_range": (0, 9),
        "sessions": MIDDAY_EVENING,
        "drop": [rf"^PICK\s*{_digits}$", r"^FB\s*\d*$"],
        "pdf_url": f"https://files.floridalottery.com/exptkt/p{_digits}.pdf",
        "game_page_url": f"https://floridalottery.com/games/draw-games/pick-{_digits}",
    }


def _slug(text: str) -> str:
    return re.sub(r"[\s_\-]+", "", text.lower())


def get_game(game_input: str) -> GameConfig:
    """Resolve 'Fantasy 5', 'fantasy5' or 'fantasy-5' to its GameConfig."""
    g = _slug(game_input)
    for game_id, data in GAMES.items():
        if g in (_slug(game_id), _slug(data["name"])):
            return GameConfig.from_dict(game_id, data)
    if g == "lotto":
        return GameConfig.from_dict("florida-lotto", GAMES["florida-lotto"])
    raise UnknownGameError(f"Unknown game: {game_input!r} (known: {', '.join(GAMES)})")
