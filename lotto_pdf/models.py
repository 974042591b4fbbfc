from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import List, NamedTuple, Optional, Tuple, Union


class TokenKind(str, Enum):
    DATE = "date"
    SESSION = "session"
    VALUE = "value"
    TAG = "tag"
    NOISE = "noise"


# Column kind tie-break: a mis-typed anchor costs more than a mis-typed value
KIND_PRIORITY = (
    TokenKind.DATE,
    TokenKind.SESSION,
    TokenKind.TAG,
    TokenKind.VALUE,
    TokenKind.NOISE,
)


class RawToken(NamedTuple):
    """A text run as produced by the extraction layer (y grows upward)."""

    text: str
    x: float
    y: float
    page: int


@dataclass(frozen=True)
class PositionedToken:
    text: str
    x: float
    y: float
    page: int
    kind: TokenKind
    # ISO date, session label, tag label or int, depending on kind
    canonical: Union[str, int, None] = None


@dataclass
class Column:
    center_x: float
    kind: TokenKind
    items: List[PositionedToken] = field(default_factory=list)

    def of_kind(self, kind: TokenKind) -> List[PositionedToken]:
        return [t for t in self.items if t.kind is kind]


@dataclass
class Pane:
    value_columns: List[Column] = field(default_factory=list)
    date_column: Optional[Column] = None
    session_column: Optional[Column] = None
    tag_column: Optional[Column] = None
    # Every DATE column attached to the pane, left to right
    date_columns: List[Column] = field(default_factory=list)
    # Session labels printed as column headers inside value columns
    headers: List[PositionedToken] = field(default_factory=list)

    @property
    def value_mean_x(self) -> Optional[float]:
        if not self.value_columns:
            return None
        return sum(c.center_x for c in self.value_columns) / len(self.value_columns)


@dataclass(frozen=True)
class DrawRecord:
    date: date
    values: Tuple[int, ...]
    session: Optional[str] = None
    tag: Optional[str] = None

    def to_dict(self) -> dict:
        row = {
            "date": self.date.isoformat(),
            "numbers": list(self.values),
        }
        if self.session is not None:
            row["draw_time"] = self.session
        if self.tag is not None:
            row["tag"] = self.tag
        return row
