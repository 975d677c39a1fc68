# core/models.py
import datetime
import enum
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, Iterable, Iterator, List, Optional


class LookupStatus(enum.Enum):
    PENDING = "pending"
    RESOLVED = "resolved"
    NOT_FOUND = "not_found"
    PARSE_ERROR = "parse_error"


@dataclass
class GameEntry:
    """
    A single wishlisted game and the outcome of its price lookup.
    The best price is only ever set together with the RESOLVED status.
    """
    game_id: int
    name: str
    best_price: Optional[Decimal] = None
    status: LookupStatus = LookupStatus.PENDING
    reason: str = ""
    details: Dict[str, Any] = field(default_factory=dict, repr=False)

    def __post_init__(self):
        if (self.best_price is not None) != (self.status is LookupStatus.RESOLVED):
            raise ValueError(
                f"best_price must be set iff status is RESOLVED "
                f"(got price={self.best_price!r}, status={self.status.name})"
            )

    def resolve(self, price: Decimal) -> None:
        self.best_price = price
        self.status = LookupStatus.RESOLVED
        self.reason = ""

    def fail(self, status: LookupStatus, reason: str) -> None:
        if status not in (LookupStatus.NOT_FOUND, LookupStatus.PARSE_ERROR):
            raise ValueError(f"{status.name} is not a failure status")
        self.best_price = None
        self.status = status
        self.reason = reason

    @property
    def resolved(self) -> bool:
        return self.status is LookupStatus.RESOLVED


class WishlistBatch:
    """Ordered collection of GameEntry values, unique on game_id."""

    def __init__(self, entries: Iterable[GameEntry] = ()):
        self._entries: List[GameEntry] = []
        self._ids: set[int] = set()
        for entry in entries:
            self.add(entry)

    def add(self, entry: GameEntry) -> None:
        if entry.game_id in self._ids:
            raise ValueError(f"Duplicate game id {entry.game_id}")
        self._ids.add(entry.game_id)
        self._entries.append(entry)

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[GameEntry]:
        return iter(self._entries)

    def __getitem__(self, index: int) -> GameEntry:
        return self._entries[index]

    def __repr__(self) -> str:
        return f"WishlistBatch({len(self._entries)} entries)"


@dataclass
class ReportRow:
    name: str
    price: Optional[Decimal]


@dataclass
class Failure:
    name: str
    status: LookupStatus
    reason: str


@dataclass
class Report:
    rows: List[ReportRow]
    failures: List[Failure]
    generated_at: datetime.datetime

    @property
    def skipped(self) -> int:
        return len(self.failures)
