"""Data models for stock tracking."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

# Evidence phrases kept on a product/check for display
MAX_EVIDENCE_PHRASES = 5


class StockStatus(str, Enum):
    """Stock status of a tracked product."""

    CHECKING = "checking"
    IN_STOCK = "in-stock"
    OUT_OF_STOCK = "out-of-stock"
    ERROR = "error"

    @property
    def is_terminal(self) -> bool:
        return self is not StockStatus.CHECKING


class Confidence(str, Enum):
    """Strength of a classification verdict."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


@dataclass
class TrackedProduct:
    """Product page being watched for restocks."""

    id: int
    name: str
    brand: str
    url: str
    created_at: datetime
    status: StockStatus = StockStatus.CHECKING
    confidence: Confidence | None = None
    evidence_phrases: list[str] = field(default_factory=list)
    last_checked_at: datetime | None = None


@dataclass(frozen=True)
class CheckRecord:
    """Historical check result for storage."""

    product_id: int
    status: StockStatus
    confidence: Confidence | None
    evidence_phrases: tuple[str, ...]
    checked_at: datetime


@dataclass(frozen=True)
class ClassificationResult:
    """Verdict produced by the stock classifier."""

    is_in_stock: bool
    confidence: Confidence
    evidence_phrases: tuple[str, ...]

    @property
    def status(self) -> StockStatus:
        return StockStatus.IN_STOCK if self.is_in_stock else StockStatus.OUT_OF_STOCK


@dataclass(frozen=True)
class RestockEvent:
    """Out-of-stock to in-stock transition, sent to notifiers."""

    product_id: int
    name: str
    brand: str
    url: str


@dataclass
class SweepSummary:
    """Outcome of one pass over every tracked product."""

    total: int = 0
    in_stock: int = 0
    out_of_stock: int = 0
    errors: int = 0
    failed_ids: list[int] = field(default_factory=list)
    aborted: bool = False

    def record(self, status: StockStatus) -> None:
        if status is StockStatus.IN_STOCK:
            self.in_stock += 1
        elif status is StockStatus.OUT_OF_STOCK:
            self.out_of_stock += 1
        else:
            self.errors += 1
