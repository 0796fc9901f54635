from dataclasses import dataclass, field
from datetime import datetime
from types import MappingProxyType
from typing import Dict, Mapping, Tuple

INCOME = "income"
EXPENSE = "expense"

LIVE = "live"
FALLBACK = "fallback"

EXPENSE_CATEGORIES: Tuple[str, ...] = (
    "Food", "Transport", "Rent", "Utilities", "Entertainment", "Shopping", "Health", "Other",
)
INCOME_CATEGORIES: Tuple[str, ...] = ("Salary", "Freelance", "Investment", "Other")

CATEGORIES: Dict[str, Tuple[str, ...]] = {
    INCOME: INCOME_CATEGORIES,
    EXPENSE: EXPENSE_CATEGORIES,
}


@dataclass(frozen=True)
class Transaction:
    id: int
    description: str
    amount: float       # always > 0, sign comes from kind
    kind: str           # "income" or "expense"
    category: str
    created_at: datetime


@dataclass(frozen=True)
class HistoryEntry:
    tool: str
    expression: str
    result: str
    timestamp: datetime


@dataclass(frozen=True)
class LedgerSummary:
    total_income: float
    total_expense: float
    balance: float
    category_breakdown: Mapping[str, float] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "category_breakdown", MappingProxyType(dict(self.category_breakdown)))


@dataclass(frozen=True)
class ChartSlice:
    label: str
    value: float
    share: float    # fraction of total expense, 0..1
    color: str


@dataclass(frozen=True)
class AgeResult:
    years: int
    months: int
    days: int


@dataclass(frozen=True)
class BmiResult:
    value: float
    category: str


@dataclass(frozen=True)
class InterestResult:
    interest: float
    total: float


@dataclass(frozen=True)
class InvestmentResult:
    invested: float
    total: float

    @property
    def gains(self) -> float:
        return self.total - self.invested


@dataclass(frozen=True)
class DiscountResult:
    saved: float
    final: float


@dataclass(frozen=True)
class ImagePayload:
    mime_type: str
    data: str   # base64


@dataclass(frozen=True)
class SolveOutcome:
    text: str
    solved: bool
    superseded: bool = False

