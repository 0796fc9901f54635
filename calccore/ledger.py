import logging
import math
import time
from datetime import datetime
from functools import reduce
from typing import Callable, Dict, Tuple

from calccore.domain import CATEGORIES, EXPENSE, INCOME, ChartSlice, LedgerSummary, Transaction
from calccore.errors import ValidationError
from calccore.functional import Either, Left, Maybe, Nothing, Right, Some

logger = logging.getLogger(__name__)

CHART_COLORS: Tuple[str, ...] = (
    "#EF4444", "#F59E0B", "#10B981", "#3B82F6", "#6366F1", "#8B5CF6", "#EC4899", "#64748B",
)


def validate_transaction(description: str, amount: float, kind: str, category: str) -> Either[dict, dict]:
    if not description or not description.strip():
        return Left({
            "error": "empty_description",
            "message": "Description must not be empty",
            "field": "description",
        })
    if isinstance(amount, bool) or not isinstance(amount, (int, float)) \
            or not math.isfinite(amount) or amount <= 0:
        return Left({
            "error": "not_positive",
            "message": f"Amount must be a positive number, got {amount!r}",
            "field": "amount",
            "value": amount,
        })
    if kind not in CATEGORIES:
        return Left({
            "error": "invalid_kind",
            "message": f"Kind must be 'income' or 'expense', got {kind!r}",
            "field": "kind",
        })
    if category not in CATEGORIES[kind]:
        return Left({
            "error": "invalid_category",
            "message": f"{category!r} is not a valid {kind} category",
            "field": "category",
            "allowed": list(CATEGORIES[kind]),
        })
    return Right({
        "description": description.strip(),
        "amount": float(amount),
        "kind": kind,
        "category": category,
    })


def add_transaction(trans: Tuple[Transaction, ...], t: Transaction) -> Tuple[Transaction, ...]:
    # newest first
    return (t,) + trans


def remove_transaction(trans: Tuple[Transaction, ...], tx_id: int) -> Tuple[Transaction, ...]:
    return tuple(t for t in trans if t.id != tx_id)


def income_transactions(trans: Tuple[Transaction, ...]) -> Tuple[Transaction, ...]:
    return tuple(filter(lambda t: t.kind == INCOME, trans))


def expense_transactions(trans: Tuple[Transaction, ...]) -> Tuple[Transaction, ...]:
    return tuple(filter(lambda t: t.kind == EXPENSE, trans))


def category_breakdown(trans: Tuple[Transaction, ...]) -> Dict[str, float]:
    totals: Dict[str, float] = {}
    for t in expense_transactions(trans):
        totals[t.category] = totals.get(t.category, 0.0) + t.amount
    return totals


def summarize(trans: Tuple[Transaction, ...]) -> LedgerSummary:
    """Full recomputation over the collection, never patched incrementally."""
    total_income = reduce(lambda acc, t: acc + t.amount, income_transactions(trans), 0.0)
    breakdown = category_breakdown(trans)
    # summing the breakdown keeps sum(breakdown.values()) == total_expense exactly
    total_expense = sum(breakdown.values(), 0.0)
    return LedgerSummary(
        total_income=total_income,
        total_expense=total_expense,
        balance=total_income - total_expense,
        category_breakdown=breakdown,
    )


def chart_breakdown(summary: LedgerSummary) -> Tuple[ChartSlice, ...]:
    """Expense slices, largest first, colored by rank."""
    if summary.total_expense <= 0:
        return ()
    ordered = sorted(summary.category_breakdown.items(), key=lambda item: (-item[1], item[0]))
    return tuple(
        ChartSlice(
            label=label,
            value=value,
            share=value / summary.total_expense,
            color=CHART_COLORS[rank % len(CHART_COLORS)],
        )
        for rank, (label, value) in enumerate(ordered)
    )


class Ledger:
    """The single in-memory transaction collection owned by a session."""

    def __init__(self, clock: Callable[[], datetime] = datetime.now):
        self._clock = clock
        self._transactions: Tuple[Transaction, ...] = ()
        self._last_id = 0

    @property
    def transactions(self) -> Tuple[Transaction, ...]:
        return self._transactions

    def __len__(self) -> int:
        return len(self._transactions)

    def _next_id(self) -> int:
        self._last_id = max(time.time_ns() // 1_000_000, self._last_id + 1)
        return self._last_id

    def add(self, description: str, amount: float, kind: str, category: str) -> LedgerSummary:
        checked = validate_transaction(description, amount, kind, category)
        if checked.is_left():
            raise ValidationError.from_dict(checked.get_error())
        fields = checked.get_or_else(None)
        t = Transaction(id=self._next_id(), created_at=self._clock(), **fields)
        self._transactions = add_transaction(self._transactions, t)
        logger.info("Added %s %.2f (%s) as transaction %d", t.kind, t.amount, t.category, t.id)
        return self.summarize()

    def remove(self, tx_id: int) -> bool:
        """Drop the transaction with ``tx_id``; returns False (no-op) when absent."""
        remaining = remove_transaction(self._transactions, tx_id)
        if len(remaining) == len(self._transactions):
            return False
        self._transactions = remaining
        logger.info("Removed transaction %d", tx_id)
        return True

    def find(self, tx_id: int) -> Maybe[Transaction]:
        for t in self._transactions:
            if t.id == tx_id:
                return Some(t)
        return Nothing()

    def summarize(self) -> LedgerSummary:
        return summarize(self._transactions)

    def chart_breakdown(self) -> Tuple[ChartSlice, ...]:
        return chart_breakdown(self.summarize())
