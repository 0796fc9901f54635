"""Orchestration between the calculators, the ledger and the history log.

A session owns the single Ledger, HistoryLog and RateTable of a user's visit.
Every public method parses its raw inputs first, computes, and only then
writes a history entry, so a rejected call leaves no trace.
"""
import logging
from dataclasses import replace
from datetime import date
from typing import Any, Callable, Optional, Tuple

import httpx

from calccore import formulas
from calccore.domain import INCOME, ChartSlice, HistoryEntry, ImagePayload, LedgerSummary, SolveOutcome
from calccore.errors import ValidationError
from calccore.events import HISTORY_CHANGED, LEDGER_CHANGED, RATES_REFRESHED, EventBus
from calccore.functional import sequence
from calccore.history import HistoryLog
from calccore.ledger import Ledger
from calccore.parsing import parse_code, parse_date, parse_number, parse_text, unwrap
from calccore.rates import ExchangeRateClient, RateSnapshot, RateTable
from calccore.solver import MathSolver, build_contents
from calccore.units import convert_unit

logger = logging.getLogger(__name__)

FIND_VALUE = "findValue"
FIND_PERCENT = "findPercent"
SIP = "sip"
LUMPSUM = "lumpsum"


def show(value: float) -> str:
    """Number as typed by a user: 100000 rather than 100000.0."""
    value = float(value)
    return str(int(value)) if value.is_integer() else repr(value)


class CalculationSession:

    def __init__(
        self,
        ledger: Optional[Ledger] = None,
        history: Optional[HistoryLog] = None,
        rates: Optional[RateTable] = None,
        solver: Optional[MathSolver] = None,
        bus: Optional[EventBus] = None,
        today: Callable[[], date] = date.today,
    ):
        self.ledger = ledger or Ledger()
        self.history = history or HistoryLog()
        self.rates = rates or RateTable()
        self.solver = solver
        self.bus = bus or EventBus()
        self._today = today
        self._solve_seq = 0

    def _record(self, tool: str, expression: str, result: str) -> HistoryEntry:
        entry = self.history.record(tool, expression, result)
        self.bus.publish(HISTORY_CHANGED, {"tool": tool, "size": len(self.history)})
        return entry

    # --- calculators

    def percentage(self, mode: str, first: Any, second: Any) -> float:
        v1, v2 = unwrap(sequence(parse_number(first, "first"), parse_number(second, "second")))
        if mode == FIND_VALUE:
            res = formulas.find_value(v1, v2)
            self._record("Percentage", f"{show(v1)}% of {show(v2)}", formulas.fmt(res))
        elif mode == FIND_PERCENT:
            res = formulas.find_percent(v1, v2)
            self._record("Percentage", f"{show(v1)} is what % of {show(v2)}", formulas.fmt(res) + "%")
        else:
            raise ValidationError("unknown_mode", f"Unknown percentage mode {mode!r}", "mode")
        return res

    def emi(self, amount: Any, rate: Any, tenure: Any) -> float:
        p, r, n = unwrap(sequence(
            parse_number(amount, "principal", non_negative=True),
            parse_number(rate, "rate", non_negative=True),
            parse_number(tenure, "tenure", positive=True),
        ))
        payment = formulas.emi(p, r, n)
        self._record("EMI Loan", f"{show(p)} @ {show(r)}% for {show(n)}m", formulas.fmt(payment))
        return payment

    def interest(self, kind: str, principal: Any, rate: Any, years: Any):
        p, r, t = unwrap(sequence(
            parse_number(principal, "principal"),
            parse_number(rate, "rate"),
            parse_number(years, "years"),
        ))
        res = formulas.interest(kind, p, r, t)
        self._record("Interest", f"{kind} Interest on {show(p)}", formulas.fmt(res.interest))
        return res

    def investment(self, mode: str, initial: Any, monthly: Any, rate: Any, years: Any):
        i, r, y = unwrap(sequence(
            parse_number(initial, "initial", non_negative=True),
            parse_number(rate, "rate"),
            parse_number(years, "years", positive=True),
        ))
        if mode == SIP:
            m = unwrap(parse_number(monthly, "monthly", non_negative=True))
            res = formulas.sip(i, m, r, y)
            label = "SIP"
        elif mode == LUMPSUM:
            res = formulas.lumpsum(i, r, y)
            label = "Lumpsum"
        else:
            raise ValidationError("unknown_mode", f"Unknown investment mode {mode!r}", "mode")
        self._record("Investment", f"{label} {show(y)}y @ {show(r)}%", formulas.fmt(res.total, 0))
        return res

    def discount(self, price: Any, percent: Any):
        p, d = unwrap(sequence(parse_number(price, "price"), parse_number(percent, "discount")))
        res = formulas.discount(p, d)
        self._record("Discount", f"{show(d)}% off on {show(p)}", formulas.fmt(res.final))
        return res

    def bmi(self, weight: Any, height: Any):
        w, h = unwrap(sequence(
            parse_number(weight, "weight", positive=True),
            parse_number(height, "height", positive=True),
        ))
        res = formulas.bmi(w, h)
        self._record("BMI", f"{show(w)}kg, {show(h)}cm", f"BMI: {res.value:.1f}")
        return res

    def age(self, born: Any):
        birth = unwrap(parse_date(born, "born"))
        res = formulas.age_between(birth, self._today())
        self._record("Age Calc", f"Born: {birth.isoformat()}", f"{res.years}y {res.months}m {res.days}d")
        return res

    def convert_unit(self, value: Any, from_unit: str, to_unit: str, dimension: Optional[str] = None) -> float:
        v = unwrap(parse_number(value, "value"))
        res = convert_unit(v, from_unit, to_unit, dimension)
        self._record("Unit Convert", f"{show(v)} {from_unit} to {to_unit}", formulas.fmt(res, 4))
        return res

    def convert_currency(self, amount: Any, from_code: Any, to_code: Any) -> float:
        a, src, dst = unwrap(sequence(
            parse_number(amount, "amount"),
            parse_code(from_code, "from"),
            parse_code(to_code, "to"),
        ))
        res = self.rates.convert(a, src, dst)
        self._record("Currency", f"{show(a)} {src} to {dst}", f"{formulas.fmt(res)} {dst}")
        return res

    def calculate(self, expression: str) -> float:
        res = formulas.evaluate_expression(expression)
        text = show(res)
        if expression.strip() != text:
            self._record("Standard", expression.strip(), text)
        return res

    # --- ledger

    def add_transaction(self, description: Any, amount: Any, kind: str, category: str) -> LedgerSummary:
        desc = unwrap(parse_text(description, "description"))
        value = unwrap(parse_number(amount, "amount", positive=True))
        summary = self.ledger.add(desc, value, kind, category)
        sign = "+" if kind == INCOME else "-"
        self._record("Budget", f"{sign} {show(value)} ({category})", f"Bal: {summary.balance:.2f}")
        self.bus.publish(LEDGER_CHANGED, {"action": "add", "balance": summary.balance})
        return summary

    def remove_transaction(self, tx_id: int) -> LedgerSummary:
        found = self.ledger.find(tx_id)
        if not self.ledger.remove(tx_id):
            return self.ledger.summarize()
        t = found.get_or_else(None)
        summary = self.ledger.summarize()
        self._record("Budget", f"Removed {t.description} ({t.category})", f"Bal: {summary.balance:.2f}")
        self.bus.publish(LEDGER_CHANGED, {"action": "remove", "balance": summary.balance})
        return summary

    def summary(self) -> LedgerSummary:
        return self.ledger.summarize()

    def chart_breakdown(self) -> Tuple[ChartSlice, ...]:
        return self.ledger.chart_breakdown()

    # --- history

    def clear_history(self) -> None:
        self.history.clear()
        self.bus.publish(HISTORY_CHANGED, {"tool": None, "size": 0})

    # --- async collaborators

    async def refresh_rates(self) -> RateSnapshot:
        snapshot = await self.rates.refresh()
        self.bus.publish(RATES_REFRESHED, {"source": snapshot.source, "status": self.rates.status()})
        return snapshot

    async def solve(self, query: str, image: Optional[ImagePayload] = None) -> SolveOutcome:
        """Run the AI solver; only the most recently issued request may reach history."""
        if self.solver is None:
            self.solver = MathSolver()
        query = (query or "").strip()
        if not query and image is None:
            raise ValidationError("empty_query", "Type a problem or attach an image", "query")
        # a request rejected here never takes a ticket
        build_contents(query, image)

        self._solve_seq += 1
        ticket = self._solve_seq
        outcome = await self.solver.solve(query, image)
        if ticket != self._solve_seq:
            logger.info("Discarding superseded solver reply %d (latest is %d)", ticket, self._solve_seq)
            return replace(outcome, superseded=True)
        if outcome.solved:
            self._record("AI Math", query or ("Image Analysis" if image else "Question"), "Solved")
        return outcome


def live_session(transport: Optional[httpx.AsyncBaseTransport] = None, **kwargs) -> CalculationSession:
    """Session whose rate table refreshes from the configured exchange-rate API."""
    return CalculationSession(rates=RateTable(fetcher=ExchangeRateClient(transport=transport)), **kwargs)
