"""Currency rate table.

Rates are multipliers against one base currency (USD unless configured
otherwise). The table always holds exactly one complete snapshot, either the
last live fetch or the static fallback, and a refresh replaces it in a single
assignment so readers never observe a half-installed table.
"""
import logging
import math
from dataclasses import dataclass
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Any, Mapping, Optional, Protocol, Tuple

import httpx

from calccore.config import Config
from calccore.domain import FALLBACK, LIVE
from calccore.errors import RateFetchError, ValidationError
from calccore.formulas import convert_currency

logger = logging.getLogger(__name__)

FALLBACK_BASE = "USD"
FALLBACK_RATES: Mapping[str, float] = MappingProxyType({
    "USD": 1.0,
    "INR": 83.5,
    "EUR": 0.92,
    "GBP": 0.79,
    "JPY": 150.2,
    "AUD": 1.52,
    "CAD": 1.35,
    "CHF": 0.91,
    "CNY": 7.23,
    "SGD": 1.35,
    "NZD": 1.63,
})


@dataclass(frozen=True)
class RateSnapshot:
    rates: Mapping[str, float]
    source: str
    base: str = FALLBACK_BASE
    fetched_at: Optional[datetime] = None


def fallback_snapshot() -> RateSnapshot:
    return RateSnapshot(rates=FALLBACK_RATES, source=FALLBACK, base=FALLBACK_BASE)


def parse_rates_payload(data: Any, base: str) -> RateSnapshot:
    """Validate a ``{rates: {...}, time_last_updated: <unix s>}`` body."""
    if not isinstance(data, dict) or not isinstance(data.get("rates"), dict) or not data["rates"]:
        raise RateFetchError("Rate payload has no 'rates' mapping")

    rates = {}
    for code, value in data["rates"].items():
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise RateFetchError(f"Rate for {code!r} is not a number: {value!r}")
        if not math.isfinite(value) or value <= 0:
            raise RateFetchError(f"Rate for {code!r} is not a positive finite number: {value!r}")
        rates[str(code).upper()] = float(value)

    if rates.setdefault(base, 1.0) != 1.0:
        raise RateFetchError(f"Base currency {base} has rate {rates[base]}, expected 1")

    fetched_at = None
    stamp = data.get("time_last_updated")
    if stamp is not None:
        try:
            fetched_at = datetime.fromtimestamp(int(stamp), tz=timezone.utc)
        except (TypeError, ValueError, OverflowError, OSError) as e:
            raise RateFetchError(f"Bad time_last_updated: {stamp!r}") from e

    return RateSnapshot(rates=MappingProxyType(rates), source=LIVE, base=base, fetched_at=fetched_at)


class RateFetcher(Protocol):
    async def fetch_latest(self) -> RateSnapshot:
        ...


class ExchangeRateClient:
    """Fetches the latest rates for a base currency over HTTP."""

    def __init__(
        self,
        base: Optional[str] = None,
        url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base = (base or Config.RATES_BASE).upper()
        self.url = (url or Config.RATES_URL).format(base=self.base)
        self.timeout = timeout if timeout is not None else Config.RATES_TIMEOUT
        self._transport = transport

    async def fetch_latest(self) -> RateSnapshot:
        """
        Returns:
            A live RateSnapshot.

        Raises:
            RateFetchError: transport failure, non-2xx status or malformed JSON.
        """
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.get(self.url)
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPError as e:
            raise RateFetchError(f"Rate request to {self.url} failed: {e}") from e
        except ValueError as e:
            raise RateFetchError(f"Rate response from {self.url} is not JSON") from e
        return parse_rates_payload(data, self.base)


class RateTable:
    def __init__(self, fetcher: Optional[RateFetcher] = None, snapshot: Optional[RateSnapshot] = None):
        self._fetcher = fetcher
        self._snapshot = snapshot or fallback_snapshot()

    @property
    def snapshot(self) -> RateSnapshot:
        return self._snapshot

    @property
    def rates(self) -> Mapping[str, float]:
        return self._snapshot.rates

    @property
    def source(self) -> str:
        return self._snapshot.source

    @property
    def fetched_at(self) -> Optional[datetime]:
        return self._snapshot.fetched_at

    @property
    def is_live(self) -> bool:
        return self._snapshot.source == LIVE

    async def refresh(self) -> RateSnapshot:
        """Replace the whole table from the fetcher, or with the fallback on failure."""
        if self._fetcher is None:
            snapshot = fallback_snapshot()
        else:
            try:
                snapshot = await self._fetcher.fetch_latest()
            except RateFetchError as e:
                logger.warning("Rate refresh failed, using fallback rates: %s", e)
                snapshot = fallback_snapshot()
        self._snapshot = snapshot
        logger.info("Installed %s rate table with %d currencies", snapshot.source, len(snapshot.rates))
        return snapshot

    def codes(self) -> Tuple[str, ...]:
        return tuple(sorted(self._snapshot.rates))

    def rate(self, code: str) -> float:
        rates = self._snapshot.rates
        if code not in rates:
            raise ValidationError("unknown_currency", f"Unknown currency {code!r}", "currency", code=code)
        return rates[code]

    def convert(self, amount: float, from_code: str, to_code: str) -> float:
        return convert_currency(amount, from_code, to_code, self._snapshot.rates)

    def cross_rate(self, from_code: str, to_code: str) -> float:
        """Units of ``to_code`` bought by one unit of ``from_code``."""
        return self.convert(1.0, from_code, to_code)

    def status(self) -> str:
        snapshot = self._snapshot
        if snapshot.source == LIVE:
            if snapshot.fetched_at is None:
                return "Live Rates"
            return f"Live Rates (updated {snapshot.fetched_at:%Y-%m-%d %H:%M} UTC)"
        return "Offline (Using Fallback Rates)"
