"""Shared data models for the funding monitor.

All rates are fractional (0.0001 == 0.01%) and expressed on an 8-hour basis
once they leave the normalizer. Every model here is rebuilt on each refresh
cycle rather than mutated in place.
"""

import time
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from itertools import combinations
from typing import Iterable


class ExchangeId(str, Enum):
    """Supported perpetual venues.

    Declaration order is the fixed priority used for arbitrage pair
    ordering and for tie-breaks when ranking spreads.
    """

    BINANCE = "binance"
    LIGHTER = "lighter"
    HYPERLIQUID = "hyperliquid"
    EDGEX = "edgex"
    GRVT = "grvt"
    ASTER = "aster"

    @property
    def label(self) -> str:
        return EXCHANGE_LABELS[self]

    @property
    def priority(self) -> int:
        return EXCHANGE_PRIORITY.index(self)


EXCHANGE_PRIORITY: tuple[ExchangeId, ...] = tuple(ExchangeId)

EXCHANGE_LABELS: dict[ExchangeId, str] = {
    ExchangeId.BINANCE: "Binance",
    ExchangeId.LIGHTER: "Lighter",
    ExchangeId.HYPERLIQUID: "Hyperliquid",
    ExchangeId.EDGEX: "edgeX",
    ExchangeId.GRVT: "GRVT",
    ExchangeId.ASTER: "Aster",
}

ExchangePair = tuple[ExchangeId, ExchangeId]


def ordered_exchanges(exchanges: Iterable[ExchangeId]) -> list[ExchangeId]:
    """Return exchanges sorted by fixed priority."""
    return sorted(set(exchanges), key=lambda e: e.priority)


def exchange_pairs(exchanges: Iterable[ExchangeId]) -> list[ExchangePair]:
    """Return every unordered pair, each oriented higher-priority first."""
    return list(combinations(ordered_exchanges(exchanges), 2))


class RowStatus(str, Enum):
    """Readiness of the joined row set, used for the status line."""

    IDLE = "idle"
    WAITING = "waiting"
    READY = "ready"
    EMPTY = "empty"


@dataclass(frozen=True)
class FundingQuote:
    """Normalized 8-hour funding rate for one symbol on one exchange."""

    exchange: ExchangeId
    symbol: str
    rate: float
    as_of: float = field(default_factory=time.time)


@dataclass
class TableRow:
    """Joined funding rates for one canonical symbol.

    `rates` only holds exchanges that reported a rate; `arbs` only holds
    pairs where both sides are present, keyed higher-priority first.
    """

    symbol: str
    rates: dict[ExchangeId, float] = field(default_factory=dict)
    arbs: dict[ExchangePair, float] = field(default_factory=dict)
    contract_id: str | None = None
    contract_name: str | None = None

    def rate(self, exchange: ExchangeId) -> float | None:
        return self.rates.get(exchange)

    def arb(self, first: ExchangeId, second: ExchangeId) -> float | None:
        """Return rate(first) - rate(second) if both are present.

        Accepts either orientation; the stored value is flipped when the
        caller asks for the lower-priority exchange first.
        """
        if (first, second) in self.arbs:
            return self.arbs[(first, second)]
        if (second, first) in self.arbs:
            return -self.arbs[(second, first)]
        return None


@dataclass(frozen=True)
class RateQuote:
    """An (exchange, rate) side of a spread."""

    exchange: ExchangeId
    rate: float


@dataclass(frozen=True)
class SpreadEntry:
    """Highest-versus-lowest funding spread for one symbol."""

    symbol: str
    diff: float
    high: RateQuote
    low: RateQuote
    estimated_profit: float | None = None


@dataclass(frozen=True)
class FundingHistoryPoint:
    """Raw funding history record as reported by Lighter.

    `rate` is the unsigned magnitude (falls back to `value` when absent);
    `direction` is "long" or "short".
    """

    timestamp: int
    rate: str | float | None = None
    direction: str | None = None
    value: str | float | None = None


@dataclass(frozen=True)
class HistoryMarket:
    """A Lighter market to fetch history for."""

    market_id: int
    symbol: str
    current_rate: float | None = None


@dataclass
class HistoryRow:
    """Seven-day funding statistics for one Lighter market."""

    market_id: int
    symbol: str
    current_rate: float | None
    average_rate: float | None
    series: list[float] = field(default_factory=list)
    seven_day_rate: float | None = None
    seven_day_profit: float | None = None


@dataclass
class Snapshot:
    """Last successful join, persisted for cold-start display."""

    rows: list[TableRow]
    last_updated: datetime


@dataclass
class HistorySnapshot:
    """Last completed history refresh, persisted for cold-start display."""

    rows: list[HistoryRow]
    last_updated: datetime
