"""Column layout and sorting for the funding board and history tables.

Sorting rules:
  - rate and arbitrage columns always sort by absolute value, descending;
    a missing value counts as 0
  - symbol sorts case-insensitively in the requested direction, rows
    without a symbol last
Both sorts are stable, so ties keep join order (exchange priority).
"""

from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from typing import Literal, TypeVar

from monitor.data.snapshot import arb_key, rate_key
from monitor.models import ExchangeId, ExchangePair, HistoryRow, TableRow, exchange_pairs, ordered_exchanges

Direction = Literal["asc", "desc"]
SYMBOL_KEY = "symbol"

R = TypeVar("R")


@dataclass(frozen=True)
class Column:
    key: str
    label: str
    exchange: ExchangeId | None = None
    pair: ExchangePair | None = None

    @property
    def numeric(self) -> bool:
        return self.key != SYMBOL_KEY


def build_columns(enabled: Iterable[ExchangeId]) -> list[Column]:
    """Symbol, one rate column per exchange, then one column per pair."""
    exchanges = ordered_exchanges(enabled)
    columns = [Column(SYMBOL_KEY, "Symbol")]
    columns.extend(Column(rate_key(e), f"{e.label} Funding", exchange=e) for e in exchanges)
    columns.extend(
        Column(arb_key(a, b), f"{a.label}-{b.label} Arb", pair=(a, b))
        for a, b in exchange_pairs(exchanges)
    )
    return columns


HISTORY_COLUMNS: list[Column] = [
    Column(SYMBOL_KEY, "Symbol"),
    Column("currentRate", "Current"),
    Column("averageRate", "7d Avg"),
    Column("sevenDayRate", "7d Total"),
    Column("sevenDayProfit", "7d Profit"),
]


def default_sort_key(columns: Sequence[Column]) -> str:
    """Lighter funding if shown, else the first arb column, else the last column."""
    keys = [c.key for c in columns]
    lighter = rate_key(ExchangeId.LIGHTER)
    if lighter in keys:
        return lighter
    for column in columns:
        if column.pair is not None:
            return column.key
    return keys[-1] if keys else SYMBOL_KEY


@dataclass(frozen=True)
class SortState:
    key: str
    direction: Direction = "desc"

    def toggle(self, key: str) -> "SortState":
        """Select a column. Numeric columns lock to descending; symbol flips."""
        if key != SYMBOL_KEY:
            return SortState(key, "desc")
        if self.key == key:
            return SortState(key, "asc" if self.direction == "desc" else "desc")
        return SortState(key, "desc")


def _sort(
    items: Iterable[R],
    key: str,
    direction: Direction,
    value_of: Callable[[R, str], float | str | None],
) -> list[R]:
    items = list(items)
    if key != SYMBOL_KEY:
        def magnitude(item: R) -> float:
            value = value_of(item, key)
            return abs(value) if isinstance(value, (int, float)) else 0.0

        return sorted(items, key=magnitude, reverse=True)

    present = [i for i in items if value_of(i, key)]
    missing = [i for i in items if not value_of(i, key)]
    present.sort(key=lambda i: str(value_of(i, key)).upper(), reverse=direction == "desc")
    return present + missing


_RATE_COLUMNS = {rate_key(e): e for e in ExchangeId}
_ARB_COLUMNS = {arb_key(a, b): (a, b) for a, b in exchange_pairs(ExchangeId)}


def row_value(row: TableRow, key: str) -> float | str | None:
    if key == SYMBOL_KEY:
        return row.symbol
    if key in _RATE_COLUMNS:
        return row.rate(_RATE_COLUMNS[key])
    if key in _ARB_COLUMNS:
        return row.arb(*_ARB_COLUMNS[key])
    return None


_HISTORY_FIELDS = {
    SYMBOL_KEY: "symbol",
    "currentRate": "current_rate",
    "averageRate": "average_rate",
    "sevenDayRate": "seven_day_rate",
    "sevenDayProfit": "seven_day_profit",
}


def history_value(row: HistoryRow, key: str) -> float | str | None:
    attr = _HISTORY_FIELDS.get(key)
    return getattr(row, attr) if attr else None


def sort_rows(rows: Iterable[TableRow], key: str, direction: Direction = "desc") -> list[TableRow]:
    return _sort(rows, key, direction, row_value)


def sort_history_rows(
    rows: Iterable[HistoryRow], key: str, direction: Direction = "desc"
) -> list[HistoryRow]:
    return _sort(rows, key, direction, history_value)


def column_labels(columns: Sequence[Column], sort_state: SortState) -> list[str]:
    """Header labels "[n] Label", with an arrow on the active sort column."""
    labels = []
    for index, column in enumerate(columns, start=1):
        arrow = ""
        if column.key == sort_state.key:
            arrow = " ↑" if sort_state.direction == "asc" else " ↓"
        labels.append(f"[{index}] {column.label}{arrow}")
    return labels
