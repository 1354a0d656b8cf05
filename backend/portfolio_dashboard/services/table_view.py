"""Table view model: search, gain/loss filter, sort and column projection.

Works over any sequence of holdings, either models or plain mappings. Column
keys starting with ``_`` are virtual: their value comes from the row's
valuation instead of a stored field.
"""

import functools
import logging
import math
import unicodedata
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any

from portfolio_dashboard.config import FOREIGN_CURRENCY, REPORTING_CURRENCY
from portfolio_dashboard.models.holdings import (
    AssetClass,
    Holding,
    HoldingBase,
    Portfolio,
    parse_holding,
    record_field,
)
from portfolio_dashboard.services.aggregation import BUCKETS, BucketDefinition
from portfolio_dashboard.services.price_cache import LivePriceCache
from portfolio_dashboard.services.valuation import (
    HoldingValuation,
    to_reporting_currency,
    value_holding,
)

logger = logging.getLogger(__name__)

VIRTUAL_PREFIX = "_"
ACTIONS_COLUMN = "_actions"

# virtual key -> HoldingValuation attribute
VALUATION_COLUMNS = {
    "_current_price": "current_price",
    "_current_value": "current_value",
    "_gain_loss": "gain_loss",
    "_return_pct": "return_pct",
    "_days_left": "days_left",
}

# virtual key -> amount converted to the reporting currency
REPORTING_COLUMNS = {
    "_invested_reporting": lambda holding, valuation: holding.invested,
    "_value_reporting": lambda holding, valuation: valuation.current_value,
    "_gain_loss_reporting": lambda holding, valuation: valuation.gain_loss,
}


class TableId(str, Enum):
    FIXED_DEPOSITS = "fd"
    MF_PRIMARY = "mf-primary"
    MF_FAMILY = "mf-family"
    STOCKS_DOMESTIC = "stocks-nse"
    STOCKS_FOREIGN = "stocks-nas"
    GOLD = "gold"


class Category(str, Enum):
    ALL = "all"
    GAIN = "gain"
    LOSS = "loss"


@dataclass(frozen=True)
class Column:
    key: str
    label: str

    @property
    def virtual(self) -> bool:
        return self.key.startswith(VIRTUAL_PREFIX)


@dataclass
class ViewState:
    sort_column: str | None = None
    ascending: bool = True
    query: str = ""
    category: Category = Category.ALL
    column_visibility: dict[str, bool] = field(default_factory=dict)

    def toggle_sort(self, column: str) -> None:
        """Same column flips the direction, a new column starts ascending."""
        self.ascending = not self.ascending if self.sort_column == column else True
        self.sort_column = column

    def is_visible(self, column_key: str) -> bool:
        if column_key == ACTIONS_COLUMN:
            return True
        return self.column_visibility.get(column_key, True)


@dataclass(frozen=True)
class TableSpec:
    table_id: TableId
    bucket: BucketDefinition
    columns: tuple[Column, ...]
    default_sort: str
    default_ascending: bool = False
    has_category_filter: bool = True

    @property
    def label(self) -> str:
        return self.bucket.label

    @property
    def asset_class(self) -> AssetClass:
        return self.bucket.asset_class

    def default_state(self) -> ViewState:
        return ViewState(sort_column=self.default_sort, ascending=self.default_ascending)


@dataclass
class TableRow:
    index: int
    cells: dict[str, Any]
    valuation: HoldingValuation | None = None


@dataclass
class TableView:
    columns: list[Column]
    rows: list[TableRow]
    matched_count: int
    total_count: int
    sort_column: str | None = None
    ascending: bool = True

    @property
    def is_empty(self) -> bool:
        """No rows exist at all."""
        return self.total_count == 0

    @property
    def no_results(self) -> bool:
        """Rows exist but none survived search/filter."""
        return self.total_count > 0 and self.matched_count == 0


_FD_COLUMNS = (
    Column("bank", "Bank"),
    Column("fd_number", "FD No."),
    Column("invested", "Invested"),
    Column("rate", "Rate"),
    Column("start_date", "Start"),
    Column("maturity_date", "Maturity"),
    Column("_days_left", "Days Left"),
    Column("maturity_value", "Maturity Val"),
    Column("_current_value", "Current Value"),
    Column("_gain_loss", "Gain"),
    Column("_return_pct", "Return"),
    Column("status", "Status"),
    Column(ACTIONS_COLUMN, "Actions"),
)

_MF_COLUMNS = (
    Column("name", "Fund Name"),
    Column("scheme_code", "Scheme Code"),
    Column("units", "Units"),
    Column("purchase_nav", "Buy NAV"),
    Column("invested", "Invested"),
    Column("_current_price", "Live NAV"),
    Column("_current_value", "Current Value"),
    Column("_gain_loss", "Gain / Loss"),
    Column("_return_pct", "Return %"),
    Column(ACTIONS_COLUMN, "Actions"),
)

_DOMESTIC_STOCK_COLUMNS = (
    Column("name", "Company"),
    Column("symbol", "Symbol"),
    Column("units", "Qty"),
    Column("avg_price", "Avg Buy"),
    Column("invested", "Invested"),
    Column("_current_price", "Live Price"),
    Column("_current_value", "Current Value"),
    Column("_gain_loss", "Gain / Loss"),
    Column("_return_pct", "Return %"),
    Column(ACTIONS_COLUMN, "Actions"),
)

_FOREIGN_STOCK_COLUMNS = (
    Column("name", "Company"),
    Column("symbol", "Symbol"),
    Column("units", "Qty"),
    Column("avg_price", f"Avg Buy ({FOREIGN_CURRENCY})"),
    Column("invested", f"Invested ({FOREIGN_CURRENCY})"),
    Column("_invested_reporting", f"Invested ({REPORTING_CURRENCY})"),
    Column("_current_price", f"Live Price ({FOREIGN_CURRENCY})"),
    Column("_value_reporting", f"Live Value ({REPORTING_CURRENCY})"),
    Column("_current_value", f"Current Value ({FOREIGN_CURRENCY})"),
    Column("_gain_loss_reporting", f"Gain / Loss ({REPORTING_CURRENCY})"),
    Column("_return_pct", "Return %"),
    Column(ACTIONS_COLUMN, "Actions"),
)

_GOLD_COLUMNS = (
    Column("name", "Instrument"),
    Column("type", "Type"),
    Column("units", "Units"),
    Column("purchase_price", "Buy Price"),
    Column("invested", "Invested"),
    Column("_current_price", "Live Price"),
    Column("manual_current_value", "Current Value (Manual)"),
    Column("_current_value", "Calculated Value"),
    Column("_gain_loss", "Gain / Loss"),
    Column("_return_pct", "Return %"),
    Column(ACTIONS_COLUMN, "Actions"),
)

_BUCKETS = {b.key: b for b in BUCKETS}

TABLES: dict[TableId, TableSpec] = {
    TableId.FIXED_DEPOSITS: TableSpec(
        TableId.FIXED_DEPOSITS,
        _BUCKETS["fd"],
        _FD_COLUMNS,
        default_sort="maturity_date",
        default_ascending=True,
        has_category_filter=False,
    ),
    TableId.MF_PRIMARY: TableSpec(
        TableId.MF_PRIMARY, _BUCKETS["mf-primary"], _MF_COLUMNS, default_sort="invested"
    ),
    TableId.MF_FAMILY: TableSpec(
        TableId.MF_FAMILY, _BUCKETS["mf-family"], _MF_COLUMNS, default_sort="invested"
    ),
    TableId.STOCKS_DOMESTIC: TableSpec(
        TableId.STOCKS_DOMESTIC,
        _BUCKETS["stocks-nse"],
        _DOMESTIC_STOCK_COLUMNS,
        default_sort="invested",
    ),
    TableId.STOCKS_FOREIGN: TableSpec(
        TableId.STOCKS_FOREIGN,
        _BUCKETS["stocks-nas"],
        _FOREIGN_STOCK_COLUMNS,
        default_sort="invested",
    ),
    TableId.GOLD: TableSpec(
        TableId.GOLD,
        _BUCKETS["gold"],
        _GOLD_COLUMNS,
        default_sort="invested",
        has_category_filter=False,
    ),
}


class ViewStateRegistry:
    """One ViewState per table, starting from each table's default sort."""

    def __init__(self, column_visibility: Mapping[str, Mapping[str, bool]] | None = None):
        self._states = {table_id: spec.default_state() for table_id, spec in TABLES.items()}
        if column_visibility:
            self.load_visibility(column_visibility)

    def get(self, table_id: TableId | str) -> ViewState:
        return self._states[TableId(table_id)]

    def load_visibility(self, document: Mapping[str, Mapping[str, bool]]) -> None:
        for table_key, flags in document.items():
            try:
                state = self.get(table_key)
            except ValueError:
                logger.warning(f"Ignoring column visibility for unknown table {table_key!r}")
                continue
            state.column_visibility.update({k: bool(v) for k, v in flags.items()})

    def visibility_document(self) -> dict[str, dict[str, bool]]:
        return {
            table_id.value: dict(state.column_visibility)
            for table_id, state in self._states.items()
            if state.column_visibility
        }


class _RowValuer:
    """Per-call valuation lookup, memoized by row identity."""

    def __init__(self, prices: LivePriceCache, today: date | None):
        self.prices = prices
        self.today = today
        self._memo: dict[int, tuple[Holding | None, HoldingValuation | None]] = {}

    def resolve(self, row: Any) -> tuple[Holding | None, HoldingValuation | None]:
        key = id(row)
        if key not in self._memo:
            self._memo[key] = self._compute(row)
        return self._memo[key]

    def _compute(self, row: Any) -> tuple[Holding | None, HoldingValuation | None]:
        try:
            holding = row if isinstance(row, HoldingBase) else parse_holding(row)
            return holding, value_holding(holding, self.prices, self.today)
        except (TypeError, ValueError) as e:
            logger.debug(f"Cannot value row {row!r}: {e}")
            return None, None


def _raw_value(row: Any, key: str) -> Any:
    if isinstance(row, HoldingBase):
        value = getattr(row, key, None)
    elif isinstance(row, Mapping):
        value = record_field(row, key)
    else:
        value = None
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, date):
        return value.isoformat()
    return value


def cell_value(key: str, row: Any, valuer: _RowValuer, position: int | None = None) -> Any:
    """Value of column ``key`` for ``row``; None when it cannot be resolved."""
    if key == ACTIONS_COLUMN:
        return position
    if not key.startswith(VIRTUAL_PREFIX):
        return _raw_value(row, key)
    holding, valuation = valuer.resolve(row)
    if valuation is None:
        return None
    if key in VALUATION_COLUMNS:
        return getattr(valuation, VALUATION_COLUMNS[key])
    if key in REPORTING_COLUMNS:
        amount = REPORTING_COLUMNS[key](holding, valuation)
        return to_reporting_currency(amount, holding, valuer.prices)
    return None


def _searchable_values(row: Any) -> list[Any]:
    if isinstance(row, HoldingBase):
        values = row.model_dump(mode="json", exclude={"asset_class"}, exclude_none=True)
    elif isinstance(row, Mapping):
        values = {
            k: v for k, v in row.items() if k not in ("asset_class", "assetClass") and v is not None
        }
    else:
        return []
    return list(values.values())


def _search_text(value: Any) -> str:
    """Text a value is searched as; integral floats drop the trailing ``.0``."""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def matches_query(row: Any, query: str) -> bool:
    if not query:
        return True
    needle = query.casefold()
    return any(needle in _search_text(v).casefold() for v in _searchable_values(row))


def matches_category(row: Any, category: Category, valuer: _RowValuer) -> bool:
    if category is Category.ALL:
        return True
    _, valuation = valuer.resolve(row)
    if valuation is None:
        # Keep rows we cannot value rather than hide them.
        return True
    if category is Category.GAIN:
        return valuation.gain_loss >= 0
    return valuation.gain_loss < 0


def _as_number(value: Any) -> float | None:
    if isinstance(value, (bool, int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value)
        except ValueError:
            return None
    else:
        return None
    return number if math.isfinite(number) else None


def _collation_key(text: str) -> tuple[str, str]:
    return unicodedata.normalize("NFKD", text).casefold(), text


def _cmp(a: Any, b: Any) -> int:
    return (a > b) - (a < b)


def compare_values(a: Any, b: Any) -> int:
    """Numbers compare numerically, strings by collation, anything else as 0."""
    num_a, num_b = _as_number(a), _as_number(b)
    if num_a is not None and num_b is not None:
        return _cmp(num_a, num_b)
    if isinstance(a, str) and isinstance(b, str):
        return _cmp(_collation_key(a), _collation_key(b))
    return _cmp(num_a or 0.0, num_b or 0.0)


def build_table_view(
    records: Sequence[Any],
    columns: Sequence[Column],
    state: ViewState,
    prices: LivePriceCache,
    today: date | None = None,
    positions: Sequence[int] | None = None,
) -> TableView:
    """Filter, sort and project ``records`` according to ``state``.

    ``positions`` gives each record's index in its stored collection (defaults
    to its index in ``records``); it is reported on every row for edit/delete.
    """
    if positions is None:
        positions = range(len(records))
    valuer = _RowValuer(prices, today)

    indexed = [
        (position, row)
        for position, row in zip(positions, records)
        if matches_query(row, state.query) and matches_category(row, state.category, valuer)
    ]

    if state.sort_column:
        sign = 1 if state.ascending else -1
        keyed = [
            (cell_value(state.sort_column, row, valuer, position), position, row)
            for position, row in indexed
        ]
        keyed.sort(key=functools.cmp_to_key(lambda x, y: sign * compare_values(x[0], y[0])))
        indexed = [(position, row) for _, position, row in keyed]

    visible = [c for c in columns if state.is_visible(c.key)]
    rows = [
        TableRow(
            index=position,
            cells={c.key: cell_value(c.key, row, valuer, position) for c in visible},
            valuation=valuer.resolve(row)[1],
        )
        for position, row in indexed
    ]
    return TableView(
        columns=visible,
        rows=rows,
        matched_count=len(rows),
        total_count=len(records),
        sort_column=state.sort_column,
        ascending=state.ascending,
    )


def table_rows(portfolio: Portfolio, table_id: TableId | str) -> list[tuple[int, Holding]]:
    """(position, holding) pairs of the stored collection that belong to a table."""
    spec = TABLES[TableId(table_id)]
    collection = portfolio.collection(spec.asset_class)
    return [(i, h) for i, h in enumerate(collection) if spec.bucket.includes(h)]


def table_counts(portfolio: Portfolio) -> dict[TableId, int]:
    return {table_id: len(table_rows(portfolio, table_id)) for table_id in TableId}


def render_table(
    portfolio: Portfolio,
    table_id: TableId | str,
    state: ViewState,
    prices: LivePriceCache,
    today: date | None = None,
) -> TableView:
    spec = TABLES[TableId(table_id)]
    pairs = table_rows(portfolio, spec.table_id)
    return build_table_view(
        [h for _, h in pairs],
        spec.columns,
        state,
        prices,
        today=today,
        positions=[i for i, _ in pairs],
    )
