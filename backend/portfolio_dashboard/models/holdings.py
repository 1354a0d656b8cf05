"""Holding records and the Portfolio aggregate.

Holdings are pydantic models with camelCase aliases so a stored document keeps
the ``portfolio.json`` layout (``schemeCode``, ``purchaseNAV``, ...). Every
holding carries an explicit ``asset_class`` tag; records without one are
classified by shape, see :func:`infer_asset_class`.
"""

import logging
from collections.abc import Mapping
from datetime import date
from enum import Enum
from typing import Annotated, Any, Literal, Union

from pydantic import (
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    ValidationError,
    model_validator,
)
from pydantic.alias_generators import to_camel

logger = logging.getLogger(__name__)


class AssetClass(str, Enum):
    FIXED_DEPOSIT = "fd"
    MUTUAL_FUND = "mf"
    STOCK = "stock"
    GOLD = "gold"


class FDStatus(str, Enum):
    ACTIVE = "Active"
    MATURED = "Matured"
    CLOSED = "Closed"


class Exchange(str, Enum):
    NSE = "NSE"
    BSE = "BSE"
    NASDAQ = "NASDAQ"


class GoldType(str, Enum):
    SGB = "SGB"
    ETF = "ETF"
    PHYSICAL = "Physical"


def _zero_if_blank(value: Any) -> Any:
    if value is None or (isinstance(value, str) and not value.strip()):
        return 0.0
    return value


def _none_if_blank(value: Any) -> Any:
    if isinstance(value, str) and not value.strip():
        return None
    return value


Amount = Annotated[float, BeforeValidator(_zero_if_blank)]
OptionalDate = Annotated[date | None, BeforeValidator(_none_if_blank)]
OptionalAmount = Annotated[float | None, BeforeValidator(_none_if_blank)]


class HoldingBase(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class FixedDeposit(HoldingBase):
    asset_class: Literal["fd"] = "fd"
    bank: str = ""
    fd_number: str = ""
    invested: Amount = 0.0
    rate: Amount = 0.0
    start_date: OptionalDate = None
    maturity_date: OptionalDate = None
    maturity_value: Amount = 0.0
    status: FDStatus = FDStatus.ACTIVE


class MutualFundHolding(HoldingBase):
    asset_class: Literal["mf"] = "mf"
    name: str = ""
    scheme_code: str = ""
    owner: str = ""
    units: Amount = 0.0
    purchase_nav: Amount = Field(default=0.0, alias="purchaseNAV")
    invested: Amount = 0.0


class StockHolding(HoldingBase):
    asset_class: Literal["stock"] = "stock"
    name: str = ""
    symbol: str = ""
    exchange: Exchange = Exchange.NSE
    units: Amount = 0.0
    avg_price: Amount = 0.0
    invested: Amount = 0.0


class GoldHolding(HoldingBase):
    asset_class: Literal["gold"] = "gold"
    name: str = ""
    type: GoldType = GoldType.SGB
    symbol: str | None = None
    units: Amount = 0.0
    purchase_price: Amount = 0.0
    invested: Amount = 0.0
    manual_current_value: OptionalAmount = None


Holding = Union[FixedDeposit, MutualFundHolding, StockHolding, GoldHolding]

HOLDING_MODELS: dict[AssetClass, type[HoldingBase]] = {
    AssetClass.FIXED_DEPOSIT: FixedDeposit,
    AssetClass.MUTUAL_FUND: MutualFundHolding,
    AssetClass.STOCK: StockHolding,
    AssetClass.GOLD: GoldHolding,
}


_COLLECTION_MODELS: dict[str, type[HoldingBase]] = {
    "fixed_deposits": FixedDeposit,
    "mutual_funds": MutualFundHolding,
    "stocks": StockHolding,
    "gold": GoldHolding,
}


class Portfolio(HoldingBase):
    fixed_deposits: list[FixedDeposit] = Field(default_factory=list)
    mutual_funds: list[MutualFundHolding] = Field(default_factory=list)
    stocks: list[StockHolding] = Field(default_factory=list)
    gold: list[GoldHolding] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def _drop_invalid_records(cls, data: Any) -> Any:
        """Validate each stored record on its own; a bad one is skipped, not fatal."""
        if not isinstance(data, Mapping):
            return data
        data = dict(data)
        for name, model in _COLLECTION_MODELS.items():
            alias = to_camel(name)
            key = alias if alias in data else name
            records = data.get(key)
            if records is None:
                data[key] = []
                continue
            if not isinstance(records, list):
                continue
            kept = []
            for i, record in enumerate(records):
                try:
                    kept.append(model.model_validate(record))
                except ValidationError as e:
                    error = e.errors()[0]
                    field = ".".join(str(part) for part in error["loc"])
                    logger.warning(f"Skipping invalid {alias} record {i} ({field}): {error['msg']}")
            data[key] = kept
        return data

    def collection(self, asset_class: AssetClass | str) -> list:
        """Return the live (mutable) list holding one asset class."""
        asset_class = AssetClass(asset_class)
        if asset_class is AssetClass.FIXED_DEPOSIT:
            return self.fixed_deposits
        if asset_class is AssetClass.MUTUAL_FUND:
            return self.mutual_funds
        if asset_class is AssetClass.STOCK:
            return self.stocks
        return self.gold

    def holdings(self) -> list[Holding]:
        return [*self.fixed_deposits, *self.mutual_funds, *self.stocks, *self.gold]

    def to_document(self) -> dict[str, Any]:
        """Serializable camelCase view, as written to storage and remote sync."""
        return self.model_dump(mode="json", by_alias=True)


def record_field(record: Mapping, name: str) -> Any:
    """Look a field up by snake_case name or its camelCase alias."""
    if name in record:
        return record[name]
    alias = "purchaseNAV" if name == "purchase_nav" else to_camel(name)
    return record.get(alias)


def infer_asset_class(record: Mapping) -> AssetClass | None:
    """Classify an untagged record by the fields it carries.

    The order matters: stocks and gold both have a symbol, so the average-price
    check must come before the symbol-only check.
    """
    if record_field(record, "scheme_code"):
        return AssetClass.MUTUAL_FUND
    if record_field(record, "symbol") and record_field(record, "avg_price"):
        return AssetClass.STOCK
    if record_field(record, "symbol"):
        return AssetClass.GOLD
    if record_field(record, "maturity_date"):
        return AssetClass.FIXED_DEPOSIT
    return None


def resolve_asset_class(record: Any) -> AssetClass | None:
    """Asset class of a model or mapping: explicit tag first, then shape."""
    if isinstance(record, HoldingBase):
        tag = getattr(record, "asset_class", None)
        return AssetClass(tag) if tag else None
    if isinstance(record, Mapping):
        tag = record_field(record, "asset_class")
        if tag:
            try:
                return AssetClass(tag)
            except ValueError:
                return None
        return infer_asset_class(record)
    return None


def parse_holding(
    data: Mapping | HoldingBase, asset_class: AssetClass | str | None = None
) -> Holding:
    """Build the holding model for ``data``.

    Raises ``ValueError`` when the class cannot be determined and pydantic's
    ``ValidationError`` when the fields do not fit the model.
    """
    if asset_class is None:
        asset_class = resolve_asset_class(data)
        if asset_class is None:
            raise ValueError("Cannot determine the asset class of the record")
    model = HOLDING_MODELS[AssetClass(asset_class)]
    if isinstance(data, HoldingBase):
        data = data.model_dump()
    return model.model_validate(data)
