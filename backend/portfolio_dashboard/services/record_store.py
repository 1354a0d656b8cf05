"""In-memory holdings store with add / update / delete by position."""

import logging
from collections.abc import Awaitable, Callable, Mapping
from typing import Any

from pydantic import ValidationError

from portfolio_dashboard.models.holdings import (
    AssetClass,
    GoldHolding,
    Holding,
    HoldingBase,
    Portfolio,
    parse_holding,
)
from portfolio_dashboard.services.exceptions import (
    HoldingNotFoundError,
    HoldingValidationError,
)

logger = logging.getLogger(__name__)

PersistFn = Callable[[Portfolio], Awaitable[None]]


class RecordStore:
    """Owns the Portfolio and persists it after every change.

    Each mutation is applied to the in-memory lists before anything is
    awaited, so callers never observe a half-applied change. Nothing derived
    from the portfolio is kept here; views recompute on read.
    """

    def __init__(self, portfolio: Portfolio | None = None, persist: PersistFn | None = None):
        self._portfolio = portfolio or Portfolio()
        self._persist = persist

    @property
    def portfolio(self) -> Portfolio:
        return self._portfolio

    def records(self, asset_class: AssetClass | str) -> list[Holding]:
        return list(self._portfolio.collection(asset_class))

    def snapshot(self) -> dict[str, Any]:
        return self._portfolio.to_document()

    def _coerce(self, asset_class: AssetClass, record: Mapping | HoldingBase) -> Holding:
        try:
            return parse_holding(record, asset_class)
        except ValidationError as e:
            raise HoldingValidationError(
                f"Invalid {asset_class.value} record: {e.errors()[0]['msg']}"
            ) from e

    def _check_index(self, asset_class: AssetClass, index: int) -> list:
        collection = self._portfolio.collection(asset_class)
        if not 0 <= index < len(collection):
            raise HoldingNotFoundError(asset_class.value, index)
        return collection

    async def _save(self) -> None:
        if self._persist is not None:
            await self._persist(self._portfolio)

    async def add(self, asset_class: AssetClass | str, record: Mapping | HoldingBase) -> int:
        """Append a holding; returns its index."""
        asset_class = AssetClass(asset_class)
        holding = self._coerce(asset_class, record)
        collection = self._portfolio.collection(asset_class)
        collection.append(holding)
        index = len(collection) - 1
        logger.info(f"Added {asset_class.value} holding at index {index}")
        await self._save()
        return index

    async def update(
        self, asset_class: AssetClass | str, index: int, record: Mapping | HoldingBase
    ) -> Holding:
        asset_class = AssetClass(asset_class)
        collection = self._check_index(asset_class, index)
        holding = self._coerce(asset_class, record)
        collection[index] = holding
        logger.info(f"Updated {asset_class.value} holding at index {index}")
        await self._save()
        return holding

    async def delete(self, asset_class: AssetClass | str, index: int) -> Holding:
        asset_class = AssetClass(asset_class)
        collection = self._check_index(asset_class, index)
        removed = collection.pop(index)
        logger.info(f"Deleted {asset_class.value} holding at index {index}")
        await self._save()
        return removed

    async def set_gold_manual_value(self, index: int, value: float | None) -> GoldHolding:
        """Set or clear (``None``) the manual current value of a gold holding."""
        collection = self._check_index(AssetClass.GOLD, index)
        updated = collection[index].model_copy(update={"manual_current_value": value})
        collection[index] = updated
        logger.info(f"Set manual value of gold holding at index {index} to {value}")
        await self._save()
        return updated

    async def replace(self, portfolio: Portfolio) -> None:
        self._portfolio = portfolio
        await self._save()
