"""Stored documents: the portfolio and the table column visibility."""

import json
import logging
from pathlib import Path
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from portfolio_dashboard.config import (
    COLUMN_VISIBILITY_DOCUMENT_KEY,
    PORTFOLIO_DOCUMENT_KEY,
)
from portfolio_dashboard.models.database import async_session_factory
from portfolio_dashboard.models.document import StoredDocument
from portfolio_dashboard.models.holdings import Portfolio

logger = logging.getLogger(__name__)


class DocumentRepository:
    """Reads and writes JSON documents keyed by name."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession] = async_session_factory):
        self._session_factory = session_factory

    async def load(self, key: str) -> Any | None:
        async with self._session_factory() as session:
            document = await session.get(StoredDocument, key)
            return document.payload if document else None

    async def save(self, key: str, payload: Any) -> None:
        async with self._session_factory() as session:
            document = await session.get(StoredDocument, key)
            if document is None:
                session.add(StoredDocument(key=key, payload=payload))
            else:
                document.payload = payload
            await session.commit()

    async def load_portfolio(self) -> Portfolio | None:
        payload = await self.load(PORTFOLIO_DOCUMENT_KEY)
        if payload is None:
            return None
        return Portfolio.model_validate(payload)

    async def save_portfolio(self, portfolio: Portfolio) -> None:
        await self.save(PORTFOLIO_DOCUMENT_KEY, portfolio.to_document())
        logger.debug("Portfolio saved")

    async def load_column_visibility(self) -> dict[str, dict[str, bool]]:
        return await self.load(COLUMN_VISIBILITY_DOCUMENT_KEY) or {}

    async def save_column_visibility(self, document: dict[str, dict[str, bool]]) -> None:
        await self.save(COLUMN_VISIBILITY_DOCUMENT_KEY, document)


def load_seed_portfolio(path: Path) -> Portfolio | None:
    """Read a ``portfolio.json`` file, or None when it does not exist."""
    if not path.exists():
        return None
    with open(path, "r", encoding="utf-8") as f:
        return Portfolio.model_validate(json.load(f))
