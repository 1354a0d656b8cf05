"""Stored JSON documents (portfolio data, column visibility)."""

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, String
from sqlalchemy.orm import Mapped, mapped_column
from portfolio_dashboard.models.database import Base


class StoredDocument(Base):
    __tablename__ = "stored_document"

    key: Mapped[str] = mapped_column(String(50), primary_key=True)
    payload: Mapped[Any] = mapped_column(JSON)
    updated_at: Mapped[str] = mapped_column(
        String(30),
        default=lambda: datetime.now().isoformat(),
        onupdate=lambda: datetime.now().isoformat(),
    )
