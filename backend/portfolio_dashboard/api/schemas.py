"""Pydantic schemas for API request/response."""

from typing import Any

from pydantic import BaseModel

from portfolio_dashboard.services.table_view import Category


class BucketResponse(BaseModel):
    key: str
    label: str
    icon: str
    count: int
    invested: float
    current_value: float
    gain_loss: float
    return_pct: float


class TotalResponse(BaseModel):
    invested: float
    current_value: float
    gain_loss: float
    return_pct: float


class SummaryCardResponse(BaseModel):
    key: str
    label: str
    invested: float
    current_value: float
    gain_loss: float
    return_pct: float


class SummaryResponse(BaseModel):
    buckets: list[BucketResponse]
    total: TotalResponse
    cards: list[SummaryCardResponse]
    fx_rate: float


class TableInfoResponse(BaseModel):
    table_id: str
    label: str
    asset_class: str
    count: int
    has_category_filter: bool


class ColumnResponse(BaseModel):
    key: str
    label: str
    virtual: bool
    visible: bool = True


class RowResponse(BaseModel):
    index: int
    cells: dict[str, Any]
    is_live: bool = False
    is_manual: bool = False


class TableResponse(BaseModel):
    table_id: str
    label: str
    columns: list[ColumnResponse]
    all_columns: list[ColumnResponse]
    rows: list[RowResponse]
    matched_count: int
    total_count: int
    is_empty: bool
    no_results: bool
    sort_column: str | None = None
    ascending: bool = True
    query: str = ""
    category: Category = Category.ALL
    has_category_filter: bool = True


class SortRequest(BaseModel):
    column: str


class FilterRequest(BaseModel):
    query: str | None = None
    category: Category | None = None


class ColumnVisibilityRequest(BaseModel):
    visible: bool


class ManualValueRequest(BaseModel):
    value: float | None = None


class HoldingMutationResponse(BaseModel):
    status: str = "ok"
    asset_class: str
    index: int


class PriceResponse(BaseModel):
    key: str
    price: float
    change: float | None = None
    change_pct: float | None = None
    fetched_at: str


class RefreshResponse(BaseModel):
    updated: list[str]
    failed: list[str]


class SyncResponse(BaseModel):
    status: str = "ok"
    commit_sha: str | None = None
