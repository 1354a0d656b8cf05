"""Holdings tables: view, sort, search/filter and column visibility."""

from fastapi import APIRouter, Depends, HTTPException

from portfolio_dashboard.api.dependencies import get_dashboard
from portfolio_dashboard.api.schemas import (
    ColumnResponse,
    ColumnVisibilityRequest,
    FilterRequest,
    RowResponse,
    SortRequest,
    TableInfoResponse,
    TableResponse,
)
from portfolio_dashboard.services.dashboard import Dashboard
from portfolio_dashboard.services.table_view import ACTIONS_COLUMN, TABLES, TableId

router = APIRouter(prefix="/api/tables", tags=["tables"])


def _round_cell(value):
    if isinstance(value, float):
        return round(value, 4)
    return value


def _table_response(dashboard: Dashboard, table_id: TableId) -> TableResponse:
    spec = TABLES[table_id]
    state = dashboard.views.get(table_id)
    view = dashboard.table(table_id)
    return TableResponse(
        table_id=table_id.value,
        label=spec.label,
        columns=[ColumnResponse(key=c.key, label=c.label, virtual=c.virtual) for c in view.columns],
        all_columns=[
            ColumnResponse(
                key=c.key, label=c.label, virtual=c.virtual, visible=state.is_visible(c.key)
            )
            for c in spec.columns
            if c.key != ACTIONS_COLUMN
        ],
        rows=[
            RowResponse(
                index=row.index,
                cells={k: _round_cell(v) for k, v in row.cells.items()},
                is_live=bool(row.valuation and row.valuation.is_live),
                is_manual=bool(row.valuation and row.valuation.is_manual),
            )
            for row in view.rows
        ],
        matched_count=view.matched_count,
        total_count=view.total_count,
        is_empty=view.is_empty,
        no_results=view.no_results,
        sort_column=view.sort_column,
        ascending=view.ascending,
        query=state.query,
        category=state.category,
        has_category_filter=spec.has_category_filter,
    )


@router.get("", response_model=list[TableInfoResponse])
async def list_tables(dashboard: Dashboard = Depends(get_dashboard)):
    counts = dashboard.table_counts()
    return [
        TableInfoResponse(
            table_id=table_id.value,
            label=spec.label,
            asset_class=spec.asset_class.value,
            count=counts[table_id],
            has_category_filter=spec.has_category_filter,
        )
        for table_id, spec in TABLES.items()
    ]


@router.get("/{table_id}", response_model=TableResponse)
async def get_table(table_id: TableId, dashboard: Dashboard = Depends(get_dashboard)):
    return _table_response(dashboard, table_id)


@router.post("/{table_id}/sort", response_model=TableResponse)
async def sort_table(
    table_id: TableId, req: SortRequest, dashboard: Dashboard = Depends(get_dashboard)
):
    column = req.column.strip()
    if not column:
        raise HTTPException(status_code=400, detail="Column cannot be empty")
    dashboard.views.get(table_id).toggle_sort(column)
    return _table_response(dashboard, table_id)


@router.put("/{table_id}/filter", response_model=TableResponse)
async def filter_table(
    table_id: TableId, req: FilterRequest, dashboard: Dashboard = Depends(get_dashboard)
):
    state = dashboard.views.get(table_id)
    if req.query is not None:
        state.query = req.query
    if req.category is not None:
        state.category = req.category
    return _table_response(dashboard, table_id)


@router.put("/{table_id}/columns/{column_key}", response_model=TableResponse)
async def set_column_visibility(
    table_id: TableId,
    column_key: str,
    req: ColumnVisibilityRequest,
    dashboard: Dashboard = Depends(get_dashboard),
):
    known = {c.key for c in TABLES[table_id].columns}
    if column_key not in known:
        raise HTTPException(status_code=404, detail="Column not found")
    await dashboard.set_column_visibility(table_id, column_key, req.visible)
    return _table_response(dashboard, table_id)
