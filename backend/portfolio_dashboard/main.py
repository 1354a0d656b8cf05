"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from portfolio_dashboard.config import LOG_LEVEL, PORTFOLIO_SEED_PATH
from portfolio_dashboard.models.database import init_db
from portfolio_dashboard.services.dashboard import Dashboard
from portfolio_dashboard.services.repository import DocumentRepository
from portfolio_dashboard.api.holdings import router as holdings_router
from portfolio_dashboard.api.portfolio import router as portfolio_router
from portfolio_dashboard.api.prices import router as prices_router
from portfolio_dashboard.api.summary import router as summary_router
from portfolio_dashboard.api.sync import router as sync_router
from portfolio_dashboard.api.tables import router as tables_router
from portfolio_dashboard.tasks.scheduler import start_scheduler, stop_scheduler

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    await init_db()
    app.state.dashboard = await Dashboard.load(DocumentRepository(), PORTFOLIO_SEED_PATH)
    start_scheduler(app.state.dashboard)
    yield
    stop_scheduler()


app = FastAPI(title="Portfolio Dashboard", version="0.1.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(summary_router)
app.include_router(tables_router)
app.include_router(holdings_router)
app.include_router(portfolio_router)
app.include_router(prices_router)
app.include_router(sync_router)


@app.get("/api/health")
async def health_check():
    return {"status": "ok"}
