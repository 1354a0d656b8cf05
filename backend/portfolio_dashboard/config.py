"""Application configuration."""

import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent
DB_PATH = BASE_DIR / "data" / "portfolio_dashboard.db"
DATABASE_URL = os.getenv("DATABASE_URL") or f"sqlite+aiosqlite:///{DB_PATH}"

# Initial portfolio used when nothing has been saved yet
PORTFOLIO_SEED_PATH = Path(
    os.getenv("PORTFOLIO_SEED_PATH") or BASE_DIR / "data" / "portfolio.json"
)

# Stored document keys
PORTFOLIO_DOCUMENT_KEY = "portfolio_data_v1"
COLUMN_VISIBILITY_DOCUMENT_KEY = "column_visibility_v1"

# Live price settings
PRICE_REFRESH_INTERVAL = int(os.getenv("PRICE_REFRESH_INTERVAL", "300"))  # seconds
PRICE_FETCH_TIMEOUT = 10  # seconds
AMFI_NAV_URL = "https://www.amfiindia.com/spages/NAVAll.txt"
YAHOO_CHART_URL = "https://query1.finance.yahoo.com/v8/finance/chart/"

# Currency
REPORTING_CURRENCY = "INR"
FOREIGN_CURRENCY = "USD"
FOREIGN_EXCHANGE = "NASDAQ"
FX_RATE_KEY = "USDINR=X"
FX_FALLBACK_RATE = 84.0

# Mutual fund owner tags, one table and bucket each
MF_PRIMARY_OWNER = os.getenv("MF_PRIMARY_OWNER", "Mahesh")
MF_FAMILY_OWNER = os.getenv("MF_FAMILY_OWNER", "Family")

# Remote sync (GitHub contents API)
GITHUB_API_URL = "https://api.github.com"
GITHUB_TOKEN = os.getenv("GITHUB_TOKEN", "")
GITHUB_REPO = os.getenv("GITHUB_REPO", "")
GITHUB_FILE_PATH = os.getenv("GITHUB_FILE_PATH", "data/portfolio.json")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# Ensure data directory exists (only needed for local SQLite, skip if DATABASE_URL is overridden)
if not os.getenv("DATABASE_URL"):
    DB_PATH.parent.mkdir(parents=True, exist_ok=True)
