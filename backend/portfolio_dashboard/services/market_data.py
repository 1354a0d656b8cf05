"""Live prices: AMFI for mutual fund NAVs, Yahoo chart API for stocks, gold and FX."""

import asyncio
import csv
import io
import logging
from dataclasses import dataclass, field

import httpx
import pandas as pd

from portfolio_dashboard.config import (
    AMFI_NAV_URL,
    FX_RATE_KEY,
    PRICE_FETCH_TIMEOUT,
    YAHOO_CHART_URL,
)
from portfolio_dashboard.models.holdings import Portfolio
from portfolio_dashboard.services.price_cache import LivePriceCache, PriceSnapshot

logger = logging.getLogger(__name__)

# NAVAll.txt layout: Scheme Code;ISIN Div Payout/Growth;ISIN Div Reinvestment;Scheme Name;NAV;Date
_AMFI_COLUMNS = ["scheme_code", "isin_growth", "isin_reinvest", "scheme_name", "nav", "date"]

# Yahoo rejects requests without a browser-like agent
_HEADERS = {"User-Agent": "Mozilla/5.0"}


@dataclass
class RefreshResult:
    updated: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)


class MarketDataService:
    """Fetches live prices into a LivePriceCache, one instrument at a time."""

    def __init__(self, timeout: float = PRICE_FETCH_TIMEOUT):
        self._timeout = timeout

    def parse_amfi_navs(self, text: str) -> dict[str, float]:
        """Parse AMFI NAVAll.txt into {scheme_code: nav}.

        Section headings, blank lines and "N.A." NAVs are dropped.
        """
        df = pd.read_csv(
            io.StringIO(text),
            sep=";",
            header=None,
            names=_AMFI_COLUMNS,
            dtype=str,
            engine="python",
            quoting=csv.QUOTE_NONE,
            on_bad_lines="skip",
            skip_blank_lines=True,
        )
        df["nav"] = pd.to_numeric(df["nav"], errors="coerce")
        df = df.dropna(subset=["scheme_code", "nav"])
        df = df[df["nav"] > 0]
        return {
            str(code).strip(): float(nav) for code, nav in zip(df["scheme_code"], df["nav"])
        }

    async def fetch_mf_navs(
        self, client: httpx.AsyncClient, scheme_codes: list[str], cache: LivePriceCache
    ) -> RefreshResult:
        result = RefreshResult()
        if not scheme_codes:
            return result
        try:
            resp = await client.get(AMFI_NAV_URL)
            resp.raise_for_status()
            navs = self.parse_amfi_navs(resp.text)
        except Exception as e:
            logger.error(f"AMFI NAV fetch failed: {e}")
            result.failed.extend(scheme_codes)
            return result

        for code in scheme_codes:
            nav = navs.get(code)
            if nav is None:
                result.failed.append(code)
                continue
            cache.set(code, PriceSnapshot(price=nav))
            result.updated.append(code)
        return result

    async def fetch_quote(self, client: httpx.AsyncClient, symbol: str) -> PriceSnapshot | None:
        """Latest price and change vs previous close for one Yahoo symbol."""
        resp = await client.get(
            f"{YAHOO_CHART_URL}{symbol}",
            params={"interval": "1d", "range": "2d"},
            headers=_HEADERS,
        )
        resp.raise_for_status()
        results = (resp.json().get("chart") or {}).get("result") or []
        if not results:
            return None
        meta = results[0].get("meta") or {}
        price = meta.get("regularMarketPrice") or meta.get("previousClose")
        if not price:
            return None
        prev = meta.get("chartPreviousClose") or meta.get("previousClose")
        if not prev:
            return PriceSnapshot(price=float(price))
        change = float(price) - float(prev)
        return PriceSnapshot(
            price=float(price), change=change, change_pct=change / float(prev) * 100
        )

    async def fetch_quotes(
        self, client: httpx.AsyncClient, symbols: list[str], cache: LivePriceCache
    ) -> RefreshResult:
        """Fetch all symbols concurrently; one failure never affects the others."""
        result = RefreshResult()
        outcomes = await asyncio.gather(
            *(self.fetch_quote(client, s) for s in symbols), return_exceptions=True
        )
        for symbol, outcome in zip(symbols, outcomes):
            if isinstance(outcome, Exception):
                logger.error(f"Quote fetch failed for {symbol}: {outcome}")
                result.failed.append(symbol)
            elif outcome is None:
                logger.warning(f"No quote data for {symbol}")
                result.failed.append(symbol)
            else:
                cache.set(symbol, outcome)
                result.updated.append(symbol)
        return result

    async def refresh_all(
        self,
        portfolio: Portfolio,
        cache: LivePriceCache,
        client: httpx.AsyncClient | None = None,
    ) -> RefreshResult:
        """Refresh every instrument in the portfolio plus the FX rate."""
        scheme_codes = _unique(mf.scheme_code for mf in portfolio.mutual_funds)
        symbols = _unique(
            [s.symbol for s in portfolio.stocks] + [g.symbol for g in portfolio.gold] + [FX_RATE_KEY]
        )

        owns_client = client is None
        if owns_client:
            client = httpx.AsyncClient(timeout=self._timeout, follow_redirects=True)
        try:
            mf_result, quote_result = await asyncio.gather(
                self.fetch_mf_navs(client, scheme_codes, cache),
                self.fetch_quotes(client, symbols, cache),
            )
        finally:
            if owns_client:
                await client.aclose()

        result = RefreshResult(
            updated=mf_result.updated + quote_result.updated,
            failed=mf_result.failed + quote_result.failed,
        )
        logger.info(
            f"Refreshed {len(result.updated)} prices, {len(result.failed)} unavailable"
        )
        return result


def _unique(keys) -> list[str]:
    """Non-empty keys, first occurrence order."""
    return list(dict.fromkeys(k for k in keys if k))


# Global instance
market_data_service = MarketDataService()
