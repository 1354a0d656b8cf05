"""Upload the portfolio document to a GitHub repository file."""

import base64
import json
import logging
from datetime import datetime
from typing import Any

import httpx

from portfolio_dashboard.config import (
    GITHUB_API_URL,
    GITHUB_FILE_PATH,
    GITHUB_REPO,
    GITHUB_TOKEN,
    PRICE_FETCH_TIMEOUT,
)
from portfolio_dashboard.services.exceptions import RemoteSyncError

logger = logging.getLogger(__name__)


class GitHubSyncService:
    """Writes one file through the GitHub contents API (create or update)."""

    def __init__(
        self,
        repo: str = GITHUB_REPO,
        file_path: str = GITHUB_FILE_PATH,
        token: str = GITHUB_TOKEN,
        api_url: str = GITHUB_API_URL,
    ):
        self.repo = repo
        self.file_path = file_path
        self.token = token
        self.api_url = api_url.rstrip("/")

    @property
    def configured(self) -> bool:
        return bool(self.token and self.repo)

    @property
    def contents_url(self) -> str:
        return f"{self.api_url}/repos/{self.repo}/contents/{self.file_path}"

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"token {self.token}",
            "Accept": "application/vnd.github.v3+json",
        }

    async def _current_sha(self, client: httpx.AsyncClient) -> str | None:
        resp = await client.get(self.contents_url, headers=self._headers())
        if resp.status_code == 404:
            return None
        if resp.status_code != 200:
            raise RemoteSyncError(f"API error: {resp.status_code}", resp.status_code)
        return resp.json().get("sha")

    async def push(
        self, document: dict[str, Any], client: httpx.AsyncClient | None = None
    ) -> str | None:
        """Upload ``document`` as pretty-printed JSON; returns the new commit sha."""
        if not self.token:
            raise RemoteSyncError("GitHub token not configured")
        if not self.repo:
            raise RemoteSyncError("GitHub repository not configured")

        content = json.dumps(document, indent=2, ensure_ascii=False)
        body: dict[str, Any] = {
            "message": f"Update {datetime.now().isoformat()}",
            "content": base64.b64encode(content.encode("utf-8")).decode("ascii"),
        }

        owns_client = client is None
        if owns_client:
            client = httpx.AsyncClient(timeout=PRICE_FETCH_TIMEOUT)
        try:
            sha = await self._current_sha(client)
            if sha:
                body["sha"] = sha
            resp = await client.put(self.contents_url, headers=self._headers(), json=body)
        except httpx.HTTPError as e:
            raise RemoteSyncError(f"Sync request failed: {e}") from e
        finally:
            if owns_client:
                await client.aclose()

        if resp.status_code not in (200, 201):
            raise RemoteSyncError("Update failed", resp.status_code)
        commit_sha = (resp.json().get("commit") or {}).get("sha")
        logger.info(f"Synced portfolio to {self.repo}/{self.file_path} ({commit_sha})")
        return commit_sha


# Global instance
github_sync_service = GitHubSyncService()
