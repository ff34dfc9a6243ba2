# src/statustracker/config.py
from __future__ import annotations

import logging
import os
import ssl
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import httpx
from dotenv import find_dotenv, load_dotenv

from .errors import ConfigError

log = logging.getLogger(__name__)

FIELD_PATH = "/rest/api/2/field"
SEARCH_PATH = "/rest/api/2/search"
ISSUE_PATH_TEMPLATE = "/rest/api/2/issue/{issue_key}"

DEFAULT_PAGE_SIZE = 100


def _load_env_file(env_path: Optional[str | Path]) -> Optional[Path]:
    candidates = []
    if env_path:
        candidates.append(Path(env_path))
    candidates.append(Path.cwd() / ".env")
    for p in candidates:
        if p.is_file():
            load_dotenv(p, override=False)
            return p
    found = find_dotenv(usecwd=True)
    if found:
        load_dotenv(found, override=False)
        return Path(found)
    return None


def _on_request(request: httpx.Request) -> None:
    request.extensions["start_time"] = time.perf_counter()
    # never log headers, they carry the token
    log.debug("HTTP request", extra={"method": request.method, "url": str(request.url)})


def _on_response(response: httpx.Response) -> None:
    req = response.request
    start = req.extensions.get("start_time")
    elapsed_ms = int((time.perf_counter() - start) * 1000) if start is not None else None
    log.debug("HTTP response", extra={
        "method": req.method, "url": str(req.url),
        "status_code": response.status_code, "elapsed_ms": elapsed_ms,
    })


@dataclass(frozen=True)
class Settings:
    base_url: str
    username: str
    token: str
    ca_bundle: Optional[str] = None
    page_size: int = DEFAULT_PAGE_SIZE
    timeout_s: float = 30.0

    @classmethod
    def from_env(
        cls,
        env_path: Optional[str | Path] = None,
        *,
        base_url: Optional[str] = None,
        username: Optional[str] = None,
        token: Optional[str] = None,
    ) -> "Settings":
        """
        Build settings from explicit values, falling back to environment
        variables (a .env file is loaded first, without overriding the real
        environment).
        """
        loaded = _load_env_file(env_path)
        if loaded:
            log.debug("Loaded env file", extra={"path": str(loaded)})

        base_url = base_url or os.getenv("JIRA_URL") or os.getenv("JIRA_BASE_URL")
        username = username or os.getenv("JIRA_USERNAME")
        token = token or os.getenv("JIRA_TOKEN")
        ca_bundle = os.getenv("JIRA_CA_BUNDLE")
        try:
            page_size = int(os.getenv("JIRA_PAGE_SIZE") or DEFAULT_PAGE_SIZE)
            timeout_s = float(os.getenv("JIRA_TIMEOUT_S") or 30.0)
        except ValueError as e:
            raise ConfigError(f"JIRA_PAGE_SIZE and JIRA_TIMEOUT_S must be numbers: {e}") from e

        missing = []
        if not base_url:
            missing.append("--jira-url / JIRA_URL")
        if not username:
            missing.append("--jira-username / JIRA_USERNAME")
        if not token:
            missing.append("--jira-token / JIRA_TOKEN")
        if missing:
            raise ConfigError(f"Missing required setting(s): {', '.join(missing)}")
        if page_size <= 0:
            raise ConfigError(f"JIRA_PAGE_SIZE must be positive, got {page_size}")

        return cls(
            base_url=base_url.rstrip("/"),
            username=username,
            token=token,
            ca_bundle=ca_bundle,
            page_size=page_size,
            timeout_s=timeout_s,
        )

    def build_client(self, transport: httpx.BaseTransport | None = None) -> httpx.Client:
        headers = {"Accept": "application/json", "Content-Type": "application/json"}
        verify = ssl.create_default_context(cafile=self.ca_bundle) if self.ca_bundle else True
        return httpx.Client(
            base_url=self.base_url,
            auth=httpx.BasicAuth(self.username, self.token),
            headers=headers,
            timeout=httpx.Timeout(self.timeout_s),
            verify=verify,
            transport=transport,
            event_hooks={"request": [_on_request], "response": [_on_response]},
        )
