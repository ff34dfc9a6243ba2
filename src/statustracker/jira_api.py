# src/statustracker/jira_api.py
from __future__ import annotations

import logging
from typing import Any, List, Sequence

import httpx

from .config import FIELD_PATH, ISSUE_PATH_TEMPLATE, SEARCH_PATH, Settings
from .errors import TransportError
from .fields import FieldDescriptor, resolve_field_ids
from .jql import Query
from .parse import IssueRecord

log = logging.getLogger(__name__)


class JiraClient:
    def __init__(self, settings: Settings, client: httpx.Client | None = None) -> None:
        self.settings = settings
        self._owns_client = client is None
        self.client = client or settings.build_client()

    # lifecycle
    def close(self) -> None:
        if self._owns_client:
            self.client.close()

    def __enter__(self) -> "JiraClient":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def _send_json(self, method: str, path: str, body: Any = None) -> Any:
        """One round trip. No retries; any failure becomes a TransportError."""
        try:
            r = self.client.request(method, path, json=body)
        except httpx.HTTPError as e:
            raise TransportError(f"{method} {path} failed: {e}") from e

        if r.status_code >= 400:
            raise TransportError(
                f"Jira {method} {path} returned {r.status_code}. Body: {r.text}",
                status_code=r.status_code,
            )
        if r.status_code == 204 or not r.content:
            return None
        try:
            return r.json()
        except ValueError as e:
            # JSONDecodeError, or UnicodeDecodeError for a body that is not UTF-8
            raise TransportError(
                f"Jira {method} {path} returned a body that is not JSON: {e}",
                status_code=r.status_code,
            ) from e

    # API
    def get_fields(self) -> List[FieldDescriptor]:
        data = self._send_json("GET", FIELD_PATH)
        if not isinstance(data, list):
            raise TransportError(f"Jira {FIELD_PATH} did not return a list of fields")
        return [FieldDescriptor.from_raw(f) for f in data if isinstance(f, dict)]

    def get_story_point_field_ids(self, field_name: str) -> List[str]:
        field_ids = resolve_field_ids(self.get_fields(), field_name)
        if not field_ids:
            log.warning("Story point field not found, every issue counts as unestimated",
                        extra={"field_name": field_name})
        else:
            log.debug("Resolved story point fields", extra={"field_name": field_name, "field_ids": field_ids})
        return field_ids

    def search_page(
        self,
        field_ids: Sequence[str],
        query: Query,
        start_at: int,
        max_results: int,
    ) -> List[IssueRecord]:
        payload = {
            "fields": list(field_ids),
            "jql": query.to_jql(),
            "startAt": start_at,
            "maxResults": max_results,
        }
        data = self._send_json("POST", SEARCH_PATH, payload)
        if not isinstance(data, dict):
            raise TransportError(f"Jira {SEARCH_PATH} did not return a JSON object")
        issues = data.get("issues", []) or []
        if not isinstance(issues, list) or not all(
            isinstance(it, dict) and isinstance(it.get("fields") or {}, dict) for it in issues
        ):
            raise TransportError(f"Jira {SEARCH_PATH} returned malformed issues")
        return [IssueRecord.from_raw(it) for it in issues]

    def search_all(
        self,
        field_ids: Sequence[str],
        query: Query,
        page_size: int | None = None,
    ) -> List[IssueRecord]:
        """
        Fetch every issue matching ``query`` via POST /rest/api/2/search.

        The offset advances by the number of issues actually returned, and a
        page shorter than ``page_size`` is the last one, so Jira's ``total``
        is never needed. A failure on any page raises and drops the pages
        fetched so far: a partial result would skew the estimate.
        """
        if page_size is None:
            page_size = self.settings.page_size

        issues: List[IssueRecord] = []
        next_start = 0
        while True:
            page = self.search_page(field_ids, query, next_start, page_size)
            issues.extend(page)
            returned = len(page)
            next_start += returned
            log.debug("Search page", extra={"returned": returned, "accumulated": len(issues)})
            if returned < page_size:
                break

        log.info("Search done", extra={"count": len(issues)})
        return issues

    def add_label(self, issue_key: str, label: str) -> None:
        path = ISSUE_PATH_TEMPLATE.format(issue_key=issue_key)
        self._send_json("PUT", path, {"update": {"labels": [{"add": label}]}})
        log.info("Label added", extra={"issue_key": issue_key, "label": label})


__all__ = ["JiraClient"]
