import asyncio
import os
from typing import Any, Dict, List, Mapping

import requests
from tenacity import retry, wait_exponential_jitter, stop_after_attempt, retry_if_exception_type, RetryError

from core.errors import BackendError
from core.logger import get_logger
from core.models import Item

logger = get_logger(__name__)

API_URL = os.getenv("CATALOG_API_URL", "http://localhost:8000/api").rstrip("/")
API_TOKEN = os.getenv("CATALOG_API_TOKEN", "").strip()
USER_AGENT = os.getenv("CATALOG_USER_AGENT", "catalog-importer/1.0")
REQUEST_TIMEOUT = int(os.getenv("CATALOG_REQUEST_TIMEOUT", "30"))
FETCH_ATTEMPTS = int(os.getenv("CATALOG_FETCH_ATTEMPTS", "4"))


class _Transient(Exception):
    """Server or connection failure worth retrying."""


def _error_message(resp: requests.Response) -> str:
    try:
        body = resp.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        msg = body.get("message") or body.get("error")
        if isinstance(msg, str) and msg:
            return msg
    return f"HTTP {resp.status_code} from {resp.url}"


class HttpCatalogBackend:
    """
    Catalog service over its REST API.

      GET  /items          -> list of item records
      GET  /items/<id>     -> detail record
      POST /imports        -> {"items": [...]}, all or nothing

    Reads are retried with backoff; the import POST is sent once.
    """

    def __init__(self, base_url: str = API_URL, token: str = API_TOKEN, session: requests.Session | None = None):
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()
        self.session.headers.update({"User-Agent": USER_AGENT, "Accept": "application/json"})
        if token:
            self.session.headers.update({"Authorization": f"Bearer {token}"})

    def _url(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    @retry(
        wait=wait_exponential_jitter(initial=1, max=30),
        stop=stop_after_attempt(FETCH_ATTEMPTS),
        retry=retry_if_exception_type(_Transient),
    )
    def _get_once(self, path: str) -> Any:
        url = self._url(path)
        try:
            r = self.session.get(url, timeout=REQUEST_TIMEOUT)
        except requests.RequestException as e:
            logger.warning("GET %s failed: %s", url, e)
            raise _Transient(str(e)) from e
        if r.status_code >= 500:
            logger.warning("GET %s returned %d; will retry.", url, r.status_code)
            raise _Transient(_error_message(r))
        if not r.ok:
            raise BackendError(_error_message(r))
        try:
            return r.json()
        except ValueError as e:
            raise BackendError(f"Invalid JSON from {url}") from e

    def _get(self, path: str) -> Any:
        try:
            return self._get_once(path)
        except RetryError as e:
            cause = e.last_attempt.exception()
            logger.error("Giving up on GET %s after %d attempts: %s", path, FETCH_ATTEMPTS, cause)
            raise BackendError(str(cause) or "Catalog service unavailable") from e

    def _post(self, path: str, payload: Dict[str, Any]) -> None:
        url = self._url(path)
        try:
            r = self.session.post(url, json=payload, timeout=REQUEST_TIMEOUT)
        except requests.RequestException as e:
            raise BackendError(str(e)) from e
        if not r.ok:
            raise BackendError(_error_message(r))

    def _list_items(self) -> List[Item]:
        data = self._get("items")
        if isinstance(data, dict):
            data = data.get("items") or data.get("products") or []
        if not isinstance(data, list):
            raise BackendError("Unexpected catalog response shape")
        items = [Item.from_payload(it) for it in data if isinstance(it, dict)]
        logger.debug("Fetched %d item records from %s.", len(items), self.base_url)
        return items

    def _fetch_detail(self, item_id: str) -> Mapping[str, Any]:
        data = self._get(f"items/{item_id}")
        if not isinstance(data, dict):
            raise BackendError(f"Unexpected detail response for {item_id}")
        return data

    def _submit_import(self, items: List[Item]) -> None:
        self._post("imports", {"items": [it.to_payload() for it in items]})
        logger.info("Import batch of %d item(s) accepted by %s.", len(items), self.base_url)

    async def list_items(self) -> List[Item]:
        return await asyncio.to_thread(self._list_items)

    async def fetch_detail(self, item_id: str) -> Mapping[str, Any]:
        return await asyncio.to_thread(self._fetch_detail, item_id)

    async def submit_import(self, items: List[Item]) -> None:
        await asyncio.to_thread(self._submit_import, list(items))
