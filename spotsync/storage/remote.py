"""
Hosted realtime document database store.

Talks to the database's REST interface with httpx:

    GET    {base}/{collection}.json          full snapshot, {key: document}
    GET    {base}/{collection}/{id}.json     one document or null
    PUT    {base}/{collection}/{id}.json     insert under a chosen id
    POST   {base}/{collection}.json          insert under a new push key
    PATCH  {base}/{collection}/{id}.json     shallow merge update

An optional token is sent as the ``auth`` query parameter. Records keep
their own id when the database has nothing under it; otherwise the
database mints a push key, so an insert never overwrites.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import httpx
from pydantic import ValidationError as ModelValidationError

from spotsync.core.exceptions import StoreReadError, StoreWriteError
from spotsync.core.logging import get_logger
from spotsync.core.models.records import TestRecord, canonical_document
from spotsync.storage.base import RecordInput, RecordStore, record_id_of, to_document

logger = get_logger(__name__)

DEFAULT_TIMEOUT_SEC = 30.0


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class RemoteRecordStore(RecordStore):
    """
    Record store backed by a realtime database collection.

    Use as an async context manager, or call aclose() when done:

        async with RemoteRecordStore("https://db.example.com") as store:
            records = await store.list_all()
    """

    def __init__(
        self,
        base_url: str,
        collection: str = "chemical_tests",
        auth_token: Optional[str] = None,
        timeout_sec: float = DEFAULT_TIMEOUT_SEC,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.collection = collection.strip("/")
        self.auth_token = auth_token
        self.timeout_sec = timeout_sec
        self._client = client
        self._owns_client = client is None

    @property
    def backend_name(self) -> str:
        return "remote"

    async def __aenter__(self) -> "RemoteRecordStore":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the HTTP client if this store created it."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=httpx.Timeout(self.timeout_sec))
            self._owns_client = True
        return self._client

    def _url(self, record_id: Optional[str] = None) -> str:
        if record_id is None:
            return f"{self.base_url}/{self.collection}.json"
        return f"{self.base_url}/{self.collection}/{record_id}.json"

    def _params(self) -> Dict[str, str]:
        return {"auth": self.auth_token} if self.auth_token else {}

    async def _request(
        self,
        method: str,
        url: str,
        error_cls: type,
        json_body: Any = None,
    ) -> Any:
        """Issue one request and decode the JSON body; map failures to StoreError."""
        try:
            response = await self._get_client().request(
                method, url, params=self._params(), json=json_body
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise error_cls(
                f"{method} {self.collection} failed: HTTP {e.response.status_code}",
                self.backend_name,
            ) from e
        except httpx.HTTPError as e:
            raise error_cls(
                f"{method} {self.collection} failed: {type(e).__name__}: {e}",
                self.backend_name,
            ) from e

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise error_cls(
                f"{method} {self.collection} returned invalid JSON",
                self.backend_name,
            ) from e

    def _to_record(self, key: str, document: Any) -> Optional[TestRecord]:
        """Build a record from a stored document; None if it is not an object."""
        if not isinstance(document, dict):
            return None
        normalized = canonical_document(document)
        normalized["id"] = key
        try:
            return TestRecord.model_validate(normalized)
        except ModelValidationError as e:
            raise StoreReadError(
                f"Malformed document {key} in {self.collection}: "
                f"{e.error_count()} invalid fields",
                self.backend_name,
            ) from e

    async def list_all(self) -> List[TestRecord]:
        data = await self._request("GET", self._url(), StoreReadError)
        if data is None:
            return []

        if isinstance(data, list):
            items = [(str(i), doc) for i, doc in enumerate(data) if doc is not None]
        elif isinstance(data, dict):
            items = list(data.items())
        else:
            raise StoreReadError(
                f"Unexpected snapshot type from {self.collection}: "
                f"{type(data).__name__}",
                self.backend_name,
            )

        records = []
        for key, document in items:
            try:
                record = self._to_record(str(key), document)
            except StoreReadError as e:
                logger.warning("Skipping malformed document", id=key, error=str(e))
                continue
            if record is None:
                logger.warning("Skipping non-object document", id=key)
                continue
            records.append(record)
        logger.debug("Remote snapshot loaded", records=len(records))
        return records

    async def get(self, record_id: str) -> Optional[TestRecord]:
        data = await self._request("GET", self._url(record_id), StoreReadError)
        if data is None:
            return None
        return self._to_record(record_id, data)

    async def add(self, record: RecordInput) -> str:
        document = to_document(record)
        now = _now()
        document.setdefault("created_at", now)
        document["updated_at"] = now

        record_id = record_id_of(record)
        if record_id and await self.get(record_id) is None:
            await self._request("PUT", self._url(record_id), StoreWriteError, document)
            return record_id

        data = await self._request("POST", self._url(), StoreWriteError, document)
        key = data.get("name") if isinstance(data, dict) else None
        if not key:
            raise StoreWriteError(
                f"POST {self.collection} returned no key", self.backend_name
            )
        return str(key)

    async def update(self, record_id: str, partial: RecordInput) -> None:
        document = to_document(partial)
        document["updated_at"] = _now()
        await self._request("PATCH", self._url(record_id), StoreWriteError, document)
