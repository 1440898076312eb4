"""PostgREST (Supabase) implementation of the remote feeding store.

Talks to ``{url}/rest/v1/{table}`` with a ``requests.Session``. Every request
carries the configured timeout; timeouts, connection errors, non-2xx
responses and unreadable bodies all surface as RemoteFailure.
"""

from typing import Any, Dict, List, Optional

import requests

from feeding_sync.config import RemoteConfig
from feeding_sync.errors import RemoteFailure, ValidationFailure
from feeding_sync.models import FeedingRecord
from feeding_sync.remote.base import RemoteStore


class RestRemoteStore(RemoteStore):
    """Remote store backed by a PostgREST table.

    Attributes:
        config: Connection settings
    """

    def __init__(self, config: RemoteConfig, session: Optional[requests.Session] = None):
        super().__init__()
        self.config = config
        self._session = session or requests.Session()
        self._session.headers.update({
            "apikey": config.api_key,
            "Authorization": f"Bearer {config.api_key}",
            "Content-Type": "application/json",
        })

    @property
    def endpoint(self) -> str:
        return f"{self.config.url}/rest/v1/{self.config.table}"

    def insert(self, record: FeedingRecord) -> None:
        self._request(
            "POST",
            json=record.to_row(self.config.timestamp_column),
            headers={"Prefer": "return=minimal"},
        )
        self.logger.debug(f"Inserted {record.id}")

    def upsert(self, record: FeedingRecord) -> None:
        self._request(
            "POST",
            params={"on_conflict": "id"},
            json=record.to_row(self.config.timestamp_column),
            headers={"Prefer": "resolution=merge-duplicates,return=minimal"},
        )
        self.logger.debug(f"Upserted {record.id}")

    def delete(self, record_id: str) -> None:
        self._request("DELETE", params={"id": f"eq.{record_id}"})
        self.logger.debug(f"Deleted {record_id}")

    def fetch_all(self) -> List[FeedingRecord]:
        response = self._request(
            "GET",
            params={"select": "*", "order": f"{self.config.timestamp_column}.desc"},
        )

        try:
            rows = response.json()
        except ValueError as e:
            raise RemoteFailure(f"Invalid JSON from {self.endpoint}: {e}", response.status_code) from e
        if not isinstance(rows, list):
            raise RemoteFailure(f"Expected a list of rows, got {type(rows).__name__}", response.status_code)

        records = []
        for row in rows:
            try:
                records.append(FeedingRecord.from_row(row, self.config.timestamp_column))
            except (ValidationFailure, AttributeError) as e:
                raise RemoteFailure(f"Unreadable feeding row: {e}", response.status_code) from e
        return records

    def close(self) -> None:
        self._session.close()

    def _request(
        self,
        method: str,
        params: Optional[Dict[str, str]] = None,
        json: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> requests.Response:
        try:
            response = self._session.request(
                method,
                self.endpoint,
                params=params,
                json=json,
                headers=headers,
                timeout=self.config.timeout,
            )
        except requests.exceptions.Timeout as e:
            raise RemoteFailure(f"{method} {self.endpoint} timed out after {self.config.timeout}s") from e
        except requests.exceptions.RequestException as e:
            raise RemoteFailure(f"{method} {self.endpoint} failed: {e}") from e

        try:
            response.raise_for_status()
        except requests.exceptions.HTTPError as e:
            raise RemoteFailure(
                f"{method} {self.endpoint} returned {response.status_code}: {response.text[:200]}",
                response.status_code,
            ) from e

        return response
