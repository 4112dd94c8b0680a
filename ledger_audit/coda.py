"""
Minimal Coda REST API client.

Only row listing is needed: the account directory and the ledger fetcher both
read table rows. Requests are retried with exponential backoff on network
errors, 429 and 5xx responses. Other client errors fail immediately.
"""

import logging
import time
from typing import Dict, List, Optional

import requests

from ledger_audit.exceptions import ConfigError, FetchError

logger = logging.getLogger(__name__)

NO_RETRY_CODES = {400, 401, 403, 404}
MAX_DELAY = 30.0


class CodaClient:
    """Coda API client bound to one API key."""

    def __init__(self, api_key: str, base_url: str = "https://coda.io/apis/v1",
                 timeout: float = 30, max_retries: int = 3, retry_delay: float = 1.0,
                 session: Optional[requests.Session] = None):
        if not api_key:
            raise ConfigError("No Coda API key configured (set CODA_API_KEY)")

        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.session = session or requests.Session()
        self.session.headers.update({
            "Authorization": f"Bearer {api_key}",
            "Accept": "application/json",
        })

    @classmethod
    def from_settings(cls, settings, session=None):
        coda = settings.coda
        return cls(
            api_key=coda.api_key,
            base_url=coda.base_url,
            timeout=coda.timeout,
            max_retries=coda.max_retries,
            retry_delay=coda.retry_delay,
            session=session,
        )

    def _get(self, path: str, params: Dict) -> Dict:
        url = f"{self.base_url}{path}"
        delay = self.retry_delay

        for attempt in range(self.max_retries + 1):
            last_attempt = attempt == self.max_retries
            try:
                response = self.session.get(url, params=params, timeout=self.timeout)
            except requests.RequestException as e:
                if last_attempt:
                    raise FetchError(f"Unable to reach Coda at {url}: {str(e)}")
                logger.warning(f"[Retry {attempt + 1}/{self.max_retries}] Network error: {str(e)}")
                time.sleep(delay)
                delay = min(delay * 2, MAX_DELAY)
                continue

            if response.status_code == 200:
                try:
                    return response.json()
                except ValueError:
                    raise FetchError(f"Invalid JSON from Coda at {url}")

            if response.status_code in NO_RETRY_CODES or (
                    400 <= response.status_code < 500 and response.status_code != 429):
                raise FetchError(f"Coda request failed with HTTP {response.status_code}: {response.text[:200]}")

            if last_attempt:
                raise FetchError(
                    f"Coda request failed with HTTP {response.status_code} after {self.max_retries} retries"
                )

            wait = delay
            retry_after = response.headers.get("Retry-After")
            if response.status_code == 429 and retry_after:
                try:
                    wait = float(retry_after)
                except ValueError:
                    pass
            logger.warning(f"[Retry {attempt + 1}/{self.max_retries}] HTTP {response.status_code}")
            time.sleep(wait)
            delay = min(delay * 2, MAX_DELAY)

        raise FetchError(f"Coda request to {url} failed")

    def list_table_rows(self, doc_id: str, table_id: str, query: Optional[str] = None,
                        value_format: Optional[str] = None) -> List[Dict]:
        """List all rows of a table, following pagination.

        Args:
            doc_id: Coda document id
            table_id: Table id or name
            query: Row filter of the form '<column id>:"<value>"'
            value_format: 'simple', 'simpleWithArrays' or 'rich'

        Returns:
            list: Row objects with 'id', 'name' and 'values'

        Raises:
            FetchError: If Coda cannot be reached or rejects the request
        """
        params = {}
        if query:
            params["query"] = query
        if value_format:
            params["valueFormat"] = value_format

        path = f"/docs/{doc_id}/tables/{table_id}/rows"
        rows = []
        while True:
            data = self._get(path, params)
            rows.extend(data.get("items", []))

            page_token = data.get("nextPageToken")
            if not page_token:
                break
            params = dict(params, pageToken=page_token)

        logger.debug(f"Fetched {len(rows)} rows from {table_id} (query={query!r})")
        return rows


def column_query(column_id: str, value: str) -> str:
    """Build a Coda row query matching a column value exactly."""
    escaped = value.replace('"', '\\"')
    return f'{column_id}:"{escaped}"'
