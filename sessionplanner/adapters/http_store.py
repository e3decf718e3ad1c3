"""
HTTP client for reading commitments from the appointment service.
"""

import asyncio
import logging
from typing import Any, List

import requests
from pendulum import DateTime

from ..domain.exceptions import CommitmentStoreError
from ..domain.models import ExistingCommitment
from .appointment_records import commitment_from_record, involves

logger = logging.getLogger(__name__)


class HttpCommitmentStore:
    """
    Client for the appointment service's per-user appointment listing.

    Uses ``GET {base_url}/users/{owner_id}/appointments?from=...&to=...``.
    Requests are blocking, so they run in a worker thread; fetches for
    different owners can proceed concurrently.
    """

    def __init__(
        self,
        base_url: str,
        access_token: str | None = None,
        timezone: str = "Europe/Berlin",
        timeout: float = 30.0,
    ):
        """
        Initialize the client.

        Args:
            base_url: Root URL of the appointment service
            access_token: Optional bearer token
            timezone: IANA timezone identifier for returned datetimes
            timeout: Request timeout in seconds
        """
        self.base_url = base_url.rstrip("/")
        self.timezone = timezone
        self.timeout = timeout
        self.headers = {"Accept": "application/json"}
        if access_token:
            self.headers["Authorization"] = f"Bearer {access_token}"

    async def get_active_commitments(
        self,
        owner_id: str,
        range_start: DateTime,
        range_end: DateTime,
    ) -> List[ExistingCommitment]:
        return await asyncio.to_thread(
            self.fetch_commitments, owner_id, range_start, range_end
        )

    def fetch_commitments(
        self,
        owner_id: str,
        range_start: DateTime,
        range_end: DateTime,
    ) -> List[ExistingCommitment]:
        """
        Fetch one owner's active commitments overlapping a range.

        Raises:
            CommitmentStoreError: If the request fails or the payload is malformed
        """
        url = f"{self.base_url}/users/{owner_id}/appointments"
        params = {
            "from": range_start.to_iso8601_string(),
            "to": range_end.to_iso8601_string(),
        }

        try:
            response = requests.get(url, headers=self.headers, params=params, timeout=self.timeout)
            response.raise_for_status()
            data = response.json()
        except requests.exceptions.RequestException as e:
            raise CommitmentStoreError(f"Failed to fetch appointments for {owner_id}: {e}") from e
        except ValueError as e:
            raise CommitmentStoreError(f"Invalid response for {owner_id}: {e}") from e

        return self._parse_response(data, owner_id, range_start, range_end)

    def _parse_response(
        self,
        data: Any,
        owner_id: str,
        range_start: DateTime,
        range_end: DateTime,
    ) -> List[ExistingCommitment]:
        """
        Parse the listing into commitments.

        Response format: either a list of appointment records or
        ``{"value": [...]}``. A malformed record fails the whole fetch, since
        a partial picture would report busy time as free.
        """
        records: Any = data.get("value") if isinstance(data, dict) else data
        if not isinstance(records, list):
            raise CommitmentStoreError(f"Unexpected response shape for {owner_id}")

        commitments: List[ExistingCommitment] = []
        for record in records:
            if not isinstance(record, dict):
                raise CommitmentStoreError(f"Unexpected appointment entry for {owner_id}: {record!r}")
            if not involves(record, owner_id):
                continue
            try:
                commitment = commitment_from_record(record, owner_id, self.timezone)
            except (KeyError, ValueError) as e:
                raise CommitmentStoreError(
                    f"Could not parse appointment {record.get('id')}: {e}"
                ) from e

            if commitment.status.is_active and commitment.start < range_end and commitment.end > range_start:
                commitments.append(commitment)

        logger.debug("Fetched %d commitments for %s", len(commitments), owner_id)
        return sorted(commitments, key=lambda c: c.start)
