"""
Remote sync push
Sends outbox records to an HTTP sync endpoint
Reference: https://www.python-httpx.org/async/
"""
import logging
from typing import Optional

import httpx

from taskly.api.v1.schemas.sync import SyncRecordResponse
from taskly.core.config import settings
from taskly.core.exceptions import SyncItemException
from taskly.models.sync_record import SyncRecord

logger = logging.getLogger(__name__)


def get_remote_push() -> Optional["RemotePush"]:
    """
    Remote push built from settings

    Returns None if no endpoint is configured (sync stays local).
    """
    if not settings.SYNC_REMOTE_URL:
        logger.info("Sync endpoint not configured - sync records are acknowledged locally")
        return None
    return RemotePush(
        settings.SYNC_REMOTE_URL,
        token=settings.SYNC_REMOTE_TOKEN,
        timeout=settings.SYNC_REMOTE_TIMEOUT_SECONDS,
    )


class RemotePush:
    """
    Push collaborator for SyncService

    Each record is POSTed as JSON to {base_url}/{table_name}. Any transport
    error or non-2xx answer raises, so the sync service keeps the record and
    counts a retry.
    """

    def __init__(
        self,
        base_url: str,
        token: Optional[str] = None,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.timeout = timeout
        self._transport = transport

    def _headers(self) -> dict[str, str]:
        if not self.token:
            return {}
        return {"Authorization": f"Bearer {self.token}"}

    async def __call__(self, record: SyncRecord) -> None:
        payload = SyncRecordResponse.model_validate(record).model_dump(mode="json")
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(
                    f"{self.base_url}/{record.table_name}",
                    headers=self._headers(),
                    json=payload,
                )
                response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise SyncItemException(
                f"Sync endpoint answered {e.response.status_code}"
            ) from e
        except httpx.HTTPError as e:
            raise SyncItemException(f"Sync endpoint unreachable: {type(e).__name__}") from e

        logger.debug(f"Pushed {record.operation} of {record.table_name} {record.record_id}")
