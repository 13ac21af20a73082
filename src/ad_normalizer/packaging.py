"""
Packaging Service

Handles the callbacks of the external packager that turns finished Encore
jobs into HLS packages when packaging is not done just in time.
"""

import json
import time
from dataclasses import dataclass
from typing import Any

from .encore import EncoreClient, EncoreJob, transcode_info_from_job
from .events import NormalizerEvents
from .exceptions import EncoreError
from .helpers import create_package_url
from .log_config import get_context_logger
from .store import TranscodeStore
from .types import TranscodeInfo, TranscodeStatus


PACKAGE_BASE_NAME = "index"


@dataclass
class PackagingSuccess:
    url: str
    job_id: str
    output_path: str

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PackagingSuccess":
        if not data.get("jobId"):
            raise ValueError("Packaging success body has no jobId")
        return cls(
            url=data.get("url") or "",
            job_id=data["jobId"],
            output_path=data.get("outputPath") or "",
        )


@dataclass
class PackagingFailure:
    job_id: str

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PackagingFailure":
        """Decode a failure body; ``message`` is a JSON string or an object."""
        message = data.get("message")
        if isinstance(message, str):
            message = json.loads(message)
        if not isinstance(message, dict) or not message.get("jobId"):
            raise ValueError("Packaging failure body has no jobId")
        return cls(job_id=message["jobId"])


class PackagingService:
    """
    Keeps the transcode status store in step with packager callbacks.

    Examples:
        >>> service = PackagingService(encore_client, store, asset_server_url="https://assets.example.com")
        >>> await service.handle_packaging_completed(
        ...     PackagingSuccess(url="", job_id="job-1", output_path="/ads/ad123/")
        ... )
    """

    def __init__(
        self,
        encore_client: EncoreClient,
        store: TranscodeStore,
        asset_server_url: str,
        redis_ttl: int = 86400,
    ):
        self.encore_client = encore_client
        self.store = store
        self.asset_server_url = asset_server_url
        self.redis_ttl = redis_ttl
        self.logger = get_context_logger("packaging_service")

    async def _creative_job(self, job_id: str) -> EncoreJob:
        job = await self.encore_client.get_job(job_id)
        if not job.external_id:
            raise EncoreError("Encore job does not have an external ID", job_id=job_id)
        return job

    async def handle_packaging_completed(self, event: PackagingSuccess) -> TranscodeInfo:
        """Mark the packaged creative as completed with its playlist URL.

        Raises:
            EncoreError: If the job cannot be fetched or has no creative key
            StoreError: If the store cannot be updated
        """
        job = await self._creative_job(event.job_id)
        try:
            info = transcode_info_from_job(job, False, self.asset_server_url)
        except EncoreError:
            await self.store.delete(job.external_id)
            raise

        info.url = create_package_url(self.asset_server_url, event.output_path, PACKAGE_BASE_NAME)
        info.status = TranscodeStatus.COMPLETED
        info.last_update = int(time.time())
        await self.store.set(job.external_id, info, ttl=self.redis_ttl)

        self.logger.info(
            NormalizerEvents.PACKAGING_COMPLETED,
            creative_id=job.external_id,
            package_url=info.url,
        )
        return info

    async def handle_packaging_failed(self, event: PackagingFailure) -> None:
        """Forget the creative so the next ad request submits it again."""
        job = await self._creative_job(event.job_id)
        await self.store.delete(job.external_id)
        self.logger.warning(
            NormalizerEvents.PACKAGING_FAILED,
            creative_id=job.external_id,
            job_id=event.job_id,
        )


__all__ = [
    "PackagingService",
    "PackagingSuccess",
    "PackagingFailure",
    "PACKAGE_BASE_NAME",
]
