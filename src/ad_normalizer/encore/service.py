"""
Encore Service

Turns missing creatives into Encore transcode jobs and keeps the transcode
status store in step with the job progress callbacks Encore sends back.
"""

import time

from ..events import NormalizerEvents
from ..exceptions import EncoreError, StoreError
from ..helpers import calculate_aspect_ratio, create_output_url, create_package_url
from ..log_config import get_context_logger
from ..store import TranscodeStore
from ..types import Creative, TranscodeInfo, TranscodeStatus
from .client import EncoreClient
from .types import EncoreInput, EncoreJob, EncoreStatus, JobProgress


DEFAULT_WIDTH = 1920
DEFAULT_HEIGHT = 1080


def get_transcode_status(encore_status: str, jit_package: bool) -> TranscodeStatus:
    """Map an Encore job status onto the stored transcode status.

    A successful transcode is only ``COMPLETED`` when packages are produced
    just in time; otherwise it still awaits packaging.
    """
    if encore_status == EncoreStatus.SUCCESSFUL:
        return TranscodeStatus.COMPLETED if jit_package else TranscodeStatus.PACKAGING
    if encore_status in (EncoreStatus.FAILED, EncoreStatus.CANCELLED):
        return TranscodeStatus.FAILED
    if encore_status in (EncoreStatus.NEW, EncoreStatus.QUEUED, EncoreStatus.IN_PROGRESS):
        return TranscodeStatus.IN_PROGRESS
    return TranscodeStatus.UNKNOWN


def get_frame_rates(job: EncoreJob) -> list[float]:
    return job.frame_rates()


def transcode_info_from_job(job: EncoreJob, jit_package: bool, asset_server_url: str) -> TranscodeInfo:
    """Build the status record of a finished Encore job.

    Raises:
        EncoreError: If the job has no outputs
    """
    if not job.outputs:
        raise EncoreError("No outputs found for job", job_id=job.id)

    streams = job.outputs[0].video_streams
    width = streams[0].width if streams and streams[0].width else DEFAULT_WIDTH
    height = streams[0].height if streams and streams[0].height else DEFAULT_HEIGHT

    url = ""
    if jit_package:
        url = create_package_url(asset_server_url, job.output_folder, job.base_name)

    return TranscodeInfo(
        url=url,
        aspect_ratio=calculate_aspect_ratio(width, height),
        framerates=get_frame_rates(job),
        status=get_transcode_status(job.status, jit_package),
        source=job.inputs[0].uri if job.inputs else None,
        last_update=int(time.time()),
        error=job.message or None,
    )


class EncoreService:
    """
    Transcode job lifecycle on top of Encore and the status store.

    Attributes:
        client: Encore API client
        store: Transcode status store
        profile: Encore transcoding profile
        output_bucket_url: Object storage location jobs write to
        root_url: Public URL of this service, for progress callbacks
        asset_server_url: Public URL packaged assets are served from
        jit_package: Whether packages are produced just in time
        packaging_queue: Queue packaging jobs are pushed to
        in_flight_ttl: Expiry of in-flight records, in seconds
        redis_ttl: Expiry of finished records, in seconds
    """

    def __init__(
        self,
        client: EncoreClient,
        store: TranscodeStore,
        profile: str,
        output_bucket_url: str,
        root_url: str,
        asset_server_url: str,
        jit_package: bool = False,
        packaging_queue: str = "package",
        in_flight_ttl: int = 3600,
        redis_ttl: int = 86400,
    ):
        self.client = client
        self.store = store
        self.profile = profile
        self.output_bucket_url = output_bucket_url
        self.root_url = root_url.rstrip("/")
        self.asset_server_url = asset_server_url
        self.jit_package = jit_package
        self.packaging_queue = packaging_queue
        self.in_flight_ttl = in_flight_ttl
        self.redis_ttl = redis_ttl
        self.logger = get_context_logger("encore_service")

    def build_job(self, creative: Creative) -> EncoreJob:
        return EncoreJob(
            external_id=creative.creative_id,
            profile=self.profile,
            output_folder=create_output_url(self.output_bucket_url, creative.creative_id),
            base_name=creative.creative_id,
            progress_callback_uri=f"{self.root_url}/encoreCallback",
            inputs=[EncoreInput(uri=creative.master_playlist_url)],
        )

    async def create_job(self, creative: Creative) -> TranscodeInfo | None:
        """Submit a transcode job for a missing creative and mark it in flight.

        Returns:
            The in-flight record, or ``None`` if Encore did not accept the job
        """
        try:
            submitted = await self.client.submit_job(self.build_job(creative))
        except EncoreError as e:
            self.logger.error(
                NormalizerEvents.JOB_SUBMIT_FAILED,
                creative_id=creative.creative_id,
                error=str(e),
            )
            return None

        info = TranscodeInfo(
            status=TranscodeStatus.IN_PROGRESS,
            source=creative.master_playlist_url,
            last_update=int(time.time()),
        )
        try:
            await self.store.set(creative.creative_id, info, ttl=self.in_flight_ttl)
        except StoreError as e:
            self.logger.error(
                "Failed to mark creative in flight",
                creative_id=creative.creative_id,
                job_id=submitted.id,
                error=str(e),
            )
        return info

    async def handle_callback(self, progress: JobProgress) -> None:
        """Apply an Encore progress callback.

        Raises:
            EncoreError: If the finished job cannot be fetched
            StoreError: If the store cannot be updated
        """
        self.logger.info(
            NormalizerEvents.JOB_CALLBACK,
            job_id=progress.job_id,
            external_id=progress.external_id,
            status=progress.status,
        )
        if progress.status == EncoreStatus.SUCCESSFUL:
            await self.handle_transcode_completed(progress)
        elif progress.status == EncoreStatus.FAILED:
            await self.store.delete(progress.external_id)
        elif progress.status == EncoreStatus.IN_PROGRESS:
            self.logger.info(
                "Transcoding progress updated",
                creative_id=progress.external_id,
                progress=progress.progress,
            )
        else:
            self.logger.info("Job status does not match any known status", status=progress.status)

    async def handle_transcode_completed(self, progress: JobProgress) -> None:
        job = await self.client.get_job(progress.job_id)
        try:
            info = transcode_info_from_job(job, self.jit_package, self.asset_server_url)
        except EncoreError as e:
            self.logger.error(
                "Failed to create transcode info from Encore job",
                job_id=progress.job_id,
                error=str(e),
            )
            await self.store.delete(progress.external_id)
            return

        try:
            await self.store.set(progress.external_id, info, ttl=self.redis_ttl)
        except StoreError:
            await self.store.delete(progress.external_id)
            raise

        if not self.jit_package:
            await self.store.enqueue_packaging_job(
                self.packaging_queue,
                {"jobId": progress.job_id, "url": self.client.job_url(progress.job_id)},
            )
            self.logger.info(
                NormalizerEvents.PACKAGING_ENQUEUED,
                creative_id=progress.external_id,
                job_id=progress.job_id,
            )


__all__ = [
    "EncoreService",
    "get_transcode_status",
    "get_frame_rates",
    "transcode_info_from_job",
]
