"""Encore transcoding integration."""

from .client import EncoreClient
from .service import EncoreService, get_frame_rates, get_transcode_status, transcode_info_from_job
from .types import EncoreInput, EncoreJob, EncoreOutput, EncoreStatus, JobProgress, VideoStream


__all__ = [
    "EncoreClient",
    "EncoreService",
    "EncoreJob",
    "EncoreInput",
    "EncoreOutput",
    "EncoreStatus",
    "JobProgress",
    "VideoStream",
    "get_frame_rates",
    "get_transcode_status",
    "transcode_info_from_job",
]
