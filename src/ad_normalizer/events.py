"""Ad normalizer event type constants."""

from enum import Enum


class NormalizerEvents(str, Enum):
    """Event type constants for structured logging."""

    # Parser events
    PARSE_STARTED = "normalizer.parse.started"
    PARSE_SUCCESS = "normalizer.parse.success"
    PARSE_FAILED = "normalizer.parse.failed"

    # Ad server events
    REQUEST_STARTED = "normalizer.adserver.started"
    REQUEST_SUCCESS = "normalizer.adserver.success"
    REQUEST_FAILED = "normalizer.adserver.failed"

    # Creative pipeline events
    EXTRACT_FAILED = "normalizer.extract.failed"
    PARTITION_COMPLETED = "normalizer.partition.completed"
    LOOKUP_FAILED = "normalizer.partition.lookup_failed"
    CREATIVE_BLACKLISTED = "normalizer.partition.blacklisted"
    REWRITE_FAILED = "normalizer.rewrite.failed"
    ASSET_LIST_FALLBACK = "normalizer.asset_list.fallback"
    STATE_CHANGED = "normalizer.pipeline.state"

    # Transcode job events
    JOB_SUBMITTED = "normalizer.job.submitted"
    JOB_SUBMIT_FAILED = "normalizer.job.submit_failed"
    PREINGEST_COMPLETED = "normalizer.preingest.completed"
    JOB_CALLBACK = "normalizer.job.callback"
    PACKAGING_ENQUEUED = "normalizer.packaging.enqueued"
    PACKAGING_COMPLETED = "normalizer.packaging.completed"
    PACKAGING_FAILED = "normalizer.packaging.failed"


__all__ = ["NormalizerEvents"]
