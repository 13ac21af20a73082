"""Split creatives into ready and missing sets from their transcode status."""

from collections.abc import Awaitable, Callable, Sequence

from .events import NormalizerEvents
from .log_config import get_context_logger
from .types import Creative, TranscodeInfo, TranscodeStatus


logger = get_context_logger("partitioner")

LookUpAsset = Callable[[str], Awaitable[TranscodeInfo | None]]
IsBlacklisted = Callable[[str], Awaitable[bool]]


async def partition_creatives(
    creatives: Sequence[Creative],
    lookup: LookUpAsset,
    is_blacklisted: IsBlacklisted | None = None,
) -> tuple[list[Creative], list[Creative]]:
    """Partition creatives by looking up their transcode status one by one.

    - no status: missing, keeping the source media URL
    - ``COMPLETED``: ready, with the packaged asset URL
    - any other status: in flight or failed, left out of both sets

    A lookup that raises is logged and its creative left out as well. When
    ``is_blacklisted`` is given, creatives whose source media URL it reports
    are left out of both sets; a check that raises counts as not blacklisted.

    Returns:
        ``(ready, missing)``, each in input order
    """
    ready: list[Creative] = []
    missing: list[Creative] = []
    blacklisted = 0
    for creative in creatives:
        try:
            info = await lookup(creative.creative_id)
        except Exception as e:
            logger.error(NormalizerEvents.LOOKUP_FAILED, creative_id=creative.creative_id, error=str(e))
            continue

        logger.debug(
            "Looked up asset",
            creative_id=creative.creative_id,
            status=info.status.value if info else None,
        )
        if is_blacklisted is not None and await _blacklisted(is_blacklisted, creative):
            blacklisted += 1
            continue
        if info is None:
            missing.append(Creative(creative.creative_id, creative.master_playlist_url))
        elif info.status == TranscodeStatus.COMPLETED:
            ready.append(Creative(creative.creative_id, info.url))

    logger.debug(
        NormalizerEvents.PARTITION_COMPLETED,
        total=len(creatives),
        ready=len(ready),
        missing=len(missing),
        blacklisted=blacklisted,
    )
    return ready, missing


async def _blacklisted(is_blacklisted: IsBlacklisted, creative: Creative) -> bool:
    try:
        found = await is_blacklisted(creative.master_playlist_url)
    except Exception as e:
        logger.warning(
            "Blacklist check failed",
            creative_id=creative.creative_id,
            media_url=creative.master_playlist_url,
            error=str(e),
        )
        return False
    if found:
        logger.info(
            NormalizerEvents.CREATIVE_BLACKLISTED,
            creative_id=creative.creative_id,
            media_url=creative.master_playlist_url,
        )
    return found


__all__ = ["LookUpAsset", "IsBlacklisted", "partition_creatives"]
