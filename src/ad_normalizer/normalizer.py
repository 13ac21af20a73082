"""
Ad Normalizer Orchestrator

Main coordinator of a normalization request. Implements the pipeline:
FETCHING → PARSING → PARTITIONING → {REWRITING, DISPATCHING} → RESPONDING
"""

import asyncio
import re
from collections.abc import Awaitable, Callable, Mapping, Sequence
from enum import Enum
from typing import TYPE_CHECKING

from .config import DEFAULT_KEY_REGEX, KeyField
from .creatives import extract_creatives
from .document import AdDocumentParser, AdFormat
from .events import NormalizerEvents
from .log_config import get_context_logger
from .partitioner import IsBlacklisted, LookUpAsset, partition_creatives
from .rewriter import create_asset_list, replace_media_files
from .types import Creative, NormalizedResponse, TranscodeInfo


if TYPE_CHECKING:
    from .ad_server import AdServerClient


OnMissingAsset = Callable[[Creative], Awaitable[TranscodeInfo | None]]


class PipelineState(str, Enum):
    """Stages of one normalization request."""

    FETCHING = "fetching"
    PARSING = "parsing"
    PARTITIONING = "partitioning"
    REWRITING = "rewriting"
    DISPATCHING = "dispatching"
    RESPONDING = "responding"


class AdNormalizer:
    """
    Normalizes VAST/VMAP responses against the transcode status store.

    Ready creatives are returned with their packaged asset URLs; missing
    creatives are handed to ``on_missing_asset`` in background tasks that
    never hold up the response.

    Attributes:
        lookup_asset: Async status lookup by creative id
        on_missing_asset: Async transcode job submission for a missing creative
        is_blacklisted: Async check of a source media URL against the blacklist
        ad_server: Client fetching ad documents in proxy mode
        key_field: Key derivation strategy
        key_regex: Key sanitizing pattern

    Examples:
        POST mode:
        >>> normalizer = AdNormalizer(lookup_asset=store.get, on_missing_asset=encore.create_job)
        >>> response = await normalizer.normalize(AdFormat.VAST, vast_xml)
        >>> xml = normalizer.render_xml(response, AdFormat.VAST)

        Proxy mode:
        >>> response = await normalizer.fetch_and_normalize(
        ...     AdFormat.VMAP, query_params=[("dur", "60")], headers=request_headers
        ... )
        >>> assets = normalizer.render_asset_list(response, AdFormat.VMAP)
    """

    def __init__(
        self,
        lookup_asset: LookUpAsset,
        on_missing_asset: OnMissingAsset | None = None,
        is_blacklisted: IsBlacklisted | None = None,
        ad_server: "AdServerClient | None" = None,
        key_field: str | KeyField = KeyField.UNIVERSAL_AD_ID,
        key_regex: "str | re.Pattern[str]" = DEFAULT_KEY_REGEX,
        parser: AdDocumentParser | None = None,
    ):
        self.logger = get_context_logger("ad_normalizer")
        self.lookup_asset = lookup_asset
        self.on_missing_asset = on_missing_asset
        self.is_blacklisted = is_blacklisted
        self.ad_server = ad_server
        self.key_field = KeyField.parse(key_field)
        self.key_regex = re.compile(key_regex) if isinstance(key_regex, str) else key_regex
        self.parser = parser or AdDocumentParser()
        self._pending: set[asyncio.Task] = set()

    def _enter(self, state: PipelineState, **fields) -> None:
        self.logger.debug(NormalizerEvents.STATE_CHANGED, state=state.value, **fields)

    async def fetch_and_normalize(
        self,
        ad_format: AdFormat,
        query_params: list[tuple[str, str]] | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> NormalizedResponse:
        """Fetch an ad document from the ad server and normalize it.

        Raises:
            RuntimeError: If the normalizer was built without an ad server client
        """
        if self.ad_server is None:
            raise RuntimeError("AdNormalizer has no ad server client configured")
        self._enter(PipelineState.FETCHING, ad_format=ad_format.value)
        xml_text = await self.ad_server.fetch(ad_format, query_params, headers)
        return await self.normalize(ad_format, xml_text)

    async def normalize(self, ad_format: AdFormat, xml_text: str | bytes) -> NormalizedResponse:
        """Partition the creatives of an ad document and dispatch jobs for missing ones.

        Never raises: a document that cannot be parsed is replaced by an empty
        one of the same format, and collaborator failures only shrink the
        set of ready creatives.
        """
        try:
            self._enter(PipelineState.PARSING, ad_format=ad_format.value)
            document = self.parser.parse_or_empty(xml_text, ad_format)

            self._enter(PipelineState.PARTITIONING)
            creatives = extract_creatives(document, self.key_field, self.key_regex)
            ready, missing = await partition_creatives(
                creatives, self.lookup_asset, self.is_blacklisted
            )
            self.logger.debug(
                "Partitioned creatives",
                ready=[c.creative_id for c in ready],
                missing=[c.creative_id for c in missing],
            )

            self._enter(PipelineState.DISPATCHING, missing=len(missing))
            self.dispatch_missing(missing)

            self._enter(PipelineState.RESPONDING, ready=len(ready))
            return NormalizedResponse(assets=ready, xml=document.to_xml())
        except Exception as e:
            self.logger.error("Normalization failed", ad_format=ad_format.value, error=str(e))
            fallback = xml_text.decode("utf-8", errors="replace") if isinstance(xml_text, bytes) else xml_text
            return NormalizedResponse(assets=[], xml=fallback)

    async def pre_ingest(self, media_urls: Sequence[str]) -> int:
        """Submit transcode jobs for media URLs ahead of any ad request.

        Each URL is keyed by stripping the key pattern from it; URLs that share
        a key collapse into one creative, the last one winning. Creatives that
        are already known or blacklisted are skipped.

        Returns:
            Number of creatives handed to ``on_missing_asset``
        """
        by_key = {}
        for url in media_urls:
            by_key[self.key_regex.sub("", url)] = url
        creatives = [Creative(key, url) for key, url in by_key.items()]

        _, missing = await partition_creatives(creatives, self.lookup_asset, self.is_blacklisted)
        self.dispatch_missing(missing)
        self.logger.info(
            NormalizerEvents.PREINGEST_COMPLETED,
            requested=len(media_urls),
            dispatched=len(missing),
        )
        return len(missing)

    def dispatch_missing(self, missing: list[Creative]) -> list[asyncio.Task]:
        """Schedule a transcode job submission for every missing creative."""
        if self.on_missing_asset is None:
            return []
        tasks = []
        for creative in missing:
            task = asyncio.create_task(self._dispatch(creative))
            self._pending.add(task)
            task.add_done_callback(self._pending.discard)
            tasks.append(task)
        return tasks

    async def _dispatch(self, creative: Creative) -> None:
        try:
            info = await self.on_missing_asset(creative)
        except Exception as e:
            self.logger.error(
                "Failed to handle missing asset",
                creative_id=creative.creative_id,
                error=str(e),
            )
            return
        if info is None:
            self.logger.error(
                NormalizerEvents.JOB_SUBMIT_FAILED,
                creative_id=creative.creative_id,
                source=creative.master_playlist_url,
            )
        else:
            self.logger.info(
                NormalizerEvents.JOB_SUBMITTED,
                creative_id=creative.creative_id,
                status=info.status.value,
            )

    async def drain(self) -> None:
        """Wait for every outstanding job submission to finish."""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    def render_xml(self, response: NormalizedResponse, ad_format: AdFormat) -> str:
        """Rewritten ad document for XML consumers."""
        self._enter(PipelineState.REWRITING, output="xml")
        return replace_media_files(
            response.xml, response.assets, self.key_regex, self.key_field, ad_format, self.parser
        )

    def render_asset_list(self, response: NormalizedResponse, ad_format: AdFormat) -> str:
        """HLS interstitial asset list for JSON consumers."""
        self._enter(PipelineState.REWRITING, output="json")
        return create_asset_list(
            response.xml, response.assets, self.key_regex, self.key_field, ad_format, self.parser
        )


__all__ = ["AdNormalizer", "PipelineState", "OnMissingAsset"]
