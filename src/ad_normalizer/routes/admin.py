"""Media URL blacklist and pre-ingest endpoints."""

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import Response

from ..exceptions import StoreError
from ..log_config import get_context_logger
from ..normalizer import AdNormalizer
from ..store import TranscodeStore
from .ads import get_normalizer
from .helpers import json_body


admin_router = APIRouter(prefix="/api/v1", tags=["admin"])

logger = get_context_logger("admin")

BLACKLIST_PATH = "/api/v1/blacklist"
MAX_PAGE_SIZE = 100


def get_store(request: Request) -> TranscodeStore:
    return request.app.state.store


async def _media_url(request: Request) -> str:
    media_url = (await json_body(request)).get("mediaUrl")
    if not isinstance(media_url, str) or not media_url:
        raise HTTPException(status_code=400, detail="mediaUrl is required")
    return media_url


def _page_link(page: int, size: int) -> str:
    return f"{BLACKLIST_PATH}?page={page}&size={size}"


@admin_router.get("/blacklist")
async def get_blacklist(page: int = 0, size: int = 10, store: TranscodeStore = Depends(get_store)):
    """One page of blacklisted media URLs with links to its neighbours."""
    if page < 0:
        raise HTTPException(status_code=400, detail="page must not be negative")
    if not 1 <= size <= MAX_PAGE_SIZE:
        raise HTTPException(status_code=400, detail=f"size must be between 1 and {MAX_PAGE_SIZE}")

    try:
        media_urls, total = await store.get_blacklist(page, size)
    except StoreError as e:
        logger.error("Failed to read blacklist", page=page, size=size, error=str(e))
        raise HTTPException(status_code=500, detail="Failed to read blacklist") from e

    body = {"mediaUrls": media_urls, "page": page, "size": len(media_urls), "totalCount": total}
    if len(media_urls) == size:
        body["next"] = _page_link(page + 1, size)
    if page > 0:
        body["prev"] = _page_link(page - 1, size)
    return body


@admin_router.post("/blacklist")
async def add_to_blacklist(request: Request, store: TranscodeStore = Depends(get_store)):
    media_url = await _media_url(request)
    try:
        await store.blacklist(media_url)
    except StoreError as e:
        logger.error("Failed to blacklist media URL", media_url=media_url, error=str(e))
        raise HTTPException(status_code=500, detail="Failed to blacklist media URL") from e
    logger.info("Media URL blacklisted", media_url=media_url)
    return Response(status_code=204)


@admin_router.delete("/blacklist")
async def remove_from_blacklist(request: Request, store: TranscodeStore = Depends(get_store)):
    media_url = await _media_url(request)
    try:
        await store.unblacklist(media_url)
    except StoreError as e:
        logger.error("Failed to remove media URL from blacklist", media_url=media_url, error=str(e))
        raise HTTPException(status_code=500, detail="Failed to remove media URL from blacklist") from e
    logger.info("Media URL removed from blacklist", media_url=media_url)
    return Response(status_code=204)


@admin_router.post("/preingest")
async def pre_ingest(request: Request, normalizer: AdNormalizer = Depends(get_normalizer)):
    """Submit transcode jobs for media URLs the store does not know yet."""
    media_urls = (await json_body(request)).get("mediaUrls")
    if not isinstance(media_urls, list) or not all(isinstance(url, str) and url for url in media_urls):
        raise HTTPException(status_code=400, detail="mediaUrls must be a list of URLs")

    dispatched = await normalizer.pre_ingest(media_urls)
    return {"notYetProcessed": dispatched}
