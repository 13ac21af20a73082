"""VAST/VMAP normalization endpoints.

``GET`` proxies the request to the ad server; ``POST`` normalizes the ad
document in the request body. Both answer with the rewritten XML, or with an
HLS interstitial asset list when the client accepts JSON.
"""

from fastapi import APIRouter, Depends, Request
from fastapi.responses import Response

from ..document import AdFormat
from ..log_config import AdRequestContext
from ..normalizer import AdNormalizer
from ..types import NormalizedResponse
from .helpers import JSON_MEDIA_TYPE, XML_MEDIA_TYPE, ad_server_headers, query_params, wants_json


ads_router = APIRouter(prefix="/api/v1", tags=["ads"])


def get_normalizer(request: Request) -> AdNormalizer:
    return request.app.state.normalizer


def _render(
    normalizer: AdNormalizer,
    ad_format: AdFormat,
    response: NormalizedResponse,
    accept: str | None,
) -> Response:
    if wants_json(accept):
        return Response(
            content=normalizer.render_asset_list(response, ad_format),
            media_type=JSON_MEDIA_TYPE,
        )
    return Response(content=normalizer.render_xml(response, ad_format), media_type=XML_MEDIA_TYPE)


async def _proxy(request: Request, normalizer: AdNormalizer, ad_format: AdFormat) -> Response:
    with AdRequestContext(ad_format=ad_format.value, mode="proxy"):
        response = await normalizer.fetch_and_normalize(
            ad_format,
            query_params=query_params(request),
            headers=ad_server_headers(request),
        )
        return _render(normalizer, ad_format, response, request.headers.get("accept"))


async def _normalize_body(request: Request, normalizer: AdNormalizer, ad_format: AdFormat) -> Response:
    with AdRequestContext(ad_format=ad_format.value, mode="body"):
        response = await normalizer.normalize(ad_format, await request.body())
        return _render(normalizer, ad_format, response, request.headers.get("accept"))


@ads_router.get("/vast", description="Fetch VAST from the ad server and normalize its creatives")
async def get_vast(request: Request, normalizer: AdNormalizer = Depends(get_normalizer)):
    return await _proxy(request, normalizer, AdFormat.VAST)


@ads_router.post("/vast", description="Normalize the creatives of a posted VAST document")
async def post_vast(request: Request, normalizer: AdNormalizer = Depends(get_normalizer)):
    return await _normalize_body(request, normalizer, AdFormat.VAST)


@ads_router.get("/vmap", description="Fetch VMAP from the ad server and normalize its creatives")
async def get_vmap(request: Request, normalizer: AdNormalizer = Depends(get_normalizer)):
    return await _proxy(request, normalizer, AdFormat.VMAP)


@ads_router.post("/vmap", description="Normalize the creatives of a posted VMAP document")
async def post_vmap(request: Request, normalizer: AdNormalizer = Depends(get_normalizer)):
    return await _normalize_body(request, normalizer, AdFormat.VMAP)


__all__ = ["ads_router", "get_normalizer"]
