"""
FastAPI application factory.

Wires the normalizer and its collaborators from one ``Settings`` instance and
exposes them to the routes through ``app.state``.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.responses import JSONResponse

from .ad_server import AdServerClient
from .encore import EncoreClient, EncoreService
from .http_client_manager import HttpClientManager
from .log_config import get_context_logger
from .normalizer import AdNormalizer
from .packaging import PackagingService
from .routes import admin_router, ads_router, callbacks_router
from .settings import Settings
from .store import TranscodeStore


logger = get_context_logger("app")


def create_app(
    settings: Settings,
    store: TranscodeStore | None = None,
    http_client_manager: HttpClientManager | None = None,
) -> FastAPI:
    """
    Build the ad normalizer application.

    Args:
        settings: Service settings
        store: Transcode status store (default: Redis at ``settings.redis_url``)
        http_client_manager: HTTP client pools (default: a fresh manager)

    Returns:
        FastAPI application; clients are closed on shutdown
    """
    store = store or TranscodeStore.from_url(settings.redis_url)
    http_client_manager = http_client_manager or HttpClientManager()

    encore_client = EncoreClient(
        settings.encore_url,
        http_client_manager.get_encore_client(),
        access_token=settings.osc_access_token,
    )
    encore_service = EncoreService(
        encore_client,
        store,
        profile=settings.encore_profile,
        output_bucket_url=settings.output_bucket_url,
        root_url=settings.root_url,
        asset_server_url=settings.asset_server_url,
        jit_package=settings.jit_package,
        packaging_queue=settings.packaging_queue,
        in_flight_ttl=settings.in_flight_ttl,
        redis_ttl=settings.redis_ttl,
    )
    packaging_service = PackagingService(
        encore_client,
        store,
        asset_server_url=settings.asset_server_url,
        redis_ttl=settings.redis_ttl,
    )
    normalizer = AdNormalizer(
        lookup_asset=store.get,
        on_missing_asset=encore_service.create_job,
        is_blacklisted=store.in_blacklist,
        ad_server=AdServerClient(settings.ad_server_url, http_client_manager.get_ad_server_client()),
        key_field=settings.key_field,
        key_regex=settings.key_pattern,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Ad normalizer started", port=settings.port, key_field=settings.key_field)
        yield
        await normalizer.drain()
        await http_client_manager.close()
        await store.close()
        logger.info("Ad normalizer stopped")

    app = FastAPI(title="ad-normalizer", lifespan=lifespan)
    app.state.settings = settings
    app.state.store = store
    app.state.normalizer = normalizer
    app.state.encore_service = encore_service
    app.state.packaging_service = packaging_service

    app.include_router(ads_router)
    app.include_router(callbacks_router)
    app.include_router(admin_router)

    @app.get("/health")
    async def health_check():
        if not await store.ping():
            return JSONResponse(status_code=503, content={"status": "unhealthy", "store": "unavailable"})
        return {"status": "healthy"}

    return app


__all__ = ["create_app"]
