"""Encore and packager callback endpoints."""

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import Response

from ..encore import EncoreService, JobProgress
from ..exceptions import EncoreError, NormalizerException, StoreError
from ..log_config import get_context_logger
from ..packaging import PackagingFailure, PackagingService, PackagingSuccess
from .helpers import json_body


callbacks_router = APIRouter(tags=["callbacks"])

logger = get_context_logger("callbacks")


def get_encore_service(request: Request) -> EncoreService:
    return request.app.state.encore_service


def get_packaging_service(request: Request) -> PackagingService:
    return request.app.state.packaging_service


@callbacks_router.post("/encoreCallback")
async def encore_callback(request: Request, service: EncoreService = Depends(get_encore_service)):
    try:
        progress = JobProgress.from_dict(await json_body(request))
    except (TypeError, ValueError) as e:
        raise HTTPException(status_code=400, detail="Failed to decode job progress") from e

    try:
        await service.handle_callback(progress)
    except NormalizerException as e:
        logger.error("Failed to handle transcode job progress", job_id=progress.job_id, error=str(e))
        raise HTTPException(status_code=500, detail="Failed to handle transcode job progress") from e
    return Response(status_code=200)


@callbacks_router.post("/packagerCallback/success")
async def packaging_success(request: Request, service: PackagingService = Depends(get_packaging_service)):
    try:
        event = PackagingSuccess.from_dict(await json_body(request))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e

    try:
        await service.handle_packaging_completed(event)
    except EncoreError as e:
        raise HTTPException(status_code=404, detail=e.message) from e
    except StoreError as e:
        raise HTTPException(status_code=500, detail="Failed to save job to store") from e
    return Response(status_code=200)


@callbacks_router.post("/packagerCallback/failure")
async def packaging_failure(request: Request, service: PackagingService = Depends(get_packaging_service)):
    try:
        event = PackagingFailure.from_dict(await json_body(request))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e

    try:
        await service.handle_packaging_failed(event)
    except EncoreError as e:
        raise HTTPException(status_code=404, detail=e.message) from e
    except StoreError as e:
        raise HTTPException(status_code=500, detail="Failed to delete job from store") from e
    return Response(status_code=200)


__all__ = ["callbacks_router", "get_encore_service", "get_packaging_service"]
