import logging
from pathlib import Path

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from watchparty.api.v1.endpoints import api_router
from watchparty.core.config import settings
from watchparty.core.error import DomainErrorCode, WatchPartyDomainError
from watchparty.core.logging import setup_logging
from watchparty.core.playback_relay import relay
from watchparty.schemas.common import BaseResponse

logger = logging.getLogger(__name__)

app = FastAPI(
    title=settings.PROJECT_NAME,
    description="Synchronized watch-party rooms over WebSocket",
    version="1.0.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST"],
    allow_headers=["Content-Type", "X-Connection-ID"],
)

app.include_router(api_router, prefix=settings.API_V1_STR)

app.mount(
    "/uploads",
    StaticFiles(directory=settings.UPLOAD_DIR, check_dir=False),
    name="uploads",
)


@app.on_event("startup")
async def on_startup() -> None:
    setup_logging(settings.LOG_LEVEL)
    Path(settings.UPLOAD_DIR).mkdir(parents=True, exist_ok=True)
    logger.info("%s started", settings.PROJECT_NAME)


@app.on_event("shutdown")
async def on_shutdown() -> None:
    await relay.shutdown()


@app.get("/health", status_code=status.HTTP_200_OK)
async def health_check() -> BaseResponse:
    return BaseResponse(message="healthy")


@app.exception_handler(WatchPartyDomainError)
async def watchparty_domain_error_handler(
    _request: Request,
    exc: WatchPartyDomainError,
) -> JSONResponse:
    domain_error_code_mapper = {
        DomainErrorCode.ROOM_NOT_FOUND: status.HTTP_404_NOT_FOUND,
        DomainErrorCode.NO_HOST: status.HTTP_409_CONFLICT,
        DomainErrorCode.HOST_CONFLICT: status.HTTP_409_CONFLICT,
        DomainErrorCode.NAME_TAKEN: status.HTTP_409_CONFLICT,
        DomainErrorCode.INVALID_ROOM_CODE: status.HTTP_422_UNPROCESSABLE_ENTITY,
        DomainErrorCode.INVALID_DISPLAY_NAME: status.HTTP_422_UNPROCESSABLE_ENTITY,
        DomainErrorCode.INVALID_MESSAGE: status.HTTP_400_BAD_REQUEST,
        DomainErrorCode.UPLOAD_REJECTED: status.HTTP_400_BAD_REQUEST,
        DomainErrorCode.UNSUPPORTED_MEDIA_TYPE: status.HTTP_415_UNSUPPORTED_MEDIA_TYPE,
        DomainErrorCode.UPLOAD_ABORTED: status.HTTP_409_CONFLICT,
    }
    status_code = domain_error_code_mapper.get(
        exc.code,
        status.HTTP_500_INTERNAL_SERVER_ERROR,
    )

    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder(
            {
                "detail": exc.message,
                "error": exc.message,
                "code": exc.code,
                "error_details": exc.details,
            }
        ),
    )
