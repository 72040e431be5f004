import logging
import sys

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware

from recording_service.app.api import routes_quality, routes_recordings
from recording_service.config import settings

logger = logging.getLogger("uvicorn.access")


def _configure_logging() -> None:
    """Stream application logs to stdout in a single readable format."""
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        logging.Formatter("%(asctime)s | %(levelname)s | %(name)s | %(message)s")
    )
    app_logger = logging.getLogger("recording_service")
    app_logger.handlers.clear()
    app_logger.addHandler(handler)
    app_logger.setLevel(logging.DEBUG if settings.debug else settings.log_level.upper())


_configure_logging()

app = FastAPI(title=settings.app_name, version=settings.app_version)


class LogRequestsMiddleware(BaseHTTPMiddleware):
    """Log when a request is received (before body is read), so long uploads show up immediately."""

    async def dispatch(self, request, call_next):
        logger.info("Request started: %s %s", request.method, request.url.path)
        return await call_next(request)


app.add_middleware(LogRequestsMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(routes_recordings.router)
app.include_router(routes_quality.router)


@app.get("/health")
async def health():
    return {"status": "ok"}
