"""
api/app.py — FastAPI application factory
========================================
Builds the FastAPI instance that `main.py` serves and the tests drive via
`TestClient`.

The capture layer normally runs on the same machine, so CORS origins come
from `config.CORS_ALLOW_ORIGINS` and can be overridden per app instance.
"""

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api.routes import router
from api.session import DISCLAIMER
from config import API_TITLE, API_VERSION, CORS_ALLOW_ORIGINS
from utils.logger import get_logger

logger = get_logger("api.app")


async def _invalid_value_handler(request: Request, exc: ValueError) -> JSONResponse:
    logger.warning("Rejected %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse({"detail": str(exc)}, status_code=400)


def create_app(allow_origins: list[str] | None = None) -> FastAPI:
    """Return a configured app; every call gets fresh middleware and handlers."""
    origins = list(CORS_ALLOW_ORIGINS if allow_origins is None else allow_origins)

    app = FastAPI(
        title=API_TITLE,
        version=API_VERSION,
        description=(
            "Heart-rate, HRV, LF/HF balance, respiration and stress-state "
            "estimation from pushed PPG and audio samples.\n\n" + DISCLAIMER
        ),
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )
    app.add_exception_handler(ValueError, _invalid_value_handler)
    app.include_router(router)

    logger.info("%s v%s ready (CORS origins: %s).", API_TITLE, API_VERSION, ", ".join(origins) or "none")
    return app
