from __future__ import annotations

import logging
import time
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse, RedirectResponse
from fastapi.staticfiles import StaticFiles

from core_pfp.config import Settings, get_settings
from core_pfp.handlers import system_handler, transform_handler
from core_pfp.services import errors
from core_pfp.services.pipeline import get_pipeline

settings = get_settings()
logger = logging.getLogger(__name__)

_SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "X-XSS-Protection": "1; mode=block",
}


def configure_logging() -> None:
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


@asynccontextmanager
async def lifespan(_app: FastAPI):
    logger.info("CORE server starting (%s)", settings.environment)
    yield
    logger.info("Shutting down, closing provider and fetch clients")
    await get_pipeline().close()


def install_cors(target: FastAPI, config: Settings) -> None:
    """Production allows only the configured origins; development reflects any origin."""
    if config.is_production:
        origins = {"allow_origins": config.cors_origins}
    else:
        origins = {"allow_origin_regex": ".*"}
    target.add_middleware(
        CORSMiddleware,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        **origins,
    )


configure_logging()

app = FastAPI(title="CORE PFP Generator API", version=settings.version, lifespan=lifespan)
install_cors(app, settings)


@app.middleware("http")
async def security_headers(request: Request, call_next):
    response = await call_next(request)
    for name, value in _SECURITY_HEADERS.items():
        response.headers.setdefault(name, value)
    return response


@app.middleware("http")
async def log_requests(request: Request, call_next):
    started = time.perf_counter()
    response = await call_next(request)
    logger.info(
        "%s %s -> %d (%dms)",
        request.method,
        request.url.path,
        response.status_code,
        int((time.perf_counter() - started) * 1000),
    )
    return response


@app.exception_handler(Exception)
async def unhandled_error(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(
        {"error": "Internal server error", "code": errors.INTERNAL_ERROR},
        status_code=500,
    )


app.include_router(system_handler.router)
app.include_router(transform_handler.router)


@app.get("/", include_in_schema=False)
async def index():
    index_path = settings.site_root / "index.html"
    if not index_path.is_file():
        return JSONResponse({"error": "Not found"}, status_code=404)
    return FileResponse(index_path, headers={"Cache-Control": "no-cache"})


@app.get("/dashboard.html", include_in_schema=False)
async def legacy_dashboard():
    return RedirectResponse("/dashboard/index.html", status_code=302)


# Static site last so it never shadows the API routes
if settings.site_root.is_dir():
    app.mount("/", StaticFiles(directory=settings.site_root, html=True), name="site")
else:  # pragma: no cover
    logger.warning("Site root %s does not exist; static files are not served", settings.site_root)


def run() -> None:
    """Console entry point: serve the app with uvicorn."""
    uvicorn.run(
        "core_pfp.main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    run()
