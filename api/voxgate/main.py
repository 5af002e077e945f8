import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from voxgate.config import settings
from voxgate.models.provider import load_provider, token_is_set
from voxgate.routers import docs, health, tts
from voxgate.services.gateway import SynthesisError

logger = logging.getLogger("voxgate")

AVAILABLE_ENDPOINTS = ["GET /", "GET /docs", "POST /tts", "POST /test"]


def _log_banner(provider):
    base = f"http://localhost:{settings.api_port}"
    logger.info("%s %s", settings.service_name, settings.version)
    logger.info("Server: %s", base)
    logger.info("  GET  %s/      - Health check", base)
    logger.info("  GET  %s/docs  - Documentation", base)
    logger.info("  POST %s/tts   - Generate TTS", base)
    logger.info("  POST %s/test  - Test TTS", base)
    logger.info("Default voice: %s (%s)", settings.default_voice_id, settings.default_voice_name)
    logger.info("Token status: %s", "set" if token_is_set() else "NOT SET")
    logger.info("Provider status: %s", "ready" if provider is not None else "NOT READY")


@asynccontextmanager
async def lifespan(app: FastAPI):
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    # Built once, shared read-only by every request
    try:
        provider = load_provider()
    except Exception as e:
        logger.exception("Error initializing Puter client: %s", e)
        provider = None
    app.state.provider = provider

    _log_banner(provider)

    yield

    logger.info("Shutting down")
    if provider is not None:
        await provider.aclose()


API_DESCRIPTION = """
# Puter.js ElevenLabs TTS API

Send text, get back a playable audio URL. Synthesis is done by ElevenLabs
through the Puter driver API.

## Errors

Every failure returns `{"success": false, "error": "..."}` plus diagnostic fields:

| Status | Meaning |
|--------|---------|
| `400` | text missing or over the length limit |
| `503` | provider client not initialized (check `PUTER_AUTH_TOKEN`) |
| `500` | provider failure, timeout or malformed provider response |
"""

app = FastAPI(
    title=settings.service_name,
    description=API_DESCRIPTION,
    version=settings.version,
    lifespan=lifespan,
    docs_url="/swagger",
    redoc_url="/redoc",
    openapi_tags=[
        {"name": "health", "description": "Service and provider status"},
        {"name": "tts", "description": "Text-to-Speech via ElevenLabs"},
    ],
)


# --- Error envelopes ---


@app.exception_handler(SynthesisError)
async def synthesis_error_handler(request: Request, exc: SynthesisError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_payload())


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=400,
        content={
            "success": False,
            "error": "Invalid request body",
            "details": [
                {"loc": [str(part) for part in e.get("loc", ())], "msg": e.get("msg", "")}
                for e in exc.errors()
            ],
        },
    )


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code in (404, 405):
        return JSONResponse(
            status_code=404,
            content={
                "success": False,
                "error": "Endpoint not found",
                "path": request.url.path,
                "method": request.method,
                "availableEndpoints": AVAILABLE_ENDPOINTS,
            },
        )
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "error": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    started = request.scope.get("voxgate.started")
    duration = round((time.perf_counter() - started) * 1000) if started else None
    logger.exception("Unhandled error on %s %s (%sms)", request.method, request.url.path, duration)
    # Message and stack stay in the logs
    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "error": "Internal server error",
            "duration": f"{duration}ms" if duration is not None else None,
            "hint": "Check server logs for details",
        },
    )


# --- Middleware ---


@app.middleware("http")
async def log_requests(request: Request, call_next):
    request.scope["voxgate.started"] = time.perf_counter()
    logger.info("%s %s", request.method, request.url.path)
    return await call_next(request)


app.add_middleware(
    CORSMiddleware,
    allow_origins=list(settings.cors_origins),
    allow_methods=["*"],
    allow_headers=["*"],
)

# Prometheus metrics
if settings.prometheus_enabled:
    from voxgate.middleware.metrics import setup_metrics

    setup_metrics(app)

# Routers
app.include_router(health.router, tags=["health"])
app.include_router(docs.router, tags=["health"])
app.include_router(tts.router, tags=["tts"])


def run():
    import uvicorn

    uvicorn.run(
        "voxgate.main:app",
        host=settings.api_host,
        port=settings.api_port,
        log_level=settings.log_level,
    )


if __name__ == "__main__":
    run()
