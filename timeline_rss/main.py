import logging
from contextlib import asynccontextmanager
from time import perf_counter
from uuid import uuid4

import uvicorn
from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from starlette.responses import JSONResponse, Response

from timeline_rss.api.routes import router as feed_router
from timeline_rss.core.config import get_settings
from timeline_rss.core.observability import REQUEST_COUNT, REQUEST_LATENCY
from timeline_rss.core.responses import INTERNAL_ERROR_MESSAGE, error_response
from timeline_rss.services.feed import ChannelBuildError
from timeline_rss.services.pipeline import MissingCredentialsError
from timeline_rss.services.upstream.common import UpstreamRequestError, UpstreamUnavailableError
from timeline_rss.utils.network import InvalidInstanceError

logger = logging.getLogger(__name__)

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Bluesky auth mode: %s", settings.bluesky_auth_mode.value)
    yield


app = FastAPI(title=settings.app_name, lifespan=lifespan)
if settings.observability_enabled:
    FastAPIInstrumentor.instrument_app(app)


def _trace_id(request: Request) -> str:
    return getattr(request.state, "trace_id", "missing-trace-id")


def _route(request: Request) -> str:
    return getattr(request.scope.get("route"), "path", "unmatched")


def _internal_error(request: Request, exc: Exception) -> JSONResponse:
    logger.error("Unhandled error for %s %s", request.method, _route(request), exc_info=exc)
    payload, status = error_response(
        code="INTERNAL_ERROR",
        message=INTERNAL_ERROR_MESSAGE,
        trace_id=_trace_id(request),
        status=500,
    )
    return JSONResponse(payload, status_code=status)


@app.middleware("http")
async def request_context_middleware(request: Request, call_next):
    trace_id = request.headers.get("X-Trace-Id", str(uuid4()))
    request.state.trace_id = trace_id

    start = perf_counter()
    try:
        response = await call_next(request)
    except Exception as exc:  # noqa: BLE001
        response = _internal_error(request, exc)
    elapsed = perf_counter() - start

    # Route templates, not raw paths, so access tokens never become label values.
    route = _route(request)
    REQUEST_COUNT.labels(request.method, route, str(response.status_code)).inc()
    REQUEST_LATENCY.labels(request.method, route).observe(elapsed)
    response.headers["X-Trace-Id"] = trace_id
    return response


@app.exception_handler(InvalidInstanceError)
async def invalid_instance_handler(request: Request, exc: InvalidInstanceError):
    payload, status = error_response("INVALID_INSTANCE", str(exc), _trace_id(request), 400)
    return JSONResponse(payload, status_code=status)


@app.exception_handler(MissingCredentialsError)
async def missing_credentials_handler(request: Request, exc: MissingCredentialsError):
    payload, status = error_response(exc.code, str(exc), _trace_id(request), 400)
    return JSONResponse(payload, status_code=status)


@app.exception_handler(UpstreamRequestError)
async def upstream_error_handler(request: Request, exc: UpstreamRequestError):
    payload, status = error_response(
        code="UPSTREAM_ERROR",
        message=exc.message,
        trace_id=_trace_id(request),
        status=502,
        details={"upstream_status": exc.status_code},
    )
    return JSONResponse(payload, status_code=status)


@app.exception_handler(UpstreamUnavailableError)
async def upstream_unavailable_handler(request: Request, exc: UpstreamUnavailableError):
    payload, status = error_response("UPSTREAM_UNAVAILABLE", str(exc), _trace_id(request), 504)
    return JSONResponse(payload, status_code=status)


@app.exception_handler(ChannelBuildError)
async def channel_build_handler(request: Request, exc: ChannelBuildError):
    payload, status = error_response("INTERNAL_ERROR", INTERNAL_ERROR_MESSAGE, _trace_id(request), 500)
    return JSONResponse(payload, status_code=status)


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    payload, status = error_response(
        code="HTTP_ERROR",
        message=str(exc.detail),
        trace_id=_trace_id(request),
        status=exc.status_code,
    )
    return JSONResponse(payload, status_code=status)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    return _internal_error(request, exc)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    payload, status = error_response(
        code="VALIDATION_ERROR",
        message="Request validation failed",
        trace_id=_trace_id(request),
        status=422,
        details={"errors": exc.errors()},
    )
    return JSONResponse(payload, status_code=status)


@app.get("/healthz")
def healthz() -> dict:
    return {"status": "ok"}


@app.get("/metrics")
def metrics() -> Response:
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)


app.include_router(feed_router)


def run() -> None:
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logger.info("Running on: http://%s:%s", settings.host, settings.port)
    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    run()
