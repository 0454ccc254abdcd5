"""Request middleware and exception handlers shared by the FastAPI app."""

from time import perf_counter
from uuid import uuid4

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from woomanager.common.config import settings
from woomanager.common.errors import AppError
from woomanager.common.logging import logger, store_id_ctx, trace_id_ctx
from woomanager.common.metrics import http_request_duration_seconds, http_requests_total


async def metrics_middleware(request: Request, call_next):
    """Record request count and latency for every HTTP call."""

    start = perf_counter()
    route = request.url.path
    method = request.method
    status_code = 500
    try:
        response = await call_next(request)
        status_code = response.status_code
        route_obj = request.scope.get("route")
        if route_obj is not None and getattr(route_obj, "path", None):
            route = route_obj.path
        return response
    finally:
        elapsed = max(0.0, perf_counter() - start)
        http_request_duration_seconds.labels(
            service=settings.service_name,
            route=route,
            method=method,
        ).observe(elapsed)
        http_requests_total.labels(
            service=settings.service_name,
            route=route,
            method=method,
            status_code=str(status_code),
        ).inc()


async def trace_id_middleware(request: Request, call_next):
    """Bind a trace id (caller's `x-request-id` or a fresh uuid) for log lines."""

    trace_id = request.headers.get("x-request-id") or str(uuid4())
    trace_token = trace_id_ctx.set(trace_id)
    store_token = store_id_ctx.set("")
    try:
        response = await call_next(request)
    finally:
        trace_id_ctx.reset(trace_token)
        store_id_ctx.reset(store_token)
    response.headers["x-request-id"] = trace_id
    return response


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("request failed path=%s status=%s error=%s", request.url.path, exc.status_code, exc.message)
    else:
        logger.info("request rejected path=%s status=%s error=%s", request.url.path, exc.status_code, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    problems = []
    for err in exc.errors():
        location = ".".join(str(part) for part in err.get("loc", ()) if part != "body")
        problems.append(f"{location}: {err.get('msg')}" if location else str(err.get("msg")))
    return JSONResponse(status_code=400, content={"error": "; ".join(problems) or "invalid request"})


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error("unhandled error path=%s error=%s", request.url.path, exc, exc_info=exc)
    return JSONResponse(status_code=500, content={"error": "internal error"})


def register_http(app: FastAPI) -> None:
    app.middleware("http")(metrics_middleware)
    app.middleware("http")(trace_id_middleware)
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
