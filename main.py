# main.py
from __future__ import annotations

import logging
import time
from datetime import datetime, timezone
from functools import lru_cache
from typing import Optional

from fastapi import FastAPI, Request, Response, HTTPException, Depends
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from config import settings
from errors import ValidationError
from logging_config import setup_logging
from models import GenerationRequest
from request_context import new_request_id
from security import SecurityValidator, security_headers_middleware
from services import catalog_service
from services.ai_stream import build_streamer
from services.catalog_service import (
    CarSearchRequest,
    FlightSearchRequest,
    HotelSearchRequest,
    RestaurantSearchRequest,
)
from services.orchestrator import GenerationOrchestrator
from services.request_validator import validate_request
from services.stream_dispatcher import StreamDispatcher

SERVICE_NAME = "Smart Trip Planner Backend"
SERVICE_VERSION = "1.0.0"

# Initialize logging BEFORE creating the app
setup_logging(settings.log_level)
log = logging.getLogger("app")

app = FastAPI(
    title="Smart Trip Planner",
    version=SERVICE_VERSION,
    description="Streamed AI itinerary generation with a deterministic demo fallback",
)


@app.on_event("startup")
async def on_startup():
    log.info(f"{SERVICE_NAME} starting", extra={
        "environment": settings.APP_ENV,
        "debug_mode": settings.DEBUG,
        "host": settings.HOST,
        "port": settings.PORT,
        "ai_enabled": settings.has_ai_credential,
        "openai_model": settings.OPENAI_MODEL,
        "cors_origins_count": len(settings.CORS_ALLOW_ORIGINS),
    })

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ALLOW_ORIGINS,
    allow_credentials=settings.CORS_ALLOW_CREDENTIALS,
    allow_methods=settings.CORS_ALLOW_METHODS,
    allow_headers=settings.CORS_ALLOW_HEADERS,
    expose_headers=settings.CORS_EXPOSE_HEADERS,
    max_age=settings.CORS_MAX_AGE,
)

# Add security headers middleware
app.middleware("http")(security_headers_middleware())


@app.middleware("http")
async def request_logging_mw(request: Request, call_next):
    rid = new_request_id()
    start = time.perf_counter()
    response: Response | None = None

    if request.method in ("POST", "PUT", "PATCH"):
        content_length = request.headers.get("content-length")
        if content_length and content_length.isdigit():
            try:
                SecurityValidator.validate_request_size(int(content_length), max_size=settings.MAX_BODY_BYTES)
            except HTTPException as e:
                log.warning("Request size validation failed", extra={
                    "request_id": rid,
                    "size": content_length,
                    "client_ip": request.client.host if request.client else "unknown",
                })
                return JSONResponse(status_code=e.status_code, content={"error": e.detail})

    try:
        response = await call_next(request)
        return response
    finally:
        dur_ms = int((time.perf_counter() - start) * 1000)
        if response is not None:
            response.headers["X-Request-Id"] = rid
        # For streamed responses this is time-to-headers, not time-to-last-frame
        log.info(
            f"{request.method} {request.url.path} -> {getattr(response, 'status_code', '?')} in {dur_ms}ms",
            extra={
                "request_id": rid,
                "path": request.url.path,
                "method": request.method,
                "status": getattr(response, "status_code", None),
                "duration_ms": dur_ms,
            },
        )


# --- ERROR HANDLERS ---
@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError):
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


@app.exception_handler(RequestValidationError)
async def request_body_error_handler(request: Request, exc: RequestValidationError):
    log.info("Malformed request body", extra={"path": request.url.path, "errors_count": len(exc.errors())})
    return JSONResponse(
        status_code=400,
        content={"error": "Invalid request body", "details": jsonable_encoder(exc.errors())},
    )


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    # A wrong method on a known path answers like an unknown path
    if exc.status_code in (404, 405):
        return JSONResponse(status_code=404, content={"error": "Endpoint not found", "path": request.url.path})
    return JSONResponse(status_code=exc.status_code, content={"error": exc.detail}, headers=getattr(exc, "headers", None))


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    log.exception("Unhandled error", extra={"path": request.url.path})
    return JSONResponse(status_code=500, content={"error": "Something went wrong!", "message": str(exc)})


# --- DEPENDENCIES ---
@lru_cache(maxsize=1)
def get_orchestrator() -> GenerationOrchestrator:
    """One orchestrator (and OpenAI client) shared by all requests; it holds no per-request state."""
    return GenerationOrchestrator(
        streamer=build_streamer(settings),
        fallback_delay_s=settings.FALLBACK_TOKEN_DELAY_S,
    )


@app.on_event("shutdown")
async def on_shutdown():
    # Only close what a request actually built
    if get_orchestrator.cache_info().currsize:
        await get_orchestrator().aclose()
        get_orchestrator.cache_clear()
    log.info(f"{SERVICE_NAME} stopped")


# --- GENERATION ---
@app.post("/generate-itinerary")
async def generate_itinerary_endpoint(
    request: Request,
    req: Optional[GenerationRequest] = None,
    orchestrator: GenerationOrchestrator = Depends(get_orchestrator),
):
    # Raises ValidationError -> 400 before any streaming header exists
    params = validate_request(req or GenerationRequest())

    dispatcher = StreamDispatcher(is_disconnected=request.is_disconnected)
    return dispatcher.response(orchestrator.generate(params, dispatcher.cancel_token))


# --- CATALOG ---
@app.get("/health")
def health():
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "service": SERVICE_NAME,
        "version": SERVICE_VERSION,
        "ai_key_loaded": settings.has_ai_credential,
        "model": settings.OPENAI_MODEL,
    }


@app.get("/destinations")
def destinations():
    return catalog_service.list_destinations()


@app.get("/tips")
def tips():
    return catalog_service.list_tips()


@app.post("/search-flights")
def search_flights(req: Optional[FlightSearchRequest] = None):
    return catalog_service.search_flights(req or FlightSearchRequest())


@app.post("/search-hotels")
def search_hotels(req: Optional[HotelSearchRequest] = None):
    return catalog_service.search_hotels(req or HotelSearchRequest())


@app.post("/search-cars")
def search_cars(req: Optional[CarSearchRequest] = None):
    return catalog_service.search_cars(req or CarSearchRequest())


@app.post("/search-restaurants")
def search_restaurants(req: Optional[RestaurantSearchRequest] = None):
    return catalog_service.search_restaurants(req or RestaurantSearchRequest())


# Production entry point
if __name__ == "__main__":
    import uvicorn

    log.info(f"Starting server on {settings.HOST}:{settings.PORT}")

    uvicorn.run(
        "main:app",
        host=settings.HOST,
        port=settings.PORT,
        workers=1,
        access_log=True,
        log_level="info" if settings.APP_ENV == "production" else "debug",
    )
