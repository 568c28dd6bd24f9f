from fastapi import FastAPI, Response, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
import logging
import os
import time
from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
import sentry_sdk
from sentry_sdk.integrations.fastapi import FastApiIntegration
from .errors import DataIntegrityError, InputValidationError, RecordNotFound, StateConflictError
from .routes import (
    facilities,
    feedstock,
    production,
    sequestration,
    leakage,
    monitoring,
    corc,
    registry,
)

logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO"))

dsn = os.getenv("SENTRY_DSN")
if dsn:
    sentry_sdk.init(dsn=dsn, integrations=[FastApiIntegration()])

REQUEST_COUNT = Counter("request_count", "Total requests", ["method", "endpoint"])
REQUEST_LATENCY = Histogram(
    "request_latency_seconds", "Request latency", ["endpoint"]
)
CALCULATION_FAILURES = Counter(
    "corc_request_failures", "Rejected calculation and issuance requests", ["kind"]
)

app = FastAPI(title="Biochar CORC Registry API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=os.getenv("CORS_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000").split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[os.getenv("API_RATE_LIMIT", "120/minute")],
)
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, lambda r, e: Response("Too Many Requests", status_code=429))
if os.getenv("TESTING") != "1":
    app.add_middleware(SlowAPIMiddleware)


@app.exception_handler(InputValidationError)
async def input_validation_handler(request: Request, exc: InputValidationError):
    CALCULATION_FAILURES.labels("validation").inc()
    return JSONResponse(
        status_code=422,
        content={"detail": "Validation failed", "validation": exc.to_dict()},
    )


@app.exception_handler(StateConflictError)
async def state_conflict_handler(request: Request, exc: StateConflictError):
    CALCULATION_FAILURES.labels("state_conflict").inc()
    body = exc.to_dict()
    return JSONResponse(status_code=409, content={"detail": exc.message, **body})


@app.exception_handler(DataIntegrityError)
async def data_integrity_handler(request: Request, exc: DataIntegrityError):
    CALCULATION_FAILURES.labels("data_integrity").inc()
    return JSONResponse(status_code=400, content={"detail": str(exc)})


@app.exception_handler(RecordNotFound)
async def not_found_handler(request: Request, exc: RecordNotFound):
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.middleware("http")
async def record_metrics(request: Request, call_next):
    start = time.time()
    response = await call_next(request)
    endpoint = request.url.path
    REQUEST_COUNT.labels(request.method, endpoint).inc()
    REQUEST_LATENCY.labels(endpoint).observe(time.time() - start)
    return response


@app.get("/metrics")
def metrics():
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)


app.include_router(facilities.router)
app.include_router(feedstock.router)
app.include_router(production.router)
app.include_router(sequestration.router)
app.include_router(leakage.router)
app.include_router(monitoring.router)
app.include_router(monitoring.jobs_router)
app.include_router(corc.router)
app.include_router(registry.router)
