import logging
import os

from fastapi import APIRouter, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sentry_sdk.integrations.fastapi import FastApiIntegration
import sentry_sdk
from slowapi.errors import RateLimitExceeded

from .routers import matches, tournaments
from .exceptions import DomainException, ProblemDetail, http_problem
from .config import API_PREFIX
from .rate_limit import limiter, rate_limit_handler

logger = logging.getLogger(__name__)
SENTRY_DSN = os.getenv("SENTRY_DSN")


def _sample_rate(env_var: str) -> float:
    raw_value = os.getenv(env_var)
    if raw_value is None:
        return 0.0
    try:
        value = float(raw_value)
    except ValueError:
        logger.warning("%s is not a valid float (got %r); sampling disabled", env_var, raw_value)
        return 0.0
    if value < 0:
        logger.warning("%s cannot be negative; sampling disabled", env_var)
        return 0.0
    return value


def _init_sentry() -> None:
    if not SENTRY_DSN:
        logger.info("SENTRY_DSN not provided; skipping Sentry initialization.")
        return

    environment = (os.getenv("SENTRY_ENVIRONMENT") or "").strip() or None
    sentry_sdk.init(
        dsn=SENTRY_DSN,
        integrations=[FastApiIntegration()],
        environment=environment,
        traces_sample_rate=_sample_rate("SENTRY_TRACES_SAMPLE_RATE"),
        profiles_sample_rate=_sample_rate("SENTRY_PROFILES_SAMPLE_RATE"),
    )
    logger.info("Initialized Sentry (environment=%s)", environment or "default")


def _allowed_origins() -> list[str]:
    """Parse ``ALLOWED_ORIGINS``; scoring clients must be listed explicitly."""

    raw = os.getenv("ALLOWED_ORIGINS", "").strip()
    origins = [o.strip() for o in raw.split(",") if o.strip()]
    if not origins:
        raise ValueError(
            "ALLOWED_ORIGINS must be set to a comma-separated list of trusted origins."
        )
    if "*" in origins:
        raise ValueError(
            "ALLOWED_ORIGINS cannot include '*' (wildcard). Specify explicit, trusted origins."
        )
    return origins


_init_sentry()

ALLOWED_ORIGINS = _allowed_origins()
ALLOW_CREDENTIALS = os.getenv("ALLOW_CREDENTIALS", "true").lower() == "true"

app = FastAPI(
    title="Volleyball Scoring API",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_handler)

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=ALLOW_CREDENTIALS,
    allow_methods=["*"],
    allow_headers=["*"],
)

logger.info("Serving scoring API under %s/v0", API_PREFIX)


@app.get("/healthz", tags=["health"])  # unprefixed for uptime checks
def root_healthz():
    return {"status": "ok"}


@app.post(f"{API_PREFIX}/sentry-test", tags=["health"])
def sentry_test_check():
    if not SENTRY_DSN:
        raise http_problem(
            400, "Sentry is not configured (SENTRY_DSN missing)", "sentry_not_configured"
        )
    event_id = sentry_sdk.capture_message("Sentry self-test trigger", level="info")
    return {"status": "sent", "eventId": str(event_id)}


# -- error handling -------------------------------------------------------------


def _problem_response(problem: ProblemDetail) -> JSONResponse:
    return JSONResponse(
        status_code=problem.status,
        content=problem.model_dump(),
        media_type="application/problem+json",
    )


@app.exception_handler(DomainException)
async def domain_exception_handler(request: Request, exc: DomainException) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s on %s: %s", exc.code, request.url.path, exc.detail)
    return _problem_response(
        ProblemDetail(
            type=exc.type,
            title=exc.title,
            detail=exc.detail,
            status=exc.status_code,
            code=exc.code,
            instance=request.url.path,
        )
    )


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    detail = exc.detail if isinstance(exc.detail, str) else str(exc.detail)
    return _problem_response(
        ProblemDetail(
            title=detail,
            detail=detail,
            status=exc.status_code,
            code=getattr(exc, "code", f"http_{exc.status_code}"),
        )
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error("Unhandled exception", exc_info=(type(exc), exc, exc.__traceback__))
    return _problem_response(
        ProblemDetail(
            title="Internal Server Error",
            status=500,
            detail=str(exc),
            code="internal_server_error",
        )
    )


# -- routers --------------------------------------------------------------------

api_router = APIRouter(prefix=API_PREFIX, tags=["meta"])


@api_router.get("/healthz", tags=["health"])
def api_healthz():
    return {"status": "ok"}


@api_router.get("")
def api_root():
    return {"message": "Volleyball Scoring API. See /docs."}


v0_router = APIRouter(prefix="/v0")
v0_router.include_router(tournaments.router)
v0_router.include_router(matches.router)

api_router.include_router(v0_router)
app.include_router(api_router)
