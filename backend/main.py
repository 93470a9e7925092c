"""
FastAPI server for Rajasthan Police tenant verification form automation
"""

import asyncio
import logging
import re
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any, List, Optional

from fastapi import Body, Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from pydantic import BaseModel

from browser_session import BrowserSessionManager
from config import get_settings
from errors import PoliceFormError, ValidationError
from police_agent import PoliceFormAgent
from readiness import ReadinessReporter
from tenant_record import resolve_submission, validate_payload

settings = get_settings()

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger("police_bot")

session_manager = BrowserSessionManager(settings)
readiness = ReadinessReporter(session_manager, ttl_seconds=settings.browser_status_ttl_seconds)


def get_session_manager() -> BrowserSessionManager:
    return session_manager


def get_readiness() -> ReadinessReporter:
    return readiness


# Pydantic models
class SubmissionResult(BaseModel):
    ok: bool
    referenceNumber: Optional[str] = None
    errorKind: Optional[str] = None
    message: Optional[str] = None
    details: Optional[List[str]] = None

    @classmethod
    def success(cls, reference_number: str) -> "SubmissionResult":
        return cls(ok=True, referenceNumber=reference_number)

    @classmethod
    def failure(cls, error_kind: str, message: str, details: Optional[List[str]] = None) -> "SubmissionResult":
        return cls(ok=False, errorKind=error_kind, message=message, details=details or None)

    @classmethod
    def from_error(cls, error: PoliceFormError) -> "SubmissionResult":
        return cls.failure(error.error_kind, error.message, error.details)

    def to_response(self, status_code: int = 200) -> JSONResponse:
        return JSONResponse(status_code=status_code, content=self.model_dump(exclude_none=True))


def _log_unhandled_async_error(loop, context):
    """Keep the service alive when a background task fails"""
    error = context.get("exception") or context.get("message")
    logger.error("Unhandled async error: %s", error)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("🚀 Starting Police Form Automation Service...")
    asyncio.get_running_loop().set_exception_handler(_log_unhandled_async_error)

    readiness.mark_server_ready()
    startup_check = asyncio.create_task(readiness.startup_check())
    logger.info("🚦 Server ready on port %s", settings.port)
    logger.info("🔗 Police form API: /api/police/submit/tenant")
    yield

    if not startup_check.done():
        startup_check.cancel()
    logger.info("🛑 Police Form Automation Service stopped")


# Initialize FastAPI app
app = FastAPI(
    title="Police Form Automation API",
    description="Automates the Rajasthan Police tenant verification form",
    version="1.0.0",
    lifespan=lifespan,
)


def _wildcard_origin_regex(origins: List[str]) -> Optional[str]:
    suffixes = [re.escape(o[1:]) for o in origins if o.startswith("*.")]
    if not suffixes:
        return None
    return r".*(?:" + "|".join(suffixes) + r")$"


def is_origin_allowed(origin: Optional[str]) -> bool:
    # Requests without Origin: health checks, curl, server-to-server
    if not origin:
        return True
    if origin in settings.allowed_origins:
        return True
    return any(
        p.startswith("*.") and origin.endswith(p[1:]) for p in settings.allowed_origins
    )


# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=[o for o in settings.allowed_origins if not o.startswith("*.")],
    allow_origin_regex=_wildcard_origin_regex(settings.allowed_origins),
    allow_credentials=False,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type"],
    max_age=600,
)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    details = [f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in exc.errors()]
    return SubmissionResult.failure(
        ValidationError.error_kind, "Request body could not be parsed", details
    ).to_response(400)


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s", request.url.path)
    return SubmissionResult.failure("internal_error", str(exc) or "Internal server error").to_response(500)


@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "status": "active",
        "service": "Police Form Automation API",
        "version": "1.0.0",
        "timestamp": datetime.now().isoformat(),
    }


@app.get("/health")
async def health_check(readiness: ReadinessReporter = Depends(get_readiness)):
    """Plain-text liveness for the platform health checker"""
    if not readiness.get().server_ready:
        return PlainTextResponse("Service starting up...", status_code=503)
    return PlainTextResponse("OK")


@app.get("/api/health")
async def api_health_check(readiness: ReadinessReporter = Depends(get_readiness)):
    state = readiness.get()
    return JSONResponse(
        status_code=200 if state.server_ready else 503,
        content={
            "status": "ok" if state.server_ready else "starting",
            "serverReady": state.server_ready,
            "browserReady": state.browser_ready,
            "timestamp": datetime.now().isoformat(),
        },
    )


@app.get("/browser-status")
@app.get("/api/browser-status")
async def browser_status(readiness: ReadinessReporter = Depends(get_readiness)):
    """Browser launch capability, cached between probes"""
    return await readiness.browser_status()


@app.get("/api/cors-test")
async def cors_test(request: Request):
    origin = request.headers.get("origin")
    return {
        "ok": True,
        "origin": origin,
        "allowed": is_origin_allowed(origin),
        "timestamp": datetime.now().isoformat(),
    }


@app.post("/api/police/submit/tenant")
@app.post("/api/police-form/submit")
async def submit_tenant_form(
    payload: Any = Body(None),
    readiness: ReadinessReporter = Depends(get_readiness),
    session_manager: BrowserSessionManager = Depends(get_session_manager),
):
    """
    Fill and submit the tenant verification form, returning the reference
    number issued by the police website
    """
    try:
        request = validate_payload(payload)
    except ValidationError as e:
        return SubmissionResult.from_error(e).to_response(e.status_code)

    if not readiness.get().server_ready:
        return SubmissionResult.failure(
            "service_unavailable", "Service not ready yet, please try again"
        ).to_response(503)

    agent = PoliceFormAgent(session_manager, session_manager.settings)
    try:
        reference = await agent.submit_tenant(resolve_submission(request))
    except PoliceFormError as e:
        logger.error("❌ Form submission failed (%s): %s", e.error_kind, e.message)
        return SubmissionResult.from_error(e).to_response(e.status_code)
    except Exception as e:
        logger.exception("❌ Form submission failed")
        return SubmissionResult.failure("submission_error", str(e)).to_response(500)

    return SubmissionResult.success(reference).to_response(200)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=settings.port)
