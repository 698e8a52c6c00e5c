import logging
import os

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from .config import settings
from .db import init_db
from .errors import HostelHubError
from .limiter import limiter
from .routers import auth, business
from .services.session_state import SessionRegistry

# --- Logging configuration ---
_level = logging.DEBUG if getattr(settings, "DEBUG", False) else logging.INFO
logging.basicConfig(
    level=_level,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
# Align uvicorn loggers with our level (useful under Docker Compose)
for _name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
    logging.getLogger(_name).setLevel(_level)
logger = logging.getLogger("app.startup")
logger.info("Starting %s (DEBUG=%s)", settings.APP_NAME, getattr(settings, "DEBUG", False))

app = FastAPI(
    title=settings.APP_NAME,
    version="0.1.0",
    description=(
        f"{settings.APP_NAME}: hostel marketplace back end.\n\n"
        "Business dashboard JSON API: hostels, rooms, bookings, agents and commissions. "
        "Session-cookie based auth. Endpoints under /api/v1."
    ),
    openapi_tags=[
        {"name": "auth", "description": "Sign up, log in and out, current user."},
        {"name": "business", "description": "Business dashboard endpoints. Requires a business account."},
    ],
)

# Per-business dashboard state (filters, sort, page, toggle marker)
app.state.sessions = SessionRegistry()


@app.on_event("startup")
def startup_event():
    logger.info("Running startup tasks...")
    init_db()
    logger.info("Startup tasks complete.")


@app.exception_handler(HostelHubError)
async def hostelhub_error_handler(request: Request, exc: HostelHubError):
    if exc.status_code >= 500:
        logger.error("%s on %s %s: %s", type(exc).__name__, request.method, request.url.path, exc.detail)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail, "error": type(exc).__name__})


# Add the limiter to the app state
app.state.limiter = limiter
# Add the exception handler for rate limit exceeded errors
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

app.include_router(auth.router)
app.include_router(business.router)

# Local uploads when Cloudinary is not configured
app.mount(
    "/static",
    StaticFiles(directory=os.path.join(os.path.dirname(__file__), "static"), check_dir=False),
    name="static",
)


@app.get("/healthz")
@limiter.exempt
def healthz():
    return {"status": "ok"}
