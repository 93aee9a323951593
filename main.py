# main.py
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.config import settings
from app.db import init_db

# Submission routers
from app.reports.routes import router as service_reports_router
from app.tithes.routes import router as tithes_router, admin_router as tithes_admin_router
from app.offerings.routes import router as offerings_router
from app.finance.routes import router as finance_router, admin_router as finance_admin_router

# Admin + AI
from app.admin.routes import router as admin_router
from app.ai.routes import router as ai_router

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s [%(levelname)s] %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
log = logging.getLogger("district_reports")

MISSING_FIELD_ERRORS = {"missing", "string_too_short"}


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    log.info("Database ready")
    yield


app = FastAPI(title="District Reports", version="1.0.0", lifespan=lifespan)


# ── Error envelope ────────────────────────────────────────────────────────────
@app.exception_handler(StarletteHTTPException)
async def http_error(request: Request, exc: StarletteHTTPException):
    return JSONResponse({"success": False, "error": exc.detail}, status_code=exc.status_code)


@app.exception_handler(RequestValidationError)
async def validation_error(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    missing = any(e.get("type") in MISSING_FIELD_ERRORS for e in errors)
    log.info("Rejected %s %s: %s", request.method, request.url.path, errors)
    return JSONResponse(
        {"success": False, "error": "Missing required fields" if missing else "Invalid request"},
        status_code=400,
    )


@app.exception_handler(Exception)
async def unhandled_error(request: Request, exc: Exception):
    log.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse({"success": False, "error": "Server error"}, status_code=500)


# Healthcheck
@app.get("/healthz")
def healthcheck():
    return {"ok": True}


# ── Routers ───────────────────────────────────────────────────────────────────
# Assembly submissions
app.include_router(service_reports_router)
app.include_router(tithes_router)
app.include_router(offerings_router)
app.include_router(finance_router)

# Admin views
app.include_router(admin_router)
app.include_router(tithes_admin_router)
app.include_router(finance_admin_router)

# AI reports
app.include_router(ai_router)
