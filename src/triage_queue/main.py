import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.orm import Session

from .config import settings
from .database import DATABASE_URL, get_db, init_db
from .errors import TriageError
from .routers import alerts, appointments, dashboard, doctors, hospitals, receipts, reminders

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Initialize database (creates tables for SQLite)
    if DATABASE_URL.startswith("sqlite"):
        logger.info("Initializing SQLite database: %s", DATABASE_URL)
        init_db()
    yield


app = FastAPI(title=settings.app_name, lifespan=lifespan)

# CORS for frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000", "http://127.0.0.1:3000"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(receipts.router)
app.include_router(hospitals.router)
app.include_router(appointments.router)
app.include_router(alerts.router)
app.include_router(dashboard.router)
app.include_router(doctors.router)
app.include_router(reminders.router)


@app.exception_handler(TriageError)
async def triage_error_handler(request: Request, exc: TriageError):
    if exc.status_code >= 500:
        logger.warning("%s %s failed: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": str(exc), "error": type(exc).__name__},
    )


@app.get("/health")
def health_check(db: Session = Depends(get_db)):
    db_status = "ok"
    try:
        db.execute(text("SELECT 1"))
    except Exception:
        logger.exception("Database health check failed")
        db_status = "unavailable"

    return {
        "status": "ok" if db_status == "ok" else "degraded",
        "database": db_status,
        "queue_policy": settings.queue_policy,
    }
