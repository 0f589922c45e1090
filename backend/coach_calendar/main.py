import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .config import log_config_summary, settings
from .database import engine, get_db
from .errors import BookingServiceError
from .models import Base
from .routers import admin, slots
from .services.slots import get_booking_config

logging.basicConfig(level=settings.log_level)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    log_config_summary(settings)
    booking_config = get_booking_config()
    logger.info(f"Calendar: {booking_config.slots_per_day} slots per business day in {booking_config.timezone}")
    Base.metadata.create_all(bind=engine, checkfirst=True)
    logger.info("Database tables initialized")
    yield


app = FastAPI(title="Coach Calendar API", lifespan=lifespan)

app.include_router(slots.router)
app.include_router(admin.router)


@app.exception_handler(BookingServiceError)
async def booking_error_handler(request: Request, exc: BookingServiceError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} -> {exc.status_code}: {exc.message}")
    else:
        logger.info(f"{request.method} {request.url.path} -> {exc.status_code} ({exc.reason})")
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "reason": exc.reason},
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=400,
        content={"detail": "Invalid request body", "reason": "invalid_request"},
    )


@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request: Request, exc: SQLAlchemyError):
    logger.error(f"Database error on {request.method} {request.url.path}: {exc}")
    return JSONResponse(
        status_code=500,
        content={"detail": "Database error", "reason": "dependency_error"},
    )


@app.get("/health")
def health(db: Session = Depends(get_db)):
    return {"status": "ok", "database": db.execute(text("SELECT 1")).scalar() == 1}
