import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from classroom_booking import config
from classroom_booking.db import SessionLocal, init_database
from classroom_booking.errors import BookingAppError, NotAuthenticatedError
from classroom_booking.routers import auth, rooms, bookings
from classroom_booking.storage.factory import memory_storage
from classroom_booking.storage.sql import SqlStorage
from classroom_booking.utils.seed import seed_default_rooms

logging.basicConfig(level=config.LOG_LEVEL)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_: FastAPI):
    """Create tables and seed default rooms."""
    if config.STORAGE_BACKEND == "memory":
        if config.SEED_DEFAULT_ROOMS:
            seed_default_rooms(memory_storage())
    else:
        init_database()
        if config.SEED_DEFAULT_ROOMS:
            db = SessionLocal()
            try:
                seed_default_rooms(SqlStorage(db))
            finally:
                db.close()
    logger.info(f"Storage backend: {config.STORAGE_BACKEND}")
    yield


app = FastAPI(
    lifespan=lifespan,
    title="Classroom booker",
    description="Classroom booking API for faculty, students and admins, based on FastAPI.",
    version="0.1.0",
    license_info={
        "name": "MIT",
        "url": "https://opensource.org/licenses/MIT",
    },
)


@app.exception_handler(BookingAppError)
async def booking_app_error_handler(_: Request, exc: BookingAppError):
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, NotAuthenticatedError) else None
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message}, headers=headers)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(_: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": jsonable_encoder(exc.errors())},
    )


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"},
    )


app.include_router(auth.router)
app.include_router(rooms.router)
app.include_router(bookings.router)
