from __future__ import annotations

import logging
from logging.config import dictConfig

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pymongo.errors import PyMongoError

from api.v1.router import api_router
from core.config import settings
from db.database import close_database
from services.errors import BookingValidationError, RecordNotFound, ScheduleTableError


def configure_logging() -> None:
    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "json": {
                    "()": "pythonjsonlogger.jsonlogger.JsonFormatter",
                    "fmt": "%(asctime)s %(levelname)s %(name)s %(message)s",
                }
            },
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": "json",
                    "level": "INFO",
                }
            },
            "root": {"handlers": ["console"], "level": "INFO"},
        }
    )


configure_logging()
logger = logging.getLogger(__name__)

UNAVAILABLE_MESSAGE = "Service temporarily unavailable. Please try again."


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(RecordNotFound)
    async def _not_found(request: Request, exc: RecordNotFound) -> JSONResponse:
        return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"detail": f"{exc.kind} not found"})

    @app.exception_handler(BookingValidationError)
    async def _invalid(request: Request, exc: BookingValidationError) -> JSONResponse:
        return JSONResponse(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, content={"detail": str(exc)})

    @app.exception_handler(PyMongoError)
    async def _store_failure(request: Request, exc: Exception) -> JSONResponse:
        # No automatic retry; the client decides whether to try again
        logger.exception("store.request_failed", extra={"path": request.url.path, "method": request.method})
        return JSONResponse(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, content={"detail": UNAVAILABLE_MESSAGE})

    @app.exception_handler(ScheduleTableError)
    async def _bad_schedule(request: Request, exc: ScheduleTableError) -> JSONResponse:
        logger.error("schedule.table_invalid", extra={"error": str(exc)})
        return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content={"detail": "Schedule unavailable"})


def create_app() -> FastAPI:
    app = FastAPI(title="Melvin K Tattoo Studio API", version="0.1.0")

    origins_env = settings.allowed_origins.strip()
    allow_all_origins = origins_env in {"*", '"*"'}
    if allow_all_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=["*"],
            allow_credentials=False,
            allow_methods=["*"],
            allow_headers=["*"],
        )
    else:
        allowed_origins = [o.strip() for o in origins_env.split(",") if o.strip()]
        app.add_middleware(
            CORSMiddleware,
            allow_origins=allowed_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    register_exception_handlers(app)
    app.include_router(api_router, prefix="/api/v1")

    @app.on_event("shutdown")
    async def _close_database() -> None:
        await close_database()

    @app.get("/")
    async def root_health() -> dict[str, str]:
        return {"status": "ok"}

    logger.info("Application initialized", extra={"auth_backend": settings.auth_backend, "environment": settings.environment})
    return app


app = create_app()

if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=settings.environment == "development")
