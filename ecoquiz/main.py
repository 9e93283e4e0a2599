import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ecoquiz import models  # noqa: F401  (register tables)
from ecoquiz.config import settings
from ecoquiz.database import Base, engine
from ecoquiz.routers import (
    analytics as analytics_router,
    auth as auth_router,
    export as export_router,
    quiz as quiz_router,
    stats as stats_router,
)
from ecoquiz.utils.auth import ensure_admin
from ecoquiz.utils.logging_config import configure_logging

configure_logging(settings.LOG_LEVEL)
logger = logging.getLogger(__name__)


def init_db() -> None:
    Base.metadata.create_all(bind=engine)
    if settings.ADMIN_EMAIL and settings.ADMIN_PASSWORD:
        with Session(engine) as db:
            ensure_admin(db, settings.ADMIN_EMAIL, settings.ADMIN_PASSWORD)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Startup: ensuring tables")
    init_db()
    yield


app = FastAPI(title="Nachhaltigkeits-Quiz", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True, allow_methods=["*"], allow_headers=["*"],
)

# Schema mismatches get a generic 400, per endpoint
_VALIDATION_MESSAGES = {
    "/api/quiz/start": quiz_router.INVALID_SESSION_DATA,
    "/api/quiz/response": quiz_router.INVALID_RESPONSE_DATA,
    "/api/quiz/complete": quiz_router.INVALID_SESSION_ID,
}


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    message = _VALIDATION_MESSAGES.get(request.url.path, "Invalid request")
    logger.warning("%s %s rejected: %s", request.method, request.url.path, exc.errors())
    return JSONResponse(status_code=400, content={"detail": message})


@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request: Request, exc: SQLAlchemyError):
    logger.exception("Database error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


@app.get("/health")
def health():
    try:
        with Session(engine) as s:
            s.execute(text("SELECT 1"))
        return {"ok": True}
    except SQLAlchemyError:
        logger.exception("Health check failed")
        return JSONResponse(status_code=503, content={"ok": False})


app.include_router(auth_router.router)
app.include_router(quiz_router.router)
app.include_router(analytics_router.router)
app.include_router(stats_router.router)
app.include_router(export_router.router)


def run():
    import uvicorn
    uvicorn.run("ecoquiz.main:app", host="127.0.0.1", port=8000)


if __name__ == "__main__":
    run()
