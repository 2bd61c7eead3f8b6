import logging
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from quizlink.config import Settings, get_settings
from quizlink.database import Database
from quizlink.routers import router, pages

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    database = Database(app.state.settings)
    await database.create_all()
    app.state.db = database
    try:
        yield
    finally:
        await database.dispose()


async def validation_error_handler(request: Request, exc: RequestValidationError):
    # Missing or malformed input is a 400, not FastAPI's default 422
    fields = sorted({
        ".".join(str(part) for part in error["loc"] if part != "body")
        for error in exc.errors()
    } - {""})
    detail = "Missing or invalid fields: " + ", ".join(fields) if fields else "Invalid request body."
    logger.info(f"Rejected {request.method} {request.url.path}: {detail}")
    return JSONResponse(status_code=400, content={"detail": detail})


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = FastAPI(
        title="Quizlink",
        description="Create tests, share a link, collect graded results",
        version="1.0.0",
        lifespan=lifespan
    )
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(RequestValidationError, validation_error_handler)

    app.include_router(router)
    app.include_router(pages)
    return app


app = create_app()


def run():
    settings = get_settings()
    uvicorn.run("quizlink.main:app", host=settings.host, port=settings.port)
