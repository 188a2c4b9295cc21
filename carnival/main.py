import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from sqlalchemy.engine import Engine
from starlette.exceptions import HTTPException as StarletteHTTPException

from carnival.api import auth, carnival_groups, categories, messages, payments, products, users
from carnival.core.config import Settings
from carnival.core.errors import CarnivalError
from carnival.core.middleware import (
    BodySizeLimitMiddleware,
    RateLimitMiddleware,
    SecurityHeadersMiddleware,
    UnhandledErrorMiddleware,
)
from carnival.core.validation import as_details, describe_errors
from carnival.db.session import build_session_factory, check_connection, create_db_engine, sync_schema

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    config: Settings = app.state.settings
    engine: Engine = app.state.engine

    check_connection(engine)
    logger.info("Database connection established")
    added = sync_schema(engine)
    logger.info("Database schema synchronized (%d column(s) added)", len(added))
    Path(config.UPLOAD_DIR).mkdir(parents=True, exist_ok=True)
    if config.uses_insecure_secret:
        logger.warning("JWT_SECRET is not set, falling back to an insecure default")
    logger.info("%s started in %s mode", config.APP_NAME, config.ENVIRONMENT)
    yield
    engine.dispose()
    logger.info("Database connection closed")


def install_error_handlers(app: FastAPI, config: Settings) -> None:
    @app.exception_handler(CarnivalError)
    async def carnival_error_handler(request: Request, exc: CarnivalError):
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": "Validation failed", "details": as_details(describe_errors(exc.errors()))},
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        if exc.status_code == status.HTTP_404_NOT_FOUND:
            return JSONResponse(status_code=exc.status_code, content={"error": "Endpoint not found"})
        return JSONResponse(status_code=exc.status_code, content={"error": exc.detail}, headers=exc.headers)

    # reached only when a middleware outside UnhandledErrorMiddleware fails
    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "error": "Internal Server Error",
                "message": "Something went wrong" if config.is_production else str(exc),
            },
        )


def create_app(settings: Optional[Settings] = None, engine: Optional[Engine] = None) -> FastAPI:
    config = settings or Settings()
    engine = engine or create_db_engine(config)

    app = FastAPI(title=config.APP_NAME, lifespan=lifespan)
    app.state.settings = config
    app.state.engine = engine
    app.state.session_factory = build_session_factory(engine)

    # added innermost first; requests pass security headers -> gzip -> rate limit -> CORS -> body cap -> errors
    app.add_middleware(UnhandledErrorMiddleware, expose_detail=not config.is_production)
    app.add_middleware(BodySizeLimitMiddleware, max_bytes=config.MAX_BODY_BYTES)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[config.FRONTEND_URL],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(
        RateLimitMiddleware,
        max_requests=config.RATE_LIMIT_MAX,
        window_seconds=config.RATE_LIMIT_WINDOW_SECONDS,
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(SecurityHeadersMiddleware)

    app.mount("/uploads", StaticFiles(directory=config.UPLOAD_DIR, check_dir=False), name="uploads")

    app.include_router(auth.router, prefix="/api/auth", tags=["auth"])
    app.include_router(users.router, prefix="/api/users", tags=["users"])
    app.include_router(products.router, prefix="/api/products", tags=["products"])
    app.include_router(payments.router, prefix="/api/payments", tags=["payments"])
    app.include_router(carnival_groups.router, prefix="/api/carnival-groups", tags=["carnival-groups"])
    app.include_router(categories.router, prefix="/api/categories", tags=["categories"])
    app.include_router(messages.router, prefix="/api/messages", tags=["messages"])

    @app.get("/api/health", tags=["health"])
    def health():
        return {
            "status": "OK",
            "message": "Carnival Marketplace API is running",
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    install_error_handlers(app, config)
    return app


def run() -> None:
    config = Settings()
    logging.basicConfig(
        level=config.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run("carnival.main:create_app", factory=True, host=config.HOST, port=config.PORT)


if __name__ == "__main__":
    run()
