#!/usr/bin/env python3

"""
Main application entry point for the HackDB catalogue.

Architecture: FastAPI application rendering Jinja2 pages, backed by an
injected SQLAlchemy database and server-side sessions.
Key Features: Lifecycle management, database health checks, error handling,
security headers.
"""

import errno
import sys
from contextlib import asynccontextmanager
from pathlib import Path

import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from hackdb.api import accounts_router, hacks_router, pages_router
from hackdb.api.common import redirect
from hackdb.config import Settings
from hackdb.config import settings as default_settings
from hackdb.db import Database
from hackdb.db_handlers import SessionDBHandler
from hackdb.dependencies.auth import RedirectRequired
from hackdb.middleware import SECURITY_HEADERS, SecurityHeadersMiddleware
from hackdb.utils.logger import setup_logger

logger = setup_logger("main")

STATIC_DIR = Path(__file__).resolve().parent / "hackdb" / "static"


@asynccontextmanager
async def lifespan(app: FastAPI):
    database: Database = app.state.database
    logger.info("Application startup...")
    try:
        logger.info("Initializing database...")
        await database.init()
        await database.check_connection()
        async with database.session_factory() as session:
            await SessionDBHandler().purge_expired(db=session)
    except Exception as e:
        logger.critical(f"Startup error: {e}")
        raise SystemExit(f"Startup failed: {e}") from e

    logger.info("HackDB startup successful.")
    yield

    logger.info("HackDB shutdown...")
    await database.close()
    logger.info("Shutdown complete.")


def create_app(settings: Settings | None = None, database: Database | None = None):
    settings = settings or default_settings
    settings.require_startup_values()
    database = database or Database.from_settings(settings)

    app = FastAPI(title="HackDB", lifespan=lifespan)
    app.state.settings = settings
    app.state.database = database

    @app.exception_handler(RedirectRequired)
    async def redirect_required_handler(request: Request, exc: RedirectRequired):
        return redirect(exc.location)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.detail},
            headers=exc.headers,
        )

    @app.exception_handler(OSError)
    async def oserror_exception_handler(request: Request, exc: OSError):
        logger.error(f"OSError caught: {exc}, errno: {exc.errno}")
        if exc.errno in [errno.ETIMEDOUT, errno.ECONNREFUSED]:
            logger.error(
                f"Returning 503 due to DB connection issue: {settings.db_unavailable_hint}"
            )
            return JSONResponse(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                content={"error": settings.db_unavailable_hint},
            )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Internal server error"},
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.error(
            f"Unhandled error on {request.method} {request.url.path}: {exc}",
            exc_info=exc,
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Internal server error"},
            # Served from outside the middleware stack
            headers=SECURITY_HEADERS,
        )

    app.include_router(pages_router)
    app.include_router(hacks_router)
    app.include_router(accounts_router)
    app.mount("/static", StaticFiles(directory=str(STATIC_DIR)), name="static")
    app.add_middleware(SecurityHeadersMiddleware)

    return app


def main():
    settings = default_settings
    host = settings.server_host
    port = int(settings.server_port)

    logger.info(f"Starting HackDB on http://{host}:{port}/")

    try:
        uvicorn.run(create_app(settings), host=host, port=port)
    except Exception as e:
        logger.error(f"Error starting server: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
