import os
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address
from sqlalchemy.exc import IntegrityError
from starlette.exceptions import HTTPException as StarletteHTTPException
import uvicorn

from auth import auth_router
from config import Settings, get_settings
from database import Database
from logger import configure_logging, get_logger
from router import router

log = get_logger(__name__)


class PublicStaticFiles(StaticFiles):
    """Static files without dotfiles; anything not served is a 403."""

    async def get_response(self, path: str, scope):
        if any(part.startswith(".") for part in path.split(os.sep)):
            raise StarletteHTTPException(status_code=403, detail="Access denied")
        try:
            return await super().get_response(path, scope)
        except StarletteHTTPException as exc:
            if exc.status_code == 404:
                raise StarletteHTTPException(status_code=403, detail="Access denied")
            raise


@asynccontextmanager
async def lifespan(app: FastAPI):
    app.state.db.create_all()
    log.info("database_ready", url=app.state.db.engine.url.render_as_string())
    yield
    app.state.db.dispose()


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = [
        {
            "field": ".".join(str(part) for part in error["loc"] if part != "body"),
            "message": error["msg"],
        }
        for error in exc.errors()
    ]
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"detail": errors})


async def integrity_error_handler(request: Request, exc: IntegrityError):
    log.warning("integrity_error", path=request.url.path, error=str(exc.orig))
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": "Record violates a database constraint"},
    )


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded):
    log.warning(
        "rate_limited",
        path=request.url.path,
        client=get_remote_address(request),
        limit=str(exc.detail),
    )
    return JSONResponse(
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        content={"detail": "Too many requests from this IP, please try again later."},
    )


async def unhandled_exception_handler(request: Request, exc: Exception):
    log.error("unhandled_error", path=request.url.path, exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal Server Error"},
    )


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(title="Budget Tracker API", lifespan=lifespan)
    app.state.settings = settings
    app.state.db = Database(settings.database_url)
    app.state.limiter = Limiter(
        key_func=get_remote_address, default_limits=[settings.rate_limit]
    )

    app.add_middleware(SlowAPIMiddleware)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(IntegrityError, integrity_error_handler)
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    app.include_router(auth_router, prefix="/api", tags=["authentication"])
    app.include_router(router, prefix="/api", tags=["expenses"])

    if os.path.isdir(settings.static_dir):
        app.mount(
            "/static", PublicStaticFiles(directory=settings.static_dir), name="static"
        )

    @app.get("/")
    def home():
        return {"message": "Welcome to Budget Tracker API"}

    return app


app = create_app()


if __name__ == "__main__":
    settings = get_settings()
    uvicorn.run(app, host=settings.host, port=settings.port)
