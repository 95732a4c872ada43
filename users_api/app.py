import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware

from users_api import __version__
from users_api.core.config import Settings, get_settings
from users_api.core.logging_config import setup_logging
from users_api.repositories.json_storage import JsonUserStorage
from users_api.routers import users as users_router
from users_api.services.user_service import UserService

logger = logging.getLogger(__name__)


class RequestLogMiddleware(BaseHTTPMiddleware):
    """Log every incoming request before it reaches the routers."""

    async def dispatch(self, request, call_next):
        logger.info("Incoming Request: %s %s", request.method, _request_target(request))
        return await call_next(request)


def _request_target(request: Request) -> str:
    query = request.url.query
    return f"{request.url.path}?{query}" if query else request.url.path


async def _http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    # routing misses (unknown path or method) share one message
    if exc.status_code in (404, 405):
        message = f"Route not found for {request.method} {_request_target(request)}"
        return JSONResponse({"message": message}, status_code=404)
    return JSONResponse({"message": str(exc.detail)}, status_code=exc.status_code, headers=exc.headers)


def create_app(settings: Settings | None = None, service: UserService | None = None) -> FastAPI:
    """Build the API and load the user collection.

    Raises ``StorageError`` when the backing store cannot be read; callers
    must not start serving in that case.
    """
    settings = settings or get_settings()
    setup_logging(settings.log_level, settings.log_file)

    if service is None:
        service = UserService(JsonUserStorage(settings.data_file))
        count = service.load()
        logger.info(
            "Initial data loaded (%s): %d users from %s", settings.app_env, count, settings.data_file
        )

    app = FastAPI(title="Users API", version=__version__, redirect_slashes=False)
    app.state.settings = settings
    app.state.user_service = service
    app.add_middleware(RequestLogMiddleware)
    app.add_exception_handler(StarletteHTTPException, _http_exception_handler)
    app.include_router(users_router.router)
    return app
