import logging
import traceback
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from app.auth.routes.api import router as auth_router
from app.auth.routes.system import router as system_router
from app.catalog.routes.admin import router as catalog_admin_router
from app.catalog.routes.api import router as catalog_router
from app.chat.routes.api import router as chat_router
from app.codes.routes.admin import router as codes_admin_router
from app.codes.routes.api import router as codes_router
from app.conversations.routes.api import router as conversations_router
from app.core.config import settings
from app.core.db import sessionmanager
from app.core.setup import check_runtime_configuration, initialize_workspace
from app.settings.routes.admin import router as settings_admin_router
from app.settings.utils import initialize_application_settings
from app.usage.routes.admin import router as usage_admin_router
from app.usage.routes.api import router as usage_router
from app.users.routes.admin import router as users_admin_router
from app.users.routes.me import router as users_me_router

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):  # noqa
    """
    Validates the runtime configuration, makes sure the database directory exists
    and seeds the default system settings.
    """
    check_runtime_configuration()
    initialize_workspace()

    async with sessionmanager.session() as session:
        await initialize_application_settings(session)

    yield

    await sessionmanager.cleanup()


app = FastAPI(title="fimai-chat", lifespan=lifespan)


@app.middleware("http")
async def add_request_id(request: Request, call_next):
    request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
    request.state.request_id = request_id
    response = await call_next(request)
    response.headers["X-Request-ID"] = request_id
    return response


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": jsonable_encoder(exc.errors())},
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    request_id = getattr(request.state, "request_id", None)
    logger.error(f"Unhandled exception [request_id={request_id}]: {exc}", exc_info=True)

    content = {
        "error": "Internal Server Error",
        "message": "An unexpected error occurred.",
        "request_id": request_id,
    }
    if settings.is_development:
        content["debug"] = {
            "exception": repr(exc),
            "traceback": traceback.format_exception(type(exc), exc, exc.__traceback__),
        }
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=content)


app.include_router(auth_router, prefix="/api/auth", tags=["auth"])
app.include_router(system_router, prefix="/api/system", tags=["system"])
app.include_router(users_me_router, prefix="/api/user", tags=["users"])
app.include_router(users_admin_router, prefix="/api/admin/users", tags=["admin"])
app.include_router(catalog_router, prefix="/api", tags=["catalog"])
app.include_router(catalog_admin_router, prefix="/api/admin", tags=["admin"])
app.include_router(codes_router, prefix="/api/codes", tags=["codes"])
app.include_router(codes_admin_router, prefix="/api/admin/codes", tags=["admin"])
app.include_router(usage_router, prefix="/api/token-usage", tags=["usage"])
app.include_router(usage_admin_router, prefix="/api/admin", tags=["admin"])
app.include_router(settings_admin_router, prefix="/api/admin/system-settings", tags=["admin"])
app.include_router(conversations_router, prefix="/api/conversations", tags=["conversations"])
app.include_router(chat_router, prefix="/api/chat", tags=["chat"])
