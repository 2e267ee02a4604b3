import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from backend.app.api.v1.router import router as v1_router
from backend.app.core.config import get_settings
from backend.app.core.logging import setup_logging
from backend.app.schemas.common import error_messages
from backend.services.errors import DomainRuleViolation, WarehouseError

logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    settings = get_settings()
    log_path = setup_logging(settings)

    app = FastAPI(title="Lagerwerk", version="0.1.0")
    app.include_router(v1_router, prefix="/api")

    @app.exception_handler(WarehouseError)
    async def handle_warehouse_error(request: Request, exc: WarehouseError):
        level = logging.INFO if isinstance(exc, DomainRuleViolation) else logging.WARNING
        logger.log(level, "%s %s -> %s: %s", request.method, request.url.path, type(exc).__name__, exc.message)
        return JSONResponse(status_code=exc.status_code, content={"error": exc.message})

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError):
        message = ", ".join(error_messages(exc.errors())) or "Invalid request"
        logger.info("%s %s -> invalid input: %s", request.method, request.url.path, message)
        return JSONResponse(status_code=400, content={"error": message})

    @app.exception_handler(SQLAlchemyError)
    async def handle_db_error(request: Request, exc: SQLAlchemyError):
        logger.exception("%s %s -> database error", request.method, request.url.path, exc_info=exc)
        return JSONResponse(status_code=500, content={"error": "Database error, nothing was saved"})

    logger.info("app ready (log file: %s)", log_path or "console only")
    return app


app = create_app()
