import asyncio
import logging
from contextlib import asynccontextmanager, suppress
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from donation_api import __version__
from donation_api.api.api import router as api_router
from donation_api.core.config import Settings, settings as default_settings
from donation_api.core.errors import DonationAPIError, InvalidInput
from donation_api.db.session import Database, database_from_settings
from donation_api.services.payments.base import PaymentsProvider
from donation_api.services.payments.factory import get_payments_provider

logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, (level or "INFO").upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def _log_configuration(settings: Settings, database: Database) -> None:
    logger.info("Environment variable check:")
    for name, present in settings.configuration_report().items():
        logger.info(f"  {name}: {'set' if present else 'MISSING'}")
    logger.info(f"Database URL (masked): {database.masked_url}")
    logger.info(f"Allowed CORS origins: {', '.join(settings.ALLOWED_ORIGINS)}")


def _validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if any(err.get("type") == "json_invalid" for err in errors):
        return "Invalid JSON format"
    if not errors:
        return "Invalid request body"
    first = errors[0]
    loc = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    return f"Invalid request body: {loc}: {first.get('msg')}" if loc else f"Invalid request body: {first.get('msg')}"


def create_app(
    settings: Optional[Settings] = None,
    database: Optional[Database] = None,
    payments: Optional[PaymentsProvider] = None,
) -> FastAPI:
    settings = settings or default_settings
    database = database or database_from_settings(settings)
    payments = payments or get_payments_provider(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        _log_configuration(settings, database)
        connector = None
        if not database.is_ready:
            # requests get 503 from the store until this succeeds
            connector = asyncio.create_task(database.connect_forever(settings.DB_RETRY_INTERVAL_SECONDS))
        yield
        if connector is not None:
            connector.cancel()
            with suppress(asyncio.CancelledError):
                await connector
        payments.close()
        database.dispose()

    app = FastAPI(title="Donation API", version=__version__, lifespan=lifespan)
    app.state.settings = settings
    app.state.database = database
    app.state.payments = payments

    # only the known frontends may call us
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Accept", "Authorization"],
        max_age=600,
    )

    @app.exception_handler(DonationAPIError)
    async def donation_error_handler(request: Request, exc: DonationAPIError):
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        message = _validation_message(exc)
        logger.warning(f"{request.method} {request.url.path}: {message}")
        error = InvalidInput(message)
        return JSONResponse(status_code=error.status_code, content=error.to_dict())

    # crash protection for anything unexpected
    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.exception(f"Unhandled error on {request.method} {request.url.path}: {exc}")
        return JSONResponse(status_code=500, content={"success": False, "error": "Internal server error"})

    app.include_router(api_router)
    return app


configure_logging(default_settings.LOG_LEVEL)
app = create_app()


def run() -> None:
    import uvicorn

    uvicorn.run(app, host=default_settings.APP_HOST, port=default_settings.PORT)


if __name__ == "__main__":
    run()
