import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError

from slotbook.api.errors import request_validation_handler
from slotbook.api.v1.bookings import router as bookings_router
from slotbook.api.v1.events import router as events_router
from slotbook.core.config import Settings, settings
from slotbook.wiring.dependencies import build_container


class ContextFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        extras = []
        for key in ("provider_id", "event_id", "start", "end", "reason", "error"):
            value = getattr(record, key, None)
            if value not in (None, ""):
                extras.append(f"{key}={value}")
        base = super().format(record)
        if extras:
            return f"{base} | " + " ".join(extras)
        return base


def configure_logging(level: str) -> None:
    handler = logging.StreamHandler()
    handler.setFormatter(ContextFormatter("%(levelname)s:%(name)s:%(message)s"))

    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    root.handlers.clear()
    root.addHandler(handler)


def create_app(app_settings: Settings | None = None) -> FastAPI:
    app_settings = app_settings or settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        container = build_container(app_settings)
        app.state.container = container
        try:
            yield
        finally:
            container.close()
            logging.getLogger(__name__).info("Event store closed")

    app = FastAPI(title="Slotbook Booking API", version="1.0.0", lifespan=lifespan)
    app.add_exception_handler(RequestValidationError, request_validation_handler)

    app.include_router(bookings_router, prefix="/api/bookings", tags=["bookings"])
    app.include_router(events_router, prefix="/api/events", tags=["events"])

    @app.get("/health")
    def health() -> dict[str, str]:
        return {"status": "ok"}

    return app


configure_logging(settings.LOG_LEVEL)

app = create_app()
