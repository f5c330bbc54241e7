import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from appointment_core.api.v1.booking import router as booking_router
from appointment_core.api.v1.working_hours import router as working_hours_router
from appointment_core.core.config import settings

class ContextFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        extras = []
        for key in ("attempt", "state", "failure", "code", "appointment_id", "provider_id", "status", "error"):
            value = getattr(record, key, None)
            if value not in (None, ""):
                extras.append(f"{key}={value}")
        base = super().format(record)
        if extras:
            return f"{base} | " + " ".join(extras)
        return base


def configure_logging(level: str) -> None:
    """Install one ContextFormatter handler on the root logger; safe to call twice."""
    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    for existing in list(root.handlers):
        if isinstance(existing.formatter, ContextFormatter):
            root.removeHandler(existing)
    handler = logging.StreamHandler()
    handler.setFormatter(ContextFormatter("%(levelname)s:%(name)s:%(message)s"))
    root.addHandler(handler)


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging(settings.LOG_LEVEL)
    yield


app = FastAPI(title="Appointment Scheduling Core", version="1.0.0", lifespan=lifespan)

app.include_router(booking_router, prefix="/api/v1", tags=["booking"])
app.include_router(working_hours_router, prefix="/api/v1", tags=["working-hours"])


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}
