import logging

from fastapi import FastAPI

from academy_booking.api.v1.booking_sessions import router as booking_sessions_router
from academy_booking.core.config import settings

class ContextFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        extras = []
        for key in (
            "item_id", "kind", "guest", "schedule_id", "month", "draft_key", "dropped",
            "booking_reference", "path", "status", "reason",
        ):
            value = getattr(record, key, None)
            if value not in (None, ""):
                extras.append(f"{key}={value}")
        base = super().format(record)
        if extras:
            return f"{base} | " + " ".join(extras)
        return base


handler = logging.StreamHandler()
handler.setFormatter(ContextFormatter("%(levelname)s:%(name)s:%(message)s"))

root = logging.getLogger()
root.setLevel(getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))
root.handlers.clear()
root.addHandler(handler)

app = FastAPI(title=f"{settings.ACADEMY_NAME} Booking Sessions", version="1.0.0")

app.include_router(booking_sessions_router, prefix="/api/v1/booking-sessions", tags=["booking-sessions"])


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}
