from prometheus_fastapi_instrumentator import Instrumentator

from gallery.core.logging import configure_logging
from gallery.core.config import settings
from . import app as gallery_app

configure_logging(settings.LOG_LEVEL)
app = gallery_app
instrumentator = Instrumentator()
# Middleware cannot be added once the app has started, so instrument on import.
instrumentator.instrument(app).expose(app, include_in_schema=False)


@app.get("/health")
async def health() -> dict[str, bool]:
    return {"ok": True}
