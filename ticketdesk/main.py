from prometheus_fastapi_instrumentator import Instrumentator

from ticketdesk.core.config import settings
from ticketdesk.core.logging import configure_logging
from . import app as api_app

configure_logging(settings.LOG_LEVEL)
app = api_app
instrumentator = Instrumentator()


@app.get("/health")
async def health() -> dict[str, bool]:
    return {"ok": True}


instrumentator.instrument(app).expose(app, include_in_schema=False)


def run() -> None:
    import uvicorn

    uvicorn.run("ticketdesk.main:app", host=settings.HOST, port=settings.PORT)


if __name__ == "__main__":
    run()
