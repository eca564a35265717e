import logging

from fastapi import FastAPI, Response
from fastapi.responses import PlainTextResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

logger = logging.getLogger(__name__)

STATUS_MESSAGE = "StatusOk is running.\n"


def create_app() -> FastAPI:
    """
    Liveness app: tells whether the monitor process is up and exposes metrics.
    """
    app = FastAPI()

    @app.get("/", response_class=PlainTextResponse)
    async def read_root():
        return STATUS_MESSAGE

    @app.get("/metrics")
    def metrics():
        return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)

    return app
