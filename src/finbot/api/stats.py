"""
Read-only statistics HTTP API consumed by the dashboard.

Runs inside the bot's event loop through `EmbeddedServer`.
"""
import logging
from contextlib import nullcontext
from datetime import tzinfo

import uvicorn
from fastapi import FastAPI, Response
from fastapi.responses import PlainTextResponse

from finbot.core.database import Store
from finbot.core.exceptions import StoreError
from finbot.services.stats_service import StatsResponse, collect_stats

logger = logging.getLogger(__name__)


def create_stats_app(store: Store, tz: tzinfo) -> FastAPI:
    app = FastAPI(title="Finance bot stats", docs_url=None, redoc_url=None)

    @app.get("/api/stats", response_model=StatsResponse)
    async def get_stats():
        try:
            return await collect_stats(store, tz)
        except StoreError as e:
            logger.error(f"Stats query failed: {e}")
            return Response(status_code=500)

    @app.get("/health", response_class=PlainTextResponse)
    async def health():
        return "OK"

    return app


class EmbeddedServer(uvicorn.Server):
    """uvicorn server that leaves SIGINT/SIGTERM to the bot's polling loop"""

    def install_signal_handlers(self):
        pass

    def capture_signals(self):
        # uvicorn >= 0.29 installs handlers from here instead
        return nullcontext()


def create_stats_server(app: FastAPI, host: str, port: int) -> EmbeddedServer:
    config = uvicorn.Config(app, host=host, port=port, log_config=None, access_log=False)
    return EmbeddedServer(config)
