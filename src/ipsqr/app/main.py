"""
FastAPI application entry point.

Run:
- development: uvicorn ipsqr.app.main:app --reload
- production: uvicorn ipsqr.app.main:app
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any

from fastapi import FastAPI

from ipsqr import __version__
from ipsqr.api.client import NbsQrClient
from ipsqr.app.context import build_context
from ipsqr.app.routes import language, qr, templates
from ipsqr.core.config import load_config
from ipsqr.core.storage import KeyValueStore

logger = logging.getLogger(__name__)


def create_app(
    config_path: Path | None = None,
    store: KeyValueStore | None = None,
    client: NbsQrClient | None = None,
) -> FastAPI:
    """
    Build the application.

    Args:
        config_path: YAML settings (None → default.yaml)
        store: store override (tests)
        client: API client override (tests)
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """
        Startup: load config, wire services.
        Shutdown: nothing to release (store writes are synchronous).
        """
        config = load_config(config_path)
        app.state.config = config
        app.state.context = build_context(config, store=store, client=client)

        yield

        logger.info("Shutting down")

    app = FastAPI(
        title="NBS IPS QR",
        description="IPS QR payment templates, language settings and NBS QR API proxy",
        version=__version__,
        lifespan=lifespan,
    )

    app.include_router(
        templates.api_router, prefix="/api/templates", tags=["Templates API"]
    )
    app.include_router(qr.api_router, prefix="/api/qr", tags=["QR API"])
    app.include_router(language.api_router, prefix="/api", tags=["Language API"])

    @app.get("/")
    async def root() -> dict[str, Any]:
        return {
            "message": "NBS IPS QR",
            "endpoints": {
                "templates": "/api/templates",
                "qr": "/api/qr",
                "language": "/api/language",
                "notifications": "/api/notifications",
            },
        }

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "ipsqr.app.main:app",
        host="127.0.0.1",
        port=8000,
        reload=True,
    )
