"""FastAPI application factory."""

from __future__ import annotations

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from prodshot import __version__
from prodshot.core.config import _load_local_env

from .routers.process import router as process_router


def create_app() -> FastAPI:
    """Create the FastAPI app instance."""

    _load_local_env()
    app = FastAPI(title="Prodshot Server", version=__version__)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
        allow_credentials=False,
    )

    app.include_router(process_router)

    @app.get("/health")
    def health() -> dict:
        return {"status": "ok"}

    return app


app = create_app()
