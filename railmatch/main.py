"""Application entrypoint."""

from __future__ import annotations

from fastapi import FastAPI

from railmatch.api.v1.router import get_api_router
from railmatch.core.config import get_config
from railmatch.core.startup import bootstrap


def create_app() -> FastAPI:
    """Create the FastAPI application."""
    cfg = get_config()
    app = FastAPI(title=cfg.APP_NAME, version=cfg.APP_VERSION, debug=cfg.DEBUG)
    app.include_router(get_api_router())

    @app.get("/")
    def root() -> dict:
        return {"service": cfg.APP_NAME, "version": cfg.APP_VERSION, "api_prefix": cfg.API_PREFIX}

    return app


# Expose ASGI app for `uvicorn railmatch.main:app`.
app = create_app()


if __name__ == "__main__":
    import uvicorn

    bootstrap(create_tables=True)
    uvicorn.run(app, host="0.0.0.0", port=8000)
