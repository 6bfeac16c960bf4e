import logging

import uvicorn
from fastapi import FastAPI

from graph_connector.api.main import api_router
from graph_connector.core.config import Settings, get_settings
from graph_connector.middlewares.cors import setup_cors


def setup_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s | %(levelname)-7s | %(name)s | %(message)s",
    )


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()
    setup_logging(settings)

    app = FastAPI(
        title=settings.PROJECT_NAME,
        description="Search a user's Microsoft 365 files and return their contents.",
    )
    setup_cors(app, settings)
    app.include_router(api_router, prefix=settings.API_PREFIX)
    app.dependency_overrides[get_settings] = lambda: settings
    return app


def main() -> None:
    uvicorn.run(
        "graph_connector.main:create_app", factory=True, host="0.0.0.0", port=7071
    )


if __name__ == "__main__":
    main()
