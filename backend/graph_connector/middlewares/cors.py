from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from graph_connector.core.config import Settings


def setup_cors(app: FastAPI, settings: Settings) -> None:
    if not settings.all_cors_origins:
        return
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.all_cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )
