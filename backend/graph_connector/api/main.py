from fastapi import APIRouter

from graph_connector.api.routes import connector, utils

api_router = APIRouter()
api_router.include_router(connector.router)
api_router.include_router(utils.router)
