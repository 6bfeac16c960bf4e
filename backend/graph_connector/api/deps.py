from typing import Annotated

from fastapi import Depends

from graph_connector.api.controllers.connector_controller import ConnectorController
from graph_connector.core.config import Settings, get_settings
from graph_connector.services.search_service import SearchService
from graph_connector.services.token_exchange_service import TokenExchangeService

SettingsDep = Annotated[Settings, Depends(get_settings)]


def get_token_exchange_service(settings: SettingsDep) -> TokenExchangeService:
    return TokenExchangeService(settings)


def get_search_service(settings: SettingsDep) -> SearchService:
    return SearchService(settings)


def get_connector_controller(
    token_service: TokenExchangeService = Depends(get_token_exchange_service),
    search_service: SearchService = Depends(get_search_service),
) -> ConnectorController:
    return ConnectorController(
        token_service=token_service, search_service=search_service
    )


ControllerDep = Annotated[ConnectorController, Depends(get_connector_controller)]
