from fastapi import APIRouter, Header, Query, Request
from fastapi.responses import Response

from graph_connector.api.deps import ControllerDep

router = APIRouter(tags=["Connector"])


@router.api_route(
    "/msGraphConnector",
    methods=["GET", "POST"],
    responses={
        200: {"description": "File contents, or the string 'No results found'"},
        400: {"description": "Missing searchTerm or Authorization header"},
        500: {"description": "Token exchange, search or content retrieval failed"},
    },
)
async def search_files(
    request: Request,
    controller: ControllerDep,
    search_term: str | None = Query(
        None,
        alias="searchTerm",
        description="Search query string; may also be sent as a JSON body field",
    ),
    authorization: str | None = Header(None),
) -> Response:
    """Search the caller's OneDrive/SharePoint files and return their contents"""
    return await controller.search_files(
        request=request, search_term=search_term, authorization=authorization
    )
