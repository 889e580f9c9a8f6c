from fastapi import APIRouter, Request
from fastapi.responses import Response

from validation_gateway.api.gateway import GatewayRouter
from validation_gateway.core.envelope import GatewayResponse
from validation_gateway.models.requests import InboundRequest

GATEWAY_METHODS = [
    "GET",
    "HEAD",
    "POST",
    "PUT",
    "PATCH",
    "DELETE",
    "OPTIONS",
    "TRACE",
    "CONNECT",
]

router = APIRouter()


def to_http_response(result: GatewayResponse) -> Response:
    return Response(
        content=result.json_body(),
        status_code=result.status_code,
        headers=dict(result.headers),
    )


@router.api_route("/{path:path}", methods=GATEWAY_METHODS, include_in_schema=False)
async def gateway_entry(request: Request, path: str) -> Response:
    _ = path
    gateway: GatewayRouter = request.app.state.gateway
    inbound = InboundRequest.create(
        method=request.method,
        path=request.url.path,
        headers=dict(request.headers),
        body=await request.body(),
    )
    return to_http_response(await gateway.dispatch(inbound))
