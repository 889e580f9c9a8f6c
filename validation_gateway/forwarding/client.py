"""Relay approved requests to the downstream generation service."""

import logging
from typing import Any

import httpx

from validation_gateway.core.envelope import GatewayResponse, build_response
from validation_gateway.models.requests import InboundRequest

logger = logging.getLogger("pvg.forwarding")

UNAVAILABLE_PAYLOAD: dict[str, Any] = {
    "success": False,
    "message": "Video service unavailable",
    "error": "Failed to connect to video generation service",
}


class ForwardingClient:
    """POSTs the original body to a fixed endpoint and relays the answer."""

    def __init__(
        self,
        endpoint: str,
        timeout_s: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._endpoint = endpoint
        self._timeout = timeout_s
        self._transport = transport

    async def forward(self, request: InboundRequest) -> GatewayResponse:
        headers = {"Content-Type": "application/json"}
        if request.authorization:
            headers["Authorization"] = request.authorization

        try:
            async with httpx.AsyncClient(
                timeout=self._timeout, transport=self._transport
            ) as client:
                resp = await client.post(
                    self._endpoint, content=request.raw_body, headers=headers
                )
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            logger.warning(
                "forward_failed",
                extra={"request_id": request.request_id, "error": str(exc)},
            )
            return build_response(502, dict(UNAVAILABLE_PAYLOAD))

        logger.info(
            "forward_completed",
            extra={"request_id": request.request_id, "status_code": resp.status_code},
        )
        return build_response(resp.status_code, self._relay_payload(resp))

    @staticmethod
    def _relay_payload(resp: httpx.Response) -> Any:
        try:
            return resp.json()
        except ValueError:
            return {"message": resp.text}
