import logging
from collections.abc import Awaitable, Callable
from datetime import UTC, datetime
from time import perf_counter

from validation_gateway.config.settings import Settings
from validation_gateway.core.envelope import GatewayResponse, build_response
from validation_gateway.models.requests import InboundRequest
from validation_gateway.services.validation_service import ValidationService

logger = logging.getLogger("pvg.router")

Handler = Callable[[InboundRequest], Awaitable[GatewayResponse]]

AVAILABLE_ENDPOINTS = [
    "POST /validate - Validate and forward to video service",
    "POST /validate-batch - Batch validation (returns results only)",
    "GET /health - Service health check",
    "GET /config - View current configuration",
]


class GatewayRouter:
    """Maps method and path onto the gateway's handlers.

    ``OPTIONS`` is answered before any routing, for every path. Any fault
    raised by a handler is converted into a generic 500 envelope.
    """

    def __init__(self, settings: Settings, validation_service: ValidationService):
        self._settings = settings
        self._routes: dict[tuple[str, str], Handler] = {
            ("POST", "/validate"): validation_service.validate_and_route,
            ("POST", "/validate-batch"): validation_service.validate_batch,
            ("GET", "/health"): self._health,
            ("GET", "/config"): self._config,
        }

    async def dispatch(self, request: InboundRequest) -> GatewayResponse:
        started = perf_counter()
        response = await self._route(request)
        logger.info(
            "request_completed",
            extra={
                "request_id": request.request_id,
                "method": request.method,
                "path": request.path,
                "status_code": response.status_code,
                "latency_ms": round((perf_counter() - started) * 1000, 3),
            },
        )
        return response.with_headers({"x-request-id": request.request_id})

    async def _route(self, request: InboundRequest) -> GatewayResponse:
        if request.method == "OPTIONS":
            return build_response(200, {"message": "OK"})

        try:
            handler = self._routes.get((request.method, request.path))
            if handler is None:
                return build_response(
                    404,
                    {
                        "success": False,
                        "message": "Not found",
                        "availableEndpoints": list(AVAILABLE_ENDPOINTS),
                    },
                )
            return await handler(request)
        except Exception:
            logger.exception(
                "request_fault",
                extra={
                    "request_id": request.request_id,
                    "method": request.method,
                    "path": request.path,
                },
            )
            return build_response(500, {"success": False, "message": "Internal server error"})

    async def _health(self, request: InboundRequest) -> GatewayResponse:
        _ = request
        return build_response(
            200,
            {
                "status": "healthy",
                "timestamp": datetime.now(UTC).isoformat(),
                "config": {
                    "guardrailId": self._settings.guardrail_id,
                    "version": self._settings.guardrail_version,
                },
            },
        )

    async def _config(self, request: InboundRequest) -> GatewayResponse:
        _ = request
        return build_response(
            200,
            {
                "guardrailId": self._settings.guardrail_id,
                "guardrailVersion": self._settings.guardrail_version,
                "loggingEnabled": self._settings.logging_enabled,
                "messages": self._settings.messages,
            },
        )
