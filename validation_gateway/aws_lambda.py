"""AWS Lambda entry point (API Gateway proxy integration)."""

import asyncio
import logging
from functools import lru_cache
from typing import Any
from uuid import uuid4

from validation_gateway.api.gateway import GatewayRouter
from validation_gateway.bootstrap import build_gateway
from validation_gateway.config.settings import get_settings
from validation_gateway.core.envelope import build_response
from validation_gateway.core.logging import configure_logging
from validation_gateway.models.requests import InboundRequest

logger = logging.getLogger("pvg.router")


@lru_cache
def get_gateway() -> GatewayRouter:
    settings = get_settings()
    configure_logging(settings.log_level)
    return build_gateway(settings)


def handler(event: dict[str, Any], context: Any) -> dict[str, Any]:
    _ = context
    try:
        inbound = InboundRequest.from_event(event)
    except Exception:
        request_id = str(uuid4())
        logger.exception("event_parse_failed", extra={"request_id": request_id})
        response = build_response(500, {"success": False, "message": "Internal server error"})
        return response.with_headers({"x-request-id": request_id}).as_dict()

    response = asyncio.run(get_gateway().dispatch(inbound))
    return response.as_dict()
