from typing import Any

import httpx

from validation_gateway.api.gateway import GatewayRouter
from validation_gateway.config.settings import Settings
from validation_gateway.forwarding.client import ForwardingClient
from validation_gateway.moderation.backends import (
    BedrockGuardrailBackend,
    GuardrailBackend,
    KeywordGuardrailBackend,
)
from validation_gateway.moderation.client import ModerationClient
from validation_gateway.services.validation_service import ValidationService


def build_guardrail_backend(
    settings: Settings, bedrock_client: Any | None = None
) -> GuardrailBackend:
    backend = settings.moderation_backend_normalized
    if backend == "bedrock":
        return BedrockGuardrailBackend(
            region=settings.aws_region,
            endpoint_url=settings.bedrock_endpoint_url,
            timeout_s=settings.moderation_timeout_s,
            bedrock_client=bedrock_client,
        )
    if backend == "keyword":
        return KeywordGuardrailBackend(settings.blocked_term_set)
    raise RuntimeError(f"Unsupported PVG_MODERATION_BACKEND value: {backend}")


def build_gateway(
    settings: Settings,
    bedrock_client: Any | None = None,
    forward_transport: httpx.AsyncBaseTransport | None = None,
) -> GatewayRouter:
    moderation_client = ModerationClient(
        settings, build_guardrail_backend(settings, bedrock_client=bedrock_client)
    )
    forwarding_client = ForwardingClient(
        endpoint=settings.video_service_url,
        timeout_s=settings.forward_timeout_s,
        transport=forward_transport,
    )
    validation_service = ValidationService(
        settings=settings,
        moderation_client=moderation_client,
        forwarding_client=forwarding_client,
    )
    return GatewayRouter(settings=settings, validation_service=validation_service)
