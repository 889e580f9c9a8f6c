import asyncio
import logging
from time import perf_counter
from typing import Any

from validation_gateway.config.settings import Settings
from validation_gateway.core.envelope import GatewayResponse, build_response
from validation_gateway.core.errors import ClientInputError
from validation_gateway.forwarding.client import ForwardingClient
from validation_gateway.models.requests import InboundRequest
from validation_gateway.models.validation import (
    BatchItemResult,
    BatchSummary,
    BatchValidationResponse,
)
from validation_gateway.moderation.client import ModerationClient

logger = logging.getLogger("pvg.validation")

PROMPT_PREVIEW_LIMIT = 100
PREVIEW_ELLIPSIS = "..."
INVALID_BATCH_ITEM_REASON = "Invalid prompt: must be a string"


def prompt_preview(prompt: str) -> str:
    if len(prompt) > PROMPT_PREVIEW_LIMIT:
        return prompt[:PROMPT_PREVIEW_LIMIT] + PREVIEW_ELLIPSIS
    return prompt


class ValidationService:
    """Moderate prompts and forward approved requests downstream.

    Both entry points contain their own faults: malformed input becomes a
    400, anything unexpected becomes a generic 500, and nothing raises out.
    """

    def __init__(
        self,
        settings: Settings,
        moderation_client: ModerationClient,
        forwarding_client: ForwardingClient,
    ):
        self._settings = settings
        self._moderation_client = moderation_client
        self._forwarding_client = forwarding_client

    async def validate_and_route(self, request: InboundRequest) -> GatewayResponse:
        try:
            prompt = self._require_prompt(request.json_body())
            verdict = await self._moderation_client.evaluate(prompt)

            if verdict.allowed:
                self._log_validation(request, prompt, "ALLOWED", verdict.reason)
                return await self._forwarding_client.forward(request)

            self._log_validation(request, prompt, "BLOCKED", verdict.reason)
            return build_response(
                422,
                {
                    "success": False,
                    "allowed": False,
                    "message": self._settings.blocked_message,
                    "details": {
                        "reason": verdict.reason,
                        "assessments": verdict.details or [],
                    },
                },
            )
        except ClientInputError as exc:
            return build_response(400, {"success": False, "message": exc.message})
        except Exception:
            logger.exception("validation_failed", extra={"request_id": request.request_id})
            return build_response(
                500,
                {
                    "success": False,
                    "allowed": False,
                    "message": self._settings.error_message,
                    "error": "Internal server error",
                },
            )

    async def validate_batch(self, request: InboundRequest) -> GatewayResponse:
        """Moderate every prompt concurrently; never forwards downstream."""
        started = perf_counter()
        try:
            prompts = self._require_prompts(request.json_body())
            results = list(
                await asyncio.gather(
                    *(
                        self._validate_batch_item(index, prompt)
                        for index, prompt in enumerate(prompts)
                    )
                )
            )
            summary = BatchSummary.from_results(results)
            logger.info(
                "batch_validation",
                extra={
                    "request_id": request.request_id,
                    "batch_size": summary.total,
                    "allowed_count": summary.allowed,
                    "blocked_count": summary.blocked,
                    "latency_ms": round((perf_counter() - started) * 1000, 3),
                },
            )
            payload = BatchValidationResponse(results=results, summary=summary)
            return build_response(200, payload.model_dump(by_alias=True))
        except ClientInputError as exc:
            return build_response(400, {"success": False, "message": exc.message})
        except Exception:
            logger.exception("batch_validation_failed", extra={"request_id": request.request_id})
            return build_response(
                500, {"success": False, "message": "Batch validation failed"}
            )

    async def _validate_batch_item(self, index: int, prompt: Any) -> BatchItemResult:
        if not isinstance(prompt, str):
            return BatchItemResult(
                index=index,
                prompt_preview=prompt_preview(str(prompt)),
                allowed=False,
                reason=INVALID_BATCH_ITEM_REASON,
            )

        verdict = await self._moderation_client.evaluate(prompt)
        return BatchItemResult(
            index=index,
            prompt_preview=prompt_preview(prompt),
            allowed=verdict.allowed,
            reason=verdict.reason,
        )

    @staticmethod
    def _require_prompt(body: Any) -> str:
        prompt = body.get("prompt") if isinstance(body, dict) else None
        if not isinstance(prompt, str):
            raise ClientInputError("Invalid request: prompt is required and must be a string")
        if not prompt:
            raise ClientInputError("Invalid request: prompt cannot be empty")
        return prompt

    def _require_prompts(self, body: Any) -> list[Any]:
        prompts = body.get("prompts") if isinstance(body, dict) else None
        if not isinstance(prompts, list):
            raise ClientInputError("Invalid request: prompts must be an array")

        limit = self._settings.batch_max_prompts
        if limit > 0 and len(prompts) > limit:
            raise ClientInputError(f"Invalid request: too many prompts (max {limit})")
        return prompts

    def _log_validation(
        self, request: InboundRequest, prompt: str, result: str, reason: str
    ) -> None:
        if not self._settings.logging_enabled:
            return
        logger.info(
            "validation_result",
            extra={
                "request_id": request.request_id,
                "prompt_length": len(prompt),
                "result": result,
                "reason": reason,
            },
        )
