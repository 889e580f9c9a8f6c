"""Guardrail backends the moderation client can consult.

A backend answers one question for one text: did the configured guardrail
intervene, and with which assessments. Backends raise
:class:`ModerationServiceError` for every fault; they never decide what a
fault means for the request.
"""

from collections.abc import Iterable
from typing import Any, Protocol

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from validation_gateway.moderation.models import GuardrailOutcome

GUARDRAIL_INTERVENED = "GUARDRAIL_INTERVENED"
GUARDRAIL_NONE = "NONE"


class ModerationServiceError(Exception):
    """Raised when the guardrail service cannot produce a decision."""


class GuardrailBackend(Protocol):
    def apply_guardrail(
        self, guardrail_id: str, guardrail_version: str, text: str
    ) -> GuardrailOutcome:
        """Evaluate ``text`` against the guardrail policy."""


class BedrockGuardrailBackend:
    """Backend calling the Bedrock Runtime ``ApplyGuardrail`` API."""

    def __init__(
        self,
        region: str | None = None,
        endpoint_url: str | None = None,
        timeout_s: float = 10.0,
        bedrock_client: Any | None = None,
    ):
        if bedrock_client is None:
            kwargs: dict[str, Any] = {
                "config": Config(
                    connect_timeout=timeout_s,
                    read_timeout=timeout_s,
                    retries={"total_max_attempts": 1, "mode": "standard"},
                ),
            }
            if region:
                kwargs["region_name"] = region
            if endpoint_url:
                kwargs["endpoint_url"] = endpoint_url
            bedrock_client = boto3.client("bedrock-runtime", **kwargs)

        self._client = bedrock_client

    def apply_guardrail(
        self, guardrail_id: str, guardrail_version: str, text: str
    ) -> GuardrailOutcome:
        try:
            response = self._client.apply_guardrail(
                guardrailIdentifier=guardrail_id,
                guardrailVersion=guardrail_version,
                source="INPUT",
                content=[{"text": {"text": text}}],
            )
        except (BotoCoreError, ClientError) as exc:
            raise ModerationServiceError(f"Guardrail request failed: {exc}") from exc

        if not isinstance(response, dict):
            raise ModerationServiceError("Guardrail response must be an object")

        action = response.get("action")
        if action not in {GUARDRAIL_INTERVENED, GUARDRAIL_NONE}:
            raise ModerationServiceError(f"Unexpected guardrail action: {action!r}")

        raw_assessments = response.get("assessments") or []
        if not isinstance(raw_assessments, list):
            raise ModerationServiceError("Guardrail assessments must be a list")

        return GuardrailOutcome(
            intervened=action == GUARDRAIL_INTERVENED,
            assessments=[item for item in raw_assessments if isinstance(item, dict)],
        )


class KeywordGuardrailBackend:
    """Local backend that intervenes on configured terms.

    Meant for development and tests where no guardrail service is reachable.
    """

    def __init__(self, blocked_terms: Iterable[str]):
        self._blocked_terms = sorted(
            {term.strip().lower() for term in blocked_terms if term.strip()}
        )

    def apply_guardrail(
        self, guardrail_id: str, guardrail_version: str, text: str
    ) -> GuardrailOutcome:
        _ = guardrail_id, guardrail_version
        lowered = text.lower()
        matched = [term for term in self._blocked_terms if term in lowered]
        return GuardrailOutcome(
            intervened=bool(matched),
            assessments=[
                {
                    "type": "wordPolicy",
                    "guardrailCoverage": {"type": "customWords"},
                    "match": term,
                }
                for term in matched
            ],
        )
