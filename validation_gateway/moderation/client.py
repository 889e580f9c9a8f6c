import asyncio
import logging

from validation_gateway.config.settings import Settings
from validation_gateway.moderation.backends import GuardrailBackend
from validation_gateway.moderation.models import Verdict, block_reason

logger = logging.getLogger("pvg.moderation")


class ModerationClient:
    """Turns guardrail outcomes into verdicts, failing closed on any fault."""

    def __init__(self, settings: Settings, backend: GuardrailBackend):
        self._settings = settings
        self._backend = backend

    async def evaluate(self, text: str) -> Verdict:
        try:
            outcome = await asyncio.to_thread(
                self._backend.apply_guardrail,
                self._settings.guardrail_id,
                self._settings.guardrail_version,
                text,
            )
        except Exception as exc:
            logger.warning(
                "moderation_unavailable",
                extra={"error": str(exc)},
                exc_info=True,
            )
            return Verdict.unavailable(str(exc))

        if outcome.intervened:
            return Verdict.blocked(block_reason(outcome.assessments), outcome.assessments)
        return Verdict.approved()
