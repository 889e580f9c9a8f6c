from dataclasses import dataclass, field
from enum import Enum
from typing import Any

APPROVED_REASON = "Content approved"
UNAVAILABLE_REASON = "Validation service unavailable"
DEFAULT_BLOCK_REASON = "Policy violation"


@dataclass(frozen=True)
class GuardrailOutcome:
    """Raw answer from a guardrail backend."""

    intervened: bool
    assessments: list[dict[str, Any]] = field(default_factory=list)


class VerdictStatus(Enum):
    ALLOWED = "allowed"
    BLOCKED = "blocked"
    UNAVAILABLE = "unavailable"


@dataclass(frozen=True)
class Verdict:
    """Normalized moderation decision.

    ``UNAVAILABLE`` means the moderation service could not judge the text.
    It is never permissive: ``allowed`` is true only for ``ALLOWED``.
    """

    status: VerdictStatus
    reason: str
    details: list[dict[str, Any]] | None = None
    error_note: str | None = None

    def __post_init__(self) -> None:
        if self.status is not VerdictStatus.ALLOWED and not self.reason:
            raise ValueError("a blocking verdict requires a reason")

    @property
    def allowed(self) -> bool:
        return self.status is VerdictStatus.ALLOWED

    @classmethod
    def approved(cls) -> "Verdict":
        return cls(status=VerdictStatus.ALLOWED, reason=APPROVED_REASON)

    @classmethod
    def blocked(cls, reason: str, details: list[dict[str, Any]] | None = None) -> "Verdict":
        return cls(status=VerdictStatus.BLOCKED, reason=reason, details=details)

    @classmethod
    def unavailable(cls, error_note: str) -> "Verdict":
        return cls(
            status=VerdictStatus.UNAVAILABLE,
            reason=UNAVAILABLE_REASON,
            error_note=error_note,
        )


def describe_assessment(assessment: dict[str, Any]) -> str:
    """Render one assessment as ``"<type>: <coverage>"``."""
    assessment_type = assessment.get("type")
    if not assessment_type:
        # Bedrock nests findings under keys such as "contentPolicy".
        policy_keys = [key for key in assessment if key.endswith("Policy")]
        assessment_type = policy_keys[0] if policy_keys else "unknown"

    coverage = assessment.get("guardrailCoverage")
    coverage_type = coverage.get("type") if isinstance(coverage, dict) else None
    return f"{assessment_type}: {coverage_type or 'unknown'}"


def block_reason(assessments: list[dict[str, Any]]) -> str:
    return ", ".join(describe_assessment(item) for item in assessments) or DEFAULT_BLOCK_REASON
