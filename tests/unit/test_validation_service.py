import asyncio
import json
import logging

from validation_gateway.config.settings import Settings
from validation_gateway.core.envelope import GatewayResponse, build_response
from validation_gateway.models.requests import InboundRequest
from validation_gateway.moderation.models import Verdict
from validation_gateway.services.validation_service import ValidationService


class _FakeModeration:
    def __init__(
        self,
        verdicts: dict[str, Verdict] | None = None,
        delays: dict[str, float] | None = None,
    ):
        self._verdicts = verdicts or {}
        self._delays = delays or {}
        self.calls: list[str] = []

    async def evaluate(self, text: str) -> Verdict:
        self.calls.append(text)
        await asyncio.sleep(self._delays.get(text, 0))
        return self._verdicts.get(text, Verdict.approved())


class _FakeForwarding:
    def __init__(self, response: GatewayResponse | None = None):
        self.response = response or build_response(200, {"videoId": "v-1"})
        self.calls: list[InboundRequest] = []

    async def forward(self, request: InboundRequest) -> GatewayResponse:
        self.calls.append(request)
        return self.response


def _service(
    moderation: _FakeModeration,
    forwarding: _FakeForwarding | None = None,
    **settings_overrides: object,
) -> ValidationService:
    return ValidationService(
        settings=Settings(**settings_overrides),
        moderation_client=moderation,  # type: ignore[arg-type]
        forwarding_client=forwarding or _FakeForwarding(),  # type: ignore[arg-type]
    )


def _post(path: str, payload: object) -> InboundRequest:
    return InboundRequest.create("POST", path, body=json.dumps(payload))


def test_allowed_prompt_is_forwarded_once_and_relayed() -> None:
    forwarding = _FakeForwarding(build_response(201, {"videoId": "v-9"}))
    request = _post("/validate", {"prompt": "a fox in snow", "duration": 30})

    response = asyncio.run(_service(_FakeModeration(), forwarding).validate_and_route(request))

    assert response is forwarding.response
    assert forwarding.calls == [request]


def test_blocked_prompt_is_rejected_without_forwarding() -> None:
    assessments = [{"type": "contentPolicy", "guardrailCoverage": {"type": "textCharacters"}}]
    moderation = _FakeModeration(
        {"gore": Verdict.blocked("contentPolicy: textCharacters", assessments)}
    )
    forwarding = _FakeForwarding()

    response = asyncio.run(
        _service(moderation, forwarding).validate_and_route(_post("/validate", {"prompt": "gore"}))
    )

    assert response.status_code == 422
    assert response.body == {
        "success": False,
        "allowed": False,
        "message": "Content violates our community guidelines",
        "details": {"reason": "contentPolicy: textCharacters", "assessments": assessments},
    }
    assert forwarding.calls == []


def test_unavailable_moderation_fails_closed() -> None:
    moderation = _FakeModeration({"hello": Verdict.unavailable("read timeout")})
    forwarding = _FakeForwarding()

    response = asyncio.run(
        _service(moderation, forwarding).validate_and_route(_post("/validate", {"prompt": "hello"}))
    )

    assert response.status_code == 422
    assert response.body["details"] == {
        "reason": "Validation service unavailable",
        "assessments": [],
    }
    assert forwarding.calls == []


def test_empty_prompt_is_rejected_before_moderation() -> None:
    moderation = _FakeModeration()

    response = asyncio.run(
        _service(moderation).validate_and_route(_post("/validate", {"prompt": ""}))
    )

    assert response.status_code == 400
    assert response.body == {
        "success": False,
        "message": "Invalid request: prompt cannot be empty",
    }
    assert moderation.calls == []


def test_missing_prompt_is_rejected() -> None:
    moderation = _FakeModeration()

    response = asyncio.run(_service(moderation).validate_and_route(_post("/validate", {})))

    assert response.status_code == 400
    assert "prompt is required" in response.body["message"]
    assert moderation.calls == []


def test_non_string_prompt_is_rejected() -> None:
    moderation = _FakeModeration()

    for payload in ({"prompt": 42}, {"prompt": ["a"]}, ["prompt"]):
        response = asyncio.run(_service(moderation).validate_and_route(_post("/validate", payload)))
        assert response.status_code == 400
    assert moderation.calls == []


def test_malformed_body_is_internal_error() -> None:
    forwarding = _FakeForwarding()
    request = InboundRequest.create("POST", "/validate", body="{broken")

    response = asyncio.run(
        _service(_FakeModeration(), forwarding, error_message="Try later").validate_and_route(
            request
        )
    )

    assert response.status_code == 500
    assert response.body == {
        "success": False,
        "allowed": False,
        "message": "Try later",
        "error": "Internal server error",
    }
    assert forwarding.calls == []


def test_forwarding_failure_envelope_is_relayed() -> None:
    failure = build_response(502, {"success": False, "message": "Video service unavailable"})

    response = asyncio.run(
        _service(_FakeModeration(), _FakeForwarding(failure)).validate_and_route(
            _post("/validate", {"prompt": "ok"})
        )
    )

    assert response.status_code == 502


def test_validation_log_omits_prompt_text(caplog) -> None:
    caplog.set_level(logging.INFO, logger="pvg.validation")

    asyncio.run(
        _service(_FakeModeration()).validate_and_route(_post("/validate", {"prompt": "secret"}))
    )

    records = [r for r in caplog.records if r.getMessage() == "validation_result"]
    assert len(records) == 1
    assert records[0].prompt_length == 6
    assert records[0].result == "ALLOWED"
    assert "secret" not in caplog.text


def test_validation_log_respects_logging_flag(caplog) -> None:
    caplog.set_level(logging.INFO, logger="pvg.validation")

    asyncio.run(
        _service(_FakeModeration(), logging_enabled=False).validate_and_route(
            _post("/validate", {"prompt": "quiet"})
        )
    )

    assert not [r for r in caplog.records if r.getMessage() == "validation_result"]


def test_batch_preserves_input_order() -> None:
    prompts = ["slow", "medium", "fast"]
    moderation = _FakeModeration(
        verdicts={"medium": Verdict.blocked("topicPolicy: unknown")},
        delays={"slow": 0.05, "medium": 0.02, "fast": 0.0},
    )
    forwarding = _FakeForwarding()

    response = asyncio.run(
        _service(moderation, forwarding).validate_batch(
            _post("/validate-batch", {"prompts": prompts})
        )
    )

    assert response.status_code == 200
    assert response.body["success"] is True
    results = response.body["results"]
    assert [item["index"] for item in results] == [0, 1, 2]
    assert [item["prompt"] for item in results] == prompts
    assert [item["allowed"] for item in results] == [True, False, True]
    assert results[1]["reason"] == "topicPolicy: unknown"
    assert response.body["summary"] == {"total": 3, "allowed": 2, "blocked": 1}
    assert forwarding.calls == []


def test_batch_truncates_long_prompts() -> None:
    long_prompt = "a" * 101
    exact_prompt = "b" * 100

    response = asyncio.run(
        _service(_FakeModeration()).validate_batch(
            _post("/validate-batch", {"prompts": [long_prompt, exact_prompt]})
        )
    )

    results = response.body["results"]
    assert results[0]["prompt"] == "a" * 100 + "..."
    assert results[1]["prompt"] == exact_prompt


def test_batch_marks_non_string_items_blocked() -> None:
    moderation = _FakeModeration()

    response = asyncio.run(
        _service(moderation).validate_batch(_post("/validate-batch", {"prompts": ["ok", 7]}))
    )

    results = response.body["results"]
    assert results[1] == {
        "index": 1,
        "prompt": "7",
        "allowed": False,
        "reason": "Invalid prompt: must be a string",
    }
    assert moderation.calls == ["ok"]
    assert response.body["summary"] == {"total": 2, "allowed": 1, "blocked": 1}


def test_batch_passes_empty_prompts_to_moderation() -> None:
    moderation = _FakeModeration()

    asyncio.run(_service(moderation).validate_batch(_post("/validate-batch", {"prompts": [""]})))

    assert moderation.calls == [""]


def test_batch_empty_list() -> None:
    response = asyncio.run(
        _service(_FakeModeration()).validate_batch(_post("/validate-batch", {"prompts": []}))
    )

    assert response.status_code == 200
    assert response.body["results"] == []
    assert response.body["summary"] == {"total": 0, "allowed": 0, "blocked": 0}


def test_batch_rejects_non_array() -> None:
    moderation = _FakeModeration()

    response = asyncio.run(
        _service(moderation).validate_batch(
            _post("/validate-batch", {"prompts": "not-an-array"})
        )
    )

    assert response.status_code == 400
    assert response.body["message"] == "Invalid request: prompts must be an array"
    assert moderation.calls == []


def test_batch_rejects_oversized_input() -> None:
    response = asyncio.run(
        _service(_FakeModeration(), batch_max_prompts=2).validate_batch(
            _post("/validate-batch", {"prompts": ["a", "b", "c"]})
        )
    )

    assert response.status_code == 400
    assert response.body["message"] == "Invalid request: too many prompts (max 2)"


def test_batch_malformed_body_is_internal_error() -> None:
    request = InboundRequest.create("POST", "/validate-batch", body="[oops")

    response = asyncio.run(_service(_FakeModeration()).validate_batch(request))

    assert response.status_code == 500
    assert response.body == {"success": False, "message": "Batch validation failed"}


def test_batch_unavailable_moderation_counts_as_blocked() -> None:
    moderation = _FakeModeration({"storm": Verdict.unavailable("connection reset")})

    response = asyncio.run(
        _service(moderation).validate_batch(
            _post("/validate-batch", {"prompts": ["calm", "storm"]})
        )
    )

    assert response.status_code == 200
    assert response.body["results"][1] == {
        "index": 1,
        "prompt": "storm",
        "allowed": False,
        "reason": "Validation service unavailable",
    }
    assert response.body["summary"] == {"total": 2, "allowed": 1, "blocked": 1}
