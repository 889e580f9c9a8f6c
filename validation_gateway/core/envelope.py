"""Uniform response envelope shared by every route.

Every exit point of the gateway goes through :func:`build_response`, so the
content type and CORS headers are identical on success, denial and fault
responses alike.
"""

import json
from dataclasses import dataclass, field, replace
from typing import Any

CORS_HEADERS: dict[str, str] = {
    "Content-Type": "application/json",
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "Content-Type,Authorization,X-Request-Id",
    "Access-Control-Allow-Methods": "POST, GET, OPTIONS",
}


@dataclass(frozen=True)
class GatewayResponse:
    status_code: int
    body: Any
    headers: dict[str, str] = field(default_factory=lambda: dict(CORS_HEADERS))

    def json_body(self) -> str:
        return json.dumps(self.body)

    def with_headers(self, extra: dict[str, str]) -> "GatewayResponse":
        return replace(self, headers={**self.headers, **extra})

    def as_dict(self) -> dict[str, Any]:
        return {
            "statusCode": self.status_code,
            "headers": dict(self.headers),
            "body": self.json_body(),
        }


def build_response(status_code: int, payload: Any) -> GatewayResponse:
    return GatewayResponse(status_code=status_code, body=payload, headers=dict(CORS_HEADERS))
