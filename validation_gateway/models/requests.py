import base64
import json
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any
from uuid import uuid4


@dataclass(frozen=True)
class InboundRequest:
    """Transport-neutral view of a single gateway call.

    Header names are stored lower-cased so lookups are case-insensitive.
    The body is kept exactly as received; it is only parsed on demand and
    is forwarded downstream unparsed.
    """

    method: str
    path: str
    headers: dict[str, str] = field(default_factory=dict)
    body: bytes | str | None = None
    request_id: str = field(default_factory=lambda: str(uuid4()))

    @classmethod
    def create(
        cls,
        method: str,
        path: str,
        headers: Mapping[str, str] | None = None,
        body: bytes | str | None = None,
    ) -> "InboundRequest":
        normalized = {str(key).lower(): str(value) for key, value in (headers or {}).items()}
        return cls(
            method=(method or "GET").upper(),
            path=path or "/",
            headers=normalized,
            body=body,
            request_id=normalized.get("x-request-id") or str(uuid4()),
        )

    @classmethod
    def from_event(cls, event: Mapping[str, Any]) -> "InboundRequest":
        """Build a request from an API Gateway (REST or HTTP API) proxy event."""
        request_context = event.get("requestContext") or {}
        http_context = request_context.get("http") or {}
        method = event.get("httpMethod") or http_context.get("method") or "GET"
        path = event.get("path") or event.get("rawPath") or "/"

        body = event.get("body")
        if body is not None and event.get("isBase64Encoded"):
            body = base64.b64decode(body)

        return cls.create(
            method=method,
            path=path,
            headers=event.get("headers") or {},
            body=body,
        )

    def header(self, name: str) -> str | None:
        return self.headers.get(name.lower())

    @property
    def authorization(self) -> str | None:
        return self.header("authorization") or None

    @property
    def raw_body(self) -> bytes:
        if self.body is None:
            return b""
        if isinstance(self.body, bytes):
            return self.body
        return self.body.encode("utf-8")

    def json_body(self) -> Any:
        """Parse the body as JSON; an absent or blank body reads as ``{}``."""
        raw = self.raw_body
        if not raw.strip():
            return {}
        return json.loads(raw)
