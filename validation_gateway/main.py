import argparse
import logging
from uuid import uuid4

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import Response

from validation_gateway.api.routes import router, to_http_response
from validation_gateway.bootstrap import build_gateway
from validation_gateway.config.settings import get_settings
from validation_gateway.core.envelope import build_response
from validation_gateway.core.logging import configure_logging

logger = logging.getLogger("pvg.router")


def create_app() -> FastAPI:
    settings = get_settings()
    configure_logging(settings.log_level)

    # Every path, docs included, belongs to the gateway's own routing table.
    app = FastAPI(
        title="Prompt Validation Gateway",
        version="0.1.0",
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    app.state.gateway = build_gateway(settings)

    @app.exception_handler(Exception)
    async def unhandled_handler(request: Request, exc: Exception) -> Response:
        request_id = request.headers.get("x-request-id") or str(uuid4())
        logger.error(
            "unhandled_exception",
            extra={
                "request_id": request_id,
                "method": request.method,
                "path": request.url.path,
                "error": str(exc),
            },
        )
        response = build_response(500, {"success": False, "message": "Internal server error"})
        return to_http_response(response.with_headers({"x-request-id": request_id}))

    app.include_router(router)
    return app


app = create_app()


def run() -> None:
    parser = argparse.ArgumentParser(prog="pvg-serve")
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=8080)
    args = parser.parse_args()
    uvicorn.run(app, host=args.host, port=args.port)
