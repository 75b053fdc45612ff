"""HTTP endpoint that hands out presigned upload URLs.

POST /api/r2-upload-sign with ``{"filename", "contentType", "size"}``
returns ``{"uploadUrl", "publicUrl", "key", "method", "headers"}``.
"""

import json
import logging
from typing import Callable, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, Response

from upload_signer.config import ConfigError, SignerConfig, load_config, load_site_origin
from upload_signer.signing import presign_upload
from upload_signer.validation import (
    ClientInputError,
    InvalidBody,
    check_origin,
    validate_upload_request,
)

logger = logging.getLogger(__name__)

SIGN_PATH = "/api/r2-upload-sign"

NO_STORE_HEADERS = {"Cache-Control": "no-store, max-age=0"}

# Operators see the details in the logs; callers only get this
CONFIG_ERROR_MESSAGE = "Upload signing is not configured"


def json_response(data: dict, status_code: int = 200) -> JSONResponse:
    return JSONResponse(
        content=data,
        status_code=status_code,
        headers=NO_STORE_HEADERS,
        media_type="application/json; charset=utf-8",
    )


def request_origin(request: Request) -> str:
    return f"{request.url.scheme}://{request.url.netloc}"


def create_app(
    config_loader: Callable[[], SignerConfig] = load_config,
    origin_loader: Callable[[], Optional[str]] = load_site_origin,
) -> FastAPI:
    """Build the FastAPI application.

    Args:
        config_loader: Returns the deployment configuration. Called on
                       every signing request so a broken deployment
                       surfaces as a 500 instead of a crash at startup.
        origin_loader: Returns the configured serving origin, or None to
                       use the request's own origin. Consulted before
                       config_loader.

    Returns:
        The configured FastAPI app.
    """
    app = FastAPI(title="R2 Upload Signer", docs_url=None, redoc_url=None)

    @app.exception_handler(ClientInputError)
    async def client_input_error_handler(request: Request, exc: ClientInputError):
        logger.info("Rejected upload signing request: %s", exc.message)
        return json_response({"error": exc.message}, exc.status_code)

    @app.exception_handler(ConfigError)
    async def config_error_handler(request: Request, exc: ConfigError):
        logger.error("Upload signer misconfigured: %s", exc)
        return json_response({"error": CONFIG_ERROR_MESSAGE}, 500)

    @app.get("/healthz")
    async def healthz():
        return {"status": "ok"}

    @app.options(SIGN_PATH)
    async def sign_options():
        return Response(status_code=204, headers={"Allow": "POST, OPTIONS"})

    @app.api_route(SIGN_PATH, methods=["GET", "PUT", "PATCH", "DELETE", "HEAD"])
    async def sign_method_not_allowed():
        return Response("Method not allowed", status_code=405, headers={"Allow": "POST, OPTIONS"})

    @app.post(SIGN_PATH)
    async def sign_upload(request: Request):
        check_origin(
            request.headers.get("origin"),
            origin_loader() or request_origin(request),
        )
        config = config_loader()
        config.require_complete()

        try:
            payload = json.loads(await request.body())
        except (ValueError, RecursionError) as e:
            # covers JSONDecodeError, UnicodeDecodeError and oversized integers
            raise InvalidBody() from e

        upload = validate_upload_request(payload, config.max_audio_bytes)
        presigned = presign_upload(config, upload)
        return json_response(presigned.to_dict())

    return app
