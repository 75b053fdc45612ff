"""Request validation for the upload signing endpoint.

Everything here runs before any cryptographic work. Size checks are
made against the size the client declares; the presigned PUT itself
does not bound the uploaded byte count.
"""

import math
import re
from typing import Any, Optional

from upload_signer.models import UploadRequest

DEFAULT_CONTENT_TYPE = "application/octet-stream"

# Plain decimal or exponent notation; rejects "1_000", "inf", "nan"
_NUMERIC_STRING = re.compile(r"^\s*[0-9.eE+-]+\s*$")


class ClientInputError(Exception):
    """A user-correctable request problem.

    The message is safe to return to the caller verbatim.
    """

    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidBody(ClientInputError):
    """Raised when the request body is not a JSON object."""

    def __init__(self, message: str = "Invalid JSON body"):
        super().__init__(message)


class MissingFilename(ClientInputError):
    """Raised when the filename is empty after trimming."""

    def __init__(self, message: str = "Missing filename"):
        super().__init__(message)


class InvalidSize(ClientInputError):
    """Raised when the declared size is not a positive integer."""

    def __init__(self, message: str = "Invalid file size"):
        super().__init__(message)


class FileTooLarge(ClientInputError):
    """Raised when the declared size exceeds the configured maximum."""

    status_code = 413

    def __init__(self, max_bytes: int):
        super().__init__(f"File too large. Max allowed is {max_bytes} bytes")
        self.max_bytes = max_bytes


class ForbiddenOrigin(ClientInputError):
    """Raised when a browser request comes from a foreign origin."""

    status_code = 403

    def __init__(self, message: str = "Forbidden origin"):
        super().__init__(message)


def check_origin(origin: Optional[str], serving_origin: str) -> None:
    """Reject cross-origin browser requests.

    Requests without an Origin header (curl, server-side callers) are
    allowed through.

    Raises:
        ForbiddenOrigin: If origin is set and differs from serving_origin.
    """
    if origin and origin != serving_origin:
        raise ForbiddenOrigin()


def _coerce_size(raw: Any) -> int:
    # bool is an int subclass; true/false are not sizes
    if raw is None or isinstance(raw, bool):
        raise InvalidSize()

    if isinstance(raw, int):
        size = raw
    elif isinstance(raw, (float, str)):
        if isinstance(raw, str) and not _NUMERIC_STRING.match(raw):
            raise InvalidSize()
        try:
            value = float(raw)
        except ValueError as e:
            raise InvalidSize() from e
        if not math.isfinite(value) or not value.is_integer():
            raise InvalidSize()
        size = int(value)
    else:
        raise InvalidSize()

    if size <= 0:
        raise InvalidSize()
    return size


def validate_upload_request(payload: Any, max_bytes: int) -> UploadRequest:
    """Validate the parsed JSON body of an upload signing request.

    Args:
        payload: The decoded JSON body.
        max_bytes: Largest size, in bytes, a client may declare.

    Returns:
        The validated UploadRequest.

    Raises:
        InvalidBody: If payload is not a JSON object.
        MissingFilename: If filename is missing or blank.
        InvalidSize: If size is missing, non-numeric, non-integral or <= 0.
        FileTooLarge: If size exceeds max_bytes.
    """
    if not isinstance(payload, dict):
        raise InvalidBody()

    filename = payload.get("filename")
    filename = "" if filename is None else str(filename).strip()
    if not filename:
        raise MissingFilename()

    size = _coerce_size(payload.get("size"))
    if size > max_bytes:
        raise FileTooLarge(max_bytes)

    content_type = payload.get("contentType")
    content_type = str(content_type) if content_type else DEFAULT_CONTENT_TYPE

    return UploadRequest(filename=filename, content_type=content_type, size=size)
