"""Canonical request construction for SigV4 query signing.

The canonical request is the exact string whose SHA-256 digest gets
signed. Any deviation in encoding, ordering or header set yields a
different digest, and the store rejects the URL.
"""

from urllib.parse import quote

from upload_signer.models import CanonicalRequest, SigningContext

ALGORITHM = "AWS4-HMAC-SHA256"
SIGNED_HEADERS = "host"
UNSIGNED_PAYLOAD = "UNSIGNED-PAYLOAD"


def rfc3986_encode(value: str) -> str:
    """Percent-encode everything outside the RFC 3986 unreserved set.

    ``quote`` never escapes ``A-Z a-z 0-9 _ . - ~``; with no extra safe
    characters, ``/`` and ``! ' ( ) *`` are escaped too.
    """
    return quote(value, safe="")


def canonical_uri(bucket: str, key: str) -> str:
    """Build the path-style URI, encoding each key segment on its own."""
    segments = [rfc3986_encode(segment) for segment in key.split("/")]
    return f"/{bucket}/" + "/".join(segments)


def canonical_query(params: dict[str, str]) -> str:
    """Encode query parameters and join them in ascending key order."""
    return "&".join(
        f"{rfc3986_encode(k)}={rfc3986_encode(str(params[k]))}"
        for k in sorted(params)
    )


def presign_query_params(context: SigningContext, expires: int) -> dict[str, str]:
    """Return the X-Amz-* query parameters that get signed into the URL."""
    return {
        "X-Amz-Algorithm": ALGORITHM,
        "X-Amz-Credential": context.credential,
        "X-Amz-Date": context.timestamp.amz_date,
        "X-Amz-Expires": str(expires),
        "X-Amz-SignedHeaders": SIGNED_HEADERS,
    }


def build_canonical_request(
    method: str,
    uri: str,
    query: dict[str, str],
    host: str,
) -> CanonicalRequest:
    """Build the canonical request for a query-signed request.

    Only ``host`` is signed and the payload is marked unsigned, since
    the body is uploaded by the browser after the URL is issued.

    Args:
        method: HTTP method, e.g. "PUT".
        uri: Already-encoded canonical URI (see canonical_uri).
        query: Query parameters, in any order.
        host: Value of the Host header the client will send.

    Returns:
        The CanonicalRequest; identical inputs give identical output.
    """
    return CanonicalRequest(
        method=method,
        canonical_uri=uri,
        canonical_query=canonical_query(query),
        canonical_headers=f"host:{host}\n",
        signed_headers=SIGNED_HEADERS,
        payload_hash=UNSIGNED_PAYLOAD,
    )
