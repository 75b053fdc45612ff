"""SigV4 signature engine for presigned single-shot PUT uploads.

The signing key is narrowed from the long-lived secret through four
HMAC-SHA256 steps::

    kDate    = HMAC("AWS4" + secret, datestamp)
    kRegion  = HMAC(kDate, region)
    kService = HMAC(kRegion, service)
    kSigning = HMAC(kService, "aws4_request")

Each step's raw digest is the next step's key. Only the final
signature is hex-encoded.
"""

import hashlib
import hmac
import logging
from datetime import datetime, timezone
from typing import Optional, Union

from upload_signer.canonical import (
    ALGORITHM,
    build_canonical_request,
    canonical_uri,
    presign_query_params,
)
from upload_signer.config import SignerConfig
from upload_signer.models import (
    CanonicalRequest,
    PresignedUpload,
    SigningContext,
    SigningTimestamp,
    UploadRequest,
)
from upload_signer.object_key import build_object_key

logger = logging.getLogger(__name__)

# Hard ceiling on URL lifetime, in seconds
MAX_PRESIGN_EXPIRES = 600

UPLOAD_METHOD = "PUT"


def sha256_hex(data: Union[str, bytes]) -> str:
    if isinstance(data, str):
        data = data.encode("utf-8")
    return hashlib.sha256(data).hexdigest()


def hmac_sha256(key: bytes, message: str) -> bytes:
    return hmac.new(key, message.encode("utf-8"), hashlib.sha256).digest()


def derive_signing_key(secret: str, datestamp: str, region: str, service: str) -> bytes:
    """Derive the request-scoped signing key from the secret access key."""
    k_date = hmac_sha256(f"AWS4{secret}".encode("utf-8"), datestamp)
    k_region = hmac_sha256(k_date, region)
    k_service = hmac_sha256(k_region, service)
    return hmac_sha256(k_service, "aws4_request")


def build_string_to_sign(amz_date: str, credential_scope: str, canonical_digest: str) -> str:
    return "\n".join([ALGORITHM, amz_date, credential_scope, canonical_digest])


def sign_canonical_request(context: SigningContext, canonical: CanonicalRequest) -> str:
    """Sign a canonical request and return the hex signature."""
    signing_key = derive_signing_key(
        context.secret_access_key,
        context.timestamp.datestamp,
        context.region,
        context.service,
    )
    string_to_sign = build_string_to_sign(
        context.timestamp.amz_date,
        context.credential_scope,
        canonical.digest,
    )
    return hmac.new(signing_key, string_to_sign.encode("utf-8"), hashlib.sha256).hexdigest()


def assemble_upload_url(host: str, canonical: CanonicalRequest, signature: str) -> str:
    return (
        f"https://{host}{canonical.canonical_uri}"
        f"?{canonical.canonical_query}&X-Amz-Signature={signature}"
    )


def public_url(public_base_url: str, key: str) -> str:
    return f"{public_base_url.rstrip('/')}/{key}"


def clamp_expires(requested: Optional[int] = None) -> int:
    """Bound a URL lifetime to [1, MAX_PRESIGN_EXPIRES] seconds.

    None selects the ceiling.
    """
    if requested is None:
        return MAX_PRESIGN_EXPIRES
    return max(1, min(int(requested), MAX_PRESIGN_EXPIRES))


def build_signing_context(config: SignerConfig, moment: datetime) -> SigningContext:
    return SigningContext(
        account_id=config.account_id,
        access_key_id=config.access_key_id,
        secret_access_key=config.secret_access_key,
        bucket=config.bucket,
        timestamp=SigningTimestamp.from_datetime(moment),
    )


def presign_upload(
    config: SignerConfig,
    upload: UploadRequest,
    now: Optional[datetime] = None,
    nonce: Optional[str] = None,
    expires_in: Optional[int] = None,
) -> PresignedUpload:
    """Produce a presigned PUT upload for a validated request.

    The timestamp is captured once; the key partition, credential
    scope, X-Amz-Date and signing key all derive from it.

    Args:
        config: Deployment configuration.
        upload: A request that already passed validation.
        now: Signing time. Defaults to the current UTC time.
        nonce: Object key nonce. Defaults to a fresh random one.
        expires_in: Requested lifetime, clamped to MAX_PRESIGN_EXPIRES.

    Returns:
        The PresignedUpload to hand back to the client.

    Raises:
        MissingConfiguration: If a required setting is empty.
    """
    config.require_complete()

    context = build_signing_context(config, now or datetime.now(timezone.utc))
    object_key = build_object_key(upload.filename, context.timestamp.datestamp, nonce)
    expires = clamp_expires(expires_in)

    canonical = build_canonical_request(
        UPLOAD_METHOD,
        canonical_uri(context.bucket, object_key.full_key),
        presign_query_params(context, expires),
        context.host,
    )
    signature = sign_canonical_request(context, canonical)

    logger.info(
        "Signed upload for %s (%d bytes, %s), expires in %ds",
        object_key.full_key,
        upload.size,
        upload.content_type,
        expires,
    )

    return PresignedUpload(
        upload_url=assemble_upload_url(context.host, canonical, signature),
        public_url=public_url(config.public_base_url, object_key.full_key),
        key=object_key.full_key,
        content_type=upload.content_type,
        method=UPLOAD_METHOD,
    )
