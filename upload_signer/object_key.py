"""Object key policy: turns an untrusted filename into a safe storage key.

Keys look like ``audio/uploads/<YYYYMMDD>/<base>-<nonce>.<ext>``. The
nonce makes collisions practically impossible; nothing is checked
against the store.
"""

import re
import secrets
from typing import Optional

from upload_signer.models import ObjectKey

KEY_PREFIX = "audio/uploads"

FALLBACK_BASE = "audio"
MAX_BASE_LENGTH = 64

DEFAULT_EXTENSION = "mp3"
ALLOWED_EXTENSIONS = frozenset({"mp3", "m4a", "wav", "aac", "ogg", "flac"})

# 6 random bytes -> 12 hex characters
NONCE_BYTES = 6

_LAST_EXTENSION = re.compile(r"\.[^.]+$")
_UNSAFE_RUN = re.compile(r"[^a-z0-9_-]+")
_HYPHEN_RUN = re.compile(r"-+")
_EXTENSION = re.compile(r"\.([a-z0-9]{1,5})$")


def sanitize_file_base(name: Optional[str]) -> str:
    """Reduce a filename stem to ``[a-z0-9_-]{1,64}``.

    Falls back to ``audio`` when nothing usable is left.
    """
    base = (name or FALLBACK_BASE).strip()
    base = _LAST_EXTENSION.sub("", base).lower()
    base = _UNSAFE_RUN.sub("-", base)
    base = _HYPHEN_RUN.sub("-", base).strip("-")
    return base[:MAX_BASE_LENGTH] or FALLBACK_BASE


def safe_extension(filename: Optional[str]) -> str:
    """Pick the key extension from the allow-list.

    Only the name is inspected, never the file contents.
    """
    match = _EXTENSION.search((filename or "").lower())
    if not match or match.group(1) not in ALLOWED_EXTENSIONS:
        return DEFAULT_EXTENSION
    return match.group(1)


def new_nonce() -> str:
    """Return a fresh 12-character hex nonce from a CSPRNG."""
    return secrets.token_hex(NONCE_BYTES)


def build_object_key(
    filename: str,
    datestamp: str,
    nonce: Optional[str] = None,
) -> ObjectKey:
    """Derive the storage key for an upload.

    Args:
        filename: Client-supplied filename (untrusted).
        datestamp: YYYYMMDD date partition, from the signing timestamp.
        nonce: Random suffix; a fresh one is generated when omitted.

    Returns:
        The ObjectKey with its parts and the full key.
    """
    base = sanitize_file_base(filename)
    extension = safe_extension(filename)
    nonce = nonce or new_nonce()
    return ObjectKey(
        sanitized_base=base,
        extension=extension,
        nonce=nonce,
        full_key=f"{KEY_PREFIX}/{datestamp}/{base}-{nonce}.{extension}",
    )
