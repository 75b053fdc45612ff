"""R2 Upload Signer.

Issues short-lived SigV4 presigned PUT URLs so browsers can upload
audio straight to an S3-compatible bucket without ever seeing the
bucket credentials.
"""

__version__ = "1.0.0"

from upload_signer.signing import presign_upload

__all__ = ["presign_upload", "__version__"]
