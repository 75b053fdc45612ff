"""S3 client factory for the configured R2 bucket.

Used by the upload probe to inspect and clean up the objects it
uploads through presigned URLs. The signer itself never calls the
store.
"""

import boto3
from botocore.client import Config

from upload_signer.config import SignerConfig
from upload_signer.models import R2_HOST_SUFFIX

R2_REGION = "auto"


def endpoint_url(config: SignerConfig) -> str:
    return f"https://{config.account_id}.{R2_HOST_SUFFIX}"


def build_s3_client(config: SignerConfig):
    """Build a boto3 S3 client for the configured account.

    Args:
        config: Signer configuration with account id and credentials.

    Returns:
        A boto3 S3 client using path-style addressing, matching the
        path-style URLs the signer produces.
    """
    boto_config = Config(
        signature_version="s3v4",
        s3={"addressing_style": "path"},
    )

    return boto3.client(
        "s3",
        endpoint_url=endpoint_url(config),
        aws_access_key_id=config.access_key_id,
        aws_secret_access_key=config.secret_access_key,
        region_name=R2_REGION,
        config=boto_config,
    )
