"""Live upload probe against the configured bucket.

Signs fresh URLs with the same pipeline the endpoint uses, uploads
through them with httpx, and checks what the store did:

- control: a well-formed upload must be accepted and stored intact
- tampered_signature: a URL with a corrupted signature must be rejected
- oversize_body: uploads one byte more than declared; informational,
  since the presigned URL does not bind the body size
"""

import logging
import os
import time
from dataclasses import dataclass
from typing import Any, Optional

import httpx

from upload_signer.config import SignerConfig
from upload_signer.models import CaseResult, ProbeReport, ResultStatus
from upload_signer.signing import presign_upload
from upload_signer.validation import validate_upload_request

logger = logging.getLogger(__name__)

PROBE_FILENAME = "upload-probe.mp3"
PROBE_CONTENT_TYPE = "audio/mpeg"

# 1 KiB keeps probes quick
DEFAULT_PROBE_SIZE = 1024

# expect_failure: True -> must be rejected, False -> must be accepted,
# None -> informational, outcome is recorded either way
CASE_DEFINITIONS = {
    "control": {
        "id": "control",
        "name": "Control (Valid Upload)",
        "description": "Body matches the declared size. MUST be accepted and stored intact.",
        "expect_failure": False,
    },
    "tampered_signature": {
        "id": "tampered_signature",
        "name": "Tampered Signature",
        "description": "Last signature digit flipped. MUST be rejected.",
        "expect_failure": True,
    },
    "oversize_body": {
        "id": "oversize_body",
        "name": "Body > Declared Size",
        "description": "Body is one byte larger than declared. Shows whether the bucket bounds upload size.",
        "expect_failure": None,
    },
}

PROBE_CASES = ["control", "tampered_signature", "oversize_body"]


@dataclass
class ProbeExecutionResult:
    """Raw outcome of one probe upload."""

    case_id: str
    accepted: bool
    key: str
    status_code: Optional[int] = None
    error_message: Optional[str] = None


def tamper_signature(upload_url: str) -> str:
    """Flip the last hex digit of the X-Amz-Signature value."""
    last = upload_url[-1]
    flipped = "0" if last != "0" else "1"
    return upload_url[:-1] + flipped


def prepare_case_body(case_id: str, declared_size: int) -> bytes:
    """Build the upload body for a probe case.

    Args:
        case_id: The probe case identifier.
        declared_size: The size the URL was requested for.

    Returns:
        Random bytes of the size the case calls for.
    """
    if case_id in ("control", "tampered_signature"):
        return os.urandom(declared_size)
    elif case_id == "oversize_body":
        return os.urandom(declared_size + 1)
    else:
        raise ValueError(f"Unknown case_id: {case_id}")


def expected_outcome(case_id: str) -> str:
    expect_failure = CASE_DEFINITIONS[case_id]["expect_failure"]
    if expect_failure is None:
        return "either"
    return "rejected" if expect_failure else "accepted"


def evaluate_case(case_id: str, execution: ProbeExecutionResult) -> CaseResult:
    """Turn a raw upload outcome into a CaseResult."""
    case_def = CASE_DEFINITIONS[case_id]
    expected = expected_outcome(case_id)
    actual = "accepted" if execution.accepted else "rejected"

    if case_def["expect_failure"] is None:
        status = ResultStatus.INFO
    else:
        status = ResultStatus.PASS if actual == expected else ResultStatus.FAIL

    return CaseResult(
        case_id=case_id,
        case_name=case_def["name"],
        status=status,
        expected=expected,
        actual=actual,
        key=execution.key,
        status_code=execution.status_code,
        error_message=execution.error_message,
    )


class ProbeRunner:
    """Runs the probe cases against the configured bucket.

    Coordinates:
    - Signing a fresh URL per case
    - Uploading with httpx
    - Verifying the stored object with boto3
    - Deleting every object the probe created
    - Calling reporter callbacks for progress
    """

    def __init__(
        self,
        config: SignerConfig,
        http_client: httpx.Client,
        s3_client: Any,
        reporter: Optional[Any] = None,
        size: int = DEFAULT_PROBE_SIZE,
    ):
        """Initialize the runner.

        Args:
            config: Signer configuration
            http_client: httpx client for the PUT uploads
            s3_client: boto3 S3 client for verification and cleanup
            reporter: Optional reporter for progress callbacks
            size: Declared upload size for every case
        """
        self.config = config
        self.http_client = http_client
        self.s3_client = s3_client
        self.reporter = reporter
        self.size = size
        self._created_keys: list[str] = []

    def upload(self, case_id: str) -> ProbeExecutionResult:
        """Sign a URL and PUT the case body to it."""
        upload = validate_upload_request(
            {"filename": PROBE_FILENAME, "contentType": PROBE_CONTENT_TYPE, "size": self.size},
            self.config.max_audio_bytes,
        )
        presigned = presign_upload(self.config, upload)
        url = presigned.upload_url
        if case_id == "tampered_signature":
            url = tamper_signature(url)

        body = prepare_case_body(case_id, self.size)

        try:
            response = self.http_client.put(
                url,
                content=body,
                headers={"Content-Type": presigned.content_type},
            )
        except httpx.HTTPError as e:
            return ProbeExecutionResult(
                case_id=case_id,
                accepted=False,
                key=presigned.key,
                error_message=str(e),
            )

        accepted = response.is_success
        if accepted:
            self._created_keys.append(presigned.key)

        return ProbeExecutionResult(
            case_id=case_id,
            accepted=accepted,
            key=presigned.key,
            status_code=response.status_code,
            error_message=None if accepted else f"HTTP {response.status_code}",
        )

    def verify_stored(self, key: str, expected_size: int) -> Optional[str]:
        """Check the stored object's size.

        Returns:
            None when the object matches, otherwise an error message.
        """
        try:
            head = self.s3_client.head_object(Bucket=self.config.bucket, Key=key)
        except Exception as e:
            return f"Uploaded object not found: {e}"

        stored_size = head.get("ContentLength")
        if stored_size != expected_size:
            return f"Size mismatch: expected {expected_size}, got {stored_size}"
        return None

    def run_case(self, case_id: str) -> CaseResult:
        """Run one probe case and evaluate it."""
        execution = self.upload(case_id)
        result = evaluate_case(case_id, execution)

        if case_id == "control" and execution.accepted:
            error = self.verify_stored(execution.key, self.size)
            if error:
                result.status = ResultStatus.FAIL
                result.error_message = error

        return result

    def cleanup(self) -> None:
        """Delete every object the probe uploaded.

        Delete errors are non-fatal; they are logged and skipped.
        """
        for key in self._created_keys:
            try:
                self.s3_client.delete_object(Bucket=self.config.bucket, Key=key)
            except Exception as e:
                logger.warning("Could not delete probe object %s: %s", key, e)
        self._created_keys = []

    def run(self) -> ProbeReport:
        """Run every probe case.

        Returns:
            ProbeReport with one CaseResult per case
        """
        start_time = time.time()
        report = ProbeReport(bucket=self.config.bucket)

        try:
            for case_id in PROBE_CASES:
                if self.reporter:
                    self.reporter.on_case_start(case_id)

                try:
                    result = self.run_case(case_id)
                except Exception as e:
                    result = CaseResult(
                        case_id=case_id,
                        case_name=CASE_DEFINITIONS[case_id]["name"],
                        status=ResultStatus.ERROR,
                        expected=expected_outcome(case_id),
                        actual="error",
                        error_message=f"Unexpected error: {e}",
                    )

                report.cases[case_id] = result
                logger.debug("Probe case %s: %s", case_id, result.status.value)

                if self.reporter:
                    self.reporter.on_case_complete(result)
        finally:
            self.cleanup()

        report.duration_seconds = time.time() - start_time

        if self.reporter:
            self.reporter.on_run_complete(report)

        return report
