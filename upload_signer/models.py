"""Data models for the upload signer."""

import hashlib
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

R2_HOST_SUFFIX = "r2.cloudflarestorage.com"


@dataclass(frozen=True)
class UploadRequest:
    """A validated upload declaration from the client."""

    filename: str
    content_type: str
    size: int


@dataclass(frozen=True)
class SigningTimestamp:
    """The request time, captured once and reused for the whole signing flow."""

    datestamp: str
    amz_date: str

    @classmethod
    def from_datetime(cls, moment: datetime) -> "SigningTimestamp":
        """Build a timestamp from a datetime.

        Naive datetimes are taken to already be in UTC.
        """
        if moment.tzinfo is None:
            moment = moment.replace(tzinfo=timezone.utc)
        else:
            moment = moment.astimezone(timezone.utc)
        return cls(
            datestamp=moment.strftime("%Y%m%d"),
            amz_date=moment.strftime("%Y%m%dT%H%M%SZ"),
        )


@dataclass(frozen=True)
class SigningContext:
    """Per-request signing inputs derived from configuration and the clock."""

    account_id: str
    access_key_id: str
    secret_access_key: str = field(repr=False)
    bucket: str
    timestamp: SigningTimestamp
    region: str = "auto"
    service: str = "s3"

    @property
    def host(self) -> str:
        return f"{self.account_id}.{R2_HOST_SUFFIX}"

    @property
    def credential_scope(self) -> str:
        return f"{self.timestamp.datestamp}/{self.region}/{self.service}/aws4_request"

    @property
    def credential(self) -> str:
        return f"{self.access_key_id}/{self.credential_scope}"


@dataclass(frozen=True)
class ObjectKey:
    """Storage key derived from an untrusted filename."""

    sanitized_base: str
    extension: str
    nonce: str
    full_key: str


@dataclass(frozen=True)
class CanonicalRequest:
    """The exact request description whose digest gets signed."""

    method: str
    canonical_uri: str
    canonical_query: str
    canonical_headers: str
    signed_headers: str
    payload_hash: str

    @property
    def text(self) -> str:
        return "\n".join([
            self.method,
            self.canonical_uri,
            self.canonical_query,
            self.canonical_headers,
            self.signed_headers,
            self.payload_hash,
        ])

    @property
    def digest(self) -> str:
        """SHA-256 hex digest of the canonical request text."""
        return hashlib.sha256(self.text.encode("utf-8")).hexdigest()


@dataclass
class PresignedUpload:
    """Response handed to the browser upload flow."""

    upload_url: str
    public_url: str
    key: str
    content_type: str
    method: str = "PUT"

    def to_dict(self) -> dict:
        """Convert to the JSON shape returned by the endpoint."""
        return {
            "uploadUrl": self.upload_url,
            "publicUrl": self.public_url,
            "key": self.key,
            "method": self.method,
            "headers": {"Content-Type": self.content_type},
        }


class ResultStatus(Enum):
    """Status of a probe case or a whole probe run."""

    PASS = "pass"
    FAIL = "fail"
    ERROR = "error"
    INFO = "info"


@dataclass
class CaseResult:
    """Result of a single probe case."""

    case_id: str
    case_name: str
    status: ResultStatus
    expected: str
    actual: str
    key: Optional[str] = None
    status_code: Optional[int] = None
    error_message: Optional[str] = None


@dataclass
class ProbeReport:
    """Aggregated results of one probe run."""

    bucket: str
    cases: dict[str, CaseResult] = field(default_factory=dict)
    duration_seconds: float = 0.0
    timestamp: str = field(
        default_factory=lambda: datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")
    )

    @property
    def all_passed(self) -> bool:
        """Informational cases never count as failures."""
        return all(
            c.status in (ResultStatus.PASS, ResultStatus.INFO)
            for c in self.cases.values()
        )

    def to_dict(self) -> dict:
        cases = {}
        for case_id, result in self.cases.items():
            cases[case_id] = {
                "name": result.case_name,
                "status": result.status.value,
                "expected": result.expected,
                "actual": result.actual,
                "key": result.key,
                "status_code": result.status_code,
                "error_message": result.error_message,
            }

        return {
            "timestamp": self.timestamp,
            "bucket": self.bucket,
            "cases": cases,
            "duration_seconds": self.duration_seconds,
            "summary": {
                "total": len(self.cases),
                "passed": sum(1 for c in self.cases.values() if c.status == ResultStatus.PASS),
                "failed": sum(1 for c in self.cases.values() if c.status in (ResultStatus.FAIL, ResultStatus.ERROR)),
                "info": sum(1 for c in self.cases.values() if c.status == ResultStatus.INFO),
            },
        }
