"""Picture storage in an S3-compatible bucket, signed with AWS Signature V4."""

from __future__ import annotations

import base64
import hashlib
import hmac
import logging
import os
from datetime import datetime, timezone
from typing import Any, Optional
from urllib.parse import quote

import requests

logger = logging.getLogger(__name__)

_DEFAULT_REGION = "us-east-1"
_SIGNED_HEADERS = "host;x-amz-content-sha256;x-amz-date"
_TIMEOUT = 30


class StorageError(RuntimeError):
    """Raised when the object store refuses or fails a request."""


def _hmac_sha256(key: bytes, message: str) -> bytes:
    return hmac.new(key, message.encode("utf-8"), hashlib.sha256).digest()


class BucketStorage:
    """A single bucket on an S3-compatible server, addressed path-style."""

    def __init__(
        self,
        endpoint: str,
        access_key: str,
        secret_key: str,
        bucket: str,
        secure: bool = True,
        region: Optional[str] = None,
        session: Optional[Any] = None,
    ) -> None:
        self.endpoint = endpoint
        self.bucket = bucket
        self.secure = secure
        self.region = region or ""
        self._access_key = access_key
        self._secret_key = secret_key
        self._session = session if session is not None else requests.Session()

    @classmethod
    def from_env(cls) -> "BucketStorage":
        """Build from the STORAGE_* variables; TLS is off only when ENV is dev."""
        return cls(
            os.environ.get("STORAGE_ENDPOINT", ""),
            os.environ.get("STORAGE_ACCESS_KEY_ID", ""),
            os.environ.get("STORAGE_SECRET_ACCESS_KEY", ""),
            os.environ.get("STORAGE_BUCKET_NAME", ""),
            secure=os.environ.get("ENV") != "dev",
            region=os.environ.get("STORAGE_BUCKET_LOCATION") or None,
        )

    @property
    def _signing_region(self) -> str:
        return self.region or _DEFAULT_REGION

    def _path(self, key: str = "") -> str:
        path = "/" + quote(self.bucket, safe="-_.~")
        if key:
            path += "/" + quote(key, safe="/-_.~")
        return path

    def _request(self, method: str, key: str = "", body: bytes = b"", content_type: Optional[str] = None):
        now = datetime.now(timezone.utc)
        amz_date = now.strftime("%Y%m%dT%H%M%SZ")
        day = now.strftime("%Y%m%d")
        path = self._path(key)
        payload_hash = hashlib.sha256(body).hexdigest()
        canonical_headers = (
            f"host:{self.endpoint}\n"
            f"x-amz-content-sha256:{payload_hash}\n"
            f"x-amz-date:{amz_date}\n"
        )
        canonical_request = "\n".join(
            [method, path, "", canonical_headers, _SIGNED_HEADERS, payload_hash]
        )
        scope = f"{day}/{self._signing_region}/s3/aws4_request"
        string_to_sign = "\n".join(
            [
                "AWS4-HMAC-SHA256",
                amz_date,
                scope,
                hashlib.sha256(canonical_request.encode("utf-8")).hexdigest(),
            ]
        )
        signing_key = _hmac_sha256(("AWS4" + self._secret_key).encode("utf-8"), day)
        for part in (self._signing_region, "s3", "aws4_request"):
            signing_key = _hmac_sha256(signing_key, part)
        signature = hmac.new(signing_key, string_to_sign.encode("utf-8"), hashlib.sha256).hexdigest()
        headers = {
            "Host": self.endpoint,
            "x-amz-date": amz_date,
            "x-amz-content-sha256": payload_hash,
            "Authorization": (
                f"AWS4-HMAC-SHA256 Credential={self._access_key}/{scope}, "
                f"SignedHeaders={_SIGNED_HEADERS}, Signature={signature}"
            ),
        }
        if content_type:
            headers["Content-Type"] = content_type
        scheme = "https" if self.secure else "http"
        try:
            return self._session.request(
                method,
                f"{scheme}://{self.endpoint}{path}",
                headers=headers,
                data=body,
                timeout=_TIMEOUT,
            )
        except requests.RequestException as exc:
            raise StorageError(f"storage request failed: {exc}") from exc

    def ensure_bucket(self) -> bool:
        """Create the bucket when missing; return True only if it was created.

        A failed existence check raises StorageError; a failed creation is logged.
        """
        response = self._request("HEAD")
        if response.status_code == 200:
            return False
        if response.status_code != 404:
            raise StorageError(f"bucket check failed: HTTP {response.status_code}")
        body = b""
        if self.region and self.region != _DEFAULT_REGION:
            body = (
                '<CreateBucketConfiguration xmlns="http://s3.amazonaws.com/doc/2006-03-01/">'
                f"<LocationConstraint>{self.region}</LocationConstraint>"
                "</CreateBucketConfiguration>"
            ).encode("utf-8")
        created = self._request("PUT", body=body)
        if created.status_code != 200:
            logger.error("Error creating bucket: HTTP %s", created.status_code)
            return False
        logger.info("Bucket %s created", self.bucket)
        return True

    def add_to_bucket(self, file_name: str, data: bytes, content_type: Optional[str] = None) -> None:
        """Store ``data`` under ``file_name``."""
        response = self._request(
            "PUT", file_name, bytes(data), content_type or "application/octet-stream"
        )
        if response.status_code != 200:
            raise StorageError(f"upload of {file_name!r} failed: HTTP {response.status_code}")

    def get_from_bucket(self, file_name: str) -> str:
        """Return the object stored under ``file_name`` as a base64 string."""
        response = self._request("GET", file_name)
        if response.status_code != 200:
            raise StorageError(f"download of {file_name!r} failed: HTTP {response.status_code}")
        return base64.b64encode(response.content).decode("ascii")