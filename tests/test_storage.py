import base64
import re

import pytest

from housingapi.storage import BucketStorage, StorageError


class FakeResponse:
    def __init__(self, status_code=200, content=b""):
        self.status_code = status_code
        self.content = content


class FakeSession:
    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls = []

    def request(self, method, url, headers=None, data=None, timeout=None):
        self.calls.append({"method": method, "url": url, "headers": headers, "data": data})
        return self.responses.pop(0)


def make_storage(session, secure=False, region=None):
    return BucketStorage("localhost:9000", "placeholder", "secret", "photos", secure, region, session)


AUTH_PATTERN = re.compile(
    r"AWS4-HMAC-SHA256 Credential=placeholder/\d{8}/us-east-1/s3/aws4_request, "
    r"SignedHeaders=host;x-amz-content-sha256;x-amz-date, Signature=[0-9a-f]{64}"
)


def test_add_to_bucket_signs_request():
    session = FakeSession(FakeResponse())
    make_storage(session).add_to_bucket("abc/pic.png", b"\x89PNG", "image/png")
    call = session.calls[0]
    assert call["method"] == "PUT"
    assert call["url"] == "http://localhost:9000/photos/abc/pic.png"
    assert call["data"] == b"\x89PNG"
    assert call["headers"]["Content-Type"] == "image/png"
    assert call["headers"]["Host"] == "localhost:9000"
    assert AUTH_PATTERN.fullmatch(call["headers"]["Authorization"])


def test_keys_are_percent_encoded_and_secure_uses_https():
    session = FakeSession(FakeResponse())
    make_storage(session, secure=True).add_to_bucket("a b.png", b"x")
    assert session.calls[0]["url"] == "https://localhost:9000/photos/a%20b.png"


def test_add_to_bucket_failure():
    session = FakeSession(FakeResponse(status_code=403))
    with pytest.raises(StorageError):
        make_storage(session).add_to_bucket("pic.png", b"x")


def test_get_from_bucket_returns_base64():
    content = b"picture bytes"
    session = FakeSession(FakeResponse(content=content))
    encoded = make_storage(session).get_from_bucket("abc/pic.png")
    assert base64.b64decode(encoded) == content
    assert session.calls[0]["method"] == "GET"


def test_get_from_bucket_missing():
    session = FakeSession(FakeResponse(status_code=404))
    with pytest.raises(StorageError):
        make_storage(session).get_from_bucket("missing.png")


def test_ensure_bucket_existing():
    session = FakeSession(FakeResponse(status_code=200))
    assert make_storage(session).ensure_bucket() is False
    assert [c["method"] for c in session.calls] == ["HEAD"]


def test_ensure_bucket_creates_missing():
    session = FakeSession(FakeResponse(status_code=404), FakeResponse(status_code=200))
    assert make_storage(session).ensure_bucket() is True
    assert [c["method"] for c in session.calls] == ["HEAD", "PUT"]
    assert session.calls[1]["url"] == "http://localhost:9000/photos"
    assert session.calls[1]["data"] == b""


def test_ensure_bucket_with_region_sends_location():
    session = FakeSession(FakeResponse(status_code=404), FakeResponse(status_code=200))
    assert make_storage(session, region="eu-west-1").ensure_bucket() is True
    assert b"<LocationConstraint>eu-west-1</LocationConstraint>" in session.calls[1]["data"]
    assert "/eu-west-1/s3/aws4_request" in session.calls[1]["headers"]["Authorization"]


def test_ensure_bucket_creation_failure_is_not_fatal():
    session = FakeSession(FakeResponse(status_code=404), FakeResponse(status_code=500))
    assert make_storage(session).ensure_bucket() is False


def test_ensure_bucket_check_failure_raises():
    session = FakeSession(FakeResponse(status_code=403))
    with pytest.raises(StorageError):
        make_storage(session).ensure_bucket()


def test_from_env(monkeypatch):
    monkeypatch.setenv("STORAGE_ENDPOINT", "localhost:9000")
    monkeypatch.setenv("STORAGE_BUCKET_NAME", "photos")
    monkeypatch.setenv("ENV", "dev")
    monkeypatch.delenv("STORAGE_BUCKET_LOCATION", raising=False)
    storage = BucketStorage.from_env()
    assert storage.endpoint == "localhost:9000"
    assert storage.bucket == "photos"
    assert storage.secure is False