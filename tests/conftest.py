"""
In-memory doubles for the Qiniu SDK clients, the token signer and the
public HTTP read path. They reproduce the SDK's return shapes:
``(ret, info)`` for single calls and ``(ret, eof, info)`` for listing.
"""

from __future__ import annotations

import io
import sys
import os
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import unquote

import pytest
import requests

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from qiniu_fs.infrastructure.storage.object_storage import QiniuAdapter, StorageConfig


class FakeInfo:
    def __init__(self, status_code: int = 200, error: Optional[str] = None):
        self.status_code = status_code
        self.error = error

    def ok(self) -> bool:
        return self.status_code // 100 == 2


class InMemoryBucket:
    """Objects of one bucket: key -> (contents, mimeType, putTime)"""

    def __init__(self, name: str):
        self.name = name
        self.objects: Dict[str, Tuple[bytes, str, int]] = {}
        self.clock = 15000000000000000

    def put(self, key: str, contents: bytes, mime: str = "application/octet-stream") -> None:
        self.clock += 10000000
        self.objects[key] = (contents, mime, self.clock)


class FakeBucketManager:
    def __init__(self, bucket: InMemoryBucket, page_size: int = 1000):
        self.bucket = bucket
        self.page_size = page_size
        self.calls: List[Tuple[str, tuple]] = []
        self.fail_with: Optional[int] = None
        self.stat_override: Optional[Tuple[Any, FakeInfo]] = None

    def _check(self, name: str, args: tuple) -> Optional[FakeInfo]:
        self.calls.append((name, args))
        assert args[0] == self.bucket.name
        if self.fail_with is not None:
            return FakeInfo(self.fail_with, "injected failure")
        return None

    def stat(self, bucket, key):
        failure = self._check('stat', (bucket, key))
        if failure:
            return None, failure
        if self.stat_override is not None:
            return self.stat_override
        if key not in self.bucket.objects:
            return None, FakeInfo(612, "no such file or directory")
        contents, mime, put_time = self.bucket.objects[key]
        return {
            'fsize': len(contents),
            'hash': 'h-' + key,
            'mimeType': mime,
            'putTime': put_time,
            'type': 0,
        }, FakeInfo()

    def delete(self, bucket, key):
        failure = self._check('delete', (bucket, key))
        if failure:
            return None, failure
        if self.bucket.objects.pop(key, None) is None:
            return None, FakeInfo(612, "no such file or directory")
        return {}, FakeInfo()

    def rename(self, bucket, key, key_to, force='false'):
        failure = self._check('rename', (bucket, key, key_to))
        if failure:
            return None, failure
        if key not in self.bucket.objects:
            return None, FakeInfo(612, "no such file or directory")
        if key_to in self.bucket.objects:
            return None, FakeInfo(614, "file exists")
        self.bucket.objects[key_to] = self.bucket.objects.pop(key)
        return {}, FakeInfo()

    def copy(self, bucket, key, bucket_to, key_to, force='false'):
        failure = self._check('copy', (bucket, key, bucket_to, key_to))
        if failure:
            return None, failure
        assert bucket_to == self.bucket.name
        if key not in self.bucket.objects:
            return None, FakeInfo(612, "no such file or directory")
        if key_to in self.bucket.objects:
            return None, FakeInfo(614, "file exists")
        self.bucket.objects[key_to] = self.bucket.objects[key]
        return {}, FakeInfo()

    def list(self, bucket, prefix=None, marker=None, limit=None, delimiter=None):
        failure = self._check('list', (bucket, prefix, marker, limit))
        if failure:
            return None, True, failure
        keys = sorted(k for k in self.bucket.objects if k.startswith(prefix or ''))
        start = int(marker) if marker else 0
        size = min(limit or 1000, self.page_size)
        page = keys[start:start + size]
        items = []
        for key in page:
            contents, mime, put_time = self.bucket.objects[key]
            items.append({
                'key': key,
                'fsize': len(contents),
                'hash': 'h-' + key,
                'mimeType': mime,
                'putTime': put_time,
            })
        ret: Dict[str, Any] = {'items': items}
        eof = start + size >= len(keys)
        if not eof:
            ret['marker'] = str(start + size)
        return ret, eof, FakeInfo()


class FakeUploader:
    def __init__(self, bucket: InMemoryBucket):
        self.bucket = bucket
        self.calls: List[Tuple[str, str, bytes]] = []
        self.fail = False

    def put(self, token, key, data):
        self.calls.append((token, key, data))
        if self.fail:
            return None, FakeInfo(599, "injected upload failure")
        self.bucket.put(key, data)
        return {'hash': 'h-' + key, 'key': key}, FakeInfo()


class FakeAuth:
    def __init__(self):
        self.issued: List[str] = []

    def upload_token(self, bucket):
        token = f"token-{bucket}-{len(self.issued)}"
        self.issued.append(token)
        return token


class RawStream(io.BytesIO):
    decode_content = False


class FakeResponse:
    def __init__(self, status_code: int, content: bytes = b""):
        self.status_code = status_code
        self.content = content
        self.raw = RawStream(content)
        self.closed = False

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error", response=self)

    def close(self):
        self.closed = True


class FakeSession:
    """Serves ``http://<domain>/<key>`` from the in-memory bucket"""

    def __init__(self, bucket: InMemoryBucket, domain: str):
        self.bucket = bucket
        self.prefix = f"http://{domain}/"
        self.calls: List[Tuple[str, Dict[str, Any]]] = []
        self.raise_error: Optional[Exception] = None
        self.force_status: Optional[int] = None
        self.responses: List[FakeResponse] = []

    def get(self, url, **kwargs):
        self.calls.append((url, kwargs))
        if self.raise_error is not None:
            raise self.raise_error
        response = self._respond(url)
        self.responses.append(response)
        return response

    def _respond(self, url: str) -> FakeResponse:
        if self.force_status is not None:
            return FakeResponse(self.force_status, b"upstream error")
        if not url.startswith(self.prefix):
            return FakeResponse(404)
        key = unquote(url[len(self.prefix):])
        if key not in self.bucket.objects:
            return FakeResponse(404)
        return FakeResponse(200, self.bucket.objects[key][0])


@pytest.fixture
def storage_config() -> StorageConfig:
    return StorageConfig(
        access_key="ak",
        secret_key="sk",
        bucket="docs",
        domain="cdn.example.com",
    )


@pytest.fixture
def bucket() -> InMemoryBucket:
    return InMemoryBucket("docs")


@pytest.fixture
def bucket_manager(bucket) -> FakeBucketManager:
    return FakeBucketManager(bucket)


@pytest.fixture
def uploader(bucket) -> FakeUploader:
    return FakeUploader(bucket)


@pytest.fixture
def auth() -> FakeAuth:
    return FakeAuth()


@pytest.fixture
def session(bucket, storage_config) -> FakeSession:
    return FakeSession(bucket, storage_config.domain)


@pytest.fixture
def adapter(storage_config, bucket_manager, uploader, auth, session) -> QiniuAdapter:
    return QiniuAdapter(
        storage_config,
        bucket_manager=bucket_manager,
        uploader=uploader,
        auth=auth,
        session=session,
    )
