"""
In-memory stand-in for a Cloud Storage bucket (mock DB mode and tests).
Mirrors the google.cloud.storage Blob calls the evidence store makes.
"""

import threading
from typing import Dict, Optional
from urllib.parse import quote

from google.api_core.exceptions import NotFound, PreconditionFailed


class MockBlob:
    def __init__(self, bucket: "MockBucket", name: str):
        self.bucket = bucket
        self.name = name
        self.content_type: Optional[str] = None
        self.cache_control: Optional[str] = None

    @property
    def public_url(self) -> str:
        return f"https://storage.googleapis.com/{self.bucket.name}/{quote(self.name)}"

    def exists(self) -> bool:
        return self.name in self.bucket.objects

    def upload_from_string(self, data, content_type: Optional[str] = None, if_generation_match: Optional[int] = None):
        with self.bucket.lock:
            # if_generation_match=0 means "only create, never overwrite"
            if if_generation_match == 0 and self.exists():
                raise PreconditionFailed(f"Object {self.name} already exists")
            self.content_type = content_type
            self.bucket.objects[self.name] = (bytes(data), content_type)

    def download_as_bytes(self) -> bytes:
        if not self.exists():
            raise NotFound(f"No such object: {self.bucket.name}/{self.name}")
        return self.bucket.objects[self.name][0]

    def make_public(self):
        if not self.exists():
            raise NotFound(f"No such object: {self.bucket.name}/{self.name}")
        self.bucket.public.add(self.name)


class MockBucket:
    def __init__(self, name: str = "mock-bucket"):
        self.name = name
        self.lock = threading.Lock()
        self.objects: Dict[str, tuple] = {}
        self.public = set()

    def blob(self, name: str) -> MockBlob:
        return MockBlob(self, name)


_mock_bucket: Optional[MockBucket] = None


def get_mock_bucket(name: Optional[str] = None) -> MockBucket:
    global _mock_bucket
    if _mock_bucket is None:
        _mock_bucket = MockBucket(name or "mock-bucket")
    return _mock_bucket
