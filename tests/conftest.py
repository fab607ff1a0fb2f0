import os
from datetime import datetime, timedelta, timezone
from io import BytesIO

import pytest
from PIL import Image

from errors import FetchError, PublishError
from platforms.base import MediaBuffer, PostResult, SourcePost
from services.ledger import Ledger, MemoryStore


def make_image_bytes(fmt="PNG", size=(64, 64), color=(200, 30, 30), noise=False, mode="RGB"):
    """Encode a small test image in ``fmt``."""
    if noise:
        img = Image.frombytes("RGB", size, os.urandom(size[0] * size[1] * 3))
        if mode != "RGB":
            img = img.convert(mode)
    else:
        img = Image.new(mode, size, color if mode == "RGB" else color + (128,))
    buf = BytesIO()
    img.save(buf, fmt)
    return buf.getvalue()


BASE_TIME = datetime(2026, 10, 1, 12, 0, tzinfo=timezone.utc)


def make_post(post_id, content="<p>Hello</p>", minutes=0, media=()):
    return SourcePost(
        id=str(post_id),
        content=content,
        created_at=BASE_TIME + timedelta(minutes=minutes),
        url=f"https://mastodon.example/@me/{post_id}",
        media=tuple(media),
    )


class FakeSource:
    name = "fake-source"

    def __init__(self, posts=None, error=None):
        self.posts = list(posts or [])
        self.error = error
        self.calls = []

    def fetch_recent_posts(self, limit, exclude_replies=True):
        self.calls.append((limit, exclude_replies))
        if self.error:
            raise self.error
        return list(self.posts)


class FakeDestination:
    name = "fake-destination"

    def __init__(self, fail_markers=(), auth_error=None):
        self.fail_markers = set(fail_markers)
        self.auth_error = auth_error
        self.auth_calls = 0
        self.published = []  # (content, embed)

    def authenticate(self):
        self.auth_calls += 1
        if self.auth_error:
            raise PublishError(self.auth_error)

    def post(self, content, embed=None):
        if any(marker in content.text for marker in self.fail_markers):
            return PostResult(platform=self.name, success=False, error="rejected")
        self.published.append((content, embed))
        return PostResult(
            platform=self.name,
            success=True,
            post_url=f"https://bsky.app/profile/me/post/{len(self.published)}",
        )


class FakeFetcher:
    """Serves MediaBuffers (or raises) keyed by URL."""

    def __init__(self, responses=None):
        self.responses = dict(responses or {})
        self.fetched = []

    def fetch(self, url):
        self.fetched.append(url)
        result = self.responses.get(url)
        if result is None:
            raise FetchError(f"404 for {url}")
        if isinstance(result, Exception):
            raise result
        return result


@pytest.fixture
def memory_ledger():
    return Ledger(MemoryStore())


@pytest.fixture
def png_buffer():
    return MediaBuffer(data=make_image_bytes("PNG"), mime_type="image/png")
