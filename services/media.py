import mimetypes
import shutil
import tempfile
from contextlib import contextmanager
from urllib.parse import urlparse

import requests

from errors import FetchError
from logger import logger
from platforms.base import MediaBuffer
import config

USER_AGENT = "Mozilla/5.0 (compatible; MastodonBlueskyRepost/1.0)"
CHUNK_SIZE = 64 * 1024


def guess_mime_type(url, content_type=""):
    """Pick a mime type from the Content-Type header, then the URL extension."""
    mime = (content_type or "").split(";", 1)[0].strip().lower()
    if mime and mime != "application/octet-stream":
        return mime
    guessed, _ = mimetypes.guess_type(urlparse(url).path)
    return guessed or "application/octet-stream"


@contextmanager
def media_workspace(prefix="mastodon_media_"):
    """Yield a scratch directory that is removed however the block exits."""
    path = tempfile.mkdtemp(prefix=prefix)
    try:
        yield path
    finally:
        shutil.rmtree(path, ignore_errors=True)


class MediaFetcher:
    """Download remote media into memory. One attempt, no retries."""

    def __init__(self, timeout=None, max_bytes=None, session=None):
        self.timeout = timeout or config.HTTP_TIMEOUT
        self.max_bytes = max_bytes or config.MEDIA_MAX_DOWNLOAD_BYTES
        self.session = session or requests.Session()
        self.session.headers["User-Agent"] = USER_AGENT

    def fetch(self, url):
        if not url:
            raise FetchError("Attachment has no URL")
        try:
            with self.session.get(url, timeout=self.timeout, stream=True) as resp:
                resp.raise_for_status()
                chunks = []
                total = 0
                for chunk in resp.iter_content(chunk_size=CHUNK_SIZE):
                    total += len(chunk)
                    if total > self.max_bytes:
                        raise FetchError(
                            f"Media at {url} exceeds {self.max_bytes} bytes"
                        )
                    chunks.append(chunk)
                mime_type = guess_mime_type(url, resp.headers.get("content-type", ""))
        except requests.RequestException as e:
            raise FetchError(f"Failed to download media: {url} ({e})") from e

        data = b"".join(chunks)
        logger.debug(f"Fetched {len(data)} bytes of {mime_type} from {url}")
        return MediaBuffer(data=data, mime_type=mime_type)
