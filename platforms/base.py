from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from errors import SizeUnsatisfiable

IMAGE = "image"
VIDEO = "video"

EMBED_NONE = "none"
EMBED_IMAGES = "images"
EMBED_VIDEO = "video"


@dataclass(frozen=True)
class MediaAttachment:
    kind: str
    url: str
    format_hint: str = ""
    description: str = ""
    id: str = ""


@dataclass(frozen=True)
class SourcePost:
    id: str
    content: str
    created_at: datetime
    url: str = ""
    media: tuple = ()


@dataclass(frozen=True)
class MediaBuffer:
    data: bytes = field(repr=False)
    mime_type: str

    @property
    def length(self):
        return len(self.data)


@dataclass(frozen=True)
class NormalizedMedia:
    """Media that fits the destination's size limit for its kind.

    Construction fails with SizeUnsatisfiable rather than ever holding
    more than ``max_bytes`` bytes.
    """

    kind: str
    data: bytes = field(repr=False)
    mime_type: str
    max_bytes: int
    alt_text: str = ""

    def __post_init__(self):
        if len(self.data) > self.max_bytes:
            raise SizeUnsatisfiable(
                f"{self.kind} is {len(self.data)} bytes, limit is {self.max_bytes}"
            )

    @property
    def length(self):
        return len(self.data)


@dataclass(frozen=True)
class Facet:
    byte_start: int
    byte_end: int
    kind: str  # "link", "mention" or "tag"
    value: str
    uri: str = ""


@dataclass(frozen=True)
class RichContent:
    text: str
    facets: tuple = ()


@dataclass(frozen=True)
class EmbedSpec:
    kind: str = EMBED_NONE
    media: tuple = ()


@dataclass
class PostResult:
    platform: str
    success: bool
    post_url: str = ""
    error: str = ""


class SourceClient(ABC):
    name: str = ""

    @abstractmethod
    def fetch_recent_posts(self, limit, exclude_replies=True):
        """Return recent posts, newest first. Raises FetchError."""
        pass


class PlatformClient(ABC):
    name: str = ""
    char_limit: int = 300

    @abstractmethod
    def authenticate(self):
        """Log in to the platform. Raises PublishError."""
        pass

    @abstractmethod
    def post(self, content: RichContent, embed: Optional[EmbedSpec] = None):
        """Post content to the platform. Returns a PostResult."""
        pass
