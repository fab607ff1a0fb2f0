import os
from dotenv import load_dotenv

from errors import ConfigError

load_dotenv()

MASTODON_API_URL = os.getenv("MASTODON_API_URL", "").rstrip("/")
MASTODON_ACCOUNT_ID = os.getenv("MASTODON_ACCOUNT_ID", "")
MASTODON_ACCESS_TOKEN = os.getenv("MASTODON_ACCESS_TOKEN", "")
MASTODON_FETCH_LIMIT = int(os.getenv("MASTODON_FETCH_LIMIT", "5"))

BLUESKY_HANDLE = os.getenv("BLUESKY_HANDLE", "")
BLUESKY_PASSWORD = os.getenv("BLUESKY_PASSWORD", "")
BLUESKY_SERVICE_URL = os.getenv("BLUESKY_SERVICE_URL", "https://bsky.social").rstrip("/")

POSTED_IDS_FILE = os.getenv("POSTED_IDS_FILE", "posted_ids.json")

# Links to the other bird site are dropped from mirrored text
DEFAULT_STRIP_URL_PATTERNS = [
    r"https?://(?:www\.|mobile\.)?(?:twitter|x)\.com/[^\s<\"']*",
]
STRIP_URL_PATTERNS = [
    p.strip() for p in os.getenv("STRIP_URL_PATTERNS", "").split(",") if p.strip()
] or DEFAULT_STRIP_URL_PATTERNS

HTTP_TIMEOUT = float(os.getenv("HTTP_TIMEOUT", "30"))
VIDEO_TRANSCODE_TIMEOUT = float(os.getenv("VIDEO_TRANSCODE_TIMEOUT", "600"))
FFMPEG_BINARY = os.getenv("FFMPEG_BINARY", "ffmpeg")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FILE = os.getenv("LOG_FILE", "")

MAX_IMAGES = 4
BLUESKY_CHAR_LIMIT = 300
BLUESKY_BYTE_LIMIT = 3000
BLUESKY_MAX_IMAGE_SIZE = 1_000_000  # 1MB
BLUESKY_MAX_VIDEO_SIZE = 100_000_000  # 100MB
MEDIA_MAX_DOWNLOAD_BYTES = 200_000_000
DEFAULT_ALT_TEXT = "Media reposted from Mastodon"

REQUIRED_SETTINGS = (
    "MASTODON_API_URL",
    "MASTODON_ACCOUNT_ID",
    "MASTODON_ACCESS_TOKEN",
    "BLUESKY_HANDLE",
    "BLUESKY_PASSWORD",
)


def missing_settings():
    """Return the names of required settings that are empty."""
    return [name for name in REQUIRED_SETTINGS if not globals().get(name)]


def validate():
    missing = missing_settings()
    if missing:
        raise ConfigError(
            "Missing required environment variables: " + ", ".join(missing)
        )
