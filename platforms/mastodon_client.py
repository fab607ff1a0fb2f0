from mastodon import Mastodon, MastodonError

from errors import FetchError
from logger import logger
from platforms.base import IMAGE, VIDEO, MediaAttachment, SourceClient, SourcePost
import config

# Mastodon attachment types and what they become on the way out
MEDIA_KINDS = {
    "image": IMAGE,
    "video": VIDEO,
    "gifv": VIDEO,
}

# Followers-only and direct posts stay on Mastodon
MIRRORED_VISIBILITY = {"public", "unlisted"}


def to_source_post(status):
    """Convert a Mastodon.py status dict into a SourcePost."""
    media = []
    for attachment in status.get("media_attachments") or []:
        kind = MEDIA_KINDS.get(attachment.get("type"))
        if kind is None:
            logger.info(
                f"Ignoring {attachment.get('type')} attachment on post {status['id']}"
            )
            continue
        meta = attachment.get("meta") or {}
        original = meta.get("original") or {}
        media.append(
            MediaAttachment(
                kind=kind,
                url=attachment.get("url") or attachment.get("remote_url") or "",
                format_hint=original.get("mime_type") or "",
                description=attachment.get("description") or "",
                id=str(attachment.get("id", "")),
            )
        )

    return SourcePost(
        id=str(status["id"]),
        content=status.get("content") or "",
        created_at=status["created_at"],
        url=status.get("url") or "",
        media=tuple(media),
    )


class MastodonSource(SourceClient):
    name = "mastodon"

    def __init__(self):
        self.api_base_url = config.MASTODON_API_URL
        self.account_id = config.MASTODON_ACCOUNT_ID
        self.access_token = config.MASTODON_ACCESS_TOKEN
        self._client = None

    def _get_client(self):
        if self._client is None:
            self._client = Mastodon(
                access_token=self.access_token,
                api_base_url=self.api_base_url,
                request_timeout=config.HTTP_TIMEOUT,
            )
        return self._client

    def fetch_recent_posts(self, limit, exclude_replies=True):
        try:
            client = self._get_client()
            statuses = client.account_statuses(
                self.account_id,
                limit=limit,
                exclude_replies=exclude_replies,
                exclude_reblogs=True,
            )
        except MastodonError as e:
            raise FetchError(f"Failed to fetch Mastodon posts: {e}") from e

        posts = []
        for status in statuses:
            if status.get("reblog"):
                continue
            if status.get("visibility", "public") not in MIRRORED_VISIBILITY:
                logger.debug(f"Skipping {status.get('visibility')} post {status['id']}")
                continue
            posts.append(to_source_post(status))
        return posts
