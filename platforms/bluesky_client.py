from atproto import Client, models

from errors import PublishError
from logger import logger
from platforms.base import (
    EMBED_IMAGES,
    EMBED_VIDEO,
    PlatformClient,
    PostResult,
)
import config


def resolve_handle(client, handle):
    """Resolve a handle to a DID for mentions."""
    try:
        resp = client.resolve_handle(handle)
        return resp.did
    except Exception:
        return None


def _looks_like_bluesky_handle(handle):
    return "." in handle and "@" not in handle


def build_facets(client, facets):
    """Turn RichContent facets into Bluesky richtext facets.

    Mentions that don't resolve to a Bluesky account become links to the
    source profile instead.
    """
    result = []
    for facet in facets:
        if facet.kind == "link":
            feature = models.AppBskyRichtextFacet.Link(uri=facet.value)
        elif facet.kind == "tag":
            feature = models.AppBskyRichtextFacet.Tag(tag=facet.value)
        elif facet.kind == "mention":
            did = None
            if _looks_like_bluesky_handle(facet.value):
                did = resolve_handle(client, facet.value)
            if did:
                feature = models.AppBskyRichtextFacet.Mention(did=did)
            elif facet.uri:
                feature = models.AppBskyRichtextFacet.Link(uri=facet.uri)
            else:
                continue
        else:
            continue
        result.append(
            models.AppBskyRichtextFacet.Main(
                index=models.AppBskyRichtextFacet.ByteSlice(
                    byte_start=facet.byte_start, byte_end=facet.byte_end
                ),
                features=[feature],
            )
        )
    return result or None


class BlueskyClient(PlatformClient):
    name = "bluesky"
    char_limit = config.BLUESKY_CHAR_LIMIT

    def __init__(self):
        self.identifier = config.BLUESKY_HANDLE
        self.password = config.BLUESKY_PASSWORD
        self.service_url = config.BLUESKY_SERVICE_URL
        self._client = None

    def authenticate(self):
        if self._client is None:
            client = Client(base_url=self.service_url)
            try:
                client.login(self.identifier, self.password)
            except Exception as e:
                raise PublishError(f"Bluesky login failed: {e}") from e
            self._client = client
        return self._client

    def upload_media(self, data, mime_type):
        client = self.authenticate()
        logger.debug(f"Uploading {len(data)} bytes of {mime_type}")
        try:
            return client.upload_blob(data).blob
        except Exception as e:
            raise PublishError(f"Upload of {mime_type} failed: {e}") from e

    def _build_embed(self, embed):
        if embed is None or not embed.media:
            return None

        if embed.kind == EMBED_VIDEO:
            video = embed.media[0]
            blob = self.upload_media(video.data, video.mime_type)
            return models.AppBskyEmbedVideo.Main(
                video=blob,
                alt=video.alt_text or config.DEFAULT_ALT_TEXT,
            )

        if embed.kind == EMBED_IMAGES:
            images = []
            for image in embed.media:
                blob = self.upload_media(image.data, image.mime_type)
                images.append(
                    models.AppBskyEmbedImages.Image(
                        alt=image.alt_text or config.DEFAULT_ALT_TEXT,
                        image=blob,
                    )
                )
            return models.AppBskyEmbedImages.Main(images=images)

        return None

    def post(self, content, embed=None):
        try:
            client = self.authenticate()

            record = models.AppBskyFeedPost.Record(
                text=content.text,
                facets=build_facets(client, content.facets),
                embed=self._build_embed(embed),
                created_at=client.get_current_time_iso(),
            )

            response = client.com.atproto.repo.create_record(
                models.ComAtprotoRepoCreateRecord.Data(
                    repo=client.me.did,
                    collection=models.ids.AppBskyFeedPost,
                    record=record,
                )
            )

            # URI format: at://did:plc:.../app.bsky.feed.post/rkey
            rkey = response.uri.split("/")[-1]
            post_url = f"https://bsky.app/profile/{self.identifier}/post/{rkey}"

            return PostResult(
                platform=self.name,
                success=True,
                post_url=post_url,
            )
        except Exception as e:
            return PostResult(
                platform=self.name,
                success=False,
                error=str(e),
            )
