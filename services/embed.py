from logger import logger
from platforms.base import (
    EMBED_IMAGES,
    EMBED_NONE,
    EMBED_VIDEO,
    IMAGE,
    VIDEO,
    EmbedSpec,
)
import config


def build_embed(normalized, max_images=None):
    """Decide what a Bluesky post carries from its normalized media.

    Bluesky posts hold either up to four images or a single video, never
    both. A video wins and any images are dropped; extra images beyond
    ``max_images`` are dropped from the end. Order follows ``normalized``.
    """
    if max_images is None:
        max_images = config.MAX_IMAGES

    videos = [m for m in normalized if m.kind == VIDEO]
    images = [m for m in normalized if m.kind == IMAGE]

    if videos:
        dropped = len(videos) - 1 + len(images)
        if dropped:
            logger.info(f"Video embed: dropping {dropped} other attachment(s)")
        return EmbedSpec(kind=EMBED_VIDEO, media=(videos[0],))

    if images:
        if len(images) > max_images:
            logger.info(
                f"Image embed: keeping {max_images} of {len(images)} images"
            )
        return EmbedSpec(kind=EMBED_IMAGES, media=tuple(images[:max_images]))

    return EmbedSpec(kind=EMBED_NONE)
