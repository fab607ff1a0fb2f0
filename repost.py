"""Repost recent Mastodon posts (text, images, videos) to Bluesky.

Meant to be run on a schedule; each invocation is one pass. Exits 0 when
the pass completes (even with nothing new), 1 on a fatal error.
"""

import sys

import config
from errors import ConfigError, FetchError, LedgerIOError, PublishError
from logger import logger, setup_logger
from platforms import get_destination, get_source
from services.content import ContentTransformer
from services.image_normalizer import ImageNormalizer
from services.ledger import JsonFileStore, Ledger
from services.media import MediaFetcher
from services.sync import SyncOrchestrator
from services.video_normalizer import VideoNormalizer


def build_orchestrator():
    destination = get_destination("bluesky")
    return SyncOrchestrator(
        source=get_source("mastodon"),
        destination=destination,
        ledger=Ledger(JsonFileStore(config.POSTED_IDS_FILE)),
        transformer=ContentTransformer(max_chars=destination.char_limit),
        fetcher=MediaFetcher(),
        image_normalizer=ImageNormalizer(),
        video_normalizer=VideoNormalizer(),
        fetch_limit=config.MASTODON_FETCH_LIMIT,
        exclude_replies=True,
    )


def main():
    setup_logger()
    try:
        config.validate()
        build_orchestrator().run()
    except ConfigError as e:
        logger.error(str(e))
        return 1
    except (FetchError, PublishError, LedgerIOError) as e:
        logger.error(f"Fatal error: {type(e).__name__}: {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
