"""One mirroring pass from the source account to the destination account.

A run goes Fetching -> Filtering -> per-post processing -> done. Only a
failed listing, a failed login or a failed ledger write stop the run;
everything else is contained to the attachment or post it happened to.
"""

from dataclasses import dataclass

from errors import ContentRejected, FetchError, SizeUnsatisfiable, TranscodeError
from logger import logger
from platforms.base import IMAGE, VIDEO
from services.embed import build_embed
from services.media import media_workspace
import config


@dataclass
class RunSummary:
    fetched: int = 0
    candidates: int = 0
    published: int = 0
    skipped: int = 0
    failed: int = 0
    dropped_attachments: int = 0


def order_candidates(posts, ledger):
    """Posts not yet in the ledger, oldest first.

    The source lists newest first, so ties on ``created_at`` keep the
    reversed listing order.
    """
    fresh = [post for post in reversed(posts) if post.id not in ledger]
    return sorted(fresh, key=lambda post: post.created_at)


class SyncOrchestrator:
    def __init__(self, source, destination, ledger, transformer, fetcher,
                 image_normalizer, video_normalizer, fetch_limit=None,
                 exclude_replies=True):
        self.source = source
        self.destination = destination
        self.ledger = ledger
        self.transformer = transformer
        self.fetcher = fetcher
        self.normalizers = {
            IMAGE: image_normalizer,
            VIDEO: video_normalizer,
        }
        self.fetch_limit = fetch_limit or config.MASTODON_FETCH_LIMIT
        self.exclude_replies = exclude_replies

    def run(self):
        summary = RunSummary()

        posts = self.source.fetch_recent_posts(
            self.fetch_limit, exclude_replies=self.exclude_replies
        )
        summary.fetched = len(posts)

        candidates = order_candidates(posts, self.ledger)
        summary.candidates = len(candidates)
        if not candidates:
            logger.info("No new posts to repost.")
            return summary

        self.destination.authenticate()

        for post in candidates:
            self.process_post(post, summary)

        logger.info(
            f"Run complete: {summary.published} published, "
            f"{summary.skipped} skipped, {summary.failed} failed, "
            f"{summary.dropped_attachments} attachment(s) dropped"
        )
        return summary

    def normalize_attachment(self, attachment, workdir):
        normalizer = self.normalizers[attachment.kind]
        buffer = self.fetcher.fetch(attachment.url)
        if attachment.kind == VIDEO:
            return normalizer.normalize(buffer, workdir, alt_text=attachment.description)
        return normalizer.normalize(buffer, alt_text=attachment.description)

    def collect_media(self, post, workdir, summary):
        normalized = []
        for attachment in post.media:
            try:
                normalized.append(self.normalize_attachment(attachment, workdir))
            except (FetchError, TranscodeError, SizeUnsatisfiable) as e:
                summary.dropped_attachments += 1
                logger.warning(
                    f"Dropping {attachment.kind} attachment {attachment.id or attachment.url} "
                    f"of post {post.id}: {type(e).__name__}: {e}"
                )
        return normalized

    def process_post(self, post, summary):
        """Mirror one post. LedgerIOError from a commit propagates."""
        try:
            content = self.transformer.transform(post.content)
        except ContentRejected as e:
            logger.warning(f"Skipping post {post.id} ({e.reason}): {e}")
            self.ledger.commit(post.id)
            summary.skipped += 1
            return

        with media_workspace() as workdir:
            normalized = self.collect_media(post, workdir, summary)
            embed = build_embed(normalized)

            result = self.destination.post(content, embed)
            if not result.success:
                logger.error(
                    f"Failed to publish post {post.id}, will retry next run: {result.error}"
                )
                summary.failed += 1
                return

            self.ledger.commit(post.id)

        summary.published += 1
        logger.info(f"Reposted Mastodon post {post.id} to Bluesky: {result.post_url}")
