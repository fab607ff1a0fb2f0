from platforms.mastodon_client import MastodonSource
from platforms.bluesky_client import BlueskyClient

SOURCES = {
    "mastodon": MastodonSource,
}

DESTINATIONS = {
    "bluesky": BlueskyClient,
}


def get_source(name):
    cls = SOURCES.get(name)
    if cls is None:
        raise ValueError(f"Unknown source platform: {name}")
    return cls()


def get_destination(name):
    cls = DESTINATIONS.get(name)
    if cls is None:
        raise ValueError(f"Unknown destination platform: {name}")
    return cls()
