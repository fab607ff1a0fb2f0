import pytest

import config
from errors import ConfigError


@pytest.fixture
def configured(monkeypatch):
    monkeypatch.setattr(config, "MASTODON_API_URL", "https://mastodon.social")
    monkeypatch.setattr(config, "MASTODON_ACCOUNT_ID", "42")
    monkeypatch.setattr(config, "MASTODON_ACCESS_TOKEN", "token")
    monkeypatch.setattr(config, "BLUESKY_HANDLE", "me.bsky.social")
    monkeypatch.setattr(config, "BLUESKY_PASSWORD", "app-password")


def test_validate_passes_when_configured(configured):
    assert config.missing_settings() == []
    config.validate()


def test_validate_lists_every_missing_setting(configured, monkeypatch):
    monkeypatch.setattr(config, "MASTODON_ACCESS_TOKEN", "")
    monkeypatch.setattr(config, "BLUESKY_PASSWORD", "")
    with pytest.raises(ConfigError) as exc:
        config.validate()
    assert "MASTODON_ACCESS_TOKEN" in str(exc.value)
    assert "BLUESKY_PASSWORD" in str(exc.value)


def test_platform_limits():
    assert config.BLUESKY_CHAR_LIMIT == 300
    assert config.BLUESKY_MAX_IMAGE_SIZE == 1_000_000
    assert config.BLUESKY_MAX_VIDEO_SIZE == 100_000_000
    assert config.MAX_IMAGES == 4
