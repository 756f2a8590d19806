"""
Shared fixtures for RSS Relay tests.

Provides common test fixtures for use across all test modules.
"""

import shutil
from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from rss_relay.config import AppConfig, BrandingConfig, ConfigStore, FeedConfig, Settings
from rss_relay.rss_parser import FeedDocument, FeedEntry


# Path to test fixtures directory
FIXTURES_DIR = Path(__file__).parent / "fixtures"


@pytest.fixture
def fixtures_dir() -> Path:
    """Return path to fixtures directory."""
    return FIXTURES_DIR


@pytest.fixture
def sample_rss_path(fixtures_dir: Path) -> Path:
    """Return path to sample RSS feed file."""
    return fixtures_dir / "sample_rss.xml"


@pytest.fixture
def sample_atom_path(fixtures_dir: Path) -> Path:
    """Return path to sample Atom feed file."""
    return fixtures_dir / "sample_atom.xml"


@pytest.fixture
def sample_config_path(fixtures_dir: Path) -> Path:
    """Return path to sample config file."""
    return fixtures_dir / "sample_config.yaml"


@pytest.fixture
def config_path(sample_config_path: Path, tmp_path: Path) -> Path:
    """Return a writable copy of the sample config file."""
    path = tmp_path / "config.yml"
    shutil.copy(sample_config_path, path)
    return path


@pytest.fixture
def sample_rss_content(sample_rss_path: Path) -> str:
    """Return contents of sample RSS feed."""
    return sample_rss_path.read_text()


@pytest.fixture
def sample_atom_content(sample_atom_path: Path) -> str:
    """Return contents of sample Atom feed."""
    return sample_atom_path.read_text()


@pytest.fixture
def branding() -> BrandingConfig:
    """Create a fully populated branding block."""
    return BrandingConfig(
        thumbnail_url="https://example.com/logo.png",
        thumbnail_width=157,
        thumbnail_height=90,
        author_name="By Example",
        author_url="https://example.com",
        author_icon_url="https://example.com/icon.png",
        username="Relay",
        avatar_url="https://example.com/avatar.png",
    )


@pytest.fixture
def sample_entry() -> FeedEntry:
    """
    Create a sample feed entry for testing.

    Returns
    -------
    FeedEntry
        A fully populated entry instance.
    """
    return FeedEntry(
        title="Test Entry Title",
        link="https://example.com/test-entry",
        published=datetime(2024, 1, 2, 12, 0, tzinfo=timezone.utc),
        description='<p>Hello <b>world</b></p><img src="https://example.com/inline.png">',
        image=None,
        author="Test Author",
    )


@pytest.fixture
def make_entry() -> Callable[..., FeedEntry]:
    """Return a factory building entries published ``day`` days into 2024."""

    def factory(day: int, title: str | None = None, **kwargs: Any) -> FeedEntry:
        return FeedEntry(
            title=title or f"Entry {day}",
            link=f"https://example.com/entry-{day}",
            published=datetime(2024, 1, day, 12, 0, tzinfo=timezone.utc),
            description=kwargs.pop("description", f"<p>Body {day}</p>"),
            **kwargs,
        )

    return factory


@pytest.fixture
def make_document() -> Callable[..., FeedDocument]:
    """Return a factory building documents updated at the given time."""

    def factory(entries: list[FeedEntry], updated: datetime | None = None) -> FeedDocument:
        if updated is None and entries:
            updated = max(e.published for e in entries) + timedelta(hours=1)
        return FeedDocument(title="Test Feed", updated=updated, entries=list(entries))

    return factory


@pytest.fixture
def feed_config() -> FeedConfig:
    """Create a feed with two hooks that last ran on 2024-01-01."""
    return FeedConfig(
        url="https://example.com/feed.xml",
        hooks=[
            "https://discord.com/api/webhooks/1/token-a",
            "https://discord.com/api/webhooks/2/token-b",
        ],
        color="#1abc9c",
        periode=timedelta(minutes=5),
        last_published=datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc),
        last_run=datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc),
        last_updated=datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc),
    )


@pytest.fixture
def app_config(feed_config: FeedConfig) -> AppConfig:
    """Create an app configuration with a single feed."""
    return AppConfig(
        settings=Settings(max_concurrency=2),
        feeds={"news": feed_config},
    )


@pytest.fixture
def config_store(app_config: AppConfig, tmp_path: Path) -> ConfigStore:
    """Create a store saving to a temporary file."""
    return ConfigStore(app_config, tmp_path / "config.yml")


@pytest.fixture
def mock_notifier() -> MagicMock:
    """
    Create a mock notification sink.

    Returns
    -------
    MagicMock
        A sink whose sends all succeed.
    """
    notifier = MagicMock()
    notifier.send = AsyncMock(return_value=True)
    notifier.close = AsyncMock()
    return notifier


@pytest.fixture
def mock_parser() -> MagicMock:
    """
    Create a mock feed parser.

    Returns
    -------
    MagicMock
        A parser whose ``fetch_document`` must be configured per test.
    """
    parser = MagicMock()
    parser.fetch_document = AsyncMock()
    parser.close = AsyncMock()
    return parser

