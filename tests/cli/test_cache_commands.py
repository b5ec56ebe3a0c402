"""Tests for the cache maintenance CLI."""

from contextlib import asynccontextmanager
from datetime import UTC, datetime
from unittest.mock import AsyncMock, Mock, patch

import pytest
from typer.testing import CliRunner

from crosswalk.domain.entities import EntityKind
from crosswalk.infrastructure.cli.app import app
from crosswalk.infrastructure.persistence.repositories import CacheStats


@pytest.fixture
def runner():
    """CLI test runner."""
    return CliRunner()


@pytest.fixture
def fake_cache():
    cache = Mock()
    cache.stats = AsyncMock(
        return_value=CacheStats(
            total_entries=3,
            oldest_entry=datetime(2024, 1, 1, tzinfo=UTC),
            newest_entry=datetime(2024, 2, 1, tzinfo=UTC),
        )
    )
    cache.clear = AsyncMock(return_value=2)
    cache.evict_older_than = AsyncMock(return_value=5)
    return cache


@pytest.fixture
def patched_cache(fake_cache):
    @asynccontextmanager
    async def open_cache():
        yield fake_cache

    with patch("crosswalk.infrastructure.cli.cache_commands.open_cache", open_cache):
        yield fake_cache


class TestAppBasics:
    def test_no_args_shows_help(self, runner):
        result = runner.invoke(app, [])

        assert "cache" in result.output

    def test_version(self, runner):
        result = runner.invoke(app, ["version"])

        assert result.exit_code == 0
        assert "crosswalk" in result.stdout


class TestCacheCommands:
    """Test the cache sub-commands against a mocked cache."""

    def test_stats(self, runner, patched_cache):
        result = runner.invoke(app, ["cache", "stats"])

        assert result.exit_code == 0
        assert "Entries" in result.stdout
        assert "3" in result.stdout
        assert "2024-01-01" in result.stdout

    def test_clear_all_with_yes(self, runner, patched_cache):
        result = runner.invoke(app, ["cache", "clear", "--yes"])

        assert result.exit_code == 0
        patched_cache.clear.assert_awaited_once_with(None)
        assert "Removed 2" in result.stdout

    def test_clear_by_kind(self, runner, patched_cache):
        result = runner.invoke(app, ["cache", "clear", "--kind", "album", "-y"])

        assert result.exit_code == 0
        patched_cache.clear.assert_awaited_once_with(EntityKind.ALBUM)

    def test_clear_declined_aborts(self, runner, patched_cache):
        result = runner.invoke(app, ["cache", "clear"], input="n\n")

        assert result.exit_code != 0
        patched_cache.clear.assert_not_awaited()

    def test_invalid_kind_is_rejected(self, runner, patched_cache):
        result = runner.invoke(app, ["cache", "clear", "--kind", "playlist", "-y"])

        assert result.exit_code != 0

    def test_evict_defaults_to_configured_retention(self, runner, patched_cache):
        with patch("crosswalk.infrastructure.cli.cache_commands.settings") as mock_settings:
            mock_settings.cache.retention_days = 30
            result = runner.invoke(app, ["cache", "evict"])

        assert result.exit_code == 0
        patched_cache.evict_older_than.assert_awaited_once_with(30)
        assert "Evicted 5" in result.stdout

    def test_evict_with_days(self, runner, patched_cache):
        result = runner.invoke(app, ["cache", "evict", "--days", "7"])

        assert result.exit_code == 0
        patched_cache.evict_older_than.assert_awaited_once_with(7)

    def test_storage_error_exits_with_code_one(self, runner, patched_cache):
        patched_cache.stats.side_effect = RuntimeError("disk full")

        result = runner.invoke(app, ["cache", "stats"])

        assert result.exit_code == 1
        assert "disk full" in result.stdout
