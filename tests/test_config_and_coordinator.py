"""Tests for settings validation and refresh coordination."""
from __future__ import annotations

import asyncio
from pathlib import Path

import pytest
from pydantic import ValidationError

from app.config import CustomSettings
from app.services.fetch_coordinator import RefreshCoordinator


def test_settings_reject_invalid_cron(tmp_path: Path) -> None:
    with pytest.raises(ValidationError):
        CustomSettings(database_path=str(tmp_path / "db.sqlite"), playlist_refresh_cron="not a cron")


def test_settings_reject_default_page_above_max(tmp_path: Path) -> None:
    with pytest.raises(ValidationError):
        CustomSettings(database_path=str(tmp_path / "db.sqlite"), default_page_size=50, max_page_size=10)


def test_settings_normalize_log_level(tmp_path: Path) -> None:
    configured = CustomSettings(database_path=str(tmp_path / "db.sqlite"), log_level="debug")

    assert configured.log_level == "DEBUG"


def test_coordinator_skips_overlapping_runs() -> None:
    async def scenario() -> tuple[dict, dict]:
        coordinator = RefreshCoordinator()
        release = asyncio.Event()

        async def slow_refresh() -> dict:
            await release.wait()
            return {"status": "success"}

        first = asyncio.create_task(coordinator.execute(slow_refresh))
        await asyncio.sleep(0)
        assert coordinator.is_running()
        second = await coordinator.execute(slow_refresh)
        release.set()
        return await first, second

    first, second = asyncio.run(scenario())

    assert first == {"status": "success"}
    assert second["status"] == "skipped"
