"""Tests for container wiring."""

import asyncio

from media_library.config import Settings, parse_allowed_user_ids
from media_library.containers import build_container


def test_build_container_creates_services(settings: Settings) -> None:
    container = build_container(settings)

    assert container.library_service.fallback_extension == "png"
    assert container.bulk_service.library is container.library_service
    assert container.export_packager.fetcher is container.library_service.fetcher
    asyncio.run(container.close_resources())


def test_parse_allowed_user_ids() -> None:
    assert parse_allowed_user_ids(None) is None
    assert parse_allowed_user_ids(" * ") is None
    assert parse_allowed_user_ids("") is None
    assert parse_allowed_user_ids("ABC, def ,,") == {"abc", "def"}
