"""Tests for container wiring."""

import asyncio

import pytest

from printapic.adapters.bfl_client import HttpxBflClient
from printapic.adapters.openai_edit_client import OpenAIEditClient
from printapic.config import Settings
from printapic.containers import build_container


def test_build_container_creates_services(settings: Settings) -> None:
    container = build_container(settings)

    assert container.edit_service.workers is container.edit_workers
    assert isinstance(container.edit_service.provider, HttpxBflClient)
    assert container.edit_service.ledger is container.ledger
    asyncio.run(container.close_resources())


def test_build_container_with_openai_provider(settings: Settings) -> None:
    configured = settings.model_copy(
        update={"edit_provider": "openai", "openai_api_key": "sk-test"}
    )

    container = build_container(configured)

    assert isinstance(container.edit_service.provider, OpenAIEditClient)
    asyncio.run(container.close_resources())


@pytest.mark.parametrize(
    "update",
    [
        {"bfl_api_key": None},
        {"edit_provider": "openai", "openai_api_key": None},
        {"edit_provider": "midjourney"},
    ],
)
def test_build_container_rejects_bad_provider_config(
    settings: Settings, update: dict[str, object]
) -> None:
    with pytest.raises(ValueError):
        build_container(settings.model_copy(update=update))
