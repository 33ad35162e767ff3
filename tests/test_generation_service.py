"""Tests for avatar image generation."""

import asyncio

import pytest

from media_library.domain.errors import GenerationError, ValidationError
from media_library.domain.images import ImageSource
from media_library.services.generation import ImageGenerationService, avatar_prompt
from tests.conftest import PNG_BYTES, FakeImageClient


def test_generate_wraps_prompt_as_portrait() -> None:
    client = FakeImageClient()
    service = ImageGenerationService(client=client, model="gpt-image-1")

    generated = asyncio.run(service.generate("  a red fox  "))

    assert generated.prompt == "a red fox"
    assert generated.url.startswith("data:image/png;base64,")
    assert client.prompts == [avatar_prompt("a red fox")]


def test_generate_source_decodes_data_url() -> None:
    service = ImageGenerationService(client=FakeImageClient(), model="gpt-image-1")

    source = asyncio.run(service.generate_source("a red fox", "Fox"))

    assert source.data == PNG_BYTES
    assert source.filename == "Fox.png"
    assert source.content_type == "image/png"
    assert source.generated is True


def test_generate_requires_prompt() -> None:
    service = ImageGenerationService(client=FakeImageClient(), model="gpt-image-1")

    with pytest.raises(ValidationError):
        asyncio.run(service.generate("   "))


@pytest.mark.parametrize(
    "client",
    [
        FakeImageClient(error=RuntimeError("boom")),
        FakeImageClient(data_url="https://example.com/not-inline.png"),
    ],
)
def test_generate_failures_become_generation_errors(client: FakeImageClient) -> None:
    service = ImageGenerationService(client=client, model="gpt-image-1")

    with pytest.raises(GenerationError):
        asyncio.run(service.generate("a red fox"))


def test_from_data_url_rejects_garbage() -> None:
    with pytest.raises(ValidationError):
        ImageSource.from_data_url("data:image/png;base64,***", "x")
    with pytest.raises(ValidationError):
        ImageSource.from_data_url("https://example.com/x.png", "x")
