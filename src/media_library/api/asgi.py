"""ASGI entrypoint for the media library API."""

from media_library.api.app import create_app
from media_library.containers import build_container

app = create_app(build_container())
