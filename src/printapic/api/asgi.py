"""ASGI entrypoint for the printapic API."""

from printapic.api.app import create_app
from printapic.containers import build_container

app = create_app(build_container())
