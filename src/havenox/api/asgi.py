"""ASGI entrypoint for the HavenOx tent API."""

from havenox.api.app import create_app
from havenox.containers import build_container

app = create_app(build_container())
