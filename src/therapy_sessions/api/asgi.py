"""ASGI entrypoint for the therapy sessions API."""

from therapy_sessions.api.app import create_app
from therapy_sessions.containers import build_container

app = create_app(build_container())
