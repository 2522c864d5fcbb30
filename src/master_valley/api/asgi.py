"""ASGI entrypoint for the Master Valley API."""

from master_valley.api.app import create_app
from master_valley.containers import build_container

app = create_app(build_container())
