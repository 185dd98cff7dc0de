from __future__ import annotations

import dataclasses

import pytest
from fastapi.testclient import TestClient

from ai_sidecar.app import SidecarServer
from ai_sidecar.config import SidecarConfig

SECRET = "test-secret"
SYSTEM = "You are helpful."


@pytest.fixture
def config() -> SidecarConfig:
    return SidecarConfig(
        secret=SECRET,
        port=8080,
        model_path="unused",
        system_message=SYSTEM,
    )


@pytest.fixture
def auth() -> dict[str, str]:
    return {"secret": SECRET}


@pytest.fixture
def make_client(config):
    """Build a server around a fake engine and open a TestClient on it."""
    clients = []

    def _make(engine, **overrides):
        cfg = dataclasses.replace(config, **overrides) if overrides else config
        server = SidecarServer(cfg, engine=engine)
        client = TestClient(server.get_app())
        client.__enter__()
        clients.append(client)
        return server, client

    yield _make
    for client in clients:
        client.__exit__(None, None, None)
