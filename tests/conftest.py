"""Shared test fixtures.

The app fixture is built with the executor disabled so tests can inspect
exactly what the webhook handler put on the trigger channel.
ASGITransport does not run the lifespan, so no worker thread is started.
"""

import hashlib
import hmac
import json
from collections.abc import AsyncGenerator
from pathlib import Path

import pytest
from httpx import ASGITransport, AsyncClient

from hubhook.core.config import Settings
from hubhook.engine.channel import TriggerChannel
from hubhook.main import create_app
from hubhook.projects.registry import Conf, Project, ProjectRegistry


TEST_REPO = "o/r"
TEST_SECRET = b"foobar"


def sign(body: bytes, secret: bytes = TEST_SECRET) -> str:
    """Build an X-Hub-Signature header value for `body`."""
    return "sha1=" + hmac.new(secret, body, hashlib.sha1).hexdigest()


def push_body(repo: str = TEST_REPO, ref: str = "refs/heads/master") -> bytes:
    return json.dumps({"ref": ref, "repository": {"full_name": repo}}).encode()


def make_project(**overrides) -> Project:
    defaults = {
        "id": "r",
        "repo": TEST_REPO,
        "branch": "master",
        "command": "./deploy.sh",
        "secret": TEST_SECRET,
    }
    defaults.update(overrides)
    return Project(**defaults)


@pytest.fixture
def project() -> Project:
    return make_project()


@pytest.fixture
def conf(tmp_path: Path, project: Project) -> Conf:
    return Conf(
        location=tmp_path,
        gitpath="git",
        projects=ProjectRegistry([project]),
    )


@pytest.fixture
def channel() -> TriggerChannel:
    return TriggerChannel()


@pytest.fixture
def settings() -> Settings:
    return Settings(sentry_dsn="", debug=False, config_file="")


@pytest.fixture
def app(conf, settings, channel):
    return create_app(conf, settings=settings, channel=channel, start_executor=False)


@pytest.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """Provide an async HTTP client wired to the test app."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


def drain(channel: TriggerChannel) -> list[str]:
    """Return everything currently queued on `channel` without blocking."""
    channel.close()
    items = []
    while (item := channel.receive(timeout=1)) is not None:
        items.append(item)
    return items
