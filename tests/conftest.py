"""Shared fixtures for the Flickering test suite."""

import json
import os
from pathlib import Path
from typing import Any, Callable, Dict, List

import httpx
import pytest

from flickering.config.settings import FlickeringSettings
from flickering.container import ServiceContainer, build_container, reset_container
from flickering.request import Request

ENDPOINT = "https://api.flickr.test/services/rest/"


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch: pytest.MonkeyPatch):
    """Keep FLICKERING_ variables and the process-wide container out of tests."""
    for name in list(os.environ):
        if name.startswith("FLICKERING_"):
            monkeypatch.delenv(name, raising=False)
    reset_container()
    yield
    reset_container()


@pytest.fixture
def root_dir(tmp_path: Path) -> Path:
    root = tmp_path / "flickering"
    root.mkdir()
    return root


@pytest.fixture
def write_config(root_dir: Path) -> Callable[..., Path]:
    """Write a configuration group file below the root directory."""

    def _write(data: Any, group: str = "config", environment: str = None, raw: str = None) -> Path:
        directory = root_dir / environment if environment else root_dir
        directory.mkdir(parents=True, exist_ok=True)
        path = directory / f"{group}.json"
        path.write_text(raw if raw is not None else json.dumps(data), encoding="utf-8")
        return path

    return _write


@pytest.fixture
def settings(root_dir: Path) -> FlickeringSettings:
    return FlickeringSettings(root_dir=root_dir, _env_file=None)


@pytest.fixture
def container(settings: FlickeringSettings) -> ServiceContainer:
    container = build_container(settings)
    yield container
    container.clear()


class FakeFlickr:
    """Records requests and answers them with a canned payload."""

    def __init__(self):
        self.requests: List[httpx.Request] = []
        self.payload: Dict[str, Any] = {"stat": "ok"}
        self.status_code = 200

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(self.status_code, json=self.payload)

    @property
    def calls(self) -> int:
        return len(self.requests)


@pytest.fixture
def fake_flickr(container: ServiceContainer) -> FakeFlickr:
    """Install a mocked transport as the container's request service."""
    fake = FakeFlickr()
    container.register_singleton(
        "request",
        instance=Request(ENDPOINT, timeout=5, transport=httpx.MockTransport(fake))
    )
    return fake
