"""Root test configuration: transport doubles and cleanup of runtime artifacts"""

import shutil
from pathlib import Path

import httpx
import pytest


_PROJECT_ROOT = Path(__file__).parent.parent

_CLEANUP_DIRS = ["static", "dist"]

SVG = b'<svg xmlns="http://www.w3.org/2000/svg"><text>A</text></svg>'


class RecordingTransport:
    """Async url -> httpx.Response stand-in that records every requested URL."""

    def __init__(self, status: int = 200, content: bytes = b"\x89PNG fake", error: Exception = None):
        self.status = status
        self.content = content
        self.error = error
        self.calls: list[str] = []

    async def __call__(self, url: str) -> httpx.Response:
        self.calls.append(url)
        if self.error is not None:
            raise self.error
        return httpx.Response(self.status, content=self.content, request=httpx.Request("GET", url))


@pytest.fixture(name="make_transport")
def make_transport_fixture():
    return RecordingTransport


@pytest.fixture(name="transport")
def transport_fixture():
    return RecordingTransport()


@pytest.fixture(name="svg_transport")
def svg_transport_fixture():
    return RecordingTransport(content=SVG)


@pytest.fixture(name="failing_transport")
def failing_transport_fixture():
    return RecordingTransport(error=httpx.ConnectError("connection refused"))


@pytest.fixture(scope="session", autouse=True)
def cleanup_artifacts():
    """Remove diagram and output directories created during the test session."""
    yield
    for name in _CLEANUP_DIRS:
        p = _PROJECT_ROOT / name
        if p.exists():
            shutil.rmtree(p)
